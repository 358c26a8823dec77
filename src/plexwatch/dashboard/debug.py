"""Full-page screenshots of a dashboard, for diagnosing selector drift."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from plexwatch.browser.session import SessionManager
from plexwatch.core.models import ServerConfig
from plexwatch.dashboard.probe import NAVIGATION_TIMEOUT_MS, open_dashboard
from plexwatch.utils.artifacts import save_screenshot
from plexwatch.utils.logging import get_logger


logger = get_logger("DashboardDebug")


async def capture_dashboard(
    session: SessionManager,
    server: ServerConfig,
    *,
    navigation_timeout_ms: int = NAVIGATION_TIMEOUT_MS,
) -> Optional[Path]:
    try:
        async with session.page() as page:
            await open_dashboard(page, server.dashboard_url, timeout_ms=navigation_timeout_ms)
            path = await save_screenshot(page, server.name)
    except Exception as exc:
        logger.error("Error taking debug screenshot for %s: %s", server.name, exc)
        return None
    logger.info("Screenshot saved as %s", path)
    return path
