"""Status probing for a single dashboard."""

from __future__ import annotations

import datetime as dt
from typing import Optional, Sequence

from plexwatch.browser.session import SessionManager
from plexwatch.core.models import ServerConfig, StatusSnapshot, StatusText
from plexwatch.dashboard.strategies import (
    DEFAULT_STATUS_STRATEGIES,
    StatusStrategy,
    classify,
    is_login_url,
    is_positive,
)
from plexwatch.utils.logging import get_logger


NAVIGATION_TIMEOUT_MS = 30_000


def _now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


async def open_dashboard(page, url: str, *, timeout_ms: int = NAVIGATION_TIMEOUT_MS) -> None:
    """Navigate and wait for the network to go quiet."""
    await page.goto(url, wait_until="networkidle", timeout=timeout_ms)


class StatusProbe:
    """Produces one :class:`StatusSnapshot` per call.

    Not synchronized: probes share the session's browser context, so callers
    must run them one server at a time.
    """

    def __init__(
        self,
        session: SessionManager,
        *,
        strategies: Optional[Sequence[StatusStrategy]] = None,
        navigation_timeout_ms: int = NAVIGATION_TIMEOUT_MS,
    ) -> None:
        self.session = session
        self.strategies = list(strategies) if strategies is not None else list(DEFAULT_STATUS_STRATEGIES)
        self.navigation_timeout_ms = navigation_timeout_ms
        self.logger = get_logger("StatusProbe")

    async def probe(self, server: ServerConfig) -> StatusSnapshot:
        try:
            async with self.session.page() as page:
                await open_dashboard(page, server.dashboard_url, timeout_ms=self.navigation_timeout_ms)
                return await self._inspect(page, server)
        except Exception as exc:
            self.logger.error("[%s] Probe failed: %s", server.name, exc)
            return StatusSnapshot(
                name=server.name,
                dashboard_url=server.dashboard_url,
                online=False,
                status_text=StatusText.ERROR,
                last_checked=_now(),
                error=str(exc) or exc.__class__.__name__,
            )

    async def _inspect(self, page, server: ServerConfig) -> StatusSnapshot:
        if is_login_url(page.url):
            self.logger.warning("[%s] Redirected to login page; session expired", server.name)
            return StatusSnapshot(
                name=server.name,
                dashboard_url=server.dashboard_url,
                online=False,
                status_text=StatusText.SESSION_EXPIRED,
                last_checked=_now(),
            )

        reading: Optional[str] = None
        for strategy in self.strategies:
            reading = await strategy.detect(page)
            if reading is not None:
                self.logger.debug("[%s] %s strategy read %r", server.name, strategy.name, reading)
                break

        status_text = classify(reading)
        online = is_positive(reading or "")
        self.logger.info(
            "[%s] Final status: %s (read %r, online=%s)", server.name, status_text.value, reading, online
        )
        return StatusSnapshot(
            name=server.name,
            dashboard_url=server.dashboard_url,
            online=online,
            status_text=status_text,
            last_checked=_now(),
            raw_reading=reading,
        )
