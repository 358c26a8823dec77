#!/usr/bin/env python3
"""Open a visible browser on the persistent profile so an operator can log in.

The bot itself always runs headless and cannot type passwords; when the status
message shows "Session Expired", stop the bot, run this script, log in by hand,
then press Ctrl+C. The cookies land in the same profile directory the bot uses.
"""

from __future__ import annotations

import argparse
import asyncio
import os
from pathlib import Path

from plexwatch.browser.session import SessionManager
from plexwatch.core.settings import RuntimeSettings
from plexwatch.utils.logging import get_logger

logger = get_logger("ManualLogin")


async def main(config_path: Path) -> None:
    settings = RuntimeSettings.from_file(config_path)
    session = SessionManager(settings.user_data_dir, headless=False)

    try:
        context = await session.ensure_session()
        page = await context.new_page()
        login_url = settings.servers[0].dashboard_url
        logger.info("Navigating to: %s", login_url)
        await page.goto(login_url, wait_until="networkidle")

        logger.info("Browser launched with persistent profile %s", settings.user_data_dir)
        logger.info("Please log in manually. After logging in, verify access to each dashboard:")
        for number, server in enumerate(settings.servers, start=1):
            logger.info("  %d. %s: %s", number, server.name, server.dashboard_url)
        logger.info("Press Ctrl+C to exit once you have completed the login process.")

        await asyncio.Event().wait()
    finally:
        await session.close_session()
        logger.info("Browser closed.")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Interactive dashboard login.")
    parser.add_argument(
        "--config",
        type=Path,
        default=Path(os.getenv("PLEXWATCH_CONFIG", "config/runtime.example.yml")),
    )
    args = parser.parse_args()
    try:
        asyncio.run(main(args.config))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
