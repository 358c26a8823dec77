"""CLI entrypoint to launch the status bot."""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

from plexwatch.bot.client import StatusBot
from plexwatch.core.settings import RuntimeSettings
from plexwatch.utils.logging import get_logger


logger = get_logger("StatusCLI")


def main() -> int:
    parser = argparse.ArgumentParser(description="Monitor and control media servers through their dashboards.")
    parser.add_argument(
        "--config",
        type=Path,
        default=Path(os.getenv("PLEXWATCH_CONFIG", "config/runtime.example.yml")),
        help="Path to runtime YAML (a legacy config.json works too)",
    )
    args = parser.parse_args()

    settings = RuntimeSettings.from_file(args.config)
    if not settings.discord_token:
        logger.error("No Discord token: set discord_token in %s or DISCORD_TOKEN", args.config)
        return 1

    # route discord.py's own records through the rich handler
    get_logger("discord")
    bot = StatusBot(settings)
    logger.info("Monitoring %d servers from %s", len(settings.servers), args.config)
    bot.run(settings.discord_token, log_handler=None)
    return 0


if __name__ == "__main__":
    sys.exit(main())
