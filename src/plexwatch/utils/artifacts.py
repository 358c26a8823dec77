"""Helpers to persist dashboard screenshots for debugging."""

from __future__ import annotations

import datetime as dt
import os
import re
from pathlib import Path


def artifacts_dir() -> Path:
    root = os.getenv("PLEXWATCH_ARTIFACTS", "artifacts")
    path = Path(root).resolve()
    path.mkdir(parents=True, exist_ok=True)
    return path


def screenshot_path(server_name: str) -> Path:
    slug = re.sub(r"\s+", "_", server_name.strip()) or "server"
    ts = dt.datetime.now().strftime("%Y%m%d-%H%M%S")
    return artifacts_dir() / f"debug_{slug}_{ts}.png"


async def save_screenshot(page, server_name: str) -> Path:
    path = screenshot_path(server_name)
    await page.screenshot(path=str(path), full_page=True)
    return path
