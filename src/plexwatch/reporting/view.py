"""Aggregate status rendering, independent of the chat client."""

from __future__ import annotations

import datetime as dt
from typing import List, Optional, Sequence

from pydantic import BaseModel, Field

from plexwatch.core.models import StatusSnapshot, StatusText


TITLE = "Plex Server Status"
FOOTER = "Auto-refreshes every few minutes"
COLOR_ALL_CLEAR = 0x00FF00
COLOR_ALERT = 0xFF0000
SESSION_EXPIRED_NOTICE = (
    "⚠️ **Dashboard session expired.** Run `python scripts/login.py` to re-authenticate."
)


class StatusLine(BaseModel):
    name: str
    icon: str
    label: str
    value: str


class StatusView(BaseModel):
    title: str = TITLE
    all_clear: bool
    color: int
    notice: Optional[str] = None
    lines: List[StatusLine] = Field(default_factory=list)
    footer: str = FOOTER
    timestamp: dt.datetime = Field(default_factory=lambda: dt.datetime.now(dt.timezone.utc))


def relative_time(moment: dt.datetime) -> str:
    """Discord timestamp markup rendered client-side as "3 minutes ago"."""
    return f"<t:{int(moment.timestamp())}:R>"


def icon_and_label(snapshot: StatusSnapshot) -> tuple[str, str]:
    if snapshot.status_text is StatusText.SESSION_EXPIRED:
        return "⚠️", "Session Expired"
    if snapshot.status_text is StatusText.ERROR:
        return "❓", "Error"
    if snapshot.online:
        return "🟢", "Online"
    return "🔴", "Offline"


def build_status_view(snapshots: Sequence[StatusSnapshot]) -> StatusView:
    all_clear = all(snapshot.online for snapshot in snapshots)
    any_expired = any(s.status_text is StatusText.SESSION_EXPIRED for s in snapshots)

    lines = []
    for snapshot in snapshots:
        icon, label = icon_and_label(snapshot)
        lines.append(
            StatusLine(
                name=snapshot.name,
                icon=icon,
                label=label,
                value=f"{icon} **{label}**\nLast checked: {relative_time(snapshot.last_checked)}",
            )
        )

    return StatusView(
        all_clear=all_clear,
        color=COLOR_ALL_CLEAR if all_clear else COLOR_ALERT,
        notice=SESSION_EXPIRED_NOTICE if any_expired else None,
        lines=lines,
    )
