"""Data models shared across the plexwatch runtime."""

from __future__ import annotations

import datetime as dt
from enum import Enum
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class StatusText(str, Enum):
    """Normalized status classification of one probe."""

    ONLINE = "online"
    OFFLINE = "offline"
    UNKNOWN = "unknown"
    SESSION_EXPIRED = "session_expired"
    ERROR = "error"


class ControlAction(str, Enum):
    """Dashboard control verbs."""

    START = "start"
    STOP = "stop"
    RESTART = "restart"

    @property
    def label(self) -> str:
        return self.value.capitalize()


class ServerConfig(BaseModel):
    """A single monitored server; its position in the config is its index."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(min_length=1)
    dashboard_url: str = Field(
        min_length=1,
        validation_alias=AliasChoices("dashboard_url", "dashboardUrl"),
    )


class StatusSnapshot(BaseModel):
    """Result of one probe."""

    model_config = ConfigDict(frozen=True)

    name: str
    dashboard_url: str
    online: bool
    status_text: StatusText
    last_checked: dt.datetime = Field(default_factory=lambda: dt.datetime.now(dt.timezone.utc))
    raw_reading: Optional[str] = None
    error: Optional[str] = None


class ActionOutcome(BaseModel):
    """Outcome of a control action."""

    model_config = ConfigDict(frozen=True)

    action: ControlAction
    server: str
    success: bool
    error: Optional[str] = None
