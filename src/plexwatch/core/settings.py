"""Runtime settings loader."""

from __future__ import annotations

import os
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from plexwatch.core.models import ServerConfig


class RuntimeSettings(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    discord_token: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("discord_token", "discordToken")
    )
    channel_id: int = Field(validation_alias=AliasChoices("channel_id", "channelId"))
    refresh_interval_minutes: float = Field(
        default=5,
        ge=1,
        validation_alias=AliasChoices("refresh_interval_minutes", "refreshIntervalMinutes"),
    )
    post_action_refresh_seconds: float = Field(default=5, ge=0)
    user_data_dir: Path = Field(default=Path("user_data"))
    state_path: Path = Field(default=Path("data.json"))
    servers: List[ServerConfig] = Field(min_length=1)

    @classmethod
    def from_file(cls, path: Path) -> "RuntimeSettings":
        # YAML is a superset of JSON, so a legacy config.json loads as well
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        try:
            settings = cls.model_validate(data)
        except ValidationError as exc:
            raise ValueError(f"Invalid runtime settings: {exc}") from exc
        if not settings.discord_token:
            settings.discord_token = os.getenv("DISCORD_TOKEN")
        if not settings.user_data_dir.is_absolute():
            settings.user_data_dir = (path.parent / settings.user_data_dir).resolve()
        if not settings.state_path.is_absolute():
            settings.state_path = (path.parent / settings.state_path).resolve()
        return settings

    @property
    def refresh_interval_seconds(self) -> float:
        return self.refresh_interval_minutes * 60
