"""Discord chat surface."""

from .client import DiscordStatusChannel, StatusBot, to_embed

__all__ = ["DiscordStatusChannel", "StatusBot", "to_embed"]
