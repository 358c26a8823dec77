"""Persistent state."""

from .state_store import PointerRecord, StatusMessageStore

__all__ = ["PointerRecord", "StatusMessageStore"]
