"""Core runtime primitives for plexwatch."""

from .locks import LockManager, LockTable
from .models import ActionOutcome, ControlAction, ServerConfig, StatusSnapshot, StatusText
from .settings import RuntimeSettings

__all__ = [
    "LockManager",
    "LockTable",
    "ActionOutcome",
    "ControlAction",
    "ServerConfig",
    "StatusSnapshot",
    "StatusText",
    "RuntimeSettings",
]
