"""Dashboard probing and control."""

from .actions import ActionExecutor, ControlNotFoundError
from .probe import StatusProbe

__all__ = ["ActionExecutor", "ControlNotFoundError", "StatusProbe"]
