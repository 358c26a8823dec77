"""Aggregate status rendering and chat message reconciliation."""

from .reconciler import StatusChannel, StatusReconciler
from .view import StatusLine, StatusView, build_status_view

__all__ = ["StatusChannel", "StatusReconciler", "StatusLine", "StatusView", "build_status_view"]
