"""Service helpers used by the dashboard components."""

from .audit_logger import AuditLogger

__all__ = ["AuditLogger"]
