"""Audit logging."""

from notanusa.audit.logger import AuditLogger

__all__ = ["AuditLogger"]
