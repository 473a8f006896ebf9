"""
Audit Logger

DESIGN DECISION: Every user action and every failure shown to the
user is logged. This provides:
1. Traceability of changes to the books
2. Debugging capability when a save or load fails

The audit logger:
- Is async so page controllers can await it inline
- Gracefully handles failures (a broken log sink never breaks a save)
- Logs locally only; the Data Store has no audit table
"""

from typing import Optional
from uuid import UUID

import structlog

from notanusa.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from notanusa.models.validation import ValidationResult


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Keeps the most recent events in memory so the UI (and tests) can
    show what just happened.
    """

    def __init__(self, history_size: int = 100):
        """
        Initialize audit logger.

        Args:
            history_size: Number of recent events kept in memory.
        """
        self._logger = structlog.get_logger("notanusa.audit")
        self._history: list[AuditEvent] = []
        self._history_size = history_size

    @property
    def recent_events(self) -> list[AuditEvent]:
        """Most recent events, oldest first."""
        return list(self._history)

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns False if the log sink failed. Never raises.
        """
        self._history.append(event)
        if len(self._history) > self._history_size:
            del self._history[: len(self._history) - self._history_size]

        log_dict = event.to_log_dict()
        try:
            if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            elif event.severity == AuditSeverity.DEBUG:
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception:
            return False

        return True

    # ------------------------------------------------------------------
    # Session events
    # ------------------------------------------------------------------

    async def log_signed_in(self, user_id: UUID, email: str) -> None:
        await self.log(AuditEventBuilder.signed_in(user_id, email))

    async def log_signed_up(self, user_id: UUID, email: str) -> None:
        await self.log(AuditEventBuilder.signed_up(user_id, email))

    async def log_signed_out(self, user_id: Optional[UUID]) -> None:
        await self.log(AuditEventBuilder.signed_out(user_id))

    async def log_authentication_failed(self, email: str, error_message: str) -> None:
        await self.log(AuditEventBuilder.authentication_failed(email, error_message))

    # ------------------------------------------------------------------
    # Record events
    # ------------------------------------------------------------------

    async def log_record_created(
        self,
        kind: str,
        record_id: UUID,
        user_id: Optional[UUID],
        details: Optional[dict] = None,
    ) -> None:
        """Log a successful insert."""
        event = AuditEventBuilder.record_created(
            kind=kind,
            record_id=record_id,
            user_id=user_id,
            details=details,
        )
        await self.log(event)

    async def log_record_updated(
        self,
        kind: str,
        record_id: UUID,
        user_id: Optional[UUID],
        fields: list[str],
    ) -> None:
        """Log a successful update and which fields it touched."""
        event = AuditEventBuilder.record_updated(
            kind=kind,
            record_id=record_id,
            user_id=user_id,
            fields=fields,
        )
        await self.log(event)

    async def log_record_deleted(
        self,
        kind: str,
        record_id: UUID,
        user_id: Optional[UUID],
    ) -> None:
        await self.log(AuditEventBuilder.record_deleted(kind, record_id, user_id))

    async def log_save_failed(
        self,
        kind: str,
        error_message: str,
        user_id: Optional[UUID],
        record_id: Optional[UUID] = None,
    ) -> None:
        """Log a rejected insert or update."""
        event = AuditEventBuilder.save_failed(
            kind=kind,
            error_message=error_message,
            user_id=user_id,
            record_id=record_id,
        )
        await self.log(event)

    async def log_delete_failed(
        self,
        kind: str,
        record_id: UUID,
        error_message: str,
        user_id: Optional[UUID],
    ) -> None:
        event = AuditEventBuilder.delete_failed(
            kind=kind,
            record_id=record_id,
            error_message=error_message,
            user_id=user_id,
        )
        await self.log(event)

    # ------------------------------------------------------------------
    # Page and form events
    # ------------------------------------------------------------------

    async def log_load_failed(
        self,
        page: str,
        error_message: str,
        user_id: Optional[UUID],
    ) -> None:
        """Log a page fetch that failed."""
        await self.log(AuditEventBuilder.load_failed(page, error_message, user_id))

    async def log_validation_failed(
        self,
        result: ValidationResult,
        user_id: Optional[UUID],
    ) -> None:
        """Log a form submission blocked by validation."""
        event = AuditEventBuilder.validation_failed(
            form=result.form,
            issues=[issue.model_dump() for issue in result.issues],
            user_id=user_id,
        )
        await self.log(event)

    async def log_report_exported(
        self,
        filename: str,
        row_count: int,
        user_id: Optional[UUID],
    ) -> None:
        await self.log(AuditEventBuilder.report_exported(filename, row_count, user_id))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> None:
        """Log an error."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
        )
        await self.log(event)
