"""
Audit Models for NotaNusa

Every significant action in the system is logged for audit purposes.
This provides:
1. Traceability of all changes to the books
2. Debugging information when things go wrong
3. A record of failed saves and loads that were shown to the user

DESIGN DECISION: Audit events are append-only. We never modify them.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Session
    SIGNED_IN = "signed_in"
    SIGNED_UP = "signed_up"
    SIGNED_OUT = "signed_out"
    AUTHENTICATION_FAILED = "authentication_failed"

    # Persistence
    RECORD_CREATED = "record_created"
    RECORD_UPDATED = "record_updated"
    RECORD_DELETED = "record_deleted"
    SAVE_FAILED = "save_failed"
    DELETE_FAILED = "delete_failed"

    # Page loads
    LOAD_FAILED = "load_failed"

    # Forms
    VALIDATION_FAILED = "validation_failed"

    # Reports
    REPORT_EXPORTED = "report_exported"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Who acted
    user_id: Optional[UUID] = Field(
        default=None,
        description="Identity that triggered the event, if signed in"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Record kind (table name), e.g. 'transactions'"
    )
    entity_id: Optional[UUID] = Field(
        default=None,
        description="ID of the record this event relates to"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )

    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "user_id": str(self.user_id) if self.user_id else None,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.record_created("transactions", record_id, user_id)
        event = AuditEventBuilder.load_failed("dashboard", "network down", user_id)
    """

    @staticmethod
    def signed_in(user_id: UUID, email: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SIGNED_IN,
            user_id=user_id,
            entity_type="profiles",
            entity_id=user_id,
            description=f"User signed in: {email}",
            is_user_action=True,
        )

    @staticmethod
    def signed_up(user_id: UUID, email: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SIGNED_UP,
            user_id=user_id,
            entity_type="profiles",
            entity_id=user_id,
            description=f"New account registered: {email}",
            is_user_action=True,
        )

    @staticmethod
    def signed_out(user_id: Optional[UUID]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SIGNED_OUT,
            user_id=user_id,
            description="User signed out",
            is_user_action=True,
        )

    @staticmethod
    def authentication_failed(email: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AUTHENTICATION_FAILED,
            severity=AuditSeverity.WARNING,
            description=f"Authentication failed for {email}",
            error_message=error_message,
            is_user_action=True,
        )

    @staticmethod
    def record_created(
        kind: str,
        record_id: UUID,
        user_id: Optional[UUID],
        details: Optional[dict] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_CREATED,
            user_id=user_id,
            entity_type=kind,
            entity_id=record_id,
            description=f"Created {kind} record",
            details=details or {},
            is_user_action=True,
        )

    @staticmethod
    def record_updated(
        kind: str,
        record_id: UUID,
        user_id: Optional[UUID],
        fields: list[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_UPDATED,
            user_id=user_id,
            entity_type=kind,
            entity_id=record_id,
            description=f"Updated {kind} record",
            details={"fields": fields},
            is_user_action=True,
        )

    @staticmethod
    def record_deleted(kind: str, record_id: UUID, user_id: Optional[UUID]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_DELETED,
            user_id=user_id,
            entity_type=kind,
            entity_id=record_id,
            description=f"Deleted {kind} record",
            is_user_action=True,
        )

    @staticmethod
    def save_failed(
        kind: str,
        error_message: str,
        user_id: Optional[UUID],
        record_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            user_id=user_id,
            entity_type=kind,
            entity_id=record_id,
            description=f"Saving {kind} record failed",
            error_message=error_message,
        )

    @staticmethod
    def delete_failed(
        kind: str,
        record_id: UUID,
        error_message: str,
        user_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DELETE_FAILED,
            severity=AuditSeverity.ERROR,
            user_id=user_id,
            entity_type=kind,
            entity_id=record_id,
            description=f"Deleting {kind} record failed",
            error_message=error_message,
        )

    @staticmethod
    def load_failed(page: str, error_message: str, user_id: Optional[UUID]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOAD_FAILED,
            severity=AuditSeverity.WARNING,
            user_id=user_id,
            description=f"Loading the {page} page failed",
            details={"page": page},
            error_message=error_message,
        )

    @staticmethod
    def validation_failed(form: str, issues: list[dict], user_id: Optional[UUID]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            user_id=user_id,
            description=f"{form.capitalize()} form rejected with {len(issues)} issues",
            details={"form": form, "issues": issues},
            is_user_action=True,
        )

    @staticmethod
    def report_exported(
        filename: str,
        row_count: int,
        user_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REPORT_EXPORTED,
            user_id=user_id,
            description=f"Report exported: {filename}",
            details={"filename": filename, "row_count": row_count},
            is_user_action=True,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
        )
