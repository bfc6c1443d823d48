"""
Audit Models for Supplier Ledger

Every balance-affecting action is logged for audit purposes.
This provides:
1. Traceability of who recorded what, and when
2. The trail needed to repair a half-recorded payment by hand
3. Debugging information when a store write fails

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from supplier_ledger.models.ledger import utc_now


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    Each step of the recording flows has its own event type.
    """
    # Purchases
    PURCHASE_RECORDED = "purchase_recorded"

    # Payments
    PAYMENT_RECORDED = "payment_recorded"
    PAYMENT_OUT_CREATED = "payment_out_created"
    PAYMENT_LINKED = "payment_linked"

    # Rejections
    VALIDATION_FAILED = "validation_failed"
    CONCURRENT_MODIFICATION = "concurrent_modification"

    # Store failures
    STORE_WRITE_FAILED = "store_write_failed"
    WRITE_TIMED_OUT = "write_timed_out"

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
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=utc_now,
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

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'payment_out')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., all writes of one payment)"
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

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    # User action tracking
    actor: Optional[str] = Field(
        default=None,
        description="User who triggered the action"
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
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "actor": self.actor,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, entity_type, entity_id,
         correlation_id, description, details_json, error_code,
         error_message, actor]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            self.entity_id or "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details, default=str) if self.details else "",
            self.error_code or "",
            self.error_message or "",
            self.actor or "",
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.purchase_recorded("t1", "s1", "p1", "500", "asha", correlation_id)
        event = AuditEventBuilder.store_write_failed("link_transaction", ...)
    """

    @staticmethod
    def purchase_recorded(
        transaction_id: str,
        supplier_id: str,
        project_id: str,
        amount: str,
        actor: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PURCHASE_RECORDED,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Purchase of {amount} recorded for supplier {supplier_id}",
            details={
                "supplier_id": supplier_id,
                "project_id": project_id,
                "amount": amount,
            },
            actor=actor,
        )

    @staticmethod
    def payment_recorded(
        transaction_id: str,
        supplier_id: str,
        project_id: str,
        amount: str,
        actor: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PAYMENT_RECORDED,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Payment of {amount} recorded for supplier {supplier_id}",
            details={
                "supplier_id": supplier_id,
                "project_id": project_id,
                "amount": amount,
            },
            actor=actor,
        )

    @staticmethod
    def payment_out_created(
        entry_id: str,
        transaction_id: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PAYMENT_OUT_CREATED,
            entity_type="payment_out",
            entity_id=entry_id,
            correlation_id=correlation_id,
            description="Payment Out entry created (pending approval)",
            details={
                "supplier_transaction_id": transaction_id,
            },
        )

    @staticmethod
    def payment_linked(
        transaction_id: str,
        entry_id: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PAYMENT_LINKED,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description="Payment linked to its Payment Out entry",
            details={
                "linked_approval_entry_id": entry_id,
            },
        )

    @staticmethod
    def validation_failed(
        kind: str,
        supplier_id: str,
        issues: list[dict],
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="supplier",
            entity_id=supplier_id,
            correlation_id=correlation_id,
            description=f"{kind.capitalize()} rejected with {len(issues)} issues",
            details={
                "kind": kind,
                "issues": issues,
            },
        )

    @staticmethod
    def concurrent_modification(
        supplier_id: str,
        project_id: str,
        expected_version: str,
        actual_version: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CONCURRENT_MODIFICATION,
            severity=AuditSeverity.WARNING,
            entity_type="supplier",
            entity_id=supplier_id,
            correlation_id=correlation_id,
            description="Balance changed between validation and write",
            details={
                "project_id": project_id,
                "expected_version": expected_version,
                "actual_version": actual_version,
            },
        )

    @staticmethod
    def store_write_failed(
        step: str,
        error_message: str,
        created_ids: dict[str, str],
        correlation_id: UUID,
        timed_out: bool = False,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=(
                AuditEventType.WRITE_TIMED_OUT
                if timed_out
                else AuditEventType.STORE_WRITE_FAILED
            ),
            severity=AuditSeverity.ERROR,
            description=f"Store write failed at step: {step}",
            error_code=step,
            error_message=error_message,
            details={
                "step": step,
                "created_ids": created_ids,
                "needs_manual_reconciliation": bool(created_ids),
            },
            correlation_id=correlation_id,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
