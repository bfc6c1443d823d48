"""
Audit Logger

DESIGN DECISION: Every balance-affecting action is logged.
This provides:
1. Complete traceability of purchases and payments
2. The evidence needed to repair a half-recorded payment
3. Debugging capability

The audit logger:
- Is async to not block main flow
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from supplier_ledger.models.audit import AuditEvent, AuditEventBuilder
from supplier_ledger.services.storage import AuditStorageInterface


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

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for persistence), when configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger(__name__)

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_purchase_recorded(
        self,
        transaction_id: str,
        supplier_id: str,
        project_id: str,
        amount: str,
        actor: str,
        correlation_id: UUID,
    ) -> None:
        """Log a recorded purchase."""
        await self.log(AuditEventBuilder.purchase_recorded(
            transaction_id=transaction_id,
            supplier_id=supplier_id,
            project_id=project_id,
            amount=amount,
            actor=actor,
            correlation_id=correlation_id,
        ))

    async def log_payment_recorded(
        self,
        transaction_id: str,
        supplier_id: str,
        project_id: str,
        amount: str,
        actor: str,
        correlation_id: UUID,
    ) -> None:
        """Log step 2 of a payment: the ledger transaction exists."""
        await self.log(AuditEventBuilder.payment_recorded(
            transaction_id=transaction_id,
            supplier_id=supplier_id,
            project_id=project_id,
            amount=amount,
            actor=actor,
            correlation_id=correlation_id,
        ))

    async def log_payment_out_created(
        self,
        entry_id: str,
        transaction_id: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.payment_out_created(
            entry_id=entry_id,
            transaction_id=transaction_id,
            correlation_id=correlation_id,
        ))

    async def log_payment_linked(
        self,
        transaction_id: str,
        entry_id: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.payment_linked(
            transaction_id=transaction_id,
            entry_id=entry_id,
            correlation_id=correlation_id,
        ))

    async def log_validation_failed(
        self,
        kind: str,
        supplier_id: str,
        issues: list[dict],
        correlation_id: UUID,
    ) -> None:
        """Log a rejected purchase or payment request."""
        await self.log(AuditEventBuilder.validation_failed(
            kind=kind,
            supplier_id=supplier_id,
            issues=issues,
            correlation_id=correlation_id,
        ))

    async def log_concurrent_modification(
        self,
        supplier_id: str,
        project_id: str,
        expected_version: str,
        actual_version: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.concurrent_modification(
            supplier_id=supplier_id,
            project_id=project_id,
            expected_version=expected_version,
            actual_version=actual_version,
            correlation_id=correlation_id,
        ))

    async def log_store_write_failed(
        self,
        step: str,
        error_message: str,
        created_ids: dict[str, str],
        correlation_id: UUID,
        timed_out: bool = False,
    ) -> None:
        """Log a failed write, including what was already created."""
        await self.log(AuditEventBuilder.store_write_failed(
            step=step,
            error_message=error_message,
            created_ids=created_ids,
            correlation_id=correlation_id,
            timed_out=timed_out,
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., recording a payment).
    Pass it through all subsequent operations.
    """
    return uuid4()
