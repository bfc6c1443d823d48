"""
Ledger Error Taxonomy

ValidationError              - input rejected, nothing was written
StoreWriteError              - a store write failed, possibly mid-protocol
  WriteTimeoutError          - a store write did not finish in time
ConcurrentModificationError  - the balance changed after it was validated

Storage-level errors (StorageError, NotFoundError, ...) live with the
storage interface. The flows translate them into StoreWriteError.
"""

from typing import Optional

from supplier_ledger.models.ledger import ReconciliationStep, ValidationIssue


class LedgerError(Exception):
    """Base exception for ledger operations."""
    pass


class ValidationError(LedgerError):
    """A purchase or payment request failed validation. No write happened."""

    def __init__(self, issues: list[ValidationIssue], message: Optional[str] = None):
        self.issues = issues
        errors = [issue.message for issue in issues if issue.severity == "error"]
        super().__init__(message or "; ".join(errors) or "Validation failed")

    @property
    def field_errors(self) -> dict[str, str]:
        errors: dict[str, str] = {}
        for issue in self.issues:
            if issue.severity == "error":
                errors.setdefault(issue.field, issue.message)
        return errors


class StoreWriteError(LedgerError):
    """
    A store write failed.

    For payments this can happen after earlier writes succeeded; `step`
    names the failed write and `created_ids` lists what already exists so
    the records can be reconciled by hand.
    """

    def __init__(
        self,
        step: ReconciliationStep,
        message: str,
        created_ids: Optional[dict[str, str]] = None,
    ):
        self.step = step
        self.created_ids = dict(created_ids or {})
        super().__init__(f"{step.value}: {message}")

    @property
    def is_partial(self) -> bool:
        """True when earlier writes left records behind."""
        return bool(self.created_ids)


class WriteTimeoutError(StoreWriteError):
    """A store write exceeded the configured timeout."""
    pass


class ConcurrentModificationError(LedgerError):
    """The supplier/project balance changed between validation and write."""

    def __init__(self, supplier_id: str, project_id: str, expected: str, actual: str):
        self.supplier_id = supplier_id
        self.project_id = project_id
        self.expected_version = expected
        self.actual_version = actual
        super().__init__(
            f"Balance for supplier {supplier_id} / project {project_id} changed "
            "since it was checked. Please review the balance and try again."
        )
