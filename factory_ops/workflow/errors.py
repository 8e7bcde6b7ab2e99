from __future__ import annotations

from typing import Any, Dict, Optional


class WorkflowError(Exception):
    """
    Base class for business-rule violations raised by workflow checks.

    Attributes:
        error_type: machine-readable type used in the error envelope.
        status_code: HTTP status the API layer reports for this error.
        details: optional structured context (quantities, batch numbers...).
    """

    error_type = "workflow_error"
    status_code = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class QuantityExceededError(WorkflowError):
    """A requested quantity is larger than the balance available for it."""

    error_type = "quantity_exceeded"
    status_code = 409


class DispatchBlockedError(WorkflowError):
    """A QC gate that must be complete before dispatch is not."""

    error_type = "dispatch_blocked"
    status_code = 409


class UnknownStageError(WorkflowError):
    error_type = "invalid_stage"
    status_code = 422


class InvalidQuantityError(WorkflowError):
    error_type = "invalid_quantity"
    status_code = 422


class GateBlockedError(WorkflowError):
    """A QC gate was decided before the gate it depends on was complete."""

    error_type = "gate_blocked"
    status_code = 409


class EntityNotFoundError(WorkflowError):
    error_type = "not_found"
    status_code = 404
