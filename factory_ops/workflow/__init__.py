"""
Pure derivation rules for the factory views: stage flow, QC gates, batch quantities,
external processing, NCR thresholds, ageing and display formatting.

Nothing in this package touches the database or the web framework.
"""
from .errors import (  # noqa: F401
    DispatchBlockedError,
    EntityNotFoundError,
    GateBlockedError,
    InvalidQuantityError,
    QuantityExceededError,
    UnknownStageError,
    WorkflowError,
)
from .display import format_count  # noqa: F401
