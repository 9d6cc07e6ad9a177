"""Pure domain layer: payloads, state, reducers and metrics."""

from .enums import ActionType, EntityType, IncomeQuadrant, IncomeType
from .metrics import FinancialMetrics, compute_metrics
from .payloads import (
    ValidationResult,
    safe_validate_event_payload,
    validate_event_payload,
    validate_event_values,
)
from .reducers import root_reducer, replay
from .state import FinancialState

__all__ = [
    "ActionType",
    "EntityType",
    "FinancialMetrics",
    "FinancialState",
    "IncomeQuadrant",
    "IncomeType",
    "ValidationResult",
    "compute_metrics",
    "replay",
    "root_reducer",
    "safe_validate_event_payload",
    "validate_event_payload",
    "validate_event_values",
]
