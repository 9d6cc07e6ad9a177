"""Error taxonomy for the financial event core."""

from __future__ import annotations

from typing import Iterable, Optional


class WealthlineError(Exception):
    """Base class for all errors raised by the core."""


class ValidationError(WealthlineError):
    """A payload or event failed shape/constraint checks.

    Raised before anything is persisted. ``issues`` holds ``(path, message)`` pairs
    so callers can map them back onto request fields.
    """

    def __init__(self, issues: Iterable[tuple[str, str]], *, context: str = "payload") -> None:
        self.issues: list[tuple[str, str]] = list(issues)
        self.context = context
        details = "; ".join(f"{path}: {message}" if path else message for path, message in self.issues)
        super().__init__(f"Invalid {context}: {details}")

    @property
    def paths(self) -> list[str]:
        return [path for path, _ in self.issues]


class ReplayCorruptionError(WealthlineError):
    """The event log cannot be folded into a consistent state.

    Seeing this means the event log and the read model have diverged; it is never
    caught by the core.
    """

    def __init__(
        self,
        message: str,
        *,
        event_id: Optional[int] = None,
        entity_type: Optional[str] = None,
        entity_id: Optional[int] = None,
    ) -> None:
        self.event_id = event_id
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{message} (event={event_id}, entity={entity_type}:{entity_id})")


class PersistenceError(WealthlineError):
    """The durable store rejected a write; the transaction was rolled back."""


class SnapshotError(WealthlineError):
    """A cached snapshot could not be used or written."""


class NotFoundError(WealthlineError):
    """The entity does not exist or belongs to another user."""


__all__ = [
    "NotFoundError",
    "PersistenceError",
    "ReplayCorruptionError",
    "SnapshotError",
    "ValidationError",
    "WealthlineError",
]
