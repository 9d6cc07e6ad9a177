"""Repository protocol definitions for domain layer."""

from .event import EventRepository
from .filters import EventFilters
from .snapshot import SnapshotRepository

__all__ = ["EventFilters", "EventRepository", "SnapshotRepository"]
