"""Concrete repository implementations using SQLModel."""

from .event import SQLModelEventRepository
from .snapshot import SQLModelSnapshotRepository

__all__ = ["SQLModelEventRepository", "SQLModelSnapshotRepository"]
