"""Query parameters shared by event repositories and services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class EventFilters:
    """Filters applied to event log listings.

    ``after`` is an exclusive lower bound (used for replay after a snapshot), ``start``
    and ``end`` are inclusive. Results are ascending unless ``descending`` is set.
    """

    entity_type: Optional[str] = None
    entity_id: Optional[int] = None
    action_type: Optional[str] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    after: Optional[datetime] = None
    limit: Optional[int] = None
    offset: int = 0
    descending: bool = False
