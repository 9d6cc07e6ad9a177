"""Service module exports."""

from . import analysis, entities, event_store, snapshots

__all__ = ["analysis", "entities", "event_store", "snapshots"]
