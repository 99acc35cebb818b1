"""Observation storage.

- ObservationStore: Bounded in-memory history per (region, source)
"""

from agri_monitor.store.observation_store import ObservationStore

__all__ = ["ObservationStore"]
