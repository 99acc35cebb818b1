"""In-memory observation store keyed by ``(region_key, source_type)``.

The store exclusively owns observations once an adapter has produced
them.  Retention is bounded per ``(region, source)``: when a series
exceeds ``max_entries_per_source`` the oldest observations are evicted
first and the eviction is logged.

Appends are serialised by a lock, so ``latest`` always reflects the
order in which acquisitions completed.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass
from datetime import UTC, datetime
from itertools import count
from typing import TYPE_CHECKING

from agri_monitor.core.constants import DEFAULT_STORE_MAX_ENTRIES
from agri_monitor.models._validation import check_min
from agri_monitor.models.observation import SourceType

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from agri_monitor.core.config import MonitorConfig
    from agri_monitor.models.observation import Observation

logger = logging.getLogger("agri_monitor.store.observation_store")


@dataclass(frozen=True, slots=True)
class _Entry:
    sequence: int
    stored_at: datetime
    observation: Observation


class ObservationStore:
    """Per-region, per-source observation history with bounded retention.

    Each entry is tagged with a global sequence number, so ``all()`` can
    return a region's observations in insertion order across source
    types, and with the time it was stored, for ``recent_count``.
    """

    def __init__(
        self,
        max_entries_per_source: int = DEFAULT_STORE_MAX_ENTRIES,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        check_min("ObservationStore", "max_entries_per_source", max_entries_per_source, 1)
        self._max_entries = max_entries_per_source
        self._clock = clock or (lambda: datetime.now(UTC))
        self._series: dict[str, dict[SourceType, deque[_Entry]]] = {}
        self._sequence = count()
        self._eviction_count = 0
        self._lock = threading.Lock()

    @classmethod
    def from_config(
        cls,
        config: MonitorConfig,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> ObservationStore:
        """Store whose retention cap is ``config.store_max_entries``."""
        return cls(config.store_max_entries, clock=clock)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def append(self, region_key: str, observation: Observation) -> None:
        """Store *observation* under ``(region_key, observation.source_type)``."""
        with self._lock:
            self._append_locked(region_key, observation, self._clock())

    def extend(self, region_key: str, observations: Iterable[Observation]) -> int:
        """Store several observations atomically; return how many were added."""
        added = 0
        with self._lock:
            stored_at = self._clock()
            for observation in observations:
                self._append_locked(region_key, observation, stored_at)
                added += 1
        return added

    def clear(self, region_key: str | None = None) -> None:
        """Drop one region's history, or everything when *region_key* is ``None``."""
        with self._lock:
            if region_key is None:
                self._series.clear()
            else:
                self._series.pop(region_key, None)
        logger.debug("Store cleared | region=%s", region_key or "*")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def latest(self, region_key: str, source_type: SourceType) -> Observation | None:
        """Most recently appended observation for the pair, or ``None``."""
        with self._lock:
            series = self._series.get(region_key, {}).get(source_type)
            if not series:
                return None
            return series[-1].observation

    def history(self, region_key: str, source_type: SourceType) -> list[Observation]:
        """All retained observations for the pair, oldest first."""
        with self._lock:
            series = self._series.get(region_key, {}).get(source_type, ())
            return [entry.observation for entry in series]

    def all(self, region_key: str) -> list[Observation]:
        """All retained observations for a region in insertion order."""
        with self._lock:
            entries = [
                entry
                for series in self._series.get(region_key, {}).values()
                for entry in series
            ]
        entries.sort(key=lambda entry: entry.sequence)
        return [entry.observation for entry in entries]

    def region_keys(self) -> list[str]:
        with self._lock:
            return list(self._series)

    def total_count(self, region_key: str | None = None) -> int:
        """Number of retained observations for one region, or across all regions."""
        with self._lock:
            return sum(len(series) for series in self._iter_series(region_key))

    def recent_count(self, since: datetime, region_key: str | None = None) -> int:
        """Observations stored at or after *since*."""
        with self._lock:
            return sum(
                1
                for series in self._iter_series(region_key)
                for entry in series
                if entry.stored_at >= since
            )

    @property
    def max_entries_per_source(self) -> int:
        return self._max_entries

    @property
    def eviction_count(self) -> int:
        """Total number of observations evicted since construction."""
        return self._eviction_count

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _iter_series(self, region_key: str | None) -> list[deque[_Entry]]:
        if region_key is not None:
            return list(self._series.get(region_key, {}).values())
        return [series for by_source in self._series.values() for series in by_source.values()]

    def _append_locked(
        self,
        region_key: str,
        observation: Observation,
        stored_at: datetime,
    ) -> None:
        by_source = self._series.setdefault(region_key, {})
        series = by_source.setdefault(observation.source_type, deque())

        series.append(_Entry(next(self._sequence), stored_at, observation))
        while len(series) > self._max_entries:
            evicted = series.popleft()
            self._eviction_count += 1
            logger.debug(
                "Store eviction | region=%s | source=%s | observation=%s | total_evictions=%d",
                region_key,
                observation.source_type.value,
                evicted.observation.observation_id,
                self._eviction_count,
            )
