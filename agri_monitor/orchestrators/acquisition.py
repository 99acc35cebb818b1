"""Acquisition orchestrator: fan-out to source adapters, fan-in to a FusedResult.

One ``acquire`` call:

1. Launches every requested adapter concurrently (``asyncio.gather``),
   reporting progress in Optical → Radar → Climate order (10 / 40 / 70).
2. Waits for all sources.  Each source is isolated: an adapter that
   raises despite its contract is replaced by its own ``synthesize()``
   output and the source outcome is marked ``ERROR``.
3. Writes every new observation into the store (progress 90).
4. Returns the ``FusedResult`` (progress 100).

Acquisitions for the same region key are serialised by a per-key
``asyncio.Lock``; a second request for a busy region queues behind the
first.  ``acquire`` always returns a ``FusedResult``.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import Counter
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from agri_monitor.core.constants import PROGRESS_COMPLETE, PROGRESS_PROCESSING
from agri_monitor.core.exceptions import MonitorError
from agri_monitor.models.observation import Origin, SourceType
from agri_monitor.models.results import FusedResult, SourceOutcome

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping

    from agri_monitor.models.observation import Observation
    from agri_monitor.models.region import AcquisitionWindow, Region
    from agri_monitor.providers.base import SourceAdapter
    from agri_monitor.store.observation_store import ObservationStore

    ProgressCallback = Callable[[str, int], None]

logger = logging.getLogger("agri_monitor.orchestrators.acquisition")

# ---------------------------------------------------------------------------
# Progress stages
# ---------------------------------------------------------------------------

LAUNCH_PROGRESS: dict[SourceType, int] = {
    SourceType.OPTICAL: 10,
    SourceType.RADAR: 40,
    SourceType.CLIMATE: 70,
}

STAGE_PROCESSING = "processing"
STAGE_COMPLETE = "complete"


@dataclass(frozen=True, slots=True)
class _SourceResult:
    observations: tuple[Observation, ...]
    origin: Origin
    outcome: SourceOutcome
    error: dict[str, object] | None = None


class AcquisitionOrchestrator:
    """Runs the source adapters for a region and fuses their results.

    Args:
        adapters: One adapter per source type the orchestrator can serve.
        store: Store that receives every new observation.
        progress: Optional ``progress(stage, pct)`` callback.
        clock: Returns the current UTC time (injectable for tests).
    """

    def __init__(
        self,
        adapters: Mapping[SourceType, SourceAdapter],
        store: ObservationStore,
        *,
        progress: ProgressCallback | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._adapters = dict(adapters)
        self._store = store
        self._progress = progress
        self._clock = clock or (lambda: datetime.now(UTC))
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: Counter[str] = Counter()

    @property
    def store(self) -> ObservationStore:
        return self._store

    @property
    def source_types(self) -> list[SourceType]:
        """Source types with a registered adapter, in acquisition order."""
        return [s for s in SourceType if s in self._adapters]

    def is_busy(self, region_key: str) -> bool:
        """Whether an acquisition currently holds the region's lock."""
        lock = self._locks.get(region_key)
        return lock is not None and lock.locked()

    async def acquire(
        self,
        region: Region,
        window: AcquisitionWindow,
        source_types: Iterable[SourceType | str] | None = None,
    ) -> FusedResult:
        """Acquire observations for *region* from the requested sources.

        Args:
            region: Region to acquire for; ``region.key`` is the store key.
            window: Acquisition window.
            source_types: Sources to query; every configured source when
                ``None``.  Unconfigured sources are skipped with a warning.
        """
        requested = self._resolve_sources(source_types)
        key = region.key
        lock = self._locks.setdefault(key, asyncio.Lock())
        if lock.locked():
            logger.info("Acquisition queued | region=%s", key)
        self._lock_users[key] += 1
        try:
            async with lock:
                return await self._acquire_locked(region, window, requested)
        finally:
            # Drop the lock once no acquisition holds or awaits it.
            self._lock_users[key] -= 1
            if self._lock_users[key] <= 0:
                del self._lock_users[key]
                self._locks.pop(key, None)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _acquire_locked(
        self,
        region: Region,
        window: AcquisitionWindow,
        requested: list[SourceType],
    ) -> FusedResult:
        started = time.monotonic()
        logger.info(
            "Acquisition started | region=%s | sources=%s | window=%s/%s",
            region.key,
            ",".join(s.value for s in requested),
            window.start,
            window.end,
        )

        tasks = []
        for source in requested:
            self._report(source.value, LAUNCH_PROGRESS[source])
            tasks.append(self._run_source(self._adapters[source], region, window))
        results: list[_SourceResult] = await asyncio.gather(*tasks)

        self._report(STAGE_PROCESSING, PROGRESS_PROCESSING)

        per_source_observations: dict[SourceType, tuple[Observation, ...]] = {}
        per_source_origin: dict[SourceType, Origin] = {}
        per_source_outcome: dict[SourceType, SourceOutcome] = {}
        per_source_errors: dict[SourceType, dict[str, object]] = {}
        for source, result in zip(requested, results, strict=True):
            per_source_observations[source] = result.observations
            per_source_origin[source] = result.origin
            per_source_outcome[source] = result.outcome
            if result.error is not None:
                per_source_errors[source] = result.error
            self._store.extend(region.key, result.observations)

        fused = FusedResult(
            region_key=region.key,
            region=region,
            window=window,
            per_source_observations=per_source_observations,
            per_source_origin=per_source_origin,
            per_source_outcome=per_source_outcome,
            fetched_at=self._clock(),
            per_source_errors=per_source_errors,
        )

        self._report(STAGE_COMPLETE, PROGRESS_COMPLETE)
        logger.info(
            "Acquisition completed | region=%s | observations=%d | origins=%s | duration_ms=%d",
            region.key,
            fused.observation_count,
            fused.origins_summary(),
            int((time.monotonic() - started) * 1000),
        )
        return fused

    async def _run_source(
        self,
        adapter: SourceAdapter,
        region: Region,
        window: AcquisitionWindow,
    ) -> _SourceResult:
        """Run one adapter in isolation from the others."""
        try:
            outcome = await adapter.fetch_with_outcome(region, window)
        except Exception as exc:
            logger.exception(
                "Adapter failed | source=%s | region=%s",
                adapter.name,
                region.key,
            )
            if isinstance(exc, MonitorError):
                error = exc.to_error_dict()
            else:
                error = {
                    "category": "permanent",
                    "code": "ADAPTER_FAILED",
                    "stage": "acquisition",
                    "message": f"{type(exc).__name__}: {exc}",
                    "retryable": False,
                }
            return _SourceResult(
                tuple(adapter.synthesize(region, window)),
                Origin.SYNTHESIZED,
                SourceOutcome.ERROR,
                error,
            )

        kind = SourceOutcome.SUCCESS if outcome.origin is Origin.LIVE_API else SourceOutcome.FALLBACK
        return _SourceResult(outcome.observations, outcome.origin, kind, outcome.error)

    def _resolve_sources(
        self,
        source_types: Iterable[SourceType | str] | None,
    ) -> list[SourceType]:
        if source_types is None:
            return self.source_types

        wanted = {SourceType.parse(s) for s in source_types}
        missing = [s.value for s in SourceType if s in wanted and s not in self._adapters]
        if missing:
            logger.warning("No adapter configured | sources=%s | skipped", ",".join(missing))
        return [s for s in SourceType if s in wanted and s in self._adapters]

    def _report(self, stage: str, pct: int) -> None:
        if self._progress is None:
            return
        try:
            self._progress(stage, pct)
        except Exception:
            logger.warning("Progress callback failed | stage=%s | pct=%d", stage, pct, exc_info=True)
