"""Monitoring loop: periodic re-acquisition for subscribed regions.

State machine per subscription::

    STOPPED → STARTING → ACTIVE ⇄ REFRESHING → STOPPED

- ``start`` acquires immediately, then schedules a cancellable periodic
  ``asyncio.Task`` that re-acquires every ``interval_ms`` while the
  subscription is active.  The acquisition window is the trailing
  ``window_days`` ending on the clock's current date.
- ``stop`` cancels the schedule only.  Acquisitions run as their own
  tasks behind ``asyncio.shield`` and are never cancelled by ``stop``.
- ``refresh_now`` runs an out-of-band acquisition; a request for a
  subscription that already has one in flight awaits that one instead
  of starting another.

The loop refers to regions by key; observations stay in the store.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from agri_monitor.core.constants import (
    DEFAULT_REFRESH_INTERVAL_MS,
    DEFAULT_WINDOW_DAYS,
    RECENT_OBSERVATION_WINDOW,
)
from agri_monitor.core.exceptions import ValidationError
from agri_monitor.models._validation import check_min
from agri_monitor.models.observation import SourceType
from agri_monitor.models.region import AcquisitionWindow, Region
from agri_monitor.models.report import ConnectionStatus, MonitoringStatus

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from agri_monitor.analysis.classifier import Classifier
    from agri_monitor.core.config import MonitorConfig
    from agri_monitor.models.observation import Observation
    from agri_monitor.models.report import ClassificationReport
    from agri_monitor.models.results import FusedResult
    from agri_monitor.orchestrators.acquisition import AcquisitionOrchestrator

logger = logging.getLogger("agri_monitor.orchestrators.monitoring")


class MonitoringState(enum.Enum):
    STOPPED = "stopped"
    STARTING = "starting"
    ACTIVE = "active"
    REFRESHING = "refreshing"


class SubscriptionNotFoundError(ValidationError):
    """No active monitoring subscription exists for the region key."""

    default_stage = "monitoring"
    default_code = "SUBSCRIPTION_NOT_FOUND"

    def __init__(self, region_key: str) -> None:
        self.region_key = region_key
        super().__init__(f"No active monitoring subscription for region {region_key!r}")


@dataclass(slots=True)
class MonitoringSubscription:
    """A caller's request to keep a region refreshed.

    Attributes:
        region: The monitored region.
        source_types: Sources re-acquired on every refresh.
        interval_ms: Delay between the end of one refresh and the next.
        active: Whether the periodic schedule is running.
        state: Current lifecycle state.
        last_refresh_at: When the latest acquisition completed.
        connection_status: ``CONNECTED`` once any acquisition has completed.
        last_result: The latest ``FusedResult``.
        refresh_count: Number of completed acquisitions.
    """

    region: Region
    source_types: frozenset[SourceType]
    interval_ms: int
    active: bool = True
    state: MonitoringState = MonitoringState.STARTING
    last_refresh_at: datetime | None = None
    connection_status: ConnectionStatus = ConnectionStatus.DISCONNECTED
    last_result: FusedResult | None = None
    refresh_count: int = 0
    timer: asyncio.Task[None] | None = field(default=None, repr=False)
    in_flight: asyncio.Task[FusedResult] | None = field(default=None, repr=False)

    @property
    def key(self) -> str:
        return self.region.key


@dataclass(frozen=True, slots=True)
class FusedState:
    """Latest view of one region for dashboards.

    Attributes:
        region_key: Store key of the region.
        latest: Most recent observation per source (``None`` if never acquired).
        report: Current classification report.
        last_result: Latest ``FusedResult`` when the region is monitored.
    """

    region_key: str
    latest: dict[SourceType, Observation | None]
    report: ClassificationReport
    last_result: FusedResult | None = None


class MonitoringLoop:
    """Keeps subscribed regions refreshed on a fixed interval.

    Args:
        orchestrator: Performs the acquisitions and owns the store.
        classifier: Builds reports for ``latest_state``.
        window_days: Length of the trailing acquisition window.
        default_interval_ms: Interval used when ``start`` is given none.
        clock: Returns the current UTC time (injectable for tests).
    """

    def __init__(
        self,
        orchestrator: AcquisitionOrchestrator,
        classifier: Classifier,
        *,
        window_days: int = DEFAULT_WINDOW_DAYS,
        default_interval_ms: int = DEFAULT_REFRESH_INTERVAL_MS,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        check_min("MonitoringLoop", "window_days", window_days, 1)
        check_min("MonitoringLoop", "default_interval_ms", default_interval_ms, 1)
        self._orchestrator = orchestrator
        self._store = orchestrator.store
        self._classifier = classifier
        self._window_days = window_days
        self._default_interval_ms = default_interval_ms
        self._clock = clock or (lambda: datetime.now(UTC))
        self._subscriptions: dict[str, MonitoringSubscription] = {}
        self._acquisitions: set[asyncio.Task[FusedResult]] = set()
        self._last_refresh_at: datetime | None = None

    @classmethod
    def from_config(
        cls,
        orchestrator: AcquisitionOrchestrator,
        classifier: Classifier,
        config: MonitorConfig,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> MonitoringLoop:
        """Loop using ``config.window_days`` and ``config.refresh_interval_ms``."""
        return cls(
            orchestrator,
            classifier,
            window_days=config.window_days,
            default_interval_ms=config.refresh_interval_ms,
            clock=clock,
        )

    @property
    def window_days(self) -> int:
        return self._window_days

    @property
    def default_interval_ms(self) -> int:
        return self._default_interval_ms

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(
        self,
        region: Region,
        source_types: Iterable[SourceType | str] | None = None,
        interval_ms: int | None = None,
    ) -> FusedResult:
        """Subscribe *region*: acquire now, then every *interval_ms*.

        Starting a region that is already monitored replaces its
        subscription.

        Returns:
            The ``FusedResult`` of the immediate acquisition.
        """
        interval = self._default_interval_ms if interval_ms is None else interval_ms
        check_min("MonitoringSubscription", "interval_ms", interval, 1)
        sources = (
            frozenset(SourceType.parse(s) for s in source_types)
            if source_types is not None
            else frozenset(self._orchestrator.source_types)
        )

        previous = self._subscriptions.get(region.key)
        if previous is not None:
            logger.info("Monitoring subscription replaced | region=%s", region.key)
            self._deactivate(previous)

        subscription = MonitoringSubscription(
            region=region,
            source_types=sources,
            interval_ms=interval,
        )
        self._subscriptions[region.key] = subscription
        logger.info(
            "Monitoring started | region=%s | sources=%s | interval_ms=%d",
            region.key,
            ",".join(s.value for s in SourceType if s in sources),
            interval,
        )

        result = await self._refresh(subscription)

        if subscription.active:
            subscription.state = MonitoringState.ACTIVE
            subscription.timer = asyncio.create_task(
                self._run_periodic(subscription),
                name=f"monitor:{region.key}",
            )
        return result

    def stop(self, region_or_key: Region | str) -> bool:
        """Stop monitoring a region.  Idempotent.

        In-flight acquisitions are left to complete.

        Returns:
            ``True`` if an active subscription was stopped.
        """
        key = _key_of(region_or_key)
        subscription = self._subscriptions.pop(key, None)
        if subscription is None:
            logger.debug("Monitoring stop ignored | region=%s | reason=not_active", key)
            return False
        self._deactivate(subscription)
        logger.info(
            "Monitoring stopped | region=%s | refreshes=%d",
            key,
            subscription.refresh_count,
        )
        return True

    async def refresh_now(self, region_or_key: Region | str) -> FusedResult:
        """Acquire a monitored region immediately.

        Raises:
            SubscriptionNotFoundError: If the region is not monitored.
        """
        key = _key_of(region_or_key)
        subscription = self._subscriptions.get(key)
        if subscription is None:
            raise SubscriptionNotFoundError(key)
        return await self._refresh(subscription)

    async def refresh_all(self) -> int:
        """Refresh every active subscription concurrently.

        Returns:
            The number of refreshes that completed successfully.
        """
        subscriptions = list(self._subscriptions.values())
        results = await asyncio.gather(
            *(self._refresh(s) for s in subscriptions),
            return_exceptions=True,
        )
        succeeded = 0
        for subscription, result in zip(subscriptions, results, strict=True):
            if isinstance(result, BaseException):
                logger.error(
                    "Refresh failed | region=%s | error=%s",
                    subscription.key,
                    result,
                )
            else:
                succeeded += 1
        return succeeded

    async def aclose(self) -> None:
        """Stop every subscription and wait for in-flight acquisitions."""
        for key in list(self._subscriptions):
            self.stop(key)
        if self._acquisitions:
            await asyncio.gather(*self._acquisitions, return_exceptions=True)
        logger.info("Monitoring loop closed")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def status(self) -> MonitoringStatus:
        """Connectivity and observation counts across all regions."""
        active = [s for s in self._subscriptions.values() if s.active]
        connected = any(s.connection_status is ConnectionStatus.CONNECTED for s in active)
        since = self._clock() - RECENT_OBSERVATION_WINDOW
        return MonitoringStatus(
            connection_status=(
                ConnectionStatus.CONNECTED if connected else ConnectionStatus.DISCONNECTED
            ),
            last_refresh_at=self._last_refresh_at,
            active_region_count=len(active),
            total_observation_count=self._store.total_count(),
            recent_observation_count=self._store.recent_count(since),
        )

    def latest_state(self, region_key: str) -> FusedState:
        """Latest observation per source and the current report for a region."""
        subscription = self._subscriptions.get(region_key)
        last_result = subscription.last_result if subscription is not None else None
        window = last_result.window if last_result is not None else None
        return FusedState(
            region_key=region_key,
            latest={s: self._store.latest(region_key, s) for s in SourceType},
            report=self._classifier.classify(region_key, window),
            last_result=last_result,
        )

    def subscription(self, region_key: str) -> MonitoringSubscription | None:
        return self._subscriptions.get(region_key)

    def subscriptions(self) -> list[MonitoringSubscription]:
        return list(self._subscriptions.values())

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _run_periodic(self, subscription: MonitoringSubscription) -> None:
        delay = subscription.interval_ms / 1000
        while subscription.active:
            await asyncio.sleep(delay)
            if not subscription.active:
                break
            try:
                await self._refresh(subscription)
            except Exception:
                logger.exception("Periodic refresh failed | region=%s", subscription.key)

    async def _refresh(self, subscription: MonitoringSubscription) -> FusedResult:
        in_flight = subscription.in_flight
        if in_flight is not None and not in_flight.done():
            logger.debug("Refresh coalesced | region=%s", subscription.key)
            return await asyncio.shield(in_flight)

        task = asyncio.create_task(
            self._acquire(subscription),
            name=f"acquire:{subscription.key}",
        )
        subscription.in_flight = task
        self._acquisitions.add(task)
        task.add_done_callback(self._acquisitions.discard)
        return await asyncio.shield(task)

    async def _acquire(self, subscription: MonitoringSubscription) -> FusedResult:
        if subscription.state is MonitoringState.ACTIVE:
            subscription.state = MonitoringState.REFRESHING

        window = AcquisitionWindow.trailing(self._window_days, self._clock().date())
        try:
            result = await self._orchestrator.acquire(
                subscription.region,
                window,
                subscription.source_types,
            )
        finally:
            if subscription.state is MonitoringState.REFRESHING:
                subscription.state = MonitoringState.ACTIVE

        subscription.last_result = result
        subscription.last_refresh_at = result.fetched_at
        subscription.refresh_count += 1
        if subscription.active:
            subscription.connection_status = ConnectionStatus.CONNECTED
        self._last_refresh_at = result.fetched_at
        return result

    def _deactivate(self, subscription: MonitoringSubscription) -> None:
        subscription.active = False
        subscription.state = MonitoringState.STOPPED
        subscription.connection_status = ConnectionStatus.DISCONNECTED
        if subscription.timer is not None and not subscription.timer.done():
            subscription.timer.cancel()
        subscription.timer = None


def _key_of(region_or_key: Region | str) -> str:
    return region_or_key.key if isinstance(region_or_key, Region) else region_or_key
