"""Tests for the in-memory observation store."""

from __future__ import annotations

import threading
from datetime import UTC, date, datetime, timedelta

import pytest

from agri_monitor.models import ModelValidationError
from agri_monitor.models.observation import SourceType
from agri_monitor.store import ObservationStore


class _Clock:
    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now


class TestLatest:
    def test_empty_store(self, store, field_region) -> None:
        assert store.latest(field_region.key, SourceType.OPTICAL) is None
        assert store.history(field_region.key, SourceType.OPTICAL) == []
        assert store.all(field_region.key) == []

    def test_latest_is_last_appended(self, store, field_region, make_obs) -> None:
        older = make_obs.optical(field_region, date(2025, 6, 1))
        newer = make_obs.optical(field_region, date(2025, 6, 3))
        store.append(field_region.key, older)
        store.append(field_region.key, newer)
        assert store.latest(field_region.key, SourceType.OPTICAL) is newer

    def test_append_order_wins_over_acquisition_date(self, store, field_region, make_obs) -> None:
        """A later append of an older scene still becomes the latest."""
        store.append(field_region.key, make_obs.optical(field_region, date(2025, 6, 5)))
        late_arrival = make_obs.optical(field_region, date(2025, 6, 2))
        store.append(field_region.key, late_arrival)
        assert store.latest(field_region.key, SourceType.OPTICAL) is late_arrival

    def test_sources_are_independent(self, store, field_region, make_obs) -> None:
        optical = make_obs.optical(field_region, date(2025, 6, 1))
        radar = make_obs.radar(field_region, date(2025, 6, 2))
        store.append(field_region.key, optical)
        store.append(field_region.key, radar)
        assert store.latest(field_region.key, SourceType.OPTICAL) is optical
        assert store.latest(field_region.key, SourceType.RADAR) is radar
        assert store.latest(field_region.key, SourceType.CLIMATE) is None

    def test_regions_are_independent(self, store, field_region, corner_region, make_obs) -> None:
        store.append(field_region.key, make_obs.optical(field_region, date(2025, 6, 1)))
        assert store.latest(corner_region.key, SourceType.OPTICAL) is None
        assert store.region_keys() == [field_region.key]


class TestAllAndHistory:
    def test_all_in_insertion_order_across_sources(self, store, field_region, make_obs) -> None:
        day = date(2025, 6, 1)
        observations = [
            make_obs.climate(field_region, day),
            make_obs.optical(field_region, day),
            make_obs.climate(field_region, day),
            make_obs.radar(field_region, day),
        ]
        for obs in observations:
            store.append(field_region.key, obs)
        assert store.all(field_region.key) == observations

    def test_extend_returns_count(self, store, field_region, make_obs) -> None:
        batch = [make_obs.climate(field_region, date(2025, 6, d)) for d in range(1, 8)]
        assert store.extend(field_region.key, batch) == 7
        assert store.history(field_region.key, SourceType.CLIMATE) == batch
        assert store.total_count(field_region.key) == 7

    def test_extend_empty(self, store, field_region) -> None:
        assert store.extend(field_region.key, []) == 0
        assert store.total_count() == 0


class TestRetention:
    def test_oldest_evicted_first(self, field_region, make_obs) -> None:
        store = ObservationStore(max_entries_per_source=3)
        batch = [make_obs.optical(field_region, date(2025, 6, d)) for d in range(1, 6)]
        store.extend(field_region.key, batch)
        assert store.history(field_region.key, SourceType.OPTICAL) == batch[2:]
        assert store.eviction_count == 2

    def test_limit_is_per_source(self, field_region, make_obs) -> None:
        store = ObservationStore(max_entries_per_source=2)
        day = date(2025, 6, 1)
        store.extend(field_region.key, [make_obs.optical(field_region, day) for _ in range(2)])
        store.extend(field_region.key, [make_obs.radar(field_region, day) for _ in range(2)])
        assert store.total_count(field_region.key) == 4
        assert store.eviction_count == 0

    def test_eviction_logged(self, field_region, make_obs, caplog) -> None:
        store = ObservationStore(max_entries_per_source=1)
        with caplog.at_level("DEBUG", logger="agri_monitor.store.observation_store"):
            store.append(field_region.key, make_obs.radar(field_region, date(2025, 6, 1)))
            store.append(field_region.key, make_obs.radar(field_region, date(2025, 6, 2)))
        assert "Store eviction" in caplog.text

    def test_invalid_limit(self) -> None:
        with pytest.raises(ModelValidationError):
            ObservationStore(max_entries_per_source=0)


class TestCounts:
    def test_total_count_across_regions(self, store, field_region, corner_region, make_obs) -> None:
        store.append(field_region.key, make_obs.optical(field_region, date(2025, 6, 1)))
        store.append(corner_region.key, make_obs.radar(corner_region, date(2025, 6, 1)))
        store.append(corner_region.key, make_obs.climate(corner_region, date(2025, 6, 1)))
        assert store.total_count() == 3
        assert store.total_count(corner_region.key) == 2
        assert store.total_count("missing") == 0

    def test_recent_count_uses_store_time(self, field_region, make_obs) -> None:
        clock = _Clock(datetime(2025, 6, 1, 12, tzinfo=UTC))
        store = ObservationStore(clock=clock)
        store.append(field_region.key, make_obs.optical(field_region, date(2025, 1, 1)))
        clock.now += timedelta(hours=30)
        store.append(field_region.key, make_obs.optical(field_region, date(2025, 1, 2)))

        since = clock.now - timedelta(hours=24)
        assert store.recent_count(since) == 1
        assert store.recent_count(since, field_region.key) == 1
        assert store.recent_count(since, "missing") == 0


class TestClear:
    def test_clear_single_region(self, store, field_region, corner_region, make_obs) -> None:
        store.append(field_region.key, make_obs.optical(field_region, date(2025, 6, 1)))
        store.append(corner_region.key, make_obs.optical(corner_region, date(2025, 6, 1)))
        store.clear(field_region.key)
        assert store.region_keys() == [corner_region.key]

    def test_clear_everything(self, store, field_region, make_obs) -> None:
        store.append(field_region.key, make_obs.optical(field_region, date(2025, 6, 1)))
        store.clear()
        assert store.total_count() == 0


class TestConcurrentAppends:
    def test_threads_do_not_lose_writes(self, field_region, make_obs) -> None:
        store = ObservationStore(max_entries_per_source=1000)
        batches = [
            [make_obs.climate(field_region, date(2025, 6, 1)) for _ in range(50)]
            for _ in range(8)
        ]

        threads = [
            threading.Thread(target=store.extend, args=(field_region.key, batch))
            for batch in batches
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert store.total_count(field_region.key) == 400
