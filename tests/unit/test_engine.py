"""Tests for wiring MonitorConfig through the engine components."""

from __future__ import annotations

import os
from datetime import UTC, date, datetime
from unittest.mock import patch

import pytest

from agri_monitor.core.config import MonitorConfig
from agri_monitor.engine import build_engine
from agri_monitor.models.observation import SourceType
from agri_monitor.providers.transport import DefaultRequester
from agri_monitor.store.observation_store import ObservationStore

ENGINE_ENV = {
    "MONITOR_WINDOW_DAYS": "3",
    "STORE_MAX_ENTRIES": "2",
    "REFRESH_INTERVAL_MS": "1000",
    "CLOUD_COVER_CEILING_PCT": "12.5",
    "SOURCE_TIMEOUT_S": "4",
}


def _fixed_clock() -> datetime:
    return datetime(2025, 6, 7, 12, 0, tzinfo=UTC)


class TestBuildEngine:
    @pytest.mark.asyncio()
    async def test_environment_values_take_effect(self, offline_configs, field_region) -> None:
        with patch.dict(os.environ, ENGINE_ENV, clear=True):
            config = MonitorConfig.from_env()
        loop = build_engine(config, offline_configs, clock=_fixed_clock)
        try:
            assert loop.window_days == 3
            assert loop.default_interval_ms == 1000

            result = await loop.start(field_region)
            subscription = loop.subscription(field_region.key)
            assert subscription is not None
            assert subscription.interval_ms == 1000
            assert result.window.start == date(2025, 6, 5)
            assert result.window.end == date(2025, 6, 7)
            assert result.window.days == 3

            assert loop._store.max_entries_per_source == 2
            for source in SourceType:
                assert len(loop._store.history(field_region.key, source)) <= 2
            assert len(loop._store.history(field_region.key, SourceType.CLIMATE)) == 2
            assert loop._store.eviction_count >= 1
        finally:
            await loop.aclose()

    @pytest.mark.asyncio()
    async def test_adapters_and_classifier_share_config(self, offline_configs) -> None:
        config = MonitorConfig(cloud_cover_ceiling_pct=12.5, source_timeout_s=4.0)
        loop = build_engine(config, offline_configs)
        try:
            adapters = loop._orchestrator._adapters
            assert set(adapters) == set(SourceType)
            assert all(a._timeout_s == 4.0 for a in adapters.values())
            assert loop._classifier.config is config
        finally:
            await loop.aclose()

    @pytest.mark.asyncio()
    async def test_existing_store_reused(self, offline_configs) -> None:
        store = ObservationStore(7)
        loop = build_engine(MonitorConfig(store_max_entries=2), offline_configs, store=store)
        try:
            assert loop._store is store
        finally:
            await loop.aclose()

    @pytest.mark.asyncio()
    async def test_config_loaded_from_environment_when_omitted(self, offline_configs) -> None:
        with patch.dict(os.environ, ENGINE_ENV, clear=True):
            loop = build_engine(source_configs=offline_configs)
        try:
            assert loop.window_days == 3
            assert loop._store.max_entries_per_source == 2
        finally:
            await loop.aclose()


class TestFromConfig:
    def test_store_cap(self) -> None:
        store = ObservationStore.from_config(MonitorConfig(store_max_entries=2))
        assert store.max_entries_per_source == 2

    @pytest.mark.asyncio()
    async def test_requester_cloud_ceiling(self) -> None:
        requester = DefaultRequester.from_config(MonitorConfig(cloud_cover_ceiling_pct=12.5))
        try:
            assert requester.cloud_ceiling_pct == 12.5
        finally:
            await requester.aclose()
