"""Tests for engine configuration.

Covers:
- Default values
- Loading from environment variables
- Type coercion (string env vars → numeric fields)
- Fail-fast range validation
- Per-source configuration and credential detection
"""

from __future__ import annotations

import os
from unittest.mock import patch

import pytest

from agri_monitor.core.config import (
    AlertThresholds,
    ConfigValidationError,
    MonitorConfig,
    load_source_configs,
)
from agri_monitor.core.constants import DEFAULT_CLIMATE_URL, DEFAULT_STAC_URL
from agri_monitor.models.observation import SourceType


class TestMonitorConfigDefaults:
    """Verify default configuration values."""

    def test_default_cloud_ceiling(self) -> None:
        assert MonitorConfig().cloud_cover_ceiling_pct == 30.0

    def test_default_thresholds(self) -> None:
        t = MonitorConfig().thresholds
        assert t.ndvi_low == 0.3
        assert t.ndvi_drop == 0.1
        assert t.radar_low_db == -18.0
        assert t.radar_high_db == -2.0
        assert t.temperature_high_c == 35.0
        assert t.temperature_low_c == 0.0
        assert t.rainfall_high_mm == 50.0

    def test_default_schedule(self) -> None:
        cfg = MonitorConfig()
        assert cfg.refresh_interval_ms == 300_000
        assert cfg.window_days == 7
        assert cfg.source_timeout_s == 30.0


class TestMonitorConfigFromEnv:
    """Verify loading from environment variables."""

    def test_loads_from_environment(self) -> None:
        env = {
            "CLOUD_COVER_CEILING_PCT": "45",
            "NDVI_LOW_THRESHOLD": "0.2",
            "NDVI_DROP_THRESHOLD": "0.15",
            "RADAR_LOW_DB": "-20",
            "TEMPERATURE_HIGH_C": "38.5",
            "RAINFALL_HIGH_MM": "80",
            "SOURCE_TIMEOUT_S": "12",
            "REFRESH_INTERVAL_MS": "60000",
            "MONITOR_WINDOW_DAYS": "14",
            "STORE_MAX_ENTRIES": "100",
        }
        with patch.dict(os.environ, env, clear=False):
            cfg = MonitorConfig.from_env()

        assert cfg.cloud_cover_ceiling_pct == 45.0
        assert cfg.thresholds.ndvi_low == 0.2
        assert cfg.thresholds.ndvi_drop == 0.15
        assert cfg.thresholds.radar_low_db == -20.0
        assert cfg.thresholds.temperature_high_c == 38.5
        assert cfg.thresholds.rainfall_high_mm == 80.0
        assert cfg.source_timeout_s == 12.0
        assert cfg.refresh_interval_ms == 60_000
        assert cfg.window_days == 14
        assert cfg.store_max_entries == 100

    def test_defaults_when_env_missing(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            cfg = MonitorConfig.from_env()
        assert cfg == MonitorConfig()

    def test_unparseable_number(self) -> None:
        with patch.dict(os.environ, {"NDVI_LOW_THRESHOLD": "abc"}, clear=True), pytest.raises(
            ValueError
        ):
            MonitorConfig.from_env()

    def test_config_is_frozen(self) -> None:
        cfg = MonitorConfig()
        with pytest.raises(AttributeError):
            cfg.window_days = 3  # type: ignore[misc]


class TestMonitorConfigValidation:
    """Fail-fast range validation."""

    @pytest.mark.parametrize(
        ("env", "key"),
        [
            ({"CLOUD_COVER_CEILING_PCT": "120"}, "CLOUD_COVER_CEILING_PCT"),
            ({"NDVI_LOW_THRESHOLD": "-1.5"}, "NDVI_LOW_THRESHOLD"),
            ({"NDVI_LOW_THRESHOLD": "0.9"}, "NDVI_LOW_THRESHOLD"),
            ({"NDVI_DROP_THRESHOLD": "0"}, "NDVI_DROP_THRESHOLD"),
            ({"RADAR_LOW_DB": "0"}, "RADAR_LOW_DB"),
            ({"TEMPERATURE_LOW_C": "40"}, "TEMPERATURE_LOW_C"),
            ({"RAINFALL_HIGH_MM": "-5"}, "RAINFALL_HIGH_MM"),
            ({"SOURCE_TIMEOUT_S": "0"}, "SOURCE_TIMEOUT_S"),
            ({"REFRESH_INTERVAL_MS": "0"}, "REFRESH_INTERVAL_MS"),
            ({"MONITOR_WINDOW_DAYS": "0"}, "MONITOR_WINDOW_DAYS"),
            ({"STORE_MAX_ENTRIES": "0"}, "STORE_MAX_ENTRIES"),
        ],
    )
    def test_out_of_range_rejected(self, env, key) -> None:
        with patch.dict(os.environ, env, clear=True), pytest.raises(ConfigValidationError) as exc:
            MonitorConfig.from_env()
        assert exc.value.key == key
        assert key in str(exc.value)

    def test_error_payload(self) -> None:
        err = ConfigValidationError("RADAR_LOW_DB", 3.0, "must be < RADAR_HIGH_DB")
        payload = err.to_error_dict()
        assert payload["code"] == "CONFIG_VALIDATION_FAILED"
        assert payload["stage"] == "config"
        assert payload["retryable"] is False

    def test_custom_thresholds_object(self) -> None:
        thresholds = AlertThresholds(ndvi_low=0.25)
        assert MonitorConfig(thresholds=thresholds).thresholds.ndvi_low == 0.25


class TestSourceConfigs:
    def test_no_credentials_by_default(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            configs = load_source_configs()
        assert list(configs) == [SourceType.OPTICAL, SourceType.RADAR, SourceType.CLIMATE]
        assert not any(c.credentials_present for c in configs.values())
        assert configs[SourceType.OPTICAL].endpoint == DEFAULT_STAC_URL
        assert configs[SourceType.CLIMATE].endpoint == DEFAULT_CLIMATE_URL
        assert configs[SourceType.OPTICAL].params["collection"] == "sentinel-2-l2a"
        assert configs[SourceType.RADAR].params["collection"] == "sentinel-1-grd"

    def test_credentials_detected_per_source(self) -> None:
        env = {
            "RADAR_API_KEY": "secret",
            "RADAR_ENDPOINT": "https://stac.example.test",
            "SENTINEL_HUB_INSTANCE_ID": "inst-42",
        }
        with patch.dict(os.environ, env, clear=True):
            configs = load_source_configs()
        assert configs[SourceType.RADAR].credentials_present is True
        assert configs[SourceType.RADAR].endpoint == "https://stac.example.test"
        assert configs[SourceType.RADAR].params["instance_id"] == "inst-42"
        assert configs[SourceType.OPTICAL].credentials_present is False

    def test_key_not_copied_into_config(self) -> None:
        with patch.dict(os.environ, {"OPTICAL_API_KEY": "top-secret"}, clear=True):
            config = load_source_configs()[SourceType.OPTICAL]
        assert "top-secret" not in repr(config)
