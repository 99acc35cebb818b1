"""Engine configuration loaded from environment variables.

All configuration values have sensible defaults.  The hosting
application's environment (or a ``.env`` file it loads) is the source
of truth.

Fail-fast validation:
    ``from_env()`` raises ``ConfigValidationError`` if any numeric
    value is out of its valid range.  This catches bad thresholds at
    startup instead of producing nonsensical alerts at runtime.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from agri_monitor.core.constants import (
    DEFAULT_CLIMATE_URL,
    DEFAULT_REFRESH_INTERVAL_MS,
    DEFAULT_SOURCE_TIMEOUT_S,
    DEFAULT_STAC_URL,
    DEFAULT_STORE_MAX_ENTRIES,
    DEFAULT_WINDOW_DAYS,
    OPTICAL_COLLECTION,
    RADAR_COLLECTION,
)
from agri_monitor.core.exceptions import MonitorError
from agri_monitor.models.observation import SourceConfig, SourceType


class ConfigValidationError(MonitorError):
    """Raised when configuration values are out of valid range.

    Attributes:
        key: The configuration key that failed validation.
        value: The invalid value.
        message: Human-readable description of the valid range.
    """

    default_stage = "config"
    default_code = "CONFIG_VALIDATION_FAILED"

    def __init__(self, key: str, value: object, message: str) -> None:
        self.key = key
        self.value = value
        super().__init__(f"Invalid configuration {key}={value!r}: {message}")


@dataclass(frozen=True, slots=True)
class AlertThresholds:
    """Tunable alert thresholds.

    Attributes:
        ndvi_low: Vegetation-index mean below which a low-vegetation alert fires.
        ndvi_drop: Month-over-month fall in the index mean that triggers a drop alert.
        ndvi_high: Upper reference for healthy vegetation (reported, not alerted).
        radar_low_db: Lower edge of the acceptable VV backscatter band.
        radar_high_db: Upper edge of the acceptable VV backscatter band.
        temperature_high_c: Heat extreme.
        temperature_low_c: Cold extreme.
        rainfall_high_mm: Daily precipitation extreme.
    """

    ndvi_low: float = 0.3
    ndvi_drop: float = 0.1
    ndvi_high: float = 0.8
    radar_low_db: float = -18.0
    radar_high_db: float = -2.0
    temperature_high_c: float = 35.0
    temperature_low_c: float = 0.0
    rainfall_high_mm: float = 50.0


@dataclass(frozen=True, slots=True)
class MonitorConfig:
    """Immutable engine configuration.

    Loaded once at startup and passed to the classifier, adapters and
    monitoring loop.

    Attributes:
        cloud_cover_ceiling_pct: Optical scenes above this cloud cover are
            downgraded to ``MEDIUM`` quality.
        thresholds: Alert thresholds.
        source_timeout_s: Independent timeout for each source call.
        refresh_interval_ms: Default monitoring interval.
        window_days: Length of the trailing acquisition window.
        store_max_entries: Retention cap per (region, source) in the store.
    """

    cloud_cover_ceiling_pct: float = 30.0
    thresholds: AlertThresholds = field(default_factory=AlertThresholds)
    source_timeout_s: float = DEFAULT_SOURCE_TIMEOUT_S
    refresh_interval_ms: int = DEFAULT_REFRESH_INTERVAL_MS
    window_days: int = DEFAULT_WINDOW_DAYS
    store_max_entries: int = DEFAULT_STORE_MAX_ENTRIES

    @classmethod
    def from_env(cls) -> MonitorConfig:
        """Load and validate configuration from environment variables.

        Raises:
            ConfigValidationError: If a numeric value is out of range.
            ValueError: If a numeric environment variable cannot be
                parsed (e.g. ``NDVI_LOW_THRESHOLD=abc``).
        """
        thresholds = AlertThresholds(
            ndvi_low=float(os.getenv("NDVI_LOW_THRESHOLD", "0.3")),
            ndvi_drop=float(os.getenv("NDVI_DROP_THRESHOLD", "0.1")),
            ndvi_high=float(os.getenv("NDVI_HIGH_THRESHOLD", "0.8")),
            radar_low_db=float(os.getenv("RADAR_LOW_DB", "-18")),
            radar_high_db=float(os.getenv("RADAR_HIGH_DB", "-2")),
            temperature_high_c=float(os.getenv("TEMPERATURE_HIGH_C", "35")),
            temperature_low_c=float(os.getenv("TEMPERATURE_LOW_C", "0")),
            rainfall_high_mm=float(os.getenv("RAINFALL_HIGH_MM", "50")),
        )
        config = cls(
            cloud_cover_ceiling_pct=float(os.getenv("CLOUD_COVER_CEILING_PCT", "30")),
            thresholds=thresholds,
            source_timeout_s=float(
                os.getenv("SOURCE_TIMEOUT_S", str(DEFAULT_SOURCE_TIMEOUT_S))
            ),
            refresh_interval_ms=int(
                os.getenv("REFRESH_INTERVAL_MS", str(DEFAULT_REFRESH_INTERVAL_MS))
            ),
            window_days=int(os.getenv("MONITOR_WINDOW_DAYS", str(DEFAULT_WINDOW_DAYS))),
            store_max_entries=int(
                os.getenv("STORE_MAX_ENTRIES", str(DEFAULT_STORE_MAX_ENTRIES))
            ),
        )
        _validate(config)
        return config


def load_source_configs() -> dict[SourceType, SourceConfig]:
    """Build one ``SourceConfig`` per source from environment variables.

    ``credentials_present`` is true when the source's ``*_API_KEY``
    variable is set; the key itself stays in the environment and is read
    only by the request capability.
    """
    instance_id = os.getenv("SENTINEL_HUB_INSTANCE_ID", "")
    return {
        SourceType.OPTICAL: SourceConfig(
            source_type=SourceType.OPTICAL,
            endpoint=os.getenv("OPTICAL_ENDPOINT", DEFAULT_STAC_URL),
            credentials_present=bool(os.getenv("OPTICAL_API_KEY")),
            params={"collection": OPTICAL_COLLECTION, "instance_id": instance_id},
        ),
        SourceType.RADAR: SourceConfig(
            source_type=SourceType.RADAR,
            endpoint=os.getenv("RADAR_ENDPOINT", DEFAULT_STAC_URL),
            credentials_present=bool(os.getenv("RADAR_API_KEY")),
            params={"collection": RADAR_COLLECTION, "instance_id": instance_id},
        ),
        SourceType.CLIMATE: SourceConfig(
            source_type=SourceType.CLIMATE,
            endpoint=os.getenv("CLIMATE_ENDPOINT", DEFAULT_CLIMATE_URL),
            credentials_present=bool(os.getenv("CLIMATE_API_KEY")),
        ),
    }


def _validate(config: MonitorConfig) -> None:
    """Validate configuration ranges.  Raises ``ConfigValidationError``."""
    t = config.thresholds

    if not 0.0 <= config.cloud_cover_ceiling_pct <= 100.0:
        raise ConfigValidationError(
            "CLOUD_COVER_CEILING_PCT",
            config.cloud_cover_ceiling_pct,
            "must be between 0 and 100 (percentage)",
        )

    for key, value in (
        ("NDVI_LOW_THRESHOLD", t.ndvi_low),
        ("NDVI_HIGH_THRESHOLD", t.ndvi_high),
    ):
        if not -1.0 <= value <= 1.0:
            raise ConfigValidationError(key, value, "must be between -1 and 1")

    if t.ndvi_low >= t.ndvi_high:
        raise ConfigValidationError(
            "NDVI_LOW_THRESHOLD",
            t.ndvi_low,
            f"must be < NDVI_HIGH_THRESHOLD ({t.ndvi_high})",
        )

    if not 0.0 < t.ndvi_drop <= 2.0:
        raise ConfigValidationError(
            "NDVI_DROP_THRESHOLD",
            t.ndvi_drop,
            "must be > 0 and <= 2",
        )

    if t.radar_low_db >= t.radar_high_db:
        raise ConfigValidationError(
            "RADAR_LOW_DB",
            t.radar_low_db,
            f"must be < RADAR_HIGH_DB ({t.radar_high_db})",
        )

    if t.temperature_low_c >= t.temperature_high_c:
        raise ConfigValidationError(
            "TEMPERATURE_LOW_C",
            t.temperature_low_c,
            f"must be < TEMPERATURE_HIGH_C ({t.temperature_high_c})",
        )

    if t.rainfall_high_mm <= 0:
        raise ConfigValidationError(
            "RAINFALL_HIGH_MM",
            t.rainfall_high_mm,
            "must be > 0 (millimetres)",
        )

    if config.source_timeout_s <= 0:
        raise ConfigValidationError(
            "SOURCE_TIMEOUT_S",
            config.source_timeout_s,
            "must be > 0 (seconds)",
        )

    if config.refresh_interval_ms <= 0:
        raise ConfigValidationError(
            "REFRESH_INTERVAL_MS",
            config.refresh_interval_ms,
            "must be > 0 (milliseconds)",
        )

    if config.window_days < 1:
        raise ConfigValidationError(
            "MONITOR_WINDOW_DAYS",
            config.window_days,
            "must be >= 1 (days)",
        )

    if config.store_max_entries < 1:
        raise ConfigValidationError(
            "STORE_MAX_ENTRIES",
            config.store_max_entries,
            "must be >= 1",
        )
