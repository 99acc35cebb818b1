"""Typed models for normalised observations and source configuration.

Defines the data exchanged between source adapters, the orchestrator,
the observation store and the classifier:

- ``SourceType``: The three heterogeneous data sources
- ``Origin``: Whether a record came from a live call or was synthesized
- ``QualityTier``: Coarse confidence label attached to each record
- ``SourceConfig``: Per-source endpoint / credential configuration
- ``Observation``: Tagged union of optical, radar and climate records

Design notes:
- All models are frozen dataclasses; an observation is never mutated
  after an adapter creates it.
- The payload shape is carried by the concrete class, so consumers
  dispatch on type instead of probing optional fields.
- Explicit units on every numeric field.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar

from agri_monitor.models._validation import check_min, check_range

if TYPE_CHECKING:
    from datetime import date

    from agri_monitor.models.region import Region


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class SourceType(enum.Enum):
    """Data source families, in the default acquisition order."""

    OPTICAL = "sentinel-2"
    RADAR = "sentinel-1"
    CLIMATE = "era5"

    @classmethod
    def parse(cls, value: str | SourceType) -> SourceType:
        """Accept an enum member, its value (``"sentinel-2"``) or its name (``"optical"``)."""
        if isinstance(value, SourceType):
            return value
        text = str(value).strip()
        for member in cls:
            if text == member.value or text.upper() == member.name:
                return member
        msg = f"Unknown source type: {value!r}"
        raise ValueError(msg)


class Origin(enum.Enum):
    """Where an observation's values came from."""

    LIVE_API = "live_api"
    SYNTHESIZED = "synthesized"


class QualityTier(enum.Enum):
    """Coarse data-quality label."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    NONE = "none"


# ---------------------------------------------------------------------------
# Source configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SourceConfig:
    """Configuration for one data source.

    Loaded once at startup (see ``agri_monitor.core.config.load_source_configs``)
    and read-only for the rest of the session.

    Attributes:
        source_type: The source this configuration belongs to.
        endpoint: Base URL of the source's API.
        credentials_present: Whether credentials were supplied; when
            ``False`` the adapter never attempts a live call.
        params: Source-specific parameters (collection ids, WMS instance id...).
    """

    source_type: SourceType
    endpoint: str = ""
    credentials_present: bool = False
    params: dict[str, str] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Payload summaries
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class VegetationIndexSummary:
    """NDVI statistics over the region (dimensionless, [-1, 1])."""

    mean: float
    min: float
    max: float
    std_dev: float

    def __post_init__(self) -> None:
        for name in ("mean", "min", "max"):
            check_range("VegetationIndexSummary", name, getattr(self, name), -1.0, 1.0)
        check_min("VegetationIndexSummary", "std_dev", self.std_dev, 0.0)


@dataclass(frozen=True, slots=True)
class BackscatterSummary:
    """Radar backscatter statistics in dB."""

    vv_mean: float
    vh_mean: float
    vv_std: float = 0.0
    vh_std: float = 0.0


@dataclass(frozen=True, slots=True)
class ClimateSample:
    """One point of a climate time series."""

    time: str
    temperature_c: float
    precipitation_mm: float
    soil_moisture: float
    humidity_pct: float = 0.0
    wind_speed_ms: float = 0.0


# ---------------------------------------------------------------------------
# Observations (tagged union)
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class _ObservationBase:
    """Fields shared by every observation variant.

    Attributes:
        observation_id: Unique identifier (scene id for live data).
        region: The region the observation was acquired for.
        acquisition_date: Date the observation describes.
        origin: ``LIVE_API`` or ``SYNTHESIZED``.
        quality_tier: Quality label assigned by the adapter.
    """

    source_type: ClassVar[SourceType]

    observation_id: str
    region: Region
    acquisition_date: date
    origin: Origin
    quality_tier: QualityTier

    @property
    def is_live(self) -> bool:
        return self.origin is Origin.LIVE_API


@dataclass(frozen=True, slots=True)
class OpticalObservation(_ObservationBase):
    """Sentinel-2 optical scene summary.

    Attributes:
        cloud_cover_pct: Scene cloud cover (0-100).
        bands: Spectral bands available for the scene.
        vegetation_index: NDVI summary over the region.
        satellite: Platform name.
        tile_urls: Visualisation tile URL templates keyed by layer.
    """

    source_type: ClassVar[SourceType] = SourceType.OPTICAL

    cloud_cover_pct: float
    bands: tuple[str, ...]
    vegetation_index: VegetationIndexSummary
    satellite: str = "Sentinel-2"
    tile_urls: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        check_range("OpticalObservation", "cloud_cover_pct", self.cloud_cover_pct, 0, 100)


@dataclass(frozen=True, slots=True)
class RadarObservation(_ObservationBase):
    """Sentinel-1 SAR scene summary.

    Attributes:
        polarization: Polarisation mode (e.g. ``"VV+VH"``).
        orbit_direction: ``"ASCENDING"`` or ``"DESCENDING"``.
        backscatter: Backscatter statistics in dB.
        satellite: Platform name.
        tile_urls: Visualisation tile URL templates keyed by layer.
    """

    source_type: ClassVar[SourceType] = SourceType.RADAR

    polarization: str
    orbit_direction: str
    backscatter: BackscatterSummary
    satellite: str = "Sentinel-1"
    tile_urls: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ClimateObservation(_ObservationBase):
    """ERA5 reanalysis summary for one day.

    Attributes:
        temperature_c: Mean 2 m air temperature in degrees Celsius.
        precipitation_mm: Total precipitation in millimetres.
        soil_moisture: Volumetric soil water, layer 1 (m³/m³).
        humidity_pct: Mean relative humidity (0-100).
        wind_speed_ms: Wind speed at 10 m in metres per second.
        time_series: Optional sub-daily samples.
        tile_urls: Visualisation tile URL templates keyed by layer.
    """

    source_type: ClassVar[SourceType] = SourceType.CLIMATE

    temperature_c: float
    precipitation_mm: float
    soil_moisture: float
    humidity_pct: float = 0.0
    wind_speed_ms: float = 0.0
    time_series: tuple[ClimateSample, ...] = ()
    tile_urls: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        check_min("ClimateObservation", "precipitation_mm", self.precipitation_mm, 0.0)


Observation = OpticalObservation | RadarObservation | ClimateObservation
