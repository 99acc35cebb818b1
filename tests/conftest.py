"""Shared pytest fixtures for the agri_monitor test suite."""

from __future__ import annotations

from datetime import date

import pytest

from agri_monitor.core.geometry import compute_rectangle_region, compute_region
from agri_monitor.models.observation import (
    BackscatterSummary,
    ClimateObservation,
    OpticalObservation,
    Origin,
    QualityTier,
    RadarObservation,
    SourceConfig,
    SourceType,
    VegetationIndexSummary,
)
from agri_monitor.models.region import AcquisitionWindow, Region
from agri_monitor.providers.synthesizer import FixedSynthesizer
from agri_monitor.store.observation_store import ObservationStore

# ---------------------------------------------------------------------------
# Geometry fixtures
# ---------------------------------------------------------------------------

# A ~1.8 km × 1.7 km field near Coffeyville, Kansas (closed ring).
FIELD_RING = [
    (-95.72, 37.08),
    (-95.70, 37.08),
    (-95.70, 37.095),
    (-95.72, 37.095),
    (-95.72, 37.08),
]


@pytest.fixture()
def field_region() -> Region:
    """A named rectangular field region."""
    return compute_region(FIELD_RING, name="north-field")


@pytest.fixture()
def corner_region() -> Region:
    """Region drawn in rectangle mode from two opposite corners."""
    return compute_rectangle_region((-95.72, 37.08), (-95.70, 37.095), name="corner-field")


# ---------------------------------------------------------------------------
# Window / configuration fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def june_window() -> AcquisitionWindow:
    """One week in June 2025."""
    return AcquisitionWindow(start=date(2025, 6, 1), end=date(2025, 6, 7))


@pytest.fixture()
def live_configs() -> dict[SourceType, SourceConfig]:
    """Source configs with credentials present (live calls attempted)."""
    return {
        source: SourceConfig(source_type=source, endpoint="https://example.test", credentials_present=True)
        for source in SourceType
    }


@pytest.fixture()
def offline_configs() -> dict[SourceType, SourceConfig]:
    """Source configs without credentials (synthesize only)."""
    return {source: SourceConfig(source_type=source) for source in SourceType}


@pytest.fixture()
def fixed_synth() -> FixedSynthesizer:
    return FixedSynthesizer()


@pytest.fixture()
def store() -> ObservationStore:
    return ObservationStore(max_entries_per_source=50)


# ---------------------------------------------------------------------------
# Observation builders
# ---------------------------------------------------------------------------


class ObservationFactory:
    """Builds live observations with only the fields a test cares about."""

    def __init__(self) -> None:
        self._counter = 0

    def _next_id(self, prefix: str) -> str:
        self._counter += 1
        return f"{prefix}-{self._counter}"

    def optical(
        self,
        region: Region,
        day: date,
        *,
        mean: float = 0.5,
        cloud: float = 5.0,
        origin: Origin = Origin.LIVE_API,
        quality: QualityTier = QualityTier.HIGH,
    ) -> OpticalObservation:
        return OpticalObservation(
            observation_id=self._next_id("optical"),
            region=region,
            acquisition_date=day,
            origin=origin,
            quality_tier=quality,
            cloud_cover_pct=cloud,
            bands=("B04", "B08"),
            vegetation_index=VegetationIndexSummary(
                mean=mean, min=max(mean - 0.1, -1.0), max=min(mean + 0.1, 1.0), std_dev=0.05
            ),
        )

    def radar(
        self,
        region: Region,
        day: date,
        *,
        vv: float = -8.0,
        origin: Origin = Origin.LIVE_API,
    ) -> RadarObservation:
        return RadarObservation(
            observation_id=self._next_id("radar"),
            region=region,
            acquisition_date=day,
            origin=origin,
            quality_tier=QualityTier.HIGH if origin is Origin.LIVE_API else QualityTier.LOW,
            polarization="VV+VH",
            orbit_direction="ASCENDING",
            backscatter=BackscatterSummary(vv_mean=vv, vh_mean=-14.0),
        )

    def climate(
        self,
        region: Region,
        day: date,
        *,
        temperature: float = 25.0,
        rain: float = 5.0,
        origin: Origin = Origin.LIVE_API,
    ) -> ClimateObservation:
        return ClimateObservation(
            observation_id=self._next_id("climate"),
            region=region,
            acquisition_date=day,
            origin=origin,
            quality_tier=QualityTier.HIGH if origin is Origin.LIVE_API else QualityTier.LOW,
            temperature_c=temperature,
            precipitation_mm=rain,
            soil_moisture=0.3,
        )


@pytest.fixture()
def make_obs() -> ObservationFactory:
    return ObservationFactory()
