"""Fallback synthesizers for when a source cannot deliver live data.

A synthesizer produces plausible, clearly-tagged stand-in values so the
dashboard keeps working while a source is unreachable or unconfigured.
Two strategies are provided:

- ``SeededSynthesizer``: deterministic pseudo-random values.  The random
  generator is seeded from a stable hash of the region key, bounds,
  window, source and a caller-supplied seed, so the same request always
  synthesizes the same numbers.
- ``FixedSynthesizer``: returns a fixed table of values, for tests and
  demos that need exact numbers.

Value ranges:
    NDVI: per-pixel grid ``0.6 - 0.3 * d / n + U(-0.1, 0.1)`` clipped to
    [0.1, 0.8], where *d* is the pixel's distance from the grid centre;
    summary statistics are taken over the grid.
    Cloud cover: integer percent in [0, 14].
    Backscatter: VV in [-12, -4] dB, VH in [-18, -10] dB.
    Climate: 20-35 °C, 0-50 mm, soil moisture 0.2-0.6 m³/m³,
    humidity 50-80 %, wind 2-10 m/s.
"""

from __future__ import annotations

import abc
import hashlib
from dataclasses import dataclass
from datetime import date, timedelta
from typing import TYPE_CHECKING

import numpy as np

from agri_monitor.models.observation import (
    BackscatterSummary,
    ClimateSample,
    SourceType,
    VegetationIndexSummary,
)

if TYPE_CHECKING:
    from agri_monitor.models.region import AcquisitionWindow, Region

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

NDVI_GRID_SIZE = 20
_NDVI_GRID_FLOOR = 0.1
_NDVI_GRID_CEILING = 0.8
_ORBIT_DIRECTIONS = ("ASCENDING", "DESCENDING")
_HOURS_PER_DAY = 24


@dataclass(frozen=True, slots=True)
class ClimateDay:
    """Synthesized daily climate summary and its hourly series."""

    daily: ClimateSample
    hourly: tuple[ClimateSample, ...]


class ObservationSynthesizer(abc.ABC):
    """Strategy interface used by the source adapters."""

    @abc.abstractmethod
    def scene_date(self, region: Region, window: AcquisitionWindow, source: SourceType) -> date:
        """Pick the acquisition date of a synthesized scene within *window*."""

    @abc.abstractmethod
    def cloud_cover(self, region: Region, window: AcquisitionWindow) -> float:
        """Cloud cover percentage of a synthesized optical scene."""

    @abc.abstractmethod
    def vegetation_index(
        self, region: Region, window: AcquisitionWindow
    ) -> VegetationIndexSummary:
        """NDVI statistics over *region*."""

    @abc.abstractmethod
    def backscatter(self, region: Region, window: AcquisitionWindow) -> BackscatterSummary:
        """Radar backscatter statistics over *region*."""

    @abc.abstractmethod
    def orbit_direction(self, region: Region, window: AcquisitionWindow) -> str:
        """``"ASCENDING"`` or ``"DESCENDING"``."""

    @abc.abstractmethod
    def climate_day(self, region: Region, day: date) -> ClimateDay:
        """Daily climate summary plus its hourly series for *day*."""


# ---------------------------------------------------------------------------
# Seeded (default) strategy
# ---------------------------------------------------------------------------


class SeededSynthesizer(ObservationSynthesizer):
    """Deterministic pseudo-random synthesizer backed by ``numpy.random``."""

    def __init__(self, seed: int = 0, grid_size: int = NDVI_GRID_SIZE) -> None:
        self._seed = seed
        self._grid_size = grid_size

    def scene_date(self, region: Region, window: AcquisitionWindow, source: SourceType) -> date:
        rng = self._rng(region, window, source, "date")
        return window.start + timedelta(days=int(rng.integers(0, window.days)))

    def cloud_cover(self, region: Region, window: AcquisitionWindow) -> float:
        rng = self._rng(region, window, SourceType.OPTICAL, "cloud")
        return float(rng.integers(0, 15))

    def vegetation_index(
        self, region: Region, window: AcquisitionWindow
    ) -> VegetationIndexSummary:
        grid = self.ndvi_grid(region, window)
        return VegetationIndexSummary(
            mean=round(float(grid.mean()), 3),
            min=round(float(grid.min()), 3),
            max=round(float(grid.max()), 3),
            std_dev=round(float(grid.std()), 3),
        )

    def ndvi_grid(self, region: Region, window: AcquisitionWindow) -> np.ndarray:
        """Per-pixel NDVI over a ``grid_size`` × ``grid_size`` grid of *region*.

        Vegetation is densest at the centre of the field and thins out
        towards the edges, with uniform noise on top.
        """
        rng = self._rng(region, window, SourceType.OPTICAL, "ndvi")
        n = self._grid_size
        i, j = np.meshgrid(np.arange(n), np.arange(n), indexing="ij")
        distance = np.hypot(i - n / 2, j - n / 2)
        base = 0.6 - (distance / n) * 0.3
        noise = rng.uniform(-0.1, 0.1, size=(n, n))
        return np.clip(base + noise, _NDVI_GRID_FLOOR, _NDVI_GRID_CEILING)

    def backscatter(self, region: Region, window: AcquisitionWindow) -> BackscatterSummary:
        rng = self._rng(region, window, SourceType.RADAR, "backscatter")
        return BackscatterSummary(
            vv_mean=round(float(rng.uniform(-12.0, -4.0)), 2),
            vh_mean=round(float(rng.uniform(-18.0, -10.0)), 2),
            vv_std=round(float(rng.uniform(1.0, 3.0)), 2),
            vh_std=round(float(rng.uniform(1.5, 3.5)), 2),
        )

    def orbit_direction(self, region: Region, window: AcquisitionWindow) -> str:
        rng = self._rng(region, window, SourceType.RADAR, "orbit")
        return _ORBIT_DIRECTIONS[int(rng.integers(0, len(_ORBIT_DIRECTIONS)))]

    def climate_day(self, region: Region, day: date) -> ClimateDay:
        rng = self._rng_for(region, day.isoformat(), SourceType.CLIMATE, "climate")

        temperature = float(rng.uniform(20.0, 35.0))
        rainfall = float(rng.uniform(0.0, 50.0))
        soil = float(rng.uniform(0.2, 0.6))
        humidity = float(rng.uniform(50.0, 80.0))
        wind = float(rng.uniform(2.0, 10.0))

        # Diurnal cycle around the daily mean; rain spread over the day.
        hours = np.arange(_HOURS_PER_DAY)
        hourly_temp = temperature + 4.0 * np.sin((hours - 9) * np.pi / 12)
        rain_weights = rng.dirichlet(np.ones(_HOURS_PER_DAY))
        hourly_rain = rainfall * rain_weights

        hourly = tuple(
            ClimateSample(
                time=f"{day.isoformat()}T{hour:02d}:00",
                temperature_c=round(float(hourly_temp[hour]), 1),
                precipitation_mm=round(float(hourly_rain[hour]), 2),
                soil_moisture=round(soil, 3),
                humidity_pct=round(humidity, 1),
                wind_speed_ms=round(wind, 1),
            )
            for hour in range(_HOURS_PER_DAY)
        )
        daily = ClimateSample(
            time=day.isoformat(),
            temperature_c=round(temperature, 1),
            precipitation_mm=round(rainfall, 1),
            soil_moisture=round(soil, 3),
            humidity_pct=round(humidity, 1),
            wind_speed_ms=round(wind, 1),
        )
        return ClimateDay(daily=daily, hourly=hourly)

    # ------------------------------------------------------------------
    # Seeding
    # ------------------------------------------------------------------

    def _rng(
        self,
        region: Region,
        window: AcquisitionWindow,
        source: SourceType,
        purpose: str,
    ) -> np.random.Generator:
        span = f"{window.start.isoformat()}/{window.end.isoformat()}"
        return self._rng_for(region, span, source, purpose)

    def _rng_for(
        self,
        region: Region,
        span: str,
        source: SourceType,
        purpose: str,
    ) -> np.random.Generator:
        bounds = ",".join(f"{v:.6f}" for v in region.bbox)
        material = f"{region.key}|{bounds}|{span}|{source.value}|{purpose}|{self._seed}"
        digest = hashlib.sha256(material.encode("utf-8")).digest()
        return np.random.default_rng(int.from_bytes(digest[:8], "big"))


# ---------------------------------------------------------------------------
# Fixed-table strategy
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FixedSynthesizer(ObservationSynthesizer):
    """Returns the same configured values for every request.

    Synthesized scenes are dated on the last day of the window.
    """

    ndvi_mean: float = 0.5
    ndvi_min: float = 0.2
    ndvi_max: float = 0.8
    ndvi_std: float = 0.1
    cloud_cover_pct: float = 5.0
    vv_mean: float = -8.0
    vh_mean: float = -14.0
    orbit: str = "ASCENDING"
    temperature_c: float = 25.0
    precipitation_mm: float = 10.0
    soil_moisture: float = 0.35
    humidity_pct: float = 65.0
    wind_speed_ms: float = 4.0

    def scene_date(self, region: Region, window: AcquisitionWindow, source: SourceType) -> date:
        return window.end

    def cloud_cover(self, region: Region, window: AcquisitionWindow) -> float:
        return self.cloud_cover_pct

    def vegetation_index(
        self, region: Region, window: AcquisitionWindow
    ) -> VegetationIndexSummary:
        return VegetationIndexSummary(
            mean=self.ndvi_mean,
            min=self.ndvi_min,
            max=self.ndvi_max,
            std_dev=self.ndvi_std,
        )

    def backscatter(self, region: Region, window: AcquisitionWindow) -> BackscatterSummary:
        return BackscatterSummary(vv_mean=self.vv_mean, vh_mean=self.vh_mean)

    def orbit_direction(self, region: Region, window: AcquisitionWindow) -> str:
        return self.orbit

    def climate_day(self, region: Region, day: date) -> ClimateDay:
        daily = ClimateSample(
            time=day.isoformat(),
            temperature_c=self.temperature_c,
            precipitation_mm=self.precipitation_mm,
            soil_moisture=self.soil_moisture,
            humidity_pct=self.humidity_pct,
            wind_speed_ms=self.wind_speed_ms,
        )
        return ClimateDay(daily=daily, hourly=())
