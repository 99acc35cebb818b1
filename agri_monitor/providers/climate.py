"""ERA5 climate-reanalysis adapter.

Produces one ``ClimateObservation`` per day for the most recent
``min(window.days, 7)`` days of the window.  Live payloads follow the
Open-Meteo ERA5 archive shape::

    {
        "daily":  {"time": ["2025-06-01", ...], "temperature_2m_mean": [...], ...},
        "hourly": {"time": ["2025-06-01T00:00", ...], "temperature_2m": [...], ...}
    }

Days whose temperature or precipitation is still ``null`` (reanalysis
lag for the most recent days) are skipped.  The ``hourly`` block is
optional; when present it becomes each day's ``time_series``.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from agri_monitor.analysis.quality import quality_tier_for
from agri_monitor.core.constants import DEFAULT_CLIMATE_TILES_URL, MAX_CLIMATE_OBSERVATIONS
from agri_monitor.models.observation import (
    ClimateObservation,
    ClimateSample,
    Origin,
    SourceType,
)
from agri_monitor.providers.base import SourceAdapter
from agri_monitor.utils.tiles import CLIMATE_LAYERS, parse_day, xyz_tile_urls

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import date

    from agri_monitor.models.observation import Observation
    from agri_monitor.models.region import AcquisitionWindow, Region

logger = logging.getLogger("agri_monitor.providers.climate")

# ---------------------------------------------------------------------------
# Payload variable names (ClimateSample field → source variable)
# ---------------------------------------------------------------------------

DAILY_VARIABLES: dict[str, str] = {
    "temperature_c": "temperature_2m_mean",
    "precipitation_mm": "precipitation_sum",
    "soil_moisture": "soil_moisture_0_to_7cm_mean",
    "humidity_pct": "relative_humidity_2m_mean",
    "wind_speed_ms": "wind_speed_10m_max",
}

HOURLY_VARIABLES: dict[str, str] = {
    "temperature_c": "temperature_2m",
    "precipitation_mm": "precipitation",
    "soil_moisture": "soil_moisture_0_to_7cm",
    "humidity_pct": "relative_humidity_2m",
    "wind_speed_ms": "wind_speed_10m",
}


class ClimateAdapter(SourceAdapter):
    """ERA5 daily reanalysis adapter."""

    source_type = SourceType.CLIMATE

    def synthesize(self, region: Region, window: AcquisitionWindow) -> list[Observation]:
        observations: list[Observation] = []
        for day in _recent_days(window):
            synthesized = self._synthesizer.climate_day(region, day)
            observations.append(
                self._build(region, day, synthesized.daily, synthesized.hourly, Origin.SYNTHESIZED)
            )
        return observations

    def tile_urls(self, region: Region, day: date) -> dict[str, str]:
        base = self._config.params.get("tiles_url", DEFAULT_CLIMATE_TILES_URL)
        return xyz_tile_urls(base, region, day, CLIMATE_LAYERS)

    # ------------------------------------------------------------------
    # Normalisation
    # ------------------------------------------------------------------

    def _normalise(
        self,
        raw: Mapping[str, Any],
        region: Region,
        window: AcquisitionWindow,
    ) -> list[Observation]:
        daily = raw["daily"]
        times = daily["time"]
        temperatures = daily[DAILY_VARIABLES["temperature_c"]]
        precipitation = daily[DAILY_VARIABLES["precipitation_mm"]]
        hourly_by_day = _group_hourly(raw.get("hourly"))

        wanted = set(_recent_days(window))
        days: dict[date, ClimateSample] = {}
        for index, stamp in enumerate(times):
            day = parse_day(stamp)
            if day not in wanted:
                continue
            temperature = temperatures[index]
            rain = precipitation[index]
            if temperature is None or rain is None:
                logger.debug("Climate day not yet available | day=%s", day)
                continue
            days[day] = ClimateSample(
                time=day.isoformat(),
                temperature_c=float(temperature),
                precipitation_mm=float(rain),
                soil_moisture=_optional(daily, DAILY_VARIABLES["soil_moisture"], index),
                humidity_pct=_optional(daily, DAILY_VARIABLES["humidity_pct"], index),
                wind_speed_ms=_optional(daily, DAILY_VARIABLES["wind_speed_ms"], index),
            )

        return [
            self._build(
                region,
                day,
                days[day],
                tuple(hourly_by_day.get(day.isoformat(), ())),
                Origin.LIVE_API,
            )
            for day in sorted(days)
        ]

    def _build(
        self,
        region: Region,
        day: date,
        daily: ClimateSample,
        hourly: tuple[ClimateSample, ...],
        origin: Origin,
    ) -> ClimateObservation:
        return ClimateObservation(
            observation_id=self._observation_id(region, day, origin),
            region=region,
            acquisition_date=day,
            origin=origin,
            quality_tier=quality_tier_for(origin),
            temperature_c=daily.temperature_c,
            precipitation_mm=daily.precipitation_mm,
            soil_moisture=daily.soil_moisture,
            humidity_pct=daily.humidity_pct,
            wind_speed_ms=daily.wind_speed_ms,
            time_series=hourly,
            tile_urls=self.tile_urls(region, day),
        )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _recent_days(window: AcquisitionWindow) -> list[date]:
    """The last ``min(window.days, MAX_CLIMATE_OBSERVATIONS)`` days of *window*."""
    return window.dates()[-MAX_CLIMATE_OBSERVATIONS:]


def _optional(block: Mapping[str, Sequence[Any]], key: str, index: int) -> float:
    series = block.get(key)
    if not series or index >= len(series) or series[index] is None:
        return 0.0
    return float(series[index])


def _group_hourly(hourly: object) -> dict[str, list[ClimateSample]]:
    """Split an hourly block into samples keyed by ``YYYY-MM-DD``."""
    if not isinstance(hourly, Mapping):
        return {}

    grouped: dict[str, list[ClimateSample]] = defaultdict(list)
    temperatures = hourly.get(HOURLY_VARIABLES["temperature_c"]) or []
    precipitation = hourly.get(HOURLY_VARIABLES["precipitation_mm"]) or []
    for index, stamp in enumerate(hourly.get("time") or []):
        if index >= len(temperatures) or temperatures[index] is None:
            continue
        rain = precipitation[index] if index < len(precipitation) else None
        grouped[str(stamp)[:10]].append(
            ClimateSample(
                time=str(stamp),
                temperature_c=float(temperatures[index]),
                precipitation_mm=float(rain or 0.0),
                soil_moisture=_optional(hourly, HOURLY_VARIABLES["soil_moisture"], index),
                humidity_pct=_optional(hourly, HOURLY_VARIABLES["humidity_pct"], index),
                wind_speed_ms=_optional(hourly, HOURLY_VARIABLES["wind_speed_ms"], index),
            )
        )
    return grouped
