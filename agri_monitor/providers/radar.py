"""Sentinel-1 SAR adapter.

Normalises a STAC item collection into a single ``RadarObservation``
for the most recent scene in the window.  Backscatter statistics come
from an item's ``backscatter`` block when present, otherwise from the
synthesizer (scene metadata stays live).
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from agri_monitor.analysis.quality import quality_tier_for
from agri_monitor.core.constants import DEFAULT_SENTINEL_HUB_URL
from agri_monitor.models.observation import (
    BackscatterSummary,
    Origin,
    RadarObservation,
    SourceType,
)
from agri_monitor.providers.base import SourceAdapter
from agri_monitor.utils.tiles import RADAR_LAYERS, parse_day, wms_tile_urls

if TYPE_CHECKING:
    from datetime import date

    from agri_monitor.models.observation import Observation
    from agri_monitor.models.region import AcquisitionWindow, Region

logger = logging.getLogger("agri_monitor.providers.radar")

DEFAULT_POLARIZATION = "VV+VH"


class RadarAdapter(SourceAdapter):
    """Sentinel-1 GRD adapter."""

    source_type = SourceType.RADAR

    def synthesize(self, region: Region, window: AcquisitionWindow) -> list[Observation]:
        synth = self._synthesizer
        day = synth.scene_date(region, window, self.source_type)
        return [
            RadarObservation(
                observation_id=self._observation_id(region, day, Origin.SYNTHESIZED),
                region=region,
                acquisition_date=day,
                origin=Origin.SYNTHESIZED,
                quality_tier=quality_tier_for(Origin.SYNTHESIZED),
                polarization=DEFAULT_POLARIZATION,
                orbit_direction=synth.orbit_direction(region, window),
                backscatter=synth.backscatter(region, window),
                tile_urls=self.tile_urls(region, day),
            )
        ]

    def tile_urls(self, region: Region, day: date) -> dict[str, str]:
        params = self._config.params
        return wms_tile_urls(
            params.get("wms_url", DEFAULT_SENTINEL_HUB_URL),
            params.get("instance_id", ""),
            region,
            day,
            RADAR_LAYERS,
        )

    def _normalise(
        self,
        raw: Mapping[str, Any],
        region: Region,
        window: AcquisitionWindow,
    ) -> list[Observation]:
        features = raw["features"]
        if not isinstance(features, list):
            msg = f"features must be a list, got {type(features).__name__}"
            raise TypeError(msg)

        latest: tuple[date, Mapping[str, Any]] | None = None
        for feature in features:
            try:
                day = parse_day(feature["properties"]["datetime"])
            except (KeyError, ValueError, TypeError):
                logger.warning(
                    "Skipping unparseable radar scene | id=%s",
                    feature.get("id", "?") if isinstance(feature, Mapping) else "?",
                    exc_info=True,
                )
                continue
            if window.contains(day) and (latest is None or day > latest[0]):
                latest = (day, feature)

        if latest is None:
            return []

        day, feature = latest
        properties = feature["properties"]

        stats = properties.get("backscatter")
        if isinstance(stats, Mapping):
            backscatter = BackscatterSummary(
                vv_mean=float(stats["vv_mean"]),
                vh_mean=float(stats["vh_mean"]),
                vv_std=float(stats.get("vv_std", 0.0)),
                vh_std=float(stats.get("vh_std", 0.0)),
            )
        else:
            backscatter = self._synthesizer.backscatter(region, window)

        polarizations = properties.get("sar:polarizations") or []
        if isinstance(polarizations, str):
            polarizations = [polarizations]
        polarization = "+".join(str(p).upper() for p in polarizations) or DEFAULT_POLARIZATION

        orbit = properties.get("sat:orbit_state")
        orbit_direction = (
            str(orbit).upper() if orbit else self._synthesizer.orbit_direction(region, window)
        )

        logger.debug(
            "Radar scene selected | id=%s | date=%s | orbit=%s",
            feature.get("id", "?"),
            day,
            orbit_direction,
        )

        scene_id = feature.get("id") or self._observation_id(region, day, Origin.LIVE_API)
        return [
            RadarObservation(
                observation_id=str(scene_id),
                region=region,
                acquisition_date=day,
                origin=Origin.LIVE_API,
                quality_tier=quality_tier_for(Origin.LIVE_API),
                polarization=polarization,
                orbit_direction=orbit_direction,
                backscatter=backscatter,
                satellite=str(properties.get("platform") or "Sentinel-1"),
                tile_urls=self.tile_urls(region, day),
            )
        ]
