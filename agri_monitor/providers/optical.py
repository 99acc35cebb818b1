"""Sentinel-2 optical adapter.

Normalises a STAC item collection (``{"features": [...]}``) into a
single ``OpticalObservation``: the least-cloudy scene in the window,
with the most recent scene winning ties.

The catalogue describes scenes, not pixels.  When an item carries no
``ndvi`` statistics block the vegetation-index summary comes from the
synthesizer, while the scene metadata (date, cloud cover, bands) stays
live and the observation keeps ``Origin.LIVE_API``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from agri_monitor.analysis.quality import quality_tier_for
from agri_monitor.core.constants import DEFAULT_SENTINEL_HUB_URL, OPTICAL_BANDS
from agri_monitor.models.observation import (
    OpticalObservation,
    Origin,
    SourceType,
    VegetationIndexSummary,
)
from agri_monitor.providers.base import SourceAdapter
from agri_monitor.utils.tiles import OPTICAL_LAYERS, parse_day, wms_tile_urls

if TYPE_CHECKING:
    from datetime import date

    from agri_monitor.models.observation import Observation
    from agri_monitor.models.region import AcquisitionWindow, Region

logger = logging.getLogger("agri_monitor.providers.optical")


class OpticalAdapter(SourceAdapter):
    """Sentinel-2 L2A adapter."""

    source_type = SourceType.OPTICAL

    def synthesize(self, region: Region, window: AcquisitionWindow) -> list[Observation]:
        synth = self._synthesizer
        day = synth.scene_date(region, window, self.source_type)
        cloud = synth.cloud_cover(region, window)
        return [
            OpticalObservation(
                observation_id=self._observation_id(region, day, Origin.SYNTHESIZED),
                region=region,
                acquisition_date=day,
                origin=Origin.SYNTHESIZED,
                quality_tier=quality_tier_for(Origin.SYNTHESIZED),
                cloud_cover_pct=cloud,
                bands=OPTICAL_BANDS,
                vegetation_index=synth.vegetation_index(region, window),
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
            OPTICAL_LAYERS,
        )

    # ------------------------------------------------------------------
    # Normalisation
    # ------------------------------------------------------------------

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

        candidates: list[tuple[float, date, Mapping[str, Any]]] = []
        for feature in features:
            try:
                properties = feature["properties"]
                day = parse_day(properties["datetime"])
                cloud = float(properties.get("eo:cloud_cover", 0.0))
            except (KeyError, ValueError, TypeError):
                logger.warning(
                    "Skipping unparseable optical scene | id=%s",
                    feature.get("id", "?") if isinstance(feature, Mapping) else "?",
                    exc_info=True,
                )
                continue
            if not 0.0 <= cloud <= 100.0:
                logger.warning(
                    "Skipping optical scene with out-of-range cloud cover | id=%s | cloud=%s",
                    feature.get("id", "?"),
                    cloud,
                )
                continue
            if window.contains(day):
                candidates.append((cloud, day, feature))

        if not candidates:
            return []

        # Least cloudy first; most recent wins ties.
        cloud, day, feature = min(candidates, key=lambda c: (c[0], -c[1].toordinal()))
        properties = feature["properties"]

        stats = properties.get("ndvi")
        if isinstance(stats, Mapping):
            vegetation = VegetationIndexSummary(
                mean=float(stats["mean"]),
                min=float(stats["min"]),
                max=float(stats["max"]),
                std_dev=float(stats.get("std_dev", stats.get("std", 0.0))),
            )
        else:
            vegetation = self._synthesizer.vegetation_index(region, window)

        assets = feature.get("assets") or {}
        bands = tuple(band for band in OPTICAL_BANDS if band in assets) or OPTICAL_BANDS

        logger.debug(
            "Optical scene selected | id=%s | date=%s | cloud=%.1f | candidates=%d",
            feature.get("id", "?"),
            day,
            cloud,
            len(candidates),
        )

        scene_id = feature.get("id") or self._observation_id(region, day, Origin.LIVE_API)
        return [
            OpticalObservation(
                observation_id=str(scene_id),
                region=region,
                acquisition_date=day,
                origin=Origin.LIVE_API,
                quality_tier=quality_tier_for(
                    Origin.LIVE_API,
                    cloud_cover_pct=cloud,
                    cloud_ceiling_pct=self._cloud_ceiling_pct,
                ),
                cloud_cover_pct=cloud,
                bands=bands,
                vegetation_index=vegetation,
                satellite=str(properties.get("platform") or "Sentinel-2"),
                tile_urls=self.tile_urls(region, day),
            )
        ]
