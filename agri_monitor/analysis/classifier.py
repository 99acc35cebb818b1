"""Quality & alert classifier.

Reads a region's observations from the store and produces a
``ClassificationReport``:

1. Group observations by ``YYYY-MM`` month of acquisition.
2. Count quality tiers; every month without data counts once as ``none``.
3. Summarise coverage (months with data / months requested, per-source counts).
4. Evaluate alert rules month by month on the latest observation of
   each source in that month.  The vegetation drop rule compares
   against the previous month that had optical data.

The classifier is stateless between calls; reports are recomputed on
every refresh.
"""

from __future__ import annotations

import logging
from collections import Counter, defaultdict
from typing import TYPE_CHECKING, assert_never

from agri_monitor.analysis.alerts import climate_alerts, radar_alerts, vegetation_alerts
from agri_monitor.analysis.quality import quality_breakdown
from agri_monitor.core.config import MonitorConfig
from agri_monitor.models.observation import (
    ClimateObservation,
    OpticalObservation,
    RadarObservation,
    SourceType,
)
from agri_monitor.models.region import AcquisitionWindow
from agri_monitor.models.report import (
    AlertRecord,
    ClassificationReport,
    CoverageSummary,
    ThresholdSettings,
)

if TYPE_CHECKING:
    from datetime import date

    from agri_monitor.models.observation import Observation
    from agri_monitor.store.observation_store import ObservationStore

logger = logging.getLogger("agri_monitor.analysis.classifier")

# ---------------------------------------------------------------------------
# Vegetation categories (upper bound inclusive → label, colour)
# ---------------------------------------------------------------------------

_VEGETATION_CATEGORIES: tuple[tuple[float, str, str], ...] = (
    (0.2, "Very Low", "#8B0000"),
    (0.3, "Low", "#FF0000"),
    (0.4, "Below Threshold", "#FF8C00"),
    (0.5, "Moderate", "#FFD700"),
    (0.6, "Good", "#9ACD32"),
    (0.7, "Very Good", "#32CD32"),
    (0.8, "Excellent", "#228B22"),
    (0.9, "Very High", "#006400"),
)
_MAXIMUM_CATEGORY = ("Maximum", "#004000")


def vegetation_category(value: float) -> str:
    """Dashboard category label for a vegetation-index value."""
    for upper, label, _ in _VEGETATION_CATEGORIES:
        if value <= upper:
            return label
    return _MAXIMUM_CATEGORY[0]


def vegetation_color(value: float) -> str:
    """Hex colour used to render a vegetation-index value."""
    for upper, _, color in _VEGETATION_CATEGORIES:
        if value <= upper:
            return color
    return _MAXIMUM_CATEGORY[1]


class Classifier:
    """Derives quality, coverage and alerts from stored observations."""

    def __init__(self, store: ObservationStore, config: MonitorConfig | None = None) -> None:
        self._store = store
        self._config = config or MonitorConfig()

    @property
    def config(self) -> MonitorConfig:
        return self._config

    def classify(
        self,
        region_key: str,
        window: AcquisitionWindow | None = None,
    ) -> ClassificationReport:
        """Build the report for *region_key*.

        Args:
            region_key: Store key of the region.
            window: Period to report on.  When ``None`` the period spans
                the region's earliest to latest observation.
        """
        observations = self._store.all(region_key)
        if window is not None:
            observations = [o for o in observations if window.contains(o.acquisition_date)]
            months = window.months()
        elif observations:
            dates = [o.acquisition_date for o in observations]
            months = AcquisitionWindow(start=min(dates), end=max(dates)).months()
        else:
            months = []

        by_month: dict[str, list[Observation]] = defaultdict(list)
        for observation in observations:
            by_month[observation.acquisition_date.strftime("%Y-%m")].append(observation)

        months_with_data = sum(1 for month in months if by_month.get(month))
        empty_months = len(months) - months_with_data

        ceiling = self._config.cloud_cover_ceiling_pct
        breakdown = quality_breakdown(
            observations,
            empty_months=empty_months,
            cloud_ceiling_pct=ceiling,
        )
        per_source = Counter(o.source_type.value for o in observations)
        coverage = CoverageSummary(
            total_months=len(months),
            months_with_data=months_with_data,
            coverage_ratio=months_with_data / len(months) if months else 0.0,
            source_breakdown={s.value: per_source.get(s.value, 0) for s in SourceType},
        )

        alerts = self._evaluate_alerts(region_key, months, by_month)

        logger.info(
            "Region classified | region=%s | observations=%d | months=%d/%d | alerts=%d",
            region_key,
            len(observations),
            months_with_data,
            len(months),
            len(alerts),
        )
        return ClassificationReport(
            region_key=region_key,
            quality_breakdown=breakdown,
            coverage=coverage,
            alerts=alerts,
            thresholds=self._threshold_settings(),
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _evaluate_alerts(
        self,
        region_key: str,
        months: list[str],
        by_month: dict[str, list[Observation]],
    ) -> list[AlertRecord]:
        thresholds = self._config.thresholds
        alerts: list[AlertRecord] = []
        previous_mean: float | None = None

        for month in months:
            for observation in _latest_per_source(by_month.get(month, [])):
                if isinstance(observation, OpticalObservation):
                    alerts.extend(
                        vegetation_alerts(
                            region_key, month, observation, previous_mean, thresholds
                        )
                    )
                    previous_mean = observation.vegetation_index.mean
                elif isinstance(observation, RadarObservation):
                    alerts.extend(radar_alerts(region_key, month, observation, thresholds))
                elif isinstance(observation, ClimateObservation):
                    alerts.extend(climate_alerts(region_key, month, observation, thresholds))
                else:
                    assert_never(observation)

        return alerts

    def _threshold_settings(self) -> ThresholdSettings:
        t = self._config.thresholds
        return ThresholdSettings(
            ndvi_low=t.ndvi_low,
            ndvi_drop=t.ndvi_drop,
            ndvi_high=t.ndvi_high,
            radar_low_db=t.radar_low_db,
            radar_high_db=t.radar_high_db,
            temperature_high_c=t.temperature_high_c,
            temperature_low_c=t.temperature_low_c,
            rainfall_high_mm=t.rainfall_high_mm,
            cloud_cover_ceiling_pct=self._config.cloud_cover_ceiling_pct,
        )


def _latest_per_source(observations: list[Observation]) -> list[Observation]:
    """Latest observation of each source, in acquisition order of sources.

    Latest means greatest acquisition date; among equal dates the one
    stored last wins.
    """
    latest: dict[SourceType, tuple[tuple[date, int], Observation]] = {}
    for index, observation in enumerate(observations):
        rank = (observation.acquisition_date, index)
        current = latest.get(observation.source_type)
        if current is None or rank > current[0]:
            latest[observation.source_type] = (rank, observation)
    return [latest[s][1] for s in SourceType if s in latest]
