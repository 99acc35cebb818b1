"""Tests for the quality & alert classifier.

Covers:
- Alert evaluation on the latest observation per source per month
- Month-over-month vegetation drop
- Quality breakdown including empty months
- Coverage summary and per-source counts
- Vegetation category labels and colours
"""

from __future__ import annotations

from datetime import date

import pytest

from agri_monitor.analysis.classifier import Classifier, vegetation_category, vegetation_color
from agri_monitor.analysis.quality import quality_breakdown, quality_tier_for
from agri_monitor.core.config import AlertThresholds, MonitorConfig
from agri_monitor.models.observation import Origin, QualityTier
from agri_monitor.models.region import AcquisitionWindow
from agri_monitor.models.report import AlertCategory, Severity

JUNE = AcquisitionWindow(start=date(2025, 6, 1), end=date(2025, 6, 30))
MAY_TO_JULY = AcquisitionWindow(start=date(2025, 5, 1), end=date(2025, 7, 31))


class TestAlerts:
    def test_single_low_vegetation_alert(self, store, field_region, make_obs) -> None:
        """Mean 0.15 against a 0.2 threshold is a 25% exceedance: MEDIUM."""
        key = field_region.key
        store.append(key, make_obs.optical(field_region, date(2025, 6, 10), mean=0.15))
        store.append(key, make_obs.radar(field_region, date(2025, 6, 10)))
        store.append(key, make_obs.climate(field_region, date(2025, 6, 10)))

        config = MonitorConfig(thresholds=AlertThresholds(ndvi_low=0.2))
        report = Classifier(store, config).classify(key, JUNE)

        assert len(report.alerts) == 1
        alert = report.alerts[0]
        assert alert.category is AlertCategory.VEGETATION_LOW
        assert alert.severity is Severity.MEDIUM
        assert alert.triggering_value == 0.15
        assert alert.threshold == 0.2
        assert alert.period == "2025-06"
        assert alert.region_key == key

    def test_only_latest_observation_per_month_evaluated(
        self, store, field_region, make_obs
    ) -> None:
        key = field_region.key
        store.append(key, make_obs.optical(field_region, date(2025, 6, 2), mean=0.1))
        store.append(key, make_obs.optical(field_region, date(2025, 6, 20), mean=0.5))
        report = Classifier(store).classify(key, JUNE)
        assert report.alerts == []

    def test_latest_by_date_not_by_insertion(self, store, field_region, make_obs) -> None:
        key = field_region.key
        store.append(key, make_obs.climate(field_region, date(2025, 6, 20), temperature=38.0))
        store.append(key, make_obs.climate(field_region, date(2025, 6, 5), temperature=20.0))
        report = Classifier(store).classify(key, JUNE)
        assert [a.category for a in report.alerts] == [AlertCategory.TEMPERATURE_HIGH]

    def test_drop_between_months(self, store, field_region, make_obs) -> None:
        key = field_region.key
        store.append(key, make_obs.optical(field_region, date(2025, 5, 15), mean=0.7))
        store.append(key, make_obs.optical(field_region, date(2025, 6, 15), mean=0.5))
        report = Classifier(store).classify(key, MAY_TO_JULY)

        drops = report.alerts_for(AlertCategory.VEGETATION_DROP)
        assert len(drops) == 1
        assert drops[0].period == "2025-06"
        assert drops[0].triggering_value == pytest.approx(0.2)

    def test_drop_skips_months_without_optical(self, store, field_region, make_obs) -> None:
        key = field_region.key
        window = AcquisitionWindow(start=date(2025, 4, 1), end=date(2025, 6, 30))
        store.append(key, make_obs.optical(field_region, date(2025, 4, 15), mean=0.7))
        store.append(key, make_obs.radar(field_region, date(2025, 5, 15)))
        store.append(key, make_obs.optical(field_region, date(2025, 6, 15), mean=0.45))
        report = Classifier(store).classify(key, window)
        assert [a.period for a in report.alerts_for(AlertCategory.VEGETATION_DROP)] == ["2025-06"]

    def test_alerts_across_sources(self, store, field_region, make_obs) -> None:
        key = field_region.key
        day = date(2025, 6, 10)
        store.append(key, make_obs.radar(field_region, day, vv=-25.0))
        store.append(key, make_obs.climate(field_region, day, rain=75.0))
        report = Classifier(store).classify(key, JUNE)
        assert {a.category for a in report.alerts} == {
            AlertCategory.RADAR_BACKSCATTER,
            AlertCategory.RAINFALL_HIGH,
        }

    def test_observations_outside_window_ignored(self, store, field_region, make_obs) -> None:
        key = field_region.key
        store.append(key, make_obs.optical(field_region, date(2025, 8, 1), mean=0.05))
        report = Classifier(store).classify(key, JUNE)
        assert report.alerts == []
        assert report.quality_breakdown.none == 1


class TestQualityAndCoverage:
    def test_breakdown_with_empty_months(self, store, field_region, make_obs) -> None:
        key = field_region.key
        day = date(2025, 6, 10)
        store.append(key, make_obs.optical(field_region, day, cloud=50.0))
        store.append(key, make_obs.radar(field_region, day))
        store.append(key, make_obs.climate(field_region, day, origin=Origin.SYNTHESIZED))

        report = Classifier(store).classify(key, MAY_TO_JULY)
        breakdown = report.quality_breakdown
        assert breakdown.high == 1
        assert breakdown.medium == 1
        assert breakdown.low == 1
        assert breakdown.none == 2
        assert breakdown.total == 5

    def test_cloud_ceiling_from_config(self, store, field_region, make_obs) -> None:
        key = field_region.key
        store.append(key, make_obs.optical(field_region, date(2025, 6, 10), cloud=50.0))
        report = Classifier(store, MonitorConfig(cloud_cover_ceiling_pct=60.0)).classify(key, JUNE)
        assert report.quality_breakdown.high == 1
        assert report.quality_breakdown.medium == 0
        assert report.thresholds is not None
        assert report.thresholds.cloud_cover_ceiling_pct == 60.0

    def test_coverage(self, store, field_region, make_obs) -> None:
        key = field_region.key
        store.append(key, make_obs.optical(field_region, date(2025, 5, 10)))
        store.append(key, make_obs.climate(field_region, date(2025, 7, 10)))
        store.append(key, make_obs.climate(field_region, date(2025, 7, 11)))

        coverage = Classifier(store).classify(key, MAY_TO_JULY).coverage
        assert coverage.total_months == 3
        assert coverage.months_with_data == 2
        assert coverage.coverage_ratio == pytest.approx(2 / 3)
        assert coverage.source_breakdown == {"sentinel-2": 1, "sentinel-1": 0, "era5": 2}

    def test_period_inferred_from_observations(self, store, field_region, make_obs) -> None:
        key = field_region.key
        store.append(key, make_obs.optical(field_region, date(2025, 3, 10)))
        store.append(key, make_obs.optical(field_region, date(2025, 5, 10)))
        report = Classifier(store).classify(key)
        assert report.coverage.total_months == 3
        assert report.coverage.months_with_data == 2
        assert report.quality_breakdown.none == 1

    def test_unknown_region(self, store) -> None:
        report = Classifier(store).classify("nowhere")
        assert report.alerts == []
        assert report.quality_breakdown.total == 0
        assert report.coverage.total_months == 0
        assert report.coverage.coverage_ratio == 0.0

    def test_report_is_serialisable(self, store, field_region, make_obs) -> None:
        store.append(field_region.key, make_obs.optical(field_region, date(2025, 6, 3), mean=0.1))
        dumped = Classifier(store).classify(field_region.key, JUNE).model_dump(mode="json")
        assert dumped["alerts"][0]["category"] == "vegetation_low"
        assert dumped["alerts"][0]["source_type"] == "sentinel-2"
        assert dumped["thresholds"]["ndvi_low"] == 0.3


class TestQualityTiers:
    def test_tier_rules(self) -> None:
        assert quality_tier_for(Origin.SYNTHESIZED, cloud_cover_pct=0.0) is QualityTier.LOW
        assert quality_tier_for(Origin.LIVE_API) is QualityTier.HIGH
        assert quality_tier_for(Origin.LIVE_API, cloud_cover_pct=30.0) is QualityTier.HIGH
        assert quality_tier_for(Origin.LIVE_API, cloud_cover_pct=30.5) is QualityTier.MEDIUM

    def test_breakdown_of_nothing(self) -> None:
        assert quality_breakdown([], empty_months=4).none == 4


class TestVegetationCategory:
    @pytest.mark.parametrize(
        ("value", "label"),
        [
            (0.05, "Very Low"),
            (0.2, "Very Low"),
            (0.25, "Low"),
            (0.35, "Below Threshold"),
            (0.45, "Moderate"),
            (0.55, "Good"),
            (0.65, "Very Good"),
            (0.75, "Excellent"),
            (0.85, "Very High"),
            (0.95, "Maximum"),
        ],
    )
    def test_labels(self, value, label) -> None:
        assert vegetation_category(value) == label

    def test_colors(self) -> None:
        assert vegetation_color(0.45) == "#FFD700"
        assert vegetation_color(1.0) == "#004000"
