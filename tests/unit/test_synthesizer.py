"""Tests for the fallback synthesizers."""

from __future__ import annotations

from datetime import date

import numpy as np
import pytest

from agri_monitor.core.geometry import compute_rectangle_region
from agri_monitor.models.observation import SourceType
from agri_monitor.models.region import AcquisitionWindow
from agri_monitor.providers.synthesizer import (
    NDVI_GRID_SIZE,
    FixedSynthesizer,
    SeededSynthesizer,
)


class TestSeededSynthesizerDeterminism:
    def test_same_inputs_same_values(self, field_region, june_window) -> None:
        a = SeededSynthesizer(seed=7)
        b = SeededSynthesizer(seed=7)
        assert a.vegetation_index(field_region, june_window) == b.vegetation_index(
            field_region, june_window
        )
        assert a.backscatter(field_region, june_window) == b.backscatter(field_region, june_window)
        assert a.climate_day(field_region, date(2025, 6, 3)) == b.climate_day(
            field_region, date(2025, 6, 3)
        )

    def test_different_seed_changes_values(self, field_region, june_window) -> None:
        a = SeededSynthesizer(seed=1).ndvi_grid(field_region, june_window)
        b = SeededSynthesizer(seed=2).ndvi_grid(field_region, june_window)
        assert not np.array_equal(a, b)

    def test_different_region_changes_values(self, field_region, june_window) -> None:
        other = compute_rectangle_region((10.0, 50.0), (10.02, 50.015), name="elsewhere")
        synth = SeededSynthesizer()
        assert not np.array_equal(
            synth.ndvi_grid(field_region, june_window),
            synth.ndvi_grid(other, june_window),
        )


class TestSeededSynthesizerRanges:
    def test_ndvi_grid_shape_and_bounds(self, field_region, june_window) -> None:
        grid = SeededSynthesizer().ndvi_grid(field_region, june_window)
        assert grid.shape == (NDVI_GRID_SIZE, NDVI_GRID_SIZE)
        assert grid.min() >= 0.1
        assert grid.max() <= 0.8

    def test_vegetation_summary_consistent(self, field_region, june_window) -> None:
        summary = SeededSynthesizer().vegetation_index(field_region, june_window)
        assert 0.1 <= summary.min <= summary.mean <= summary.max <= 0.9
        assert summary.std_dev >= 0

    def test_cloud_cover_range(self, field_region, june_window) -> None:
        for seed in range(20):
            cloud = SeededSynthesizer(seed=seed).cloud_cover(field_region, june_window)
            assert 0 <= cloud <= 14
            assert cloud == int(cloud)

    def test_backscatter_ranges(self, field_region, june_window) -> None:
        for seed in range(20):
            summary = SeededSynthesizer(seed=seed).backscatter(field_region, june_window)
            assert -12.0 <= summary.vv_mean <= -4.0
            assert -18.0 <= summary.vh_mean <= -10.0

    def test_orbit_direction(self, field_region, june_window) -> None:
        orbit = SeededSynthesizer().orbit_direction(field_region, june_window)
        assert orbit in {"ASCENDING", "DESCENDING"}

    def test_scene_date_within_window(self, field_region, june_window) -> None:
        for seed in range(20):
            day = SeededSynthesizer(seed=seed).scene_date(
                field_region, june_window, SourceType.OPTICAL
            )
            assert june_window.contains(day)

    def test_climate_day(self, field_region) -> None:
        climate = SeededSynthesizer().climate_day(field_region, date(2025, 6, 3))
        daily = climate.daily
        assert daily.time == "2025-06-03"
        assert 20.0 <= daily.temperature_c <= 35.0
        assert 0.0 <= daily.precipitation_mm <= 50.0
        assert 0.2 <= daily.soil_moisture <= 0.6
        assert 50.0 <= daily.humidity_pct <= 80.0
        assert 2.0 <= daily.wind_speed_ms <= 10.0
        assert len(climate.hourly) == 24
        assert climate.hourly[0].time == "2025-06-03T00:00"
        assert sum(s.precipitation_mm for s in climate.hourly) == pytest.approx(
            daily.precipitation_mm, abs=0.5
        )


class TestFixedSynthesizer:
    def test_returns_configured_values(self, field_region, june_window) -> None:
        synth = FixedSynthesizer(ndvi_mean=0.15, ndvi_min=0.1, temperature_c=40.0)
        assert synth.vegetation_index(field_region, june_window).mean == 0.15
        assert synth.climate_day(field_region, date(2025, 6, 2)).daily.temperature_c == 40.0

    def test_scene_dated_at_window_end(self, field_region) -> None:
        window = AcquisitionWindow(start=date(2025, 6, 1), end=date(2025, 6, 30))
        assert FixedSynthesizer().scene_date(field_region, window, SourceType.RADAR) == date(
            2025, 6, 30
        )
