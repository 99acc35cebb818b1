"""Tests for tile URL templates and date parsing."""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta, timezone

import pytest

from agri_monitor.utils.tiles import (
    CLIMATE_LAYERS,
    RADAR_LAYERS,
    parse_day,
    wms_tile_urls,
    xyz_tile_urls,
)


class TestTemplates:
    def test_wms_urls(self, field_region) -> None:
        urls = wms_tile_urls("https://wms.example.test/", "inst", field_region, date(2025, 6, 2), RADAR_LAYERS)
        assert list(urls) == list(RADAR_LAYERS)
        assert urls["VH"] == (
            "https://wms.example.test/ogc/wms/inst?REQUEST=GetMap"
            f"&BBOX={field_region.bbox_param()}&LAYERS=VH&WIDTH=512&HEIGHT=512"
            "&FORMAT=image/png&CRS=EPSG:4326&TIME=2025-06-02"
        )

    def test_xyz_placeholders_left_unfilled(self, field_region) -> None:
        urls = xyz_tile_urls("https://tiles.example.test", field_region, date(2025, 6, 2), CLIMATE_LAYERS)
        assert urls["wind_speed"].startswith(
            "https://tiles.example.test/tiles/wind_speed/{z}/{x}/{y}?bbox="
        )

    def test_deterministic(self, field_region) -> None:
        day = date(2025, 6, 2)
        assert xyz_tile_urls("b", field_region, day, CLIMATE_LAYERS) == xyz_tile_urls(
            "b", field_region, day, CLIMATE_LAYERS
        )


class TestParseDay:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("2025-06-01", date(2025, 6, 1)),
            ("2025-06-01T10:30:00Z", date(2025, 6, 1)),
            ("2025-06-01T23:30:00-02:00", date(2025, 6, 2)),
            (date(2025, 6, 1), date(2025, 6, 1)),
            (datetime(2025, 6, 1, 5, tzinfo=UTC), date(2025, 6, 1)),
            (datetime(2025, 6, 1, 23, tzinfo=timezone(timedelta(hours=-3))), date(2025, 6, 2)),
        ],
    )
    def test_accepted_forms(self, value, expected) -> None:
        assert parse_day(value) == expected

    @pytest.mark.parametrize("value", ["", "   ", None, 20250601, "yesterday"])
    def test_rejected(self, value) -> None:
        with pytest.raises(ValueError):
            parse_day(value)
