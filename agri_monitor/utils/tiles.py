"""Deterministic visualisation tile URL templates.

Optical and radar layers are served over OGC WMS:

    {base}/ogc/wms/{instance-id}?REQUEST=GetMap&BBOX={bbox}&LAYERS={layer}
        &WIDTH=512&HEIGHT=512&FORMAT=image/png&CRS=EPSG:4326&TIME={date}

Climate layers are XYZ templates whose ``{z}/{x}/{y}`` placeholders are
left for the map renderer to fill:

    {base}/tiles/{variable}/{z}/{x}/{y}?bbox={bbox}&time={date}

The engine only builds these strings; it never fetches tiles.
"""

from __future__ import annotations

from datetime import UTC, date, datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from agri_monitor.models.region import Region

# ---------------------------------------------------------------------------
# Layer names
# ---------------------------------------------------------------------------

OPTICAL_LAYERS = ("NDVI", "TRUE_COLOR", "FALSE_COLOR", "AGRICULTURE")
RADAR_LAYERS = ("VV", "VH", "VV_VH_RATIO", "COHERENCE")
CLIMATE_LAYERS = ("temperature", "precipitation", "soil_moisture", "wind_speed")

WMS_TILE_SIZE = 512


def wms_tile_urls(
    base_url: str,
    instance_id: str,
    region: Region,
    day: date,
    layers: Iterable[str],
) -> dict[str, str]:
    """Return one WMS GetMap URL per layer, keyed by layer name."""
    base = base_url.rstrip("/")
    bbox = region.bbox_param()
    return {
        layer: (
            f"{base}/ogc/wms/{instance_id}?REQUEST=GetMap&BBOX={bbox}"
            f"&LAYERS={layer}&WIDTH={WMS_TILE_SIZE}&HEIGHT={WMS_TILE_SIZE}"
            f"&FORMAT=image/png&CRS=EPSG:4326&TIME={day.isoformat()}"
        )
        for layer in layers
    }


def xyz_tile_urls(
    base_url: str,
    region: Region,
    day: date,
    layers: Iterable[str],
) -> dict[str, str]:
    """Return one XYZ tile template per layer, keyed by layer name."""
    base = base_url.rstrip("/")
    bbox = region.bbox_param()
    return {
        layer: f"{base}/tiles/{layer}/{{z}}/{{x}}/{{y}}?bbox={bbox}&time={day.isoformat()}"
        for layer in layers
    }


def parse_day(value: object) -> date:
    """Parse a date or ISO-8601 timestamp string into a UTC calendar date.

    Accepts ``date``/``datetime`` objects, ``"2025-06-01"``,
    ``"2025-06-01T10:30:00Z"`` and offset-qualified timestamps.

    Raises:
        ValueError: If *value* is not a recognisable date.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone(UTC).date()
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        msg = f"Not a date: {value!r}"
        raise ValueError(msg)

    text = value.strip()
    if len(text) == 10:
        return date.fromisoformat(text)
    return parse_day(datetime.fromisoformat(text.replace("Z", "+00:00")))
