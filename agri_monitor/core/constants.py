"""Shared engine constants.

Centralises endpoint defaults, collection identifiers and numeric
limits that would otherwise be duplicated across adapters, the
orchestrator and the monitoring loop.
"""

from __future__ import annotations

from datetime import timedelta

# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------

EARTH_RADIUS_M: float = 6_371_000.0
"""Mean Earth radius used by the spherical area approximation."""

SQ_METRES_PER_HECTARE: float = 10_000.0

MIN_RING_VERTICES: int = 3
"""Fewer vertices than this produce a degenerate zero-area region."""

DEFAULT_REGION_KEY: str = "unnamed-region"
"""Store key used when a region is created without a name."""

# ---------------------------------------------------------------------------
# Source endpoints
# ---------------------------------------------------------------------------

DEFAULT_STAC_URL: str = "https://planetarycomputer.microsoft.com/api/stac/v1"
"""STAC catalogue searched for Sentinel-2 and Sentinel-1 scenes."""

DEFAULT_CLIMATE_URL: str = "https://archive-api.open-meteo.com/v1/era5"
"""ERA5 daily reanalysis endpoint."""

DEFAULT_SENTINEL_HUB_URL: str = "https://services.sentinel-hub.com"
"""Base URL for WMS visualisation tiles of optical and radar layers."""

DEFAULT_CLIMATE_TILES_URL: str = "https://climate.copernicus.eu/api/v1"
"""Base URL for XYZ visualisation tiles of climate layers."""

OPTICAL_COLLECTION: str = "sentinel-2-l2a"
RADAR_COLLECTION: str = "sentinel-1-grd"

OPTICAL_BANDS: tuple[str, ...] = ("B02", "B03", "B04", "B08", "B11", "B12")

MAX_CATALOGUE_ITEMS: int = 10

# ---------------------------------------------------------------------------
# Acquisition limits
# ---------------------------------------------------------------------------

MAX_CLIMATE_OBSERVATIONS: int = 7
"""Climate sources produce one observation per day, capped at this many."""

DEFAULT_WINDOW_DAYS: int = 7
DEFAULT_REFRESH_INTERVAL_MS: int = 300_000
DEFAULT_SOURCE_TIMEOUT_S: float = 30.0
DEFAULT_STORE_MAX_ENTRIES: int = 500

RECENT_OBSERVATION_WINDOW: timedelta = timedelta(hours=24)
"""Observations stored within this window count as recent in status reports."""

# ---------------------------------------------------------------------------
# Progress stages (observability only)
# ---------------------------------------------------------------------------

PROGRESS_PROCESSING: int = 90
PROGRESS_COMPLETE: int = 100
