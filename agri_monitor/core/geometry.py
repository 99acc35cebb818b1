"""Region geometry: bounds, center and spherical area of a drawn ring.

Turns the ring of ``(lng, lat)`` vertices produced by the drawing UI
into a canonical ``Region``.  The computation is pure and total: it
never raises, and degenerate input (fewer than three vertices) yields a
zero-area region whose bounds and center come from whatever points
exist.

Conventions:
- The center is the midpoint of the bounding box, not the area-weighted
  polygon centroid.
- Area uses the spherical-excess style approximation
  ``|R² / 2 · Σ (λ[i+1] − λ[i]) · (2 + sin φ[i] + sin φ[i+1])|``
  accumulated over consecutive vertex pairs only.  The closing
  last → first segment is not added, so a ring must repeat its first
  vertex at the end for the full area to be counted.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING

from agri_monitor.core.constants import (
    EARTH_RADIUS_M,
    MIN_RING_VERTICES,
    SQ_METRES_PER_HECTARE,
)
from agri_monitor.models.region import Region

if TYPE_CHECKING:
    from collections.abc import Sequence

    from agri_monitor.models.region import Bounds, Coordinate

logger = logging.getLogger("agri_monitor.core.geometry")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def compute_region(ring: Sequence[Sequence[float]], name: str = "") -> Region:
    """Compute the canonical region descriptor for a drawn ring.

    Args:
        ring: Ordered ``(lng, lat)`` vertices in decimal degrees.
            Consecutive duplicate points are tolerated.
        name: Caller-supplied field name; becomes the region's store key.

    Returns:
        A ``Region`` with bounds, bounding-box center and area in m².
    """
    vertices: tuple[Coordinate, ...] = tuple((float(p[0]), float(p[1])) for p in ring)

    bounds = compute_bounds(vertices)
    center = compute_center(bounds)
    area_m2 = compute_area_m2(vertices)

    if len(vertices) < MIN_RING_VERTICES:
        logger.warning(
            "Degenerate region | name=%s | vertices=%d | area=0",
            name,
            len(vertices),
        )
    else:
        logger.debug(
            "Region computed | name=%s | vertices=%d | area=%.1f m2 | "
            "bounds=[%.5f, %.5f, %.5f, %.5f] | center=(%.5f, %.5f)",
            name,
            len(vertices),
            area_m2,
            *bounds[0],
            *bounds[1],
            *center,
        )

    return Region(
        name=name,
        ring=vertices,
        bounds=bounds,
        center=center,
        area_m2=area_m2,
    )


def compute_rectangle_region(
    corner_a: Sequence[float],
    corner_b: Sequence[float],
    name: str = "",
) -> Region:
    """Build a region from two opposite corners (rectangle draw mode).

    The ring is emitted closed (first vertex repeated) so that the full
    rectangle area is accumulated.
    """
    min_lng, max_lng = sorted((float(corner_a[0]), float(corner_b[0])))
    min_lat, max_lat = sorted((float(corner_a[1]), float(corner_b[1])))
    ring = [
        (min_lng, min_lat),
        (max_lng, min_lat),
        (max_lng, max_lat),
        (min_lng, max_lat),
        (min_lng, min_lat),
    ]
    return compute_region(ring, name=name)


def compute_bounds(vertices: Sequence[Coordinate]) -> Bounds:
    """Axis-aligned envelope ``((min_lng, min_lat), (max_lng, max_lat))``.

    Returns a zero envelope for an empty sequence.
    """
    if not vertices:
        return ((0.0, 0.0), (0.0, 0.0))
    lngs = [v[0] for v in vertices]
    lats = [v[1] for v in vertices]
    return ((min(lngs), min(lats)), (max(lngs), max(lats)))


def compute_center(bounds: Bounds) -> Coordinate:
    """Midpoint of the bounding box."""
    (min_lng, min_lat), (max_lng, max_lat) = bounds
    return ((min_lng + max_lng) / 2, (min_lat + max_lat) / 2)


def compute_area_m2(vertices: Sequence[Coordinate]) -> float:
    """Spherical area approximation in square metres (open-ring accumulation)."""
    if len(vertices) < MIN_RING_VERTICES:
        return 0.0

    radians = [(math.radians(lng), math.radians(lat)) for lng, lat in vertices]

    total = 0.0
    for (lng1, lat1), (lng2, lat2) in zip(radians, radians[1:]):
        total += (lng2 - lng1) * (2 + math.sin(lat1) + math.sin(lat2))

    return abs(total * EARTH_RADIUS_M * EARTH_RADIUS_M / 2)


def format_area(area_m2: float) -> str:
    """Human-readable area: square metres below one hectare, hectares above."""
    if area_m2 < SQ_METRES_PER_HECTARE:
        return f"{area_m2:.0f} m²"
    return f"{area_m2 / SQ_METRES_PER_HECTARE:.2f} ha"
