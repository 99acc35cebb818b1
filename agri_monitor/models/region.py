"""Data models for a drawn region and an acquisition time window.

A ``Region`` is the canonical descriptor of a user-drawn polygon: the
ring itself, its axis-aligned bounds, the bounds midpoint and a
spherical area approximation.  It is created once per drawn shape by
``agri_monitor.core.geometry.compute_region`` and never mutated; a new
draw produces a new ``Region``.

Region *identity* (the store key) comes from the caller-supplied name,
not from the geometry: two polygons drawn for the same logical field
share history.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta

from agri_monitor.core.constants import DEFAULT_REGION_KEY, SQ_METRES_PER_HECTARE
from agri_monitor.models._validation import ModelValidationError, check_min

Coordinate = tuple[float, float]
Bounds = tuple[Coordinate, Coordinate]


@dataclass(frozen=True, slots=True)
class Region:
    """A processed region of interest.

    All coordinates are WGS 84 ``(lng, lat)`` in decimal degrees.

    Attributes:
        name: Caller-supplied field name or id; the store identity.
        ring: Ordered ring vertices (implicitly closed).
        bounds: ``((min_lng, min_lat), (max_lng, max_lat))``.
        center: Midpoint of ``bounds`` (not the polygon centroid).
        area_m2: Spherical area approximation in square metres (>= 0).
    """

    name: str = ""
    ring: tuple[Coordinate, ...] = field(default_factory=tuple)
    bounds: Bounds = ((0.0, 0.0), (0.0, 0.0))
    center: Coordinate = (0.0, 0.0)
    area_m2: float = 0.0

    def __post_init__(self) -> None:
        check_min("Region", "area_m2", self.area_m2, 0.0)

    @property
    def key(self) -> str:
        """Stable store key derived from the region name."""
        return self.name.strip() or DEFAULT_REGION_KEY

    @property
    def area_ha(self) -> float:
        return self.area_m2 / SQ_METRES_PER_HECTARE

    @property
    def bbox(self) -> tuple[float, float, float, float]:
        """Bounds flattened to ``(min_lng, min_lat, max_lng, max_lat)``."""
        (min_lng, min_lat), (max_lng, max_lat) = self.bounds
        return (min_lng, min_lat, max_lng, max_lat)

    def bbox_param(self) -> str:
        """Bounds as the comma-separated string used in tile URLs."""
        return ",".join(f"{v}" for v in self.bbox)

    def to_dict(self) -> dict[str, object]:
        """Serialise to a JSON-friendly dict."""
        return {
            "name": self.name,
            "ring": [list(c) for c in self.ring],
            "bounds": [list(self.bounds[0]), list(self.bounds[1])],
            "center": list(self.center),
            "area_m2": self.area_m2,
        }

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> Region:
        """Deserialise from a dict produced by ``to_dict``.

        Raises:
            TypeError: If field values have unexpected types.
        """
        ring_raw = data.get("ring", [])
        if not isinstance(ring_raw, list):
            msg = f"ring must be a list, got {type(ring_raw).__name__}"
            raise TypeError(msg)

        bounds_raw = data.get("bounds", [[0.0, 0.0], [0.0, 0.0]])
        if not isinstance(bounds_raw, list) or len(bounds_raw) != 2:
            msg = f"bounds must be a pair of corners, got {bounds_raw!r}"
            raise TypeError(msg)

        center_raw = data.get("center", [0.0, 0.0])
        if not isinstance(center_raw, list):
            msg = f"center must be a list, got {type(center_raw).__name__}"
            raise TypeError(msg)

        return cls(
            name=str(data.get("name", "")),
            ring=tuple((float(c[0]), float(c[1])) for c in ring_raw),
            bounds=(
                (float(bounds_raw[0][0]), float(bounds_raw[0][1])),
                (float(bounds_raw[1][0]), float(bounds_raw[1][1])),
            ),
            center=(float(center_raw[0]), float(center_raw[1])),
            area_m2=float(data.get("area_m2", 0.0)),  # type: ignore[arg-type]
        )


@dataclass(frozen=True, slots=True)
class AcquisitionWindow:
    """Inclusive date range for an acquisition.

    Attributes:
        start: First day of the window (inclusive).
        end: Last day of the window (inclusive).
    """

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ModelValidationError(
                "AcquisitionWindow",
                "start",
                self.start,
                f"must be <= end ({self.end})",
            )

    @classmethod
    def trailing(cls, days: int, end: date) -> AcquisitionWindow:
        """Window of *days* days ending on *end* (inclusive)."""
        check_min("AcquisitionWindow", "days", days, 1)
        return cls(start=end - timedelta(days=days - 1), end=end)

    @property
    def days(self) -> int:
        """Number of calendar days covered (at least 1)."""
        return (self.end - self.start).days + 1

    def dates(self) -> list[date]:
        return [self.start + timedelta(days=i) for i in range(self.days)]

    def months(self) -> list[str]:
        """``YYYY-MM`` labels of every month the window touches, in order."""
        labels: list[str] = []
        for day in self.dates():
            label = day.strftime("%Y-%m")
            if not labels or labels[-1] != label:
                labels.append(label)
        return labels

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def to_stac_range(self) -> str:
        """STAC datetime range, e.g. ``2025-06-01T00:00:00Z/2025-06-07T23:59:59Z``."""
        return f"{self.start.isoformat()}T00:00:00Z/{self.end.isoformat()}T23:59:59Z"
