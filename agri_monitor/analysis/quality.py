"""Data-quality tiers for observations.

Tier rules:
- ``HIGH``: live data (optical only when cloud cover is at or below the
  ceiling).
- ``MEDIUM``: live optical data above the cloud-cover ceiling.
- ``LOW``: synthesized data.
- ``NONE``: a month in the requested period with no data at all.  This
  tier is never attached to an observation; it only appears in the
  breakdown.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from agri_monitor.models.observation import OpticalObservation, Origin, QualityTier
from agri_monitor.models.report import QualityBreakdown

if TYPE_CHECKING:
    from collections.abc import Iterable

    from agri_monitor.models.observation import Observation


def quality_tier_for(
    origin: Origin,
    *,
    cloud_cover_pct: float | None = None,
    cloud_ceiling_pct: float = 30.0,
) -> QualityTier:
    """Tier for a record with the given origin (and cloud cover, for optical)."""
    if origin is Origin.SYNTHESIZED:
        return QualityTier.LOW
    if cloud_cover_pct is not None and cloud_cover_pct > cloud_ceiling_pct:
        return QualityTier.MEDIUM
    return QualityTier.HIGH


def assess_quality(observation: Observation, cloud_ceiling_pct: float = 30.0) -> QualityTier:
    """Re-derive an observation's tier under the given cloud-cover ceiling."""
    cloud = (
        observation.cloud_cover_pct if isinstance(observation, OpticalObservation) else None
    )
    return quality_tier_for(
        observation.origin,
        cloud_cover_pct=cloud,
        cloud_ceiling_pct=cloud_ceiling_pct,
    )


def quality_breakdown(
    observations: Iterable[Observation],
    *,
    empty_months: int = 0,
    cloud_ceiling_pct: float = 30.0,
) -> QualityBreakdown:
    """Count observations per tier; each empty month counts once as ``none``."""
    counts = {tier: 0 for tier in QualityTier}
    for observation in observations:
        counts[assess_quality(observation, cloud_ceiling_pct)] += 1
    counts[QualityTier.NONE] += empty_months
    return QualityBreakdown(
        high=counts[QualityTier.HIGH],
        medium=counts[QualityTier.MEDIUM],
        low=counts[QualityTier.LOW],
        none=counts[QualityTier.NONE],
    )
