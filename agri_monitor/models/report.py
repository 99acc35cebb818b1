"""Pydantic models for the structures exposed to dashboard collaborators.

These are the engine's outward-facing documents:

- **ClassificationReport**: quality breakdown, coverage and alerts for a region
- **MonitoringStatus**: live connectivity and observation counts

They are recomputed on every refresh and never persisted by the engine;
export to CSV/JSON is left to the presentation layer via ``model_dump``.
"""

from __future__ import annotations

import enum
from datetime import datetime

from pydantic import BaseModel, Field

from agri_monitor.models.observation import SourceType


class Severity(enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class AlertCategory(enum.Enum):
    """What an alert is about."""

    VEGETATION_LOW = "vegetation_low"
    VEGETATION_DROP = "vegetation_drop"
    RADAR_BACKSCATTER = "radar_backscatter"
    TEMPERATURE_HIGH = "temperature_high"
    TEMPERATURE_LOW = "temperature_low"
    RAINFALL_HIGH = "rainfall_high"


class ConnectionStatus(enum.Enum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


class AlertRecord(BaseModel):
    """A single threshold crossing.

    Attributes:
        region_key: Region the alert belongs to.
        period: ``YYYY-MM`` month the triggering observation falls in.
        category: What crossed its threshold.
        severity: Derived from how far past the threshold the value is.
        message: Human-readable description.
        triggering_value: The observed value.
        threshold: The threshold that was crossed.
        source_type: Source of the triggering observation.
    """

    region_key: str
    period: str
    category: AlertCategory
    severity: Severity
    message: str
    triggering_value: float
    threshold: float
    source_type: SourceType


class QualityBreakdown(BaseModel):
    """Count of observations (and empty months) per quality tier."""

    high: int = 0
    medium: int = 0
    low: int = 0
    none: int = 0

    @property
    def total(self) -> int:
        return self.high + self.medium + self.low + self.none


class CoverageSummary(BaseModel):
    """How much of the requested period has data.

    Attributes:
        total_months: Months touched by the requested window.
        months_with_data: Months with at least one observation.
        coverage_ratio: ``months_with_data / total_months`` (0 when no months).
        source_breakdown: Observation count per source value.
    """

    total_months: int = 0
    months_with_data: int = 0
    coverage_ratio: float = 0.0
    source_breakdown: dict[str, int] = Field(default_factory=dict)

    @property
    def coverage_percentage(self) -> str:
        return f"{self.coverage_ratio * 100:.1f}%"


class ThresholdSettings(BaseModel):
    """Thresholds the report was computed with, echoed for display."""

    ndvi_low: float
    ndvi_drop: float
    ndvi_high: float
    radar_low_db: float
    radar_high_db: float
    temperature_high_c: float
    temperature_low_c: float
    rainfall_high_mm: float
    cloud_cover_ceiling_pct: float


class ClassificationReport(BaseModel):
    """Quality, coverage and alerts for one region."""

    region_key: str
    quality_breakdown: QualityBreakdown = Field(default_factory=QualityBreakdown)
    coverage: CoverageSummary = Field(default_factory=CoverageSummary)
    alerts: list[AlertRecord] = Field(default_factory=list)
    thresholds: ThresholdSettings | None = None

    def alerts_for(self, category: AlertCategory) -> list[AlertRecord]:
        return [a for a in self.alerts if a.category is category]


class MonitoringStatus(BaseModel):
    """Snapshot of the monitoring loop for status displays."""

    connection_status: ConnectionStatus = ConnectionStatus.DISCONNECTED
    last_refresh_at: datetime | None = None
    active_region_count: int = 0
    total_observation_count: int = 0
    recent_observation_count: int = 0
