"""Data models and schemas.

Defines the data structures used throughout the engine:
- Region / AcquisitionWindow: Drawn polygon descriptor and time range
- Observation: Tagged union of optical, radar and climate records
- FusedResult: Per-source outcome of one acquisition
- ClassificationReport / MonitoringStatus: Structures exposed to dashboards
"""

from agri_monitor.models._validation import ModelValidationError
from agri_monitor.models.observation import (
    BackscatterSummary,
    ClimateObservation,
    ClimateSample,
    Observation,
    OpticalObservation,
    Origin,
    QualityTier,
    RadarObservation,
    SourceConfig,
    SourceType,
    VegetationIndexSummary,
)
from agri_monitor.models.region import AcquisitionWindow, Region
from agri_monitor.models.results import FusedResult, SourceOutcome

__all__ = [
    "AcquisitionWindow",
    "BackscatterSummary",
    "ClimateObservation",
    "ClimateSample",
    "FusedResult",
    "ModelValidationError",
    "Observation",
    "OpticalObservation",
    "Origin",
    "QualityTier",
    "RadarObservation",
    "Region",
    "SourceConfig",
    "SourceOutcome",
    "SourceType",
    "VegetationIndexSummary",
]
