"""Threshold alert rules.

Each rule inspects one observation (the latest of its source within a
month) and returns zero or more ``AlertRecord`` objects.

Severity is derived from the relative exceedance
``|value - threshold| / |threshold|``:

    < 0.10  → LOW
    < 0.30  → MEDIUM
    otherwise HIGH

The drop rule measures the fall against ``ndvi_drop`` itself.  A zero
threshold (e.g. a 0 °C cold limit) falls back to the absolute
exceedance in the threshold's own units.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from agri_monitor.models.observation import SourceType
from agri_monitor.models.report import AlertCategory, AlertRecord, Severity

if TYPE_CHECKING:
    from agri_monitor.core.config import AlertThresholds
    from agri_monitor.models.observation import (
        ClimateObservation,
        OpticalObservation,
        RadarObservation,
    )

LOW_SEVERITY_LIMIT = 0.10
MEDIUM_SEVERITY_LIMIT = 0.30


def severity_for(value: float, threshold: float) -> Severity:
    """Severity of *value* having crossed *threshold*."""
    gap = abs(value - threshold)
    exceedance = gap / abs(threshold) if threshold else gap
    if exceedance < LOW_SEVERITY_LIMIT:
        return Severity.LOW
    if exceedance < MEDIUM_SEVERITY_LIMIT:
        return Severity.MEDIUM
    return Severity.HIGH


def vegetation_alerts(
    region_key: str,
    period: str,
    observation: OpticalObservation,
    previous_mean: float | None,
    thresholds: AlertThresholds,
) -> list[AlertRecord]:
    """Low-index and month-over-month drop alerts for an optical observation."""
    alerts: list[AlertRecord] = []
    mean = observation.vegetation_index.mean

    if mean < thresholds.ndvi_low:
        alerts.append(
            _record(
                region_key,
                period,
                AlertCategory.VEGETATION_LOW,
                f"Vegetation index {mean:.3f} is below the {thresholds.ndvi_low:.3f} threshold",
                mean,
                thresholds.ndvi_low,
            )
        )

    if previous_mean is not None:
        drop = previous_mean - mean
        if drop > thresholds.ndvi_drop:
            alerts.append(
                _record(
                    region_key,
                    period,
                    AlertCategory.VEGETATION_DROP,
                    f"Vegetation index fell by {drop:.3f} (from {previous_mean:.3f} "
                    f"to {mean:.3f}), more than {thresholds.ndvi_drop:.3f}",
                    drop,
                    thresholds.ndvi_drop,
                )
            )

    return alerts


def radar_alerts(
    region_key: str,
    period: str,
    observation: RadarObservation,
    thresholds: AlertThresholds,
) -> list[AlertRecord]:
    """VV backscatter outside the ``[radar_low_db, radar_high_db]`` band."""
    vv = observation.backscatter.vv_mean
    if vv < thresholds.radar_low_db:
        edge, side = thresholds.radar_low_db, "below"
    elif vv > thresholds.radar_high_db:
        edge, side = thresholds.radar_high_db, "above"
    else:
        return []
    return [
        _record(
            region_key,
            period,
            AlertCategory.RADAR_BACKSCATTER,
            f"VV backscatter {vv:.2f} dB is {side} the {edge:.2f} dB limit",
            vv,
            edge,
            source=SourceType.RADAR,
        )
    ]


def climate_alerts(
    region_key: str,
    period: str,
    observation: ClimateObservation,
    thresholds: AlertThresholds,
) -> list[AlertRecord]:
    """Temperature and rainfall extremes."""
    alerts: list[AlertRecord] = []
    temperature = observation.temperature_c
    rainfall = observation.precipitation_mm

    if temperature > thresholds.temperature_high_c:
        alerts.append(
            _record(
                region_key,
                period,
                AlertCategory.TEMPERATURE_HIGH,
                f"Temperature {temperature:.1f} °C exceeds {thresholds.temperature_high_c:.1f} °C",
                temperature,
                thresholds.temperature_high_c,
                source=SourceType.CLIMATE,
            )
        )
    elif temperature < thresholds.temperature_low_c:
        alerts.append(
            _record(
                region_key,
                period,
                AlertCategory.TEMPERATURE_LOW,
                f"Temperature {temperature:.1f} °C is below {thresholds.temperature_low_c:.1f} °C",
                temperature,
                thresholds.temperature_low_c,
                source=SourceType.CLIMATE,
            )
        )

    if rainfall > thresholds.rainfall_high_mm:
        alerts.append(
            _record(
                region_key,
                period,
                AlertCategory.RAINFALL_HIGH,
                f"Rainfall {rainfall:.1f} mm exceeds {thresholds.rainfall_high_mm:.1f} mm",
                rainfall,
                thresholds.rainfall_high_mm,
                source=SourceType.CLIMATE,
            )
        )

    return alerts


def _record(
    region_key: str,
    period: str,
    category: AlertCategory,
    message: str,
    value: float,
    threshold: float,
    *,
    source: SourceType = SourceType.OPTICAL,
) -> AlertRecord:
    return AlertRecord(
        region_key=region_key,
        period=period,
        category=category,
        severity=severity_for(value, threshold),
        message=message,
        triggering_value=value,
        threshold=threshold,
        source_type=source,
    )
