"""Fused acquisition result returned by the orchestrator."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from agri_monitor.models.observation import Origin, SourceType

if TYPE_CHECKING:
    from datetime import datetime

    from agri_monitor.models.observation import Observation
    from agri_monitor.models.region import AcquisitionWindow, Region


class SourceOutcome(enum.Enum):
    """How a single source fared within one acquisition.

    Values:
        SUCCESS:  Live data was returned and normalised.
        FALLBACK: The adapter fell back to synthesized data.
        ERROR:    The adapter itself failed; the orchestrator substituted
                  synthesized data.
    """

    SUCCESS = "success"
    FALLBACK = "fallback"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class FusedResult:
    """Per-source observations for one region and window.

    Attributes:
        region_key: Store key the observations were written under.
        region: The region that was acquired.
        window: The acquisition window.
        per_source_observations: New observations keyed by source.
        per_source_origin: Origin of each source's observations.
        per_source_outcome: Outcome of each source call.
        per_source_errors: Structured error dicts for sources that did not succeed.
        fetched_at: When the acquisition completed (UTC).
    """

    region_key: str
    region: Region
    window: AcquisitionWindow
    per_source_observations: dict[SourceType, tuple[Observation, ...]]
    per_source_origin: dict[SourceType, Origin]
    per_source_outcome: dict[SourceType, SourceOutcome]
    fetched_at: datetime
    per_source_errors: dict[SourceType, dict[str, object]] = field(default_factory=dict)

    @property
    def source_types(self) -> list[SourceType]:
        return [s for s in SourceType if s in self.per_source_observations]

    @property
    def observation_count(self) -> int:
        return sum(len(obs) for obs in self.per_source_observations.values())

    @property
    def all_synthesized(self) -> bool:
        return all(o is Origin.SYNTHESIZED for o in self.per_source_origin.values())

    def origins_summary(self) -> dict[str, str]:
        """Source value → origin value, for logging and display."""
        return {s.value: o.value for s, o in self.per_source_origin.items()}
