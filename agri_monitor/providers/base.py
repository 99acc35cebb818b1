"""SourceAdapter abstract base class.

Defines the contract that every data-source adapter implements.  The
orchestrator interacts exclusively with this interface: it never knows
which concrete source, transport or synthesizer is behind it.

Lifecycle of one ``fetch``:
    1. No credentials or no request capability: synthesize immediately.
    2. Otherwise call the request capability under the per-source timeout.
    3. Normalise the raw mapping into observations.
    4. Any failure along the way (transport, non-2xx, timeout, malformed
       or empty payload) falls back to synthesized data.

``fetch`` never raises.  Failures surface as ``Origin.SYNTHESIZED`` on
the returned observations and as a structured error dict on the
``FetchOutcome``.
"""

from __future__ import annotations

import abc
import asyncio
import logging
import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar

from agri_monitor.core.constants import DEFAULT_SOURCE_TIMEOUT_S
from agri_monitor.core.exceptions import (
    ContractError,
    MonitorError,
    PermanentError,
    TransientError,
)
from agri_monitor.models.observation import Origin, SourceType
from agri_monitor.providers.synthesizer import SeededSynthesizer

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from datetime import date

    from agri_monitor.models.observation import Observation, SourceConfig
    from agri_monitor.models.region import AcquisitionWindow, Region
    from agri_monitor.providers.synthesizer import ObservationSynthesizer

    RequestCapability = Callable[
        [SourceType, Region, AcquisitionWindow, SourceConfig],
        Awaitable[Mapping[str, Any]],
    ]

logger = logging.getLogger("agri_monitor.providers.base")


# ---------------------------------------------------------------------------
# Source exceptions
# ---------------------------------------------------------------------------


class SourceError(MonitorError):
    """Base exception for data-source failures.

    Attributes:
        source: Value of the source that raised the error.
        message: Human-readable error description.
        retryable: Whether a later refresh may succeed.
    """

    default_stage = "source"
    default_code = "SOURCE_ERROR"

    def __init__(
        self,
        source: str,
        message: str,
        *,
        retryable: bool = False,
        code: str = "",
    ) -> None:
        self.source = source
        super().__init__(
            message,
            retryable=retryable,
            code=code or self.default_code,
            stage=self.default_stage,
        )

    def __str__(self) -> str:
        return f"[{self.source}] {self.message}"

    def to_error_dict(self) -> dict[str, object]:
        payload = super().to_error_dict()
        payload["source"] = self.source
        return payload


class SourceRequestError(SourceError, TransientError):
    """Transport failure or non-2xx response."""

    default_code = "SOURCE_REQUEST_FAILED"

    def __init__(
        self,
        source: str,
        message: str,
        *,
        status_code: int | None = None,
        retryable: bool = True,
    ) -> None:
        self.status_code = status_code
        super().__init__(source, message, retryable=retryable)


class SourceTimeoutError(SourceError, TransientError):
    """The source did not answer within its timeout."""

    default_code = "SOURCE_TIMEOUT"

    def __init__(self, source: str, message: str) -> None:
        super().__init__(source, message, retryable=True)


class SourceAuthError(SourceError, PermanentError):
    """Credentials were rejected (HTTP 401/403)."""

    default_code = "SOURCE_AUTH_FAILED"

    def __init__(self, source: str, message: str) -> None:
        super().__init__(source, message, retryable=False)


class SourceResponseError(SourceError, ContractError):
    """The source answered with a payload the adapter cannot normalise."""

    default_code = "SOURCE_RESPONSE_INVALID"


class SourceNoDataError(SourceResponseError):
    """The source answered successfully but with nothing usable."""

    default_code = "SOURCE_NO_DATA"


# ---------------------------------------------------------------------------
# Fetch outcome
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FetchOutcome:
    """Observations from one adapter call plus how they were obtained.

    Attributes:
        observations: Normalised observations (never empty).
        origin: ``LIVE_API`` or ``SYNTHESIZED``.
        error: Structured error dict when a live attempt failed.
    """

    observations: tuple[Observation, ...]
    origin: Origin
    error: dict[str, object] | None = None

    @property
    def fell_back(self) -> bool:
        return self.error is not None


# ---------------------------------------------------------------------------
# Adapter ABC
# ---------------------------------------------------------------------------


class SourceAdapter(abc.ABC):
    """Abstract base class for data-source adapters.

    Concrete implementations set ``source_type`` and override
    ``_normalise``, ``synthesize`` and ``tile_urls``.  The constructor
    receives the source's ``SourceConfig`` together with the optional
    collaborators the adapter needs.

    Example usage::

        adapter = get_adapter(SourceType.OPTICAL, config, request=requester)
        observations = await adapter.fetch(region, window)
    """

    source_type: ClassVar[SourceType]

    def __init__(
        self,
        config: SourceConfig,
        *,
        request: RequestCapability | None = None,
        synthesizer: ObservationSynthesizer | None = None,
        cloud_ceiling_pct: float = 30.0,
        timeout_s: float = DEFAULT_SOURCE_TIMEOUT_S,
    ) -> None:
        if config.source_type is not self.source_type:
            msg = (
                f"SourceConfig.source_type {config.source_type.value!r} does not match "
                f"adapter source {self.source_type.value!r}"
            )
            raise SourceError(source=self.source_type.value, message=msg)
        self._config = config
        self._request = request
        self._synthesizer = synthesizer or SeededSynthesizer()
        self._cloud_ceiling_pct = cloud_ceiling_pct
        self._timeout_s = timeout_s

    @property
    def name(self) -> str:
        """Return the source value (e.g. ``"sentinel-2"``)."""
        return self.source_type.value

    @property
    def config(self) -> SourceConfig:
        """Return the source configuration (read-only)."""
        return self._config

    @property
    def synthesizer(self) -> ObservationSynthesizer:
        return self._synthesizer

    @property
    def can_request_live(self) -> bool:
        return self._config.credentials_present and self._request is not None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def fetch(self, region: Region, window: AcquisitionWindow) -> list[Observation]:
        """Return observations for *region* within *window*.  Never raises."""
        outcome = await self.fetch_with_outcome(region, window)
        return list(outcome.observations)

    async def fetch_with_outcome(
        self,
        region: Region,
        window: AcquisitionWindow,
    ) -> FetchOutcome:
        """Like ``fetch`` but also report the origin and any live-call error."""
        if not self.can_request_live:
            logger.info(
                "Live request skipped | source=%s | region=%s | credentials=%s",
                self.name,
                region.key,
                self._config.credentials_present,
            )
            return FetchOutcome(tuple(self.synthesize(region, window)), Origin.SYNTHESIZED)

        try:
            observations = await self._fetch_live(region, window)
        except SourceError as exc:
            error = exc.to_error_dict()
            logger.warning(
                "Source fallback | source=%s | region=%s | error=%s",
                self.name,
                region.key,
                error,
            )
            return FetchOutcome(
                tuple(self.synthesize(region, window)),
                Origin.SYNTHESIZED,
                error,
            )

        logger.info(
            "Live data acquired | source=%s | region=%s | observations=%d",
            self.name,
            region.key,
            len(observations),
        )
        return FetchOutcome(tuple(observations), Origin.LIVE_API)

    @abc.abstractmethod
    def synthesize(self, region: Region, window: AcquisitionWindow) -> list[Observation]:
        """Produce plausible synthesized observations.  Never raises.

        Used both as the adapter's own fallback and by the orchestrator
        as the last resort when an adapter fails outright.
        """

    @abc.abstractmethod
    def tile_urls(self, region: Region, day: date) -> dict[str, str]:
        """Visualisation tile URL templates for *region* on *day*."""

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @abc.abstractmethod
    def _normalise(
        self,
        raw: Mapping[str, Any],
        region: Region,
        window: AcquisitionWindow,
    ) -> list[Observation]:
        """Convert a raw source payload into observations.

        May raise ``KeyError``, ``ValueError`` or ``TypeError`` on
        malformed payloads; ``_fetch_live`` maps those to
        ``SourceResponseError``.
        """

    async def _fetch_live(
        self,
        region: Region,
        window: AcquisitionWindow,
    ) -> list[Observation]:
        """Call the request capability and normalise its answer.

        Raises:
            SourceError: On any failure; the caller falls back.
        """
        assert self._request is not None

        try:
            raw = await asyncio.wait_for(
                self._request(self.source_type, region, window, self._config),
                timeout=self._timeout_s,
            )
        except TimeoutError as exc:
            msg = f"No response within {self._timeout_s:g}s"
            raise SourceTimeoutError(self.name, msg) from exc
        except SourceError:
            raise
        except Exception as exc:
            msg = f"Request failed: {exc}"
            raise SourceRequestError(self.name, msg) from exc

        if not isinstance(raw, Mapping):
            msg = f"Expected a mapping payload, got {type(raw).__name__}"
            raise SourceResponseError(self.name, msg)

        try:
            observations = self._normalise(raw, region, window)
        except (KeyError, ValueError, TypeError, IndexError, AttributeError) as exc:
            msg = f"Malformed payload: {exc!r}"
            raise SourceResponseError(self.name, msg) from exc

        if not observations:
            msg = f"No usable records between {window.start} and {window.end}"
            raise SourceNoDataError(self.name, msg)

        return observations

    def _observation_id(self, region: Region, day: date, origin: Origin) -> str:
        prefix = "synth" if origin is Origin.SYNTHESIZED else "live"
        return f"{prefix}-{self.name}-{region.key}-{day.isoformat()}-{uuid.uuid4().hex[:8]}"
