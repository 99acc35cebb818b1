"""Adapter factory: selects the adapter class for each source type.

The factory maintains a registry of known adapters.  New adapters are
registered with ``register_adapter``.

Usage::

    from agri_monitor.providers.factory import build_adapters

    adapters = build_adapters(load_source_configs(), MonitorConfig.from_env())
    observations = await adapters[SourceType.OPTICAL].fetch(region, window)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from agri_monitor.models.observation import SourceConfig, SourceType
from agri_monitor.providers.base import SourceAdapter, SourceError

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from agri_monitor.core.config import MonitorConfig
    from agri_monitor.providers.base import RequestCapability
    from agri_monitor.providers.synthesizer import ObservationSynthesizer

logger = logging.getLogger("agri_monitor.providers.factory")

# ---------------------------------------------------------------------------
# Lazy-import adapter registry
# ---------------------------------------------------------------------------

# Each entry maps a source type to a callable that returns the adapter
# *class*, so adapter modules are only imported when first requested.

_ADAPTER_REGISTRY: dict[SourceType, Callable[[], type[SourceAdapter]]] = {}


def _register_builtin_adapters() -> None:
    """Register the built-in adapters.  Called once on first use."""

    def _optical() -> type[SourceAdapter]:
        from agri_monitor.providers.optical import OpticalAdapter

        return OpticalAdapter

    def _radar() -> type[SourceAdapter]:
        from agri_monitor.providers.radar import RadarAdapter

        return RadarAdapter

    def _climate() -> type[SourceAdapter]:
        from agri_monitor.providers.climate import ClimateAdapter

        return ClimateAdapter

    _ADAPTER_REGISTRY[SourceType.OPTICAL] = _optical
    _ADAPTER_REGISTRY[SourceType.RADAR] = _radar
    _ADAPTER_REGISTRY[SourceType.CLIMATE] = _climate


def _ensure_registry() -> None:
    """Initialise the adapter registry once (idempotent)."""
    if not _ADAPTER_REGISTRY:
        _register_builtin_adapters()


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def register_adapter(
    source_type: SourceType | str,
    loader: Callable[[], type[SourceAdapter]],
) -> None:
    """Register (or replace) the adapter class for a source type.

    Args:
        source_type: Source the adapter serves (member, value or name).
        loader: A zero-argument callable that returns the adapter class.
    """
    source = SourceType.parse(source_type)
    _ensure_registry()
    _ADAPTER_REGISTRY[source] = loader
    logger.debug("Registered source adapter | source=%s", source.value)


def get_adapter(
    source_type: SourceType | str,
    config: SourceConfig | None = None,
    *,
    request: RequestCapability | None = None,
    synthesizer: ObservationSynthesizer | None = None,
    cloud_ceiling_pct: float = 30.0,
    timeout_s: float | None = None,
) -> SourceAdapter:
    """Create and return an adapter instance.

    Args:
        source_type: Source identifier (member, ``"sentinel-2"`` or ``"optical"``).
        config: Optional ``SourceConfig``.  If ``None``, a config without
            credentials is used (the adapter will only synthesize).
        request: Request capability for live calls.
        synthesizer: Fallback synthesizer strategy.
        cloud_ceiling_pct: Cloud-cover ceiling for optical quality tiers.
        timeout_s: Per-call timeout; the adapter default when ``None``.

    Raises:
        SourceError: If the source is not registered or the config
            belongs to another source.
    """
    _ensure_registry()

    try:
        source = SourceType.parse(source_type)
    except ValueError as exc:
        raise SourceError(source=str(source_type), message=str(exc)) from exc

    loader = _ADAPTER_REGISTRY.get(source)
    if loader is None:
        available = ", ".join(s.value for s in list_adapters())
        msg = f"No adapter registered for {source.value!r}. Available: {available}"
        raise SourceError(source=source.value, message=msg)

    adapter_cls = loader()
    if config is None:
        config = SourceConfig(source_type=source)

    kwargs: dict[str, object] = {}
    if timeout_s is not None:
        kwargs["timeout_s"] = timeout_s

    logger.info(
        "Creating source adapter | source=%s | credentials=%s | live=%s",
        source.value,
        config.credentials_present,
        request is not None,
    )
    return adapter_cls(
        config,
        request=request,
        synthesizer=synthesizer,
        cloud_ceiling_pct=cloud_ceiling_pct,
        **kwargs,  # type: ignore[arg-type]
    )


def list_adapters() -> list[SourceType]:
    """Return the registered source types in acquisition order."""
    _ensure_registry()
    return [s for s in SourceType if s in _ADAPTER_REGISTRY]


def build_adapters(
    source_configs: Mapping[SourceType, SourceConfig],
    config: MonitorConfig,
    *,
    request: RequestCapability | None = None,
    synthesizer: ObservationSynthesizer | None = None,
) -> dict[SourceType, SourceAdapter]:
    """One adapter per configured source, sharing request and synthesizer."""
    return {
        source: get_adapter(
            source,
            source_config,
            request=request,
            synthesizer=synthesizer,
            cloud_ceiling_pct=config.cloud_cover_ceiling_pct,
            timeout_s=config.source_timeout_s,
        )
        for source, source_config in source_configs.items()
    }
