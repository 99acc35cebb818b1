"""Composition root: wires one ``MonitorConfig`` through every component.

Usage::

    config = MonitorConfig.from_env()
    async with DefaultRequester.from_config(config) as requester:
        loop = build_engine(config, request=requester)
        await loop.start(region)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from agri_monitor.analysis.classifier import Classifier
from agri_monitor.core.config import MonitorConfig, load_source_configs
from agri_monitor.orchestrators.acquisition import AcquisitionOrchestrator
from agri_monitor.orchestrators.monitoring import MonitoringLoop
from agri_monitor.providers.factory import build_adapters
from agri_monitor.store.observation_store import ObservationStore

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping
    from datetime import datetime

    from agri_monitor.models.observation import SourceConfig, SourceType
    from agri_monitor.orchestrators.acquisition import ProgressCallback
    from agri_monitor.providers.base import RequestCapability
    from agri_monitor.providers.synthesizer import ObservationSynthesizer

logger = logging.getLogger("agri_monitor.engine")


def build_engine(
    config: MonitorConfig | None = None,
    source_configs: Mapping[SourceType, SourceConfig] | None = None,
    *,
    request: RequestCapability | None = None,
    synthesizer: ObservationSynthesizer | None = None,
    store: ObservationStore | None = None,
    progress: ProgressCallback | None = None,
    clock: Callable[[], datetime] | None = None,
) -> MonitoringLoop:
    """Build store, adapters, orchestrator, classifier and loop from *config*.

    Args:
        config: Engine configuration; ``MonitorConfig.from_env()`` when ``None``.
        source_configs: Per-source endpoints; ``load_source_configs()`` when ``None``.
        request: Live request capability shared by the adapters.  Without
            one every source synthesizes.
        synthesizer: Fallback strategy shared by the adapters.
        store: Existing store to reuse; otherwise one is built from *config*.
        progress: Optional ``progress(stage, pct)`` callback.
        clock: Current-time source shared by every component.
    """
    config = config or MonitorConfig.from_env()
    if source_configs is None:
        source_configs = load_source_configs()
    if store is None:
        store = ObservationStore.from_config(config, clock=clock)

    adapters = build_adapters(source_configs, config, request=request, synthesizer=synthesizer)
    orchestrator = AcquisitionOrchestrator(adapters, store, progress=progress, clock=clock)
    loop = MonitoringLoop.from_config(orchestrator, Classifier(store, config), config, clock=clock)

    logger.info(
        "Engine built | sources=%s | window_days=%d | interval_ms=%d | store_max_entries=%d",
        ",".join(s.value for s in orchestrator.source_types),
        config.window_days,
        config.refresh_interval_ms,
        store.max_entries_per_source,
    )
    return loop
