"""Data-source adapters.

Implements the source-agnostic adapter pattern (Strategy pattern):
- SourceAdapter: Abstract base class defining the interface
- OpticalAdapter: Sentinel-2 L2A scenes (STAC)
- RadarAdapter: Sentinel-1 GRD scenes (STAC)
- ClimateAdapter: ERA5 daily reanalysis
- SeededSynthesizer / FixedSynthesizer: Fallback value strategies
- DefaultRequester: Live request capability (pystac-client + httpx)

Adapters never raise from ``fetch``; unreachable or unconfigured
sources fall back to clearly-tagged synthesized data.
"""

from agri_monitor.providers.base import (
    FetchOutcome,
    SourceAdapter,
    SourceAuthError,
    SourceError,
    SourceNoDataError,
    SourceRequestError,
    SourceResponseError,
    SourceTimeoutError,
)
from agri_monitor.providers.factory import (
    build_adapters,
    get_adapter,
    list_adapters,
    register_adapter,
)
from agri_monitor.providers.synthesizer import (
    FixedSynthesizer,
    ObservationSynthesizer,
    SeededSynthesizer,
)

__all__ = [
    "FetchOutcome",
    "FixedSynthesizer",
    "ObservationSynthesizer",
    "SeededSynthesizer",
    "SourceAdapter",
    "SourceAuthError",
    "SourceError",
    "SourceNoDataError",
    "SourceRequestError",
    "SourceResponseError",
    "SourceTimeoutError",
    "build_adapters",
    "get_adapter",
    "list_adapters",
    "register_adapter",
]
