"""Default request capability for the source adapters.

``DefaultRequester`` is an async callable matching the adapters'
request-capability signature::

    raw = await requester(source_type, region, window, config)

- Optical and radar: STAC catalogue search via ``pystac-client``
  (Planetary Computer by default).  ``pystac-client`` is synchronous, so
  the search runs in a worker thread.  Returns ``{"features": [...]}``.
- Climate: ERA5 daily reanalysis from the Open-Meteo archive via
  ``httpx.AsyncClient``, sampled at the region center.

API keys are read from the environment (``<SOURCE>_API_KEY``) at call
time and never stored on ``SourceConfig``.

Errors:
    Non-2xx responses raise ``SourceAuthError`` (401/403) or
    ``SourceRequestError``; transport failures raise
    ``SourceRequestError`` or ``SourceTimeoutError``; undecodable bodies
    raise ``SourceResponseError``.
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import TYPE_CHECKING, Any

import httpx
import pystac_client
from pystac_client.exceptions import APIError

from agri_monitor.core.constants import (
    DEFAULT_CLIMATE_URL,
    DEFAULT_SOURCE_TIMEOUT_S,
    DEFAULT_STAC_URL,
    MAX_CATALOGUE_ITEMS,
    OPTICAL_COLLECTION,
    RADAR_COLLECTION,
)
from agri_monitor.models.observation import SourceType
from agri_monitor.providers.base import (
    SourceAuthError,
    SourceRequestError,
    SourceResponseError,
    SourceTimeoutError,
)
from agri_monitor.providers.climate import DAILY_VARIABLES, HOURLY_VARIABLES

if TYPE_CHECKING:
    from agri_monitor.core.config import MonitorConfig
    from agri_monitor.models.observation import SourceConfig
    from agri_monitor.models.region import AcquisitionWindow, Region

logger = logging.getLogger("agri_monitor.providers.transport")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_API_KEY_ENV = {
    SourceType.OPTICAL: "OPTICAL_API_KEY",
    SourceType.RADAR: "RADAR_API_KEY",
    SourceType.CLIMATE: "CLIMATE_API_KEY",
}

_DEFAULT_COLLECTIONS = {
    SourceType.OPTICAL: OPTICAL_COLLECTION,
    SourceType.RADAR: RADAR_COLLECTION,
}

# Planetary Computer subscription header.
_STAC_KEY_HEADER = "Ocp-Apim-Subscription-Key"

_AUTH_STATUS_CODES = frozenset({401, 403})


class DefaultRequester:
    """Request capability backed by ``pystac-client`` and ``httpx``.

    The requester owns its ``httpx.AsyncClient`` unless one is injected;
    call ``aclose()`` (or use ``async with``) to release it.
    """

    def __init__(
        self,
        *,
        cloud_ceiling_pct: float = 30.0,
        timeout_s: float = DEFAULT_SOURCE_TIMEOUT_S,
        max_items: int = MAX_CATALOGUE_ITEMS,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._cloud_ceiling_pct = cloud_ceiling_pct
        self._max_items = max_items
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout_s, follow_redirects=True)

    @classmethod
    def from_config(
        cls,
        config: MonitorConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> DefaultRequester:
        """Requester filtering catalogue searches at ``config.cloud_cover_ceiling_pct``."""
        return cls(
            cloud_ceiling_pct=config.cloud_cover_ceiling_pct,
            timeout_s=config.source_timeout_s,
            http_client=http_client,
        )

    @property
    def cloud_ceiling_pct(self) -> float:
        return self._cloud_ceiling_pct

    async def __call__(
        self,
        source_type: SourceType,
        region: Region,
        window: AcquisitionWindow,
        config: SourceConfig,
    ) -> dict[str, Any]:
        if source_type is SourceType.CLIMATE:
            return await self._fetch_climate(region, window, config)
        return await asyncio.to_thread(self._search_catalogue, source_type, region, window, config)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> DefaultRequester:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # STAC catalogue (optical / radar)
    # ------------------------------------------------------------------

    def _search_catalogue(
        self,
        source_type: SourceType,
        region: Region,
        window: AcquisitionWindow,
        config: SourceConfig,
    ) -> dict[str, Any]:
        """Blocking STAC search; run via ``asyncio.to_thread``."""
        source = source_type.value
        endpoint = config.endpoint or DEFAULT_STAC_URL
        collection = config.params.get("collection", _DEFAULT_COLLECTIONS[source_type])

        query: dict[str, Any] | None = None
        if source_type is SourceType.OPTICAL:
            query = {"eo:cloud_cover": {"lte": self._cloud_ceiling_pct}}

        headers = {}
        api_key = os.getenv(_API_KEY_ENV[source_type], "")
        if api_key:
            headers[_STAC_KEY_HEADER] = api_key

        try:
            catalogue = pystac_client.Client.open(endpoint, headers=headers or None)
            search = catalogue.search(
                bbox=list(region.bbox),
                collections=[collection],
                datetime=window.to_stac_range(),
                query=query,
                max_items=self._max_items,
            )
            features = [item.to_dict() for item in search.items()]
        except APIError as exc:
            status = getattr(exc, "status_code", None)
            if status in _AUTH_STATUS_CODES:
                raise SourceAuthError(source, f"STAC search rejected credentials: {exc}") from exc
            msg = f"STAC search failed: {exc}"
            raise SourceRequestError(source, msg, status_code=status) from exc
        except Exception as exc:
            msg = f"STAC search failed: {exc}"
            raise SourceRequestError(source, msg) from exc

        logger.info(
            "STAC search | source=%s | collection=%s | bbox=%s | items=%d",
            source,
            collection,
            region.bbox_param(),
            len(features),
        )
        return {"features": features}

    # ------------------------------------------------------------------
    # ERA5 (climate)
    # ------------------------------------------------------------------

    async def _fetch_climate(
        self,
        region: Region,
        window: AcquisitionWindow,
        config: SourceConfig,
    ) -> dict[str, Any]:
        source = SourceType.CLIMATE.value
        lng, lat = region.center
        params: dict[str, Any] = {
            "latitude": f"{lat:.5f}",
            "longitude": f"{lng:.5f}",
            "start_date": window.start.isoformat(),
            "end_date": window.end.isoformat(),
            "daily": ",".join(DAILY_VARIABLES.values()),
            "hourly": ",".join(HOURLY_VARIABLES.values()),
            "wind_speed_unit": "ms",
            "timezone": "UTC",
        }
        api_key = os.getenv(_API_KEY_ENV[SourceType.CLIMATE], "")
        if api_key:
            params["apikey"] = api_key

        try:
            response = await self._client.get(config.endpoint or DEFAULT_CLIMATE_URL, params=params)
        except httpx.TimeoutException as exc:
            raise SourceTimeoutError(source, f"Climate request timed out: {exc}") from exc
        except httpx.HTTPError as exc:
            raise SourceRequestError(source, f"Climate request failed: {exc}") from exc

        _raise_for_status(source, response)

        try:
            payload = response.json()
        except ValueError as exc:
            msg = f"Climate response is not JSON: {exc}"
            raise SourceResponseError(source, msg) from exc

        if not isinstance(payload, dict):
            msg = f"Climate response must be an object, got {type(payload).__name__}"
            raise SourceResponseError(source, msg)

        logger.info(
            "Climate request | lat=%.5f | lng=%.5f | start=%s | end=%s | status=%d",
            lat,
            lng,
            window.start,
            window.end,
            response.status_code,
        )
        return payload


def _raise_for_status(source: str, response: httpx.Response) -> None:
    """Map non-2xx responses onto the source error taxonomy."""
    if response.is_success:
        return
    status = response.status_code
    if status in _AUTH_STATUS_CODES:
        raise SourceAuthError(source, f"HTTP {status}: credentials rejected")
    raise SourceRequestError(
        source,
        f"HTTP {status}: {response.reason_phrase}",
        status_code=status,
        retryable=status >= 500 or status == 429,
    )
