"""Network-backed outage data source.

Talks JSON over HTTP to an outage API:
  GET  {base}/providers
  GET  {base}/outages?latitude=..&longitude=..
  POST {base}/reports
Unlike the mock, results are narrowed to the requested location.
"""

import logging

import httpx
from pydantic import TypeAdapter, ValidationError

from kesinti_radar.errors import DecodingError, NoConnectionError, ServerError
from kesinti_radar.schemas.outage import Address, Outage, Provider, UserReport
from kesinti_radar.services.data_source import OutageDataSource
from kesinti_radar.services.geo import haversine_km

logger = logging.getLogger(__name__)

_PROVIDERS = TypeAdapter(list[Provider])
_OUTAGES = TypeAdapter(list[Outage])


class HttpOutageDataSource(OutageDataSource):
    name = "http"

    def __init__(
        self,
        base_url: str,
        timeout: float = 15,
        radius_km: float = 25.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._radius_km = radius_km
        self._transport = transport

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        url = f"{self._base_url}{path}"
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.request(method, url, **kwargs)
                resp.raise_for_status()
                return resp
        except httpx.HTTPStatusError as e:
            logger.warning("Outage API %s %s returned %d", method, path, e.response.status_code)
            raise ServerError(f"HTTP {e.response.status_code} from {path}") from e
        except httpx.TransportError as e:
            logger.warning("Outage API %s %s failed: %s", method, path, e)
            raise NoConnectionError(str(e)) from e

    async def _get_list(self, path: str, adapter: TypeAdapter, **kwargs) -> list:
        resp = await self._request("GET", path, **kwargs)
        try:
            data = resp.json()
            items = data if isinstance(data, list) else data.get("items", data.get("data", []))
            return adapter.validate_python(items)
        except (ValueError, AttributeError, ValidationError) as e:
            raise DecodingError(f"malformed payload from {path}: {e}") from e

    async def fetch_providers(self) -> list[Provider]:
        providers = await self._get_list("/providers", _PROVIDERS)
        logger.info("Outage API: fetched %d providers", len(providers))
        return providers

    async def fetch_outages_around(self, latitude: float, longitude: float) -> list[Outage]:
        outages = await self._get_list(
            "/outages", _OUTAGES, params={"latitude": latitude, "longitude": longitude}
        )
        nearby = [o for o in outages if self._within_radius(o, latitude, longitude)]
        logger.info("Outage API: %d of %d outages within %.0f km",
                    len(nearby), len(outages), self._radius_km)
        return nearby

    async def fetch_outages_for_address(self, address: Address) -> list[Outage]:
        outages = await self._get_list(
            "/outages", _OUTAGES,
            params={"latitude": address.latitude, "longitude": address.longitude},
        )
        return [o for o in outages if self._affects(o, address)]

    async def fetch_outage_history(self, address: Address) -> list[Outage]:
        outages = await self.fetch_outages_for_address(address)
        return [o for o in outages if o.is_past()]

    async def send_user_report(self, report: UserReport) -> None:
        await self._request("POST", "/reports", json=report.model_dump(mode="json"))

    def _within_radius(self, outage: Outage, latitude: float, longitude: float) -> bool:
        return haversine_km(latitude, longitude, outage.latitude, outage.longitude) <= self._radius_km

    def _affects(self, outage: Outage, address: Address) -> bool:
        """Match by affected area name first, then fall back to distance."""
        text = address.full_text.casefold()
        if any(area.casefold() in text for area in outage.affected_areas if area):
            return True
        return self._within_radius(outage, address.latitude, address.longitude)
