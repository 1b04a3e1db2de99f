"""Google Maps geocoding provider."""

from __future__ import annotations

from typing import Any, Optional

import httpx

from ...config import settings
from ...exceptions import InvalidCoordinate, ProviderUnavailable
from ...models.domain import Coordinate
from ..http import fetch_json, has_usable_key
from .base import GeocodingProvider

EMPTY_STATUSES = frozenset({"ZERO_RESULTS"})


class GoogleGeocodingProvider(GeocodingProvider):
    name = "google"

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        url: Optional[str] = None,
        timeout: Optional[float] = None,
        country_code: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else settings.google_maps_api_key
        self.url = url or settings.google_geocode_url
        self.timeout = timeout or settings.geocoding_timeout_seconds
        self.country_code = (country_code or settings.geocode_country_code).lower()
        self._client = client

    @property
    def available(self) -> bool:
        return has_usable_key(self.api_key)

    async def attempt(self, query: str) -> Optional[Coordinate]:
        params = {
            "address": query,
            "key": self.api_key,
            "region": self.country_code,
            "components": f"country:{self.country_code.upper()}",
        }
        data = await fetch_json(self.name, self.url, params=params, timeout=self.timeout, client=self._client)
        results = self._checked_results(data)
        if not results:
            return None
        location = (results[0].get("geometry") or {}).get("location") or {}
        try:
            return Coordinate.parse(location.get("lat"), location.get("lng"))
        except InvalidCoordinate as exc:
            raise ProviderUnavailable(self.name, f"unusable location in response: {exc}") from exc

    async def reverse(self, coordinate: Coordinate) -> Optional[str]:
        params = {"latlng": f"{coordinate.latitude},{coordinate.longitude}", "key": self.api_key}
        data = await fetch_json(self.name, self.url, params=params, timeout=self.timeout, client=self._client)
        results = self._checked_results(data)
        if not results:
            return None
        return results[0].get("formatted_address") or None

    def _checked_results(self, data: Any) -> list[dict[str, Any]]:
        if not isinstance(data, dict):
            raise ProviderUnavailable(self.name, "unexpected response shape")
        status = data.get("status")
        if status in EMPTY_STATUSES:
            return []
        if status != "OK":
            raise ProviderUnavailable(self.name, f"status {status}: {data.get('error_message', 'no message')}")
        return data.get("results") or []
