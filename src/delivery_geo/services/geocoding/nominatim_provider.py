"""OpenStreetMap Nominatim geocoding provider."""

from __future__ import annotations

from typing import Optional

import httpx

from ...config import settings
from ...exceptions import InvalidCoordinate, ProviderUnavailable
from ...models.domain import Coordinate
from ..http import fetch_json
from .base import GeocodingProvider


class NominatimProvider(GeocodingProvider):
    name = "nominatim"

    def __init__(
        self,
        *,
        base_url: Optional[str] = None,
        user_agent: Optional[str] = None,
        timeout: Optional[float] = None,
        country_code: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = (base_url or settings.nominatim_base_url).rstrip("/")
        self.user_agent = user_agent or settings.nominatim_user_agent
        self.timeout = timeout or settings.geocoding_timeout_seconds
        self.country_code = (country_code or settings.geocode_country_code).lower()
        self._client = client

    @property
    def _headers(self) -> dict[str, str]:
        return {"User-Agent": self.user_agent, "Accept-Language": "en"}

    async def attempt(self, query: str) -> Optional[Coordinate]:
        params = {"q": query, "format": "json", "limit": 1, "countrycodes": self.country_code}
        data = await fetch_json(
            self.name,
            f"{self.base_url}/search",
            params=params,
            headers=self._headers,
            timeout=self.timeout,
            client=self._client,
        )
        if not isinstance(data, list):
            raise ProviderUnavailable(self.name, "unexpected response shape")
        if not data:
            return None
        try:
            return Coordinate.parse(data[0].get("lat"), data[0].get("lon"))
        except InvalidCoordinate as exc:
            raise ProviderUnavailable(self.name, f"unusable location in response: {exc}") from exc

    async def reverse(self, coordinate: Coordinate) -> Optional[str]:
        params = {
            "lat": coordinate.latitude,
            "lon": coordinate.longitude,
            "format": "json",
            "zoom": 18,
            "addressdetails": 1,
        }
        data = await fetch_json(
            self.name,
            f"{self.base_url}/reverse",
            params=params,
            headers=self._headers,
            timeout=self.timeout,
            client=self._client,
        )
        if not isinstance(data, dict):
            return None
        return data.get("display_name") or None
