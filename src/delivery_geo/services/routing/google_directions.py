"""Google Directions routing provider."""

from __future__ import annotations

from typing import Any, Optional, Sequence

import httpx

from ...config import settings
from ...exceptions import ProviderUnavailable
from ...models.domain import Coordinate, RouteResult
from ..geospatial import format_duration, format_route_distance
from ..http import fetch_json, has_usable_key
from .base import RoutingProvider
from .osrm_client import decode_polyline


def _latlng(point: Coordinate) -> str:
    return f"{point.latitude},{point.longitude}"


class GoogleDirectionsProvider(RoutingProvider):
    name = "google"

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        url: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else settings.google_maps_api_key
        self.url = url or settings.google_directions_url
        self.timeout = timeout or settings.routing_timeout_seconds
        self._client = client

    @property
    def available(self) -> bool:
        return has_usable_key(self.api_key)

    async def attempt(self, waypoints: Sequence[Coordinate]) -> RouteResult:
        if len(waypoints) < 2:
            raise ValueError("At least two coordinates are required for a directions request.")

        params: dict[str, Any] = {
            "origin": _latlng(waypoints[0]),
            "destination": _latlng(waypoints[-1]),
            "mode": "driving",
            "departure_time": "now",
            "key": self.api_key,
        }
        if len(waypoints) > 2:
            params["waypoints"] = "|".join(_latlng(point) for point in waypoints[1:-1])

        data = await fetch_json(self.name, self.url, params=params, timeout=self.timeout, client=self._client)
        if not isinstance(data, dict):
            raise ProviderUnavailable(self.name, "unexpected response shape")
        status = data.get("status")
        if status != "OK":
            raise ProviderUnavailable(self.name, f"status {status}: {data.get('error_message', 'no message')}")
        routes = data.get("routes") or []
        if not routes:
            raise ProviderUnavailable(self.name, "no route found")

        route = routes[0]
        try:
            legs = route["legs"]
            distance_m = float(sum(leg["distance"]["value"] for leg in legs))
            # duration_in_traffic is only present when departure_time is honoured
            duration_s = float(
                sum((leg.get("duration_in_traffic") or leg["duration"])["value"] for leg in legs)
            )
            encoded = (route.get("overview_polyline") or {}).get("points") or ""
            geometry = decode_polyline(encoded)
        except (KeyError, TypeError, ValueError) as exc:
            raise ProviderUnavailable(self.name, f"malformed route: {exc}") from exc

        return RouteResult(
            distance_meters=distance_m,
            duration_seconds=duration_s,
            distance_text=format_route_distance(distance_m),
            duration_text=format_duration(duration_s),
            geometry=tuple(geometry),
            provider=self.name,
        )
