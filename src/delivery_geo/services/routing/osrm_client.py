"""HTTP client for interacting with OSRM route services."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

import httpx

from ...config import settings
from ...exceptions import InvalidCoordinate, ProviderUnavailable
from ...models.domain import Coordinate, RouteResult
from ..geospatial import format_duration, format_route_distance
from ..http import fetch_json
from .base import RoutingProvider

logger = logging.getLogger(__name__)


def format_coordinates(waypoints: Sequence[Coordinate]) -> str:
    """OSRM expects ``lon,lat;lon,lat;...``."""
    return ";".join(f"{point.longitude},{point.latitude}" for point in waypoints)


def _decode_value(polyline: str, index: int) -> tuple[int, int]:
    shift = 0
    result = 0
    while True:
        b = ord(polyline[index]) - 63
        index += 1
        result |= (b & 0x1F) << shift
        shift += 5
        if b < 0x20:
            break
    delta = ~(result >> 1) if (result & 1) else (result >> 1)
    return delta, index


def decode_polyline(polyline: str, precision: int = 5) -> list[Coordinate]:
    """Decode a Google-encoded polyline (used by OSRM and Google Directions).

    Raises:
        ValueError: if the string is truncated or decodes outside valid ranges.
    """

    factor = 10 ** precision
    points: list[Coordinate] = []
    index = 0
    lat = 0
    lon = 0
    try:
        while index < len(polyline):
            d_lat, index = _decode_value(polyline, index)
            d_lon, index = _decode_value(polyline, index)
            lat += d_lat
            lon += d_lon
            points.append(Coordinate(lat / factor, lon / factor))
    except IndexError as exc:
        raise ValueError("Truncated polyline") from exc
    except InvalidCoordinate as exc:
        raise ValueError(f"Polyline decodes to an invalid point: {exc}") from exc
    return points


class OSRMClient(RoutingProvider):
    name = "osrm"

    def __init__(
        self,
        base_url: str | None = None,
        profile: str | None = None,
        timeout: float | None = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = (base_url or settings.osrm_base_url or "").rstrip("/")
        self.profile = profile or settings.osrm_profile
        self.timeout = timeout or settings.routing_timeout_seconds
        self._client = client

    @property
    def available(self) -> bool:
        return bool(self.base_url)

    async def attempt(self, waypoints: Sequence[Coordinate]) -> RouteResult:
        """Get the driving route through ``waypoints`` using the OSRM route endpoint."""

        if len(waypoints) < 2:
            raise ValueError("At least two coordinates are required for OSRM route.")

        params = {
            "overview": "full",
            "geometries": "polyline",
            "steps": "false",
        }
        url = f"{self.base_url}/route/v1/{self.profile}/{format_coordinates(waypoints)}"
        data = await fetch_json(self.name, url, params=params, timeout=self.timeout, client=self._client)

        if not isinstance(data, dict) or data.get("code") != "Ok":
            message = data.get("message", "Unknown OSRM route error") if isinstance(data, dict) else "bad response"
            raise ProviderUnavailable(self.name, f"route request failed: {message}")
        routes = data.get("routes") or []
        if not routes:
            raise ProviderUnavailable(self.name, "no route found")

        route = routes[0]
        try:
            distance_m = float(route["distance"])
            duration_s = float(route["duration"])
            geometry = decode_polyline(route.get("geometry") or "")
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


async def check_health(base_url: str | None = None) -> bool:
    """Check OSRM service health by routing between two fixed points.

    Public OSRM endpoints may not have a /health endpoint, so connectivity is
    tested with a minimal route request.
    """
    client = OSRMClient(base_url=base_url, timeout=5.0)
    if not client.available:
        return False
    try:
        await client.attempt([Coordinate(52.517037, 13.388860), Coordinate(52.496891, 13.385983)])
    except ProviderUnavailable as exc:
        logger.warning(f"OSRM health check failed: {exc.reason}")
        return False
    return True
