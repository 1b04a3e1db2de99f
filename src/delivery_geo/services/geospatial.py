"""Geospatial helper functions: distance, pricing tiers and display formatting."""

from __future__ import annotations

import logging
import math
from typing import Iterable, Optional, Sequence

from shapely.geometry import MultiPoint

from ..config import settings
from ..exceptions import ImplausibleDistance, InvalidCoordinate
from ..models.domain import BoundingBox, ChargeTier, Coordinate, validate_tiers

EARTH_RADIUS_KM = 6371.0

logger = logging.getLogger(__name__)


def tiers_from_pairs(pairs: Iterable[tuple[Optional[float], int]]) -> tuple[ChargeTier, ...]:
    tiers = tuple(ChargeTier(max_distance_km=bound, charge=charge) for bound, charge in pairs)
    validate_tiers(tiers)
    return tiers


DEFAULT_CHARGE_TIERS: tuple[ChargeTier, ...] = tiers_from_pairs(settings.charge_tiers)


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute distance between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def distance(a: Coordinate, b: Coordinate, *, max_km: float | None = None) -> float:
    """Great-circle distance in kilometres between two validated coordinates.

    Raises:
        InvalidCoordinate: if either argument is not a Coordinate.
        ImplausibleDistance: if the result exceeds ``max_km`` (defaults to the
            configured plausibility threshold).
    """

    for point in (a, b):
        if not isinstance(point, Coordinate):
            raise InvalidCoordinate(f"Expected a Coordinate, got {point!r}")

    limit = settings.max_plausible_distance_km if max_km is None else max_km
    result = haversine_km(a.latitude, a.longitude, b.latitude, b.longitude)
    if result > limit:
        logger.error(f"Suspicious distance calculated: {result:.1f} km between {a} and {b}")
        raise ImplausibleDistance(result, limit)
    return result


def charge_for_distance(distance_km: float, tiers: Sequence[ChargeTier] = DEFAULT_CHARGE_TIERS) -> int:
    """Return the flat charge of the first tier covering ``distance_km``.

    Distances beyond every bound fall into the final tier, which is treated as
    unbounded whatever its declared limit.
    """

    for tier in tiers:
        if tier.max_distance_km is None or distance_km <= tier.max_distance_km:
            return tier.charge
    return tiers[-1].charge


def _round_half_up(value: float, digits: int = 0) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def format_distance(distance_km: float) -> str:
    """Render metres below 1 km, otherwise kilometres to one decimal place."""

    if distance_km < 1:
        return f"{int(_round_half_up(distance_km * 1000))}m"
    rounded = _round_half_up(distance_km, 1)
    text = f"{rounded:.1f}".rstrip("0").rstrip(".")
    return f"{text}km"


def format_route_distance(distance_meters: float) -> str:
    return f"{distance_meters / 1000:.1f} km"


def format_duration(duration_seconds: float) -> str:
    """Human readable travel time such as ``"1 hr 5 min"`` or ``"12 min"``."""

    total = max(int(duration_seconds), 0)
    hours = total // 3600
    minutes = (total % 3600) // 60
    if hours > 0:
        return f"{hours} hr {minutes} min"
    return f"{minutes} min"


def bounding_box(points: Sequence[Coordinate]) -> BoundingBox:
    """Smallest lat/lng box containing every point."""

    if not points:
        raise ValueError("At least one point is required for a bounding box.")
    west, south, east, north = MultiPoint([(p.longitude, p.latitude) for p in points]).bounds
    return BoundingBox(south=south, west=west, north=north, east=east)
