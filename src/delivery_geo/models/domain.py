"""Domain value objects for coordinates, charges, geocodes and routes."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal, Optional, Sequence

from ..exceptions import InvalidCoordinate

DEFAULT_SOURCE = "default"
NULL_ISLAND_TOLERANCE = 0.0001

OriginKind = Literal["driver", "shop"]


@dataclass(frozen=True, slots=True)
class Coordinate:
    """A validated latitude/longitude pair in decimal degrees."""

    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        for name, value, limit in (("latitude", self.latitude, 90.0), ("longitude", self.longitude, 180.0)):
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise InvalidCoordinate(f"{name} must be a number, got {value!r}")
            if not math.isfinite(value):
                raise InvalidCoordinate(f"{name} must be finite, got {value!r}")
            if abs(value) > limit:
                raise InvalidCoordinate(f"{name} {value} outside [-{limit:g}, {limit:g}]")

    @classmethod
    def parse(cls, latitude: Any, longitude: Any) -> "Coordinate":
        """Build a coordinate from loosely typed record values such as numeric strings."""

        try:
            lat = float(latitude)
            lng = float(longitude)
        except (TypeError, ValueError) as exc:
            raise InvalidCoordinate(f"Malformed coordinate ({latitude!r}, {longitude!r})") from exc
        return cls(lat, lng)

    @property
    def is_null_island(self) -> bool:
        return abs(self.latitude) <= NULL_ISLAND_TOLERANCE and abs(self.longitude) <= NULL_ISLAND_TOLERANCE

    def as_tuple(self) -> tuple[float, float]:
        return (self.latitude, self.longitude)


@dataclass(frozen=True, slots=True)
class ChargeTier:
    """Flat charge applied up to ``max_distance_km``; ``None`` marks the unbounded tier."""

    max_distance_km: Optional[float]
    charge: int


def validate_tiers(tiers: Sequence[ChargeTier]) -> None:
    """Raise ValueError unless tiers are non-empty and strictly increasing."""

    if not tiers:
        raise ValueError("At least one charge tier is required.")
    bounded = [tier.max_distance_km for tier in tiers[:-1]]
    if any(bound is None for bound in bounded):
        raise ValueError("Only the last charge tier may be unbounded.")
    for previous, current in zip(tiers, tiers[1:]):
        if current.charge <= previous.charge:
            raise ValueError("Charge tiers must have strictly increasing charges.")
        if current.max_distance_km is not None and current.max_distance_km <= previous.max_distance_km:
            raise ValueError("Charge tiers must have strictly increasing distances.")


@dataclass(slots=True)
class ShopLocation:
    id: str
    coordinate: Optional[Coordinate] = None


@dataclass(frozen=True, slots=True)
class ShopChargeEstimate:
    shop_id: str
    distance_km: float
    charge: int
    fallback: bool = False


@dataclass(frozen=True, slots=True)
class GeocodeQuery:
    address: str
    providers: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class ProviderAttempt:
    """Outcome of a single provider call, kept for diagnostics."""

    provider: str
    outcome: Literal["success", "empty", "error", "skipped"]
    detail: str = ""


@dataclass(frozen=True, slots=True)
class GeocodeResult:
    coordinate: Coordinate
    source: str
    attempts: tuple[ProviderAttempt, ...] = ()

    @property
    def is_default(self) -> bool:
        return self.source == DEFAULT_SOURCE


@dataclass(frozen=True, slots=True)
class BoundingBox:
    south: float
    west: float
    north: float
    east: float

    def contains(self, point: Coordinate) -> bool:
        return self.south <= point.latitude <= self.north and self.west <= point.longitude <= self.east


@dataclass(frozen=True, slots=True)
class RouteResult:
    """Normalized routing provider response."""

    distance_meters: float
    duration_seconds: float
    distance_text: str
    duration_text: str
    geometry: tuple[Coordinate, ...] = ()
    provider: str = ""


@dataclass(frozen=True, slots=True)
class RouteSnapshot:
    """Immutable view of the latest route estimate for one delivery."""

    origin_kind: OriginKind
    origin: Coordinate
    distance_text: str
    duration_text: str
    distance_meters: float
    duration_seconds: float
    eta: datetime
    bounding_box: BoundingBox
    provider: str
    computed_at: datetime
    stale: bool = False
    geometry: tuple[Coordinate, ...] = field(default=(), repr=False)
