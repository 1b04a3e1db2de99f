"""Delivery distance pricing, address geocoding and live route/ETA estimation."""

from .exceptions import (
    DeliveryGeoError,
    ImplausibleDistance,
    InvalidCoordinate,
    NoDataYet,
    ProviderUnavailable,
)
from .models.domain import Coordinate, GeocodeResult, RouteSnapshot, ShopChargeEstimate, ShopLocation

__version__ = "0.1.0"

__all__ = [
    "Coordinate",
    "DeliveryGeoError",
    "GeocodeResult",
    "ImplausibleDistance",
    "InvalidCoordinate",
    "NoDataYet",
    "ProviderUnavailable",
    "RouteSnapshot",
    "ShopChargeEstimate",
    "ShopLocation",
]
