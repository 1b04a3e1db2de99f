"""
Domain-specific exceptions for the delivery estimator.

GeoMath raises these per item; the aggregator, resolver and route estimator
absorb them into fallback values so callers always receive a usable estimate.
"""

from __future__ import annotations

from typing import Any, Optional


class DeliveryGeoError(Exception):
    """Base exception for all estimator errors."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)


class InvalidCoordinate(DeliveryGeoError, ValueError):
    """Raised when a latitude/longitude pair is missing, non-finite or out of range."""


class ImplausibleDistance(DeliveryGeoError):
    """Raised when a computed distance exceeds the plausibility threshold."""

    def __init__(self, distance_km: float, max_km: float) -> None:
        super().__init__(
            f"Distance {distance_km:.1f} km exceeds plausible maximum of {max_km:.1f} km",
            details={"distance_km": distance_km, "max_km": max_km},
        )
        self.distance_km = distance_km
        self.max_km = max_km


class ProviderUnavailable(DeliveryGeoError):
    """Raised when a geocoding or routing provider errors, times out or is not configured."""

    def __init__(self, provider: str, reason: str) -> None:
        super().__init__(f"{provider}: {reason}", details={"provider": provider})
        self.provider = provider
        self.reason = reason


class NoDataYet(DeliveryGeoError):
    """Raised when a route snapshot is requested before the first successful refresh."""
