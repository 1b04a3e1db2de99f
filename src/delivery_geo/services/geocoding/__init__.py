"""Geocoding services."""

from .base import GeocodingProvider
from .factory import create_geocoding_providers, create_resolver
from .google_provider import GoogleGeocodingProvider
from .nominatim_provider import NominatimProvider
from .resolver import GeocodingResolver, format_address

__all__ = [
    "GeocodingProvider",
    "GeocodingResolver",
    "GoogleGeocodingProvider",
    "NominatimProvider",
    "create_geocoding_providers",
    "create_resolver",
    "format_address",
]
