"""Factory for geocoding providers."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from ...config import settings
from .base import GeocodingProvider
from .google_provider import GoogleGeocodingProvider
from .nominatim_provider import NominatimProvider
from .resolver import GeocodingResolver

logger = logging.getLogger(__name__)

PROVIDERS: dict[str, type[GeocodingProvider]] = {
    GoogleGeocodingProvider.name: GoogleGeocodingProvider,
    NominatimProvider.name: NominatimProvider,
}


def create_geocoding_providers(names: Optional[Sequence[str]] = None) -> list[GeocodingProvider]:
    providers: list[GeocodingProvider] = []
    for name in names or settings.geocoding_providers:
        provider_cls = PROVIDERS.get(name.lower())
        if provider_cls is None:
            logger.warning(f"Unknown geocoding provider '{name}' ignored")
            continue
        providers.append(provider_cls())
    return providers


def create_resolver(names: Optional[Sequence[str]] = None) -> GeocodingResolver:
    return GeocodingResolver(create_geocoding_providers(names))
