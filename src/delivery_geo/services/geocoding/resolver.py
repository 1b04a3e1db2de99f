"""Address resolution with ordered provider fallback and a guaranteed default."""

from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Any, Mapping, Optional, Sequence

from ...config import settings
from ...exceptions import ProviderUnavailable
from ...models.domain import DEFAULT_SOURCE, Coordinate, GeocodeQuery, GeocodeResult, ProviderAttempt
from .base import GeocodingProvider

logger = logging.getLogger(__name__)

ADDRESS_FIELDS = ("street", "landmark", "area", "city", "state", "zip_code")


def format_address(components: Mapping[str, Any], country: Optional[str] = None) -> str:
    """Join structured address parts into a single geocoder query, skipping blanks."""

    parts: list[str] = []
    for key in ADDRESS_FIELDS:
        value = components.get(key)
        if value is None or not str(value).strip():
            continue
        text = str(value).strip()
        parts.append(f"near {text}" if key == "landmark" else text)
    country_name = country if country is not None else settings.geocode_country_name
    if parts and country_name:
        parts.append(country_name)
    return ", ".join(parts)


def simplified_address(components: Mapping[str, Any], country: Optional[str] = None) -> str:
    """City/state only query used when the full address cannot be found."""

    return format_address(
        {"city": components.get("city"), "state": components.get("state")},
        country=country,
    )


class GeocodingResolver:
    """Resolve free-text addresses to coordinates; never raises.

    Providers are tried in order, each with a single request. The first
    provider returning a candidate wins; errors, timeouts and empty results
    move on to the next provider. When every provider fails the configured
    default coordinate is returned tagged ``"default"``.
    """

    def __init__(
        self,
        providers: Sequence[GeocodingProvider],
        *,
        default: Optional[Coordinate] = None,
        cache_size: Optional[int] = None,
        country: Optional[str] = None,
    ) -> None:
        self.providers = list(providers)
        self.default = default or Coordinate(settings.default_latitude, settings.default_longitude)
        self.cache_size = settings.geocode_cache_size if cache_size is None else cache_size
        self.country = country
        self._cache: OrderedDict[tuple[str, tuple[str, ...]], GeocodeResult] = OrderedDict()

    @property
    def provider_names(self) -> tuple[str, ...]:
        return tuple(provider.name for provider in self.providers)

    def clear_cache(self) -> None:
        self._cache.clear()

    async def resolve(self, address: str, providers: Optional[Sequence[str]] = None) -> GeocodeResult:
        """Resolve ``address``, trying ``providers`` (names, in priority order) or every configured provider."""

        query = (address or "").strip()
        if not query:
            logger.warning("Empty address supplied; using default coordinates")
            return self._default_result(())

        order = tuple(name.lower() for name in providers) if providers is not None else self.provider_names
        cache_key = (query.lower(), order)
        cached = self._cache.get(cache_key)
        if cached is not None:
            self._cache.move_to_end(cache_key)
            logger.debug(f"Geocode cache hit for '{query}'")
            return cached

        result, attempts = await self._run_chain(GeocodeQuery(address=query, providers=order))
        if result is None:
            logger.error(f"All geocoding providers failed for '{query}'; falling back to default coordinates")
            return self._default_result(attempts)

        self._remember(cache_key, result)
        return result

    async def resolve_components(
        self, components: Mapping[str, Any], providers: Optional[Sequence[str]] = None
    ) -> GeocodeResult:
        """Resolve a structured address, retrying once with just city and state."""

        full = format_address(components, country=self.country)
        result = await self.resolve(full, providers)
        if not result.is_default:
            return result

        simple = simplified_address(components, country=self.country)
        if not simple or simple == full:
            return result
        logger.info(f"Retrying geocode with simplified address '{simple}'")
        retry = await self.resolve(simple, providers)
        if retry.is_default:
            return GeocodeResult(
                coordinate=retry.coordinate,
                source=DEFAULT_SOURCE,
                attempts=result.attempts + retry.attempts,
            )
        return retry

    async def reverse(self, coordinate: Coordinate) -> Optional[str]:
        """Best-effort address lookup for a coordinate; None when no provider can answer."""

        for provider in self.providers:
            if not provider.available:
                continue
            try:
                address = await provider.reverse(coordinate)
            except ProviderUnavailable as exc:
                logger.warning(f"Reverse geocoding via {provider.name} failed: {exc.reason}")
                continue
            if address:
                return address
        return None

    async def _run_chain(self, query: GeocodeQuery) -> tuple[Optional[GeocodeResult], tuple[ProviderAttempt, ...]]:
        attempts: list[ProviderAttempt] = []
        by_name = {provider.name: provider for provider in self.providers}
        for name in query.providers:
            provider = by_name.get(name)
            if provider is None:
                logger.warning(f"Unknown geocoding provider '{name}' requested; skipping")
                attempts.append(ProviderAttempt(name, "skipped", "unknown provider"))
                continue
            if not provider.available:
                logger.debug(f"Skipping geocoding provider {provider.name}: not configured")
                attempts.append(ProviderAttempt(provider.name, "skipped", "not configured"))
                continue
            try:
                coordinate = await provider.attempt(query.address)
            except ProviderUnavailable as exc:
                logger.warning(f"Geocoding provider {provider.name} failed for '{query.address}': {exc.reason}")
                attempts.append(ProviderAttempt(provider.name, "error", exc.reason))
                continue
            except Exception as exc:
                logger.exception(f"Unexpected error from geocoding provider {provider.name}: {exc}")
                attempts.append(ProviderAttempt(provider.name, "error", str(exc)))
                continue
            if coordinate is None:
                logger.info(f"Geocoding provider {provider.name} returned no results for '{query.address}'")
                attempts.append(ProviderAttempt(provider.name, "empty"))
                continue
            logger.info(f"Geocoding provider {provider.name} resolved '{query.address}' to {coordinate.as_tuple()}")
            attempts.append(ProviderAttempt(provider.name, "success"))
            return GeocodeResult(coordinate=coordinate, source=provider.name, attempts=tuple(attempts)), tuple(attempts)
        return None, tuple(attempts)

    def _default_result(self, attempts: tuple[ProviderAttempt, ...]) -> GeocodeResult:
        return GeocodeResult(coordinate=self.default, source=DEFAULT_SOURCE, attempts=attempts)

    def _remember(self, key: tuple[str, tuple[str, ...]], result: GeocodeResult) -> None:
        if self.cache_size <= 0:
            return
        self._cache[key] = result
        self._cache.move_to_end(key)
        while len(self._cache) > self.cache_size:
            self._cache.popitem(last=False)
