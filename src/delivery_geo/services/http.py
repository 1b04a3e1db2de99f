"""Shared async HTTP helper for external geocoding and routing providers."""

from __future__ import annotations

from typing import Any, Mapping, Optional

import httpx

from ..exceptions import ProviderUnavailable

PLACEHOLDER_API_KEYS = frozenset({"", "your_google_maps_api_key_here"})


def has_usable_key(api_key: Optional[str]) -> bool:
    return api_key is not None and api_key.strip() not in PLACEHOLDER_API_KEYS


async def fetch_json(
    provider: str,
    url: str,
    *,
    params: Mapping[str, Any],
    timeout: float,
    headers: Optional[Mapping[str, str]] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> Any:
    """GET ``url`` and decode JSON, mapping every transport failure to ProviderUnavailable."""

    try:
        if client is not None:
            response = await client.get(url, params=params, headers=headers, timeout=timeout)
        else:
            async with httpx.AsyncClient(timeout=httpx.Timeout(timeout)) as own_client:
                response = await own_client.get(url, params=params, headers=headers)
        response.raise_for_status()
        return response.json()
    except httpx.TimeoutException as exc:
        raise ProviderUnavailable(provider, f"timed out after {timeout:g}s") from exc
    except httpx.HTTPStatusError as exc:
        raise ProviderUnavailable(provider, f"HTTP {exc.response.status_code}") from exc
    except httpx.HTTPError as exc:
        raise ProviderUnavailable(provider, f"request failed: {exc}") from exc
    except ValueError as exc:
        raise ProviderUnavailable(provider, "response was not valid JSON") from exc
