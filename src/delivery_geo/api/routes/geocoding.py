"""Geocoding endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from ...models.domain import Coordinate
from ...schemas.common import CoordinateModel
from ...schemas.geocoding import (
    GeocodeRequest,
    GeocodeResponse,
    ProviderAttemptModel,
    ReverseGeocodeResponse,
)
from ...services.geocoding import GeocodingResolver
from ..dependencies import get_resolver

router = APIRouter(prefix="/geocode", tags=["geocoding"])


@router.post("", response_model=GeocodeResponse, status_code=status.HTTP_200_OK)
async def geocode(payload: GeocodeRequest, resolver: GeocodingResolver = Depends(get_resolver)) -> GeocodeResponse:
    if payload.components is not None:
        result = await resolver.resolve_components(payload.components.model_dump(), payload.providers)
    else:
        result = await resolver.resolve(payload.address or "", payload.providers)
    return GeocodeResponse(
        latitude=result.coordinate.latitude,
        longitude=result.coordinate.longitude,
        source=result.source,
        is_default=result.is_default,
        attempts=[
            ProviderAttemptModel(provider=attempt.provider, outcome=attempt.outcome, detail=attempt.detail)
            for attempt in result.attempts
        ],
    )


@router.get("/reverse", response_model=ReverseGeocodeResponse, status_code=status.HTTP_200_OK)
async def reverse_geocode(
    latitude: float = Query(..., ge=-90, le=90),
    longitude: float = Query(..., ge=-180, le=180),
    resolver: GeocodingResolver = Depends(get_resolver),
) -> ReverseGeocodeResponse:
    coordinate = Coordinate(latitude, longitude)
    address = await resolver.reverse(coordinate)
    return ReverseGeocodeResponse(coordinate=CoordinateModel.from_domain(coordinate), address=address)
