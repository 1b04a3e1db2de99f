"""Distance and delivery charge endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from ...exceptions import ImplausibleDistance
from ...schemas.estimates import (
    ChargeRequest,
    ChargeResponse,
    DistanceRequest,
    DistanceResponse,
    ShopChargeModel,
)
from ...services.geospatial import charge_for_distance, distance, format_distance
from ...services.pricing import estimate_all, shop_from_record

router = APIRouter(prefix="/estimates", tags=["estimates"])


@router.post("/distance", response_model=DistanceResponse, status_code=status.HTTP_200_OK)
def estimate_distance(payload: DistanceRequest) -> DistanceResponse:
    try:
        distance_km = distance(payload.origin.to_domain(), payload.destination.to_domain())
    except ImplausibleDistance as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message) from exc
    return DistanceResponse(
        distance_km=round(distance_km, 1),
        distance_text=format_distance(distance_km),
        charge=charge_for_distance(distance_km),
    )


@router.post("/charges", response_model=ChargeResponse, status_code=status.HTTP_200_OK)
def estimate_charges(payload: ChargeRequest) -> ChargeResponse:
    shops = [shop_from_record(shop.model_dump()) for shop in payload.shops]
    estimates = estimate_all(payload.customer.to_domain(), shops)
    return ChargeResponse(
        estimates={
            shop_id: ShopChargeModel(
                shop_id=estimate.shop_id,
                distance_km=estimate.distance_km,
                charge=estimate.charge,
                fallback=estimate.fallback,
            )
            for shop_id, estimate in estimates.items()
        }
    )
