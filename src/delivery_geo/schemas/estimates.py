"""Distance and delivery charge request/response schemas."""

from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel, Field

from .common import CoordinateModel


class DistanceRequest(BaseModel):
    origin: CoordinateModel
    destination: CoordinateModel


class DistanceResponse(BaseModel):
    distance_km: float
    distance_text: str
    charge: int


class ShopInput(BaseModel):
    id: str = Field(..., min_length=1)
    location: Any = Field(
        default=None,
        description=(
            "Shop location as stored on the shop record, {\"lat\": .., \"lng\": ..}. "
            "Missing or unusable locations are priced with the default charge."
        ),
    )


class ChargeRequest(BaseModel):
    customer: CoordinateModel
    shops: List[ShopInput]


class ShopChargeModel(BaseModel):
    shop_id: str
    distance_km: float
    charge: int
    fallback: bool


class ChargeResponse(BaseModel):
    estimates: Dict[str, ShopChargeModel]
