"""Delivery tracking request/response schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

from .common import BoundingBoxModel, CoordinateModel


class TrackingStartRequest(BaseModel):
    shop: CoordinateModel
    customer: CoordinateModel
    driver: Optional[CoordinateModel] = None
    awaiting_pickup: bool = Field(
        default=False,
        description="Route the driver through the shop before the customer.",
    )


class DriverUpdateRequest(BaseModel):
    driver: Optional[CoordinateModel] = None


class RouteSnapshotModel(BaseModel):
    origin_kind: Literal["driver", "shop"]
    origin: CoordinateModel
    distance_text: str
    duration_text: str
    distance_meters: float
    duration_seconds: float
    eta: datetime
    bounding_box: BoundingBoxModel
    provider: str
    computed_at: datetime
    stale: bool


class TrackingResponse(BaseModel):
    order_id: str
    state: str
    snapshot: Optional[RouteSnapshotModel] = None
