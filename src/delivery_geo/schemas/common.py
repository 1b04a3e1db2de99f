"""Shared request/response schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field

from ..models.domain import BoundingBox, Coordinate


class CoordinateModel(BaseModel):
    latitude: float = Field(..., ge=-90, le=90, allow_inf_nan=False)
    longitude: float = Field(..., ge=-180, le=180, allow_inf_nan=False)

    def to_domain(self) -> Coordinate:
        return Coordinate(self.latitude, self.longitude)

    @classmethod
    def from_domain(cls, coordinate: Coordinate) -> "CoordinateModel":
        return cls(latitude=coordinate.latitude, longitude=coordinate.longitude)


class BoundingBoxModel(BaseModel):
    south: float
    west: float
    north: float
    east: float

    @classmethod
    def from_domain(cls, box: BoundingBox) -> "BoundingBoxModel":
        return cls(south=box.south, west=box.west, north=box.north, east=box.east)
