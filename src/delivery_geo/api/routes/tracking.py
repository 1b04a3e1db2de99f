"""Live delivery tracking endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from ...exceptions import NoDataYet
from ...schemas.common import BoundingBoxModel, CoordinateModel
from ...schemas.tracking import (
    DriverUpdateRequest,
    RouteSnapshotModel,
    TrackingResponse,
    TrackingStartRequest,
)
from ...services.routing import RouteEstimator, TrackingRegistry
from ..dependencies import get_registry

router = APIRouter(prefix="/tracking", tags=["tracking"])


def _to_response(order_id: str, estimator: RouteEstimator) -> TrackingResponse:
    snapshot = estimator.current
    if snapshot is None:
        return TrackingResponse(order_id=order_id, state=estimator.state.value)
    return TrackingResponse(
        order_id=order_id,
        state=estimator.state.value,
        snapshot=RouteSnapshotModel(
            origin_kind=snapshot.origin_kind,
            origin=CoordinateModel.from_domain(snapshot.origin),
            distance_text=snapshot.distance_text,
            duration_text=snapshot.duration_text,
            distance_meters=snapshot.distance_meters,
            duration_seconds=snapshot.duration_seconds,
            eta=snapshot.eta,
            bounding_box=BoundingBoxModel.from_domain(snapshot.bounding_box),
            provider=snapshot.provider,
            computed_at=snapshot.computed_at,
            stale=snapshot.stale,
        ),
    )


def _lookup(registry: TrackingRegistry, order_id: str) -> RouteEstimator:
    try:
        return registry.get(order_id)
    except KeyError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc.args[0])) from exc


@router.post("/{order_id}", response_model=TrackingResponse, status_code=status.HTTP_202_ACCEPTED)
async def start_tracking(
    order_id: str,
    payload: TrackingStartRequest,
    registry: TrackingRegistry = Depends(get_registry),
) -> TrackingResponse:
    estimator = registry.start(
        order_id,
        shop=payload.shop.to_domain(),
        customer=payload.customer.to_domain(),
        driver=payload.driver.to_domain() if payload.driver else None,
        awaiting_pickup=payload.awaiting_pickup,
    )
    return _to_response(order_id, estimator)


@router.put("/{order_id}/driver", response_model=TrackingResponse, status_code=status.HTTP_202_ACCEPTED)
async def update_driver(
    order_id: str,
    payload: DriverUpdateRequest,
    registry: TrackingRegistry = Depends(get_registry),
) -> TrackingResponse:
    estimator = _lookup(registry, order_id)
    estimator.update_driver(payload.driver.to_domain() if payload.driver else None)
    return _to_response(order_id, estimator)


@router.get("/{order_id}", response_model=TrackingResponse, status_code=status.HTTP_200_OK)
async def get_tracking(order_id: str, registry: TrackingRegistry = Depends(get_registry)) -> TrackingResponse:
    estimator = _lookup(registry, order_id)
    try:
        estimator.snapshot()
    except NoDataYet as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"message": exc.message, "code": exc.code, "details": exc.details},
        ) from exc
    return _to_response(order_id, estimator)


@router.delete("/{order_id}", status_code=status.HTTP_200_OK)
async def stop_tracking(order_id: str, registry: TrackingRegistry = Depends(get_registry)) -> dict:
    try:
        await registry.stop(order_id)
    except KeyError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc.args[0])) from exc
    return {"order_id": order_id, "state": "stopped"}
