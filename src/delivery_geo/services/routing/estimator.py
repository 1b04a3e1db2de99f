"""Live route/ETA estimation for one active delivery.

The estimator owns a single background task that refreshes the route every
``refresh_seconds`` and immediately whenever its inputs change. Every refresh
takes a fresh token; a response is applied only while its token is still the
current one, so a late answer to a superseded request is dropped.
"""

from __future__ import annotations

import asyncio
import contextlib
import dataclasses
import logging
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Optional

from ...config import settings
from ...exceptions import NoDataYet, ProviderUnavailable
from ...models.domain import Coordinate, OriginKind, RouteSnapshot
from ..geospatial import bounding_box, haversine_km
from .base import RoutingProvider

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class EstimatorState(str, Enum):
    IDLE = "idle"
    RESOLVING = "resolving"
    ACTIVE = "active"
    STOPPED = "stopped"


class RouteEstimator:
    def __init__(
        self,
        router: RoutingProvider,
        *,
        shop: Optional[Coordinate] = None,
        customer: Optional[Coordinate] = None,
        driver: Optional[Coordinate] = None,
        awaiting_pickup: bool = False,
        refresh_seconds: float | None = None,
        movement_threshold_km: float | None = None,
        clock: Clock = utc_now,
        label: str = "",
    ) -> None:
        self._router = router
        self._shop = shop
        self._customer = customer
        self._driver = driver
        self._awaiting_pickup = awaiting_pickup
        self.refresh_seconds = settings.route_refresh_seconds if refresh_seconds is None else refresh_seconds
        if self.refresh_seconds <= 0:
            raise ValueError(f"refresh_seconds must be positive, got {self.refresh_seconds}")
        self.movement_threshold_km = (
            settings.driver_movement_threshold_km if movement_threshold_km is None else movement_threshold_km
        )
        self._clock = clock
        self.label = label or hex(id(self))

        self._state = (
            EstimatorState.RESOLVING if shop is not None and customer is not None else EstimatorState.IDLE
        )
        self._snapshot: Optional[RouteSnapshot] = None
        self._last_origin: Optional[Coordinate] = None
        self._token = 0
        self._wake = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------
    @property
    def state(self) -> EstimatorState:
        return self._state

    @property
    def current(self) -> Optional[RouteSnapshot]:
        return self._snapshot

    @property
    def stale(self) -> bool:
        return bool(self._snapshot and self._snapshot.stale)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def snapshot(self) -> RouteSnapshot:
        if self._snapshot is None:
            raise NoDataYet(
                f"No route estimate yet for {self.label} (state: {self._state.value})",
                details={"state": self._state.value},
            )
        return self._snapshot

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------
    def set_endpoints(self, shop: Optional[Coordinate], customer: Optional[Coordinate]) -> None:
        if self._state is EstimatorState.STOPPED:
            return
        if shop == self._shop and customer == self._customer:
            return
        self._shop = shop
        self._customer = customer
        if shop is None or customer is None:
            self._snapshot = None
            self._transition(EstimatorState.IDLE)
        elif self._state is EstimatorState.IDLE:
            self._transition(EstimatorState.RESOLVING)
        self._invalidate()

    def update_driver(self, driver: Optional[Coordinate]) -> None:
        """Record a new driver position; triggers a refresh when it moved away from the last origin."""

        if self._state is EstimatorState.STOPPED:
            return
        self._driver = driver
        if self._driver_moved():
            self._invalidate()

    def set_awaiting_pickup(self, awaiting_pickup: bool) -> None:
        if self._state is EstimatorState.STOPPED or awaiting_pickup == self._awaiting_pickup:
            return
        self._awaiting_pickup = awaiting_pickup
        self._invalidate()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def start(self) -> None:
        """Start the periodic refresh task on the running event loop."""

        if self._state is EstimatorState.STOPPED:
            raise RuntimeError(f"Estimator {self.label} has been stopped")
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name=f"route-estimator-{self.label}")

    async def stop(self) -> None:
        if self._state is EstimatorState.STOPPED:
            return
        self._transition(EstimatorState.STOPPED)
        self._token += 1
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def refresh(self) -> Optional[RouteSnapshot]:
        """Run one routing request and publish the result if it is still current."""

        if self._state is EstimatorState.STOPPED:
            return self._snapshot
        if self._shop is None or self._customer is None:
            self._transition(EstimatorState.IDLE)
            return None

        self._token += 1
        token = self._token
        origin_kind, origin, waypoints = self._plan()

        try:
            result = await self._router.attempt(waypoints)
        except ProviderUnavailable as exc:
            if token == self._token:
                self._mark_stale(exc.reason)
            return self._snapshot

        if token != self._token or self._state is EstimatorState.STOPPED:
            logger.debug(f"Discarding superseded route response for {self.label}")
            return self._snapshot

        now = self._clock()
        bounds_points = [self._shop, self._customer]
        driver = self._usable_driver()
        if driver is not None:
            bounds_points.append(driver)
        snapshot = RouteSnapshot(
            origin_kind=origin_kind,
            origin=origin,
            distance_text=result.distance_text,
            duration_text=result.duration_text,
            distance_meters=result.distance_meters,
            duration_seconds=result.duration_seconds,
            eta=now + timedelta(seconds=result.duration_seconds),
            bounding_box=bounding_box(bounds_points),
            provider=result.provider,
            computed_at=now,
            geometry=result.geometry,
        )
        self._snapshot = snapshot
        self._last_origin = origin
        self._transition(EstimatorState.ACTIVE)
        return snapshot

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    async def _run(self) -> None:
        while self._state is not EstimatorState.STOPPED:
            self._wake.clear()
            try:
                await self.refresh()
            except Exception as exc:
                logger.exception(f"Unexpected error refreshing route for {self.label}: {exc}")
                self._mark_stale(str(exc))
            try:
                await asyncio.wait_for(self._wake.wait(), timeout=self.refresh_seconds)
            except asyncio.TimeoutError:
                pass

    def _plan(self) -> tuple[OriginKind, Coordinate, list[Coordinate]]:
        driver = self._usable_driver()
        if driver is None:
            return "shop", self._shop, [self._shop, self._customer]
        if self._awaiting_pickup:
            return "driver", driver, [driver, self._shop, self._customer]
        return "driver", driver, [driver, self._customer]

    def _usable_driver(self) -> Optional[Coordinate]:
        if self._driver is None or self._driver.is_null_island:
            return None
        return self._driver

    def _driver_moved(self) -> bool:
        driver = self._usable_driver()
        if driver is None:
            return self._last_origin is not None and self._last_origin != self._shop
        if self._last_origin is None:
            return True
        moved_km = haversine_km(
            driver.latitude, driver.longitude, self._last_origin.latitude, self._last_origin.longitude
        )
        return driver != self._last_origin and moved_km >= self.movement_threshold_km

    def _invalidate(self) -> None:
        self._token += 1
        self._wake.set()

    def _mark_stale(self, reason: str) -> None:
        if self._snapshot is None:
            logger.warning(f"Route request for {self.label} failed while {self._state.value}: {reason}")
            return
        logger.warning(f"Route refresh for {self.label} failed, keeping last estimate: {reason}")
        if not self._snapshot.stale:
            self._snapshot = dataclasses.replace(self._snapshot, stale=True)

    def _transition(self, state: EstimatorState) -> None:
        if state is self._state:
            return
        logger.info(f"Route estimator {self.label}: {self._state.value} -> {state.value}")
        self._state = state
