import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from delivery_geo.exceptions import NoDataYet, ProviderUnavailable
from delivery_geo.models.domain import Coordinate, RouteResult
from delivery_geo.services.routing import EstimatorState, RouteEstimator, RoutingProvider, TrackingRegistry

SHOP = Coordinate(12.9716, 77.5946)
CUSTOMER = Coordinate(12.9352, 77.6245)
DRIVER = Coordinate(13.0100, 77.5500)
NOW = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


def _route(distance_m: float = 3200.0, duration_s: float = 780.0) -> RouteResult:
    return RouteResult(
        distance_meters=distance_m,
        duration_seconds=duration_s,
        distance_text=f"{distance_m / 1000:.1f} km",
        duration_text=f"{int(duration_s // 60)} min",
        provider="dummy",
    )


class ScriptedRouter(RoutingProvider):
    """Replays queued outcomes, then repeats the last one."""

    name = "dummy"

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes) or [_route()]
        self.calls: list[list[Coordinate]] = []

    async def attempt(self, waypoints):
        self.calls.append(list(waypoints))
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class GatedRouter(RoutingProvider):
    name = "gated"

    def __init__(self):
        self.gate = asyncio.Event()
        self.calls = 0

    async def attempt(self, waypoints):
        self.calls += 1
        await self.gate.wait()
        return _route()


def _estimator(router, **kwargs) -> RouteEstimator:
    kwargs.setdefault("shop", SHOP)
    kwargs.setdefault("customer", CUSTOMER)
    kwargs.setdefault("clock", lambda: NOW)
    return RouteEstimator(router, **kwargs)


async def _wait_for(predicate, timeout: float = 2.0) -> None:
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.005)


@pytest.mark.asyncio
async def test_snapshot_before_first_refresh_raises_no_data_yet():
    estimator = _estimator(ScriptedRouter())
    assert estimator.state is EstimatorState.RESOLVING
    with pytest.raises(NoDataYet) as excinfo:
        estimator.snapshot()
    assert excinfo.value.details == {"state": "resolving"}


@pytest.mark.asyncio
async def test_refresh_without_endpoints_stays_idle():
    router = ScriptedRouter()
    estimator = RouteEstimator(router)

    assert await estimator.refresh() is None
    assert estimator.state is EstimatorState.IDLE
    assert router.calls == []


@pytest.mark.asyncio
async def test_refresh_publishes_snapshot_with_clock_based_eta():
    estimator = _estimator(ScriptedRouter(_route(duration_s=780.0)))

    snapshot = await estimator.refresh()

    assert estimator.state is EstimatorState.ACTIVE
    assert estimator.snapshot() is snapshot
    assert snapshot.origin_kind == "shop"
    assert snapshot.origin == SHOP
    assert snapshot.eta == NOW + timedelta(seconds=780)
    assert snapshot.computed_at == NOW
    assert snapshot.stale is False
    assert snapshot.bounding_box.contains(SHOP)
    assert snapshot.bounding_box.contains(CUSTOMER)


@pytest.mark.asyncio
async def test_origin_switches_from_shop_to_driver():
    router = ScriptedRouter()
    estimator = _estimator(router)

    first = await estimator.refresh()
    estimator.update_driver(DRIVER)
    second = await estimator.refresh()

    assert first.origin_kind == "shop"
    assert second.origin_kind == "driver"
    assert second.origin == DRIVER
    assert second.bounding_box.contains(DRIVER)
    assert router.calls == [[SHOP, CUSTOMER], [DRIVER, CUSTOMER]]


@pytest.mark.asyncio
async def test_awaiting_pickup_routes_through_shop():
    router = ScriptedRouter()
    estimator = _estimator(router, driver=DRIVER, awaiting_pickup=True)

    await estimator.refresh()
    estimator.set_awaiting_pickup(False)
    await estimator.refresh()

    assert router.calls == [[DRIVER, SHOP, CUSTOMER], [DRIVER, CUSTOMER]]


@pytest.mark.asyncio
async def test_null_island_driver_is_ignored():
    router = ScriptedRouter()
    estimator = _estimator(router, driver=Coordinate(0.0, 0.0))

    snapshot = await estimator.refresh()

    assert snapshot.origin_kind == "shop"
    assert not snapshot.bounding_box.contains(Coordinate(0.0, 0.0))


@pytest.mark.asyncio
async def test_failure_keeps_last_snapshot_marked_stale():
    router = ScriptedRouter(
        _route(distance_m=3200.0),
        ProviderUnavailable("chain", "osrm: HTTP 502"),
        _route(distance_m=2900.0),
    )
    estimator = _estimator(router)

    fresh = await estimator.refresh()
    stale = await estimator.refresh()

    assert estimator.state is EstimatorState.ACTIVE
    assert stale.stale is True
    assert estimator.stale is True
    assert stale.distance_meters == fresh.distance_meters
    assert stale.eta == fresh.eta
    assert fresh.stale is False

    recovered = await estimator.refresh()
    assert recovered.stale is False
    assert recovered.distance_meters == 2900.0


@pytest.mark.asyncio
async def test_failure_before_first_estimate_stays_resolving():
    estimator = _estimator(ScriptedRouter(ProviderUnavailable("chain", "no routing provider configured")))

    assert await estimator.refresh() is None
    assert estimator.state is EstimatorState.RESOLVING
    with pytest.raises(NoDataYet):
        estimator.snapshot()


@pytest.mark.asyncio
async def test_superseded_response_is_discarded():
    router = GatedRouter()
    estimator = _estimator(router)

    pending = asyncio.create_task(estimator.refresh())
    await _wait_for(lambda: router.calls == 1)
    estimator.update_driver(DRIVER)
    router.gate.set()

    assert await pending is None
    assert estimator.current is None
    assert estimator.state is EstimatorState.RESOLVING


@pytest.mark.asyncio
async def test_clearing_an_endpoint_returns_to_idle():
    estimator = _estimator(ScriptedRouter())
    await estimator.refresh()

    estimator.set_endpoints(SHOP, None)

    assert estimator.state is EstimatorState.IDLE
    assert estimator.current is None

    estimator.set_endpoints(SHOP, CUSTOMER)
    assert estimator.state is EstimatorState.RESOLVING


@pytest.mark.asyncio
async def test_background_loop_refreshes_periodically():
    router = ScriptedRouter()
    estimator = _estimator(router, refresh_seconds=0.01)

    estimator.start()
    try:
        await _wait_for(lambda: len(router.calls) >= 3)
    finally:
        await estimator.stop()

    assert estimator.state is EstimatorState.STOPPED


@pytest.mark.asyncio
async def test_driver_update_triggers_immediate_refresh():
    router = ScriptedRouter()
    estimator = _estimator(router, refresh_seconds=60)

    estimator.start()
    try:
        await _wait_for(lambda: estimator.current is not None)
        estimator.update_driver(DRIVER)
        await _wait_for(lambda: estimator.current.origin_kind == "driver")
    finally:
        await estimator.stop()

    assert len(router.calls) == 2


@pytest.mark.asyncio
async def test_small_driver_moves_below_threshold_do_not_refresh():
    router = ScriptedRouter()
    estimator = _estimator(router, driver=DRIVER, refresh_seconds=60, movement_threshold_km=1.0)

    estimator.start()
    try:
        await _wait_for(lambda: estimator.current is not None)
        estimator.update_driver(Coordinate(DRIVER.latitude + 0.001, DRIVER.longitude))
        await asyncio.sleep(0.05)
        assert len(router.calls) == 1
    finally:
        await estimator.stop()


@pytest.mark.asyncio
async def test_unexpected_errors_do_not_kill_the_loop():
    router = ScriptedRouter(_route(), RuntimeError("boom"), _route(duration_s=120.0))
    estimator = _estimator(router, refresh_seconds=0.01)

    estimator.start()
    try:
        await _wait_for(lambda: len(router.calls) >= 3)
        assert estimator.running
    finally:
        await estimator.stop()


@pytest.mark.asyncio
async def test_stop_cancels_task_and_blocks_restart():
    router = GatedRouter()
    estimator = _estimator(router)

    estimator.start()
    await _wait_for(lambda: router.calls == 1)
    await estimator.stop()

    assert not estimator.running
    assert estimator.state is EstimatorState.STOPPED
    with pytest.raises(RuntimeError):
        estimator.start()
    estimator.update_driver(DRIVER)
    assert router.calls == 1


@pytest.mark.asyncio
async def test_registry_reuses_estimator_per_order():
    registry = TrackingRegistry(ScriptedRouter, refresh_seconds=60)

    first = registry.start("order-1", shop=SHOP, customer=CUSTOMER)
    second = registry.start("order-1", shop=SHOP, customer=CUSTOMER, driver=DRIVER)

    assert first is second
    assert "order-1" in registry
    assert len(registry) == 1
    await registry.shutdown()
    assert len(registry) == 0
    assert first.state is EstimatorState.STOPPED


@pytest.mark.asyncio
async def test_registry_unknown_order_raises_key_error():
    registry = TrackingRegistry(ScriptedRouter)

    with pytest.raises(KeyError):
        registry.get("missing")
    with pytest.raises(KeyError):
        registry.update_driver("missing", DRIVER)
    with pytest.raises(KeyError):
        await registry.stop("missing")


@pytest.mark.asyncio
async def test_registry_stop_removes_order():
    registry = TrackingRegistry(ScriptedRouter, refresh_seconds=60)
    estimator = registry.start("order-2", shop=SHOP, customer=CUSTOMER)

    await registry.stop("order-2")

    assert "order-2" not in registry
    assert estimator.state is EstimatorState.STOPPED


@pytest.mark.asyncio
async def test_explicit_refresh_interval_is_kept():
    assert _estimator(ScriptedRouter(), refresh_seconds=0.5).refresh_seconds == 0.5
    assert _estimator(ScriptedRouter(), movement_threshold_km=0).movement_threshold_km == 0


@pytest.mark.asyncio
async def test_non_positive_refresh_interval_is_rejected():
    with pytest.raises(ValueError):
        _estimator(ScriptedRouter(), refresh_seconds=0)
