import pytest

from ordercore.application.create_autoship import CreateAutoshipHandler
from ordercore.application.dto import AutoshipItemSpec, OrderItemSpec
from ordercore.application.place_order import PlaceOrderHandler
from ordercore.application.update_order_status import UpdateOrderStatusHandler
from ordercore.domain.model.value_objects import Frequency
from tests.fakes import T0, FakeClock, MemoryBackend, make_uow_factory, seed_inventory


@pytest.fixture
def backend():
    backend = MemoryBackend()
    seed_inventory(backend, {"sku-a": 20, "sku-b": 10, "sku-c": 5})
    return backend


@pytest.fixture
def uow_factory(backend):
    return make_uow_factory(backend)


@pytest.fixture
def clock():
    return FakeClock(T0)


@pytest.fixture
def place_order(uow_factory, clock):
    """Place a one-time order and walk it through ``statuses``; returns its id."""

    def _place(items=(("sku-a", 2, 15_000), ("sku-b", 1, 40_000)), statuses=()):
        specs = [OrderItemSpec(pid, qty, price) for pid, qty, price in items]
        result = PlaceOrderHandler(uow_factory, clock).handle("cust-1", specs)
        assert result.ok, result
        order_id = result.value.id
        update = UpdateOrderStatusHandler(uow_factory, clock)
        for status in statuses:
            moved = update.handle(order_id, status)
            assert moved.ok, moved
        return order_id

    return _place


@pytest.fixture
def create_autoship(uow_factory, clock):
    """Create an autoship delivering 2 x sku-a and 1 x sku-b every 30 days; returns its id."""
    def _create(start_at=None, items=(("sku-a", 2), ("sku-b", 1)), frequency="30d"):
        specs = [AutoshipItemSpec(pid, qty, 15_000, 13_500) for pid, qty in items]
        result = CreateAutoshipHandler(uow_factory, clock).handle(
            "cust-1", specs, Frequency.parse(frequency), start_at=start_at
        )
        assert result.ok, result
        return result.value.id

    return _create
