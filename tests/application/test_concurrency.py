"""Concurrent use of the same entities through separate units of work."""

import threading
from datetime import timedelta

import pytest

from ordercore.application.autoship_lifecycle import CancelAutoshipHandler
from ordercore.application.recurring_delivery import ExecuteAutoshipHandler, order_from_autoship
from ordercore.application.update_order_status import UpdateOrderStatusHandler
from ordercore.domain.exceptions import ConcurrentModification, FailureReason
from ordercore.domain.model.order import OrderStatus
from ordercore.domain.service.inventory_ledger import InventoryLedger
from tests.fakes import T0, stock_of, stored_status

FIRST_RUN = T0 + timedelta(days=30)


def _race(n, target):
    """Run ``target(i)`` on ``n`` threads released at the same moment."""
    barrier = threading.Barrier(n)
    results = [None] * n

    def worker(i):
        barrier.wait()
        results[i] = target(i)

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(n)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return results


class TestConcurrentAutoshipCancel:

    @pytest.mark.parametrize("attempt", range(10))
    def test_exactly_one_cancel_wins(self, create_autoship, uow_factory, clock, backend, attempt):
        autoship_id = create_autoship()
        handler = CancelAutoshipHandler(uow_factory, clock)

        results = _race(2, lambda i: handler.handle(autoship_id))

        assert sum(1 for r in results if r.ok) == 1
        (loser,) = [r for r in results if not r.ok]
        assert loser.reason in (FailureReason.INVALID_STATE, FailureReason.CONCURRENT_MODIFICATION)
        assert backend.tables["autoships"][autoship_id]["status"] == "cancelled"

    def test_interleaved_units_of_work(self, create_autoship, uow_factory, clock):
        autoship_id = create_autoship()
        first, second = uow_factory(), uow_factory()
        a = first.autoships.get_by_id(autoship_id)
        b = second.autoships.get_by_id(autoship_id)

        a.cancel(now=clock())
        first.autoships.save(a)
        first.commit()

        b.pause(now=clock())
        second.autoships.save(b)
        with pytest.raises(ConcurrentModification, match="modified concurrently"):
            second.commit()


class TestConcurrentOrderUpdates:

    def test_double_cancel_releases_once(self, place_order, uow_factory, clock, backend):
        order_id = place_order()
        first, second = uow_factory(), uow_factory()
        orders = [first.orders.get_by_id(order_id), second.orders.get_by_id(order_id)]
        for uow, order in zip((first, second), orders):
            order.transition_to(OrderStatus.CANCELLED, now=clock())
            InventoryLedger(uow.inventory).release_for_order(order)
            uow.orders.save(order, OrderStatus.CANCELLED)

        first.commit()
        with pytest.raises(ConcurrentModification):
            second.commit()

        assert stock_of(backend, "sku-a") == 20
        assert stock_of(backend, "sku-b") == 10

    def test_threaded_double_cancel_releases_once(self, place_order, uow_factory, clock, backend):
        order_id = place_order()
        handler = UpdateOrderStatusHandler(uow_factory, clock)

        results = _race(4, lambda i: handler.handle(order_id, "cancelled"))

        assert sum(1 for r in results if r.ok) == 1
        assert {r.reason for r in results if not r.ok} <= {
            FailureReason.INVALID_TRANSITION,
            FailureReason.CONCURRENT_MODIFICATION,
        }
        assert stock_of(backend, "sku-a") == 20
        assert stock_of(backend, "sku-b") == 10

    def test_refund_lands_after_concurrent_processing(self, place_order, uow_factory, clock, backend):
        order_id = place_order(statuses=["paid"])
        refund = uow_factory()
        order = refund.orders.get_by_id(order_id)
        order.transition_to(OrderStatus.REFUNDED, now=clock())
        InventoryLedger(refund.inventory).release_for_order(order)
        refund.orders.save(order, OrderStatus.REFUNDED)

        assert UpdateOrderStatusHandler(uow_factory, clock).handle(order_id, "processing").ok
        refund.commit()

        assert stored_status(backend, order_id) == "refunded"
        assert stock_of(backend, "sku-a") == 20

    def test_stale_cancel_after_ship_is_rejected(self, place_order, uow_factory, clock, backend):
        order_id = place_order(statuses=["paid", "processing"])
        stale = uow_factory()
        order = stale.orders.get_by_id(order_id)
        order.transition_to(OrderStatus.REFUNDED, now=clock())
        InventoryLedger(stale.inventory).release_for_order(order)
        stale.orders.save(order, OrderStatus.REFUNDED)

        assert UpdateOrderStatusHandler(uow_factory, clock).handle(order_id, "shipped").ok
        with pytest.raises(ConcurrentModification):
            stale.commit()

        assert stored_status(backend, order_id) == "shipped"
        assert stock_of(backend, "sku-a") == 18


class TestConcurrentDelivery:

    def test_racing_trigger_loses_without_second_order(self, create_autoship, uow_factory, clock, backend):
        autoship_id = create_autoship()
        clock.now = FIRST_RUN
        rival = ExecuteAutoshipHandler(uow_factory, clock)
        rival_results = []

        def racing_factory(autoship, now):
            # The rival trigger commits the same cycle while we build the order.
            if not rival_results:
                rival_results.append(rival.handle(autoship.id))
            return order_from_autoship(autoship, now)

        result = ExecuteAutoshipHandler(uow_factory, clock, order_factory=racing_factory).handle(
            autoship_id
        )

        assert rival_results[0].ok
        assert result.reason is FailureReason.CONCURRENT_MODIFICATION
        assert len(backend.tables["orders"]) == 1
        assert stock_of(backend, "sku-a") == 18
        (run,) = backend.tables["autoship_runs"].values()
        assert run["status"] == "completed"

    def test_threaded_triggers_create_one_order(self, create_autoship, uow_factory, clock, backend):
        autoship_id = create_autoship()
        clock.now = FIRST_RUN
        handler = ExecuteAutoshipHandler(uow_factory, clock)

        results = _race(3, lambda i: handler.handle(autoship_id, scheduled_at=FIRST_RUN))

        fresh = [r for r in results if r.ok and not r.value.already_executed]
        assert len(fresh) == 1
        assert len(backend.tables["orders"]) == 1
        assert stock_of(backend, "sku-a") == 18
