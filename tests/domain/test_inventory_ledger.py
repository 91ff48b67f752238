"""Unit tests for the InventoryLedger domain service."""

import pytest

from ordercore.domain.exceptions import InsufficientStock, ProductNotFound, ValidationError
from ordercore.domain.model.inventory import MovementReason
from ordercore.domain.model.order import Order, OrderItem, OrderStatus
from ordercore.domain.model.value_objects import Money, Quantity
from ordercore.domain.service.inventory_ledger import InventoryLedger
from ordercore.infrastructure.persistence.unit_of_work import StoreUnitOfWork
from tests.fakes import MemoryBackend, seed_inventory, stock_of


def _make_order(items: list[tuple[str, int]]) -> Order:
    """Create an order with given (product_id, qty) tuples."""
    return Order.create(
        "cust-1",
        [OrderItem(pid, Quantity(qty), Money(10_000), Money(10_000)) for pid, qty in items],
    )


def _setup(stock: dict[str, int]):
    backend = MemoryBackend()
    seed_inventory(backend, stock)
    uow = StoreUnitOfWork(backend)
    return backend, uow, InventoryLedger(uow.inventory)


class TestReserveForOrder:

    def test_reserves_every_line(self):
        backend, uow, ledger = _setup({"sku-a": 10, "sku-b": 5})
        ledger.reserve_for_order(_make_order([("sku-a", 3), ("sku-b", 5)]))
        uow.commit()
        assert stock_of(backend, "sku-a") == 7
        assert stock_of(backend, "sku-b") == 0

    def test_lines_of_the_same_product_are_summed(self):
        backend, uow, ledger = _setup({"sku-a": 5})
        with pytest.raises(InsufficientStock, match="need 6, have 5"):
            ledger.reserve_for_order(_make_order([("sku-a", 3), ("sku-a", 3)]))

    def test_all_or_nothing(self):
        backend, uow, ledger = _setup({"sku-a": 10, "sku-b": 1})
        with pytest.raises(InsufficientStock):
            ledger.reserve_for_order(_make_order([("sku-a", 3), ("sku-b", 2)]))
        uow.rollback()
        assert stock_of(backend, "sku-a") == 10
        assert backend.tables["movements"] == []

    def test_unknown_product_rejected(self):
        _, _, ledger = _setup({"sku-a": 10})
        with pytest.raises(ProductNotFound, match="sku-z"):
            ledger.reserve_for_order(_make_order([("sku-z", 1)]))


class TestReleaseForOrder:

    def test_releases_each_line_once(self):
        backend, uow, ledger = _setup({"sku-a": 0, "sku-b": 0})
        order = _make_order([("sku-a", 2), ("sku-b", 1)])
        order.status = OrderStatus.CANCELLED
        assert ledger.release_for_order(order) == []
        # Second call finds nothing left to release.
        assert ledger.release_for_order(order) == []
        uow.commit()
        assert stock_of(backend, "sku-a") == 2
        assert stock_of(backend, "sku-b") == 1
        assert all(item.is_released for item in order.items)
        assert [m["reason"] for m in backend.tables["movements"]] == ["order_cancelled"] * 2

    def test_refund_uses_refund_reason(self):
        backend, uow, ledger = _setup({"sku-a": 0})
        order = _make_order([("sku-a", 2)])
        order.status = OrderStatus.REFUNDED
        ledger.release_for_order(order)
        uow.commit()
        assert backend.tables["movements"][0]["reason"] == MovementReason.ORDER_REFUNDED.value
        assert backend.tables["movements"][0]["reference_id"] == order.id

    def test_missing_record_yields_warning(self):
        backend, uow, ledger = _setup({"sku-a": 0})
        order = _make_order([("sku-a", 2), ("sku-gone", 4)])
        order.status = OrderStatus.CANCELLED
        warnings = ledger.release_for_order(order)
        uow.commit()
        assert [(w.product_id, w.quantity) for w in warnings] == [("sku-gone", 4)]
        assert "not found" in str(warnings[0])
        assert stock_of(backend, "sku-a") == 2
        assert not order.items[1].is_released

    def test_non_releasing_status_rejected(self):
        _, _, ledger = _setup({"sku-a": 0})
        order = _make_order([("sku-a", 1)])
        with pytest.raises(ValidationError, match="does not release"):
            ledger.release_for_order(order)


class TestAdjust:

    def test_restock_creates_missing_record(self):
        backend, uow, ledger = _setup({})
        record = ledger.adjust("sku-new", 25, "supplier delivery", MovementReason.RESTOCK)
        uow.commit()
        assert record.quantity == 25
        assert stock_of(backend, "sku-new") == 25
        assert backend.tables["movements"][0]["reason"] == "restock"

    def test_correction_records_note(self):
        backend, uow, ledger = _setup({"sku-a": 10})
        ledger.adjust("sku-a", -2, "damaged in warehouse")
        uow.commit()
        movement = backend.tables["movements"][0]
        assert movement["change"] == -2
        assert movement["reason"] == "adjustment"
        assert movement["note"] == "damaged in warehouse"

    def test_note_alone_does_not_make_a_restock(self):
        backend, uow, ledger = _setup({"sku-a": 10})
        ledger.adjust("sku-a", 5, "restock")
        uow.commit()
        assert backend.tables["movements"][0]["reason"] == "adjustment"

    def test_restock_must_add_stock(self):
        _, _, ledger = _setup({"sku-a": 10})
        with pytest.raises(ValidationError, match="must add stock"):
            ledger.adjust("sku-a", -1, "returned", MovementReason.RESTOCK)

    def test_order_reasons_rejected(self):
        _, _, ledger = _setup({"sku-a": 10})
        with pytest.raises(ValidationError, match="not an administrative movement"):
            ledger.adjust("sku-a", 1, "manual", MovementReason.ORDER_CANCELLED)

    def test_reason_required(self):
        _, _, ledger = _setup({"sku-a": 10})
        with pytest.raises(ValidationError, match="Reason is required"):
            ledger.adjust("sku-a", 1, "  ")

    def test_cannot_go_negative(self):
        _, _, ledger = _setup({"sku-a": 1})
        with pytest.raises(InsufficientStock):
            ledger.adjust("sku-a", -2, "count")

    def test_new_record_uses_configured_threshold(self):
        backend = MemoryBackend()
        uow = StoreUnitOfWork(backend)
        InventoryLedger(uow.inventory, default_threshold=3).adjust("sku-new", 5, "restock")
        uow.commit()
        assert backend.tables["inventory"]["sku-new"]["low_stock_threshold"] == 3
