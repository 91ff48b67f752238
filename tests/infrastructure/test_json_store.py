"""Tests for the JSON file backend and the unit of work on top of it."""

import fcntl
import json

import pytest

from ordercore.application.adjust_inventory import AdjustInventoryHandler
from ordercore.application.dto import OrderItemSpec
from ordercore.application.place_order import PlaceOrderHandler
from ordercore.application.show_order import ShowOrderHandler
from ordercore.application.update_order_status import UpdateOrderStatusHandler
from ordercore.domain.exceptions import FailureReason, StoreUnavailable
from ordercore.infrastructure.persistence import json_store
from ordercore.infrastructure.persistence.json_store import JsonFileBackend
from ordercore.infrastructure.persistence.store import SCHEMA_VERSION
from ordercore.infrastructure.persistence.unit_of_work import StoreUnitOfWork
from tests.fakes import FakeClock, T0


@pytest.fixture
def backend(tmp_path):
    return JsonFileBackend(tmp_path / "data", lock_timeout=0.2)


@pytest.fixture
def uow_factory(backend):
    return lambda: StoreUnitOfWork(backend)


def _on_disk(backend):
    return json.loads(backend.file_path.read_text(encoding="utf-8"))


class TestJsonFileBackend:

    def test_missing_file_reads_as_empty_store(self, backend):
        tables = backend.read()
        assert tables["schema_version"] == SCHEMA_VERSION
        assert tables["orders"] == {}
        assert tables["movements"] == []

    def test_transaction_persists_on_clean_exit(self, backend):
        with backend.transaction() as tables:
            tables["orders"]["o-1"] = {"id": "o-1"}
        assert _on_disk(backend)["orders"] == {"o-1": {"id": "o-1"}}

    def test_aborted_transaction_leaves_file_untouched(self, backend):
        with backend.transaction() as tables:
            tables["orders"]["o-1"] = {"id": "o-1"}
        before = backend.file_path.read_bytes()

        with pytest.raises(RuntimeError):
            with backend.transaction() as tables:
                tables["orders"]["o-2"] = {"id": "o-2"}
                raise RuntimeError("boom")

        assert backend.file_path.read_bytes() == before

    def test_failed_write_keeps_previous_document(self, backend, monkeypatch):
        with backend.transaction() as tables:
            tables["orders"]["o-1"] = {"id": "o-1"}
        before = backend.file_path.read_bytes()

        def broken_replace(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr(json_store.os, "replace", broken_replace)
        with pytest.raises(StoreUnavailable, match="disk full"):
            with backend.transaction() as tables:
                tables["orders"]["o-2"] = {"id": "o-2"}
        monkeypatch.undo()

        assert backend.file_path.read_bytes() == before
        leftovers = [p for p in backend.file_path.parent.iterdir() if p.suffix == ".tmp"]
        assert leftovers == []

    def test_lock_timeout_is_store_unavailable(self, backend):
        backend.file_path.parent.mkdir(parents=True, exist_ok=True)
        with open(backend.file_path.parent / ".store.lock", "w") as holder:
            fcntl.flock(holder.fileno(), fcntl.LOCK_EX)
            try:
                with pytest.raises(StoreUnavailable, match="busy"):
                    with backend.transaction():
                        pass
            finally:
                fcntl.flock(holder.fileno(), fcntl.LOCK_UN)


class TestUnitOfWorkOnDisk:

    def test_order_lifecycle_survives_reload(self, tmp_path, uow_factory, backend):
        clock = FakeClock(T0)
        AdjustInventoryHandler(uow_factory).handle("sku-a", 10, "restock")
        placed = PlaceOrderHandler(uow_factory, clock).handle(
            "cust-1", [OrderItemSpec("sku-a", 3, 15_000, 12_000)]
        )
        assert placed.ok
        UpdateOrderStatusHandler(uow_factory, clock).handle(placed.value.id, "cancelled")

        reopened = JsonFileBackend(tmp_path / "data")
        shown = ShowOrderHandler(lambda: StoreUnitOfWork(reopened)).handle(placed.value.id)

        assert shown.value.status == "cancelled"
        assert shown.value.total == 36_000
        assert shown.value.items[0].released_quantity == 3
        assert shown.value.created_at == T0
        assert _on_disk(backend)["inventory"]["sku-a"]["quantity"] == 10
        assert [m["change"] for m in _on_disk(backend)["movements"]] == [10, -3, 3]

    def test_failed_commit_writes_nothing(self, uow_factory, backend):
        AdjustInventoryHandler(uow_factory).handle("sku-a", 2, "restock")
        before = backend.file_path.read_bytes()

        result = PlaceOrderHandler(uow_factory, FakeClock(T0)).handle(
            "cust-1", [OrderItemSpec("sku-a", 3, 15_000)]
        )

        assert result.reason is FailureReason.INSUFFICIENT_STOCK
        assert backend.file_path.read_bytes() == before

    def test_unreadable_store_is_reported(self, backend):
        backend.file_path.parent.mkdir(parents=True, exist_ok=True)
        backend.file_path.mkdir()  # a directory where the file should be
        result = ShowOrderHandler(lambda: StoreUnitOfWork(backend)).handle("o-1")
        assert result.reason is FailureReason.STORE_UNAVAILABLE
