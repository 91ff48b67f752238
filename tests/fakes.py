"""In-memory fakes for testing.

``MemoryBackend`` implements the same StoreBackend contract as the JSON
file backend (private copies, exclusive transactions, nothing persisted
on error) but keeps the document in a dict.  No file I/O, no side
effects.  Tests run the real StoreUnitOfWork and repositories on top of
it.
"""

from __future__ import annotations

import copy
import threading
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Iterator

from ordercore.domain.exceptions import StoreUnavailable
from ordercore.infrastructure.persistence.store import StoreBackend, Tables, empty_tables
from ordercore.infrastructure.persistence.unit_of_work import StoreUnitOfWork

T0 = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


class MemoryBackend(StoreBackend):

    def __init__(self, tables: Tables | None = None) -> None:
        self.tables = tables or empty_tables()
        self.commits = 0
        self._lock = threading.Lock()

    def read(self) -> Tables:
        with self._lock:
            return copy.deepcopy(self.tables)

    @contextmanager
    def transaction(self) -> Iterator[Tables]:
        with self._lock:
            working = copy.deepcopy(self.tables)
            yield working
            self.tables = working
            self.commits += 1


class UnavailableBackend(StoreBackend):
    """A store that is down."""

    def read(self) -> Tables:
        raise StoreUnavailable("connection refused")

    def transaction(self):
        raise StoreUnavailable("connection refused")


class FakeClock:

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


def make_uow_factory(backend: StoreBackend):
    return lambda: StoreUnitOfWork(backend)


def seed_inventory(backend: MemoryBackend, stock: dict[str, int], threshold: int = 10) -> None:
    for product_id, quantity in stock.items():
        backend.tables["inventory"][product_id] = {
            "product_ref": product_id,
            "quantity": quantity,
            "low_stock_threshold": threshold,
        }


def stock_of(backend: MemoryBackend, product_id: str) -> int:
    return backend.tables["inventory"][product_id]["quantity"]


def stored_status(backend: MemoryBackend, order_id: str) -> str:
    return backend.tables["orders"][order_id]["status"]
