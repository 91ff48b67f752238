"""Unit of work: one atomic read-check-write against the store.

Every state-changing use case opens a unit of work, reads through its
repositories, stages writes, and calls ``commit()``.  Either every
staged write lands or none does.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ordercore.domain.repository.autoship_repository import (
    AutoshipRepository,
    AutoshipRunRepository,
)
from ordercore.domain.repository.inventory_repository import InventoryRepository
from ordercore.domain.repository.order_repository import OrderRepository


class UnitOfWork(ABC):
    orders: OrderRepository
    autoships: AutoshipRepository
    autoship_runs: AutoshipRunRepository
    inventory: InventoryRepository

    def __enter__(self) -> UnitOfWork:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.rollback()

    @abstractmethod
    def commit(self) -> None:
        """Apply every staged write atomically.

        Raises ConcurrentModification if a guarded entity changed since
        it was read, InsufficientStock if a staged movement would leave
        stock negative, StoreUnavailable if the store cannot be written.
        """

    @abstractmethod
    def rollback(self) -> None:
        """Discard staged writes. Safe to call after ``commit()``."""
