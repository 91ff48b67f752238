"""Abstract repository for InventoryRecord aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ordercore.domain.model.inventory import InventoryMovement, InventoryRecord


class InventoryRepository(ABC):

    @abstractmethod
    def get_by_product_id(self, product_id: str) -> InventoryRecord | None:
        """Return the inventory record for a product, or None."""

    @abstractmethod
    def list_all(self) -> list[InventoryRecord]:
        """Return every inventory record."""

    @abstractmethod
    def add(self, record: InventoryRecord) -> None:
        """Stage a new inventory record."""

    @abstractmethod
    def save_threshold(self, record: InventoryRecord) -> None:
        """Stage a change of the record's low-stock threshold."""

    @abstractmethod
    def record_movement(self, movement: InventoryMovement) -> None:
        """Stage a stock change.

        The commit applies ``movement.change`` to the stock stored at
        that moment, not to the value that was read.
        """

    @abstractmethod
    def movements_for(self, product_id: str) -> list[InventoryMovement]:
        """Committed movements of a product, newest first."""
