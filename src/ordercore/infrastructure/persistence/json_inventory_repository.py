"""JSON-row implementation of InventoryRepository."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ordercore.domain.model.inventory import (
    InventoryMovement,
    InventoryRecord,
    MovementReason,
)
from ordercore.domain.repository.inventory_repository import InventoryRepository
from ordercore.infrastructure.persistence.store import StagedWrite, dump_datetime, load_datetime

if TYPE_CHECKING:
    from ordercore.infrastructure.persistence.unit_of_work import StoreUnitOfWork

TABLE = "inventory"
MOVEMENTS = "movements"


class JsonInventoryRepository(InventoryRepository):

    def __init__(self, uow: StoreUnitOfWork) -> None:
        self._uow = uow

    # --- InventoryRepository interface ----------------------------------------

    def get_by_product_id(self, product_id: str) -> InventoryRecord | None:
        raw = self._uow.table(TABLE).get(product_id)
        if raw is None:
            return None
        return self._to_domain(raw)

    def list_all(self) -> list[InventoryRecord]:
        records = [self._to_domain(raw) for raw in self._uow.table(TABLE).values()]
        return sorted(records, key=lambda r: r.product_id)

    def add(self, record: InventoryRecord) -> None:
        self._uow.stage(
            StagedWrite(TABLE, record.product_id, self._to_raw(record), insert=True)
        )

    def save_threshold(self, record: InventoryRecord) -> None:
        # Only the threshold is written; stock changes go through movements.
        self._uow.stage(
            StagedWrite(
                TABLE,
                record.product_id,
                {"low_stock_threshold": record.low_stock_threshold},
            )
        )

    def record_movement(self, movement: InventoryMovement) -> None:
        self._uow.stage_movement(self._movement_to_raw(movement))

    def movements_for(self, product_id: str) -> list[InventoryMovement]:
        movements = [
            self._movement_to_domain(raw)
            for raw in self._uow.table(MOVEMENTS)
            if raw["product_id"] == product_id
        ]
        return list(reversed(movements))

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(record: InventoryRecord) -> dict:
        return {
            "product_ref": record.product_id,
            "quantity": record.quantity,
            "low_stock_threshold": record.low_stock_threshold,
        }

    @staticmethod
    def _to_domain(raw: dict) -> InventoryRecord:
        return InventoryRecord(
            product_id=raw["product_ref"],
            quantity=raw["quantity"],
            low_stock_threshold=raw["low_stock_threshold"],
        )

    @staticmethod
    def _movement_to_raw(movement: InventoryMovement) -> dict:
        return {
            "id": movement.id,
            "product_id": movement.product_id,
            "change": movement.change,
            "reason": movement.reason.value,
            "note": movement.note,
            "reference_id": movement.reference_id,
            "created_at": dump_datetime(movement.created_at),
        }

    @staticmethod
    def _movement_to_domain(raw: dict) -> InventoryMovement:
        return InventoryMovement(
            id=raw["id"],
            product_id=raw["product_id"],
            change=raw["change"],
            reason=MovementReason(raw["reason"]),
            note=raw.get("note", ""),
            reference_id=raw.get("reference_id"),
            created_at=load_datetime(raw["created_at"]),
        )
