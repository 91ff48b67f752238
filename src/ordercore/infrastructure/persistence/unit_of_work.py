"""Unit of work over a StoreBackend, with compare-and-set commits.

Reads come from a snapshot taken on first access.  Writes are staged
together with a guard (field -> acceptable current values) and applied
in ``commit()`` under the backend's exclusive transaction, after every
guard has been checked against the *current* document.  Stock changes
are staged as signed movements and applied to the current counters, so
two units releasing the same product never lose an update.
"""

from __future__ import annotations

import copy
from typing import Any

import structlog

from ordercore.domain.exceptions import InsufficientStock, ProductNotFound
from ordercore.domain.repository.unit_of_work import UnitOfWork
from ordercore.infrastructure.persistence.json_autoship_repository import (
    JsonAutoshipRepository,
    JsonAutoshipRunRepository,
)
from ordercore.infrastructure.persistence.json_inventory_repository import (
    JsonInventoryRepository,
)
from ordercore.infrastructure.persistence.json_order_repository import (
    JsonOrderRepository,
)
from ordercore.infrastructure.persistence.store import StagedWrite, StoreBackend, Tables

logger = structlog.get_logger(__name__)


class StoreUnitOfWork(UnitOfWork):

    def __init__(self, backend: StoreBackend) -> None:
        self._backend = backend
        self._snapshot: Tables | None = None
        self._writes: list[StagedWrite] = []
        self._movements: list[dict[str, Any]] = []
        self._observed: dict[tuple[str, str], dict[str, Any]] = {}
        self.orders = JsonOrderRepository(self)
        self.autoships = JsonAutoshipRepository(self)
        self.autoship_runs = JsonAutoshipRunRepository(self)
        self.inventory = JsonInventoryRepository(self)

    # --- UnitOfWork interface -------------------------------------------------

    def commit(self) -> None:
        if not self._writes and not self._movements:
            self._reset()
            return
        writes, movements = self._writes, self._movements
        try:
            with self._backend.transaction() as tables:
                for write in writes:
                    write.check(tables[write.table].get(write.key))
                for write in writes:
                    current = tables[write.table].get(write.key) or {}
                    tables[write.table][write.key] = {**current, **copy.deepcopy(write.row)}
                for movement in movements:
                    self._apply_movement(tables, movement)
        finally:
            self._reset()
        logger.debug("unit_of_work_committed", writes=len(writes), movements=len(movements))

    def rollback(self) -> None:
        if self._writes or self._movements:
            logger.debug(
                "unit_of_work_rolled_back",
                writes=len(self._writes),
                movements=len(self._movements),
            )
        self._reset()

    # --- Repository hooks -----------------------------------------------------

    def table(self, name: str) -> Any:
        if self._snapshot is None:
            self._snapshot = self._backend.read()
        return self._snapshot[name]

    def observe(self, table: str, key: str, row: dict[str, Any]) -> None:
        self._observed[(table, key)] = row

    def observed(self, table: str, key: str) -> dict[str, Any] | None:
        return self._observed.get((table, key))

    def stage(self, write: StagedWrite) -> None:
        self._writes.append(write)

    def stage_movement(self, row: dict[str, Any]) -> None:
        self._movements.append(row)

    # --- Internal helpers -----------------------------------------------------

    @staticmethod
    def _apply_movement(tables: Tables, movement: dict[str, Any]) -> None:
        product_id = movement["product_id"]
        record = tables["inventory"].get(product_id)
        if record is None:
            if movement["change"] > 0:
                logger.warning(
                    "release_skipped_missing_product",
                    product_id=product_id,
                    quantity=movement["change"],
                    reference_id=movement.get("reference_id"),
                )
                return
            raise ProductNotFound(f"No inventory record for product '{product_id}'")
        new_quantity = record["quantity"] + movement["change"]
        if new_quantity < 0:
            raise InsufficientStock(
                f"Insufficient stock for product '{product_id}' "
                f"(need {-movement['change']}, have {record['quantity']} available)"
            )
        record["quantity"] = new_quantity
        tables["movements"].append(copy.deepcopy(movement))

    def _reset(self) -> None:
        self._snapshot = None
        self._writes = []
        self._movements = []
        self._observed = {}
