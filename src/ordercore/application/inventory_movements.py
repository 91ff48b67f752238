"""Application service: Inventory Movements use case (audit query)."""

from __future__ import annotations

from typing import Callable

from ordercore.application.dto import MovementDTO
from ordercore.application.result import Failure, Result, Success
from ordercore.domain.exceptions import DomainException, ProductNotFound
from ordercore.domain.repository.unit_of_work import UnitOfWork


class InventoryMovementsHandler:

    def __init__(self, uow_factory: Callable[[], UnitOfWork]) -> None:
        self._uow_factory = uow_factory

    def handle(self, product_id: str, limit: int | None = None) -> Result[list[MovementDTO]]:
        try:
            with self._uow_factory() as uow:
                movements = uow.inventory.movements_for(product_id)
                if not movements and uow.inventory.get_by_product_id(product_id) is None:
                    raise ProductNotFound(f"No inventory record for product '{product_id}'")
        except DomainException as exc:
            return Failure.from_exception(exc)
        if limit is not None:
            movements = movements[:limit]
        return Success([MovementDTO.from_movement(m) for m in movements])
