"""Application service: Show Inventory use case (query)."""

from __future__ import annotations

from typing import Callable

from ordercore.application.dto import InventoryLineDTO
from ordercore.application.result import Failure, Result, Success
from ordercore.domain.exceptions import DomainException, ValidationError
from ordercore.domain.model.inventory import StockStatus
from ordercore.domain.repository.unit_of_work import UnitOfWork


def parse_stock_status(raw: str) -> StockStatus:
    try:
        return StockStatus(raw.strip().lower())
    except ValueError as exc:
        allowed = ", ".join(s.value for s in StockStatus)
        raise ValidationError(f"Unknown stock status {raw!r}; expected one of {allowed}") from exc


class ShowInventoryHandler:

    def __init__(self, uow_factory: Callable[[], UnitOfWork]) -> None:
        self._uow_factory = uow_factory

    def handle(self, status: StockStatus | None = None) -> Result[list[InventoryLineDTO]]:
        try:
            with self._uow_factory() as uow:
                records = uow.inventory.list_all()
        except DomainException as exc:
            return Failure.from_exception(exc)
        return Success(
            [
                InventoryLineDTO.from_record(record)
                for record in records
                if status is None or record.stock_status is status
            ]
        )
