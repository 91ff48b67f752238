"""Application service: Set Low-Stock Threshold use case."""

from __future__ import annotations

from typing import Callable

import structlog

from ordercore.application.dto import InventoryLineDTO
from ordercore.application.result import Failure, Result, Success
from ordercore.domain.exceptions import DomainException, ProductNotFound
from ordercore.domain.repository.unit_of_work import UnitOfWork

logger = structlog.get_logger(__name__)


class SetLowStockThresholdHandler:

    def __init__(self, uow_factory: Callable[[], UnitOfWork]) -> None:
        self._uow_factory = uow_factory

    def handle(self, product_id: str, threshold: int) -> Result[InventoryLineDTO]:
        try:
            with self._uow_factory() as uow:
                record = uow.inventory.get_by_product_id(product_id)
                if record is None:
                    raise ProductNotFound(f"No inventory record for product '{product_id}'")
                record.set_threshold(threshold)
                uow.inventory.save_threshold(record)
                uow.commit()
        except DomainException as exc:
            return Failure.from_exception(exc)

        logger.info("low_stock_threshold_set", product_id=product_id, threshold=threshold)
        return Success(InventoryLineDTO.from_record(record))
