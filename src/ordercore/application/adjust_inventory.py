"""Application service: Adjust Inventory use case.

Administrative stock correction by a signed delta.  Restocks (positive
delta) may create the product's record; write-downs can never take the
stock below zero.  Every adjustment lands in the movement log together
with the reason given for it.
"""

from __future__ import annotations

from typing import Callable

import structlog

from ordercore.application.dto import InventoryLineDTO
from ordercore.application.result import Failure, Result, Success
from ordercore.domain.exceptions import DomainException
from ordercore.domain.model.inventory import DEFAULT_LOW_STOCK_THRESHOLD, MovementReason
from ordercore.domain.repository.unit_of_work import UnitOfWork
from ordercore.domain.service.inventory_ledger import InventoryLedger

logger = structlog.get_logger(__name__)


class AdjustInventoryHandler:

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        default_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD,
    ) -> None:
        self._uow_factory = uow_factory
        self._default_threshold = default_threshold

    def handle(
        self, product_id: str, delta: int, reason: str, restock: bool = False
    ) -> Result[InventoryLineDTO]:
        movement = MovementReason.RESTOCK if restock else MovementReason.ADJUSTMENT
        try:
            with self._uow_factory() as uow:
                ledger = InventoryLedger(uow.inventory, self._default_threshold)
                record = ledger.adjust(product_id, delta, reason, movement)
                uow.commit()
        except DomainException as exc:
            logger.info(
                "inventory_adjustment_rejected",
                product_id=product_id,
                delta=delta,
                reason=exc.reason.value,
            )
            return Failure.from_exception(exc)

        logger.info(
            "inventory_adjusted",
            product_id=product_id,
            delta=delta,
            movement=movement.value,
            quantity=record.quantity,
            stock_status=record.stock_status.value,
        )
        return Success(InventoryLineDTO.from_record(record))
