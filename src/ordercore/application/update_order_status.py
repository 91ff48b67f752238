"""Application service: Update Order Status use case.

This is the order status engine.  The transition table on the Order
aggregate decides whether the move is legal; entering ``cancelled`` or
``refunded`` releases every line item's stock through the ledger.  The
status write and all releases commit as one unit of work, and the
commit re-checks the stored status, so a request built on a stale read
cannot overwrite a concurrent change.
"""

from __future__ import annotations

from typing import Callable

import structlog

from ordercore.application.clock import Clock, utc_now
from ordercore.application.dto import OrderDTO
from ordercore.application.result import Failure, Result, Success
from ordercore.domain.exceptions import DomainException, OrderNotFound, ValidationError
from ordercore.domain.model.order import RELEASING_STATUSES, OrderStatus
from ordercore.domain.repository.unit_of_work import UnitOfWork
from ordercore.domain.service.inventory_ledger import InventoryLedger

logger = structlog.get_logger(__name__)


def parse_status(raw: str | OrderStatus) -> OrderStatus:
    if isinstance(raw, OrderStatus):
        return raw
    try:
        return OrderStatus(raw.strip().lower())
    except ValueError as exc:
        raise ValidationError(f"Unknown order status: {raw!r}") from exc


class UpdateOrderStatusHandler:

    def __init__(self, uow_factory: Callable[[], UnitOfWork], clock: Clock = utc_now) -> None:
        self._uow_factory = uow_factory
        self._clock = clock

    def handle(self, order_id: str, target_status: str | OrderStatus) -> Result[OrderDTO]:
        try:
            target = parse_status(target_status)
            with self._uow_factory() as uow:
                order = uow.orders.get_by_id(order_id)
                if order is None:
                    raise OrderNotFound(f"Order {order_id} not found")

                previous = order.transition_to(target, now=self._clock())

                warnings = []
                if target in RELEASING_STATUSES:
                    ledger = InventoryLedger(uow.inventory)
                    warnings = ledger.release_for_order(order)

                uow.orders.save(order, target)
                uow.commit()
        except DomainException as exc:
            logger.info(
                "order_status_change_rejected",
                order_id=order_id,
                target=str(target_status),
                reason=exc.reason.value,
            )
            return Failure.from_exception(exc)

        logger.info(
            "order_status_changed",
            order_id=order_id,
            previous=previous.value,
            status=target.value,
            released_items=sum(1 for item in order.items if item.is_released),
        )
        return Success(OrderDTO.from_order(order), tuple(str(w) for w in warnings))
