"""Application service: Place Order use case (checkout).

Builds a pending order from checkout line items and reserves stock for
every line in the same unit of work, so an order never exists without
its reservation.
"""

from __future__ import annotations

from typing import Callable

import structlog

from ordercore.application.clock import Clock, utc_now
from ordercore.application.dto import OrderDTO, OrderItemSpec
from ordercore.application.result import Failure, Result, Success
from ordercore.domain.exceptions import DomainException
from ordercore.domain.model.order import Order, OrderItem, OrderSource
from ordercore.domain.model.value_objects import Money, Quantity
from ordercore.domain.repository.unit_of_work import UnitOfWork
from ordercore.domain.service.inventory_ledger import InventoryLedger

logger = structlog.get_logger(__name__)


def build_items(specs: list[OrderItemSpec], currency: str) -> list[OrderItem]:
    return [
        OrderItem(
            product_id=spec.product_id,
            quantity=Quantity(spec.quantity),
            unit_base_price=Money(spec.unit_base_price, currency),
            unit_final_price=Money(
                spec.unit_base_price if spec.unit_final_price is None else spec.unit_final_price,
                currency,
            ),
        )
        for spec in specs
    ]


def place_order(uow: UnitOfWork, order: Order) -> Order:
    """Stage ``order`` and its reservations on an open unit of work."""
    InventoryLedger(uow.inventory).reserve_for_order(order)
    uow.orders.add(order)
    return order


class PlaceOrderHandler:

    def __init__(self, uow_factory: Callable[[], UnitOfWork], clock: Clock = utc_now) -> None:
        self._uow_factory = uow_factory
        self._clock = clock

    def handle(
        self,
        customer_ref: str,
        item_specs: list[OrderItemSpec],
        shipping_address_ref: str | None = None,
        currency: str = "IDR",
    ) -> Result[OrderDTO]:
        try:
            order = Order.create(
                customer_ref=customer_ref,
                items=build_items(item_specs, currency),
                source=OrderSource.ONE_TIME,
                shipping_address_ref=shipping_address_ref,
                now=self._clock(),
            )
            with self._uow_factory() as uow:
                place_order(uow, order)
                uow.commit()
        except DomainException as exc:
            logger.info("order_rejected", customer_ref=customer_ref, reason=exc.reason.value)
            return Failure.from_exception(exc)

        logger.info(
            "order_placed",
            order_id=order.id,
            customer_ref=order.customer_ref,
            total=order.total.amount,
            items=len(order.items),
        )
        return Success(OrderDTO.from_order(order))
