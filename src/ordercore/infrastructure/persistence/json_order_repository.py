"""JSON-row implementation of OrderRepository."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ordercore.domain.model.order import (
    Order,
    OrderItem,
    OrderSource,
    OrderStatus,
    sources_of,
)
from ordercore.domain.model.value_objects import Money, Quantity
from ordercore.domain.repository.order_repository import OrderRepository
from ordercore.infrastructure.persistence.store import StagedWrite, dump_datetime, load_datetime

if TYPE_CHECKING:
    from ordercore.infrastructure.persistence.unit_of_work import StoreUnitOfWork

TABLE = "orders"


class JsonOrderRepository(OrderRepository):

    def __init__(self, uow: StoreUnitOfWork) -> None:
        self._uow = uow

    # --- OrderRepository interface --------------------------------------------

    def get_by_id(self, order_id: str) -> Order | None:
        raw = self._uow.table(TABLE).get(order_id)
        if raw is None:
            return None
        self._uow.observe(TABLE, order_id, raw)
        return self._to_domain(raw)

    def add(self, order: Order) -> None:
        self._uow.stage(StagedWrite(TABLE, order.id, self._to_raw(order), insert=True))

    def save(self, order: Order, target: OrderStatus) -> None:
        # The stored status may have moved on since the read; the write
        # still lands if target is reachable from wherever it is now.
        allowed = frozenset(status.value for status in sources_of(target))
        self._uow.stage(
            StagedWrite(TABLE, order.id, self._to_raw(order), guard={"status": allowed})
        )

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(order: Order) -> dict:
        return {
            "id": order.id,
            "customer_ref": order.customer_ref,
            "status": order.status.value,
            "source": order.source.value,
            "currency": order.subtotal.currency,
            "subtotal": order.subtotal.amount,
            "discount_total": order.discount_total.amount,
            "total": order.total.amount,
            "autoship_ref": order.autoship_ref,
            "shipping_address_ref": order.shipping_address_ref,
            "created_at": dump_datetime(order.created_at),
            "updated_at": dump_datetime(order.updated_at),
            "items": [
                {
                    "id": item.id,
                    "product_ref": item.product_id,
                    "quantity": item.quantity.value,
                    "unit_base_price": item.unit_base_price.amount,
                    "unit_final_price": item.unit_final_price.amount,
                    "discount": item.discount.amount,
                    "released_quantity": item.released_quantity,
                }
                for item in order.items
            ],
        }

    @staticmethod
    def _to_domain(raw: dict) -> Order:
        currency = raw["currency"]
        items = [
            OrderItem(
                id=i["id"],
                product_id=i["product_ref"],
                quantity=Quantity(i["quantity"]),
                unit_base_price=Money(i["unit_base_price"], currency),
                unit_final_price=Money(i["unit_final_price"], currency),
                released_quantity=i.get("released_quantity", 0),
            )
            for i in raw["items"]
        ]
        return Order(
            id=raw["id"],
            customer_ref=raw["customer_ref"],
            items=items,
            subtotal=Money(raw["subtotal"], currency),
            discount_total=Money(raw["discount_total"], currency),
            status=OrderStatus(raw["status"]),
            source=OrderSource(raw["source"]),
            autoship_ref=raw.get("autoship_ref"),
            shipping_address_ref=raw.get("shipping_address_ref"),
            created_at=load_datetime(raw["created_at"]),
            updated_at=load_datetime(raw["updated_at"]),
        )
