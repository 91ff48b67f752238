"""Data Transfer Objects — plain containers that cross layer boundaries.

DTOs carry data between the CLI and application layers without
exposing domain internals to the outside world.  Each output DTO is an
immutable snapshot of an aggregate taken right after a use case ran.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from ordercore.domain.model.autoship import Autoship, AutoshipRun
from ordercore.domain.model.inventory import InventoryMovement, InventoryRecord
from ordercore.domain.model.order import Order, allowed_targets


@dataclass(frozen=True)
class OrderItemSpec:
    """Input: a line item as submitted by checkout."""

    product_id: str
    quantity: int
    unit_base_price: int
    unit_final_price: int | None = None


@dataclass(frozen=True)
class OrderItemDTO:
    id: str
    product_id: str
    quantity: int
    unit_base_price: int
    unit_final_price: int
    discount: int
    released_quantity: int


@dataclass(frozen=True)
class OrderDTO:
    id: str
    customer_ref: str
    status: str
    source: str
    currency: str
    subtotal: int
    discount_total: int
    total: int
    items: tuple[OrderItemDTO, ...]
    autoship_ref: str | None
    created_at: datetime
    updated_at: datetime
    next_statuses: tuple[str, ...] = ()

    @staticmethod
    def from_order(order: Order) -> OrderDTO:
        return OrderDTO(
            id=order.id,
            customer_ref=order.customer_ref,
            status=order.status.value,
            source=order.source.value,
            currency=order.subtotal.currency,
            subtotal=order.subtotal.amount,
            discount_total=order.discount_total.amount,
            total=order.total.amount,
            items=tuple(
                OrderItemDTO(
                    id=item.id,
                    product_id=item.product_id,
                    quantity=item.quantity.value,
                    unit_base_price=item.unit_base_price.amount,
                    unit_final_price=item.unit_final_price.amount,
                    discount=item.discount.amount,
                    released_quantity=item.released_quantity,
                )
                for item in order.items
            ),
            autoship_ref=order.autoship_ref,
            created_at=order.created_at,
            updated_at=order.updated_at,
            next_statuses=()
            if order.is_terminal
            else tuple(sorted(s.value for s in allowed_targets(order.status))),
        )


@dataclass(frozen=True)
class AutoshipItemSpec:
    product_id: str
    quantity: int
    unit_base_price: int
    unit_final_price: int | None = None


@dataclass(frozen=True)
class AutoshipDTO:
    id: str
    customer_ref: str
    status: str
    frequency: str
    frequency_unit: str
    frequency_count: int
    next_run_at: datetime | None
    items: tuple[tuple[str, int], ...]
    updated_at: datetime

    @staticmethod
    def from_autoship(autoship: Autoship) -> AutoshipDTO:
        return AutoshipDTO(
            id=autoship.id,
            customer_ref=autoship.customer_ref,
            status=autoship.status.value,
            frequency=str(autoship.frequency),
            frequency_unit=autoship.frequency.unit.value,
            frequency_count=autoship.frequency.count,
            next_run_at=autoship.next_run_at,
            items=tuple((item.product_id, item.quantity.value) for item in autoship.items),
            updated_at=autoship.updated_at,
        )


@dataclass(frozen=True)
class AutoshipRunDTO:
    autoship_id: str
    scheduled_at: datetime
    status: str
    order_id: str | None
    error_message: str | None
    already_executed: bool = False
    next_run_at: datetime | None = None

    @staticmethod
    def from_run(
        run: AutoshipRun,
        already_executed: bool = False,
        next_run_at: datetime | None = None,
    ) -> AutoshipRunDTO:
        return AutoshipRunDTO(
            autoship_id=run.autoship_id,
            scheduled_at=run.scheduled_at,
            status=run.status.value,
            order_id=run.order_id,
            error_message=run.error_message,
            already_executed=already_executed,
            next_run_at=next_run_at,
        )


@dataclass(frozen=True)
class InventoryLineDTO:
    product_id: str
    quantity: int
    low_stock_threshold: int
    stock_status: str

    @staticmethod
    def from_record(record: InventoryRecord) -> InventoryLineDTO:
        return InventoryLineDTO(
            product_id=record.product_id,
            quantity=record.quantity,
            low_stock_threshold=record.low_stock_threshold,
            stock_status=record.stock_status.value,
        )


@dataclass(frozen=True)
class MovementDTO:
    product_id: str
    change: int
    reason: str
    note: str
    reference_id: str | None
    created_at: datetime

    @staticmethod
    def from_movement(movement: InventoryMovement) -> MovementDTO:
        return MovementDTO(
            product_id=movement.product_id,
            change=movement.change,
            reason=movement.reason.value,
            note=movement.note,
            reference_id=movement.reference_id,
            created_at=movement.created_at,
        )


@dataclass(frozen=True)
class AutoshipDetailDTO:
    autoship: AutoshipDTO
    runs: tuple[AutoshipRunDTO, ...]
