"""Order aggregate — the core of the domain.

The Order is an aggregate root that owns its line items.  The status
state machine lives here, in one immutable table, and every status
change goes through ``Order.transition_to``.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from ordercore.domain.exceptions import InvalidTransition, ValidationError
from ordercore.domain.model.value_objects import Money, Quantity


class OrderStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class OrderSource(Enum):
    ONE_TIME = "one_time"
    AUTOSHIP = "autoship"


# ---------------------------------------------------------------------------
# Status state machine
# ---------------------------------------------------------------------------
ORDER_TRANSITIONS: Mapping[OrderStatus, frozenset[OrderStatus]] = MappingProxyType(
    {
        OrderStatus.PENDING: frozenset({OrderStatus.PAID, OrderStatus.CANCELLED}),
        OrderStatus.PAID: frozenset({OrderStatus.PROCESSING, OrderStatus.REFUNDED}),
        OrderStatus.PROCESSING: frozenset({OrderStatus.SHIPPED, OrderStatus.REFUNDED}),
        OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED}),
        OrderStatus.DELIVERED: frozenset(),
        OrderStatus.CANCELLED: frozenset(),
        OrderStatus.REFUNDED: frozenset(),
    }
)

# Entering one of these returns every line item's stock to inventory.
RELEASING_STATUSES: frozenset[OrderStatus] = frozenset(
    {OrderStatus.CANCELLED, OrderStatus.REFUNDED}
)

TERMINAL_STATUSES: frozenset[OrderStatus] = frozenset(
    status for status, targets in ORDER_TRANSITIONS.items() if not targets
)


def allowed_targets(status: OrderStatus) -> frozenset[OrderStatus]:
    return ORDER_TRANSITIONS[status]


def sources_of(target: OrderStatus) -> frozenset[OrderStatus]:
    """Every status from which ``target`` may be entered."""
    return frozenset(
        status for status, targets in ORDER_TRANSITIONS.items() if target in targets
    )


def _new_id() -> str:
    return str(uuid.uuid4())


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class OrderItem:
    """A line item with its price snapshot taken at checkout.

    Nothing changes after the order leaves ``pending`` except
    ``released_quantity``, which the inventory ledger sets when the
    reserved stock is returned.
    """

    product_id: str
    quantity: Quantity
    unit_base_price: Money
    unit_final_price: Money
    id: str = field(default_factory=_new_id)
    released_quantity: int = 0

    def __post_init__(self) -> None:
        if self.unit_final_price > self.unit_base_price:
            raise ValidationError(
                f"Final price {self.unit_final_price} exceeds base price "
                f"{self.unit_base_price} for product '{self.product_id}'"
            )

    @property
    def line_subtotal(self) -> Money:
        return self.unit_base_price * self.quantity.value

    @property
    def line_total(self) -> Money:
        return self.unit_final_price * self.quantity.value

    @property
    def discount(self) -> Money:
        return self.line_subtotal - self.line_total

    @property
    def is_released(self) -> bool:
        return self.released_quantity > 0

    @property
    def releasable_quantity(self) -> int:
        return self.quantity.value - self.released_quantity

    def mark_released(self) -> int:
        """Record that the reserved stock went back; returns the amount."""
        qty = self.releasable_quantity
        if qty <= 0:
            raise ValidationError(
                f"Line item {self.id} for product '{self.product_id}' already released"
            )
        self.released_quantity += qty
        return qty


@dataclass
class Order:
    """Aggregate root for customer orders.

    Use ``Order.create()`` for new orders — it computes the monetary
    fields from the line items.  ``__init__`` is kept simple so the
    repository can reconstitute persisted orders; ``__post_init__``
    still refuses an inconsistent total.
    """

    id: str
    customer_ref: str
    items: list[OrderItem]
    subtotal: Money
    discount_total: Money
    status: OrderStatus = OrderStatus.PENDING
    source: OrderSource = OrderSource.ONE_TIME
    autoship_ref: str | None = None
    shipping_address_ref: str | None = None
    created_at: datetime = field(default_factory=_utc_now)
    updated_at: datetime = field(default_factory=_utc_now)

    def __post_init__(self) -> None:
        if not self.items:
            raise ValidationError("Order must contain at least one item")
        if self.discount_total > self.subtotal:
            raise ValidationError(
                f"Discount {self.discount_total} exceeds subtotal {self.subtotal}"
            )

    # --- Factory (used for NEW orders only) -----------------------------------

    @staticmethod
    def create(
        customer_ref: str,
        items: list[OrderItem],
        source: OrderSource = OrderSource.ONE_TIME,
        autoship_ref: str | None = None,
        shipping_address_ref: str | None = None,
        now: datetime | None = None,
    ) -> Order:
        """Create a new pending order, enforcing all invariants."""
        if not customer_ref or not customer_ref.strip():
            raise ValidationError("Customer reference is required")
        if not items:
            raise ValidationError("Order must contain at least one item")
        if source is OrderSource.AUTOSHIP and not autoship_ref:
            raise ValidationError("Autoship orders must reference their autoship")

        currency = items[0].unit_base_price.currency
        subtotal = Money.zero(currency)
        discount_total = Money.zero(currency)
        for item in items:
            subtotal = subtotal + item.line_subtotal
            discount_total = discount_total + item.discount

        moment = now or _utc_now()
        return Order(
            id=_new_id(),
            customer_ref=customer_ref.strip(),
            items=list(items),
            subtotal=subtotal,
            discount_total=discount_total,
            source=source,
            autoship_ref=autoship_ref,
            shipping_address_ref=shipping_address_ref,
            created_at=moment,
            updated_at=moment,
        )

    # --- State transitions ----------------------------------------------------

    def can_transition_to(self, target: OrderStatus) -> bool:
        return target in ORDER_TRANSITIONS[self.status]

    def transition_to(self, target: OrderStatus, now: datetime | None = None) -> OrderStatus:
        """Move to ``target``; returns the previous status.

        Requesting the current status is rejected like any other
        unreachable target.
        """
        if not self.can_transition_to(target):
            allowed = sorted(s.value for s in ORDER_TRANSITIONS[self.status])
            if not allowed:
                detail = f"{self.status.value} is a terminal state"
            else:
                detail = f"{self.status.value} orders can only move to {', '.join(allowed)}"
            raise InvalidTransition(
                f"Cannot move order {self.id} from {self.status.value} "
                f"to {target.value}: {detail}"
            )
        previous = self.status
        self.status = target
        self.updated_at = now or _utc_now()
        return previous

    # --- Computed properties --------------------------------------------------

    @property
    def total(self) -> Money:
        return self.subtotal - self.discount_total

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES
