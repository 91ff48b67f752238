"""InventoryRecord aggregate — tracks available stock per product.

Each product has one InventoryRecord holding the units available for
sale.  Checkout reserves stock by decrementing it; cancelling or
refunding an order releases it again.  Every change is also written as
an InventoryMovement so the counter can be audited.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from ordercore.domain.exceptions import InsufficientStock, ValidationError

DEFAULT_LOW_STOCK_THRESHOLD = 10


class StockStatus(Enum):
    OUT_OF_STOCK = "out_of_stock"
    LOW_STOCK = "low_stock"
    IN_STOCK = "in_stock"


class MovementReason(Enum):
    ORDER_PLACED = "order_placed"
    ORDER_CANCELLED = "order_cancelled"
    ORDER_REFUNDED = "order_refunded"
    ADJUSTMENT = "adjustment"
    RESTOCK = "restock"


def classify_stock(quantity: int, threshold: int) -> StockStatus:
    if quantity <= 0:
        return StockStatus.OUT_OF_STOCK
    if quantity <= threshold:
        return StockStatus.LOW_STOCK
    return StockStatus.IN_STOCK


@dataclass(frozen=True)
class InventoryMovement:
    """One signed change to a product's stock counter."""

    product_id: str
    change: int
    reason: MovementReason
    note: str = ""
    reference_id: str | None = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        if self.change == 0:
            raise ValidationError("Inventory movement cannot be zero")


@dataclass
class InventoryRecord:
    """Aggregate root for inventory tracking.

    Invariants:
    - ``quantity`` is never negative
    - ``stock_status`` is derived from quantity and threshold on every
      read, never stored
    """

    product_id: str
    quantity: int
    low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD

    def __post_init__(self) -> None:
        if self.quantity < 0:
            raise ValidationError(
                f"Stock for product '{self.product_id}' cannot be negative"
            )
        if self.low_stock_threshold < 0:
            raise ValidationError("Low-stock threshold cannot be negative")

    @property
    def stock_status(self) -> StockStatus:
        return classify_stock(self.quantity, self.low_stock_threshold)

    def reserve(self, quantity: int) -> None:
        """Take stock for an order line.

        Raises InsufficientStock if fewer units are available.
        """
        if quantity <= 0:
            raise ValidationError("Reservation quantity must be positive")
        if quantity > self.quantity:
            raise InsufficientStock(
                f"Insufficient stock for product '{self.product_id}' "
                f"(need {quantity}, have {self.quantity} available)"
            )
        self.quantity -= quantity

    def release(self, quantity: int) -> None:
        """Return previously reserved stock (e.g. on order cancellation)."""
        if quantity <= 0:
            raise ValidationError("Release quantity must be positive")
        self.quantity += quantity

    def adjust(self, delta: int) -> None:
        if delta == 0:
            raise ValidationError("Adjustment cannot be zero")
        if self.quantity + delta < 0:
            raise InsufficientStock(
                f"Adjusting product '{self.product_id}' by {delta} would leave "
                f"{self.quantity + delta} in stock; inventory cannot go negative"
            )
        self.quantity += delta

    def set_threshold(self, threshold: int) -> None:
        if threshold < 0:
            raise ValidationError("Low-stock threshold cannot be negative")
        self.low_stock_threshold = threshold
