"""Domain service: Inventory Ledger.

The ledger is the only code that changes stock counters.  It works
inside a unit of work: every reserve or release is validated against
the records read in that unit and staged as an InventoryMovement, so
the order status write and the stock changes commit together.

Reservation uses a two-phase approach (validate-then-mutate) so an
order is never left partially reserved when one product fails.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from ordercore.domain.exceptions import (
    InsufficientStock,
    ProductNotFound,
    ValidationError,
)
from ordercore.domain.model.inventory import (
    DEFAULT_LOW_STOCK_THRESHOLD,
    InventoryMovement,
    InventoryRecord,
    MovementReason,
)
from ordercore.domain.model.order import Order, OrderStatus
from ordercore.domain.repository.inventory_repository import InventoryRepository

logger = structlog.get_logger(__name__)

_RELEASE_REASONS = {
    OrderStatus.CANCELLED: MovementReason.ORDER_CANCELLED,
    OrderStatus.REFUNDED: MovementReason.ORDER_REFUNDED,
}

_ADJUST_REASONS = frozenset({MovementReason.ADJUSTMENT, MovementReason.RESTOCK})


@dataclass(frozen=True)
class ReleaseWarning:
    """A release that could not happen because the product record is gone."""

    product_id: str
    quantity: int
    order_id: str | None = None

    def __str__(self) -> str:
        return (
            f"Inventory record for product '{self.product_id}' not found; "
            f"{self.quantity} unit(s) were not restored"
        )


class InventoryLedger:

    def __init__(
        self,
        inventory_repo: InventoryRepository,
        default_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD,
    ) -> None:
        self._inventory_repo = inventory_repo
        self._default_threshold = default_threshold
        self._records: dict[str, InventoryRecord | None] = {}

    # --- Single-product operations --------------------------------------------

    def reserve(self, product_id: str, quantity: int, reference_id: str | None = None) -> None:
        """Decrease available stock.

        Raises ProductNotFound or InsufficientStock.
        """
        record = self._require(product_id)
        record.reserve(quantity)
        self._stage(product_id, -quantity, MovementReason.ORDER_PLACED, reference_id)

    def release(
        self,
        product_id: str,
        quantity: int,
        reason: MovementReason = MovementReason.ORDER_CANCELLED,
        reference_id: str | None = None,
    ) -> ReleaseWarning | None:
        """Increase available stock.

        A missing product record is not an error: the caller gets a
        warning back and the rest of its work goes on.
        """
        if quantity <= 0:
            raise ValidationError("Release quantity must be positive")
        record = self._load(product_id)
        if record is None:
            logger.warning(
                "release_skipped_missing_product",
                product_id=product_id,
                quantity=quantity,
                reference_id=reference_id,
            )
            return ReleaseWarning(product_id, quantity, reference_id)
        record.release(quantity)
        self._stage(product_id, quantity, reason, reference_id)
        return None

    def adjust(
        self,
        product_id: str,
        delta: int,
        note: str,
        reason: MovementReason = MovementReason.ADJUSTMENT,
    ) -> InventoryRecord:
        """Administrative stock correction; creates the record if missing.

        ``reason`` is ADJUSTMENT or RESTOCK; a restock must add stock.
        """
        if not note or not note.strip():
            raise ValidationError("Reason is required for inventory adjustments")
        if reason not in _ADJUST_REASONS:
            raise ValidationError(f"{reason.value} is not an administrative movement")
        if reason is MovementReason.RESTOCK and delta <= 0:
            raise ValidationError("A restock must add stock")
        record = self._load(product_id)
        if record is None:
            record = InventoryRecord(
                product_id=product_id,
                quantity=0,
                low_stock_threshold=self._default_threshold,
            )
            self._inventory_repo.add(record)
            self._records[product_id] = record
        record.adjust(delta)
        self._stage(product_id, delta, reason, None, note=note.strip())
        return record

    # --- Whole-order operations -----------------------------------------------

    def reserve_for_order(self, order: Order) -> None:
        """Reserve stock for every line item of a new order.

        Phase 1 checks every line against the records (summing lines
        that share a product); phase 2 stages the movements.
        """
        needed: dict[str, int] = {}
        for item in order.items:
            needed[item.product_id] = needed.get(item.product_id, 0) + item.quantity.value

        for product_id, qty in needed.items():
            record = self._require(product_id)
            if qty > record.quantity:
                raise InsufficientStock(
                    f"Insufficient stock for product '{product_id}' "
                    f"(need {qty}, have {record.quantity} available)"
                )

        for item in order.items:
            self.reserve(item.product_id, item.quantity.value, reference_id=order.id)

    def release_for_order(self, order: Order) -> list[ReleaseWarning]:
        """Return every line item's reserved stock.

        Items already released are skipped, so stock comes back exactly
        once per line.  ``order.status`` must already be the releasing
        status; it picks the movement reason.
        """
        reason = _RELEASE_REASONS.get(order.status)
        if reason is None:
            raise ValidationError(
                f"Order {order.id} in status {order.status.value} does not release inventory"
            )
        warnings: list[ReleaseWarning] = []
        for item in order.items:
            qty = item.releasable_quantity
            if qty <= 0:
                continue
            warning = self.release(item.product_id, qty, reason=reason, reference_id=order.id)
            if warning is not None:
                warnings.append(warning)
                continue
            item.mark_released()
        return warnings

    # --- Internal helpers -----------------------------------------------------

    def _load(self, product_id: str) -> InventoryRecord | None:
        if product_id not in self._records:
            self._records[product_id] = self._inventory_repo.get_by_product_id(product_id)
        return self._records[product_id]

    def _require(self, product_id: str) -> InventoryRecord:
        record = self._load(product_id)
        if record is None:
            raise ProductNotFound(f"No inventory record for product '{product_id}'")
        return record

    def _stage(
        self,
        product_id: str,
        change: int,
        reason: MovementReason,
        reference_id: str | None,
        note: str = "",
    ) -> None:
        self._inventory_repo.record_movement(
            InventoryMovement(
                product_id=product_id,
                change=change,
                reason=reason,
                note=note,
                reference_id=reference_id,
            )
        )
        logger.debug(
            "inventory_movement_staged",
            product_id=product_id,
            change=change,
            reason=reason.value,
            reference_id=reference_id,
        )
