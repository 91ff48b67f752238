"""Autoship aggregate — a recurring subscription that spawns orders.

Invariants:
- ``next_run_at`` is set if and only if the autoship is ``active``
- ``cancelled`` is terminal; nothing on a cancelled autoship changes again
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Mapping, cast

from ordercore.domain.exceptions import InvalidState, ValidationError
from ordercore.domain.model.value_objects import Frequency, Money, Quantity


class AutoshipStatus(Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    CANCELLED = "cancelled"


AUTOSHIP_TRANSITIONS: Mapping[AutoshipStatus, frozenset[AutoshipStatus]] = MappingProxyType(
    {
        AutoshipStatus.ACTIVE: frozenset({AutoshipStatus.PAUSED, AutoshipStatus.CANCELLED}),
        AutoshipStatus.PAUSED: frozenset({AutoshipStatus.ACTIVE, AutoshipStatus.CANCELLED}),
        AutoshipStatus.CANCELLED: frozenset(),
    }
)


class RunStatus(Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class AutoshipItem:
    """A subscribed product with the price the customer signed up for."""

    product_id: str
    quantity: Quantity
    unit_base_price: Money
    unit_final_price: Money

    def __post_init__(self) -> None:
        if self.unit_final_price > self.unit_base_price:
            raise ValidationError(
                f"Autoship price {self.unit_final_price} exceeds base price "
                f"{self.unit_base_price} for product '{self.product_id}'"
            )


@dataclass
class Autoship:
    id: str
    customer_ref: str
    items: list[AutoshipItem]
    frequency: Frequency
    status: AutoshipStatus = AutoshipStatus.ACTIVE
    next_run_at: datetime | None = None
    shipping_address_ref: str | None = None
    created_at: datetime = field(default_factory=_utc_now)
    updated_at: datetime = field(default_factory=_utc_now)

    def __post_init__(self) -> None:
        if not self.items:
            raise ValidationError("Autoship must contain at least one item")
        if (self.next_run_at is not None) != (self.status is AutoshipStatus.ACTIVE):
            raise ValidationError(
                f"Autoship {self.id} is {self.status.value} but next_run_at is "
                f"{'set' if self.next_run_at else 'empty'}"
            )

    # --- Factory --------------------------------------------------------------

    @staticmethod
    def create(
        customer_ref: str,
        items: list[AutoshipItem],
        frequency: Frequency,
        now: datetime,
        start_at: datetime | None = None,
        shipping_address_ref: str | None = None,
    ) -> Autoship:
        if not customer_ref or not customer_ref.strip():
            raise ValidationError("Customer reference is required")
        product_ids = [item.product_id for item in items]
        if len(set(product_ids)) != len(product_ids):
            raise ValidationError("Each product may appear only once per autoship")
        return Autoship(
            id=str(uuid.uuid4()),
            customer_ref=customer_ref.strip(),
            items=list(items),
            frequency=frequency,
            next_run_at=start_at or frequency.after(now),
            shipping_address_ref=shipping_address_ref,
            created_at=now,
            updated_at=now,
        )

    # --- State transitions ----------------------------------------------------

    def pause(self, now: datetime) -> None:
        self._enter(AutoshipStatus.PAUSED, "pause")
        self.status = AutoshipStatus.PAUSED
        self.next_run_at = None
        self.updated_at = now

    def resume(self, now: datetime, next_run_at: datetime | None = None) -> None:
        """Reactivate a paused autoship.

        Without an explicit time the schedule is re-anchored to
        ``now + frequency``.
        """
        self._enter(AutoshipStatus.ACTIVE, "resume")
        self.status = AutoshipStatus.ACTIVE
        self.next_run_at = next_run_at or self.frequency.after(now)
        self.updated_at = now

    def cancel(self, now: datetime) -> None:
        self._enter(AutoshipStatus.CANCELLED, "cancel")
        self.status = AutoshipStatus.CANCELLED
        self.next_run_at = None
        self.updated_at = now

    def change_frequency(self, frequency: Frequency, now: datetime) -> None:
        if self.status is AutoshipStatus.CANCELLED:
            raise InvalidState(f"Autoship {self.id} is cancelled and cannot be modified")
        self.frequency = frequency
        if self.status is AutoshipStatus.ACTIVE:
            self.next_run_at = frequency.after(now)
        self.updated_at = now

    def advance(self, now: datetime) -> datetime:
        """Move the schedule one interval past the current due time.

        Used both after a delivery and when the customer skips one.
        Returns the cycle that was consumed.
        """
        self._require(AutoshipStatus.ACTIVE, "advance")
        consumed = cast(datetime, self.next_run_at)
        self.next_run_at = self.frequency.after(consumed)
        self.updated_at = now
        return consumed

    # --- Queries --------------------------------------------------------------

    def is_due(self, as_of: datetime) -> bool:
        return (
            self.status is AutoshipStatus.ACTIVE
            and self.next_run_at is not None
            and self.next_run_at <= as_of
        )

    # --- Internal helpers -----------------------------------------------------

    def _enter(self, target: AutoshipStatus, action: str) -> None:
        if target not in AUTOSHIP_TRANSITIONS[self.status]:
            raise InvalidState(
                f"Cannot {action} autoship {self.id}: it is {self.status.value}"
            )

    def _require(self, status: AutoshipStatus, action: str) -> None:
        if self.status is not status:
            raise InvalidState(
                f"Cannot {action} autoship {self.id}: status is "
                f"{self.status.value}, expected {status.value}"
            )


@dataclass
class AutoshipRun:
    """One scheduled delivery cycle of an autoship.

    ``(autoship_id, scheduled_at)`` identifies the cycle; the store keeps
    at most one run per cycle so a delivery is never created twice.
    """

    autoship_id: str
    scheduled_at: datetime
    status: RunStatus
    order_id: str | None = None
    error_message: str | None = None
    executed_at: datetime | None = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @property
    def is_settled(self) -> bool:
        return self.status in (RunStatus.COMPLETED, RunStatus.SKIPPED)
