"""Application services: the recurring delivery trigger interface.

``DueAutoshipsHandler`` answers which autoships are due.
``ExecuteAutoshipHandler`` turns one due cycle into an order: it creates
the autoship order, records the cycle's run and advances ``next_run_at``
in a single unit of work.  The run is keyed by (autoship, scheduled
time) and the autoship write is guarded on the ``next_run_at`` that was
read, so one cycle never yields two orders.  If the order cannot be
created the cycle is recorded as failed and the schedule is left alone,
so the next pass retries it instead of skipping it.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

import structlog

from ordercore.application.clock import Clock, require_aware, utc_now
from ordercore.application.dto import AutoshipRunDTO
from ordercore.application.place_order import place_order
from ordercore.application.result import Failure, Result, Success
from ordercore.domain.exceptions import (
    AutoshipNotFound,
    DomainException,
    InsufficientStock,
    InvalidState,
    ProductNotFound,
    ValidationError,
)
from ordercore.domain.model.autoship import Autoship, AutoshipRun, RunStatus
from ordercore.domain.model.order import Order, OrderItem, OrderSource
from ordercore.domain.repository.unit_of_work import UnitOfWork

logger = structlog.get_logger(__name__)

OrderFactory = Callable[[Autoship, datetime], Order]

# Failures of order creation itself; these mark the run failed.
_ORDER_FAILURES = (InsufficientStock, ProductNotFound, ValidationError)


def order_from_autoship(autoship: Autoship, now: datetime) -> Order:
    """Default order factory: one line per subscribed item at its locked price."""
    return Order.create(
        customer_ref=autoship.customer_ref,
        items=[
            OrderItem(
                product_id=item.product_id,
                quantity=item.quantity,
                unit_base_price=item.unit_base_price,
                unit_final_price=item.unit_final_price,
            )
            for item in autoship.items
        ],
        source=OrderSource.AUTOSHIP,
        autoship_ref=autoship.id,
        shipping_address_ref=autoship.shipping_address_ref,
        now=now,
    )


class DueAutoshipsHandler:

    def __init__(self, uow_factory: Callable[[], UnitOfWork]) -> None:
        self._uow_factory = uow_factory

    def handle(self, as_of: datetime) -> Result[list[str]]:
        try:
            require_aware(as_of, "as_of")
            with self._uow_factory() as uow:
                due = uow.autoships.list_due(as_of)
        except DomainException as exc:
            return Failure.from_exception(exc)
        return Success([autoship.id for autoship in due])


class ExecuteAutoshipHandler:

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        clock: Clock = utc_now,
        order_factory: OrderFactory = order_from_autoship,
    ) -> None:
        self._uow_factory = uow_factory
        self._clock = clock
        self._order_factory = order_factory

    def handle(
        self,
        autoship_id: str,
        scheduled_at: datetime | None = None,
        as_of: datetime | None = None,
    ) -> Result[AutoshipRunDTO]:
        """Deliver one cycle of an autoship.

        ``as_of`` is the reference time the cycle must be due by; it
        defaults to the clock.  Cycles are compared as instants, so the
        same cycle given in another UTC offset is still the same cycle.
        """
        now = self._clock()
        creating = False
        cycle: datetime | None = scheduled_at
        try:
            if scheduled_at is not None:
                require_aware(scheduled_at, "scheduled_at")
                scheduled_at = scheduled_at.astimezone(timezone.utc)
            if as_of is not None:
                require_aware(as_of, "as_of")
            with self._uow_factory() as uow:
                autoship = uow.autoships.get_by_id(autoship_id)
                if autoship is None:
                    raise AutoshipNotFound(f"Autoship {autoship_id} not found")
                cycle = scheduled_at or autoship.next_run_at
                if cycle is None:
                    raise InvalidState(
                        f"Autoship {autoship_id} is {autoship.status.value}; nothing is scheduled"
                    )

                run = uow.autoship_runs.get(autoship_id, cycle)
                if run is not None and run.status is RunStatus.COMPLETED:
                    return Success(AutoshipRunDTO.from_run(run, already_executed=True))
                if run is not None and run.status is RunStatus.SKIPPED:
                    raise InvalidState(
                        f"Delivery of autoship {autoship_id} due {cycle.isoformat()} was skipped"
                    )
                self._check_due(autoship, cycle, as_of or now)

                creating = True
                order = place_order(uow, self._order_factory(autoship, now))
                if run is None:
                    run = AutoshipRun(autoship_id=autoship_id, scheduled_at=cycle, status=RunStatus.PENDING)
                run.status = RunStatus.COMPLETED
                run.order_id = order.id
                run.error_message = None
                run.executed_at = now
                autoship.advance(now)
                uow.autoship_runs.save(run)
                uow.autoships.save(autoship)
                uow.commit()
        except _ORDER_FAILURES as exc:
            if creating and cycle is not None:
                self._record_failure(autoship_id, cycle, now, str(exc))
            return Failure.from_exception(exc)
        except DomainException as exc:
            logger.info(
                "autoship_run_rejected",
                autoship_id=autoship_id,
                reason=exc.reason.value,
                detail=str(exc),
            )
            return Failure.from_exception(exc)

        logger.info(
            "autoship_run_completed",
            autoship_id=autoship_id,
            scheduled_at=cycle.isoformat(),
            order_id=order.id,
            next_run_at=autoship.next_run_at.isoformat(),
        )
        return Success(AutoshipRunDTO.from_run(run, next_run_at=autoship.next_run_at))

    # --- Internal helpers -----------------------------------------------------

    @staticmethod
    def _check_due(autoship: Autoship, cycle: datetime, as_of: datetime) -> None:
        if autoship.next_run_at != cycle:
            raise InvalidState(
                f"Autoship {autoship.id} is scheduled for "
                f"{autoship.next_run_at.isoformat() if autoship.next_run_at else 'nothing'}, "
                f"not {cycle.isoformat()}"
            )
        if not autoship.is_due(as_of):
            raise InvalidState(
                f"Autoship {autoship.id} is not due until {cycle.isoformat()}"
            )

    def _record_failure(
        self, autoship_id: str, cycle: datetime, now: datetime, message: str
    ) -> None:
        logger.warning(
            "autoship_run_failed",
            autoship_id=autoship_id,
            scheduled_at=cycle.isoformat(),
            error=message,
        )
        try:
            with self._uow_factory() as uow:
                run = uow.autoship_runs.get(autoship_id, cycle)
                if run is None:
                    run = AutoshipRun(autoship_id=autoship_id, scheduled_at=cycle, status=RunStatus.FAILED)
                elif run.is_settled:
                    return
                run.status = RunStatus.FAILED
                run.error_message = message
                run.executed_at = now
                uow.autoship_runs.save(run)
                uow.commit()
        except DomainException as exc:
            # The order failure is what the caller gets back either way.
            logger.warning(
                "autoship_run_failure_not_recorded",
                autoship_id=autoship_id,
                scheduled_at=cycle.isoformat(),
                reason=exc.reason.value,
            )


@dataclass(frozen=True)
class DeliveryOutcome:
    autoship_id: str
    result: Result[AutoshipRunDTO]


class RunDueAutoshipsHandler:
    """One pass of the recurring trigger over everything due at ``as_of``."""

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        clock: Clock = utc_now,
        order_factory: OrderFactory = order_from_autoship,
    ) -> None:
        self._due = DueAutoshipsHandler(uow_factory)
        self._execute = ExecuteAutoshipHandler(uow_factory, clock, order_factory)
        self._clock = clock

    def handle(self, as_of: datetime | None = None) -> Result[list[DeliveryOutcome]]:
        as_of = as_of or self._clock()
        due = self._due.handle(as_of)
        if isinstance(due, Failure):
            return due
        outcomes = [
            DeliveryOutcome(autoship_id, self._execute.handle(autoship_id, as_of=as_of))
            for autoship_id in due.value
        ]
        logger.info(
            "autoship_pass_finished",
            due=len(outcomes),
            completed=sum(1 for o in outcomes if o.result.ok),
        )
        return Success(outcomes)
