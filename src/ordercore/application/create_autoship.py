"""Application service: Create Autoship use case.

Signs a customer up for recurring delivery of a fixed basket.  The
prices in the item specs are locked in: every order the autoship
spawns later uses them unchanged.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable

import structlog

from ordercore.application.clock import Clock, require_aware, utc_now
from ordercore.application.dto import AutoshipDTO, AutoshipItemSpec
from ordercore.application.result import Failure, Result, Success
from ordercore.domain.exceptions import DomainException, ProductNotFound
from ordercore.domain.model.autoship import Autoship, AutoshipItem
from ordercore.domain.model.value_objects import Frequency, Money, Quantity
from ordercore.domain.repository.unit_of_work import UnitOfWork

logger = structlog.get_logger(__name__)


class CreateAutoshipHandler:

    def __init__(self, uow_factory: Callable[[], UnitOfWork], clock: Clock = utc_now) -> None:
        self._uow_factory = uow_factory
        self._clock = clock

    def handle(
        self,
        customer_ref: str,
        item_specs: list[AutoshipItemSpec],
        frequency: Frequency,
        start_at: datetime | None = None,
        shipping_address_ref: str | None = None,
        currency: str = "IDR",
    ) -> Result[AutoshipDTO]:
        try:
            if start_at is not None:
                require_aware(start_at, "start_at")
            autoship = Autoship.create(
                customer_ref=customer_ref,
                items=[
                    AutoshipItem(
                        product_id=spec.product_id,
                        quantity=Quantity(spec.quantity),
                        unit_base_price=Money(spec.unit_base_price, currency),
                        unit_final_price=Money(
                            spec.unit_base_price
                            if spec.unit_final_price is None
                            else spec.unit_final_price,
                            currency,
                        ),
                    )
                    for spec in item_specs
                ],
                frequency=frequency,
                now=self._clock(),
                start_at=start_at,
                shipping_address_ref=shipping_address_ref,
            )
            with self._uow_factory() as uow:
                # Subscribing to a product the store does not stock is rejected
                # up front; running out of stock later is a per-cycle failure.
                for item in autoship.items:
                    if uow.inventory.get_by_product_id(item.product_id) is None:
                        raise ProductNotFound(
                            f"No inventory record for product '{item.product_id}'"
                        )
                uow.autoships.add(autoship)
                uow.commit()
        except DomainException as exc:
            logger.info("autoship_rejected", customer_ref=customer_ref, reason=exc.reason.value)
            return Failure.from_exception(exc)

        logger.info(
            "autoship_created",
            autoship_id=autoship.id,
            customer_ref=autoship.customer_ref,
            frequency=str(autoship.frequency),
            next_run_at=autoship.next_run_at.isoformat(),
        )
        return Success(AutoshipDTO.from_autoship(autoship))
