"""JSON-row implementations of AutoshipRepository and AutoshipRunRepository."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from ordercore.domain.model.autoship import (
    Autoship,
    AutoshipItem,
    AutoshipRun,
    AutoshipStatus,
    RunStatus,
)
from ordercore.domain.model.value_objects import Frequency, FrequencyUnit, Money, Quantity
from ordercore.domain.repository.autoship_repository import (
    AutoshipRepository,
    AutoshipRunRepository,
)
from ordercore.infrastructure.persistence.store import StagedWrite, dump_datetime, load_datetime

if TYPE_CHECKING:
    from ordercore.infrastructure.persistence.unit_of_work import StoreUnitOfWork

AUTOSHIPS = "autoships"
RUNS = "autoship_runs"


def run_key(autoship_id: str, scheduled_at: datetime) -> str:
    return f"{autoship_id}@{dump_datetime(scheduled_at)}"


class JsonAutoshipRepository(AutoshipRepository):

    def __init__(self, uow: StoreUnitOfWork) -> None:
        self._uow = uow

    # --- AutoshipRepository interface -----------------------------------------

    def get_by_id(self, autoship_id: str) -> Autoship | None:
        raw = self._uow.table(AUTOSHIPS).get(autoship_id)
        if raw is None:
            return None
        self._uow.observe(AUTOSHIPS, autoship_id, raw)
        return self._to_domain(raw)

    def list_due(self, as_of: datetime) -> list[Autoship]:
        due = [
            autoship
            for autoship in (self._to_domain(raw) for raw in self._uow.table(AUTOSHIPS).values())
            if autoship.is_due(as_of)
        ]
        return sorted(due, key=lambda a: (a.next_run_at, a.id))

    def add(self, autoship: Autoship) -> None:
        self._uow.stage(
            StagedWrite(AUTOSHIPS, autoship.id, self._to_raw(autoship), insert=True)
        )

    def save(self, autoship: Autoship) -> None:
        observed = self._uow.observed(AUTOSHIPS, autoship.id)
        if observed is None:
            raise LookupError(f"Autoship {autoship.id} must be read before it is saved")
        guard = {
            "status": frozenset({observed["status"]}),
            "next_run_at": frozenset({observed["next_run_at"]}),
        }
        self._uow.stage(
            StagedWrite(AUTOSHIPS, autoship.id, self._to_raw(autoship), guard=guard)
        )

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(autoship: Autoship) -> dict:
        return {
            "id": autoship.id,
            "customer_ref": autoship.customer_ref,
            "status": autoship.status.value,
            "frequency_unit": autoship.frequency.unit.value,
            "frequency_count": autoship.frequency.count,
            "next_run_at": dump_datetime(autoship.next_run_at),
            "shipping_address_ref": autoship.shipping_address_ref,
            "created_at": dump_datetime(autoship.created_at),
            "updated_at": dump_datetime(autoship.updated_at),
            "items": [
                {
                    "product_ref": item.product_id,
                    "quantity": item.quantity.value,
                    "currency": item.unit_base_price.currency,
                    "unit_base_price": item.unit_base_price.amount,
                    "unit_final_price": item.unit_final_price.amount,
                }
                for item in autoship.items
            ],
        }

    @staticmethod
    def _to_domain(raw: dict) -> Autoship:
        return Autoship(
            id=raw["id"],
            customer_ref=raw["customer_ref"],
            items=[
                AutoshipItem(
                    product_id=i["product_ref"],
                    quantity=Quantity(i["quantity"]),
                    unit_base_price=Money(i["unit_base_price"], i["currency"]),
                    unit_final_price=Money(i["unit_final_price"], i["currency"]),
                )
                for i in raw["items"]
            ],
            frequency=Frequency(FrequencyUnit(raw["frequency_unit"]), raw["frequency_count"]),
            status=AutoshipStatus(raw["status"]),
            next_run_at=load_datetime(raw["next_run_at"]),
            shipping_address_ref=raw.get("shipping_address_ref"),
            created_at=load_datetime(raw["created_at"]),
            updated_at=load_datetime(raw["updated_at"]),
        )


class JsonAutoshipRunRepository(AutoshipRunRepository):

    def __init__(self, uow: StoreUnitOfWork) -> None:
        self._uow = uow

    # --- AutoshipRunRepository interface --------------------------------------

    def get(self, autoship_id: str, scheduled_at: datetime) -> AutoshipRun | None:
        key = run_key(autoship_id, scheduled_at)
        raw = self._uow.table(RUNS).get(key)
        if raw is None:
            return None
        self._uow.observe(RUNS, key, raw)
        return self._to_domain(raw)

    def list_for(self, autoship_id: str) -> list[AutoshipRun]:
        runs = [
            self._to_domain(raw)
            for raw in self._uow.table(RUNS).values()
            if raw["autoship_id"] == autoship_id
        ]
        return sorted(runs, key=lambda r: r.scheduled_at)

    def save(self, run: AutoshipRun) -> None:
        key = run_key(run.autoship_id, run.scheduled_at)
        observed = self._uow.observed(RUNS, key)
        if observed is None:
            write = StagedWrite(RUNS, key, self._to_raw(run), insert=True)
        else:
            write = StagedWrite(
                RUNS, key, self._to_raw(run), guard={"status": frozenset({observed["status"]})}
            )
        self._uow.stage(write)

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(run: AutoshipRun) -> dict:
        return {
            "id": run.id,
            "autoship_id": run.autoship_id,
            "scheduled_at": dump_datetime(run.scheduled_at),
            "status": run.status.value,
            "order_id": run.order_id,
            "error_message": run.error_message,
            "executed_at": dump_datetime(run.executed_at),
        }

    @staticmethod
    def _to_domain(raw: dict) -> AutoshipRun:
        return AutoshipRun(
            id=raw["id"],
            autoship_id=raw["autoship_id"],
            scheduled_at=load_datetime(raw["scheduled_at"]),
            status=RunStatus(raw["status"]),
            order_id=raw.get("order_id"),
            error_message=raw.get("error_message"),
            executed_at=load_datetime(raw.get("executed_at")),
        )
