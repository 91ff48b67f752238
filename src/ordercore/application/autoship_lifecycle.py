"""Application services: autoship lifecycle use cases.

Pause, resume, cancel, skip and frequency changes all follow the same
shape: load the autoship, let the aggregate apply the change, and commit
guarded on the status and ``next_run_at`` that were read.  A concurrent
change to either makes the commit fail with ConcurrentModification
rather than overwrite it; two racing cancels therefore produce exactly
one success.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable

import structlog

from ordercore.application.clock import Clock, require_aware, utc_now
from ordercore.application.dto import AutoshipDTO
from ordercore.application.result import Failure, Result, Success
from ordercore.domain.exceptions import AutoshipNotFound, DomainException, InvalidState
from ordercore.domain.model.autoship import Autoship, AutoshipRun, RunStatus
from ordercore.domain.model.value_objects import Frequency
from ordercore.domain.repository.unit_of_work import UnitOfWork

logger = structlog.get_logger(__name__)

Change = Callable[[UnitOfWork, Autoship, datetime], None]


class AutoshipLifecycleHandler:
    """Shared load-change-commit cycle for the autoship commands."""

    event = "autoship_updated"

    def __init__(self, uow_factory: Callable[[], UnitOfWork], clock: Clock = utc_now) -> None:
        self._uow_factory = uow_factory
        self._clock = clock

    def _run(self, autoship_id: str, change: Change) -> Result[AutoshipDTO]:
        try:
            with self._uow_factory() as uow:
                autoship = uow.autoships.get_by_id(autoship_id)
                if autoship is None:
                    raise AutoshipNotFound(f"Autoship {autoship_id} not found")
                previous = autoship.status
                change(uow, autoship, self._clock())
                uow.autoships.save(autoship)
                uow.commit()
        except DomainException as exc:
            logger.info(
                f"{self.event}_rejected",
                autoship_id=autoship_id,
                reason=exc.reason.value,
                detail=str(exc),
            )
            return Failure.from_exception(exc)

        logger.info(
            self.event,
            autoship_id=autoship_id,
            previous=previous.value,
            status=autoship.status.value,
            next_run_at=autoship.next_run_at.isoformat() if autoship.next_run_at else None,
        )
        return Success(AutoshipDTO.from_autoship(autoship))


class PauseAutoshipHandler(AutoshipLifecycleHandler):
    event = "autoship_paused"

    def handle(self, autoship_id: str) -> Result[AutoshipDTO]:
        return self._run(autoship_id, lambda uow, autoship, now: autoship.pause(now))


class ResumeAutoshipHandler(AutoshipLifecycleHandler):
    event = "autoship_resumed"

    def handle(
        self, autoship_id: str, next_run_at: datetime | None = None
    ) -> Result[AutoshipDTO]:
        if next_run_at is not None:
            try:
                require_aware(next_run_at, "next_run_at")
            except DomainException as exc:
                return Failure.from_exception(exc)
        return self._run(
            autoship_id,
            lambda uow, autoship, now: autoship.resume(now, next_run_at=next_run_at),
        )


class CancelAutoshipHandler(AutoshipLifecycleHandler):
    event = "autoship_cancelled"

    def handle(self, autoship_id: str) -> Result[AutoshipDTO]:
        return self._run(autoship_id, lambda uow, autoship, now: autoship.cancel(now))


class ChangeAutoshipFrequencyHandler(AutoshipLifecycleHandler):
    event = "autoship_frequency_changed"

    def handle(self, autoship_id: str, frequency: Frequency) -> Result[AutoshipDTO]:
        return self._run(
            autoship_id,
            lambda uow, autoship, now: autoship.change_frequency(frequency, now),
        )


class SkipAutoshipHandler(AutoshipLifecycleHandler):
    """Skip the next delivery: mark its cycle skipped and move on one interval."""

    event = "autoship_skipped"

    def handle(self, autoship_id: str) -> Result[AutoshipDTO]:
        return self._run(autoship_id, self._skip)

    @staticmethod
    def _skip(uow: UnitOfWork, autoship: Autoship, now: datetime) -> None:
        if autoship.next_run_at is None:
            raise InvalidState(
                f"Cannot skip autoship {autoship.id}: it is {autoship.status.value}"
            )
        run = uow.autoship_runs.get(autoship.id, autoship.next_run_at)
        if run is None:
            run = AutoshipRun(
                autoship_id=autoship.id,
                scheduled_at=autoship.next_run_at,
                status=RunStatus.SKIPPED,
            )
        elif run.is_settled:
            raise InvalidState(
                f"Delivery of autoship {autoship.id} due {run.scheduled_at.isoformat()} "
                f"is already {run.status.value}"
            )
        run.status = RunStatus.SKIPPED
        run.executed_at = now
        autoship.advance(now)
        uow.autoship_runs.save(run)
