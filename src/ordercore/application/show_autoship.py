"""Application service: Show Autoship use case (query)."""

from __future__ import annotations

from typing import Callable

from ordercore.application.dto import AutoshipDetailDTO, AutoshipDTO, AutoshipRunDTO
from ordercore.application.result import Failure, Result, Success
from ordercore.domain.exceptions import AutoshipNotFound, DomainException
from ordercore.domain.repository.unit_of_work import UnitOfWork


class ShowAutoshipHandler:

    def __init__(self, uow_factory: Callable[[], UnitOfWork]) -> None:
        self._uow_factory = uow_factory

    def handle(self, autoship_id: str) -> Result[AutoshipDetailDTO]:
        try:
            with self._uow_factory() as uow:
                autoship = uow.autoships.get_by_id(autoship_id)
                if autoship is None:
                    raise AutoshipNotFound(f"Autoship {autoship_id} not found")
                runs = uow.autoship_runs.list_for(autoship_id)
        except DomainException as exc:
            return Failure.from_exception(exc)
        return Success(
            AutoshipDetailDTO(
                autoship=AutoshipDTO.from_autoship(autoship),
                runs=tuple(AutoshipRunDTO.from_run(run) for run in runs),
            )
        )
