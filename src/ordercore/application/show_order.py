"""Application service: Show Order use case (query)."""

from __future__ import annotations

from typing import Callable

from ordercore.application.dto import OrderDTO
from ordercore.application.result import Failure, Result, Success
from ordercore.domain.exceptions import DomainException, OrderNotFound
from ordercore.domain.repository.unit_of_work import UnitOfWork


class ShowOrderHandler:

    def __init__(self, uow_factory: Callable[[], UnitOfWork]) -> None:
        self._uow_factory = uow_factory

    def handle(self, order_id: str) -> Result[OrderDTO]:
        try:
            with self._uow_factory() as uow:
                order = uow.orders.get_by_id(order_id)
        except DomainException as exc:
            return Failure.from_exception(exc)
        if order is None:
            return Failure.from_exception(OrderNotFound(f"Order {order_id} not found"))
        return Success(OrderDTO.from_order(order))
