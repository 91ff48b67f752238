"""Abstract repository for Order aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ordercore.domain.model.order import Order, OrderStatus


class OrderRepository(ABC):

    @abstractmethod
    def get_by_id(self, order_id: str) -> Order | None:
        """Return an order by its ID, or None if not found."""

    @abstractmethod
    def add(self, order: Order) -> None:
        """Stage a new order; committing fails if the ID already exists."""

    @abstractmethod
    def save(self, order: Order, target: OrderStatus) -> None:
        """Stage an order that was moved to ``target``.

        The commit re-checks that the stored status still permits
        ``target``.
        """
