"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException.
Each carries a ``FailureReason`` so the application layer can turn it into
an explicit ``Failure`` result without inspecting messages.
"""

from __future__ import annotations

from enum import Enum


class FailureReason(Enum):
    VALIDATION = "VALIDATION"
    ORDER_NOT_FOUND = "ORDER_NOT_FOUND"
    AUTOSHIP_NOT_FOUND = "AUTOSHIP_NOT_FOUND"
    PRODUCT_NOT_FOUND = "PRODUCT_NOT_FOUND"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    INVALID_STATE = "INVALID_STATE"
    CONCURRENT_MODIFICATION = "CONCURRENT_MODIFICATION"
    INSUFFICIENT_STOCK = "INSUFFICIENT_STOCK"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"


class DomainException(Exception):
    """Base class for all domain errors."""

    reason: FailureReason = FailureReason.VALIDATION


class ValidationError(DomainException):
    """A business rule or invariant was violated by the input."""


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""


class OrderNotFound(EntityNotFoundError):
    reason = FailureReason.ORDER_NOT_FOUND


class AutoshipNotFound(EntityNotFoundError):
    reason = FailureReason.AUTOSHIP_NOT_FOUND


class ProductNotFound(EntityNotFoundError):
    reason = FailureReason.PRODUCT_NOT_FOUND


class InvalidTransition(DomainException):
    """The requested order status is not reachable from the current one."""

    reason = FailureReason.INVALID_TRANSITION


class InvalidState(DomainException):
    """The autoship is not in a state that permits the operation."""

    reason = FailureReason.INVALID_STATE


class ConcurrentModification(DomainException):
    """The entity changed between read and commit."""

    reason = FailureReason.CONCURRENT_MODIFICATION


class InsufficientStock(DomainException):
    reason = FailureReason.INSUFFICIENT_STOCK


class StoreUnavailable(DomainException):
    """The backing store could not be reached or written.

    No partial write survives, so the caller may retry.
    """

    reason = FailureReason.STORE_UNAVAILABLE
