"""Explicit success/failure outcomes returned by every use case.

Callers branch on the variant (``isinstance`` or ``result.ok``), never on
which attributes happen to be present.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from ordercore.domain.exceptions import DomainException, FailureReason

T = TypeVar("T")

_RETRY_MESSAGE = "The store is temporarily unavailable. Please try again."


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T
    warnings: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    reason: FailureReason
    message: str

    @property
    def ok(self) -> bool:
        return False

    @property
    def user_message(self) -> str:
        if self.reason is FailureReason.STORE_UNAVAILABLE:
            return _RETRY_MESSAGE
        return self.message

    @staticmethod
    def from_exception(exc: DomainException) -> Failure:
        return Failure(reason=exc.reason, message=str(exc))


Result = Union[Success[T], Failure]
