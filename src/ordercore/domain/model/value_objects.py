"""Value Objects shared across the domain.

Value Objects are immutable and compared by value, not identity.
They encapsulate validation so invalid values can never exist.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from ordercore.domain.exceptions import ValidationError

DEFAULT_CURRENCY = "IDR"


@dataclass(frozen=True)
class Money:
    """Monetary amount in integer minor units of a currency.

    Integers keep totals exact; the store never sees fractional amounts.
    """

    amount: int
    currency: str = DEFAULT_CURRENCY

    def __post_init__(self) -> None:
        if isinstance(self.amount, bool) or not isinstance(self.amount, int):
            raise ValidationError(
                f"Money amount must be an int, got {type(self.amount).__name__}"
            )
        if self.amount < 0:
            raise ValidationError(
                f"Money amount cannot be negative, got {self.amount}"
            )

    # --- Arithmetic helpers ---------------------------------------------------

    def __add__(self, other: Money) -> Money:
        self._assert_same_currency(other)
        return Money(self.amount + other.amount, self.currency)

    def __sub__(self, other: Money) -> Money:
        self._assert_same_currency(other)
        result = self.amount - other.amount
        if result < 0:
            raise ValidationError("Money subtraction would result in a negative amount")
        return Money(result, self.currency)

    def __mul__(self, factor: int) -> Money:
        if not isinstance(factor, int):
            raise TypeError(f"Can only multiply Money by int, got {type(factor).__name__}")
        return Money(self.amount * factor, self.currency)

    def __lt__(self, other: Money) -> bool:
        self._assert_same_currency(other)
        return self.amount < other.amount

    def __le__(self, other: Money) -> bool:
        self._assert_same_currency(other)
        return self.amount <= other.amount

    def __gt__(self, other: Money) -> bool:
        self._assert_same_currency(other)
        return self.amount > other.amount

    def __ge__(self, other: Money) -> bool:
        self._assert_same_currency(other)
        return self.amount >= other.amount

    # --- Display --------------------------------------------------------------

    def __str__(self) -> str:
        return f"{self.currency} {self.amount:,}"

    # --- Internal helpers -----------------------------------------------------

    def _assert_same_currency(self, other: Money) -> None:
        if self.currency != other.currency:
            raise ValidationError(
                f"Cannot combine {self.currency} with {other.currency}"
            )

    # --- Factory --------------------------------------------------------------

    @staticmethod
    def zero(currency: str = DEFAULT_CURRENCY) -> Money:
        return Money(0, currency)

    @staticmethod
    def of(amount: str | int, currency: str = DEFAULT_CURRENCY) -> Money:
        """Convenient factory that coerces to int safely."""
        try:
            return Money(int(str(amount).replace("_", "").replace(",", "")), currency)
        except ValueError as exc:
            raise ValidationError(f"Invalid money amount: {amount!r}") from exc


@dataclass(frozen=True)
class Quantity:
    """A positive integer quantity.

    Enforces the invariant that you cannot order zero or negative items.
    """

    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ValidationError(
                f"Quantity must be an integer, got {type(self.value).__name__}"
            )
        if self.value <= 0:
            raise ValidationError("Quantity must be positive")

    def __str__(self) -> str:
        return str(self.value)


class FrequencyUnit(Enum):
    DAY = "day"
    WEEK = "week"


_UNIT_DAYS = {FrequencyUnit.DAY: 1, FrequencyUnit.WEEK: 7}


@dataclass(frozen=True)
class Frequency:
    """Recurrence interval of an autoship, e.g. every 30 days or every 2 weeks.

    Only fixed-length units are supported so that ``after()`` is exact.
    """

    unit: FrequencyUnit
    count: int

    def __post_init__(self) -> None:
        if not isinstance(self.unit, FrequencyUnit):
            raise ValidationError(f"Unknown frequency unit: {self.unit!r}")
        if isinstance(self.count, bool) or not isinstance(self.count, int):
            raise ValidationError(
                f"Frequency count must be an integer, got {type(self.count).__name__}"
            )
        if self.count <= 0:
            raise ValidationError("Frequency count must be positive")

    @property
    def interval(self) -> timedelta:
        return timedelta(days=_UNIT_DAYS[self.unit] * self.count)

    def after(self, moment: datetime) -> datetime:
        return moment + self.interval

    def __str__(self) -> str:
        suffix = "" if self.count == 1 else "s"
        return f"every {self.count} {self.unit.value}{suffix}"

    @staticmethod
    def parse(raw: str) -> Frequency:
        """Parse '30d', '2w' or '30 days' into a Frequency."""
        text = raw.strip().lower()
        for unit, suffixes in (
            (FrequencyUnit.DAY, ("days", "day", "d")),
            (FrequencyUnit.WEEK, ("weeks", "week", "w")),
        ):
            for suffix in suffixes:
                if text.endswith(suffix):
                    number = text[: -len(suffix)].strip()
                    try:
                        return Frequency(unit, int(number))
                    except ValueError as exc:
                        raise ValidationError(f"Invalid frequency: {raw!r}") from exc
        raise ValidationError(f"Invalid frequency: {raw!r}")
