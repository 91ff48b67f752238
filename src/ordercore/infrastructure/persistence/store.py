"""Store backends hold every table as one JSON-shaped document.

Layout::

    {
      "schema_version": 1,
      "orders":        {order_id: row},          # items nested in the row
      "autoships":     {autoship_id: row},
      "autoship_runs": {"<autoship_id>@<scheduled_at, UTC>": row},
      "inventory":     {product_id: row},
      "movements":     [row, ...]                # append-only
    }
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from ordercore.domain.exceptions import ConcurrentModification

SCHEMA_VERSION = 1

Tables = dict[str, Any]

KEYED_TABLES = ("orders", "autoships", "autoship_runs", "inventory")


def empty_tables() -> Tables:
    tables: Tables = {"schema_version": SCHEMA_VERSION, "movements": []}
    for name in KEYED_TABLES:
        tables[name] = {}
    return tables


class StoreBackend(ABC):

    @abstractmethod
    def read(self) -> Tables:
        """Return a private copy of the current document."""

    @abstractmethod
    def transaction(self) -> AbstractContextManager[Tables]:
        """Exclusive read-modify-write.

        Yields a private copy of the current document; the copy replaces
        the stored document only if the block exits without an
        exception.  Raises StoreUnavailable if exclusive access cannot
        be obtained in bounded time.
        """


def dump_datetime(value: datetime | None) -> str | None:
    """Stored moments are UTC so equal instants serialise identically."""
    return value.astimezone(timezone.utc).isoformat() if value is not None else None


def load_datetime(raw: str | None) -> datetime | None:
    return datetime.fromisoformat(raw) if raw is not None else None


_ENTITY_NAMES = {
    "orders": "Order",
    "autoships": "Autoship",
    "autoship_runs": "Autoship run",
    "inventory": "Inventory record",
}


@dataclass
class StagedWrite:
    """A row waiting for commit, with the condition it is written under.

    ``insert`` rows must not exist yet.  Other rows must exist and every
    ``guard`` field must still hold one of its allowed values.  ``row``
    is merged over the current row, so partial rows update only the
    fields they carry.
    """

    table: str
    key: str
    row: dict[str, Any]
    insert: bool = False
    guard: dict[str, frozenset[Any]] = field(default_factory=dict)

    def check(self, current: dict[str, Any] | None) -> None:
        entity = _ENTITY_NAMES.get(self.table, self.table)
        if self.insert:
            if current is not None:
                raise ConcurrentModification(f"{entity} {self.key} already exists")
            return
        if current is None:
            raise ConcurrentModification(f"{entity} {self.key} disappeared before commit")
        for name, allowed in self.guard.items():
            if current.get(name) not in allowed:
                raise ConcurrentModification(
                    f"{entity} {self.key} was modified concurrently "
                    f"({name} is now {current.get(name)!r})"
                )
