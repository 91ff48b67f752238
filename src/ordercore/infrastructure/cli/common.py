"""Parsing and output helpers shared by the CLI command modules."""

from __future__ import annotations

from datetime import datetime
from typing import TypeVar

import click

from ordercore.application.result import Failure, Result
from ordercore.domain.exceptions import ValidationError
from ordercore.domain.model.value_objects import Money

T = TypeVar("T")


def unwrap(result: Result[T]) -> T:
    """Return the success value, or exit with the failure's message."""
    if isinstance(result, Failure):
        raise click.ClickException(f"{result.user_message} [{result.reason.value}]")
    for warning in result.warnings:
        click.echo(f"Warning: {warning}", err=True)
    return result.value


def parse_moment(ctx, param, value: str | None) -> datetime | None:
    """Click callback: ISO-8601 timestamp that must carry a UTC offset."""
    if value is None:
        return None
    try:
        moment = datetime.fromisoformat(value)
    except ValueError:
        raise click.BadParameter(f"'{value}' is not an ISO-8601 timestamp.")
    if moment.tzinfo is None:
        raise click.BadParameter(f"'{value}' has no timezone; add e.g. '+00:00'.")
    return moment


def parse_priced_items(raw: str) -> list[tuple[str, int, int, int | None]]:
    """Parse 'sku-1:2:15000,sku-2:1:9_000:8_000' into (product, qty, base, final) tuples.

    The final price is optional and defaults to the base price.  Prices
    may use '_' as a thousands separator.
    """
    items: list[tuple[str, int, int, int | None]] = []
    for entry in raw.split(","):
        entry = entry.strip()
        parts = entry.split(":")
        if len(parts) not in (3, 4) or not parts[0].strip():
            raise click.BadParameter(
                f"Invalid item format '{entry}'. Expected 'Product:Qty:Price[:FinalPrice]'."
            )
        try:
            numbers = [int(parts[1])] + [Money.of(p).amount for p in parts[2:]]
        except (ValueError, ValidationError):
            raise click.BadParameter(f"Invalid number in item '{entry}'.")
        final = numbers[2] if len(numbers) == 3 else None
        items.append((parts[0].strip(), numbers[0], numbers[1], final))
    return items


def fmt_moment(moment: datetime | None) -> str:
    return moment.isoformat() if moment is not None else "-"
