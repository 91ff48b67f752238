"""CLI commands for inventory management."""

from __future__ import annotations

import click

from ordercore.application.adjust_inventory import AdjustInventoryHandler
from ordercore.application.inventory_movements import InventoryMovementsHandler
from ordercore.application.set_low_stock_threshold import SetLowStockThresholdHandler
from ordercore.application.show_inventory import ShowInventoryHandler, parse_stock_status
from ordercore.domain.model.inventory import StockStatus
from ordercore.infrastructure.bootstrap import uow_factory
from ordercore.infrastructure.cli.common import unwrap


@click.command("show")
@click.option("--status", default=None, type=click.Choice([s.value for s in StockStatus]),
              help="Only show products in this stock status.")
@click.pass_obj
def inventory_show(settings, status: str | None) -> None:
    """Show current inventory levels."""
    handler = ShowInventoryHandler(uow_factory(settings))
    lines = unwrap(handler.handle(parse_stock_status(status) if status else None))

    if not lines:
        click.echo("No inventory records found.")
        return

    click.echo(f"{'Product':<20} {'Quantity':>8} {'Threshold':>10} {'Status':>14}")
    click.echo("-" * 55)
    for line in lines:
        click.echo(
            f"{line.product_id:<20} {line.quantity:>8} "
            f"{line.low_stock_threshold:>10} {line.stock_status:>14}"
        )


@click.command("adjust")
@click.option("--product", required=True, help="Product ID.")
@click.option("--delta", required=True, type=int, help="Signed change, e.g. 50 or -3.")
@click.option("--reason", required=True, help="Why the stock changed.")
@click.option("--restock", is_flag=True, default=False, help="Log the change as a supplier restock.")
@click.pass_obj
def inventory_adjust(settings, product: str, delta: int, reason: str, restock: bool) -> None:
    """Correct the stock of a product."""
    handler = AdjustInventoryHandler(
        uow_factory(settings),
        default_threshold=settings.default_low_stock_threshold,
    )
    line = unwrap(handler.handle(product, delta, reason, restock=restock))
    click.echo(f"Inventory for '{product}' is now {line.quantity} ({line.stock_status})")


@click.command("threshold")
@click.option("--product", required=True, help="Product ID.")
@click.option("--value", "threshold", required=True, type=int, help="Low-stock threshold.")
@click.pass_obj
def inventory_threshold(settings, product: str, threshold: int) -> None:
    """Set the low-stock threshold of a product."""
    line = unwrap(SetLowStockThresholdHandler(uow_factory(settings)).handle(product, threshold))
    click.echo(f"Low-stock threshold for '{product}' set to {line.low_stock_threshold}")


@click.command("movements")
@click.option("--product", required=True, help="Product ID.")
@click.option("--limit", default=None, type=int, help="Show only the newest N movements.")
@click.pass_obj
def inventory_movements(settings, product: str, limit: int | None) -> None:
    """Show the stock movement log of a product, newest first."""
    movements = unwrap(InventoryMovementsHandler(uow_factory(settings)).handle(product, limit))
    if not movements:
        click.echo("No movements recorded.")
        return
    for m in movements:
        click.echo(
            f"{m.created_at.isoformat():<34} {m.change:>+7} {m.reason:<16} "
            f"{m.reference_id or m.note}"
        )
