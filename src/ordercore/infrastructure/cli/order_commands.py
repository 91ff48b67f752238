"""CLI commands for the Order aggregate."""

from __future__ import annotations

import click

from ordercore.application.dto import OrderDTO, OrderItemSpec
from ordercore.application.place_order import PlaceOrderHandler
from ordercore.application.show_order import ShowOrderHandler
from ordercore.application.update_order_status import UpdateOrderStatusHandler
from ordercore.domain.model.order import OrderStatus
from ordercore.infrastructure.bootstrap import uow_factory
from ordercore.infrastructure.cli.common import parse_priced_items, unwrap


def _display_order(dto: OrderDTO) -> None:
    """Shared formatting for displaying an order."""
    click.echo(f"Order {dto.id}  (status={dto.status}, source={dto.source})")
    click.echo(f"Customer: {dto.customer_ref}")
    if dto.autoship_ref:
        click.echo(f"Autoship: {dto.autoship_ref}")
    click.echo(f"Created:  {dto.created_at.isoformat()}")
    click.echo(f"Next:     {', '.join(dto.next_statuses) or '(final)'}")
    click.echo()
    click.echo(f"  {'Product':<20} {'Qty':>5} {'Price':>10} {'Final':>10} {'Released':>9}")
    click.echo(f"  {'-'*58}")
    for item in dto.items:
        click.echo(
            f"  {item.product_id:<20} {item.quantity:>5} {item.unit_base_price:>10} "
            f"{item.unit_final_price:>10} {item.released_quantity:>9}"
        )
    click.echo(f"  {'-'*58}")
    click.echo(f"  {'Subtotal':<27} {dto.currency} {dto.subtotal:>20,}")
    click.echo(f"  {'Discount':<27} {dto.currency} {dto.discount_total:>20,}")
    click.echo(f"  {'Order Total':<27} {dto.currency} {dto.total:>20,}")


@click.command("place")
@click.option("--customer", required=True, help="Customer reference.")
@click.option("--items", required=True, help="Items as 'Product:Qty:Price[:FinalPrice],...'.")
@click.option("--address", default=None, help="Shipping address reference.")
@click.pass_obj
def order_place(settings, customer: str, items: str, address: str | None) -> None:
    """Place a one-time order (reserves inventory)."""
    specs = [
        OrderItemSpec(product_id=p, quantity=q, unit_base_price=base, unit_final_price=final)
        for p, q, base, final in parse_priced_items(items)
    ]
    handler = PlaceOrderHandler(uow_factory(settings))
    dto = unwrap(handler.handle(customer, specs, shipping_address_ref=address))
    _display_order(dto)


@click.command("show")
@click.option("--id", "order_id", required=True, help="Order ID to display.")
@click.pass_obj
def order_show(settings, order_id: str) -> None:
    """Show details of an existing order."""
    handler = ShowOrderHandler(uow_factory(settings))
    _display_order(unwrap(handler.handle(order_id)))


@click.command("status")
@click.option("--id", "order_id", required=True, help="Order ID.")
@click.option(
    "--to",
    "target",
    required=True,
    type=click.Choice([s.value for s in OrderStatus]),
    help="Target status.",
)
@click.pass_obj
def order_status(settings, order_id: str, target: str) -> None:
    """Move an order to a new status (cancel/refund releases inventory)."""
    handler = UpdateOrderStatusHandler(uow_factory(settings))
    dto = unwrap(handler.handle(order_id, target))
    click.echo(f"Order {dto.id} is now {dto.status}.")
