import click

from ordercore.infrastructure.bootstrap import load_settings
from ordercore.infrastructure.cli.autoship_commands import (
    autoship_cancel,
    autoship_create,
    autoship_due,
    autoship_frequency,
    autoship_pause,
    autoship_resume,
    autoship_run_due,
    autoship_show,
    autoship_skip,
)
from ordercore.infrastructure.cli.inventory_commands import (
    inventory_adjust,
    inventory_movements,
    inventory_show,
    inventory_threshold,
)
from ordercore.infrastructure.cli.order_commands import order_place, order_show, order_status


@click.group()
@click.pass_context
def cli(ctx: click.Context) -> None:
    """ordercore — orders, inventory and autoship"""
    ctx.obj = load_settings()


@cli.group()
def order() -> None:
    """Manage orders."""


@cli.group()
def autoship() -> None:
    """Manage recurring deliveries."""


@cli.group()
def inventory() -> None:
    """Manage inventory."""


# Register subcommands
order.add_command(order_place)
order.add_command(order_show)
order.add_command(order_status)
autoship.add_command(autoship_create)
autoship.add_command(autoship_show)
autoship.add_command(autoship_pause)
autoship.add_command(autoship_resume)
autoship.add_command(autoship_cancel)
autoship.add_command(autoship_skip)
autoship.add_command(autoship_frequency)
autoship.add_command(autoship_due)
autoship.add_command(autoship_run_due)
inventory.add_command(inventory_show)
inventory.add_command(inventory_adjust)
inventory.add_command(inventory_threshold)
inventory.add_command(inventory_movements)
