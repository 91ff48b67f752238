"""CLI commands for autoships and the recurring delivery trigger."""

from __future__ import annotations

from datetime import datetime

import click

from ordercore.application.autoship_lifecycle import (
    CancelAutoshipHandler,
    ChangeAutoshipFrequencyHandler,
    PauseAutoshipHandler,
    ResumeAutoshipHandler,
    SkipAutoshipHandler,
)
from ordercore.application.clock import utc_now
from ordercore.application.create_autoship import CreateAutoshipHandler
from ordercore.application.dto import AutoshipDTO, AutoshipItemSpec
from ordercore.application.recurring_delivery import (
    DueAutoshipsHandler,
    RunDueAutoshipsHandler,
)
from ordercore.application.show_autoship import ShowAutoshipHandler
from ordercore.domain.exceptions import ValidationError
from ordercore.domain.model.value_objects import Frequency
from ordercore.infrastructure.bootstrap import uow_factory
from ordercore.infrastructure.cli.common import (
    fmt_moment,
    parse_moment,
    parse_priced_items,
    unwrap,
)


def _parse_frequency(ctx, param, value: str | None) -> Frequency | None:
    if value is None:
        return None
    try:
        return Frequency.parse(value)
    except ValidationError as exc:
        raise click.BadParameter(str(exc))


def _display_autoship(dto: AutoshipDTO) -> None:
    click.echo(f"Autoship {dto.id}  (status={dto.status}, {dto.frequency})")
    click.echo(f"Customer: {dto.customer_ref}")
    click.echo(f"Next run: {fmt_moment(dto.next_run_at)}")
    for product_id, quantity in dto.items:
        click.echo(f"  {product_id:<20} {quantity:>5}")


@click.command("create")
@click.option("--customer", required=True, help="Customer reference.")
@click.option("--items", required=True, help="Items as 'Product:Qty:Price[:FinalPrice],...'.")
@click.option("--every", "frequency", required=True, callback=_parse_frequency,
              help="Frequency such as '30d' or '2w'.")
@click.option("--start", "start_at", default=None, callback=parse_moment,
              help="First delivery (ISO-8601 with offset); default now + frequency.")
@click.option("--address", default=None, help="Shipping address reference.")
@click.pass_obj
def autoship_create(settings, customer, items, frequency, start_at, address) -> None:
    """Subscribe a customer to recurring delivery."""
    specs = [
        AutoshipItemSpec(product_id=p, quantity=q, unit_base_price=base, unit_final_price=final)
        for p, q, base, final in parse_priced_items(items)
    ]
    handler = CreateAutoshipHandler(uow_factory(settings))
    dto = unwrap(
        handler.handle(customer, specs, frequency, start_at=start_at, shipping_address_ref=address)
    )
    _display_autoship(dto)


@click.command("show")
@click.option("--id", "autoship_id", required=True, help="Autoship ID.")
@click.pass_obj
def autoship_show(settings, autoship_id: str) -> None:
    """Show an autoship and its delivery history."""
    detail = unwrap(ShowAutoshipHandler(uow_factory(settings)).handle(autoship_id))
    _display_autoship(detail.autoship)
    if not detail.runs:
        return
    click.echo()
    click.echo(f"  {'Scheduled':<32} {'Status':<10} {'Order':<36}")
    for run in detail.runs:
        click.echo(f"  {fmt_moment(run.scheduled_at):<32} {run.status:<10} {run.order_id or '-':<36}")
        if run.error_message:
            click.echo(f"    {run.error_message}")


@click.command("pause")
@click.option("--id", "autoship_id", required=True, help="Autoship ID.")
@click.pass_obj
def autoship_pause(settings, autoship_id: str) -> None:
    """Pause an active autoship."""
    unwrap(PauseAutoshipHandler(uow_factory(settings)).handle(autoship_id))
    click.echo(f"Autoship {autoship_id} paused.")


@click.command("resume")
@click.option("--id", "autoship_id", required=True, help="Autoship ID.")
@click.option("--at", "next_run_at", default=None, callback=parse_moment,
              help="Next delivery (ISO-8601 with offset); default now + frequency.")
@click.pass_obj
def autoship_resume(settings, autoship_id: str, next_run_at: datetime | None) -> None:
    """Resume a paused autoship."""
    dto = unwrap(
        ResumeAutoshipHandler(uow_factory(settings)).handle(autoship_id, next_run_at=next_run_at)
    )
    click.echo(f"Autoship {autoship_id} resumed; next run {fmt_moment(dto.next_run_at)}.")


@click.command("cancel")
@click.option("--id", "autoship_id", required=True, help="Autoship ID.")
@click.pass_obj
def autoship_cancel(settings, autoship_id: str) -> None:
    """Cancel an autoship for good."""
    unwrap(CancelAutoshipHandler(uow_factory(settings)).handle(autoship_id))
    click.echo(f"Autoship {autoship_id} cancelled.")


@click.command("skip")
@click.option("--id", "autoship_id", required=True, help="Autoship ID.")
@click.pass_obj
def autoship_skip(settings, autoship_id: str) -> None:
    """Skip the next scheduled delivery."""
    dto = unwrap(SkipAutoshipHandler(uow_factory(settings)).handle(autoship_id))
    click.echo(f"Delivery skipped; next run {fmt_moment(dto.next_run_at)}.")


@click.command("frequency")
@click.option("--id", "autoship_id", required=True, help="Autoship ID.")
@click.option("--every", "frequency", required=True, callback=_parse_frequency,
              help="New frequency such as '30d' or '2w'.")
@click.pass_obj
def autoship_frequency(settings, autoship_id: str, frequency: Frequency) -> None:
    """Change how often an autoship delivers."""
    dto = unwrap(
        ChangeAutoshipFrequencyHandler(uow_factory(settings)).handle(autoship_id, frequency)
    )
    click.echo(f"Autoship {autoship_id} now delivers {dto.frequency}.")


@click.command("due")
@click.option("--as-of", "as_of", default=None, callback=parse_moment,
              help="Reference time (ISO-8601 with offset); default now.")
@click.pass_obj
def autoship_due(settings, as_of: datetime | None) -> None:
    """List autoships due for delivery."""
    ids = unwrap(DueAutoshipsHandler(uow_factory(settings)).handle(as_of or utc_now()))
    if not ids:
        click.echo("No autoships due.")
        return
    for autoship_id in ids:
        click.echo(autoship_id)


@click.command("run-due")
@click.option("--as-of", "as_of", default=None, callback=parse_moment,
              help="Reference time (ISO-8601 with offset); default now.")
@click.pass_obj
def autoship_run_due(settings, as_of: datetime | None) -> None:
    """Create orders for every due autoship."""
    outcomes = unwrap(RunDueAutoshipsHandler(uow_factory(settings)).handle(as_of))
    if not outcomes:
        click.echo("No autoships due.")
        return
    failed = 0
    for outcome in outcomes:
        if outcome.result.ok:
            click.echo(f"{outcome.autoship_id}: order {outcome.result.value.order_id}")
        else:
            failed += 1
            click.echo(f"{outcome.autoship_id}: failed ({outcome.result.user_message})")
    click.echo(f"{len(outcomes) - failed} delivered, {failed} failed.")
