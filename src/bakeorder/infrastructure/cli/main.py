import click

from bakeorder.infrastructure.bootstrap import build_application
from bakeorder.infrastructure.cli.context import CliContext
from bakeorder.infrastructure.cli.order_commands import (
    calendar_show,
    order_cancel,
    order_confirm,
    order_create,
    order_list,
    order_show,
    order_status,
    order_statuses,
    order_transaction,
    order_upgrade,
    payment_notify,
)
from bakeorder.infrastructure.config import get_settings
from bakeorder.infrastructure.log_config import setup_logging


@click.group()
@click.option(
    "--account", "account_id", type=int, envvar="BAKEORDER_ACCOUNT",
    help="ID of the acting account.",
)
@click.pass_context
def cli(ctx: click.Context, account_id: int | None) -> None:
    """Bakeorder — made-to-order purchase lifecycle"""
    settings = get_settings()
    setup_logging(settings)
    app = build_application(settings)
    ctx.call_on_close(app.close)
    ctx.obj = CliContext(settings=settings, app=app, account_id=account_id)


@cli.group()
def order() -> None:
    """Manage purchases."""


@cli.group()
def calendar() -> None:
    """Inspect closed dates."""


@cli.group()
def payment() -> None:
    """Record payment gateway callbacks."""


# Register subcommands
order.add_command(order_cancel)
order.add_command(order_confirm)
order.add_command(order_create)
order.add_command(order_list)
order.add_command(order_show)
order.add_command(order_status)
order.add_command(order_statuses)
order.add_command(order_transaction)
order.add_command(order_upgrade)
calendar.add_command(calendar_show)
payment.add_command(payment_notify)
