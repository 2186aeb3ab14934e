"""CLI commands for the purchase lifecycle."""

from __future__ import annotations

import click

from bakeorder.application.dto import OrderItemSpec, PurchaseDTO, TransactionDTO
from bakeorder.application.result import Result
from bakeorder.domain.exceptions import DomainException
from bakeorder.domain.model.value_objects import Money
from bakeorder.infrastructure.cli.context import CliContext, pass_cli


def _parse_items(raw: str) -> list[OrderItemSpec]:
    """Parse '12:3,14:1' (variant id : quantity) into OrderItemSpec list."""
    specs: list[OrderItemSpec] = []
    for pair in raw.split(","):
        pair = pair.strip()
        if ":" not in pair:
            raise click.BadParameter(
                f"Invalid item format '{pair}'. Expected 'VariantId:Quantity'."
            )
        variant_str, qty_str = pair.rsplit(":", 1)
        try:
            variant_id = int(variant_str)
            qty = int(qty_str)
        except ValueError:
            raise click.BadParameter(f"Invalid item '{pair}'. Both parts must be integers.")
        specs.append(OrderItemSpec(variant_id=variant_id, quantity=qty))
    return specs


def unwrap(result: Result):
    if not result.ok:
        raise click.ClickException(str(result.error))
    return result.value


def display_purchase(dto: PurchaseDTO) -> None:
    """Shared formatting for displaying a purchase."""
    click.echo(f"Purchase #{dto.id}  (status={dto.status})")
    click.echo(f"Event date: {dto.event_date}")
    click.echo(f"Created:    {dto.created_at}")
    click.echo()
    click.echo(f"  {'Item':<30} {'Qty':>5} {'Price':>18} {'Total':>18}")
    click.echo(f"  {'-'*74}")
    for item in dto.items:
        click.echo(
            f"  {item.name:<30} {item.quantity:>5} {item.unit_price:>18} {item.line_total:>18}"
        )
    click.echo(f"  {'-'*74}")
    if dto.delivery_fee:
        click.echo(f"  {'Delivery fee':<36} {dto.delivery_fee:>37}")
    click.echo(f"  {'Total':<36} {dto.total:>37}")

    for transaction in dto.transactions:
        click.echo()
        display_transaction(transaction)


def display_transaction(dto: TransactionDTO) -> None:
    click.echo(f"Transaction #{dto.id}  (status={dto.status})")
    if dto.payment_url:
        click.echo(f"  Pay at:    {dto.payment_url}")
    if dto.reference_id:
        click.echo(f"  Reference: {dto.reference_id}")


@click.command("create")
@click.option(
    "--event-date", required=True, type=click.DateTime(formats=["%Y-%m-%d"]),
    help="Event date (YYYY-MM-DD).",
)
@click.option("--items", default=None, help="Items as 'VariantId:Qty,...'. Defaults to the cart.")
@click.option("--delivery-fee", default=None, help="Delivery fee (e.g. 20000).")
@pass_cli
def order_create(cli: CliContext, event_date, items: str | None, delivery_fee: str | None) -> None:
    """Place an order and get a payment link."""
    identity = cli.identity()

    if items:
        specs = _parse_items(items)
    else:
        cart = cli.app.carts.items_of(identity.account_id)
        if not cart:
            raise click.ClickException("Cart is empty; pass --items explicitly.")
        specs = [OrderItemSpec(variant_id=v, quantity=q) for v, q in cart.items()]

    try:
        fee = Money.of(delivery_fee, cli.settings.currency) if delivery_fee else None
    except DomainException as exc:
        raise click.ClickException(str(exc))

    dto = unwrap(
        cli.app.orchestrator.process_order(identity, event_date.date(), specs, fee)
    )
    click.echo("Order created.")
    display_purchase(dto)


@click.command("show")
@click.option("--id", "purchase_id", required=True, type=int, help="Purchase ID to display.")
@pass_cli
def order_show(cli: CliContext, purchase_id: int) -> None:
    """Show details of a purchase."""
    display_purchase(unwrap(cli.app.orchestrator.find_purchase(cli.identity(), purchase_id)))


@click.command("list")
@pass_cli
def order_list(cli: CliContext) -> None:
    """List purchases visible to the acting account."""
    purchases = unwrap(cli.app.orchestrator.list_purchases(cli.identity()))
    if not purchases:
        click.echo("No purchases found.")
        return

    click.echo(f"{'ID':<20} {'Event':<12} {'Status':<10} {'Total':>18}")
    click.echo("-" * 63)
    for p in purchases:
        click.echo(f"{p.id:<20} {p.event_date:<12} {p.status:<10} {p.total:>18}")


@click.command("cancel")
@click.option("--id", "purchase_id", required=True, type=int, help="Purchase ID to cancel.")
@pass_cli
def order_cancel(cli: CliContext, purchase_id: int) -> None:
    """Cancel a purchase and reopen its dates."""
    unwrap(cli.app.orchestrator.cancel_order(cli.identity(), purchase_id))
    click.echo(f"Purchase #{purchase_id} cancelled.")


@click.command("confirm")
@click.option("--id", "purchase_id", required=True, type=int, help="Purchase ID to confirm.")
@pass_cli
def order_confirm(cli: CliContext, purchase_id: int) -> None:
    """Confirm a paid purchase (admin)."""
    unwrap(cli.app.orchestrator.confirm_order(cli.identity(), purchase_id))
    click.echo(f"Purchase #{purchase_id} confirmed.")


@click.command("status")
@click.option("--id", "purchase_id", required=True, type=int, help="Purchase ID.")
@click.option("--to", "status", required=True, help="Target status name.")
@pass_cli
def order_status(cli: CliContext, purchase_id: int, status: str) -> None:
    """Move a purchase to a given status (admin)."""
    dto = unwrap(cli.app.orchestrator.change_status(cli.identity(), purchase_id, status))
    click.echo(f"Purchase #{purchase_id} is now {dto.status}.")


@click.command("upgrade")
@click.option("--id", "purchase_id", required=True, type=int, help="Purchase ID.")
@pass_cli
def order_upgrade(cli: CliContext, purchase_id: int) -> None:
    """Advance a purchase to its next status (admin)."""
    dto = unwrap(cli.app.orchestrator.upgrade_status(cli.identity(), purchase_id))
    click.echo(f"Purchase #{purchase_id} is now {dto.status}.")


@click.command("statuses")
@click.option("--id", "purchase_id", required=True, type=int, help="Purchase ID.")
@pass_cli
def order_statuses(cli: CliContext, purchase_id: int) -> None:
    """List the statuses a purchase can move to."""
    statuses = unwrap(cli.app.orchestrator.available_statuses(cli.identity(), purchase_id))
    if not statuses:
        click.echo("No further status changes are possible.")
        return
    for name, label in statuses.items():
        click.echo(f"{name:<10} {label}")


@click.command("transaction")
@click.option("--id", "purchase_id", required=True, type=int, help="Purchase ID.")
@pass_cli
def order_transaction(cli: CliContext, purchase_id: int) -> None:
    """Show the latest payment transaction of a purchase."""
    display_transaction(
        unwrap(cli.app.orchestrator.find_transaction_of_purchase(cli.identity(), purchase_id))
    )


@click.command("show")
@click.option("--from", "start", required=True, type=click.DateTime(formats=["%Y-%m-%d"]))
@click.option("--to", "end", required=True, type=click.DateTime(formats=["%Y-%m-%d"]))
@pass_cli
def calendar_show(cli: CliContext, start, end) -> None:
    """Show closed dates in a range."""
    closed = unwrap(cli.app.orchestrator.closed_dates(start.date(), end.date()))
    if not closed:
        click.echo("No closed dates in range.")
        return
    for cd in closed:
        click.echo(f"{cd.date}  {cd.closure_type}")


@click.command("notify")
@click.option("--reference", required=True, help="Gateway reference of the transaction.")
@click.option("--status", required=True, help="Status reported by the gateway.")
@pass_cli
def payment_notify(cli: CliContext, reference: str, status: str) -> None:
    """Record a payment status reported by the gateway."""
    dto = unwrap(cli.app.orchestrator.record_payment_status(reference, status))
    display_transaction(dto)
