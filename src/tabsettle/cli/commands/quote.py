"""Quote command."""

from datetime import datetime, UTC

import click

from tabsettle.cli.error_handling import exit_on_domain_error
from tabsettle.domain.check import Check
from tabsettle.domain.check_amount import CheckAmountCalculator
from tabsettle.domain.session_import import SessionImportService
from tabsettle.utils.selection_parser import parse_selection


@click.command("quote")
@click.argument("session_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--select",
    "selections",
    multiple=True,
    required=True,
    help="Item to pay as ITEM:QTY (repeatable; QTY defaults to 1)",
)
@click.option(
    "--check",
    "create_check",
    is_flag=True,
    help="Also create a check from the quote and show its id and status",
)
@click.pass_context
def quote_check(ctx, session_file: str, selections: tuple[str, ...], create_check: bool):
    """Quote what a payer owes for the selected items.

    Examples:
        tabsettle quote session.json --select beer:2
        tabsettle quote session.json --select beer:1 --select burger --check
    """
    currency = ctx.obj["currency"].code
    calculator = CheckAmountCalculator()

    with exit_on_domain_error(ctx):
        state = SessionImportService(currency).load_session(session_file)
        parsed = [parse_selection(selection) for selection in selections]
        gross = calculator.gross_selected_amount(currency, state.items, parsed)
        quote = calculator.quote(
            currency,
            state.items,
            parsed,
            state.item_write_offs,
            state.write_offs,
        )

    click.echo(f"\nGross amount: {gross}")
    click.echo(f"Check amount: {quote.check_amount}")
    click.echo("-" * 70)
    click.echo(f"{'Item':<30} {'Qty':>5} {'Unit price':>15} {'Paid':>15}")
    click.echo("-" * 70)
    for item in quote.paid_items:
        click.echo(
            f"{item.item_id[:30]:<30} {item.quantity:>5} "
            f"{str(item.unit_price_at_payment.amount):>15} {str(item.paid_amount.amount):>15}"
        )

    if create_check:
        check = Check.from_quote(quote, created_at=datetime.now(UTC))
        click.echo(f"\nCreated check {check.id}")
        click.echo(f"  Status: {check.status.value}")
        click.echo(f"  Amount: {check.amount}")


def register_commands(cli):
    """Register quote command with main CLI."""
    cli.add_command(quote_check)
