"""Discount resolution command."""

import click

from tabsettle.cli.error_handling import exit_on_domain_error
from tabsettle.domain.discount import DiscountCalculator, FlatAmount, Percent
from tabsettle.domain.entities import WriteOffReason
from tabsettle.domain.money import Money
from tabsettle.utils.amount_parser import parse_amount


@click.command("discount")
@click.option("--base", required=True, help="Amount the discount applies to (e.g., 42.50)")
@click.option("--percent", help="Percentage discount in (0, 100]")
@click.option("--amount", help="Flat discount amount")
@click.option(
    "--reason",
    type=click.Choice([reason.value for reason in WriteOffReason], case_sensitive=False),
    default=WriteOffReason.DISCOUNT.value,
    show_default=True,
    help="Audit reason",
)
@click.option("--note", help="Optional audit note")
@click.pass_context
def resolve_discount(
    ctx,
    base: str,
    percent: str | None,
    amount: str | None,
    reason: str,
    note: str | None,
):
    """Resolve a discount into the reduction it produces.

    Examples:
        tabsettle discount --base 42.50 --percent 10
        tabsettle discount --base 42.50 --amount 5 --reason COMPENSATION --note "cold soup"
    """
    if (percent is None) == (amount is None):
        click.echo("Error: Provide exactly one of --percent or --amount", err=True)
        ctx.exit(1)

    currency = ctx.obj["currency"].code
    write_off_reason = WriteOffReason(reason.upper())

    with exit_on_domain_error(ctx):
        base_amount = Money.of(currency, parse_amount(base))
        if percent is not None:
            discount = Percent(parse_amount(percent), write_off_reason, note)
        else:
            discount = FlatAmount(Money.of(currency, parse_amount(amount)), write_off_reason, note)
        write_off = DiscountCalculator().to_session_write_off(discount, base_amount)

    click.echo(f"Base amount: {base_amount}")
    click.echo(f"Reduction: {write_off.amount}")
    click.echo(f"Net amount: {base_amount.minus(write_off.amount)}")
    click.echo(f"Reason: {write_off.reason.value}")
    if write_off.note:
        click.echo(f"Note: {write_off.note}")


def register_commands(cli):
    """Register discount command with main CLI."""
    cli.add_command(resolve_discount)
