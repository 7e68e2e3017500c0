"""Main CLI entry point."""

import click

from tabsettle.cli.error_handling import handle_domain_error
from tabsettle.config import CURRENCY_ENV_VAR, LOG_LEVEL_ENV_VAR, resolve_currency
from tabsettle.domain.errors import DomainError
from tabsettle.utils.logging import configure_logging

# Import and register all commands at module level
from tabsettle.cli.commands import discount, quote


@click.group()
@click.option(
    "--currency",
    help=f"Currency code (overrides {CURRENCY_ENV_VAR} environment variable, default EUR)",
    envvar=CURRENCY_ENV_VAR,
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
    envvar=LOG_LEVEL_ENV_VAR,
    help="Logging level",
)
@click.pass_context
def cli(ctx, currency: str | None, log_level: str):
    """Tabsettle - settle a running tab down to the cent.

    Quote what a payer owes for a selection of items, after item and session
    write-offs, with a deterministic per-item allocation.
    """
    ctx.ensure_object(dict)
    configure_logging(log_level)

    try:
        ctx.obj["currency"] = resolve_currency(currency)
    except DomainError as e:
        handle_domain_error(ctx, e)


# Register all commands
quote.register_commands(cli)
discount.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
