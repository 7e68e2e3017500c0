"""CLI error handling helpers."""

from contextlib import contextmanager
from typing import Iterator

import click

from tabsettle.domain.errors import DomainError


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError | OSError) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)


@contextmanager
def exit_on_domain_error(ctx: click.Context) -> Iterator[None]:
    """Turn domain, parsing and file errors raised in the block into a CLI error."""
    try:
        yield
    except (ValueError, FileNotFoundError) as e:
        # DomainError is a ValueError
        handle_domain_error(ctx, e)
