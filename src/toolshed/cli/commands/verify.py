"""Verify command for checking installed files against the lock file."""

import click

from toolshed.cli.error_boundary import cli_error_boundary
from toolshed.cli.output import user_output
from toolshed.core.context import ToolshedContext
from toolshed.core.errors import ToolshedError


@click.command()
@click.argument("names", nargs=-1)
@click.pass_obj
@cli_error_boundary
def verify(ctx: ToolshedContext, names: tuple[str, ...]) -> None:
    """Check that installed tools still have their files (default: all)."""
    targets = list(names) if names else sorted(ctx.installer.list_installed())
    if not targets:
        user_output("No tools installed")
        return

    failures = 0
    for name in targets:
        try:
            path = ctx.installer.verify_installation(name)
        except (ToolshedError, FileNotFoundError) as e:
            user_output(click.style("✗ ", fg="red") + f"{name}: {e}")
            failures += 1
            continue
        user_output(click.style("✓ ", fg="green") + f"{name} ({path})")

    if failures:
        raise SystemExit(1)
