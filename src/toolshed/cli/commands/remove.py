"""Remove command for uninstalling tools."""

import click

from toolshed.cli.error_boundary import cli_error_boundary
from toolshed.cli.output import user_output
from toolshed.core.context import ToolshedContext


@click.command()
@click.argument("names", nargs=-1, required=True)
@click.pass_obj
@cli_error_boundary
def remove(ctx: ToolshedContext, names: tuple[str, ...]) -> None:
    """Remove installed tools and their lock entries.

    Examples:

        toolshed remove code-reviewer
    """
    for name in names:
        record = ctx.installer.uninstall(name)
        user_output(f"✓ Removed {name}@{record.version}")

