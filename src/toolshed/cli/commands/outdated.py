"""Outdated command for comparing installed tools to the registry."""

import click
from rich.console import Console
from rich.table import Table

from toolshed.cli.error_boundary import cli_error_boundary
from toolshed.cli.output import user_output
from toolshed.core.context import ToolshedContext


@click.command()
@click.option("--refresh", is_flag=True, help="Ignore the registry cache.")
@click.pass_obj
@cli_error_boundary
def outdated(ctx: ToolshedContext, refresh: bool) -> None:
    """Show installed tools with a newer registry version."""
    if refresh:
        ctx.registry.refresh()

    tools = ctx.updater.check_outdated()
    if not tools:
        user_output("All tools are up to date")
        return

    table = Table(title=f"Outdated tools ({len(tools)})")
    table.add_column("Name", style="cyan")
    table.add_column("Type", style="yellow")
    table.add_column("Installed", style="red")
    table.add_column("Latest", style="green")
    for tool in tools:
        table.add_row(tool.name, tool.tool_type, tool.installed_version, tool.latest_version)
    Console().print(table)
    user_output("Run 'toolshed update --all' to update them")
