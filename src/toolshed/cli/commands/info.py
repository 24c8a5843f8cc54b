"""Info command for showing a registry tool's details."""

import click

from toolshed.cli.error_boundary import cli_error_boundary
from toolshed.cli.output import machine_output
from toolshed.cli.registry_display import render_tool_details
from toolshed.core.context import ToolshedContext
from toolshed.core.models import TOOL_TYPES, ToolType


@click.command()
@click.argument("name")
@click.option(
    "-t",
    "--type",
    "tool_type",
    type=click.Choice(TOOL_TYPES),
    help="Tool type (searched agent, command, skill when omitted).",
)
@click.option("--json", "as_json", is_flag=True, help="Print the descriptor as JSON.")
@click.pass_obj
@cli_error_boundary
def info(ctx: ToolshedContext, name: str, tool_type: ToolType | None, as_json: bool) -> None:
    """Show registry details for a tool."""
    if tool_type is None:
        tool = ctx.registry.find_tool(name)
    else:
        tool = ctx.registry.get_tool(name, tool_type)

    if as_json:
        machine_output(tool.model_dump_json(indent=2))
        return
    render_tool_details(tool)
