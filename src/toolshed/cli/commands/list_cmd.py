"""List command for showing installed tools, or registry tools with --remote."""

import json

import click
from rich.console import Console
from rich.table import Table

from toolshed.cli.error_boundary import cli_error_boundary
from toolshed.cli.output import machine_output, user_output
from toolshed.cli.registry_display import output_tools_json, render_tools_table
from toolshed.core.context import ToolshedContext
from toolshed.core.models import TOOL_TYPES, ToolType
from toolshed.core.registry_query import SORT_FIELDS, ListFilter, SortField


@click.command(name="list")
@click.option("--type", "tool_type", type=click.Choice(TOOL_TYPES), help="Only show this type.")
@click.option("--json", "as_json", is_flag=True, help="Print the tools as JSON.")
@click.option("--remote", is_flag=True, help="List registry tools instead of installed ones.")
@click.option("--tag", "tags", multiple=True, help="With --remote: require any of these tags.")
@click.option("-a", "--author", help="With --remote: only tools by this author.")
@click.option(
    "--sort-by",
    type=click.Choice(SORT_FIELDS),
    default="name",
    show_default=True,
    help="With --remote: sort field.",
)
@click.option("--sort-desc", is_flag=True, help="With --remote: sort in descending order.")
@click.option(
    "-l",
    "--limit",
    type=click.IntRange(min=0),
    default=0,
    help="With --remote: show at most this many tools (0 for all).",
)
@click.pass_obj
@cli_error_boundary
def list_installed(
    ctx: ToolshedContext,
    tool_type: ToolType | None,
    as_json: bool,
    remote: bool,
    tags: tuple[str, ...],
    author: str | None,
    sort_by: SortField,
    sort_desc: bool,
    limit: int,
) -> None:
    """List tools recorded in the lock file, or available in the registry.

    Examples:

        toolshed list --type agent

        toolshed list --remote --sort-by downloads --sort-desc --limit 10
    """
    if remote:
        listing = ListFilter(
            tool_type=tool_type,
            tags=tags,
            author=author,
            sort_by=sort_by,
            sort_desc=sort_desc,
            limit=limit,
        )
        _list_remote(ctx, listing, as_json)
        return

    tools = ctx.lock_store.list_tools()
    if tool_type is not None:
        tools = {name: record for name, record in tools.items() if record.type == tool_type}

    if as_json:
        data = {name: record.model_dump(mode="json") for name, record in sorted(tools.items())}
        machine_output(json.dumps(data, indent=2))
        return

    if not tools:
        user_output("No tools installed")
        return

    table = Table(title=f"Installed tools ({len(tools)})")
    table.add_column("Name", style="cyan")
    table.add_column("Type", style="yellow")
    table.add_column("Version")
    table.add_column("Installed", style="dim")
    for name, record in sorted(tools.items()):
        table.add_row(
            name, record.type, record.version, record.installed_at.strftime("%Y-%m-%d %H:%M")
        )
    Console().print(table)


def _list_remote(ctx: ToolshedContext, listing: ListFilter, as_json: bool) -> None:
    tools = ctx.registry.list_tools(listing)
    if as_json:
        output_tools_json(tools)
        return
    if not tools:
        user_output("No tools found in registry")
        return
    render_tools_table(tools, title="Registry tools")
