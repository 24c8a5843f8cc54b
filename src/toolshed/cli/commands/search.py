"""Search command for finding tools in the registry."""

import click

from toolshed.cli.error_boundary import cli_error_boundary
from toolshed.cli.output import user_output
from toolshed.cli.registry_display import output_tools_json, render_tools_table
from toolshed.core.context import ToolshedContext
from toolshed.core.models import TOOL_TYPES, ToolType
from toolshed.core.registry_query import SearchFilter


@click.command()
@click.argument("query")
@click.option("-t", "--type", "tool_type", type=click.Choice(TOOL_TYPES), help="Only this type.")
@click.option("--tag", "tags", multiple=True, help="Require any of these tags (repeatable).")
@click.option("-a", "--author", help="Only tools by this author.")
@click.option("--min-downloads", type=click.IntRange(min=0), default=0, show_default=True)
@click.option("-r", "--regex", is_flag=True, help="Treat QUERY as a regular expression.")
@click.option("--case-sensitive", is_flag=True, help="Match QUERY case-sensitively.")
@click.option("--json", "as_json", is_flag=True, help="Print matches as JSON.")
@click.option("--refresh", is_flag=True, help="Ignore the registry cache.")
@click.pass_obj
@cli_error_boundary
def search(
    ctx: ToolshedContext,
    query: str,
    tool_type: ToolType | None,
    tags: tuple[str, ...],
    author: str | None,
    min_downloads: int,
    regex: bool,
    case_sensitive: bool,
    as_json: bool,
    refresh: bool,
) -> None:
    """Search registry tools by name, description, author and tags.

    Examples:

        toolshed search review

        toolshed search "^git" --regex --type agent
    """
    search_filter = SearchFilter(
        query=query,
        tool_type=tool_type,
        tags=tags,
        author=author,
        min_downloads=min_downloads,
        regex=regex,
        case_sensitive=case_sensitive,
    )
    if refresh:
        ctx.registry.refresh()

    tools = ctx.registry.search_tools(search_filter)
    if as_json:
        output_tools_json(tools)
        return
    if not tools:
        user_output("No tools found matching your search criteria")
        return
    render_tools_table(tools, title=f"Search results for '{query}'")
