"""Update command for moving installed tools to their latest version."""

import click

from toolshed.cli.error_boundary import cli_error_boundary
from toolshed.cli.output import user_output
from toolshed.core.context import ToolshedContext


@click.command()
@click.argument("name", required=False)
@click.option("--all", "update_all", is_flag=True, help="Update every outdated tool.")
@click.option("--refresh", is_flag=True, help="Ignore the registry cache.")
@click.pass_obj
@cli_error_boundary
def update(ctx: ToolshedContext, name: str | None, update_all: bool, refresh: bool) -> None:
    """Update one installed tool, or all of them with --all.

    Examples:

        toolshed update code-reviewer

        toolshed update --all
    """
    if (name is None) == (not update_all):
        raise click.UsageError("Pass either a tool NAME or --all")

    if refresh:
        ctx.registry.refresh()

    if name is not None:
        user_output(ctx.updater.update(name).message)
        return

    results, errors = ctx.updater.update_all()
    if not results and not errors:
        user_output("All tools are up to date")
        return

    for result in results:
        if result.success:
            marker = click.style("✓ ", fg="green")
        else:
            marker = click.style("✗ ", fg="red")
        user_output(marker + result.message)

    if errors:
        if not results:
            user_output(click.style("Error: ", fg="red") + str(errors[0]))
        user_output(f"\n{len(errors)} update(s) failed")
        raise SystemExit(1)
