"""Install command for adding tools from the registry."""

import click

from toolshed.cli.error_boundary import cli_error_boundary
from toolshed.cli.output import user_output
from toolshed.core.context import ToolshedContext
from toolshed.core.models import TOOL_TYPES, ToolType


def parse_tool_spec(spec: str) -> tuple[str, str | None]:
    """Split ``name@version`` into its parts. A bare name means latest."""
    name, sep, version = spec.partition("@")
    if not name or (sep and not version):
        raise ValueError(f"Invalid tool spec '{spec}', expected NAME or NAME@VERSION")
    return name, version or None


@click.command()
@click.argument("specs", nargs=-1, required=True)
@click.option(
    "--type", "tool_type", type=click.Choice(TOOL_TYPES), help="Only match this tool type."
)
@click.option("-f", "--force", is_flag=True, help="Reinstall even if the version is installed.")
@click.pass_obj
@cli_error_boundary
def install(
    ctx: ToolshedContext, specs: tuple[str, ...], tool_type: ToolType | None, force: bool
) -> None:
    """Install one or more tools (NAME or NAME@VERSION).

    Each tool is installed independently; a failure does not stop the rest.

    Examples:

        toolshed install code-reviewer

        toolshed install code-reviewer@1.2.0 test-writer
    """
    requests = [parse_tool_spec(spec) for spec in specs]
    results, failures = ctx.installer.install_many(requests, tool_type=tool_type, force=force)
    if len(requests) == 1 and failures:
        raise failures[0].error

    for result in results:
        if result.skipped:
            user_output(f"{result.message} (use --force to reinstall)")
        else:
            check = click.style("✓ ", fg="green")
            user_output(f"{check}{result.message} → {result.install_path}")
    for failure in failures:
        user_output(click.style("✗ ", fg="red") + f"{failure.name}: {failure.error}")

    if failures:
        user_output(f"\n{len(failures)} of {len(specs)} install(s) failed")
        raise SystemExit(1)
