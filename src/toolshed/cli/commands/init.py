"""Init command for preparing a project directory."""

import click

from toolshed.cli.error_boundary import cli_error_boundary
from toolshed.cli.output import user_output
from toolshed.core.config import FilesystemConfigOps
from toolshed.core.context import ToolshedContext
from toolshed.core.fetcher import parse_repo_url
from toolshed.core.models import TOOL_TYPES, LockDocument


@click.command()
@click.option("--registry", "registry_url", help="Registry repository (URL or owner/repo).")
@click.option("--branch", help="Registry branch to read from.")
@click.pass_obj
@cli_error_boundary
def init(ctx: ToolshedContext, registry_url: str | None, branch: str | None) -> None:
    """Create the install directory and an empty lock file.

    Examples:

        # Use a registry for this project
        toolshed init --registry acme/claude-tools
    """
    if registry_url is not None:
        parse_repo_url(registry_url)
        values: dict[str, str] = {"registry_url": registry_url}
        if branch is not None:
            values["registry_branch"] = branch
        config_path = FilesystemConfigOps(ctx.project_dir).save_project(**values)
        user_output(f"Wrote {config_path}")
    elif branch is not None:
        raise click.UsageError("--branch requires --registry")

    for tool_type in TOOL_TYPES:
        ctx.archive.ensure_dir(ctx.archive.base_dir / f"{tool_type}s")
    user_output(f"Install directory: {ctx.archive.base_dir}")

    if ctx.lock_store.exists():
        user_output(f"Lock file already exists: {ctx.lock_store.path}")
    else:
        ctx.lock_store.save(LockDocument.empty(ctx.time.now()))
        user_output(f"Created {ctx.lock_store.path}")

    if registry_url is not None:
        ctx.lock_store.set_registry(registry_url)
