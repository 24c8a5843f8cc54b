"""Cache commands for inspecting and clearing the registry cache."""

import click

from toolshed.cli.error_boundary import cli_error_boundary
from toolshed.cli.output import user_output
from toolshed.core.context import ToolshedContext


@click.group(name="cache")
def cache_group() -> None:
    """Manage the local registry cache."""


@cache_group.command(name="status")
@click.pass_obj
@cli_error_boundary
def status(ctx: ToolshedContext) -> None:
    """Show where the registry is cached and whether it is fresh."""
    cache = ctx.cache
    user_output(f"Cache directory: {cache.cache_dir}")
    user_output(f"TTL: {int(cache.ttl.total_seconds())}s")

    metadata = cache.metadata()
    if metadata is None:
        user_output("Status: empty")
        return

    state = "valid" if cache.is_valid() else "expired"
    user_output(f"Status: {state}")
    user_output(f"Cached at: {metadata.cached_at.isoformat()}")
    user_output(f"Expires at: {metadata.expires_at.isoformat()}")
    user_output(f"Size: {cache.size_bytes()} bytes")


@cache_group.command(name="clear")
@click.pass_obj
@cli_error_boundary
def clear(ctx: ToolshedContext) -> None:
    """Delete all cached registry data."""
    ctx.cache.clear()
    user_output(f"Cleared {ctx.cache.cache_dir}")
