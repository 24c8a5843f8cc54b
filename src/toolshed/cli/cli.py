import logging
import os

import click

from toolshed import __version__
from toolshed.cli.commands import info, init, install, outdated, remove, search, update, verify
from toolshed.cli.commands.cache import cache_group
from toolshed.cli.commands.list_cmd import list_installed
from toolshed.cli.error_boundary import cli_error_boundary
from toolshed.core.context import create_context

CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])  # terse help flags


def _configure_logging(debug: bool) -> None:
    if debug or os.getenv("TOOLSHED_DEBUG"):
        logging.basicConfig(level=logging.DEBUG, format="[DEBUG %(name)s:%(lineno)d] %(message)s")


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(version=__version__)
@click.option("--debug", is_flag=True, help="Show debug logs and full tracebacks.")
@click.pass_context
@cli_error_boundary
def cli(ctx: click.Context, debug: bool) -> None:
    """Install and update Claude agents, commands and skills from a registry."""
    _configure_logging(debug)
    # Only create context if not already provided (e.g., by tests)
    if ctx.obj is None:
        ctx.obj = create_context(debug=debug)


cli.add_command(info.info)
cli.add_command(init.init)
cli.add_command(install.install)
cli.add_command(list_installed)
cli.add_command(list_installed, name="ls")
cli.add_command(outdated.outdated)
cli.add_command(remove.remove)
cli.add_command(remove.remove, name="rm")
cli.add_command(search.search)
cli.add_command(update.update)
cli.add_command(verify.verify)
cli.add_command(cache_group)


def main() -> None:
    """CLI entry point used by the `toolshed` console script."""
    cli()
