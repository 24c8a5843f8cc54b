"""Error boundary handling for CLI commands.

This module provides decorators to catch well-known exceptions at CLI entry points
and display clean error messages without stack traces.
"""

import functools
from collections.abc import Callable
from typing import Any

import click

from toolshed.core.errors import ToolshedError


def _debug_enabled() -> bool:
    ctx = click.get_current_context(silent=True)
    if ctx is None:
        return False
    return bool(getattr(ctx.find_root().obj, "debug", False))


def cli_error_boundary[T: Callable[..., Any]](func: T) -> T:
    """Decorator that catches well-known exceptions and displays clean error messages.

    This decorator should be applied to CLI command entry points to provide
    user-friendly error messages without stack traces for predictable error conditions.

    Catches:
        - ToolshedError: Registry, archive, lock and fetch failures
        - FileExistsError: File/directory conflicts
        - FileNotFoundError: Missing files/directories
        - ValueError: Invalid input or configuration
        - PermissionError: Permission denied errors

    With --debug the exception propagates with its full traceback. All other
    exceptions bubble up normally.

    Example:
        @click.command()
        @cli_error_boundary
        def my_command():
            ...
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except (
            ToolshedError,
            FileExistsError,
            FileNotFoundError,
            ValueError,
            PermissionError,
        ) as e:
            if _debug_enabled():
                raise
            click.echo(f"Error: {e}", err=True)
            raise SystemExit(1) from None

    return wrapper  # type: ignore[return-value]
