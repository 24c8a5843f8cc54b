"""Output utilities for CLI commands with clear intent.

user_output() is for status and progress messages (stderr), machine_output()
for data a script might consume (stdout).
"""

from typing import Any

import click


def user_output(message: Any = "", nl: bool = True) -> None:
    click.echo(message, err=True, nl=nl)


def machine_output(message: Any = "", nl: bool = True) -> None:
    click.echo(message, nl=nl)
