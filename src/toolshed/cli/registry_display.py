"""Rendering of registry tool descriptors for search, list and info."""

import json

from rich.console import Console
from rich.table import Table

from toolshed.cli.output import machine_output, user_output
from toolshed.core.models import ToolDescriptor

MAX_DESCRIPTION_WIDTH = 80


def truncate(text: str, width: int = MAX_DESCRIPTION_WIDTH) -> str:
    if len(text) <= width:
        return text
    return text[: width - 3] + "..."


def format_bytes(size: int) -> str:
    """Human-readable size using 1024-based units, e.g. ``1.5 KB``."""
    if size < 1024:
        return f"{size} B"
    value = float(size)
    for unit in ("KB", "MB", "GB", "TB", "PB", "EB"):
        value /= 1024
        if value < 1024:
            break
    return f"{value:.1f} {unit}"


def output_tools_json(tools: list[ToolDescriptor]) -> None:
    machine_output(json.dumps([tool.model_dump(mode="json") for tool in tools], indent=2))


def render_tools_table(tools: list[ToolDescriptor], title: str) -> None:
    table = Table(title=f"{title} ({len(tools)})")
    table.add_column("Name", style="cyan")
    table.add_column("Type", style="yellow")
    table.add_column("Version")
    table.add_column("Author")
    table.add_column("Downloads", justify="right")
    table.add_column("Description", style="dim")
    for tool in tools:
        table.add_row(
            tool.name,
            tool.type,
            tool.version,
            tool.author,
            str(tool.downloads),
            truncate(tool.description),
        )
    Console().print(table)


def render_tool_details(tool: ToolDescriptor) -> None:
    user_output(f"Name:        {tool.name}")
    user_output(f"Version:     {tool.version}")
    user_output(f"Type:        {tool.type}")
    user_output(f"Author:      {tool.author}")
    user_output(f"Description: {tool.description}")
    if tool.tags:
        user_output(f"Tags:        {', '.join(tool.tags)}")
    user_output(f"Downloads:   {tool.downloads}")
    user_output(f"Size:        {format_bytes(tool.size)}")
    if tool.created_at is not None:
        user_output(f"Created:     {tool.created_at.strftime('%Y-%m-%d %H:%M:%S')}")
    if tool.updated_at is not None:
        user_output(f"Updated:     {tool.updated_at.strftime('%Y-%m-%d %H:%M:%S')}")
    versions = tool.available_versions()
    if len(versions) > 1:
        user_output(f"Versions:    {', '.join(versions)}")
    user_output(f"File:        {tool.file}")
