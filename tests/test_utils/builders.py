"""Builders for registry documents and archives used across tests."""

import hashlib
import io
import zipfile
from typing import Any


def make_zip(files: dict[str, bytes | str], *, compression: int = zipfile.ZIP_DEFLATED) -> bytes:
    """Build an in-memory ZIP. Names ending in '/' become directory entries."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=compression) as archive:
        for name, content in files.items():
            if name.endswith("/"):
                archive.writestr(zipfile.ZipInfo(name), b"")
            else:
                archive.writestr(name, content)
    return buffer.getvalue()


def sha256(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def tool_archive(name: str, version: str) -> bytes:
    return make_zip({f"{name}.md": f"# {name} {version}\n"})


def descriptor(
    name: str,
    version: str,
    tool_type: str = "agent",
    *,
    file: str | None = None,
    integrity: str | None = None,
    versions: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    data: dict[str, Any] = {
        "name": name,
        "version": version,
        "type": tool_type,
        "file": file if file is not None else archive_location(name, version, tool_type),
        "author": "acme",
        "description": f"The {name} {tool_type}",
        "tags": ["test"],
    }
    if integrity is not None:
        data["integrity"] = integrity
    if versions is not None:
        data["versions"] = versions
    return data


def archive_location(name: str, version: str, tool_type: str = "agent") -> str:
    return f"{tool_type}s/{name}-{version}.zip"


def registry_doc(*descriptors: dict[str, Any]) -> dict[str, Any]:
    tools: dict[str, list[dict[str, Any]]] = {}
    for item in descriptors:
        tools.setdefault(item["type"], []).append(item)
    return {"version": "1.0", "updated_at": "2024-01-10T00:00:00Z", "tools": tools}
