"""Pydantic models for registry, lock and cache documents.

All models are frozen. Mutating helpers on LockDocument return a new document
with a bumped ``updated_at`` so the timestamp never drifts from the content.
"""

from collections.abc import Mapping
from datetime import UTC, datetime, timedelta
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from toolshed.core.errors import (
    InvalidDocumentError,
    LockEntryNotFoundError,
    ToolNotFoundError,
    VersionNotFoundError,
)

ToolType = Literal["agent", "command", "skill"]

# Lookup order when a tool is requested by name only
TOOL_TYPES: tuple[ToolType, ...] = ("agent", "command", "skill")

DEFAULT_LOCK_VERSION = "1.0"
REGISTRY_SOURCE = "registry"


def _require_text(value: str, field_name: str) -> str:
    if not value.strip():
        raise ValueError(f"{field_name} must be a non-empty string")
    return value


def _as_utc(value: datetime) -> datetime:
    # Timestamps written without an offset are read as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class VersionInfo(BaseModel):
    """A single installable release of a tool."""

    model_config = ConfigDict(frozen=True)

    version: str = Field(..., min_length=1)
    file: str = Field(..., min_length=1)
    size: int = Field(default=0, ge=0)
    integrity: str | None = None


class ToolDescriptor(BaseModel):
    """Registry-side description of a tool at its latest version."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    version: str = Field(..., min_length=1)
    type: ToolType
    file: str = Field(..., min_length=1)
    author: str = ""
    description: str = ""
    tags: list[str] = Field(default_factory=list)
    size: int = Field(default=0, ge=0)
    downloads: int = Field(default=0, ge=0)
    created_at: datetime | None = None
    updated_at: datetime | None = None
    integrity: str | None = None
    versions: list[VersionInfo] = Field(default_factory=list)

    @field_validator("name", "version", "file")
    @classmethod
    def validate_non_blank(cls, v: str) -> str:
        return _require_text(v, "field")

    @field_validator("created_at", "updated_at")
    @classmethod
    def validate_timestamps(cls, v: datetime | None) -> datetime | None:
        return _as_utc(v) if v is not None else None

    def latest(self) -> VersionInfo:
        return VersionInfo(
            version=self.version, file=self.file, size=self.size, integrity=self.integrity
        )

    def available_versions(self) -> list[str]:
        """Latest version first, then older releases in registry order."""
        older = [v.version for v in self.versions if v.version != self.version]
        return [self.version, *older]

    def resolve_version(self, version: str | None) -> VersionInfo:
        """Return the release for ``version``, or the latest when None.

        Raises:
            VersionNotFoundError: If no release matches exactly
        """
        if version is None or version == self.version:
            return self.latest()
        for info in self.versions:
            if info.version == version:
                return info
        raise VersionNotFoundError(self.name, version, self.available_versions())


class RegistryDocument(BaseModel):
    """The remote catalogue of available tools, grouped by type."""

    model_config = ConfigDict(frozen=True)

    version: str = Field(..., min_length=1)
    updated_at: datetime | None = None
    tools: dict[ToolType, list[ToolDescriptor]]

    @model_validator(mode="after")
    def validate_groups(self) -> "RegistryDocument":
        for tool_type, descriptors in self.tools.items():
            seen: set[str] = set()
            for descriptor in descriptors:
                if descriptor.type != tool_type:
                    raise ValueError(
                        f"tool {descriptor.name} has type {descriptor.type} "
                        f"but is listed under {tool_type}"
                    )
                if descriptor.name in seen:
                    raise ValueError(f"duplicate {tool_type} tool name: {descriptor.name}")
                seen.add(descriptor.name)
        return self

    def get_tool(self, name: str, tool_type: ToolType) -> ToolDescriptor:
        """Find a tool by name within one type.

        Raises:
            ToolNotFoundError: If the type has no tool with that name
        """
        for descriptor in self.tools.get(tool_type, []):
            if descriptor.name == name:
                return descriptor
        raise ToolNotFoundError(name, tool_type)

    def find_tool(self, name: str) -> ToolDescriptor:
        """Find a tool by name, searching agent, command, then skill."""
        for tool_type in TOOL_TYPES:
            for descriptor in self.tools.get(tool_type, []):
                if descriptor.name == name:
                    return descriptor
        raise ToolNotFoundError(name)

    def all_tools(self) -> list[ToolDescriptor]:
        return [d for tool_type in TOOL_TYPES for d in self.tools.get(tool_type, [])]


class InstalledTool(BaseModel):
    """Lock-file record of one installed tool."""

    model_config = ConfigDict(frozen=True)

    version: str = Field(..., min_length=1)
    type: ToolType
    installed_at: datetime
    source: str = Field(..., min_length=1)
    integrity: str = ""

    @field_validator("version", "source")
    @classmethod
    def validate_non_blank(cls, v: str) -> str:
        return _require_text(v, "field")

    @field_validator("installed_at")
    @classmethod
    def validate_installed_at(cls, v: datetime) -> datetime:
        return _as_utc(v)


class LockDocument(BaseModel):
    """The authoritative record of what is installed."""

    model_config = ConfigDict(frozen=True)

    version: str = Field(default=DEFAULT_LOCK_VERSION, min_length=1)
    updated_at: datetime
    registry: str = ""
    tools: dict[str, InstalledTool] = Field(default_factory=dict)

    @field_validator("tools")
    @classmethod
    def validate_tool_names(cls, v: dict[str, InstalledTool]) -> dict[str, InstalledTool]:
        for name in v:
            if not name.strip():
                raise ValueError("installed tool name cannot be empty")
        return v

    @field_validator("updated_at")
    @classmethod
    def validate_updated_at(cls, v: datetime) -> datetime:
        return _as_utc(v)

    @staticmethod
    def empty(now: datetime) -> "LockDocument":
        return LockDocument(version=DEFAULT_LOCK_VERSION, updated_at=now, registry="", tools={})

    def get_tool(self, name: str) -> InstalledTool:
        if name not in self.tools:
            raise LockEntryNotFoundError(name)
        return self.tools[name]

    def with_tool(self, name: str, record: InstalledTool, now: datetime) -> "LockDocument":
        """Return a new document with ``name`` added or replaced."""
        if not name.strip():
            raise ValueError("tool name cannot be empty")
        return self.model_copy(
            update={"tools": {**self.tools, name: record}, "updated_at": self._next_stamp(now)}
        )

    def without_tool(self, name: str, now: datetime) -> "LockDocument":
        """Return a new document with ``name`` removed.

        Raises:
            LockEntryNotFoundError: If ``name`` is not locked
        """
        if name not in self.tools:
            raise LockEntryNotFoundError(name)
        remaining = {k: v for k, v in self.tools.items() if k != name}
        return self.model_copy(update={"tools": remaining, "updated_at": self._next_stamp(now)})

    def with_registry(self, registry: str, now: datetime) -> "LockDocument":
        return self.model_copy(update={"registry": registry, "updated_at": self._next_stamp(now)})

    def _next_stamp(self, now: datetime) -> datetime:
        # Mutations must strictly advance updated_at even on a coarse clock
        if now <= self.updated_at:
            return self.updated_at + timedelta(microseconds=1)
        return now


class CacheMetadata(BaseModel):
    """Sidecar metadata describing when the cached registry expires."""

    model_config = ConfigDict(frozen=True)

    cached_at: datetime
    expires_at: datetime
    ttl_seconds: float = Field(..., gt=0)
    etag: str | None = None

    @field_validator("cached_at", "expires_at")
    @classmethod
    def validate_timestamps(cls, v: datetime) -> datetime:
        return _as_utc(v)

    @staticmethod
    def create(now: datetime, ttl: timedelta, etag: str | None = None) -> "CacheMetadata":
        return CacheMetadata(
            cached_at=now, expires_at=now + ttl, ttl_seconds=ttl.total_seconds(), etag=etag
        )

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at


def parse_registry_document(data: bytes | str | Mapping[str, Any]) -> RegistryDocument:
    """Parse and validate a registry document.

    Raises:
        InvalidDocumentError: If the payload is not valid JSON or violates invariants
    """
    return _parse(RegistryDocument, "registry document", data)


def parse_lock_document(data: bytes | str | Mapping[str, Any]) -> LockDocument:
    return _parse(LockDocument, "lock document", data)


def parse_cache_metadata(data: bytes | str | Mapping[str, Any]) -> CacheMetadata:
    return _parse(CacheMetadata, "cache metadata", data)


def _parse[M: BaseModel](model: type[M], kind: str, data: bytes | str | Mapping[str, Any]) -> M:
    try:
        if isinstance(data, bytes | str):
            return model.model_validate_json(data)
        return model.model_validate(data)
    except ValidationError as e:
        raise InvalidDocumentError(kind, _summarize(e)) from e


def _summarize(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(p) for p in item["loc"]) or "<root>"
        parts.append(f"{location}: {item['msg']}")
    return "; ".join(parts)
