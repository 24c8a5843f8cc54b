"""Tests for LockStore persistence and lock document updates."""

import json
import threading
from datetime import timedelta
from pathlib import Path

import pytest

from tests.fakes.time import DEFAULT_NOW, FakeTime
from toolshed.core.errors import InvalidDocumentError, LockEntryNotFoundError
from toolshed.core.lock_store import LOCK_FILE_NAME, LockStore
from toolshed.core.models import InstalledTool


def _record(version: str, tool_type: str = "agent") -> InstalledTool:
    return InstalledTool(
        version=version, type=tool_type, installed_at=DEFAULT_NOW, source="registry"
    )


@pytest.fixture
def time() -> FakeTime:
    return FakeTime()


@pytest.fixture
def store(tmp_path: Path, time: FakeTime) -> LockStore:
    return LockStore(tmp_path / LOCK_FILE_NAME, time)


def test_load_missing_file_returns_empty_document(store: LockStore) -> None:
    document = store.load()

    assert document.version == "1.0"
    assert document.tools == {}
    assert document.registry == ""
    assert not store.exists()


def test_add_get_remove(store: LockStore) -> None:
    store.add_tool("reviewer", _record("1.0.0"))

    assert store.exists()
    assert store.get_tool("reviewer").version == "1.0.0"
    assert store.is_installed("reviewer")

    store.remove_tool("reviewer")

    assert not store.is_installed("reviewer")
    with pytest.raises(LockEntryNotFoundError):
        store.get_tool("reviewer")


def test_add_replaces_existing_record(store: LockStore) -> None:
    store.add_tool("reviewer", _record("1.0.0"))
    store.add_tool("reviewer", _record("2.0.0"))

    assert store.get_tool("reviewer").version == "2.0.0"
    assert list(store.list_tools()) == ["reviewer"]


def test_update_requires_existing_entry(store: LockStore) -> None:
    with pytest.raises(LockEntryNotFoundError):
        store.update_tool("reviewer", _record("1.0.0"))

    store.add_tool("reviewer", _record("1.0.0"))
    store.update_tool("reviewer", _record("1.1.0"))

    assert store.get_tool("reviewer").version == "1.1.0"


def test_remove_missing_entry_raises(store: LockStore) -> None:
    with pytest.raises(LockEntryNotFoundError):
        store.remove_tool("ghost")


def test_empty_name_rejected(store: LockStore) -> None:
    with pytest.raises(ValueError):
        store.add_tool("", _record("1.0.0"))
    with pytest.raises(ValueError):
        store.get_tool("")


def test_updated_at_strictly_increases_with_frozen_clock(store: LockStore) -> None:
    stamps = []
    for version in ("1.0.0", "1.1.0", "1.2.0"):
        stamps.append(store.add_tool("reviewer", _record(version)).updated_at)
    stamps.append(store.remove_tool("reviewer").updated_at)

    assert stamps == sorted(stamps)
    assert len(set(stamps)) == len(stamps)
    # The clock never moved, so the bumps stay tiny
    assert stamps[-1] - DEFAULT_NOW < timedelta(milliseconds=1)


def test_updated_at_follows_clock(store: LockStore, time: FakeTime) -> None:
    store.add_tool("reviewer", _record("1.0.0"))
    time.advance(timedelta(hours=1))

    document = store.add_tool("lint", _record("0.1.0", "command"))

    assert document.updated_at == DEFAULT_NOW + timedelta(hours=1)


def test_list_tools_returns_copy(store: LockStore) -> None:
    store.add_tool("reviewer", _record("1.0.0"))

    tools = store.list_tools()
    tools.pop("reviewer")

    assert store.is_installed("reviewer")


def test_file_format(store: LockStore) -> None:
    store.add_tool("zeta", _record("1.0.0", "skill"))
    store.add_tool("alpha", _record("2.0.0"))
    store.set_registry("https://github.com/acme/claude-tools")

    text = store.path.read_text()
    data = json.loads(text)

    assert text.endswith("\n")
    assert text.startswith('{\n  "version": "1.0"')
    assert list(data["tools"]) == ["alpha", "zeta"]
    assert data["registry"] == "https://github.com/acme/claude-tools"
    assert data["tools"]["zeta"] == {
        "version": "1.0.0",
        "type": "skill",
        "installed_at": "2024-01-15T12:00:00Z",
        "source": "registry",
        "integrity": "",
    }


def test_registry_set_and_read(store: LockStore) -> None:
    assert store.registry() == ""

    store.set_registry("acme/claude-tools")

    assert store.registry() == "acme/claude-tools"
    with pytest.raises(ValueError):
        store.set_registry("")


def test_corrupt_file_raises_invalid_document(store: LockStore) -> None:
    store.path.write_text("{not json")

    with pytest.raises(InvalidDocumentError):
        store.load()


def test_lock_file_missing_fields_rejected(store: LockStore) -> None:
    store.path.write_text(json.dumps({"version": "1.0", "tools": {}}))

    with pytest.raises(InvalidDocumentError):
        store.load()


def test_timestamps_without_offset_read_as_utc(store: LockStore) -> None:
    store.path.write_text(
        json.dumps(
            {
                "version": "1.0",
                "updated_at": "2024-01-01T00:00:00",
                "registry": "",
                "tools": {
                    "lint": {
                        "version": "0.1.0",
                        "type": "command",
                        "installed_at": "2024-01-01T00:00:00",
                        "source": "registry",
                    }
                },
            }
        )
    )

    loaded = store.load()
    assert loaded.updated_at.tzinfo is not None
    assert loaded.tools["lint"].installed_at.utcoffset() == timedelta(0)

    store.add_tool("reviewer", _record("1.0.0"))

    assert store.load().updated_at == DEFAULT_NOW
    assert sorted(store.list_tools()) == ["lint", "reviewer"]


def test_no_temp_files_left_behind(store: LockStore) -> None:
    store.add_tool("reviewer", _record("1.0.0"))
    store.add_tool("lint", _record("1.0.0", "command"))

    assert [p.name for p in store.path.parent.iterdir()] == [LOCK_FILE_NAME]


def test_concurrent_adds_do_not_lose_updates(store: LockStore) -> None:
    names = [f"tool-{i}" for i in range(20)]
    threads = [
        threading.Thread(target=store.add_tool, args=(name, _record("1.0.0"))) for name in names
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sorted(store.list_tools()) == sorted(names)
