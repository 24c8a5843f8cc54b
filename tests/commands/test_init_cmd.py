"""Layer 4 tests for init, cache and top-level options."""

import json
from datetime import timedelta
from pathlib import Path

from tests.fakes.time import FakeTime
from tests.test_utils.cli_helpers import invoke, project_context, published
from toolshed import __version__


def test_version_option(tmp_path: Path) -> None:
    result = invoke(project_context(tmp_path, published()), "--version")

    assert result.exit_code == 0
    assert __version__ in result.output


def test_init_creates_layout_and_lock_file(tmp_path: Path) -> None:
    ctx = project_context(tmp_path, published())

    result = invoke(ctx, "init")

    assert result.exit_code == 0, result.output
    for tool_type in ("agents", "commands", "skills"):
        assert (tmp_path / ".claude" / tool_type).is_dir()
    data = json.loads((tmp_path / ".claude-lock.json").read_text())
    assert data["version"] == "1.0"
    assert data["tools"] == {}
    assert not (tmp_path / ".toolshed.toml").exists()


def test_init_with_registry_writes_config(tmp_path: Path) -> None:
    ctx = project_context(tmp_path, published())

    result = invoke(ctx, "init", "--registry", "https://github.com/acme/claude-tools")

    assert result.exit_code == 0, result.output
    config_text = (tmp_path / ".toolshed.toml").read_text()
    assert 'registry_url = "https://github.com/acme/claude-tools"' in config_text
    assert ctx.lock_store.registry() == "https://github.com/acme/claude-tools"


def test_init_keeps_existing_lock_file(tmp_path: Path) -> None:
    ctx = project_context(tmp_path, published(("reviewer", "1.0.0", "agent")))
    invoke(ctx, "install", "reviewer")

    result = invoke(ctx, "init")

    assert result.exit_code == 0
    assert "Lock file already exists" in result.output
    assert ctx.lock_store.is_installed("reviewer")


def test_init_rejects_bad_registry(tmp_path: Path) -> None:
    result = invoke(project_context(tmp_path, published()), "init", "--registry", "not a repo")

    assert result.exit_code == 1
    assert "Invalid GitHub repository URL" in result.output
    assert not (tmp_path / ".toolshed.toml").exists()


def test_init_branch_requires_registry(tmp_path: Path) -> None:
    result = invoke(project_context(tmp_path, published()), "init", "--branch", "dev")

    assert result.exit_code == 2


def test_cache_status_lifecycle(tmp_path: Path) -> None:
    time = FakeTime()
    ctx = project_context(tmp_path, published(("reviewer", "1.0.0", "agent")), time=time)

    result = invoke(ctx, "cache", "status")
    assert result.exit_code == 0
    assert "Status: empty" in result.output

    invoke(ctx, "install", "reviewer")
    result = invoke(ctx, "cache", "status")
    assert "Status: valid" in result.output
    assert "TTL: 3600s" in result.output

    time.advance(timedelta(hours=2))
    result = invoke(ctx, "cache", "status")
    assert "Status: expired" in result.output


def test_cache_clear(tmp_path: Path) -> None:
    ctx = project_context(tmp_path, published(("reviewer", "1.0.0", "agent")))
    invoke(ctx, "install", "reviewer")

    result = invoke(ctx, "cache", "clear")

    assert result.exit_code == 0
    assert "Cleared" in result.output
    assert ctx.cache.metadata() is None
