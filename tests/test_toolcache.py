"""Tests for sqlite_setup.toolcache."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from sqlite_setup import toolcache
from sqlite_setup.exceptions import CacheStoreFailed


def make_dist(path: Path) -> Path:
    path.mkdir(parents=True)
    (path / "sqlite3").write_text("binary")
    return path


def test_find_cached_miss(runner_env: dict[str, Path]) -> None:
    """Nothing is found in an empty cache."""
    assert toolcache.find_cached("sqlite", "3.40.0") is None
    assert toolcache.find_cached("sqlite", "") is None


def test_store_and_find(tmp_path: Path, runner_env: dict[str, Path]) -> None:
    """A stored directory is found again under the same version."""
    cached = toolcache.store_in_cache(make_dist(tmp_path / "dist"), "sqlite", "3.40.0", "x64")
    assert cached == runner_env["cache"] / "sqlite" / "3.40.0" / "x64"
    assert (cached / "sqlite3").read_text() == "binary"
    assert (cached.parent / "x64.complete").is_file()
    assert toolcache.find_cached("sqlite", "3.40.0", "x64") == cached
    assert toolcache.find_cached("sqlite", "3.40.1", "x64") is None


def test_incomplete_entry_is_a_miss(runner_env: dict[str, Path]) -> None:
    """An entry without its marker is not used."""
    make_dist(runner_env["cache"] / "sqlite" / "3.40.0" / "x64")
    assert toolcache.find_cached("sqlite", "3.40.0", "x64") is None


def test_store_replaces_existing_entry(tmp_path: Path) -> None:
    """Storing again replaces the old contents."""
    toolcache.store_in_cache(make_dist(tmp_path / "old"), "sqlite", "3.40.0", "x64")
    new = tmp_path / "new"
    new.mkdir()
    (new / "sqldiff").write_text("diff")
    cached = toolcache.store_in_cache(new, "sqlite", "3.40.0", "x64")
    assert sorted(p.name for p in cached.iterdir()) == ["sqldiff"]


def test_store_missing_source(tmp_path: Path) -> None:
    """A copy failure is reported as a cache failure."""
    with pytest.raises(CacheStoreFailed):
        toolcache.store_in_cache(tmp_path / "missing", "sqlite", "3.40.0")


def test_add_to_search_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Directories go in front of PATH and into GITHUB_PATH."""
    github_path = tmp_path / "GITHUB_PATH"
    monkeypatch.setenv("GITHUB_PATH", str(github_path))
    toolcache.add_to_search_path(tmp_path / "bin")
    assert os.environ["PATH"].split(os.pathsep)[0] == str(tmp_path / "bin")
    assert github_path.read_text().splitlines() == [str(tmp_path / "bin")]


def test_set_output_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Outputs are written in the runner heredoc format."""
    output = tmp_path / "OUTPUT"
    monkeypatch.setenv("GITHUB_OUTPUT", str(output))
    toolcache.set_output("cache-hit", "false")
    toolcache.set_output("sqlite-version", "3.40.0")

    lines = output.read_text().splitlines()
    assert len(lines) == 6
    name, delimiter = lines[0].split("<<")
    assert name == "cache-hit"
    assert lines[1:3] == ["false", delimiter]
    assert lines[3].startswith("sqlite-version<<")
    assert lines[4] == "3.40.0"


def test_set_output_console(capsys: pytest.CaptureFixture[str]) -> None:
    """Without GITHUB_OUTPUT outputs are printed."""
    toolcache.set_output("cache-hit", "true")
    assert "cache-hit=true" in capsys.readouterr().out


def test_cache_root_default(monkeypatch: pytest.MonkeyPatch) -> None:
    """The cache lives in the home directory outside of a runner."""
    monkeypatch.delenv("RUNNER_TOOL_CACHE")
    assert toolcache.cache_root() == Path(os.path.expanduser("~/.cache/setup-sqlite"))
