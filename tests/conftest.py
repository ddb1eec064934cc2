"""Configuration for pytest fixtures used in sqlite_setup tests."""

from __future__ import annotations

import io
import json
import os
import tarfile
import zipfile
from pathlib import Path
from typing import Any, Callable

import pytest
import requests
from requests.structures import CaseInsensitiveDict

API_URL = "https://api.github.com/repos/sqlite/sqlite"
URL_PREFIX = "https://www.sqlite.org/"


def make_response(
    status_code: int = 200,
    json_data: Any = None,
    content: bytes = b"",
    headers: dict[str, str] | None = None,
    url: str = "",
) -> requests.Response:
    """Build a `requests.Response` without touching the network."""
    response = requests.Response()
    response.status_code = status_code
    response.url = url
    response.headers = CaseInsensitiveDict(headers or {})
    response._content = json.dumps(json_data).encode() if json_data is not None else content
    response._content_consumed = True
    return response


class FakeSession:
    """Stand-in for `requests.Session` answering from scripted responses.

    ``routes`` maps a url to a response, a list of responses returned one
    per call, or an exception to raise.
    """

    def __init__(self, routes: dict[str, Any] | None = None) -> None:
        self.routes: dict[str, Any] = dict(routes or {})
        self.calls: list[str] = []

    def get(self, url: str, **_kwargs: Any) -> requests.Response:
        self.calls.append(url)
        if url not in self.routes:
            return make_response(404, {"message": "Not Found"}, url=url)
        answer = self.routes[url]
        if isinstance(answer, list):
            answer = answer.pop(0) if len(answer) > 1 else answer[0]
        if isinstance(answer, Exception):
            raise answer
        if callable(answer):
            answer = answer()
        answer.url = url
        return answer

    def count(self, url: str) -> int:
        return self.calls.count(url)


def tag_json(version: str, sha: str | None = None) -> dict[str, Any]:
    """Return a ``git/ref/tags`` document for ``version``."""
    sha = sha or f"sha-{version}"
    return {
        "ref": f"refs/tags/version-{version}",
        "object": {
            "sha": sha,
            "type": "commit",
            "url": f"{API_URL}/git/commits/{sha}",
        },
    }


def commit_json(sha: str, date: str) -> dict[str, Any]:
    """Return a ``git/commits`` document."""
    return {"sha": sha, "committer": {"name": "D. Richard Hipp", "date": date}}


def github_routes(releases: dict[str, str]) -> dict[str, Any]:
    """Return routes for the tag and commit APIs of ``{version: date}``."""
    routes: dict[str, Any] = {}
    for version, date in releases.items():
        sha = f"sha-{version}"
        routes[f"{API_URL}/git/ref/tags/version-{version}"] = make_response(
            json_data=tag_json(version),
        )
        routes[f"{API_URL}/git/commits/{sha}"] = make_response(json_data=commit_json(sha, date))
    routes[f"{API_URL}/git/matching-refs/tags/version-"] = lambda: make_response(
        json_data=[tag_json(v) for v in releases],
    )
    return routes


@pytest.fixture
def fake_session() -> FakeSession:
    """Return an empty `FakeSession`."""
    return FakeSession()


@pytest.fixture(autouse=True)
def runner_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> dict[str, Path]:
    """Point the runner directories at ``tmp_path`` and isolate the environment."""
    dirs = {"temp": tmp_path / "TEMP", "cache": tmp_path / "CACHE"}
    monkeypatch.setenv("RUNNER_TEMP", str(dirs["temp"]))
    monkeypatch.setenv("RUNNER_TOOL_CACHE", str(dirs["cache"]))
    # Restored after the test, the installer prepends to it
    monkeypatch.setenv("PATH", os.environ.get("PATH", ""))
    for name in ("GITHUB_OUTPUT", "GITHUB_PATH", "GITHUB_ACTIONS", "GITHUB_TOKEN", "RUNNER_DEBUG"):
        monkeypatch.delenv(name, raising=False)
    for name in list(os.environ):
        if name.startswith("INPUT_"):
            monkeypatch.delenv(name)
    return dirs


@pytest.fixture
def create_dummy_archive() -> Callable:
    r"""Create an archive file with binary files for testing.

    Returns a function that creates archive files with specified binaries.

    Usage:
        archive_bytes = create_dummy_archive(
            binary_names=["sqlite3", "sqldiff"],
            archive_type="zip",
            nested_dir="sqlite-tools-linux-x86-3400000",
        )
    """

    def _create_archive(
        binary_names: str | list[str] = ("sqlite3", "sqldiff", "sqlite3_analyzer"),
        archive_type: str = "zip",
        binary_content: bytes = b"#!/bin/sh\necho sqlite\n",
        nested_dir: str | None = None,
    ) -> bytes:
        if isinstance(binary_names, str):
            binary_names = [binary_names]
        names = [f"{nested_dir}/{name}" if nested_dir else name for name in binary_names]

        buffer = io.BytesIO()
        if archive_type == "zip":
            with zipfile.ZipFile(buffer, mode="w") as zip_file:
                if nested_dir:
                    info = zipfile.ZipInfo(f"{nested_dir}/")
                    info.external_attr = (0o40755 << 16) | 0x10
                    zip_file.writestr(info, "")
                for name in names:
                    info = zipfile.ZipInfo(name)
                    info.external_attr = 0o100755 << 16
                    zip_file.writestr(info, binary_content)
        elif archive_type in ("tar.xz", "tar.gz"):
            mode = "w:xz" if archive_type == "tar.xz" else "w:gz"
            with tarfile.open(fileobj=buffer, mode=mode) as tar:
                if nested_dir:
                    info = tarfile.TarInfo(nested_dir)
                    info.type = tarfile.DIRTYPE
                    info.mode = 0o755
                    tar.addfile(info)
                for name in names:
                    info = tarfile.TarInfo(name)
                    info.size = len(binary_content)
                    info.mode = 0o755
                    tar.addfile(info, io.BytesIO(binary_content))
        else:  # pragma: no cover
            msg = f"Unsupported archive type: {archive_type}"
            raise ValueError(msg)
        return buffer.getvalue()

    return _create_archive
