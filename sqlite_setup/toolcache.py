"""The tool cache, the search path and step outputs.

The cache uses the same layout as the GitHub Actions runner tool cache,
``<root>/<tool>/<version>/<arch>/`` with an ``<arch>.complete`` marker next
to each finished entry, so a runner and this module see the same entries.
"""

from __future__ import annotations

import os
import platform
import shutil
import uuid
from pathlib import Path

from .exceptions import CacheStoreFailed
from .utils import log

DEFAULT_CACHE_DIR = "~/.cache/setup-sqlite"

_MACHINE_ARCH = {
    "x86_64": "x64",
    "amd64": "x64",
    "i386": "x86",
    "i686": "x86",
    "x86": "x86",
    "aarch64": "arm64",
    "arm64": "arm64",
}


def cache_root() -> Path:
    """Return the root of the tool cache."""
    root = os.environ.get("RUNNER_TOOL_CACHE") or DEFAULT_CACHE_DIR
    return Path(os.path.expanduser(root))


def temp_root() -> Path | None:
    """Return the directory temporary files go in, None for the system default."""
    root = os.environ.get("RUNNER_TEMP")
    if not root:
        return None
    path = Path(root)
    path.mkdir(parents=True, exist_ok=True)
    return path


def machine_arch() -> str:
    """Return the cache architecture name of this machine."""
    machine = platform.machine().lower()
    return _MACHINE_ARCH.get(machine, machine)


def _entry_dir(tool: str, version: str, arch: str | None) -> Path:
    return cache_root() / tool / version / (arch or machine_arch())


def find_cached(tool: str, version: str, arch: str | None = None) -> Path | None:
    """Return the cached directory of ``tool`` ``version``, None on a miss."""
    if not version:
        return None
    path = _entry_dir(tool, version, arch)
    marker = path.with_name(f"{path.name}.complete")
    if path.is_dir() and marker.is_file():
        log(f"Found {tool} {version} in the tool cache at {path}", "debug")
        return path
    return None


def store_in_cache(source_dir: Path, tool: str, version: str, arch: str | None = None) -> Path:
    """Copy ``source_dir`` into the cache and return the cached directory."""
    path = _entry_dir(tool, version, arch)
    marker = path.with_name(f"{path.name}.complete")
    log(f"Caching {source_dir} as {tool} {version} in {path}", "debug")
    try:
        marker.unlink(missing_ok=True)
        if path.exists():
            shutil.rmtree(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copytree(source_dir, path, symlinks=True)
        marker.write_text("")
    except OSError as e:
        msg = f"Unable to store {tool} {version} in the tool cache: {e}"
        raise CacheStoreFailed(msg) from e
    return path


def add_to_search_path(directory: Path) -> None:
    """Put ``directory`` in front of PATH, for this process and later steps."""
    directory = Path(directory)
    os.environ["PATH"] = os.pathsep.join([str(directory), os.environ.get("PATH", "")])
    github_path = os.environ.get("GITHUB_PATH")
    if github_path:
        with open(github_path, "a", encoding="utf-8") as f:
            f.write(f"{directory}\n")
    log(f"Added {directory} to the path", "success")


def set_output(name: str, value: str) -> None:
    """Publish a step output, or print it when not running in Actions."""
    github_output = os.environ.get("GITHUB_OUTPUT")
    if not github_output:
        log(f"{name}={value}", "info", "📤")
        return
    delimiter = f"ghadelimiter_{uuid.uuid4()}"
    with open(github_output, "a", encoding="utf-8") as f:
        f.write(f"{name}<<{delimiter}\n{value}\n{delimiter}\n")
