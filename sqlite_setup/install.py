"""Download, cache and publish a SQLite tools distribution."""

from __future__ import annotations

import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

import requests

from .client import DEFAULT_TIMEOUT, USER_AGENT, RetryingHttpClient
from .config import SetupConfig
from .exceptions import DownloadFailed
from .extract import archive_kind_for, extract_archive
from .resolver import VersionResolver
from .toolcache import add_to_search_path, find_cached, store_in_cache, temp_root
from .utils import current_platform, log
from .version import build_sqlite_url, normalize_platform

TOOL_NAME = "sqlite"

CleanupAction = Callable[[], None]


class CleanupRegistry:
    """Actions that undo the side effects of one installation.

    Actions run once, in the order they were added, when `run` is called
    or the ``with`` block exits. A failing action is logged and the rest
    still run. The registry is empty afterwards and can be reused.
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._actions: list[CleanupAction] = []

    def __len__(self) -> int:
        """Return the number of pending actions."""
        return len(self._actions)

    def __enter__(self) -> CleanupRegistry:
        """Return the registry."""
        return self

    def __exit__(self, *exc_info: object) -> None:
        """Run the pending actions, whatever happened in the block."""
        self.run()

    def add(self, action: CleanupAction) -> CleanupAction:
        """Register ``action`` and return it so it can be removed later."""
        if action not in self._actions:
            self._actions.append(action)
            log(f"Added cleanup action {_describe(action)}", "debug")
        return action

    def remove(self, action: CleanupAction) -> bool:
        """Forget ``action`` without running it."""
        if action in self._actions:
            self._actions.remove(action)
            return True
        log(f"Cleanup action {_describe(action)} was not registered", "debug")
        return False

    def run(self) -> None:
        """Run and clear every pending action."""
        actions, self._actions = self._actions, []
        for action in actions:
            name = _describe(action)
            log(f"Executing cleanup action {name}", "debug")
            try:
                action()
            except Exception as e:  # noqa: BLE001
                log(f"Cleanup action {name} failed: {e}", "warning")


def _describe(action: CleanupAction) -> str:
    return getattr(action, "__qualname__", repr(action))


def remove_path(path: Path) -> CleanupAction:
    """Return an action that deletes ``path``, a file or a directory tree."""

    def _remove() -> None:
        if path.is_dir():
            shutil.rmtree(path)
        elif path.exists():
            path.unlink()
        log(f"Deleted {path}", "debug")

    _remove.__qualname__ = f"remove_path({path})"
    return _remove


@dataclass
class InstallResult:
    """What `setup_sqlite` installed and where."""

    cache_hit: bool
    version: str
    year: str | None = None
    path: Path | None = None
    bin_dirs: list[Path] = field(default_factory=list)


def download_file(
    url: str,
    destination: Path,
    session: requests.Session | None = None,
) -> Path:
    """Download ``url`` to ``destination``, failing on any non-200 answer."""
    log(f"Downloading from {url}", "info", "📥")
    session = session or requests.Session()
    try:
        with session.get(
            url,
            stream=True,
            timeout=DEFAULT_TIMEOUT,
            headers={"User-Agent": USER_AGENT},
        ) as response:
            if response.status_code != 200:  # noqa: PLR2004
                msg = f"Unable to download {url}: HTTP {response.status_code}"
                raise DownloadFailed(msg)
            with open(destination, "wb") as f:
                for chunk in response.iter_content(chunk_size=8192):
                    f.write(chunk)
    except requests.RequestException as e:
        msg = f"Failed to download {url}: {e}"
        raise DownloadFailed(msg) from e
    except OSError as e:
        msg = f"Failed to write {destination}: {e}"
        raise DownloadFailed(msg) from e
    return destination


def add_cached_path(cache_path: Path) -> list[Path]:
    """Add the binary directories of a cached distribution to the path.

    Older distributions unpack into a single sub directory, newer ones
    put the binaries directly in ``cache_path``.
    """
    directories = sorted(child for child in Path(cache_path).iterdir() if child.is_dir())
    if not directories:
        directories = [Path(cache_path)]
    for directory in directories:
        add_to_search_path(directory)
    return directories


def setup_sqlite(  # noqa: PLR0913
    version: str | None,
    year: str | None,
    url_prefix: str,
    *,
    cleanup: CleanupRegistry,
    config: SetupConfig | None = None,
    client: RetryingHttpClient | None = None,
    session: requests.Session | None = None,
    platform_id: str | None = None,
) -> InstallResult:
    """Install ``version`` of the sqlite tools and put them on the path.

    Side effects that should not outlive the run are registered with
    ``cleanup``; draining it is left to the caller.
    """
    config = config or SetupConfig()
    platform = normalize_platform(platform_id or current_platform())
    client = client or RetryingHttpClient(
        config.retry_count,
        session=session,
        headers=config.api_headers,
    )
    resolver = VersionResolver(
        client,
        api_url=config.api_url,
        tag_prefix=config.tag_prefix,
        trust_year=config.trust_year,
    )

    version, year = resolver.resolve(version, year)
    target = build_sqlite_url(
        version,
        year,
        url_prefix,
        platform_id=platform,
        artifact_prefix=config.artifact_prefix,
    )

    cache_path = find_cached(TOOL_NAME, version)
    if cache_path is not None:
        log(f"Using cached sqlite version {version}", "success")
        bin_dirs = add_cached_path(cache_path)
        return InstallResult(True, version, year, cache_path, bin_dirs)

    log(f"Installing sqlite version {version}", "info", "🛠️")
    try:
        log(f"Installing sqlite version {version} from {target.url}", "debug")
        download_dir = Path(tempfile.mkdtemp(prefix="setup-sqlite-", dir=temp_root()))
        cleanup.add(remove_path(download_dir))
        archive_path = download_file(
            target.url,
            download_dir / target.filename,
            session=session or client.session,
        )

        extract_dir = Path(tempfile.mkdtemp(prefix="sqlite-extract-", dir=temp_root()))
        cleanup.add(remove_path(extract_dir))
        extract_archive(archive_path, archive_kind_for(archive_path, platform), extract_dir)
        log(f"Extracted sqlite version {version} to {extract_dir}", "debug")

        cache_path = store_in_cache(extract_dir, TOOL_NAME, version)
        bin_dirs = add_cached_path(cache_path)
        log(f"Installed sqlite version {version} from {target.url}", "success")
    except Exception as e:
        log(f"Installation of sqlite version {version} failed: {e}", "debug")
        raise

    return InstallResult(False, version, year, cache_path, bin_dirs)
