"""setup-sqlite - Install a SQLite command line tools release.

Resolves a SQLite version (and its release year) against the tags of the
SQLite GitHub mirror, downloads the matching tools archive from
sqlite.org, stores it in the tool cache and adds it to the PATH.
"""

from __future__ import annotations

__version__ = "0.1.0"

from . import client, config, extract, install, resolver, toolcache, utils, version
from .cli import main
from .client import RetryingHttpClient, resolve_retry_count
from .config import SetupConfig
from .install import CleanupRegistry, InstallResult, setup_sqlite
from .resolver import VersionResolver
from .version import (
    build_artifact_filename,
    build_sqlite_url,
    derive_architecture,
    format_version,
)

__all__ = [
    "CleanupRegistry",
    "InstallResult",
    "RetryingHttpClient",
    "SetupConfig",
    "VersionResolver",
    "build_artifact_filename",
    "build_sqlite_url",
    "client",
    "config",
    "derive_architecture",
    "extract",
    "format_version",
    "install",
    "main",
    "resolve_retry_count",
    "resolver",
    "setup_sqlite",
    "toolcache",
    "utils",
    "version",
]
