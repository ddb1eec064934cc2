"""Translate SQLite version strings into download file names and urls.

SQLite publishes its command line tools under names that embed a
fixed-width version number: ``3.40.1`` becomes ``3400100`` and
``3.14.10.12`` becomes ``3141012``.  The first component is never padded
so ``101.35.0.0`` becomes ``101350000``.
"""

from __future__ import annotations

import re
from typing import NamedTuple

from .exceptions import InvalidVersionFormat, InvalidYearFormat, UnsupportedPlatform
from .utils import current_platform

_YEAR_RE = re.compile(r"[0-9]{4}")
_MAJOR_RE = re.compile(r"[0-9]+")
_MINOR_RE = re.compile(r"[0-9]{1,2}")

# Release 3.44.0 switched every platform to 64 bit builds
_X64_SINCE = (3, 44)

_PLATFORM_ALIASES = {
    "win32": "windows",
    "windows": "windows",
    "linux": "linux",
    "darwin": "macos",
    "macos": "macos",
    "osx": "macos",
}

_FILENAME_TEMPLATES = {
    ("windows", "x86"): "tools-win32-x86-{version}.zip",
    ("windows", "x64"): "tools-win-x64-{version}.zip",
    ("linux", "x86"): "tools-linux-x86-{version}.zip",
    ("linux", "x64"): "tools-linux-x64-{version}.zip",
    ("macos", "x86"): "tools-osx-x86-{version}.zip",
    ("macos", "x64"): "tools-osx-x64-{version}.zip",
}


class DownloadTarget(NamedTuple):
    """Everything needed to fetch one SQLite tools archive."""

    url: str
    filename: str
    canonical_version: str
    year: str


def format_version(version: str | None) -> str:
    """Convert ``X[.Y[.Z[.M]]]`` into the fixed-width form used in file names."""
    if not version:
        msg = f"Invalid sqlite version: {version!r}"
        raise InvalidVersionFormat(msg)

    parts = version.split(".")
    if len(parts) > 4:  # noqa: PLR2004
        msg = f"Invalid sqlite version: {version}"
        raise InvalidVersionFormat(msg)

    first, rest = parts[0], parts[1:]
    if not _MAJOR_RE.fullmatch(first) or not all(_MINOR_RE.fullmatch(p) for p in rest):
        msg = f"Invalid sqlite version format: {version}"
        raise InvalidVersionFormat(msg)

    # Only the components after the first are padded to two digits
    formatted = first + "".join(part.zfill(2) for part in rest)
    return formatted + "00" * (4 - len(parts))


def derive_architecture(canonical_version: str) -> str:
    """Return ``x86`` or ``x64`` for a version produced by `format_version`."""
    major = int(canonical_version[:-6])
    minor = int(canonical_version[-6:-4])
    if major < 2:  # noqa: PLR2004
        return "x86"
    if major > _X64_SINCE[0]:
        return "x64"
    if major == _X64_SINCE[0] and minor < _X64_SINCE[1]:
        return "x86"
    return "x64"


def normalize_platform(platform_id: str | None = None) -> str:
    """Map a platform identifier onto windows, linux or macos."""
    platform_id = platform_id or current_platform()
    try:
        return _PLATFORM_ALIASES[platform_id.lower()]
    except KeyError:
        msg = f"The operating system {platform_id!r} is not supported by setup-sqlite"
        raise UnsupportedPlatform(msg) from None


def build_artifact_filename(
    canonical_version: str,
    platform_id: str | None = None,
    prefix: str = "",
) -> str:
    """Return the archive name published for this version and platform."""
    platform = normalize_platform(platform_id)
    arch = derive_architecture(canonical_version)
    template = _FILENAME_TEMPLATES[(platform, arch)]
    return prefix + template.format(version=canonical_version)


def validate_year(year: str | None) -> str:
    """Return ``year`` unchanged if it is formatted as YYYY."""
    if year is None or not _YEAR_RE.fullmatch(year):
        msg = f"Invalid year: {year!r} should be formatted as YYYY"
        raise InvalidYearFormat(msg)
    return year


def build_sqlite_url(
    version: str,
    year: str,
    url_prefix: str,
    platform_id: str | None = None,
    artifact_prefix: str = "",
) -> DownloadTarget:
    """Create the url used to download ``version`` released in ``year``.

    The prefix is not checked beyond making sure it ends with exactly one
    ``/``; a bad prefix shows up when the download is attempted.
    """
    validate_year(year)
    canonical = format_version(version)
    filename = build_artifact_filename(canonical, platform_id, artifact_prefix)
    prefix = url_prefix.rstrip("/") + "/"
    return DownloadTarget(
        url=f"{prefix}{year}/{filename}",
        filename=filename,
        canonical_version=canonical,
        year=year,
    )
