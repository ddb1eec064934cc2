"""Extract downloaded archives."""

from __future__ import annotations

import tarfile
import tempfile
import zipfile
from pathlib import Path, PurePosixPath
from typing import Literal

from .exceptions import ExtractFailed
from .utils import current_platform, log

ArchiveKind = Literal["zip", "tar"]


def _is_definitely_not_exec(filename: str) -> bool:
    """Check if a file is definitely not executable."""
    return filename.endswith((".txt", ".md", ".1", ".dll", ".def"))


def is_exec(filename: str, mode: int) -> bool:
    """Determine if a file is executable based on name and permissions."""
    if mode & 0o111 != 0 and not _is_definitely_not_exec(filename):
        return True
    if _is_definitely_not_exec(filename):
        return False
    return filename.endswith(".exe") or "." not in Path(filename).name


def _write_file(data: bytes, path: Path, mode: int) -> None:
    """Write data to a file with specified permissions."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    path.chmod(mode)


def _strip(name: str, strip_components: int) -> PurePosixPath | None:
    """Drop leading path components, None if nothing is left."""
    parts = [p for p in PurePosixPath(name).parts if p not in ("", ".", "/")]
    if ".." in parts:
        msg = f"Refusing to extract {name!r} outside of the destination"
        raise ExtractFailed(msg)
    parts = parts[strip_components:]
    if not parts:
        return None
    return PurePosixPath(*parts)


def archive_kind_for(archive_path: Path, platform: str | None = None) -> ArchiveKind:
    """Return how ``archive_path`` should be extracted on ``platform``.

    Windows always gets zip. Elsewhere tar is the default, but files that
    carry a zip signature are still read as zip.
    """
    platform = platform or current_platform()
    if platform == "windows" or zipfile.is_zipfile(archive_path):
        return "zip"
    return "tar"


def _extract_zip(archive_path: Path, dest_dir: Path, strip_components: int) -> None:
    with zipfile.ZipFile(archive_path) as archive:
        for info in archive.infolist():
            rel_path = _strip(info.filename, strip_components)
            if rel_path is None:
                continue
            target_path = dest_dir / rel_path
            if info.is_dir():
                target_path.mkdir(parents=True, exist_ok=True)
                continue
            mode = 0o644
            if info.external_attr > 0xFFFF:
                mode = (info.external_attr >> 16) & 0o777 or 0o644
            if is_exec(info.filename, mode):
                mode |= 0o111
            _write_file(archive.read(info), target_path, mode)


def _extract_tar(archive_path: Path, dest_dir: Path, strip_components: int) -> None:
    # "r:*" picks the decompressor (xz, gz, bz2) from the stream
    with tarfile.open(archive_path, mode="r:*") as archive:
        for member in archive.getmembers():
            rel_path = _strip(member.name, strip_components)
            if rel_path is None:
                continue
            target_path = dest_dir / rel_path
            if member.isdir():
                target_path.mkdir(parents=True, exist_ok=True)
            elif member.isfile():
                fileobj = archive.extractfile(member)
                if fileobj is not None:
                    _write_file(fileobj.read(), target_path, member.mode or 0o644)
            else:
                log(f"Skipping {member.name}, links are not extracted", "debug")


def extract_archive(
    archive_path: Path,
    kind: ArchiveKind,
    dest_dir: Path | None = None,
    strip_components: int | None = None,
) -> Path:
    """Extract ``archive_path`` and return the directory holding its contents.

    A new temporary directory is created when ``dest_dir`` is not given.
    Tar streams drop their leading path component unless told otherwise.
    """
    if strip_components is None:
        strip_components = 1 if kind == "tar" else 0
    if dest_dir is None:
        dest_dir = Path(tempfile.mkdtemp(prefix="sqlite-extract-"))
    dest_dir.mkdir(parents=True, exist_ok=True)

    log(f"Extracting {archive_path} ({kind}) to {dest_dir}", "debug", "📦")
    try:
        if kind == "zip":
            _extract_zip(Path(archive_path), dest_dir, strip_components)
        elif kind == "tar":
            _extract_tar(Path(archive_path), dest_dir, strip_components)
        else:
            msg = f"Unsupported archive format: {kind}"
            raise ExtractFailed(msg)  # noqa: TRY301
    except ExtractFailed:
        raise
    except (OSError, zipfile.BadZipFile, tarfile.TarError, EOFError) as e:
        msg = f"Unable to extract {archive_path}: {e}"
        raise ExtractFailed(msg) from e

    return dest_dir
