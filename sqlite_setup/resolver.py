"""Resolve a SQLite version and release year from the GitHub mirror tags."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .client import RetryingHttpClient
from .exceptions import (
    MalformedRemoteResponse,
    NoVersionsAvailable,
    RetryExhausted,
    UnknownStatus,
    VersionNotFound,
)
from .utils import log
from .version import format_version, validate_year

DEFAULT_API_URL = "https://api.github.com/repos/sqlite/sqlite"
DEFAULT_TAG_PREFIX = "version-"


def _field(data: Any, key: str, kind: type, what: str) -> Any:
    """Return ``data[key]`` if present and of type ``kind``."""
    if not isinstance(data, dict) or not isinstance(data.get(key), kind):
        msg = f"{what} response is missing the '{key}' field"
        raise MalformedRemoteResponse(msg)
    return data[key]


@dataclass
class GitObjectRef:
    """The ``object`` member of a tag reference or annotated tag."""

    sha: str
    type: str
    url: str

    @classmethod
    def from_json(cls, data: Any, what: str) -> GitObjectRef:
        """Build from the ``object`` dictionary."""
        return cls(
            sha=_field(data, "sha", str, what),
            type=data.get("type", "commit"),
            url=_field(data, "url", str, what),
        )


@dataclass
class TagRef:
    """A ``git/ref/tags/...`` or ``git/matching-refs/tags/...`` entry."""

    ref: str
    object: GitObjectRef

    @classmethod
    def from_json(cls, data: Any) -> TagRef:
        """Build from a reference dictionary."""
        return cls(
            ref=_field(data, "ref", str, "Tag reference"),
            object=GitObjectRef.from_json(
                _field(data, "object", dict, "Tag reference"),
                "Tag reference",
            ),
        )

    @property
    def name(self) -> str:
        """Return the tag name without ``refs/tags/``."""
        return self.ref.removeprefix("refs/tags/")


@dataclass
class CommitObject:
    """A ``git/commits/<sha>`` document, reduced to what is used."""

    sha: str
    committer_date: str

    @classmethod
    def from_json(cls, data: Any) -> CommitObject:
        """Build from a commit dictionary."""
        committer = _field(data, "committer", dict, "Commit")
        return cls(
            sha=_field(data, "sha", str, "Commit"),
            committer_date=_field(committer, "date", str, "Commit"),
        )

    @property
    def year(self) -> str:
        """Return the year the commit was made (``2022-11-16T12:10:08Z`` -> ``2022``)."""
        return self.committer_date[:4]


def version_key(version: str) -> tuple[int, ...] | None:
    """Return (major, minor, patch) for comparison, None if not numeric."""
    parts = version.split(".")[:3]
    if not all(part.isdigit() for part in parts):
        return None
    return tuple(int(part) for part in parts)


def select_latest(tags: list[TagRef], tag_prefix: str = DEFAULT_TAG_PREFIX) -> TagRef:
    """Return the tag with the highest version, the first one on ties."""
    latest: TagRef | None = None
    latest_key: tuple[int, ...] | None = None
    for tag in tags:
        key = version_key(tag.name.removeprefix(tag_prefix))
        if key is None:
            log(f"Skipping tag {tag.name} that is not a release version", "debug")
            continue
        if latest_key is None or key > latest_key:
            latest, latest_key = tag, key
    if latest is None:
        msg = f"No release tags starting with '{tag_prefix}' were found"
        raise NoVersionsAvailable(msg)
    return latest


class VersionResolver:
    """Turn an optional version and year into a concrete pair."""

    def __init__(
        self,
        client: RetryingHttpClient,
        api_url: str = DEFAULT_API_URL,
        tag_prefix: str = DEFAULT_TAG_PREFIX,
        trust_year: bool = False,  # noqa: FBT001, FBT002
    ) -> None:
        """Initialize the resolver."""
        self.client = client
        self.api_url = api_url.rstrip("/")
        self.tag_prefix = tag_prefix
        self.trust_year = trust_year

    def resolve(self, version: str | None = None, year: str | None = None) -> tuple[str, str]:
        """Return ``(version, year)``, asking GitHub for whatever is needed."""
        if version:
            format_version(version)

        if version and year and self.trust_year:
            log(f"Using sqlite version {version} released in {year}", "debug")
            return version, validate_year(year)

        if version:
            tag = self.fetch_tag(version)
        else:
            tag = select_latest(self.fetch_tags(), self.tag_prefix)
            version = tag.name.removeprefix(self.tag_prefix)
            log(f"Latest sqlite version is {version}", "info")

        if year:
            log(
                f"Ignoring sqlite year {year}, the release year is read from the {tag.name} tag",
                "warning",
            )

        year = self.fetch_commit(tag).year
        log(f"Resolved sqlite version {version} released in {year}", "debug")
        return version, validate_year(year)

    def fetch_tag(self, version: str) -> TagRef:
        """Return the tag reference of ``version``."""
        url = f"{self.api_url}/git/ref/tags/{self.tag_prefix}{version}"
        try:
            response = self.client.get(url)
        except (UnknownStatus, RetryExhausted) as e:
            msg = f"Unable to find sqlite version {version}: {e}"
            raise VersionNotFound(msg) from e
        return TagRef.from_json(self._json(response, "Tag reference"))

    def fetch_tags(self) -> list[TagRef]:
        """Return every tag reference starting with the tag prefix."""
        url = f"{self.api_url}/git/matching-refs/tags/{self.tag_prefix}"
        data = self._json(self.client.get(url), "Tag listing")
        if not isinstance(data, list):
            msg = "Tag listing response is not a list"
            raise MalformedRemoteResponse(msg)
        if not data:
            msg = f"No tags starting with '{self.tag_prefix}' were found"
            raise NoVersionsAvailable(msg)
        return [TagRef.from_json(item) for item in data]

    def fetch_commit(self, tag: TagRef) -> CommitObject:
        """Return the commit ``tag`` points to, following annotated tags."""
        target = tag.object
        while target.type == "tag":
            data = self._json(self.client.get(target.url), "Annotated tag")
            target = GitObjectRef.from_json(
                _field(data, "object", dict, "Annotated tag"),
                "Annotated tag",
            )
        return CommitObject.from_json(self._json(self.client.get(target.url), "Commit"))

    @staticmethod
    def _json(response: Any, what: str) -> Any:
        """Decode a JSON body."""
        try:
            return response.json()
        except ValueError as e:
            msg = f"{what} response is not valid JSON: {e}"
            raise MalformedRemoteResponse(msg) from e
