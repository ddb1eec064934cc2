"""Errors raised while setting up SQLite."""

from __future__ import annotations


class SetupSqliteError(Exception):
    """Base class for every error raised by sqlite_setup."""


class InvalidVersionFormat(SetupSqliteError, ValueError):
    """The version string is not of the form X[.Y[.Z[.M]]]."""


class UnsupportedPlatform(SetupSqliteError, ValueError):
    """There is no SQLite tools distribution for this operating system."""


class InvalidYearFormat(SetupSqliteError, ValueError):
    """The release year is not a four digit number."""


class TransportError(SetupSqliteError):
    """A network level failure (connection, DNS, TLS, timeout)."""


class UnknownStatus(SetupSqliteError):
    """The server answered with a status code that is not retried."""

    def __init__(self, url: str, status_code: int) -> None:
        """Initialize the UnknownStatus error."""
        self.url = url
        self.status_code = status_code
        super().__init__(f"Unexpected HTTP status {status_code} from {url}")


class RetryExhausted(SetupSqliteError):
    """The request was still rate limited after the last allowed retry."""

    def __init__(self, url: str, attempts: int) -> None:
        """Initialize the RetryExhausted error."""
        self.url = url
        self.attempts = attempts
        super().__init__(f"Giving up on {url} after {attempts} retries")


class VersionNotFound(SetupSqliteError):
    """No release tag exists for the requested version."""


class NoVersionsAvailable(SetupSqliteError):
    """The tag listing did not contain any release."""


class MalformedRemoteResponse(SetupSqliteError):
    """A JSON document from the tag or commit API is missing a field."""


class DownloadFailed(SetupSqliteError):
    """The SQLite tools archive could not be downloaded."""


class ExtractFailed(SetupSqliteError):
    """The downloaded archive could not be extracted."""


class CacheStoreFailed(SetupSqliteError):
    """The extracted distribution could not be stored in the tool cache."""
