"""Configuration management for sqlite_setup."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import yaml

from .client import DEFAULT_RETRY_COUNT, resolve_retry_count
from .resolver import DEFAULT_API_URL, DEFAULT_TAG_PREFIX
from .utils import _maybe_github_token_header, log

DEFAULT_URL_PREFIX = "https://www.sqlite.org/"
DEFAULT_ARTIFACT_PREFIX = "sqlite-"

# Action inputs and the SetupConfig fields they fill
INPUTS = {
    "sqlite-version": "version",
    "sqlite-year": "year",
    "sqlite-url-path": "url_prefix",
    "sqlite-retry-count": "retry_count",
}


def get_input(name: str) -> str:
    """Return an action input the way the Actions runner passes it."""
    for key in (f"INPUT_{name.upper()}", f"INPUT_{name.upper().replace('-', '_')}"):
        value = os.environ.get(key, "").strip()
        if value:
            return value
    return ""


@dataclass
class SetupConfig:
    """Configuration for setup-sqlite."""

    version: str | None = None
    year: str | None = None
    url_prefix: str = DEFAULT_URL_PREFIX
    retry_count: int = DEFAULT_RETRY_COUNT
    api_url: str = DEFAULT_API_URL
    tag_prefix: str = DEFAULT_TAG_PREFIX
    artifact_prefix: str = DEFAULT_ARTIFACT_PREFIX
    trust_year: bool = False
    github_token: str | None = None

    def __post_init__(self) -> None:
        """Normalise the values that arrive as strings."""
        self.version = str(self.version).strip() if self.version else None
        self.year = str(self.year).strip() if self.year else None
        self.retry_count = resolve_retry_count(self.retry_count)

    @property
    def api_headers(self) -> dict[str, str]:
        """Return the headers sent with GitHub API requests."""
        return {
            "Accept": "application/vnd.github+json",
            **_maybe_github_token_header(self.github_token),
        }

    def merge(self, overrides: dict[str, Any]) -> SetupConfig:
        """Return a copy with every non-empty value of ``overrides`` applied."""
        values = {f.name: getattr(self, f.name) for f in fields(self)}
        values.update({k: v for k, v in overrides.items() if v not in (None, "")})
        return SetupConfig(**values)

    @classmethod
    def from_env(cls, base: SetupConfig | None = None) -> SetupConfig:
        """Apply the ``INPUT_*`` and ``GITHUB_TOKEN`` environment variables."""
        base = base or cls()
        overrides: dict[str, Any] = {
            field: get_input(name) for name, field in INPUTS.items()
        }
        overrides["github_token"] = os.environ.get("GITHUB_TOKEN")
        return base.merge(overrides)

    @classmethod
    def load_from_file(cls, config_path: str | Path | None = None) -> SetupConfig:
        """Load configuration from a YAML file, defaults if there is none."""
        if not config_path:
            return cls()

        try:
            with open(config_path) as file:
                config_data = yaml.safe_load(file) or {}
        except FileNotFoundError:
            log(f"Configuration file not found: {config_path}", "warning")
            return cls()
        except yaml.YAMLError:
            log(
                f"Invalid YAML in configuration file: {config_path}",
                "error",
                print_exception=True,
            )
            return cls()

        if not isinstance(config_data, dict):
            log(f"Configuration file {config_path} is not a mapping", "error")
            return cls()

        known = {f.name for f in fields(cls)}
        for key in sorted(set(config_data) - known):
            log(f"Ignoring unknown configuration key '{key}'", "warning")
        return cls(**{k: v for k, v in config_data.items() if k in known})
