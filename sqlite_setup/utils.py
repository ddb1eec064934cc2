"""Utility functions for sqlite_setup."""

from __future__ import annotations

import os
import sys
from typing import Literal

from rich.console import Console
from rich.markup import escape

# Initialize rich console
console = Console()

_VERBOSE = False

Level = Literal["default", "info", "success", "warning", "error", "debug"]

_STYLES: dict[str, tuple[str, str]] = {
    "default": ("", ""),
    "info": ("🔍", "blue"),
    "success": ("✅", "green"),
    "warning": ("⚠️", "yellow"),
    "error": ("❌", "bold red"),
    "debug": ("🐞", "dim"),
}


def setup_logging(verbose: bool = False) -> None:  # noqa: FBT001, FBT002
    """Configure logging level based on verbosity."""
    global _VERBOSE  # noqa: PLW0603
    _VERBOSE = verbose or os.environ.get("RUNNER_DEBUG") == "1"


def is_verbose() -> bool:
    """Return True when debug messages are printed."""
    return _VERBOSE


def in_github_actions() -> bool:
    """Return True when running inside a GitHub Actions job."""
    return os.environ.get("GITHUB_ACTIONS") == "true"


def log(
    message: str,
    level: Level = "default",
    icon: str = "",
    *,
    print_exception: bool = False,
) -> None:
    """Print a message with an icon and a colour matching its level."""
    if level == "debug" and not _VERBOSE:
        return
    default_icon, style = _STYLES[level]
    icon = icon or default_icon
    text = f"{icon} {escape(message)}" if icon else escape(message)
    if style:
        text = f"[{style}]{text}[/{style}]"
    console.print(text)
    if level in ("warning", "error") and in_github_actions():
        # Surface the message as a workflow annotation too
        print(f"::{level}::{message}")
    if print_exception:
        console.print_exception()


def current_platform() -> str:
    """Detect the current operating system family."""
    if sys.platform.startswith("win"):
        return "windows"
    if sys.platform == "darwin":
        return "macos"
    if sys.platform.startswith("linux"):
        return "linux"
    return sys.platform


def _maybe_github_token_header(github_token: str | None) -> dict[str, str]:
    """Return an Authorization header when a GitHub token is available."""
    if github_token is None:
        return {}
    return {"Authorization": f"token {github_token}"}
