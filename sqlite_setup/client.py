"""HTTP GET with GitHub rate limit handling."""

from __future__ import annotations

import math
import time
from datetime import timezone
from email.utils import parsedate_to_datetime
from typing import Any, Callable

import requests

from .exceptions import RetryExhausted, TransportError, UnknownStatus
from .utils import log

DEFAULT_RETRY_COUNT = 3
DEFAULT_TIMEOUT = 30
USER_AGENT = "setup-sqlite"


def resolve_retry_count(value: Any, default: int = DEFAULT_RETRY_COUNT) -> int:
    """Return ``value`` as a positive integer, or ``default`` if it is not one."""
    if value is None or value == "":
        return default
    try:
        count = int(str(value).strip())
    except ValueError:
        count = 0
    if count <= 0:
        log(
            f"Invalid retry count {value!r}, using the default of {default}",
            "warning",
        )
        return default
    return count


def _drain(response: requests.Response) -> None:
    """Consume and release a response that will not be used."""
    try:
        for _ in response.iter_content(chunk_size=8192):
            pass
    except requests.RequestException:
        pass
    finally:
        response.close()


class RetryingHttpClient:
    """Issue GET requests, backing off while GitHub reports a rate limit.

    A 403 carrying either a ``retry-after`` header or an exhausted
    ``x-ratelimit-remaining`` is retried up to ``max_retries`` times.
    Every other failure is raised right away.
    """

    def __init__(
        self,
        max_retries: int = DEFAULT_RETRY_COUNT,
        session: requests.Session | None = None,
        headers: dict[str, str] | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.time,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize the client."""
        self.max_retries = max_retries
        self.session = session or requests.Session()
        self.headers = {"User-Agent": USER_AGENT, **(headers or {})}
        self.sleep = sleep
        self.clock = clock
        self.timeout = timeout

    def get(self, url: str, *, stream: bool = False) -> requests.Response:
        """Return the 200 response for ``url``."""
        attempts = 0
        while True:
            log(f"GET {url} (attempt {attempts + 1})", "debug")
            try:
                response = self.session.get(
                    url,
                    headers=self.headers,
                    timeout=self.timeout,
                    stream=stream,
                )
            except requests.RequestException as e:
                msg = f"Request to {url} failed: {e}"
                raise TransportError(msg) from e

            if response.status_code == 200:  # noqa: PLR2004
                return response

            _drain(response)

            delay = self._backoff(response)
            if delay is None:
                raise UnknownStatus(url, response.status_code)

            if attempts == self.max_retries:
                raise RetryExhausted(url, attempts)

            attempts += 1
            log(
                f"Rate limited by {url}, retry {attempts}/{self.max_retries} in {delay:.0f}s",
                "warning",
            )
            self.sleep(delay)

    def _backoff(self, response: requests.Response) -> float | None:
        """Return the seconds to wait before retrying, None if not rate limited."""
        if response.status_code != 403:  # noqa: PLR2004
            return None

        headers = response.headers
        retry_after = headers.get("retry-after")
        if retry_after is not None:
            return self._retry_after_seconds(retry_after)

        if headers.get("x-ratelimit-remaining") == "0":
            try:
                reset = float(headers.get("x-ratelimit-reset", 0))
            except ValueError:
                return None
            if not math.isfinite(reset):
                return None
            return max(0.0, reset - self.clock())

        return None

    def _retry_after_seconds(self, value: str) -> float | None:
        """Parse ``retry-after``, either delay seconds or an HTTP date."""
        try:
            seconds = float(value)
        except ValueError:
            pass
        else:
            return max(0.0, seconds) if math.isfinite(seconds) else None
        try:
            when = parsedate_to_datetime(value)
        except (TypeError, ValueError):
            return None
        if when.tzinfo is None:
            when = when.replace(tzinfo=timezone.utc)
        return max(0.0, when.timestamp() - self.clock())
