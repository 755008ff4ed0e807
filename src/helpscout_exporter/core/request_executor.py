"""HTTP request execution with connect-error retry and 429 backoff."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

import httpx

from helpscout_exporter.config.settings import HelpScoutExporterSettings
from helpscout_exporter.core.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

# Help Scout takes the API key as the basic-auth username; the password is ignored.
_PLACEHOLDER_PASSWORD = "X"


class RequestExecutor:
    """Issue single GET requests against the Help Scout API.

    Connect failures are retried a bounded number of times with a fixed delay.
    HTTP 429 responses are retried without limit, honouring ``Retry-After``.
    Every other outcome is returned to the caller as-is, or as ``None`` when no
    response could be obtained.

    When ``should_stop`` reports a pending shutdown after a rate-limit sleep,
    the request is abandoned and ``None`` is returned instead of retrying.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.helpscout.net/v1/",
        *,
        connect_timeout_seconds: float = 10.0,
        response_timeout_seconds: float = 60.0,
        max_connect_retries: int = 3,
        connect_retry_delay_seconds: float = 5.0,
        rate_limit_fallback_seconds: float = 10.0,
        transport: httpx.BaseTransport | None = None,
        should_stop: Callable[[], bool] | None = None,
    ) -> None:
        if not api_key:
            raise AuthenticationError("No Help Scout API key configured (set HELPSCOUT_API_KEY)")

        self._max_connect_retries = max_connect_retries
        self._connect_retry_delay = connect_retry_delay_seconds
        self._rate_limit_fallback = rate_limit_fallback_seconds
        self.should_stop = should_stop
        self._client = httpx.Client(
            base_url=base_url,
            auth=(api_key, _PLACEHOLDER_PASSWORD),
            timeout=httpx.Timeout(response_timeout_seconds, connect=connect_timeout_seconds),
            transport=transport,
        )

    @classmethod
    def from_settings(
        cls,
        settings: HelpScoutExporterSettings,
        transport: httpx.BaseTransport | None = None,
        should_stop: Callable[[], bool] | None = None,
    ) -> RequestExecutor:
        return cls(
            settings.api_key,
            settings.base_url,
            connect_timeout_seconds=settings.connect_timeout_seconds,
            response_timeout_seconds=settings.response_timeout_seconds,
            max_connect_retries=settings.max_connect_retries,
            connect_retry_delay_seconds=settings.connect_retry_delay_seconds,
            rate_limit_fallback_seconds=settings.rate_limit_fallback_seconds,
            transport=transport,
            should_stop=should_stop,
        )

    def execute(self, route: str) -> httpx.Response | None:
        """GET ``route`` relative to the API base URL.

        Args:
            route: Path and query, e.g. ``"mailboxes.json?page=2"``.

        Returns:
            The final response (200, 401 or any other non-429 status), or None
            if connecting kept failing, the request raised, or a shutdown
            was requested while rate limited.
        """
        connect_failures = 0

        while True:
            try:
                response = self._client.get(route)
            except (httpx.ConnectError, httpx.ConnectTimeout) as e:
                connect_failures += 1
                if connect_failures > self._max_connect_retries:
                    logger.error(
                        "Giving up on %s after %d connection retries: %s",
                        route, self._max_connect_retries, e,
                    )
                    return None
                logger.warning(
                    "Connection error on %s (retry %d/%d), sleeping %.1fs: %s",
                    route, connect_failures, self._max_connect_retries,
                    self._connect_retry_delay, e,
                )
                time.sleep(self._connect_retry_delay)
                continue
            except httpx.HTTPError as e:
                logger.error("Request to %s failed: %s", route, e)
                return None
            except Exception as e:
                logger.error("Unexpected error requesting %s: %s", route, e)
                return None

            if response.status_code == 429:
                delay = self._rate_limit_delay(response)
                logger.warning("Rate limited on %s, sleeping %.1fs", route, delay)
                time.sleep(delay)
                if self.should_stop is not None and self.should_stop():
                    logger.warning("Shutdown requested, abandoning rate-limited %s", route)
                    return None
                continue

            if response.status_code == 401:
                logger.error("Unauthorized on %s: check the API key", route)
            elif response.status_code != 200:
                logger.error("Request to %s failed with HTTP %d", route, response.status_code)

            return response

    def _rate_limit_delay(self, response: httpx.Response) -> float:
        """Seconds to wait after a 429: Retry-After + 1, else the fallback."""
        retry_after = response.headers.get("Retry-After")
        if retry_after is not None:
            try:
                return float(retry_after) + 1
            except ValueError:
                logger.debug("Ignoring non-numeric Retry-After header: %r", retry_after)
        return self._rate_limit_fallback

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    def __enter__(self) -> RequestExecutor:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
