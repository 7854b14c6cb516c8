"""GitHub REST API fetcher with bounded retry logic."""

import logging
import time
from typing import Callable, Dict, Optional

import requests

from github_stats.config import StatsConfig
from github_stats.domain.outcome import FetchResult

logger = logging.getLogger(__name__)

RATE_LIMIT_STATUSES = (403, 429)


def is_rate_limited(response) -> bool:
    """True when a 403/429 response signals a primary or secondary rate limit."""
    if response.status_code not in RATE_LIMIT_STATUSES:
        return False
    if response.status_code == 429 or "Retry-After" in response.headers:
        return True
    return response.headers.get("X-RateLimit-Remaining") == "0"


def rate_limit_wait(response, fallback: float, cap: float) -> float:
    """Seconds to wait before retrying a rate-limited request, capped."""
    retry_after = response.headers.get("Retry-After")
    if retry_after is not None:
        try:
            wait_time = float(retry_after)
        except ValueError:
            wait_time = fallback
    else:
        reset_time = int(response.headers.get("X-RateLimit-Reset", 0))
        wait_time = max(reset_time - int(time.time()), 0) + 1
    return min(wait_time, cap)


class ResilientFetcher:
    """
    Issues one GET request and classifies the outcome.

    Every re-issue (statistics still computing, rate limiting, transport errors)
    draws from a single per-request attempt budget so no request can stall forever.
    """

    STILL_COMPUTING = 202
    NO_CONTENT = 204
    SKIP_STATUSES = (403, 404)

    def __init__(self, config: StatsConfig, sleep: Callable[[float], None] = time.sleep):
        """
        Initialize fetcher.

        Args:
            config: Run configuration (token, delays, attempt budgets)
            sleep: Delay function, replaced in tests
        """
        self.config = config
        self.headers = dict(config.auth_headers)
        self.sleep = sleep

    def fetch_path(self, path: str) -> FetchResult:
        """Fetch a REST resource relative to the API root."""
        url = f"{self.config.rest_api_url.rstrip('/')}/{path.lstrip('/')}"
        return self.fetch(url)

    def fetch(self, url: str, headers: Optional[Dict[str, str]] = None) -> FetchResult:
        """
        Fetch a URL and classify its outcome.

        Args:
            url: Absolute resource URL
            headers: Request headers. Defaults to the bearer headers.

        Returns:
            FetchResult.success with the parsed body, FetchResult.empty for absent
            or forbidden resources, FetchResult.failure otherwise
        """
        headers = headers if headers is not None else self.headers
        transport_failures = 0

        for attempt in range(1, self.config.max_attempts + 1):
            try:
                response = requests.get(url, headers=headers, timeout=self.config.request_timeout)
            except requests.exceptions.RequestException as e:
                transport_failures += 1
                if transport_failures >= self.config.max_transport_attempts:
                    logger.error(f"Request to {url} failed after {transport_failures} attempts: {e}")
                    return FetchResult.failure(f"transport error: {e}")
                logger.warning(
                    f"Request to {url} failed (attempt {transport_failures}/"
                    f"{self.config.max_transport_attempts}): {e}. "
                    f"Retrying in {self.config.retry_delay_seconds}s..."
                )
                self.sleep(self.config.retry_delay_seconds)
                continue

            status = response.status_code

            if status == self.STILL_COMPUTING:
                logger.info(
                    f"{url} is still being computed (attempt {attempt}/{self.config.max_attempts}). "
                    f"Waiting {self.config.computing_delay_seconds}s..."
                )
                self.sleep(self.config.computing_delay_seconds)
                continue

            if is_rate_limited(response):
                wait_time = rate_limit_wait(
                    response,
                    fallback=self.config.retry_delay_seconds,
                    cap=self.config.max_rate_limit_wait_seconds,
                )
                logger.warning(f"Rate limited on {url}. Waiting {wait_time:.0f} seconds...")
                self.sleep(wait_time)
                continue

            if status in self.SKIP_STATUSES:
                logger.info(f"Skipping {url}: status {status}")
                return FetchResult.empty(f"status {status}")

            if status == self.NO_CONTENT or (200 <= status < 300 and not response.text.strip()):
                logger.info(f"Empty response from {url}")
                return FetchResult.empty("no content")

            if not 200 <= status < 300:
                logger.warning(f"Unexpected status {status} from {url}")
                return FetchResult.failure(f"status {status}")

            try:
                return FetchResult.success(response.json())
            except ValueError as e:
                logger.warning(f"Malformed JSON from {url}: {e}")
                return FetchResult.failure(f"malformed body: {e}")

        logger.error(f"Giving up on {url} after {self.config.max_attempts} attempts")
        return FetchResult.failure("retries exhausted")
