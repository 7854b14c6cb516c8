"""Run configuration loaded from the environment."""

import logging
import os
from dataclasses import dataclass, field
from typing import FrozenSet, Mapping, Optional

logger = logging.getLogger(__name__)


class MissingCredentialError(Exception):
    """Raised when a required credential or identity is not configured."""
    pass


@dataclass(frozen=True)
class StatsConfig:
    """Settings shared read-only by every pipeline component."""

    token: str
    username: str
    concurrency: int = 5
    start_year: int = 2015
    batch_pause_seconds: float = 0.5
    computing_delay_seconds: float = 2.0
    retry_delay_seconds: float = 1.0
    max_attempts: int = 8
    max_transport_attempts: int = 3
    max_rate_limit_wait_seconds: float = 60.0
    request_timeout: int = 30
    excluded_repos: FrozenSet[str] = field(default_factory=frozenset)
    output_path: str = "generated/overview.json"
    rest_api_url: str = "https://api.github.com"
    graphql_url: str = "https://api.github.com/graphql"

    @property
    def auth_headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/vnd.github+json",
        }

    def is_excluded(self, full_name: str) -> bool:
        return full_name.lower() in {repo.lower() for repo in self.excluded_repos}

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "StatsConfig":
        """
        Build configuration from environment variables.

        Args:
            environ: Mapping to read from. Defaults to os.environ.

        Raises:
            MissingCredentialError: If the token or the tracked username is absent.
        """
        if environ is None:
            environ = os.environ

        token = environ.get("GITHUB_TOKEN") or environ.get("ACCESS_TOKEN")
        if not token:
            raise MissingCredentialError(
                "GITHUB_TOKEN is not set. A personal access token is required."
            )

        username = environ.get("GITHUB_USERNAME") or environ.get("GITHUB_ACTOR")
        if not username:
            raise MissingCredentialError(
                "GITHUB_USERNAME is not set. The tracked user must be configured."
            )

        excluded = frozenset(
            item.strip().lower()
            for item in environ.get("STATS_EXCLUDED_REPOS", "").split(",")
            if item.strip()
        )

        config = cls(
            token=token,
            username=username,
            concurrency=int(environ.get("STATS_CONCURRENCY", "5")),
            start_year=int(environ.get("STATS_START_YEAR", "2015")),
            batch_pause_seconds=float(environ.get("STATS_BATCH_PAUSE", "0.5")),
            excluded_repos=excluded,
            output_path=environ.get("STATS_OUTPUT_PATH", "generated/overview.json"),
        )
        logger.debug(
            f"Loaded configuration for {config.username} "
            f"(concurrency={config.concurrency}, start_year={config.start_year}, "
            f"excluded={len(config.excluded_repos)})"
        )
        return config
