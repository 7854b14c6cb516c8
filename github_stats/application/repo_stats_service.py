"""Application service for collecting one repository's statistics."""

import logging
from typing import Any, Optional, Tuple

from github_stats.config import StatsConfig
from github_stats.domain.repository import EMPTY_STATS, RepoStats, RepositoryIdentifier, WeeklyContribution
from github_stats.infrastructure.rest_client import ResilientFetcher

logger = logging.getLogger(__name__)


class RepoStatsCollector:
    """Fetches stars, forks and the tracked user's line changes for a repository."""

    def __init__(self, fetcher: ResilientFetcher, config: StatsConfig):
        self.fetcher = fetcher
        self.config = config
        self.username = config.username.lower()

    def collect(self, repo: RepositoryIdentifier) -> RepoStats:
        """
        Collect statistics for one repository.

        Never raises: missing or malformed data counts as zero so one bad
        repository cannot abort a batch.
        """
        try:
            stars, forks = self._metadata(repo)
            additions, deletions = self._contributions(repo)
        except Exception as e:
            logger.error(f"Unexpected error collecting stats for {repo}: {e}", exc_info=True)
            return EMPTY_STATS
        return RepoStats(additions=additions, deletions=deletions, stars=stars, forks=forks)

    def _metadata(self, repo: RepositoryIdentifier) -> Tuple[int, int]:
        result = self.fetcher.fetch_path(f"repos/{repo.full_name}")
        metadata = result.value_or(None)
        if not isinstance(metadata, dict):
            if result.is_failure:
                logger.warning(f"Metadata unavailable for {repo}: {result.reason}")
            return 0, 0
        return _count(metadata.get("stargazers_count")), _count(metadata.get("forks_count"))

    def _contributions(self, repo: RepositoryIdentifier) -> Tuple[int, int]:
        result = self.fetcher.fetch_path(f"repos/{repo.full_name}/stats/contributors")
        contributors = result.value_or(None)
        if not isinstance(contributors, list):
            if result.is_failure:
                logger.warning(f"Contributor stats unavailable for {repo}: {result.reason}")
            return 0, 0

        record = self._find_user_record(contributors)
        if record is None:
            logger.debug(f"{self.config.username} has no contributor record in {repo}")
            return 0, 0

        weeks = [
            WeeklyContribution.from_payload(week)
            for week in record.get("weeks") or []
            if isinstance(week, dict)
        ]
        stats = RepoStats.from_weeks(weeks)
        logger.debug(f"{repo}: +{stats.additions} -{stats.deletions}")
        return stats.additions, stats.deletions

    def _find_user_record(self, contributors: list) -> Optional[dict]:
        for record in contributors:
            if not isinstance(record, dict):
                continue
            author = record.get("author") or {}
            login = author.get("login") if isinstance(author, dict) else None
            if login and login.lower() == self.username:
                return record
        return None


def _count(value: Any) -> int:
    try:
        return max(int(value or 0), 0)
    except (TypeError, ValueError):
        return 0
