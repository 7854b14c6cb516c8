"""Application service for summing a user's contributions year by year."""

import logging
from datetime import datetime, timezone
from typing import Callable, List

from github_stats.config import StatsConfig
from github_stats.domain.repository import YearlyContribution
from github_stats.infrastructure.github_client import (
    GitHubGraphQLClient,
    GraphQLError,
    YEARLY_CONTRIBUTIONS_QUERY,
    dig,
)

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ContributionAggregator:
    """
    Sums contribution counts with one query per calendar year.

    GitHub caps a contributionsCollection query at one year, so the range from
    the configured start year through the current year is queried year by year.
    """

    def __init__(
        self,
        github_client: GitHubGraphQLClient,
        config: StatsConfig,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.github_client = github_client
        self.config = config
        self.clock = clock

    def years(self) -> range:
        return range(self.config.start_year, self.clock().year + 1)

    def aggregate(self) -> int:
        total = sum(item.count for item in self.yearly())
        logger.info(f"Total contributions since {self.config.start_year}: {total}")
        return total

    def yearly(self) -> List[YearlyContribution]:
        return [YearlyContribution(year=year, count=self.count_for_year(year)) for year in self.years()]

    def count_for_year(self, year: int) -> int:
        """Contribution count for one year; any missing data counts as zero."""
        variables = {
            "login": self.config.username,
            "from": f"{year}-01-01T00:00:00Z",
            "to": f"{year}-12-31T23:59:59Z",
        }
        try:
            body = self.github_client.execute(YEARLY_CONTRIBUTIONS_QUERY, variables)
        except GraphQLError as e:
            logger.error(f"Error fetching contributions for {year}: {e}")
            return 0

        count = dig(body, "data", "user", "contributionsCollection", "contributionCalendar", "totalContributions")
        if count is None:
            logger.warning(f"No contribution calendar returned for {year}; counting it as 0")
            return 0

        logger.debug(f"{year}: {count} contributions")
        return int(count)
