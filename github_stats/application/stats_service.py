"""Application service wiring the collection pipeline together."""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict

from github_stats.application.batch_scheduler import BatchScheduler
from github_stats.application.contribution_service import ContributionAggregator
from github_stats.application.discovery_service import RepositoryDiscovery
from github_stats.application.reducer import reduce_report
from github_stats.application.repo_stats_service import RepoStatsCollector
from github_stats.config import StatsConfig
from github_stats.domain.report import AggregateReport
from github_stats.domain.repository import RepositoryIdentifier
from github_stats.infrastructure.github_client import PROFILE_QUERY, GitHubGraphQLClient, dig, errors_of
from github_stats.infrastructure.rest_client import ResilientFetcher

logger = logging.getLogger(__name__)


class StatsError(Exception):
    """Raised when the run cannot produce a trustworthy report."""
    pass


class StatsService:
    """Service producing the aggregate report for the configured user."""

    def __init__(
        self,
        config: StatsConfig,
        github_client: GitHubGraphQLClient,
        discovery: RepositoryDiscovery,
        contributions: ContributionAggregator,
        collector: RepoStatsCollector,
        scheduler: BatchScheduler,
    ):
        self.config = config
        self.github_client = github_client
        self.discovery = discovery
        self.contributions = contributions
        self.collector = collector
        self.scheduler = scheduler

    def fetch_profile(self) -> Dict[str, Any]:
        """
        Fetch the user's profile.

        Raises:
            StatsError: If the user cannot be resolved
        """
        body = self.github_client.execute(PROFILE_QUERY, {"login": self.config.username})
        user = dig(body, "data", "user")
        if not user:
            raise StatsError(
                f"Could not load profile for {self.config.username}: {errors_of(body) or 'user not found'}"
            )
        return user

    def generate(self) -> AggregateReport:
        """Run discovery, contribution counting and per-repository collection."""
        profile = self.fetch_profile()
        logger.info(f"Generating stats for {self.config.username} ({profile.get('name') or 'no display name'})")

        # Discovery and yearly contributions are independent of each other
        with ThreadPoolExecutor(max_workers=2) as executor:
            repos_future = executor.submit(self.discovery.discover)
            contributions_future = executor.submit(self.contributions.aggregate)
            repos = repos_future.result()
            total_contributions = contributions_future.result()

        recent = dig(profile, "contributionsCollection", "contributionCalendar", "totalContributions")
        if recent is not None:
            logger.info(
                f"Contributions in the last year: {recent}; "
                f"since {self.config.start_year}: {total_contributions}"
            )
            if recent > total_contributions:
                logger.warning(
                    f"Yearly contribution total ({total_contributions}) is below the profile's "
                    f"last-year count ({recent}); some yearly queries may have failed"
                )

        identifiers = [RepositoryIdentifier.parse(name) for name in sorted(repos)]
        logger.info(f"Collecting statistics for {len(identifiers)} repositories")
        results = self.scheduler.run(identifiers, self.collector.collect)

        report = reduce_report(
            results,
            total_contributions=total_contributions,
            repo_count=len(repos),
            name=profile.get("name"),
        )
        logger.info(
            f"Report ready: {report.repos} repos, {report.stars} stars, {report.forks} forks, "
            f"{report.contributions} contributions, {report.lines_changed} lines changed"
        )
        return report

    @classmethod
    def from_config(cls, config: StatsConfig) -> "StatsService":
        github_client = GitHubGraphQLClient(config)
        fetcher = ResilientFetcher(config)
        return cls(
            config=config,
            github_client=github_client,
            discovery=RepositoryDiscovery(github_client, config),
            contributions=ContributionAggregator(github_client, config),
            collector=RepoStatsCollector(fetcher, config),
            scheduler=BatchScheduler(
                concurrency=config.concurrency,
                pause_seconds=config.batch_pause_seconds,
            ),
        )
