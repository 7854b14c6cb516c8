"""Folds per-repository results into the final report."""

from typing import Iterable, Optional

from github_stats.domain.report import AggregateReport
from github_stats.domain.repository import RepoStats


def reduce_report(
    results: Iterable[RepoStats],
    total_contributions: int,
    repo_count: int,
    name: Optional[str],
) -> AggregateReport:
    stars = forks = lines_changed = 0
    for stats in results:
        stars += stats.stars
        forks += stats.forks
        lines_changed += stats.additions + stats.deletions

    return AggregateReport(
        name=name,
        stars=stars,
        forks=forks,
        contributions=total_contributions,
        lines_changed=lines_changed,
        repos=repo_count,
    )
