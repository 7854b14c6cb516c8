"""Domain entities for repositories and their per-repository statistics."""

from dataclasses import dataclass
from typing import Any, Dict, Iterable


@dataclass(frozen=True)
class RepositoryIdentifier:
    """Immutable (owner, name) pair, canonically written as "owner/name"."""

    owner: str
    name: str

    @classmethod
    def parse(cls, full_name: str) -> "RepositoryIdentifier":
        """Build an identifier from its canonical "owner/name" form."""
        owner, sep, name = full_name.partition("/")
        if not sep or not owner or not name:
            raise ValueError(f"Invalid repository identifier: {full_name!r}")
        return cls(owner=owner, name=name)

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    def __str__(self) -> str:
        return self.full_name


@dataclass(frozen=True)
class WeeklyContribution:
    """One week of a contributor's history; deletions arrive signed."""

    additions: int
    deletions: int

    @classmethod
    def from_payload(cls, week: Dict[str, Any]) -> "WeeklyContribution":
        return cls(
            additions=int(week.get("a") or 0),
            deletions=int(week.get("d") or 0),
        )


@dataclass(frozen=True)
class YearlyContribution:
    """Contribution count for one calendar year."""

    year: int
    count: int


@dataclass(frozen=True)
class RepoStats:
    """Aggregated figures for one repository."""

    additions: int = 0
    deletions: int = 0
    stars: int = 0
    forks: int = 0

    @classmethod
    def from_weeks(cls, weeks: Iterable[WeeklyContribution], stars: int = 0, forks: int = 0) -> "RepoStats":
        """
        Fold a weekly history into totals.

        Deletions are summed as absolute values since the API reports them signed.
        """
        additions = 0
        deletions = 0
        for week in weeks:
            additions += week.additions
            deletions += abs(week.deletions)
        return cls(additions=additions, deletions=deletions, stars=stars, forks=forks)

    @property
    def lines_changed(self) -> int:
        return self.additions + self.deletions


EMPTY_STATS = RepoStats()
