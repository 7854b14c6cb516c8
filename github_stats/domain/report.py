"""Final report entity handed to report generators."""

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class AggregateReport:
    """Consolidated statistics for one user."""

    name: Optional[str]
    stars: int
    forks: int
    contributions: int
    lines_changed: int
    repos: int
    # Page views would cost one extra request per repository, so they are not collected
    views: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "stars": self.stars,
            "forks": self.forks,
            "contributions": self.contributions,
            "lines_changed": self.lines_changed,
            "views": self.views,
            "repos": self.repos,
        }
