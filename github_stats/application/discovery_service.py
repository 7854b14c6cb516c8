"""Application service for discovering every repository a user is affiliated with."""

import logging
from typing import Any, Dict, Iterator, List, Optional, Sequence, Set

from github_stats.config import StatsConfig
from github_stats.infrastructure.github_client import (
    GitHubGraphQLClient,
    GraphQLError,
    ORGANIZATION_REPOSITORIES_QUERY,
    USER_ORGANIZATIONS_QUERY,
    USER_REPOSITORIES_QUERY,
    dig,
    errors_of,
)

logger = logging.getLogger(__name__)


class RepositoryDiscovery:
    """Builds the deduplicated set of "owner/name" identifiers for the tracked user."""

    def __init__(self, github_client: GitHubGraphQLClient, config: StatsConfig):
        """
        Initialize discovery service.

        Args:
            github_client: GitHub GraphQL client
            config: Run configuration
        """
        self.github_client = github_client
        self.config = config

    def discover(self) -> Set[str]:
        """
        Walk the user's own and organization repositories.

        Both walks feed one set, so a repository reachable through several
        affiliations is kept once.

        Returns:
            Set of canonical repository identifiers
        """
        logger.info(f"Discovering repositories for {self.config.username}")
        seen: Set[str] = set()

        user_variables = {"login": self.config.username}
        for page in self._paginate(USER_REPOSITORIES_QUERY, user_variables, ("user", "repositories")):
            self._add_page(seen, page, "affiliated repositories")

        for org in self._organizations():
            try:
                org_pages = list(self._paginate(
                    ORGANIZATION_REPOSITORIES_QUERY,
                    {"org": org},
                    ("organization", "repositories"),
                ))
            except GraphQLError as e:
                logger.error(f"Error listing repositories of organization '{org}': {e}")
                continue
            for page in org_pages:
                self._add_page(seen, page, f"organization {org}")

        excluded = {name for name in seen if self.config.is_excluded(name)}
        if excluded:
            logger.info(f"Excluding {len(excluded)} configured repositories")
            seen -= excluded

        logger.info(f"Discovery completed. Total unique repositories: {len(seen)}")
        return seen

    def _organizations(self) -> List[str]:
        organizations = []
        variables = {"login": self.config.username}
        for page in self._paginate(USER_ORGANIZATIONS_QUERY, variables, ("user", "organizations")):
            organizations.extend(node["login"] for node in page if node and node.get("login"))
        logger.info(f"Found {len(organizations)} organizations")
        return organizations

    def _add_page(self, seen: Set[str], nodes: List[Dict[str, Any]], source: str) -> None:
        names = [node["nameWithOwner"] for node in nodes if node and node.get("nameWithOwner")]
        new_names = [name for name in names if name not in seen]
        seen.update(new_names)
        logger.info(
            f"Discovered {len(new_names)} new, {len(names) - len(new_names)} duplicates "
            f"from {source} ({len(seen)} total)"
        )

    def _paginate(
        self,
        query: str,
        variables: Dict[str, Any],
        path: Sequence[str],
    ) -> Iterator[List[Dict[str, Any]]]:
        """
        Yield the node list of every page of a cursor-paginated connection.

        An absent connection or page object ends the walk rather than failing it.
        """
        cursor: Optional[str] = None
        while True:
            body = self.github_client.execute(query, {**variables, "cursor": cursor})
            connection = dig(body, "data", *path)

            messages = errors_of(body)
            if messages:
                logger.warning(f"Errors while paging {'.'.join(path)}: {messages}")

            if not connection:
                break

            yield connection.get("nodes") or []

            page_info = connection.get("pageInfo") or {}
            next_cursor = page_info.get("endCursor")
            if not page_info.get("hasNextPage") or not next_cursor:
                break
            if next_cursor == cursor:
                logger.warning(f"Cursor {next_cursor} repeated while paging {'.'.join(path)}; stopping")
                break
            cursor = next_cursor
