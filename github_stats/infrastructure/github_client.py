"""GitHub GraphQL API client with retry logic and degrade-gracefully results."""

import time
import logging
from typing import Any, Callable, Dict, List, Optional

import requests

from github_stats.config import StatsConfig
from github_stats.infrastructure.rest_client import is_rate_limited, rate_limit_wait

logger = logging.getLogger(__name__)


class GraphQLError(Exception):
    """Raised when the GraphQL endpoint cannot be reached or returns garbage."""
    pass


class AuthenticationError(GraphQLError):
    """Raised when GitHub rejects the access token."""
    pass


PROFILE_QUERY = """
query($login: String!) {
    user(login: $login) {
        name
        contributionsCollection {
            contributionCalendar {
                totalContributions
            }
        }
    }
}
"""

YEARLY_CONTRIBUTIONS_QUERY = """
query($login: String!, $from: DateTime!, $to: DateTime!) {
    user(login: $login) {
        contributionsCollection(from: $from, to: $to) {
            contributionCalendar {
                totalContributions
            }
        }
    }
}
"""

USER_REPOSITORIES_QUERY = """
query($login: String!, $cursor: String) {
    user(login: $login) {
        repositories(
            first: 100,
            after: $cursor,
            ownerAffiliations: [OWNER, COLLABORATOR, ORGANIZATION_MEMBER]
        ) {
            pageInfo {
                hasNextPage
                endCursor
            }
            nodes {
                nameWithOwner
            }
        }
    }
}
"""

USER_ORGANIZATIONS_QUERY = """
query($login: String!, $cursor: String) {
    user(login: $login) {
        organizations(first: 100, after: $cursor) {
            pageInfo {
                hasNextPage
                endCursor
            }
            nodes {
                login
            }
        }
    }
}
"""

ORGANIZATION_REPOSITORIES_QUERY = """
query($org: String!, $cursor: String) {
    organization(login: $org) {
        repositories(first: 100, after: $cursor) {
            pageInfo {
                hasNextPage
                endCursor
            }
            nodes {
                nameWithOwner
            }
        }
    }
}
"""


def dig(body: Optional[Dict[str, Any]], *keys: str) -> Any:
    """Walk nested dictionaries, returning None as soon as a level is absent."""
    current: Any = body
    for key in keys:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def errors_of(body: Optional[Dict[str, Any]]) -> List[str]:
    """Return the messages of a response's top-level error list."""
    if not isinstance(body, dict):
        return []
    return [
        err.get("message", str(err)) if isinstance(err, dict) else str(err)
        for err in body.get("errors") or []
    ]


class GitHubGraphQLClient:
    """Client for the GitHub GraphQL API with retry mechanisms."""

    MAX_RETRIES = 3
    RETRY_DELAY_SECONDS = 1

    def __init__(self, config: StatsConfig, sleep: Callable[[float], None] = time.sleep):
        """
        Initialize GitHub GraphQL client.

        Args:
            config: Run configuration holding the token and endpoint
            sleep: Delay function, replaced in tests
        """
        self.endpoint = config.graphql_url
        self.timeout = config.request_timeout
        self.max_attempts = config.max_attempts
        self.max_rate_limit_wait_seconds = config.max_rate_limit_wait_seconds
        self.headers = {
            "Authorization": f"Bearer {config.token}",
            "Content-Type": "application/json",
        }
        self.sleep = sleep

    def execute(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Execute a GraphQL query with retry logic.

        The parsed body is returned even when it carries an error list, so callers
        can keep whatever partial data came back and treat the rest as absent.

        Args:
            query: GraphQL query string
            variables: Query variables

        Returns:
            Full GraphQL response body ("data" and possibly "errors")

        Raises:
            AuthenticationError: If the token is rejected
            GraphQLError: If the endpoint stays unreachable or rate limited after retries
        """
        payload: Dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = variables

        last_error = "no attempt made"
        transport_failures = 0
        attempt = 0
        for attempt in range(1, self.max_attempts + 1):
            try:
                response = requests.post(
                    self.endpoint,
                    json=payload,
                    headers=self.headers,
                    timeout=self.timeout
                )

                if response.status_code == 401:
                    raise AuthenticationError("Authentication failed. Check your GitHub token.")

                if is_rate_limited(response):
                    last_error = f"rate limited (status {response.status_code})"
                    self._wait_for_rate_limit(response, attempt)
                    continue

                response.raise_for_status()

                try:
                    body = response.json()
                except ValueError as e:
                    raise GraphQLError(f"Malformed GraphQL response: {e}") from e

                messages = errors_of(body)
                if any("rate limit" in msg.lower() for msg in messages):
                    last_error = f"rate limited: {messages}"
                    self._wait_for_rate_limit(response, attempt)
                    continue
                if messages:
                    logger.warning(f"GraphQL query returned errors: {messages}")
                return body

            except requests.exceptions.RequestException as e:
                last_error = str(e)
                transport_failures += 1
                if transport_failures >= self.MAX_RETRIES:
                    break
                delay = self.RETRY_DELAY_SECONDS * (2 ** (transport_failures - 1))  # Exponential backoff
                logger.warning(f"GraphQL request failed (attempt {transport_failures}/{self.MAX_RETRIES}): {e}. Retrying in {delay}s...")
                self.sleep(delay)

        raise GraphQLError(f"GraphQL request failed after {attempt} attempts: {last_error}")

    def _wait_for_rate_limit(self, response, attempt: int) -> None:
        wait_time = rate_limit_wait(
            response,
            fallback=self.RETRY_DELAY_SECONDS,
            cap=self.max_rate_limit_wait_seconds,
        )
        logger.warning(
            f"GraphQL rate limit hit (attempt {attempt}/{self.max_attempts}). "
            f"Waiting {wait_time:.0f} seconds..."
        )
        self.sleep(wait_time)
