from datetime import datetime, timezone

import pytest
import requests

from github_stats.application.contribution_service import ContributionAggregator
from github_stats.infrastructure import github_client
from github_stats.infrastructure.github_client import (
    AuthenticationError,
    GitHubGraphQLClient,
    GraphQLError,
    dig,
    errors_of,
)

from fakes import FakeResponse, ScriptedTransport, make_config


def make_client(monkeypatch, *outcomes):
    transport = ScriptedTransport(*outcomes)
    monkeypatch.setattr(github_client.requests, "post", transport)
    sleeps = []
    return GitHubGraphQLClient(make_config(), sleep=sleeps.append), transport, sleeps


def test_execute_posts_query_and_variables(monkeypatch) -> None:
    client, transport, _ = make_client(monkeypatch, FakeResponse(200, {"data": {"user": {"name": "Mona"}}}))

    body = client.execute("query { viewer { name } }", {"login": "octocat"})

    assert body["data"]["user"]["name"] == "Mona"
    call = transport.calls[0]
    assert call["url"] == "https://api.github.com/graphql"
    assert call["json"] == {"query": "query { viewer { name } }", "variables": {"login": "octocat"}}
    assert call["headers"]["Authorization"] == "Bearer test-token"


def test_execute_returns_body_with_error_list(monkeypatch) -> None:
    partial = {
        "data": {"user": {"name": "Mona"}, "organization": None},
        "errors": [{"message": "Could not resolve to an Organization"}],
    }
    client, _, _ = make_client(monkeypatch, FakeResponse(200, partial))

    body = client.execute("query { x }")

    assert body == partial
    assert errors_of(body) == ["Could not resolve to an Organization"]


def test_execute_retries_transport_errors(monkeypatch) -> None:
    client, transport, sleeps = make_client(
        monkeypatch,
        requests.exceptions.ConnectionError("down"),
        FakeResponse(502),
        FakeResponse(200, {"data": {}}),
    )

    assert client.execute("query { x }") == {"data": {}}
    assert len(transport.calls) == 3
    assert sleeps == [1, 2]


def test_execute_raises_after_exhausting_retries(monkeypatch) -> None:
    error = requests.exceptions.ConnectionError("down")
    client, transport, _ = make_client(monkeypatch, error, error, error)

    with pytest.raises(GraphQLError):
        client.execute("query { x }")
    assert len(transport.calls) == GitHubGraphQLClient.MAX_RETRIES


def test_execute_rejects_bad_token(monkeypatch) -> None:
    client, transport, _ = make_client(monkeypatch, FakeResponse(401, {"message": "Bad credentials"}))

    with pytest.raises(AuthenticationError):
        client.execute("query { x }")
    assert len(transport.calls) == 1


def test_execute_raises_on_non_json_body(monkeypatch) -> None:
    client, _, _ = make_client(monkeypatch, FakeResponse(200, text="<html>"))

    with pytest.raises(GraphQLError):
        client.execute("query { x }")


def test_dig_tolerates_missing_levels() -> None:
    body = {"data": {"user": {"contributionsCollection": None}}}

    assert dig(body, "data", "user", "contributionsCollection", "contributionCalendar") is None
    assert dig(None, "data") is None
    assert dig(body, "data", "user") == {"contributionsCollection": None}


def test_errors_of_without_errors() -> None:
    assert errors_of({"data": {}}) == []
    assert errors_of({"errors": None}) == []


def test_execute_waits_out_rate_limited_responses(monkeypatch) -> None:
    limited = FakeResponse(403, {"message": "secondary rate limit"}, headers={"Retry-After": "60"})
    client, transport, sleeps = make_client(
        monkeypatch,
        limited,
        limited,
        limited,
        FakeResponse(200, {"data": {"user": {"name": "Mona"}}}),
    )

    body = client.execute("query { x }")

    assert body["data"]["user"]["name"] == "Mona"
    assert len(transport.calls) == 4
    assert sleeps == [60.0, 60.0, 60.0]


def test_execute_waits_until_rate_limit_reset(monkeypatch) -> None:
    monkeypatch.setattr(github_client.time, "time", lambda: 1000)
    client, _, sleeps = make_client(
        monkeypatch,
        FakeResponse(403, headers={"X-RateLimit-Remaining": "0", "X-RateLimit-Reset": "1010"}),
        FakeResponse(200, {"data": {}}),
    )

    assert client.execute("query { x }") == {"data": {}}
    assert sleeps == [11]


def test_execute_retries_rate_limit_error_messages(monkeypatch) -> None:
    client, transport, sleeps = make_client(
        monkeypatch,
        FakeResponse(200, {"errors": [{"type": "RATE_LIMITED", "message": "API rate limit exceeded"}]},
                     headers={"Retry-After": "5"}),
        FakeResponse(200, {"data": {"viewer": {"login": "octocat"}}}),
    )

    body = client.execute("query { viewer { login } }")

    assert body == {"data": {"viewer": {"login": "octocat"}}}
    assert len(transport.calls) == 2
    assert sleeps == [5.0]


def test_execute_gives_up_when_rate_limit_persists(monkeypatch) -> None:
    limited = FakeResponse(429, headers={"Retry-After": "1"})
    client, transport, _ = make_client(monkeypatch, *[limited for _ in range(8)])

    with pytest.raises(GraphQLError, match="rate limited"):
        client.execute("query { x }")
    assert len(transport.calls) == 8


def test_rate_limited_year_is_counted_after_waiting(monkeypatch) -> None:
    limited = FakeResponse(403, {"message": "secondary rate limit"}, headers={"Retry-After": "60"})
    calendar = {"data": {"user": {"contributionsCollection": {"contributionCalendar": {"totalContributions": 50}}}}}
    client, _, _ = make_client(monkeypatch, limited, limited, limited, FakeResponse(200, calendar))
    aggregator = ContributionAggregator(
        client,
        make_config(start_year=2026),
        clock=lambda: datetime(2026, 5, 1, tzinfo=timezone.utc),
    )

    assert aggregator.aggregate() == 50


def test_errors_of_tolerates_non_dict_entries() -> None:
    assert errors_of({"errors": ["plain message", {"message": "structured"}]}) == ["plain message", "structured"]
