from __future__ import annotations

import asyncio
import json
from typing import Any, Callable, Dict, List

import httpx
import pytest

from leetready.config import Settings
from leetready.models import SyncProgress
from leetready.remote.client import LeetCodeClient, RemoteFetchError, parse_item

Handler = Callable[[Dict[str, Any]], httpx.Response]


def _settings(**overrides: object) -> Settings:
    values: Dict[str, object] = {
        "LEETREADY_GRAPHQL_URL": "https://example.test/graphql/",
        "LEETREADY_CATALOG_THROTTLE_MS": 0,
        "LEETREADY_SUBMISSION_MAX_PAGES": 3,
        "LEETREADY_SUBMISSION_PAGE_SIZE": 2,
    }
    values.update(overrides)
    return Settings(**values)


def _run(handler: Handler, call, **settings: object):
    requests: List[httpx.Request] = []

    def _transport(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return handler(json.loads(request.content))

    async def scenario():
        async with httpx.AsyncClient(transport=httpx.MockTransport(_transport)) as http:
            client = LeetCodeClient(_settings(**settings), client=http)
            return await call(client)

    return asyncio.run(scenario()), requests


def _submissions(*records: tuple[str, int], has_next: bool = False, last_key: str = "k") -> httpx.Response:
    return httpx.Response(
        200,
        json={
            "data": {
                "questionSubmissionList": {
                    "lastKey": last_key,
                    "hasNext": has_next,
                    "submissions": [
                        {"statusDisplay": status, "timestamp": str(timestamp)} for status, timestamp in records
                    ],
                }
            }
        },
    )


def test_latest_accepted_skips_newer_failures() -> None:
    result, _ = _run(
        lambda body: _submissions(("Wrong Answer", 200), ("Accepted", 100)),
        lambda client: client.fetch_latest_accepted("two-sum"),
    )

    assert result.solved is True
    assert result.latest_accepted_timestamp == 100


def test_latest_accepted_without_acceptance_is_unsolved() -> None:
    result, _ = _run(
        lambda body: _submissions(("Wrong Answer", 200), ("Time Limit Exceeded", 100)),
        lambda client: client.fetch_latest_accepted("two-sum"),
    )

    assert result.solved is False
    assert result.latest_accepted_timestamp is None


def test_latest_accepted_follows_pages() -> None:
    def handler(body: Dict[str, Any]) -> httpx.Response:
        if body["variables"]["offset"] == 0:
            return _submissions(("Wrong Answer", 300), ("Runtime Error", 250), has_next=True, last_key="p2")
        return _submissions(("Accepted", 200))

    result, requests = _run(handler, lambda client: client.fetch_latest_accepted("two-sum"))

    variables = [json.loads(request.content)["variables"] for request in requests]
    assert result.latest_accepted_timestamp == 200
    assert [(v["offset"], v["lastKey"]) for v in variables] == [(0, None), (2, "p2")]


def test_latest_accepted_stops_at_page_limit() -> None:
    result, requests = _run(
        lambda body: _submissions(("Wrong Answer", 1), ("Wrong Answer", 1), has_next=True),
        lambda client: client.fetch_latest_accepted("two-sum"),
    )

    assert result.solved is False
    assert len(requests) == 3


def test_http_failure_raises_remote_error() -> None:
    with pytest.raises(RemoteFetchError):
        _run(lambda body: httpx.Response(500, text="down"), lambda client: client.fetch_user_status())


def test_graphql_errors_raise_remote_error() -> None:
    with pytest.raises(RemoteFetchError):
        _run(
            lambda body: httpx.Response(200, json={"errors": [{"message": "rate limited"}]}),
            lambda client: client.fetch_recent_accepted("alice"),
        )


def test_recent_accepted_parses_feed() -> None:
    payload = {
        "data": {
            "recentAcSubmissionList": [
                {"id": "2", "title": "Two Sum", "titleSlug": "two-sum", "timestamp": "200"},
                {"id": "1", "title": "Add", "titleSlug": "add-two-numbers", "timestamp": 100},
            ]
        }
    }

    result, requests = _run(
        lambda body: httpx.Response(200, json=payload),
        lambda client: client.fetch_recent_accepted("alice", 2),
    )

    assert [(item.slug, item.timestamp) for item in result] == [("two-sum", "200"), ("add-two-numbers", "100")]
    assert json.loads(requests[0].content)["variables"] == {"username": "alice", "limit": 2}


def test_recent_accepted_drops_entries_without_slug(caplog) -> None:
    payload = {
        "data": {
            "recentAcSubmissionList": [
                {"id": "3", "title": "Ghost", "titleSlug": None, "timestamp": "300"},
                {"id": "2", "title": "Two Sum", "titleSlug": "two-sum", "timestamp": "200"},
                {"id": "1", "title": "Blank", "timestamp": "100"},
            ]
        }
    }

    with caplog.at_level("WARNING", logger="leetready.remote.client"):
        result, _ = _run(
            lambda body: httpx.Response(200, json=payload),
            lambda client: client.fetch_recent_accepted("alice"),
        )

    assert [item.slug for item in result] == ["two-sum"]
    assert "without a slug" in caplog.text


def _question(slug: str, status: Any = None) -> Dict[str, Any]:
    return {
        "acRate": 51.5,
        "difficulty": "Medium",
        "frontendQuestionId": "1",
        "paidOnly": False,
        "status": status,
        "title": slug.title(),
        "titleSlug": slug,
        "topicTags": [{"name": "Array", "id": "5", "slug": "array"}],
    }


def test_catalog_is_fetched_in_batches_with_progress() -> None:
    questions = [_question("a", "ac"), _question("b", "notac"), _question("c")]

    def handler(body: Dict[str, Any]) -> httpx.Response:
        skip, limit = body["variables"]["skip"], body["variables"]["limit"]
        batch = questions[skip : skip + limit]
        return httpx.Response(200, json={"data": {"problemsetQuestionList": {"total": 3, "questions": batch}}})

    progress: List[SyncProgress] = []
    result, requests = _run(
        handler,
        lambda client: client.fetch_catalog(progress.append, batch_size=2),
    )

    assert [item.slug for item in result.items] == ["a", "b", "c"]
    assert [item.status for item in result.items] == ["accepted", "attempted", None]
    assert len(requests) == 2
    assert [(p.fetched, p.total) for p in progress] == [(2, 3), (3, 3)]


def test_parse_item_maps_tags() -> None:
    item = parse_item(_question("two-sum", "ac"))

    assert item.has_topic("array")
    assert item.ac_rate == 51.5


def test_session_credentials_are_sent() -> None:
    _, requests = _run(
        lambda body: httpx.Response(
            200, json={"data": {"userStatus": {"isSignedIn": True, "isPremium": False, "username": "alice"}}}
        ),
        lambda client: client.fetch_user_status(),
        LEETREADY_SESSION_COOKIE="session-value",
        LEETREADY_CSRF_TOKEN="csrf-value",
    )

    headers = requests[0].headers
    assert "LEETCODE_SESSION=session-value" in headers["cookie"]
    assert headers["x-csrftoken"] == "csrf-value"
