"""Unit tests for the GitHub client wrapper (mocked HTTP session)."""

from __future__ import annotations

from datetime import UTC, datetime
from unittest.mock import Mock

import pytest
import requests

from github_issue_watch.watcher.errors import FetchError
from github_issue_watch.watcher.github import client as client_module
from github_issue_watch.watcher.github.client import GitHubClient


def _raw_issue(number: int, login: str | None, *, is_pr: bool = False) -> dict:
    raw = {
        "id": 1000 + number,
        "node_id": f"I_kw{number}",
        "number": number,
        "user": {"login": login} if login is not None else None,
        "title": f"title {number}",
        "html_url": f"https://github.com/golang/go/issues/{number}",
        "created_at": f"2025-01-01T12:{number:02d}:00Z",
        "state": "open",
    }
    if is_pr:
        raw["pull_request"] = {"url": f"https://api.github.com/repos/golang/go/pulls/{number}"}
    return raw


def _client(*, session: Mock | None = None, **kwargs) -> GitHubClient:
    if session is None:
        session = Mock(spec=requests.Session)
        session.headers = {}
    return GitHubClient(
        token="gh-test-token",
        repository="golang/go",
        session=session,
        **kwargs,
    )


def _json_response(payload: object) -> Mock:
    resp = Mock(spec=requests.Response)
    resp.json.return_value = payload
    return resp


def _listing_session(payload: object) -> Mock:
    session = Mock(spec=requests.Session)
    session.headers = {}
    session.get.return_value = _json_response(payload)
    return session


def test_list_issues_page_drops_pull_requests() -> None:
    session = _listing_session(
        [
            _raw_issue(1, "rsc"),
            _raw_issue(2, "gopherbot", is_pr=True),
            _raw_issue(3, "j178"),
        ]
    )
    client = _client(session=session, per_page=3)
    since = datetime(2025, 1, 1, tzinfo=UTC)

    page = client.list_issues_page(since=since, page=2, timeout=7.5)

    assert [i.number for i in page.issues] == [1, 3]
    assert page.issues[0].author == "rsc"
    assert page.issues[0].url == "https://github.com/golang/go/issues/1"
    assert page.issues[0].node_id == "I_kw1"
    assert page.issues[0].created_at == datetime(2025, 1, 1, 12, 1, tzinfo=UTC)
    assert page.has_next_page is True
    session.get.assert_called_once_with(
        "https://api.github.com/repos/golang/go/issues",
        params={
            "state": "open",
            "sort": "created",
            "direction": "asc",
            "since": "2025-01-01T00:00:00Z",
            "per_page": 3,
            "page": 2,
        },
        timeout=7.5,
    )


def test_list_issues_page_short_page_is_last() -> None:
    session = _listing_session([_raw_issue(1, "rsc")])

    page = _client(session=session).list_issues_page(
        since=datetime(2025, 1, 1, tzinfo=UTC), page=1, timeout=5
    )

    assert page.has_next_page is False


def test_list_issues_page_ghost_author() -> None:
    session = _listing_session([_raw_issue(5, None)])

    issue = (
        _client(session=session)
        .list_issues_page(since=datetime(2025, 1, 1, tzinfo=UTC), page=1, timeout=5)
        .issues[0]
    )

    assert issue.author == "ghost"
    assert issue.created_at.tzinfo is not None


def test_list_issues_page_wraps_http_errors_without_retrying() -> None:
    session = Mock(spec=requests.Session)
    session.headers = {}
    resp = Mock(spec=requests.Response)
    resp.raise_for_status.side_effect = requests.HTTPError("502 Server Error")
    session.get.return_value = resp

    with pytest.raises(FetchError, match="golang/go"):
        _client(session=session).list_issues_page(
            since=datetime(2025, 1, 1, tzinfo=UTC), page=1, timeout=5
        )

    assert session.get.call_count == 1


def test_list_issues_page_rejects_non_list_payload() -> None:
    session = _listing_session({"message": "Not Found"})

    with pytest.raises(FetchError, match="Unexpected issue listing"):
        _client(session=session).list_issues_page(
            since=datetime(2025, 1, 1, tzinfo=UTC), page=1, timeout=5
        )


def test_pygithub_is_built_without_retries(monkeypatch: pytest.MonkeyPatch) -> None:
    github_cls = Mock()
    monkeypatch.setattr(client_module, "Github", github_cls)

    _client(base_url="https://github.example.com/api/v3")

    kwargs = github_cls.call_args.kwargs
    assert kwargs["retry"] is None
    assert kwargs["base_url"] == "https://github.example.com/api/v3"


@pytest.mark.parametrize(
    ("base_url", "expected"),
    [
        ("https://api.github.com", "https://api.github.com/graphql"),
        ("https://api.github.com/", "https://api.github.com/graphql"),
        ("https://github.example.com/api/v3", "https://github.example.com/api/graphql"),
        ("https://github.example.com/api", "https://github.example.com/api/graphql"),
    ],
)
def test_graphql_url_derivation(base_url: str, expected: str) -> None:
    assert _client(base_url=base_url)._graphql_url() == expected


def test_list_issues_after_parses_edges_and_page_info() -> None:
    session = Mock(spec=requests.Session)
    session.headers = {}
    session.post.return_value = _json_response(
        {
            "data": {
                "repository": {
                    "issues": {
                        "pageInfo": {"hasNextPage": True, "endCursor": "c2"},
                        "edges": [
                            {
                                "cursor": "c1",
                                "node": {
                                    "id": "I_1",
                                    "number": 101,
                                    "title": "spec: generic methods",
                                    "url": "https://github.com/golang/go/issues/101",
                                    "createdAt": "2025-01-01T10:00:00Z",
                                    "state": "OPEN",
                                    "author": {"login": "rsc"},
                                },
                            },
                            {
                                "cursor": "c2",
                                "node": {
                                    "id": "I_2",
                                    "number": 102,
                                    "title": "deleted user",
                                    "url": "https://github.com/golang/go/issues/102",
                                    "createdAt": "2025-01-01T11:00:00Z",
                                    "state": "CLOSED",
                                    "author": None,
                                },
                            },
                        ],
                    }
                }
            }
        }
    )
    client = _client(session=session)

    page = client.list_issues_after(after="c0", first=2, timeout=4.5)

    assert [(i.number, i.author, i.cursor, i.state) for i in page.issues] == [
        (101, "rsc", "c1", "open"),
        (102, "ghost", "c2", "closed"),
    ]
    assert page.issues[0].created_at == datetime(2025, 1, 1, 10, 0, tzinfo=UTC)
    assert page.has_next_page is True
    assert page.end_cursor == "c2"

    args, kwargs = session.post.call_args
    assert args[0] == "https://api.github.com/graphql"
    assert kwargs["json"]["variables"] == {
        "owner": "golang",
        "name": "go",
        "first": 2,
        "after": "c0",
    }
    assert kwargs["timeout"] == 4.5


def test_graphql_errors_raise_fetch_error() -> None:
    session = Mock(spec=requests.Session)
    session.headers = {}
    session.post.return_value = _json_response(
        {"errors": [{"message": "Could not resolve to a Repository"}]}
    )

    with pytest.raises(FetchError, match="Could not resolve"):
        _client(session=session).list_issues_after(after=None, first=10, timeout=5)


def test_graphql_transport_errors_raise_fetch_error() -> None:
    session = Mock(spec=requests.Session)
    session.headers = {}
    session.post.side_effect = requests.ConnectionError("boom")

    with pytest.raises(FetchError):
        _client(session=session).latest_issue_cursor(timeout=5)


def test_latest_issue_cursor() -> None:
    session = Mock(spec=requests.Session)
    session.headers = {}
    session.post.return_value = _json_response(
        {"data": {"repository": {"issues": {"edges": [{"cursor": "newest"}]}}}}
    )

    assert _client(session=session).latest_issue_cursor(timeout=5) == "newest"


def test_latest_issue_cursor_empty_repository() -> None:
    session = Mock(spec=requests.Session)
    session.headers = {}
    session.post.return_value = _json_response(
        {"data": {"repository": {"issues": {"edges": []}}}}
    )

    assert _client(session=session).latest_issue_cursor(timeout=5) is None


def test_client_sets_auth_headers() -> None:
    session = Mock(spec=requests.Session)
    session.headers = {}

    _client(session=session)

    assert session.headers["Authorization"] == "Bearer gh-test-token"
