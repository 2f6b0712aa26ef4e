"""GitHub API client wrapper for issue polling.

All HTTP goes through one requests session so every call carries the caller's
timeout and nothing is retried behind the caller's back. PyGithub turns REST payloads
into ``Issue`` objects; GraphQL responses are parsed here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any
from urllib.parse import urlparse, urlunparse

import requests
from github import Auth, Github
from github.Issue import Issue

from github_issue_watch.watcher.errors import FetchError

logger = logging.getLogger(__name__)

_ISSUE_FIELDS = """
          cursor
          node {
            id
            number
            title
            url
            createdAt
            state
            author {
              login
            }
          }
"""

ISSUES_AFTER_QUERY = (
    """
query($owner: String!, $name: String!, $first: Int!, $after: String) {
  repository(owner: $owner, name: $name) {
    issues(first: $first, after: $after, orderBy: {field: CREATED_AT, direction: ASC}) {
      pageInfo {
        hasNextPage
        endCursor
      }
      edges {"""
    + _ISSUE_FIELDS
    + """      }
    }
  }
}
"""
)

LATEST_ISSUE_QUERY = """
query($owner: String!, $name: String!) {
  repository(owner: $owner, name: $name) {
    issues(last: 1, orderBy: {field: CREATED_AT, direction: ASC}) {
      edges {
        cursor
      }
    }
  }
}
"""


@dataclass(frozen=True, slots=True)
class WatchedIssue:
    """Issue metadata needed to decide on and render a notification."""

    node_id: str
    number: int
    author: str
    title: str
    url: str
    created_at: datetime
    state: str
    # GraphQL edge cursor; REST listings have none.
    cursor: str | None = None


@dataclass(frozen=True, slots=True)
class IssuePage:
    issues: list[WatchedIssue]
    has_next_page: bool
    end_cursor: str | None = None


class GitHubClient:
    """Small wrapper around PyGithub and the GraphQL API for the listings we need."""

    def __init__(
        self,
        *,
        token: str,
        repository: str,
        base_url: str = "https://api.github.com",
        per_page: int = 100,
        github_api: Github | None = None,
        session: requests.Session | None = None,
    ) -> None:
        if not token:
            raise ValueError("GitHub token is required")
        if not repository:
            raise ValueError("GitHub repository is required")

        self._repository_name = repository
        self._rest_base_url = base_url.rstrip("/")
        self._per_page = per_page
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
                "User-Agent": "github-issue-watch",
            }
        )

        # Only used to build Issue objects from raw payloads; it never sends a request.
        # retry=None keeps PyGithub's default GithubRetry off all the same.
        self._github = github_api or Github(
            auth=Auth.Token(token),
            base_url=self._rest_base_url,
            per_page=per_page,
            retry=None,
        )
        logger.debug("GitHub client ready", extra={"repo": repository})

    @property
    def repository(self) -> str:
        """Return the configured repository name ("owner/repo")."""

        return self._repository_name

    @property
    def per_page(self) -> int:
        return self._per_page

    @staticmethod
    def _parse_datetime(value: object) -> datetime:
        if not isinstance(value, str) or not value.strip():
            raise ValueError("Invalid datetime value")
        # GitHub commonly returns timestamps like "2025-01-01T00:00:00Z".
        iso = value.replace("Z", "+00:00")
        parsed = datetime.fromisoformat(iso)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=UTC)
        return parsed

    @staticmethod
    def _from_rest_issue(issue: Issue) -> WatchedIssue:
        user = issue.user
        created_at = issue.created_at
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=UTC)
        return WatchedIssue(
            node_id=str(getattr(issue, "node_id", "") or issue.id),
            number=issue.number,
            author=user.login if user is not None else "ghost",
            title=issue.title or "",
            url=issue.html_url,
            created_at=created_at,
            state=issue.state,
        )

    def _issues_url(self) -> str:
        return f"{self._rest_base_url}/repos/{self._repository_name}/issues"

    def list_issues_page(self, *, since: datetime, page: int, timeout: float) -> IssuePage:
        """Return one REST page of open issues updated at or after ``since``.

        Pages are 1-based and sorted by creation time, oldest first. Pull requests
        share the issues endpoint and are dropped here; ``has_next_page`` is based on
        the raw page size so a page of only pull requests still continues paging.
        """

        logger.info(
            "Fetching issues page",
            extra={"repo": self._repository_name, "page": page, "since": since.isoformat()},
        )
        params = {
            "state": "open",
            "sort": "created",
            "direction": "asc",
            "since": since.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ"),
            "per_page": self._per_page,
            "page": page,
        }
        try:
            resp = self._session.get(self._issues_url(), params=params, timeout=timeout)
            resp.raise_for_status()
            payload = resp.json()
        except requests.RequestException as e:
            raise FetchError(f"Listing issues of {self._repository_name} failed: {e}") from e
        except ValueError as e:
            raise FetchError(f"Issue listing of {self._repository_name} is not valid JSON") from e

        if not isinstance(payload, list):
            raise FetchError(f"Unexpected issue listing for {self._repository_name}")

        raw = [
            self._github.create_from_raw_data(Issue, item)
            for item in payload
            if isinstance(item, dict)
        ]
        issues = [self._from_rest_issue(i) for i in raw if i.pull_request is None]
        return IssuePage(issues=issues, has_next_page=len(payload) >= self._per_page)

    def _graphql_url(self) -> str:
        """Derive the GitHub GraphQL endpoint from the configured REST base URL.

        GitHub.com:
            REST: https://api.github.com
            GQL:  https://api.github.com/graphql

        GitHub Enterprise typically exposes REST as:
            https://github.example.com/api/v3
        and GraphQL as:
            https://github.example.com/api/graphql
        """

        parsed = urlparse(self._rest_base_url)
        path = parsed.path.rstrip("/")

        if path.endswith("/api/v3"):
            path = path[: -len("/api/v3")] + "/api/graphql"
        elif path.endswith("/api"):
            path = path[: -len("/api")] + "/api/graphql"
        elif path == "":
            path = "/graphql"
        else:
            path = path + "/graphql"

        return urlunparse(parsed._replace(path=path))

    def _repo_owner_and_name(self) -> tuple[str, str]:
        owner, _, name = self._repository_name.partition("/")
        if not owner.strip() or not name.strip():
            raise ValueError("repository must be in the form 'owner/repo'")
        return owner, name

    def _graphql(self, *, query: str, variables: dict[str, Any], timeout: float) -> dict[str, Any]:
        url = self._graphql_url()
        try:
            resp = self._session.post(
                url, json={"query": query, "variables": variables}, timeout=timeout
            )
            resp.raise_for_status()
            payload: dict[str, Any] = resp.json()
        except requests.RequestException as e:
            raise FetchError(f"GitHub GraphQL request failed: {e}") from e
        except ValueError as e:
            raise FetchError("GitHub GraphQL response is not valid JSON") from e

        errors = payload.get("errors")
        if errors:
            messages = []
            if isinstance(errors, list):
                for item in errors:
                    if isinstance(item, dict):
                        msg = item.get("message")
                        if isinstance(msg, str):
                            messages.append(msg)
            message = "; ".join(messages) if messages else "Unknown GraphQL error"
            raise FetchError(f"GitHub GraphQL error: {message}")
        return payload

    def _issues_connection(self, payload: dict[str, Any]) -> dict[str, Any]:
        data = payload.get("data")
        repo = data.get("repository") if isinstance(data, dict) else None
        if not isinstance(repo, dict):
            raise FetchError(f"Repository not found: {self._repository_name}")
        issues = repo.get("issues")
        if not isinstance(issues, dict):
            raise FetchError("Unexpected GraphQL response: missing issues")
        return issues

    def _parse_issue_edge(self, edge: Any) -> WatchedIssue | None:
        if not isinstance(edge, dict):
            return None
        node = edge.get("node")
        if not isinstance(node, dict):
            return None
        number = node.get("number")
        if not isinstance(number, int):
            return None

        author = node.get("author")
        login = author.get("login") if isinstance(author, dict) else None
        cursor = edge.get("cursor")
        try:
            created_at = self._parse_datetime(node.get("createdAt"))
        except ValueError:
            logger.warning("Issue without createdAt", extra={"issue_number": number})
            return None

        return WatchedIssue(
            node_id=str(node.get("id") or ""),
            number=number,
            author=login if isinstance(login, str) and login else "ghost",
            title=str(node.get("title") or ""),
            url=str(node.get("url") or ""),
            created_at=created_at,
            state=str(node.get("state") or "").lower(),
            cursor=cursor if isinstance(cursor, str) else None,
        )

    def list_issues_after(self, *, after: str | None, first: int, timeout: float) -> IssuePage:
        """Return up to ``first`` issues created after the page cursor ``after``."""

        owner, name = self._repo_owner_and_name()
        logger.info(
            "Fetching issues after cursor",
            extra={"repo": self._repository_name, "after": after, "first": first},
        )
        payload = self._graphql(
            query=ISSUES_AFTER_QUERY,
            variables={"owner": owner, "name": name, "first": first, "after": after},
            timeout=timeout,
        )
        connection = self._issues_connection(payload)

        edges = connection.get("edges")
        issues: list[WatchedIssue] = []
        if isinstance(edges, list):
            for edge in edges:
                issue = self._parse_issue_edge(edge)
                if issue is not None:
                    issues.append(issue)

        page_info = connection.get("pageInfo")
        has_next = False
        end_cursor = None
        if isinstance(page_info, dict):
            has_next = bool(page_info.get("hasNextPage"))
            raw_end = page_info.get("endCursor")
            end_cursor = raw_end if isinstance(raw_end, str) else None

        return IssuePage(issues=issues, has_next_page=has_next, end_cursor=end_cursor)

    def latest_issue_cursor(self, *, timeout: float) -> str | None:
        """Return the page cursor of the most recently created issue, if any."""

        owner, name = self._repo_owner_and_name()
        payload = self._graphql(
            query=LATEST_ISSUE_QUERY,
            variables={"owner": owner, "name": name},
            timeout=timeout,
        )
        edges = self._issues_connection(payload).get("edges")
        if isinstance(edges, list) and edges and isinstance(edges[-1], dict):
            cursor = edges[-1].get("cursor")
            if isinstance(cursor, str) and cursor:
                return cursor
        return None

    def close(self) -> None:
        self._session.close()
        self._github.close()
