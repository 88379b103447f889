from __future__ import annotations

import asyncio
import functools
from dataclasses import dataclass, field
from typing import Any

import requests

from .models import IssuePage, PageCursor, RateLimit

DEFAULT_GRAPHQL_URL = "https://api.github.com/graphql"
USER_AGENT = "issuehistory/0.2.0"
HTTP_ERROR_STATUS = 400
ISSUES_PER_PAGE = 100
EDITS_PER_ISSUE = 100
TIMELINE_ITEMS_PER_ISSUE = 250

ISSUES_QUERY = """
query($owner: String!, $name: String!, $after: String) {
  repository(owner: $owner, name: $name) {
    issues(first: %(issues)d, after: $after) {
      pageInfo {
        endCursor
        hasNextPage
      }
      nodes {
        body
        bodyText
        title
        number
        createdAt
        userContentEdits(first: %(edits)d) {
          nodes {
            editedAt
            diff
          }
        }
        assignees(first: 100) {
          nodes {
            login
          }
        }
        labels(first: 100) {
          nodes {
            name
          }
        }
        timelineItems(
          itemTypes: [LABELED_EVENT, RENAMED_TITLE_EVENT, UNLABELED_EVENT, CLOSED_EVENT, ISSUE_COMMENT]
          first: %(timeline)d
        ) {
          nodes {
            __typename
            ... on UnlabeledEvent {
              createdAt
              label { name }
            }
            ... on LabeledEvent {
              createdAt
              label { name }
              actor { login }
            }
            ... on RenamedTitleEvent {
              createdAt
              currentTitle
              previousTitle
            }
            ... on ClosedEvent {
              closer { __typename }
            }
            ... on IssueComment {
              author { login }
              bodyText
            }
          }
        }
      }
    }
  }
  rateLimit {
    cost
    remaining
  }
}
""" % {"issues": ISSUES_PER_PAGE, "edits": EDITS_PER_ISSUE, "timeline": TIMELINE_ITEMS_PER_ISSUE}


class GitHubAPIError(RuntimeError):
    """Raised when the GitHub GraphQL API returns an error."""

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        response_text: str | None = None,
    ):
        super().__init__(message)
        self.status = status
        self.response_text = response_text


@dataclass
class GitHubGraphQLClient:
    """Minimal GraphQL client fetching issue pages for one token."""

    token: str
    graphql_url: str = DEFAULT_GRAPHQL_URL
    timeout: float = 30.0
    session: requests.Session | None = None
    _session: requests.Session = field(init=False, repr=False)

    def __post_init__(self) -> None:  # pragma: no cover - simple wiring
        self._session = self.session or requests.Session()
        self._session.headers.setdefault("Authorization", f"bearer {self.token}")
        self._session.headers.setdefault("Content-Type", "application/json")
        self._session.headers.setdefault("Accept", "application/json")
        self._session.headers.setdefault("User-Agent", USER_AGENT)

    def graphql(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        payload = {"query": query, "variables": variables or {}}
        response = self._session.request(
            "POST",
            self.graphql_url,
            json=payload,
            headers=self._session.headers,
            timeout=self.timeout,
        )
        if response.status_code >= HTTP_ERROR_STATUS:
            raise GitHubAPIError(
                f"GitHub API POST {self.graphql_url} failed with {response.status_code}",
                status=response.status_code,
                response_text=response.text,
            )
        data = response.json()
        if not isinstance(data, dict):
            raise GitHubAPIError("GraphQL response is not an object", response_text=response.text)
        if data.get("errors"):
            raise GitHubAPIError(f"GraphQL query failed: {data['errors']}", response_text=response.text)
        return data["data"]

    def fetch_issue_page(self, owner: str, repo: str, after: str | None = None) -> IssuePage:
        """Fetch one page of issues with their edits and timeline items."""
        data = self.graphql(ISSUES_QUERY, {"owner": owner, "name": repo, "after": after})
        issues = data["repository"]["issues"]
        page_info = issues["pageInfo"]
        rate = data["rateLimit"]
        return IssuePage(
            nodes=list(issues["nodes"]),
            cursor=PageCursor(
                end_cursor=page_info["endCursor"],
                has_next_page=bool(page_info["hasNextPage"]),
            ),
            rate_limit=RateLimit(cost=int(rate["cost"]), remaining=int(rate["remaining"])),
        )

    async def fetch_issue_page_async(
        self, owner: str, repo: str, after: str | None = None
    ) -> IssuePage:
        # requests is blocking; keep the event loop free while the call is in flight
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None, functools.partial(self.fetch_issue_page, owner, repo, after)
        )


__all__ = [
    "DEFAULT_GRAPHQL_URL",
    "ISSUES_QUERY",
    "GitHubAPIError",
    "GitHubGraphQLClient",
]
