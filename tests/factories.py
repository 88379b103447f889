"""Builders for raw GraphQL issue nodes used across the tests."""

from __future__ import annotations

from typing import Any


def ts(second: int) -> str:
    return f"2023-05-01T12:00:{second:02d}Z"


def edit(second: int, diff: str) -> dict[str, Any]:
    return {"editedAt": ts(second), "diff": diff}


def labeled(second: int, name: str, actor: str | None = "octocat") -> dict[str, Any]:
    return {
        "__typename": "LabeledEvent",
        "createdAt": ts(second),
        "label": {"name": name},
        "actor": {"login": actor} if actor is not None else None,
    }


def unlabeled(second: int, name: str) -> dict[str, Any]:
    return {"__typename": "UnlabeledEvent", "createdAt": ts(second), "label": {"name": name}}


def renamed(second: int, old: str, new: str) -> dict[str, Any]:
    return {
        "__typename": "RenamedTitleEvent",
        "createdAt": ts(second),
        "previousTitle": old,
        "currentTitle": new,
    }


def closed(closer: str | None = None) -> dict[str, Any]:
    return {
        "__typename": "ClosedEvent",
        "closer": {"__typename": closer} if closer is not None else None,
    }


def comment(author: str | None, text: str) -> dict[str, Any]:
    return {
        "__typename": "IssueComment",
        "author": {"login": author} if author is not None else None,
        "bodyText": text,
    }


def issue(
    number: int = 1,
    *,
    title: str = "Current title",
    body: str = "Current body",
    edits: list[dict[str, Any]] | None = None,
    timeline: list[dict[str, Any]] | None = None,
    labels: list[str] | None = None,
    assignees: list[str] | None = None,
) -> dict[str, Any]:
    return {
        "number": number,
        "title": title,
        "body": body,
        "bodyText": body,
        "createdAt": "2023-05-01T12:00:00Z",
        "userContentEdits": {"nodes": list(edits or [])},
        "assignees": {"nodes": [{"login": a} for a in assignees or []]},
        "labels": {"nodes": [{"name": n} for n in labels or []]},
        "timelineItems": {"nodes": list(timeline or [])},
    }


def page_payload(
    nodes: list[dict[str, Any]],
    *,
    end_cursor: str | None = "CURSOR",
    has_next_page: bool = False,
    cost: int = 1,
    remaining: int = 4999,
) -> dict[str, Any]:
    return {
        "data": {
            "repository": {
                "issues": {
                    "pageInfo": {"endCursor": end_cursor, "hasNextPage": has_next_page},
                    "nodes": nodes,
                }
            },
            "rateLimit": {"cost": cost, "remaining": remaining},
        }
    }
