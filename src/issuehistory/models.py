from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

GHOST_ACTOR = "ghost"
CODE_CLOSER_KINDS = frozenset({"PullRequest", "Commit"})


# --- Raw timeline entries -------------------------------------------------


@dataclass(frozen=True)
class BodyEdited:
    timestamp: int
    new: str | None


@dataclass(frozen=True)
class Labeled:
    timestamp: int
    label: str
    actor: str = GHOST_ACTOR


@dataclass(frozen=True)
class Unlabeled:
    timestamp: int
    label: str


@dataclass(frozen=True)
class TitleRenamed:
    timestamp: int
    old: str
    new: str


@dataclass(frozen=True)
class Closed:
    closer: str | None = None

    @property
    def with_code(self) -> bool:
        return self.closer in CODE_CLOSER_KINDS


@dataclass(frozen=True)
class Commented:
    author: str | None
    body_text: str


TimelineEntry = Union[BodyEdited, Labeled, Unlabeled, TitleRenamed, Closed, Commented]
# Entries that take part in the timestamp-ordered replay
ReplayEntry = Union[BodyEdited, Labeled, Unlabeled, TitleRenamed]


# --- Derived records ------------------------------------------------------


@dataclass(frozen=True)
class LabelAdded:
    actor: str
    label: str
    title: str
    body: str | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "added",
            "actor": self.actor,
            "label": self.label,
            "body": self.body,
            "title": self.title,
        }


@dataclass(frozen=True)
class LabelRemoved:
    label: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": "removed", "label": self.label}


LabelEvent = Union[LabelAdded, LabelRemoved]


@dataclass(frozen=True)
class CommentRecord:
    author: str | None
    body_text: str

    def to_dict(self) -> dict[str, Any]:
        return {"author": self.author, "bodyText": self.body_text}


@dataclass
class IssueRecord:
    """One exported issue, in the shape written to the NDJSON archive."""

    number: int
    title: str
    body: str
    body_text: str
    created_at: int  # epoch milliseconds
    labels: list[str] = field(default_factory=list)
    assignees: list[str] = field(default_factory=list)
    label_events: list[LabelEvent] = field(default_factory=list)
    comment_events: list[CommentRecord] = field(default_factory=list)
    closed_with_code: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "number": self.number,
            "title": self.title,
            "body": self.body,
            "bodyText": self.body_text,
            "createdAt": self.created_at,
            "labels": list(self.labels),
            "assignees": list(self.assignees),
            "labelEvents": [e.to_dict() for e in self.label_events],
            "commentEvents": [c.to_dict() for c in self.comment_events],
            "closedWithCode": self.closed_with_code,
        }


# --- Pagination -----------------------------------------------------------


@dataclass(frozen=True)
class PageCursor:
    end_cursor: str | None = None
    has_next_page: bool = True


@dataclass(frozen=True)
class RateLimit:
    cost: int
    remaining: int


@dataclass(frozen=True)
class IssuePage:
    """Raw issue nodes of one GraphQL page plus its cursor and quota metadata."""

    nodes: list[dict[str, Any]]
    cursor: PageCursor
    rate_limit: RateLimit


__all__ = [
    "GHOST_ACTOR",
    "CODE_CLOSER_KINDS",
    "BodyEdited",
    "Labeled",
    "Unlabeled",
    "TitleRenamed",
    "Closed",
    "Commented",
    "TimelineEntry",
    "ReplayEntry",
    "LabelAdded",
    "LabelRemoved",
    "LabelEvent",
    "CommentRecord",
    "IssueRecord",
    "PageCursor",
    "RateLimit",
    "IssuePage",
]
