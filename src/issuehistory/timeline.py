"""Timeline reconstruction for a single issue.

GitHub only exposes the *current* title and body of an issue. To know what an
issue looked like when a label was applied, the edit history and timeline
events are merged into one list ordered by timestamp and replayed:

  * ``TitleRenamed`` moves the running title forward
  * ``BodyEdited`` replaces the running body with the edit payload
  * ``Labeled`` captures the running title/body without changing them
  * ``Unlabeled`` is recorded as-is (no snapshot attached)

The merge order is edits, label additions, label removals, renames. The
sort is stable, so entries sharing a timestamp keep that order.

Edit payloads are the ``diff`` field of ``userContentEdits`` and are used as
the body verbatim, so historical bodies are only as exact as that field.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import Any

from .models import (
    GHOST_ACTOR,
    BodyEdited,
    Closed,
    CommentRecord,
    Commented,
    IssueRecord,
    LabelAdded,
    LabelEvent,
    Labeled,
    LabelRemoved,
    ReplayEntry,
    TimelineEntry,
    TitleRenamed,
    Unlabeled,
)


def parse_timestamp(value: str) -> int:
    """Convert a GitHub ISO-8601 timestamp to epoch milliseconds."""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return int(datetime.fromisoformat(value).timestamp() * 1000)


def _nodes(container: Any) -> list[dict[str, Any]]:
    if not container:
        return []
    return list(container.get("nodes") or [])


def _login(actor: Any) -> str | None:
    if isinstance(actor, dict):
        login = actor.get("login")
        if isinstance(login, str):
            return login
    return None


def parse_timeline_item(node: dict[str, Any]) -> TimelineEntry | None:
    """Map one ``timelineItems`` node to its entry type.

    Unknown ``__typename`` values yield None.
    """
    kind = node.get("__typename")
    if kind == "LabeledEvent":
        return Labeled(
            timestamp=parse_timestamp(node["createdAt"]),
            label=node["label"]["name"],
            actor=_login(node.get("actor")) or GHOST_ACTOR,
        )
    if kind == "UnlabeledEvent":
        return Unlabeled(timestamp=parse_timestamp(node["createdAt"]), label=node["label"]["name"])
    if kind == "RenamedTitleEvent":
        return TitleRenamed(
            timestamp=parse_timestamp(node["createdAt"]),
            old=node["previousTitle"],
            new=node["currentTitle"],
        )
    if kind == "ClosedEvent":
        closer = node.get("closer")
        return Closed(closer=closer.get("__typename") if isinstance(closer, dict) else None)
    if kind == "IssueComment":
        return Commented(author=_login(node.get("author")), body_text=node.get("bodyText") or "")
    return None


def parse_timeline(issue: dict[str, Any]) -> list[TimelineEntry]:
    entries: list[TimelineEntry] = []
    for node in _nodes(issue.get("timelineItems")):
        entry = parse_timeline_item(node)
        if entry is not None:
            entries.append(entry)
    return entries


def parse_edits(issue: dict[str, Any]) -> list[BodyEdited]:
    return [
        BodyEdited(timestamp=parse_timestamp(node["editedAt"]), new=node.get("diff"))
        for node in _nodes(issue.get("userContentEdits"))
    ]


def merge_entries(edits: Iterable[BodyEdited], timeline: Sequence[TimelineEntry]) -> list[ReplayEntry]:
    """Concatenate the replayable streams and stable-sort them by timestamp."""
    merged: list[ReplayEntry] = list(edits)
    merged.extend(e for e in timeline if isinstance(e, Labeled))
    merged.extend(e for e in timeline if isinstance(e, Unlabeled))
    merged.extend(e for e in timeline if isinstance(e, TitleRenamed))
    merged.sort(key=lambda e: e.timestamp)
    return merged


def initial_state(entries: Sequence[ReplayEntry], title: str, body: str) -> tuple[str, str | None]:
    """Best guess of the title/body before the first recorded change."""
    first_rename = next((e for e in entries if isinstance(e, TitleRenamed)), None)
    first_edit = next((e for e in entries if isinstance(e, BodyEdited)), None)
    # a null payload on the first entry falls back to the present value
    return (
        first_rename.old if first_rename is not None and first_rename.old is not None else title,
        first_edit.new if first_edit is not None and first_edit.new is not None else body,
    )


def replay(entries: Sequence[ReplayEntry], title: str, body: str) -> list[LabelEvent]:
    current_title, current_body = initial_state(entries, title, body)
    events: list[LabelEvent] = []
    for entry in entries:
        if isinstance(entry, Labeled):
            events.append(
                LabelAdded(actor=entry.actor, label=entry.label, title=current_title, body=current_body)
            )
        elif isinstance(entry, BodyEdited):
            current_body = entry.new
        elif isinstance(entry, TitleRenamed):
            current_title = entry.new
        elif isinstance(entry, Unlabeled):
            events.append(LabelRemoved(label=entry.label))
    return events


def extract_label_events(issue: dict[str, Any]) -> list[LabelEvent]:
    entries = merge_entries(parse_edits(issue), parse_timeline(issue))
    return replay(entries, issue["title"], issue["body"])


def comment_records(timeline: Iterable[TimelineEntry]) -> list[CommentRecord]:
    return [CommentRecord(author=e.author, body_text=e.body_text) for e in timeline if isinstance(e, Commented)]


def extract_comment_events(issue: dict[str, Any]) -> list[CommentRecord]:
    return comment_records(parse_timeline(issue))


def closed_with_code(timeline: Iterable[TimelineEntry]) -> bool:
    return any(isinstance(e, Closed) and e.with_code for e in timeline)


def build_issue_record(issue: dict[str, Any]) -> IssueRecord:
    """Assemble the exported record for one raw GraphQL issue node."""
    edits = parse_edits(issue)
    timeline = parse_timeline(issue)
    entries = merge_entries(edits, timeline)
    return IssueRecord(
        number=issue["number"],
        title=issue["title"],
        body=issue["body"],
        body_text=issue.get("bodyText") or "",
        created_at=parse_timestamp(issue["createdAt"]),
        labels=[n["name"] for n in _nodes(issue.get("labels"))],
        assignees=[n["login"] for n in _nodes(issue.get("assignees"))],
        label_events=replay(entries, issue["title"], issue["body"]),
        comment_events=comment_records(timeline),
        closed_with_code=closed_with_code(timeline),
    )


__all__ = [
    "parse_timestamp",
    "parse_timeline_item",
    "parse_timeline",
    "parse_edits",
    "merge_entries",
    "initial_state",
    "replay",
    "extract_label_events",
    "comment_records",
    "extract_comment_events",
    "closed_with_code",
    "build_issue_record",
]
