"""Paginated export of a repository's issue history.

``export_issues`` walks the repository's issues one page at a time:

1. fetch a page through the resilience policy (retry + circuit breaker)
2. rebuild every issue's label history (see :mod:`issuehistory.timeline`)
3. append the page to the NDJSON archive in one write
4. log progress (last issue number, remaining quota, next cursor)
5. sleep ``page_delay`` seconds and continue while ``hasNextPage`` is set

Pages are never fetched concurrently. The cursor and quota travel in an
immutable ``ExportResult`` that each iteration replaces, so a failed run can
report the last cursor whose page was fully written.
"""

from __future__ import annotations

import asyncio
import functools
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, replace
from pathlib import Path

from .circuit_breaker import CircuitBreaker
from .config import ExportConfig, RepoRef
from .github_graphql import GitHubGraphQLClient
from .logging import get_logger
from .models import IssuePage, PageCursor
from .resilience import ResiliencePolicy
from .retry import RetryConfig, Sleeper
from .sink import DEFAULT_OUTPUT, append_records
from .timeline import build_issue_record

DEFAULT_PAGE_DELAY = 0.6

PageFetcher = Callable[[str, str, str | None], Awaitable[IssuePage]]


@dataclass(frozen=True)
class ExportResult:
    start_cursor: str | None = None
    end_cursor: str | None = None
    pages: int = 0
    issues: int = 0
    last_issue: int | None = None
    quota_remaining: int | None = None
    total_cost: int = 0

    def advance(self, page: IssuePage, written: int, last_issue: int | None) -> ExportResult:
        return replace(
            self,
            end_cursor=page.cursor.end_cursor,
            pages=self.pages + 1,
            issues=self.issues + written,
            last_issue=last_issue if last_issue is not None else self.last_issue,
            quota_remaining=page.rate_limit.remaining,
            total_cost=self.total_cost + page.rate_limit.cost,
        )


class ExportAborted(RuntimeError):
    """An unrecovered failure stopped the export.

    ``cursor`` is the cursor to resume from: every page before it has been
    written to the archive. The original exception is chained as ``__cause__``.
    """

    def __init__(self, cursor: str | None, result: ExportResult):
        super().__init__(f"export aborted; resume with cursor {cursor!r}")
        self.cursor = cursor
        self.result = result


def _coerce_repo(repo: RepoRef | Mapping[str, str]) -> RepoRef:
    if isinstance(repo, RepoRef):
        return repo
    return RepoRef(owner=repo["owner"], repo=repo["repo"])


def build_policy(cfg: ExportConfig) -> ResiliencePolicy:
    return ResiliencePolicy(
        retry=RetryConfig(
            attempts=cfg.retry_attempts,
            base_sleep=cfg.retry_base_sleep,
            max_sleep=cfg.retry_max_sleep,
        ),
        breaker=CircuitBreaker(
            threshold=cfg.breaker_threshold,
            half_open_after=cfg.breaker_half_open_after,
        ),
    )


async def export_issues(
    token: str,
    repo: RepoRef | Mapping[str, str],
    cursor: str | None = None,
    *,
    output: Path = DEFAULT_OUTPUT,
    fetch_page: PageFetcher | None = None,
    policy: ResiliencePolicy | None = None,
    page_delay: float = DEFAULT_PAGE_DELAY,
    sleep: Sleeper = asyncio.sleep,
) -> ExportResult:
    """Export every issue page after ``cursor`` into ``output``.

    Returns when the last page has been written; raises ``ExportAborted``
    when a page cannot be fetched, rebuilt or written.
    """
    ref = _coerce_repo(repo)
    if fetch_page is None:
        fetch_page = GitHubGraphQLClient(token=token).fetch_issue_page_async
    policy = policy or ResiliencePolicy()
    logger = get_logger()

    result = ExportResult(start_cursor=cursor, end_cursor=cursor)
    position = PageCursor(end_cursor=cursor)
    logger.log_operation("export_start", repo=str(ref), cursor=cursor, output=str(output))
    while position.has_next_page:
        try:
            page = await policy.execute(
                functools.partial(fetch_page, ref.owner, ref.repo, position.end_cursor)
            )
            records = [build_issue_record(node) for node in page.nodes]
            written = append_records(output, records)
        except Exception as exc:
            logger.log_error(
                "export aborted",
                error=f"{exc.__class__.__name__}: {exc}",
                repo=str(ref),
                cursor=position.end_cursor,
                pages=result.pages,
            )
            raise ExportAborted(position.end_cursor, result) from exc

        last_issue = records[-1].number if records else None
        result = result.advance(page, written, last_issue)
        logger.log_page_progress(last_issue, page.rate_limit.remaining, page.cursor.end_cursor)
        position = page.cursor
        if position.has_next_page:
            # stay below the GraphQL rate limit between consecutive pages
            await sleep(page_delay)

    logger.log_operation(
        "export_complete",
        repo=str(ref),
        pages=result.pages,
        issues=result.issues,
        quota=result.quota_remaining,
        cost=result.total_cost,
    )
    return result


__all__ = ["ExportResult", "ExportAborted", "build_policy", "export_issues"]
