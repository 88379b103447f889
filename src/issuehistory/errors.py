"""Error taxonomy & redaction.

- classify_error(exc) -> ErrorInfo: categorise the failure that ended an export
- redact(text) -> str: strip credentials before anything is logged

Categories:
- circuit_open         the breaker rejected the call without touching the network
- github.rate_limit    quota exhausted / secondary limits (transient)
- github.server        5xx responses (transient)
- github.auth          401 / 403 without rate-limit wording
- github.graphql       GraphQL ``errors`` payload on a 200 response
- network              connection errors and timeouts (transient)
- response_shape       the response did not have the expected structure
- generic              anything else
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

import requests

from .github_graphql import GitHubAPIError

_SENSITIVE_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"ghp_[A-Za-z0-9]{20,40}"),  # GitHub classic tokens
    re.compile(r"gh[osu]_[A-Za-z0-9]{20,40}"),  # OAuth / app tokens
    re.compile(r"github_pat_\w{20,}"),  # GitHub fine-grained tokens
    re.compile(r"(?i)(authorization:\s*bearer\s+)\S+"),
]

_REDACTION_PLACEHOLDER = "<redacted>"

SERVER_ERROR_STATUS = 500
AUTH_STATUSES = (401, 403)


@dataclass
class ErrorInfo:
    category: str
    message: str
    original_type: str
    transient: bool = False
    details: dict[str, Any] | None = None


def redact(text: str) -> str:
    """Replace credential-looking substrings with a placeholder."""
    if not text:
        return text
    redacted = text
    for pat in _SENSITIVE_PATTERNS:
        if pat.groups:
            redacted = pat.sub(lambda m: m.group(1) + _REDACTION_PLACEHOLDER, redacted)
        else:
            redacted = pat.sub(_REDACTION_PLACEHOLDER, redacted)
    return redacted


def _classify_api_error(exc: GitHubAPIError, msg: str, name: str) -> ErrorInfo:
    low = msg.lower() + " " + (exc.response_text or "").lower()
    details = {"status": exc.status} if exc.status is not None else None
    if "rate limit" in low or "secondary rate" in low:
        return ErrorInfo("github.rate_limit", msg, name, transient=True, details=details)
    if exc.status is None:
        return ErrorInfo("github.graphql", msg, name)
    if exc.status >= SERVER_ERROR_STATUS:
        return ErrorInfo("github.server", msg, name, transient=True, details=details)
    if exc.status in AUTH_STATUSES:
        return ErrorInfo("github.auth", msg, name, details=details)
    return ErrorInfo("generic", msg, name, details=details)


def classify_error(exc: BaseException) -> ErrorInfo:
    """Best-effort classification of an exception."""
    from .circuit_breaker import BrokenCircuitError  # noqa: PLC0415

    msg = redact(str(exc)) if exc else ""
    name = exc.__class__.__name__

    if isinstance(exc, BrokenCircuitError):
        return ErrorInfo("circuit_open", msg, name, transient=True, details={"retry_in": exc.retry_in})
    if isinstance(exc, GitHubAPIError):
        return _classify_api_error(exc, msg, name)
    if isinstance(exc, (requests.ConnectionError, requests.Timeout)):
        return ErrorInfo("network", msg, name, transient=True)
    if isinstance(exc, (KeyError, TypeError, ValueError)):
        return ErrorInfo("response_shape", msg, name)
    low = msg.lower()
    if any(k in low for k in ("timeout", "connection reset", "temporarily unavailable")):
        return ErrorInfo("network", msg, name, transient=True)
    return ErrorInfo("generic", msg, name)


__all__ = ["ErrorInfo", "classify_error", "redact"]
