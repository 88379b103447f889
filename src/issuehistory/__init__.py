"""issuehistory - export GitHub issue label history with point-in-time snapshots.

High-level public API:

import asyncio
from issuehistory import export_issues

result = asyncio.run(export_issues(token, {"owner": "acme", "repo": "widgets"}))
print(result.pages, result.issues, result.end_cursor)

Each line appended to ``issues.json`` is one issue. Its ``labelEvents`` carry
the title and body the issue had when each label was added.
"""

from __future__ import annotations

from .config import ExportConfig, RepoRef, load_config, parse_repo
from .exporter import ExportAborted, ExportResult, export_issues
from .models import IssueRecord
from .timeline import build_issue_record

__version__ = "0.2.0"

__all__ = [
    "ExportConfig",
    "RepoRef",
    "load_config",
    "parse_repo",
    "ExportAborted",
    "ExportResult",
    "export_issues",
    "IssueRecord",
    "build_issue_record",
    "__version__",
]
