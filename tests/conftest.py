"""Pytest configuration for issuehistory tests.

Ensures the in-repo `src` directory is on `sys.path` so the package can be
imported without an editable install (`pip install -e .`).
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    # Keep host credentials and overrides out of the tests
    for var in (
        "GITHUB_TOKEN",
        "GH_TOKEN",
        "GITHUB_ACCESS_TOKEN",
        "GH_ACCESS_TOKEN",
        "GITHUB_PAT",
        "ISSUEHISTORY_RETRY_ATTEMPTS",
        "ISSUEHISTORY_RETRY_BASE",
        "ISSUEHISTORY_RETRY_MAX_SLEEP",
        "ISSUEHISTORY_PAGE_DELAY_MS",
        "ISSUEHISTORY_QUIET",
    ):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture(autouse=True)
def _fresh_logger(monkeypatch: pytest.MonkeyPatch) -> None:
    # Rebuild the shared logger per test so its handler targets the current stderr
    from issuehistory import logging as structured_logging

    monkeypatch.setattr(structured_logging, "_GLOBAL", None)
