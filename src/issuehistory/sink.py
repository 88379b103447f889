from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from pathlib import Path

from .models import IssueRecord

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT = Path("issues.json")


def serialize_record(record: IssueRecord) -> str:
    return json.dumps(record.to_dict())


def append_records(path: Path, records: Iterable[IssueRecord]) -> int:
    """Append records as newline-delimited JSON in a single write.

    The file is created if missing; existing lines are never read or touched.
    Returns the number of records written.
    """
    lines = [serialize_record(r) for r in records]
    if not lines:
        return 0
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as fh:
        fh.write("\n".join(lines) + "\n")
    logger.debug("appended %d records to %s", len(lines), path)
    return len(lines)


__all__ = ["DEFAULT_OUTPUT", "serialize_record", "append_records"]
