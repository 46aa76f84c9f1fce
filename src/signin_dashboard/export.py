"""
Comma-delimited export of a record snapshot.

The header comes from the first row's keys. Later rows are rendered against
that header: fields it does not name are dropped and missing ones are empty.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any, List, Mapping, Optional, Sequence, Union

from .config import LogVariant
from .date_range import DateRange
from .models import EventRecord

logger = logging.getLogger(__name__)

_NEEDS_QUOTES = (",", '"', "\n", "\r")


def stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def escape_cell(value: Any) -> str:
    text = stringify(value)
    if any(marker in text for marker in _NEEDS_QUOTES):
        return '"' + text.replace('"', '""') + '"'
    return text


def _as_mapping(row: Union[EventRecord, Mapping[str, Any]]) -> Mapping[str, Any]:
    if isinstance(row, EventRecord):
        return row.as_row()
    return row


def to_csv(rows: Sequence[Union[EventRecord, Mapping[str, Any]]]) -> str:
    if not rows:
        return ""
    mappings = [_as_mapping(row) for row in rows]
    headers = list(mappings[0].keys())
    lines: List[str] = [",".join(escape_cell(header) for header in headers)]
    for row in mappings:
        lines.append(",".join(escape_cell(row.get(header)) for header in headers))
    return "\n".join(lines)


def export_filename(variant: LogVariant, date_range: DateRange) -> str:
    return f"{variant.key}_{date_range.start_key()}_to_{date_range.end_key()}.csv"


def write_export(
    rows: Sequence[Union[EventRecord, Mapping[str, Any]]],
    directory: Union[str, Path],
    filename: str,
) -> Optional[Path]:
    """Write ``rows`` to ``directory/filename``; nothing is written for an empty set."""
    if not rows:
        logger.debug("Skipping export of %s: no rows", filename)
        return None
    target = Path(directory).expanduser() / filename
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(to_csv(rows), encoding="utf-8")
    logger.info("Exported %d rows to %s", len(rows), target)
    return target
