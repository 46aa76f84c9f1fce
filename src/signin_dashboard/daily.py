"""
Day bucketing for the trend chart and the per-day roster.

Every output is ordered by the ``YYYY-MM-DD`` day key, never by the order the
records arrived in.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timezone
from typing import Dict, List, Sequence, Set, Tuple
from zoneinfo import ZoneInfo

from .date_range import DAY_KEY_FORMAT, format_day
from .models import DayRoster, EventRecord, TrendPoint

ROSTER_PREVIEW_LIMIT = 12


def day_key(timestamp: datetime, tz: ZoneInfo) -> str:
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return timestamp.astimezone(tz).strftime(DAY_KEY_FORMAT)


def daily_counts(records: Sequence[EventRecord], tz: ZoneInfo) -> Dict[str, int]:
    counts: Dict[str, int] = defaultdict(int)
    for record in records:
        counts[day_key(record.timestamp, tz)] += 1
    return dict(counts)


def daily_unique_participants(records: Sequence[EventRecord], tz: ZoneInfo) -> Dict[str, Set[str]]:
    names: Dict[str, Set[str]] = defaultdict(set)
    for record in records:
        names[day_key(record.timestamp, tz)].add(record.participant_name)
    return dict(names)


def sorted_days(mapping: Dict[str, object], descending: bool = False) -> List[str]:
    return sorted(mapping, reverse=descending)


def trend(records: Sequence[EventRecord], tz: ZoneInfo, descending: bool = False) -> List[Tuple[str, int]]:
    counts = daily_counts(records, tz)
    return [(day, counts[day]) for day in sorted_days(counts, descending=descending)]


def trend_points(records: Sequence[EventRecord], tz: ZoneInfo) -> List[TrendPoint]:
    return [TrendPoint(day=day, label=format_day(day), value=value) for day, value in trend(records, tz)]


def roster_preview(names: Sequence[str], limit: int = ROSTER_PREVIEW_LIMIT) -> str:
    preview = ", ".join(names[:limit])
    if len(names) > limit:
        preview += f" +{len(names) - limit} more"
    return preview


def roster(
    records: Sequence[EventRecord],
    tz: ZoneInfo,
    preview_limit: int = ROSTER_PREVIEW_LIMIT,
) -> List[DayRoster]:
    """Unique names per day, latest day first."""
    grouped = daily_unique_participants(records, tz)
    rows: List[DayRoster] = []
    for day in sorted_days(grouped, descending=True):
        names = sorted(grouped[day])
        rows.append(
            DayRoster(
                day=day,
                label=format_day(day),
                names=names,
                preview=roster_preview(names, preview_limit),
                count=len(names),
            )
        )
    return rows
