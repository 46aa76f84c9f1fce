from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

DAY_KEY_FORMAT = "%Y-%m-%d"
DISPLAY_FORMAT = "%d %b %Y"

_END_OF_DAY = time(23, 59, 59, 999000)


def coerce_timezone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return ZoneInfo("UTC")


def start_of_day(day: date, tz: ZoneInfo) -> datetime:
    return datetime.combine(day, time.min, tzinfo=tz)


def end_of_day(day: date, tz: ZoneInfo) -> datetime:
    return datetime.combine(day, _END_OF_DAY, tzinfo=tz)


def today_in(tz: ZoneInfo, now: Optional[datetime] = None) -> date:
    """Calendar day in ``tz`` at ``now`` (defaults to the current instant)."""
    if now is None:
        return datetime.now(tz).date()
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(tz).date()


def parse_day(value: str) -> date:
    return datetime.strptime(value, DAY_KEY_FORMAT).date()


def format_day(value: date | str) -> str:
    """Render a day (or ``YYYY-MM-DD`` key) as ``05 Jan 2025``."""
    if isinstance(value, str):
        value = parse_day(value)
    return value.strftime(DISPLAY_FORMAT)


@dataclass(frozen=True)
class DateRange:
    """
    Inclusive pair of calendar days bounding a query.

    ``start`` may come after ``end``; such a range simply matches nothing.
    """

    start: date
    end: date

    @classmethod
    def default(
        cls,
        days: int = 14,
        today: Optional[date] = None,
        tz: Optional[ZoneInfo] = None,
    ) -> "DateRange":
        end = today if today is not None else today_in(tz or ZoneInfo("UTC"))
        return cls(start=end - timedelta(days=days - 1), end=end)

    @classmethod
    def from_strings(cls, start: str, end: str) -> "DateRange":
        return cls(start=parse_day(start), end=parse_day(end))

    @property
    def is_empty(self) -> bool:
        return self.start > self.end

    def bounds(self, tz: ZoneInfo) -> Tuple[datetime, datetime]:
        return start_of_day(self.start, tz), end_of_day(self.end, tz)

    def contains(self, instant: datetime, tz: ZoneInfo) -> bool:
        window_start, window_end = self.bounds(tz)
        return window_start <= instant <= window_end

    def start_key(self) -> str:
        return self.start.strftime(DAY_KEY_FORMAT)

    def end_key(self) -> str:
        return self.end.strftime(DAY_KEY_FORMAT)

    def label(self) -> str:
        return f"{format_day(self.start)} – {format_day(self.end)}"
