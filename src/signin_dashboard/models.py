from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union


@dataclass(frozen=True)
class EventRecord:
    """
    Fields shared by every sign-in log entry.

    The exporter and the day grouper only rely on ``id``, ``timestamp`` and
    ``participant_name``; breakdowns additionally read ``year_group`` and
    ``period_slot``, which may hold values outside the fixed option lists.
    """

    id: str
    timestamp: datetime
    participant_name: str
    year_group: Optional[int] = None
    period_slot: Optional[int] = None

    def as_row(self) -> Dict[str, Any]:
        raise NotImplementedError


@dataclass(frozen=True)
class RelocationRecord(EventRecord):
    responsible_staff_name: Optional[str] = None

    def as_row(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "created_at": self.timestamp,
            "student_name": self.participant_name,
            "year_group": self.year_group,
            "relocation_period": self.period_slot,
            "teacher_relocationg": self.responsible_staff_name,
        }


@dataclass(frozen=True)
class VisitRecord(EventRecord):
    """
    Harbor visit. ``logging_staff_name`` comes from the signed-in account
    rather than user input.
    """

    reason_code: Optional[str] = None
    logging_staff_name: Optional[str] = None

    def as_row(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "created_at": self.timestamp,
            "student_name": self.participant_name,
            "year_group": self.year_group,
            "visiting_period": self.period_slot,
            "reason": self.reason_code,
            "staff_logging": self.logging_staff_name,
        }


AnyRecord = Union[RelocationRecord, VisitRecord]


@dataclass(frozen=True)
class CardMetric:
    key: str
    label: str
    value: Union[int, str]
    description: Optional[str] = None


@dataclass(frozen=True)
class TrendPoint:
    day: str
    label: str
    value: int


@dataclass(frozen=True)
class RankedBar:
    label: str
    value: int
    width_percent: float


@dataclass(frozen=True)
class ChartSection:
    key: str
    title: str
    bars: Sequence[RankedBar] = field(default_factory=list)
    empty_message: str = "No data"


@dataclass(frozen=True)
class DayRoster:
    day: str
    label: str
    names: Sequence[str]
    preview: str
    count: int


@dataclass(frozen=True)
class DashboardResult:
    variant: str
    title: str
    start: str
    end: str
    cards: Sequence[CardMetric]
    trend: Sequence[TrendPoint]
    charts: Sequence[ChartSection]
    roster: Sequence[DayRoster]
    export_filename: str
    error: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        """
        Convert the nested dataclasses into a JSON-serialisable structure for
        the HTTP layer.
        """

        def _serialize(obj: Any) -> Any:
            if isinstance(obj, DashboardResult):
                return {
                    "variant": obj.variant,
                    "title": obj.title,
                    "start": obj.start,
                    "end": obj.end,
                    "cards": [_serialize(card) for card in obj.cards],
                    "trend": {
                        "points": [_serialize(point) for point in obj.trend],
                        "emptyMessage": "No rows in range",
                    },
                    "charts": [_serialize(chart) for chart in obj.charts],
                    "roster": {
                        "days": [_serialize(day) for day in obj.roster],
                        "emptyMessage": "No data",
                    },
                    "exportFilename": obj.export_filename,
                    "error": obj.error,
                }
            if isinstance(obj, CardMetric):
                return {
                    "key": obj.key,
                    "label": obj.label,
                    "value": obj.value,
                    "description": obj.description,
                }
            if isinstance(obj, TrendPoint):
                return {"day": obj.day, "label": obj.label, "value": obj.value}
            if isinstance(obj, ChartSection):
                return {
                    "key": obj.key,
                    "title": obj.title,
                    "bars": [_serialize(bar) for bar in obj.bars],
                    "emptyMessage": obj.empty_message,
                }
            if isinstance(obj, RankedBar):
                return {"label": obj.label, "value": obj.value, "widthPercent": obj.width_percent}
            if isinstance(obj, DayRoster):
                return {
                    "day": obj.day,
                    "label": obj.label,
                    "names": list(obj.names),
                    "preview": obj.preview,
                    "count": obj.count,
                }
            if isinstance(obj, Iterable) and not isinstance(obj, (str, bytes)):
                return [_serialize(item) for item in obj]
            return obj

        return _serialize(self)


def record_rows(records: Sequence[EventRecord]) -> List[Dict[str, Any]]:
    return [record.as_row() for record in records]
