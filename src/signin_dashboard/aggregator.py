from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, FrozenSet, List, Optional, Sequence, Tuple

from .config import PERIOD_SLOTS, UNKNOWN_LABEL, YEAR_GROUPS
from .models import EventRecord


@dataclass(frozen=True)
class FixedAxis:
    """
    Breakdown over a small fixed set of legal values.

    Records whose value is missing or not in ``values`` are skipped for this
    axis only; they still count towards the total.
    """

    key: str
    title: str
    attribute: str
    values: Tuple[int, ...]
    label_format: str = "{}"

    def label(self, value: int) -> str:
        return self.label_format.format(value)


@dataclass(frozen=True)
class CategoryField:
    key: str
    title: str
    attribute: str
    fallback: str = UNKNOWN_LABEL


YEAR_GROUP_AXIS = FixedAxis(
    key="by_year_group",
    title="By year group",
    attribute="year_group",
    values=YEAR_GROUPS,
    label_format="Year {}",
)
PERIOD_AXIS = FixedAxis(
    key="by_period",
    title="By period",
    attribute="period_slot",
    values=PERIOD_SLOTS,
    label_format="P{}",
)
DEFAULT_AXES: Tuple[FixedAxis, ...] = (YEAR_GROUP_AXIS, PERIOD_AXIS)


@dataclass
class AggregateStats:
    total: int = 0
    unique_participants: int = 0
    axes: Dict[str, Dict[int, int]] = field(default_factory=dict)
    categories: Dict[str, Dict[str, int]] = field(default_factory=dict)

    def axis_series(self, axis: FixedAxis) -> List[Tuple[str, int]]:
        """Every legal value in option order, zero-filled for charting."""
        counts = self.axes.get(axis.key, {})
        return [(axis.label(value), counts.get(value, 0)) for value in axis.values]

    def category_series(self, key: str) -> List[Tuple[str, int]]:
        return list(self.categories.get(key, {}).items())


def _legal_key(value, legal: FrozenSet[int]) -> Optional[int]:
    # Stores occasionally hand back numeric columns as strings.
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, str):
        try:
            value = int(value)
        except ValueError:
            return None
    return value if value in legal else None


def aggregate(
    records: Sequence[EventRecord],
    axes: Sequence[FixedAxis] = DEFAULT_AXES,
    categories: Sequence[CategoryField] = (),
    name_of: Callable[[EventRecord], str] = lambda record: record.participant_name,
) -> AggregateStats:
    """
    Compute totals and every breakdown in one pass over ``records``.

    Categorical counts keep first-seen order; ranking happens later.
    """

    legal_values = {axis.key: frozenset(axis.values) for axis in axes}
    axis_counts: Dict[str, Dict[int, int]] = {axis.key: {} for axis in axes}
    category_counts: Dict[str, Dict[str, int]] = {category.key: {} for category in categories}
    participants = set()
    total = 0

    for record in records:
        total += 1
        participants.add(name_of(record))
        for axis in axes:
            key = _legal_key(getattr(record, axis.attribute, None), legal_values[axis.key])
            if key is not None:
                counts = axis_counts[axis.key]
                counts[key] = counts.get(key, 0) + 1
        for category in categories:
            label = getattr(record, category.attribute, None) or category.fallback
            counts = category_counts[category.key]
            counts[label] = counts.get(label, 0) + 1

    return AggregateStats(
        total=total,
        unique_participants=len(participants),
        axes=axis_counts,
        categories=category_counts,
    )
