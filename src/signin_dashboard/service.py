from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from .aggregator import DEFAULT_AXES, AggregateStats, CategoryField, aggregate
from .config import DashboardSettings, LogVariant
from .daily import roster, trend_points
from .date_range import DateRange, coerce_timezone
from .export import export_filename
from .models import CardMetric, ChartSection, DashboardResult, EventRecord
from .ranking import ranked_bars


def _category_fields(variant: LogVariant) -> Tuple[CategoryField, ...]:
    return tuple(
        CategoryField(key=key, title=title, attribute=attribute)
        for key, title, attribute in variant.categories
    )


class SignInDashboardService:
    """
    Builds the dashboard for one sign-in log from a record snapshot.

    Nothing is cached: ``build`` recomputes every figure from the records it
    is handed.
    """

    def __init__(self, variant: LogVariant, settings: Optional[DashboardSettings] = None) -> None:
        self.variant = variant
        self.settings = settings or DashboardSettings()
        self.tz = coerce_timezone(self.settings.timezone)
        self.categories = _category_fields(variant)

    def stats(self, records: Sequence[EventRecord]) -> AggregateStats:
        return aggregate(records, axes=DEFAULT_AXES, categories=self.categories)

    def build(
        self,
        records: Sequence[EventRecord],
        date_range: DateRange,
        max_bars: Optional[int] = None,
        error: Optional[str] = None,
    ) -> DashboardResult:
        bars = self.settings.max_bars if max_bars is None else max_bars
        stats = self.stats(records)
        return DashboardResult(
            variant=self.variant.key,
            title=f"{self.variant.title} — Dashboard",
            start=date_range.start_key(),
            end=date_range.end_key(),
            cards=self._build_cards(stats, date_range),
            trend=trend_points(records, self.tz),
            charts=self._build_charts(stats, bars),
            roster=roster(records, self.tz, preview_limit=self.settings.roster_preview_limit),
            export_filename=export_filename(self.variant, date_range),
            error=error,
        )

    def _build_cards(self, stats: AggregateStats, date_range: DateRange) -> List[CardMetric]:
        return [
            CardMetric(key="total", label="Total entries", value=stats.total),
            CardMetric(key="unique_students", label="Unique students", value=stats.unique_participants),
            CardMetric(key="date_range", label="Date range", value=date_range.label()),
        ]

    def _build_charts(self, stats: AggregateStats, max_bars: int) -> List[ChartSection]:
        charts = [
            ChartSection(key=category.key, title=category.title, bars=ranked_bars(stats.category_series(category.key), max_bars))
            for category in self.categories
        ]
        charts.extend(
            ChartSection(key=axis.key, title=axis.title, bars=ranked_bars(stats.axis_series(axis), max_bars))
            for axis in DEFAULT_AXES
        )
        return charts
