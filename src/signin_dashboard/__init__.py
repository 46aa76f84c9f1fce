"""
Sign-in log analytics.

Turns a date-windowed snapshot of relocation / Harbor sign-in records into the
aggregates the staff dashboards render: totals, unique students, breakdowns by
year, period, teacher, reason and staff, a daily trend, a per-day roster of
unique names, and a CSV export.
"""

from .aggregator import AggregateStats, CategoryField, FixedAxis, aggregate  # noqa: F401
from .config import HARBOR, PERIOD_SLOTS, REASONS, RELOCATION, YEAR_GROUPS, DashboardSettings, LogVariant  # noqa: F401
from .daily import daily_counts, daily_unique_participants, day_key, roster, trend  # noqa: F401
from .date_range import DateRange  # noqa: F401
from .export import escape_cell, export_filename, to_csv, write_export  # noqa: F401
from .models import (  # noqa: F401
    CardMetric,
    ChartSection,
    DashboardResult,
    DayRoster,
    EventRecord,
    RankedBar,
    RelocationRecord,
    TrendPoint,
    VisitRecord,
)
from .ranking import ranked_bars, top_n  # noqa: F401
from .repository import (  # noqa: F401
    InMemoryRecordStore,
    RecordStore,
    RecordStoreError,
    RepositoryConfig,
    SQLRecordStore,
    build_record_store_from_env,
)
from .service import SignInDashboardService  # noqa: F401
from .session import DashboardSession  # noqa: F401
