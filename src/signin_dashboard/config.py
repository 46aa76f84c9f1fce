"""
Shared vocabularies, log definitions and environment-driven settings.

The fixed option lists live here so the aggregation code (legal-value
filtering) and the entry forms (valid-option enumeration) read the same values.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from dotenv import load_dotenv
from pydantic import BaseModel

YEAR_GROUPS: Tuple[int, ...] = (7, 8, 9, 10, 11)
PERIOD_SLOTS: Tuple[int, ...] = (1, 2, 3, 4, 5, 6)
REASONS: Tuple[str, ...] = (
    "Harbor Pass",
    "Timetable Check",
    "Uniform",
    "Medical",
    "Refusal to Attend Lesson",
    "Struggling to manage",
    "Seeking a member of staff",
    "Writing a statement",
    "Water bottle",
    "Food",
    "Other",
    "Search",
)

UNKNOWN_LABEL = "Unknown"


@dataclass(frozen=True)
class LogVariant:
    """
    Static description of one sign-in log.

    ``columns`` follows the store's column order and doubles as the export
    header. ``period_column`` / ``staff_column`` name the variant-specific
    store columns, and ``categories`` maps each open-ended breakdown to the
    record attribute it counts.
    """

    key: str
    title: str
    table_name: str
    columns: Tuple[str, ...]
    period_column: str
    staff_column: str
    categories: Tuple[Tuple[str, str, str], ...]


RELOCATION = LogVariant(
    key="relocation",
    title="Relocation",
    table_name="r-room",
    columns=("id", "created_at", "student_name", "year_group", "relocation_period", "teacher_relocationg"),
    period_column="relocation_period",
    staff_column="teacher_relocationg",
    categories=(("by_teacher", "By teacher (top)", "responsible_staff_name"),),
)

HARBOR = LogVariant(
    key="harbor",
    title="Harbor",
    table_name="harbor",
    columns=("id", "created_at", "student_name", "year_group", "visiting_period", "reason", "staff_logging"),
    period_column="visiting_period",
    staff_column="staff_logging",
    categories=(
        ("by_reason", "By reason (top)", "reason_code"),
        ("by_staff", "By staff (top)", "logging_staff_name"),
    ),
)

VARIANTS: Dict[str, LogVariant] = {variant.key: variant for variant in (RELOCATION, HARBOR)}


def get_variant(key: str) -> LogVariant:
    try:
        return VARIANTS[key]
    except KeyError:
        raise KeyError(f"Unknown sign-in log: {key!r}") from None


class DashboardSettings(BaseModel):
    database_url: Optional[str] = None
    timezone: str = "Europe/London"
    default_window_days: int = 14
    max_bars: int = 8
    roster_preview_limit: int = 12
    recent_limit: int = 100
    log_level: str = "INFO"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def load_settings() -> DashboardSettings:
    load_dotenv()
    defaults = DashboardSettings()
    return DashboardSettings(
        database_url=os.getenv("SIGNIN_DASHBOARD_DATABASE_URL", defaults.database_url),
        timezone=os.getenv("SIGNIN_DASHBOARD_TIMEZONE", defaults.timezone),
        default_window_days=_env_int("SIGNIN_DASHBOARD_WINDOW_DAYS", defaults.default_window_days),
        max_bars=_env_int("SIGNIN_DASHBOARD_MAX_BARS", defaults.max_bars),
        roster_preview_limit=_env_int("SIGNIN_DASHBOARD_ROSTER_PREVIEW", defaults.roster_preview_limit),
        recent_limit=_env_int("SIGNIN_DASHBOARD_RECENT_LIMIT", defaults.recent_limit),
        log_level=os.getenv("SIGNIN_DASHBOARD_LOG_LEVEL", defaults.log_level),
    )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
