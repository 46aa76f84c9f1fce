from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Sequence

from sqlalchemy import Column, DateTime, Integer, MetaData, String, Table, create_engine, select
from sqlalchemy.engine import Engine, Row
from sqlalchemy.exc import SQLAlchemyError

from .config import HARBOR, RELOCATION, VARIANTS, LogVariant, load_settings
from .date_range import DateRange, coerce_timezone
from .models import EventRecord, RelocationRecord, VisitRecord

logger = logging.getLogger(__name__)


class RecordStoreError(Exception):
    """Storage or transport failure; ``str(exc)`` is shown to the user as-is."""


class RecordStore:
    """
    Interface for loading sign-in records.

    ``query`` returns every record whose creation time falls inside the
    inclusive day window, newest first. ``recent`` returns the newest
    ``limit`` records regardless of date.
    """

    def query(self, variant: LogVariant, date_range: DateRange) -> List[EventRecord]:
        raise NotImplementedError

    def recent(self, variant: LogVariant, limit: int = 100) -> List[EventRecord]:
        raise NotImplementedError


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _optional_int(value) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


_FRACTION = re.compile(r"\.(\d+)")
_SHORT_OFFSET = re.compile(r"(\d{2}:\d{2}(?:\.\d+)?)([+-]\d{2})$")


def _parse_timestamp(value) -> datetime:
    if isinstance(value, datetime):
        return _as_utc(value)
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    # fromisoformat before 3.11 wants a 3 or 6 digit fraction and an HH:MM offset.
    text = _FRACTION.sub(lambda match: "." + match.group(1)[:6].ljust(6, "0"), text, count=1)
    text = _SHORT_OFFSET.sub(r"\1\2:00", text)
    return _as_utc(datetime.fromisoformat(text))


def build_record(variant: LogVariant, row: Dict[str, object]) -> EventRecord:
    """Map a store row (native column names) onto the variant's record type."""
    common = dict(
        id=str(row["id"]),
        timestamp=_parse_timestamp(row["created_at"]),
        participant_name=row.get("student_name") or "",
        year_group=_optional_int(row.get("year_group")),
        period_slot=_optional_int(row.get(variant.period_column)),
    )
    if variant is HARBOR:
        return VisitRecord(
            **common,
            reason_code=row.get("reason"),
            logging_staff_name=row.get(HARBOR.staff_column),
        )
    return RelocationRecord(**common, responsible_staff_name=row.get(RELOCATION.staff_column))


def _build_table(variant: LogVariant, metadata: MetaData) -> Table:
    columns = [
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("created_at", DateTime(timezone=True), nullable=False, index=True),
        Column("student_name", String(255)),
        Column("year_group", Integer),
        Column(variant.period_column, Integer),
    ]
    if variant is HARBOR:
        columns.append(Column("reason", String(255)))
    columns.append(Column(variant.staff_column, String(255)))
    return Table(variant.table_name, metadata, *columns)


class SQLRecordStore(RecordStore):
    """
    Load records from the ``r-room`` / ``harbor`` tables.

    Window bounds are converted to UTC before binding; naive timestamps coming
    back from the database are treated as UTC.
    """

    def __init__(self, engine: Engine, tz_name: str = "Europe/London"):
        self.engine = engine
        self.tz = coerce_timezone(tz_name)
        self.metadata = MetaData()
        self.tables: Dict[str, Table] = {
            key: _build_table(variant, self.metadata) for key, variant in VARIANTS.items()
        }

    def create_all(self) -> None:
        self.metadata.create_all(self.engine, checkfirst=True)

    def table_for(self, variant: LogVariant) -> Table:
        return self.tables[variant.key]

    def query(self, variant: LogVariant, date_range: DateRange) -> List[EventRecord]:
        if date_range.is_empty:
            return []
        table = self.table_for(variant)
        window_start, window_end = date_range.bounds(self.tz)
        statement = (
            select(*[table.c[name] for name in variant.columns])
            .where(table.c.created_at >= _as_utc(window_start))
            .where(table.c.created_at <= _as_utc(window_end))
            .order_by(table.c.created_at.desc())
        )
        return self._fetch(variant, statement)

    def recent(self, variant: LogVariant, limit: int = 100) -> List[EventRecord]:
        table = self.table_for(variant)
        statement = (
            select(*[table.c[name] for name in variant.columns])
            .order_by(table.c.created_at.desc())
            .limit(limit)
        )
        return self._fetch(variant, statement)

    def _fetch(self, variant: LogVariant, statement) -> List[EventRecord]:
        try:
            with self.engine.connect() as connection:
                rows = connection.execute(statement).fetchall()
            return [self._row_to_record(variant, row) for row in rows]
        except SQLAlchemyError as exc:
            logger.warning("Failed to query %s: %s", variant.table_name, exc)
            raise RecordStoreError(str(exc)) from exc
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Malformed row in %s: %s", variant.table_name, exc)
            raise RecordStoreError(f"Malformed row in {variant.table_name}: {exc}") from exc

    @staticmethod
    def _row_to_record(variant: LogVariant, row: Row) -> EventRecord:
        return build_record(variant, dict(row._mapping))


class InMemoryRecordStore(RecordStore):
    """Serve records supplied up front, e.g. inline request payloads."""

    def __init__(self, records: Optional[Dict[str, Iterable[EventRecord]]] = None, tz_name: str = "Europe/London"):
        self.tz = coerce_timezone(tz_name)
        self.records: Dict[str, List[EventRecord]] = {
            key: list((records or {}).get(key, ())) for key in VARIANTS
        }

    def add(self, variant: LogVariant, record: EventRecord) -> None:
        self.records[variant.key].append(record)

    def query(self, variant: LogVariant, date_range: DateRange) -> List[EventRecord]:
        matched = [
            record
            for record in self.records[variant.key]
            if date_range.contains(_as_utc(record.timestamp), self.tz)
        ]
        return self._newest_first(matched)

    def recent(self, variant: LogVariant, limit: int = 100) -> List[EventRecord]:
        return self._newest_first(self.records[variant.key])[:limit]

    @staticmethod
    def _newest_first(records: Sequence[EventRecord]) -> List[EventRecord]:
        return sorted(records, key=lambda record: _as_utc(record.timestamp), reverse=True)


@dataclass(frozen=True)
class RepositoryConfig:
    database_url: Optional[str] = None
    timezone: str = "Europe/London"

    @classmethod
    def from_env(cls) -> "RepositoryConfig":
        settings = load_settings()
        return cls(database_url=settings.database_url, timezone=settings.timezone)


def build_record_store_from_env(config: Optional[RepositoryConfig] = None) -> Optional[RecordStore]:
    cfg = config or RepositoryConfig.from_env()
    if cfg.database_url:
        engine = create_engine(cfg.database_url)
        return SQLRecordStore(engine, tz_name=cfg.timezone)
    return None
