import unittest
from datetime import date, datetime, timezone

from sqlalchemy import create_engine, text
from sqlalchemy.pool import StaticPool

from signin_dashboard.config import HARBOR, RELOCATION
from signin_dashboard.date_range import DateRange
from signin_dashboard.models import RelocationRecord, VisitRecord
from signin_dashboard.repository import (
    InMemoryRecordStore,
    RecordStoreError,
    RepositoryConfig,
    SQLRecordStore,
    build_record,
    build_record_store_from_env,
)


def _utc(day, hour=12, minute=0):
    return datetime(2025, 1, day, hour, minute, tzinfo=timezone.utc)


class TestSQLRecordStore(unittest.TestCase):
    def setUp(self):
        engine = create_engine(
            "sqlite://",
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
        self.store = SQLRecordStore(engine, tz_name="UTC")
        self.store.create_all()
        harbor = self.store.table_for(HARBOR)
        relocation = self.store.table_for(RELOCATION)
        with engine.begin() as connection:
            connection.execute(
                harbor.insert(),
                [
                    {"created_at": _utc(1, 0, 0), "student_name": "Amy", "year_group": 7, "visiting_period": 1, "reason": "Medical", "staff_logging": "Ms Lee"},
                    {"created_at": _utc(2, 9), "student_name": "Ben", "year_group": 8, "visiting_period": 2, "reason": "Food", "staff_logging": "Mr Cole"},
                    {"created_at": _utc(3, 23, 59), "student_name": "Cal", "year_group": None, "visiting_period": None, "reason": None, "staff_logging": None},
                    {"created_at": _utc(4, 0, 1), "student_name": "Dee", "year_group": 11, "visiting_period": 6, "reason": "Other", "staff_logging": "Ms Lee"},
                ],
            )
            connection.execute(
                relocation.insert(),
                [{"created_at": _utc(2, 10), "student_name": "Eve", "year_group": 9, "relocation_period": 3, "teacher_relocationg": "Mrs Shah"}],
            )
        self.engine = engine

    def test_query_is_inclusive_and_newest_first(self):
        records = self.store.query(HARBOR, DateRange(start=date(2025, 1, 1), end=date(2025, 1, 3)))

        self.assertEqual([record.participant_name for record in records], ["Cal", "Ben", "Amy"])
        self.assertTrue(all(isinstance(record, VisitRecord) for record in records))
        self.assertEqual(records[1].reason_code, "Food")
        self.assertEqual(records[1].logging_staff_name, "Mr Cole")
        self.assertEqual(records[1].timestamp, _utc(2, 9))
        self.assertIsNone(records[0].year_group)

    def test_variants_are_independent(self):
        records = self.store.query(RELOCATION, DateRange(start=date(2025, 1, 1), end=date(2025, 1, 31)))

        self.assertEqual(len(records), 1)
        self.assertIsInstance(records[0], RelocationRecord)
        self.assertEqual(records[0].responsible_staff_name, "Mrs Shah")
        self.assertEqual(records[0].period_slot, 3)

    def test_reversed_range_returns_nothing(self):
        self.assertEqual(self.store.query(HARBOR, DateRange(start=date(2025, 1, 4), end=date(2025, 1, 1))), [])

    def test_recent_is_limited(self):
        records = self.store.recent(HARBOR, limit=2)

        self.assertEqual([record.participant_name for record in records], ["Dee", "Cal"])

    def test_storage_failure_becomes_record_store_error(self):
        with self.engine.begin() as connection:
            connection.execute(text("DROP TABLE harbor"))

        with self.assertRaises(RecordStoreError) as ctx:
            self.store.query(HARBOR, DateRange(start=date(2025, 1, 1), end=date(2025, 1, 3)))
        self.assertIn("harbor", str(ctx.exception))

    def test_malformed_row_becomes_record_store_error(self):
        with self.engine.begin() as connection:
            connection.execute(text("INSERT INTO harbor (created_at, student_name) VALUES ('not a date', 'Zed')"))

        with self.assertRaises(RecordStoreError) as ctx:
            self.store.recent(HARBOR)
        self.assertIn("harbor", str(ctx.exception))


class TestInMemoryRecordStore(unittest.TestCase):
    def test_window_filter_and_order(self):
        records = [
            RelocationRecord(id="1", timestamp=_utc(1), participant_name="Amy"),
            RelocationRecord(id="2", timestamp=_utc(5), participant_name="Ben"),
            RelocationRecord(id="3", timestamp=_utc(3), participant_name="Cal"),
        ]
        store = InMemoryRecordStore({"relocation": records}, tz_name="UTC")

        matched = store.query(RELOCATION, DateRange(start=date(2025, 1, 1), end=date(2025, 1, 3)))
        self.assertEqual([record.id for record in matched], ["3", "1"])
        self.assertEqual(store.query(HARBOR, DateRange(start=date(2025, 1, 1), end=date(2025, 1, 3))), [])
        self.assertEqual([record.id for record in store.recent(RELOCATION, limit=2)], ["2", "3"])


class TestBuildRecord(unittest.TestCase):
    def test_supabase_style_row(self):
        record = build_record(
            HARBOR,
            {
                "id": 12,
                "created_at": "2025-01-05T09:30:00Z",
                "student_name": "Amy",
                "year_group": "9",
                "visiting_period": 4,
                "reason": "Uniform",
                "staff_logging": "Ms Lee",
            },
        )

        self.assertEqual(record.id, "12")
        self.assertEqual(record.timestamp, datetime(2025, 1, 5, 9, 30, tzinfo=timezone.utc))
        self.assertEqual(record.year_group, 9)
        self.assertEqual(record.period_slot, 4)

    def test_short_fraction_and_hour_offset(self):
        record = build_record(
            RELOCATION,
            {"id": 3, "created_at": "2025-01-05 09:30:00.12+00", "student_name": "Eve"},
        )

        self.assertEqual(record.timestamp, datetime(2025, 1, 5, 9, 30, 0, 120000, tzinfo=timezone.utc))

    def test_unparseable_timestamp_raises_value_error(self):
        with self.assertRaises(ValueError):
            build_record(HARBOR, {"id": 1, "created_at": "yesterday", "student_name": "Amy"})

    def test_factory_without_database_url(self):
        self.assertIsNone(build_record_store_from_env(RepositoryConfig(database_url=None)))

    def test_factory_with_database_url(self):
        store = build_record_store_from_env(RepositoryConfig(database_url="sqlite://", timezone="UTC"))

        self.assertIsInstance(store, SQLRecordStore)


if __name__ == "__main__":
    unittest.main()
