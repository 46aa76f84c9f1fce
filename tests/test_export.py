import csv
import io
import tempfile
import unittest
from datetime import date, datetime, timezone
from pathlib import Path

from signin_dashboard.config import HARBOR, RELOCATION
from signin_dashboard.date_range import DateRange
from signin_dashboard.export import escape_cell, export_filename, to_csv, write_export
from signin_dashboard.models import RelocationRecord, VisitRecord


def _parse(text):
    return list(csv.reader(io.StringIO(text)))


class TestEscaping(unittest.TestCase):
    def test_plain_values_are_untouched(self):
        self.assertEqual(escape_cell("Amy Jones"), "Amy Jones")
        self.assertEqual(escape_cell(7), "7")
        self.assertEqual(escape_cell(None), "")

    def test_comma_and_quote(self):
        self.assertEqual(escape_cell('He said, "Hi"'), '"He said, ""Hi"""')

    def test_newline(self):
        self.assertEqual(escape_cell("line one\nline two"), '"line one\nline two"')
        self.assertEqual(escape_cell("line one\rline two"), '"line one\rline two"')

    def test_datetime_is_iso_formatted(self):
        when = datetime(2025, 1, 5, 9, 30, tzinfo=timezone.utc)

        self.assertEqual(escape_cell(when), "2025-01-05T09:30:00+00:00")


class TestToCsv(unittest.TestCase):
    def test_round_trip_preserves_values(self):
        rows = [
            {"id": "1", "note": 'He said, "Hi"', "name": "O'Neil"},
            {"id": "2", "note": "multi\nline", "name": '"quoted"'},
            {"id": "3", "note": "", "name": "plain"},
            {"id": "4", "note": "first\rsecond", "name": "cr"},
        ]
        parsed = _parse(to_csv(rows))

        self.assertEqual(parsed[0], ["id", "note", "name"])
        self.assertEqual(parsed[1:], [[row["id"], row["note"], row["name"]] for row in rows])

    def test_header_comes_from_first_row_only(self):
        rows = [
            {"id": 1, "name": "Amy"},
            {"id": 2, "extra": "dropped"},
        ]
        text = to_csv(rows)

        self.assertEqual(text, "id,name\n1,Amy\n2,")

    def test_records_use_store_column_order(self):
        record = VisitRecord(
            id="42",
            timestamp=datetime(2025, 1, 5, 9, 30, tzinfo=timezone.utc),
            participant_name="Amy, Jones",
            year_group=9,
            period_slot=3,
            reason_code="Medical",
            logging_staff_name=None,
        )
        parsed = _parse(to_csv([record]))

        self.assertEqual(parsed[0], list(HARBOR.columns))
        self.assertEqual(parsed[1], ["42", "2025-01-05T09:30:00+00:00", "Amy, Jones", "9", "3", "Medical", ""])

    def test_relocation_columns(self):
        record = RelocationRecord(
            id="7",
            timestamp=datetime(2025, 1, 5, 9, 30, tzinfo=timezone.utc),
            participant_name="Ben",
            responsible_staff_name="Mr Cole",
        )
        parsed = _parse(to_csv([record]))

        self.assertEqual(parsed[0], list(RELOCATION.columns))
        self.assertEqual(parsed[1][-1], "Mr Cole")

    def test_empty(self):
        self.assertEqual(to_csv([]), "")


class TestWriteExport(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()

    def test_filename_pattern(self):
        date_range = DateRange(start=date(2025, 1, 1), end=date(2025, 1, 14))

        self.assertEqual(export_filename(HARBOR, date_range), "harbor_2025-01-01_to_2025-01-14.csv")
        self.assertEqual(export_filename(RELOCATION, date_range), "relocation_2025-01-01_to_2025-01-14.csv")

    def test_empty_set_writes_nothing(self):
        result = write_export([], self.temp_dir, "harbor_2025-01-01_to_2025-01-14.csv")

        self.assertIsNone(result)
        self.assertEqual(list(Path(self.temp_dir).iterdir()), [])

    def test_writes_utf8_file(self):
        rows = [{"id": "1", "student_name": "Zoë"}]
        path = write_export(rows, self.temp_dir, "relocation.csv")

        self.assertEqual(path, Path(self.temp_dir) / "relocation.csv")
        self.assertEqual(path.read_text(encoding="utf-8"), "id,student_name\n1,Zoë")


if __name__ == "__main__":
    unittest.main()
