"""
Tests for CSV export of applications.
"""

import csv
import io
from datetime import datetime, timezone

import pytest

from api.services.exports import EXPORT_FIELDS, applications_to_csv, export_filename, format_csv_value
from database.models.applications import Application, ApplicationStatus


@pytest.mark.parametrize("value,expected", [
    (None, ""),
    (ApplicationStatus.REVIEWED, "reviewed"),
    (datetime(2024, 6, 1, 9, 30, tzinfo=timezone.utc), "2024-06-01T09:30:00+00:00"),
    (True, "true"),
    (2.5, "2.5"),
    ({"skills": ["python"]}, '{"skills": ["python"]}'),
    (["a", "b"], '["a", "b"]'),
])
def test_format_csv_value(value, expected):
    assert format_csv_value(value) == expected


class TestApplicationsToCsv:

    def test_header_only_for_no_rows(self):
        assert applications_to_csv([]) == ",".join(EXPORT_FIELDS)

    def test_cells_quoted_and_quotes_doubled(self):
        application = Application(
            id=1,
            job_id=2,
            name='Ada "The Countess" Lovelace',
            email="ada@acme.io",
            status=ApplicationStatus.PENDING,
            pipeline_stage="applied",
            cover_letter="Line one,\nline two",
            skills=["python", "sql"],
        )

        text = applications_to_csv([application])
        header, row = text.split("\n", 1)

        assert header == ",".join(EXPORT_FIELDS)
        assert row.startswith('"1","2",')
        assert '"Ada ""The Countess"" Lovelace"' in row
        parsed = next(csv.DictReader(io.StringIO(text)))
        assert parsed["cover_letter"] == "Line one,\nline two"
        assert parsed["skills"] == '["python", "sql"]'
        assert parsed["phone"] == ""

    def test_accepts_dicts(self):
        text = applications_to_csv([{"id": 7, "name": "Grace", "status": "reviewed"}])
        parsed = next(csv.DictReader(io.StringIO(text)))

        assert parsed["id"] == "7"
        assert parsed["status"] == "reviewed"


@pytest.mark.parametrize("title,expected", [
    ("Senior Engineer (Remote)", "Senior_Engineer__Remote__applications.csv"),
    ("", "_applications.csv"),
])
def test_export_filename(title, expected):
    assert export_filename(title) == expected
