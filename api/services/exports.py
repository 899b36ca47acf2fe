"""CSV export of a job's applications."""

from datetime import date, datetime
from enum import Enum
from typing import Any, Iterable
import csv
import io
import json
import re

EXPORT_FIELDS = [
    "id", "job_id", "created_at", "updated_at", "available_start_date",
    "name", "email", "phone", "location",
    "status", "pipeline_stage", "previous_pipeline_stage", "rejection_reason",
    "manual_rating", "ai_rating", "ai_summary",
    "portfolio_url", "linkedin_url", "github_url", "resume_file_path",
    "experience", "answer_1", "answer_2", "answer_3", "cover_letter",
    "parsed_resume_data", "work_experience", "education", "skills",
]


def format_csv_value(value: Any) -> str:
    """Render one cell: None is empty, dicts and lists are JSON."""
    if value is None:
        return ""
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, default=str)
    return str(value)


def applications_to_csv(applications: Iterable[Any]) -> str:
    """
    Build the CSV text for applications.

    The header row is plain; every data cell is quoted with embedded quotes
    doubled.
    """
    lines = [",".join(EXPORT_FIELDS)]
    for application in applications:
        if isinstance(application, dict):
            values = [application.get(field) for field in EXPORT_FIELDS]
        else:
            values = [getattr(application, field, None) for field in EXPORT_FIELDS]
        lines.append(_quoted_row([format_csv_value(v) for v in values]))
    return "\n".join(lines)


def _quoted_row(row: list[str]) -> str:
    line = io.StringIO()
    csv.writer(line, quoting=csv.QUOTE_ALL, lineterminator="").writerow(row)
    return line.getvalue()


def export_filename(job_title: str) -> str:
    return f"{re.sub(r'[^a-zA-Z0-9]', '_', job_title or '')}_applications.csv"
