"""Export serialisers: CSV and spreadsheet bytes for downloads.

Rows come from :func:`screening_core.aggregation.build_export_rows`; this
module only turns them into files.  Workbooks are written in memory with
pandas on the openpyxl engine and never touch the filesystem.
"""

import csv
import io
from dataclasses import dataclass
from datetime import date
from typing import Literal

import pandas as pd
from openpyxl.utils import get_column_letter

from screening_core.constants import EXPORT_IDENTITY_COLUMNS, EXPORT_PLACEHOLDER
from screening_core.models.record import PatientRecord

ExportFormat = Literal["csv", "xlsx"]

CSV_MEDIA_TYPE = "text/csv; charset=utf-8"
XLSX_MEDIA_TYPE = (
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
)

# Character widths for the fixed identity columns, in column order
_IDENTITY_WIDTHS = [18, 20, 8, 10, 15, 30, 18, 20, 20]
_QUESTION_WIDTH = 25
_IMAGE_WIDTH = 50


@dataclass(frozen=True)
class ExportFile:
    """A generated download."""

    filename: str
    media_type: str
    content: bytes


def export_filename(slug: str, fmt: ExportFormat, today: date) -> str:
    """e.g. ``oral_cancer_patients_2026-10-19.xlsx``."""
    return f"{slug}_patients_{today.isoformat()}.{fmt}"


# ------------------------------------------------------------------
# Serialisers
# ------------------------------------------------------------------

def to_csv_bytes(columns: list[str], rows: list[dict[str, str]]) -> bytes:
    """Fully quoted CSV; empty cells are written as the placeholder."""
    df = pd.DataFrame(rows, columns=columns).fillna(EXPORT_PLACEHOLDER)
    df = df.replace("", EXPORT_PLACEHOLDER)
    text = df.to_csv(index=False, quoting=csv.QUOTE_ALL, lineterminator="\n")
    return text.encode("utf-8")


def to_xlsx_bytes(
    columns: list[str], rows: list[dict[str, str]], sheet_name: str,
) -> bytes:
    """Single-sheet workbook with the export column widths applied."""
    df = pd.DataFrame(rows, columns=columns)
    n_questions = len(columns) - len(EXPORT_IDENTITY_COLUMNS) - 1
    widths = [*_IDENTITY_WIDTHS, *([_QUESTION_WIDTH] * n_questions), _IMAGE_WIDTH]

    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name=sheet_name)
        sheet = writer.sheets[sheet_name]
        for idx, width in enumerate(widths, start=1):
            sheet.column_dimensions[get_column_letter(idx)].width = width
    return buffer.getvalue()


def export_table(
    columns: list[str],
    rows: list[dict[str, str]],
    *,
    fmt: ExportFormat,
    sheet_name: str,
    slug: str,
    today: date,
) -> ExportFile:
    """Serialise an export table in the requested format."""
    filename = export_filename(slug, fmt, today)
    if fmt == "csv":
        return ExportFile(filename, CSV_MEDIA_TYPE, to_csv_bytes(columns, rows))
    if fmt == "xlsx":
        return ExportFile(
            filename, XLSX_MEDIA_TYPE, to_xlsx_bytes(columns, rows, sheet_name),
        )
    raise ValueError(f"Unsupported export format: {fmt}")


# ------------------------------------------------------------------
# Per-patient report
# ------------------------------------------------------------------

def patient_report(patient: PatientRecord) -> ExportFile:
    """Workbook with a "Patient Info" sheet and, if answered, a "Responses" sheet."""
    info = pd.DataFrame([{
        "Screening Number": patient.screening_number,
        "Name": patient.name,
        "Age": patient.age,
        "Gender": patient.gender,
        "Phone": patient.phone,
        "Address": patient.address,
        "Health Assistant": patient.health_assistant,
        "Screening Type": patient.screening_type.value,
        "Created At": patient.created_at.strftime("%Y-%m-%d %H:%M:%S"),
        "Created By": patient.created_by_name or patient.created_by_email or "",
        "Images": len(patient.images),
    }])

    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        info.to_excel(writer, index=False, sheet_name="Patient Info")
        if patient.responses:
            responses = pd.DataFrame([
                {
                    "Category": r.category,
                    "Question": r.question,
                    "Answer": r.answer,
                    "Duration": r.duration or "",
                }
                for r in patient.responses
            ])
            responses.to_excel(writer, index=False, sheet_name="Responses")

    return ExportFile(
        filename=f"patient_{patient.screening_number}_report.xlsx",
        media_type=XLSX_MEDIA_TYPE,
        content=buffer.getvalue(),
    )
