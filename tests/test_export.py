"""Export serialiser tests: files are read back with pandas / openpyxl."""

import io
from datetime import date

import pandas as pd
import pytest
from openpyxl import load_workbook

from helpers.records import image, patient, response
from screening_core.aggregation import build_export_rows
from screening_core.export import (
    CSV_MEDIA_TYPE,
    XLSX_MEDIA_TYPE,
    export_filename,
    export_table,
    patient_report,
)
from screening_db.models.enums import ScreeningType

TODAY = date(2026, 10, 19)


@pytest.fixture
def table():
    records = [
        patient(
            ScreeningType.OROSCAN,
            number="12345",
            responses=[response("Do you chew paan?", "yes", duration="2-5-years")],
            images=[image("https://cdn.example/1.jpg")],
        ),
        patient(
            ScreeningType.OROSCAN,
            number="54321",
            responses=[response("Do you smoke?", "no")],
        ),
    ]
    return build_export_rows(records)


class TestFilenames:

    def test_filename(self):
        assert export_filename("oral_cancer", "xlsx", TODAY) == (
            "oral_cancer_patients_2026-10-19.xlsx"
        )


class TestCsv:

    def test_csv_round_trips_through_pandas(self, table):
        columns, rows = table
        export = export_table(
            columns, rows, fmt="csv", sheet_name="Oral Cancer Screening",
            slug="oral_cancer", today=TODAY,
        )
        assert export.media_type == CSV_MEDIA_TYPE
        assert export.filename == "oral_cancer_patients_2026-10-19.csv"

        df = pd.read_csv(io.BytesIO(export.content), dtype=str)
        assert list(df.columns) == columns
        assert df.loc[0, "Do you chew paan?"] == "yes (Duration: 2-5-years)"
        assert df.loc[1, "Do you chew paan?"] == "-"
        assert df.loc[1, "Image URLs"] == "-"

    def test_csv_fields_are_quoted(self, table):
        columns, rows = table
        export = export_table(
            columns, rows, fmt="csv", sheet_name="x", slug="s", today=TODAY,
        )
        header = export.content.decode("utf-8").splitlines()[0]
        assert header.startswith('"Screening Number","Name"')


class TestXlsx:

    def test_workbook_content_and_widths(self, table):
        columns, rows = table
        export = export_table(
            columns, rows, fmt="xlsx", sheet_name="Oral Cancer Screening",
            slug="oral_cancer", today=TODAY,
        )
        assert export.media_type == XLSX_MEDIA_TYPE

        df = pd.read_excel(
            io.BytesIO(export.content), sheet_name="Oral Cancer Screening", dtype=str,
        )
        assert list(df.columns) == columns
        assert df.loc[0, "Screening Number"] == "12345"

        sheet = load_workbook(io.BytesIO(export.content))["Oral Cancer Screening"]
        assert sheet.column_dimensions["A"].width == 18
        assert sheet.column_dimensions["J"].width == 25, "First question column"
        last = sheet.cell(row=1, column=len(columns)).column_letter
        assert sheet.column_dimensions[last].width == 50, "Image URL column"

    def test_unknown_format_raises(self, table):
        columns, rows = table
        with pytest.raises(ValueError, match="Unsupported export format"):
            export_table(columns, rows, fmt="pdf", sheet_name="x", slug="s", today=TODAY)


class TestPatientReport:

    def test_report_sheets(self):
        record = patient(
            ScreeningType.MEDTECH,
            number="24680",
            responses=[
                response("Do you often feel dizzy?", "yes", category="dietary"),
                response("Height (cm)", "158", category="physical"),
            ],
        )
        report = patient_report(record)
        assert report.filename == "patient_24680_report.xlsx"

        sheets = pd.read_excel(io.BytesIO(report.content), sheet_name=None, dtype=str)
        assert list(sheets) == ["Patient Info", "Responses"]
        assert sheets["Patient Info"].loc[0, "Screening Type"] == "medtech"
        assert list(sheets["Responses"]["Question"]) == [
            "Do you often feel dizzy?", "Height (cm)",
        ]

    def test_report_without_responses_has_one_sheet(self):
        report = patient_report(patient(ScreeningType.OROSCAN))
        sheets = pd.read_excel(io.BytesIO(report.content), sheet_name=None)
        assert list(sheets) == ["Patient Info"]
