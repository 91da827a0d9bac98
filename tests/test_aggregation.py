"""Response grouping and export-row tests."""

from datetime import datetime, timezone

from helpers.records import image, patient, response
from screening_core.aggregation import (
    build_export_rows,
    collect_question_columns,
    format_answer,
    group_by_category,
)
from screening_core.constants import EXPORT_IDENTITY_COLUMNS


class TestGrouping:

    def test_groups_keep_first_seen_order(self):
        responses = [
            response("Q1", "yes", category="medical"),
            response("Q2", "no", category="family"),
            response("Q3", "no", category="medical"),
        ]
        groups = group_by_category(responses)
        assert [g.category for g in groups] == ["medical", "family"]
        assert [r.question for r in groups[0].responses] == ["Q1", "Q3"]

    def test_empty(self):
        assert group_by_category([]) == []


class TestFormatAnswer:

    def test_duration_appended(self):
        r = response("Do you chew paan?", "yes", duration="2-5-years")
        assert format_answer(r) == "yes (Duration: 2-5-years)"

    def test_plain_answer(self):
        assert format_answer(response("Q", "no")) == "no"


class TestExportRows:

    def test_columns_union_in_first_seen_order(self):
        a = patient(responses=[response("Q1", "yes"), response("Q2", "no")])
        b = patient(responses=[response("Q3", "yes"), response("Q1", "no")])
        assert collect_question_columns([a, b]) == ["Q1", "Q2", "Q3"]

        columns, _ = build_export_rows([a, b])
        assert columns == [*EXPORT_IDENTITY_COLUMNS, "Q1", "Q2", "Q3", "Image URLs"]

    def test_columns_stable_across_repeated_builds(self):
        patients = [
            patient(responses=[response("Q2", "no")]),
            patient(responses=[response("Q1", "yes")]),
        ]
        assert build_export_rows(patients)[0] == build_export_rows(patients)[0]

    def test_missing_answers_get_placeholder(self):
        a = patient(responses=[response("Q1", "yes")])
        b = patient(responses=[response("Q2", "no")])
        _, rows = build_export_rows([a, b])
        assert rows[0]["Q2"] == "-"
        assert rows[1]["Q1"] == "-"

    def test_empty_answer_is_kept(self):
        record = patient(responses=[response("Notes", "")])
        _, rows = build_export_rows([record])
        assert rows[0]["Notes"] == ""

    def test_identity_cells(self):
        record = patient(
            number="12345",
            gender="female",
            health_assistant="",
            created_at=datetime(2026, 3, 4, 5, 6, 7, tzinfo=timezone.utc),
            created_by_email="nurse@clinic.example",
        )
        _, rows = build_export_rows([record])
        row = rows[0]
        assert row["Screening Number"] == "12345"
        assert row["Gender"] == "Female"
        assert row["Health Assistant"] == "N/A"
        assert row["Created At"] == "2026-03-04 05:06:07"
        assert row["Created By"] == "nurse@clinic.example"

    def test_duration_in_cell(self):
        record = patient(responses=[response("Paan?", "yes", duration="1-2-years")])
        _, rows = build_export_rows([record])
        assert rows[0]["Paan?"] == "yes (Duration: 1-2-years)"

    def test_image_urls_joined(self):
        with_images = patient(images=[image("https://a/1.jpg"), image("https://a/2.jpg")])
        without = patient()
        _, rows = build_export_rows([with_images, without])
        assert rows[0]["Image URLs"] == "https://a/1.jpg | https://a/2.jpg"
        assert rows[1]["Image URLs"] == "-"
