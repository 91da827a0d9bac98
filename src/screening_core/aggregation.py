"""Response aggregation helpers for detail views and tabular export.

Two shapes are produced from stored patients:

  - grouped: a patient's responses bucketed by category, for detail pages
  - tabular: one row per patient keyed by the union of all question texts
    seen across the population, for CSV / spreadsheet export

Column and group order is always first-seen order over the input, never
alphabetical, so repeated exports of the same ordered population produce
identical headers.
"""

from typing import Sequence

from screening_core.constants import (
    EXPORT_IDENTITY_COLUMNS,
    EXPORT_IMAGE_COLUMN,
    EXPORT_PLACEHOLDER,
    IMAGE_URL_SEPARATOR,
)
from screening_core.models.record import PatientRecord, ResponseGroup, ResponseRecord

_CREATED_AT_FORMAT = "%Y-%m-%d %H:%M:%S"
_FALLBACK = "N/A"


def group_by_category(responses: Sequence[ResponseRecord]) -> list[ResponseGroup]:
    """Bucket responses by category, keeping first-seen category order."""
    groups: dict[str, list[ResponseRecord]] = {}
    for response in responses:
        groups.setdefault(response.category, []).append(response)
    return [
        ResponseGroup(category=category, responses=items)
        for category, items in groups.items()
    ]


def format_answer(response: ResponseRecord) -> str:
    """Answer text with the duration appended when one was recorded."""
    if response.duration:
        return f"{response.answer} (Duration: {response.duration})"
    return response.answer


def collect_question_columns(patients: Sequence[PatientRecord]) -> list[str]:
    """Distinct question texts across *patients*, in first-seen order."""
    seen: dict[str, None] = {}
    for patient in patients:
        for response in patient.responses:
            seen.setdefault(response.question, None)
    return list(seen)


def _identity_cells(patient: PatientRecord) -> dict[str, str]:
    gender = patient.gender[:1].upper() + patient.gender[1:]
    return {
        "Screening Number": patient.screening_number,
        "Name": patient.name,
        "Age": patient.age,
        "Gender": gender,
        "Phone": patient.phone,
        "Address": patient.address,
        "Health Assistant": patient.health_assistant or _FALLBACK,
        "Created At": patient.created_at.strftime(_CREATED_AT_FORMAT),
        "Created By": patient.created_by_name or patient.created_by_email or _FALLBACK,
    }


def build_export_rows(
    patients: Sequence[PatientRecord],
) -> tuple[list[str], list[dict[str, str]]]:
    """Flatten *patients* into ``(columns, rows)`` for export.

    Columns are the fixed identity columns, then one column per distinct
    question text (first-seen order), then the image URL column.  A patient
    without an answer to a column gets the placeholder ``"-"``.
    """
    questions = collect_question_columns(patients)
    columns = [*EXPORT_IDENTITY_COLUMNS, *questions, EXPORT_IMAGE_COLUMN]

    rows: list[dict[str, str]] = []
    for patient in patients:
        row = _identity_cells(patient)
        answers = {r.question: format_answer(r) for r in patient.responses}
        for question in questions:
            answer = answers.get(question)
            # Only unanswered questions get the placeholder, not empty answers
            row[question] = answer if answer is not None else EXPORT_PLACEHOLDER
        urls = [image.url for image in patient.images]
        row[EXPORT_IMAGE_COLUMN] = (
            IMAGE_URL_SEPARATOR.join(urls) if urls else EXPORT_PLACEHOLDER
        )
        rows.append(row)
    return columns, rows
