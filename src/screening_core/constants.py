"""Screening constants shared across the SDK.

These values are referenced by the flow reducer, the risk classifier and
the export helpers.  Step ids of the program-specific steps live in the
YAML catalogs under ``data/v1/``; only the shared steps are named here.

Risk thresholds can be overridden via environment variables so that
deployments can adjust clinical cut-offs without code changes.
"""

import os

# --- Shared flow steps ---
PATIENT_INFO_STEP = "patient-info"
SELECT_TYPE_STEP = "select-type"
SUCCESS_STEP = "success"

# Identity fields that must be non-empty before leaving the patient-info step.
REQUIRED_IDENTITY_FIELDS: tuple[str, ...] = ("name", "age", "gender", "phone")

# Answer ids used by yes/no questions.
AFFIRMATIVE_ANSWER = "yes"
NEGATIVE_ANSWER = "no"

# Sentinel for image-select questions when no picture matches.
NO_IMAGE_MATCH = "none"

# --- Screening numbers ---
# 5-digit decimal strings, 10000-99999 inclusive.
SCREENING_NUMBER_MIN = 10000
SCREENING_NUMBER_MAX = 99999
# Candidates tried before a submission gives up on finding a free number.
SCREENING_NUMBER_ATTEMPTS = int(os.getenv("SCREENING_NUMBER_ATTEMPTS", "10"))

# --- Oroscan risk (diagnosis confidence) ---
OROSCAN_HIGH_CONFIDENCE = float(os.getenv("OROSCAN_HIGH_CONFIDENCE", "0.7"))
OROSCAN_MEDIUM_CONFIDENCE = float(os.getenv("OROSCAN_MEDIUM_CONFIDENCE", "0.4"))

# --- Medtech risk (keyword score) ---
# score <= LOW_MAX is low, score <= MEDIUM_MAX is medium, above is high.
MEDTECH_LOW_MAX_SCORE = int(os.getenv("MEDTECH_LOW_MAX_SCORE", "2"))
MEDTECH_MEDIUM_MAX_SCORE = int(os.getenv("MEDTECH_MEDIUM_MAX_SCORE", "5"))

# Keyword rules over lower-cased (question text, answer) pairs.
# Each entry: (substring of the question text, answer, score delta).
MEDTECH_RISK_RULES: list[tuple[str, str, int]] = [
    ("tired", "yes", 2),
    ("dizzy", "yes", 2),
    ("diagnosed with anemia", "yes", 3),
    ("bleeding", "yes", 2),
    ("weight loss", "yes", 2),
    ("chronic", "yes", 2),
    # Protective factors
    ("iron-rich", "yes", -1),
    ("fruits and vegetables", "daily", -1),
    ("physical activity", "yes", -1),
    ("energy", "high", -1),
    ("energy", "low", 2),
]

# --- Export ---
# Written into cells for questions a patient did not answer.
EXPORT_PLACEHOLDER = "-"
IMAGE_URL_SEPARATOR = " | "
# Fixed leading columns, in order.
EXPORT_IDENTITY_COLUMNS: list[str] = [
    "Screening Number",
    "Name",
    "Age",
    "Gender",
    "Phone",
    "Address",
    "Health Assistant",
    "Created At",
    "Created By",
]
EXPORT_IMAGE_COLUMN = "Image URLs"

# --- Dashboards ---
RECENT_PATIENTS_LIMIT = 10
TREND_MONTHS = 6
ACTIVITY_DAYS = 7
TOP_ASSISTANTS_LIMIT = 5
