"""Risk classifier tests: Medtech keyword scoring and Oroscan confidence."""

from datetime import timedelta

import pytest

from helpers.records import NOW, diagnosis, image, patient, response
from screening_core.risk import (
    assess,
    assess_medtech,
    assess_oroscan,
    classify_confidence,
    classify_medtech_score,
    medtech_risk_score,
)
from screening_db.models.enums import ScreeningType

TIRED = "Have you had any recent episodes of feeling unusually tired or weak?"
DIZZY = "Do you often feel dizzy or have headaches?"
ANEMIA = "Have you ever been diagnosed with Anemia before?"
IRON = "Do you consume iron-rich foods like green leafy vegetables, red meat, or beans?"
ENERGY = "How would you rate your overall energy levels on most days?"


# =====================================================================
# Medtech
# =====================================================================


class TestMedtechScore:

    def test_tired_dizzy_anaemia_scores_seven_high(self):
        responses = [
            response(TIRED, "yes"),
            response(DIZZY, "yes"),
            response(ANEMIA, "yes"),
        ]
        assert medtech_risk_score(responses) == 7
        assert assess_medtech(responses).risk == "high"

    @pytest.mark.parametrize(
        "score, level",
        [(-2, "low"), (0, "low"), (2, "low"), (3, "medium"), (5, "medium"), (6, "high")],
    )
    def test_thresholds(self, score, level):
        assert classify_medtech_score(score) == level

    def test_matching_is_case_insensitive(self):
        responses = [response(TIRED.upper(), "YES")]
        assert medtech_risk_score(responses) == 2

    def test_protective_factors_lower_score(self):
        responses = [
            response(TIRED, "yes"),
            response(IRON, "yes"),
            response(ENERGY, "high"),
        ]
        assert medtech_risk_score(responses) == 0

    def test_low_energy_adds(self):
        assert medtech_risk_score([response(ENERGY, "low")]) == 2

    def test_negative_answers_score_nothing(self):
        responses = [response(TIRED, "no"), response(DIZZY, "no")]
        assert medtech_risk_score(responses) == 0

    def test_no_responses_is_pending_without_risk(self):
        result = assess_medtech([])
        assert result.status == "pending"
        assert result.risk is None

    def test_deterministic(self):
        responses = [response(TIRED, "yes"), response(DIZZY, "yes")]
        assert assess_medtech(responses) == assess_medtech(list(responses))


# =====================================================================
# Oroscan
# =====================================================================


class TestOroscan:

    @pytest.mark.parametrize(
        "confidence, level",
        [(0.0, "low"), (0.39, "low"), (0.4, "medium"), (0.69, "medium"), (0.7, "high"), (1.0, "high")],
    )
    def test_confidence_thresholds(self, confidence, level):
        assert classify_confidence(confidence) == level

    def test_no_images_no_diagnosis_is_pending(self):
        assert assess_oroscan(0, []).status == "pending"

    def test_images_without_diagnosis_is_completed(self):
        result = assess_oroscan(2, [])
        assert result.status == "completed"
        assert result.risk is None

    def test_latest_diagnosis_decides(self):
        older = diagnosis(0.9, created_at=NOW - timedelta(days=2))
        newer = diagnosis(0.1, created_at=NOW)
        result = assess_oroscan(1, [newer, older])
        assert result.status == "reviewed"
        assert result.risk == "low"
        assert result.confidence == 0.1

    def test_diagnosis_without_confidence_has_no_risk(self):
        result = assess_oroscan(1, [diagnosis(None)])
        assert result.status == "reviewed"
        assert result.risk is None


class TestAssessDispatch:

    def test_oroscan_record(self):
        record = patient(
            ScreeningType.OROSCAN, images=[image()], diagnoses=[diagnosis(0.75)],
        )
        assert assess(record).risk == "high"

    def test_medtech_record(self):
        record = patient(ScreeningType.MEDTECH, responses=[response(DIZZY, "yes")])
        result = assess(record)
        assert result.status == "completed"
        assert result.score == 2
        assert result.risk == "low"
