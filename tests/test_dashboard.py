"""Dashboard statistics tests: pure functions over patient records."""

from datetime import timedelta

from helpers.records import NOW, diagnosis, image, patient, response, user
from screening_core.dashboard import build_admin_stats, build_program_dashboard
from screening_db.models.enums import ScreeningType

TIRED = "Have you had any recent episodes of feeling unusually tired or weak?"
DIZZY = "Do you often feel dizzy or have headaches?"
ANEMIA = "Have you ever been diagnosed with Anemia before?"


def _medtech(*answers, **kwargs):
    return patient(
        ScreeningType.MEDTECH,
        responses=[response(q, "yes") for q in answers],
        **kwargs,
    )


class TestProgramDashboard:

    def test_counts_and_risk_split(self):
        records = [
            _medtech(TIRED, DIZZY, ANEMIA),          # 7 → high
            _medtech(TIRED, DIZZY),                  # 4 → medium
            _medtech(TIRED),                         # 2 → low
            patient(ScreeningType.MEDTECH),          # no responses → pending
            patient(ScreeningType.OROSCAN),          # other program, ignored
        ]
        dash = build_program_dashboard(records, ScreeningType.MEDTECH, now=NOW)
        stats = dash.stats
        assert stats.total == 4
        assert stats.completed == 3
        assert stats.pending == 1
        assert (stats.low_risk, stats.medium_risk, stats.high_risk) == (1, 1, 1)
        assert stats.completion_rate == 75.0
        assert stats.avg_confidence is None, "Confidence only applies to Oroscan"
        assert [s.name for s in dash.risk_distribution] == [
            "Low Risk", "Medium Risk", "High Risk", "Pending",
        ]

    def test_today_count(self):
        records = [
            _medtech(TIRED, created_at=NOW),
            _medtech(TIRED, created_at=NOW - timedelta(days=1)),
        ]
        dash = build_program_dashboard(records, ScreeningType.MEDTECH, now=NOW)
        assert dash.stats.today == 1

    def test_oroscan_confidence_average(self):
        records = [
            patient(ScreeningType.OROSCAN, images=[image()], diagnoses=[diagnosis(0.8)]),
            patient(ScreeningType.OROSCAN, images=[image()], diagnoses=[diagnosis(0.2)]),
            patient(ScreeningType.OROSCAN, images=[image()]),
        ]
        dash = build_program_dashboard(records, ScreeningType.OROSCAN, now=NOW)
        assert dash.stats.avg_confidence == 50.0
        assert dash.stats.high_risk == 1
        assert dash.stats.low_risk == 1
        assert dash.stats.completed == 3, "Imaged screenings count as completed"

    def test_six_month_trend_oldest_first(self):
        records = [
            _medtech(TIRED, created_at=NOW),
            patient(ScreeningType.MEDTECH, created_at=NOW - timedelta(days=62)),
        ]
        dash = build_program_dashboard(records, ScreeningType.MEDTECH, now=NOW)
        assert [t.month for t in dash.trends] == ["May", "Jun", "Jul", "Aug", "Sep", "Oct"]
        assert dash.trends[-1].completed == 1
        assert dash.trends[3].pending == 1, "August record lands in Aug"

    def test_recent_patients_newest_first_and_capped(self):
        records = [
            _medtech(TIRED, created_at=NOW - timedelta(hours=i), name=f"P{i}")
            for i in range(12)
        ]
        dash = build_program_dashboard(records, ScreeningType.MEDTECH, now=NOW)
        assert len(dash.recent_patients) == 10
        assert dash.recent_patients[0].name == "P0"
        assert dash.recent_patients[0].assessment.risk == "low"

    def test_empty(self):
        dash = build_program_dashboard([], ScreeningType.OROSCAN, now=NOW)
        assert dash.stats.total == 0
        assert dash.stats.completion_rate == 0.0
        assert dash.stats.avg_confidence == 0.0


class TestAdminStats:

    def test_totals(self):
        records = [
            _medtech(TIRED),
            patient(ScreeningType.MEDTECH),
            patient(ScreeningType.OROSCAN),
            patient(ScreeningType.OROSCAN, images=[image()]),
        ]
        stats = build_admin_stats(records, [user(), user("b@clinic.example")], now=NOW)
        assert stats.total_users == 2
        assert stats.total_patients == 4
        assert stats.total_oroscan == 2
        assert stats.total_medtech == 2
        assert stats.today == 4
        assert stats.pending_reviews == 2

    def test_seven_day_activity(self):
        records = [
            patient(ScreeningType.OROSCAN, created_at=NOW),
            patient(ScreeningType.MEDTECH, created_at=NOW),
            patient(ScreeningType.MEDTECH, created_at=NOW - timedelta(days=6)),
            patient(ScreeningType.MEDTECH, created_at=NOW - timedelta(days=7)),
        ]
        stats = build_admin_stats(records, [], now=NOW)
        assert len(stats.recent_activity) == 7
        # 2026-10-19 is a Monday
        assert stats.recent_activity[-1].date == "Mon"
        assert stats.recent_activity[-1].oroscan == 1
        assert stats.recent_activity[-1].medtech == 1
        assert stats.recent_activity[0].date == "Tue"
        assert stats.recent_activity[0].medtech == 1

    def test_top_health_assistants(self):
        records = (
            [patient(health_assistant="Ravi") for _ in range(3)]
            + [patient(health_assistant="Meena") for _ in range(2)]
            + [patient(health_assistant="")]
        )
        stats = build_admin_stats(records, [], now=NOW)
        assert [(a.name, a.count) for a in stats.top_health_assistants] == [
            ("Ravi", 3), ("Meena", 2),
        ]

    def test_recent_patients_creator_fallback(self):
        records = [
            patient(created_by_name="Nurse Joy", created_at=NOW),
            patient(created_by_email="b@clinic.example", created_at=NOW - timedelta(hours=1)),
            patient(created_at=NOW - timedelta(hours=2)),
        ]
        stats = build_admin_stats(records, [], now=NOW)
        assert [p.created_by for p in stats.recent_patients] == [
            "Nurse Joy", "b@clinic.example", "Unknown",
        ]

    def test_user_growth(self):
        users = [user(created_at=NOW), user("x@y.z", created_at=NOW - timedelta(days=31))]
        stats = build_admin_stats([], users, now=NOW)
        assert stats.user_growth[-1].count == 1
        assert stats.user_growth[-2].count == 1
