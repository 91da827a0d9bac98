"""Dashboard statistics computed from stored patient records.

All functions are pure: they take already-loaded records plus the current
time and return response models.  Status and risk always come from
:func:`screening_core.risk.assess`, so dashboard counts and per-row labels
never disagree.
"""

from collections import Counter
from datetime import date, datetime, timedelta, timezone
from typing import Sequence

from screening_core.constants import (
    ACTIVITY_DAYS,
    RECENT_PATIENTS_LIMIT,
    TOP_ASSISTANTS_LIMIT,
    TREND_MONTHS,
)
from screening_core.models.dashboard import (
    AdminStats,
    AssistantCount,
    DailyActivity,
    MonthlyCount,
    MonthlyTrend,
    ProgramDashboard,
    ProgramStats,
    RecentPatient,
    RiskSlice,
)
from screening_core.models.record import PatientRecord, PatientSummary, UserInfo
from screening_core.risk import assess
from screening_db.models.enums import ScreeningType

_MONTH_NAMES = [
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
]
_DAY_NAMES = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _day(value: datetime) -> date:
    return _as_utc(value).date()


def _recent_months(now: datetime, months: int) -> list[tuple[int, int]]:
    """(year, month) pairs for the last *months* months, oldest first."""
    current = now.year * 12 + now.month - 1
    return [divmod(current - i, 12) for i in range(months - 1, -1, -1)]


def _month_of(value: datetime) -> tuple[int, int]:
    value = _as_utc(value)
    return value.year, value.month - 1


def summarize(record: PatientRecord) -> PatientSummary:
    """List-row view of a patient with its derived assessment."""
    return PatientSummary(
        id=record.id,
        screening_number=record.screening_number,
        name=record.name,
        age=record.age,
        gender=record.gender,
        phone=record.phone,
        health_assistant=record.health_assistant,
        screening_type=record.screening_type,
        created_at=record.created_at,
        created_by_email=record.created_by_email,
        response_count=len(record.responses),
        image_count=len(record.images),
        assessment=assess(record),
    )


# ------------------------------------------------------------------
# Per-program dashboard
# ------------------------------------------------------------------

def build_program_dashboard(
    records: Sequence[PatientRecord],
    screening_type: ScreeningType,
    now: datetime | None = None,
) -> ProgramDashboard:
    """Summarise one program's patients (typically one user's).

    Records of other programs are ignored.
    """
    now = _as_utc(now or datetime.now(timezone.utc))
    today = now.date()
    records = [r for r in records if r.screening_type == screening_type]
    assessments = [assess(r) for r in records]

    pending = sum(1 for a in assessments if a.status == "pending")
    completed = len(records) - pending
    risks = Counter(a.risk for a in assessments if a.risk is not None)

    avg_confidence = None
    if screening_type == ScreeningType.OROSCAN:
        confidences = [
            d.confidence
            for r in records for d in r.diagnoses
            if d.confidence is not None
        ]
        avg_confidence = (
            round(sum(confidences) / len(confidences) * 100, 1)
            if confidences else 0.0
        )

    stats = ProgramStats(
        total=len(records),
        today=sum(1 for r in records if _day(r.created_at) == today),
        completed=completed,
        pending=pending,
        low_risk=risks["low"],
        medium_risk=risks["medium"],
        high_risk=risks["high"],
        completion_rate=round(completed / len(records) * 100, 1) if records else 0.0,
        avg_confidence=avg_confidence,
    )

    # Trends: completed vs pending per calendar month
    months = _recent_months(now, TREND_MONTHS)
    by_month: dict[tuple[int, int], list[str]] = {m: [] for m in months}
    for record, assessment in zip(records, assessments):
        key = _month_of(record.created_at)
        if key in by_month:
            by_month[key].append(assessment.status)
    trends = [
        MonthlyTrend(
            month=_MONTH_NAMES[month],
            completed=sum(1 for s in statuses if s != "pending"),
            pending=sum(1 for s in statuses if s == "pending"),
        )
        for (_, month), statuses in by_month.items()
    ]

    recent = sorted(records, key=lambda r: _as_utc(r.created_at), reverse=True)
    return ProgramDashboard(
        screening_type=screening_type.value,
        stats=stats,
        recent_patients=[summarize(r) for r in recent[:RECENT_PATIENTS_LIMIT]],
        trends=trends,
        risk_distribution=[
            RiskSlice(name="Low Risk", value=stats.low_risk),
            RiskSlice(name="Medium Risk", value=stats.medium_risk),
            RiskSlice(name="High Risk", value=stats.high_risk),
            RiskSlice(name="Pending", value=stats.pending),
        ],
    )


# ------------------------------------------------------------------
# Admin stats
# ------------------------------------------------------------------

def build_admin_stats(
    records: Sequence[PatientRecord],
    users: Sequence[UserInfo],
    now: datetime | None = None,
) -> AdminStats:
    """System-wide counts across every user and program."""
    now = _as_utc(now or datetime.now(timezone.utc))
    today = now.date()

    # Last N days of activity split by program
    activity = []
    for offset in range(ACTIVITY_DAYS - 1, -1, -1):
        day = today - timedelta(days=offset)
        of_day = [r for r in records if _day(r.created_at) == day]
        activity.append(DailyActivity(
            date=_DAY_NAMES[day.weekday()],
            oroscan=sum(1 for r in of_day if r.screening_type == ScreeningType.OROSCAN),
            medtech=sum(1 for r in of_day if r.screening_type == ScreeningType.MEDTECH),
        ))

    # New users per calendar month
    joined = Counter(_month_of(u.created_at) for u in users)
    growth = [
        MonthlyCount(month=_MONTH_NAMES[month], count=joined[(year, month)])
        for year, month in _recent_months(now, TREND_MONTHS)
    ]

    recent = sorted(records, key=lambda r: _as_utc(r.created_at), reverse=True)[:5]
    assistants = Counter(r.health_assistant for r in records if r.health_assistant)

    return AdminStats(
        total_users=len(users),
        total_patients=len(records),
        total_oroscan=sum(1 for r in records if r.screening_type == ScreeningType.OROSCAN),
        total_medtech=sum(1 for r in records if r.screening_type == ScreeningType.MEDTECH),
        today=sum(1 for r in records if _day(r.created_at) == today),
        pending_reviews=sum(1 for r in records if assess(r).status == "pending"),
        recent_activity=activity,
        user_growth=growth,
        recent_patients=[
            RecentPatient(
                id=r.id,
                name=r.name,
                screening_number=r.screening_number,
                screening_type=r.screening_type.value,
                created_at=r.created_at.isoformat(),
                created_by=r.created_by_name or r.created_by_email or "Unknown",
            )
            for r in recent
        ],
        top_health_assistants=[
            AssistantCount(name=name, count=count)
            for name, count in assistants.most_common(TOP_ASSISTANTS_LIMIT)
        ],
    )
