"""Dashboard and admin statistics response models."""

from typing import Optional

from pydantic import BaseModel

from screening_core.models.record import PatientSummary


class ProgramStats(BaseModel):
    total: int
    today: int
    completed: int
    pending: int
    low_risk: int
    medium_risk: int
    high_risk: int
    # Percentage of non-pending screenings, one decimal
    completion_rate: float
    # Mean diagnosis confidence in percent (Oroscan only)
    avg_confidence: Optional[float] = None


class MonthlyTrend(BaseModel):
    month: str
    completed: int
    pending: int


class RiskSlice(BaseModel):
    name: str
    value: int


class ProgramDashboard(BaseModel):
    """Per-user summary of one screening program."""

    screening_type: str
    stats: ProgramStats
    recent_patients: list[PatientSummary]
    trends: list[MonthlyTrend]
    risk_distribution: list[RiskSlice]


class DailyActivity(BaseModel):
    date: str
    oroscan: int
    medtech: int


class MonthlyCount(BaseModel):
    month: str
    count: int


class AssistantCount(BaseModel):
    name: str
    count: int


class RecentPatient(BaseModel):
    id: str
    name: str
    screening_number: str
    screening_type: str
    created_at: str
    created_by: str


class AdminStats(BaseModel):
    """System-wide counts for the admin console."""

    total_users: int
    total_patients: int
    total_oroscan: int
    total_medtech: int
    today: int
    pending_reviews: int
    recent_activity: list[DailyActivity]
    user_growth: list[MonthlyCount]
    recent_patients: list[RecentPatient]
    top_health_assistants: list[AssistantCount]
