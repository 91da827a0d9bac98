"""Public model re-exports for screening_core.

Consumers should import from ``screening_core.models`` rather than
reaching into sub-modules directly.
"""

# --- Actions ---
from screening_core.models.action import (
    Answer,
    AttachImage,
    Back,
    ClientAction,
    FlowAction,
    NewScreening,
    Next,
    Preselect,
    RemoveImage,
    SelectType,
    SubmissionFailed,
    SubmissionSucceeded,
    UpdateIdentity,
)

# --- Dashboards ---
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

# --- Draft / flow state ---
from screening_core.models.draft import (
    FlowState,
    ImageAttachment,
    PatientDraft,
    PatientIdentity,
    QuestionResponse,
    SubmissionResult,
)

# --- Catalog ---
from screening_core.models.question import (
    CatalogStep,
    ImageSelectQuestion,
    NumberQuestion,
    Option,
    ProgramCatalog,
    Question,
    SingleSelectQuestion,
    YesNoQuestion,
)

# --- Records ---
from screening_core.models.record import (
    DiagnosisRecord,
    ImageRecord,
    PatientDetail,
    PatientRecord,
    PatientSummary,
    PatientUpdate,
    ResponseEdit,
    ResponseGroup,
    ResponseRecord,
    RiskAssessment,
    RiskLevel,
    ScreeningStatus,
    UserInfo,
)

# --- Step views ---
from screening_core.models.step import FlowStepView, QuestionView

__all__ = [
    # Actions
    "Answer",
    "AttachImage",
    "Back",
    "ClientAction",
    "FlowAction",
    "NewScreening",
    "Next",
    "Preselect",
    "RemoveImage",
    "SelectType",
    "SubmissionFailed",
    "SubmissionSucceeded",
    "UpdateIdentity",
    # Dashboards
    "AdminStats",
    "AssistantCount",
    "DailyActivity",
    "MonthlyCount",
    "MonthlyTrend",
    "ProgramDashboard",
    "ProgramStats",
    "RecentPatient",
    "RiskSlice",
    # Draft
    "FlowState",
    "ImageAttachment",
    "PatientDraft",
    "PatientIdentity",
    "QuestionResponse",
    "SubmissionResult",
    # Catalog
    "CatalogStep",
    "ImageSelectQuestion",
    "NumberQuestion",
    "Option",
    "ProgramCatalog",
    "Question",
    "SingleSelectQuestion",
    "YesNoQuestion",
    # Records
    "DiagnosisRecord",
    "ImageRecord",
    "PatientDetail",
    "PatientRecord",
    "PatientSummary",
    "PatientUpdate",
    "ResponseEdit",
    "ResponseGroup",
    "ResponseRecord",
    "RiskAssessment",
    "RiskLevel",
    "ScreeningStatus",
    "UserInfo",
    # Step views
    "FlowStepView",
    "QuestionView",
]
