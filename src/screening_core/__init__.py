"""screening_core: Oral-cancer and anaemia screening SDK.

Public API:
    QuestionCatalog  loads the YAML question catalogs into typed models
    ScreeningFlow    pure reducer over the screening wizard's state
    FlowController   loads, advances, persists and submits drafts
    PatientRegistry  patient lists, details, admin edits, dashboards, exports
    FlowState        one draft's position in the flow plus what it holds
    FlowStepView     what the client renders for the current step

Risk & aggregation helpers:
    assess                derived status/risk of a stored patient
    medtech_risk_score    keyword score of anaemia responses
    classify_confidence   Oroscan diagnosis confidence to risk level
    group_by_category     responses grouped by catalog category
    build_export_rows     patients flattened into export columns/rows
"""

from screening_core.aggregation import build_export_rows, group_by_category
from screening_core.catalog import QuestionCatalog
from screening_core.controller import FlowController
from screening_core.flow import ScreeningFlow
from screening_core.models.draft import FlowState
from screening_core.models.step import FlowStepView
from screening_core.registry import PatientRegistry
from screening_core.risk import (
    assess,
    classify_confidence,
    classify_medtech_score,
    medtech_risk_score,
)

__all__ = [
    # Catalog, flow & controllers
    "FlowController",
    "PatientRegistry",
    "QuestionCatalog",
    "ScreeningFlow",
    # State & views
    "FlowState",
    "FlowStepView",
    # Risk
    "assess",
    "classify_confidence",
    "classify_medtech_score",
    "medtech_risk_score",
    # Aggregation
    "build_export_rows",
    "group_by_category",
]
