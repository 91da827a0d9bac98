"""Reference endpoints: the question catalogs as loaded at startup.

Read-only and unauthenticated; the catalogs hold no patient data.
"""

from fastapi import APIRouter, Depends

from screening_core.catalog import QuestionCatalog
from screening_core.models.question import ProgramCatalog
from screening_db.models.enums import ScreeningType

from screening_server.dependencies import get_catalog

router = APIRouter(prefix="/reference", tags=["reference"])


@router.get("/programs")
def list_programs(catalog: QuestionCatalog = Depends(get_catalog)) -> list[dict]:
    """Available screening programs with their step ids."""
    return [
        {
            "program": program.program,
            "label": program.label,
            "steps": [step.step for step in program.steps],
        }
        for program in catalog.programs.values()
    ]


@router.get("/catalog/{screening_type}")
def get_program_catalog(
    screening_type: ScreeningType,
    catalog: QuestionCatalog = Depends(get_catalog),
) -> ProgramCatalog:
    return catalog.program(screening_type)
