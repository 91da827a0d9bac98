"""QuestionCatalog: loads the per-program YAML catalogs into typed models.

This is the single source of truth for question identity at runtime.  The
catalog is loaded once at startup and provides lookup by program, step and
qid.  Questions are never created on the fly: an answer for an unknown qid
is a caller error.

Usage::

    catalog = QuestionCatalog()     # defaults to data/v1/ inside the package
    catalog.load()

    steps = catalog.step_ids(ScreeningType.OROSCAN)
    q = catalog.get_question("alcohol")
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from screening_core.models.question import CatalogStep, ProgramCatalog, Question
from screening_db.models.enums import ScreeningType

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_DIR = Path(__file__).resolve().parent / "data" / "v1"


def load_yaml(path: Path | str) -> Any:
    """Load a single YAML file and return the parsed contents."""
    if isinstance(path, str):
        path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Missing YAML file: {path}")
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


class QuestionCatalog:
    """Loads ``{program}.yaml`` for every screening program and indexes it.

    Attributes populated after :meth:`load`:

        programs: dict[ScreeningType, ProgramCatalog]
    """

    def __init__(self, catalog_dir: str | Path | None = None) -> None:
        self._base = Path(catalog_dir) if catalog_dir else DEFAULT_CATALOG_DIR

        # Populated by load()
        self.programs: dict[ScreeningType, ProgramCatalog] = {}
        self._steps: dict[str, CatalogStep] = {}
        self._step_program: dict[str, ScreeningType] = {}
        self._questions: dict[str, Question] = {}
        self._question_step: dict[str, str] = {}

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self) -> None:
        """Parse every program YAML into typed models.

        Raises ``FileNotFoundError`` if a program file is missing and
        ``ValueError`` if a step id or qid is declared twice.
        """
        for screening_type in ScreeningType:
            raw = load_yaml(self._base / f"{screening_type.value}.yaml")
            program = ProgramCatalog.model_validate(raw)
            if program.program != screening_type.value:
                raise ValueError(
                    f"{screening_type.value}.yaml declares program {program.program!r}"
                )
            self.programs[screening_type] = program
            self._index(screening_type, program)

        logger.info(
            "QuestionCatalog loaded: %d programs, %d steps, %d questions",
            len(self.programs), len(self._steps), len(self._questions),
        )

    def _index(self, screening_type: ScreeningType, program: ProgramCatalog) -> None:
        for step in program.steps:
            if step.step in self._steps:
                raise ValueError(f"Duplicate step id in catalog: {step.step}")
            self._steps[step.step] = step
            self._step_program[step.step] = screening_type
            for question in step.questions:
                if question.qid in self._questions:
                    raise ValueError(f"Duplicate qid in catalog: {question.qid}")
                self._questions[question.qid] = question
                self._question_step[question.qid] = step.step

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def program(self, screening_type: ScreeningType) -> ProgramCatalog:
        """Return the catalog of one program.  Raises ``KeyError`` if not loaded."""
        return self.programs[ScreeningType(screening_type)]

    def steps_for(self, screening_type: ScreeningType) -> list[CatalogStep]:
        return list(self.program(screening_type).steps)

    def step_ids(self, screening_type: ScreeningType) -> list[str]:
        return [s.step for s in self.program(screening_type).steps]

    def has_step(self, step_id: str) -> bool:
        return step_id in self._steps

    def get_step(self, step_id: str) -> CatalogStep:
        """Return a program step by id.  Raises ``KeyError`` if unknown."""
        return self._steps[step_id]

    def program_of_step(self, step_id: str) -> ScreeningType:
        return self._step_program[step_id]

    def questions_for(self, step_id: str) -> list[Question]:
        return list(self._steps[step_id].questions)

    def questions_of(self, screening_type: ScreeningType) -> list[Question]:
        """All questions of a program in flow order."""
        return [q for step in self.steps_for(screening_type) for q in step.questions]

    def has_question(self, qid: str) -> bool:
        return qid in self._questions

    def get_question(self, qid: str) -> Question:
        """Return a question by qid.  Raises ``KeyError`` if unknown."""
        return self._questions[qid]

    def step_of(self, qid: str) -> str:
        """Step id that owns *qid*.  Raises ``KeyError`` if unknown."""
        return self._question_step[qid]

    def duration_options_for(self, qid: str) -> list[str]:
        """Duration option ids of the program that owns *qid*."""
        program = self.programs[self.program_of_step(self.step_of(qid))]
        return [opt.id for opt in program.duration_options]
