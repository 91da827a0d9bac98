"""Question catalog models for the screening programs.

Each question type maps to a UI component and an answer check:

  - yes_no: two fixed options (``yes`` / ``no``); may solicit a duration
  - single_select: pick one option id from a fixed list
  - image_select: pick the index of the matching picture, or ``none``
  - number: free numeric input within [min_value, max_value]

The discriminated ``Question`` union uses ``question_type`` as its
discriminator so Pydantic can deserialise YAML dicts directly into the
correct type.  Questions are identified by ``qid``; ``question`` is display
text only.
"""

from __future__ import annotations

from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field, model_validator

from screening_core.constants import (
    AFFIRMATIVE_ANSWER,
    NEGATIVE_ANSWER,
    NO_IMAGE_MATCH,
)


class Option(BaseModel):
    """A selectable option with an id and display label."""

    id: str
    label: str


# --- Question types ---

class BaseQuestion(BaseModel):
    """Fields shared by all question types."""

    qid: str
    category: str
    question: str
    # Optional questions may be left unanswered when advancing
    optional: bool = False
    # Only yes/no questions may solicit a duration, and only on "yes"
    accepts_duration: bool = False

    @model_validator(mode="after")
    def _chk_duration(self):
        if self.accepts_duration and getattr(self, "question_type", None) != "yes_no":
            raise ValueError(f"{self.qid}: only yes_no questions accept a duration")
        return self

    def option_ids(self) -> list[str]:
        return [opt.id for opt in getattr(self, "options", [])]

    def is_valid_answer(self, answer: str) -> bool:
        """True if *answer* is acceptable for this question."""
        return answer in self.option_ids()


class YesNoQuestion(BaseQuestion):
    """Two-option question; habitual-use questions also take a duration."""

    question_type: Literal["yes_no"] = "yes_no"
    options: List[Option] = Field(
        default_factory=lambda: [
            Option(id=AFFIRMATIVE_ANSWER, label="Yes"),
            Option(id=NEGATIVE_ANSWER, label="No"),
        ]
    )


class SingleSelectQuestion(BaseQuestion):
    """Pick one option from a fixed list."""

    question_type: Literal["single_select"] = "single_select"
    options: List[Option]


class ImageSelectQuestion(BaseQuestion):
    """Pick the picture that matches, by 1-based index, or the ``none`` sentinel.

    ``image`` is the picture path (single image) or path prefix (image set).
    Options are generated from ``image_count`` when not listed explicitly.
    """

    question_type: Literal["image_select"] = "image_select"
    image: str
    image_count: int = 1
    options: List[Option] = []

    @model_validator(mode="after")
    def _build_options(self):
        if self.image_count < 1:
            raise ValueError("image_count must be >= 1")
        if not self.options:
            self.options = [
                Option(id=str(i), label=f"Image {i}")
                for i in range(1, self.image_count + 1)
            ]
            self.options.append(Option(id=NO_IMAGE_MATCH, label="None of these"))
        return self


class NumberQuestion(BaseQuestion):
    """Numeric input; answers are stored as their string form."""

    question_type: Literal["number"] = "number"
    min_value: float
    max_value: float

    @model_validator(mode="after")
    def _chk(self):
        if self.min_value >= self.max_value:
            raise ValueError("min_value must be < max_value")
        return self

    def is_valid_answer(self, answer: str) -> bool:
        try:
            value = float(answer)
        except ValueError:
            return False
        return self.min_value <= value <= self.max_value


Question = Annotated[
    Union[YesNoQuestion, SingleSelectQuestion, ImageSelectQuestion, NumberQuestion],
    Field(discriminator="question_type"),
]


# --- Steps and programs ---

class CatalogStep(BaseModel):
    """One page of a program's flow.

    ``questions`` steps record answers; ``images`` steps collect attachments
    tagged with ``image_category``.
    """

    step: str
    title: str
    kind: Literal["questions", "images"]
    questions: List[Question] = []
    image_category: Optional[str] = None
    min_images: int = 0

    @model_validator(mode="after")
    def _chk(self):
        if self.kind == "images" and not self.image_category:
            raise ValueError(f"Image step {self.step!r} needs an image_category")
        if self.kind == "questions" and not self.questions:
            raise ValueError(f"Question step {self.step!r} has no questions")
        return self


class ProgramCatalog(BaseModel):
    """All steps of one screening program, in flow order."""

    program: str
    label: str
    export_slug: str
    duration_options: List[Option] = []
    steps: List[CatalogStep]
