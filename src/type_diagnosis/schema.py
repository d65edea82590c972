"""Pydantic models for the Type Diagnosis Engine.

Catalog and scoring-configuration models are loaded once and treated as
read-only. Answer and result models carry the per-request data.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator


PENALTY_PREFIX = "ng."
MOTIVATION_PREFIX = "motivation."


# =============================================================================
# Enums
# =============================================================================


class QuestionType(str, Enum):
    """How many options a question accepts."""
    SINGLE = "single"
    MULTI = "multi"


class CategoryKey(str, Enum):
    """Category axis of the classification."""
    CHALLENGE = "challenge"
    CREATE = "create"
    SUPPORT = "support"
    STRATEGY = "strategy"


class VectorKey(str, Enum):
    """Vector axis of the classification."""
    SPEED = "speed"
    STRUCTURE = "structure"
    EXPLORE = "explore"
    CONNECT = "connect"


# =============================================================================
# Question Catalog Models
# =============================================================================


class QuestionOption(BaseModel):
    """A selectable answer and its per-dimension contributions."""
    key: str
    label: str
    scores: dict[str, float] = Field(default_factory=dict)

    class Config:
        frozen = True


class Question(BaseModel):
    """A questionnaire item."""
    id: str
    prompt: str
    type: QuestionType
    max_select: Optional[int] = Field(
        None,
        alias="maxSelect",
        description="Selection cap for multi-select questions (default: all options)"
    )
    options: list[QuestionOption]

    class Config:
        frozen = True
        populate_by_name = True

    @property
    def selection_cap(self) -> int:
        """Maximum number of options that may be selected."""
        if self.max_select is not None:
            return self.max_select
        return len(self.options)

    def get_option(self, key: str) -> Optional[QuestionOption]:
        """Look up an option by key."""
        return next((opt for opt in self.options if opt.key == key), None)


# =============================================================================
# Answer Models
# =============================================================================


class AnswerInput(BaseModel):
    """Selection for one question.

    Single-select answers carry ``option_key``; multi-select answers carry
    ``option_keys``; setting both is rejected. The camelCase names used on
    the wire are accepted too.
    """
    question_id: str = Field(..., alias="questionId")
    option_key: Optional[str] = Field(None, alias="optionKey")
    option_keys: Optional[list[str]] = Field(None, alias="optionKeys")

    class Config:
        frozen = True
        populate_by_name = True
        extra = "forbid"

    @model_validator(mode="after")
    def check_one_selection_field(self) -> "AnswerInput":
        if self.option_key is not None and self.option_keys is not None:
            raise ValueError("optionKey and optionKeys are mutually exclusive")
        return self


# =============================================================================
# Scoring Configuration Models
# =============================================================================


class CategoryProfile(BaseModel):
    """Category profile: weights plus the text used in messages."""
    key: CategoryKey
    label: str
    strength: str
    utilization: str
    caution_fallback: str
    weights: dict[str, float]
    penalties: dict[str, float] = Field(default_factory=dict)

    class Config:
        frozen = True


class VectorProfile(BaseModel):
    """Vector profile: weights plus the text used in messages."""
    key: VectorKey
    label: str
    strength_suffix: str
    utilization_addon: str
    weights: dict[str, float]
    penalties: dict[str, float] = Field(default_factory=dict)

    class Config:
        frozen = True


class TieBreakers(BaseModel):
    """Priority order per profile group; earlier entries win ties."""
    categories: list[CategoryKey]
    vectors: list[VectorKey]

    class Config:
        frozen = True


class MessageTemplates(BaseModel):
    """Sentence templates, one per sentence of the composed message."""
    subject: str = Field("You are", description="Subject used for a personal diagnosis")
    reference_subject: str = Field(
        "The type associated with {name} is",
        description="Subject used when describing a type on behalf of a named reference"
    )
    strength: str = "{subject} a {category_label} × {vector_label} type: {strength}, {strength_suffix}"
    caution: str = "On the other hand, {caution}"
    utilization: str = "To make the most of this strength, {utilization}"
    utilization_detail: str = "In particular, {detail}"
    next_action: str = "As a next step, {action}"

    class Config:
        frozen = True


class MessageConfig(BaseModel):
    """Text tables for message synthesis."""
    penalty_messages: dict[str, str] = Field(default_factory=dict)
    motivation_messages: dict[str, str] = Field(default_factory=dict)
    default_next_action: str = "keep a short daily log of what you tried and carry the lessons forward"
    templates: MessageTemplates = Field(default_factory=MessageTemplates)
    terminator: str = "."
    delimiter: str = " "

    class Config:
        frozen = True


class ScoringConfig(BaseModel):
    """Complete scoring configuration: eight profiles and message text."""
    categories: list[CategoryProfile]
    vectors: list[VectorProfile]
    tie_breakers: TieBreakers
    message: MessageConfig = Field(default_factory=MessageConfig)

    class Config:
        frozen = True

    def get_category(self, key: str) -> Optional[CategoryProfile]:
        """Find a category profile by key."""
        return next((p for p in self.categories if p.key == key), None)

    def get_vector(self, key: str) -> Optional[VectorProfile]:
        """Find a vector profile by key."""
        return next((p for p in self.vectors if p.key == key), None)


# =============================================================================
# Output Models
# =============================================================================


class TopProfile(BaseModel):
    """Winner of one profile group."""
    key: str
    score: float


class ScoreBreakdown(BaseModel):
    """Every intermediate score map behind a diagnosis."""
    raw: dict[str, float]
    normalized: dict[str, float] = Field(
        ...,
        description="Normalized positive dimensions (penalty dimensions excluded)"
    )
    penalties: dict[str, float]
    categories: dict[str, float]
    vectors: dict[str, float]


class DiagnoseResult(BaseModel):
    """Final diagnosis."""
    type_id: str = Field(..., alias="typeId")
    category: CategoryKey
    vector: VectorKey
    scores: ScoreBreakdown
    message: str

    class Config:
        populate_by_name = True
