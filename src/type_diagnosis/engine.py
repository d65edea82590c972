"""Diagnosis Engine - orchestrates scoring, selection and explanation.

Pipeline per request:
1. Answer coverage check (every question exactly once)
2. Raw score aggregation
3. Normalization against the catalog's maximum scores
4. Penalty separation
5. Profile scoring (four categories, four vectors)
6. Top-profile selection per group
7. Message composition
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Optional, Union

from pydantic import ValidationError as SchemaValidationError

from .catalog import QuestionCatalog, load_default_catalog
from .config import DiagnosisSettings, load_scoring_config
from .errors import ValidationError
from .explainer import MessageComposer
from .schema import (
    AnswerInput,
    CategoryProfile,
    DiagnoseResult,
    Question,
    ScoreBreakdown,
    ScoringConfig,
    VectorProfile,
)
from .scoring import (
    ScoreMap,
    aggregate_raw_scores,
    compute_profile_score,
    ensure_all_questions_answered,
    normalize_scores,
    separate_penalties,
)
from .selector import build_rank_map, select_top_profile

logger = logging.getLogger(__name__)

AnswerLike = Union[AnswerInput, Mapping[str, object]]


class DiagnosisEngine:
    """Scores complete answer sets into a category x vector type.

    The catalog and scoring configuration are injected and never modified,
    so one engine can serve any number of concurrent callers.
    """

    def __init__(self, catalog: QuestionCatalog, config: ScoringConfig):
        self.catalog = catalog
        self.config = config
        self.composer = MessageComposer(config)
        self._category_ranks = build_rank_map(config.tie_breakers.categories)
        self._vector_ranks = build_rank_map(config.tie_breakers.vectors)

    @classmethod
    def from_settings(cls, settings: Optional[DiagnosisSettings] = None) -> "DiagnosisEngine":
        """Build an engine from settings, falling back to the bundled data."""
        settings = settings or DiagnosisSettings()
        if settings.questions_path:
            catalog = QuestionCatalog.from_file(settings.questions_path)
        else:
            catalog = load_default_catalog()
        config = load_scoring_config(settings.scoring_path)
        return cls(catalog, config)

    @classmethod
    def default(cls) -> "DiagnosisEngine":
        """Engine over the bundled catalog and scoring configuration."""
        return cls(load_default_catalog(), load_scoring_config())

    def diagnose(self, answers: Iterable[AnswerLike]) -> DiagnoseResult:
        """Diagnose a complete answer set.

        Args:
            answers: One answer per catalog question, as AnswerInput models
                or mappings with ``questionId`` and ``optionKey``/``optionKeys``

        Returns:
            DiagnoseResult with the type id, score breakdown and message

        Raises:
            ValidationError: On the first problem found in the answers
        """
        parsed = parse_answers(answers)
        ensure_all_questions_answered(parsed, self.catalog.questions)

        raw_scores = aggregate_raw_scores(parsed, self.catalog.lookup)
        normalized = normalize_scores(raw_scores, self.catalog.max_scores)
        positive, penalties = separate_penalties(normalized)

        category_scores = {
            profile.key.value: compute_profile_score(profile, positive, penalties)
            for profile in self.config.categories
        }
        vector_scores = {
            profile.key.value: compute_profile_score(profile, positive, penalties)
            for profile in self.config.vectors
        }

        top_category = select_top_profile(
            self.config.categories, category_scores, self._category_ranks
        )
        top_vector = select_top_profile(
            self.config.vectors, vector_scores, self._vector_ranks
        )
        category = self.config.get_category(top_category.key)
        vector = self.config.get_vector(top_vector.key)

        message = self.composer.compose(category, vector, penalties, positive)
        type_id = f"{category.key.value}-{vector.key.value}"
        logger.debug(
            "Diagnosed %s (category %.3f, vector %.3f)",
            type_id, top_category.score, top_vector.score,
        )

        return DiagnoseResult(
            type_id=type_id,
            category=category.key,
            vector=vector.key,
            scores=ScoreBreakdown(
                raw=dict(raw_scores),
                normalized=dict(positive),
                penalties=dict(penalties),
                categories=category_scores,
                vectors=vector_scores,
            ),
            message=message,
        )

    def get_questions(self) -> list[Question]:
        """Questions in catalog order."""
        return list(self.catalog.questions)

    @property
    def max_scores(self) -> ScoreMap:
        """Maximum raw score per dimension (a copy)."""
        return self.catalog.max_scores

    def type_ids(self) -> list[str]:
        """Every category-vector combination, in profile order."""
        return [
            f"{category.key.value}-{vector.key.value}"
            for category in self.config.categories
            for vector in self.config.vectors
        ]

    def resolve_type(self, type_id: str) -> tuple[CategoryProfile, VectorProfile]:
        """Profiles behind a ``category-vector`` type id.

        Raises:
            ValueError: If the type id does not name a known combination
        """
        category_key, _, vector_key = type_id.strip().partition("-")
        category = self.config.get_category(category_key)
        vector = self.config.get_vector(vector_key)
        if category is None or vector is None:
            raise ValueError(f"Unknown typeId: {type_id}")
        return category, vector

    def describe_type(self, type_id: str, reference_name: Optional[str] = None) -> str:
        """Message for a type id without any answers behind it."""
        category, vector = self.resolve_type(type_id)
        return self.composer.compose_for_type(category, vector, reference_name)


def parse_answers(answers: Iterable[AnswerLike]) -> list[AnswerInput]:
    """Coerce answer records into AnswerInput models.

    Raises:
        ValidationError: If the collection or any record is malformed
    """
    if isinstance(answers, (str, bytes, Mapping)) or not isinstance(answers, Iterable):
        raise ValidationError("answers must be a list of answer records")

    parsed = []
    for index, answer in enumerate(answers):
        if isinstance(answer, AnswerInput):
            parsed.append(answer)
            continue
        try:
            parsed.append(AnswerInput.model_validate(answer))
        except SchemaValidationError as e:
            raise ValidationError(f"Malformed answer at index {index}: {e}") from e
    return parsed
