"""Scoring primitives for the Type Diagnosis Engine.

Turns a validated answer set into raw per-dimension totals, normalizes the
totals against the catalog's theoretical maxima and scores profiles from
the normalized values. Every function here is pure.
"""

import math
from collections.abc import Iterable, Mapping, Sequence
from typing import Optional, Union

from .errors import ValidationError
from .schema import (
    PENALTY_PREFIX,
    AnswerInput,
    CategoryProfile,
    Question,
    QuestionType,
    VectorProfile,
)


class ScoreMap(dict):
    """Dimension -> score mapping where absent dimensions read as 0.0.

    Lookups of a missing dimension never insert it, so iteration only ever
    covers dimensions that were actually scored.
    """

    def __missing__(self, dimension: str) -> float:
        return 0.0


def compute_max_scores(questions: Iterable[Question]) -> ScoreMap:
    """Theoretical maximum raw score per dimension.

    Single-select questions contribute their largest positive option value
    per dimension. Multi-select questions contribute the sum of their top
    ``min(cap, count)`` positive option values per dimension.

    The result is a per-dimension upper bound: each dimension assumes every
    question answered in that dimension's favour, which no single answer
    set can do for all dimensions at once. It is the normalization
    reference, not a reachable score.
    """
    totals = ScoreMap()

    for question in questions:
        if question.type == QuestionType.SINGLE:
            dimension_max: dict[str, float] = {}
            for option in question.options:
                for dimension, value in option.scores.items():
                    if value <= 0:
                        continue
                    dimension_max[dimension] = max(dimension_max.get(dimension, 0.0), value)
            for dimension, value in dimension_max.items():
                totals[dimension] += value
            continue

        contributions: dict[str, list[float]] = {}
        cap = question.selection_cap
        for option in question.options:
            for dimension, value in option.scores.items():
                if value <= 0:
                    continue
                contributions.setdefault(dimension, []).append(value)
        for dimension, values in contributions.items():
            best = sorted(values, reverse=True)[:min(cap, len(values))]
            totals[dimension] += sum(best)

    return totals


def normalize_scores(
    raw: Mapping[str, float],
    max_scores: Mapping[str, float],
    dimensions: Optional[Sequence[str]] = None,
) -> ScoreMap:
    """Map raw totals into [0, 1] using the precomputed maxima.

    Args:
        raw: Raw per-dimension totals
        max_scores: Theoretical maximum per dimension
        dimensions: Dimensions to normalize (default: every key of max_scores)

    Returns:
        Normalized scores; a dimension with no positive maximum is 0
    """
    if dimensions is None:
        dimensions = list(max_scores)

    normalized = ScoreMap()
    for dimension in dimensions:
        maximum = max_scores.get(dimension, 0.0)
        raw_value = raw.get(dimension, 0.0)
        if maximum <= 0:
            normalized[dimension] = 0.0
            continue
        value = min(raw_value / maximum, 1.0)
        normalized[dimension] = max(value, 0.0) if math.isfinite(value) else 0.0

    return normalized


def separate_penalties(normalized: Mapping[str, float]) -> tuple[ScoreMap, ScoreMap]:
    """Split normalized scores into (positive, penalties) by dimension prefix."""
    positive = ScoreMap()
    penalties = ScoreMap()
    for dimension, value in normalized.items():
        if dimension.startswith(PENALTY_PREFIX):
            penalties[dimension] = value
        else:
            positive[dimension] = value
    return positive, penalties


def compute_profile_score(
    profile: Union[CategoryProfile, VectorProfile],
    positive: Mapping[str, float],
    penalties: Mapping[str, float],
) -> float:
    """Weighted positive score minus weighted penalties, floored at 0."""
    score = 0.0
    for dimension, weight in profile.weights.items():
        score += positive.get(dimension, 0.0) * weight

    if profile.penalties:
        penalty_total = 0.0
        for dimension, weight in profile.penalties.items():
            penalty_total += penalties.get(dimension, 0.0) * weight
        score -= penalty_total

    return max(0.0, score)


# =============================================================================
# Answer validation and aggregation
# =============================================================================


def resolve_selected_keys(answer: AnswerInput, question: Question) -> list[str]:
    """Resolve the option keys an answer selects for its question.

    Raises:
        ValidationError: If the selection shape does not fit the question type
            or a multi-select answer exceeds the question's cap
    """
    if question.type == QuestionType.SINGLE:
        if answer.option_key is not None:
            return [answer.option_key]
        if answer.option_keys is not None:
            if len(answer.option_keys) != 1:
                raise ValidationError(
                    f"Single choice question {question.id} expects exactly one option"
                )
            return [answer.option_keys[0]]
        raise ValidationError(f"Missing optionKey for question {question.id}")

    if answer.option_keys is None:
        raise ValidationError(f"Missing optionKeys for question {question.id}")

    # dict.fromkeys keeps first-seen order
    unique_keys = list(dict.fromkeys(answer.option_keys))
    cap = question.selection_cap
    if len(unique_keys) > cap:
        raise ValidationError(f"Question {question.id} allows up to {cap} selections")
    return unique_keys


def aggregate_raw_scores(
    answers: Iterable[AnswerInput],
    question_lookup: Mapping[str, Question],
) -> ScoreMap:
    """Sum the contributions of every selected option.

    Raises:
        ValidationError: On an unknown question id, an empty selection or an
            option key the question does not define
    """
    totals = ScoreMap()
    for answer in answers:
        question = question_lookup.get(answer.question_id)
        if question is None:
            raise ValidationError(f"Unknown question id: {answer.question_id}")

        selected_keys = resolve_selected_keys(answer, question)
        if not selected_keys:
            raise ValidationError(f"No options selected for question {question.id}")

        for key in selected_keys:
            option = question.get_option(key)
            if option is None:
                raise ValidationError(f"Invalid option {key} for question {question.id}")
            for dimension, value in option.scores.items():
                totals[dimension] += value

    return totals


def ensure_all_questions_answered(
    answers: Iterable[AnswerInput],
    questions: Iterable[Question],
) -> None:
    """Check that every question is answered exactly once.

    Raises:
        ValidationError: On a duplicate or missing answer
    """
    answered: set[str] = set()
    for answer in answers:
        if answer.question_id in answered:
            raise ValidationError(f"Duplicate answer for question {answer.question_id}")
        answered.add(answer.question_id)

    for question in questions:
        if question.id not in answered:
            raise ValidationError(f"Missing answer for question {question.id}")
