"""Question catalog loading, validation and lookup."""

import json
import logging
from functools import cached_property, lru_cache
from importlib import resources
from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic import TypeAdapter
from pydantic import ValidationError as SchemaValidationError

from .schema import Question, QuestionType
from .scoring import ScoreMap, compute_max_scores

logger = logging.getLogger(__name__)

DEFAULT_QUESTIONS_FILE = "questions.json"

_QUESTION_LIST = TypeAdapter(list[Question])


def validate_questions(questions: list[Question]) -> list[str]:
    """Check a question list for structural problems.

    Returns:
        A list of issues; empty when the questions are usable
    """
    issues = []
    seen_ids: set[str] = set()

    for question in questions:
        if question.id in seen_ids:
            issues.append(f"Duplicate question id: {question.id}")
        seen_ids.add(question.id)

        if not question.options:
            issues.append(f"Question {question.id} has no options")
            continue

        option_keys: set[str] = set()
        for option in question.options:
            if option.key in option_keys:
                issues.append(f"Duplicate option key '{option.key}' in question {question.id}")
            option_keys.add(option.key)

        if question.max_select is not None:
            if question.max_select < 1:
                issues.append(f"Question {question.id} has max_select below 1")
            elif question.max_select > len(question.options):
                issues.append(
                    f"Question {question.id} has max_select {question.max_select} "
                    f"but only {len(question.options)} options"
                )
            if question.type == QuestionType.SINGLE and question.max_select != 1:
                issues.append(f"Single choice question {question.id} must not allow multiple selections")

    return issues


class QuestionCatalog:
    """Immutable, validated list of questions.

    Maximum scores are derived from the questions on first access and reused
    for the lifetime of the catalog.
    """

    def __init__(self, questions: list[Question]):
        issues = validate_questions(questions)
        if issues:
            raise ValueError("Invalid question catalog: " + "; ".join(issues))
        self._questions = tuple(questions)
        self._lookup = {q.id: q for q in self._questions}

    @classmethod
    def from_data(cls, data: object) -> "QuestionCatalog":
        """Build a catalog from parsed JSON/YAML data.

        Accepts either a bare list of questions or ``{"questions": [...]}``.
        """
        if isinstance(data, dict):
            data = data.get("questions")
        try:
            questions = _QUESTION_LIST.validate_python(data)
        except SchemaValidationError as e:
            raise ValueError(f"Error validating question catalog: {e}") from e
        return cls(questions)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "QuestionCatalog":
        """Load a catalog from a JSON or YAML file."""
        path = Path(path)
        if not path.is_file():
            raise FileNotFoundError(f"Question catalog not found at {path}")

        catalog = cls.from_data(_read_data_file(path))
        logger.info("Loaded %d questions from %s", len(catalog), path)
        return catalog

    @property
    def questions(self) -> tuple[Question, ...]:
        return self._questions

    @property
    def lookup(self) -> dict[str, Question]:
        """Questions keyed by id (a copy)."""
        return dict(self._lookup)

    def get(self, question_id: str) -> Optional[Question]:
        return self._lookup.get(question_id)

    @cached_property
    def _max_scores(self) -> ScoreMap:
        totals = compute_max_scores(self._questions)
        logger.debug("Computed maximum scores for %d dimensions", len(totals))
        return totals

    @property
    def max_scores(self) -> ScoreMap:
        """Theoretical maximum raw score per dimension (a copy)."""
        return ScoreMap(self._max_scores)

    @property
    def dimensions(self) -> list[str]:
        """Every dimension with a positive maximum, in catalog order."""
        return list(self._max_scores)

    def __len__(self) -> int:
        return len(self._questions)

    def __iter__(self):
        return iter(self._questions)


def _read_data_file(path: Path) -> object:
    """Parse a JSON or YAML data file."""
    suffix = path.suffix.lower()
    try:
        with open(path, 'r', encoding='utf-8') as f:
            if suffix == ".json":
                return json.load(f)
            if suffix in (".yaml", ".yml"):
                return yaml.safe_load(f)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ValueError(f"Error parsing {path}: {e}") from e
    raise ValueError(f"Unsupported file type for {path}: expected .json, .yaml or .yml")


@lru_cache(maxsize=1)
def load_default_catalog() -> QuestionCatalog:
    """Load the question catalog bundled with the package."""
    source = resources.files("type_diagnosis") / "data" / DEFAULT_QUESTIONS_FILE
    with source.open('r', encoding='utf-8') as f:
        data = json.load(f)
    catalog = QuestionCatalog.from_data(data)
    logger.info("Loaded %d bundled questions", len(catalog))
    return catalog
