"""Shared fixtures for the diagnosis engine tests."""

import json
from pathlib import Path

import pytest

from type_diagnosis.catalog import load_default_catalog
from type_diagnosis.config import load_scoring_config
from type_diagnosis.engine import DiagnosisEngine
from type_diagnosis.schema import QuestionType


FIXTURE_DIR = Path(__file__).parent / "fixtures"

# Action-oriented answers; the golden challenge-speed set
CHALLENGE_SPEED = {
    "Q01": "A", "Q02": "A", "Q03": "A", "Q04": "B", "Q05": "A",
    "Q06": "A", "Q07": "B", "Q08": "A", "Q09": "A", "Q10": "B",
    "Q11": "A", "Q12": "A", "Q13": "B", "Q14": "A",
    "Q15": ["Achiever", "Autonomy", "Growth"],
    "Q16": "D",
    "Q17": ["silent_alone"],
    "Q18": "A", "Q19": "B", "Q20": "A", "Q21": "A", "Q22": "A",
    "Q23": "B", "Q24": "A", "Q25": "A",
}


def build_answers(selections: dict, questions=None) -> list[dict]:
    """Turn {question_id: key or [keys]} into answer records in catalog order."""
    questions = questions if questions is not None else load_default_catalog().questions
    answers = []
    for question in questions:
        selection = selections[question.id]
        if question.type == QuestionType.SINGLE:
            key = selection[0] if isinstance(selection, list) else selection
            answers.append({"questionId": question.id, "optionKey": key})
        else:
            keys = selection if isinstance(selection, list) else [selection]
            answers.append({"questionId": question.id, "optionKeys": keys})
    return answers


def load_fixture(name: str) -> dict:
    with open(FIXTURE_DIR / f"{name}.json", "r", encoding="utf-8") as f:
        return json.load(f)


@pytest.fixture(scope="module")
def catalog():
    return load_default_catalog()


@pytest.fixture(scope="module")
def scoring_config():
    return load_scoring_config()


@pytest.fixture(scope="module")
def engine(catalog, scoring_config):
    return DiagnosisEngine(catalog, scoring_config)
