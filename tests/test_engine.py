"""Tests for the diagnosis engine end to end."""

import random

import pytest

from type_diagnosis.engine import DiagnosisEngine, parse_answers
from type_diagnosis.errors import ValidationError
from type_diagnosis.schema import AnswerInput, CategoryKey, QuestionType, VectorKey

from conftest import CHALLENGE_SPEED, build_answers, load_fixture


CHALLENGE_SPEED_MESSAGE = (
    "You are a Challenger × Speed type: you take the initiative and drive things forward, "
    "and you move faster than most people expect. "
    "On the other hand, impatience can make you skip steps and leave others behind. "
    "To make the most of this strength, take on goals that feel slightly out of reach "
    "and set a visible finish line. "
    "In particular, keep your cycles short and check results often. "
    "As a next step, carve out one block of time each week that is entirely yours to direct."
)


def random_answers(questions, rng: random.Random) -> list[dict]:
    answers = []
    for question in questions:
        keys = [option.key for option in question.options]
        if question.type == QuestionType.SINGLE:
            answers.append({"questionId": question.id, "optionKey": rng.choice(keys)})
        else:
            count = rng.randint(1, question.selection_cap)
            answers.append({"questionId": question.id, "optionKeys": rng.sample(keys, count)})
    return answers


# Pinned scores per bundled answer fixture
GOLDEN_CASES = {
    "challenge-speed": {
        "categories": {"challenge": 0.6 + 0.4 - 0.1 / 3, "create": 0.43, "support": 0.0, "strategy": 0.15},
        "vectors": {"speed": 0.9, "structure": 0.1, "explore": 1 / 3, "connect": 0.0},
        "caution": "impatience can make you skip steps and leave others behind",
        "next_action": "carve out one block of time each week that is entirely yours to direct",
    },
    "support-connect": {
        "categories": {"challenge": 0.1, "create": 0.26, "support": 0.9, "strategy": 0.49},
        "vectors": {"speed": 0.7 / 3 - 0.1, "structure": 0.58, "explore": 0.0, "connect": 1.0},
        "caution": "you tend to take on more than you can comfortably carry",
        # contribution and connection tie at 1.0; the later dimension wins
        "next_action": "reach out to one person you have been meaning to catch up with",
    },
    "create-explore": {
        "categories": {
            "challenge": 0.0,
            "create": 0.85 + 0.15 * 4 / 7,
            "support": 0.5 * 4 / 7 + 0.38,
            "strategy": 0.21,
        },
        "vectors": {"speed": 0.0, "structure": 0.22, "explore": 1.0, "connect": 0.36 + 0.2 * 4 / 7},
        "caution": "impatience can make you skip steps and leave others behind",
        "next_action": "offer your help on one task that matters to someone else",
    },
    "strategy-structure": {
        "categories": {
            "challenge": 0.2 - 0.1 / 3,
            "create": 0.0,
            "support": 0.5 / 7 + 0.06,
            "strategy": 1.0,
        },
        "vectors": {"speed": 0.0, "structure": 1.0, "explore": 0.0, "connect": 0.12 + 0.2 / 7},
        "caution": "you can hold on to a plan even after the situation has changed",
        "next_action": "list the routines that keep you steady and protect time for them",
    },
}


class TestGoldenDiagnosis:
    """Tests against known answer sets."""

    @pytest.mark.parametrize("name", list(GOLDEN_CASES))
    def test_fixture_type(self, engine, name):
        fixture = load_fixture(name)
        result = engine.diagnose(fixture["answers"])
        category, vector = name.split("-")
        assert result.type_id == fixture["typeId"] == name
        assert result.category == CategoryKey(category)
        assert result.vector == VectorKey(vector)

    @pytest.mark.parametrize("name", list(GOLDEN_CASES))
    def test_fixture_scores(self, engine, name):
        expected = GOLDEN_CASES[name]
        scores = engine.diagnose(load_fixture(name)["answers"]).scores

        assert set(scores.categories) == set(expected["categories"])
        for key, value in expected["categories"].items():
            assert scores.categories[key] == pytest.approx(value, abs=1e-9), key
        assert set(scores.vectors) == set(expected["vectors"])
        for key, value in expected["vectors"].items():
            assert scores.vectors[key] == pytest.approx(value, abs=1e-9), key

    @pytest.mark.parametrize("name", list(GOLDEN_CASES))
    def test_fixture_message_drivers(self, engine, name):
        expected = GOLDEN_CASES[name]
        message = engine.diagnose(load_fixture(name)["answers"]).message
        assert f"On the other hand, {expected['caution']}." in message
        assert message.endswith(f"As a next step, {expected['next_action']}.")

    def test_fixture_breakdown(self, engine):
        result = engine.diagnose(load_fixture("challenge-speed")["answers"])
        scores = result.scores

        assert scores.raw["drive"] == 6
        assert scores.raw["pace"] == 6
        assert scores.normalized["ideas"] == pytest.approx(0.6)
        assert scores.normalized["order"] == pytest.approx(0.1)
        assert scores.normalized["motivation.autonomy"] == 1
        assert scores.penalties["ng.impatience"] == pytest.approx(1 / 3)
        assert scores.penalties["ng.isolation"] == pytest.approx(0.25)
        assert not any(key.startswith("ng.") for key in scores.normalized)
        assert all(key.startswith("ng.") for key in scores.penalties)

    def test_fixture_message(self, engine):
        result = engine.diagnose(load_fixture("challenge-speed")["answers"])
        assert result.message == CHALLENGE_SPEED_MESSAGE

    def test_accepts_answer_models(self, engine):
        answers = [AnswerInput.model_validate(a) for a in build_answers(CHALLENGE_SPEED)]
        assert engine.diagnose(answers).type_id == "challenge-speed"

    def test_answer_order_does_not_matter(self, engine):
        answers = build_answers(CHALLENGE_SPEED)
        assert engine.diagnose(list(reversed(answers))).type_id == "challenge-speed"

    def test_repeat_calls_are_identical(self, engine):
        answers = build_answers(CHALLENGE_SPEED)
        first = engine.diagnose(answers).model_dump_json(by_alias=True)
        second = engine.diagnose(answers).model_dump_json(by_alias=True)
        assert first == second

    def test_serializes_with_wire_names(self, engine):
        payload = engine.diagnose(build_answers(CHALLENGE_SPEED)).model_dump(by_alias=True)
        assert payload["typeId"] == "challenge-speed"
        assert payload["category"] == "challenge"
        assert set(payload["scores"]) == {"raw", "normalized", "penalties", "categories", "vectors"}


class TestDiagnoseErrors:
    """Tests for rejected answer sets."""

    def test_missing_answer(self, engine):
        answers = [a for a in build_answers(CHALLENGE_SPEED) if a["questionId"] != "Q07"]
        with pytest.raises(ValidationError, match="Missing answer for question Q07"):
            engine.diagnose(answers)

    def test_duplicate_answer(self, engine):
        answers = build_answers(CHALLENGE_SPEED)
        answers.append({"questionId": "Q01", "optionKey": "B"})
        with pytest.raises(ValidationError, match="Duplicate answer for question Q01"):
            engine.diagnose(answers)

    def test_unknown_option(self, engine):
        answers = build_answers({**CHALLENGE_SPEED, "Q03": "Z"})
        with pytest.raises(ValidationError, match="Invalid option Z for question Q03"):
            engine.diagnose(answers)

    def test_unknown_question(self, engine):
        answers = build_answers(CHALLENGE_SPEED)
        answers[0] = {"questionId": "Q99", "optionKey": "A"}
        with pytest.raises(ValidationError):
            engine.diagnose(answers)

    def test_too_many_selections(self, engine):
        answers = build_answers({**CHALLENGE_SPEED, "Q17": ["pressure", "routine", "conflict"]})
        with pytest.raises(ValidationError, match="Question Q17 allows up to 2 selections"):
            engine.diagnose(answers)

    def test_malformed_record(self, engine):
        answers = build_answers(CHALLENGE_SPEED)
        answers[2] = {"optionKey": "A"}
        with pytest.raises(ValidationError, match="Malformed answer at index 2"):
            engine.diagnose(answers)

    def test_unexpected_field(self, engine):
        answers = build_answers(CHALLENGE_SPEED)
        answers[0] = {"questionId": "Q01", "optionKey": "A", "weight": 3}
        with pytest.raises(ValidationError, match="Malformed answer"):
            engine.diagnose(answers)

    def test_single_answer_with_both_selection_fields(self, engine):
        answers = build_answers(CHALLENGE_SPEED)
        answers[0] = {"questionId": "Q01", "optionKey": "A", "optionKeys": ["A", "B"]}
        with pytest.raises(ValidationError, match="Malformed answer at index 0"):
            engine.diagnose(answers)

    def test_multi_answer_with_both_selection_fields(self, engine):
        answers = build_answers(CHALLENGE_SPEED)
        index = next(i for i, a in enumerate(answers) if a["questionId"] == "Q15")
        answers[index] = {"questionId": "Q15", "optionKey": "Growth", "optionKeys": ["Growth"]}
        with pytest.raises(ValidationError, match="mutually exclusive"):
            engine.diagnose(answers)

    def test_answer_model_rejects_both_selection_fields(self):
        with pytest.raises(ValueError, match="optionKey and optionKeys are mutually exclusive"):
            AnswerInput.model_validate({"questionId": "Q01", "optionKey": "A", "optionKeys": ["A"]})

    @pytest.mark.parametrize("payload", ["Q01", {"questionId": "Q01"}, 42, None])
    def test_not_a_list(self, engine, payload):
        with pytest.raises(ValidationError, match="answers must be a list"):
            engine.diagnose(payload)

    def test_validation_error_is_value_error(self):
        with pytest.raises(ValueError):
            parse_answers("not answers")


class TestRandomAnswerSets:
    """Property checks over seeded random answer sets."""

    def test_scores_stay_in_range(self, engine):
        rng = random.Random(20240601)
        type_ids = set(engine.type_ids())
        for _ in range(200):
            result = engine.diagnose(random_answers(engine.get_questions(), rng))
            assert result.type_id in type_ids
            for value in list(result.scores.normalized.values()) + list(result.scores.penalties.values()):
                assert 0.0 <= value <= 1.0
            for value in list(result.scores.categories.values()) + list(result.scores.vectors.values()):
                assert value >= 0.0
            assert result.message.count(". ") == 4


class TestTypeCatalog:
    """Tests for type id listing and lookup."""

    def test_type_ids(self, engine):
        type_ids = engine.type_ids()
        assert len(type_ids) == 16
        assert len(set(type_ids)) == 16
        assert type_ids[0] == "challenge-speed"
        assert "strategy-connect" in type_ids

    def test_resolve_type(self, engine):
        category, vector = engine.resolve_type("create-explore")
        assert category.label == "Creator"
        assert vector.label == "Explore"

    @pytest.mark.parametrize("type_id", ["create", "create-", "creative-explore", "explore-create", ""])
    def test_resolve_unknown_type(self, engine, type_id):
        with pytest.raises(ValueError, match="Unknown typeId"):
            engine.resolve_type(type_id)

    def test_describe_type(self, engine):
        message = engine.describe_type("support-structure", reference_name="Grace")
        assert message.startswith("The type associated with Grace is a Supporter × Structure type")
        assert "you may put your own priorities last for too long" in message

    def test_get_questions_is_a_copy(self, engine):
        questions = engine.get_questions()
        questions.clear()
        assert len(engine.get_questions()) == 25

    def test_max_scores(self, engine):
        max_scores = engine.max_scores
        assert max_scores["order"] == 10
        assert max_scores["empathy"] == 7
        assert max_scores["motivation.achievement"] == 5
        assert max_scores["ng.isolation"] == 4


class TestEngineConstruction:
    """Tests for building engines from bundled data and settings."""

    def test_default_engine(self):
        engine = DiagnosisEngine.default()
        assert engine.diagnose(build_answers(CHALLENGE_SPEED)).type_id == "challenge-speed"

    def test_from_settings_defaults(self):
        engine = DiagnosisEngine.from_settings()
        assert len(engine.get_questions()) == 25
