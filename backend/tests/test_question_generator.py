"""
Tests for question_generator. chat_json is patched; no network.
"""
from unittest.mock import patch

import pytest

from vocab_trainer.core.config import get_settings
from vocab_trainer.services.question_generator import (
    build_type_response_schema,
    generate_questions_for_type,
    generate_super_json,
    run_with_model_fallbacks,
    temperature_for,
)

CHAT = "vocab_trainer.services.question_generator.chat_json"


def _mc(qid: str, word: str, correct: str = "a") -> dict:
    return {
        "id": qid,
        "word": word,
        "prompt": f"Pick {word}",
        "choices": [{"id": c, "text": f"{word}-{c}"} for c in "abcd"],
        "correctChoiceId": correct,
        "explanation": "because",
        "type": "questions_type_1",
    }


class TestModelFallbacks:
    def test_first_success_wins(self):
        calls = []

        def call(model):
            calls.append(model)
            return model

        assert run_with_model_fallbacks("t", call, ["m1", "m2"]) == "m1"
        assert calls == ["m1"]

    def test_falls_through_to_next(self):
        def call(model):
            if model == "m1":
                raise RuntimeError("m1 down")
            return model

        assert run_with_model_fallbacks("t", call, ["m1", "m2"]) == "m2"

    def test_last_error_reraised(self):
        def call(model):
            raise RuntimeError(f"{model} down")

        with pytest.raises(RuntimeError, match="m3 down"):
            run_with_model_fallbacks("t", call, ["m1", "m2", "m3"])

    def test_default_models_from_settings(self):
        seen = []

        def call(model):
            seen.append(model)
            raise ValueError("nope")

        with pytest.raises(ValueError):
            run_with_model_fallbacks("t", call)
        assert seen == get_settings().model_fallbacks


class TestHelpers:
    def test_temperature(self):
        assert temperature_for("advanced") == 0.85
        assert temperature_for("beginner") == 0.65

    def test_type_schema_bounds(self):
        schema = build_type_response_schema("questions_type_2", 2)["json_schema"]["schema"]
        arr = schema["properties"]["questions_type_2"]
        assert arr["minItems"] == 3
        assert arr["maxItems"] == 3

        big = build_type_response_schema("questions_type_1", 40)["json_schema"]["schema"]
        assert big["properties"]["questions_type_1"]["minItems"] == 30
        assert big["properties"]["questions_type_1"]["maxItems"] == 40


class TestGenerateQuestionsForType:
    def test_stamps_type_and_keeps_questions(self):
        bundle = {"questions_type_2": [_mc(f"q{i}", w) for i, w in enumerate(["a", "b", "c"])]}
        with patch(CHAT, return_value=bundle) as chat:
            out = generate_questions_for_type("questions_type_2", ["a", "b", "c"], "beginner")
        assert len(out) == 3
        assert {q["type"] for q in out} == {"questions_type_2"}
        assert sorted(q["id"] for q in out) == ["q0", "q1", "q2"]
        assert chat.call_args.kwargs["temperature"] == 0.65

    def test_consecutive_answer_slots_differ(self):
        bundle = {"questions_type_1": [_mc(f"q{i}", "w") for i in range(12)]}
        with patch(CHAT, return_value=bundle):
            out = generate_questions_for_type("questions_type_1", ["w"], "advanced")
        slots = [[c["id"] for c in q["choices"]].index(q["correctChoiceId"]) for q in out]
        assert all(a != b for a, b in zip(slots, slots[1:]))

    def test_asks_for_one_question_per_word(self):
        words = ["a", "b", "c", "d", "e"]
        bundle = {"questions_type_1": [_mc(f"q{i}", w) for i, w in enumerate(words)]}
        with patch(CHAT, return_value=bundle) as chat:
            generate_questions_for_type("questions_type_1", words, "beginner")
        schema = chat.call_args.kwargs["response_format"]["json_schema"]["schema"]
        assert schema["properties"]["questions_type_1"]["maxItems"] == 5
        assert "Number of questions: 5" in chat.call_args.args[1][1]["content"]

    def test_malformed_reply_tries_next_model(self):
        replies = [{"unexpected": []}, {"questions_type_1": [_mc("q1", "w")]}]
        with patch(CHAT, side_effect=replies) as chat:
            out = generate_questions_for_type("questions_type_1", ["w"], "beginner")
        assert len(out) == 1
        assert chat.call_count == 2

    def test_fill_in_hint_added(self):
        bundle = {"questions_type_3": [
            {"id": "f1", "word": "apple", "prompt": "I ate an _____.", "correctAnswer": "Apple",
             "explanation": ""},
            {"id": "f2", "word": "pear", "prompt": "_____", "correctAnswer": "pear", "hint": "p___",
             "explanation": ""},
        ]}
        with patch(CHAT, return_value=bundle):
            out = generate_questions_for_type("questions_type_3", ["apple", "pear"], "beginner")
        hints = {q["id"]: q["hint"] for q in out}
        assert hints == {"f1": "a_____", "f2": "p___"}

    def test_empty_words(self):
        with pytest.raises(ValueError):
            generate_questions_for_type("questions_type_1", [], "beginner")


class TestGenerateSuperJson:
    def test_assembles_bundle(self):
        reply = {
            "metadata": {"totalQuestions": 99, "words": ["apple"], "difficulty": "beginner", "generatedAt": "x"},
            "questions_type_1": [_mc("a1", "apple"), _mc("a2", "pear")],
            "questions_type_2": [_mc("b1", "apple")],
            "questions_type_3": [{"id": "c1", "word": "apple", "prompt": "a____",
                                  "correctAnswer": "apple", "explanation": ""}],
        }
        with patch(CHAT, return_value=reply):
            out = generate_super_json(["Apple", "pear"], "beginner")
        assert out["metadata"]["totalQuestions"] == 4
        assert out["questions_type_3"][0]["type"] == "questions_type_3"
        assert out["questions_type_2"][0]["type"] == "questions_type_2"

    def test_empty_words(self):
        with pytest.raises(ValueError):
            generate_super_json([" "], "beginner")

    def test_all_models_fail(self):
        with patch(CHAT, side_effect=RuntimeError("down")):
            with pytest.raises(RuntimeError, match="down"):
                generate_super_json(["apple"], "beginner")
