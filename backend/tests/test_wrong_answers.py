"""
Tests for the wrong-answer report helpers.
"""
from vocab_trainer.utils.wrong_answers import count_questions, extract_wrong_answers, find_question

SUPER_JSON = {
    "metadata": {"totalQuestions": 3},
    "questions_type_1": [{
        "id": "q1", "type": "questions_type_1", "word": "apple", "prompt": "?",
        "choices": [{"id": "a", "text": "苹果"}, {"id": "b", "text": "香蕉"}],
        "correctChoiceId": "a",
    }],
    "questions_type_2": [{
        "id": "q2", "type": "questions_type_2", "word": "pear", "prompt": "?",
        "choices": [{"id": "a", "text": "pear"}, {"id": "b", "text": "peach"}],
        "correctChoiceId": "a",
    }],
    "questions_type_3": [{
        "id": "q3", "type": "questions_type_3", "word": "kiwi", "prompt": "k___",
        "correctAnswer": "kiwi",
    }],
}


class TestHelpers:
    def test_count(self):
        assert count_questions(SUPER_JSON) == 3
        assert count_questions({}) == 0

    def test_find(self):
        assert find_question(SUPER_JSON, "q3")["word"] == "kiwi"
        assert find_question(SUPER_JSON, "zz") is None


class TestExtractWrongAnswers:
    def test_only_incorrect(self):
        answers = [
            {"questionId": "q1", "choiceId": "b", "correct": False, "elapsedMs": 1},
            {"questionId": "q2", "choiceId": "a", "correct": True, "elapsedMs": 1},
            {"questionId": "q3", "userInput": "kiwu", "correct": False, "elapsedMs": 1},
        ]
        items = extract_wrong_answers(answers, SUPER_JSON)
        assert [i["question"]["id"] for i in items] == ["q1", "q3"]
        assert items[0]["userAnswer"] == "香蕉"
        assert items[0]["correctAnswer"] == "苹果"
        assert items[1]["userAnswer"] == "kiwu"
        assert items[1]["correctAnswer"] == "kiwi"

    def test_unknown_question_skipped(self):
        answers = [{"questionId": "nope", "choiceId": "a", "correct": False, "elapsedMs": 1}]
        assert extract_wrong_answers(answers, SUPER_JSON) == []

    def test_missing_choice(self):
        answers = [{"questionId": "q1", "correct": False, "elapsedMs": 1}]
        assert extract_wrong_answers(answers, SUPER_JSON)[0]["userAnswer"] == ""
