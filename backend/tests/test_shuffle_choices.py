"""
Tests for shuffle_choices: Fisher-Yates, answer-slot rotation, forced swap.
"""
import random

from vocab_trainer.utils.shuffle_choices import (
    MAX_ATTEMPTS,
    fisher_yates,
    shuffle_question_choices,
)


def _question(qid: str, correct: str = "b", n: int = 4) -> dict:
    ids = "abcdefgh"[:n]
    return {
        "id": qid,
        "word": "apple",
        "prompt": f"prompt {qid}",
        "choices": [{"id": c, "text": f"text-{c}"} for c in ids],
        "correctChoiceId": correct,
        "explanation": "",
        "type": "questions_type_1",
    }


def _correct_index(question: dict) -> int:
    return [c["id"] for c in question["choices"]].index(question["correctChoiceId"])


class _FixedRandom(random.Random):
    """randint always returns the upper bound, so fisher_yates is the identity."""

    def randint(self, a, b):
        return b


# ── fisher_yates ─────────────────────────────────────────────────────────────

class TestFisherYates:
    def test_returns_permutation(self):
        rng = random.Random(7)
        items = list(range(10))
        for _ in range(50):
            out = fisher_yates(items, rng)
            assert sorted(out) == items

    def test_input_not_mutated(self):
        items = [1, 2, 3, 4]
        fisher_yates(items, random.Random(1))
        assert items == [1, 2, 3, 4]

    def test_empty_and_single(self):
        assert fisher_yates([]) == []
        assert fisher_yates(["x"]) == ["x"]


# ── shuffle_question_choices ─────────────────────────────────────────────────

class TestShuffleQuestionChoices:
    def test_choice_sets_preserved(self):
        rng = random.Random(3)
        questions = [_question(f"q{i}", correct="abcd"[i % 4]) for i in range(30)]
        result = shuffle_question_choices(questions, rng=rng)
        for before, after in zip(questions, result.questions):
            assert sorted(c["id"] for c in after["choices"]) == sorted(c["id"] for c in before["choices"])
            assert after["correctChoiceId"] == before["correctChoiceId"]

    def test_no_consecutive_repeat_for_multi_choice(self):
        for seed in range(40):
            rng = random.Random(seed)
            questions = [_question(f"q{i}", correct="abcd"[rng.randrange(4)]) for i in range(25)]
            result = shuffle_question_choices(questions, rng=rng)
            indices = [_correct_index(q) for q in result.questions]
            for prev, cur in zip(indices, indices[1:]):
                assert prev != cur

    def test_initial_prev_index_respected(self):
        for seed in range(30):
            result = shuffle_question_choices([_question("q1")], initial_prev_index=2, rng=random.Random(seed))
            assert _correct_index(result.questions[0]) != 2

    def test_last_correct_index_reported(self):
        result = shuffle_question_choices([_question("q1"), _question("q2")], rng=random.Random(5))
        assert result.last_correct_index == _correct_index(result.questions[-1])

    def test_forced_swap_after_attempts_exhausted(self):
        # identity shuffle keeps "b" at index 1; prev index 1 forces a swap to 2
        result = shuffle_question_choices(
            [_question("q1", correct="b")], initial_prev_index=1, rng=_FixedRandom(),
        )
        assert _correct_index(result.questions[0]) == 2
        assert result.last_correct_index == 2

    def test_forced_swap_wraps_around(self):
        result = shuffle_question_choices(
            [_question("q1", correct="d")], initial_prev_index=3, rng=_FixedRandom(),
        )
        assert _correct_index(result.questions[0]) == 0

    def test_zero_max_attempts_still_avoids_repeat(self):
        result = shuffle_question_choices(
            [_question("q1")], initial_prev_index=1, max_attempts=0, rng=_FixedRandom(),
        )
        assert _correct_index(result.questions[0]) != 1

    def test_fill_in_questions_pass_through(self):
        fill_in = {"id": "f1", "word": "apple", "prompt": "a____", "correctAnswer": "apple",
                   "type": "questions_type_3"}
        result = shuffle_question_choices([fill_in], initial_prev_index=1)
        assert result.questions[0] is fill_in
        assert result.last_correct_index == 1

    def test_fill_in_does_not_reset_tracking(self):
        fill_in = {"id": "f1", "word": "apple", "prompt": "x", "correctAnswer": "apple"}
        for seed in range(20):
            result = shuffle_question_choices(
                [_question("q1"), fill_in, _question("q2")], rng=random.Random(seed),
            )
            first, _, last = result.questions
            assert _correct_index(first) != _correct_index(last)

    def test_single_choice_question(self):
        question = _question("q1", correct="a", n=1)
        result = shuffle_question_choices([question], initial_prev_index=0)
        assert _correct_index(result.questions[0]) == 0

    def test_missing_correct_choice_is_kept_unshuffled_tracking(self):
        question = _question("q1", correct="z")
        result = shuffle_question_choices([question], initial_prev_index=2, rng=random.Random(1))
        assert len(result.questions[0]["choices"]) == 4
        assert result.last_correct_index == 2

    def test_input_questions_not_mutated(self):
        question = _question("q1")
        original = [dict(c) for c in question["choices"]]
        shuffle_question_choices([question], rng=random.Random(2))
        assert question["choices"] == original

    def test_default_attempt_budget(self):
        assert MAX_ATTEMPTS == 6
