"""
Tests for word normalisation and word-to-section assignment.
"""
import random

from vocab_trainer.models.quiz import QUESTION_TYPES
from vocab_trainer.services.question_generator import assign_words_to_types, normalize_words


class TestNormalizeWords:
    def test_trims_lowercases_and_dedupes(self):
        assert normalize_words([" Apple", "apple ", "BANANA", "", "  ", "cherry"]) == [
            "apple", "banana", "cherry",
        ]

    def test_first_occurrence_wins(self):
        assert normalize_words(["b", "a", "B"]) == ["b", "a"]


class TestAssignWordsToTypes:
    def test_every_word_in_exactly_two_sections(self):
        for seed in range(30):
            rng = random.Random(seed)
            words = [f"word{i}" for i in range(rng.randint(1, 60))]
            mapping = assign_words_to_types(words, rng)
            for word in words:
                hits = sum(word in mapping[qt] for qt in QUESTION_TYPES)
                assert hits == 2

    def test_all_sections_present(self):
        mapping = assign_words_to_types([])
        assert set(mapping) == set(QUESTION_TYPES)
        assert all(v == [] for v in mapping.values())

    def test_total_is_twice_word_count(self):
        words = [f"w{i}" for i in range(17)]
        mapping = assign_words_to_types(words, random.Random(4))
        assert sum(len(v) for v in mapping.values()) == 34

    def test_order_preserved_within_section(self):
        words = [f"w{i:02d}" for i in range(40)]
        mapping = assign_words_to_types(words, random.Random(9))
        for qt in QUESTION_TYPES:
            assert mapping[qt] == sorted(mapping[qt])

    def test_roughly_balanced(self):
        words = [f"w{i}" for i in range(900)]
        mapping = assign_words_to_types(words, random.Random(11))
        for qt in QUESTION_TYPES:
            assert 500 < len(mapping[qt]) < 700
