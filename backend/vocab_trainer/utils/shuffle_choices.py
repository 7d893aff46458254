"""
Choice shuffling for multiple-choice sections.

Each question's choices are shuffled independently (Fisher-Yates). The
position of the correct choice is tracked so that consecutive questions
rarely share the same answer slot: a collision triggers up to
``max_attempts`` reshuffles, then a forced swap with the next slot.

Fill-in questions (no choices or no correctChoiceId) pass through untouched
and do not move the tracked position.
"""
from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Optional

MAX_ATTEMPTS = 6


@dataclass
class ShuffleResult:
    questions: list[dict] = field(default_factory=list)
    last_correct_index: Optional[int] = None


def fisher_yates(items: list, rng: random.Random | None = None) -> list:
    """Return a shuffled copy of ``items``."""
    rng = rng or random
    copy = list(items)
    for i in range(len(copy) - 1, 0, -1):
        j = rng.randint(0, i)
        copy[i], copy[j] = copy[j], copy[i]
    return copy


def _find_correct_index(choices: list[dict], correct_id: str) -> int:
    for idx, choice in enumerate(choices):
        if choice.get("id") == correct_id:
            return idx
    return -1


def _ensure_correct_visible(shuffled: list[dict], original: list[dict], correct_id: str) -> tuple[list[dict], int]:
    idx = _find_correct_index(shuffled, correct_id)
    if idx != -1:
        return shuffled, idx
    fallback = next((c for c in original if c.get("id") == correct_id), None)
    if fallback is None:
        return shuffled, -1
    remaining = [c for c in shuffled if c.get("id") != correct_id]
    return [fallback, *remaining], 0


def shuffle_question_choices(
    questions: list[dict],
    initial_prev_index: Optional[int] = None,
    max_attempts: Optional[int] = None,
    rng: random.Random | None = None,
) -> ShuffleResult:
    """Shuffle the choices of every question, avoiding repeated answer slots.

    Returns new question dicts; the input list is not modified. The
    ``last_correct_index`` of the result can be fed back as
    ``initial_prev_index`` to chain across sections.
    """
    attempts_allowed = max(1, max_attempts if max_attempts is not None else MAX_ATTEMPTS)
    prev_index = initial_prev_index
    out: list[dict] = []

    for question in questions:
        choices = question.get("choices") or []
        correct_id = question.get("correctChoiceId")
        if not choices or not correct_id:
            out.append(question)
            continue

        shuffled, correct_index = _ensure_correct_visible(
            fisher_yates(choices, rng), choices, correct_id,
        )

        attempts = 0
        while (
            correct_index != -1
            and prev_index is not None
            and correct_index == prev_index
            and attempts < attempts_allowed
        ):
            shuffled, correct_index = _ensure_correct_visible(
                fisher_yates(shuffled, rng), choices, correct_id,
            )
            attempts += 1

        if prev_index is not None and correct_index == prev_index and len(shuffled) > 1:
            swap_index = (correct_index + 1) % len(shuffled)
            shuffled[correct_index], shuffled[swap_index] = shuffled[swap_index], shuffled[correct_index]
            correct_index = swap_index

        if correct_index >= 0:
            prev_index = correct_index

        out.append({**question, "choices": shuffled})

    return ShuffleResult(questions=out, last_correct_index=prev_index)
