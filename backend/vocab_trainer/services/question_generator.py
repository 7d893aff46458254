"""
Quiz generation via LLM.

Words are spread over three sections (each word lands in exactly two of
them), then every section is generated with its own structured-output call.
Models are tried in the order given by ``model_fallbacks``; the last error
is re-raised when every model fails.
"""
import logging
import random
import time
from datetime import datetime, timezone
from typing import Callable, TypeVar

from vocab_trainer.core.config import get_settings
from vocab_trainer.models.quiz import QUESTION_TYPES
from vocab_trainer.prompts.question_generation import (
    QUESTION_TYPE_RULES,
    SECTION_SYSTEM_PROMPT,
    SECTION_USER_TEMPLATE,
    SHARED_TYPE_RULES,
    SUPER_JSON_SYSTEM_PROMPT,
    SUPER_JSON_USER_TEMPLATE,
)
from vocab_trainer.services.openrouter import chat_json, json_schema_format
from vocab_trainer.utils.answer_match import first_letter_hint
from vocab_trainer.utils.shuffle_choices import fisher_yates, shuffle_question_choices

logger = logging.getLogger("vocabtrainer.question_generator")

T = TypeVar("T")

CHOICE_SCHEMA = {
    "type": "object",
    "properties": {
        "id": {"type": "string"},
        "text": {"type": "string"},
    },
    "required": ["id", "text"],
    "additionalProperties": False,
}

QUESTION_SCHEMA = {
    "type": "object",
    "properties": {
        "id": {"type": "string"},
        "word": {"type": "string"},
        "prompt": {"type": "string"},
        "choices": {"type": "array", "minItems": 4, "maxItems": 4, "items": CHOICE_SCHEMA},
        "correctChoiceId": {"type": "string"},
        "correctAnswer": {"type": "string"},
        "explanation": {"type": "string"},
        "sentence": {"type": "string"},
        "translation": {"type": "string"},
        "hint": {"type": "string"},
        "type": {"type": "string", "enum": list(QUESTION_TYPES)},
    },
    "required": ["id", "word", "prompt", "choices", "correctChoiceId", "explanation", "type"],
    "additionalProperties": False,
}


def normalize_words(words: list[str]) -> list[str]:
    """Trim, lowercase and dedupe (first occurrence wins), dropping blanks."""
    seen: set[str] = set()
    out: list[str] = []
    for w in words:
        key = w.strip().lower()
        if key and key not in seen:
            seen.add(key)
            out.append(key)
    return out


def assign_words_to_types(words: list[str], rng: random.Random | None = None) -> dict[str, list[str]]:
    """Put every word into exactly two of the three sections.

    Each word skips one uniformly chosen section, so every section receives
    about 2/3 of the words. Input order is kept inside each section.
    """
    rng = rng or random
    type_word_map: dict[str, list[str]] = {qt: [] for qt in QUESTION_TYPES}
    for word in words:
        skipped = rng.randrange(len(QUESTION_TYPES))
        for idx, qt in enumerate(QUESTION_TYPES):
            if idx != skipped:
                type_word_map[qt].append(word)
    return type_word_map


def temperature_for(difficulty: str) -> float:
    return 0.85 if difficulty == "advanced" else 0.65


def run_with_model_fallbacks(label: str, call: Callable[[str], T], models: list[str] | None = None) -> T:
    """Call ``call(model)`` for each model in turn until one succeeds."""
    models = models or get_settings().model_fallbacks
    last_error: Exception | None = None
    for model in models:
        try:
            return call(model)
        except Exception as exc:
            last_error = exc
            logger.warning("%s: model %s failed: %s", label, model, exc)
    if last_error is None:
        raise RuntimeError(f"{label}: no models configured")
    raise last_error


def build_type_response_schema(question_type: str, count: int) -> dict:
    return json_schema_format(
        f"{question_type}_bundle",
        {
            "type": "object",
            "properties": {
                question_type: {
                    "type": "array",
                    "minItems": max(3, min(count, 30)),
                    "maxItems": max(3, count),
                    "items": QUESTION_SCHEMA,
                },
            },
            "required": [question_type],
            "additionalProperties": False,
        },
    )


def build_super_json_schema() -> dict:
    return json_schema_format(
        "super_drill_bundle",
        {
            "type": "object",
            "properties": {
                "metadata": {
                    "type": "object",
                    "properties": {
                        "totalQuestions": {"type": "integer"},
                        "words": {"type": "array", "items": {"type": "string"}},
                        "difficulty": {"type": "string", "enum": ["beginner", "intermediate", "advanced"]},
                        "generatedAt": {"type": "string"},
                    },
                    "required": ["totalQuestions", "words", "difficulty", "generatedAt"],
                    "additionalProperties": False,
                },
                **{
                    qt: {"type": "array", "minItems": 1, "items": QUESTION_SCHEMA}
                    for qt in QUESTION_TYPES
                },
            },
            "required": ["metadata", *QUESTION_TYPES],
            "additionalProperties": False,
        },
    )


def _finalize_section(
    question_type: str,
    bundle: list[dict],
    initial_prev_index: int | None = None,
) -> tuple[list[dict], int | None]:
    """Shuffle question order and choices, stamp the section type, fill missing hints."""
    questions = [{**q, "type": question_type} for q in fisher_yates(bundle)]
    if question_type == "questions_type_3":
        for q in questions:
            if not q.get("hint") and q.get("correctAnswer"):
                q["hint"] = first_letter_hint(q["correctAnswer"])
    shuffled = shuffle_question_choices(
        questions,
        initial_prev_index=initial_prev_index,
        max_attempts=get_settings().shuffle_max_attempts,
    )
    return shuffled.questions, shuffled.last_correct_index


def generate_questions_for_type(
    question_type: str,
    words: list[str],
    difficulty: str,
) -> list[dict]:
    """Generate one section's questions, one per word in the bucket."""
    if not words:
        raise ValueError("Word list cannot be empty")

    count = len(words)
    user_msg = SECTION_USER_TEMPLATE.format(
        count=count,
        question_type=question_type,
        type_rules=QUESTION_TYPE_RULES[question_type],
        shared_rules=SHARED_TYPE_RULES,
        words=", ".join(words),
        difficulty=difficulty,
    )
    messages = [
        {"role": "system", "content": SECTION_SYSTEM_PROMPT},
        {"role": "user", "content": user_msg},
    ]
    response_format = build_type_response_schema(question_type, count)

    def _call(model: str) -> list[dict]:
        logger.info(
            "Generating %d questions for %s with %d words (%s) via %s",
            count, question_type, len(words), difficulty, model,
        )
        t0 = time.time()
        result = chat_json(
            model,
            messages,
            response_format=response_format,
            temperature=temperature_for(difficulty),
        )
        bundle = result.get(question_type) if isinstance(result, dict) else None
        if not isinstance(bundle, list):
            raise ValueError(f"{question_type}: response is missing the question array")
        questions, _ = _finalize_section(question_type, bundle)
        logger.info(
            "%s succeeded with %d questions in %dms (%s)",
            question_type, len(questions), int((time.time() - t0) * 1000), model,
        )
        return questions

    return run_with_model_fallbacks(f"QuestionGenerator[{question_type}]", _call)


def generate_super_json(
    words: list[str],
    difficulty: str,
    question_count_per_type: int | None = None,
) -> dict:
    """Generate all three sections with a single LLM call."""
    normalized = normalize_words(words)
    if not normalized:
        raise ValueError("Word list cannot be empty")

    per_type = question_count_per_type or min(20, len(normalized))
    logger.info(
        "Generating %d questions per type for %d words (%s)",
        per_type, len(normalized), difficulty,
    )

    user_msg = SUPER_JSON_USER_TEMPLATE.format(
        per_type=per_type,
        type_1=QUESTION_TYPE_RULES["questions_type_1"],
        type_2=QUESTION_TYPE_RULES["questions_type_2"],
        type_3=QUESTION_TYPE_RULES["questions_type_3"],
        difficulty=difficulty,
        words=", ".join(normalized),
    )
    messages = [
        {"role": "system", "content": SUPER_JSON_SYSTEM_PROMPT},
        {"role": "user", "content": user_msg},
    ]
    t0 = time.time()

    def _call(model: str) -> dict:
        logger.info("Attempting model %s", model)
        result = chat_json(
            model,
            messages,
            response_format=build_super_json_schema(),
            temperature=temperature_for(difficulty),
        )
        if not isinstance(result, dict):
            raise ValueError("super JSON response is not an object")

        prev_index = None
        sections: dict[str, list[dict]] = {}
        for qt in QUESTION_TYPES:
            sections[qt], prev_index = _finalize_section(qt, result.get(qt) or [], prev_index)

        metadata = dict(result.get("metadata") or {})
        metadata.setdefault("words", normalized)
        metadata.setdefault("difficulty", difficulty)
        metadata.setdefault("generatedAt", datetime.now(timezone.utc).isoformat())
        metadata["totalQuestions"] = sum(len(v) for v in sections.values())

        logger.info(
            "Generated %d total questions in %dms (model=%s)",
            metadata["totalQuestions"], int((time.time() - t0) * 1000), model,
        )
        return {"metadata": metadata, **sections}

    try:
        return run_with_model_fallbacks("QuestionGenerator[super_json]", _call)
    except Exception as exc:
        logger.error(
            "All models failed after %dms: %s", int((time.time() - t0) * 1000), exc,
        )
        raise
