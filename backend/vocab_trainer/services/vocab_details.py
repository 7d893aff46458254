"""
Dictionary-style details (parts of speech, definitions, examples) per word.

Words are generated in chunks of CHUNK_SIZE; chunks run concurrently in
worker threads with at most MAX_CONCURRENCY in flight. Every chunk reply is
validated strictly before it is accepted, so a malformed bundle makes the
fallback chain move on to the next model.
"""
import asyncio
import logging
import time

from vocab_trainer.prompts.vocab_details import DETAILS_SYSTEM_PROMPT, DETAILS_USER_TEMPLATE
from vocab_trainer.services.openrouter import chat_json, json_schema_format
from vocab_trainer.services.question_generator import run_with_model_fallbacks

logger = logging.getLogger("vocabtrainer.vocab_details")

CHUNK_SIZE = 20
MAX_CONCURRENCY = 20

DETAIL_KEYS = {"word", "partsOfSpeech", "definitions", "examples"}
EXAMPLE_KEYS = {"en", "zh"}

EXAMPLE_SCHEMA = {
    "type": "object",
    "properties": {"en": {"type": "string"}, "zh": {"type": "string"}},
    "required": ["en", "zh"],
    "additionalProperties": False,
}

DETAIL_SCHEMA = {
    "type": "object",
    "properties": {
        "word": {"type": "string"},
        "partsOfSpeech": {"type": "array", "minItems": 1, "items": {"type": "string"}},
        "definitions": {"type": "array", "minItems": 1, "items": {"type": "string"}},
        "examples": {"type": "array", "minItems": 1, "maxItems": 3, "items": EXAMPLE_SCHEMA},
    },
    "required": ["word", "partsOfSpeech", "definitions", "examples"],
    "additionalProperties": False,
}

RESPONSE_FORMAT = json_schema_format(
    "vocabulary_details_bundle",
    {
        "type": "object",
        "properties": {"details": {"type": "array", "minItems": 1, "items": DETAIL_SCHEMA}},
        "required": ["details"],
        "additionalProperties": False,
    },
)


class DetailsValidationError(ValueError):
    pass


def normalize_word_list(words: list[str]) -> list[str]:
    """Trim and dedupe (exact match, first wins), dropping blanks."""
    seen: set[str] = set()
    out: list[str] = []
    for w in words:
        w = w.strip()
        if w and w not in seen:
            seen.add(w)
            out.append(w)
    return out


def chunk_words(words: list[str], size: int = CHUNK_SIZE) -> list[list[str]]:
    return [words[i:i + size] for i in range(0, len(words), size)]


def validate_details_bundle(bundle, label: str) -> list[dict]:
    """Return the bundle's details, raising DetailsValidationError on any schema drift."""
    details = bundle.get("details") if isinstance(bundle, dict) else None
    if not isinstance(details, list) or not details:
        raise DetailsValidationError(f"{label}: details array missing or empty")

    for idx, detail in enumerate(details):
        if not isinstance(detail, dict):
            raise DetailsValidationError(f"{label}: detail[{idx}] is not an object")
        extra = set(detail) - DETAIL_KEYS
        if extra:
            raise DetailsValidationError(f"{label}: detail[{idx}] has extra fields {', '.join(sorted(extra))}")
        if not isinstance(detail.get("word"), str) or not detail["word"]:
            raise DetailsValidationError(f"{label}: detail[{idx}].word is invalid")
        if not isinstance(detail.get("partsOfSpeech"), list) or not detail["partsOfSpeech"]:
            raise DetailsValidationError(f"{label}: detail[{idx}].partsOfSpeech is empty")
        if not isinstance(detail.get("definitions"), list) or not detail["definitions"]:
            raise DetailsValidationError(f"{label}: detail[{idx}].definitions is empty")
        examples = detail.get("examples")
        if not isinstance(examples, list) or not 1 <= len(examples) <= 3:
            raise DetailsValidationError(f"{label}: detail[{idx}].examples count is invalid")
        for ex_idx, ex in enumerate(examples):
            if not isinstance(ex, dict):
                raise DetailsValidationError(f"{label}: detail[{idx}].examples[{ex_idx}] is not an object")
            extra = set(ex) - EXAMPLE_KEYS
            if extra:
                raise DetailsValidationError(
                    f"{label}: detail[{idx}].examples[{ex_idx}] has extra fields {', '.join(sorted(extra))}"
                )
            if not isinstance(ex.get("en"), str) or not ex["en"] or not isinstance(ex.get("zh"), str) or not ex["zh"]:
                raise DetailsValidationError(f"{label}: detail[{idx}].examples[{ex_idx}] is missing en/zh")
    return details


def generate_chunk(words: list[str], difficulty: str, chunk_index: int, total_chunks: int) -> list[dict]:
    messages = [
        {"role": "system", "content": DETAILS_SYSTEM_PROMPT},
        {
            "role": "user",
            "content": DETAILS_USER_TEMPLATE.format(
                difficulty=difficulty,
                chunk_number=chunk_index + 1,
                total_chunks=total_chunks,
                words=", ".join(words),
            ),
        },
    ]
    label = f"chunk {chunk_index + 1}"

    def _call(model: str) -> list[dict]:
        logger.info(
            "Generating %s/%d with %d words (%s) via %s",
            label, total_chunks, len(words), difficulty, model,
        )
        t0 = time.time()
        result = chat_json(
            model,
            messages,
            response_format=RESPONSE_FORMAT,
            temperature=0.65 if difficulty == "advanced" else 0.45,
        )
        details = validate_details_bundle(result, label)
        logger.info("%s generated in %dms (model=%s)", label, int((time.time() - t0) * 1000), model)
        return details

    return run_with_model_fallbacks(f"VocabDetails[{label}]", _call)


async def generate_vocabulary_details(words: list[str], difficulty: str) -> list[dict]:
    normalized = normalize_word_list(words)
    if not normalized:
        raise ValueError("Word list cannot be empty")

    chunks = chunk_words(normalized)
    semaphore = asyncio.Semaphore(MAX_CONCURRENCY)

    async def _run(idx: int, chunk: list[str]) -> list[dict]:
        async with semaphore:
            return await asyncio.to_thread(generate_chunk, chunk, difficulty, idx, len(chunks))

    results = await asyncio.gather(*(_run(i, c) for i, c in enumerate(chunks)))

    merged: list[dict] = []
    seen: set[str] = set()
    for chunk_details in results:
        for detail in chunk_details:
            key = detail["word"].lower()
            if key not in seen:
                seen.add(key)
                merged.append(detail)
    return merged
