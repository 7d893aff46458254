"""
Word extraction from uploaded word-list images.

The images go to a vision-language model in one structured-output call;
the reply is cleaned up here (whitespace, empties, case-insensitive dupes).
"""
import logging
import re
import time

from vocab_trainer.core.config import get_settings
from vocab_trainer.prompts.word_extraction import EXTRACTION_PROMPT
from vocab_trainer.services.openrouter import chat_json, json_schema_format

logger = logging.getLogger("vocabtrainer.vlm")

EXPECTED_WORD_COUNT = 129
_WS_RE = re.compile(r"\s+")

EXTRACTION_SCHEMA = {
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "words": {
            "type": "array",
            "minItems": 1,
            "items": {
                "type": "object",
                "additionalProperties": False,
                "properties": {
                    "index": {"type": "integer", "minimum": 1},
                    "raw": {"type": "string", "minLength": 1, "maxLength": 120},
                    "normalized": {"type": "string", "minLength": 1, "maxLength": 120},
                    "confident": {"type": "boolean"},
                },
                "required": ["index", "raw", "normalized", "confident"],
            },
        },
    },
    "required": ["words"],
}


def normalize_whitespace(value: str) -> str:
    return _WS_RE.sub(" ", value).strip()


def sanitize_structured_words(entries) -> list[str]:
    """Turn the model's word entries into a clean, de-duplicated word list."""
    if not isinstance(entries, list):
        logger.warning("VLM: response missing words array")
        return []

    seen: set[str] = set()
    words: list[str] = []
    for idx, entry in enumerate(entries):
        entry = entry if isinstance(entry, dict) else {}
        text = normalize_whitespace(entry.get("normalized") or entry.get("raw") or "")
        if not text:
            logger.warning("VLM: empty normalized word at entry %d (raw=%r)", idx, entry.get("raw"))
            continue
        key = text.lower()
        if key in seen:
            continue
        seen.add(key)
        words.append(text)

    if len(words) != EXPECTED_WORD_COUNT:
        logger.warning(
            "VLM: normalized word count mismatch (expected=%d, received=%d)",
            EXPECTED_WORD_COUNT, len(words),
        )
    return words


def build_extraction_messages(images: list[str]) -> list[dict]:
    content: list[dict] = [{"type": "text", "text": EXTRACTION_PROMPT}]
    content.extend({"type": "image_url", "image_url": {"url": image}} for image in images)
    return [{"role": "user", "content": content}]


def extract_words_from_images(images: list[str]) -> list[str]:
    """Extract vocabulary words from base64 data-URL images."""
    model = get_settings().vlm_model
    t0 = time.time()
    logger.info("VLM: starting word extraction from %d image(s) using %s", len(images), model)

    try:
        result = chat_json(
            model,
            build_extraction_messages(images),
            response_format=json_schema_format("word_extraction_structured", EXTRACTION_SCHEMA),
            temperature=0.1,
        )
    except Exception as exc:
        logger.error(
            "VLM: word extraction failed after %dms (images=%d, model=%s): %s",
            int((time.time() - t0) * 1000), len(images), model, exc,
        )
        raise

    entries = result.get("words") if isinstance(result, dict) else None
    words = sanitize_structured_words(entries)
    logger.info(
        "VLM: extracted %d normalized words in %dms (raw entries=%d)",
        len(words), int((time.time() - t0) * 1000), len(entries or []),
    )
    return words
