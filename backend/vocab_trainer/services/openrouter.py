"""
Structured-output chat calls against OpenRouter.

Every caller in the app wants JSON back, so ``chat_json`` sends one
non-streaming chat completion and returns the parsed reply. Failures are
raised as ``LLMError`` carrying an HTTP-like status code that the API layer
passes through.
"""
import json
import logging
import time
from typing import Any

import openai

from vocab_trainer.core.deps import get_llm_client

logger = logging.getLogger("vocabtrainer.openrouter")


class LLMError(Exception):
    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message)
        self.status_code = status_code


def _clean_json(content: str) -> str:
    """Strip markdown fences."""
    content = content.strip()
    if content.startswith("```json"):
        content = content[7:]
    elif content.startswith("```"):
        content = content[3:]
    if content.endswith("```"):
        content = content[:-3]
    return content.strip()


def log_ai_request(service: str, model: str, response_ms: int | None = None) -> None:
    logger.info(
        "AI Request: %s (%s) responseTime=%s",
        service, model, f"{response_ms}ms" if response_ms is not None else "pending",
    )


def chat_json(
    model: str,
    messages: list[dict],
    response_format: dict | None = None,
    temperature: float | None = None,
    max_tokens: int | None = None,
    client=None,
) -> Any:
    """Send a chat completion and return the decoded JSON reply."""
    client = client or get_llm_client()
    t0 = time.time()

    kwargs: dict[str, Any] = {"model": model, "messages": messages, "stream": False}
    if response_format is not None:
        kwargs["response_format"] = response_format
    if temperature is not None:
        kwargs["temperature"] = temperature
    if max_tokens is not None:
        kwargs["max_tokens"] = max_tokens

    log_ai_request("OpenRouter", model)
    try:
        response = client.chat.completions.create(**kwargs)
    except openai.APIStatusError as exc:
        logger.error("OpenRouter API error: %s - %s (model=%s)", exc.status_code, exc.message, model)
        raise LLMError(exc.message or "OpenRouter request failed", status_code=exc.status_code) from exc
    except Exception as exc:
        elapsed = int((time.time() - t0) * 1000)
        logger.error("Unexpected error in OpenRouter request to %s after %dms: %s", model, elapsed, exc)
        raise LLMError(f"OpenRouter request failed: {exc}") from exc

    choices = getattr(response, "choices", None) or []
    content = choices[0].message.content if choices else None
    if not content:
        logger.error("Model returned empty response from %s", model)
        raise LLMError("Model returned empty response")

    try:
        result = json.loads(_clean_json(content))
    except json.JSONDecodeError as exc:
        logger.error(
            "Failed to parse structured response from %s: %s | content=%r",
            model, exc, content[:500],
        )
        raise LLMError("Unable to parse structured response from model") from exc

    log_ai_request("OpenRouter", model, int((time.time() - t0) * 1000))
    return result


def json_schema_format(name: str, schema: dict, strict: bool = True) -> dict:
    return {
        "type": "json_schema",
        "json_schema": {"name": name, "strict": strict, "schema": schema},
    }
