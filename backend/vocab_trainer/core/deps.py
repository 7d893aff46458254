import logging
from functools import lru_cache

import httpx
from fastapi import Header, HTTPException
from openai import OpenAI

from vocab_trainer.core.config import get_settings

logger = logging.getLogger("vocabtrainer.deps")


@lru_cache
def get_llm_client() -> OpenAI:
    """Return the OpenAI client pointed at OpenRouter.

    OpenRouter expects the HTTP-Referer / X-Title headers for attribution;
    an optional proxy is routed through a dedicated httpx client.
    """
    settings = get_settings()
    if not settings.openrouter_api_key:
        logger.warning("OPENROUTER_API_KEY is not set; LLM calls will fail")

    http_client = None
    if settings.openrouter_proxy:
        http_client = httpx.Client(
            proxy=settings.openrouter_proxy,
            timeout=settings.openrouter_timeout_seconds,
        )

    return OpenAI(
        api_key=settings.openrouter_api_key or "missing",
        base_url=settings.openrouter_base_url,
        timeout=settings.openrouter_timeout_seconds,
        default_headers={
            "HTTP-Referer": settings.openrouter_referer,
            "X-Title": settings.openrouter_app_title,
        },
        http_client=http_client,
    )


def get_user_id(x_user_id: str = Header(None)) -> str:
    """Identify the caller.

    Token verification happens upstream; the gateway forwards the verified
    user id in X-User-Id.
    """
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Authentication required")
    return x_user_id.strip()
