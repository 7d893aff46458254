import asyncio
import logging

from fastapi import APIRouter, HTTPException

from vocab_trainer.core.config import get_settings
from vocab_trainer.models.quiz import ExtractRequest
from vocab_trainer.services.openrouter import LLMError
from vocab_trainer.services.telemetry import instrument
from vocab_trainer.services.vlm import extract_words_from_images

router = APIRouter(prefix="/api/vlm", tags=["vlm"])

logger = logging.getLogger("vocabtrainer.api.vlm")


@router.post("/extract")
@instrument(route="/api/vlm/extract")
async def extract_words(request: ExtractRequest):
    """Read a vocabulary list off one or more photographed pages."""
    max_images = get_settings().max_vlm_images
    if len(request.images) > max_images:
        raise HTTPException(status_code=400, detail=f"At most {max_images} images per request")

    logger.info("POST /api/vlm/extract - %d image(s)", len(request.images))
    try:
        words = await asyncio.to_thread(extract_words_from_images, request.images)
        return {"words": words}
    except LLMError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except Exception as e:
        logger.error("Word extraction failed: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to extract words: {str(e)}")
