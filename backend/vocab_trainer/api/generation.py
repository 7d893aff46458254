import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException

from vocab_trainer.core.deps import get_user_id
from vocab_trainer.models.quiz import BindRequest, DetailsRequest, GenerationRequest, RetryRequest
from vocab_trainer.services.generation_session import (
    GenerationSessionError,
    GenerationSessionManager,
    get_session_manager,
)
from vocab_trainer.services.openrouter import LLMError
from vocab_trainer.services.question_generator import generate_super_json
from vocab_trainer.services.telemetry import instrument
from vocab_trainer.services.vocab_details import generate_vocabulary_details

router = APIRouter(prefix="/api/generation", tags=["generation"])

logger = logging.getLogger("vocabtrainer.api.generation")


@router.post("/session")
@instrument(route="/api/generation/session")
async def start_session(
    request: GenerationRequest,
    manager: GenerationSessionManager = Depends(get_session_manager),
):
    """Start segmented generation; returns once section 1 has settled."""
    logger.info(
        "POST /api/generation/session - segmented generation (%s) for %d words",
        request.difficulty, len(request.words),
    )
    try:
        return await manager.start(
            request.words, request.difficulty, request.questionCountPerType,
        )
    except GenerationSessionError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error("Generation session start failed: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to start generation: {str(e)}")


@router.get("/session/{session_id}")
@instrument(route="/api/generation/session/{id}")
async def get_session_snapshot(
    session_id: str,
    manager: GenerationSessionManager = Depends(get_session_manager),
):
    try:
        return manager.snapshot(session_id)
    except GenerationSessionError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/session/{session_id}/retry")
@instrument(route="/api/generation/session/{id}/retry")
async def retry_section(
    session_id: str,
    request: RetryRequest,
    manager: GenerationSessionManager = Depends(get_session_manager),
):
    try:
        return await manager.retry(session_id, request.type)
    except GenerationSessionError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/session/{session_id}/bind")
@instrument(route="/api/generation/session/{id}/bind")
async def bind_session(
    session_id: str,
    request: BindRequest,
    user_id: str = Depends(get_user_id),
    manager: GenerationSessionManager = Depends(get_session_manager),
):
    """Sync the full quiz into a history session once every section is ready."""
    try:
        await manager.bind_history(session_id, user_id, request.historySessionId)
        return {"success": True}
    except GenerationSessionError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/session/{session_id}/super-json")
@instrument(route="/api/generation/session/{id}/super-json")
async def export_super_json(
    session_id: str,
    manager: GenerationSessionManager = Depends(get_session_manager),
):
    try:
        return {"superJson": manager.consume_full_super_json(session_id)}
    except GenerationSessionError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/super-json")
@instrument(route="/api/generation/super-json")
async def create_super_json(request: GenerationRequest):
    """Generate all three sections in one LLM call."""
    logger.info(
        "POST /api/generation/super-json - %s questions per type for %d words (%s)",
        request.questionCountPerType or "default", len(request.words), request.difficulty,
    )
    try:
        super_json = await asyncio.to_thread(
            generate_super_json, request.words, request.difficulty, request.questionCountPerType,
        )
        logger.info("Generated %d total questions", super_json["metadata"]["totalQuestions"])
        return {"superJson": super_json}
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except LLMError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except Exception as e:
        logger.error("super-json generation failed: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to generate questions: {str(e)}")


@router.post("/details")
@instrument(route="/api/generation/details")
async def create_vocabulary_details(request: DetailsRequest):
    logger.info(
        "POST /api/generation/details - %d words (%s)", len(request.words), request.difficulty,
    )
    try:
        details = await generate_vocabulary_details(request.words, request.difficulty)
        return {"details": details}
    except LLMError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("vocabulary details failed: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to generate vocabulary details: {str(e)}")
