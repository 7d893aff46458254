import asyncio
import logging

from fastapi import APIRouter, HTTPException

from vocab_trainer.models.quiz import AnalysisRequest
from vocab_trainer.services.analysis import build_analysis
from vocab_trainer.services.openrouter import LLMError
from vocab_trainer.services.telemetry import instrument

router = APIRouter(prefix="/api/analysis", tags=["analysis"])

logger = logging.getLogger("vocabtrainer.api.analysis")


@router.post("/report")
@instrument(route="/api/analysis/report")
async def analysis_report(request: AnalysisRequest):
    logger.info(
        "POST /api/analysis/report - %d answers, score %s", len(request.answers), request.score,
    )
    try:
        return await asyncio.to_thread(
            build_analysis,
            request.difficulty,
            request.words,
            [a.model_dump() for a in request.answers],
            request.superJson,
            request.score,
        )
    except LLMError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except Exception as e:
        logger.error("Analysis report failed: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to build analysis: {str(e)}")
