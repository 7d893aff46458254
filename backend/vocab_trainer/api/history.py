import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from vocab_trainer.core.deps import get_user_id
from vocab_trainer.models.quiz import (
    InProgressSessionRequest,
    ProgressRequest,
    SaveSessionRequest,
    SessionStatus,
    SuperJsonUpdateRequest,
)
from vocab_trainer.services import history_store
from vocab_trainer.services.telemetry import instrument
from vocab_trainer.utils.wrong_answers import count_questions, extract_wrong_answers

router = APIRouter(prefix="/api/history", tags=["history"])

logger = logging.getLogger("vocabtrainer.api.history")


def _vocab_details(details) -> Optional[list[dict]]:
    if details is None:
        return None
    return [d.model_dump() for d in details]


@router.post("", status_code=201)
@instrument(route="/api/history")
def save_completed_session(request: SaveSessionRequest, user_id: str = Depends(get_user_id)):
    logger.info(
        "POST /api/history - saving session for %s (%d words, score %s%%)",
        user_id, len(request.words), request.score,
    )
    answers = [a.model_dump(exclude_none=True) for a in request.answers]
    saved = history_store.save_session(
        user_id=user_id,
        difficulty=request.difficulty,
        words=request.words,
        super_json=request.superJson,
        answers=answers,
        score=request.score,
        analysis=request.analysis.model_dump(),
        mode=request.mode,
        status="completed",
        current_question_index=len(answers),
        has_vocab_details=request.hasVocabDetails,
        vocab_details=_vocab_details(request.vocabDetails),
    )
    logger.info("Saved session %s", saved["id"])
    return saved


@router.post("/in-progress", status_code=201)
@instrument(route="/api/history/in-progress")
def create_in_progress(request: InProgressSessionRequest, user_id: str = Depends(get_user_id)):
    logger.info(
        "POST /api/history/in-progress - %s (%d words, %s)",
        user_id, len(request.words), request.difficulty,
    )
    session = history_store.create_in_progress_session(
        user_id=user_id,
        difficulty=request.difficulty,
        words=request.words,
        super_json=request.superJson,
        has_vocab_details=request.hasVocabDetails,
        vocab_details=_vocab_details(request.vocabDetails),
    )
    return {"id": session["id"], "createdAt": session["createdAt"]}


@router.get("")
@instrument(route="/api/history")
def list_history(status: Optional[SessionStatus] = None, user_id: str = Depends(get_user_id)):
    sessions = history_store.list_sessions(user_id, status)
    logger.info("GET /api/history - %d sessions for %s (status=%s)", len(sessions), user_id, status)
    return {"sessions": sessions}


@router.get("/stats")
@instrument(route="/api/history/stats")
def learning_stats(user_id: str = Depends(get_user_id)):
    return history_store.get_learning_stats(user_id)


@router.get("/{session_id}")
@instrument(route="/api/history/{id}")
def get_history_session(session_id: str, user_id: str = Depends(get_user_id)):
    session = history_store.get_session_record(user_id, session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Not found")
    return session


@router.get("/{session_id}/wrong-answers")
@instrument(route="/api/history/{id}/wrong-answers")
def wrong_answers(session_id: str, user_id: str = Depends(get_user_id)):
    session = history_store.get_session_record(user_id, session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Not found")
    return {"items": extract_wrong_answers(session["answers"], session["superJson"])}


@router.patch("/{session_id}/progress")
@instrument(route="/api/history/{id}/progress")
def save_progress(session_id: str, request: ProgressRequest, user_id: str = Depends(get_user_id)):
    logger.info(
        "PATCH /api/history/%s/progress - %s, index %d",
        session_id, user_id, request.currentQuestionIndex,
    )
    updated = history_store.update_progress(
        user_id, session_id, request.answer.model_dump(exclude_none=True), request.currentQuestionIndex,
    )
    if updated is None:
        raise HTTPException(status_code=404, detail="Session not found")

    return {
        "id": updated["id"],
        "status": updated["status"],
        "currentQuestionIndex": updated["currentQuestionIndex"],
        "answeredCount": len(updated["answers"]),
        "score": updated["score"],
        "updatedAt": updated["updatedAt"],
    }


@router.patch("/{session_id}/super-json")
@instrument(route="/api/history/{id}/super-json")
def replace_super_json(session_id: str, request: SuperJsonUpdateRequest, user_id: str = Depends(get_user_id)):
    updated = history_store.update_session_super_json(user_id, session_id, request.superJson)
    if updated is None:
        raise HTTPException(status_code=404, detail="Session not found or not in-progress")

    metadata = updated["superJson"].get("metadata") or {}
    return {
        "id": updated["id"],
        "status": updated["status"],
        "totalQuestions": metadata.get("totalQuestions") or count_questions(updated["superJson"]),
        "updatedAt": updated["updatedAt"],
    }


@router.delete("/{session_id}")
@instrument(route="/api/history/{id}")
def delete_history_session(session_id: str, user_id: str = Depends(get_user_id)):
    if not history_store.delete_session(user_id, session_id):
        raise HTTPException(status_code=404, detail="Session not found or not owned by user")
    logger.info("Deleted session %s for %s", session_id, user_id)
    return {"success": True, "message": "Session deleted"}
