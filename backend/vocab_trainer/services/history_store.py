"""
Persistent practice-session history.

Every practice run is one row in the SQLite ``sessions`` table. A row starts
``in_progress`` (answers appended one by one through ``update_progress``) or
is saved ``completed`` in one go. Quiz bundles, answers and analysis are
stored as JSON columns.

Storage: SQLite file at ``settings.database_path`` (created on first use).
"""
from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Optional

from sqlalchemy import JSON, Boolean, Float, Integer, String, create_engine, event, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker

from vocab_trainer.core.config import get_settings
from vocab_trainer.utils.answer_match import match_answer
from vocab_trainer.utils.wrong_answers import count_questions, find_question

logger = logging.getLogger("vocabtrainer.history_store")

EMPTY_ANALYSIS = {"report": "", "recommendations": []}
ACTIVITY_DAYS = 7


class Base(DeclarativeBase):
    pass


class PracticeSession(Base):
    __tablename__ = "sessions"
    id: Mapped[str] = mapped_column(String, primary_key=True)
    user_id: Mapped[Optional[str]] = mapped_column(String, index=True)
    mode: Mapped[str] = mapped_column(String, nullable=False)
    difficulty: Mapped[str] = mapped_column(String, nullable=False)
    words: Mapped[list] = mapped_column(JSON, nullable=False)
    super_json: Mapped[dict] = mapped_column(JSON, nullable=False)
    answers: Mapped[list] = mapped_column(JSON, nullable=False)
    score: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    analysis: Mapped[dict] = mapped_column(JSON, nullable=False)
    created_at: Mapped[str] = mapped_column(String, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="in_progress")
    current_question_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[str] = mapped_column(String, nullable=False)
    has_vocab_details: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    vocab_details: Mapped[Optional[list]] = mapped_column(JSON)


engine: Optional[Engine] = None
SessionLocal: Optional[sessionmaker] = None


def _enable_wal(dbapi_conn, _record) -> None:
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.close()


def init_db(database_path: str | None = None) -> Engine:
    """Create the engine for ``database_path`` (or the configured path) and its tables."""
    global engine, SessionLocal
    path = database_path or get_settings().database_path
    if path != ":memory:":
        Path(path).parent.mkdir(parents=True, exist_ok=True)
    engine = create_engine(f"sqlite:///{path}", connect_args={"check_same_thread": False})
    event.listen(engine, "connect", _enable_wal)
    SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)
    Base.metadata.create_all(bind=engine)
    logger.info("History database ready at %s", path)
    return engine


def get_session() -> Session:
    if SessionLocal is None:
        init_db()
    return SessionLocal()


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def to_record(row: PracticeSession) -> dict[str, Any]:
    record = {
        "id": row.id,
        "userId": row.user_id,
        "mode": row.mode,
        "difficulty": row.difficulty,
        "words": row.words,
        "superJson": row.super_json,
        "answers": row.answers,
        "score": row.score,
        "analysis": row.analysis,
        "createdAt": row.created_at,
        "status": row.status or "completed",
        "currentQuestionIndex": row.current_question_index or 0,
        "updatedAt": row.updated_at or row.created_at,
        "hasVocabDetails": bool(row.has_vocab_details),
    }
    if row.vocab_details is not None:
        record["vocabDetails"] = row.vocab_details
    return record


def _insert(row: PracticeSession) -> dict[str, Any]:
    with get_session() as db:
        db.add(row)
        db.commit()
        return to_record(row)


def save_session(
    user_id: str,
    difficulty: str,
    words: list[str],
    super_json: dict,
    answers: list[dict],
    score: float,
    analysis: dict,
    mode: str = "authenticated",
    status: str = "completed",
    current_question_index: int | None = None,
    has_vocab_details: bool = False,
    vocab_details: list[dict] | None = None,
) -> dict[str, Any]:
    """Store a finished practice run."""
    now = _now_iso()
    row = PracticeSession(
        id=str(uuid.uuid4()),
        user_id=user_id,
        mode=mode,
        difficulty=difficulty,
        words=words,
        super_json=super_json,
        answers=answers,
        score=score,
        analysis=analysis,
        created_at=now,
        status=status,
        current_question_index=len(answers) if current_question_index is None else current_question_index,
        updated_at=now,
        has_vocab_details=has_vocab_details,
        vocab_details=vocab_details,
    )
    return _insert(row)


def create_in_progress_session(
    user_id: str,
    difficulty: str,
    words: list[str],
    super_json: dict,
    mode: str = "authenticated",
    has_vocab_details: bool = False,
    vocab_details: list[dict] | None = None,
) -> dict[str, Any]:
    """Open a session the learner can resume; answers are appended later."""
    now = _now_iso()
    row = PracticeSession(
        id=str(uuid.uuid4()),
        user_id=user_id,
        mode=mode,
        difficulty=difficulty,
        words=words,
        super_json=super_json,
        answers=[],
        score=0,
        analysis=dict(EMPTY_ANALYSIS),
        created_at=now,
        status="in_progress",
        current_question_index=0,
        updated_at=now,
        has_vocab_details=has_vocab_details,
        vocab_details=vocab_details,
    )
    return _insert(row)


def list_sessions(user_id: str, status: str | None = None) -> list[dict[str, Any]]:
    """Newest first: by created_at, or by updated_at when filtering on status."""
    stmt = select(PracticeSession).where(PracticeSession.user_id == user_id)
    if status:
        stmt = stmt.where(PracticeSession.status == status).order_by(PracticeSession.updated_at.desc())
    else:
        stmt = stmt.order_by(PracticeSession.created_at.desc())
    with get_session() as db:
        return [to_record(row) for row in db.scalars(stmt)]


def _get_row(db: Session, user_id: str, session_id: str) -> Optional[PracticeSession]:
    return db.scalars(
        select(PracticeSession).where(
            PracticeSession.id == session_id, PracticeSession.user_id == user_id,
        )
    ).first()


def get_session_record(user_id: str, session_id: str) -> Optional[dict[str, Any]]:
    with get_session() as db:
        row = _get_row(db, user_id, session_id)
        return to_record(row) if row else None


def update_progress(
    user_id: str,
    session_id: str,
    answer: dict,
    new_index: int,
) -> Optional[dict[str, Any]]:
    """Append one answer and advance the question index.

    Fill-in answers are re-graded against the stored correct answer. The
    session completes once the index reaches the total question count;
    the score (percentage of correct answers) is only computed then.
    """
    with get_session() as db:
        row = _get_row(db, user_id, session_id)
        if row is None:
            return None

        question = find_question(row.super_json, answer.get("questionId", ""))
        if question and "userInput" in answer and question.get("correctAnswer"):
            answer = {**answer, "correct": match_answer(answer["userInput"], question["correctAnswer"])}

        answers = [*row.answers, answer]
        total = count_questions(row.super_json)
        status = "completed" if new_index >= total else "in_progress"
        if status == "completed":
            correct = sum(1 for a in answers if a.get("correct"))
            row.score = round(correct / total * 100) if total else 0

        row.answers = answers
        row.current_question_index = new_index
        row.status = status
        row.updated_at = _now_iso()
        db.commit()
        return to_record(row)


def update_session_super_json(user_id: str, session_id: str, super_json: dict) -> Optional[dict[str, Any]]:
    """Replace the quiz bundle of an in-progress session (e.g. after a section retry)."""
    with get_session() as db:
        row = _get_row(db, user_id, session_id)
        if row is None or row.status != "in_progress":
            return None
        row.super_json = super_json
        row.updated_at = _now_iso()
        db.commit()
        return to_record(row)


def delete_session(user_id: str, session_id: str) -> bool:
    with get_session() as db:
        row = _get_row(db, user_id, session_id)
        if row is None:
            return False
        db.delete(row)
        db.commit()
        return True


def get_learning_stats(user_id: str, today: date | None = None) -> dict[str, Any]:
    """Distinct words and sessions over completed runs, plus 7 days of activity."""
    today = today or datetime.now(timezone.utc).date()
    stmt = select(PracticeSession).where(
        PracticeSession.user_id == user_id, PracticeSession.status == "completed",
    )
    with get_session() as db:
        rows = list(db.scalars(stmt))

    words: set[str] = set()
    per_day: dict[str, int] = {}
    for row in rows:
        words.update(row.words or [])
        day = (row.updated_at or row.created_at)[:10]
        per_day[day] = per_day.get(day, 0) + 1

    weekly_activity = []
    for offset in range(ACTIVITY_DAYS - 1, -1, -1):
        day = (today - timedelta(days=offset)).isoformat()
        weekly_activity.append({"date": day, "count": per_day.get(day, 0)})

    return {
        "totalWordsLearned": len(words),
        "totalSessionsCompleted": len(rows),
        "weeklyActivity": weekly_activity,
    }
