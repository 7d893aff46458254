"""
Segmented quiz generation sessions.

A session tracks the three quiz sections independently:

    pending -> generating -> ready | error

Section 1 is generated while the client waits; section 2 starts in the
background straight after, and section 3 starts once section 2 is ready.
Any section can be retried; a retry only touches the targeted section
(and, for section 2, resets a not-yet-ready section 3).

Every trigger bumps the section's ``version``. A completion whose version
no longer matches, or whose session has been purged, is dropped.

Sessions live in memory and are purged by a one-shot timer after the TTL.
"""
import asyncio
import logging
import math
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import lru_cache
from typing import Callable, Optional

from vocab_trainer.core.config import get_settings
from vocab_trainer.models.quiz import QUESTION_TYPES
from vocab_trainer.services.question_generator import (
    assign_words_to_types,
    generate_questions_for_type,
    normalize_words,
)

logger = logging.getLogger("vocabtrainer.generation_session")

MIN_WORDS = 3


class GenerationSessionError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class SessionNotFoundError(GenerationSessionError):
    status_code = 404


class SectionsIncompleteError(GenerationSessionError):
    status_code = 409


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class SectionState:
    status: str = "pending"
    questions: list[dict] = field(default_factory=list)
    error: Optional[str] = None
    updated_at: Optional[int] = None
    version: int = 0


@dataclass
class HistoryBinding:
    user_id: str
    history_session_id: str
    synced: bool = False


@dataclass
class GenerationSession:
    id: str
    words: list[str]
    difficulty: str
    per_type: int
    type_word_map: dict[str, list[str]]
    generated_at: str
    total_questions_estimate: int
    created_at: int = field(default_factory=_now_ms)
    total_questions: int = 0
    sections: dict[str, SectionState] = field(
        default_factory=lambda: {qt: SectionState() for qt in QUESTION_TYPES}
    )
    binding: Optional[HistoryBinding] = None

    def update_total_questions(self) -> None:
        self.total_questions = sum(len(s.questions) for s in self.sections.values())

    def all_ready(self) -> bool:
        return all(s.status == "ready" for s in self.sections.values())

    def to_snapshot(self) -> dict:
        return {
            "sessionId": self.id,
            "metadata": {
                "totalQuestions": self.total_questions or self.total_questions_estimate,
                "estimatedTotalQuestions": self.total_questions_estimate,
                "generatedAt": self.generated_at,
                "difficulty": self.difficulty,
                "words": self.words,
            },
            "perType": self.per_type,
            "sections": {
                qt: {
                    "status": s.status,
                    "questions": s.questions,
                    "error": s.error,
                    "updatedAt": s.updated_at,
                }
                for qt, s in self.sections.items()
            },
        }

    def to_super_json(self) -> dict:
        return {
            "metadata": {
                "totalQuestions": self.total_questions,
                "words": self.words,
                "difficulty": self.difficulty,
                "generatedAt": self.generated_at,
            },
            **{qt: self.sections[qt].questions for qt in QUESTION_TYPES},
        }


GenerateFn = Callable[[str, list[str], str], list[dict]]
BundleSink = Callable[[str, str, dict], object]


def _sync_to_history(user_id: str, history_session_id: str, super_json: dict) -> object:
    from vocab_trainer.services import history_store

    return history_store.update_session_super_json(user_id, history_session_id, super_json)


class GenerationSessionManager:
    def __init__(
        self,
        generate: GenerateFn | None = None,
        ttl_seconds: float | None = None,
        on_bundle_ready: BundleSink | None = None,
    ):
        self._generate = generate or generate_questions_for_type
        self._ttl = ttl_seconds if ttl_seconds is not None else get_settings().generation_session_ttl_seconds
        self._on_bundle_ready = on_bundle_ready or _sync_to_history
        self._sessions: dict[str, GenerationSession] = {}
        self._timers: dict[str, asyncio.TimerHandle] = {}
        self._tasks: set[asyncio.Task] = set()

    # ── lookup ────────────────────────────────────────────────────────────

    def _ensure(self, session_id: str) -> GenerationSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError("Generation session not found")
        return session

    # ── lifecycle ─────────────────────────────────────────────────────────

    def _schedule_cleanup(self, session_id: str) -> None:
        loop = asyncio.get_running_loop()
        self._timers[session_id] = loop.call_later(self._ttl, self._purge, session_id)

    def _purge(self, session_id: str) -> None:
        self._timers.pop(session_id, None)
        if self._sessions.pop(session_id, None) is not None:
            logger.info("Purged expired generation session %s", session_id)

    def clear(self) -> None:
        for handle in self._timers.values():
            handle.cancel()
        self._timers.clear()
        self._sessions.clear()

    async def wait_idle(self) -> None:
        """Wait until no section generation is in flight."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ── generation ────────────────────────────────────────────────────────

    def _trigger(self, session_id: str, question_type: str) -> asyncio.Task:
        session = self._ensure(session_id)
        section = session.sections[question_type]
        section.status = "generating"
        section.error = None
        section.version += 1

        task = asyncio.get_running_loop().create_task(
            self._run_section(session_id, question_type, section.version)
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _current(self, session_id: str, question_type: str, version: int) -> Optional[GenerationSession]:
        latest = self._sessions.get(session_id)
        if latest is None or latest.sections[question_type].version != version:
            return None
        return latest

    async def _run_section(self, session_id: str, question_type: str, version: int) -> None:
        session = self._current(session_id, question_type, version)
        if session is None:
            return
        words = session.type_word_map[question_type]
        try:
            if words:
                questions = await asyncio.to_thread(
                    self._generate, question_type, words, session.difficulty,
                )
            else:
                questions = []
        except Exception as exc:
            latest = self._current(session_id, question_type, version)
            if latest is None:
                return
            target = latest.sections[question_type]
            target.status = "error"
            target.error = str(exc) or exc.__class__.__name__
            target.updated_at = _now_ms()
            logger.error(
                "GenerationSession: %s failed (session=%s): %s",
                question_type, session_id, target.error,
            )
            return

        latest = self._current(session_id, question_type, version)
        if latest is None:
            return
        target = latest.sections[question_type]
        target.questions = questions
        target.status = "ready"
        target.updated_at = _now_ms()
        latest.update_total_questions()
        logger.info(
            "GenerationSession: %s ready with %d questions (session=%s)",
            question_type, len(questions), session_id,
        )

        if question_type == "questions_type_2" and latest.sections["questions_type_3"].status != "ready":
            self._trigger(session_id, "questions_type_3")

        await self._maybe_sync_binding(latest)

    async def _maybe_sync_binding(self, session: GenerationSession) -> None:
        binding = session.binding
        if binding is None or binding.synced or not session.all_ready():
            return
        # claimed before the await so a concurrent completion does not sync twice
        binding.synced = True
        try:
            await asyncio.to_thread(
                self._on_bundle_ready, binding.user_id, binding.history_session_id, session.to_super_json(),
            )
        except Exception as exc:
            binding.synced = False
            logger.error(
                "GenerationSession: failed to sync session %s to history %s: %s",
                session.id, binding.history_session_id, exc,
            )
            return
        logger.info(
            "GenerationSession: synced session %s to history %s",
            session.id, binding.history_session_id,
        )

    # ── public API ────────────────────────────────────────────────────────

    async def start(
        self,
        words: list[str],
        difficulty: str,
        question_count_per_type: int | None = None,
    ) -> dict:
        normalized = normalize_words(words)
        if not normalized:
            raise GenerationSessionError("Word list cannot be empty")
        if len(normalized) < MIN_WORDS:
            raise GenerationSessionError(f"Word list must contain at least {MIN_WORDS} words")

        type_word_map = assign_words_to_types(normalized)
        total_estimate = len(normalized) * 2
        per_type = question_count_per_type or math.ceil(total_estimate / len(QUESTION_TYPES))

        logger.info(
            "GenerationSession: word assignment completed (words=%d, type1=%d, type2=%d, type3=%d, estimate=%d)",
            len(normalized),
            len(type_word_map["questions_type_1"]),
            len(type_word_map["questions_type_2"]),
            len(type_word_map["questions_type_3"]),
            total_estimate,
        )

        session = GenerationSession(
            id=str(uuid.uuid4()),
            words=normalized,
            difficulty=difficulty,
            per_type=per_type,
            type_word_map=type_word_map,
            generated_at=datetime.now(timezone.utc).isoformat(),
            total_questions_estimate=total_estimate,
        )
        self._sessions[session.id] = session
        self._schedule_cleanup(session.id)

        await self._trigger(session.id, "questions_type_1")
        if session.id in self._sessions:
            self._trigger(session.id, "questions_type_2")

        return session.to_snapshot()

    def snapshot(self, session_id: str) -> dict:
        return self._ensure(session_id).to_snapshot()

    async def retry(self, session_id: str, question_type: str) -> dict:
        session = self._ensure(session_id)

        if question_type == "questions_type_3" and session.sections["questions_type_2"].status != "ready":
            raise GenerationSessionError(
                "Section 2 has not been generated yet; section 3 cannot be generated"
            )

        if question_type == "questions_type_2":
            third = session.sections["questions_type_3"]
            if third.status != "ready":
                third.status = "pending"
                third.questions = []
                third.error = None
                third.updated_at = None

        logger.info("GenerationSession: retrying %s (session=%s)", question_type, session_id)
        self._trigger(session_id, question_type)
        return session.to_snapshot()

    def consume_full_super_json(self, session_id: str) -> dict:
        session = self._ensure(session_id)
        missing = next((qt for qt in QUESTION_TYPES if session.sections[qt].status != "ready"), None)
        if missing:
            raise SectionsIncompleteError(
                f"{missing} is still generating; the full quiz cannot be exported yet"
            )
        return session.to_super_json()

    async def bind_history(self, session_id: str, user_id: str, history_session_id: str) -> None:
        """Attach a history record that receives the full bundle once every section is ready."""
        session = self._ensure(session_id)
        session.binding = HistoryBinding(user_id=user_id, history_session_id=history_session_id)
        logger.info(
            "GenerationSession: bound session %s to history %s", session_id, history_session_id,
        )
        await self._maybe_sync_binding(session)


@lru_cache
def get_session_manager() -> GenerationSessionManager:
    return GenerationSessionManager()
