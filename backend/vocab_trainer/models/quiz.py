from pydantic import BaseModel, Field
from typing import Any, Literal

DifficultyLevel = Literal["beginner", "intermediate", "advanced"]
QuestionType = Literal["questions_type_1", "questions_type_2", "questions_type_3"]
SessionStatus = Literal["in_progress", "completed"]

QUESTION_TYPES: tuple[str, ...] = ("questions_type_1", "questions_type_2", "questions_type_3")


class AnswerRecord(BaseModel):
    questionId: str
    choiceId: str | None = None
    userInput: str | None = None
    correct: bool
    elapsedMs: float


class AnalysisSummary(BaseModel):
    report: str
    recommendations: list[str]


class VocabularyExample(BaseModel):
    en: str
    zh: str


class VocabularyDetail(BaseModel):
    word: str
    partsOfSpeech: list[str]
    definitions: list[str]
    examples: list[VocabularyExample]


# ── Request bodies ────────────────────────────────────────────────────────────

class GenerationRequest(BaseModel):
    words: list[str] = Field(min_length=1)
    difficulty: DifficultyLevel
    questionCountPerType: int | None = Field(default=None, ge=3, le=30)


class RetryRequest(BaseModel):
    type: QuestionType


class BindRequest(BaseModel):
    historySessionId: str = Field(min_length=1)


class DetailsRequest(BaseModel):
    words: list[str] = Field(min_length=1)
    difficulty: DifficultyLevel


class ExtractRequest(BaseModel):
    images: list[str] = Field(min_length=1)


class AnalysisRequest(BaseModel):
    difficulty: DifficultyLevel
    words: list[str]
    answers: list[AnswerRecord]
    superJson: dict[str, Any]
    score: float = Field(ge=0, le=100)


class SaveSessionRequest(BaseModel):
    mode: Literal["authenticated"] = "authenticated"
    difficulty: DifficultyLevel
    words: list[str]
    superJson: dict[str, Any]
    answers: list[AnswerRecord]
    score: float
    analysis: AnalysisSummary
    hasVocabDetails: bool = False
    vocabDetails: list[VocabularyDetail] | None = None


class InProgressSessionRequest(BaseModel):
    difficulty: DifficultyLevel
    words: list[str] = Field(min_length=1)
    superJson: dict[str, Any]
    hasVocabDetails: bool = False
    vocabDetails: list[VocabularyDetail] | None = None


class ProgressRequest(BaseModel):
    answer: AnswerRecord
    currentQuestionIndex: int = Field(ge=0)


class SuperJsonUpdateRequest(BaseModel):
    superJson: dict[str, Any]
