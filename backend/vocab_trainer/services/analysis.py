import json
import logging
import time

from vocab_trainer.core.config import get_settings
from vocab_trainer.prompts.analysis import ANALYSIS_SYSTEM_PROMPT
from vocab_trainer.services.openrouter import chat_json, json_schema_format
from vocab_trainer.utils.wrong_answers import count_questions

logger = logging.getLogger("vocabtrainer.analysis")

RESPONSE_FORMAT = json_schema_format(
    "analysis_report",
    {
        "type": "object",
        "properties": {
            "report": {
                "type": "string",
                "description": "About 100 Chinese characters: overall evaluation plus encouragement",
            },
            "recommendations": {
                "type": "array",
                "minItems": 2,
                "maxItems": 4,
                "description": "Actionable next steps, in Chinese",
                "items": {"type": "string"},
            },
        },
        "required": ["report", "recommendations"],
        "additionalProperties": False,
    },
)


def build_analysis(
    difficulty: str,
    words: list[str],
    answers: list[dict],
    super_json: dict,
    score: float,
) -> dict:
    """Ask the analysis model for a short report and next-step recommendations."""
    model = get_settings().analysis_model
    wrong_ids = [a["questionId"] for a in answers if not a.get("correct")]
    t0 = time.time()

    logger.info(
        "Building analysis for %d answers (score=%s%%, wrong=%d, difficulty=%s, words=%d)",
        len(answers), score, len(wrong_ids), difficulty, len(words),
    )

    payload = {
        "difficulty": difficulty,
        "words": words,
        "score": score,
        "wrongQuestionIds": wrong_ids,
        "answeredQuestions": len(answers),
        "totalQuestions": count_questions(super_json or {}) or len(answers),
    }
    messages = [
        {"role": "system", "content": ANALYSIS_SYSTEM_PROMPT},
        {"role": "user", "content": json.dumps(payload, ensure_ascii=False, indent=2)},
    ]

    try:
        result = chat_json(model, messages, response_format=RESPONSE_FORMAT)
    except Exception as exc:
        logger.error(
            "Failed to build analysis after %dms (score=%s, wrong=%d): %s",
            int((time.time() - t0) * 1000), score, len(wrong_ids), exc,
        )
        raise

    if not isinstance(result, dict) or "report" not in result:
        raise ValueError("Analysis response is missing the report")
    result.setdefault("recommendations", [])
    logger.info(
        "Analysis generated in %dms (recommendations=%d)",
        int((time.time() - t0) * 1000), len(result["recommendations"]),
    )
    return result
