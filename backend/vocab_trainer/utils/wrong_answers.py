"""Helpers over a quiz bundle: question lookup, counting, wrong-answer report."""
from vocab_trainer.models.quiz import QUESTION_TYPES


def count_questions(super_json: dict) -> int:
    return sum(len(super_json.get(qt) or []) for qt in QUESTION_TYPES)


def find_question(super_json: dict, question_id: str) -> dict | None:
    for qt in QUESTION_TYPES:
        for question in super_json.get(qt) or []:
            if question.get("id") == question_id:
                return question
    return None


def choice_text(question: dict, choice_id: str | None) -> str:
    if not choice_id:
        return ""
    for choice in question.get("choices") or []:
        if choice.get("id") == choice_id:
            return choice.get("text", "")
    return ""


def extract_wrong_answers(answers: list[dict], super_json: dict) -> list[dict]:
    """Pair every incorrect answer with its question, the user's answer and the right one.

    Answers pointing at unknown questions are skipped.
    """
    items = []
    for answer in answers:
        if answer.get("correct"):
            continue
        question = find_question(super_json, answer.get("questionId", ""))
        if question is None:
            continue

        if question.get("type") == "questions_type_3":
            user_answer = answer.get("userInput") or ""
            correct_answer = question.get("correctAnswer") or ""
        else:
            user_answer = choice_text(question, answer.get("choiceId"))
            correct_answer = choice_text(question, question.get("correctChoiceId"))

        items.append({
            "question": question,
            "userAnswer": user_answer,
            "correctAnswer": correct_answer,
        })
    return items
