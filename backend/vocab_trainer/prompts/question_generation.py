"""Prompt templates for quiz generation."""

SECTION_SYSTEM_PROMPT = (
    "You only return JSON that follows the provided schema. Avoid markdown fences. "
    "Keep distractors natural and do not leak English explanations in the Chinese fields."
)

SUPER_JSON_SYSTEM_PROMPT = (
    "You only return JSON that follows the provided schema. "
    "Always craft natural distractors and never reuse the same order."
)

QUESTION_TYPE_RULES = {
    "questions_type_1": (
        "- Show a clear Chinese definition, situation or example; the learner picks the "
        "correct English word from 4 options. The correct answer must come from the word "
        "list; distractors should be semantically close and may come from outside the list."
    ),
    "questions_type_2": (
        "- Show an English definition or example sentence; the learner picks the matching "
        "Chinese meaning or translation. Distractors may build on common misunderstandings."
    ),
    "questions_type_3": (
        '- The prompt is an English sentence containing "_____", with a Chinese translation '
        "and a hint (part of speech / definition / word root). Provide 4 English candidates; "
        "exactly one fills the blank correctly. Put that word in correctAnswer as well."
    ),
}

SHARED_TYPE_RULES = """
- Every question has exactly 4 choices (choices[4]) and correctChoiceId names one of them.
- explanation and hint are written in Chinese; hints point in a direction (part of speech, root, mnemonic).
- Every question's type field is this section's identifier; question ids and choice ids are unique.
- Prompts and options read naturally. No markdown or extra text, JSON only."""

SECTION_USER_TEMPLATE = """You are a rigorous quiz-writing AI. Using the word list and difficulty below, write {count} {question_type} questions.
{type_rules}
{shared_rules}
- Word list: {words}
- Difficulty: {difficulty}
- Number of questions: {count}

Return JSON only; the structure must match the schema."""

SUPER_JSON_USER_TEMPLATE = """You are a rigorous quiz-writing AI. Build a "super JSON" from the user's word list with 3 sections of {per_type} questions each.

{type_1}
{type_2}
{type_3}

Shuffle question order; every choices array is 4-choose-1. Explanations and hints are in Chinese, and each question's type field names its section. Follow the JSON Schema strictly.
Difficulty: {difficulty}
Words: {words}"""
