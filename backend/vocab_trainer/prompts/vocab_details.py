"""Prompt templates for dictionary-style vocabulary details."""

DETAILS_SYSTEM_PROMPT = (
    "You are a bilingual lexicographer. Always return JSON that matches the provided schema. "
    "Do not include markdown fences or explanations."
)

DETAILS_USER_TEMPLATE = """You are a professional English-Chinese dictionary writer. Write an entry for each word below:
1. word: keep the input spelling exactly.
2. partsOfSpeech: array of lowercase parts of speech (e.g. verb, adjective, noun).
3. definitions: array of concise Chinese definitions covering the common senses, at least 1.
4. examples: 1 to 3 examples, each with en (English sentence) and zh (its Chinese translation), pitched at {difficulty} learners.
5. List every sense and part of speech the word has; examples must not give the answer away verbatim.
6. No extra text or Markdown, JSON only.

Word list (chunk {chunk_number}/{total_chunks}): {words}"""
