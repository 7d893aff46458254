"""Prompt templates for vocabulary extraction from worksheet images."""

ENTRY_GUIDELINE = (
    "Only transcribe the numbered vocabulary entries (ignore headings). "
    'Strip trailing part-of-speech labels like "(n.)" or "(adj.)", keep apostrophes/curly quotes, '
    "and never append punctuation that was not present."
)

NORMALIZATION_RULES = """Normalization rules that MUST be followed:
1. Replace straight apostrophes with RIGHT SINGLE QUOTATION MARK (’) so idioms keep the curly mark.
2. Remove spaces around slashes, e.g. convert "with/ by" to "with/by".
3. When a term contains "(s)" or similar optional letters, output the fully spelled form (e.g. "affliction(s)" -> "afflictions").
4. When one numbered line contains multiple vocabulary items, emit each item separately even if they share the same number.
5. Verify before responding: re-read each word letter by letter and remove characters that are not in the image. Never expand short words into longer ones.
6. Never output section headings such as "Unit 13" as vocabulary entries.
7. If you mark an entry with confident=false, still provide your best corrected normalized value."""

EXTRACTION_PROMPT = f"""You are a meticulous OCR specialist for vocabulary extraction.

TASK:
1. Extract ALL vocabulary words and phrases from the numbered word-list images.
2. Think in two passes:
   - Pass 1: list every candidate word in order.
   - Pass 2: for any word with 6 letters or fewer, spell it letter by letter and fix mistakes before finalizing.

{ENTRY_GUIDELINE}

{NORMALIZATION_RULES}

Return JSON with `words` = [{{index, raw, normalized, confident}}]:
- index = the original numbering on the worksheet.
- raw = the exact substring you saw in the image before cleanup.
- normalized = the cleaned vocabulary entry after applying the rules above.
- confident = true if you verified every letter, false if you are uncertain even after correction."""
