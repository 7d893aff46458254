"""Answer comparison for fill-in (section 3) questions."""
import re

_WS_RE = re.compile(r"\s+")


def to_half_width(text: str) -> str:
    """Map full-width ASCII variants (U+FF01..U+FF5E) and the ideographic space to ASCII."""
    out = []
    for ch in text:
        code = ord(ch)
        if 0xFF01 <= code <= 0xFF5E:
            out.append(chr(code - 0xFEE0))
        elif ch == "\u3000":
            out.append(" ")
        else:
            out.append(ch)
    return "".join(out)


def normalize_answer(text: str, remove_hyphen: bool = True) -> str:
    normalized = to_half_width(text).lower().strip()
    normalized = _WS_RE.sub(" ", normalized)
    if remove_hyphen:
        normalized = normalized.replace("-", "")
    return normalized


def match_answer(user_input: str, correct_answer: str) -> bool:
    """Case-, width- and whitespace-insensitive; hyphens optional; apostrophes exact."""
    if normalize_answer(user_input) == normalize_answer(correct_answer):
        return True
    return normalize_answer(user_input, False) == normalize_answer(correct_answer, False)


def first_letter_hint(answer: str) -> str:
    trimmed = answer.strip()
    if not trimmed:
        return "_____"
    return f"{trimmed[0].lower()}_____"
