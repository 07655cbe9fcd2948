"""
Heuristic extraction of OKR text from conversational messages.

These are the text-extraction collaborators of the coaching core: they pull
a candidate objective and candidate key-result strings out of free text.
Callers consume their output as plain strings.
"""

import re
from typing import List, Optional

from okr_coach.services.scoring.key_result import METRIC_TOKEN

_I = re.IGNORECASE

OBJECTIVE_PATTERNS = [
    re.compile(r"(?:main\s+)?objective(?:\s+is)?\s*[:\-]\s*['\"]([^'\"]+)['\"]", _I),
    re.compile(r"(?:main\s+)?objective(?:\s+is)?\s*[:\-]\s*([^.!?\n]+)", _I),
    re.compile(
        r"^((?:accelerate|improve|increase|achieve|deliver|enable|create|build|develop|transform"
        r"|enhance|drive|boost|grow|become|dominate|delight)\s+[^.!?\n]{10,})",
        _I | re.MULTILINE,
    ),
    re.compile(r"\b(?:we|i)\s+(?:want(?:\s+to)?|need(?:\s+to)?|will|should)\s+([^.!?\n]+)", _I),
    re.compile(r"\b(?:goal|aim)(?:\s+is)?\s*[:\-]?\s*(?:to\s+)?([^.!?\n]+)", _I),
]

KEY_RESULT_LIST = re.compile(
    r"(?:key\s+results?|KRs?)\s*(?:could\s+be|are|would\s+be|should\s+be|include|:)[:\s]+([^\n]+)",
    _I,
)
LIST_SPLIT = re.compile(
    r";\s*|,\s*(?:and\s+)?(?=[A-Za-z])"
    r"|\s+and\s+(?=(?:increase|reduce|grow|improve|launch|achieve|reach|cut|decrease|raise|hit)\b)",
    _I,
)
BULLET = re.compile(r"^\s*(?:[-*•]|\d+[.)]|KR\s*\d+\s*[:.)-]|key\s+result\s*\d*\s*[:.)-])\s*", _I)
KR_LEAD = re.compile(
    r"^(?:(?:i\s+think\s+)?(?:we|i)\s+(?:should|could|want\s+to|will|can)\s+|one\s+(?:kr|key\s+result)\s+(?:could\s+be|is)\s*:?\s*)",
    _I,
)
KR_VERB = re.compile(
    r"^(?:increase|reduce|decrease|grow|improve|launch|deliver|ship|achieve|reach|attain|hit"
    r"|cut|lower|raise|boost|expand|maintain|double|complete|maximize|minimize)\b",
    _I,
)

MIN_OBJECTIVE_CHARS = 15
MIN_OBJECTIVE_WORDS = 3
MIN_KEY_RESULT_CHARS = 15


def _clean(fragment: str) -> str:
    return fragment.strip().strip("'\"").rstrip(".!;, ").strip()


def extract_objective(text: str) -> Optional[str]:
    """Return the first substantial objective statement in `text`, if any."""
    for pattern in OBJECTIVE_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        candidate = _clean(match.group(1))
        if len(candidate) > MIN_OBJECTIVE_CHARS and len(candidate.split()) >= MIN_OBJECTIVE_WORDS:
            return candidate[0].upper() + candidate[1:]
    return None


def _as_key_result(fragment: str, require_verb: bool) -> Optional[str]:
    candidate = _clean(KR_LEAD.sub("", BULLET.sub("", fragment)))
    if len(candidate) < MIN_KEY_RESULT_CHARS or not METRIC_TOKEN.search(candidate):
        return None
    if require_verb and not KR_VERB.search(candidate):
        return None
    return candidate[0].upper() + candidate[1:]


def extract_key_results(text: str) -> List[str]:
    """Return candidate key results found in `text`, deduplicated, in order.

    Recognizes inline lists ("key results could be: X, Y and Z"), bulleted or
    numbered lines, and standalone lines that start with a key-result verb and
    carry a metric.
    """
    found: List[str] = []
    seen = set()

    def add(candidate: Optional[str]) -> None:
        if candidate and candidate.lower() not in seen:
            seen.add(candidate.lower())
            found.append(candidate)

    remainder = text
    list_match = KEY_RESULT_LIST.search(text)
    if list_match:
        for part in LIST_SPLIT.split(list_match.group(1)):
            add(_as_key_result(part, require_verb=False))
        remainder = text[: list_match.start()] + text[list_match.end() :]

    for line in remainder.splitlines():
        if not line.strip():
            continue
        bulleted = bool(BULLET.match(line))
        for sentence in re.split(r"(?<=[.!?])\s+(?=[A-Z])", line.strip()):
            add(_as_key_result(sentence, require_verb=not bulleted))

    return found
