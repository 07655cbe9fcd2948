"""
Conversation signal detection.

Pure functions over dialogue text that feed phase readiness:
    - finalization signals (user wants to stop refining and proceed)
    - discovery context (how much business context the user has shared)
    - refinement progress phrases
    - rollback intent (user asks to return to an earlier state)
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from okr_coach.domain.models.phase import PHASE_ORDER, Phase

_I = re.IGNORECASE

# Explicit requests to finalize or proceed; count at any conversation length
STRONG_FINALIZATION = [
    re.compile(p, _I)
    for p in (
        r"\blet'?s\s+finali[sz]e\b",
        r"\bfinali[sz]e\s+(?:this|it|the\s+okr)\b",
        r"\bready\s+to\s+(?:finali[sz]e|move\s+on|proceed|move\s+forward)\b",
        r"\bplease\s+finali[sz]e\b",
        r"\bi\s+approve\b",
        r"\bapproved\b",
        r"\bwrap\s+(?:this|it)\s+up\b",
        r"\bwe'?re\s+done\b",
        r"\bfinal\s+version\b",
        r"\blet'?s\s+move\s+(?:forward|on)\b",
        r"\bmove\s+(?:on\s+)?to\s+(?:the\s+)?next\s+(?:phase|step)\b",
        r"\bproceed\s+to\s+(?:the\s+)?next\b",
        r"\bthis\s+is\s+complete\b",
        r"\bready\s+for\s+(?:the\s+)?(?:next|key\s+results)\b",
    )
]

# Approval phrasing that may just be early enthusiasm
WEAK_FINALIZATION = [
    re.compile(p, _I)
    for p in (
        r"\blooks?\s+(?:good|great|perfect)\b",
        r"\bsounds?\s+(?:good|great|perfect)\b",
        r"\bthat\s+works\b",
        r"\bi\s+like\s+(?:it|this|that)\b",
        r"\bperfect\b",
        r"\bexcellent\b",
        r"\bthat'?s\s+great\b",
        r"\bspot\s+on\b",
        r"\bthis\s+captures\s+it\b",
        r"\bsatisfied\s+with\b",
        r"\bgood\s+with\s+this\b",
    )
]

BUSINESS_TERMS = ["business", "company", "organization", "team", "project", "product", "system"]
STAKEHOLDER_TERMS = ["developer", "tester", "user", "customer", "client", "manager", "partner", "executive"]
OUTCOME_TERMS = ["improve", "increase", "reduce", "achieve", "deliver", "grow", "implement"]
METRIC_TERMS = ["metric", "kpi", "measure", "%", "nps", "revenue", "conversion", "retention", "churn", "rate"]
CONSTRAINT_TERMS = ["budget", "deadline", "timeline", "constraint", "limited", "headcount", "resources", "quarter"]
DECLARATION_PATTERN = re.compile(
    r"\b(?:our\s+(?:goal|focus|priority)\s+is|we\s+(?:want|need)\s+to|i\s+want\s+to)\b", _I
)
READINESS_TERMS = ["ready", "fine with", "let's", "move on", "next step"]
FRUSTRATION_TERMS = ["already", "again", "told you", "repeating", "focus on"]
REFINEMENT_PROGRESS_TERMS = ["next phase", "key results", "move forward", "continue", "next step", "done with objective"]

# Rollback requests are imperatives at the start of a message, optionally
# after a short interjection and a polite lead-in ("please", "can we").
_ROLLBACK_LEAD_IN = (
    r"^\s*(?:(?:ok(?:ay)?|actually|hmm|wait|sorry|no)[,.!]?\s+)?"
    r"(?:(?:please|can\s+we|could\s+we|can\s+you|could\s+you|let's|let\s+us"
    r"|i\s+want\s+to|i'd\s+like\s+to|we\s+should)\s+)?"
    r"(?:please\s+)?"
)
ROLLBACK_PATTERNS = [
    re.compile(_ROLLBACK_LEAD_IN + p, _I)
    for p in (
        r"go\s+back\b",
        r"undo\b",
        r"revert\b",
        r"roll\s*back\b",
        r"return\s+to\s+(?:the\s+)?previous\s+(?:state|step|version)\b",
        r"start\s+over\b",
    )
]
_PHASE_TARGET = _ROLLBACK_LEAD_IN + r"(?:go\s+back|return|roll\s*back|revert|back)\s+to\s+(?:the\s+)?"
PHASE_ALIASES = {
    Phase.DISCOVERY: ["discovery"],
    Phase.REFINEMENT: ["refinement", "objective refinement"],
    Phase.KR_DISCOVERY: ["kr discovery", "key results", "key result"],
    Phase.VALIDATION: ["validation", "review"],
}


@dataclass
class FinalizationSignal:
    detected: bool = False
    strength: Optional[str] = None  # "strong" or "weak"
    matches: List[str] = field(default_factory=list)


def detect_finalization_signal(
    recent_messages: Sequence[str],
    total_message_count: int,
    weak_min_messages: int = 5,
) -> FinalizationSignal:
    """Search the last turns of dialogue for a request to finalize.

    Strong phrases always count. Weak approval phrases count only once the
    conversation has more than `weak_min_messages` messages.
    """
    strong: List[str] = []
    weak: List[str] = []
    for message in recent_messages:
        for pattern in STRONG_FINALIZATION:
            match = pattern.search(message)
            if match:
                strong.append(match.group(0))
        for pattern in WEAK_FINALIZATION:
            match = pattern.search(message)
            if match:
                weak.append(match.group(0))

    if strong:
        return FinalizationSignal(True, "strong", strong)
    if weak and total_message_count > weak_min_messages:
        return FinalizationSignal(True, "weak", weak)
    return FinalizationSignal()


def count_finalization_phrases(message: str) -> int:
    """Number of distinct finalization phrases (strong or weak) in one message."""
    return sum(1 for p in STRONG_FINALIZATION + WEAK_FINALIZATION if p.search(message))


@dataclass
class DiscoveryContext:
    """Business context signals accumulated from the user's messages."""

    business_objectives: List[str] = field(default_factory=list)
    stakeholders: List[str] = field(default_factory=list)
    outcomes: List[str] = field(default_factory=list)
    metrics: List[str] = field(default_factory=list)
    constraints: List[str] = field(default_factory=list)
    declarations: int = 0
    answered_questions: int = 0
    readiness_signals: int = 0
    frustration_signals: int = 0


def _present(terms: Sequence[str], text: str) -> List[str]:
    return [term for term in terms if term in text]


def analyze_discovery_context(user_messages: Sequence[str]) -> DiscoveryContext:
    """Collect discovery signals from everything the user has said."""
    text = " ".join(user_messages).lower()
    return DiscoveryContext(
        business_objectives=_present(BUSINESS_TERMS, text),
        stakeholders=_present(STAKEHOLDER_TERMS, text),
        outcomes=_present(OUTCOME_TERMS, text),
        metrics=_present(METRIC_TERMS, text),
        constraints=_present(CONSTRAINT_TERMS, text),
        declarations=len(DECLARATION_PATTERN.findall(text)),
        answered_questions=sum(1 for m in user_messages if len(m.split()) >= 5),
        readiness_signals=len(_present(READINESS_TERMS, text)),
        frustration_signals=len(_present(FRUSTRATION_TERMS, text)),
    )


def has_refinement_progress(message: str) -> bool:
    lower = message.lower()
    return any(term in lower for term in REFINEMENT_PROGRESS_TERMS)


@dataclass
class RollbackIntent:
    detected: bool = False
    target_phase: Optional[Phase] = None


def detect_rollback_intent(message: str) -> RollbackIntent:
    """Recognize requests like "go back", "undo" or "back to refinement".

    Only backward verbs count; "go to key results" is a forward request and
    the words must open the message, so "reduce revert rate" stays content.
    """
    lower = message.lower()
    for phase in PHASE_ORDER:
        for alias in PHASE_ALIASES.get(phase, []):
            if re.match(_PHASE_TARGET + re.escape(alias) + r"\b", lower):
                return RollbackIntent(True, phase)

    if any(p.match(message) for p in ROLLBACK_PATTERNS):
        return RollbackIntent(True, None)
    return RollbackIntent()
