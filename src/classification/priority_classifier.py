from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional

from classification.learning import MAX_LEARNING_PATTERNS, matching_fragments, recent_records
from classification.patterns import PRIORITY_PATTERNS
from divergent_flow.models import LearningRecord, PriorityInference

logger = logging.getLogger(__name__)

LEARNED_BASE_CONFIDENCE = 70.0
LEARNED_STRONG_BOOST = 25.0
LEARNED_WEAK_BOOST = 15.0
LEARNED_STRONG_RECORD = 80.0
LEARNED_SHORT_CIRCUIT = 80.0

DEFAULT_CONFIDENCE = 40.0
DECISIVE_CONFIDENCE = 85.0
TIED_CONFIDENCE = 60.0


def learned_priority(
    text: str,
    learning_history: Iterable[LearningRecord],
    max_patterns: int = MAX_LEARNING_PATTERNS,
) -> Optional[PriorityInference]:
    """First recent priority record whose words overlap the text."""
    records = recent_records(
        (r for r in learning_history if r.kind == "priority"),
        limit=max_patterns,
        include_incorrect=False,
    )
    for record in records:
        matched = matching_fragments(record.pattern, text)
        if matched is None:
            continue
        boost = LEARNED_STRONG_BOOST if record.confidence >= LEARNED_STRONG_RECORD else LEARNED_WEAK_BOOST
        return PriorityInference(
            priority=record.value,
            confidence=LEARNED_BASE_CONFIDENCE + boost,
            reasoning=f"Similar to previous {record.value} priority patterns (matched {len(matched)} keywords)",
        )
    return None


def infer_priority(
    text: str,
    item_type: Optional[str],
    learning_history: Iterable[LearningRecord] = (),
    max_patterns: int = MAX_LEARNING_PATTERNS,
) -> PriorityInference:
    if item_type not in ("action", "reminder"):
        return PriorityInference(
            priority=None,
            confidence=0.0,
            reasoning="Priority only applies to actions and reminders",
        )

    text = text or ""
    learned = learned_priority(text, learning_history, max_patterns)
    if learned is not None and learned.confidence >= LEARNED_SHORT_CIRCUIT:
        return learned

    scores: Dict[str, float] = {"high": 0.0, "low": 0.0}
    for pattern in PRIORITY_PATTERNS:
        # first match per bucket only
        if scores[pattern.target] == 0 and pattern.pattern.search(text):
            scores[pattern.target] += pattern.weight

    if scores["high"] == 0 and scores["low"] == 0:
        return PriorityInference(
            priority="medium",
            confidence=DEFAULT_CONFIDENCE,
            reasoning="No priority indicators found, defaulting to medium",
        )

    if scores["high"] > scores["low"]:
        result = PriorityInference("high", DECISIVE_CONFIDENCE, "Detected urgency indicators")
    elif scores["low"] > scores["high"]:
        result = PriorityInference("low", DECISIVE_CONFIDENCE, "Detected low urgency indicators")
    else:
        result = PriorityInference("medium", TIED_CONFIDENCE, "Detected balanced urgency")

    logger.debug("Priority %s (%.0f) for %r", result.priority, result.confidence, text)
    return result
