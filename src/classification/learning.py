from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Optional

from classification.text_features import fragments_overlap, word_fragments
from divergent_flow.models import LearningRecord

MIN_WORD_LENGTH_FOR_LEARNING = 3
MIN_MATCHING_WORDS = 2
MAX_LEARNING_PATTERNS = 50


def recent_records(
    records: Iterable[LearningRecord],
    limit: int = MAX_LEARNING_PATTERNS,
    include_incorrect: bool = True,
) -> List[LearningRecord]:
    """Most recent first, truncated to `limit`."""
    pool = [r for r in records if include_incorrect or r.was_correct is not False]
    pool.sort(key=lambda r: r.timestamp, reverse=True)
    return pool[:limit]


def matching_fragments(pattern_text: str, text: str) -> Optional[List[str]]:
    """Pattern words found in `text`, or None when too few of them match.

    At least min(2, number of pattern words) words of three or more letters
    must overlap.
    """
    pattern_words = word_fragments(pattern_text, MIN_WORD_LENGTH_FOR_LEARNING)
    if not pattern_words:
        return None
    text_words = word_fragments(text, MIN_WORD_LENGTH_FOR_LEARNING)
    matched = [
        word for word in pattern_words
        if any(fragments_overlap(word, tw) for tw in text_words)
    ]
    if len(matched) >= min(MIN_MATCHING_WORDS, len(pattern_words)):
        return matched
    return None


def build_learning_record(
    kind: str,
    text: str,
    inferred_value: Optional[str],
    actual_value: str,
    confidence: float,
    now: Optional[datetime] = None,
) -> LearningRecord:
    """Record a user confirmation (inferred == actual) or correction."""
    return LearningRecord(
        kind=kind,
        pattern=text,
        value=actual_value,
        confidence=confidence,
        timestamp=now or datetime.now(),
        was_correct=inferred_value == actual_value,
    )
