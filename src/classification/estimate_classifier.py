from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional

from classification.learning import MAX_LEARNING_PATTERNS, matching_fragments, recent_records
from classification.patterns import ESTIMATE_CHAIN, ESTIMATE_PATTERNS
from divergent_flow.models import EstimateInference, LearningRecord

logger = logging.getLogger(__name__)

LEARNED_BASE_CONFIDENCE = 70.0
LEARNED_STRONG_BOOST = 25.0
LEARNED_WEAK_BOOST = 15.0
LEARNED_STRONG_RECORD = 80.0
LEARNED_SHORT_CIRCUIT = 80.0

FALLBACK_CONFIDENCE = 30.0


def learned_estimate(
    text: str,
    learning_history: Iterable[LearningRecord],
    max_patterns: int = MAX_LEARNING_PATTERNS,
) -> Optional[EstimateInference]:
    records = recent_records(
        (r for r in learning_history if r.kind == "estimate"),
        limit=max_patterns,
        include_incorrect=False,
    )
    for record in records:
        matched = matching_fragments(record.pattern, text)
        if matched is None:
            continue
        boost = LEARNED_STRONG_BOOST if record.confidence >= LEARNED_STRONG_RECORD else LEARNED_WEAK_BOOST
        return EstimateInference(
            estimate=record.value,
            confidence=LEARNED_BASE_CONFIDENCE + boost,
            reasoning=f"Similar to previous {record.value} estimate patterns (matched {len(matched)} keywords)",
        )
    return None


def _word_count_fallback(text: str) -> EstimateInference:
    word_count = len(text.split())
    if word_count < 5:
        return EstimateInference("15min", FALLBACK_CONFIDENCE, "Brief description suggests quick task")
    if word_count < 15:
        return EstimateInference("30min", FALLBACK_CONFIDENCE, "Moderate description suggests standard task")
    return EstimateInference("1hour", FALLBACK_CONFIDENCE, "Detailed description suggests longer task")


def infer_estimate(
    text: str,
    item_type: Optional[str],
    learning_history: Iterable[LearningRecord] = (),
    max_patterns: int = MAX_LEARNING_PATTERNS,
) -> EstimateInference:
    if item_type != "action":
        return EstimateInference(
            estimate=None,
            confidence=0.0,
            reasoning="Estimate only applies to action items",
        )

    text = text or ""
    learned = learned_estimate(text, learning_history, max_patterns)
    if learned is not None and learned.confidence >= LEARNED_SHORT_CIRCUIT:
        return learned

    scores: Dict[str, float] = {bucket: 0.0 for bucket, _ in ESTIMATE_CHAIN}
    labels: Dict[str, str] = {}
    for pattern in ESTIMATE_PATTERNS:
        if scores[pattern.target] == 0 and pattern.pattern.search(text):
            scores[pattern.target] += pattern.weight
            labels[pattern.target] = pattern.label

    if max(scores.values()) == 0:
        return _word_count_fallback(text)

    # shorter buckets win ties
    winner, confidence = next(
        (bucket, confidence)
        for index, (bucket, confidence) in enumerate(ESTIMATE_CHAIN)
        if scores[bucket] > 0
        and scores[bucket] >= max((scores[b] for b, _ in ESTIMATE_CHAIN[index + 1:]), default=0.0)
    )
    logger.debug("Estimate %s for %r", winner, text)
    return EstimateInference(winner, confidence, f"Detected {labels[winner]}")
