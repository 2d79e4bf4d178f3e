from __future__ import annotations

import logging
from typing import Dict, Iterable, List

from classification.learning import MAX_LEARNING_PATTERNS, matching_fragments, recent_records
from classification.patterns import DEFAULT_COLLECTIONS
from divergent_flow.models import CollectionInference, LearningRecord

logger = logging.getLogger(__name__)

LEARNED_COLLECTION_BASE_CONFIDENCE = 65.0
LEARNED_COLLECTION_CONFIDENCE_DIVISOR = 3.0
LEARNED_COLLECTION_MAX_CONFIDENCE = 100.0
RELEVANT_CONFIDENCE = 70.0


def infer_collections(
    text: str,
    learning_history: Iterable[LearningRecord] = (),
    max_patterns: int = MAX_LEARNING_PATTERNS,
) -> List[CollectionInference]:
    """Every collection suggested by past corrections, best first.

    Each collection keeps only its strongest match. Corrected records count
    as well as confirmed ones since both name the right collection.
    """
    best: Dict[str, CollectionInference] = {}
    records = recent_records((r for r in learning_history if r.kind == "collection"), limit=max_patterns)

    for record in records:
        matched = matching_fragments(record.pattern, text or "")
        if matched is None:
            continue
        confidence = min(
            LEARNED_COLLECTION_MAX_CONFIDENCE,
            LEARNED_COLLECTION_BASE_CONFIDENCE + record.confidence / LEARNED_COLLECTION_CONFIDENCE_DIVISOR,
        )
        current = best.get(record.value)
        if current is None or confidence > current.confidence:
            best[record.value] = CollectionInference(
                collection=record.value,
                confidence=confidence,
                reasoning=f'Similar to previous "{record.value}" items ({len(matched)} matching keywords)',
            )

    return sorted(best.values(), key=lambda inf: inf.confidence, reverse=True)


def infer_collection(
    text: str,
    learning_history: Iterable[LearningRecord] = (),
    max_patterns: int = MAX_LEARNING_PATTERNS,
) -> CollectionInference:
    inferences = infer_collections(text, learning_history, max_patterns)
    if not inferences:
        return CollectionInference(collection=None, confidence=0.0, reasoning="No similar past items")
    logger.debug("Collection %s (%.1f) for %r", inferences[0].collection, inferences[0].confidence, text)
    return inferences[0]


def relevant_inferences(
    inferences: List[CollectionInference],
    threshold: float = RELEVANT_CONFIDENCE,
) -> List[CollectionInference]:
    """Inferences at or above `threshold`, or else just the single best one."""
    relevant = [inf for inf in inferences if inf.confidence >= threshold]
    if relevant or not inferences:
        return relevant
    return [max(inferences, key=lambda inf: inf.confidence)]


def known_collections(
    learning_history: Iterable[LearningRecord] = (),
    include_defaults: bool = True,
) -> List[str]:
    """Built-in collections followed by any learned ones, without duplicates."""
    seen: List[str] = list(DEFAULT_COLLECTIONS) if include_defaults else []
    for record in learning_history:
        if record.kind == "collection" and record.value not in seen:
            seen.append(record.value)
    return seen
