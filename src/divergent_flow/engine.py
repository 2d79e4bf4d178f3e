from __future__ import annotations

import logging
import time
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from classification.collection_classifier import infer_collection, infer_collections, relevant_inferences
from classification.estimate_classifier import infer_estimate
from classification.learning import build_learning_record
from classification.priority_classifier import infer_priority
from classification.type_classifier import TypeClassifier
from divergent_flow.config import InferenceSettings, load_settings
from divergent_flow.metrics import (
    INFERENCES_TOTAL,
    INFERENCE_LATENCY_SECONDS,
    LEARNING_RECORDS_TOTAL,
    REVIEW_QUEUE_DEPTH,
)
from divergent_flow.models import (
    ATTRIBUTE_KINDS,
    CONFIRMED_CONFIDENCE,
    CapturedItem,
    CollectionInference,
    InferredAttributes,
    LearningHistory,
    LearningRecord,
    ReviewRankedItem,
)
from extraction.date_extractor import extract_date_time
from review.ranker import needs_review, rank_for_review

logger = logging.getLogger(__name__)

# attribute kind -> (value field, confidence field) on CapturedItem
_ITEM_FIELDS = {
    "type": ("inferred_type", "type_confidence"),
    "collection": ("collection", "collection_confidence"),
    "priority": ("priority", "priority_confidence"),
    "estimate": ("estimate", "estimate_confidence"),
}


class _timed:
    """Records latency and outcome for one attribute inference."""

    def __init__(self, kind: str):
        self.kind = kind

    def __enter__(self):
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb):
        INFERENCE_LATENCY_SECONDS.labels(kind=self.kind).observe(time.perf_counter() - self._start)
        return False

    def outcome(self, value: Optional[str]) -> None:
        INFERENCES_TOTAL.labels(kind=self.kind, outcome=value or "none").inc()


class InferenceEngine:
    """Central orchestration of the capture inference pipeline.

    Callers own persistence: every method takes snapshots of items and
    learning history and returns new objects instead of mutating inputs.
    """

    def __init__(self, settings: Optional[InferenceSettings] = None):
        self.settings = settings or load_settings()
        self.type_classifier = TypeClassifier(self.settings)

    def infer(
        self,
        text: str,
        history: Optional[LearningHistory] = None,
        now: Optional[datetime] = None,
    ) -> InferredAttributes:
        """Run the extractor and every classifier over one piece of text."""
        history = history or LearningHistory()
        now = now or datetime.now()
        max_patterns = self.settings.max_learning_patterns

        # 1. Pull out any date/time phrase
        extraction = extract_date_time(text or "", now)

        # 2. Type drives which secondary attributes apply
        with _timed("type") as t:
            type_result = self.type_classifier.classify(text, history.types, now)
            t.outcome(type_result.type)

        # 3. Collection, priority and estimate
        with _timed("collection") as t:
            collection_result = infer_collection(extraction.remaining_text, history.collections, max_patterns)
            t.outcome(collection_result.collection and "matched")

        with _timed("priority") as t:
            priority_result = infer_priority(text, type_result.type, history.priorities, max_patterns)
            t.outcome(priority_result.priority)

        with _timed("estimate") as t:
            estimate_result = infer_estimate(extraction.remaining_text, type_result.type, history.estimates, max_patterns)
            t.outcome(estimate_result.estimate)

        return InferredAttributes(
            type=type_result,
            collection=collection_result,
            priority=priority_result,
            estimate=estimate_result,
            due_at=extraction.timestamp,
            cleaned_text=extraction.remaining_text,
        )

    def apply(
        self,
        item: CapturedItem,
        history: Optional[LearningHistory] = None,
        now: Optional[datetime] = None,
    ) -> CapturedItem:
        """Return a copy of `item` with freshly inferred attributes.

        Attributes already confirmed by the user (confidence 100) are kept.
        """
        inferred = self.infer(item.text, history, now)
        update = {}

        def _set(kind: str, value, confidence: float) -> None:
            value_field, confidence_field = _ITEM_FIELDS[kind]
            if getattr(item, confidence_field) == CONFIRMED_CONFIDENCE:
                return
            update[value_field] = value
            update[confidence_field] = confidence if value is not None else None

        _set("type", inferred.type.type, inferred.type.confidence)
        if item.type_confidence != CONFIRMED_CONFIDENCE:
            update["type_reasoning"] = inferred.type.reasoning
        _set("collection", inferred.collection.collection, inferred.collection.confidence)
        _set("priority", inferred.priority.priority, inferred.priority.confidence)
        _set("estimate", inferred.estimate.estimate, inferred.estimate.confidence)
        if item.due_at is None and inferred.due_at is not None:
            update["due_at"] = inferred.due_at

        logger.info(
            "Applied inference to item %s: type=%s (%.1f)",
            item.id, inferred.type.type, inferred.type.confidence,
        )
        return item.model_copy(update=update)

    def suggest_collections(
        self,
        text: str,
        history: Optional[LearningHistory] = None,
    ) -> List[CollectionInference]:
        """Collections worth offering the user, at or above medium confidence."""
        history = history or LearningHistory()
        inferences = infer_collections(text, history.collections, self.settings.max_learning_patterns)
        return relevant_inferences(inferences, threshold=self.settings.medium_confidence)

    def confirm(
        self,
        item: CapturedItem,
        kind: str,
        value: str,
        now: Optional[datetime] = None,
    ) -> Tuple[CapturedItem, Optional[LearningRecord]]:
        """Apply a user confirmation or correction of one attribute.

        Returns the updated item and the learning record to persist (None when
        the item has no text to learn from).
        """
        if kind not in ATTRIBUTE_KINDS:
            raise ValueError(f"Unknown attribute kind: {kind!r}")
        now = now or datetime.now()
        value_field, confidence_field = _ITEM_FIELDS[kind]
        inferred_value = getattr(item, value_field)

        record = None
        if item.text.strip():
            record = build_learning_record(
                kind, item.text, inferred_value, value, CONFIRMED_CONFIDENCE, now
            )
            LEARNING_RECORDS_TOTAL.labels(kind=kind, was_correct=str(record.was_correct).lower()).inc()

        updated = item.model_validate(
            {
                **item.model_dump(),
                value_field: value,
                confidence_field: CONFIRMED_CONFIDENCE,
                "last_reviewed_at": now,
            }
        )
        logger.info("Item %s: %s confirmed as %s (was %s)", item.id, kind, value, inferred_value)
        return updated, record

    def review_queue(
        self,
        items: Iterable[CapturedItem],
        limit: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> List[ReviewRankedItem]:
        snapshot = [item.model_copy() for item in items]
        threshold = self.settings.confidence_threshold
        REVIEW_QUEUE_DEPTH.set(sum(1 for item in snapshot if needs_review(item, threshold)))
        return rank_for_review(
            snapshot,
            limit=limit if limit is not None else self.settings.review_limit,
            now=now,
            threshold=threshold,
        )
