"""Note / action / reminder inference for captured text.

Scoring runs in three stages:

1. Keyword scoring: the text (with any date phrase removed) is turned into
   unigram, bigram and trigram candidates and compared with the learning
   records (built-in seeds plus user history). An exact match adds
   confidence/100 to the record's bucket, a substring match 75% of that.
2. Phrase boosts: fixed reminder phrases, the ``Reminder:`` prefix, action
   verbs and a detected date add flat amounts to their buckets. Action
   evidence then suppresses part of the reminder score.
3. Decision: explicit reminder phrasing wins outright; otherwise the
   confidence is derived from the bucket ratio and passed through the
   ordered adjustment rules below.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional

from classification.learning import recent_records
from classification.patterns import (
    ACTION_PHRASES,
    DATE_REMINDER_BOOST,
    DEFAULT_TYPE_RECORDS,
    REMINDER_PHRASES,
    REMINDER_PREFIX,
    REMINDER_PREFIX_BOOST,
    TYPE_PREFERENCE,
)
from classification.text_features import keyword_candidates, normalize_phrase
from divergent_flow.config import InferenceSettings
from divergent_flow.models import ITEM_TYPES, LearningRecord, TypeInference
from extraction.date_extractor import extract_date_time

logger = logging.getLogger(__name__)

PARTIAL_MATCH_WEIGHT = 0.75
MIN_PARTIAL_MATCH_LENGTH = 3
ACTION_SUPPRESSES_REMINDER = 0.2

CATCH_ALL_CONFIDENCE = 85.0
CATCH_ALL_REASONING = "Default to note - no strong action or reminder indicators"
EXPLICIT_REMINDER_CONFIDENCE = 95.0
EXACT_MATCH_CONFIDENCE = 95.0
NORMALIZED_CONFIDENCE_CAP = 94.9
AMBIGUOUS_RATIO = 0.8
AMBIGUOUS_FLOOR = 75.0
ACTION_DOMINANCE_FLOOR = 90.0
NOTE_CONFIDENCE_CAP = 85.0
ACTION_OVER_NOTE_RATIO = 0.8

ConfidenceRule = Callable[[float, Dict[str, float]], float]


def _cap_normalized(confidence: float, scores: Dict[str, float]) -> float:
    # stays below the 95 exact-match tier
    return min(confidence, NORMALIZED_CONFIDENCE_CAP)


def _exact_match(confidence: float, scores: Dict[str, float]) -> float:
    if max(scores.values()) > 0.9 * sum(scores.values()):
        return EXACT_MATCH_CONFIDENCE
    return confidence


def _ambiguity_floor(confidence: float, scores: Dict[str, float]) -> float:
    if max(scores.values()) / sum(scores.values()) < AMBIGUOUS_RATIO:
        return max(confidence, AMBIGUOUS_FLOOR)
    return confidence


def _action_dominance_floor(confidence: float, scores: Dict[str, float]) -> float:
    if scores["action"] > scores["note"] and scores["action"] > scores["reminder"]:
        return max(confidence, ACTION_DOMINANCE_FLOOR)
    return confidence


# Order matters: later rules see the result of earlier ones.
CONFIDENCE_RULES: List[ConfidenceRule] = [
    _cap_normalized,
    _exact_match,
    _ambiguity_floor,
    _action_dominance_floor,
]

TYPE_CLAMPS: Dict[str, Callable[[float], float]] = {
    "note": lambda c: min(c, NOTE_CONFIDENCE_CAP),
    "action": lambda c: max(c, EXACT_MATCH_CONFIDENCE),
    "reminder": lambda c: max(c, EXACT_MATCH_CONFIDENCE),
}


def _record_weight(pattern: str, candidates: List[str], matched: List[str]) -> float:
    if pattern in candidates:
        if pattern not in matched:
            matched.append(pattern)
        return 1.0
    if len(pattern) < MIN_PARTIAL_MATCH_LENGTH:
        return 0.0
    for candidate in candidates:
        if len(candidate) < MIN_PARTIAL_MATCH_LENGTH:
            continue
        if candidate in pattern or pattern in candidate:
            if candidate not in matched:
                matched.append(candidate)
            return PARTIAL_MATCH_WEIGHT
    return 0.0


def _format_reasoning(prefix: str, scores: Dict[str, float], matched: List[str]) -> str:
    keywords = ", ".join(matched) if matched else "none"
    return (
        f"{prefix} (scores - note: {scores['note']:.2f}, action: {scores['action']:.2f}, "
        f"reminder: {scores['reminder']:.2f}; matched keywords: {keywords})"
    )


class TypeClassifier:
    def __init__(self, settings: Optional[InferenceSettings] = None):
        self.settings = settings or InferenceSettings()

    def scoring_records(self, history: Iterable[LearningRecord]) -> List[LearningRecord]:
        """Seed records plus the most recent usable user records."""
        usable = [
            r for r in history
            if r.kind == "type" and (r.was_correct is not False or r.is_default)
        ]
        records = recent_records(usable, limit=self.settings.type_learning_window)
        if self.settings.use_default_patterns:
            records = [*records, *DEFAULT_TYPE_RECORDS]
        return records

    def classify(
        self,
        text: str,
        history: Iterable[LearningRecord] = (),
        now: Optional[datetime] = None,
    ) -> TypeInference:
        raw = text or ""
        lowered = raw.lower()
        extraction = extract_date_time(raw, now)
        candidates = keyword_candidates(extraction.remaining_text)

        scores: Dict[str, float] = {t: 0.0 for t in ITEM_TYPES}
        counts: Dict[str, int] = {t: 0 for t in ITEM_TYPES}
        matched: List[str] = []

        for record in self.scoring_records(history):
            pattern = normalize_phrase(record.pattern)
            if not pattern:
                continue
            weight = _record_weight(pattern, candidates, matched)
            if weight:
                scores[record.value] += record.confidence / 100 * weight
                counts[record.value] += 1

        explicit_reminder = False
        for phrase in REMINDER_PHRASES:
            if phrase.pattern.search(raw):
                scores["reminder"] += phrase.weight
                matched.append(phrase.label)
                explicit_reminder = True
        if lowered.lstrip().startswith(REMINDER_PREFIX):
            scores["reminder"] += REMINDER_PREFIX_BOOST
            matched.append(REMINDER_PREFIX)
            explicit_reminder = True

        for phrase in ACTION_PHRASES:
            if phrase.pattern.search(raw):
                scores["action"] += phrase.weight
                if phrase.label not in matched:
                    matched.append(phrase.label)

        if extraction.timestamp is not None:
            scores["reminder"] += DATE_REMINDER_BOOST

        if scores["action"] > 0 and scores["reminder"] > 0:
            scores["reminder"] = max(0.0, scores["reminder"] - scores["action"] * ACTION_SUPPRESSES_REMINDER)

        max_score = max(scores.values())
        if max_score <= 0:
            logger.debug("No type signal in %r, using catch-all", raw)
            return TypeInference(
                type="note",
                confidence=CATCH_ALL_CONFIDENCE,
                reasoning=CATCH_ALL_REASONING,
                matched_keywords=[],
            )

        if scores["reminder"] > 0 and explicit_reminder:
            return TypeInference(
                type="reminder",
                confidence=EXPLICIT_REMINDER_CONFIDENCE,
                reasoning=_format_reasoning("Explicit reminder phrasing", scores, matched),
                matched_keywords=matched,
            )

        total = sum(scores.values())
        confidence = max_score / total * 100
        for rule in CONFIDENCE_RULES:
            confidence = rule(confidence, scores)

        winner = max(
            ITEM_TYPES,
            key=lambda t: (scores[t], counts[t], -TYPE_PREFERENCE.index(t)),
        )
        confidence = TYPE_CLAMPS[winner](confidence)
        prefix = f"Strongest signal: {winner}"

        if winner == "note" and scores["action"] > ACTION_OVER_NOTE_RATIO * scores["note"]:
            winner = "action"
            confidence = max(confidence, EXACT_MATCH_CONFIDENCE)
            prefix = "Action indicators close to note score"

        logger.debug("Inferred %s (%.1f) for %r", winner, confidence, raw)
        return TypeInference(
            type=winner,
            confidence=confidence,
            reasoning=_format_reasoning(prefix, scores, matched),
            matched_keywords=matched,
        )


def infer_type(
    text: str,
    learning_history: Iterable[LearningRecord] = (),
    now: Optional[datetime] = None,
    settings: Optional[InferenceSettings] = None,
) -> TypeInference:
    return TypeClassifier(settings).classify(text, learning_history, now)
