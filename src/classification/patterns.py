"""Keyword and phrase tables used by the classifiers.

Every table is plain data: (regex or keyword, target value, weight). The
classifiers only iterate over these tables.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from typing import List, Tuple

from divergent_flow.models import LearningRecord


@dataclass(frozen=True)
class PhrasePattern:
    pattern: re.Pattern
    target: str
    weight: float
    label: str


def _phrase(regex: str, target: str, weight: float, label: str) -> PhrasePattern:
    return PhrasePattern(re.compile(regex, re.IGNORECASE), target, weight, label)


# --- type inference ---------------------------------------------------------

REMINDER_PHRASES: List[PhrasePattern] = [
    _phrase(r"\bremind me to\b", "reminder", 4.0, "remind me to"),
    _phrase(r"\bfollow up on\b", "reminder", 4.0, "follow up on"),
    _phrase(r"\bdon'?t forget\b", "reminder", 3.0, "don't forget"),
    _phrase(r"\bremember to\b", "reminder", 4.0, "remember to"),
    _phrase(r"\bneed to remember\b", "reminder", 4.0, "need to remember"),
]

REMINDER_PREFIX = "reminder:"
REMINDER_PREFIX_BOOST = 5.0

ACTION_PHRASES: List[PhrasePattern] = [
    _phrase(rf"\b{verb}\b", "action", 3.0 if verb == "submit" else 2.0, verb)
    for verb in ("create", "make", "write", "send", "call", "email", "fix", "build", "update", "submit")
]

# A date or time in the text hints at a reminder.
DATE_REMINDER_BOOST = 0.5

_SEED_TYPE_KEYWORDS: List[Tuple[str, str, float]] = [
    *[(kw, "reminder", 100.0) for kw in (
        "remind", "reminder", "remember", "follow up", "check in", "ping me",
        "alert me", "notify me", "dont forget",
    )],
    *[(kw, "action", 90.0) for kw in (
        "need to", "have to", "must", "should", "create", "make", "write", "send",
        "call", "email", "buy", "fix", "update", "finish", "complete", "schedule",
        "book", "prepare", "review", "research", "organize", "plan", "draft",
        "build", "submit", "order", "take", "pick up", "pay", "clean",
    )],
    *[(kw, "note", 80.0) for kw in (
        "note", "idea", "thought", "learned", "discovered", "realized", "noticed",
        "observation", "insight", "interesting", "found out",
    )],
]

_SEED_TIMESTAMP = datetime(2024, 1, 1)

DEFAULT_TYPE_RECORDS: List[LearningRecord] = [
    LearningRecord(
        kind="type",
        pattern=keyword,
        value=item_type,
        confidence=confidence,
        timestamp=_SEED_TIMESTAMP,
        is_default=True,
    )
    for keyword, item_type, confidence in _SEED_TYPE_KEYWORDS
]

TYPE_PREFERENCE = ("reminder", "action", "note")

TYPE_LABELS = {
    "note": ("Note", "Information to remember"),
    "action": ("Action Item", "Something to do"),
    "reminder": ("Reminder", "Time-sensitive prompt"),
}

# --- collections ------------------------------------------------------------

# Offered to the user as choices; inference itself only learns from history.
DEFAULT_COLLECTIONS: Tuple[str, ...] = ("Work", "Errands", "Personal", "Health", "Finance", "Home", "Ideas")

# --- priority ---------------------------------------------------------------

PRIORITY_PATTERNS: List[PhrasePattern] = [
    *[_phrase(rf"\b{word}\b", "high", 1.0, word) for word in (
        "urgent", "asap", "critical", "emergency", "important", "today", "now",
        "immediately", "deadline", "overdue", "high priority",
    )],
    *[_phrase(regex, "low", 1.0, label) for regex, label in (
        (r"\bsomeday\b", "someday"),
        (r"\bmaybe\b", "maybe"),
        (r"\beventually\b", "eventually"),
        (r"\bwhenever\b", "whenever"),
        (r"\blow priority\b", "low priority"),
        (r"\bnice to have\b", "nice to have"),
        (r"\bif (i|we) (have )?time\b", "if I have time"),
        (r"\bno rush\b", "no rush"),
    )],
]

PRIORITY_LABELS = {
    "low": ("Low Priority", "Can be done later"),
    "medium": ("Medium Priority", "Should be done soon"),
    "high": ("High Priority", "Needs immediate attention"),
}

# --- estimate ---------------------------------------------------------------

ESTIMATE_PATTERNS: List[PhrasePattern] = [
    *[_phrase(regex, "5min", 1.0, "quick task indicators") for regex in (
        r"\b(quick|fast|rapid)\b",
        r"\b5 ?min(ute)?s?\b",
        r"\btakes? (a )?second\b",
        r"\btakes? (a )?moment\b",
        r"\beasy\b",
        r"\bsimple\b",
    )],
    *[_phrase(regex, "15min", 1.0, "short task indicators") for regex in (
        r"\b15 ?min(ute)?s?\b",
        r"\b(quarter|fifteen) ?(-| )?(hour|min)",
        r"\bshort\b",
    )],
    *[_phrase(regex, "30min", 1.0, "half-hour task indicators") for regex in (
        r"\b30 ?min(ute)?s?\b",
        r"\bhalf( |-)?hour\b",
    )],
    *[_phrase(regex, "1hour", 1.0, "one-hour task indicators") for regex in (
        r"\b1 ?hours?\b",
        r"\bone( |-)?hour\b",
    )],
    *[_phrase(regex, "2hours", 0.9, "two-hour task indicators") for regex in (
        r"\b2 ?hours?\b",
        r"\btwo( |-)?hours?\b",
    )],
    *[_phrase(regex, "day", 1.0, "complex task indicators") for regex in (
        r"\b(half|1/2) ?(-| )?day\b",
        r"\b(full|whole|entire) ?day\b",
        r"\bmulti(-| )?day\b",
        r"\bseveral (days|hours)\b",
        r"\bproject\b",
        r"\bcomplex\b",
    )],
]

# Comparison chain, shortest first; ties go to the earlier bucket.
ESTIMATE_CHAIN: List[Tuple[str, float]] = [
    ("5min", 85.0),
    ("15min", 80.0),
    ("30min", 80.0),
    ("1hour", 80.0),
    ("2hours", 75.0),
    ("day", 80.0),
]

ESTIMATE_LABELS = {
    "5min": ("5 minutes", "Quick task"),
    "15min": ("15 minutes", "Short task"),
    "30min": ("30 minutes", "Half-hour task"),
    "1hour": ("1 hour", "One-hour task"),
    "2hours": ("2 hours", "Two-hour task"),
    "halfday": ("Half day", "Half-day project"),
    "day": ("Full day", "Full-day project"),
    "multiday": ("Multi-day", "Multi-day project"),
}


def type_label(item_type: str) -> str:
    return TYPE_LABELS[item_type][0]


def type_description(item_type: str) -> str:
    return TYPE_LABELS[item_type][1]


def priority_label(priority: str) -> str:
    return PRIORITY_LABELS[priority][0]


def priority_description(priority: str) -> str:
    return PRIORITY_LABELS[priority][1]


def estimate_label(estimate: str) -> str:
    return ESTIMATE_LABELS[estimate][0]


def estimate_description(estimate: str) -> str:
    return ESTIMATE_LABELS[estimate][1]
