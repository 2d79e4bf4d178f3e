from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal, Optional, List, get_args

from pydantic import BaseModel, Field, field_validator, model_validator


ItemType = Literal["note", "action", "reminder"]
Priority = Literal["low", "medium", "high"]
Estimate = Literal["5min", "15min", "30min", "1hour", "2hours", "halfday", "day", "multiday"]
AttributeKind = Literal["type", "collection", "priority", "estimate"]

ITEM_TYPES: tuple[str, ...] = get_args(ItemType)
PRIORITIES: tuple[str, ...] = get_args(Priority)
ESTIMATES: tuple[str, ...] = get_args(Estimate)
ATTRIBUTE_KINDS: tuple[str, ...] = get_args(AttributeKind)

CONFIRMED_CONFIDENCE = 100.0


def naive_local(v: Optional[datetime]) -> Optional[datetime]:
    """Aware datetimes become naive local time; everything here compares naive values."""
    if v is None or v.tzinfo is None:
        return v
    return v.astimezone().replace(tzinfo=None)


class CapturedItem(BaseModel):
    id: str = Field(..., min_length=1)
    text: str = ""
    created_at: datetime

    inferred_type: Optional[ItemType] = None
    # unconstrained: the ranker reports NaN and out of range values
    type_confidence: Optional[float] = None
    type_reasoning: Optional[str] = None

    collection: Optional[str] = None
    collection_confidence: Optional[float] = None

    priority: Optional[Priority] = None
    priority_confidence: Optional[float] = None

    estimate: Optional[Estimate] = None
    estimate_confidence: Optional[float] = None

    due_at: Optional[datetime] = None
    last_reviewed_at: Optional[datetime] = None

    context: Optional[str] = None
    tags: List[str] = Field(default_factory=list)

    completed: bool = False
    completed_at: Optional[datetime] = None

    @field_validator("created_at", "due_at", "last_reviewed_at", "completed_at")
    @classmethod
    def timestamps_naive(cls, v: Optional[datetime]) -> Optional[datetime]:
        return naive_local(v)

    @field_validator("collection")
    @classmethod
    def collection_blank_is_missing(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v2 = v.strip()
        return v2 or None


class LearningRecord(BaseModel):
    """One confirmed or corrected classification.

    `pattern` holds the matched keyword (seed records) or the original text
    (user records); `value` is the corrected attribute value.
    """

    kind: AttributeKind
    pattern: str = Field(..., min_length=1)
    value: str
    confidence: float = Field(..., ge=0, le=100)
    timestamp: datetime
    was_correct: Optional[bool] = None
    is_default: bool = False

    @field_validator("pattern")
    @classmethod
    def pattern_normalized(cls, v: str) -> str:
        v2 = v.strip().lower()[:100]
        if not v2:
            raise ValueError("pattern must not be blank")
        return v2

    @field_validator("timestamp")
    @classmethod
    def timestamp_naive(cls, v: datetime) -> datetime:
        return naive_local(v)

    @model_validator(mode="after")
    def value_matches_kind(self) -> "LearningRecord":
        allowed = {
            "type": ITEM_TYPES,
            "priority": PRIORITIES,
            "estimate": ESTIMATES,
        }.get(self.kind)
        if allowed is not None and self.value not in allowed:
            raise ValueError(f"{self.value!r} is not a valid {self.kind} value")
        if self.kind == "collection" and not self.value.strip():
            raise ValueError("collection value must not be blank")
        return self


class LearningHistory(BaseModel):
    """Per-kind learning records; treat as an immutable snapshot."""

    types: List[LearningRecord] = Field(default_factory=list)
    collections: List[LearningRecord] = Field(default_factory=list)
    priorities: List[LearningRecord] = Field(default_factory=list)
    estimates: List[LearningRecord] = Field(default_factory=list)

    def for_kind(self, kind: str) -> List[LearningRecord]:
        return {
            "type": self.types,
            "collection": self.collections,
            "priority": self.priorities,
            "estimate": self.estimates,
        }[kind]

    def append(self, record: LearningRecord) -> "LearningHistory":
        field_name = {
            "type": "types",
            "collection": "collections",
            "priority": "priorities",
            "estimate": "estimates",
        }[record.kind]
        updated = [*getattr(self, field_name), record]
        return self.model_copy(update={field_name: updated})


@dataclass(frozen=True)
class DateTimeExtraction:
    timestamp: Optional[datetime]
    remaining_text: str
    matched_text: Optional[str] = None


@dataclass(frozen=True)
class TypeInference:
    type: ItemType
    confidence: float
    reasoning: str
    matched_keywords: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class CollectionInference:
    collection: Optional[str]
    confidence: float
    reasoning: str


@dataclass(frozen=True)
class PriorityInference:
    priority: Optional[Priority]
    confidence: float
    reasoning: str


@dataclass(frozen=True)
class EstimateInference:
    estimate: Optional[Estimate]
    confidence: float
    reasoning: str


@dataclass(frozen=True)
class InferredAttributes:
    """Everything the engine infers for one piece of text."""

    type: TypeInference
    collection: CollectionInference
    priority: PriorityInference
    estimate: EstimateInference
    due_at: Optional[datetime]
    cleaned_text: str


@dataclass(frozen=True)
class ReviewRankedItem:
    item: CapturedItem
    priority: float
    reason: str
