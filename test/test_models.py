import math
from datetime import datetime, timezone

import pytest

from classification.learning import recent_records
from divergent_flow.models import CapturedItem, LearningHistory, LearningRecord


def test_item_defaults(now):
    item = CapturedItem(id="1", text="buy milk", created_at=now)
    assert item.inferred_type is None
    assert item.tags == []
    assert item.completed is False


def test_item_accepts_nan_confidence(now):
    item = CapturedItem(id="1", created_at=now, inferred_type="action", type_confidence=float("nan"))
    assert math.isnan(item.type_confidence)


def test_item_blank_collection_is_missing(now):
    item = CapturedItem(id="1", created_at=now, collection="   ")
    assert item.collection is None


def test_item_rejects_unknown_type(now):
    with pytest.raises(Exception):
        CapturedItem(id="1", created_at=now, inferred_type="task")


def test_learning_record_pattern_normalized(now):
    record = LearningRecord(kind="type", pattern="  Call The Office " + "x" * 200, value="action",
                            confidence=90, timestamp=now)
    assert record.pattern.startswith("call the office")
    assert len(record.pattern) == 100


def test_learning_record_value_must_match_kind(now):
    with pytest.raises(ValueError):
        LearningRecord(kind="priority", pattern="call bob", value="urgent", confidence=90, timestamp=now)


def test_learning_record_confidence_range(now):
    with pytest.raises(ValueError):
        LearningRecord(kind="type", pattern="call bob", value="action", confidence=120, timestamp=now)


def test_learning_record_blank_collection(now):
    with pytest.raises(ValueError):
        LearningRecord(kind="collection", pattern="call bob", value=" ", confidence=90, timestamp=now)


def test_history_append_returns_new_snapshot(now):
    history = LearningHistory()
    record = LearningRecord(kind="estimate", pattern="mow the lawn", value="1hour", confidence=100, timestamp=now)
    updated = history.append(record)
    assert history.estimates == []
    assert updated.for_kind("estimate") == [record]


def test_aware_timestamps_become_naive_local(now):
    item = CapturedItem.model_validate(
        {"id": "1", "created_at": "2026-10-16T08:00:00Z", "due_at": "2026-10-17T09:00:00+02:00"}
    )
    expected = datetime(2026, 10, 16, 8, 0, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)
    assert item.created_at == expected
    assert item.due_at.tzinfo is None
    assert item.last_reviewed_at is None


def test_mixed_record_timestamps_sort(now):
    aware = LearningRecord(kind="type", pattern="a b", value="note", confidence=90,
                           timestamp="2026-10-16T08:00:00+00:00")
    naive = LearningRecord(kind="type", pattern="c d", value="note", confidence=90, timestamp=now)
    assert aware.timestamp.tzinfo is None
    ordered = recent_records([aware, naive], limit=2)
    assert ordered[0].timestamp >= ordered[1].timestamp
