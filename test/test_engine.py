from datetime import datetime

import pytest
from prometheus_client import REGISTRY

from divergent_flow.config import InferenceSettings
from divergent_flow.engine import InferenceEngine
from divergent_flow.models import LearningHistory


@pytest.fixture
def engine():
    return InferenceEngine(InferenceSettings())


def test_infer_reminder_with_due_date(engine, now):
    result = engine.infer("remind me to pay rent tomorrow", now=now)

    assert result.type.type == "reminder"
    assert result.due_at == datetime(2026, 10, 17)
    assert result.cleaned_text == "remind me to pay rent"
    assert result.priority.priority == "medium"
    assert result.estimate.estimate is None
    assert result.collection.collection is None


def test_apply_returns_updated_copy(engine, make_item, now):
    item = make_item(text="Create a new project")

    updated = engine.apply(item, now=now)

    assert item.inferred_type is None
    assert updated.inferred_type == "action"
    assert updated.type_confidence == 95
    assert updated.type_reasoning
    assert updated.priority == "medium"
    assert updated.priority_confidence == 40
    assert updated.estimate == "day"
    assert updated.estimate_confidence == 80
    assert updated.collection is None
    assert updated.collection_confidence is None


def test_apply_keeps_confirmed_attributes(engine, make_item, now):
    item = make_item(text="Create a new project", inferred_type="note", type_confidence=100)
    updated = engine.apply(item, now=now)
    assert updated.inferred_type == "note"
    assert updated.type_confidence == 100
    assert updated.type_reasoning is None


def test_apply_keeps_existing_due_date(engine, make_item, now):
    due = datetime(2026, 12, 1)
    item = make_item(text="call mom tomorrow", due_at=due)
    assert engine.apply(item, now=now).due_at == due


def test_confirm_correction(engine, make_item, now):
    item = make_item(text="Create a new project", inferred_type="action", type_confidence=95)

    updated, record = engine.confirm(item, "type", "reminder", now=now)

    assert updated.inferred_type == "reminder"
    assert updated.type_confidence == 100
    assert updated.last_reviewed_at == now
    assert record.value == "reminder"
    assert record.pattern == "create a new project"
    assert record.was_correct is False


def test_confirm_agreement(engine, make_item, now):
    item = make_item(text="Create a new project", inferred_type="action", type_confidence=95)
    _, record = engine.confirm(item, "type", "action", now=now)
    assert record.was_correct is True


def test_confirm_without_text_has_nothing_to_learn(engine, make_item, now):
    item = make_item(text="")
    updated, record = engine.confirm(item, "collection", "Inbox", now=now)
    assert record is None
    assert updated.collection == "Inbox"


def test_confirm_rejects_unknown_kind(engine, make_item):
    with pytest.raises(ValueError):
        engine.confirm(make_item(), "colour", "red")


def test_confirm_rejects_invalid_value(engine, make_item):
    with pytest.raises(ValueError):
        engine.confirm(make_item(text="call bob"), "priority", "urgent")


def test_corrections_feed_later_inference(engine, make_item, now):
    item = make_item(text="drain oil from mgb")
    _, record = engine.confirm(item, "collection", "MGB", now=now)
    history = LearningHistory().append(record)

    result = engine.infer("drain the oil in the mgb", history, now=now)

    assert result.collection.collection == "MGB"


def test_review_queue_sets_depth_gauge(engine, make_item, now):
    confident = make_item(inferred_type="note", type_confidence=100, collection="Home", collection_confidence=100)
    items = [make_item(), make_item(), confident]

    ranked = engine.review_queue(items, now=now)

    assert len(ranked) == 2
    assert REGISTRY.get_sample_value("divergent_flow_review_queue_depth") == 2.0


def test_review_queue_uses_configured_limit(make_item, now):
    engine = InferenceEngine(InferenceSettings(review_limit=1))
    assert len(engine.review_queue([make_item(), make_item()], now=now)) == 1


def test_suggest_collections_uses_medium_confidence(mgb_history, make_record):
    history = LearningHistory(
        collections=mgb_history + [make_record("collection", "oil change invoice", "Car", confidence=60)]
    )
    text = "drain oil from mgb and file the change"

    assert [c.collection for c in InferenceEngine(InferenceSettings()).suggest_collections(text, history)] == ["MGB", "Car"]
    strict = InferenceEngine(InferenceSettings(medium_confidence=90))
    assert [c.collection for c in strict.suggest_collections(text, history)] == ["MGB"]


def test_infer_with_huge_offset_has_no_due_date(engine, now):
    result = engine.infer("renew passport in 5000000 days", now=now)
    assert result.due_at is None
    assert result.cleaned_text == "renew passport in 5000000 days"
