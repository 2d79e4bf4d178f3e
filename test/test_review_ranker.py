from datetime import datetime, timedelta, timezone

import pytest

from divergent_flow.models import CapturedItem
from review.ranker import is_resolved, needs_review, rank_for_review, review_findings


@pytest.fixture
def confident_note(make_item):
    def _make(**fields):
        fields.setdefault("inferred_type", "note")
        fields.setdefault("type_confidence", 100)
        fields.setdefault("collection", "Work")
        fields.setdefault("collection_confidence", 100)
        return make_item(**fields)

    return _make


def test_missing_type_ranks_above_low_confidence(make_item, now):
    low = make_item(inferred_type="note", type_confidence=50, collection="Work", collection_confidence=100)
    untyped = make_item()

    ranked = rank_for_review([low, untyped], now=now)

    assert [r.item.id for r in ranked] == [untyped.id, low.id]
    assert "No type assigned" in ranked[0].reason
    assert ranked[1].reason == "Low type confidence (50%)"


def test_missing_collection(confident_note, now):
    item = confident_note(collection=None)
    ranked = rank_for_review([item], now=now)
    assert ranked[0].reason == "Missing collection"
    assert ranked[0].priority == 900


def test_actions_need_priority_and_estimate(confident_note, now):
    no_priority = confident_note(inferred_type="action", estimate="15min", estimate_confidence=100)
    no_estimate = confident_note(inferred_type="action", priority="high", priority_confidence=100)

    ranked = rank_for_review([no_estimate, no_priority], now=now)

    assert [r.reason for r in ranked] == ["Missing priority", "Missing estimate"]
    assert [r.priority for r in ranked] == [700, 500]


def test_reminders_need_priority_only(confident_note):
    reminder = confident_note(inferred_type="reminder", priority="low", priority_confidence=100)
    assert review_findings(reminder) == []


def test_notes_do_not_need_priority_or_estimate(confident_note):
    assert review_findings(confident_note()) == []


@pytest.mark.parametrize("confidence", [float("nan"), 150.0, -5.0])
def test_invalid_type_confidence(confident_note, confidence, now):
    item = confident_note(type_confidence=confidence)
    ranked = rank_for_review([item], now=now)
    assert ranked[0].reason == "Invalid type confidence"
    assert ranked[0].priority == 950


def test_highest_severity_wins_and_reasons_combine(confident_note, now):
    item = confident_note(type_confidence=72, collection=None)
    ranked = rank_for_review([item], now=now)
    assert ranked[0].priority == 900
    assert ranked[0].reason == "Low type confidence (72%); Missing collection"


def test_limit(make_item, now):
    items = [make_item() for _ in range(5)]
    assert len(rank_for_review(items, now=now)) == 3
    assert len(rank_for_review(items, limit=1, now=now)) == 1


def test_age_adds_to_priority(make_item, now):
    item = make_item(created_at=now - timedelta(hours=2))
    assert rank_for_review([item], now=now)[0].priority == pytest.approx(1002.0)


def test_older_items_first_within_same_severity(make_item, now):
    newer = make_item(created_at=now - timedelta(hours=1))
    older = make_item(created_at=now - timedelta(days=3))
    ranked = rank_for_review([newer, older], now=now)
    assert [r.item.id for r in ranked] == [older.id, newer.id]


def test_last_review_resets_age(make_item, now):
    reviewed = make_item(created_at=now - timedelta(days=10), last_reviewed_at=now)
    fresh = make_item(created_at=now - timedelta(days=1))
    ranked = rank_for_review([reviewed, fresh], now=now)
    assert ranked[0].item.id == fresh.id


def test_resolved_items_never_resurface(confident_note, now):
    resolved = confident_note(last_reviewed_at=now)
    assert is_resolved(resolved)
    assert rank_for_review([resolved], now=now) == []


def test_reviewed_item_with_low_confidence_is_included(confident_note, now):
    item = confident_note(type_confidence=50, last_reviewed_at=now - timedelta(hours=1))
    assert not is_resolved(item)
    assert needs_review(item)
    assert rank_for_review([item], now=now)[0].priority == pytest.approx(801.0)


def test_custom_threshold(confident_note, now):
    item = confident_note(type_confidence=90)
    assert rank_for_review([item], now=now, threshold=85) == []
    assert len(rank_for_review([item], now=now, threshold=95)) == 1


def test_ranking_is_repeatable(make_item, confident_note, now):
    items = [
        make_item(created_at=now - timedelta(hours=5)),
        confident_note(type_confidence=60),
        confident_note(inferred_type="action"),
    ]
    first = rank_for_review(items, now=now)
    second = rank_for_review(items, now=now)
    assert [(r.item.id, r.priority, r.reason) for r in first] == [
        (r.item.id, r.priority, r.reason) for r in second
    ]


def test_negative_limit_returns_nothing(make_item, now):
    assert rank_for_review([make_item(), make_item()], limit=-1, now=now) == []


def test_utc_timestamps_rank_against_naive_now(now):
    item = CapturedItem.model_validate({"id": "z1", "text": "x", "created_at": "2026-10-16T08:00:00Z"})
    created_local = datetime(2026, 10, 16, 8, 0, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)

    ranked = rank_for_review([item], now=now)

    assert item.created_at.tzinfo is None
    assert ranked[0].priority == pytest.approx(1000 + (now - created_local).total_seconds() / 3600)


def test_aware_now_with_naive_items(make_item, now):
    aware_now = now.astimezone(timezone.utc)
    ranked = rank_for_review([make_item(created_at=now - timedelta(hours=3))], now=aware_now)
    assert ranked[0].priority == pytest.approx(1003.0)
