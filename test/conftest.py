from datetime import datetime

import pytest

from divergent_flow.models import CapturedItem, LearningRecord

# Friday
NOW = datetime(2026, 10, 16, 10, 0)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_item():
    counter = {"n": 0}

    def _make(**fields):
        counter["n"] += 1
        fields.setdefault("id", str(counter["n"]))
        fields.setdefault("text", f"test item {counter['n']}")
        fields.setdefault("created_at", NOW)
        return CapturedItem(**fields)

    return _make


@pytest.fixture
def make_record():
    def _make(kind, pattern, value, confidence=100.0, was_correct=True, timestamp=NOW, **extra):
        return LearningRecord(
            kind=kind,
            pattern=pattern,
            value=value,
            confidence=confidence,
            timestamp=timestamp,
            was_correct=was_correct,
            **extra,
        )

    return _make


@pytest.fixture
def mgb_history(make_record):
    return [make_record("collection", "drain oil from mgb", "MGB", was_correct=False)]
