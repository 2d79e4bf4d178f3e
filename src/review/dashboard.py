from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Optional

from divergent_flow.models import CapturedItem, naive_local
from review.ranker import HIGH_CONFIDENCE_THRESHOLD, needs_review

PRIORITY_POINTS = {"high": 100, "medium": 50}
DEFAULT_PRIORITY_POINTS = 10
QUICK_WIN_MAX_WORDS = 10


def _active_actions(items: Iterable[CapturedItem]) -> List[CapturedItem]:
    return [i for i in items if i.inferred_type == "action" and not i.completed]


def _due_points(item: CapturedItem, now: datetime) -> int:
    if item.due_at is None:
        return 0
    days_until_due = (item.due_at - now).total_seconds() / 86400
    if days_until_due < 0:
        return 200
    if days_until_due < 1:
        return 150
    if days_until_due < 3:
        return 75
    if days_until_due < 7:
        return 25
    return 0


def _age_points(item: CapturedItem, now: datetime) -> int:
    days_old = (now - item.created_at).total_seconds() / 86400
    if days_old > 7:
        return 30
    if days_old > 3:
        return 15
    return 0


def next_action_score(item: CapturedItem, now: Optional[datetime] = None) -> int:
    now = naive_local(now) or datetime.now()
    return (
        PRIORITY_POINTS.get(item.priority or "", DEFAULT_PRIORITY_POINTS)
        + _due_points(item, now)
        + _age_points(item, now)
    )


def next_action(items: Iterable[CapturedItem], now: Optional[datetime] = None) -> Optional[CapturedItem]:
    """The single incomplete action to surface next, or None."""
    now = naive_local(now) or datetime.now()
    actions = _active_actions(items)
    if not actions:
        return None
    # max() keeps the first of equal scores
    return max(actions, key=lambda item: next_action_score(item, now))


def quick_wins(items: Iterable[CapturedItem], limit: int = 3) -> List[CapturedItem]:
    """Short, low-stakes actions."""
    wins = [
        item for item in _active_actions(items)
        if item.text
        and item.priority in (None, "low")
        and len(item.text.split()) < QUICK_WIN_MAX_WORDS
    ]
    return wins[:max(limit, 0)]


def recent_captures(
    items: Iterable[CapturedItem],
    limit: int = 5,
    threshold: float = HIGH_CONFIDENCE_THRESHOLD,
) -> List[CapturedItem]:
    """Newest items that no longer need review."""
    settled = [item for item in items if not needs_review(item, threshold)]
    settled.sort(key=lambda item: item.created_at, reverse=True)
    return settled[:max(limit, 0)]
