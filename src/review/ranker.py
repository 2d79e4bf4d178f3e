"""Review queue ranking.

Each unresolved item gets a severity from the ladder below (highest matching
condition wins) plus one point per hour since it was last looked at, so
older items sort first among equally severe ones.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from divergent_flow.models import CapturedItem, ReviewRankedItem, naive_local

logger = logging.getLogger(__name__)

HIGH_CONFIDENCE_THRESHOLD = 95.0
DEFAULT_REVIEW_LIMIT = 3

NO_TYPE = 1000
INVALID_TYPE_CONFIDENCE = 950
MISSING_COLLECTION = 900
INVALID_COLLECTION_CONFIDENCE = 875
LOW_TYPE_CONFIDENCE = 800
LOW_COLLECTION_CONFIDENCE = 750
MISSING_PRIORITY = 700
INVALID_PRIORITY_CONFIDENCE = 650
LOW_PRIORITY_CONFIDENCE = 600
MISSING_ESTIMATE = 500
INVALID_ESTIMATE_CONFIDENCE = 450
LOW_ESTIMATE_CONFIDENCE = 400


def is_valid_confidence(value: Optional[float]) -> bool:
    if value is None:
        return False
    try:
        return not math.isnan(value) and 0 <= value <= 100
    except TypeError:
        return False


def priority_applies(item: CapturedItem) -> bool:
    return item.inferred_type in ("action", "reminder")


def estimate_applies(item: CapturedItem) -> bool:
    return item.inferred_type == "action"


def _attribute_findings(
    name: str,
    value: Optional[str],
    confidence: Optional[float],
    severities: Tuple[int, int, int],
    threshold: float,
) -> List[Tuple[int, str]]:
    missing, invalid, low = severities
    if value is None:
        return [(missing, f"Missing {name}")]
    if not is_valid_confidence(confidence):
        return [(invalid, f"Invalid {name} confidence")]
    if confidence < threshold:
        return [(low, f"Low {name} confidence ({confidence:.0f}%)")]
    return []


def review_findings(
    item: CapturedItem,
    threshold: float = HIGH_CONFIDENCE_THRESHOLD,
) -> List[Tuple[int, str]]:
    """(severity, reason) for every unresolved attribute of `item`."""
    findings: List[Tuple[int, str]] = []

    if item.inferred_type is None:
        findings.append((NO_TYPE, "No type assigned"))
    else:
        findings += _attribute_findings(
            "type", item.inferred_type, item.type_confidence,
            (NO_TYPE, INVALID_TYPE_CONFIDENCE, LOW_TYPE_CONFIDENCE), threshold,
        )

    findings += _attribute_findings(
        "collection", item.collection, item.collection_confidence,
        (MISSING_COLLECTION, INVALID_COLLECTION_CONFIDENCE, LOW_COLLECTION_CONFIDENCE), threshold,
    )

    if priority_applies(item):
        findings += _attribute_findings(
            "priority", item.priority, item.priority_confidence,
            (MISSING_PRIORITY, INVALID_PRIORITY_CONFIDENCE, LOW_PRIORITY_CONFIDENCE), threshold,
        )

    if estimate_applies(item):
        findings += _attribute_findings(
            "estimate", item.estimate, item.estimate_confidence,
            (MISSING_ESTIMATE, INVALID_ESTIMATE_CONFIDENCE, LOW_ESTIMATE_CONFIDENCE), threshold,
        )

    return findings


def needs_review(item: CapturedItem, threshold: float = HIGH_CONFIDENCE_THRESHOLD) -> bool:
    return bool(review_findings(item, threshold))


def is_resolved(item: CapturedItem, threshold: float = HIGH_CONFIDENCE_THRESHOLD) -> bool:
    """Reviewed and confident on every applicable attribute; never resurfaces."""
    return item.last_reviewed_at is not None and not needs_review(item, threshold)


def _age_reference(item: CapturedItem) -> datetime:
    return item.last_reviewed_at or item.created_at


def rank_for_review(
    items: Iterable[CapturedItem],
    limit: int = DEFAULT_REVIEW_LIMIT,
    now: Optional[datetime] = None,
    threshold: float = HIGH_CONFIDENCE_THRESHOLD,
) -> List[ReviewRankedItem]:
    """Top `limit` items needing attention, most urgent first.

    Pure function of its inputs: pass the same `now` to get the same result.
    """
    now = naive_local(now) or datetime.now()
    limit = max(limit, 0)
    ranked: List[Tuple[ReviewRankedItem, datetime]] = []

    for item in items:
        if is_resolved(item, threshold):
            continue
        findings = review_findings(item, threshold)
        if not findings:
            continue

        reference = _age_reference(item)
        hours_since = (now - reference).total_seconds() / 3600
        priority = max(severity for severity, _ in findings) + hours_since
        reason = "; ".join(text for _, text in findings)
        ranked.append((ReviewRankedItem(item=item, priority=priority, reason=reason), reference))

    ranked.sort(key=lambda pair: (-pair[0].priority, pair[1]))
    logger.debug("Review queue: %d of %d candidates", min(limit, len(ranked)), len(ranked))
    return [entry for entry, _ in ranked[:limit]]
