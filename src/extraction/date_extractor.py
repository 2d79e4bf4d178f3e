"""Natural-language date/time extraction for captured text.

Recognises relative days ("tomorrow"), offsets ("in 3 days"), weekdays
("next tuesday"), month names ("march 3rd"), numeric dates ("3/20/27"),
period ends ("eow", "end of month") and times of day ("3pm", "15:30",
"noon"). The matched phrase is removed from the text so downstream
classifiers only see the remaining words.
"""

from __future__ import annotations

import calendar
import logging
import re
from datetime import date, datetime, time, timedelta
from typing import Optional

from dateutil.relativedelta import relativedelta

from divergent_flow.models import DateTimeExtraction

logger = logging.getLogger(__name__)

WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]
MONTHS = [
    "january", "february", "march", "april", "may", "june",
    "july", "august", "september", "october", "november", "december",
]

NAMED_TIMES = {
    "noon": time(12, 0),
    "midnight": time(0, 0),
    "morning": time(9, 0),
    "afternoon": time(14, 0),
    "evening": time(18, 0),
    "night": time(20, 0),
}

_WEEKDAY_ALT = "|".join(WEEKDAYS)
_MONTH_ALT = "|".join(MONTHS)

# Only the first pattern that parses is used; overlapping expressions are not reconciled.
DATE_PATTERNS = [
    re.compile(r"\b(today|tomorrow|yesterday)\b", re.IGNORECASE),
    re.compile(r"\bin (\d+) (days?|weeks?)\b", re.IGNORECASE),
    re.compile(rf"\bnext ({_WEEKDAY_ALT}|week|month)\b", re.IGNORECASE),
    re.compile(rf"\b(this )?({_WEEKDAY_ALT})\b", re.IGNORECASE),
    re.compile(rf"\b({_MONTH_ALT}) (\d{{1,2}})(st|nd|rd|th)?\b", re.IGNORECASE),
    re.compile(r"\b(\d{1,2})/(\d{1,2})(/(\d{2,4}))?\b"),
    re.compile(r"\b(end of week|eow|end of month|eom)\b", re.IGNORECASE),
]

TIME_PATTERNS = [
    re.compile(r"\b(?:at |in the |this )?(noon|midnight|morning|afternoon|evening|night)\b", re.IGNORECASE),
    re.compile(r"\b(?:at )?(\d{1,2})(?::(\d{2}))?\s*(am|pm)\b", re.IGNORECASE),
    re.compile(r"\b(?:at )?(\d{1,2}):(\d{2})\b"),
]


def _start_of_day(now: datetime) -> datetime:
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def _days_until(target_weekday: int, current_weekday: int) -> int:
    return (target_weekday - current_weekday) % 7


def _roll_forward(year: int, month: int, day: int, today: datetime) -> datetime:
    target = datetime(year, month, day)
    if target < today:
        target = datetime(year + 1, month, day)
    return target


def parse_natural_date(phrase: str, now: Optional[datetime] = None) -> Optional[datetime]:
    """Resolve a bare date phrase to midnight of that day, or None."""
    now = now or datetime.now()
    today = _start_of_day(now)
    lower = phrase.lower().strip()

    if lower == "today":
        return today
    if lower == "tomorrow":
        return today + timedelta(days=1)
    if lower == "yesterday":
        return today - timedelta(days=1)

    m = re.fullmatch(r"in (\d+) (days?|weeks?)", lower)
    if m:
        amount = int(m.group(1))
        try:
            if m.group(2).startswith("week"):
                return today + timedelta(weeks=amount)
            return today + timedelta(days=amount)
        except (OverflowError, ValueError):
            # "in 5000000 days" lands past datetime.max
            return None

    if lower == "next week":
        return today + timedelta(days=7)
    if lower == "next month":
        return today + relativedelta(months=1)

    m = re.fullmatch(rf"next ({_WEEKDAY_ALT})", lower)
    if m:
        days = _days_until(WEEKDAYS.index(m.group(1)), now.weekday()) or 7
        return today + timedelta(days=days)

    m = re.fullmatch(rf"(this )?({_WEEKDAY_ALT})", lower)
    if m:
        return today + timedelta(days=_days_until(WEEKDAYS.index(m.group(2)), now.weekday()))

    try:
        m = re.fullmatch(rf"({_MONTH_ALT}) (\d{{1,2}})(st|nd|rd|th)?", lower)
        if m:
            return _roll_forward(now.year, MONTHS.index(m.group(1)) + 1, int(m.group(2)), today)

        m = re.fullmatch(r"(\d{1,2})/(\d{1,2})(/(\d{2,4}))?", lower)
        if m:
            month, day = int(m.group(1)), int(m.group(2))
            year_raw = m.group(4)
            if year_raw is None:
                return _roll_forward(now.year, month, day, today)
            year = 2000 + int(year_raw) if len(year_raw) == 2 else int(year_raw)
            return datetime(year, month, day)
    except ValueError:
        # e.g. 13/45 or february 30
        return None

    if lower in {"end of week", "eow"}:
        friday = WEEKDAYS.index("friday")
        return today + timedelta(days=_days_until(friday, now.weekday()) or 7)
    if lower in {"end of month", "eom"}:
        last_day = calendar.monthrange(now.year, now.month)[1]
        return today.replace(day=last_day)

    return None


def parse_time_of_day(phrase: str) -> Optional[time]:
    """Resolve a time phrase ("3pm", "at 15:30", "noon") to a time, or None."""
    lower = phrase.lower().strip()
    if lower.startswith("at "):
        lower = lower[3:]

    m = re.fullmatch(r"(?:in the |this )?(noon|midnight|morning|afternoon|evening|night)", lower)
    if m:
        return NAMED_TIMES[m.group(1)]

    m = re.fullmatch(r"(\d{1,2})(?::(\d{2}))?\s*(am|pm)", lower)
    if m:
        hour = int(m.group(1))
        minute = int(m.group(2) or 0)
        if not 1 <= hour <= 12 or not 0 <= minute <= 59:
            return None
        hour = hour % 12
        if m.group(3) == "pm":
            hour += 12
        return time(hour, minute)

    m = re.fullmatch(r"(\d{1,2}):(\d{2})", lower)
    if m:
        hour, minute = int(m.group(1)), int(m.group(2))
        if not 0 <= hour <= 23 or not 0 <= minute <= 59:
            return None
        return time(hour, minute)

    return None


def _find_date(text: str, now: datetime) -> tuple[Optional[datetime], Optional[re.Match]]:
    for pattern in DATE_PATTERNS:
        match = pattern.search(text)
        if match is None:
            continue
        parsed = parse_natural_date(match.group(0), now)
        if parsed is not None:
            return parsed, match
    return None, None


def _find_time(text: str, taken: Optional[re.Match]) -> tuple[Optional[time], Optional[re.Match]]:
    for pattern in TIME_PATTERNS:
        for match in pattern.finditer(text):
            if taken is not None and match.start() < taken.end() and taken.start() < match.end():
                continue
            parsed = parse_time_of_day(match.group(0))
            if parsed is not None:
                return parsed, match
    return None, None


def _strip_spans(text: str, matches: list[re.Match]) -> str:
    for match in sorted(matches, key=lambda m: m.start(), reverse=True):
        text = text[: match.start()] + " " + text[match.end():]
    return re.sub(r"\s+", " ", text).strip()


def extract_date_time(text: str, now: Optional[datetime] = None) -> DateTimeExtraction:
    """Find a date and/or time expression in free text.

    Date and time are merged when both are present. A time alone anchors to
    today, or to tomorrow when that time has already passed. A date alone
    resolves to midnight. Text without a recognisable expression comes back
    unchanged with no timestamp.
    """
    now = now or datetime.now()
    parsed_date, date_match = _find_date(text, now)
    parsed_time, time_match = _find_time(text, date_match)

    if parsed_date is None and parsed_time is None:
        return DateTimeExtraction(timestamp=None, remaining_text=text)

    if parsed_date is not None and parsed_time is not None:
        timestamp = datetime.combine(parsed_date.date(), parsed_time)
    elif parsed_time is not None:
        timestamp = datetime.combine(now.date(), parsed_time)
        if timestamp < now:
            timestamp += timedelta(days=1)
    else:
        timestamp = parsed_date

    matches = [m for m in (date_match, time_match) if m is not None]
    matched_text = " ".join(m.group(0) for m in sorted(matches, key=lambda m: m.start()))
    logger.debug("Extracted %s from %r (matched %r)", timestamp, text, matched_text)

    return DateTimeExtraction(
        timestamp=timestamp,
        remaining_text=_strip_spans(text, matches),
        matched_text=matched_text,
    )


def describe_due_date(timestamp: datetime, now: Optional[datetime] = None) -> str:
    """Short human label for a due date relative to today."""
    today: date = (now or datetime.now()).date()
    target = timestamp.date()

    if target == today:
        return "Today"
    if target == today + timedelta(days=1):
        return "Tomorrow"

    diff_days = (target - today).days
    if 0 < diff_days <= 7:
        return f"in {diff_days} day{'s' if diff_days > 1 else ''}"

    label = f"{calendar.month_abbr[target.month]} {target.day}"
    if target.year != today.year:
        label += f", {target.year}"
    return label
