"""Streak computation over a habit's day-by-day history.

History is a mapping of ``YYYY-MM-DD`` strings to ``"completed"`` or
``"missed"``. A day with no key, or with an explicit ``None``, is absent.
Everything here is pure: callers persist whatever comes back.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Mapping, Optional, Union

COMPLETED = "completed"
MISSED = "missed"
DAILY = "daily"

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
VALID_TARGET_DAYS = frozenset(WEEKDAYS + (DAILY,))

STREAK_LOOKBACK_CAP = 365

_DAY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

DayLike = Union[date, str]


class InvalidDateFormat(ValueError):
    def __init__(self, value):
        super().__init__(f"Invalid date {value!r}, expected YYYY-MM-DD")
        self.value = value


class InvalidTargetDay(ValueError):
    def __init__(self, value):
        super().__init__(f"Invalid target day {value!r}, expected a weekday name or 'daily'")
        self.value = value


@dataclass(frozen=True)
class StreakResult:
    current_streak: int
    longest_streak: int


def parse_day(value: DayLike) -> date:
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not _DAY_RE.match(value):
        raise InvalidDateFormat(value)
    try:
        return date.fromisoformat(value)
    except ValueError:
        # well-formed but not a real day, e.g. 2025-02-30
        raise InvalidDateFormat(value) from None


def format_day(d: date) -> str:
    return d.isoformat()


def normalize_target_days(target_days: Iterable[str]) -> frozenset[str]:
    out = set()
    for raw in target_days:
        day = str(raw).strip().lower()
        if day not in VALID_TARGET_DAYS:
            raise InvalidTargetDay(raw)
        out.add(day)
    return frozenset(out)


def is_target_day(day: DayLike, target_days: Iterable[str]) -> bool:
    days = normalize_target_days(target_days)
    return DAILY in days or WEEKDAYS[parse_day(day).weekday()] in days


def _completed_days(history: Mapping[str, Optional[str]]) -> list[date]:
    # parse every key, not only completed ones: a bad key anywhere is a caller bug
    parsed = {parse_day(k): v for k, v in history.items()}
    return sorted(d for d, status in parsed.items() if status == COMPLETED)


def longest_run(days: list[date]) -> int:
    """Length of the longest run of calendar-consecutive dates in a sorted list."""
    best = run = 0
    prev = None
    for d in days:
        if prev is not None and (d - prev).days == 1:
            run += 1
        else:
            run = 1
        best = max(best, run)
        prev = d
    return best


def current_run(
    history: Mapping[str, Optional[str]],
    target_days: frozenset[str],
    today: date,
    cap: int = STREAK_LOOKBACK_CAP,
) -> int:
    """Walk back from ``today`` counting completed days.

    A missed day always ends the walk. An absent day ends it only when the
    habit was scheduled that day; unscheduled blanks are stepped over.
    """
    if history.get(format_day(today)) != COMPLETED:
        return 0

    streak = 1
    day = today
    for _ in range(cap - 1):
        day -= timedelta(days=1)
        status = history.get(format_day(day))
        if status == COMPLETED:
            streak += 1
        elif status == MISSED:
            break
        elif DAILY in target_days or WEEKDAYS[day.weekday()] in target_days:
            break
    return streak


def compute_streaks(
    history: Optional[Mapping[str, Optional[str]]],
    target_days: Iterable[str],
    today: Optional[DayLike] = None,
    previous_longest_streak: int = 0,
    cap: int = STREAK_LOOKBACK_CAP,
) -> StreakResult:
    """Recompute both streak counters from scratch.

    ``previous_longest_streak`` is a floor, so the longest streak never goes
    down across recomputations even when old history is removed.

    Raises:
        InvalidDateFormat: a history key or ``today`` is not ``YYYY-MM-DD``.
        InvalidTargetDay: ``target_days`` holds something other than a
            weekday name or ``daily``.
        ValueError: ``cap`` is below 1.
    """
    if cap < 1:
        raise ValueError(f"cap must be at least 1, got {cap}")
    today = parse_day(today) if today is not None else date.today()
    days = normalize_target_days(target_days)
    previous = max(int(previous_longest_streak or 0), 0)

    if not history:
        return StreakResult(current_streak=0, longest_streak=previous)

    run = longest_run(_completed_days(history))
    current = current_run(history, days, today, cap=cap)
    return StreakResult(current_streak=current, longest_streak=max(run, previous, current))


def completion_rate(history: Optional[Mapping[str, Optional[str]]]) -> float:
    if not history:
        return 0.0
    marks = [v for v in history.values() if v is not None]
    if not marks:
        return 0.0
    done = sum(1 for v in marks if v == COMPLETED)
    return round(done / len(marks) * 100.0, 2)
