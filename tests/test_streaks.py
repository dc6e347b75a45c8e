from datetime import date, timedelta

import pytest

from habitforge.streaks import (
    STREAK_LOOKBACK_CAP,
    InvalidDateFormat,
    InvalidTargetDay,
    StreakResult,
    completion_rate,
    compute_streaks,
    is_target_day,
    longest_run,
    normalize_target_days,
    parse_day,
)

DAILY = ["daily"]


def _completed(start: date, n: int) -> dict:
    return {(start + timedelta(days=i)).isoformat(): "completed" for i in range(n)}


def test_three_consecutive_days_ending_today():
    history = {
        "2025-04-27": "completed",
        "2025-04-28": "completed",
        "2025-04-29": "completed",
    }
    result = compute_streaks(history, DAILY, today="2025-04-29", previous_longest_streak=0)
    assert result == StreakResult(current_streak=3, longest_streak=3)


def test_gap_breaks_run():
    history = {"2025-04-25": "completed", "2025-04-27": "completed"}
    result = compute_streaks(history, DAILY, today="2025-04-27")
    assert result == StreakResult(current_streak=1, longest_streak=1)


@pytest.mark.parametrize("status", ["missed", None])
def test_today_not_completed_means_zero(status):
    history = _completed(date(2025, 4, 20), 9)  # 20th..28th
    history["2025-04-29"] = status
    result = compute_streaks(history, DAILY, today="2025-04-29")
    assert result.current_streak == 0
    assert result.longest_streak == 9


def test_today_absent_means_zero():
    history = _completed(date(2025, 4, 20), 9)
    assert compute_streaks(history, DAILY, today="2025-04-29").current_streak == 0


def test_missed_day_breaks_current_streak():
    history = {
        "2025-04-26": "completed",
        "2025-04-27": "missed",
        "2025-04-28": "completed",
        "2025-04-29": "completed",
    }
    result = compute_streaks(history, DAILY, today="2025-04-29")
    assert result == StreakResult(current_streak=2, longest_streak=2)


def test_longest_streak_from_older_run():
    history = _completed(date(2025, 3, 1), 10)
    history.update(_completed(date(2025, 4, 28), 2))
    result = compute_streaks(history, DAILY, today="2025-04-29")
    assert result == StreakResult(current_streak=2, longest_streak=10)


def test_unscheduled_blank_days_are_skipped():
    # Fri 25th and Mon 28th done, weekend not scheduled
    history = {"2025-04-25": "completed", "2025-04-28": "completed"}
    result = compute_streaks(history, ["Monday", "Wednesday", "Friday"], today="2025-04-28")
    assert result.current_streak == 2
    # calendar runs ignore the schedule, current streak lifts the maximum
    assert result.longest_streak == 2


def test_scheduled_blank_day_breaks():
    history = {"2025-04-23": "completed", "2025-04-25": "completed", "2025-04-28": "completed"}
    # blank Thursday 24th is scheduled, so the 23rd is never reached
    result = compute_streaks(history, ["monday", "thursday", "friday"], today="2025-04-28")
    assert result.current_streak == 2


def test_missed_on_unscheduled_day_still_breaks():
    history = {
        "2025-04-25": "completed",
        "2025-04-26": "missed",  # Saturday, not scheduled
        "2025-04-28": "completed",
    }
    result = compute_streaks(history, ["monday", "friday"], today="2025-04-28")
    assert result.current_streak == 1


def test_previous_longest_is_a_floor():
    history = _completed(date(2025, 4, 27), 3)
    result = compute_streaks(history, DAILY, today="2025-04-29", previous_longest_streak=12)
    assert result == StreakResult(current_streak=3, longest_streak=12)


def test_empty_history_keeps_previous_longest():
    assert compute_streaks({}, DAILY, today="2025-04-29", previous_longest_streak=5) == StreakResult(0, 5)
    assert compute_streaks(None, DAILY, today="2025-04-29") == StreakResult(0, 0)


def test_walk_is_capped():
    today = date(2025, 4, 29)
    history = _completed(today - timedelta(days=399), 400)
    result = compute_streaks(history, DAILY, today=today)
    assert result.current_streak == STREAK_LOOKBACK_CAP
    assert result.longest_streak == 400


def test_custom_cap():
    history = _completed(date(2025, 4, 20), 10)
    result = compute_streaks(history, DAILY, today="2025-04-29", cap=4)
    assert result.current_streak == 4
    assert result.longest_streak == 10


def test_accepts_date_objects_and_defaults_to_local_today():
    today = date.today()
    history = {today.isoformat(): "completed", (today - timedelta(days=1)).isoformat(): "completed"}
    assert compute_streaks(history, DAILY).current_streak == 2
    assert compute_streaks(history, DAILY, today=today).current_streak == 2


def test_does_not_mutate_input_and_is_repeatable():
    history = {"2025-04-28": "completed", "2025-04-29": "completed", "2025-04-30": None}
    snapshot = dict(history)
    first = compute_streaks(history, DAILY, today="2025-04-29", previous_longest_streak=1)
    second = compute_streaks(history, DAILY, today="2025-04-29", previous_longest_streak=1)
    assert first == second
    assert history == snapshot


@pytest.mark.parametrize("history,today,previous", [
    ({}, "2025-04-29", 0),
    ({"2025-04-29": "completed"}, "2025-04-29", 0),
    ({"2025-04-29": "missed", "2025-04-28": "completed"}, "2025-04-29", 4),
    ({"2025-01-01": "completed", "2025-01-02": "completed", "2025-04-29": "completed"}, "2025-04-29", 1),
])
def test_current_never_exceeds_longest_and_longest_never_drops(history, today, previous):
    result = compute_streaks(history, DAILY, today=today, previous_longest_streak=previous)
    assert result.current_streak <= result.longest_streak
    assert result.longest_streak >= previous


@pytest.mark.parametrize("bad", ["2025-4-29", "29/04/2025", "2025-02-30", "", "today"])
def test_bad_history_key_is_rejected(bad):
    with pytest.raises(InvalidDateFormat):
        compute_streaks({bad: "completed"}, DAILY, today="2025-04-29")


def test_bad_key_with_cleared_mark_is_rejected():
    with pytest.raises(InvalidDateFormat):
        compute_streaks({"2025-04-29": "completed", "yesterday": None}, DAILY, today="2025-04-29")


def test_bad_today_is_rejected():
    with pytest.raises(InvalidDateFormat):
        compute_streaks({"2025-04-29": "completed"}, DAILY, today="04/29/2025")


def test_target_days_are_case_insensitive_and_validated():
    assert normalize_target_days(["Daily", " MONDAY "]) == frozenset({"daily", "monday"})
    with pytest.raises(InvalidTargetDay):
        normalize_target_days(["funday"])


def test_is_target_day():
    assert is_target_day("2025-04-29", ["Tuesday"])
    assert not is_target_day("2025-04-29", ["monday"])
    assert is_target_day(date(2025, 4, 26), ["daily"])


def test_longest_run():
    days = [parse_day(d) for d in ["2025-01-01", "2025-01-02", "2025-01-04", "2025-01-05", "2025-01-06"]]
    assert longest_run(days) == 3
    assert longest_run([]) == 0
    # month and year boundaries
    days = [parse_day(d) for d in ["2024-12-31", "2025-01-01", "2025-02-28", "2025-03-01"]]
    assert longest_run(days) == 2


def test_completion_rate():
    assert completion_rate({}) == 0.0
    assert completion_rate({"2025-04-28": None}) == 0.0
    history = {"2025-04-27": "completed", "2025-04-28": "missed", "2025-04-29": "completed", "2025-04-30": None}
    assert completion_rate(history) == 66.67


@pytest.mark.parametrize("cap", [0, -3])
def test_cap_below_one_is_rejected(cap):
    with pytest.raises(ValueError):
        compute_streaks(_completed(date(2025, 4, 28), 2), DAILY, today="2025-04-29", cap=cap)
