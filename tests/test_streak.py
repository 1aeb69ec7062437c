from datetime import date, timedelta

from northstar.models.checkins import DailyCheckIn
from northstar.services.streak import calculate_streak, streak_ending, streak_from_dates

D = date(2026, 5, 20)


def _days(*offsets):
    return {D - timedelta(days=o) for o in offsets}


def _check_in(db, day, completed=True, user_id="user-1"):
    db.add(DailyCheckIn(user_id=user_id, date=day, morning_intention="focus", is_completed=completed,
                        evening_accomplished=completed))
    db.commit()


def test_no_check_ins_is_zero(db):
    assert calculate_streak(db, "user-1", D) == 0


def test_only_today_completed_is_one():
    assert streak_from_dates(_days(0), D) == 1


def test_three_day_run_as_of_last_day():
    assert streak_from_dates(_days(0, 1, 2), D) == 3


def test_unfinished_today_does_not_break_streak():
    assert streak_from_dates(_days(0, 1, 2), D + timedelta(days=1)) == 3


def test_gap_stops_the_walk_and_never_resumes():
    assert streak_from_dates(_days(0, 1, 3, 4, 5, 6), D) == 2


def test_gap_yesterday_means_zero():
    assert streak_from_dates(_days(2, 3), D) == 0


def test_lookback_window_caps_the_streak():
    dates = {D - timedelta(days=o) for o in range(200)}
    assert streak_from_dates(dates, D, lookback_days=90) == 90


def test_incomplete_check_in_counts_as_gap(db):
    _check_in(db, D)
    _check_in(db, D - timedelta(days=1), completed=False)
    _check_in(db, D - timedelta(days=2))

    assert calculate_streak(db, "user-1", D) == 1


def test_calculate_streak_reads_history(db):
    for offset in (0, 1, 2):
        _check_in(db, D - timedelta(days=offset))
    _check_in(db, D - timedelta(days=2), user_id="user-2")

    assert calculate_streak(db, "user-1", D) == 3
    assert calculate_streak(db, "user-1", D + timedelta(days=1)) == 3
    assert calculate_streak(db, "user-1", D + timedelta(days=2)) == 0
    assert calculate_streak(db, "user-2", D) == 0


def test_future_check_ins_are_ignored(db):
    _check_in(db, D + timedelta(days=3))
    assert calculate_streak(db, "user-1", D) == 0


def test_streak_ending_is_strict(db):
    _check_in(db, D - timedelta(days=1))
    _check_in(db, D - timedelta(days=2))

    assert streak_ending(db, "user-1", D - timedelta(days=1)) == 2
    assert streak_ending(db, "user-1", D) == 0


def test_lookback_window_is_full_when_today_is_unfinished():
    dates = {D - timedelta(days=o) for o in range(1, 201)}
    assert streak_from_dates(dates, D, lookback_days=90) == 90


def test_unfinished_today_row_does_not_shrink_the_window(db):
    for offset in range(1, 96):
        _check_in(db, D - timedelta(days=offset))
    _check_in(db, D, completed=False)

    assert calculate_streak(db, "user-1", D, lookback_days=90) == 90
    assert streak_ending(db, "user-1", D - timedelta(days=1), lookback_days=90) == 90


def test_zero_lookback_counts_nothing(db):
    for offset in (0, 1, 2):
        _check_in(db, D - timedelta(days=offset))

    assert calculate_streak(db, "user-1", D, lookback_days=0) == 0
    assert streak_ending(db, "user-1", D, lookback_days=0) == 0
    assert calculate_streak(db, "user-1", D) == 3
