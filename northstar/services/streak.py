"""Consecutive-day streak calculation over a user's check-in history.

Only ``STREAK_LOOKBACK_DAYS`` days are inspected, counted back from the
day the walk starts on, so a longer run is reported as exactly the window
length whether or not today is already checked in.
"""
from datetime import date, timedelta
from typing import Iterable, Optional, Set

from sqlalchemy import and_
from sqlalchemy.orm import Session

from northstar.core.config import STREAK_LOOKBACK_DAYS
from northstar.models.checkins import DailyCheckIn


def consecutive_days_ending(completed_dates: Set[date], end: date, max_days: int) -> int:
    """Count completed days walking backwards from ``end`` until the first gap."""
    streak = 0
    current = end
    while streak < max_days and current in completed_dates:
        streak += 1
        current -= timedelta(days=1)
    return streak


def streak_from_dates(completed_dates: Iterable[date], as_of: date, lookback_days: int = STREAK_LOOKBACK_DAYS) -> int:
    """
    Today's check-in only counts once it is completed; an unfinished today
    neither breaks nor extends the streak, so the walk starts from yesterday.
    The window is anchored on the day the walk starts from.
    """
    completed = set(completed_dates)
    start = as_of if as_of in completed else as_of - timedelta(days=1)
    window = {d for d in completed if start - timedelta(days=lookback_days) < d <= start}
    return consecutive_days_ending(window, start, lookback_days)


def _completed_dates(db: Session, user_id: str, until: date, lookback_days: int) -> Set[date]:
    # One extra row so an unfinished ``until`` does not use up a window slot
    rows = (
        db.query(DailyCheckIn.date, DailyCheckIn.is_completed)
        .filter(
            and_(
                DailyCheckIn.user_id == user_id,
                DailyCheckIn.date <= until,
            )
        )
        .order_by(DailyCheckIn.date.desc())
        .limit(lookback_days + 1)
        .all()
    )
    return {row.date for row in rows if row.is_completed}


def _lookback(lookback_days: Optional[int]) -> int:
    return STREAK_LOOKBACK_DAYS if lookback_days is None else lookback_days


def calculate_streak(db: Session, user_id: str, as_of: date, lookback_days: Optional[int] = None) -> int:
    lookback = _lookback(lookback_days)
    return streak_from_dates(_completed_dates(db, user_id, as_of, lookback), as_of, lookback)


def streak_ending(db: Session, user_id: str, end: date, lookback_days: Optional[int] = None) -> int:
    """Strict run ending on ``end``: 0 if ``end`` itself is not completed."""
    lookback = _lookback(lookback_days)
    completed = _completed_dates(db, user_id, end, lookback)
    return consecutive_days_ending(completed, end, lookback)
