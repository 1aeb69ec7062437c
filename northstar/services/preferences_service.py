from sqlalchemy.orm import Session
from datetime import date, datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
import logging

from northstar.core.config import (
    DEFAULT_EVENING_NUDGE_TIME,
    DEFAULT_MORNING_NUDGE_TIME,
    DEFAULT_TIMEZONE,
)
from northstar.models.checkins import UserPreferences
from northstar.schemas.preferences import PreferencesUpdate

preferences_logger = logging.getLogger("preferences_service")


def resolve_zone(name: Optional[str]) -> ZoneInfo:
    try:
        return ZoneInfo(name or DEFAULT_TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError):
        preferences_logger.warning(f"Unknown timezone {name!r}, falling back to UTC")
        return ZoneInfo("UTC")


def local_today(prefs: Optional[UserPreferences], now: Optional[datetime] = None) -> date:
    """The user's calendar date for a naive-UTC ``now``"""
    now = now or datetime.utcnow()
    zone = resolve_zone(prefs.timezone if prefs else None)
    return now.replace(tzinfo=timezone.utc).astimezone(zone).date()


class PreferencesService:
    def __init__(self, db: Session):
        self.db = db

    def get_preferences(self, user_id: str) -> Optional[UserPreferences]:
        return self.db.query(UserPreferences).filter(UserPreferences.user_id == user_id).first()

    def get_or_default(self, user_id: str) -> UserPreferences:
        """Stored preferences, or an unsaved instance carrying the defaults"""
        prefs = self.get_preferences(user_id)
        if prefs is None:
            prefs = UserPreferences(
                user_id=user_id,
                morning_nudge_time=DEFAULT_MORNING_NUDGE_TIME,
                evening_nudge_time=DEFAULT_EVENING_NUDGE_TIME,
                timezone=DEFAULT_TIMEZONE,
                nudges_enabled=True,
            )
        return prefs

    def upsert_preferences(self, user_id: str, data: PreferencesUpdate) -> UserPreferences:
        prefs = self.get_preferences(user_id)
        if prefs is None:
            prefs = self.get_or_default(user_id)
            self.db.add(prefs)

        for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(prefs, field, value)

        self.db.commit()
        self.db.refresh(prefs)
        preferences_logger.info(f"Preferences saved for user {user_id}")
        return prefs
