from datetime import datetime
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Date,
    DateTime,
    Boolean,
    ForeignKey,
    UniqueConstraint,
)
from northstar.core.config import (
    DEFAULT_MORNING_NUDGE_TIME,
    DEFAULT_EVENING_NUDGE_TIME,
    DEFAULT_TIMEZONE,
)
from northstar.database import Base


class DailyCheckIn(Base):
    __tablename__ = "daily_check_ins"
    __table_args__ = (UniqueConstraint("user_id", "date", name="uq_check_in_user_date"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(255), index=True, nullable=False)
    date = Column(Date, nullable=False)
    morning_intention = Column(Text, nullable=True)
    # Plain reference; the action may be deleted later
    selected_action_id = Column(Integer, ForeignKey("actions.id", ondelete="SET NULL"), nullable=True)
    evening_accomplished = Column(Boolean, nullable=True)  # None = not reflected yet
    evening_reflection = Column(Text, nullable=True)
    is_completed = Column(Boolean, default=False, nullable=False)
    current_streak = Column(Integer, default=0, nullable=False)
    streak_counted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    @property
    def evening_resolved(self) -> bool:
        return self.evening_accomplished is not None


class UserPreferences(Base):
    __tablename__ = "user_preferences"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(255), unique=True, index=True, nullable=False)
    morning_nudge_time = Column(String(5), default=DEFAULT_MORNING_NUDGE_TIME, nullable=False)  # HH:MM
    evening_nudge_time = Column(String(5), default=DEFAULT_EVENING_NUDGE_TIME, nullable=False)
    timezone = Column(String(64), default=DEFAULT_TIMEZONE, nullable=False)
    nudges_enabled = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
