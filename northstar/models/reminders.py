from datetime import datetime
from sqlalchemy import (
    Column,
    Integer,
    String,
    Date,
    DateTime,
    Enum,
    UniqueConstraint,
)
from northstar.database import Base
import enum


class ReminderKind(enum.Enum):
    MORNING = "morning"
    EVENING = "evening"


class ReminderStatus(enum.Enum):
    PENDING = "pending"
    SENT = "sent"
    SKIPPED = "skipped"
    CANCELLED = "cancelled"


class ScheduledReminder(Base):
    """One durable reminder job per (user, kind, user-local date)."""

    __tablename__ = "scheduled_reminders"
    __table_args__ = (
        UniqueConstraint("user_id", "kind", "local_date", name="uq_reminder_user_kind_date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(255), index=True, nullable=False)
    kind = Column(Enum(ReminderKind, name="reminder_kind"), nullable=False)
    local_date = Column(Date, nullable=False)
    due_at = Column(DateTime, index=True, nullable=False)  # naive UTC
    status = Column(Enum(ReminderStatus, name="reminder_status"), default=ReminderStatus.PENDING, nullable=False)
    processed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
