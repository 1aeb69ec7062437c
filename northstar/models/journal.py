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
from northstar.database import Base


class JournalEntry(Base):
    """Read-optimized daily record derived from a resolved check-in."""

    __tablename__ = "journal_entries"
    __table_args__ = (UniqueConstraint("user_id", "date", name="uq_journal_user_date"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(255), index=True, nullable=False)
    date = Column(Date, nullable=False)
    morning_intention = Column(Text, nullable=True)
    selected_goal_id = Column(Integer, ForeignKey("goals.id", ondelete="SET NULL"), nullable=True, index=True)
    selected_action_id = Column(Integer, ForeignKey("actions.id", ondelete="SET NULL"), nullable=True)
    evening_reflection = Column(Text, nullable=True)
    accomplishment_level = Column(Integer, nullable=True)  # 5 accomplished, 3 partial
    mood = Column(String(50), nullable=True)
    key_learnings = Column(Text, nullable=True)
    challenges_faced = Column(Text, nullable=True)
    tomorrow_focus = Column(Text, nullable=True)
    streak_count = Column(Integer, default=0, nullable=False)
    is_completed = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
