from datetime import datetime
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    DateTime,
    Boolean,
    ForeignKey,
    Enum,
    JSON,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from northstar.database import Base
import enum


class GoalTimeline(enum.Enum):
    ONE_MONTH = "1_month"
    THREE_MONTHS = "3_months"
    SIX_MONTHS = "6_months"
    ONE_YEAR = "1_year"
    CUSTOM = "custom"


class GoalStatus(enum.Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    PAUSED = "paused"


class PeriodUnit(enum.Enum):
    WEEK = "week"
    MONTH = "month"


TIMELINE_MONTHS = {
    GoalTimeline.ONE_MONTH: 1,
    GoalTimeline.THREE_MONTHS: 3,
    GoalTimeline.SIX_MONTHS: 6,
    GoalTimeline.ONE_YEAR: 12,
}


class Goal(Base):
    __tablename__ = "goals"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(255), index=True, nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    timeline = Column(Enum(GoalTimeline, name="goal_timeline"), nullable=False)
    timeline_value = Column(Integer, nullable=True)  # months, custom timeline only
    status = Column(Enum(GoalStatus, name="goal_status"), default=GoalStatus.ACTIVE, nullable=False)
    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    milestones = relationship(
        "Milestone",
        back_populates="goal",
        order_by="Milestone.order_index",
        cascade="all, delete-orphan",
    )

    @property
    def natural_period_unit(self) -> PeriodUnit:
        # One-month plans are laid out week by week
        if self.timeline == GoalTimeline.ONE_MONTH:
            return PeriodUnit.WEEK
        return PeriodUnit.MONTH


class Milestone(Base):
    __tablename__ = "milestones"
    __table_args__ = (UniqueConstraint("goal_id", "order_index", name="uq_milestone_goal_order"),)

    id = Column(Integer, primary_key=True, index=True)
    goal_id = Column(Integer, ForeignKey("goals.id", ondelete="CASCADE"), index=True, nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    order_index = Column(Integer, nullable=False)
    target_unit = Column(Enum(PeriodUnit, name="period_unit"), default=PeriodUnit.MONTH, nullable=False)
    target_ordinal = Column(Integer, nullable=False)
    is_completed = Column(Boolean, default=False, nullable=False)
    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    goal = relationship("Goal", back_populates="milestones")
    actions = relationship(
        "Action",
        back_populates="milestone",
        order_by="Action.order_index",
        cascade="all, delete-orphan",
    )

    @property
    def target_period(self) -> dict:
        return {"unit": self.target_unit, "ordinal": self.target_ordinal}


class Action(Base):
    __tablename__ = "actions"
    __table_args__ = (UniqueConstraint("milestone_id", "order_index", name="uq_action_milestone_order"),)

    id = Column(Integer, primary_key=True, index=True)
    milestone_id = Column(Integer, ForeignKey("milestones.id", ondelete="CASCADE"), index=True, nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    resources = Column(JSON, nullable=False, default=list)  # [{"name", "url", "type"}]
    order_index = Column(Integer, nullable=False)
    is_completed = Column(Boolean, default=False, nullable=False)
    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    milestone = relationship("Milestone", back_populates="actions")
