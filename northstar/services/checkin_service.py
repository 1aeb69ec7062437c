from dataclasses import dataclass
from sqlalchemy.orm import Session
from sqlalchemy import and_
from sqlalchemy.exc import IntegrityError
from datetime import date, datetime, timedelta
from typing import List, Optional
import logging

from northstar.core.exceptions import ConflictError, NotFoundError, ProjectionWriteFailed, ValidationError
from northstar.events import kafka_producer
from northstar.models.checkins import DailyCheckIn
from northstar.models.goals import Action, Goal, Milestone
from northstar.services import streak
from northstar.services.journal_service import JournalService

checkin_logger = logging.getLogger("checkin_service")


@dataclass
class MorningResult:
    check_in: DailyCheckIn
    created: bool


@dataclass
class EveningResult:
    check_in: DailyCheckIn
    show_celebration: bool
    journal_synced: bool


class CheckInService:
    """
    Per-user, per-day check-in lifecycle:

        NotStarted --morning intention--> MorningSet --accomplishment--> EveningResolved

    The morning phase happens at most once per (user, date). The evening
    phase may be edited afterwards, but the streak snapshot is derived only
    the first time the day becomes completed.
    """

    def __init__(self, db: Session):
        self.db = db
        self.journal = JournalService(db)

    def get_check_in(self, user_id: str, day: date) -> Optional[DailyCheckIn]:
        return self.db.query(DailyCheckIn).filter(
            and_(DailyCheckIn.user_id == user_id, DailyCheckIn.date == day)
        ).first()

    def get_recent_check_ins(self, user_id: str, days: int, as_of: date) -> List[DailyCheckIn]:
        start = as_of - timedelta(days=days)
        return (
            self.db.query(DailyCheckIn)
            .filter(
                and_(
                    DailyCheckIn.user_id == user_id,
                    DailyCheckIn.date >= start,
                    DailyCheckIn.date <= as_of,
                )
            )
            .order_by(DailyCheckIn.date.desc())
            .all()
        )

    def _resolve_action_id(self, user_id: str, action_id: Optional[int]) -> Optional[int]:
        """Unknown or foreign actions are treated as no specific selection"""
        if action_id is None:
            return None
        found = (
            self.db.query(Action.id)
            .join(Milestone, Action.milestone_id == Milestone.id)
            .join(Goal, Milestone.goal_id == Goal.id)
            .filter(Action.id == action_id, Goal.user_id == user_id)
            .first()
        )
        if found is None:
            checkin_logger.warning(f"Action {action_id} not available to user {user_id}, ignoring selection")
            return None
        return found.id

    def _insert(self, check_in: DailyCheckIn) -> DailyCheckIn:
        self.db.add(check_in)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError(f"Check-in already exists for {check_in.user_id} on {check_in.date}")
        self.db.refresh(check_in)
        return check_in

    def create_check_in(
        self, user_id: str, day: date, intention: Optional[str], selected_action_id: Optional[int] = None
    ) -> MorningResult:
        """
        Morning phase. A repeated submission for the same day is coalesced
        into the existing record, which is returned unchanged.
        """
        if intention is None or not intention.strip():
            raise ValidationError("Morning intention is required")

        existing = self.get_check_in(user_id, day)
        if existing is not None:
            checkin_logger.info(f"Morning already set for user {user_id} on {day}, keeping existing check-in")
            return MorningResult(check_in=existing, created=False)

        check_in = DailyCheckIn(
            user_id=user_id,
            date=day,
            morning_intention=intention.strip(),
            selected_action_id=self._resolve_action_id(user_id, selected_action_id),
            evening_accomplished=None,
            is_completed=False,
            # Carried streak until the day itself is completed
            current_streak=streak.streak_ending(self.db, user_id, day - timedelta(days=1)),
        )
        try:
            check_in = self._insert(check_in)
        except ConflictError:
            # A concurrent request won the race; return its row
            existing = self.get_check_in(user_id, day)
            if existing is None:
                raise
            return MorningResult(check_in=existing, created=False)

        checkin_logger.info(f"🌅 Morning intention set for user {user_id} on {day}")
        return MorningResult(check_in=check_in, created=True)

    def resolve_evening(
        self,
        user_id: str,
        check_in_id: int,
        accomplished: Optional[bool],
        reflection: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> EveningResult:
        if accomplished is None:
            raise ValidationError("Evening accomplishment value is required")

        check_in = self.db.query(DailyCheckIn).filter(
            and_(DailyCheckIn.id == check_in_id, DailyCheckIn.user_id == user_id)
        ).first()
        if not check_in:
            raise NotFoundError("Check-in", check_in_id)

        check_in.evening_accomplished = accomplished
        if reflection is not None:
            check_in.evening_reflection = reflection
        check_in.is_completed = accomplished

        newly_counted = accomplished and check_in.streak_counted_at is None
        if newly_counted:
            previous = streak.streak_ending(self.db, user_id, check_in.date - timedelta(days=1))
            check_in.current_streak = previous + 1
            check_in.streak_counted_at = now or datetime.utcnow()

        self.db.commit()
        self.db.refresh(check_in)
        checkin_logger.info(
            f"🌙 Evening resolved for user {user_id} on {check_in.date}: "
            f"accomplished={accomplished} streak={check_in.current_streak}"
        )

        journal_synced = self._sync_journal(check_in)
        kafka_producer.send_check_in_resolved_event(
            user_id, check_in.id, check_in.date, accomplished, check_in.current_streak
        )
        return EveningResult(check_in=check_in, show_celebration=bool(newly_counted), journal_synced=journal_synced)

    def _sync_journal(self, check_in: DailyCheckIn) -> bool:
        """Best-effort projection write; never fails the check-in itself"""
        try:
            self.journal.upsert_from_check_in(check_in)
            return True
        except Exception as e:
            self.db.rollback()
            failure = ProjectionWriteFailed(f"Journal sync failed for check-in {check_in.id}: {e}")
            checkin_logger.error(failure.message, exc_info=True)
            return False

    def get_streak(self, user_id: str, as_of: date) -> int:
        return streak.calculate_streak(self.db, user_id, as_of)
