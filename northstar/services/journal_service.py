from sqlalchemy.orm import Session
from sqlalchemy import and_
from datetime import date, timedelta
from typing import List, Optional
import logging

from northstar.core.config import JOURNAL_DEFAULT_DAYS
from northstar.core.exceptions import NotFoundError
from northstar.models.checkins import DailyCheckIn
from northstar.models.goals import Action, Milestone
from northstar.models.journal import JournalEntry
from northstar.schemas.journal import JournalEntryUpdate

journal_logger = logging.getLogger("journal_service")

ACCOMPLISHED_LEVEL = 5
PARTIAL_LEVEL = 3


def accomplishment_level(accomplished: Optional[bool]) -> Optional[int]:
    if accomplished is None:
        return None
    return ACCOMPLISHED_LEVEL if accomplished else PARTIAL_LEVEL


class JournalService:
    def __init__(self, db: Session):
        self.db = db

    def _selected_goal_id(self, action_id: Optional[int]) -> tuple:
        """Resolve (action_id, goal_id); a deleted action means no selection."""
        if action_id is None:
            return None, None
        row = (
            self.db.query(Action.id, Milestone.goal_id)
            .join(Milestone, Action.milestone_id == Milestone.id)
            .filter(Action.id == action_id)
            .first()
        )
        if row is None:
            return None, None
        return row.id, row.goal_id

    def upsert_from_check_in(self, check_in: DailyCheckIn) -> JournalEntry:
        """Create or refresh the journal entry mirroring a resolved check-in"""
        action_id, goal_id = self._selected_goal_id(check_in.selected_action_id)
        entry = self.db.query(JournalEntry).filter(
            and_(JournalEntry.user_id == check_in.user_id, JournalEntry.date == check_in.date)
        ).first()
        if entry is None:
            entry = JournalEntry(user_id=check_in.user_id, date=check_in.date)
            self.db.add(entry)

        # Journal-only fields (mood, learnings, ...) are left as they are
        entry.morning_intention = check_in.morning_intention
        entry.selected_action_id = action_id
        entry.selected_goal_id = goal_id
        entry.evening_reflection = check_in.evening_reflection
        entry.accomplishment_level = accomplishment_level(check_in.evening_accomplished)
        entry.streak_count = check_in.current_streak
        entry.is_completed = check_in.is_completed

        self.db.commit()
        self.db.refresh(entry)
        journal_logger.info(f"📓 Journal entry {entry.id} synced for user {check_in.user_id} on {check_in.date}")
        return entry

    def get_recent_entries(self, user_id: str, days: int = JOURNAL_DEFAULT_DAYS, as_of: Optional[date] = None) -> List[JournalEntry]:
        """Entries from the last ``days`` days, newest first"""
        as_of = as_of or date.today()
        start = as_of - timedelta(days=days)
        return (
            self.db.query(JournalEntry)
            .filter(
                and_(
                    JournalEntry.user_id == user_id,
                    JournalEntry.date >= start,
                    JournalEntry.date <= as_of,
                )
            )
            .order_by(JournalEntry.date.desc())
            .all()
        )

    def get_entries_for_goal(self, user_id: str, goal_id: int) -> List[JournalEntry]:
        return (
            self.db.query(JournalEntry)
            .filter(and_(JournalEntry.user_id == user_id, JournalEntry.selected_goal_id == goal_id))
            .order_by(JournalEntry.date.desc())
            .all()
        )

    def update_entry(self, user_id: str, entry_id: int, data: JournalEntryUpdate) -> JournalEntry:
        entry = self.db.query(JournalEntry).filter(
            and_(JournalEntry.id == entry_id, JournalEntry.user_id == user_id)
        ).first()
        if not entry:
            raise NotFoundError("Journal entry", entry_id)

        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(entry, field, value)
        self.db.commit()
        self.db.refresh(entry)
        return entry
