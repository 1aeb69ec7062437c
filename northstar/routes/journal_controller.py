from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from northstar.core.config import JOURNAL_DEFAULT_DAYS
from northstar.core.security import get_current_user_id
from northstar.database import get_db
from northstar.schemas.journal import JournalEntriesResponse, JournalEntryResponse, JournalEntryUpdate
from northstar.services.journal_service import JournalService
from northstar.services.preferences_service import PreferencesService, local_today

router = APIRouter()


@router.get("/journal/entries", response_model=JournalEntriesResponse)
def get_journal_entries(
    days: int = Query(JOURNAL_DEFAULT_DAYS, ge=1, le=365),
    goal_id: Optional[int] = None,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """Recent entries, or every entry tied to one goal when goal_id is given"""
    service = JournalService(db)
    if goal_id is not None:
        entries = service.get_entries_for_goal(user_id, goal_id)
    else:
        today = local_today(PreferencesService(db).get_preferences(user_id))
        entries = service.get_recent_entries(user_id, days, as_of=today)
    return JournalEntriesResponse(entries=entries)


@router.put("/journal/entries/{entry_id}", response_model=JournalEntryResponse)
def update_journal_entry(
    entry_id: int,
    data: JournalEntryUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    return JournalService(db).update_entry(user_id, entry_id, data)
