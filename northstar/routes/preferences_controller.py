from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from northstar.core.security import get_current_user_id
from northstar.database import get_db
from northstar.schemas.preferences import PreferencesResponse, PreferencesUpdate
from northstar.services.preferences_service import PreferencesService
from northstar.services.reminder_service import ReminderService

router = APIRouter()


@router.get("/user/preferences", response_model=PreferencesResponse)
def get_preferences(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    return PreferencesService(db).get_or_default(user_id)


@router.put("/user/preferences", response_model=PreferencesResponse)
def update_preferences(
    data: PreferencesUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """Save notification preferences and reschedule the user's reminders"""
    prefs = PreferencesService(db).upsert_preferences(user_id, data)
    ReminderService(db).schedule_user_reminders(prefs)
    return prefs
