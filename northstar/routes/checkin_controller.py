from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from northstar.core.security import get_current_user_id
from northstar.database import get_db
from northstar.schemas.checkins import (
    CelebrationData,
    CheckInListResponse,
    CheckInResponse,
    EveningCheckInResponse,
    EveningCheckInUpdate,
    MorningCheckInCreate,
    StreakResponse,
)
from northstar.services.checkin_service import CheckInService
from northstar.services.preferences_service import PreferencesService, local_today

router = APIRouter()


def _today_for(db: Session, user_id: str):
    return local_today(PreferencesService(db).get_preferences(user_id))


@router.get("/daily-checkin/today", response_model=Optional[CheckInResponse])
def get_today_check_in(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """Today's check-in (user-local date) or null"""
    return CheckInService(db).get_check_in(user_id, _today_for(db, user_id))


@router.get("/daily-checkin/recent", response_model=CheckInListResponse)
def get_recent_check_ins(
    days: int = Query(7, ge=1, le=365),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    check_ins = CheckInService(db).get_recent_check_ins(user_id, days, _today_for(db, user_id))
    return CheckInListResponse(check_ins=check_ins)


@router.post("/daily-checkin", response_model=CheckInResponse)
def create_morning_check_in(
    data: MorningCheckInCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """Set the morning intention; repeating it for the same day returns the existing check-in"""
    day = data.date or _today_for(db, user_id)
    result = CheckInService(db).create_check_in(user_id, day, data.morning_intention, data.selected_action_id)
    return result.check_in


@router.put("/daily-checkin/{check_in_id}", response_model=EveningCheckInResponse)
def resolve_evening_check_in(
    check_in_id: int,
    data: EveningCheckInUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """Record the evening reflection; accomplished days come back with celebration data"""
    result = CheckInService(db).resolve_evening(
        user_id, check_in_id, data.evening_accomplished, data.evening_reflection
    )
    body = CheckInResponse.model_validate(result.check_in).model_dump()
    return EveningCheckInResponse(
        **body,
        celebration=CelebrationData(
            show_celebration=result.show_celebration,
            streak=result.check_in.current_streak,
        ),
    )


@router.get("/user/streak", response_model=StreakResponse)
def get_streak(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    today = _today_for(db, user_id)
    return StreakResponse(streak=CheckInService(db).get_streak(user_id, today), as_of=today)
