from pydantic import BaseModel, Field
from typing import Optional, List
import datetime


class MorningCheckInCreate(BaseModel):
    morning_intention: Optional[str] = None
    selected_action_id: Optional[int] = None
    date: Optional[datetime.date] = None  # defaults to the user's local today


class EveningCheckInUpdate(BaseModel):
    # Left optional so a missing value surfaces as a domain ValidationError
    evening_accomplished: Optional[bool] = None
    evening_reflection: Optional[str] = None


class CheckInResponse(BaseModel):
    id: int
    date: datetime.date
    morning_intention: Optional[str] = None
    selected_action_id: Optional[int] = None
    evening_accomplished: Optional[bool] = None
    evening_reflection: Optional[str] = None
    is_completed: bool
    current_streak: int
    created_at: datetime.datetime
    updated_at: datetime.datetime

    class Config:
        from_attributes = True


class CelebrationData(BaseModel):
    show_celebration: bool
    streak: int


class EveningCheckInResponse(CheckInResponse):
    celebration: CelebrationData


class CheckInListResponse(BaseModel):
    check_ins: List[CheckInResponse] = Field(default_factory=list)


class StreakResponse(BaseModel):
    streak: int
    as_of: datetime.date
