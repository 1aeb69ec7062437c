from pydantic import BaseModel, Field
from typing import List, Optional
import datetime


class JournalEntryUpdate(BaseModel):
    mood: Optional[str] = Field(default=None, max_length=50)
    key_learnings: Optional[str] = None
    challenges_faced: Optional[str] = None
    tomorrow_focus: Optional[str] = None


class JournalEntryResponse(BaseModel):
    id: int
    date: datetime.date
    morning_intention: Optional[str] = None
    selected_goal_id: Optional[int] = None
    selected_action_id: Optional[int] = None
    evening_reflection: Optional[str] = None
    accomplishment_level: Optional[int] = None
    mood: Optional[str] = None
    key_learnings: Optional[str] = None
    challenges_faced: Optional[str] = None
    tomorrow_focus: Optional[str] = None
    streak_count: int
    is_completed: bool
    created_at: datetime.datetime
    updated_at: datetime.datetime

    class Config:
        from_attributes = True


class JournalEntriesResponse(BaseModel):
    entries: List[JournalEntryResponse]
