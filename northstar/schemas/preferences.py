from pydantic import BaseModel, Field, field_validator
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

HHMM_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class PreferencesUpdate(BaseModel):
    morning_nudge_time: Optional[str] = Field(default=None, pattern=HHMM_PATTERN)
    evening_nudge_time: Optional[str] = Field(default=None, pattern=HHMM_PATTERN)
    timezone: Optional[str] = None
    nudges_enabled: Optional[bool] = None

    @field_validator("timezone")
    @classmethod
    def known_timezone(cls, value):
        if value is None:
            return value
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {value}")
        return value


class PreferencesResponse(BaseModel):
    morning_nudge_time: str
    evening_nudge_time: str
    timezone: str
    nudges_enabled: bool

    class Config:
        from_attributes = True
