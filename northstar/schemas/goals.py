from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from northstar.models.goals import GoalStatus, GoalTimeline, PeriodUnit


class TargetPeriod(BaseModel):
    unit: PeriodUnit
    ordinal: int = Field(..., ge=1)


class ResourceLink(BaseModel):
    name: str
    url: str
    type: str = "article"


class GoalCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    timeline: GoalTimeline
    timeline_value: Optional[int] = Field(default=None, ge=1)


class GoalUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    timeline: Optional[GoalTimeline] = None
    timeline_value: Optional[int] = Field(default=None, ge=1)
    status: Optional[GoalStatus] = None


class MilestoneCreate(BaseModel):
    goal_id: int
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    order_index: Optional[int] = Field(default=None, ge=0)
    target_period: Optional[TargetPeriod] = None


class MilestoneUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    target_period: Optional[TargetPeriod] = None
    is_completed: Optional[bool] = None


class ActionCreate(BaseModel):
    milestone_id: int
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    resources: List[ResourceLink] = Field(default_factory=list)
    order_index: Optional[int] = Field(default=None, ge=0)


class ActionUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    resources: Optional[List[ResourceLink]] = None
    is_completed: Optional[bool] = None


class ActionResponse(BaseModel):
    id: int
    milestone_id: int
    title: str
    description: Optional[str] = None
    resources: List[ResourceLink] = Field(default_factory=list)
    order_index: int
    is_completed: bool
    completed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MilestoneResponse(BaseModel):
    id: int
    goal_id: int
    title: str
    description: Optional[str] = None
    order_index: int
    target_period: TargetPeriod
    is_completed: bool
    completed_at: Optional[datetime] = None
    actions: List[ActionResponse] = Field(default_factory=list)

    class Config:
        from_attributes = True


class GoalResponse(BaseModel):
    id: int
    title: str
    description: str
    timeline: GoalTimeline
    timeline_value: Optional[int] = None
    status: GoalStatus
    completed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    milestones: List[MilestoneResponse] = Field(default_factory=list)

    class Config:
        from_attributes = True


class GoalsListResponse(BaseModel):
    goals: List[GoalResponse]


class ActionCompletionResponse(BaseModel):
    action: ActionResponse
    milestone_completed: bool = False
    goal_completed: bool = False


class MilestoneCompletionResponse(BaseModel):
    milestone: MilestoneResponse
    goal_completed: bool = False


class IncompleteActionResponse(BaseModel):
    id: int
    milestone_id: int
    title: str
    description: Optional[str] = None
    order_index: int
    milestone_title: str
    target_period: TargetPeriod
    goal_id: int
    goal_title: str
