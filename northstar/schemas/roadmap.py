from pydantic import BaseModel, Field
from typing import List, Optional

from northstar.models.goals import GoalTimeline
from northstar.schemas.goals import ResourceLink, TargetPeriod


class QuestionAnswer(BaseModel):
    question: str
    answer: str = ""


class QuestionsRequest(BaseModel):
    goal_title: str = Field(..., min_length=1)
    timeline: GoalTimeline


class QuestionsResponse(BaseModel):
    questions: List[str]
    source: str  # "ai" or "fallback"


class RoadmapRequest(BaseModel):
    goal_title: str = Field(..., min_length=1)
    timeline: GoalTimeline
    timeline_value: Optional[int] = Field(default=None, ge=1)
    questions_and_answers: List[QuestionAnswer] = Field(default_factory=list)


class GeneratedAction(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    resources: List[ResourceLink] = Field(default_factory=list)


class GeneratedMilestone(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    target_period: Optional[TargetPeriod] = None
    actions: List[GeneratedAction] = Field(default_factory=list)


class RoadmapResponse(BaseModel):
    milestones: List[GeneratedMilestone]
    source: str


class SaveRoadmapRequest(BaseModel):
    milestones: List[GeneratedMilestone] = Field(..., min_length=1)
    timeline: Optional[GoalTimeline] = None
    timeline_value: Optional[int] = Field(default=None, ge=1)
