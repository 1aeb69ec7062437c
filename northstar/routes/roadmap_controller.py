from fastapi import APIRouter, Depends

from northstar.core.security import get_current_user_id
from northstar.schemas.roadmap import QuestionsRequest, QuestionsResponse, RoadmapRequest, RoadmapResponse
from northstar.services.roadmap_service import RoadmapGenerator

router = APIRouter()


def get_roadmap_generator() -> RoadmapGenerator:
    return RoadmapGenerator()


@router.post("/roadmap/questions", response_model=QuestionsResponse)
def generate_questions(
    data: QuestionsRequest,
    generator: RoadmapGenerator = Depends(get_roadmap_generator),
    user_id: str = Depends(get_current_user_id)
):
    """Five clarifying questions; answered from the fallback table when the LLM is unavailable"""
    return generator.generate_questions(data.goal_title, data.timeline)


@router.post("/roadmap/milestones", response_model=RoadmapResponse)
def generate_milestones(
    data: RoadmapRequest,
    generator: RoadmapGenerator = Depends(get_roadmap_generator),
    user_id: str = Depends(get_current_user_id)
):
    return generator.generate_milestones(
        data.goal_title,
        data.timeline,
        data.questions_and_answers,
        timeline_value=data.timeline_value,
    )
