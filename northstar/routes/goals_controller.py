from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List
import logging

from northstar.core.exceptions import NorthstarError
from northstar.core.security import get_current_user_id
from northstar.database import get_db
from northstar.schemas.goals import (
    ActionCompletionResponse,
    ActionCreate,
    ActionResponse,
    ActionUpdate,
    GoalCreate,
    GoalResponse,
    GoalsListResponse,
    GoalUpdate,
    IncompleteActionResponse,
    MilestoneCompletionResponse,
    MilestoneCreate,
    MilestoneResponse,
    MilestoneUpdate,
)
from northstar.schemas.roadmap import SaveRoadmapRequest
from northstar.services.goals_service import GoalsService
from northstar.services.progress_service import ProgressService

router = APIRouter()
logger = logging.getLogger("goals_controller")


@router.post("/goals", response_model=GoalResponse)
def create_goal(
    goal_data: GoalCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """Create a new goal for the current user"""
    try:
        return GoalsService(db).create_goal(user_id, goal_data)
    except (HTTPException, NorthstarError):
        raise
    except Exception as e:
        logger.exception(f"❌ Unexpected error creating goal: {e}")
        raise HTTPException(status_code=500, detail="Failed to create goal")


@router.get("/goals", response_model=GoalsListResponse)
def get_goals(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """Get all goals (with milestones and actions) for the current user"""
    try:
        return GoalsListResponse(goals=GoalsService(db).get_user_goals(user_id))
    except (HTTPException, NorthstarError):
        raise
    except Exception as e:
        logger.exception(f"❌ Error fetching goals: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch goals")


@router.get("/goals/{goal_id}", response_model=GoalResponse)
def get_goal(
    goal_id: int,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """Get a specific goal; completion is re-checked on every fetch"""
    try:
        return GoalsService(db).get_goal(user_id, goal_id)
    except (HTTPException, NorthstarError):
        raise
    except Exception as e:
        logger.exception(f"❌ Error fetching goal {goal_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch goal")


@router.put("/goals/{goal_id}", response_model=GoalResponse)
def update_goal(
    goal_id: int,
    goal_data: GoalUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    try:
        return GoalsService(db).update_goal(user_id, goal_id, goal_data)
    except (HTTPException, NorthstarError):
        raise
    except Exception as e:
        logger.exception(f"❌ Error updating goal {goal_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to update goal")


@router.delete("/goals/{goal_id}")
def delete_goal(
    goal_id: int,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """Delete a goal together with its milestones and actions"""
    try:
        GoalsService(db).delete_goal(user_id, goal_id)
        return {"message": "Goal deleted successfully"}
    except (HTTPException, NorthstarError):
        raise
    except Exception as e:
        logger.exception(f"❌ Error deleting goal {goal_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete goal")


@router.post("/goals/{goal_id}/roadmap", response_model=GoalResponse)
def save_roadmap(
    goal_id: int,
    roadmap: SaveRoadmapRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """Persist a generated roadmap as milestones and actions"""
    try:
        return GoalsService(db).save_roadmap(user_id, goal_id, roadmap)
    except (HTTPException, NorthstarError):
        raise
    except Exception as e:
        logger.exception(f"❌ Error saving roadmap for goal {goal_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to save roadmap")


@router.post("/milestones", response_model=MilestoneResponse)
def create_milestone(
    data: MilestoneCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    try:
        return GoalsService(db).create_milestone(user_id, data)
    except (HTTPException, NorthstarError):
        raise
    except Exception as e:
        logger.exception(f"❌ Error creating milestone for goal {data.goal_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to create milestone")


@router.put("/milestones/{milestone_id}", response_model=MilestoneCompletionResponse)
def update_milestone(
    milestone_id: int,
    data: MilestoneUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """Edit a milestone; is_completed is applied as a direct user override"""
    try:
        milestone = GoalsService(db).update_milestone(user_id, milestone_id, data)
        goal_completed = False
        if data.is_completed is not None:
            result = ProgressService(db).set_milestone_completed(user_id, milestone_id, data.is_completed)
            milestone, goal_completed = result.milestone, result.goal_completed
        return MilestoneCompletionResponse(
            milestone=MilestoneResponse.model_validate(milestone),
            goal_completed=goal_completed,
        )
    except (HTTPException, NorthstarError):
        raise
    except Exception as e:
        logger.exception(f"❌ Error updating milestone {milestone_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to update milestone")


@router.delete("/milestones/{milestone_id}")
def delete_milestone(
    milestone_id: int,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    try:
        GoalsService(db).delete_milestone(user_id, milestone_id)
        return {"message": "Milestone deleted successfully"}
    except (HTTPException, NorthstarError):
        raise
    except Exception as e:
        logger.exception(f"❌ Error deleting milestone {milestone_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete milestone")


@router.post("/actions", response_model=ActionResponse)
def create_action(
    data: ActionCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    try:
        return GoalsService(db).create_action(user_id, data)
    except (HTTPException, NorthstarError):
        raise
    except Exception as e:
        logger.exception(f"❌ Error creating action for milestone {data.milestone_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to create action")


@router.put("/actions/{action_id}", response_model=ActionCompletionResponse)
def update_action(
    action_id: int,
    data: ActionUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """Edit an action; is_completed cascades into its milestone and goal"""
    try:
        action = GoalsService(db).update_action(user_id, action_id, data)
        response = ActionCompletionResponse(action=ActionResponse.model_validate(action))
        if data.is_completed is not None:
            result = ProgressService(db).set_action_completed(user_id, action_id, data.is_completed)
            response = ActionCompletionResponse(
                action=ActionResponse.model_validate(result.action),
                milestone_completed=result.milestone_completed,
                goal_completed=result.goal_completed,
            )
        return response
    except (HTTPException, NorthstarError):
        raise
    except Exception as e:
        logger.exception(f"❌ Error updating action {action_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to update action")


@router.delete("/actions/{action_id}")
def delete_action(
    action_id: int,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    try:
        GoalsService(db).delete_action(user_id, action_id)
        return {"message": "Action deleted successfully"}
    except (HTTPException, NorthstarError):
        raise
    except Exception as e:
        logger.exception(f"❌ Error deleting action {action_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete action")


@router.get("/user/incomplete-actions", response_model=List[IncompleteActionResponse])
def get_incomplete_actions(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """Open actions to choose from when setting the morning intention"""
    try:
        return GoalsService(db).get_incomplete_actions(user_id)
    except (HTTPException, NorthstarError):
        raise
    except Exception as e:
        logger.exception(f"❌ Error fetching incomplete actions: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch incomplete actions")
