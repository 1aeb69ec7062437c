from sqlalchemy.orm import Session
from sqlalchemy import and_, func
from sqlalchemy.exc import IntegrityError
from datetime import datetime
from typing import List, Optional
import logging

from northstar.core.exceptions import ConflictError, NotFoundError, ValidationError
from northstar.models.goals import Action, Goal, GoalStatus, Milestone
from northstar.schemas.goals import (
    ActionCreate,
    ActionUpdate,
    GoalCreate,
    GoalUpdate,
    MilestoneCreate,
    MilestoneUpdate,
)
from northstar.schemas.roadmap import SaveRoadmapRequest
from northstar.services.progress_service import ProgressService

# Configure logging for goals service
goals_logger = logging.getLogger("goals_service")


class GoalsService:
    def __init__(self, db: Session):
        self.db = db
        self.progress = ProgressService(db)

    # Goals

    def create_goal(self, user_id: str, goal_data: GoalCreate) -> Goal:
        """Create a new active goal for the user"""
        db_goal = Goal(
            user_id=user_id,
            title=goal_data.title,
            description=goal_data.description,
            timeline=goal_data.timeline,
            timeline_value=goal_data.timeline_value,
            status=GoalStatus.ACTIVE,
        )
        self.db.add(db_goal)
        self.db.commit()
        self.db.refresh(db_goal)
        goals_logger.info(f"Created goal {db_goal.id} for user {user_id}")
        return db_goal

    def get_user_goals(self, user_id: str) -> List[Goal]:
        """Get all goals for a user, newest first"""
        goals = (
            self.db.query(Goal)
            .filter(Goal.user_id == user_id)
            .order_by(Goal.created_at.desc(), Goal.id.desc())
            .all()
        )
        # Completion is re-checked whenever milestones are observed
        for goal in goals:
            self.progress.refresh_goal(goal)
        return goals

    def get_goal(self, user_id: str, goal_id: int) -> Goal:
        goal = self.db.query(Goal).filter(
            and_(Goal.id == goal_id, Goal.user_id == user_id)
        ).first()
        if not goal:
            raise NotFoundError("Goal", goal_id)
        self.progress.refresh_goal(goal)
        return goal

    def update_goal(self, user_id: str, goal_id: int, goal_data: GoalUpdate, now: Optional[datetime] = None) -> Goal:
        goal = self.get_goal(user_id, goal_id)
        reopening = goal_data.status is not None and goal_data.status != GoalStatus.COMPLETED
        if reopening and goal_data.status != goal.status and self._all_milestones_completed(goal):
            # The next read would complete it again
            raise ValidationError("Reopen a milestone before changing the status of a finished goal")

        if goal_data.title is not None:
            goal.title = goal_data.title
        if goal_data.description is not None:
            goal.description = goal_data.description
        if goal_data.timeline is not None:
            goal.timeline = goal_data.timeline
        if goal_data.timeline_value is not None:
            goal.timeline_value = goal_data.timeline_value
        if goal_data.status is not None and goal_data.status != goal.status:
            goal.status = goal_data.status
            goal.completed_at = (now or datetime.utcnow()) if goal_data.status == GoalStatus.COMPLETED else None

        self.db.commit()
        self.db.refresh(goal)
        return goal

    def _all_milestones_completed(self, goal: Goal) -> bool:
        milestones = self.db.query(Milestone.is_completed).filter(Milestone.goal_id == goal.id).all()
        return bool(milestones) and all(row.is_completed for row in milestones)

    def delete_goal(self, user_id: str, goal_id: int) -> None:
        """Delete a goal together with its milestones and actions"""
        goal = self.get_goal(user_id, goal_id)
        self.db.delete(goal)
        self.db.commit()
        goals_logger.info(f"Deleted goal {goal_id} for user {user_id}")

    # Milestones

    def _owned_milestone(self, user_id: str, milestone_id: int) -> Milestone:
        milestone = (
            self.db.query(Milestone)
            .join(Goal, Milestone.goal_id == Goal.id)
            .filter(Milestone.id == milestone_id, Goal.user_id == user_id)
            .first()
        )
        if not milestone:
            raise NotFoundError("Milestone", milestone_id)
        return milestone

    def _next_milestone_index(self, goal_id: int) -> int:
        current = self.db.query(func.max(Milestone.order_index)).filter(Milestone.goal_id == goal_id).scalar()
        return 0 if current is None else current + 1

    def create_milestone(self, user_id: str, data: MilestoneCreate) -> Milestone:
        goal = self.get_goal(user_id, data.goal_id)
        order_index = data.order_index if data.order_index is not None else self._next_milestone_index(goal.id)
        if data.target_period is not None:
            unit, ordinal = data.target_period.unit, data.target_period.ordinal
        else:
            unit, ordinal = goal.natural_period_unit, order_index + 1

        milestone = Milestone(
            goal_id=goal.id,
            title=data.title,
            description=data.description,
            order_index=order_index,
            target_unit=unit,
            target_ordinal=ordinal,
            is_completed=False,
        )
        self.db.add(milestone)
        self._commit_ordered(f"Milestone order index {order_index} already used in goal {goal.id}")
        self.db.refresh(milestone)
        return milestone

    def update_milestone(self, user_id: str, milestone_id: int, data: MilestoneUpdate) -> Milestone:
        milestone = self._owned_milestone(user_id, milestone_id)
        if data.title is not None:
            milestone.title = data.title
        if data.description is not None:
            milestone.description = data.description
        if data.target_period is not None:
            milestone.target_unit = data.target_period.unit
            milestone.target_ordinal = data.target_period.ordinal
        self.db.commit()
        return milestone

    def delete_milestone(self, user_id: str, milestone_id: int) -> None:
        milestone = self._owned_milestone(user_id, milestone_id)
        self.db.delete(milestone)
        self.db.commit()

    # Actions

    def _owned_action(self, user_id: str, action_id: int) -> Action:
        action = (
            self.db.query(Action)
            .join(Milestone, Action.milestone_id == Milestone.id)
            .join(Goal, Milestone.goal_id == Goal.id)
            .filter(Action.id == action_id, Goal.user_id == user_id)
            .first()
        )
        if not action:
            raise NotFoundError("Action", action_id)
        return action

    def _next_action_index(self, milestone_id: int) -> int:
        current = self.db.query(func.max(Action.order_index)).filter(Action.milestone_id == milestone_id).scalar()
        return 0 if current is None else current + 1

    def create_action(self, user_id: str, data: ActionCreate) -> Action:
        milestone = self._owned_milestone(user_id, data.milestone_id)
        order_index = data.order_index if data.order_index is not None else self._next_action_index(milestone.id)
        action = Action(
            milestone_id=milestone.id,
            title=data.title,
            description=data.description,
            resources=[r.model_dump() for r in data.resources],
            order_index=order_index,
            is_completed=False,
        )
        self.db.add(action)
        self._commit_ordered(f"Action order index {order_index} already used in milestone {milestone.id}")
        self.db.refresh(action)
        return action

    def update_action(self, user_id: str, action_id: int, data: ActionUpdate) -> Action:
        action = self._owned_action(user_id, action_id)
        if data.title is not None:
            action.title = data.title
        if data.description is not None:
            action.description = data.description
        if data.resources is not None:
            action.resources = [r.model_dump() for r in data.resources]
        self.db.commit()
        return action

    def delete_action(self, user_id: str, action_id: int) -> None:
        action = self._owned_action(user_id, action_id)
        self.db.delete(action)
        self.db.commit()

    def get_incomplete_actions(self, user_id: str) -> List[dict]:
        """Open actions across the user's goals with milestone and goal context"""
        rows = (
            self.db.query(Action, Milestone, Goal)
            .join(Milestone, Action.milestone_id == Milestone.id)
            .join(Goal, Milestone.goal_id == Goal.id)
            .filter(and_(Goal.user_id == user_id, Action.is_completed.is_(False)))
            .order_by(Milestone.target_ordinal, Milestone.order_index, Action.order_index)
            .all()
        )
        return [
            {
                "id": action.id,
                "milestone_id": milestone.id,
                "title": action.title,
                "description": action.description,
                "order_index": action.order_index,
                "milestone_title": milestone.title,
                "target_period": milestone.target_period,
                "goal_id": goal.id,
                "goal_title": goal.title,
            }
            for action, milestone, goal in rows
        ]

    # Roadmaps

    def save_roadmap(self, user_id: str, goal_id: int, data: SaveRoadmapRequest) -> Goal:
        """Persist generated milestones and actions under an existing goal"""
        goal = self.get_goal(user_id, goal_id)
        if data.timeline is not None:
            goal.timeline = data.timeline
        if data.timeline_value is not None:
            goal.timeline_value = data.timeline_value

        first_index = self._next_milestone_index(goal.id)
        unit = goal.natural_period_unit
        for offset, generated in enumerate(data.milestones):
            period = generated.target_period
            milestone = Milestone(
                goal_id=goal.id,
                title=generated.title,
                description=generated.description or "",
                order_index=first_index + offset,
                target_unit=period.unit if period else unit,
                target_ordinal=period.ordinal if period else offset + 1,
                is_completed=False,
            )
            milestone.actions = [
                Action(
                    title=generated_action.title,
                    description=generated_action.description or "",
                    resources=[r.model_dump() for r in generated_action.resources],
                    order_index=j,
                    is_completed=False,
                )
                for j, generated_action in enumerate(generated.actions)
            ]
            self.db.add(milestone)

        self._commit_ordered(f"Roadmap conflicts with existing milestones of goal {goal.id}")
        self.db.refresh(goal)
        goals_logger.info(f"Saved {len(data.milestones)} roadmap milestones for goal {goal.id}")
        return goal

    def _commit_ordered(self, conflict_message: str) -> None:
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError(conflict_message)
