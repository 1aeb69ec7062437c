from dataclasses import dataclass
from datetime import datetime
from typing import Optional
import logging

from sqlalchemy.orm import Session

from northstar.core.exceptions import NotFoundError
from northstar.events import kafka_producer
from northstar.models.goals import Action, Goal, GoalStatus, Milestone

# Configure logging for the completion cascade
progress_logger = logging.getLogger("progress_service")


@dataclass
class ActionCompletionResult:
    action: Action
    milestone_completed: bool = False
    goal_completed: bool = False


@dataclass
class MilestoneCompletionResult:
    milestone: Milestone
    goal_completed: bool = False


class ProgressService:
    """
    Keeps milestone and goal completion consistent with their children.

    Completion only ratchets forward: re-opening an action never re-opens
    its milestone, and re-opening a milestone never re-opens its goal.
    Every parent write is guarded by an "already completed?" check so a
    duplicate evaluation from a concurrent sibling update is harmless.
    """

    def __init__(self, db: Session):
        self.db = db

    def _get_owned_action(self, user_id: str, action_id: int) -> Action:
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

    def _get_owned_milestone(self, user_id: str, milestone_id: int) -> Milestone:
        milestone = (
            self.db.query(Milestone)
            .join(Goal, Milestone.goal_id == Goal.id)
            .filter(Milestone.id == milestone_id, Goal.user_id == user_id)
            .first()
        )
        if not milestone:
            raise NotFoundError("Milestone", milestone_id)
        return milestone

    def set_action_completed(
        self, user_id: str, action_id: int, completed: bool, now: Optional[datetime] = None
    ) -> ActionCompletionResult:
        """Set an action's completion flag and cascade forward into its milestone and goal."""
        now = now or datetime.utcnow()
        action = self._get_owned_action(user_id, action_id)

        action.is_completed = completed
        action.completed_at = now if completed else None
        self.db.flush()

        result = ActionCompletionResult(action=action)
        if completed:
            result.milestone_completed = self._evaluate_milestone(action.milestone_id, now)
            if result.milestone_completed:
                result.goal_completed = self._evaluate_goal_by_milestone(action.milestone_id, now)

        self.db.commit()
        self._announce(result.goal_completed, action.milestone_id)
        return result

    def set_milestone_completed(
        self, user_id: str, milestone_id: int, completed: bool, now: Optional[datetime] = None
    ) -> MilestoneCompletionResult:
        """Direct user override; the milestone's actions are left untouched."""
        now = now or datetime.utcnow()
        milestone = self._get_owned_milestone(user_id, milestone_id)

        milestone.is_completed = completed
        milestone.completed_at = now if completed else None
        self.db.flush()

        result = MilestoneCompletionResult(milestone=milestone)
        if completed:
            result.goal_completed = self.evaluate_goal(milestone.goal_id, now)

        self.db.commit()
        self._announce(result.goal_completed, milestone.id)
        return result

    def refresh_goal(self, goal: Goal, now: Optional[datetime] = None) -> bool:
        """Reactive check run whenever a goal's milestones are fetched."""
        try:
            transitioned = self._complete_goal_if_done(goal, now or datetime.utcnow())
            if transitioned:
                self.db.commit()
                self._publish_goal_completed(goal)
            return transitioned
        except Exception as e:
            self.db.rollback()
            progress_logger.error(f"Error refreshing completion for goal {goal.id}: {e}")
            # Don't raise - this is a best-effort consistency pass
            return False

    def _evaluate_milestone(self, milestone_id: int, now: datetime) -> bool:
        milestone = self.db.get(Milestone, milestone_id)
        if milestone is None:
            # Parent vanished concurrently; nothing to cascade into
            progress_logger.warning(f"Milestone {milestone_id} missing during cascade, skipping")
            return False
        if milestone.is_completed:
            return False

        actions = self.db.query(Action).filter(Action.milestone_id == milestone_id).all()
        if not actions or not all(a.is_completed for a in actions):
            return False

        milestone.is_completed = True
        milestone.completed_at = now
        self.db.flush()
        progress_logger.info(f"🏁 Milestone {milestone_id} auto-completed")
        return True

    def _evaluate_goal_by_milestone(self, milestone_id: int, now: datetime) -> bool:
        milestone = self.db.get(Milestone, milestone_id)
        if milestone is None:
            return False
        return self.evaluate_goal(milestone.goal_id, now)

    def evaluate_goal(self, goal_id: int, now: datetime) -> bool:
        goal = self.db.get(Goal, goal_id)
        if goal is None:
            progress_logger.warning(f"Goal {goal_id} missing during cascade, skipping")
            return False
        return self._complete_goal_if_done(goal, now)

    def _complete_goal_if_done(self, goal: Goal, now: datetime) -> bool:
        if goal.status == GoalStatus.COMPLETED:
            return False
        milestones = self.db.query(Milestone).filter(Milestone.goal_id == goal.id).all()
        if not milestones or not all(m.is_completed for m in milestones):
            return False

        goal.status = GoalStatus.COMPLETED
        goal.completed_at = now
        self.db.flush()
        progress_logger.info(f"🎉 Goal {goal.id} completed for user {goal.user_id}")
        return True

    def _announce(self, goal_completed: bool, milestone_id: int) -> None:
        if not goal_completed:
            return
        milestone = self.db.get(Milestone, milestone_id)
        if milestone is not None and milestone.goal is not None:
            self._publish_goal_completed(milestone.goal)

    def _publish_goal_completed(self, goal: Goal) -> None:
        kafka_producer.send_goal_completed_event(goal.user_id, goal.id, goal.title, goal.completed_at)
