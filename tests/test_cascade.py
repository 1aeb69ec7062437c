import itertools
from datetime import datetime, timedelta

import pytest

from northstar.core import config
from northstar.core.exceptions import NotFoundError
from northstar.models.goals import Action, GoalStatus, Milestone
from northstar.services.progress_service import ProgressService


def _all_actions(goal):
    return [action for milestone in goal.milestones for action in milestone.actions]


def test_completing_every_action_completes_milestone_once(db, make_goal):
    goal = make_goal(milestones=1, actions_per_milestone=2)
    first, second = _all_actions(goal)
    service = ProgressService(db)

    result = service.set_action_completed("user-1", first.id, True)
    assert result.action.is_completed
    assert result.action.completed_at is not None
    assert not result.milestone_completed

    result = service.set_action_completed("user-1", second.id, True)
    assert result.milestone_completed
    milestone = db.get(Milestone, goal.milestones[0].id)
    assert milestone.is_completed
    assert milestone.completed_at is not None

    # Re-completing an action does not produce a second transition
    result = service.set_action_completed("user-1", second.id, True)
    assert not result.milestone_completed


def test_reopening_action_keeps_milestone_completed(db, make_goal):
    goal = make_goal(milestones=1, actions_per_milestone=2)
    service = ProgressService(db)
    for action in _all_actions(goal):
        service.set_action_completed("user-1", action.id, True)

    reopened = service.set_action_completed("user-1", _all_actions(goal)[0].id, False)

    assert not reopened.action.is_completed
    assert reopened.action.completed_at is None
    assert db.get(Milestone, goal.milestones[0].id).is_completed


def test_milestone_without_actions_is_never_auto_completed(db, make_goal):
    goal = make_goal(milestones=2, actions_per_milestone=0)
    service = ProgressService(db)

    assert service.refresh_goal(goal) is False
    assert all(not m.is_completed for m in goal.milestones)
    assert goal.status == GoalStatus.ACTIVE


def test_empty_milestone_completed_by_user_override(db, make_goal):
    goal = make_goal(milestones=1, actions_per_milestone=0)
    result = ProgressService(db).set_milestone_completed("user-1", goal.milestones[0].id, True)

    assert result.milestone.is_completed
    assert result.goal_completed


def test_milestone_override_leaves_actions_untouched(db, make_goal):
    goal = make_goal(milestones=2, actions_per_milestone=2)
    milestone_id = goal.milestones[0].id
    ProgressService(db).set_milestone_completed("user-1", milestone_id, True)

    actions = db.query(Action).filter(Action.milestone_id == milestone_id).all()
    assert all(not a.is_completed for a in actions)

    result = ProgressService(db).set_milestone_completed("user-1", milestone_id, False)
    assert not result.milestone.is_completed
    assert result.milestone.completed_at is None


def test_goal_completes_once_and_refresh_is_idempotent(db, make_goal, published):
    goal = make_goal(milestones=2, actions_per_milestone=1)
    service = ProgressService(db)
    for milestone in goal.milestones:
        service.set_milestone_completed("user-1", milestone.id, True)

    db.refresh(goal)
    assert goal.status == GoalStatus.COMPLETED
    completed_at = goal.completed_at

    assert service.refresh_goal(goal) is False
    assert goal.completed_at == completed_at

    goal_events = [e for e in published if e[0] == config.GOAL_COMPLETED_TOPIC]
    assert len(goal_events) == 1
    assert goal_events[0][2]["goal_id"] == goal.id


def test_reactive_refresh_completes_goal(db, make_goal, published):
    goal = make_goal(milestones=2, actions_per_milestone=1)
    for milestone in goal.milestones:
        milestone.is_completed = True
    db.commit()

    assert ProgressService(db).refresh_goal(goal) is True
    assert goal.status == GoalStatus.COMPLETED
    assert len(published) == 1


@pytest.mark.parametrize("order", [0, 17, 719])
def test_learn_spanish_scenario_any_order(db, make_goal, published, order):
    goal = make_goal(title="Learn Spanish", milestones=3, actions_per_milestone=2)
    actions = list(itertools.islice(itertools.permutations(_all_actions(goal)), order, order + 1))[0]
    service = ProgressService(db)
    start = datetime(2026, 3, 1, 9, 0)

    milestone_events = 0
    goal_events = 0
    for step, action in enumerate(actions):
        result = service.set_action_completed("user-1", action.id, True, now=start + timedelta(minutes=step))
        milestone_events += int(result.milestone_completed)
        goal_events += int(result.goal_completed)

    assert milestone_events == 3
    assert goal_events == 1

    db.refresh(goal)
    assert goal.status == GoalStatus.COMPLETED
    last_milestone = max(m.completed_at for m in goal.milestones)
    assert goal.completed_at >= last_milestone
    assert len([e for e in published if e[0] == config.GOAL_COMPLETED_TOPIC]) == 1


def test_other_users_action_is_not_found(db, make_goal):
    goal = make_goal(user_id="someone-else", milestones=1, actions_per_milestone=1)
    with pytest.raises(NotFoundError):
        ProgressService(db).set_action_completed("user-1", _all_actions(goal)[0].id, True)


def test_unknown_milestone_is_not_found(db):
    with pytest.raises(NotFoundError):
        ProgressService(db).set_milestone_completed("user-1", 999, True)


def test_cascade_skips_missing_parent(db):
    assert ProgressService(db).evaluate_goal(12345, datetime.utcnow()) is False
