from datetime import date, timedelta

import pytest

from northstar.core import config
from northstar.core.exceptions import NotFoundError, ValidationError
from northstar.models.checkins import DailyCheckIn
from northstar.models.goals import Action
from northstar.models.journal import JournalEntry
from northstar.services.checkin_service import CheckInService
from northstar.services.journal_service import JournalService

TODAY = date(2026, 6, 10)


def _complete_day(service, day, accomplished=True, user_id="user-1"):
    check_in = service.create_check_in(user_id, day, "Ship one thing").check_in
    return service.resolve_evening(user_id, check_in.id, accomplished, "went fine")


def test_morning_requires_intention(db):
    service = CheckInService(db)
    for blank in (None, "", "   \n"):
        with pytest.raises(ValidationError):
            service.create_check_in("user-1", TODAY, blank)
    assert db.query(DailyCheckIn).count() == 0


def test_second_morning_is_coalesced(db):
    service = CheckInService(db)
    first = service.create_check_in("user-1", TODAY, "Write chapter one")
    second = service.create_check_in("user-1", TODAY, "Something else entirely")

    assert first.created and not second.created
    assert second.check_in.id == first.check_in.id
    assert second.check_in.morning_intention == "Write chapter one"
    assert db.query(DailyCheckIn).filter(DailyCheckIn.user_id == "user-1").count() == 1


def test_morning_ignores_unknown_action(db):
    result = CheckInService(db).create_check_in("user-1", TODAY, "Run", selected_action_id=4242)
    assert result.check_in.selected_action_id is None


def test_morning_keeps_owned_action(db, make_goal):
    goal = make_goal(milestones=1, actions_per_milestone=1)
    action_id = goal.milestones[0].actions[0].id
    result = CheckInService(db).create_check_in("user-1", TODAY, "Run", selected_action_id=action_id)
    assert result.check_in.selected_action_id == action_id


def test_evening_requires_accomplishment(db):
    service = CheckInService(db)
    check_in = service.create_check_in("user-1", TODAY, "Read").check_in
    with pytest.raises(ValidationError):
        service.resolve_evening("user-1", check_in.id, None, "forgot")

    db.refresh(check_in)
    assert check_in.evening_accomplished is None
    assert check_in.evening_reflection is None


def test_evening_on_unknown_or_foreign_check_in(db):
    service = CheckInService(db)
    with pytest.raises(NotFoundError):
        service.resolve_evening("user-1", 999, True)

    check_in = service.create_check_in("user-2", TODAY, "Read").check_in
    with pytest.raises(NotFoundError):
        service.resolve_evening("user-1", check_in.id, True)


def test_accomplished_increments_over_previous_day(db):
    service = CheckInService(db)
    _complete_day(service, TODAY - timedelta(days=2))
    _complete_day(service, TODAY - timedelta(days=1))

    check_in = service.create_check_in("user-1", TODAY, "Keep going").check_in
    assert check_in.current_streak == 2

    result = service.resolve_evening("user-1", check_in.id, True)
    assert result.check_in.is_completed
    assert result.check_in.current_streak == 3
    assert result.show_celebration


def test_partial_progress_keeps_previous_day_streak(db):
    service = CheckInService(db)
    _complete_day(service, TODAY - timedelta(days=1))

    result = _complete_day(service, TODAY, accomplished=False)
    assert not result.check_in.is_completed
    assert result.check_in.current_streak == 1
    assert not result.show_celebration


def test_evening_edit_does_not_rederive_streak(db):
    service = CheckInService(db)
    _complete_day(service, TODAY - timedelta(days=1))
    first = _complete_day(service, TODAY)
    assert first.check_in.current_streak == 2

    edited = service.resolve_evening("user-1", first.check_in.id, True, "actually, even better")
    assert edited.check_in.current_streak == 2
    assert edited.check_in.evening_reflection == "actually, even better"
    assert not edited.show_celebration


def test_first_day_streak_is_one(db):
    result = _complete_day(CheckInService(db), TODAY)
    assert result.check_in.current_streak == 1
    assert CheckInService(db).get_streak("user-1", TODAY) == 1


def test_resolution_upserts_journal_entry(db):
    service = CheckInService(db)
    result = _complete_day(service, TODAY)
    entries = JournalService(db).get_recent_entries("user-1", 7, as_of=TODAY)

    assert result.journal_synced
    assert len(entries) == 1
    assert entries[0].accomplishment_level == 5
    assert entries[0].streak_count == 1
    assert entries[0].is_completed

    service.resolve_evening("user-1", result.check_in.id, False, "not quite")
    entries = JournalService(db).get_recent_entries("user-1", 7, as_of=TODAY)
    assert len(entries) == 1
    assert entries[0].accomplishment_level == 3
    assert entries[0].evening_reflection == "not quite"


def test_journal_links_goal_of_selected_action(db, make_goal):
    goal = make_goal(milestones=1, actions_per_milestone=1)
    action_id = goal.milestones[0].actions[0].id
    service = CheckInService(db)
    check_in = service.create_check_in("user-1", TODAY, "Practice", selected_action_id=action_id).check_in

    # The action disappears before the evening
    db.delete(db.get(Action, action_id))
    db.commit()

    service.resolve_evening("user-1", check_in.id, True)
    entry = db.query(JournalEntry).one()
    assert entry.selected_action_id is None
    assert entry.selected_goal_id is None


def test_journal_failure_does_not_fail_check_in(db, monkeypatch):
    def broken_upsert(self, check_in):
        raise RuntimeError("journal table unavailable")

    monkeypatch.setattr(JournalService, "upsert_from_check_in", broken_upsert)
    service = CheckInService(db)
    result = _complete_day(service, TODAY)

    assert not result.journal_synced
    stored = db.get(DailyCheckIn, result.check_in.id)
    assert stored.is_completed
    assert stored.current_streak == 1


def test_resolution_publishes_event(db, published):
    _complete_day(CheckInService(db), TODAY)
    topics = [topic for topic, _, _ in published]
    assert topics == [config.CHECKIN_RESOLVED_TOPIC]
    assert published[0][2]["streak"] == 1


def test_recent_check_ins_window(db):
    service = CheckInService(db)
    for offset in (0, 3, 10):
        service.create_check_in("user-1", TODAY - timedelta(days=offset), "x")

    recent = service.get_recent_check_ins("user-1", 7, TODAY)
    assert [c.date for c in recent] == [TODAY, TODAY - timedelta(days=3)]
