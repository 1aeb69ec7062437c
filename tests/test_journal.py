from datetime import date, timedelta

import pytest

from northstar.core.exceptions import NotFoundError
from northstar.schemas.journal import JournalEntryUpdate
from northstar.services.checkin_service import CheckInService
from northstar.services.journal_service import JournalService, accomplishment_level

TODAY = date(2026, 7, 1)


def _resolve(db, day, accomplished=True, action_id=None, user_id="user-1"):
    service = CheckInService(db)
    check_in = service.create_check_in(user_id, day, "Practice", selected_action_id=action_id).check_in
    return service.resolve_evening(user_id, check_in.id, accomplished, f"reflection for {day}").check_in


def test_accomplishment_levels():
    assert accomplishment_level(True) == 5
    assert accomplishment_level(False) == 3
    assert accomplishment_level(None) is None


def test_morning_only_day_has_no_entry(db):
    CheckInService(db).create_check_in("user-1", TODAY, "Practice")
    assert JournalService(db).get_recent_entries("user-1", 30, as_of=TODAY) == []


def test_recent_entries_newest_first_within_window(db):
    for offset in (45, 1, 0):
        _resolve(db, TODAY - timedelta(days=offset))

    entries = JournalService(db).get_recent_entries("user-1", 30, as_of=TODAY)
    assert [e.date for e in entries] == [TODAY, TODAY - timedelta(days=1)]
    assert entries[0].streak_count == 2


def test_entries_for_goal(db, make_goal):
    spanish = make_goal(title="Learn Spanish", milestones=1, actions_per_milestone=1)
    marathon = make_goal(title="Run a marathon", milestones=1, actions_per_milestone=1)
    _resolve(db, TODAY - timedelta(days=2), action_id=spanish.milestones[0].actions[0].id)
    _resolve(db, TODAY - timedelta(days=1), action_id=marathon.milestones[0].actions[0].id)
    _resolve(db, TODAY, action_id=spanish.milestones[0].actions[0].id)

    entries = JournalService(db).get_entries_for_goal("user-1", spanish.id)
    assert [e.date for e in entries] == [TODAY, TODAY - timedelta(days=2)]
    assert all(e.selected_goal_id == spanish.id for e in entries)


def test_update_entry_keeps_fields_on_resync(db):
    check_in = _resolve(db, TODAY)
    service = JournalService(db)
    entry = service.get_recent_entries("user-1", 7, as_of=TODAY)[0]

    service.update_entry("user-1", entry.id, JournalEntryUpdate(mood="energized", key_learnings="Rest matters"))
    CheckInService(db).resolve_evening("user-1", check_in.id, False, "second thoughts")

    entry = service.get_recent_entries("user-1", 7, as_of=TODAY)[0]
    assert entry.mood == "energized"
    assert entry.key_learnings == "Rest matters"
    assert entry.accomplishment_level == 3


def test_update_foreign_entry_is_not_found(db):
    _resolve(db, TODAY, user_id="user-2")
    entry = JournalService(db).get_recent_entries("user-2", 7, as_of=TODAY)[0]

    with pytest.raises(NotFoundError):
        JournalService(db).update_entry("user-1", entry.id, JournalEntryUpdate(mood="curious"))
