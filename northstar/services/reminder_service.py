"""Durable morning/evening nudges.

Reminders are rows in ``scheduled_reminders`` rather than in-process
timers, and every row is one (user, kind, local date). The dispatcher
claims due rows under a row lock (skipping rows another worker holds)
and commits their new status before publishing, so a nudge is published
at most once. Rows for a local date that already ended, for example
after downtime, are skipped instead of sent.
"""
from sqlalchemy.orm import Session
from sqlalchemy import and_
from sqlalchemy.exc import IntegrityError
from datetime import date, datetime, time, timedelta, timezone
from typing import List, Optional
import logging

from northstar.events import kafka_producer
from northstar.models.checkins import DailyCheckIn, UserPreferences
from northstar.models.reminders import ReminderKind, ReminderStatus, ScheduledReminder
from northstar.services.preferences_service import local_today, resolve_zone

reminder_logger = logging.getLogger("reminder_service")

MESSAGES = {
    ReminderKind.MORNING: "Time to set your daily intention and start your day strong!",
    ReminderKind.EVENING: "How did your day go? Take a moment to reflect on your progress.",
}


def _nudge_time(prefs: UserPreferences, kind: ReminderKind) -> time:
    raw = prefs.morning_nudge_time if kind == ReminderKind.MORNING else prefs.evening_nudge_time
    hours, minutes = (int(part) for part in raw.split(":"))
    return time(hours, minutes)


def occurrence_on(prefs: UserPreferences, kind: ReminderKind, local_date: date) -> datetime:
    """Naive-UTC instant of the user's nudge on ``local_date``"""
    zone = resolve_zone(prefs.timezone)
    local = datetime.combine(local_date, _nudge_time(prefs, kind), tzinfo=zone)
    return local.astimezone(timezone.utc).replace(tzinfo=None)


def next_occurrence(prefs: UserPreferences, kind: ReminderKind, now: datetime) -> tuple:
    """(local_date, due_at) of the next nudge strictly after ``now``; passed times roll to tomorrow"""
    zone = resolve_zone(prefs.timezone)
    local_date = now.replace(tzinfo=timezone.utc).astimezone(zone).date()
    due_at = occurrence_on(prefs, kind, local_date)
    if due_at <= now:
        local_date += timedelta(days=1)
        due_at = occurrence_on(prefs, kind, local_date)
    return local_date, due_at


class ReminderService:
    def __init__(self, db: Session):
        self.db = db

    def pending_for_user(self, user_id: str) -> List[ScheduledReminder]:
        return (
            self.db.query(ScheduledReminder)
            .filter(
                and_(
                    ScheduledReminder.user_id == user_id,
                    ScheduledReminder.status == ReminderStatus.PENDING,
                )
            )
            .order_by(ScheduledReminder.due_at)
            .all()
        )

    def schedule_user_reminders(self, prefs: UserPreferences, now: Optional[datetime] = None) -> List[ScheduledReminder]:
        """Replace the user's pending reminders with the next morning and evening nudge"""
        now = now or datetime.utcnow()
        for reminder in self.pending_for_user(prefs.user_id):
            reminder.status = ReminderStatus.CANCELLED
            reminder.processed_at = now
        self.db.flush()

        scheduled = []
        if prefs.nudges_enabled:
            for kind in (ReminderKind.MORNING, ReminderKind.EVENING):
                local_date, due_at = next_occurrence(prefs, kind, now)
                scheduled.append(self._upsert_pending(prefs.user_id, kind, local_date, due_at))
        self.db.commit()
        reminder_logger.info(f"⏰ Scheduled {len(scheduled)} reminders for user {prefs.user_id}")
        return scheduled

    def _upsert_pending(self, user_id: str, kind: ReminderKind, local_date: date, due_at: datetime) -> ScheduledReminder:
        reminder = self.db.query(ScheduledReminder).filter(
            and_(
                ScheduledReminder.user_id == user_id,
                ScheduledReminder.kind == kind,
                ScheduledReminder.local_date == local_date,
            )
        ).first()
        if reminder is None:
            reminder = ScheduledReminder(user_id=user_id, kind=kind, local_date=local_date)
            self.db.add(reminder)
        elif reminder.status in (ReminderStatus.SENT, ReminderStatus.SKIPPED):
            # Already handled for that day
            return reminder
        reminder.due_at = due_at
        reminder.status = ReminderStatus.PENDING
        reminder.processed_at = None
        self.db.flush()
        return reminder

    def _should_skip(self, reminder: ScheduledReminder) -> bool:
        check_in = self.db.query(DailyCheckIn).filter(
            and_(DailyCheckIn.user_id == reminder.user_id, DailyCheckIn.date == reminder.local_date)
        ).first()
        if check_in is None:
            return False
        if reminder.kind == ReminderKind.MORNING:
            return bool(check_in.morning_intention)
        return check_in.evening_resolved

    def dispatch_due_reminders(self, now: Optional[datetime] = None, batch_size: int = 500) -> dict:
        """Send or skip every pending reminder that is due, then queue each kind's next nudge"""
        now = now or datetime.utcnow()
        due = (
            self.db.query(ScheduledReminder)
            .filter(
                and_(
                    ScheduledReminder.status == ReminderStatus.PENDING,
                    ScheduledReminder.due_at <= now,
                )
            )
            .order_by(ScheduledReminder.due_at)
            .limit(batch_size)
            .with_for_update(skip_locked=True)
            .all()
        )

        summary = {"sent": 0, "skipped": 0}
        outgoing = []
        try:
            for reminder in due:
                prefs = self.db.query(UserPreferences).filter(UserPreferences.user_id == reminder.user_id).first()
                if reminder.local_date < local_today(prefs, now) or self._should_skip(reminder):
                    # Stale days from downtime are dropped, not replayed
                    reminder.status = ReminderStatus.SKIPPED
                    summary["skipped"] += 1
                else:
                    reminder.status = ReminderStatus.SENT
                    summary["sent"] += 1
                    outgoing.append((reminder.user_id, reminder.kind, reminder.local_date))
                reminder.processed_at = now
                self._queue_next(prefs, reminder.kind, now)
            self.db.commit()
        except IntegrityError:
            # Another dispatcher processed the same batch
            self.db.rollback()
            reminder_logger.warning("Reminder batch collided with a concurrent dispatcher, will retry next tick")
            return {"sent": 0, "skipped": 0}

        # Rows are committed first so a nudge goes out at most once
        for user_id, kind, local_date in outgoing:
            kafka_producer.send_reminder_due_event(user_id, kind.value, local_date, MESSAGES[kind])

        if due:
            reminder_logger.info(f"📬 Dispatched reminders: {summary}")
        return summary

    def _queue_next(self, prefs: Optional[UserPreferences], kind: ReminderKind, now: datetime) -> None:
        if prefs is None or not prefs.nudges_enabled:
            return
        local_date, due_at = next_occurrence(prefs, kind, now)
        queued = self._upsert_pending(prefs.user_id, kind, local_date, due_at)
        if queued.status != ReminderStatus.PENDING:
            next_date = local_date + timedelta(days=1)
            self._upsert_pending(prefs.user_id, kind, next_date, occurrence_on(prefs, kind, next_date))
