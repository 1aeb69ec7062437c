"""
Celery tasks for durable reminder delivery.
"""

import logging
from northstar.core.celery_app import celery_app
from northstar.database import SessionLocal
from northstar.events import kafka_producer
from northstar.services.reminder_service import ReminderService

logger = logging.getLogger(__name__)


@celery_app.task(name="dispatch_due_reminders", bind=True, max_retries=3)
def dispatch_due_reminders(self):
    """
    Periodic task: send every reminder whose due time has passed.

    Due rows are claimed with SELECT ... FOR UPDATE SKIP LOCKED and
    committed before any event is published, so concurrent workers do not
    double-send. Days missed during downtime are skipped, not replayed.
    """
    db = SessionLocal()
    try:
        summary = ReminderService(db).dispatch_due_reminders()
        kafka_producer.flush()
        return summary
    except Exception as e:
        db.rollback()
        logger.exception(f"❌ Error dispatching reminders: {e}")
        raise self.retry(exc=e, countdown=2 ** self.request.retries)
    finally:
        db.close()
