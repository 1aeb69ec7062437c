"""
Celery configuration for the reminder dispatcher.
Beat triggers the dispatch task; the reminder rows themselves live in the database.
"""

from celery import Celery

from northstar.core.config import REDIS_URL, REMINDER_DISPATCH_INTERVAL_SECONDS

celery_app = Celery(
    "northstar_tasks",
    broker=REDIS_URL,
    backend=REDIS_URL,
    include=["northstar.tasks.reminders"]
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,

    # Fire-and-forget periodic work
    task_ignore_result=True,
    task_store_errors_even_if_ignored=False,

    broker_connection_retry_on_startup=True,

    task_soft_time_limit=60,
    task_time_limit=90,
    task_acks_late=True,
    task_reject_on_worker_lost=True,

    beat_schedule={
        "dispatch-due-reminders": {
            "task": "dispatch_due_reminders",
            "schedule": float(REMINDER_DISPATCH_INTERVAL_SECONDS),
        },
    },
)

if __name__ == "__main__":
    celery_app.start()
