"""Best-effort publication of northstar domain events.

A publishing failure is logged and swallowed: events are signals for
downstream consumers (celebrations, reminder delivery) and must never
block or undo a goal or check-in transition.
"""
from confluent_kafka import Producer, KafkaException
import json
import logging
from datetime import date, datetime

from northstar.core import config
from northstar.events.kafka_config import get_kafka_config

logger = logging.getLogger("kafka.producer")

_producer = None


def get_producer() -> Producer:
    global _producer
    if _producer is None:
        logger.info(f"Initializing Kafka producer with broker: {config.KAFKA_BROKER}")
        _producer = Producer(get_kafka_config())
    return _producer


def delivery_callback(err, msg):
    """Callback to log Kafka delivery success/failure"""
    if err:
        logger.error(f"❌ Kafka delivery failed: {err}")
    else:
        logger.debug(f"✅ Kafka message delivered to {msg.topic()} [partition {msg.partition()}]")


def _json_default(value):
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def publish_event(topic: str, key: str, payload: dict) -> bool:
    """Returns True when the event was handed to Kafka."""
    if not config.EVENTS_ENABLED:
        logger.debug(f"Events disabled, dropping event for topic '{topic}'")
        return False
    try:
        producer = get_producer()
        producer.produce(
            topic=topic,
            key=key,
            value=json.dumps(payload, default=_json_default),
            callback=delivery_callback,
        )
        producer.poll(0)
        logger.info(f"✅ Queued event for key {key} to topic '{topic}'")
        return True
    except (KafkaException, BufferError, TypeError, ValueError) as e:
        logger.error(f"❌ Failed to publish event to '{topic}': {e}")
        return False


def send_goal_completed_event(user_id: str, goal_id: int, title: str, completed_at: datetime) -> bool:
    return publish_event(
        config.GOAL_COMPLETED_TOPIC,
        user_id,
        {"user_id": user_id, "goal_id": goal_id, "title": title, "completed_at": completed_at},
    )


def send_check_in_resolved_event(user_id: str, check_in_id: int, day: date, accomplished: bool, streak: int) -> bool:
    return publish_event(
        config.CHECKIN_RESOLVED_TOPIC,
        user_id,
        {
            "user_id": user_id,
            "check_in_id": check_in_id,
            "date": day,
            "accomplished": accomplished,
            "streak": streak,
        },
    )


def send_reminder_due_event(user_id: str, kind: str, local_date: date, message: str) -> bool:
    return publish_event(
        config.REMINDER_DUE_TOPIC,
        user_id,
        {"user_id": user_id, "kind": kind, "local_date": local_date, "message": message},
    )


def flush(timeout: float = 5.0) -> None:
    if _producer is not None:
        remaining = _producer.flush(timeout=timeout)
        if remaining:
            logger.warning(f"⚠️ {remaining} Kafka messages still undelivered after flush")
