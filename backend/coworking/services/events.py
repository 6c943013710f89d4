"""
backend/coworking/services/events.py

Event emitter: pushes rental application lifecycle events to a Redis
queue for the external notifier.

Queue:
- events:p2p: instant delivery (manager / client notifications)

Event types:
- rental_application_created
- rental_application_updated
- rental_application_confirmed
- rental_application_extended
- rental_application_cancelled
- rental_application_deleted
"""

import json
import time
import logging

from ..redis_client import redis_client

logger = logging.getLogger(__name__)

P2P_QUEUE = "events:p2p"

APPLICATION_CREATED = "rental_application_created"
APPLICATION_UPDATED = "rental_application_updated"
APPLICATION_CONFIRMED = "rental_application_confirmed"
APPLICATION_EXTENDED = "rental_application_extended"
APPLICATION_CANCELLED = "rental_application_cancelled"
APPLICATION_DELETED = "rental_application_deleted"


def emit_event(event_type: str, payload: dict) -> None:
    """
    Emit a p2p event (instant delivery).

    Pushed to Redis list `events:p2p` for the consumer loop.
    Dropped when Redis is not configured.
    """
    event = {
        "type": event_type,
        **payload,
        "ts": int(time.time()),
    }
    if redis_client is None:
        logger.debug(f"Event dropped (no redis): {event_type}")
        return
    try:
        redis_client.rpush(P2P_QUEUE, json.dumps(event))
        logger.info(f"Event emitted: {event_type} → {P2P_QUEUE}")
    except Exception as e:
        logger.error(f"Failed to emit event {event_type}: {e}")


def application_payload(application) -> dict:
    """Snapshot of an application for notification templates."""
    client = application.client
    return {
        "rental_application_id": application.id,
        "application_number": application.application_number,
        "rental_type": application.rental_type,
        "status": application.status,
        "client_id": application.client_id,
        "client_name": client.full_name if client else None,
        "client_phone": client.phone if client else None,
        "room_id": application.room_id,
        "start_date": application.start_date,
        "end_date": application.end_date,
        "start_time": application.start_time,
        "end_time": application.end_time,
        "total_price": application.total_price,
        "manager_id": application.manager_id,
    }


def emit_application_event(event_type: str, application, **extra) -> None:
    emit_event(event_type, {**application_payload(application), **extra})
