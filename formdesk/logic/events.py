"""Domain event constants and publisher.

Defines event type constants and a simple publish() callable used by the
form lifecycle and response submission flows.
"""

from __future__ import annotations

from collections import deque
from typing import Any, Deque, Dict, List
import logging
import threading

logger = logging.getLogger(__name__)

FORM_CREATED = "form.created"
FORM_UPDATED = "form.updated"
FORM_PUBLISHED = "form.published"
FORM_DELETED = "form.deleted"
FORM_VISIBILITY_CHANGED = "form.visibility_changed"
RESPONSE_SUBMITTED = "response.submitted"

# Most recent domain events only; older entries fall off the front
EVENT_BUFFER_LIMIT = 256
EVENT_BUFFER: Deque[Dict[str, Any]] = deque(maxlen=EVENT_BUFFER_LIMIT)
_BUFFER_LOCK = threading.Lock()


def publish(event_type: str, payload: Dict[str, Any]) -> None:
    """Publish a domain event by logging it and appending it to the buffer."""
    logger.info("event_publish type=%s payload=%s", event_type, payload)
    with _BUFFER_LOCK:
        EVENT_BUFFER.append({"type": event_type, "payload": payload})


def get_buffered_events(clear: bool = True) -> List[Dict[str, Any]]:
    """Return buffered domain events; optionally clear the buffer."""
    with _BUFFER_LOCK:
        events = list(EVENT_BUFFER)
        if clear:
            EVENT_BUFFER.clear()
    return events


__all__ = [
    "FORM_CREATED",
    "FORM_UPDATED",
    "FORM_PUBLISHED",
    "FORM_DELETED",
    "FORM_VISIBILITY_CHANGED",
    "RESPONSE_SUBMITTED",
    "publish",
    "get_buffered_events",
    "EVENT_BUFFER",
    "EVENT_BUFFER_LIMIT",
]
