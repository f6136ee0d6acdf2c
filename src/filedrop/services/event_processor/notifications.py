"""
Decoding of storage notifications into arrivals.

Three delivery formats are accepted:

- Eventarc CloudEvents (``google.cloud.storage.object.v1.finalized``)
- raw Cloud Storage notifications (``"kind": "storage#object"``)
- Pub/Sub push envelopes whose ``message.data`` is a base64 Cloud Storage
  notification

A request body may hold a single notification, a JSON array of them, or an
object with an ``events`` array. Notifications for anything other than an
object creation are ignored: the processor's own deletes produce them.
"""

import base64
import binascii
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, NamedTuple, Optional

from pydantic import ValidationError

from filedrop.services.event_processor.models import ArrivalEvent, CloudEvent

logger = logging.getLogger(__name__)

FINALIZED_EVENT_TYPE = "google.cloud.storage.object.v1.finalized"
PUBSUB_FINALIZE_EVENT_TYPE = "OBJECT_FINALIZE"


class DecodedBatch(NamedTuple):
    """Arrivals decoded from a request body, plus what was left out."""

    arrivals: List[ArrivalEvent]
    ignored: int
    rejected: List[str]


def _arrival_from_gcs_notification(data: Dict[str, Any], event_id: Optional[str] = None) -> ArrivalEvent:
    """
    Convert a raw Cloud Storage notification to an arrival.

    Raises:
        ValueError: If required fields are missing
    """
    bucket = data.get("bucket")
    name = data.get("name")
    if not bucket or not name:
        raise ValueError("Missing required fields in GCS notification: bucket and name")

    return ArrivalEvent(
        origin_location=bucket,
        object_key=name,
        notification_timestamp=data.get("timeCreated") or datetime.now(timezone.utc),
        event_id=event_id or data.get("id") or data.get("generation"),
    )


def _decode_pubsub_message(envelope: Dict[str, Any]) -> Optional[ArrivalEvent]:
    message = envelope["message"]
    attributes = message.get("attributes") or {}

    event_type = attributes.get("eventType", PUBSUB_FINALIZE_EVENT_TYPE)
    if event_type != PUBSUB_FINALIZE_EVENT_TYPE:
        logger.debug("Ignoring Pub/Sub notification", extra={"event_type": event_type})
        return None

    try:
        data = json.loads(base64.b64decode(message.get("data", ""), validate=True))
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"Pub/Sub message data is not a base64 JSON notification: {e}") from e

    if not isinstance(data, dict):
        raise ValueError("Pub/Sub message data must decode to a JSON object")

    return _arrival_from_gcs_notification(data, event_id=message.get("messageId"))


def decode_notification(item: Any) -> Optional[ArrivalEvent]:
    """
    Decode a single notification.

    Returns:
        The arrival, or None for notifications that are not object creations

    Raises:
        ValueError: If the notification is malformed or of an unknown format
    """
    if not isinstance(item, dict):
        raise ValueError("Notification must be a JSON object")

    if isinstance(item.get("message"), dict):
        return _decode_pubsub_message(item)

    if item.get("kind") == "storage#object":
        return _arrival_from_gcs_notification(item)

    if "specversion" in item:
        try:
            cloud_event = CloudEvent(**item)
        except ValidationError as e:
            raise ValueError(f"Invalid CloudEvent: {e}") from e
        if cloud_event.type != FINALIZED_EVENT_TYPE:
            logger.debug("Ignoring CloudEvent", extra={"event_type": cloud_event.type, "event_id": cloud_event.id})
            return None
        return ArrivalEvent.from_cloud_event(cloud_event)

    raise ValueError("Unrecognised notification format")


def decode_batch(payload: Any) -> DecodedBatch:
    """
    Decode a request body into arrivals.

    Malformed notifications are logged and reported in ``rejected``; they do
    not prevent the rest of the batch from being decoded.
    """
    if isinstance(payload, list):
        items = payload
    elif isinstance(payload, dict) and isinstance(payload.get("events"), list):
        items = payload["events"]
    else:
        items = [payload]

    arrivals: List[ArrivalEvent] = []
    ignored = 0
    rejected: List[str] = []

    for index, item in enumerate(items):
        try:
            arrival = decode_notification(item)
        except ValueError as e:
            logger.warning(
                "Rejected malformed notification",
                extra={"index": index, "error": str(e)},
            )
            rejected.append(str(e))
            continue

        if arrival is None:
            ignored += 1
        else:
            arrivals.append(arrival)

    return DecodedBatch(arrivals=arrivals, ignored=ignored, rejected=rejected)
