import hashlib
import json
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any


def _data(event: Mapping[str, Any]) -> Mapping[str, Any]:
    data = event.get("data")
    return data if isinstance(data, Mapping) else {}


def get_order_id(event: Mapping[str, Any]) -> str | None:
    return _data(event).get("orderId")


def get_user_id(event: Mapping[str, Any]) -> str | None:
    return _data(event).get("userId")


def generate_event_id(event: Mapping[str, Any]) -> str:
    """Dedup identity of a delivered envelope: ``type-orderId-timestamp``."""
    order_id = get_order_id(event) or "unknown"
    return f"{event.get('type')}-{order_id}-{event.get('timestamp')}"


def generate_fingerprint(event: Mapping[str, Any]) -> str:
    fingerprint_data = {
        "id": str(event.get("id")),
        "type": event.get("type"),
        "orderId": get_order_id(event),
        "userId": get_user_id(event),
    }
    return hashlib.sha256(json.dumps(fingerprint_data, sort_keys=True).encode()).hexdigest()


def is_retryable(event: Mapping[str, Any], max_age_minutes: int = 60) -> bool:
    timestamp = event.get("timestamp")
    if isinstance(timestamp, str):
        try:
            timestamp = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
        except ValueError:
            return False
    if not isinstance(timestamp, datetime):
        return False
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)

    age_minutes = (datetime.now(timezone.utc) - timestamp).total_seconds() / 60
    return age_minutes <= max_age_minutes
