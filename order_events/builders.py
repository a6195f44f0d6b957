"""Constructors for well-formed envelopes.

Each builder validates its payload against the schema registered for the
event type, so a producer cannot emit an envelope that fails its own
contract. Invalid payloads raise ``pydantic.ValidationError``.
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel

from order_events.schemas import (
    DEFAULT_EVENT_VERSION,
    EVENT_SCHEMAS,
    EventEnvelope,
    EventType,
    HealthCheckEvent,
    OrderCancelledEvent,
    OrderCreatedEvent,
    OrderStatusUpdatedEvent,
)

DEFAULT_SOURCE = "order-service"


def build_event(
    event_type: EventType | str,
    data: BaseModel | dict[str, Any],
    source: str = DEFAULT_SOURCE,
    metadata: dict[str, Any] | None = None,
) -> EventEnvelope:
    event_type = EventType(event_type)
    schema = EVENT_SCHEMAS[event_type]
    if isinstance(data, BaseModel):
        data = data.model_dump(by_alias=True)
    return schema(
        id=uuid.uuid4(),
        type=event_type.value,
        timestamp=datetime.now(timezone.utc),
        version=DEFAULT_EVENT_VERSION,
        source=source,
        data=data,
        metadata=metadata,
    )


def build_order_created_event(data: BaseModel | dict[str, Any], source: str = DEFAULT_SOURCE) -> OrderCreatedEvent:
    return build_event(EventType.ORDER_CREATED, data, source)


def build_order_status_updated_event(
    data: BaseModel | dict[str, Any], source: str = DEFAULT_SOURCE
) -> OrderStatusUpdatedEvent:
    return build_event(EventType.ORDER_STATUS_UPDATED, data, source)


def build_order_cancelled_event(data: BaseModel | dict[str, Any], source: str = DEFAULT_SOURCE) -> OrderCancelledEvent:
    return build_event(EventType.ORDER_CANCELLED, data, source)


def build_health_check_event(data: BaseModel | dict[str, Any], source: str) -> HealthCheckEvent:
    return build_event(EventType.HEALTH_CHECK, data, source)
