"""Event envelope and per-type payload contracts for the order-events topic.

Wire keys are camelCase; Python attributes are snake_case. Every model is
frozen, so a validated event can be handed around without being mutated.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
DEFAULT_EVENT_VERSION = "1.0"


class EventType(str, Enum):
    ORDER_CREATED = "ORDER_CREATED"
    ORDER_STATUS_UPDATED = "ORDER_STATUS_UPDATED"
    ORDER_CANCELLED = "ORDER_CANCELLED"
    HEALTH_CHECK = "HEALTH_CHECK"


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class ServiceStatus(str, Enum):
    UP = "UP"
    DOWN = "DOWN"
    DEGRADED = "DEGRADED"


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )


class EventItem(CamelModel):
    id: int | str
    title: str = Field(min_length=1)
    quantity: int = Field(ge=1)
    price: float = Field(gt=0)


class NotificationTarget(CamelModel):
    order_id: str = Field(min_length=1)
    user_id: str = Field(min_length=1)
    customer_email: str = Field(pattern=EMAIL_PATTERN)
    customer_name: str = Field(min_length=1)
    customer_phone: str | None = None


class OrderCreatedData(NotificationTarget):
    items: list[EventItem] = Field(min_length=1)
    total_amount: float = Field(gt=0)
    status: OrderStatus = OrderStatus.PENDING
    created_at: datetime


class OrderStatusUpdatedData(NotificationTarget):
    old_status: OrderStatus
    new_status: OrderStatus
    reason: str | None = None
    updated_by: str | None = None
    tracking_number: str | None = None
    estimated_delivery: datetime | None = None


class OrderCancelledData(NotificationTarget):
    reason: str = Field(min_length=1)
    cancelled_by: str = Field(min_length=1)
    refund_amount: float | None = Field(default=None, gt=0)
    refund_method: str | None = None


class HealthCheckData(CamelModel):
    service: str = Field(min_length=1)
    status: ServiceStatus
    checks: dict[str, Any] | None = None
    timestamp: datetime


class EventEnvelope(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    id: UUID
    type: str = Field(min_length=1)
    timestamp: datetime
    version: str = DEFAULT_EVENT_VERSION
    source: str = Field(min_length=1)
    data: dict[str, Any]
    metadata: dict[str, Any] | None = None


class OrderCreatedEvent(EventEnvelope):
    type: Literal["ORDER_CREATED"]
    data: OrderCreatedData


class OrderStatusUpdatedEvent(EventEnvelope):
    type: Literal["ORDER_STATUS_UPDATED"]
    data: OrderStatusUpdatedData


class OrderCancelledEvent(EventEnvelope):
    type: Literal["ORDER_CANCELLED"]
    data: OrderCancelledData


class HealthCheckEvent(EventEnvelope):
    type: Literal["HEALTH_CHECK"]
    data: HealthCheckData


OrderEvent = OrderCreatedEvent | OrderStatusUpdatedEvent | OrderCancelledEvent | HealthCheckEvent

EVENT_SCHEMAS: dict[EventType, type[EventEnvelope]] = {
    EventType.ORDER_CREATED: OrderCreatedEvent,
    EventType.ORDER_STATUS_UPDATED: OrderStatusUpdatedEvent,
    EventType.ORDER_CANCELLED: OrderCancelledEvent,
    EventType.HEALTH_CHECK: HealthCheckEvent,
}


def to_wire(event: EventEnvelope) -> dict[str, Any]:
    return event.model_dump(mode="json", by_alias=True, exclude_none=True)
