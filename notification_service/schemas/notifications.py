from datetime import datetime, timezone
from enum import Enum
from typing import List
from pydantic import BaseModel, ConfigDict, Field


class NotificationType(str, Enum):
    CONFIRMATION = "CONFIRMATION"
    STATUS_UPDATE = "STATUS_UPDATE"
    CANCELLATION = "CANCELLATION"


class DeliveryStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"


class HealthState(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class SendResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    message_id: str
    channel: str
    recipient: str
    subject: str
    body: str


class ChannelOutcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    channel: str
    status: DeliveryStatus
    detail: str | None = None
    result: SendResult | None = None


class NotificationRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    order_id: str
    type: NotificationType
    notifications: List[ChannelOutcome]
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def successful(self) -> int:
        return sum(1 for n in self.notifications if n.status == DeliveryStatus.SUCCESS)

    @property
    def failed(self) -> int:
        return sum(1 for n in self.notifications if n.status == DeliveryStatus.FAILED)

    @property
    def all_failed(self) -> bool:
        return bool(self.notifications) and self.successful == 0


class NotificationHealth(BaseModel):
    status: HealthState
    services: dict[str, HealthState]
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
