import asyncio
import logging
from collections.abc import Mapping, Sequence
from typing import Any, TypeVar

from pydantic import ValidationError

from order_events.exceptions import ChannelUnavailable, InvalidNotificationError
from order_events.schemas import (
    NotificationTarget,
    OrderCancelledData,
    OrderCreatedData,
    OrderStatusUpdatedData,
)
from notification_service.channels.base import NotificationChannel
from notification_service.schemas.notifications import (
    ChannelOutcome,
    DeliveryStatus,
    HealthState,
    NotificationHealth,
    NotificationRecord,
    NotificationType,
)
from notification_service.stores.history import InMemoryNotificationHistoryStore, NotificationHistoryStore

logger = logging.getLogger(__name__)

TargetT = TypeVar("TargetT", bound=NotificationTarget)


class NotificationService:
    """Fans one logical notification out to every configured channel.

    Every channel is attempted; a failing channel becomes a ``failed`` outcome
    in the returned record and never cancels its siblings.
    """

    def __init__(
        self,
        channels: Sequence[NotificationChannel],
        history: NotificationHistoryStore | None = None
    ) -> None:
        self.channels = list(channels)
        self.history = history if history is not None else InMemoryNotificationHistoryStore()

    async def send_order_confirmation(self, order: OrderCreatedData | Mapping[str, Any]) -> NotificationRecord:
        target = self._coerce(order, OrderCreatedData)
        return await self._notify(target, NotificationType.CONFIRMATION)

    async def send_status_update(self, update: OrderStatusUpdatedData | Mapping[str, Any]) -> NotificationRecord:
        target = self._coerce(update, OrderStatusUpdatedData)
        return await self._notify(target, NotificationType.STATUS_UPDATE)

    async def send_cancellation(self, cancellation: OrderCancelledData | Mapping[str, Any]) -> NotificationRecord:
        target = self._coerce(cancellation, OrderCancelledData)
        return await self._notify(target, NotificationType.CANCELLATION)

    def get_history(self, order_id: str) -> list[NotificationRecord]:
        return self.history.get(order_id)

    async def check_health(self) -> NotificationHealth:
        outcomes = await asyncio.gather(*(self._check_channel(channel) for channel in self.channels))
        services = {
            channel.name: HealthState.HEALTHY if healthy else HealthState.UNHEALTHY
            for channel, healthy in zip(self.channels, outcomes)
        }

        healthy_count = sum(1 for healthy in outcomes if healthy)
        if self.channels and healthy_count == len(self.channels):
            status = HealthState.HEALTHY
        elif healthy_count > 0:
            status = HealthState.DEGRADED
        else:
            status = HealthState.UNHEALTHY

        return NotificationHealth(status=status, services=services)

    async def _notify(self, target: NotificationTarget, notification_type: NotificationType) -> NotificationRecord:
        logger.info(f"Sending {notification_type.value} notifications for order {target.order_id}")

        outcomes = await asyncio.gather(
            *(self._dispatch(channel, target, notification_type) for channel in self.channels)
        )
        record = NotificationRecord(
            order_id=target.order_id,
            type=notification_type,
            notifications=list(outcomes),
        )
        self.history.append(record)

        logger.info(
            f"{notification_type.value} notifications for order {target.order_id}: "
            f"{record.successful} sent, {record.failed} failed"
        )
        return record

    async def _dispatch(
        self,
        channel: NotificationChannel,
        target: NotificationTarget,
        notification_type: NotificationType
    ) -> ChannelOutcome:
        try:
            result = await channel.send(target, notification_type)
        except ChannelUnavailable as e:
            logger.warning(f"{channel.name} notification failed for order {target.order_id}: {e}")
            return ChannelOutcome(channel=channel.name, status=DeliveryStatus.FAILED, detail=str(e))
        except Exception as e:
            logger.error(
                f"{channel.name} notification raised for order {target.order_id}: {type(e).__name__}: {e}",
                exc_info=True
            )
            return ChannelOutcome(
                channel=channel.name,
                status=DeliveryStatus.FAILED,
                detail=f"{type(e).__name__}: {e}"
            )

        return ChannelOutcome(
            channel=channel.name,
            status=DeliveryStatus.SUCCESS,
            detail=result.message_id,
            result=result
        )

    @staticmethod
    async def _check_channel(channel: NotificationChannel) -> bool:
        try:
            return await channel.is_healthy()
        except Exception as e:
            logger.error(f"{channel.name} health check failed: {e}")
            return False

    @staticmethod
    def _coerce(payload: Any, model: type[TargetT]) -> TargetT:
        if isinstance(payload, model):
            return payload
        if not isinstance(payload, Mapping):
            raise InvalidNotificationError(
                f"Expected {model.__name__} or a mapping, got {type(payload).__name__}"
            )
        try:
            return model.model_validate(payload)
        except ValidationError as e:
            raise InvalidNotificationError(f"Malformed {model.__name__}: {e.error_count()} error(s)") from e
