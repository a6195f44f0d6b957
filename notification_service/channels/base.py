import asyncio
import logging
import random
import uuid
from abc import ABC, abstractmethod

from order_events.exceptions import ChannelUnavailable
from order_events.schemas import NotificationTarget
from notification_service.schemas.notifications import NotificationType, SendResult

logger = logging.getLogger(__name__)


class NotificationChannel(ABC):
    """A simulated delivery channel.

    ``send`` renders the channel's content, waits a random latency drawn from
    ``latency_ms`` and fails with ``ChannelUnavailable`` with probability
    ``failure_rate``. Nothing is actually delivered.
    """

    name: str = "channel"

    def __init__(self, failure_rate: float = 0.0, latency_ms: tuple[int, int] = (0, 0)) -> None:
        self.failure_rate = failure_rate
        self.latency_ms = latency_ms
        self.available = True

    @abstractmethod
    def recipient_for(self, target: NotificationTarget) -> str:
        ...

    @abstractmethod
    def render(self, target: NotificationTarget, notification_type: NotificationType) -> tuple[str, str]:
        """Return ``(subject, body)`` for the notification."""

    async def send(self, target: NotificationTarget, notification_type: NotificationType) -> SendResult:
        recipient = self.recipient_for(target)
        subject, body = self.render(target, notification_type)

        await self._transport(recipient, subject)

        result = SendResult(
            message_id=f"{self.name}-{uuid.uuid4().hex[:12]}",
            channel=self.name,
            recipient=recipient,
            subject=subject,
            body=body,
        )
        logger.info(
            f"{notification_type.value} {self.name} sent to {recipient} for order {target.order_id}",
            extra={"message_id": result.message_id, "channel": self.name}
        )
        return result

    async def _transport(self, recipient: str, subject: str) -> None:
        if not self.available:
            raise ChannelUnavailable(self.name, f"{self.name} service is not available")

        low, high = self.latency_ms
        if high > 0:
            await asyncio.sleep(random.uniform(low, high) / 1000)

        if random.random() < self.failure_rate:
            raise ChannelUnavailable(self.name, f"Mock {self.name} service temporarily unavailable")

        logger.debug(f"Mock {self.name} delivered to {recipient}: {subject}")

    async def is_healthy(self) -> bool:
        return self.available
