import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel

from order_events.builders import build_event, build_health_check_event
from order_events.exceptions import PublishError
from order_events.schemas import EventEnvelope, EventType, ServiceStatus, to_wire
from order_service.core.broker import KafkaBroker
from order_service.core.config import settings
from order_service.schemas.order import StoredOrder

logger = logging.getLogger(__name__)

HEALTH_CHECK_KEY = "health-check"


@dataclass(frozen=True)
class PublishReceipt:
    event_id: str
    event_type: str
    topic: str
    key: str
    partition: int
    offset: int


class EventPublisher:
    def __init__(
        self,
        broker: KafkaBroker,
        topic: str = settings.order_events_topic,
        source: str = settings.service_name
    ) -> None:
        self.broker = broker
        self.topic = topic
        self.source = source

    async def publish(
        self,
        event_type: EventType | str,
        payload: BaseModel | dict[str, Any],
        key: str | None = None
    ) -> PublishReceipt:
        event = build_event(event_type, payload, source=self.source)
        return await self.send_event(event, key)

    async def send_event(self, event: EventEnvelope, key: str | None = None) -> PublishReceipt:
        partition_key = key or getattr(event.data, "order_id", None) or self.source

        message = json.dumps(to_wire(event)).encode("utf-8")
        headers = [
            ("event-type", event.type.encode()),
            ("event-version", event.version.encode()),
            ("source-service", event.source.encode()),
        ]

        try:
            metadata = await self.broker.send(self.topic, message, partition_key, headers)
        except Exception as e:
            logger.error(
                f"Failed to publish {event.type} for key {partition_key}: {type(e).__name__}: {e}",
                exc_info=True
            )
            raise PublishError(
                f"Event publishing failed: {e}",
                event_type=event.type,
                key=partition_key
            ) from e

        receipt = PublishReceipt(
            event_id=str(event.id),
            event_type=event.type,
            topic=self.topic,
            key=partition_key,
            partition=metadata.partition,
            offset=metadata.offset,
        )
        logger.info(
            f"Published {receipt.event_type} for key {receipt.key} "
            f"(partition {receipt.partition}, offset {receipt.offset})"
        )
        return receipt

    async def publish_order_created(self, order: StoredOrder) -> PublishReceipt:
        return await self.publish(EventType.ORDER_CREATED, order.to_event_data(), key=order.order_id)

    async def publish_health_check(self, status: ServiceStatus, checks: dict[str, Any]) -> PublishReceipt:
        event = build_health_check_event(
            {
                "service": self.source,
                "status": status,
                "checks": checks,
                "timestamp": datetime.now(timezone.utc),
            },
            source=self.source,
        )
        return await self.send_event(event, key=HEALTH_CHECK_KEY)

    def is_healthy(self) -> bool:
        return self.broker.is_connected
