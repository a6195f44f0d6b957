import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping
from typing import Any

from order_events.exceptions import HandlerError
from order_events.schemas import (
    EventType,
    HealthCheckEvent,
    OrderCancelledEvent,
    OrderCreatedEvent,
    OrderEvent,
    OrderStatusUpdatedEvent,
)
from order_events.utils import generate_event_id, generate_fingerprint, get_order_id, is_retryable
from order_events.validator import EventValidator
from notification_service.schemas.notifications import NotificationRecord
from notification_service.services.notification import NotificationService
from notification_service.stores.dedup import InMemoryProcessedEventStore, ProcessedEventStore

logger = logging.getLogger(__name__)

Route = Callable[[OrderEvent], Awaitable[None]]


class OrderEventHandler:
    """Validates, deduplicates and routes order events to notifications.

    Raising from ``handle`` means "not done, redeliver". Malformed, duplicate
    and unhandled events return normally so they are acknowledged.
    """

    def __init__(
        self,
        notification_service: NotificationService,
        processed_events: ProcessedEventStore | None = None,
        handled_types: Iterable[EventType | str] = (EventType.ORDER_CREATED,),
        redeliver_on_total_failure: bool = False,
        stale_after_minutes: int = 60
    ) -> None:
        self.notification_service = notification_service
        self.processed_events = processed_events if processed_events is not None else InMemoryProcessedEventStore()
        self.handled_types = frozenset(EventType(t) for t in handled_types)
        self.redeliver_on_total_failure = redeliver_on_total_failure
        self.stale_after_minutes = stale_after_minutes

        self._routes: dict[EventType, Route] = {
            EventType.ORDER_CREATED: self._handle_order_created,
            EventType.ORDER_STATUS_UPDATED: self._handle_order_status_updated,
            EventType.ORDER_CANCELLED: self._handle_order_cancelled,
            EventType.HEALTH_CHECK: self._handle_health_check,
        }
        unrouted = set(EventType) - set(self._routes)
        if unrouted:
            raise TypeError(f"No route for event types: {sorted(t.value for t in unrouted)}")

        self.stats = {"processed": 0, "duplicates": 0, "ignored": 0, "invalid": 0, "failed": 0, "stale_failures": 0}

    async def handle(self, event: Mapping[str, Any]) -> None:
        if not self.is_valid_event(event):
            self.stats["invalid"] += 1
            logger.warning(f"Received invalid event structure, dropping: {event!r:.200}")
            return

        event_id = generate_event_id(event)
        if self.processed_events.has(event_id):
            self.stats["duplicates"] += 1
            logger.info(f"Duplicate event ignored: {event_id}")
            return

        event_type = self._resolve_type(event["type"])
        if event_type is None or event_type not in self.handled_types:
            self.stats["ignored"] += 1
            logger.info(f"Ignoring event type {event['type']} for order {get_order_id(event)}")
            return

        result = EventValidator.validate(event)
        if not result.is_valid:
            self.stats["invalid"] += 1
            logger.warning(
                f"Dropping {event_type.value} event {event_id}: {result.error}",
                extra={"details": result.details}
            )
            return

        fingerprint = generate_fingerprint(event)
        logger.info(
            f"Processing {event_type.value} for order {get_order_id(event)}",
            extra={"fingerprint": fingerprint}
        )
        try:
            await self._routes[event_type](result.event)
        except Exception as e:
            self.stats["failed"] += 1
            if not is_retryable(event, self.stale_after_minutes):
                self.stats["stale_failures"] += 1
                logger.warning(
                    f"Event {event_id} is older than {self.stale_after_minutes} minutes and is still failing",
                    extra={"fingerprint": fingerprint}
                )
            if isinstance(e, HandlerError):
                raise
            logger.error(f"Failed to process {event_type.value} event {event_id}: {e}", exc_info=True)
            raise HandlerError(f"Failed to process {event_type.value} event {event_id}: {e}") from e

        self.processed_events.add(event_id)
        self.stats["processed"] += 1
        logger.info(f"Successfully processed event: {event_id}")

    @staticmethod
    def is_valid_event(event: Any) -> bool:
        return (
            isinstance(event, Mapping)
            and bool(event.get("type"))
            and bool(event.get("timestamp"))
            and isinstance(event.get("data"), Mapping)
        )

    def get_stats(self) -> dict[str, int]:
        return {**self.stats, "processed_events_cached": len(self.processed_events)}

    async def _handle_order_created(self, event: OrderCreatedEvent) -> None:
        record = await self.notification_service.send_order_confirmation(event.data)
        self._check_outcome(record)

    async def _handle_order_status_updated(self, event: OrderStatusUpdatedEvent) -> None:
        record = await self.notification_service.send_status_update(event.data)
        self._check_outcome(record)

    async def _handle_order_cancelled(self, event: OrderCancelledEvent) -> None:
        record = await self.notification_service.send_cancellation(event.data)
        self._check_outcome(record)

    async def _handle_health_check(self, event: HealthCheckEvent) -> None:
        health = await self.notification_service.check_health()
        logger.info(
            f"Health check from {event.data.service} ({event.data.status.value}); "
            f"notification channels are {health.status.value}"
        )

    def _check_outcome(self, record: NotificationRecord) -> None:
        if self.redeliver_on_total_failure and record.all_failed:
            raise HandlerError(f"Every notification channel failed for order {record.order_id}")

    @staticmethod
    def _resolve_type(value: Any) -> EventType | None:
        try:
            return EventType(value)
        except ValueError:
            return None

