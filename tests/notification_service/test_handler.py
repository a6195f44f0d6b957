from datetime import datetime, timedelta, timezone

import pytest

from order_events.exceptions import HandlerError
from order_events.schemas import EventType
from order_events.utils import generate_event_id
from notification_service.schemas.notifications import NotificationType
from notification_service.services.handler import OrderEventHandler
from notification_service.stores.dedup import InMemoryProcessedEventStore

from factories import order_cancelled_event, order_created_event, status_updated_event


class FlakyNotificationService:
    def __init__(self, failures: int = 0) -> None:
        self.failures = failures
        self.calls = []

    async def send_order_confirmation(self, order):
        self.calls.append(order.order_id)
        if self.failures:
            self.failures -= 1
            raise RuntimeError("SMTP relay timed out")


@pytest.mark.asyncio
async def test_order_created_sends_confirmation(notification_service):
    handler = OrderEventHandler(notification_service)
    event = order_created_event()

    await handler.handle(event)

    history = notification_service.get_history("order-1")
    assert [r.type for r in history] == [NotificationType.CONFIRMATION]
    assert handler.processed_events.has(generate_event_id(event))
    assert handler.get_stats()["processed"] == 1


@pytest.mark.asyncio
async def test_duplicate_delivery_sends_once(notification_service):
    handler = OrderEventHandler(notification_service)
    event = order_created_event()

    await handler.handle(event)
    await handler.handle(dict(event))

    assert len(notification_service.get_history("order-1")) == 1
    assert handler.get_stats()["duplicates"] == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("event", [
    None,
    [],
    {"type": "ORDER_CREATED"},
    {"type": "ORDER_CREATED", "timestamp": "2026-10-19T10:00:00Z", "data": "nope"},
])
async def test_structurally_invalid_events_are_dropped(notification_service, event):
    handler = OrderEventHandler(notification_service)

    await handler.handle(event)

    assert handler.get_stats()["invalid"] == 1
    assert handler.get_stats()["processed_events_cached"] == 0


@pytest.mark.asyncio
async def test_schema_invalid_event_is_dropped(notification_service):
    handler = OrderEventHandler(notification_service)
    event = order_created_event()
    event["data"]["items"] = [{"id": 1, "title": "Widget", "quantity": 0, "price": 9.99}]

    await handler.handle(event)

    assert notification_service.get_history("order-1") == []
    assert handler.get_stats()["invalid"] == 1
    assert not handler.processed_events.has(generate_event_id(event))


@pytest.mark.asyncio
async def test_unknown_and_unhandled_types_are_ignored(notification_service):
    handler = OrderEventHandler(notification_service)
    unknown = {**order_created_event(), "type": "ORDER_TELEPORTED"}

    await handler.handle(unknown)
    await handler.handle(status_updated_event())
    await handler.handle(order_cancelled_event())

    assert notification_service.get_history("order-1") == []
    assert handler.get_stats()["ignored"] == 3


@pytest.mark.asyncio
async def test_configured_types_are_routed(notification_service):
    handler = OrderEventHandler(notification_service, handled_types=list(EventType))

    await handler.handle(order_created_event())
    await handler.handle(status_updated_event())
    await handler.handle(order_cancelled_event())

    history = notification_service.get_history("order-1")
    assert [r.type for r in history] == [
        NotificationType.CONFIRMATION,
        NotificationType.STATUS_UPDATE,
        NotificationType.CANCELLATION,
    ]


@pytest.mark.asyncio
async def test_failure_raises_and_allows_retry():
    service = FlakyNotificationService(failures=1)
    handler = OrderEventHandler(service)
    event = order_created_event()

    with pytest.raises(HandlerError):
        await handler.handle(event)

    assert not handler.processed_events.has(generate_event_id(event))

    await handler.handle(event)

    assert service.calls == ["order-1", "order-1"]
    assert handler.processed_events.has(generate_event_id(event))
    assert handler.get_stats()["failed"] == 1
    assert handler.get_stats()["stale_failures"] == 0


@pytest.mark.asyncio
async def test_total_channel_failure_is_acknowledged_by_default(notification_service, email_channel, sms_channel):
    email_channel.available = False
    sms_channel.available = False
    handler = OrderEventHandler(notification_service)

    await handler.handle(order_created_event())

    assert notification_service.get_history("order-1")[0].all_failed
    assert handler.get_stats()["processed"] == 1


@pytest.mark.asyncio
async def test_total_channel_failure_can_request_redelivery(notification_service, email_channel, sms_channel):
    email_channel.available = False
    sms_channel.available = False
    handler = OrderEventHandler(notification_service, redeliver_on_total_failure=True)
    event = order_created_event()

    with pytest.raises(HandlerError):
        await handler.handle(event)

    assert not handler.processed_events.has(generate_event_id(event))


@pytest.mark.asyncio
async def test_partial_failure_is_not_redelivered(notification_service, sms_channel):
    sms_channel.available = False
    handler = OrderEventHandler(notification_service, redeliver_on_total_failure=True)

    await handler.handle(order_created_event())

    assert handler.get_stats()["processed"] == 1


@pytest.mark.asyncio
async def test_dedup_window_is_bounded(notification_service):
    handler = OrderEventHandler(notification_service, processed_events=InMemoryProcessedEventStore(max_size=4))

    for i in range(10):
        await handler.handle(order_created_event(f"order-{i}"))

    assert handler.get_stats()["processed_events_cached"] <= 4


def test_every_event_type_has_a_route(notification_service):
    handler = OrderEventHandler(notification_service)

    assert set(handler._routes) == set(EventType)


@pytest.mark.asyncio
async def test_stale_failure_is_flagged_and_still_redelivered():
    service = FlakyNotificationService(failures=1)
    handler = OrderEventHandler(service, stale_after_minutes=60)
    event = order_created_event()
    event["timestamp"] = (datetime.now(timezone.utc) - timedelta(hours=2)).isoformat()

    with pytest.raises(HandlerError):
        await handler.handle(event)

    assert handler.get_stats()["stale_failures"] == 1
    assert not handler.processed_events.has(generate_event_id(event))
