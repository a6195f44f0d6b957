from dataclasses import dataclass

from notification_service.channels import EmailChannel, SmsChannel
from notification_service.core.config import Settings, settings as default_settings
from notification_service.services.consumer import OrderEventConsumer
from notification_service.services.handler import OrderEventHandler
from notification_service.services.notification import NotificationService
from notification_service.stores.dedup import InMemoryProcessedEventStore
from notification_service.stores.history import InMemoryNotificationHistoryStore


@dataclass
class Container:
    notification_service: NotificationService
    handler: OrderEventHandler
    consumer: OrderEventConsumer


def build_container(settings: Settings = default_settings) -> Container:
    channels = [
        EmailChannel(
            failure_rate=settings.email_failure_rate,
            latency_ms=settings.email_latency_ms,
        ),
        SmsChannel(
            failure_rate=settings.sms_failure_rate,
            latency_ms=settings.sms_latency_ms,
            default_recipient=settings.default_sms_recipient,
        ),
    ]
    notification_service = NotificationService(channels, InMemoryNotificationHistoryStore())
    handler = OrderEventHandler(
        notification_service,
        processed_events=InMemoryProcessedEventStore(settings.dedup_cache_size),
        handled_types=settings.handled_event_types,
        redeliver_on_total_failure=settings.redeliver_on_total_failure,
        stale_after_minutes=settings.stale_event_minutes,
    )
    consumer = OrderEventConsumer(handler, topics=[settings.order_events_topic])
    return Container(notification_service=notification_service, handler=handler, consumer=consumer)


container = build_container()
