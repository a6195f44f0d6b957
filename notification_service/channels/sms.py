from order_events.schemas import (
    NotificationTarget,
    OrderCancelledData,
    OrderCreatedData,
    OrderStatus,
    OrderStatusUpdatedData,
)
from notification_service.channels.base import NotificationChannel
from notification_service.schemas.notifications import NotificationType


def render_confirmation(order: OrderCreatedData) -> str:
    return f"Order {order.order_id} confirmed! Total: ${order.total_amount:.2f}. Thank you for your purchase!"


def render_status_update(update: OrderStatusUpdatedData) -> str:
    if update.new_status == OrderStatus.SHIPPED:
        message = f"Good news! Your order {update.order_id} has been shipped and is on its way to you!"
        if update.tracking_number:
            message += f" Tracking: {update.tracking_number}"
        return message
    return f"Your order {update.order_id} is now {update.new_status.value}."


def render_cancellation(cancellation: OrderCancelledData) -> str:
    return f"Your order {cancellation.order_id} has been cancelled. Reason: {cancellation.reason}"


class SmsChannel(NotificationChannel):
    name = "sms"

    _renderers = {
        NotificationType.CONFIRMATION: render_confirmation,
        NotificationType.STATUS_UPDATE: render_status_update,
        NotificationType.CANCELLATION: render_cancellation,
    }

    def __init__(
        self,
        failure_rate: float = 0.0,
        latency_ms: tuple[int, int] = (0, 0),
        default_recipient: str = "+1234567890"
    ) -> None:
        super().__init__(failure_rate, latency_ms)
        self.default_recipient = default_recipient

    def recipient_for(self, target: NotificationTarget) -> str:
        return target.customer_phone or self.default_recipient

    def render(self, target: NotificationTarget, notification_type: NotificationType) -> tuple[str, str]:
        # SMS has no subject line; the notification type stands in for audit
        return notification_type.value, self._renderers[notification_type](target)
