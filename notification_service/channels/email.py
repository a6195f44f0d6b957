from html import escape

from order_events.schemas import (
    NotificationTarget,
    OrderCancelledData,
    OrderCreatedData,
    OrderStatus,
    OrderStatusUpdatedData,
)
from notification_service.channels.base import NotificationChannel
from notification_service.schemas.notifications import NotificationType

STATUS_MESSAGES = {
    OrderStatus.CONFIRMED: "Your order has been confirmed and is being prepared.",
    OrderStatus.PROCESSING: "Your order is currently being processed.",
    OrderStatus.SHIPPED: "Great news! Your order has been shipped.",
    OrderStatus.DELIVERED: "Your order has been delivered. We hope you enjoy your purchase!",
}


def _page(heading: str, color: str, content: str) -> str:
    return (
        '<html><body style="font-family: Arial, sans-serif; color: #333;">'
        f'<h1 style="color: {color};">{heading}</h1>'
        f"{content}"
        "</body></html>"
    )


def render_confirmation(order: OrderCreatedData) -> tuple[str, str]:
    rows = "".join(
        f"<tr><td>{escape(item.title)}</td><td>{item.quantity}</td>"
        f"<td>${item.price:.2f}</td><td>${item.quantity * item.price:.2f}</td></tr>"
        for item in order.items
    )
    content = (
        f"<p>Hi {escape(order.customer_name)}, thank you for your order! Here are the details:</p>"
        f"<p><strong>Order ID:</strong> {escape(order.order_id)}</p>"
        f"<p><strong>Order Date:</strong> {order.created_at:%Y-%m-%d}</p>"
        f"<p><strong>Status:</strong> {order.status.value}</p>"
        '<table border="1" style="border-collapse: collapse; width: 100%;">'
        "<thead><tr><th>Item</th><th>Quantity</th><th>Price</th><th>Subtotal</th></tr></thead>"
        f"<tbody>{rows}</tbody></table>"
        f"<h3>Total Amount: ${order.total_amount:.2f}</h3>"
        "<p>We'll send you another email when your order ships.</p>"
    )
    return f"Order Confirmation - {order.order_id}", _page("Order Confirmation", "#2c5aa0", content)


def render_status_update(update: OrderStatusUpdatedData) -> tuple[str, str]:
    message = STATUS_MESSAGES.get(update.new_status, "Your order status has been updated.")
    content = (
        f"<p><strong>Order ID:</strong> {escape(update.order_id)}</p>"
        f"<p><strong>New Status:</strong> {update.new_status.value}</p>"
        f"<p>{message}</p>"
    )
    if update.tracking_number:
        content += f"<p><strong>Tracking Number:</strong> {escape(update.tracking_number)}</p>"
    subject = f"Order {update.new_status.value.capitalize()} - {update.order_id}"
    return subject, _page("Order Status Update", "#2c5aa0", content)


def render_cancellation(cancellation: OrderCancelledData) -> tuple[str, str]:
    content = (
        f"<p><strong>Order ID:</strong> {escape(cancellation.order_id)}</p>"
        "<p>Your order has been cancelled.</p>"
        f"<p><strong>Reason:</strong> {escape(cancellation.reason)}</p>"
    )
    if cancellation.refund_amount is not None:
        content += f"<p><strong>Refund:</strong> ${cancellation.refund_amount:.2f}</p>"
    content += "<p>If you have any questions, please contact our customer service.</p>"
    return f"Order Cancelled - {cancellation.order_id}", _page("Order Cancelled", "#dc3545", content)


class EmailChannel(NotificationChannel):
    name = "email"

    _renderers = {
        NotificationType.CONFIRMATION: render_confirmation,
        NotificationType.STATUS_UPDATE: render_status_update,
        NotificationType.CANCELLATION: render_cancellation,
    }

    def recipient_for(self, target: NotificationTarget) -> str:
        return target.customer_email

    def render(self, target: NotificationTarget, notification_type: NotificationType) -> tuple[str, str]:
        return self._renderers[notification_type](target)
