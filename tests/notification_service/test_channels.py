from unittest.mock import patch

import pytest

from order_events.exceptions import ChannelUnavailable
from order_events.schemas import OrderCancelledData, OrderCreatedData, OrderStatusUpdatedData
from notification_service.channels import EmailChannel, SmsChannel
from notification_service.schemas.notifications import NotificationType

from factories import customer, order_created_payload


@pytest.fixture
def order():
    return OrderCreatedData.model_validate(order_created_payload(customerName="<Ann>"))


@pytest.mark.asyncio
async def test_email_confirmation(order):
    channel = EmailChannel()

    result = await channel.send(order, NotificationType.CONFIRMATION)

    assert result.channel == "email"
    assert result.recipient == "a@b.com"
    assert result.subject == "Order Confirmation - order-1"
    assert result.message_id.startswith("email-")
    assert "Widget" in result.body
    assert "$19.98" in result.body
    assert "&lt;Ann&gt;" in result.body


def test_email_status_update_subject_and_tracking():
    update = OrderStatusUpdatedData.model_validate(
        {**customer(), "oldStatus": "CONFIRMED", "newStatus": "SHIPPED", "trackingNumber": "TRK-9"}
    )

    subject, body = EmailChannel().render(update, NotificationType.STATUS_UPDATE)

    assert subject == "Order Shipped - order-1"
    assert "TRK-9" in body
    assert "has been shipped" in body


def test_email_cancellation():
    cancellation = OrderCancelledData.model_validate(
        {**customer(), "reason": "Out of stock", "cancelledBy": "SYSTEM", "refundAmount": 5}
    )

    subject, body = EmailChannel().render(cancellation, NotificationType.CANCELLATION)

    assert subject == "Order Cancelled - order-1"
    assert "Out of stock" in body
    assert "$5.00" in body


@pytest.mark.asyncio
async def test_sms_uses_phone_or_default(order):
    channel = SmsChannel(default_recipient="+15550000000")

    without_phone = await channel.send(order, NotificationType.CONFIRMATION)
    with_phone = await channel.send(
        order.model_copy(update={"customer_phone": "+15551112222"}), NotificationType.CONFIRMATION
    )

    assert without_phone.recipient == "+15550000000"
    assert with_phone.recipient == "+15551112222"
    assert without_phone.subject == "CONFIRMATION"
    assert without_phone.body == "Order order-1 confirmed! Total: $19.98. Thank you for your purchase!"


def test_sms_status_update_text():
    shipped = OrderStatusUpdatedData.model_validate(
        {**customer(), "oldStatus": "CONFIRMED", "newStatus": "SHIPPED", "trackingNumber": "TRK-9"}
    )
    delivered = OrderStatusUpdatedData.model_validate(
        {**customer(), "oldStatus": "SHIPPED", "newStatus": "DELIVERED"}
    )

    _, shipped_text = SmsChannel().render(shipped, NotificationType.STATUS_UPDATE)
    _, delivered_text = SmsChannel().render(delivered, NotificationType.STATUS_UPDATE)

    assert shipped_text.endswith("Tracking: TRK-9")
    assert delivered_text == "Your order order-1 is now DELIVERED."


@pytest.mark.asyncio
async def test_unavailable_channel_raises(order):
    channel = SmsChannel()
    channel.available = False

    with pytest.raises(ChannelUnavailable) as exc_info:
        await channel.send(order, NotificationType.CONFIRMATION)

    assert exc_info.value.channel == "sms"
    assert not await channel.is_healthy()


@pytest.mark.asyncio
async def test_failure_rate_one_always_fails(order):
    channel = EmailChannel(failure_rate=1.0)

    with pytest.raises(ChannelUnavailable):
        await channel.send(order, NotificationType.CONFIRMATION)

    assert await channel.is_healthy()


@pytest.mark.asyncio
async def test_failure_rate_is_applied(order):
    channel = EmailChannel(failure_rate=0.05)

    with patch('random.random', return_value=0.01):
        with pytest.raises(ChannelUnavailable):
            await channel.send(order, NotificationType.CONFIRMATION)

    with patch('random.random', return_value=0.5):
        result = await channel.send(order, NotificationType.CONFIRMATION)

    assert result.channel == "email"
