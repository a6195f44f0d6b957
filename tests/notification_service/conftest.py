import pytest

from notification_service.channels import EmailChannel, SmsChannel
from notification_service.services.notification import NotificationService

from factories import FakeKafkaConsumer


@pytest.fixture
def email_channel():
    return EmailChannel()


@pytest.fixture
def sms_channel():
    return SmsChannel(default_recipient="+15550000000")


@pytest.fixture
def notification_service(email_channel, sms_channel):
    return NotificationService([email_channel, sms_channel])


@pytest.fixture
def fake_kafka():
    return FakeKafkaConsumer()
