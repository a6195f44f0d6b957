from notification_service.channels.base import NotificationChannel
from notification_service.channels.email import EmailChannel
from notification_service.channels.sms import SmsChannel

__all__ = ["NotificationChannel", "EmailChannel", "SmsChannel"]
