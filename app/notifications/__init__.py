"""
Notifications Module

In-app notifications, per-type preferences and email delivery.
"""

from .service import NotificationService, get_notification_service
from .email_provider import (
    EmailProvider,
    EmailMessage,
    SendResult,
    get_email_provider,
)

__all__ = [
    "NotificationService",
    "get_notification_service",
    "EmailProvider",
    "EmailMessage",
    "SendResult",
    "get_email_provider",
]
