"""
Notification Service

Creates in-app notifications and sends their email copies according to
each user's per-type preferences.
"""

import logging
from typing import Optional, Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models import User, Notification, NotificationPreference, NotificationType
from app.models.notification import EMAIL_BY_DEFAULT

from .templates import (
    build_invite_email,
    build_password_reset_email,
    build_notification_email,
)
from .email_provider import (
    EmailProvider,
    EmailMessage,
    SendResult,
    get_default_email_provider,
)

logger = logging.getLogger(__name__)


class NotificationService:
    """
    Service for sending notifications.

    Handles:
    - In-app notifications (honouring in_app_enabled)
    - Notification emails (honouring email_enabled)
    - Account emails (team invites, password resets)
    """

    def __init__(
        self,
        db: AsyncSession,
        email_provider: Optional[EmailProvider] = None,
    ):
        self.db = db
        self.email_provider = email_provider or get_default_email_provider()

    def _frontend_url(self, path: str = "") -> str:
        return f"{settings.FRONTEND_URL.rstrip('/')}{path}"

    def _get_settings_url(self) -> str:
        """Get notification settings URL."""
        return self._frontend_url("/settings/notifications")

    async def get_preference(
        self,
        user_id: str,
        notification_type: Union[NotificationType, str],
    ) -> Optional[NotificationPreference]:
        """Get user's notification preference for a specific type."""
        type_value = NotificationType(notification_type).value
        result = await self.db.execute(
            select(NotificationPreference)
            .where(NotificationPreference.user_id == user_id)
            .where(NotificationPreference.notification_type == type_value)
        )
        return result.scalar_one_or_none()

    async def notify(
        self,
        user_id: Optional[str],
        notification_type: Union[NotificationType, str],
        title: str,
        message: Optional[str] = None,
        business_id: Optional[str] = None,
        link: Optional[str] = None,
    ) -> Optional[Notification]:
        """
        Notify a user.

        Missing preferences fall back to in-app on and email only for the
        types in EMAIL_BY_DEFAULT. The notification row is added to the
        session; the caller commits.

        Returns:
            The created Notification, or None when in-app delivery is off
        """
        if not user_id:
            return None

        notification_type = NotificationType(notification_type)
        pref = await self.get_preference(user_id, notification_type)
        in_app_enabled = pref.in_app_enabled if pref else True
        email_enabled = pref.email_enabled if pref else notification_type in EMAIL_BY_DEFAULT

        notification = None
        if in_app_enabled:
            notification = Notification(
                user_id=user_id,
                business_id=business_id,
                type=notification_type.value,
                title=title,
                message=message,
                link=link,
            )
            self.db.add(notification)

        if email_enabled:
            result = await self.db.execute(select(User).where(User.id == user_id))
            user = result.scalar_one_or_none()
            if user and user.is_active:
                subject, html_body, plain_text_body = build_notification_email(
                    title=title,
                    message=message,
                    link_url=self._frontend_url(link or "/"),
                    settings_url=self._get_settings_url(),
                )
                await self.send_email(user.email, subject, html_body, plain_text_body)

        return notification

    async def send_email(
        self,
        to: str,
        subject: str,
        html_body: str,
        plain_text_body: str,
    ) -> SendResult:
        """Send an email, logging delivery failures without raising."""
        result = await self.email_provider.send(EmailMessage(
            to=to,
            subject=subject,
            html_body=html_body,
            plain_text_body=plain_text_body,
        ))
        if not result.success:
            logger.error(f"Email to {to} failed: {result.error}")
        return result

    async def send_invite_email(
        self,
        to: str,
        business_name: str,
        inviter_name: str,
        token: str,
        role: Optional[str] = None,
    ) -> SendResult:
        """Email an invite link for a new team member or client."""
        invite_url = self._frontend_url(f"/accept-invite?token={token}")
        subject, html_body, plain_text_body = build_invite_email(
            business_name=business_name,
            inviter_name=inviter_name,
            invite_url=invite_url,
            settings_url=self._get_settings_url(),
            role=role,
        )
        logger.info(f"Sending invite for {business_name} to {to}")
        return await self.send_email(to, subject, html_body, plain_text_body)

    async def send_password_reset_email(self, to: str, token: str) -> SendResult:
        """Email a password reset link."""
        reset_url = self._frontend_url(f"/reset-password?token={token}")
        subject, html_body, plain_text_body = build_password_reset_email(
            reset_url=reset_url,
            settings_url=self._get_settings_url(),
        )
        return await self.send_email(to, subject, html_body, plain_text_body)


def get_notification_service(db: AsyncSession) -> NotificationService:
    """Factory for NotificationService with the configured email provider."""
    return NotificationService(db)
