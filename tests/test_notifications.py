"""Tests for notification delivery, email providers and the inbox API."""
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
from sqlalchemy import select

from app.models import Notification, NotificationPreference, NotificationType
from app.notifications.email_provider import (
    ConsoleProvider,
    EmailMessage,
    ResendProvider,
    SendResult,
    get_email_provider,
)
from app.notifications.service import NotificationService
from tests.conftest import auth_headers


@pytest.fixture
def email_provider():
    provider = MagicMock()
    provider.send = AsyncMock(return_value=SendResult(success=True, message_id="test"))
    return provider


# =============================================================================
# NotificationService
# =============================================================================

class TestNotificationService:

    @pytest.mark.asyncio
    async def test_in_app_without_email_by_default(self, db, owner, email_provider):
        service = NotificationService(db, email_provider=email_provider)

        notification = await service.notify(
            user_id=owner.id,
            notification_type=NotificationType.NEW_MESSAGE,
            title="New message from Carl Coach",
            message="See you Thursday",
        )
        await db.commit()

        assert notification is not None
        assert notification.type == "new_message"
        email_provider.send.assert_not_called()

    @pytest.mark.asyncio
    async def test_session_scheduled_emails_by_default(self, db, owner, email_provider):
        service = NotificationService(db, email_provider=email_provider)

        await service.notify(
            user_id=owner.id,
            notification_type="session_scheduled",
            title="Coaching session scheduled",
            link="/sessions",
        )

        email_provider.send.assert_awaited_once()
        sent = email_provider.send.await_args.args[0]
        assert sent.to == owner.email
        assert sent.subject == "Coaching session scheduled"

    @pytest.mark.asyncio
    async def test_preferences_are_honoured(self, db, owner, email_provider):
        db.add(NotificationPreference(
            user_id=owner.id,
            notification_type=NotificationType.NEW_MESSAGE.value,
            in_app_enabled=False,
            email_enabled=True,
        ))
        await db.commit()
        service = NotificationService(db, email_provider=email_provider)

        notification = await service.notify(
            user_id=owner.id,
            notification_type=NotificationType.NEW_MESSAGE,
            title="New message",
        )

        assert notification is None
        email_provider.send.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_no_user_is_a_noop(self, db, email_provider):
        service = NotificationService(db, email_provider=email_provider)

        assert await service.notify(None, NotificationType.NEW_MESSAGE, "Nobody") is None
        email_provider.send.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_type_rejected(self, db, owner, email_provider):
        service = NotificationService(db, email_provider=email_provider)

        with pytest.raises(ValueError):
            await service.notify(owner.id, "carrier_pigeon", "Coo")

    @pytest.mark.asyncio
    async def test_failed_email_does_not_raise(self, db, owner):
        provider = MagicMock()
        provider.send = AsyncMock(return_value=SendResult(success=False, error="bounced"))
        service = NotificationService(db, email_provider=provider)

        result = await service.send_password_reset_email(owner.email, "tok123")

        assert result.success is False
        message = provider.send.await_args.args[0]
        assert "reset-password?token=tok123" in message.plain_text_body

    @pytest.mark.asyncio
    async def test_invite_email_links_to_accept_page(self, db, email_provider):
        service = NotificationService(db, email_provider=email_provider)

        await service.send_invite_email(
            to="new@client.com", business_name="Acme Plumbing", inviter_name="Carl Coach", token="abc", role="owner",
        )

        message = email_provider.send.await_args.args[0]
        assert "accept-invite?token=abc" in message.html_body
        assert "Acme Plumbing" in message.subject


# =============================================================================
# Email providers
# =============================================================================

class TestEmailProviders:

    def test_console_mode_wins(self):
        assert isinstance(get_email_provider(resend_api_key="re_key", console_mode=True), ConsoleProvider)

    def test_resend_when_key_given(self):
        assert isinstance(get_email_provider(resend_api_key="re_key"), ResendProvider)

    def test_console_fallback(self):
        assert isinstance(get_email_provider(), ConsoleProvider)

    @pytest.mark.asyncio
    async def test_resend_success(self):
        response = MagicMock(status_code=200)
        response.json.return_value = {"id": "re_123"}
        message = EmailMessage(to="owner@acmeplumbing.com", subject="Hi", html_body="<p>Hi</p>", plain_text_body="Hi")

        with patch.object(httpx.AsyncClient, "post", new=AsyncMock(return_value=response)) as post:
            result = await ResendProvider(api_key="re_key", from_email="coach@coachboard.io").send(message)

        assert result == SendResult(success=True, message_id="re_123")
        payload = post.await_args.kwargs["json"]
        assert payload["to"] == ["owner@acmeplumbing.com"]
        assert payload["from"] == "coach@coachboard.io"

    @pytest.mark.asyncio
    async def test_resend_http_error(self):
        message = EmailMessage(to="owner@acmeplumbing.com", subject="Hi", html_body="", plain_text_body="")

        with patch.object(httpx.AsyncClient, "post", new=AsyncMock(side_effect=httpx.ConnectError("down"))):
            result = await ResendProvider(api_key="re_key").send(message)

        assert result.success is False
        assert result.error == "down"

    @pytest.mark.asyncio
    async def test_resend_unconfigured(self):
        message = EmailMessage(to="a@b.com", subject="", html_body="", plain_text_body="")
        result = await ResendProvider(api_key="").send(message)
        assert result.success is False


# =============================================================================
# Inbox API
# =============================================================================

async def _seed(db, user, count):
    for i in range(count):
        db.add(Notification(user_id=user.id, type="new_message", title=f"Message {i}"))
    await db.commit()


class TestNotificationRoutes:

    @pytest.mark.asyncio
    async def test_list_and_counts(self, client, db, owner, coach):
        await _seed(db, owner, 3)
        await _seed(db, coach, 1)

        response = await client.get("/api/notifications", headers=auth_headers(owner))

        body = response.json()
        assert body["total"] == 3
        assert body["unread_count"] == 3
        assert all(n["user_id"] == owner.id for n in body["notifications"])

    @pytest.mark.asyncio
    async def test_mark_read_and_read_all(self, client, db, owner):
        await _seed(db, owner, 2)
        listing = (await client.get("/api/notifications", headers=auth_headers(owner))).json()
        first_id = listing["notifications"][0]["id"]

        response = await client.post(f"/api/notifications/{first_id}/read", headers=auth_headers(owner))
        assert response.json()["read"] is True
        assert response.json()["read_at"] is not None

        count = await client.get("/api/notifications/unread-count", headers=auth_headers(owner))
        assert count.json() == {"count": 1}

        await client.post("/api/notifications/read-all", headers=auth_headers(owner))
        unread = await client.get("/api/notifications", params={"unread_only": True}, headers=auth_headers(owner))
        assert unread.json()["total"] == 0

    @pytest.mark.asyncio
    async def test_cannot_touch_others_notifications(self, client, db, owner, coach):
        await _seed(db, coach, 1)
        result = await db.execute(select(Notification).where(Notification.user_id == coach.id))
        notification_id = result.scalar_one().id

        response = await client.post(f"/api/notifications/{notification_id}/read", headers=auth_headers(owner))
        assert response.status_code == 404
        response = await client.delete(f"/api/notifications/{notification_id}", headers=auth_headers(owner))
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_preferences_defaults_and_update(self, client, owner):
        response = await client.get("/api/notifications/preferences", headers=auth_headers(owner))
        prefs = {p["notification_type"]: p for p in response.json()["preferences"]}
        assert prefs["session_scheduled"]["email_enabled"] is True
        assert prefs["new_message"]["email_enabled"] is False

        response = await client.put(
            "/api/notifications/preferences/new_message", json={"email_enabled": True},
            headers=auth_headers(owner),
        )
        assert response.json() == {"notification_type": "new_message", "in_app_enabled": True, "email_enabled": True}

    @pytest.mark.asyncio
    async def test_invalid_preference_type(self, client, owner):
        response = await client.put(
            "/api/notifications/preferences/carrier_pigeon", json={"email_enabled": True},
            headers=auth_headers(owner),
        )
        assert response.status_code == 400
