"""Integration tests for coach/client messaging and shared documents."""
import pytest
from sqlalchemy import select

from app.models import Message, Notification
from tests.conftest import auth_headers, make_user


async def _send(client, business, user, content="Hi there"):
    response = await client.post(
        f"/api/businesses/{business.id}/messages", json={"content": content}, headers=auth_headers(user)
    )
    assert response.status_code == 201, response.text
    return response.json()


# =============================================================================
# Messages
# =============================================================================

class TestMessages:

    @pytest.mark.asyncio
    async def test_client_message_goes_to_coach(self, client, db, business, owner, coach):
        message = await _send(client, business, owner, "  Can we talk cash flow?  ")

        assert message["sender_type"] == "client"
        assert message["recipient_id"] == coach.id
        assert message["content"] == "Can we talk cash flow?"
        assert message["read"] is False

        result = await db.execute(select(Notification).where(Notification.user_id == coach.id))
        notification = result.scalar_one()
        assert notification.type == "new_message"
        assert notification.message == "Can we talk cash flow?"

    @pytest.mark.asyncio
    async def test_coach_message_goes_to_owner(self, client, business, owner, coach):
        message = await _send(client, business, coach, "Sure, Thursday?")

        assert message["sender_type"] == "coach"
        assert message["recipient_id"] == owner.id

    @pytest.mark.asyncio
    async def test_empty_message_rejected(self, client, business, owner):
        response = await client.post(
            f"/api/businesses/{business.id}/messages", json={"content": "   "}, headers=auth_headers(owner)
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Message content or attachment is required"

    @pytest.mark.asyncio
    async def test_attachment_only_message(self, client, business, owner):
        response = await client.post(
            f"/api/businesses/{business.id}/messages",
            json={"attachment_url": "https://files.example.com/pl.pdf", "attachment_name": "pl.pdf"},
            headers=auth_headers(owner),
        )

        assert response.status_code == 201
        assert response.json()["attachment_name"] == "pl.pdf"

    @pytest.mark.asyncio
    async def test_outsider_cannot_message(self, client, business, outsider):
        response = await client.post(
            f"/api/businesses/{business.id}/messages", json={"content": "Hello"}, headers=auth_headers(outsider)
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_unread_count_and_read_on_fetch(self, client, business, owner, coach):
        await _send(client, business, owner, "First")
        await _send(client, business, owner, "Second")

        count = await client.get("/api/messages/unread-count", headers=auth_headers(coach))
        assert count.json() == {"count": 2}

        # The sender's own fetch leaves them unread
        listing = await client.get(f"/api/businesses/{business.id}/messages", headers=auth_headers(owner))
        assert listing.json()["total"] == 2
        count = await client.get("/api/messages/unread-count", headers=auth_headers(coach))
        assert count.json() == {"count": 2}

        listing = await client.get(f"/api/businesses/{business.id}/messages", headers=auth_headers(coach))
        assert {m["content"] for m in listing.json()["messages"]} == {"First", "Second"}
        assert all(m["read"] for m in listing.json()["messages"])

        count = await client.get("/api/messages/unread-count", headers=auth_headers(coach))
        assert count.json() == {"count": 0}

    @pytest.mark.asyncio
    async def test_mark_read_only_by_recipient(self, client, db, business, owner, coach):
        message = await _send(client, business, owner)

        response = await client.post(f"/api/messages/{message['id']}/read", headers=auth_headers(owner))
        assert response.status_code == 403

        response = await client.post(f"/api/messages/{message['id']}/read", headers=auth_headers(coach))
        assert response.status_code == 200
        assert response.json()["read"] is True

        stored = (await db.execute(select(Message).where(Message.id == message["id"]))).scalar_one()
        assert stored.read is True

    @pytest.mark.asyncio
    async def test_mark_read_missing(self, client, owner):
        response = await client.post("/api/messages/msg_missing/read", headers=auth_headers(owner))
        assert response.status_code == 404


# =============================================================================
# Documents
# =============================================================================

DOCUMENT = {
    "file_name": "FY25 P&L.pdf",
    "file_url": "https://files.example.com/fy25.pdf",
    "file_type": "application/pdf",
    "folder": "Financials",
}


class TestDocuments:

    @pytest.mark.asyncio
    async def test_share_notifies_other_side(self, client, db, business, owner, coach):
        response = await client.post(
            f"/api/businesses/{business.id}/documents", json=DOCUMENT, headers=auth_headers(coach)
        )

        assert response.status_code == 201
        assert response.json()["uploaded_by"] == coach.id

        result = await db.execute(select(Notification).where(Notification.user_id == owner.id))
        assert result.scalar_one().type == "document_shared"

    @pytest.mark.asyncio
    async def test_list_by_folder(self, client, business, owner):
        url = f"/api/businesses/{business.id}/documents"
        await client.post(url, json=DOCUMENT, headers=auth_headers(owner))
        await client.post(url, json={**DOCUMENT, "file_name": "Plan.docx", "folder": "Planning"}, headers=auth_headers(owner))

        everything = await client.get(url, headers=auth_headers(owner))
        planning = await client.get(url, params={"folder": "Planning"}, headers=auth_headers(owner))

        assert len(everything.json()) == 2
        assert [d["file_name"] for d in planning.json()] == ["Plan.docx"]

    @pytest.mark.asyncio
    async def test_viewer_cannot_share(self, client, db, business, owner):
        viewer = await make_user(db, "viewer@acmeplumbing.com")
        await client.post(
            f"/api/businesses/{business.id}/team/invite",
            json={"email": viewer.email, "role": "viewer"},
            headers=auth_headers(owner),
        )

        response = await client.post(
            f"/api/businesses/{business.id}/documents", json=DOCUMENT, headers=auth_headers(viewer)
        )
        assert response.status_code == 403

        response = await client.get(f"/api/businesses/{business.id}/documents", headers=auth_headers(viewer))
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_rename(self, client, business, owner):
        created = await client.post(f"/api/businesses/{business.id}/documents", json=DOCUMENT, headers=auth_headers(owner))

        response = await client.patch(
            f"/api/documents/{created.json()['id']}", json={"file_name": "FY25 P&L final.pdf"},
            headers=auth_headers(owner),
        )
        assert response.json()["file_name"] == "FY25 P&L final.pdf"

    @pytest.mark.asyncio
    async def test_delete_rules(self, client, business, owner, coach):
        created = await client.post(f"/api/businesses/{business.id}/documents", json=DOCUMENT, headers=auth_headers(owner))
        url = f"/api/documents/{created.json()['id']}"

        # Coach did not upload it and cannot delete in the business
        assert (await client.delete(url, headers=auth_headers(coach))).status_code == 403
        assert (await client.delete(url, headers=auth_headers(owner))).status_code == 200
        assert (await client.delete(url, headers=auth_headers(owner))).status_code == 404

    @pytest.mark.asyncio
    async def test_uploader_can_delete(self, client, business, coach):
        created = await client.post(f"/api/businesses/{business.id}/documents", json=DOCUMENT, headers=auth_headers(coach))

        response = await client.delete(f"/api/documents/{created.json()['id']}", headers=auth_headers(coach))
        assert response.status_code == 200
