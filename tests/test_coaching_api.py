"""Integration tests for coaching sessions, actions and the question library."""
import pytest
from sqlalchemy import select

from app.models import Notification
from tests.conftest import auth_headers, make_business, make_user

FUTURE = "2099-03-01T09:30:00Z"
PAST = "2020-03-01T09:30:00Z"


async def _schedule(client, business, coach, title="Quarterly review", scheduled_at=FUTURE):
    response = await client.post(
        f"/api/businesses/{business.id}/sessions",
        json={"title": title, "scheduled_at": scheduled_at},
        headers=auth_headers(coach),
    )
    assert response.status_code == 201, response.text
    return response.json()


async def _action(client, business, user, **payload):
    response = await client.post(
        f"/api/businesses/{business.id}/actions", json=payload, headers=auth_headers(user)
    )
    assert response.status_code == 201, response.text
    return response.json()


# =============================================================================
# Sessions
# =============================================================================

class TestSessions:

    @pytest.mark.asyncio
    async def test_coach_schedules_and_owner_is_notified(self, client, db, business, owner, coach):
        session = await _schedule(client, business, coach)

        assert session["coach_id"] == coach.id
        assert session["status"] == "scheduled"
        assert session["duration_minutes"] == 60

        result = await db.execute(select(Notification).where(Notification.user_id == owner.id))
        notification = result.scalar_one()
        assert notification.type == "session_scheduled"
        assert notification.message == "Quarterly review on 01 Mar 2099 at 09:30"

    @pytest.mark.asyncio
    async def test_client_cannot_schedule(self, client, business, owner):
        response = await client.post(
            f"/api/businesses/{business.id}/sessions",
            json={"title": "Self-booked", "scheduled_at": FUTURE},
            headers=auth_headers(owner),
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_admin_schedules_as_assigned_coach(self, client, business, coach, admin):
        session = await _schedule(client, business, admin)
        assert session["coach_id"] == coach.id

    @pytest.mark.asyncio
    async def test_upcoming_filter(self, client, business, owner, coach):
        await _schedule(client, business, coach, title="Kickoff", scheduled_at=PAST)
        await _schedule(client, business, coach, title="Review", scheduled_at=FUTURE)

        everything = await client.get(f"/api/businesses/{business.id}/sessions", headers=auth_headers(owner))
        upcoming = await client.get(
            f"/api/businesses/{business.id}/sessions", params={"upcoming": True}, headers=auth_headers(owner)
        )

        assert [s["title"] for s in everything.json()] == ["Review", "Kickoff"]
        assert [s["title"] for s in upcoming.json()] == ["Review"]

    @pytest.mark.asyncio
    async def test_coach_sessions_across_clients(self, client, db, business, coach):
        other_owner = await make_user(db, "founder@bakery.com")
        other_business = await make_business(db, other_owner, coach, name="Sunrise Bakery")
        await _schedule(client, business, coach, title="Acme review")
        await _schedule(client, other_business, coach, title="Bakery review")

        response = await client.get("/api/coaching/sessions", headers=auth_headers(coach))

        names = {s["business_name"] for s in response.json()}
        assert names == {"Acme Plumbing", "Sunrise Bakery"}

    @pytest.mark.asyncio
    async def test_coach_sessions_requires_coach(self, client, owner):
        response = await client.get("/api/coaching/sessions", headers=auth_headers(owner))
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_record_notes(self, client, business, owner, coach):
        session = await _schedule(client, business, coach)

        response = await client.patch(
            f"/api/sessions/{session['id']}",
            json={"status": "completed", "notes": "Discussed pricing", "summary": "Raise rates 5%"},
            headers=auth_headers(coach),
        )
        assert response.json()["status"] == "completed"

        response = await client.get(f"/api/sessions/{session['id']}", headers=auth_headers(owner))
        assert response.json()["summary"] == "Raise rates 5%"

    @pytest.mark.asyncio
    async def test_delete_permissions(self, client, db, business, owner, coach):
        session = await _schedule(client, business, coach)
        member = await make_user(db, "apprentice@acmeplumbing.com")
        await client.post(
            f"/api/businesses/{business.id}/team/invite",
            json={"email": member.email, "role": "member"},
            headers=auth_headers(owner),
        )
        url = f"/api/sessions/{session['id']}"

        assert (await client.delete(url, headers=auth_headers(member))).status_code == 403
        assert (await client.delete(url, headers=auth_headers(coach))).status_code == 200
        assert (await client.get(url, headers=auth_headers(coach))).status_code == 404

    @pytest.mark.asyncio
    async def test_null_session_fields_rejected(self, client, business, coach):
        session = await _schedule(client, business, coach)

        for payload in ({"title": None}, {"scheduled_at": None}, {"status": None}):
            response = await client.patch(
                f"/api/sessions/{session['id']}", json=payload, headers=auth_headers(coach)
            )
            assert response.status_code == 422

        response = await client.get(f"/api/sessions/{session['id']}", headers=auth_headers(coach))
        assert response.json()["title"] == "Quarterly review"


# =============================================================================
# Actions
# =============================================================================

class TestActions:

    @pytest.mark.asyncio
    async def test_assignment_notifies(self, client, db, business, owner, coach):
        await _action(client, business, coach, title="Send updated price list", assigned_to=owner.id, due_date="2099-03-15")

        result = await db.execute(select(Notification).where(Notification.user_id == owner.id))
        notification = result.scalar_one()
        assert notification.type == "action_assigned"
        assert notification.message == "Send updated price list (due 15 Mar 2099)"

    @pytest.mark.asyncio
    async def test_ordering_undated_last(self, client, business, owner):
        await _action(client, business, owner, title="Someday")
        await _action(client, business, owner, title="Later", due_date="2099-06-01")
        await _action(client, business, owner, title="Soon", due_date="2099-01-01")

        response = await client.get(f"/api/businesses/{business.id}/actions", headers=auth_headers(owner))

        assert [a["title"] for a in response.json()["actions"]] == ["Soon", "Later", "Someday"]

    @pytest.mark.asyncio
    async def test_completion_stamps_and_clears(self, client, business, owner):
        action = await _action(client, business, owner, title="File BAS")
        url = f"/api/actions/{action['id']}"

        completed = await client.patch(url, json={"status": "completed"}, headers=auth_headers(owner))
        assert completed.json()["completed_at"] is not None

        reopened = await client.patch(url, json={"status": "pending"}, headers=auth_headers(owner))
        assert reopened.json()["completed_at"] is None

    @pytest.mark.asyncio
    async def test_status_filter(self, client, business, owner):
        done = await _action(client, business, owner, title="Done")
        await _action(client, business, owner, title="Open")
        await client.patch(f"/api/actions/{done['id']}", json={"status": "completed"}, headers=auth_headers(owner))

        response = await client.get(
            f"/api/businesses/{business.id}/actions", params={"status": "pending"}, headers=auth_headers(owner)
        )
        assert [a["title"] for a in response.json()["actions"]] == ["Open"]

    @pytest.mark.asyncio
    async def test_session_must_belong_to_business(self, client, db, business, owner, coach):
        other_owner = await make_user(db, "founder@bakery.com")
        other_business = await make_business(db, other_owner, coach, name="Sunrise Bakery")
        foreign_session = await _schedule(client, other_business, coach)

        response = await client.post(
            f"/api/businesses/{business.id}/actions",
            json={"title": "Follow up", "session_id": foreign_session["id"]},
            headers=auth_headers(owner),
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_delete(self, client, business, owner):
        action = await _action(client, business, owner, title="Temporary")

        response = await client.delete(f"/api/actions/{action['id']}", headers=auth_headers(owner))
        assert response.status_code == 200

        response = await client.delete(f"/api/actions/{action['id']}", headers=auth_headers(owner))
        assert response.status_code == 404


# =============================================================================
# Question library
# =============================================================================

class TestQuestions:

    @pytest.mark.asyncio
    async def test_crud_and_use_count(self, client, coach):
        created = await client.post(
            "/api/questions",
            json={"question": "What would you do with an extra day each week?", "category": "vision"},
            headers=auth_headers(coach),
        )
        assert created.status_code == 201
        question_id = created.json()["id"]
        assert created.json()["use_count"] == 0

        used = await client.post(f"/api/questions/{question_id}/use", headers=auth_headers(coach))
        used = await client.post(f"/api/questions/{question_id}/use", headers=auth_headers(coach))
        assert used.json()["use_count"] == 2

        updated = await client.patch(
            f"/api/questions/{question_id}", json={"category": "time"}, headers=auth_headers(coach)
        )
        assert updated.json()["category"] == "time"

        deleted = await client.delete(f"/api/questions/{question_id}", headers=auth_headers(coach))
        assert deleted.status_code == 200

    @pytest.mark.asyncio
    async def test_most_used_first_and_category_filter(self, client, coach):
        ids = []
        for text, category in (("Q1", "cash"), ("Q2", "cash"), ("Q3", "team")):
            response = await client.post(
                "/api/questions", json={"question": text, "category": category}, headers=auth_headers(coach)
            )
            ids.append(response.json()["id"])
        await client.post(f"/api/questions/{ids[1]}/use", headers=auth_headers(coach))

        response = await client.get("/api/questions", params={"category": "cash"}, headers=auth_headers(coach))

        assert [q["question"] for q in response.json()] == ["Q2", "Q1"]

    @pytest.mark.asyncio
    async def test_questions_are_private(self, client, db, coach):
        other_coach = await make_user(db, "mentor@coachboard.io", "coach")
        created = await client.post("/api/questions", json={"question": "Mine"}, headers=auth_headers(coach))

        response = await client.patch(
            f"/api/questions/{created.json()['id']}", json={"question": "Stolen"}, headers=auth_headers(other_coach)
        )
        assert response.status_code == 404
        assert (await client.get("/api/questions", headers=auth_headers(other_coach))).json() == []

    @pytest.mark.asyncio
    async def test_clients_excluded(self, client, owner):
        response = await client.get("/api/questions", headers=auth_headers(owner))
        assert response.status_code == 403
