"""Tests for audit diffing, descriptions and the audit service."""
import pytest
from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock

from app.audit.services import (
    AuditService,
    calculate_diff,
    describe_change,
    describe_changes,
)
from tests.conftest import auth_headers


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = MagicMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def mock_user():
    user = MagicMock()
    user.id = "user_123"
    user.email = "coach@coachboard.io"
    return user


# =============================================================================
# Unit Tests - Diffs
# =============================================================================

class TestCalculateDiff:

    def test_changed_fields_only(self):
        changes = calculate_diff(
            {"name": "Old", "industry": "Retail"},
            {"name": "New", "industry": "Retail"},
        )
        assert changes == {"name": {"old": "Old", "new": "New"}}

    def test_metadata_fields_skipped(self):
        changes = calculate_diff(
            {"id": "a", "updated_at": 1, "user_id": "u1", "title": "x"},
            {"id": "b", "updated_at": 2, "user_id": "u2", "title": "x"},
        )
        assert changes == {}

    def test_nested_values_compare_deeply(self):
        old = {"forecast_months": {"2025-01": 100, "2025-02": 200}}
        same = {"forecast_months": {"2025-02": 200, "2025-01": 100}}
        changed = {"forecast_months": {"2025-01": 100, "2025-02": 250}}

        assert calculate_diff(old, same) == {}
        assert "forecast_months" in calculate_diff(old, changed)

    def test_decimal_and_float_compare_equal(self):
        assert calculate_diff({"annual_revenue": Decimal("100.00")}, {"annual_revenue": 100.0}) == {}

    def test_fields_to_track(self):
        changes = calculate_diff({"a": 1, "b": 1}, {"a": 2, "b": 2}, fields_to_track=["b"])
        assert list(changes) == ["b"]


# =============================================================================
# Unit Tests - Descriptions
# =============================================================================

class TestDescriptions:

    def test_create_and_delete(self):
        assert describe_change("coaching_sessions", "create") == "Created new Coaching Session"
        assert describe_change("shared_documents", "delete") == "Deleted Document"

    def test_update_single_field(self):
        assert describe_change("business_financial_goals", "update", "revenue_year1", 100000, 150000) == (
            "Changed Revenue Target from 100,000 to 150,000"
        )
        assert describe_change("session_actions", "update", "status", None, "completed") == (
            'Set Status to "completed"'
        )
        assert describe_change("session_actions", "update", "due_date", "2025-01-01", None) == (
            "Cleared Due Date"
        )

    def test_other_actions(self):
        assert describe_change("financial_forecasts", "apply_scenario") == (
            "Apply scenario on Financial Forecast"
        )

    def test_multiple_changes(self):
        description = describe_changes("businesses", {
            "name": {"old": "A", "new": "B"},
            "industry": {"old": None, "new": "Retail"},
        })
        assert description == "Updated Name, Industry on Business Profile"

    def test_unknown_table_falls_back_to_name(self):
        assert describe_change("widgets", "create") == "Created new widgets"


# =============================================================================
# Unit Tests - Service
# =============================================================================

class TestAuditService:

    @pytest.mark.asyncio
    async def test_log_create_records_actor(self, mock_db, mock_user):
        audit = AuditService(mock_db, user=mock_user, business_id="biz_1")

        log = await audit.log_create("coaching_sessions", "sess_1", {"title": "Kickoff", "on": date(2025, 1, 2)})

        mock_db.add.assert_called_once_with(log)
        assert log.business_id == "biz_1"
        assert log.user_id == "user_123"
        assert log.user_email == "coach@coachboard.io"
        assert log.action == "create"
        assert log.new_value == {"title": "Kickoff", "on": "2025-01-02"}
        assert log.description == "Created new Coaching Session"

    @pytest.mark.asyncio
    async def test_log_update_without_changes_is_skipped(self, mock_db, mock_user):
        audit = AuditService(mock_db, user=mock_user, business_id="biz_1")

        assert await audit.log_update("businesses", "biz_1", {}) is None
        mock_db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_log_update_single_field(self, mock_db, mock_user):
        audit = AuditService(mock_db, user=mock_user, business_id="biz_1")

        log = await audit.log_update(
            "business_profiles", "prof_1", {"annual_revenue": {"old": Decimal("10"), "new": Decimal("12.5")}}
        )

        assert log.field_name == "annual_revenue"
        assert log.changes == {"annual_revenue": {"old": 10.0, "new": 12.5}}

    @pytest.mark.asyncio
    async def test_request_context(self, mock_db, mock_user):
        request = MagicMock()
        request.client.host = "10.0.0.1"
        request.headers = {"user-agent": "pytest"}

        audit = AuditService(mock_db, user=mock_user, request=request)
        log = await audit.log_delete("shared_documents", "doc_1", {"file_name": "plan.pdf"})

        assert log.ip_address == "10.0.0.1"
        assert log.user_agent == "pytest"
        assert log.old_value == {"file_name": "plan.pdf"}


# =============================================================================
# Routes
# =============================================================================

class TestAuditRoutes:

    @pytest.mark.asyncio
    async def test_business_log_filters(self, client, business, owner):
        await client.patch(f"/api/businesses/{business.id}", json={"name": "Acme Gas"}, headers=auth_headers(owner))
        await client.put(
            f"/api/businesses/{business.id}/profile", json={"website": "https://acme.com"}, headers=auth_headers(owner)
        )
        url = f"/api/businesses/{business.id}/audit-log"

        everything = (await client.get(url, headers=auth_headers(owner))).json()
        profiles = (await client.get(url, params={"table_name": "business_profiles"}, headers=auth_headers(owner))).json()

        assert everything["count"] == 2
        assert profiles["count"] == 1
        assert profiles["logs"][0]["action"] == "create"

    @pytest.mark.asyncio
    async def test_business_log_requires_access(self, client, business, outsider):
        response = await client.get(f"/api/businesses/{business.id}/audit-log", headers=auth_headers(outsider))
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_record_history(self, client, business, owner, coach, outsider):
        await client.patch(f"/api/businesses/{business.id}", json={"name": "Acme Gas"}, headers=auth_headers(owner))
        await client.patch(f"/api/businesses/{business.id}", json={"industry": "Gas"}, headers=auth_headers(coach))
        url = f"/api/audit/businesses/{business.id}"

        history = (await client.get(url, headers=auth_headers(owner))).json()
        assert {entry["user_id"] for entry in history} == {owner.id, coach.id}

        assert (await client.get(url, headers=auth_headers(outsider))).status_code == 403

    @pytest.mark.asyncio
    async def test_user_history_is_admin_only(self, client, admin, owner):
        await client.patch(
            f"/api/admin/users/{owner.id}/role", json={"system_role": "coach"}, headers=auth_headers(admin)
        )
        url = f"/api/audit/users/{owner.id}"

        assert (await client.get(url, headers=auth_headers(owner))).status_code == 403
        history = (await client.get(url, headers=auth_headers(admin))).json()
        assert history[0]["changes"] == {"system_role": {"old": "client", "new": "coach"}}
        assert history[0]["source"] == "admin"
