"""Tests for business access rules."""
import pytest
from unittest.mock import MagicMock

from app.businesses.access import determine_access


def _user(user_id, system_role="client"):
    user = MagicMock()
    user.id = user_id
    user.is_admin = system_role == "super_admin"
    user.is_coach = system_role == "coach"
    return user


def _membership(role, status="active"):
    membership = MagicMock()
    membership.role = role
    membership.status = status
    return membership


@pytest.fixture
def business():
    business = MagicMock()
    business.id = "biz_1"
    business.owner_id = "user_owner"
    business.assigned_coach_id = "user_coach"
    return business


class TestDetermineAccess:

    def test_super_admin(self, business):
        access = determine_access(business, _user("user_admin", "super_admin"))

        assert access.role == "admin"
        assert access.can_edit and access.can_delete
        assert not access.is_viewing_as_coach

    def test_owner(self, business):
        access = determine_access(business, _user("user_owner"))

        assert access.role == "owner"
        assert access.can_edit and access.can_delete
        assert access.can_manage_team

    def test_assigned_coach_can_edit_not_delete(self, business):
        access = determine_access(business, _user("user_coach", "coach"))

        assert access.role == "coach"
        assert access.is_viewing_as_coach
        assert access.can_edit
        assert not access.can_delete
        assert not access.can_manage_team

    @pytest.mark.parametrize("role,can_edit,can_delete", [
        ("admin", True, True),
        ("member", True, False),
        ("viewer", False, False),
    ])
    def test_team_members(self, business, role, can_edit, can_delete):
        access = determine_access(business, _user("user_member"), _membership(role))

        assert access.role == role
        assert access.can_edit is can_edit
        assert access.can_delete is can_delete

    def test_invited_membership_has_no_access(self, business):
        assert determine_access(business, _user("user_member"), _membership("member", "invited")) is None

    def test_unrelated_coach_has_no_access(self, business):
        assert determine_access(business, _user("user_other_coach", "coach")) is None

    def test_stranger(self, business):
        assert determine_access(business, _user("user_stranger")) is None
