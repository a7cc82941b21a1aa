"""Tests for request rate limiting."""
import pytest
from starlette.requests import Request

from app.config import settings
from app.middleware.rate_limit import get_rate_limit_key, limiter
from tests.conftest import auth_headers


def make_request(headers=None, host="10.0.0.7") -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": (host, 5123),
    }
    return Request(scope)


class TestRateLimitKey:

    def test_authenticated_requests_keyed_by_user(self, owner):
        assert get_rate_limit_key(make_request(auth_headers(owner))) == f"user:{owner.id}"

    def test_session_cookie_keyed_by_user(self, owner):
        token = auth_headers(owner)["Authorization"].split(" ", 1)[1]
        request = make_request({"Cookie": f"{settings.SESSION_COOKIE_NAME}={token}"})

        assert get_rate_limit_key(request) == f"user:{owner.id}"

    def test_anonymous_requests_keyed_by_ip(self):
        assert get_rate_limit_key(make_request()) == "10.0.0.7"

    def test_invalid_token_falls_back_to_ip(self):
        request = make_request({"Authorization": "Bearer not-a-token"}, host="10.0.0.9")

        assert get_rate_limit_key(request) == "10.0.0.9"


class TestLimitsEnforced:

    @pytest.fixture
    def live_limiter(self):
        limiter.reset()
        limiter.enabled = True
        yield limiter
        limiter.reset()

    @pytest.mark.asyncio
    async def test_login_limited(self, client, owner, live_limiter):
        allowed = int(settings.RATE_LIMIT_AUTH.split("/")[0])
        credentials = {"email": owner.email, "password": "wrong-password"}

        for _ in range(allowed):
            response = await client.post("/api/auth/login", json=credentials)
            assert response.status_code == 401

        response = await client.post("/api/auth/login", json=credentials)
        assert response.status_code == 429

    @pytest.mark.asyncio
    async def test_message_sending_limited_per_user(self, client, business, owner, coach, live_limiter):
        allowed = int(settings.RATE_LIMIT_MESSAGES.split("/")[0])
        url = f"/api/businesses/{business.id}/messages"

        for i in range(allowed):
            response = await client.post(url, json={"content": f"Update {i}"}, headers=auth_headers(owner))
            assert response.status_code == 201

        response = await client.post(url, json={"content": "One too many"}, headers=auth_headers(owner))
        assert response.status_code == 429

        # Keyed by user, so the coach still gets through
        response = await client.post(url, json={"content": "Coach reply"}, headers=auth_headers(coach))
        assert response.status_code == 201
