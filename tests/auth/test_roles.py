"""Tests for role label checks and audit actor attribution."""

import pytest
from fastapi import HTTPException
from unittest.mock import MagicMock

from warroom.auth.roles import (
    ROLE_ADMIN,
    ROLE_RESPONDER,
    get_actor,
    get_role,
    require_role,
)


def _request(headers: dict) -> MagicMock:
    request = MagicMock()
    request.headers = headers
    request.url.path = "/api/incidents"
    return request


class TestRoleHeader:
    def test_missing_header_is_viewer(self):
        assert get_role(_request({})) == "viewer"

    def test_header_value(self):
        assert get_role(_request({"X-Role": "admin"})) == "admin"


class TestRequireRole:
    @pytest.mark.asyncio
    async def test_allowed_role_passes(self):
        request = _request({"X-Role": "responder"})
        check = require_role(ROLE_RESPONDER, ROLE_ADMIN)
        assert await check(request) == "responder"
        assert request.state.role == "responder"

    @pytest.mark.asyncio
    async def test_disallowed_role_is_forbidden(self):
        check = require_role(ROLE_ADMIN)
        with pytest.raises(HTTPException) as exc_info:
            await check(_request({"X-Role": "viewer"}))
        assert exc_info.value.status_code == 403
        assert "viewer" in exc_info.value.detail


class TestActor:
    def test_actor_header_wins(self):
        assert get_actor(_request({"X-Role": "responder", "X-Actor": "alice"})) == "alice"

    def test_falls_back_to_role(self):
        assert get_actor(_request({"X-Role": "responder"})) == "responder"
