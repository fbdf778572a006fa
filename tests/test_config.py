"""Tests for WarRoomConfig defaults and validators."""

import pytest
from pydantic import ValidationError

from warroom.config import WarRoomConfig


class TestDefaults:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        config = WarRoomConfig(_env_file=None)
        assert config.port == 3001
        assert config.database_url.startswith("sqlite+aiosqlite")
        assert config.default_page_limit == 20
        assert config.max_page_limit == 100

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("WS_QUEUE_SIZE", "8")
        monkeypatch.setenv("DB_SYNCHRONOUS", "full")
        config = WarRoomConfig(_env_file=None)
        assert config.ws_queue_size == 8
        assert config.db_synchronous == "FULL"


class TestValidators:
    @pytest.mark.parametrize("field", ["ws_max_connections", "ws_queue_size", "max_page_limit"])
    def test_rejects_non_positive(self, field):
        with pytest.raises(ValidationError):
            WarRoomConfig(_env_file=None, **{field: 0})

    def test_rejects_unknown_synchronous_mode(self):
        with pytest.raises(ValidationError):
            WarRoomConfig(_env_file=None, db_synchronous="SOMETIMES")
