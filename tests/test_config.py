"""Unit tests for src/config.py."""

from __future__ import annotations

import os
from collections.abc import Generator
from unittest.mock import patch

import pytest

from src.config import (
    Config,
    _get_env,
    _get_env_bool,
    _get_env_float,
    _get_env_int,
    get_config,
    reload_config,
)


@pytest.fixture(autouse=True)
def restore_config() -> Generator[None, None, None]:
    """Rebuild the global config from the real environment after each test."""
    yield
    reload_config()


class TestEnvHelpers:
    """Tests for environment variable helpers."""

    def test_get_env_default(self) -> None:
        """Unset or empty values use the default."""
        with patch.dict(os.environ, {"ST_TEST_EMPTY": ""}):
            assert _get_env("ST_TEST_EMPTY", "fallback") == "fallback"
            assert _get_env("ST_TEST_MISSING", "fallback") == "fallback"

    def test_get_env_value(self) -> None:
        """Set values are returned."""
        with patch.dict(os.environ, {"ST_TEST_VALUE": "hello"}):
            assert _get_env("ST_TEST_VALUE") == "hello"

    def test_get_env_int(self) -> None:
        """Integers parse, garbage falls back."""
        with patch.dict(os.environ, {"ST_INT": "42", "ST_BAD_INT": "many"}):
            assert _get_env_int("ST_INT", 1) == 42
            assert _get_env_int("ST_BAD_INT", 7) == 7
            assert _get_env_int("ST_MISSING_INT", 3) == 3

    def test_get_env_float(self) -> None:
        """Floats parse, garbage falls back."""
        with patch.dict(os.environ, {"ST_FLOAT": "0.55", "ST_BAD_FLOAT": "high"}):
            assert _get_env_float("ST_FLOAT", 0.1) == 0.55
            assert _get_env_float("ST_BAD_FLOAT", 0.7) == 0.7

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [("true", True), ("1", True), ("YES", True), ("false", False), ("0", False)],
    )
    def test_get_env_bool(self, raw: str, expected: bool) -> None:
        """Booleans accept true/1/yes in any case."""
        with patch.dict(os.environ, {"ST_BOOL": raw}):
            assert _get_env_bool("ST_BOOL") is expected

    def test_get_env_bool_default(self) -> None:
        """Unset booleans use the default."""
        assert _get_env_bool("ST_MISSING_BOOL", True) is True


class TestConfig:
    """Tests for the Config dataclasses."""

    def test_defaults(self) -> None:
        """Defaults match the documented values."""
        keys = (
            "SERVER_NAME",
            "SERVER_TRANSPORT",
            "MEMORY_SHORT_TERM_CAPACITY",
            "MEMORY_IMPORTANCE_THRESHOLD",
            "MAX_THOUGHT_SIZE",
            "MAX_TAGS",
            "MAX_THOUGHTS_PER_SESSION",
            "DEFAULT_SESSION_ID",
            "SESSION_MAX_AGE_MINUTES",
        )
        env = {k: v for k, v in os.environ.items() if k not in keys}
        with patch.dict(os.environ, env, clear=True):
            config = Config()

        assert config.server.name == "Structured-Thinking-MCP"
        assert config.server.transport == "stdio"
        assert config.memory.short_term_capacity == 10
        assert config.memory.importance_threshold == 0.7
        assert config.input_limits.max_thought_size == 10000
        assert config.input_limits.max_tags == 50
        assert config.input_limits.max_thoughts_per_session == 1000
        assert config.session.default_session_id == "default"
        assert config.session.max_age_minutes == 60

    def test_env_overrides(self) -> None:
        """Environment variables override defaults."""
        with patch.dict(
            os.environ,
            {
                "MEMORY_SHORT_TERM_CAPACITY": "3",
                "MEMORY_IMPORTANCE_THRESHOLD": "0.5",
                "SERVER_TRANSPORT": "streamable-http",
            },
        ):
            config = reload_config()

        assert config.memory.short_term_capacity == 3
        assert config.memory.importance_threshold == 0.5
        assert config.server.transport == "streamable-http"

    def test_frozen(self) -> None:
        """Config sections are immutable."""
        with pytest.raises(AttributeError):
            get_config().memory.short_term_capacity = 99  # type: ignore[misc]

    def test_get_config_cached(self) -> None:
        """get_config returns the same instance until reloaded."""
        first = get_config()
        assert get_config() is first
        assert reload_config() is not first

    def test_to_dict(self) -> None:
        """to_dict exposes every section."""
        data = get_config().to_dict()
        assert set(data) == {"server", "memory", "input_limits", "session"}
        assert "max_tags" in data["input_limits"]
