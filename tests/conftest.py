"""pytest configuration and fixtures."""

from __future__ import annotations

from collections.abc import Callable, Generator
from typing import Any

import pytest

from src.tools.thinking_session import ThinkingSession, reset_session_manager


@pytest.fixture(autouse=True)
def fresh_session_manager() -> Generator[None, None, None]:
    """Give every test an empty global session registry."""
    reset_session_manager()
    yield
    reset_session_manager()


@pytest.fixture
def session() -> ThinkingSession:
    """Provide an empty thinking session."""
    return ThinkingSession("test")


@pytest.fixture
def make_input() -> Callable[..., dict[str, Any]]:
    """Build a raw thought record with sensible defaults."""

    def _make(**overrides: Any) -> dict[str, Any]:
        raw: dict[str, Any] = {
            "thought": "Frame the problem before solving it.",
            "thought_number": 1,
            "total_thoughts": 3,
            "next_thought_needed": True,
            "stage": "Problem Definition",
        }
        raw.update(overrides)
        return raw

    return _make
