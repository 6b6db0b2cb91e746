"""Session manager base class.

Provides thread-safe session storage shared by the thinking session registry.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Generator
from contextlib import contextmanager
from datetime import UTC, datetime, timedelta
from typing import Generic, Protocol, TypeVar, runtime_checkable

from src.utils.errors import SessionNotFoundError


@runtime_checkable
class HasUpdatedAt(Protocol):
    """Protocol for objects with an updated_at timestamp."""

    updated_at: datetime


T = TypeVar("T")


class SessionManager(Generic[T]):
    """Thread-safe base class for session management.

    Provides:
    - Thread-safe session storage with RLock
    - Common `_get_session()` lookup with error handling
    - `@contextmanager` helper for atomic session operations

    Usage:
        class MyManager(SessionManager[MyState]):
            def do_something(self, session_id: str) -> dict:
                with self.session(session_id) as state:
                    state.value = "updated"
                    return {"status": "ok"}
    """

    def __init__(self) -> None:
        """Initialize session manager with empty sessions and lock."""
        self._sessions: dict[str, T] = {}
        self._lock = threading.RLock()

    def _get_session(self, session_id: str) -> T:
        """Get session by ID.

        Args:
            session_id: Session identifier.

        Returns:
            Session state object.

        Raises:
            SessionNotFoundError: If session doesn't exist.

        Note:
            This method does NOT acquire the lock. Caller must hold lock
            or use the `session()` context manager.

        """
        if session_id not in self._sessions:
            raise SessionNotFoundError(session_id)
        return self._sessions[session_id]

    @contextmanager
    def session(self, session_id: str) -> Generator[T, None, None]:
        """Context manager for atomic session operations.

        Acquires lock, retrieves session, yields it, and releases lock
        even if an exception occurs.

        Raises:
            SessionNotFoundError: If session doesn't exist.

        """
        with self._lock:
            yield self._get_session(session_id)

    @contextmanager
    def locked(self) -> Generator[dict[str, T], None, None]:
        """Context manager for operations on all sessions."""
        with self._lock:
            yield self._sessions

    def session_exists(self, session_id: str) -> bool:
        """Check if session exists (thread-safe)."""
        with self._lock:
            return session_id in self._sessions

    def session_count(self) -> int:
        """Get number of sessions (thread-safe)."""
        with self._lock:
            return len(self._sessions)

    def _register_session(self, session_id: str, state: T) -> None:
        """Register a new session (thread-safe)."""
        with self._lock:
            self._sessions[session_id] = state

    def _remove_session(self, session_id: str) -> T | None:
        """Remove a session (thread-safe).

        Returns:
            Removed session state, or None if not found.

        """
        with self._lock:
            return self._sessions.pop(session_id, None)

    def cleanup_stale(
        self,
        max_age: timedelta,
        *,
        now: datetime | None = None,
        predicate: Callable[[T], bool] | None = None,
    ) -> list[str]:
        """Remove sessions older than max_age (thread-safe).

        Args:
            max_age: Sessions with `updated_at` older than `now - max_age`
                are removed.
            now: Reference time (defaults to the current UTC time).
            predicate: Optional additional filter. Only sessions where
                `predicate(state)` returns True are eligible for removal.

        Returns:
            List of removed session IDs.

        Raises:
            TypeError: If session state doesn't have `updated_at` attribute.

        """
        if now is None:
            now = datetime.now(UTC)

        cutoff = now - max_age

        with self._lock:
            stale_ids: list[str] = []
            for session_id, state in self._sessions.items():
                if not isinstance(state, HasUpdatedAt):
                    raise TypeError(
                        f"Session state {type(state).__name__} must have 'updated_at' attribute"
                    )
                is_stale = state.updated_at < cutoff
                if is_stale and (predicate is None or predicate(state)):
                    stale_ids.append(session_id)

            for session_id in stale_ids:
                del self._sessions[session_id]

        return stale_ids
