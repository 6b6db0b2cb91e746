"""Utility modules for Structured Thinking MCP."""

from .errors import (
    InvalidStageError,
    SessionNotFoundError,
    ThinkingError,
    ThoughtNotFoundError,
    ThoughtValidationError,
    ToolExecutionError,
)
from .schema import failure_envelope, is_success, safe_json_serialize, success_envelope
from .session import SessionManager

__all__ = [
    "InvalidStageError",
    "SessionNotFoundError",
    "ThinkingError",
    "ThoughtNotFoundError",
    "ThoughtValidationError",
    "ToolExecutionError",
    "failure_envelope",
    "is_success",
    "safe_json_serialize",
    "success_envelope",
    "SessionManager",
]
