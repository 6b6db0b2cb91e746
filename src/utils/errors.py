"""Custom exceptions for Structured Thinking MCP."""

from __future__ import annotations

from typing import Any

from src.utils.schema import failure_envelope


class ThinkingError(Exception):
    """Base exception for Structured Thinking MCP.

    Subclasses set ``kind``, the name reported as ``errorKind`` in
    failure envelopes.
    """

    kind = "ThinkingError"

    def to_envelope(self) -> dict[str, Any]:
        """Convert to the failure envelope returned by every operation."""
        return failure_envelope(str(self), self.kind)


class InvalidStageError(ThinkingError):
    """Raised when a stage string cannot be resolved to a ThoughtStage."""

    kind = "InvalidStage"


class ThoughtValidationError(ThinkingError):
    """Raised when an incoming thought breaks a structural invariant."""

    kind = "ValidationError"


class ThoughtNotFoundError(ThinkingError):
    """Raised when a referenced thought number is not in the history."""

    kind = "NotFound"

    def __init__(self, thought_id: int, *, label: str = "Thought") -> None:
        self.thought_id = thought_id
        super().__init__(f"{label} with ID {thought_id} not found")


class SessionNotFoundError(ThinkingError):
    """Raised when a session ID is not found."""

    kind = "SessionNotFound"

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(f"Session not found: {session_id}")


class ToolExecutionError(Exception):
    """Raised when tool execution fails in MCP context.

    Provides structured error information that can be returned
    to the LLM client in a parseable format.
    """

    kind = "ToolExecutionError"

    def __init__(
        self,
        tool_name: str,
        error_message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize tool execution error.

        Args:
            tool_name: Name of the tool that failed.
            error_message: Human-readable error message.
            details: Optional dictionary with additional error details.

        """
        self.tool_name = tool_name
        self.error_message = error_message
        self.details = details or {}
        super().__init__(f"Tool {tool_name} failed: {error_message}")

    def to_mcp_error(self) -> str:
        """Convert to MCP-compatible error format.

        Returns:
            Formatted error string for MCP response.

        """
        return f"[{self.tool_name}] {self.error_message}. Details: {self.details}"

    def to_dict(self) -> dict[str, Any]:
        """Convert to a failure envelope for JSON serialization.

        Returns:
            Dictionary representation of the error.

        """
        envelope = failure_envelope(str(self), self.kind)
        envelope["tool"] = self.tool_name
        if self.details:
            envelope["details"] = self.details
        return envelope
