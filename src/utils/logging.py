"""Structured logging utilities for Structured Thinking MCP.

Provides a consistent logging interface with:
- Structured JSON logging for production
- Human-readable format for development
- Context injection for session and tool tracking
- Log level configuration from environment/config
- Automatic redaction of sensitive data

All sinks write to stderr; stdout belongs to the stdio MCP transport.
"""

from __future__ import annotations

import os
import sys
from contextvars import ContextVar
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any

from loguru import logger

if TYPE_CHECKING:
    from loguru import Record

# Context variables for request tracking
_session_id: ContextVar[str | None] = ContextVar("session_id", default=None)
_tool_name: ContextVar[str | None] = ContextVar("tool_name", default=None)


class LogFormat(str, Enum):
    """Supported log output formats."""

    JSON = "json"
    TEXT = "text"


class LogLevel(str, Enum):
    """Supported log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


# Sensitive keys to redact from logs
SENSITIVE_KEYS = frozenset(
    {
        "apikey",
        "password",
        "secret",
        "token",
        "authorization",
        "credential",
        "privatekey",
    }
)


def redact_sensitive(data: dict[str, Any], depth: int = 0) -> dict[str, Any]:
    """Recursively redact sensitive values from a dictionary.

    Args:
        data: Dictionary to redact.
        depth: Current recursion depth (prevents infinite recursion).

    Returns:
        Dictionary with sensitive values replaced with "[REDACTED]".

    """
    if depth > 10:
        return data

    result: dict[str, Any] = {}
    for key, value in data.items():
        key_lower = key.lower().replace("_", "").replace("-", "")
        if any(sensitive in key_lower for sensitive in SENSITIVE_KEYS):
            result[key] = "[REDACTED]"
        elif isinstance(value, dict):
            result[key] = redact_sensitive(value, depth + 1)
        elif isinstance(value, list):
            result[key] = [
                redact_sensitive(item, depth + 1) if isinstance(item, dict) else item
                for item in value
            ]
        else:
            result[key] = value
    return result


def inject_context(record: Record) -> None:
    """Loguru patcher: copy context variables into the record's extra and redact it."""
    if session_id := _session_id.get():
        record["extra"].setdefault("session_id", session_id)
    if tool_name := _tool_name.get():
        record["extra"].setdefault("tool", tool_name)
    redacted = redact_sensitive(dict(record["extra"]))
    record["extra"].clear()
    record["extra"].update(redacted)


def text_format(record: Record) -> str:
    """Format log record as human-readable text.

    Args:
        record: Loguru record dictionary.

    Returns:
        Format string for console output.

    """
    context_parts = []
    if session_id := record["extra"].get("session_id"):
        context_parts.append(f"sess={str(session_id)[:12]}")
    if tool_name := record["extra"].get("tool"):
        context_parts.append(f"tool={tool_name}")
    context = f"[{' '.join(context_parts)}] " if context_parts else ""
    # Escape braces so loguru does not treat context as format fields
    context = context.replace("{", "{{").replace("}", "}}")

    return (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
        f"{context}"
        "<level>{message}</level>\n{exception}"
    )


class StructuredLogger:
    """Loguru sink configuration with context injection.

    Creating one replaces every loguru handler. Modules keep logging through
    ``from loguru import logger``; records pick up the session and tool bound
    by ``LogContext``.

    Example:
        StructuredLogger("structured_thinking_mcp", level="DEBUG", log_format="json")
        with LogContext(session_id="abc123", tool_name="capture_thought"):
            logger.info("Processing")

    """

    def __init__(
        self,
        name: str,
        level: LogLevel | str = LogLevel.INFO,
        log_format: LogFormat | str = LogFormat.TEXT,
        log_file: str | Path | None = None,
    ) -> None:
        """Initialize structured logger.

        Args:
            name: Logger name (usually module name).
            level: Minimum log level.
            log_format: Output format (json or text).
            log_file: Optional file path for log output.

        """
        self.name = name
        self.level = LogLevel(level) if isinstance(level, str) else level
        self.log_format = LogFormat(log_format) if isinstance(log_format, str) else log_format

        self._configure_logger(log_file)

    def _configure_logger(self, log_file: str | Path | None = None) -> None:
        """Configure loguru with appropriate handlers."""
        logger.remove()
        logger.configure(patcher=inject_context)

        if self.log_format == LogFormat.JSON:
            logger.add(
                sys.stderr,
                format="{message}",
                level=self.level.value,
                serialize=True,
            )
        else:
            logger.add(
                sys.stderr,
                format=text_format,
                level=self.level.value,
                colorize=True,
            )

        if log_file:
            log_path = Path(log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)

            logger.add(
                log_path,
                format="{message}",
                level=self.level.value,
                serialize=True,
                rotation="100 MB",
                retention="7 days",
                compression="gz",
            )


class LogContext:
    """Context manager setting session/tool context variables for its scope.

    Example:
        with LogContext(session_id="abc123", tool_name="composed_think"):
            logger.info("Processing")  # Includes session_id and tool

    """

    def __init__(self, session_id: str | None = None, tool_name: str | None = None) -> None:
        self.session_id = session_id
        self.tool_name = tool_name
        self._tokens: list[Any] = []

    def __enter__(self) -> LogContext:
        if self.session_id:
            self._tokens.append(_session_id.set(self.session_id))
        if self.tool_name:
            self._tokens.append(_tool_name.set(self.tool_name))
        return self

    def __exit__(self, *args: Any) -> None:
        for token in reversed(self._tokens):
            token.var.reset(token)
        self._tokens.clear()


def get_logger(
    name: str,
    level: LogLevel | str | None = None,
    log_format: LogFormat | str | None = None,
) -> StructuredLogger:
    """Get a configured structured logger.

    Reads configuration from environment variables if not specified:
    - LOG_LEVEL: Minimum log level (DEBUG, INFO, WARNING, ERROR)
    - LOG_FORMAT: Output format (json, text)
    - LOG_FILE: Optional file path for log output

    Args:
        name: Logger name (usually __name__).
        level: Minimum log level (default: from env or INFO).
        log_format: Output format (default: from env or TEXT).

    Returns:
        Configured StructuredLogger instance.

    """
    env_level = os.getenv("LOG_LEVEL", "INFO").upper()
    env_format = os.getenv("LOG_FORMAT", "text").lower()
    env_file = os.getenv("LOG_FILE")

    if level is None:
        try:
            level = LogLevel(env_level)
        except ValueError:
            logger.warning(f"Invalid LOG_LEVEL: {env_level}, using default INFO")
            level = LogLevel.INFO
    if log_format is None:
        try:
            log_format = LogFormat(env_format)
        except ValueError:
            logger.warning(f"Invalid LOG_FORMAT: {env_format}, using default text")
            log_format = LogFormat.TEXT

    return StructuredLogger(
        name=name,
        level=level,
        log_format=log_format,
        log_file=env_file,
    )


_default_logger: StructuredLogger | None = None


def configure_logging() -> StructuredLogger:
    """Configure application logging once and return the default logger."""
    global _default_logger
    if _default_logger is None:
        _default_logger = get_logger("structured_thinking_mcp")
    return _default_logger
