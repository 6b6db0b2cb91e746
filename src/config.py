"""Structured Thinking MCP Configuration.

Centralized configuration management with environment variable support
and Docker secrets integration.

Usage:
    from src.config import get_config
    print(get_config().server.name)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from loguru import logger


def _get_env(key: str, default: str = "") -> str:
    """Get environment variable, treating empty string as unset.

    Also checks Docker secrets path.
    """
    secrets_path = f"/run/secrets/{key.lower()}"
    if os.path.isfile(secrets_path):
        try:
            with Path(secrets_path).open() as f:
                value = f.read().strip()
                if value:
                    return value
        except OSError as e:
            logger.warning(f"Failed to read Docker secret {secrets_path}: {e}")

    value = os.getenv(key, default)
    return value if value else default


def _get_env_int(key: str, default: int) -> int:
    """Get environment variable as integer."""
    value = os.getenv(key)
    if value:
        try:
            return int(value)
        except ValueError:
            logger.warning(f"Invalid integer for {key}: {value}, using default {default}")
    return default


def _get_env_float(key: str, default: float) -> float:
    """Get environment variable as float."""
    value = os.getenv(key)
    if value:
        try:
            return float(value)
        except ValueError:
            logger.warning(f"Invalid float for {key}: {value}, using default {default}")
    return default


def _get_env_bool(key: str, default: bool = False) -> bool:
    """Get environment variable as boolean."""
    value = _get_env(key, "").lower()
    if not value:
        return default
    return value in ("true", "1", "yes")


@dataclass(frozen=True)
class ServerConfig:
    """Server runtime configuration."""

    name: str = field(default_factory=lambda: _get_env("SERVER_NAME", "Structured-Thinking-MCP"))
    transport: str = field(default_factory=lambda: _get_env("SERVER_TRANSPORT", "stdio"))
    host: str = field(default_factory=lambda: _get_env("SERVER_HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: _get_env_int("SERVER_PORT", 8000))


@dataclass(frozen=True)
class MemoryConfig:
    """Thought memory tiers."""

    short_term_capacity: int = field(
        default_factory=lambda: _get_env_int("MEMORY_SHORT_TERM_CAPACITY", 10)
    )
    importance_threshold: float = field(
        default_factory=lambda: _get_env_float("MEMORY_IMPORTANCE_THRESHOLD", 0.7)
    )


@dataclass(frozen=True)
class InputLimitsConfig:
    """Input size limits (CWE-400 mitigation)."""

    max_thought_size: int = field(default_factory=lambda: _get_env_int("MAX_THOUGHT_SIZE", 10000))
    max_tags: int = field(default_factory=lambda: _get_env_int("MAX_TAGS", 50))
    max_thoughts_per_session: int = field(
        default_factory=lambda: _get_env_int("MAX_THOUGHTS_PER_SESSION", 1000)
    )


@dataclass(frozen=True)
class SessionConfig:
    """Session management configuration."""

    default_session_id: str = field(
        default_factory=lambda: _get_env("DEFAULT_SESSION_ID", "default")
    )
    max_age_minutes: int = field(
        default_factory=lambda: _get_env_int("SESSION_MAX_AGE_MINUTES", 60)
    )
    cleanup_interval_seconds: int = field(
        default_factory=lambda: _get_env_int("CLEANUP_INTERVAL_SECONDS", 300)
    )
    cleanup_enabled: bool = field(
        default_factory=lambda: _get_env_bool("SESSION_CLEANUP_ENABLED", True)
    )


@dataclass(frozen=True)
class Config:
    """Root configuration object."""

    server: ServerConfig = field(default_factory=ServerConfig)
    memory: MemoryConfig = field(default_factory=MemoryConfig)
    input_limits: InputLimitsConfig = field(default_factory=InputLimitsConfig)
    session: SessionConfig = field(default_factory=SessionConfig)

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary (for logging/debugging)."""
        return {
            "server": {
                "name": self.server.name,
                "transport": self.server.transport,
                "host": self.server.host,
                "port": self.server.port,
            },
            "memory": {
                "short_term_capacity": self.memory.short_term_capacity,
                "importance_threshold": self.memory.importance_threshold,
            },
            "input_limits": {
                "max_thought_size": self.input_limits.max_thought_size,
                "max_tags": self.input_limits.max_tags,
                "max_thoughts_per_session": self.input_limits.max_thoughts_per_session,
            },
            "session": {
                "default_session_id": self.session.default_session_id,
                "max_age_minutes": self.session.max_age_minutes,
                "cleanup_interval_seconds": self.session.cleanup_interval_seconds,
                "cleanup_enabled": self.session.cleanup_enabled,
            },
        }


# Global config instance (lazy-loaded)
_config: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def reload_config() -> Config:
    """Reload configuration (for testing)."""
    global _config
    _config = Config()
    return _config
