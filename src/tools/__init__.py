"""Structured thinking tools - State managers for the thought lifecycle."""

from .memory import MemoryManager
from .metacognition import MetacognitiveMonitor
from .reasoning_engine import ReasoningEngine
from .thinking_session import (
    ThinkingSession,
    ThinkingSessionManager,
    get_session_manager,
    reset_session_manager,
)
from .thinking_types import (
    QualityMetrics,
    ReasoningPattern,
    Thought,
    ThoughtInput,
    ThoughtStage,
    resolve_stage,
)
from .validation import validate_thought

__all__ = [
    # Types
    "QualityMetrics",
    "ReasoningPattern",
    "Thought",
    "ThoughtInput",
    "ThoughtStage",
    "resolve_stage",
    # Components
    "MemoryManager",
    "MetacognitiveMonitor",
    "ReasoningEngine",
    "validate_thought",
    # Sessions
    "ThinkingSession",
    "ThinkingSessionManager",
    "get_session_manager",
    "reset_session_manager",
]
