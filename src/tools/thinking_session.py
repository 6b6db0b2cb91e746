"""Thinking session state manager.

A ThinkingSession owns the ordered thought history and the branch index
for one reasoning sequence, and composes the validator, memory manager,
reasoning engine and metacognitive monitor into the callable operations.

The calling LLM does all reasoning; the session records thoughts, tags
them with heuristic reasoning patterns, scores them and reports summaries.

Every public operation returns a response envelope. Expected failures
(unknown stage, broken invariant, unknown thought number) are converted to
failure envelopes at the operation boundary and never raised to the caller.

Architecture:
    - ThinkingSession: one explicit session object, no module state
    - ThinkingSessionManager: thread-safe registry used by the MCP server,
      serializing operations on a session under one lock
"""

from __future__ import annotations

import functools
from collections.abc import Callable, Generator, Mapping
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Any, ParamSpec

from loguru import logger

from src.tools.memory import MemoryManager
from src.tools.metacognition import MetacognitiveMonitor
from src.tools.reasoning_engine import ReasoningEngine
from src.tools.thinking_types import (
    ApplyReasoningRequest,
    BranchRequest,
    Thought,
    ThoughtInput,
    ThoughtLookupRequest,
)
from src.tools.validation import parse_request, validate_thought
from src.utils.errors import ThinkingError, ThoughtNotFoundError, ThoughtValidationError
from src.utils.schema import success_envelope
from src.utils.session import SessionManager

P = ParamSpec("P")

NO_THOUGHTS_SUMMARY = "No thoughts recorded yet"


def _guarded(
    operation: Callable[P, dict[str, Any]],
) -> Callable[P, dict[str, Any]]:
    """Convert ThinkingError raised by an operation into a failure envelope."""

    @functools.wraps(operation)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> dict[str, Any]:
        try:
            return operation(*args, **kwargs)
        except ThinkingError as e:
            logger.warning(f"{operation.__name__} failed ({e.kind}): {e}")
            return e.to_envelope()

    return wrapper


class ThinkingSession:
    """State and operations for one sequence of thoughts.

    Example usage flow:
        1. capture_thought({...thought_number=1...})
        2. apply_reasoning(1) -> tags the thought with its reasoning pattern
        3. evaluate_thought_quality(1) -> metrics and suggestions
        4. composed_think({...thought_number=2...}) -> all of the above in one call
        5. generate_summary() / clear_history()

    """

    def __init__(
        self,
        session_id: str = "default",
        *,
        memory: MemoryManager | None = None,
        reasoning_engine: ReasoningEngine | None = None,
        monitor: MetacognitiveMonitor | None = None,
        max_thoughts: int | None = None,
        max_thought_size: int | None = None,
        max_tags: int | None = None,
    ) -> None:
        """Initialize an empty session.

        Args:
            session_id: Identifier used in logs and status output.
            memory: Memory manager (defaults to capacity 10, threshold 0.7).
            reasoning_engine: Reasoning pattern engine.
            monitor: Metacognitive quality monitor.
            max_thoughts: Optional limit on history length.
            max_thought_size: Optional limit on thought content length.
            max_tags: Optional limit on tags per incoming thought.

        """
        self.session_id = session_id
        self.memory = memory or MemoryManager()
        self.reasoning_engine = reasoning_engine or ReasoningEngine()
        self.monitor = monitor or MetacognitiveMonitor()
        self.max_thoughts = max_thoughts
        self.max_thought_size = max_thought_size
        self.max_tags = max_tags

        self._history: list[Thought] = []
        self._branches: dict[str, list[Thought]] = {}
        # thought_number -> position of the first thought captured with it
        self._index: dict[int, int] = {}
        self.active_branch_id: str | None = None
        self.created_at = datetime.now(UTC)
        self.updated_at = self.created_at

    # -------------------------------------------------------------------------
    # State access
    # -------------------------------------------------------------------------

    @property
    def history(self) -> list[Thought]:
        """Thought history in capture order."""
        return list(self._history)

    @property
    def branches(self) -> dict[str, list[Thought]]:
        """Branch index: branch ID -> thoughts recorded on that branch."""
        return {bid: list(thoughts) for bid, thoughts in self._branches.items()}

    def __len__(self) -> int:
        return len(self._history)

    def touch(self) -> None:
        """Mark the session as active now."""
        self.updated_at = datetime.now(UTC)

    def find_thought(self, thought_id: int) -> Thought | None:
        """Return the first captured thought with this number, if any."""
        position = self._index.get(thought_id)
        return None if position is None else self._history[position]

    def _require_thought(self, thought_id: int, *, label: str = "Thought") -> Thought:
        thought = self.find_thought(thought_id)
        if thought is None:
            raise ThoughtNotFoundError(thought_id, label=label)
        return thought

    def _validate(self, raw: ThoughtInput | Mapping[str, Any]) -> Thought:
        thought = validate_thought(
            raw, max_thought_size=self.max_thought_size, max_tags=self.max_tags
        )
        if self.max_thoughts is not None and len(self._history) >= self.max_thoughts:
            raise ThoughtValidationError(
                f"Invalid thought data: Session thought limit reached ({self.max_thoughts})"
            )
        return thought

    def _record(self, thought: Thought) -> None:
        """Append to history and do branch bookkeeping."""
        self._index.setdefault(thought.thought_number, len(self._history))
        self._history.append(thought)

        if thought.branch_from_thought is not None and thought.branch_id:
            self._branches.setdefault(thought.branch_id, []).append(thought)

        self.updated_at = datetime.now(UTC)

    def _replace(self, previous: Thought, updated: Thought) -> None:
        """Replace a stored thought everywhere it is held."""
        for idx, stored in enumerate(self._history):
            if stored is previous:
                self._history[idx] = updated
        for thoughts in self._branches.values():
            for idx, stored in enumerate(thoughts):
                if stored is previous:
                    thoughts[idx] = updated
        self.memory.replace(previous, updated)
        self.updated_at = datetime.now(UTC)

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    @_guarded
    def capture_thought(self, raw: ThoughtInput | Mapping[str, Any]) -> dict[str, Any]:
        """Validate a thought and store it in memory and history."""
        thought = self._validate(raw)
        self.memory.consolidate(thought)
        self._record(thought)

        logger.debug(
            f"[{self.session_id}] Captured thought {thought.thought_number}/"
            f"{thought.total_thoughts} ({thought.stage.value})"
        )

        return success_envelope(
            thoughtCaptured={
                "thoughtNumber": thought.thought_number,
                "stage": thought.stage.value,
                "timestamp": thought.timestamp,
                "branch": thought.branch_id,
            }
        )

    @_guarded
    def apply_reasoning(
        self,
        thought_id: int,
        reasoning_type: str | None = None,
    ) -> dict[str, Any]:
        """Tag a stored thought with its stage's reasoning pattern.

        ``reasoning_type`` only changes the pattern reported back; the tag
        appended is always the pattern mapped from the thought's stage.
        """
        request = parse_request(
            ApplyReasoningRequest,
            {"thought_id": thought_id, "reasoning_type": reasoning_type},
        )
        thought = self._require_thought(request.thought_id)
        mapped = self.reasoning_engine.analyze_thought_pattern(thought)
        updated = self.reasoning_engine.apply_pattern(thought, mapped)
        self._replace(thought, updated)

        return success_envelope(
            reasoningApplied={
                "thoughtNumber": updated.thought_number,
                "pattern": request.reasoning_type or mapped.value,
                "tags": list(updated.tags),
            }
        )

    @_guarded
    def evaluate_thought_quality(self, thought_id: int) -> dict[str, Any]:
        """Compute quality metrics and suggestions for a stored thought."""
        request = parse_request(ThoughtLookupRequest, {"thought_id": thought_id})
        thought = self._require_thought(request.thought_id)
        metrics = self.monitor.evaluate_quality(thought)

        return success_envelope(
            evaluation={
                "thoughtNumber": thought.thought_number,
                "qualityMetrics": metrics.to_dict(),
                "suggestedImprovements": self.monitor.generate_improvement_suggestions(metrics),
            }
        )

    @_guarded
    def retrieve_relevant_thoughts(self, thought_id: int) -> dict[str, Any]:
        """Find long-term thoughts sharing a tag with a stored thought."""
        request = parse_request(ThoughtLookupRequest, {"thought_id": thought_id})
        thought = self._require_thought(request.thought_id)
        related = self.memory.retrieve_relevant(thought)

        return success_envelope(
            retrieval={
                "thoughtNumber": thought.thought_number,
                "relatedThoughtsCount": len(related),
                "relatedThoughts": [
                    {
                        "thoughtNumber": t.thought_number,
                        "stage": t.stage.value,
                        "tags": list(t.tags),
                    }
                    for t in related
                ],
            }
        )

    @_guarded
    def branch_thought(self, parent_thought_id: int, branch_id: str) -> dict[str, Any]:
        """Create a branch from an existing thought.

        A new branch starts empty and becomes the active branch. An existing
        branch is left untouched. No thought is added to the branch here.
        """
        request = parse_request(
            BranchRequest,
            {"parent_thought_id": parent_thought_id, "branch_id": branch_id},
            label="branch request",
        )
        parent = self._require_thought(request.parent_thought_id, label="Parent thought")
        branch_id = request.branch_id

        created = branch_id not in self._branches
        if created:
            self._branches[branch_id] = []
            self.active_branch_id = branch_id
            self.updated_at = datetime.now(UTC)
            logger.debug(
                f"[{self.session_id}] Created branch '{branch_id}' "
                f"from thought {parent.thought_number}"
            )

        return success_envelope(
            branching={
                "parentThoughtNumber": parent.thought_number,
                "branchId": branch_id,
                "isActive": self.active_branch_id == branch_id,
                "created": created,
            }
        )

    @_guarded
    def composed_think(self, raw: ThoughtInput | Mapping[str, Any]) -> dict[str, Any]:
        """Run the full pipeline for one thought.

        validate -> reasoning pattern -> memory -> suggestions -> related
        thoughts -> history and branches. Only validation can fail, and it
        runs before any state changes.
        """
        thought = self.reasoning_engine.apply_reasoning_strategy(self._validate(raw))
        self.memory.consolidate(thought)
        metrics = self.monitor.evaluate_quality(thought)
        suggestions = self.monitor.generate_improvement_suggestions(metrics)
        related = self.memory.retrieve_relevant(thought)
        self._record(thought)

        return success_envelope(
            thoughtAnalysis={
                "currentThought": {
                    "thoughtNumber": thought.thought_number,
                    "totalThoughts": thought.total_thoughts,
                    "nextThoughtNeeded": thought.next_thought_needed,
                    "stage": thought.stage.value,
                    "score": thought.score,
                    "tags": list(thought.tags),
                    "timestamp": thought.timestamp,
                    "branch": thought.branch_id,
                },
                "analysis": {
                    "relatedThoughtsCount": len(related),
                    "qualityMetrics": metrics.to_dict(),
                    "suggestedImprovements": suggestions,
                },
                "context": {
                    "activeBranches": list(self._branches),
                    "thoughtHistoryLength": len(self._history),
                    "currentStage": thought.stage.value,
                },
            }
        )

    @_guarded
    def generate_summary(self) -> dict[str, Any]:
        """Summarize the history by stage, branch, revisions and timeline."""
        if not self._history:
            return success_envelope(summary=NO_THOUGHTS_SUMMARY)

        by_stage: dict[str, list[Thought]] = {}
        for thought in self._history:
            by_stage.setdefault(thought.stage.value, []).append(thought)

        return success_envelope(
            summary={
                "totalThoughts": len(self._history),
                "stages": {
                    stage: {
                        "count": len(thoughts),
                        "averageScore": sum(t.score or 0.0 for t in thoughts) / len(thoughts),
                    }
                    for stage, thoughts in by_stage.items()
                },
                "branches": {bid: len(thoughts) for bid, thoughts in self._branches.items()},
                "revisions": sum(1 for t in self._history if t.is_revision),
                "timeline": [
                    {
                        "number": t.thought_number,
                        "stage": t.stage.value,
                        "score": t.score,
                        "branch": t.branch_id,
                    }
                    for t in self._history
                ],
            }
        )

    @_guarded
    def clear_history(self) -> dict[str, Any]:
        """Drop all thoughts, branches and memory."""
        self._history.clear()
        self._branches.clear()
        self._index.clear()
        self.memory.clear()
        self.active_branch_id = None
        self.updated_at = datetime.now(UTC)
        logger.debug(f"[{self.session_id}] Thinking history cleared")
        return success_envelope(message="Thinking history cleared")

    def status(self) -> dict[str, Any]:
        """Session state overview."""
        return {
            "sessionId": self.session_id,
            "thoughtCount": len(self._history),
            "branches": list(self._branches),
            "activeBranch": self.active_branch_id,
            "memory": self.memory.stats(),
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }


# =============================================================================
# Session Registry
# =============================================================================


SessionFactory = Callable[[str], ThinkingSession]


class ThinkingSessionManager(SessionManager[ThinkingSession]):
    """Thread-safe registry of thinking sessions keyed by session ID.

    Operations on a session run while holding the registry lock, so
    concurrent MCP calls never interleave mutations of the same state.
    """

    def __init__(self, session_factory: SessionFactory | None = None) -> None:
        """Initialize the registry.

        Args:
            session_factory: Builds a new session for an unknown ID.
                Defaults to ``ThinkingSession(session_id)``.

        """
        super().__init__()
        self._factory: SessionFactory = session_factory or ThinkingSession

    def get_or_create(self, session_id: str) -> ThinkingSession:
        """Return the session for ``session_id``, creating it if needed."""
        with self._lock:
            if not self.session_exists(session_id):
                self._register_session(session_id, self._factory(session_id))
                logger.debug(f"Created thinking session {session_id}")
            return self._sessions[session_id]

    @contextmanager
    def use(self, session_id: str) -> Generator[ThinkingSession, None, None]:
        """Yield the (possibly new) session while holding the registry lock.

        Every use counts as activity, so sessions that are only read are not
        aged out by ``cleanup_stale``.
        """
        with self._lock:
            session = self.get_or_create(session_id)
            session.touch()
            yield session

    def remove(self, session_id: str) -> bool:
        """Remove a session. Returns True if it existed."""
        return self._remove_session(session_id) is not None

    def list_sessions(self) -> dict[str, Any]:
        """Overview of all sessions."""
        with self.locked() as sessions:
            return {
                "total": self.session_count(),
                "sessions": [session.status() for session in sessions.values()],
            }


def _default_session_factory(session_id: str) -> ThinkingSession:
    """Build a session from the global configuration."""
    from src.config import get_config

    config = get_config()
    return ThinkingSession(
        session_id,
        memory=MemoryManager(
            short_term_capacity=config.memory.short_term_capacity,
            importance_threshold=config.memory.importance_threshold,
        ),
        max_thoughts=config.input_limits.max_thoughts_per_session,
        max_thought_size=config.input_limits.max_thought_size,
        max_tags=config.input_limits.max_tags,
    )


_session_manager: ThinkingSessionManager | None = None


def get_session_manager() -> ThinkingSessionManager:
    """Get the global session registry used by the MCP server."""
    global _session_manager
    if _session_manager is None:
        _session_manager = ThinkingSessionManager(_default_session_factory)
    return _session_manager


def reset_session_manager() -> None:
    """Drop the global registry (for testing)."""
    global _session_manager
    _session_manager = None
