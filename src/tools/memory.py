"""Two-tier thought memory.

Short-term memory is a bounded recency buffer. Long-term memory keeps every
thought whose score reaches the importance threshold, grouped by stage.
The tiers are independent: a thought evicted from the buffer stays in
long-term memory and vice versa.
"""

from __future__ import annotations

from collections import deque
from typing import Any

from loguru import logger

from src.tools.thinking_types import Thought, ThoughtStage

DEFAULT_SHORT_TERM_CAPACITY = 10
DEFAULT_IMPORTANCE_THRESHOLD = 0.7


class MemoryManager:
    """Short-term buffer plus importance-filtered long-term store."""

    def __init__(
        self,
        short_term_capacity: int = DEFAULT_SHORT_TERM_CAPACITY,
        importance_threshold: float = DEFAULT_IMPORTANCE_THRESHOLD,
    ) -> None:
        """Initialize empty memory tiers.

        Args:
            short_term_capacity: Number of most recent thoughts kept short-term.
            importance_threshold: Minimum score for long-term retention.

        """
        if short_term_capacity < 1:
            raise ValueError("short_term_capacity must be at least 1")
        self.short_term_capacity = short_term_capacity
        self.importance_threshold = importance_threshold
        self._short_term: deque[Thought] = deque(maxlen=short_term_capacity)
        self._long_term: dict[ThoughtStage, list[Thought]] = {}

    @property
    def short_term(self) -> list[Thought]:
        """Short-term buffer contents, oldest first."""
        return list(self._short_term)

    @property
    def long_term(self) -> dict[ThoughtStage, list[Thought]]:
        """Long-term store keyed by stage, in insertion order."""
        return {stage: list(thoughts) for stage, thoughts in self._long_term.items()}

    def consolidate(self, thought: Thought) -> None:
        """Store a thought in memory.

        Always enters the short-term buffer (oldest evicted past capacity).
        Also enters long-term memory under its stage when its score is at
        least the importance threshold.
        """
        self._short_term.append(thought)

        if thought.score is not None and thought.score >= self.importance_threshold:
            self._long_term.setdefault(thought.stage, []).append(thought)
            logger.debug(
                f"Thought {thought.thought_number} promoted to long-term memory "
                f"(stage={thought.stage.value}, score={thought.score})"
            )

    def retrieve_relevant(self, thought: Thought) -> list[Thought]:
        """Find long-term thoughts sharing at least one tag with ``thought``.

        Results follow storage order (stage insertion order, then insertion
        order within a stage). No ranking and no deduplication.
        """
        query_tags = set(thought.tags)
        if not query_tags:
            return []
        return [
            stored
            for stored_thoughts in self._long_term.values()
            for stored in stored_thoughts
            if any(tag in query_tags for tag in stored.tags)
        ]

    def replace(self, previous: Thought, updated: Thought) -> int:
        """Swap every stored entry that is ``previous`` for ``updated``.

        Matching is by identity, so equal-but-distinct thoughts are untouched.

        Returns:
            Number of entries replaced across both tiers.

        """
        replaced = 0
        for idx in range(len(self._short_term)):
            if self._short_term[idx] is previous:
                self._short_term[idx] = updated
                replaced += 1
        for stored_thoughts in self._long_term.values():
            for idx, stored in enumerate(stored_thoughts):
                if stored is previous:
                    stored_thoughts[idx] = updated
                    replaced += 1
        return replaced

    def clear(self) -> None:
        """Empty both tiers."""
        self._short_term.clear()
        self._long_term.clear()

    def stats(self) -> dict[str, Any]:
        """Memory statistics."""
        return {
            "shortTermCount": len(self._short_term),
            "shortTermCapacity": self.short_term_capacity,
            "longTermCount": sum(len(t) for t in self._long_term.values()),
            "longTermStages": [stage.value for stage in self._long_term],
            "importanceThreshold": self.importance_threshold,
        }
