"""Stage-driven reasoning pattern tagging.

Each thought stage maps to a reasoning pattern through ordered rules; the
first matching rule wins and deductive reasoning is the fallback. Applying
a pattern appends its name to the thought's tags.
"""

from __future__ import annotations

from src.tools.thinking_types import ReasoningPattern, Thought, ThoughtStage

# Ordered (stages, pattern) rules. First match wins.
STAGE_PATTERN_RULES: tuple[tuple[frozenset[ThoughtStage], ReasoningPattern], ...] = (
    (frozenset({ThoughtStage.ANALYSIS, ThoughtStage.EVALUATION}), ReasoningPattern.DEDUCTIVE),
    (frozenset({ThoughtStage.IDEATION}), ReasoningPattern.CREATIVE),
    (frozenset({ThoughtStage.SYNTHESIS}), ReasoningPattern.INDUCTIVE),
)

DEFAULT_PATTERN = ReasoningPattern.DEDUCTIVE


class ReasoningEngine:
    """Maps thoughts to reasoning patterns and tags them."""

    def analyze_thought_pattern(self, thought: Thought) -> ReasoningPattern:
        """Pick the reasoning pattern for a thought's stage. Does not modify it."""
        for stages, pattern in STAGE_PATTERN_RULES:
            if thought.stage in stages:
                return pattern
        return DEFAULT_PATTERN

    def apply_pattern(self, thought: Thought, pattern: ReasoningPattern) -> Thought:
        """Return a new thought tagged with ``pattern``.

        Repeated application keeps appending; tags are an audit trail of the
        reasoning applied and are never deduplicated.
        """
        return thought.with_tag(pattern.value)

    def apply_reasoning_strategy(self, thought: Thought) -> Thought:
        """Analyze the thought's pattern and return it tagged accordingly."""
        return self.apply_pattern(thought, self.analyze_thought_pattern(thought))
