"""Thinking types and data structures.

This module contains the stage vocabulary, the immutable Thought value,
quality metrics and the pydantic request schemas accepted at the tool
boundary.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.utils.errors import InvalidStageError

# =============================================================================
# Enums
# =============================================================================


class ThoughtStage(str, Enum):
    """Named phase of reasoning a thought belongs to."""

    PROBLEM_DEFINITION = "Problem Definition"
    PLAN = "Plan"
    RESEARCH = "Research"
    ANALYSIS = "Analysis"
    IDEATION = "Ideation"
    SYNTHESIS = "Synthesis"
    EVALUATION = "Evaluation"
    REFINEMENT = "Refinement"
    IMPLEMENTATION = "Implementation"
    CONCLUSION = "Conclusion"


class ReasoningPattern(str, Enum):
    """Reasoning pattern attached to a thought as a tag."""

    DEDUCTIVE = "deductive"
    INDUCTIVE = "inductive"
    ABDUCTIVE = "abductive"
    ANALOGICAL = "analogical"
    CREATIVE = "creative"


def resolve_stage(value: str | ThoughtStage) -> ThoughtStage:
    """Resolve a caller-supplied string to a ThoughtStage.

    Callers may send the human-readable label ("Problem Definition") or the
    symbolic name ("PROBLEM_DEFINITION"), in any case.

    Resolution order:
        1. Exact match against canonical stage values.
        2. Case-insensitive match against enum member names.
        3. Case-insensitive match against canonical stage values.

    Args:
        value: Stage label, symbolic name, or an existing ThoughtStage.

    Returns:
        The matching ThoughtStage.

    Raises:
        InvalidStageError: If nothing matches. The message lists all valid stages.

    """
    if isinstance(value, ThoughtStage):
        return value

    for stage in ThoughtStage:
        if stage.value == value:
            return stage

    upper_value = str(value).upper()
    for stage in ThoughtStage:
        if stage.name.upper() == upper_value:
            return stage

    for stage in ThoughtStage:
        if stage.value.upper() == upper_value:
            return stage

    valid = ", ".join(stage.value for stage in ThoughtStage)
    raise InvalidStageError(f"Invalid stage: {value}. Valid stages are: {valid}")


# =============================================================================
# Data Classes
# =============================================================================


@dataclass(frozen=True)
class Thought:
    """A single recorded step in a reasoning sequence.

    Thoughts are immutable. Operations that "update" a thought build a new
    value with ``with_tag`` and replace the stored entry.
    """

    content: str
    thought_number: int
    total_thoughts: int
    next_thought_needed: bool
    stage: ThoughtStage
    is_revision: bool | None = None
    revises_thought: int | None = None
    branch_from_thought: int | None = None
    branch_id: str | None = None
    needs_more_thoughts: bool | None = None
    score: float | None = None
    tags: tuple[str, ...] = ()
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def timestamp(self) -> str:
        """ISO-8601 creation timestamp."""
        return self.created_at.isoformat()

    def with_tag(self, tag: str) -> Thought:
        """Return a copy with ``tag`` appended. Duplicates are kept."""
        return replace(self, tags=(*self.tags, tag))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "thought": self.content,
            "thoughtNumber": self.thought_number,
            "totalThoughts": self.total_thoughts,
            "nextThoughtNeeded": self.next_thought_needed,
            "stage": self.stage.value,
            "isRevision": self.is_revision,
            "revisesThought": self.revises_thought,
            "branchFromThought": self.branch_from_thought,
            "branchId": self.branch_id,
            "needsMoreThoughts": self.needs_more_thoughts,
            "score": self.score,
            "tags": list(self.tags),
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class QualityMetrics:
    """Six derived quality scores. Field order is the reporting order."""

    coherence: float = 0.0
    depth: float = 0.0
    creativity: float = 0.0
    practicality: float = 0.0
    relevance: float = 0.0
    clarity: float = 0.0

    def to_dict(self) -> dict[str, float]:
        """Convert to dictionary."""
        return asdict(self)


# =============================================================================
# Request Schemas
# =============================================================================


class ThoughtInput(BaseModel):
    """Schema-checked input for capture_thought and composed_think.

    Only types are checked here. Structural invariants (numbering, score
    range, revision order) are enforced by ``validate_thought`` so that
    every violation reports a specific rule.
    """

    model_config = ConfigDict(extra="ignore")

    thought: str = Field(description="The content of the current thought")
    thought_number: int = Field(description="Current position in the sequence")
    total_thoughts: int = Field(description="Expected total number of thoughts")
    next_thought_needed: bool = Field(description="Whether another thought should follow")
    stage: str = Field(description="Current thinking stage (e.g., 'Problem Definition')")
    is_revision: bool | None = None
    revises_thought: int | None = None
    branch_from_thought: int | None = None
    branch_id: str | None = None
    needs_more_thoughts: bool | None = None
    score: float | None = None
    tags: list[str] | None = None


class ApplyReasoningRequest(BaseModel):
    """Input for apply_reasoning."""

    thought_id: int
    reasoning_type: str | None = None


class ThoughtLookupRequest(BaseModel):
    """Input for operations that only reference a thought by number."""

    thought_id: int


class BranchRequest(BaseModel):
    """Input for branch_thought."""

    parent_thought_id: int
    branch_id: str = Field(min_length=1)
