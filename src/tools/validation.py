"""Thought validation.

Turns a schema-checked ``ThoughtInput`` into an immutable ``Thought``,
enforcing the structural invariants in a fixed order. The first violated
rule is reported and nothing is returned on failure.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from src.tools.thinking_types import Thought, ThoughtInput, resolve_stage
from src.utils.errors import ThoughtValidationError


RequestT = TypeVar("RequestT", bound=BaseModel)


def _describe(error: ValidationError) -> str:
    """Flatten pydantic errors into ``loc: msg; ...``."""
    return "; ".join(
        f"{'.'.join(str(p) for p in err['loc']) or 'input'}: {err['msg']}"
        for err in error.errors()
    )


def parse_request(model: type[RequestT], data: Any, *, label: str = "request") -> RequestT:
    """Validate operation arguments against their request schema.

    Raises:
        ThoughtValidationError: If the arguments are missing or mistyped.

    """
    if isinstance(data, model):
        return data
    if isinstance(data, Mapping):
        data = dict(data)
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ThoughtValidationError(f"Invalid {label}: {_describe(e)}") from e


def parse_thought_input(raw: ThoughtInput | Mapping[str, Any]) -> ThoughtInput:
    """Coerce a raw record into a ThoughtInput.

    Anything that is not a mapping is rejected by the schema.

    Raises:
        ThoughtValidationError: If required fields are missing or mistyped.

    """
    return parse_request(ThoughtInput, raw, label="thought data")


def check_invariants(thought: Thought) -> None:
    """Check the structural invariants of a thought, in order.

    Raises:
        ThoughtValidationError: Naming the first rule that is broken.

    """
    if thought.thought_number < 1:
        raise ThoughtValidationError("Invalid thought data: Thought number must be positive")
    if thought.total_thoughts < thought.thought_number:
        raise ThoughtValidationError(
            "Invalid thought data: Total thoughts must be greater than or equal to thought number"
        )
    if thought.score is not None and not 0.0 <= thought.score <= 1.0:
        raise ThoughtValidationError("Invalid thought data: Score must be between 0 and 1")
    if thought.revises_thought is not None and thought.revises_thought >= thought.thought_number:
        raise ThoughtValidationError(
            f"Invalid thought data: Cannot revise a future thought "
            f"(revises_thought={thought.revises_thought}, "
            f"thought_number={thought.thought_number})"
        )


def check_input_limits(
    thought: Thought,
    max_thought_size: int | None = None,
    max_tags: int | None = None,
) -> None:
    """Check size limits on thought content and tags (CWE-400 mitigation)."""
    if max_thought_size is not None and len(thought.content) > max_thought_size:
        raise ThoughtValidationError(
            f"Invalid thought data: Thought exceeds maximum size ({max_thought_size:,} chars)"
        )
    if max_tags is not None and len(thought.tags) > max_tags:
        raise ThoughtValidationError(
            f"Invalid thought data: Too many tags ({len(thought.tags)} > {max_tags})"
        )


def validate_thought(
    raw: ThoughtInput | Mapping[str, Any],
    *,
    max_thought_size: int | None = None,
    max_tags: int | None = None,
    now: datetime | None = None,
) -> Thought:
    """Validate an incoming record and build a Thought.

    Args:
        raw: ThoughtInput or a mapping with the same wire field names.
        max_thought_size: Optional limit on thought content length.
        max_tags: Optional limit on the number of tags.
        now: Creation timestamp (defaults to the current UTC time).

    Returns:
        A new immutable Thought stamped with ``created_at``.

    Raises:
        InvalidStageError: If the stage cannot be resolved.
        ThoughtValidationError: If a type check, invariant or limit fails.

    """
    data = parse_thought_input(raw)
    stage = resolve_stage(data.stage)

    thought = Thought(
        content=data.thought,
        thought_number=data.thought_number,
        total_thoughts=data.total_thoughts,
        next_thought_needed=data.next_thought_needed,
        stage=stage,
        is_revision=data.is_revision,
        revises_thought=data.revises_thought,
        branch_from_thought=data.branch_from_thought,
        branch_id=data.branch_id,
        needs_more_thoughts=data.needs_more_thoughts,
        score=data.score,
        tags=tuple(data.tags or ()),
        created_at=now or datetime.now(UTC),
    )

    check_invariants(thought)
    check_input_limits(thought, max_thought_size=max_thought_size, max_tags=max_tags)
    return thought
