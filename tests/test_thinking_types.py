"""Unit tests for src/tools/thinking_types.py."""

from __future__ import annotations

import dataclasses

import pytest

from src.tools.thinking_types import (
    QualityMetrics,
    ReasoningPattern,
    Thought,
    ThoughtStage,
    resolve_stage,
)
from src.utils.errors import InvalidStageError


def _thought(**overrides: object) -> Thought:
    fields: dict[str, object] = {
        "content": "x",
        "thought_number": 1,
        "total_thoughts": 1,
        "next_thought_needed": False,
        "stage": ThoughtStage.ANALYSIS,
    }
    fields.update(overrides)
    return Thought(**fields)  # type: ignore[arg-type]


class TestStageVocabulary:
    """Tests for the fixed stage vocabulary."""

    def test_ten_stages_in_order(self) -> None:
        """Stages are declared in reasoning order."""
        assert [s.value for s in ThoughtStage] == [
            "Problem Definition",
            "Plan",
            "Research",
            "Analysis",
            "Ideation",
            "Synthesis",
            "Evaluation",
            "Refinement",
            "Implementation",
            "Conclusion",
        ]

    def test_reasoning_patterns(self) -> None:
        """All five reasoning patterns exist."""
        assert {p.value for p in ReasoningPattern} == {
            "deductive",
            "inductive",
            "abductive",
            "analogical",
            "creative",
        }


class TestResolveStage:
    """Tests for lenient stage resolution."""

    @pytest.mark.parametrize(
        "value",
        ["Problem Definition", "PROBLEM_DEFINITION", "problem_definition", "problem definition"],
    )
    def test_label_and_symbolic_forms_resolve(self, value: str) -> None:
        """Labels and symbolic names resolve in any case."""
        assert resolve_stage(value) is ThoughtStage.PROBLEM_DEFINITION

    def test_exact_value(self) -> None:
        """Exact canonical value resolves."""
        assert resolve_stage("Ideation") is ThoughtStage.IDEATION

    def test_stage_passthrough(self) -> None:
        """An existing stage is returned unchanged."""
        assert resolve_stage(ThoughtStage.CONCLUSION) is ThoughtStage.CONCLUSION

    def test_invalid_stage_lists_all_stages(self) -> None:
        """Unknown stage names every valid stage in the message."""
        with pytest.raises(InvalidStageError) as exc_info:
            resolve_stage("not-a-stage")

        message = str(exc_info.value)
        assert "not-a-stage" in message
        for stage in ThoughtStage:
            assert stage.value in message
        assert exc_info.value.kind == "InvalidStage"


class TestThought:
    """Tests for the immutable Thought value."""

    def test_frozen(self) -> None:
        """Thoughts cannot be mutated in place."""
        thought = _thought()
        with pytest.raises(dataclasses.FrozenInstanceError):
            thought.score = 0.5  # type: ignore[misc]

    def test_with_tag_returns_new_thought(self) -> None:
        """with_tag leaves the original untouched."""
        thought = _thought(tags=("a",))
        tagged = thought.with_tag("b")

        assert thought.tags == ("a",)
        assert tagged.tags == ("a", "b")
        assert tagged.created_at == thought.created_at

    def test_with_tag_keeps_duplicates(self) -> None:
        """Tags are appended, never deduplicated."""
        tagged = _thought().with_tag("deductive").with_tag("deductive")
        assert tagged.tags == ("deductive", "deductive")

    def test_to_dict(self) -> None:
        """to_dict uses wire names."""
        data = _thought(score=0.4, tags=("t",), branch_id="b").to_dict()
        assert data["thoughtNumber"] == 1
        assert data["stage"] == "Analysis"
        assert data["tags"] == ["t"]
        assert data["branchId"] == "b"
        assert data["timestamp"].endswith("+00:00")


class TestQualityMetrics:
    """Tests for QualityMetrics."""

    def test_defaults_zero(self) -> None:
        """All metrics default to zero."""
        assert set(QualityMetrics().to_dict().values()) == {0.0}

    def test_to_dict_order(self) -> None:
        """Metrics are reported in declaration order."""
        assert list(QualityMetrics().to_dict()) == [
            "coherence",
            "depth",
            "creativity",
            "practicality",
            "relevance",
            "clarity",
        ]
