"""Unit tests for src/tools/metacognition.py."""

from __future__ import annotations

import pytest

from src.tools.metacognition import IMPROVEMENT_SUGGESTIONS, MetacognitiveMonitor
from src.tools.thinking_types import QualityMetrics, Thought, ThoughtStage


def _thought(stage: ThoughtStage, score: float | None) -> Thought:
    return Thought(
        content="x",
        thought_number=1,
        total_thoughts=1,
        next_thought_needed=False,
        stage=stage,
        score=score,
    )


@pytest.fixture
def monitor() -> MetacognitiveMonitor:
    return MetacognitiveMonitor()


class TestEvaluateQuality:
    """Tests for quality metric derivation."""

    def test_base_weights(self, monitor: MetacognitiveMonitor) -> None:
        """Metrics are fixed fractions of the score."""
        metrics = monitor.evaluate_quality(_thought(ThoughtStage.ANALYSIS, 1.0))

        assert metrics.coherence == pytest.approx(1.0)
        assert metrics.depth == pytest.approx(0.8)
        assert metrics.creativity == pytest.approx(0.7)
        assert metrics.practicality == pytest.approx(0.9)
        assert metrics.relevance == pytest.approx(0.85)
        assert metrics.clarity == pytest.approx(0.95)

    def test_ideation_creativity_bonus(self, monitor: MetacognitiveMonitor) -> None:
        """Ideation multiplies creativity by 1.2."""
        metrics = monitor.evaluate_quality(_thought(ThoughtStage.IDEATION, 0.8))

        assert metrics.creativity == pytest.approx(0.672)
        assert metrics.coherence == pytest.approx(0.8)
        assert metrics.practicality == pytest.approx(0.72)

    def test_evaluation_practicality_bonus(self, monitor: MetacognitiveMonitor) -> None:
        """Evaluation multiplies practicality by 1.2."""
        metrics = monitor.evaluate_quality(_thought(ThoughtStage.EVALUATION, 0.5))

        assert metrics.practicality == pytest.approx(0.54)
        assert metrics.creativity == pytest.approx(0.35)

    def test_not_clamped(self, monitor: MetacognitiveMonitor) -> None:
        """A stage bonus may push a metric above 1."""
        metrics = monitor.evaluate_quality(_thought(ThoughtStage.EVALUATION, 1.0))
        assert metrics.practicality == pytest.approx(1.08)

    def test_missing_score_is_zero(self, monitor: MetacognitiveMonitor) -> None:
        """A thought without a score gets all zeros."""
        metrics = monitor.evaluate_quality(_thought(ThoughtStage.IDEATION, None))
        assert metrics == QualityMetrics()


class TestSuggestions:
    """Tests for improvement suggestions."""

    def test_all_below_threshold(self, monitor: MetacognitiveMonitor) -> None:
        """Every metric below 0.7 yields its suggestion, in metric order."""
        suggestions = monitor.generate_improvement_suggestions(QualityMetrics())
        assert suggestions == list(IMPROVEMENT_SUGGESTIONS.values())

    def test_threshold_is_strict(self, monitor: MetacognitiveMonitor) -> None:
        """A metric of exactly 0.7 gets no suggestion."""
        metrics = QualityMetrics(
            coherence=0.7,
            depth=0.7,
            creativity=0.69,
            practicality=0.7,
            relevance=0.7,
            clarity=0.7,
        )
        assert monitor.generate_improvement_suggestions(metrics) == [
            "Consider adding more innovative elements"
        ]

    def test_high_score(self, monitor: MetacognitiveMonitor) -> None:
        """A score of 0.9 leaves only creativity below the threshold."""
        suggestions = monitor.suggest_improvements(_thought(ThoughtStage.ANALYSIS, 0.9))
        assert suggestions == ["Consider adding more innovative elements"]

    def test_low_score_gets_everything(self, monitor: MetacognitiveMonitor) -> None:
        """A low score triggers all six suggestions."""
        assert len(monitor.suggest_improvements(_thought(ThoughtStage.PLAN, 0.2))) == 6
