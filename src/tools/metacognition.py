"""Heuristic quality scoring for thoughts.

Quality metrics are fixed fractions of the caller-supplied score, with a
stage bonus for creativity (Ideation) and practicality (Evaluation).
Metrics are not clamped, so a bonus can push a value above 1.0.
"""

from __future__ import annotations

from dataclasses import fields

from src.tools.thinking_types import QualityMetrics, Thought, ThoughtStage

# Fraction of the base score for each metric
METRIC_WEIGHTS: dict[str, float] = {
    "coherence": 1.0,
    "depth": 0.8,
    "creativity": 0.7,
    "practicality": 0.9,
    "relevance": 0.85,
    "clarity": 0.95,
}

# Multiplicative stage bonuses: stage -> (metric, factor)
STAGE_ADJUSTMENTS: dict[ThoughtStage, tuple[str, float]] = {
    ThoughtStage.IDEATION: ("creativity", 1.2),
    ThoughtStage.EVALUATION: ("practicality", 1.2),
}

SUGGESTION_THRESHOLD = 0.7

IMPROVEMENT_SUGGESTIONS: dict[str, str] = {
    "coherence": "Consider strengthening logical connections",
    "depth": "Try exploring the concept more thoroughly",
    "creativity": "Consider adding more innovative elements",
    "practicality": "Focus on practical applications",
    "relevance": "Ensure alignment with main objectives",
    "clarity": "Try expressing ideas more clearly",
}


class MetacognitiveMonitor:
    """Derives quality metrics and improvement suggestions."""

    def evaluate_quality(self, thought: Thought) -> QualityMetrics:
        """Compute the six quality metrics for a thought.

        A thought without a score gets 0.0 for every metric.
        """
        if thought.score is None:
            values = dict.fromkeys(METRIC_WEIGHTS, 0.0)
        else:
            values = {name: thought.score * weight for name, weight in METRIC_WEIGHTS.items()}

        adjustment = STAGE_ADJUSTMENTS.get(thought.stage)
        if adjustment is not None:
            metric, factor = adjustment
            values[metric] *= factor

        return QualityMetrics(**values)

    def generate_improvement_suggestions(self, metrics: QualityMetrics) -> list[str]:
        """One suggestion per metric below the threshold, in metric order."""
        return [
            IMPROVEMENT_SUGGESTIONS[f.name]
            for f in fields(metrics)
            if getattr(metrics, f.name) < SUGGESTION_THRESHOLD
        ]

    def suggest_improvements(self, thought: Thought) -> list[str]:
        """Evaluate a thought and return its improvement suggestions."""
        return self.generate_improvement_suggestions(self.evaluate_quality(thought))
