"""Weighted aggregation of category scores into an overall score and grade."""

from dataclasses import dataclass
from typing import List, Mapping, Optional, Tuple

import numpy as np

from repohealth.config import CategoryWeights, resolve_category
from repohealth.types import AuditResult, Category, Grade

# Inclusive lower bounds, checked top down.
GRADE_BANDS: Tuple[Tuple[int, Grade], ...] = (
    (90, Grade.A),
    (80, Grade.B),
    (70, Grade.C),
    (60, Grade.D),
)


def grade_for(score: int) -> Grade:
    """Map a 0-100 score to its letter grade."""
    for lower, grade in GRADE_BANDS:
        if score >= lower:
            return grade
    return Grade.F


@dataclass(frozen=True)
class Aggregate:
    overall_score: int
    grade: Grade
    critical_issues: Tuple[str, ...] = ()


class ScoreAggregator:
    """Combines category results using fixed category weights.

    Categories whose audit errored are left out of both the weighted sum and
    the total weight, so the remaining categories share the missing weight
    in proportion. Each of them is reported as a critical issue instead.
    """

    def __init__(self, weights: Optional[CategoryWeights] = None):
        self.weights = weights or CategoryWeights()

    def aggregate(self, categories: Mapping[Category, AuditResult]) -> Aggregate:
        """Compute the overall score, grade and critical issues.

        Args:
            categories: One audit result per category

        Returns:
            Aggregate with ``overall_score`` in [0, 100]

        Raises:
            ConfigurationError: If a result is keyed by an unknown category
        """
        scores: List[float] = []
        weights: List[float] = []
        critical: List[str] = []

        for key, result in categories.items():
            category = resolve_category(key)
            if result.error is not None:
                critical.append(f"{category.value}: {result.error}")
                continue
            scores.append(float(np.clip(result.score, 0, 100)))
            weights.append(float(self.weights.weight_of(category)))

        w = np.asarray(weights, dtype=np.float64)
        total_weight = float(w.sum()) if w.size else 0.0
        if total_weight > 0:
            overall = int(round(float(np.dot(np.asarray(scores, dtype=np.float64), w)) / total_weight))
        else:
            overall = 0
        overall = int(np.clip(overall, 0, 100))

        return Aggregate(overall, grade_for(overall), tuple(critical))
