"""Value types shared by the auditors, the aggregator and the report."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple


class Category(str, Enum):
    """The four compliance dimensions a repository is scored on."""

    SECURITY = "security"
    DOCUMENTATION = "documentation"
    CICD = "cicd"
    BRANCH_PROTECTION = "branch_protection"

    @classmethod
    def from_str(cls, name: str) -> "Category":
        """Create from a config key, accepting ``branchProtection`` spellings."""
        key = name.strip().replace("-", "_")
        if key == "branchProtection":
            key = "branch_protection"
        try:
            return cls(key.lower())
        except ValueError:
            raise ValueError(f"Unknown category: {name!r}") from None


class SourceMode(str, Enum):
    """Where an audit read its data from."""

    REMOTE = "remote"
    LOCAL = "local"


class Grade(str, Enum):
    A = "A"
    B = "B"
    C = "C"
    D = "D"
    F = "F"


@dataclass(frozen=True)
class CheckOutcome:
    """Result of evaluating one weighted check."""

    name: str
    satisfied: bool
    weight: int
    required: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "satisfied": self.satisfied,
            "weight": self.weight,
            "required": self.required,
        }


@dataclass(frozen=True)
class AuditResult:
    """Outcome of one category audit.

    Attributes:
        category: Category the result belongs to
        score: Normalized score in [0, 100]; meaningless when ``error`` is set
        checks: Evaluated checks in declaration order
        issues: Advice for unmet required checks
        recommendations: Advice for unmet optional checks
        source: Data source the audit ran against
        error: Reason the category could not be scored, if any
        transport_failure: True when ``error`` came from an unreachable,
            rate-limited or unauthorized remote source
    """

    category: Category
    score: int
    source: SourceMode
    checks: Tuple[CheckOutcome, ...] = ()
    issues: Tuple[str, ...] = ()
    recommendations: Tuple[str, ...] = ()
    error: Optional[str] = None
    transport_failure: bool = False
    max_score: int = 100

    @classmethod
    def failed(
        cls,
        category: Category,
        source: SourceMode,
        reason: str,
        transport_failure: bool = False,
    ) -> "AuditResult":
        """Build the result for a category that could not be scored."""
        return cls(
            category=category,
            score=0,
            source=source,
            error=reason,
            transport_failure=transport_failure,
        )

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category.value,
            "score": self.score,
            "max_score": self.max_score,
            "checks": [c.to_dict() for c in self.checks],
            "issues": list(self.issues),
            "recommendations": list(self.recommendations),
            "source": self.source.value,
            "error": self.error,
            "transport_failure": self.transport_failure,
        }


@dataclass(frozen=True)
class ReportSummary:
    """Report-level metadata."""

    category_count: int
    passing_categories: int
    local_audit: bool
    timestamp: str
    fallback: bool = False
    strengths: Tuple[str, ...] = ()
    weaknesses: Tuple[str, ...] = ()
    quick_wins: Tuple[str, ...] = ()
    long_term_goals: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category_count": self.category_count,
            "passing_categories": self.passing_categories,
            "local_audit": self.local_audit,
            "fallback": self.fallback,
            "timestamp": self.timestamp,
            "strengths": list(self.strengths),
            "weaknesses": list(self.weaknesses),
            "quick_wins": list(self.quick_wins),
            "long_term_goals": list(self.long_term_goals),
        }


@dataclass(frozen=True)
class HealthReport:
    """Root aggregate returned by :meth:`HealthScorer.calculate_health_score`."""

    overall_score: int
    grade: Grade
    categories: Mapping[Category, AuditResult]
    summary: ReportSummary
    recommendations: Tuple[str, ...] = ()
    critical_issues: Tuple[str, ...] = field(default_factory=tuple)
    actions: Mapping[Category, Tuple[str, ...]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert the report to a JSON-ready dictionary."""
        return {
            "overall_score": self.overall_score,
            "grade": self.grade.value,
            "categories": {c.value: r.to_dict() for c, r in self.categories.items()},
            "recommendations": list(self.recommendations),
            "critical_issues": list(self.critical_issues),
            "actions": {c.value: list(a) for c, a in self.actions.items()},
            "summary": self.summary.to_dict(),
        }
