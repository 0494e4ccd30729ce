"""Ranking of category-level recommendations and follow-up actions."""

from typing import Dict, List, Mapping, Optional, Tuple

from repohealth.config import RankingConfig, resolve_category
from repohealth.types import AuditResult, Category

PRIORITY: Tuple[Category, ...] = (
    Category.SECURITY,
    Category.BRANCH_PROTECTION,
    Category.CICD,
    Category.DOCUMENTATION,
)

# (score < 40, score < threshold)
MESSAGES: Dict[Category, Tuple[str, str]] = {
    Category.SECURITY: (
        "Critical security issues need immediate attention",
        "Security practices need improvement",
    ),
    Category.BRANCH_PROTECTION: (
        "Branch protection is critically lacking",
        "Branch protection rules need strengthening",
    ),
    Category.CICD: (
        "CI/CD pipeline needs significant improvement",
        "CI/CD practices could be enhanced",
    ),
    Category.DOCUMENTATION: (
        "Essential documentation is missing",
        "Documentation could be more comprehensive",
    ),
}

ACTIONS: Dict[Category, Tuple[str, ...]] = {
    Category.SECURITY: (
        "Enable security features in repository settings",
        "Add a SECURITY.md file",
        "Set up Dependabot alerts",
        "Review and update dependencies",
    ),
    Category.BRANCH_PROTECTION: (
        "Enable branch protection on the main branches",
        "Require pull request reviews",
        "Set up required status checks",
        "Enable admin enforcement",
    ),
    Category.CICD: (
        "Add an automated testing workflow",
        "Set up security scanning",
        "Implement release automation",
        "Add code quality checks",
    ),
    Category.DOCUMENTATION: (
        "Create missing documentation files",
        "Improve README structure and content",
        "Add contributing guidelines",
        "Set up issue and PR templates",
    ),
}

# Cheap fixes worth doing first, and larger investments; (category, below, goal)
QUICK_WINS: Tuple[Tuple[Category, int, str], ...] = (
    (Category.DOCUMENTATION, 70, "Add missing documentation files"),
    (Category.BRANCH_PROTECTION, 70, "Enable branch protection rules"),
)
LONG_TERM_GOALS: Tuple[Tuple[Category, int, str], ...] = (
    (Category.SECURITY, 80, "Implement comprehensive security practices"),
    (Category.CICD, 80, "Establish robust CI/CD pipeline"),
)

CRITICAL_BELOW = 40

FALLBACK_NOTE = (
    "Remote repository data was unavailable; scores come from local file analysis. "
    "Check API access to include repository settings"
)


def category_message(category: Category, score: int) -> str:
    critical, moderate = MESSAGES[category]
    return critical if score < CRITICAL_BELOW else moderate


def _scored(categories: Mapping[Category, AuditResult]) -> Dict[Category, AuditResult]:
    """Results keyed by resolved category, without errored ones."""
    resolved = {resolve_category(key): result for key, result in categories.items()}
    return {c: r for c, r in resolved.items() if r.error is None}


def _goals(categories: Mapping[Category, AuditResult], table) -> Tuple[str, ...]:
    scored = _scored(categories)
    return tuple(goal for category, below, goal in table
                 if category in scored and scored[category].score < below)


def quick_wins(categories: Mapping[Category, AuditResult]) -> Tuple[str, ...]:
    return _goals(categories, QUICK_WINS)


def long_term_goals(categories: Mapping[Category, AuditResult]) -> Tuple[str, ...]:
    return _goals(categories, LONG_TERM_GOALS)


class RecommendationRanker:
    """Turns low-scoring categories into a short, prioritized action list."""

    def __init__(self, config: Optional[RankingConfig] = None):
        self.config = config or RankingConfig()

    def _low(self, categories: Mapping[Category, AuditResult]) -> List[Tuple[Category, AuditResult]]:
        low = [(c, r) for c, r in _scored(categories).items() if r.score < self.config.threshold]
        low.sort(key=lambda item: PRIORITY.index(item[0]))
        return low

    def rank(self, categories: Mapping[Category, AuditResult], fallback: bool = False) -> List[str]:
        """Build the recommendation list.

        Args:
            categories: One audit result per category; errored results are
                reported as critical issues elsewhere and skipped here
            fallback: Whether the run fell back to local analysis

        Returns:
            At most ``config.limit`` unique messages, category entries in
            priority order followed by the fallback note

        Raises:
            ConfigurationError: If a result is keyed by an unknown category
        """
        ranked: List[str] = []
        for category, result in self._low(categories):
            message = category_message(category, result.score)
            if message not in ranked:
                ranked.append(message)
        if fallback and FALLBACK_NOTE not in ranked:
            ranked.append(FALLBACK_NOTE)
        return ranked[:self.config.limit]

    def actions(self, categories: Mapping[Category, AuditResult]) -> Dict[Category, Tuple[str, ...]]:
        """Follow-up actions for every category below the threshold, in priority order."""
        return {category: ACTIONS[category] for category, _ in self._low(categories)}
