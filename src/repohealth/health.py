"""Health score calculation for a repository."""

import logging
import os
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Mapping, Optional

from repohealth.auditors import CategoryAuditor, build_auditors
from repohealth.config import ConfigurationError, HealthConfig
from repohealth.github import GitHubSource
from repohealth.ranking import RecommendationRanker, long_term_goals, quick_wins
from repohealth.resolver import SourceResolver
from repohealth.scoring import ScoreAggregator
from repohealth.sources import LocalSource, Source
from repohealth.types import AuditResult, Category, HealthReport, ReportSummary, SourceMode

logger = logging.getLogger(__name__)

STRENGTH_ABOVE = 80
WEAKNESS_BELOW = 50


class HealthScorer:
    """Audits a repository and assembles its :class:`HealthReport`.

    Args:
        config: Configuration; weights are validated here
        local: Filesystem source, defaults to ``config.target.path``
        remote: Optional hosting API source
    """

    def __init__(
        self,
        config: Optional[HealthConfig] = None,
        local: Optional[Source] = None,
        remote: Optional[Source] = None,
    ):
        self.config = config or HealthConfig()
        self._init_components(local, remote)

    def _init_components(self, local: Optional[Source], remote: Optional[Source]):
        """Resolve auditors, aggregator, ranker and sources up front."""
        self.auditors: Mapping[Category, CategoryAuditor] = build_auditors()
        weighted = set(self.config.weights.as_mapping())
        if set(self.auditors) != weighted:
            raise ConfigurationError("Every category needs exactly one auditor and one weight")

        self.aggregator = ScoreAggregator(self.config.weights)
        self.ranker = RecommendationRanker(self.config.ranking)
        self.resolver = SourceResolver(
            local=local or LocalSource(self.config.target.path),
            remote=remote,
        )

    @classmethod
    def from_config(cls, config: HealthConfig) -> 'HealthScorer':
        """Build sources from the target settings.

        A GitHub source is used when owner and repo are set; the token is
        read from the environment variable named by ``target.token_env``.
        """
        remote = None
        target = config.target
        if target.has_remote:
            token = os.environ.get(target.token_env) or None
            if token is None:
                logger.warning("%s is not set; GitHub access is anonymous and rate limited", target.token_env)
            remote = GitHubSource(target.owner, target.repo, token=token, config=config.remote)
        return cls(config, local=LocalSource(target.path), remote=remote)

    def calculate_health_score(self) -> HealthReport:
        """Run all audits and build the report.

        Never raises for a category that could not be audited; such
        categories carry an ``error`` and appear in ``critical_issues``.
        """
        resolution = self.resolver.run(self.auditors)
        results = resolution.results

        aggregate = self.aggregator.aggregate(results)
        recommendations = self.ranker.rank(results, fallback=resolution.fallback)
        summary = self._summarize(results, resolution.source.mode is SourceMode.LOCAL, resolution.fallback)

        logger.info(
            "Health score for %s: %d (%s)",
            resolution.source.describe(), aggregate.overall_score, aggregate.grade.value,
        )
        return HealthReport(
            overall_score=aggregate.overall_score,
            grade=aggregate.grade,
            categories=MappingProxyType(dict(results)),
            summary=summary,
            recommendations=tuple(recommendations),
            critical_issues=aggregate.critical_issues,
            actions=MappingProxyType(self.ranker.actions(results)),
        )

    def _summarize(self, results: Mapping[Category, AuditResult], local_audit: bool, fallback: bool) -> ReportSummary:
        threshold = self.config.ranking.threshold
        scored = [(c, r) for c, r in results.items() if r.error is None]
        return ReportSummary(
            category_count=len(results),
            passing_categories=sum(1 for _, r in scored if r.score >= threshold),
            local_audit=local_audit,
            fallback=fallback,
            timestamp=datetime.now(timezone.utc).isoformat(),
            strengths=tuple(f"{c.value}: {r.score}%" for c, r in scored if r.score > STRENGTH_ABOVE),
            weaknesses=tuple(f"{c.value}: {r.score}%" for c, r in scored if r.score < WEAKNESS_BELOW),
            quick_wins=quick_wins(results),
            long_term_goals=long_term_goals(results),
        )


def calculate_health_score(config: Optional[HealthConfig] = None) -> HealthReport:
    """Audit the repository described by *config* (default: the current directory)."""
    return HealthScorer.from_config(config or HealthConfig()).calculate_health_score()
