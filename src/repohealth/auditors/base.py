"""Shared machinery for category auditors."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from repohealth.sources import FetchResult, NotFound, Source, TransportError
from repohealth.types import AuditResult, Category, CheckOutcome, SourceMode

logger = logging.getLogger(__name__)


class SourceUnavailable(Exception):
    """The data source could not answer, so the category cannot be scored."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class AuditContext:
    """Per-run read cache over a :class:`Source`.

    A fresh context is created for every audit, so nothing fetched during one
    run leaks into another.
    """

    def __init__(self, source: Source):
        self.source = source
        self._fetched: Dict[str, FetchResult] = {}
        self._memo: Dict[str, Any] = {}

    @property
    def mode(self) -> SourceMode:
        return self.source.mode

    def fetch(self, path: str) -> Optional[Any]:
        """Return the content at *path*, or None when it does not exist.

        Raises:
            SourceUnavailable: If the source reported a transport failure
        """
        if path not in self._fetched:
            self._fetched[path] = self.source.fetch(path)
        result = self._fetched[path]
        if isinstance(result, TransportError):
            raise SourceUnavailable(result.reason)
        if isinstance(result, NotFound):
            return None
        return result.content

    def text(self, *paths: str) -> Optional[str]:
        """Text of the first candidate path that is a file."""
        for path in paths:
            content = self.fetch(path)
            if isinstance(content, str):
                return content
        return None

    def exists(self, *paths: str) -> bool:
        return any(self.fetch(path) is not None for path in paths)

    def listing(self, path: str) -> List[str]:
        content = self.fetch(path)
        return list(content) if isinstance(content, list) else []

    def json(self, path: str) -> Optional[Any]:
        """Parse a JSON file, or return reserved-path data as is."""
        content = self.fetch(path)
        if isinstance(content, str):
            try:
                return json.loads(content)
            except ValueError:
                logger.debug("%s is not valid JSON", path)
                return None
        return content

    def memo(self, key: str, compute: Callable[[], Any]) -> Any:
        if key not in self._memo:
            self._memo[key] = compute()
        return self._memo[key]


@dataclass(frozen=True)
class Check:
    """One weighted, pass/fail compliance check.

    Attributes:
        name: Human-readable check name
        weight: Share of the category's 0-100 scale
        evaluate: Predicate over the audit context
        advice: What to do when the check fails
        required: Failed required checks are issues, others recommendations
        depends_on: Name of a check that must pass first; when it fails this
            check fails silently
    """
    name: str
    weight: int
    evaluate: Callable[[AuditContext], bool]
    advice: str
    required: bool = True
    depends_on: Optional[str] = None


def score_checks(outcomes: Sequence[CheckOutcome]) -> int:
    """Normalize satisfied weights to 0-100; no weight at all scores 0."""
    total = sum(o.weight for o in outcomes)
    if total <= 0:
        return 0
    earned = sum(o.weight for o in outcomes if o.satisfied)
    return int(round(100 * earned / total))


class CategoryAuditor:
    """Base class for the four category auditors.

    Subclasses set :attr:`category` and implement :meth:`remote_checks`; they
    override :meth:`local_checks` when the filesystem needs a different check
    set than the hosting API.
    """

    category: Category

    def remote_checks(self) -> Sequence[Check]:
        raise NotImplementedError

    def local_checks(self) -> Sequence[Check]:
        return self.remote_checks()

    def checks_for(self, mode: SourceMode) -> Sequence[Check]:
        return self.remote_checks() if mode is SourceMode.REMOTE else self.local_checks()

    def audit(self, source: Source) -> AuditResult:
        """Evaluate every check against *source*.

        Transport failures become an ``error`` on the result instead of an
        exception; in remote mode they are flagged so the resolver can fall
        back to the local checkout.
        """
        ctx = AuditContext(source)
        try:
            outcomes, issues, recommendations = self._evaluate(ctx, self.checks_for(source.mode))
        except SourceUnavailable as e:
            logger.info("%s audit against %s failed: %s", self.category.value, source.describe(), e.reason)
            return AuditResult.failed(
                self.category,
                source.mode,
                e.reason,
                transport_failure=source.mode is SourceMode.REMOTE,
            )

        return AuditResult(
            category=self.category,
            score=score_checks(outcomes),
            source=source.mode,
            checks=tuple(outcomes),
            issues=tuple(issues),
            recommendations=tuple(recommendations),
        )

    @staticmethod
    def _evaluate(
        ctx: AuditContext, checks: Sequence[Check]
    ) -> Tuple[List[CheckOutcome], List[str], List[str]]:
        outcomes: List[CheckOutcome] = []
        issues: List[str] = []
        recommendations: List[str] = []
        passed: Dict[str, bool] = {}

        for check in checks:
            if check.depends_on is not None and not passed.get(check.depends_on, False):
                satisfied = False
            else:
                satisfied = bool(check.evaluate(ctx))
                if not satisfied:
                    (issues if check.required else recommendations).append(check.advice)
            passed[check.name] = satisfied
            outcomes.append(CheckOutcome(check.name, satisfied, check.weight, check.required))

        return outcomes, issues, recommendations
