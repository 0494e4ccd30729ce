"""Remote/local source resolution for an audit run."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, Mapping, Optional

from repohealth.auditors import CategoryAuditor
from repohealth.sources import Source
from repohealth.types import AuditResult, Category

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Resolution:
    """Results of one resolved run.

    Attributes:
        results: One result per category, all from the same source
        source: The source the results came from
        fallback: True when a remote run was discarded for the local one
    """
    results: Dict[Category, AuditResult]
    source: Source
    fallback: bool = False


class SourceResolver:
    """Runs the category auditors and picks the data source for the report.

    All auditors run concurrently against the remote source when one is
    configured. If any of them hit a transport failure, every remote result
    is discarded and all auditors re-run against the local checkout, so a
    report never mixes remote and local check sets.

    Args:
        local: Filesystem source, always available as the fallback
        remote: Optional hosting API source
    """

    def __init__(self, local: Source, remote: Optional[Source] = None):
        self.local = local
        self.remote = remote

    def run(self, auditors: Mapping[Category, CategoryAuditor]) -> Resolution:
        if self.remote is None:
            return Resolution(self._run_all(auditors, self.local), self.local)

        results = self._run_all(auditors, self.remote)
        failed = [r for r in results.values() if r.transport_failure]
        if not failed:
            return Resolution(results, self.remote)

        logger.warning(
            "%s unavailable (%s); re-running all audits against %s",
            self.remote.describe(), failed[0].error, self.local.describe(),
        )
        return Resolution(self._run_all(auditors, self.local), self.local, fallback=True)

    @staticmethod
    def _run_all(auditors: Mapping[Category, CategoryAuditor], source: Source) -> Dict[Category, AuditResult]:
        with ThreadPoolExecutor(max_workers=max(len(auditors), 1)) as pool:
            futures = {
                category: pool.submit(SourceResolver._run_one, category, auditor, source)
                for category, auditor in auditors.items()
            }
            return {category: future.result() for category, future in futures.items()}

    @staticmethod
    def _run_one(category: Category, auditor: CategoryAuditor, source: Source) -> AuditResult:
        try:
            return auditor.audit(source)
        except Exception as e:  # auditor errors never escape the resolver
            logger.exception("%s audit crashed against %s", category.value, source.describe())
            return AuditResult.failed(category, source.mode, f"audit failed: {e}")
