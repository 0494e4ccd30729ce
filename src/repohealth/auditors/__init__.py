"""Category auditors.

Each auditor scores one compliance dimension from a fixed, ordered list of
weighted checks and can run against either the hosting API or a local
checkout.
"""

from typing import Dict, Type

from repohealth.auditors.base import AuditContext, Check, CategoryAuditor, SourceUnavailable, score_checks
from repohealth.auditors.branch_protection import BranchProtectionAuditor
from repohealth.auditors.cicd import CICDAuditor
from repohealth.auditors.documentation import DocumentationAuditor
from repohealth.auditors.security import SecurityAuditor
from repohealth.types import Category

AUDITORS: Dict[Category, Type[CategoryAuditor]] = {
    Category.SECURITY: SecurityAuditor,
    Category.DOCUMENTATION: DocumentationAuditor,
    Category.CICD: CICDAuditor,
    Category.BRANCH_PROTECTION: BranchProtectionAuditor,
}


def build_auditors() -> Dict[Category, CategoryAuditor]:
    """One auditor instance per category, in category order."""
    return {category: klass() for category, klass in AUDITORS.items()}


__all__ = [
    'AUDITORS',
    'AuditContext',
    'BranchProtectionAuditor',
    'CICDAuditor',
    'CategoryAuditor',
    'Check',
    'DocumentationAuditor',
    'SecurityAuditor',
    'SourceUnavailable',
    'build_auditors',
    'score_checks',
]
