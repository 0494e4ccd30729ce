"""repohealth: weighted health scoring for source repositories.

Audits security posture, documentation, CI/CD maturity and branch protection,
from the GitHub API when it is reachable and from the local checkout when it
is not, and reduces them to one score and letter grade.
"""

__version__ = "0.1.0"

# Core components
from repohealth.config import CategoryWeights, ConfigurationError, HealthConfig
from repohealth.health import HealthScorer, calculate_health_score
from repohealth.types import AuditResult, Category, CheckOutcome, Grade, HealthReport

__all__ = [
    "AuditResult",
    "Category",
    "CategoryWeights",
    "CheckOutcome",
    "ConfigurationError",
    "Grade",
    "HealthConfig",
    "HealthReport",
    "HealthScorer",
    "calculate_health_score",
]
