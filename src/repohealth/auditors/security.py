"""Security posture auditor."""

import fnmatch
import re
from typing import Any, Dict, List, Sequence

from repohealth.auditors.base import AuditContext, Check, CategoryAuditor, SourceUnavailable
from repohealth.sources import COMMITS, REPOSITORY, VULNERABILITY_REPORTING
from repohealth.types import Category

SECURITY_POLICY = ("SECURITY.md", ".github/SECURITY.md", "docs/SECURITY.md")
DEPENDENCY_MANIFESTS = (
    "package.json", "pyproject.toml", "requirements.txt", "setup.py", "Pipfile",
    "go.mod", "Cargo.toml", "pom.xml", "build.gradle", "Gemfile", "composer.json",
)
UPDATE_AUTOMATION = (
    ".github/dependabot.yml", ".github/dependabot.yaml",
    "renovate.json", ".github/renovate.json", ".renovaterc.json",
)
SECRET_FILES = (".env", "secrets.json", "credentials.json", "id_rsa")
PRE_COMMIT = ".pre-commit-config.yaml"
SCANNER_CONFIGS = (".gitleaks.toml", ".bandit", ".secrets.baseline", ".snyk")

# Exact pins with published advisories.
KNOWN_VULNERABLE = {
    "lodash": "4.17.15",
    "minimist": "1.2.0",
    "handlebars": "4.0.0",
    "pyyaml": "5.3",
    "urllib3": "1.24.1",
}

SECRET_PATTERNS = (
    re.compile(r"(?:api[_-]?key|token|secret|password)\s*[:=]\s*['\"][^'\"]{8,}", re.IGNORECASE),
    re.compile(r"ghp_[a-zA-Z0-9]{36}"),
    re.compile(r"npm_[a-zA-Z0-9]{36}"),
)


def _pinned_dependencies(ctx: AuditContext) -> Dict[str, str]:
    deps: Dict[str, str] = {}
    package = ctx.json("package.json")
    if isinstance(package, dict):
        for section in ("dependencies", "devDependencies"):
            for name, version in (package.get(section) or {}).items():
                deps[name.lower()] = str(version).lstrip("^~=v ")
    requirements = ctx.text("requirements.txt")
    if requirements:
        for line in requirements.splitlines():
            m = re.match(r"^\s*([A-Za-z0-9_.\-]+)\s*==\s*([^\s;#]+)", line)
            if m:
                deps[m.group(1).lower()] = m.group(2)
    return deps


def vulnerable_dependencies(ctx: AuditContext) -> List[str]:
    """Names of dependencies pinned to a known vulnerable version."""
    return sorted(
        name for name, version in _pinned_dependencies(ctx).items()
        if KNOWN_VULNERABLE.get(name) == version
    )


def _security_settings(ctx: AuditContext) -> Dict[str, Any]:
    repo = ctx.fetch(REPOSITORY) or {}
    settings = repo.get("security_and_analysis")
    if settings is None:
        # GitHub omits the block when the token lacks admin rights, so an
        # absent block says nothing about whether the features are on.
        raise SourceUnavailable("token cannot read repository security settings")
    return settings


def _setting_enabled(key: str):
    def evaluate(ctx: AuditContext) -> bool:
        return (_security_settings(ctx).get(key) or {}).get("status") == "enabled"

    return evaluate


def _vulnerability_reporting(ctx: AuditContext) -> bool:
    data = ctx.fetch(VULNERABILITY_REPORTING)
    return isinstance(data, dict) and bool(data.get("enabled"))


def _clean_commit_messages(ctx: AuditContext) -> bool:
    commits = ctx.fetch(COMMITS) or []
    for commit in commits:
        message = (commit.get("commit") or {}).get("message", "")
        if any(p.search(message) for p in SECRET_PATTERNS):
            return False
    return True


def _policy_mentions(pattern: str):
    regex = re.compile(pattern, re.IGNORECASE)

    def evaluate(ctx: AuditContext) -> bool:
        text = ctx.text(*SECURITY_POLICY)
        return text is not None and regex.search(text) is not None

    return evaluate


def _gitignore_covers(pattern: str):
    regex = re.compile(pattern, re.MULTILINE)

    def evaluate(ctx: AuditContext) -> bool:
        text = ctx.text(".gitignore")
        return text is not None and regex.search(text) is not None

    return evaluate


def _no_committed_secrets(ctx: AuditContext) -> bool:
    present = [name for name in SECRET_FILES if ctx.exists(name)]
    if not present:
        return True
    # a local checkout may hold an ignored .env that was never committed
    patterns = [
        line.strip().lstrip("/") for line in (ctx.text(".gitignore") or "").splitlines()
        if line.strip() and not line.startswith("#")
    ]
    return all(any(fnmatch.fnmatch(name, p) for p in patterns) for name in present)


def _security_tooling(ctx: AuditContext) -> bool:
    package = ctx.json("package.json")
    if isinstance(package, dict):
        scripts = package.get("scripts") or {}
        if any(key in scripts for key in ("audit", "audit:check", "security")):
            return True
    pre_commit = ctx.text(PRE_COMMIT)
    if pre_commit and re.search(r"detect-secrets|gitleaks|bandit|trufflehog", pre_commit):
        return True
    return ctx.exists(*SCANNER_CONFIGS)


REMOTE_CHECKS = (
    Check("Secret scanning", 20, _setting_enabled("secret_scanning"),
          "Enable secret scanning in Settings > Code security"),
    Check("Dependabot security updates", 20, _setting_enabled("dependabot_security_updates"),
          "Enable Dependabot security updates"),
    Check("Private vulnerability reporting", 15, _vulnerability_reporting,
          "Enable private vulnerability reporting", required=False),
    Check("Security policy", 15, lambda ctx: ctx.exists(*SECURITY_POLICY),
          "Create a SECURITY.md file with vulnerability reporting instructions"),
    Check("No known vulnerable dependencies", 20, lambda ctx: not vulnerable_dependencies(ctx),
          "Update dependencies pinned to known vulnerable versions"),
    Check("No secrets in recent commits", 10, _clean_commit_messages,
          "Review and remove exposed secrets from git history"),
)

LOCAL_CHECKS = (
    Check("Security policy", 15, lambda ctx: ctx.exists(*SECURITY_POLICY),
          "Create a SECURITY.md file with vulnerability reporting instructions"),
    Check("Security policy supported versions", 5, _policy_mentions(r"supported\s+versions"),
          "List supported versions in SECURITY.md", required=False, depends_on="Security policy"),
    Check("Security policy reporting instructions", 5, _policy_mentions(r"report(ing)?\s+(a\s+)?vulnerabilit"),
          "Explain how to report a vulnerability in SECURITY.md", required=False, depends_on="Security policy"),
    Check("Security policy contact", 5, _policy_mentions(r"e-?mail|contact|@"),
          "Add contact information to SECURITY.md", required=False, depends_on="Security policy"),
    Check("Dependency manifest", 15, lambda ctx: ctx.exists(*DEPENDENCY_MANIFESTS),
          "Declare dependencies in a manifest file"),
    Check("Dependency update automation", 10, lambda ctx: ctx.exists(*UPDATE_AUTOMATION),
          "Add dependabot.yml for automated dependency updates", required=False),
    Check("No known vulnerable dependencies", 10, lambda ctx: not vulnerable_dependencies(ctx),
          "Update dependencies pinned to known vulnerable versions"),
    Check(".gitignore excludes environment files", 10, _gitignore_covers(r"^\s*[*/]?\.env"),
          "Ignore .env files in .gitignore"),
    Check(".gitignore excludes logs", 5, _gitignore_covers(r"\.log\b|^\s*/?logs/?\s*$"),
          "Ignore log files in .gitignore", required=False),
    Check("No committed secret files", 10, _no_committed_secrets,
          "Remove secret files (.env, credentials) from the repository"),
    Check("Security tooling", 10, _security_tooling,
          "Add dependency audit or secret scanning tooling", required=False),
)


class SecurityAuditor(CategoryAuditor):
    category = Category.SECURITY

    def remote_checks(self) -> Sequence[Check]:
        return REMOTE_CHECKS

    def local_checks(self) -> Sequence[Check]:
        return LOCAL_CHECKS
