"""CI/CD maturity auditor.

Reads every GitHub Actions workflow under ``.github/workflows`` and checks
that the essential pipelines exist (CI, security scanning, release) and that
the workflows follow basic practices: current actions, explicit token
permissions, caching, tests, linting, matrix and parallel jobs, and no
hardcoded secrets.

Workflows are parsed with PyYAML. A file that does not parse still counts as
a workflow; checks on it fall back to pattern matching over the raw text.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Set, Tuple

import yaml

from repohealth.auditors.base import AuditContext, Check, CategoryAuditor
from repohealth.types import Category

logger = logging.getLogger(__name__)

WORKFLOW_DIR = ".github/workflows"

CI_NAMES = ("ci", "test", "build")
SECURITY_NAMES = ("security", "codeql", "dependency", "scan")
RELEASE_NAMES = ("release", "publish", "deploy")

HARDCODED_SECRET = re.compile(
    r"(?:password|secret|token|api[_-]?key)\s*[:=]\s*['\"](?!\$\{\{)[^'\"]{8,}['\"]",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class Workflow:
    """A workflow file; ``document`` is None when the YAML did not parse."""
    name: str
    text: str
    document: Optional[Dict[str, Any]] = None

    @property
    def stem(self) -> str:
        return self.name.rsplit(".", 1)[0].lower()

    @property
    def jobs(self) -> Dict[str, Any]:
        jobs = (self.document or {}).get("jobs")
        return jobs if isinstance(jobs, dict) else {}

    def triggers(self) -> Set[str]:
        """Event names the workflow runs on."""
        if self.document is None:
            return set(re.findall(r"\b(push|pull_request_target|pull_request|release|schedule|workflow_dispatch)\b",
                                  self.text))
        # YAML 1.1 reads a bare ``on`` key as boolean True
        on = self.document.get("on", self.document.get(True))
        if isinstance(on, str):
            return {on}
        if isinstance(on, list):
            return {str(e) for e in on}
        if isinstance(on, dict):
            return {str(k) for k in on}
        return set()


def _parse(name: str, text: str) -> Workflow:
    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as e:
        logger.debug("Workflow %s is not valid YAML: %s", name, e)
        document = None
    return Workflow(name, text, document if isinstance(document, dict) else None)


def load_workflows(ctx: AuditContext) -> Tuple[Workflow, ...]:
    """All workflow files, read and parsed once per audit run."""
    def read():
        workflows = []
        for name in ctx.listing(WORKFLOW_DIR):
            if not name.lower().endswith((".yml", ".yaml")):
                continue
            text = ctx.text(f"{WORKFLOW_DIR}/{name}")
            if text is not None:
                workflows.append(_parse(name, text))
        return tuple(workflows)

    return ctx.memo("workflows", read)


def _named(patterns: Sequence[str], trigger: Optional[str] = None, text: Optional[str] = None):
    def evaluate(ctx: AuditContext) -> bool:
        for wf in load_workflows(ctx):
            if any(p in wf.stem for p in patterns):
                return True
            if trigger and trigger in wf.triggers():
                return True
            if text and text in wf.text:
                return True
        return False

    return evaluate


def _any_text(pattern: str, flags: int = re.IGNORECASE):
    regex = re.compile(pattern, flags)

    def evaluate(ctx: AuditContext) -> bool:
        return any(regex.search(wf.text) for wf in load_workflows(ctx))

    return evaluate


def _current_checkout(ctx: AuditContext) -> bool:
    for wf in load_workflows(ctx):
        for ref in re.findall(r"actions/checkout@([\w.\-]+)", wf.text):
            if re.fullmatch(r"[0-9a-f]{40}", ref):
                continue
            m = re.match(r"v(\d+)", ref)
            if not m or int(m.group(1)) < 3:
                return False
    return True


def _has_permissions(wf: Workflow) -> bool:
    if wf.document is None:
        return bool(re.search(r"^\s*permissions:", wf.text, re.MULTILINE))
    if "permissions" in wf.document:
        return True
    jobs = wf.jobs
    return bool(jobs) and all(isinstance(j, dict) and "permissions" in j for j in jobs.values())


def _uses_matrix(wf: Workflow) -> bool:
    if wf.document is None:
        return bool(re.search(r"strategy:\s*\n(\s+.*\n)*?\s+matrix:", wf.text))
    return any(
        isinstance(job, dict) and isinstance(job.get("strategy"), dict) and "matrix" in job["strategy"]
        for job in wf.jobs.values()
    )


def _job_count(wf: Workflow) -> int:
    if wf.document is None:
        section = wf.text.split("jobs:", 1)[-1] if "jobs:" in wf.text else ""
        return len(re.findall(r"^\s{2}[A-Za-z_][\w-]*:\s*$", section, re.MULTILINE))
    return len(wf.jobs)


HAS_WORKFLOWS = "Workflows present"

CHECKS = (
    Check(HAS_WORKFLOWS, 15, lambda ctx: bool(load_workflows(ctx)),
          "Add GitHub Actions workflows under .github/workflows"),
    Check("CI workflow", 15, _named(CI_NAMES, trigger="pull_request"),
          "Add a CI workflow that tests every pull request", depends_on=HAS_WORKFLOWS),
    Check("Security workflow", 10, _named(SECURITY_NAMES, text="github/codeql-action"),
          "Consider adding a security scanning workflow (CodeQL, dependency review)",
          required=False, depends_on=HAS_WORKFLOWS),
    Check("Release workflow", 5, _named(RELEASE_NAMES, trigger="release"),
          "Consider adding a release workflow", required=False, depends_on=HAS_WORKFLOWS),
    Check("Current checkout action", 5, _current_checkout,
          "Upgrade actions/checkout to v4 or pin it to a commit SHA",
          required=False, depends_on=HAS_WORKFLOWS),
    Check("Explicit permissions", 10, lambda ctx: all(_has_permissions(wf) for wf in load_workflows(ctx)),
          "Set explicit GITHUB_TOKEN permissions in every workflow", required=False, depends_on=HAS_WORKFLOWS),
    Check("Dependency caching", 5, _any_text(r"actions/cache|cache:|npm ci"),
          "Add caching to improve build times", required=False, depends_on=HAS_WORKFLOWS),
    Check("Runs tests", 10, _any_text(r"test|jest|mocha|cypress|playwright|tox|nox"),
          "Add automated testing to the CI workflow", depends_on=HAS_WORKFLOWS),
    Check("Linting", 5, _any_text(r"lint|eslint|prettier|ruff|flake8|black|format"),
          "Add lint and formatting checks", required=False, depends_on=HAS_WORKFLOWS),
    Check("Matrix builds", 5, lambda ctx: any(_uses_matrix(wf) for wf in load_workflows(ctx)),
          "Use a matrix strategy to test supported versions", required=False, depends_on=HAS_WORKFLOWS),
    Check("Parallel jobs", 5, lambda ctx: any(_job_count(wf) > 1 for wf in load_workflows(ctx)),
          "Split workflows into parallel jobs", required=False, depends_on=HAS_WORKFLOWS),
    Check("No hardcoded secrets", 10, lambda ctx: not any(HARDCODED_SECRET.search(wf.text)
                                                         for wf in load_workflows(ctx)),
          "Move hardcoded credentials in workflows to repository secrets", depends_on=HAS_WORKFLOWS),
    Check("Avoids pull_request_target", 0,
          lambda ctx: not any("pull_request_target" in wf.triggers() for wf in load_workflows(ctx)),
          "Review pull_request_target workflows, they run untrusted code with write access",
          required=False, depends_on=HAS_WORKFLOWS),
)


class CICDAuditor(CategoryAuditor):
    category = Category.CICD

    def remote_checks(self) -> Sequence[Check]:
        return CHECKS
