"""Branch protection auditor.

Remotely, reads the protection rules of the main branches: the default
branch plus ``main`` and ``master`` where they exist. A rule counts only when
every one of those branches has it.

A local checkout has no protection rules, so locally the auditor scores the
practices that stand in for them: a git workflow on feature branches, CI on
pull requests, a review process, a PR template and code owners.
"""

import re
from typing import Any, Dict, Optional, Sequence, Tuple

from repohealth.auditors.base import AuditContext, Check, CategoryAuditor
from repohealth.auditors.cicd import RELEASE_NAMES, load_workflows
from repohealth.auditors.documentation import CONTRIBUTING, PR_TEMPLATE
from repohealth.sources import BRANCHES, REPOSITORY, branch_protection_path
from repohealth.types import Category

CODEOWNERS = (".github/CODEOWNERS", "CODEOWNERS", "docs/CODEOWNERS")
MAIN_BRANCHES = ("main", "master")


def default_branch(ctx: AuditContext) -> str:
    repo = ctx.fetch(REPOSITORY) or {}
    return repo.get("default_branch") or "main"


def audited_branches(ctx: AuditContext) -> Tuple[str, ...]:
    """The default branch first, then main and master when they exist."""
    default = default_branch(ctx)
    existing = set(ctx.listing(BRANCHES))
    return (default,) + tuple(b for b in MAIN_BRANCHES if b != default and b in existing)


def protections(ctx: AuditContext) -> Dict[str, Optional[Dict[str, Any]]]:
    """Protection rules per audited branch, None for an unprotected branch."""
    def read():
        rules = {}
        for branch in audited_branches(ctx):
            data = ctx.fetch(branch_protection_path(branch))
            rules[branch] = data if isinstance(data, dict) else None
        return rules

    return ctx.memo("protections", read)


def _rule(key: str, enabled_flag: bool = False):
    def satisfied(rules: Optional[Dict[str, Any]]) -> bool:
        value = (rules or {}).get(key)
        if enabled_flag:
            return isinstance(value, dict) and bool(value.get("enabled"))
        return bool(value)

    def evaluate(ctx: AuditContext) -> bool:
        return all(satisfied(rules) for rules in protections(ctx).values())

    return evaluate


PROTECTED = "Main branches protected"

REMOTE_CHECKS = (
    Check(PROTECTED, 10, lambda ctx: all(rules is not None for rules in protections(ctx).values()),
          "Enable branch protection on the default and main branches"),
    Check("Required status checks", 20, _rule("required_status_checks"),
          "Require status checks to pass before merging", depends_on=PROTECTED),
    Check("Required pull request reviews", 25, _rule("required_pull_request_reviews"),
          "Require pull request reviews before merging", depends_on=PROTECTED),
    Check("Admin enforcement", 20, _rule("enforce_admins", enabled_flag=True),
          "Enforce protection rules for administrators", depends_on=PROTECTED),
    Check("Push restrictions", 15, _rule("restrictions"),
          "Restrict who can push to the main branches", required=False, depends_on=PROTECTED),
    Check("Linear history", 10, _rule("required_linear_history", enabled_flag=True),
          "Require a linear history", required=False, depends_on=PROTECTED),
)


def _head_branch(ctx: AuditContext) -> Optional[str]:
    head = ctx.text(".git/HEAD")
    if head is None:
        return None
    m = re.match(r"ref:\s*refs/heads/(\S+)", head.strip())
    return m.group(1) if m else None  # detached HEAD


def local_default_branch(ctx: AuditContext) -> str:
    """Default branch from origin's HEAD, else main/master, else main."""
    origin_head = ctx.text(".git/refs/remotes/origin/HEAD")
    if origin_head:
        m = re.match(r"ref:\s*refs/remotes/origin/(\S+)", origin_head.strip())
        if m:
            return m.group(1)
    remote_branches = set(ctx.listing(".git/refs/remotes/origin"))
    packed = ctx.text(".git/packed-refs") or ""
    for name in ("main", "master"):
        if name in remote_branches or f"refs/remotes/origin/{name}" in packed:
            return name
    return "main"


def _feature_branch(ctx: AuditContext) -> bool:
    current = _head_branch(ctx)
    # detached HEAD is unsatisfied
    return current is not None and current != local_default_branch(ctx)


def _pull_request_ci(ctx: AuditContext) -> bool:
    return any("pull_request" in wf.triggers() for wf in load_workflows(ctx))


def _review_process(ctx: AuditContext) -> bool:
    text = ctx.text(*CONTRIBUTING)
    return text is not None and re.search(r"review|approv", text, re.IGNORECASE) is not None


IS_GIT = "Git repository"
HAS_CI = "CI workflows"

LOCAL_CHECKS = (
    Check(IS_GIT, 10, lambda ctx: ctx.exists(".git"), "Initialize a git repository"),
    Check("Default branch named main", 5, lambda ctx: local_default_branch(ctx) == "main",
          'Consider renaming the default branch from "master" to "main"', required=False, depends_on=IS_GIT),
    Check("Feature branch workflow", 5, _feature_branch,
          "Work on feature branches instead of the default branch", required=False, depends_on=IS_GIT),
    Check(".gitignore", 10, lambda ctx: ctx.exists(".gitignore"),
          "Create a .gitignore to prevent accidental commits"),
    Check(HAS_CI, 20, lambda ctx: bool(load_workflows(ctx)),
          "Add GitHub Actions workflows so merges can be gated on checks"),
    Check("Pull request CI", 10, _pull_request_ci,
          "Run workflows on pull_request events", required=False, depends_on=HAS_CI),
    Check("Review process documented", 10, _review_process,
          "Describe the review and approval process in CONTRIBUTING", required=False),
    Check("Pull request template", 10, lambda ctx: ctx.exists(*PR_TEMPLATE),
          "Add a pull request template to guide contributors"),
    Check("CODEOWNERS", 15, lambda ctx: ctx.exists(*CODEOWNERS),
          "Add a CODEOWNERS file to require reviewers for critical paths"),
    Check("Release workflow", 5,
          lambda ctx: any(any(p in wf.stem for p in RELEASE_NAMES) for wf in load_workflows(ctx)),
          "Add an automated release workflow", required=False, depends_on=HAS_CI),
)


class BranchProtectionAuditor(CategoryAuditor):
    category = Category.BRANCH_PROTECTION

    def remote_checks(self) -> Sequence[Check]:
        return REMOTE_CHECKS

    def local_checks(self) -> Sequence[Check]:
        return LOCAL_CHECKS
