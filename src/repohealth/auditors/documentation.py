"""Documentation auditor.

Scores the presence and basic structure of the community files a maintainer
expects in a repository: README, CHANGELOG, CONTRIBUTING, CODE_OF_CONDUCT,
LICENSE, issue templates and a pull request template. The same check set is
used in both modes since everything it needs is a plain file.
"""

import re
from typing import Optional, Sequence

from repohealth.auditors.base import AuditContext, Check, CategoryAuditor
from repohealth.types import Category

README = ("README.md", "README.rst", "README.txt", "README")
CHANGELOG = ("CHANGELOG.md", "CHANGES.md", "HISTORY.md", "CHANGELOG")
CONTRIBUTING = ("CONTRIBUTING.md", ".github/CONTRIBUTING.md", "docs/CONTRIBUTING.md")
CODE_OF_CONDUCT = ("CODE_OF_CONDUCT.md", ".github/CODE_OF_CONDUCT.md", "docs/CODE_OF_CONDUCT.md")
LICENSE = ("LICENSE", "LICENSE.md", "LICENSE.txt", "COPYING")
ISSUE_TEMPLATE_DIR = ".github/ISSUE_TEMPLATE"
PR_TEMPLATE = (
    ".github/PULL_REQUEST_TEMPLATE.md",
    ".github/pull_request_template.md",
    "PULL_REQUEST_TEMPLATE.md",
    "docs/pull_request_template.md",
)

KNOWN_LICENSES = ("MIT", "Apache", "GPL", "BSD", "ISC", "Mozilla Public License", "Unlicense")


def _matches(paths: Sequence[str], pattern: str, flags: int = re.IGNORECASE):
    regex = re.compile(pattern, flags)

    def evaluate(ctx: AuditContext) -> bool:
        text = ctx.text(*paths)
        return text is not None and regex.search(text) is not None

    return evaluate


def _present(paths: Sequence[str]):
    def evaluate(ctx: AuditContext) -> bool:
        return ctx.text(*paths) is not None

    return evaluate


def issue_templates(ctx: AuditContext) -> int:
    """Number of issue templates, markdown or issue forms, excluding config."""
    return sum(
        1 for name in ctx.listing(ISSUE_TEMPLATE_DIR)
        if name.lower().endswith((".md", ".yml", ".yaml")) and name.lower() not in ("config.yml", "config.yaml")
    )


def _substantive_code_of_conduct(ctx: AuditContext) -> bool:
    text: Optional[str] = ctx.text(*CODE_OF_CONDUCT)
    if text is None:
        return False
    return bool(re.search(r"contributor covenant", text, re.IGNORECASE)) or len(text) >= 500


def _recognized_license(ctx: AuditContext) -> bool:
    text = ctx.text(*LICENSE)
    return text is not None and any(name in text for name in KNOWN_LICENSES)


CHECKS = (
    Check("README", 10, _present(README), "Create a README.md"),
    Check("README title", 3, _matches(README, r"^(#\s+\S|\S.*\n[=]{3,})", re.MULTILINE),
          "Add a title header to the README", required=False, depends_on="README"),
    Check("README description", 5, _matches(README, r"description|what|purpose|overview"),
          "Add a description section to the README", required=False, depends_on="README"),
    Check("README installation", 4, _matches(README, r"install|setup|getting started"),
          "Add installation instructions to the README", required=False, depends_on="README"),
    Check("README usage", 4, _matches(README, r"usage|example|how to"),
          "Add usage examples to the README", required=False, depends_on="README"),
    Check("README contributing", 2, _matches(README, r"contribut|development"),
          "Add a contributing section to the README", required=False, depends_on="README"),
    Check("README license", 1, _matches(README, r"license"),
          "Mention the license in the README", required=False, depends_on="README"),
    Check("README badges", 1, _matches(README, r"!\[[^\]]*\]\([^)]*(badge|shields\.io|/actions/workflows/)[^)]*\)"),
          "Consider adding status badges to the README", required=False, depends_on="README"),

    Check("CHANGELOG", 7, _present(CHANGELOG), "Create a CHANGELOG.md"),
    Check("CHANGELOG versions", 4, _matches(CHANGELOG, r"^##\s+\[?v?\d+\.\d+\.\d+\]?", re.MULTILINE),
          "Add version entries to the CHANGELOG", depends_on="CHANGELOG"),
    Check("CHANGELOG categories", 4, _matches(CHANGELOG, r"^###\s+(Added|Changed|Deprecated|Removed|Fixed|Security)",
                                              re.MULTILINE | re.IGNORECASE),
          "Use standard changelog categories (Added, Changed, Fixed, ...)", required=False, depends_on="CHANGELOG"),

    Check("CONTRIBUTING", 8, _present(CONTRIBUTING), "Create a CONTRIBUTING.md"),
    Check("CONTRIBUTING setup", 3, _matches(CONTRIBUTING, r"setup|development|local"),
          "Add development setup guidelines to CONTRIBUTING", required=False, depends_on="CONTRIBUTING"),
    Check("CONTRIBUTING pull requests", 2, _matches(CONTRIBUTING, r"pull request|\bPRs?\b|merge"),
          "Describe the pull request process in CONTRIBUTING", required=False, depends_on="CONTRIBUTING"),
    Check("CONTRIBUTING testing", 2, _matches(CONTRIBUTING, r"test"),
          "Add testing guidelines to CONTRIBUTING", required=False, depends_on="CONTRIBUTING"),

    Check("CODE_OF_CONDUCT", 7, _present(CODE_OF_CONDUCT), "Create a CODE_OF_CONDUCT.md"),
    Check("CODE_OF_CONDUCT substance", 3, _substantive_code_of_conduct,
          "Consider using the Contributor Covenant", required=False, depends_on="CODE_OF_CONDUCT"),

    Check("LICENSE", 8, _present(LICENSE), "Add a LICENSE file"),
    Check("LICENSE recognized", 7, _recognized_license,
          "Use a standard open source license", depends_on="LICENSE"),

    Check("Issue templates", 5, lambda ctx: issue_templates(ctx) >= 1,
          "Create issue templates for bugs and features"),
    Check("Multiple issue templates", 3, lambda ctx: issue_templates(ctx) >= 2,
          "Consider adding more issue templates", required=False, depends_on="Issue templates"),

    Check("Pull request template", 3, _present(PR_TEMPLATE), "Create a pull request template"),
    Check("Pull request checklist", 2, _matches(PR_TEMPLATE, r"checklist|checkbox|- \[[ x]\]"),
          "Add a checklist to the pull request template", required=False, depends_on="Pull request template"),
    Check("Pull request description prompt", 2, _matches(PR_TEMPLATE, r"description|summary|changes"),
          "Add a description prompt to the pull request template", required=False,
          depends_on="Pull request template"),
)


class DocumentationAuditor(CategoryAuditor):
    category = Category.DOCUMENTATION

    def remote_checks(self) -> Sequence[Check]:
        return CHECKS
