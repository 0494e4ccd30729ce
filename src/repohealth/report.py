"""Markdown and plain-text renderings of a health report."""

from typing import List

from repohealth.config import CategoryWeights
from repohealth.types import AuditResult, HealthReport

ACTIONS_SHOWN = 3

TITLES = {
    "security": "Security",
    "documentation": "Documentation",
    "cicd": "CI/CD",
    "branch_protection": "Branch Protection",
}


def _status(result: AuditResult) -> str:
    if result.error is not None:
        return "ERROR"
    if result.score >= 80:
        return "PASS"
    if result.score >= 60:
        return "WARN"
    return "FAIL"


def render_markdown(report: HealthReport, weights: CategoryWeights = CategoryWeights(),
                    title: str = "Repository Health Report") -> str:
    """Render *report* as a Markdown document."""
    lines: List[str] = [
        f"# {title}",
        f"Generated: {report.summary.timestamp[:10]}",
        "",
        f"## Overall Score: {report.overall_score}/100 (Grade: {report.grade.value})",
        "",
        "## Category Scores",
        "",
        "| Category | Score | Weight | Status |",
        "| --- | --- | --- | --- |",
    ]
    for category, result in report.categories.items():
        score = "n/a" if result.error is not None else f"{result.score}%"
        lines.append(
            f"| {TITLES.get(category.value, category.value)} | {score} "
            f"| {weights.weight_of(category)}% | {_status(result)} |"
        )

    if report.recommendations:
        lines += ["", "## Priority Recommendations", ""]
        lines += [f"{i}. {rec}" for i, rec in enumerate(report.recommendations, 1)]

    if report.actions:
        lines += ["", "## Suggested Actions"]
        for category, actions in report.actions.items():
            lines += ["", f"### {TITLES.get(category.value, category.value)}", ""]
            lines += [f"- {action}" for action in actions[:ACTIONS_SHOWN]]

    if report.critical_issues:
        lines += ["", "## Critical Issues", ""]
        lines += [f"- {issue}" for issue in report.critical_issues]

    details = [(c, r) for c, r in report.categories.items() if r.issues or r.recommendations]
    if details:
        lines += ["", "## Findings"]
        for category, result in details:
            lines += ["", f"### {TITLES.get(category.value, category.value)}", ""]
            lines += [f"- {issue}" for issue in result.issues]
            lines += [f"- _{rec}_" for rec in result.recommendations]

    summary = report.summary
    if summary.strengths or summary.weaknesses or summary.quick_wins or summary.long_term_goals:
        lines += ["", "## Summary", ""]
        if summary.strengths:
            lines.append(f"**Strengths**: {', '.join(summary.strengths)}")
        if summary.weaknesses:
            lines.append(f"**Areas for Improvement**: {', '.join(summary.weaknesses)}")
        if summary.quick_wins:
            lines.append(f"**Quick Wins**: {', '.join(summary.quick_wins)}")
        if summary.long_term_goals:
            lines.append(f"**Long-term Goals**: {', '.join(summary.long_term_goals)}")

    if summary.local_audit:
        lines += ["", "> Scores are based on local file analysis."]
    return "\n".join(lines) + "\n"


def render_text(report: HealthReport) -> str:
    """Compact terminal summary."""
    lines = [f"Health score: {report.overall_score}/100 (grade {report.grade.value})"]
    for category, result in report.categories.items():
        name = TITLES.get(category.value, category.value)
        if result.error is not None:
            lines.append(f"  {name:<18} error: {result.error}")
        else:
            lines.append(f"  {name:<18} {result.score:>3}%  [{result.source.value}]")
    if report.recommendations:
        lines.append("Recommendations:")
        lines += [f"  {i}. {rec}" for i, rec in enumerate(report.recommendations, 1)]
    if report.critical_issues:
        lines.append("Critical issues:")
        lines += [f"  - {issue}" for issue in report.critical_issues]
    if report.summary.quick_wins:
        lines.append(f"Quick wins: {', '.join(report.summary.quick_wins)}")
    return "\n".join(lines)
