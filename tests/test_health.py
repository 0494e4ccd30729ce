import pytest

from repohealth import HealthConfig, HealthScorer, calculate_health_score
from repohealth.ranking import FALLBACK_NOTE
from repohealth.sources import COMMITS, REPOSITORY, VULNERABILITY_REPORTING, LocalSource, branch_protection_path
from repohealth.types import AuditResult, Category, Grade, SourceMode

from conftest import DictSource, StubAuditor


def _config(path):
    cfg = HealthConfig()
    cfg.target.path = str(path)
    return cfg


def test_healthy_local_checkout(healthy_repo):
    report = calculate_health_score(_config(healthy_repo))
    assert report.overall_score == 100
    assert report.grade is Grade.A
    assert report.recommendations == ()
    assert report.critical_issues == ()
    assert report.summary.local_audit
    assert not report.summary.fallback
    assert report.summary.passing_categories == 4
    assert set(report.categories) == set(Category)


def test_empty_local_checkout(empty_repo):
    report = calculate_health_score(_config(empty_repo))
    # only security earns points: 20% * 30
    assert report.overall_score == 6
    assert report.grade is Grade.F
    assert len(report.recommendations) == 4
    assert report.recommendations[0] == "Critical security issues need immediate attention"
    assert report.summary.passing_categories == 0
    assert "security: 20%" in report.summary.weaknesses


def test_idempotent(healthy_repo, empty_repo):
    for root in (healthy_repo, empty_repo):
        scorer = HealthScorer(_config(root))
        first, second = scorer.calculate_health_score(), scorer.calculate_health_score()
        assert (first.overall_score, first.grade) == (second.overall_score, second.grade)
        assert first.categories == second.categories


def test_remote_audit_without_fallback(empty_repo):
    remote = DictSource({
        REPOSITORY: {
            "default_branch": "main",
            "security_and_analysis": {
                "secret_scanning": {"status": "enabled"},
                "dependabot_security_updates": {"status": "enabled"},
            },
        },
        VULNERABILITY_REPORTING: {"enabled": True},
        COMMITS: [],
        "SECURITY.md": "# Security\n",
        branch_protection_path("main"): {
            "required_status_checks": {"contexts": ["ci"]},
            "required_pull_request_reviews": {"required_approving_review_count": 1},
            "enforce_admins": {"enabled": True},
            "restrictions": {"users": []},
            "required_linear_history": {"enabled": True},
        },
    })
    scorer = HealthScorer(_config(empty_repo), local=LocalSource(empty_repo), remote=remote)
    report = scorer.calculate_health_score()

    assert not report.summary.local_audit
    assert all(r.source is SourceMode.REMOTE for r in report.categories.values())
    # security and branch protection perfect, nothing else present
    assert report.overall_score == 50
    assert FALLBACK_NOTE not in report.recommendations


def test_remote_failure_falls_back_for_every_category(healthy_repo):
    remote = DictSource({REPOSITORY: {"default_branch": "main"}})
    scorer = HealthScorer(_config(healthy_repo), local=LocalSource(healthy_repo), remote=remote)
    report = scorer.calculate_health_score()

    assert report.summary.local_audit
    assert report.summary.fallback
    assert all(r.source is SourceMode.LOCAL for r in report.categories.values())
    assert report.overall_score == 100
    assert report.critical_issues == ()
    assert report.recommendations == (FALLBACK_NOTE,)


def test_unreadable_remote_and_local(tmp_path):
    missing = tmp_path / "missing"
    remote = DictSource(fail_all="GitHub API rate limit exceeded")
    report = HealthScorer(_config(missing), local=LocalSource(missing), remote=remote).calculate_health_score()

    assert report.overall_score == 0
    assert report.grade is Grade.F
    assert len(report.critical_issues) == 4
    assert all(r.error is not None for r in report.categories.values())
    assert report.recommendations == (FALLBACK_NOTE,)


def test_all_perfect_categories(empty_repo):
    scorer = HealthScorer(_config(empty_repo))
    scorer.auditors = {c: StubAuditor(c) for c in Category}
    report = scorer.calculate_health_score()
    assert report.overall_score == 100
    assert report.grade is Grade.A
    assert report.recommendations == ()


def test_one_errored_category_is_excluded(empty_repo):
    scorer = HealthScorer(_config(empty_repo))
    scorer.auditors = {c: StubAuditor(c) for c in Category}
    scorer.auditors[Category.CICD] = StubAuditor(
        Category.CICD, local=AuditResult.failed(Category.CICD, SourceMode.LOCAL, "disk error"),
    )
    report = scorer.calculate_health_score()
    assert report.overall_score == 100
    assert report.critical_issues == ("cicd: disk error",)


def test_report_is_immutable(healthy_repo):
    report = calculate_health_score(_config(healthy_repo))
    with pytest.raises(TypeError):
        report.categories[Category.CICD] = None


def test_from_config_builds_github_source(monkeypatch, tmp_path):
    monkeypatch.setenv("GITHUB_TOKEN", "t0ken")
    cfg = _config(tmp_path)
    cfg.target.owner, cfg.target.repo = "acme", "widget"
    scorer = HealthScorer.from_config(cfg)
    assert scorer.resolver.remote.describe() == "github:acme/widget"
    assert scorer.resolver.remote.session.headers["Authorization"] == "Bearer t0ken"


def test_to_dict(healthy_repo):
    data = calculate_health_score(_config(healthy_repo)).to_dict()
    assert data["overall_score"] == 100
    assert data["grade"] == "A"
    assert set(data["categories"]) == {"security", "documentation", "cicd", "branch_protection"}
    assert data["categories"]["cicd"]["source"] == "local"
    assert data["summary"]["category_count"] == 4


def test_summary_goals_and_actions(empty_repo, healthy_repo):
    weak = calculate_health_score(_config(empty_repo))
    assert weak.summary.quick_wins == ("Add missing documentation files", "Enable branch protection rules")
    assert weak.summary.long_term_goals == (
        "Implement comprehensive security practices",
        "Establish robust CI/CD pipeline",
    )
    assert list(weak.actions) == [
        Category.SECURITY, Category.BRANCH_PROTECTION, Category.CICD, Category.DOCUMENTATION,
    ]
    assert weak.to_dict()["actions"]["security"][0] == "Enable security features in repository settings"

    strong = calculate_health_score(_config(healthy_repo))
    assert strong.summary.quick_wins == () and strong.summary.long_term_goals == ()
    assert dict(strong.actions) == {}
