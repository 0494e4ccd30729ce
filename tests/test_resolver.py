from repohealth.resolver import SourceResolver
from repohealth.types import AuditResult, Category, SourceMode

from conftest import DictSource, StubAuditor


def _auditors():
    return {c: StubAuditor(c) for c in Category}


def test_remote_success_keeps_remote_results():
    auditors = _auditors()
    local = DictSource(mode=SourceMode.LOCAL)
    remote = DictSource(mode=SourceMode.REMOTE)

    resolution = SourceResolver(local, remote).run(auditors)

    assert resolution.source is remote
    assert not resolution.fallback
    assert all(r.source is SourceMode.REMOTE for r in resolution.results.values())
    assert all(a.calls == [SourceMode.REMOTE] for a in auditors.values())


def test_transport_failure_reruns_every_category_locally():
    security = StubAuditor(
        Category.SECURITY,
        remote=AuditResult.failed(Category.SECURITY, SourceMode.REMOTE, "rate limited", transport_failure=True),
    )
    auditors = _auditors()
    auditors[Category.SECURITY] = security
    local = DictSource(mode=SourceMode.LOCAL)

    resolution = SourceResolver(local, DictSource()).run(auditors)

    assert resolution.fallback
    assert resolution.source is local
    assert set(resolution.results) == set(Category)
    assert all(r.source is SourceMode.LOCAL for r in resolution.results.values())
    assert all(a.calls == [SourceMode.REMOTE, SourceMode.LOCAL] for a in auditors.values())
    assert all(r.error is None for r in resolution.results.values())


def test_absent_artifact_does_not_trigger_fallback():
    cicd = StubAuditor(Category.CICD, remote=AuditResult(Category.CICD, 0, SourceMode.REMOTE))
    auditors = _auditors()
    auditors[Category.CICD] = cicd

    resolution = SourceResolver(DictSource(mode=SourceMode.LOCAL), DictSource()).run(auditors)

    assert not resolution.fallback
    assert resolution.results[Category.CICD].score == 0


def test_local_failure_is_terminal_for_that_category():
    security = StubAuditor(
        Category.SECURITY,
        remote=AuditResult.failed(Category.SECURITY, SourceMode.REMOTE, "timeout", transport_failure=True),
        local=AuditResult.failed(Category.SECURITY, SourceMode.LOCAL, "permission denied"),
    )
    auditors = _auditors()
    auditors[Category.SECURITY] = security

    resolution = SourceResolver(DictSource(mode=SourceMode.LOCAL), DictSource()).run(auditors)

    assert resolution.fallback
    assert resolution.results[Category.SECURITY].error == "permission denied"
    assert security.calls == [SourceMode.REMOTE, SourceMode.LOCAL]
    assert all(r.ok for c, r in resolution.results.items() if c is not Category.SECURITY)


def test_without_remote_runs_locally_once():
    auditors = _auditors()
    local = DictSource(mode=SourceMode.LOCAL)

    resolution = SourceResolver(local).run(auditors)

    assert resolution.source is local
    assert not resolution.fallback
    assert all(a.calls == [SourceMode.LOCAL] for a in auditors.values())


def test_crashing_auditor_is_captured():
    auditors = _auditors()
    auditors[Category.DOCUMENTATION] = StubAuditor(Category.DOCUMENTATION, crash=True)

    resolution = SourceResolver(DictSource(mode=SourceMode.LOCAL)).run(auditors)

    broken = resolution.results[Category.DOCUMENTATION]
    assert broken.error == "audit failed: boom"
    assert broken.score == 0
    assert not broken.transport_failure
