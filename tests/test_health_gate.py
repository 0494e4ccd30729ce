import importlib.util
import json
from pathlib import Path

import pytest

GATE = Path(__file__).resolve().parent.parent / "scripts" / "health_gate.py"


@pytest.fixture(scope="module")
def gate():
    spec = importlib.util.spec_from_file_location("health_gate", GATE)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_gate_passes_healthy_checkout(gate, healthy_repo, capsys):
    assert gate.main(["--root", str(healthy_repo), "--min-score", "90"]) == 0
    evidence = json.loads(capsys.readouterr().out)
    assert evidence["score"] == 100
    assert evidence["grade"] == "A"
    assert evidence["categories"]["branch_protection"] == 100
    assert evidence["critical_issues"] == []


def test_gate_fails_below_floor(gate, empty_repo, capsys):
    assert gate.main(["--root", str(empty_repo), "--min-score", "60"]) == 1
    assert json.loads(capsys.readouterr().out)["score"] == 6


def test_gate_floor_is_inclusive(gate, empty_repo):
    assert gate.main(["--root", str(empty_repo), "--min-score", "6"]) == 0
