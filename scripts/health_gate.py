#!/usr/bin/env python3
"""Repository health gate used in CI: fails when the score is below a floor."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Dict, Optional, Sequence

from repohealth import HealthConfig, calculate_health_score


def collect_evidence(root: Path) -> Dict[str, object]:
    """Audit *root* locally and return the per-category evidence."""
    config = HealthConfig()
    config.target.path = str(root)
    report = calculate_health_score(config)
    return {
        "score": report.overall_score,
        "grade": report.grade.value,
        "categories": {c.value: r.score for c, r in report.categories.items()},
        "critical_issues": list(report.critical_issues),
    }


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--root", type=Path, default=Path(__file__).resolve().parent.parent)
    parser.add_argument("--min-score", type=int, default=60)
    args = parser.parse_args(argv)

    evidence = collect_evidence(args.root)
    json.dump(evidence, sys.stdout, indent=2)
    sys.stdout.write("\n")
    return 0 if evidence["score"] >= args.min_score else 1


if __name__ == "__main__":  # pragma: no cover - script entry
    sys.exit(main())
