"""JSON schemas for health configs and reports, and loading of saved reports.

A report written with ``repohealth score --format json`` is the output of
:meth:`HealthReport.to_dict`; :func:`load_report` validates such a document
against the report types and rebuilds the :class:`HealthReport`, so saved
reports can be re-rendered or compared later.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Mapping, Union

from pydantic import TypeAdapter

from .config import HealthConfig
from .types import AuditResult, HealthReport

_REPORT = TypeAdapter(HealthReport)

SCHEMAS: Dict[str, TypeAdapter] = {
    "health_config.schema.json": TypeAdapter(HealthConfig),
    "health_report.schema.json": _REPORT,
    "audit_result.schema.json": TypeAdapter(AuditResult),
}


def export(output_dir: Path) -> Dict[str, Path]:
    """Write every schema to *output_dir* and return the written paths by name."""
    output_dir.mkdir(parents=True, exist_ok=True)
    written = {}
    for name, adapter in SCHEMAS.items():
        path = output_dir / name
        with open(path, "w", encoding="utf-8") as f:
            json.dump(adapter.json_schema(), f, indent=2)
        written[name] = path
    return written


def load_report(data: Union[Mapping[str, Any], str, Path]) -> HealthReport:
    """Rebuild a report from its JSON form.

    Args:
        data: A :meth:`HealthReport.to_dict` mapping, or a path to a JSON file
            holding one

    Raises:
        pydantic.ValidationError: If the document does not match the report
            schema
    """
    if isinstance(data, (str, Path)):
        with open(data, "r", encoding="utf-8") as f:
            data = json.load(f)
    return _REPORT.validate_python(data)


if __name__ == "__main__":  # pragma: no cover - manual execution
    export(Path("docs/schemas"))
