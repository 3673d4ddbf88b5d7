"""Run reporting helpers."""

from __future__ import annotations

import json
from collections import Counter
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Iterable, Sequence

from pydantic import BaseModel, Field

from .adapters import AdapterResult
from .records import CanonicalRecord, Diagnostic, Severity

REPORT_FILENAME = "run-report.json"


class RunOutcome(str, Enum):
    """Summary exit outcome of a run."""

    CLEAN = "clean"
    WARNINGS = "warnings only"
    ERRORS = "has errors"


class SourceStats(BaseModel):
    name: str
    records: int
    available: bool


class DiagnosticStats(BaseModel):
    errors: int
    warnings: int
    by_code: dict[str, int] = Field(default_factory=dict)


class RunReport(BaseModel):
    project: str
    generated_at: datetime
    duration_seconds: float
    outcome: RunOutcome
    sources: list[SourceStats] = Field(default_factory=list)
    published: dict[str, int] = Field(default_factory=dict)
    diagnostics: DiagnosticStats
    artifacts: list[str] = Field(default_factory=list)


def outcome_for(diagnostics: Iterable[Diagnostic]) -> RunOutcome:
    outcome = RunOutcome.CLEAN
    for diagnostic in diagnostics:
        if diagnostic.severity is Severity.ERROR:
            return RunOutcome.ERRORS
        outcome = RunOutcome.WARNINGS
    return outcome


def build_source_stats(results: Iterable[AdapterResult]) -> list[SourceStats]:
    return [
        SourceStats(name=result.source, records=len(result.records), available=result.available)
        for result in results
    ]


def build_diagnostic_stats(diagnostics: Sequence[Diagnostic]) -> DiagnosticStats:
    by_code = Counter(diagnostic.code.value for diagnostic in diagnostics)
    return DiagnosticStats(
        errors=sum(1 for diagnostic in diagnostics if diagnostic.severity is Severity.ERROR),
        warnings=sum(1 for diagnostic in diagnostics if diagnostic.severity is Severity.WARNING),
        by_code=dict(sorted(by_code.items())),
    )


def count_published(records: Iterable[CanonicalRecord], kinds: Sequence[str]) -> dict[str, int]:
    counts = {kind: 0 for kind in kinds}
    for record in records:
        if record.kind in counts:
            counts[record.kind] += 1
    return counts


def assemble_report(
    *,
    project: str,
    duration_seconds: float,
    results: Sequence[AdapterResult],
    diagnostics: Sequence[Diagnostic],
    published: dict[str, int],
    artifacts: Sequence[Path],
) -> RunReport:
    return RunReport(
        project=project,
        generated_at=datetime.now(timezone.utc),
        duration_seconds=duration_seconds,
        outcome=outcome_for(diagnostics),
        sources=build_source_stats(results),
        published=published,
        diagnostics=build_diagnostic_stats(diagnostics),
        artifacts=[str(path) for path in artifacts],
    )


def write_report(report: RunReport, output_dir: Path) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    target = output_dir / REPORT_FILENAME
    with target.open("w", encoding="utf-8") as handle:
        json.dump(report.model_dump(mode="json"), handle, ensure_ascii=False, indent=2)
    return target
