"""Per-record and cross-record validation of canonical records."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import date
from functools import lru_cache
from typing import Any, Iterable, Mapping, Sequence

from .records import CanonicalRecord, Diagnostic, DiagnosticCode, Severity, error, warning
from .schema import FieldDefinition, FieldType, SchemaRegistry

logger = logging.getLogger(__name__)

SLUG_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._\-]*$")


@dataclass(slots=True)
class ValidationReport:
    """Diagnostics for a record set plus the records that may be published."""

    records: list[CanonicalRecord] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)
    rejected: set[int] = field(default_factory=set)

    @property
    def publishable(self) -> list[CanonicalRecord]:
        return [record for index, record in enumerate(self.records) if index not in self.rejected]

    @property
    def error_count(self) -> int:
        return sum(1 for diagnostic in self.diagnostics if diagnostic.severity is Severity.ERROR)

    @property
    def warning_count(self) -> int:
        return sum(1 for diagnostic in self.diagnostics if diagnostic.severity is Severity.WARNING)


def validate_records(records: Sequence[CanonicalRecord], registry: SchemaRegistry) -> ValidationReport:
    """Run the per-record pass, then the cross-record pass."""
    report = ValidationReport(records=list(records))
    well_formed: list[int] = []

    for index, record in enumerate(report.records):
        findings = list(_check_record(record, registry))
        _add(report, index, findings)
        if record.slug is not None and not any(d.code is DiagnosticCode.INVALID_SLUG for d in findings):
            if registry.has_kind(record.kind):
                well_formed.append(index)

    _check_uniqueness(report, well_formed)
    _check_references(report, well_formed, registry)

    logger.info(
        "Validated %d record(s): %d error(s), %d warning(s), %d publishable.",
        len(report.records),
        report.error_count,
        report.warning_count,
        len(report.publishable),
    )
    return report


def lint_records(records: Iterable[CanonicalRecord], registry: SchemaRegistry) -> list[Diagnostic]:
    """Return only the diagnostics for ``records``."""
    return validate_records(list(records), registry).diagnostics


def _add(report: ValidationReport, index: int, findings: Iterable[Diagnostic]) -> None:
    for diagnostic in findings:
        report.diagnostics.append(diagnostic)
        if diagnostic.is_error:
            report.rejected.add(index)


def _check_record(record: CanonicalRecord, registry: SchemaRegistry) -> Iterable[Diagnostic]:
    context = {"kind": record.kind, "slug": record.slug, "source": _source_name(record)}

    if not registry.has_kind(record.kind):
        yield error(DiagnosticCode.UNKNOWN_KIND, f"Unknown content kind '{record.kind}'.", **context)
        return
    kind = registry.kind(record.kind)

    if record.slug is None:
        yield error(
            DiagnosticCode.INVALID_SLUG,
            f"No slug supplied and none could be derived from '{kind.title_field}'.",
            **context,
        )
    elif not SLUG_PATTERN.match(record.slug):
        yield error(DiagnosticCode.INVALID_SLUG, f"Slug '{record.slug}' is not URL-safe.", **context)

    for definition in kind.fields:
        value = record.values.get(definition.name)
        if _is_absent(value):
            if definition.required:
                yield error(
                    DiagnosticCode.MISSING_REQUIRED,
                    f"Required field '{definition.name}' is missing.",
                    field=definition.name,
                    **context,
                )
            continue
        severity = _severity_for(definition)
        for code, path, message in _check_value(definition, value, registry, definition.name):
            yield Diagnostic(severity, code, message, field=path, **context)

    known = set(kind.field_names)
    for key in record.values:
        if key not in known:
            yield warning(
                DiagnosticCode.UNKNOWN_FIELD,
                f"Field '{key}' is not declared by kind '{kind.name}' and will not be published.",
                field=key,
                **context,
            )


def _check_uniqueness(report: ValidationReport, indices: list[int]) -> None:
    seen: dict[tuple[str, str], CanonicalRecord] = {}
    for index in indices:
        record = report.records[index]
        key = (record.kind, record.slug or "")
        first = seen.get(key)
        if first is None:
            seen[key] = record
            continue
        _add(
            report,
            index,
            [
                error(
                    DiagnosticCode.DUPLICATE_SLUG,
                    f"Slug '{record.slug}' is already used by another {record.kind} "
                    f"(from {_locator(first)}).",
                    kind=record.kind,
                    slug=record.slug,
                    source=_source_name(record),
                )
            ],
        )


def _check_references(report: ValidationReport, indices: list[int], registry: SchemaRegistry) -> None:
    known = {(report.records[index].kind, report.records[index].slug) for index in indices}
    for index in indices:
        record = report.records[index]
        for definition in registry.kind(record.kind).fields:
            if definition.type is not FieldType.REFERENCE:
                continue
            target_slug = record.values.get(definition.name)
            if _is_absent(target_slug) or not isinstance(target_slug, str):
                continue
            if (definition.target, target_slug) in known:
                continue
            _add(
                report,
                index,
                [
                    error(
                        DiagnosticCode.UNRESOLVED_REFERENCE,
                        f"Reference to {definition.target} '{target_slug}' does not resolve.",
                        kind=record.kind,
                        slug=record.slug,
                        field=definition.name,
                        source=_source_name(record),
                    )
                ],
            )


def _check_value(
    definition: FieldDefinition,
    value: Any,
    registry: SchemaRegistry,
    path: str,
) -> Iterable[tuple[DiagnosticCode, str, str]]:
    type_problem = _type_problem(definition, value)
    if type_problem:
        yield DiagnosticCode.INVALID_TYPE, path, f"Field '{path}' {type_problem}."
        return

    if definition.type is FieldType.OBJECT:
        for child in definition.fields:
            child_path = f"{path}.{child.name}"
            child_value = value.get(child.name)
            if _is_absent(child_value):
                if child.required:
                    yield DiagnosticCode.MISSING_REQUIRED, child_path, f"Field '{child_path}' is missing."
                continue
            yield from _check_value(child, child_value, registry, child_path)
        return

    rule = definition.rule
    if rule is None:
        return

    items = [item for item in (value if isinstance(value, list) else [value]) if isinstance(item, str)]
    sized = isinstance(value, (str, list))
    if sized and rule.min_length is not None and len(value) < rule.min_length:
        yield DiagnosticCode.RULE_VIOLATION, path, f"Field '{path}' is shorter than {rule.min_length}."
    if sized and rule.max_length is not None and len(value) > rule.max_length:
        yield DiagnosticCode.RULE_VIOLATION, path, f"Field '{path}' is longer than {rule.max_length}."
    if rule.pattern is not None:
        pattern = _compiled(rule.pattern)
        for item in items:
            if not pattern.search(item):
                yield (
                    DiagnosticCode.RULE_VIOLATION,
                    path,
                    f"Field '{path}' value '{item}' does not match {rule.pattern!r}.",
                )
    if rule.enum is not None:
        allowed = registry.enum_values(rule.enum)
        for item in items:
            if item not in allowed:
                yield (
                    DiagnosticCode.RULE_VIOLATION,
                    path,
                    f"Field '{path}' value '{item}' is not one of: {', '.join(allowed)}.",
                )


def _type_problem(definition: FieldDefinition, value: Any) -> str | None:
    kind = definition.type
    if kind in (FieldType.STRING, FieldType.MARKDOWN, FieldType.ENUM, FieldType.REFERENCE):
        return None if isinstance(value, str) else f"must be a string, got {type(value).__name__}"
    if kind is FieldType.NUMBER:
        ok = isinstance(value, (int, float)) and not isinstance(value, bool)
        return None if ok else f"must be a number, got {type(value).__name__}"
    if kind is FieldType.BOOLEAN:
        return None if isinstance(value, bool) else f"must be true or false, got {type(value).__name__}"
    if kind is FieldType.DATE:
        return None if isinstance(value, date) else f"must be an ISO-8601 date, got {value!r}"
    if kind is FieldType.STRING_LIST:
        if not isinstance(value, list):
            return f"must be a list of strings, got {type(value).__name__}"
        if not all(isinstance(item, str) for item in value):
            return "must contain only strings"
        return None
    if kind is FieldType.OBJECT:
        return None if isinstance(value, Mapping) else f"must be a mapping, got {type(value).__name__}"
    return None


def _severity_for(definition: FieldDefinition) -> Severity:
    if definition.required:
        return Severity.ERROR
    if definition.rule is not None and definition.rule.required_if_present:
        return Severity.ERROR
    return Severity.WARNING


def _is_absent(value: Any) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def _source_name(record: CanonicalRecord) -> str | None:
    return record.provenance.source if record.provenance else None


def _locator(record: CanonicalRecord) -> str:
    return record.provenance.locator if record.provenance else "unknown source"


@lru_cache(maxsize=256)
def _compiled(pattern: str) -> re.Pattern[str]:
    return re.compile(pattern)
