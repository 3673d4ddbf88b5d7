"""Normalize adapter output into canonical records."""

from __future__ import annotations

import re
import unicodedata
from datetime import date, datetime
from typing import Any, Iterable, Mapping, Sequence

from .records import CanonicalRecord, Provenance
from .schema import ContentKind, FieldDefinition, FieldType, SchemaRegistry

NON_SLUG_PATTERN = re.compile(r"[^a-z0-9]+")
TRUE_WORDS = frozenset({"true", "yes", "on", "1"})
FALSE_WORDS = frozenset({"false", "no", "off", "0"})


def slugify(value: str) -> str:
    """Convert arbitrary text into a URL-safe slug."""
    text = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    text = NON_SLUG_PATTERN.sub("-", text.strip().lower())
    return text.strip("-")


def canonical_tags(value: Any) -> Any:
    """Trim, lower-case and deduplicate tags, keeping first-seen order.

    Scalars other than strings are returned unchanged for the validator to report.
    """
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    elif not isinstance(value, (list, tuple)):
        return value
    result: list[str] = []
    seen: set[str] = set()
    for item in value:
        if item is None:
            continue
        tag = str(item).strip().lower()
        if tag and tag not in seen:
            seen.add(tag)
            result.append(tag)
    return result


def coerce_date(value: Any) -> Any:
    """Parse ISO-8601 strings; anything unparseable is returned unchanged."""
    if not isinstance(value, str):
        return value
    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return value


def coerce_number(value: Any) -> Any:
    if not isinstance(value, str):
        return value
    text = value.strip()
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        return value


def coerce_boolean(value: Any) -> Any:
    if not isinstance(value, str):
        return value
    text = value.strip().lower()
    if text in TRUE_WORDS:
        return True
    if text in FALSE_WORDS:
        return False
    return value


def normalize_record(
    record: CanonicalRecord,
    registry: SchemaRegistry,
    *,
    fetched_at: datetime | None = None,
) -> CanonicalRecord:
    if not registry.has_kind(record.kind):
        return record
    kind = registry.kind(record.kind)

    values = _coerce_fields(kind.fields, record.values)

    provenance = record.provenance
    if fetched_at is not None:
        if provenance is None:
            provenance = Provenance(adapter="unknown", source="unknown", locator="", fetched_at=fetched_at)
        else:
            provenance = provenance.model_copy(update={"fetched_at": fetched_at})

    return record.model_copy(
        update={"slug": _resolve_slug(record, kind, values), "values": values, "provenance": provenance}
    )


def normalize_records(
    records: Iterable[CanonicalRecord],
    registry: SchemaRegistry,
    *,
    fetched_at: datetime | None = None,
) -> list[CanonicalRecord]:
    """Assign slugs, canonicalize tags and stamp provenance; never drops a record."""
    return [normalize_record(record, registry, fetched_at=fetched_at) for record in records]


def _resolve_slug(record: CanonicalRecord, kind: ContentKind, values: dict[str, Any]) -> str | None:
    if record.slug is not None and record.slug.strip():
        return record.slug.strip()
    title = values.get(kind.title_field)
    if title is None:
        return None
    derived = slugify(str(title))
    return derived or None


def _coerce_fields(fields: Sequence[FieldDefinition], values: Mapping[str, Any]) -> dict[str, Any]:
    coerced = dict(values)
    for definition in fields:
        if definition.name in coerced:
            coerced[definition.name] = _coerce_value(definition, coerced[definition.name])
    return coerced


def _coerce_value(definition: FieldDefinition, value: Any) -> Any:
    if definition.is_tag_like:
        return canonical_tags(value)
    if definition.type is FieldType.DATE:
        return coerce_date(value)
    if definition.type is FieldType.NUMBER:
        return coerce_number(value)
    if definition.type is FieldType.BOOLEAN:
        return coerce_boolean(value)
    if definition.type is FieldType.OBJECT and isinstance(value, Mapping):
        return _coerce_fields(definition.fields, value)
    return value
