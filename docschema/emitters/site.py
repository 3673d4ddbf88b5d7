"""Serialize publishable records into per-kind site data files."""

from __future__ import annotations

import json
from datetime import date
from typing import Any, Iterable, Mapping, Sequence

import yaml

from ..config import SiteDataSettings
from ..records import CanonicalRecord
from ..schema import ContentKind, FieldDefinition, FieldType, SchemaRegistry
from ..schemas import SITE_DATA_SCHEMA, contract_errors
from .writer import Artifact, EmitterError

EXTENSIONS = {"json": "json", "yaml": "yml"}


def build_site_data(
    records: Iterable[CanonicalRecord],
    registry: SchemaRegistry,
    settings: SiteDataSettings | None = None,
) -> list[dict[str, Any]]:
    """Group records by kind in registry order, sorted by slug within each kind."""
    settings = settings or SiteDataSettings()
    grouped: dict[str, list[CanonicalRecord]] = {kind.name: [] for kind in registry.all_kinds()}
    for record in records:
        if record.kind in grouped and record.slug is not None:
            grouped[record.kind].append(record)

    documents: list[dict[str, Any]] = []
    for kind in registry.all_kinds():
        ordered = sorted(grouped[kind.name], key=_sort_key)
        items = [_item(record, kind, include_provenance=settings.include_provenance) for record in ordered]
        document = {"kind": kind.name, "items": items}
        problems = contract_errors(SITE_DATA_SCHEMA, document)
        if problems:
            raise EmitterError(f"Site data for '{kind.name}' violates its contract: " + "; ".join(problems))
        documents.append(document)
    return documents


def render_site_data(
    records: Iterable[CanonicalRecord],
    registry: SchemaRegistry,
    settings: SiteDataSettings | None = None,
) -> list[Artifact]:
    """Render one artifact per kind; unchanged input yields identical bytes."""
    settings = settings or SiteDataSettings()
    extension = EXTENSIONS[settings.format]
    artifacts: list[Artifact] = []
    for document in build_site_data(records, registry, settings):
        if settings.format == "yaml":
            text = yaml.safe_dump(document, sort_keys=False, allow_unicode=True, default_flow_style=False)
        else:
            text = json.dumps(document, ensure_ascii=False, indent=2) + "\n"
        artifacts.append(Artifact(destination=f"{document['kind']}.{extension}", payload=text.encode("utf-8")))
    return artifacts


def site_data_patterns(settings: SiteDataSettings | None = None) -> tuple[str, ...]:
    settings = settings or SiteDataSettings()
    return (f"*.{EXTENSIONS[settings.format]}",)


def _sort_key(record: CanonicalRecord) -> tuple[str, str]:
    slug = record.slug or ""
    return (slug.casefold(), slug)


def _item(record: CanonicalRecord, kind: ContentKind, *, include_provenance: bool) -> dict[str, Any]:
    item: dict[str, Any] = {"slug": record.slug}
    item.update(_project(kind.fields, record.values))
    if include_provenance and record.provenance is not None:
        item["_source"] = {
            "adapter": record.provenance.adapter,
            "locator": record.provenance.locator,
        }
    return item


def _project(fields: Sequence[FieldDefinition], values: Mapping[str, Any]) -> dict[str, Any]:
    projected: dict[str, Any] = {}
    for definition in fields:
        value = values.get(definition.name)
        if value is None:
            if definition.emit_default and definition.default is not None:
                projected[definition.name] = _plain(definition.default)
            continue
        if definition.type is FieldType.OBJECT and isinstance(value, Mapping):
            projected[definition.name] = _project(definition.fields, value)
            continue
        projected[definition.name] = _plain(value)
    return projected


def _plain(value: Any) -> Any:
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Mapping):
        return {str(key): _plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    if isinstance(value, (str, int, float, bool)):
        return value
    return str(value)
