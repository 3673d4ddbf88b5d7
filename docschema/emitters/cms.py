"""Project the schema registry into the CMS editing UI configuration."""

from __future__ import annotations

from datetime import date
from typing import Any

import yaml

from ..config import CmsSettings
from ..schema import ContentKind, FieldDefinition, FieldType, SchemaRegistry
from ..schemas import CMS_CONFIG_SCHEMA, contract_errors
from .writer import Artifact, EmitterError

CMS_CONFIG_NAME = "config.yml"

WIDGETS: dict[FieldType, str] = {
    FieldType.STRING: "text",
    FieldType.MARKDOWN: "markdown",
    FieldType.NUMBER: "number",
    FieldType.BOOLEAN: "boolean",
    FieldType.ENUM: "select",
    FieldType.DATE: "datetime",
    FieldType.STRING_LIST: "list",
    FieldType.REFERENCE: "relation",
    FieldType.OBJECT: "object",
}


def build_cms_config(registry: SchemaRegistry, settings: CmsSettings | None = None) -> dict[str, Any]:
    """Build the CMS configuration structure; no content records are involved."""
    settings = settings or CmsSettings()
    config: dict[str, Any] = {
        "backend": dict(settings.backend),
        "media_folder": settings.media_folder,
        "collections": [_collection(kind, registry, settings) for kind in registry.all_kinds()],
    }
    problems = contract_errors(CMS_CONFIG_SCHEMA, config)
    if problems:
        raise EmitterError("CMS configuration violates the host contract: " + "; ".join(problems))
    return config


def render_cms_config(
    registry: SchemaRegistry,
    settings: CmsSettings | None = None,
    *,
    destination: str = CMS_CONFIG_NAME,
) -> Artifact:
    config = build_cms_config(registry, settings)
    text = yaml.safe_dump(config, sort_keys=False, allow_unicode=True, default_flow_style=False)
    return Artifact(destination=destination, payload=text.encode("utf-8"))


def _collection(kind: ContentKind, registry: SchemaRegistry, settings: CmsSettings) -> dict[str, Any]:
    has_body = any(field.type is FieldType.MARKDOWN for field in kind.fields)
    folder = kind.folder or f"{settings.content_root.rstrip('/')}/{kind.name}"
    collection: dict[str, Any] = {
        "name": kind.name,
        "label": kind.display_label,
        "folder": folder,
        "create": True,
        "extension": "md" if has_body else "yml",
        "slug": "{{slug}}",
    }
    if kind.field(kind.title_field) is not None:
        collection["identifier_field"] = kind.title_field
    collection["fields"] = [_widget(field, registry) for field in kind.fields]
    return collection


def _widget(definition: FieldDefinition, registry: SchemaRegistry) -> dict[str, Any]:
    widget: dict[str, Any] = {
        "label": definition.display_label,
        "name": definition.name,
        "widget": WIDGETS[definition.type],
        "required": definition.required,
    }
    if definition.default is not None:
        widget["default"] = _plain(definition.default)
    if definition.hint:
        widget["hint"] = definition.hint

    rule = definition.rule
    if rule is not None and rule.enum is not None:
        widget["options"] = list(registry.enum_values(rule.enum))
        if definition.type is FieldType.STRING_LIST:
            widget["widget"] = "select"
            widget["multiple"] = True
    if rule is not None and rule.pattern is not None:
        widget["pattern"] = [rule.pattern, f"Must match {rule.pattern}"]

    if definition.type is FieldType.REFERENCE and definition.target:
        target = registry.kind(definition.target)
        widget["collection"] = target.name
        widget["search_fields"] = [target.title_field]
        widget["display_fields"] = [target.title_field]
        widget["value_field"] = "{{slug}}"
    if definition.type is FieldType.OBJECT:
        widget["fields"] = [_widget(child, registry) for child in definition.fields]
    return widget


def _plain(value: Any) -> Any:
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    return value
