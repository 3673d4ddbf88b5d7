"""In-memory registry of content kinds shared read-only by every stage."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Iterable, Mapping, Sequence

import yaml
from pydantic import ValidationError

from .models import RESERVED_FIELD_NAMES, ContentKind, FieldDefinition, FieldType


class SchemaError(Exception):
    """Raised when the schema cannot be built. Fatal for a run."""

    def __init__(self, message: str, *, kind: str | None = None, field: str | None = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.field = field


class DuplicateKind(SchemaError):
    """Raised when a kind name is registered twice."""


class InvalidFieldDef(SchemaError):
    """Raised when a field definition is inconsistent with the registry."""


class SchemaRegistry:
    """Declares every content kind; registration order is significant."""

    def __init__(self) -> None:
        self._kinds: dict[str, ContentKind] = {}
        self._enums: dict[str, tuple[str, ...]] = {}
        self._sealed = False

    @property
    def sealed(self) -> bool:
        return self._sealed

    def define_enum(self, name: str, values: Iterable[str]) -> tuple[str, ...]:
        self._ensure_open()
        if name in self._enums:
            raise SchemaError(f"Enum '{name}' is already defined.")
        options = tuple(str(value) for value in values)
        if not options:
            raise SchemaError(f"Enum '{name}' must declare at least one value.")
        self._enums[name] = options
        return options

    def define(
        self,
        kind_name: str,
        field_defs: Sequence[FieldDefinition],
        *,
        label: str | None = None,
        folder: str | None = None,
        title_field: str = "title",
    ) -> ContentKind:
        """Register a new content kind and return its handle."""
        self._ensure_open()
        if kind_name in self._kinds:
            raise DuplicateKind(f"Content kind '{kind_name}' is already registered.", kind=kind_name)

        seen: set[str] = set()
        for definition in field_defs:
            self._check_field(kind_name, definition, seen)

        kind = ContentKind(
            name=kind_name,
            fields=tuple(field_defs),
            label=label,
            folder=folder,
            title_field=title_field,
        )
        self._kinds[kind_name] = kind
        return kind

    def lookup(self, kind_name: str) -> tuple[FieldDefinition, ...]:
        return self.kind(kind_name).fields

    def kind(self, kind_name: str) -> ContentKind:
        try:
            return self._kinds[kind_name]
        except KeyError:
            raise KeyError(f"Unknown content kind: {kind_name}") from None

    def has_kind(self, kind_name: str) -> bool:
        return kind_name in self._kinds

    def all_kinds(self) -> tuple[ContentKind, ...]:
        return tuple(self._kinds.values())

    def enum_values(self, name: str) -> tuple[str, ...]:
        return self._enums[name]

    def seal(self) -> "SchemaRegistry":
        """Resolve cross-kind references and freeze the registry."""
        for kind in self._kinds.values():
            for definition in _walk_fields(kind.fields):
                if definition.type is FieldType.REFERENCE and definition.target not in self._kinds:
                    raise InvalidFieldDef(
                        f"Field '{definition.name}' of '{kind.name}' references unknown kind "
                        f"'{definition.target}'.",
                        kind=kind.name,
                        field=definition.name,
                    )
        self._sealed = True
        return self

    def _ensure_open(self) -> None:
        if self._sealed:
            raise SchemaError("Schema registry is sealed; no further definitions are accepted.")

    def _check_field(self, kind_name: str, definition: FieldDefinition, seen: set[str]) -> None:
        name = definition.name

        def fail(message: str) -> InvalidFieldDef:
            return InvalidFieldDef(f"{kind_name}.{name}: {message}", kind=kind_name, field=name)

        if name in RESERVED_FIELD_NAMES:
            raise fail("field name is reserved.")
        if name in seen:
            raise fail("field is declared more than once.")
        seen.add(name)

        rule = definition.rule
        if rule is not None:
            if rule.enum is not None and rule.enum not in self._enums:
                raise fail(f"rule references undefined enum '{rule.enum}'.")
            if rule.pattern is not None:
                try:
                    re.compile(rule.pattern)
                except re.error as exc:
                    raise fail(f"invalid pattern: {exc}") from exc
            if (
                rule.min_length is not None
                and rule.max_length is not None
                and rule.min_length > rule.max_length
            ):
                raise fail("min_length exceeds max_length.")

        if definition.type is FieldType.ENUM and (rule is None or rule.enum is None):
            raise fail("enum fields need a rule naming an enum.")
        if definition.type is FieldType.REFERENCE and not definition.target:
            raise fail("reference fields need a target kind.")
        if definition.type is FieldType.OBJECT:
            if not definition.fields:
                raise fail("object fields need at least one sub-field.")
            nested: set[str] = set()
            for child in definition.fields:
                self._check_field(f"{kind_name}.{name}", child, nested)


def _walk_fields(fields: Iterable[FieldDefinition]) -> Iterable[FieldDefinition]:
    for definition in fields:
        yield definition
        if definition.fields:
            yield from _walk_fields(definition.fields)


def registry_from_mapping(data: Mapping[str, Any]) -> SchemaRegistry:
    """Build and seal a registry from a parsed schema document."""
    registry = SchemaRegistry()
    enums = data.get("enums") or {}
    if not isinstance(enums, Mapping):
        raise SchemaError("'enums' must be a mapping of enum name to values.")
    for name, values in enums.items():
        registry.define_enum(str(name), values or [])

    kinds = data.get("kinds") or []
    if not isinstance(kinds, list):
        raise SchemaError("'kinds' must be a list.")
    for entry in kinds:
        if not isinstance(entry, Mapping) or "name" not in entry:
            raise SchemaError(f"Kind entries must be mappings with a name, got {entry!r}.")
        kind_name = str(entry["name"])
        try:
            fields = [FieldDefinition.model_validate(item) for item in entry.get("fields") or []]
        except ValidationError as exc:
            raise InvalidFieldDef(f"Invalid field definition in '{kind_name}': {exc}", kind=kind_name) from exc
        registry.define(
            kind_name,
            fields,
            label=entry.get("label"),
            folder=entry.get("folder"),
            title_field=entry.get("title_field", "title"),
        )
    return registry.seal()


def load_registry(path: str | Path) -> SchemaRegistry:
    """Load a YAML schema document into a sealed registry."""
    schema_path = Path(path)
    try:
        with schema_path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except yaml.YAMLError as exc:
        raise SchemaError(f"Invalid YAML in schema {schema_path}: {exc}") from exc
    if not isinstance(data, Mapping):
        raise SchemaError(f"Schema {schema_path} must define a mapping.")
    return registry_from_mapping(data)
