from __future__ import annotations

from pathlib import Path

import pytest

from docschema.schema import (
    DuplicateKind,
    FieldDefinition,
    FieldRule,
    FieldType,
    InvalidFieldDef,
    SchemaError,
    SchemaRegistry,
    default_registry,
    load_registry,
)


def _fields(*names: str) -> list[FieldDefinition]:
    return [FieldDefinition(name=name) for name in names]


def test_define_preserves_registration_order() -> None:
    registry = SchemaRegistry()
    registry.define("workshop", _fields("title"))
    registry.define("tutorial", _fields("title", "date"))
    registry.define("job", _fields("title"))

    assert [kind.name for kind in registry.all_kinds()] == ["workshop", "tutorial", "job"]
    assert [field.name for field in registry.lookup("tutorial")] == ["title", "date"]


def test_duplicate_kind_is_rejected() -> None:
    registry = SchemaRegistry()
    registry.define("tutorial", _fields("title"))

    with pytest.raises(DuplicateKind) as excinfo:
        registry.define("tutorial", _fields("title"))
    assert excinfo.value.kind == "tutorial"


@pytest.mark.parametrize("reserved", ["slug", "_source"])
def test_reserved_field_names_are_rejected(reserved: str) -> None:
    registry = SchemaRegistry()
    with pytest.raises(InvalidFieldDef) as excinfo:
        registry.define("tutorial", _fields("title", reserved))
    assert excinfo.value.field == reserved


def test_rule_referencing_undefined_enum_is_rejected() -> None:
    registry = SchemaRegistry()
    field = FieldDefinition(name="category", type=FieldType.ENUM, rule=FieldRule(enum="sections"))

    with pytest.raises(InvalidFieldDef, match="undefined enum 'sections'"):
        registry.define("tutorial", [field])

    registry.define_enum("sections", ["language", "platform"])
    kind = registry.define("tutorial", [field])
    assert kind.field("category") == field


def test_invalid_pattern_is_rejected() -> None:
    registry = SchemaRegistry()
    with pytest.raises(InvalidFieldDef, match="invalid pattern"):
        registry.define("job", [FieldDefinition(name="link", rule=FieldRule(pattern="(unclosed"))])


def test_references_resolve_at_seal_time() -> None:
    registry = SchemaRegistry()
    registry.define(
        "package",
        [FieldDefinition(name="tutorial", type=FieldType.REFERENCE, target="tutorial")],
    )
    registry.define("tutorial", _fields("title"))
    registry.seal()

    broken = SchemaRegistry()
    broken.define(
        "package",
        [FieldDefinition(name="tutorial", type=FieldType.REFERENCE, target="missing")],
    )
    with pytest.raises(InvalidFieldDef, match="unknown kind 'missing'"):
        broken.seal()


def test_sealed_registry_refuses_new_definitions() -> None:
    registry = SchemaRegistry()
    registry.define("tutorial", _fields("title"))
    registry.seal()

    with pytest.raises(SchemaError, match="sealed"):
        registry.define("job", _fields("title"))


def test_object_fields_need_sub_fields() -> None:
    registry = SchemaRegistry()
    with pytest.raises(InvalidFieldDef, match="sub-field"):
        registry.define("workshop", [FieldDefinition(name="committee", type=FieldType.OBJECT)])


def test_load_registry_from_yaml(tmp_path: Path) -> None:
    schema = tmp_path / "schema.yml"
    schema.write_text(
        """
enums:
  level: [beginner, advanced]
kinds:
  - name: tutorial
    label: Tutorials
    fields:
      - {name: title, required: true}
      - {name: level, type: enum, rule: {enum: level}}
      - {name: tags, type: string_list}
  - name: package
    title_field: name
    fields:
      - {name: name, required: true}
      - {name: tutorial, type: reference, target: tutorial}
""",
        encoding="utf-8",
    )

    registry = load_registry(schema)

    assert registry.sealed
    assert [kind.name for kind in registry.all_kinds()] == ["tutorial", "package"]
    assert registry.kind("package").title_field == "name"
    assert registry.enum_values("level") == ("beginner", "advanced")
    assert registry.kind("tutorial").field("level").type is FieldType.ENUM


def test_load_registry_reports_duplicate_kinds(tmp_path: Path) -> None:
    schema = tmp_path / "schema.yml"
    schema.write_text(
        "kinds:\n  - {name: job, fields: [{name: title}]}\n  - {name: job, fields: [{name: title}]}\n",
        encoding="utf-8",
    )
    with pytest.raises(DuplicateKind):
        load_registry(schema)


def test_default_registry_declares_site_kinds() -> None:
    registry = default_registry()
    names = [kind.name for kind in registry.all_kinds()]
    assert names == ["tutorial", "workshop", "success_story", "job", "package", "news"]
    assert registry.sealed
