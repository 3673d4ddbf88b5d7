"""Typed representations of content kinds and their fields."""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

RESERVED_FIELD_NAMES = frozenset({"slug", "_source"})


class FieldType(str, Enum):
    """Semantic type of a field value."""

    STRING = "string"
    MARKDOWN = "markdown"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    ENUM = "enum"
    STRING_LIST = "string_list"
    REFERENCE = "reference"
    OBJECT = "object"


class FieldRule(BaseModel):
    """Validation rule attached to a field definition."""

    model_config = ConfigDict(frozen=True)

    pattern: Optional[str] = Field(default=None, description="Regular expression the value must match.")
    enum: Optional[str] = Field(default=None, description="Name of a registry enum the value must belong to.")
    min_length: Optional[int] = Field(default=None, ge=0)
    max_length: Optional[int] = Field(default=None, ge=0)
    required_if_present: bool = Field(
        default=False,
        description="Report violations on an optional field as errors instead of warnings.",
    )


class FieldDefinition(BaseModel):
    """A single named, typed field of a content kind."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: FieldType = Field(default=FieldType.STRING)
    required: bool = Field(default=False)
    default: Any = Field(default=None)
    emit_default: bool = Field(
        default=False,
        description="Emit the declared default in site data when the value is absent.",
    )
    rule: Optional[FieldRule] = Field(default=None)
    label: Optional[str] = Field(default=None)
    hint: Optional[str] = Field(default=None)
    target: Optional[str] = Field(default=None, description="Referenced kind for reference fields.")
    canonical: bool = Field(
        default=False,
        description="Canonicalize list entries like tags (trim, lower-case, deduplicate).",
    )
    fields: tuple["FieldDefinition", ...] = Field(default=())

    @field_validator("name")
    def _strip_name(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("field name cannot be empty")
        return cleaned

    @property
    def display_label(self) -> str:
        return self.label or self.name.replace("_", " ").capitalize()

    @property
    def is_tag_like(self) -> bool:
        return self.type is FieldType.STRING_LIST and (self.canonical or self.name == "tags")


FieldDefinition.model_rebuild()


class ContentKind(BaseModel):
    """A named, ordered set of field definitions.

    Instances are returned by :meth:`SchemaRegistry.define` and act as the
    handle for the kind in every later stage.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    fields: tuple[FieldDefinition, ...]
    label: Optional[str] = None
    folder: Optional[str] = None
    title_field: str = "title"

    @property
    def display_label(self) -> str:
        return self.label or self.name.replace("_", " ").title()

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(field.name for field in self.fields)

    def field(self, name: str) -> FieldDefinition | None:
        for definition in self.fields:
            if definition.name == name:
                return definition
        return None


KindHandle = ContentKind
