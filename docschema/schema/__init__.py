"""Schema registry: content kinds and their field definitions."""

from .builtin import default_registry
from .models import (
    RESERVED_FIELD_NAMES,
    ContentKind,
    FieldDefinition,
    FieldRule,
    FieldType,
    KindHandle,
)
from .registry import (
    DuplicateKind,
    InvalidFieldDef,
    SchemaError,
    SchemaRegistry,
    load_registry,
    registry_from_mapping,
)

__all__ = [
    "RESERVED_FIELD_NAMES",
    "ContentKind",
    "DuplicateKind",
    "FieldDefinition",
    "FieldRule",
    "FieldType",
    "InvalidFieldDef",
    "KindHandle",
    "SchemaError",
    "SchemaRegistry",
    "default_registry",
    "load_registry",
    "registry_from_mapping",
]
