"""Canonical records and the diagnostics produced about them."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

SCHEMA_LEVEL = "schema-level"


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


class Provenance(BaseModel):
    """Where a record came from."""

    model_config = ConfigDict(frozen=True)

    adapter: str = Field(description="Adapter variant, e.g. 'frontmatter'.")
    source: str = Field(description="Configured source name.")
    locator: str = Field(description="Locator of the raw item inside the source.")
    fetched_at: datetime = Field(default_factory=utc_now)

    @field_validator("fetched_at")
    def _ensure_timezone(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class CanonicalRecord(BaseModel):
    """One instance of a content kind in the normalized internal shape."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kind: str
    slug: Optional[str] = Field(default=None)
    values: dict[str, Any] = Field(default_factory=dict)
    provenance: Optional[Provenance] = Field(default=None)

    @property
    def identity(self) -> str:
        return f"{self.kind}/{self.slug or '?'}"

    def get(self, name: str, default: Any = None) -> Any:
        return self.values.get(name, default)


class Severity(str, Enum):
    """Severity level for diagnostics."""

    ERROR = "error"
    WARNING = "warning"


class DiagnosticCode(str, Enum):
    MISSING_REQUIRED = "missing-required"
    INVALID_TYPE = "invalid-type"
    RULE_VIOLATION = "rule-violation"
    INVALID_SLUG = "invalid-slug"
    UNKNOWN_KIND = "unknown-kind"
    UNKNOWN_FIELD = "unknown-field"
    DUPLICATE_SLUG = "duplicate-slug"
    UNRESOLVED_REFERENCE = "unresolved-reference"
    ADAPTER_ERROR = "adapter-error"
    ADAPTER_WARNING = "adapter-warning"
    SOURCE_UNAVAILABLE = "source-unavailable"


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """A single finding about a record, a source, or the run as a whole."""

    severity: Severity
    code: DiagnosticCode
    message: str
    kind: str | None = None
    slug: str | None = None
    field: str | None = None
    source: str | None = None

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR

    @property
    def subject(self) -> str:
        if self.kind is None:
            return self.source or SCHEMA_LEVEL
        return f"{self.kind}/{self.slug or '?'}"

    def format(self) -> str:
        location = self.subject
        if self.field:
            location = f"{location} :: {self.field}"
        return f"{self.severity.name} [{self.code.value}] {location} - {self.message}"


def error(code: DiagnosticCode, message: str, **context: Any) -> Diagnostic:
    return Diagnostic(Severity.ERROR, code, message, **context)


def warning(code: DiagnosticCode, message: str, **context: Any) -> Diagnostic:
    return Diagnostic(Severity.WARNING, code, message, **context)
