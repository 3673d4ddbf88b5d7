"""Shared contract for source adapters."""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ClassVar, Iterator, Mapping

from ..config import AdapterType, SourceConfig
from ..fetch import Fetcher, FetchError
from ..records import (
    CanonicalRecord,
    Diagnostic,
    DiagnosticCode,
    Provenance,
    Severity,
    error,
    warning,
)
from ..schema import ContentKind, SchemaRegistry

logger = logging.getLogger(__name__)


class AdapterError(ValueError):
    """Raised when a single raw item cannot be turned into a record."""

    def __init__(self, message: str, *, locator: str | None = None, field: str | None = None) -> None:
        super().__init__(message)
        self.locator = locator
        self.field = field


class SourceUnavailable(RuntimeError):
    """Raised when a whole source cannot be read."""


@dataclass(slots=True)
class RawItem:
    """One unparsed unit produced by an adapter's fetch loop."""

    locator: str
    payload: Any = None
    error: str | None = None


@dataclass(slots=True)
class AdapterResult:
    """Records and diagnostics contributed by one source."""

    source: str
    records: list[CanonicalRecord] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def available(self) -> bool:
        return not any(d.code is DiagnosticCode.SOURCE_UNAVAILABLE for d in self.diagnostics)


def unavailable_result(source: str, reason: str) -> AdapterResult:
    """Build the empty contribution of a source that could not be read."""
    logger.warning("Source '%s' unavailable: %s", source, reason)
    return AdapterResult(
        source=source,
        diagnostics=[
            error(
                DiagnosticCode.SOURCE_UNAVAILABLE,
                f"Source '{source}' unavailable: {reason}",
                source=source,
            )
        ],
    )


class SourceAdapter(ABC):
    """Turn one external source into canonical records.

    Subclasses implement :meth:`fetch`, a lazy single-use generator of raw
    items, and :meth:`normalize`, which maps one item to a record or raises
    :class:`AdapterError`. :meth:`collect` drives both and applies the
    skip-and-diagnose policy.
    """

    adapter_type: ClassVar[AdapterType]

    def __init__(
        self,
        source: SourceConfig,
        registry: SchemaRegistry,
        fetcher: Fetcher,
        *,
        strict: bool = False,
    ) -> None:
        self.source = source
        self.registry = registry
        self.fetcher = fetcher
        self.strict = strict
        self._diagnostics: list[Diagnostic] = []
        self._cancel: threading.Event | None = None

    @property
    def name(self) -> str:
        return self.source.name

    @property
    def options(self) -> Mapping[str, Any]:
        return self.source.options

    @abstractmethod
    def fetch(self, locator: str) -> Iterator[RawItem]:
        ...

    @abstractmethod
    def normalize(self, item: RawItem) -> CanonicalRecord:
        ...

    def check(self) -> None:
        """Validate source settings before fetching; raise SourceUnavailable on misconfiguration."""
        if self.source.kind is not None and not self.registry.has_kind(self.source.kind):
            raise SourceUnavailable(f"configured kind '{self.source.kind}' is not in the schema")

    def collect(self, cancel: threading.Event | None = None) -> AdapterResult:
        """Fetch and normalize every item, stopping early once ``cancel`` is set."""
        self._diagnostics = []
        self._cancel = cancel
        records: list[CanonicalRecord] = []
        try:
            self.check()
            self.raise_if_cancelled()
            for item in self.fetch(self.source.locator):
                self.raise_if_cancelled()
                try:
                    if item.error is not None:
                        raise AdapterError(item.error, locator=item.locator)
                    record = self.normalize(item)
                except AdapterError as exc:
                    self._skip(item, exc)
                    continue
                records.append(record)
        except SourceUnavailable as exc:
            return unavailable_result(self.name, str(exc))

        logger.info("Source '%s' produced %d record(s).", self.name, len(records))
        return AdapterResult(source=self.name, records=records, diagnostics=list(self._diagnostics))

    def raise_if_cancelled(self) -> None:
        """Called between fetches; stops the loop once the orchestrator gave up on the source."""
        if self._cancel is not None and self._cancel.is_set():
            raise SourceUnavailable("cancelled")

    def _skip(self, item: RawItem, exc: AdapterError) -> None:
        severity = Severity.ERROR if self.strict else Severity.WARNING
        locator = exc.locator or item.locator
        logger.warning("Skipping item %s from '%s': %s", locator, self.name, exc)
        self._diagnostics.append(
            Diagnostic(
                severity,
                DiagnosticCode.ADAPTER_ERROR,
                f"Skipped {locator}: {exc}",
                field=exc.field,
                source=self.name,
            )
        )

    def _warn(self, record: CanonicalRecord | None, message: str, *, field: str | None = None) -> None:
        self._diagnostics.append(
            warning(
                DiagnosticCode.ADAPTER_WARNING,
                message,
                kind=record.kind if record else None,
                slug=record.slug if record else None,
                field=field,
                source=self.name,
            )
        )

    def _fetch_bytes(self, locator: str) -> bytes:
        self.raise_if_cancelled()
        try:
            return self.fetcher.fetch(locator)
        except FetchError as exc:
            raise SourceUnavailable(str(exc)) from exc

    def _resolve_kind(self, name: str | None, locator: str) -> ContentKind:
        kind_name = name or self.source.kind
        if not kind_name:
            raise AdapterError("no content kind configured or declared", locator=locator)
        if not self.registry.has_kind(kind_name):
            raise AdapterError(f"unknown content kind '{kind_name}'", locator=locator)
        return self.registry.kind(kind_name)

    def _record(
        self,
        kind: ContentKind,
        values: Mapping[str, Any],
        item: RawItem,
        *,
        slug: str | None = None,
    ) -> CanonicalRecord:
        return CanonicalRecord(
            kind=kind.name,
            slug=slug,
            values=dict(values),
            provenance=Provenance(
                adapter=self.adapter_type.value,
                source=self.name,
                locator=item.locator,
            ),
        )


def text_or_none(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None
