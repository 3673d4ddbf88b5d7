"""Paginated package-index listings mapped to package entries."""

from __future__ import annotations

import json
from typing import Any, Iterator, Mapping
from urllib.parse import urljoin

from ..config import AdapterType
from ..records import CanonicalRecord
from .base import AdapterError, RawItem, SourceAdapter, SourceUnavailable, text_or_none

DEFAULT_KIND = "package"
DEFAULT_FIELD_MAP = {"description": "synopsis", "keywords": "tags", "url": "homepage"}


class PackageIndexAdapter(SourceAdapter):
    """Follow ``next`` links through the index until it is exhausted.

    Each page is a JSON object ``{"packages": [...], "next": <locator|null>}``.
    Entry keys are renamed through ``field_map`` and kept when the kind
    declares them; ``name`` supplies the slug.
    """

    adapter_type = AdapterType.PACKAGE_INDEX

    def check(self) -> None:
        if self.source.kind is None and not self.registry.has_kind(DEFAULT_KIND):
            raise SourceUnavailable(f"kind '{DEFAULT_KIND}' is not in the schema")
        super().check()

    @property
    def field_map(self) -> dict[str, str]:
        mapping = dict(DEFAULT_FIELD_MAP)
        mapping.update({str(k): str(v) for k, v in (self.options.get("field_map") or {}).items()})
        return mapping

    def fetch(self, locator: str) -> Iterator[RawItem]:
        page_locator: str | None = locator
        visited: set[str] = set()
        while page_locator and page_locator not in visited:
            visited.add(page_locator)
            self.raise_if_cancelled()
            page = self._load_page(page_locator)
            entries = page.get("packages") or []
            if not isinstance(entries, list):
                raise SourceUnavailable(f"page {page_locator} has no 'packages' list")
            for index, entry in enumerate(entries):
                yield RawItem(locator=f"{page_locator}#{index}", payload=entry)
            if not entries:
                break
            next_locator = text_or_none(page.get("next"))
            page_locator = urljoin(page_locator, next_locator) if next_locator else None

    def normalize(self, item: RawItem) -> CanonicalRecord:
        entry = item.payload
        if not isinstance(entry, Mapping):
            raise AdapterError("index entry is not an object", locator=item.locator)
        name = text_or_none(entry.get("name"))
        if name is None:
            raise AdapterError("index entry has no name", locator=item.locator, field="name")

        kind = self._resolve_kind(self.source.kind or DEFAULT_KIND, item.locator)
        names = set(kind.field_names)
        field_map = self.field_map

        values: dict[str, Any] = {}
        for key, value in entry.items():
            target = field_map.get(str(key), str(key))
            if target in names and value is not None and target not in values:
                values[target] = value
        if "name" in names:
            values["name"] = name
        return self._record(kind, values, item, slug=name)

    def _load_page(self, locator: str) -> dict[str, Any]:
        raw = self._fetch_bytes(locator)
        try:
            page = json.loads(raw)
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise SourceUnavailable(f"invalid JSON page at {locator}: {exc}") from exc
        if not isinstance(page, dict):
            raise SourceUnavailable(f"page at {locator} is not a JSON object")
        return page
