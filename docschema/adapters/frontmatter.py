"""Documents with a YAML header block followed by free-form body text."""

from __future__ import annotations

from typing import Any, Callable, Iterator

import yaml

from ..config import AdapterType
from ..fetch import FetchError
from ..records import CanonicalRecord
from .base import AdapterError, RawItem, SourceAdapter, SourceUnavailable, text_or_none

MarkupParser = Callable[[str], tuple[dict[str, Any], str]]

KIND_KEY = "kind"
SLUG_KEY = "slug"


class FrontMatterError(ValueError):
    """Raised when a document has malformed front matter."""


def split_front_matter(text: str) -> tuple[dict[str, Any], str]:
    """Split ``---`` fenced YAML front matter from the document body."""
    lines = text.removeprefix("\ufeff").splitlines()
    if not lines:
        return {}, ""
    if lines[0].strip() != "---":
        return {}, text

    front_lines: list[str] = []
    for idx, line in enumerate(lines[1:], start=1):
        if line.strip() == "---":
            try:
                data = yaml.safe_load("\n".join(front_lines)) or {}
            except yaml.YAMLError as exc:
                raise FrontMatterError(f"Invalid YAML front matter: {exc}") from exc
            if not isinstance(data, dict):
                raise FrontMatterError("Front matter must be a mapping.")
            return data, "\n".join(lines[idx + 1 :])
        front_lines.append(line)
    raise FrontMatterError("Closing front matter delimiter '---' missing.")


class FrontMatterAdapter(SourceAdapter):
    """Map header keys to fields by name; the body lands in ``body_field``."""

    adapter_type = AdapterType.FRONTMATTER

    def __init__(self, *args: Any, parser: MarkupParser = split_front_matter, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.parser = parser

    @property
    def body_field(self) -> str:
        return str(self.options.get("body_field", "body"))

    def fetch(self, locator: str) -> Iterator[RawItem]:
        try:
            paths = self.fetcher.listing(locator)
        except FetchError as exc:
            raise SourceUnavailable(str(exc)) from exc

        for path in paths:
            self.raise_if_cancelled()
            try:
                payload = self.fetcher.fetch(path)
            except FetchError as exc:
                yield RawItem(locator=path, error=str(exc))
                continue
            yield RawItem(locator=path, payload=payload)

    def normalize(self, item: RawItem) -> CanonicalRecord:
        try:
            text = item.payload.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise AdapterError(f"not valid UTF-8: {exc}", locator=item.locator) from exc
        try:
            header, body = self.parser(text)
        except FrontMatterError as exc:
            raise AdapterError(str(exc), locator=item.locator) from exc

        kind = self._resolve_kind(text_or_none(header.get(KIND_KEY)), item.locator)
        names = set(kind.field_names)

        values: dict[str, Any] = {}
        unknown: list[str] = []
        for key, value in header.items():
            key = str(key)
            if key in (KIND_KEY, SLUG_KEY):
                continue
            if key in names:
                values[key] = value
            else:
                unknown.append(key)

        body = body.strip()
        if body and self.body_field in names and self.body_field not in values:
            values[self.body_field] = body

        record = self._record(kind, values, item, slug=text_or_none(header.get(SLUG_KEY)))
        for key in unknown:
            self._warn(
                record,
                f"Unknown front matter key '{key}' in {item.locator} ignored.",
                field=key,
            )
        return record
