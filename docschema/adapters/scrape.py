"""Extract fields from fetched markup with XPath selectors."""

from __future__ import annotations

from typing import Any, Iterator

from lxml import etree, html

from ..config import AdapterType
from ..fetch import FetchError
from ..records import CanonicalRecord
from ..schema import FieldType
from .base import AdapterError, RawItem, SourceAdapter, SourceUnavailable, text_or_none

SLUG_SELECTOR = "slug"


class ScrapeAdapter(SourceAdapter):
    """One record per fetched page.

    ``options.selectors`` maps field names (and optionally ``slug``) to XPath
    expressions. A selector without a match leaves the field absent; a
    required field without a match rejects the page.
    """

    adapter_type = AdapterType.SCRAPE

    def check(self) -> None:
        super().check()
        if self.source.kind is None:
            raise SourceUnavailable("scrape sources need a configured kind")
        selectors = self.options.get("selectors")
        if not isinstance(selectors, dict) or not selectors:
            raise SourceUnavailable("scrape sources need a 'selectors' mapping")
        for expression in selectors.values():
            try:
                etree.XPath(str(expression))
            except etree.XPathSyntaxError as exc:
                raise SourceUnavailable(f"invalid selector '{expression}': {exc}") from exc

    @property
    def selectors(self) -> dict[str, str]:
        return {str(key): str(value) for key, value in (self.options.get("selectors") or {}).items()}

    def fetch(self, locator: str) -> Iterator[RawItem]:
        pages = self.options.get("pages") or [locator]
        failures = 0
        for page in pages:
            self.raise_if_cancelled()
            page = str(page)
            try:
                payload = self.fetcher.fetch(page)
            except FetchError as exc:
                failures += 1
                if failures == len(pages):
                    raise SourceUnavailable(str(exc)) from exc
                yield RawItem(locator=page, error=str(exc))
                continue
            yield RawItem(locator=page, payload=payload)

    def normalize(self, item: RawItem) -> CanonicalRecord:
        try:
            document = html.fromstring(item.payload)
        except (etree.ParserError, ValueError) as exc:
            raise AdapterError(f"unparseable markup: {exc}", locator=item.locator) from exc

        kind = self._resolve_kind(None, item.locator)
        values: dict[str, Any] = {}
        slug: str | None = None

        for name, expression in self.selectors.items():
            matches = _select(document, expression)
            if name == SLUG_SELECTOR:
                slug = matches[0] if matches else None
                continue
            definition = kind.field(name)
            if definition is None:
                continue
            if not matches:
                if definition.required:
                    raise AdapterError(
                        f"required field '{name}' not found by selector '{expression}'",
                        locator=item.locator,
                        field=name,
                    )
                continue
            if definition.type is FieldType.STRING_LIST:
                values[name] = matches
            else:
                values[name] = matches[0]

        return self._record(kind, values, item, slug=slug)


def _select(document: Any, expression: str) -> list[str]:
    result = document.xpath(expression)
    if not isinstance(result, list):
        result = [result]
    texts: list[str] = []
    for match in result:
        if isinstance(match, etree._Element):
            text = text_or_none(match.text_content())
        else:
            text = text_or_none(match)
        if text:
            texts.append(" ".join(text.split()))
    return texts
