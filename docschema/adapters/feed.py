"""RSS 2.0 and Atom 1.0 feeds, one record of a fixed kind per entry."""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Iterator

from lxml import etree

from ..config import AdapterType
from ..records import CanonicalRecord
from .base import AdapterError, RawItem, SourceAdapter, SourceUnavailable, text_or_none

logger = logging.getLogger(__name__)

ATOM_NS = "http://www.w3.org/2005/Atom"
DEFAULT_KIND = "news"


class FeedAdapter(SourceAdapter):
    """Parse a syndication feed; malformed entries are skipped, not fatal."""

    adapter_type = AdapterType.FEED

    def check(self) -> None:
        if self.source.kind is None and not self.registry.has_kind(DEFAULT_KIND):
            raise SourceUnavailable(f"kind '{DEFAULT_KIND}' is not in the schema")
        super().check()

    def fetch(self, locator: str) -> Iterator[RawItem]:
        raw = self._fetch_bytes(locator)
        parser = etree.XMLParser(resolve_entities=False, no_network=True)
        try:
            root = etree.fromstring(raw, parser=parser)
        except etree.XMLSyntaxError as exc:
            raise SourceUnavailable(f"malformed feed XML at {locator}: {exc}") from exc

        if root.tag == f"{{{ATOM_NS}}}feed":
            entries = root.findall(f"{{{ATOM_NS}}}entry")
        elif root.tag == "rss":
            channel = root.find("channel")
            entries = channel.findall("item") if channel is not None else []
        else:
            raise SourceUnavailable(f"unknown feed type '{root.tag}' at {locator}")

        for index, element in enumerate(entries):
            yield RawItem(locator=f"{locator}#{index}", payload=element)

    def normalize(self, item: RawItem) -> CanonicalRecord:
        element = item.payload
        if element.tag == f"{{{ATOM_NS}}}entry":
            fields = _atom_fields(element)
        else:
            fields = _rss_fields(element)

        if not fields.get("title"):
            raise AdapterError("entry has no title", locator=item.locator, field="title")
        if not fields.get("link"):
            raise AdapterError("entry has no link", locator=item.locator, field="link")

        kind = self._resolve_kind(self.source.kind or DEFAULT_KIND, item.locator)
        names = set(kind.field_names)
        values = {key: value for key, value in fields.items() if key in names and value not in (None, [])}
        return self._record(kind, values, item)


def _rss_fields(element: Any) -> dict[str, Any]:
    return {
        "title": _text(element, "title"),
        "link": _text(element, "link") or _permalink_guid(element),
        "description": _text(element, "description"),
        "date": _parse_rfc2822(_text(element, "pubDate")),
        "tags": [text for text in (text_or_none(c.text) for c in element.findall("category")) if text],
    }


def _atom_fields(element: Any) -> dict[str, Any]:
    link = None
    for link_elem in element.findall(f"{{{ATOM_NS}}}link"):
        href = text_or_none(link_elem.get("href"))
        if href and link_elem.get("rel", "alternate") == "alternate":
            link = href
            break
    published = _text(element, f"{{{ATOM_NS}}}published") or _text(element, f"{{{ATOM_NS}}}updated")
    return {
        "title": _text(element, f"{{{ATOM_NS}}}title"),
        "link": link,
        "description": _text(element, f"{{{ATOM_NS}}}summary"),
        "date": _parse_iso(published),
        "tags": [
            term
            for term in (text_or_none(c.get("term")) for c in element.findall(f"{{{ATOM_NS}}}category"))
            if term
        ],
    }


def _text(element: Any, tag: str) -> str | None:
    child = element.find(tag)
    if child is None:
        return None
    return text_or_none(child.text)


def _permalink_guid(element: Any) -> str | None:
    guid = element.find("guid")
    if guid is None or guid.get("isPermaLink", "true") == "false":
        return None
    value = text_or_none(guid.text)
    if value and value.startswith(("http://", "https://")):
        return value
    return None


def _parse_rfc2822(value: str | None) -> date | None:
    if not value:
        return None
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        logger.warning("Invalid pubDate '%s'; ignoring.", value)
        return None
    return _as_utc_date(parsed)


def _parse_iso(value: str | None) -> date | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.warning("Invalid timestamp '%s'; ignoring.", value)
        return None
    return _as_utc_date(parsed)


def _as_utc_date(value: datetime) -> date:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).date()
