"""Source adapters turning external sources into canonical records."""

from __future__ import annotations

from ..config import AdapterType, SourceConfig
from ..fetch import Fetcher
from ..schema import SchemaRegistry
from .base import (
    AdapterError,
    AdapterResult,
    RawItem,
    SourceAdapter,
    SourceUnavailable,
    unavailable_result,
)
from .feed import FeedAdapter
from .frontmatter import FrontMatterAdapter, FrontMatterError, split_front_matter
from .package_index import PackageIndexAdapter
from .scrape import ScrapeAdapter

ADAPTERS: dict[AdapterType, type[SourceAdapter]] = {
    AdapterType.FRONTMATTER: FrontMatterAdapter,
    AdapterType.PACKAGE_INDEX: PackageIndexAdapter,
    AdapterType.FEED: FeedAdapter,
    AdapterType.SCRAPE: ScrapeAdapter,
}


def build_adapter(
    source: SourceConfig,
    registry: SchemaRegistry,
    fetcher: Fetcher,
    *,
    strict: bool = False,
) -> SourceAdapter:
    """Instantiate the adapter variant configured for ``source``."""
    adapter_cls = ADAPTERS[source.adapter]
    return adapter_cls(source, registry, fetcher, strict=strict)


__all__ = [
    "ADAPTERS",
    "AdapterError",
    "AdapterResult",
    "FeedAdapter",
    "FrontMatterAdapter",
    "FrontMatterError",
    "PackageIndexAdapter",
    "RawItem",
    "ScrapeAdapter",
    "SourceAdapter",
    "SourceUnavailable",
    "build_adapter",
    "split_front_matter",
    "unavailable_result",
]
