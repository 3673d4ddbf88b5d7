from __future__ import annotations

import time
from typing import Mapping

import pytest

from docschema.fetch import FetchError
from docschema.schema import SchemaRegistry, default_registry


class MemoryFetcher:
    """Serve canned payloads; an exception value is raised on fetch."""

    def __init__(
        self,
        payloads: Mapping[str, bytes | str | Exception],
        delays: Mapping[str, float] | None = None,
    ) -> None:
        self.payloads = dict(payloads)
        self.delays = dict(delays or {})
        self.requested: list[str] = []

    def fetch(self, locator: str) -> bytes:
        self.requested.append(locator)
        if locator in self.delays:
            time.sleep(self.delays[locator])
        if locator not in self.payloads:
            raise FetchError(f"No such locator: {locator}", locator=locator)
        payload = self.payloads[locator]
        if isinstance(payload, Exception):
            raise payload
        if isinstance(payload, str):
            return payload.encode("utf-8")
        return payload

    def listing(self, locator: str) -> list[str]:
        if locator in self.payloads:
            return [locator]
        prefix = locator.rstrip("/") + "/"
        children = sorted(key for key in self.payloads if key.startswith(prefix))
        if not children:
            raise FetchError(f"Nothing found under {locator}", locator=locator)
        return children


@pytest.fixture
def registry() -> SchemaRegistry:
    return default_registry()


@pytest.fixture
def memory_fetcher() -> type[MemoryFetcher]:
    return MemoryFetcher
