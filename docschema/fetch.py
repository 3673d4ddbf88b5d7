"""Raw-fetch collaborators used by source adapters."""

from __future__ import annotations

import logging
from pathlib import Path
from types import TracebackType
from typing import Iterator, Protocol

import httpx

logger = logging.getLogger(__name__)

DOCUMENT_SUFFIXES = {".md", ".markdown", ".mdx"}


class FetchError(RuntimeError):
    """Raised when raw bytes cannot be retrieved for a locator."""

    def __init__(self, message: str, *, locator: str) -> None:
        super().__init__(message)
        self.locator = locator


class Fetcher(Protocol):
    def fetch(self, locator: str) -> bytes:
        ...

    def listing(self, locator: str) -> list[str]:
        ...


class FileFetcher:
    """Read raw bytes from the local filesystem."""

    def __init__(self, root: str | Path | None = None, *, suffixes: set[str] | None = None) -> None:
        self.root = Path(root) if root is not None else None
        self.suffixes = suffixes or DOCUMENT_SUFFIXES

    def resolve(self, locator: str) -> Path:
        path = Path(locator)
        if not path.is_absolute() and self.root is not None:
            path = self.root / path
        return path

    def fetch(self, locator: str) -> bytes:
        path = self.resolve(locator)
        try:
            return path.read_bytes()
        except OSError as exc:
            raise FetchError(f"Cannot read {path}: {exc}", locator=locator) from exc

    def listing(self, locator: str) -> list[str]:
        """Return document paths below ``locator`` in a deterministic order."""
        path = self.resolve(locator)
        if path.is_file():
            return [str(path)]
        if not path.is_dir():
            raise FetchError(f"Source directory not found: {path}", locator=locator)
        return [str(item) for item in _iter_documents(path, self.suffixes)]


class HttpFetcher:
    """Fetch raw bytes over HTTP(S) with httpx."""

    def __init__(self, client: httpx.Client | None = None, *, timeout: float = 30.0) -> None:
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout, follow_redirects=True)

    def __enter__(self) -> "HttpFetcher":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def fetch(self, locator: str) -> bytes:
        logger.debug("GET %s", locator)
        try:
            response = self._client.get(locator)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise FetchError(f"Request for {locator} failed: {exc}", locator=locator) from exc
        return response.content

    def listing(self, locator: str) -> list[str]:
        return [locator]


class RoutingFetcher:
    """Send ``http(s)://`` locators to HTTP and everything else to the filesystem."""

    def __init__(self, files: FileFetcher, http: HttpFetcher) -> None:
        self.files = files
        self.http = http

    def _pick(self, locator: str) -> Fetcher:
        if locator.startswith(("http://", "https://")):
            return self.http
        return self.files

    def fetch(self, locator: str) -> bytes:
        return self._pick(locator).fetch(locator)

    def listing(self, locator: str) -> list[str]:
        return self._pick(locator).listing(locator)

    def close(self) -> None:
        self.http.close()


def _iter_documents(root: Path, suffixes: set[str]) -> Iterator[Path]:
    directories = sorted(p for p in root.rglob("*") if p.is_dir())
    directories.insert(0, root)

    for directory in directories:
        for path in sorted(directory.iterdir()):
            if path.is_file() and path.suffix.lower() in suffixes:
                yield path
