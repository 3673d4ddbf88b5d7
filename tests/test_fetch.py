from __future__ import annotations

from pathlib import Path

import httpx
import pytest

from docschema.fetch import FetchError, FileFetcher, HttpFetcher, RoutingFetcher


def test_file_listing_is_deterministic(tmp_path: Path) -> None:
    (tmp_path / "b.md").write_text("b", encoding="utf-8")
    (tmp_path / "a.markdown").write_text("a", encoding="utf-8")
    (tmp_path / "notes.txt").write_text("skip", encoding="utf-8")
    nested = tmp_path / "nested"
    nested.mkdir()
    (nested / "c.md").write_text("c", encoding="utf-8")

    fetcher = FileFetcher(tmp_path.parent)

    listed = fetcher.listing(tmp_path.name)

    assert [Path(path).relative_to(tmp_path).as_posix() for path in listed] == [
        "a.markdown",
        "b.md",
        "nested/c.md",
    ]
    assert fetcher.fetch(listed[1]) == b"b"


def test_file_listing_of_single_file(tmp_path: Path) -> None:
    doc = tmp_path / "one.md"
    doc.write_text("x", encoding="utf-8")
    assert FileFetcher().listing(str(doc)) == [str(doc)]


def test_missing_paths_raise_fetch_error(tmp_path: Path) -> None:
    fetcher = FileFetcher(tmp_path)
    with pytest.raises(FetchError, match="not found"):
        fetcher.listing("missing")
    with pytest.raises(FetchError) as excinfo:
        fetcher.fetch("missing.md")
    assert excinfo.value.locator == "missing.md"


def test_http_fetcher_returns_body_and_wraps_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/feed.xml":
            return httpx.Response(200, content=b"<rss/>")
        return httpx.Response(503)

    client = httpx.Client(transport=httpx.MockTransport(handler))
    with HttpFetcher(client) as fetcher:
        assert fetcher.fetch("https://example.org/feed.xml") == b"<rss/>"
        assert fetcher.listing("https://example.org/feed.xml") == ["https://example.org/feed.xml"]
        with pytest.raises(FetchError, match="failed"):
            fetcher.fetch("https://example.org/down")
    client.close()


def test_routing_fetcher_picks_transport(tmp_path: Path) -> None:
    (tmp_path / "doc.md").write_text("local", encoding="utf-8")

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"remote")

    client = httpx.Client(transport=httpx.MockTransport(handler))
    fetcher = RoutingFetcher(FileFetcher(tmp_path), HttpFetcher(client))

    assert fetcher.fetch("doc.md") == b"local"
    assert fetcher.fetch("http://example.org/x") == b"remote"
    fetcher.close()
    client.close()
