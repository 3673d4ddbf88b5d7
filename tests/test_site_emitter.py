from __future__ import annotations

import json
from datetime import date
from pathlib import Path

import yaml

from docschema.config import SiteDataSettings
from docschema.emitters import (
    Artifact,
    build_site_data,
    render_site_data,
    site_data_patterns,
    write_artifacts,
)
from docschema.records import CanonicalRecord, Provenance


def _record(kind: str, slug: str, **values) -> CanonicalRecord:
    return CanonicalRecord(
        kind=kind,
        slug=slug,
        values=values,
        provenance=Provenance(adapter="frontmatter", source="docs", locator=f"{kind}/{slug}.md"),
    )


def _documents(records, registry, **settings):
    return {doc["kind"]: doc for doc in build_site_data(records, registry, SiteDataSettings(**settings))}


def test_every_kind_gets_a_document(registry) -> None:
    documents = build_site_data([], registry)

    assert [doc["kind"] for doc in documents] == [
        "tutorial",
        "workshop",
        "success_story",
        "job",
        "package",
        "news",
    ]
    assert all(doc["items"] == [] for doc in documents)


def test_items_sorted_by_slug_case_insensitively(registry) -> None:
    records = [
        _record("news", "beta", title="B", link="https://b"),
        _record("news", "Alpha", title="A", link="https://a"),
        _record("news", "gamma", title="G", link="https://g"),
    ]

    items = _documents(records, registry)["news"]["items"]

    assert [item["slug"] for item in items] == ["Alpha", "beta", "gamma"]


def test_fields_follow_registry_order(registry) -> None:
    record = _record(
        "tutorial",
        "pointers-in-ocaml",
        body="Text",
        date=date(2024, 5, 1),
        tags=["language"],
        title="Pointers in OCaml",
    )

    item = _documents([record], registry)["tutorial"]["items"][0]

    assert list(item) == ["slug", "title", "tags", "date", "body"]
    assert item["date"] == "2024-05-01"


def test_defaults_are_emitted_only_when_flagged(registry) -> None:
    workshop = _record("workshop", "ocaml-2024", title="OCaml 2024", date=date(2024, 9, 1))
    story = _record("success_story", "acme", title="Acme")

    documents = _documents([workshop, story], registry)

    assert documents["workshop"]["items"][0]["online"] is False
    assert documents["success_story"]["items"][0]["priority"] == 100
    assert "location" not in documents["workshop"]["items"][0]


def test_object_fields_are_projected(registry) -> None:
    workshop = _record(
        "workshop",
        "ocaml-2024",
        title="OCaml 2024",
        date=date(2024, 9, 1),
        committee={"role": "chair", "name": "Ada", "extra": "dropped"},
    )

    item = _documents([workshop], registry)["workshop"]["items"][0]

    assert item["committee"] == {"name": "Ada", "role": "chair"}


def test_provenance_is_optional(registry) -> None:
    record = _record("news", "release", title="R", link="https://r")

    plain = _documents([record], registry)["news"]["items"][0]
    traced = _documents([record], registry, include_provenance=True)["news"]["items"][0]

    assert "_source" not in plain
    assert traced["_source"] == {"adapter": "frontmatter", "locator": "news/release.md"}


def test_render_is_byte_identical_for_equal_input(registry) -> None:
    records = [
        _record("news", "b", title="B", link="https://b"),
        _record("news", "a", title="A with accents é", link="https://a"),
    ]

    first = render_site_data(records, registry)
    second = render_site_data(list(reversed(records)), registry)

    assert [artifact.payload for artifact in first] == [artifact.payload for artifact in second]
    news = next(artifact for artifact in first if artifact.destination == "news.json")
    assert news.payload.endswith(b"\n")
    assert "é" in news.payload.decode("utf-8")
    assert json.loads(news.payload)["items"][0]["slug"] == "a"


def test_yaml_format(registry) -> None:
    record = _record("job", "ocaml-dev", title="Dev", company="Acme", link="https://acme")

    artifacts = render_site_data([record], registry, SiteDataSettings(format="yaml"))

    job = next(artifact for artifact in artifacts if artifact.destination == "job.yml")
    assert yaml.safe_load(job.payload)["items"][0]["company"] == "Acme"
    assert site_data_patterns(SiteDataSettings(format="yaml")) == ("*.yml",)


def test_write_artifacts_prunes_stale_files(tmp_path: Path) -> None:
    stale = tmp_path / "podcast.json"
    stale.write_text("{}", encoding="utf-8")
    keep = tmp_path / "notes.txt"
    keep.write_text("keep", encoding="utf-8")

    written = write_artifacts([Artifact("news.json", b"{}\n")], tmp_path, prune=("*.json",))

    assert written == [tmp_path / "news.json"]
    assert not stale.exists()
    assert keep.exists()
