from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from docschema.normalize import (
    canonical_tags,
    coerce_boolean,
    coerce_date,
    coerce_number,
    normalize_record,
    normalize_records,
    slugify,
)
from docschema.records import CanonicalRecord, Provenance
from docschema.schema import FieldDefinition, FieldType, SchemaRegistry


def _record(kind: str = "tutorial", slug: str | None = None, **values) -> CanonicalRecord:
    return CanonicalRecord(
        kind=kind,
        slug=slug,
        values=values,
        provenance=Provenance(adapter="frontmatter", source="tutorials", locator="t.md"),
    )


@pytest.mark.parametrize(
    "value, expected",
    [
        ("Pointers in OCaml", "pointers-in-ocaml"),
        ("  Émile's  GADTs!  ", "emile-s-gadts"),
        ("***", ""),
    ],
)
def test_slugify(value: str, expected: str) -> None:
    assert slugify(value) == expected


def test_canonical_tags_trims_lowercases_and_deduplicates() -> None:
    assert canonical_tags([" Language", "language", "Compiler ", "", None]) == ["language", "compiler"]
    assert canonical_tags("Solo") == ["solo"]
    assert canonical_tags(None) == []


def test_coerce_date_parses_iso_and_keeps_garbage() -> None:
    assert coerce_date("2024-05-01") == date(2024, 5, 1)
    assert coerce_date("2024-05-01T10:00:00Z") == datetime(2024, 5, 1, 10, tzinfo=timezone.utc)
    assert coerce_date("next tuesday") == "next tuesday"
    assert coerce_date(date(2024, 1, 1)) == date(2024, 1, 1)


def test_slug_is_derived_from_title(registry) -> None:
    record = normalize_record(_record(title="Pointers in OCaml", tags=["Language"]), registry)

    assert record.slug == "pointers-in-ocaml"
    assert record.values["tags"] == ["language"]


def test_supplied_slug_wins(registry) -> None:
    record = normalize_record(_record(slug=" custom-slug ", title="Pointers in OCaml"), registry)
    assert record.slug == "custom-slug"


def test_title_field_follows_kind(registry) -> None:
    record = normalize_record(_record(kind="package", name="Lwt", version="1"), registry)
    assert record.slug == "lwt"


def test_unresolvable_slug_stays_empty(registry) -> None:
    record = normalize_record(_record(tags=["language"]), registry)
    assert record.slug is None


def test_dates_are_coerced(registry) -> None:
    record = normalize_record(_record(title="T", date="2024-05-01"), registry)
    assert record.values["date"] == date(2024, 5, 1)


def test_fetched_at_is_stamped(registry) -> None:
    stamp = datetime(2024, 6, 1, 12, tzinfo=timezone.utc)
    record = normalize_record(_record(title="T"), registry, fetched_at=stamp)

    assert record.provenance.fetched_at == stamp
    assert record.provenance.locator == "t.md"


def test_unknown_kind_is_passed_through(registry) -> None:
    original = _record(kind="podcast", title="Episode 1", tags=["A"])
    assert normalize_record(original, registry) is original


def test_normalize_records_never_drops(registry) -> None:
    records = [_record(title="A"), _record(kind="podcast"), _record(tags="x")]
    assert len(normalize_records(records, registry)) == 3


def test_scalar_tags_are_left_for_the_validator(registry) -> None:
    record = normalize_record(_record(title="Numbers", tags=5), registry)

    assert record.values["tags"] == 5
    assert record.slug == "numbers"


@pytest.mark.parametrize(
    "raw, expected",
    [("42", 42), (" 2.5 ", 2.5), ("many", "many"), (7, 7)],
)
def test_coerce_number(raw, expected) -> None:
    assert coerce_number(raw) == expected


@pytest.mark.parametrize(
    "raw, expected",
    [("true", True), ("No", False), ("maybe", "maybe"), (True, True)],
)
def test_coerce_boolean(raw, expected) -> None:
    result = coerce_boolean(raw)
    assert result == expected
    assert type(result) is type(expected)


def test_typed_fields_are_coerced(registry) -> None:
    workshop = _record(
        kind="workshop",
        title="OCaml 2024",
        date="2024-09-01",
        online="yes",
    )
    story = _record(kind="success_story", title="Acme", priority="5")

    normalized = normalize_records([workshop, story], registry)

    assert normalized[0].values["date"] == date(2024, 9, 1)
    assert normalized[0].values["online"] is True
    assert normalized[1].values["priority"] == 5


def test_object_sub_fields_are_coerced() -> None:
    registry = SchemaRegistry()
    registry.define(
        "event",
        [
            FieldDefinition(name="title"),
            FieldDefinition(
                name="schedule",
                type=FieldType.OBJECT,
                fields=(
                    FieldDefinition(name="starts", type=FieldType.DATE),
                    FieldDefinition(name="seats", type=FieldType.NUMBER),
                ),
            ),
        ],
    )
    registry.seal()
    record = _record(kind="event", title="Meetup", schedule={"starts": "2024-10-01", "seats": "40"})

    schedule = normalize_record(record, registry).values["schedule"]

    assert schedule == {"starts": date(2024, 10, 1), "seats": 40}
