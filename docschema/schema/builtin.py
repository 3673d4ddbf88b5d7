"""Built-in content schema for the documentation site."""

from __future__ import annotations

from .models import FieldDefinition as F
from .models import FieldRule, FieldType
from .registry import SchemaRegistry

URL_PATTERN = r"^https?://\S+$"


def default_registry() -> SchemaRegistry:
    """Build and seal the stock registry used when no schema file is configured."""
    registry = SchemaRegistry()

    registry.define_enum("tutorial_section", ["getting-started", "language", "platform", "guides"])
    registry.define_enum("job_type", ["full-time", "part-time", "contract", "internship"])
    registry.define_enum("workshop_role", ["speaker", "organiser", "chair"])

    registry.define(
        "tutorial",
        [
            F(name="title", required=True, rule=FieldRule(min_length=3, max_length=120)),
            F(name="description", rule=FieldRule(max_length=300)),
            F(
                name="category",
                type=FieldType.ENUM,
                rule=FieldRule(enum="tutorial_section"),
            ),
            F(name="tags", type=FieldType.STRING_LIST, required=True, rule=FieldRule(min_length=1)),
            F(name="date", type=FieldType.DATE, required=True),
            F(name="body", type=FieldType.MARKDOWN),
        ],
        label="Tutorials",
        folder="data/tutorials",
    )

    registry.define(
        "workshop",
        [
            F(name="title", required=True),
            F(name="date", type=FieldType.DATE, required=True),
            F(name="location"),
            F(
                name="online",
                type=FieldType.BOOLEAN,
                default=False,
                emit_default=True,
            ),
            F(
                name="url",
                rule=FieldRule(pattern=URL_PATTERN, required_if_present=True),
            ),
            F(
                name="committee",
                type=FieldType.OBJECT,
                fields=(
                    F(name="name", required=True),
                    F(name="role", type=FieldType.ENUM, rule=FieldRule(enum="workshop_role")),
                ),
            ),
            F(name="tags", type=FieldType.STRING_LIST),
            F(name="body", type=FieldType.MARKDOWN),
        ],
        label="Workshops",
        folder="data/workshops",
    )

    registry.define(
        "success_story",
        [
            F(name="title", required=True),
            F(name="logo"),
            F(name="card_title", label="Card title", rule=FieldRule(max_length=80)),
            F(name="link", rule=FieldRule(pattern=URL_PATTERN)),
            F(name="priority", type=FieldType.NUMBER, default=100, emit_default=True),
            F(name="tags", type=FieldType.STRING_LIST),
            F(name="body", type=FieldType.MARKDOWN),
        ],
        label="Success stories",
        folder="data/success_stories",
    )

    registry.define(
        "job",
        [
            F(name="title", required=True),
            F(name="company", required=True),
            F(name="link", required=True, rule=FieldRule(pattern=URL_PATTERN)),
            F(name="location"),
            F(name="type", type=FieldType.ENUM, rule=FieldRule(enum="job_type")),
            F(name="date", type=FieldType.DATE),
            F(name="tags", type=FieldType.STRING_LIST),
        ],
        label="Jobs",
        folder="data/jobs",
    )

    registry.define(
        "package",
        [
            F(name="name", required=True, rule=FieldRule(pattern=r"^[a-z0-9][a-z0-9_\-]*$")),
            F(name="version", required=True),
            F(name="synopsis", rule=FieldRule(max_length=200)),
            F(name="homepage", rule=FieldRule(pattern=URL_PATTERN)),
            F(name="tags", type=FieldType.STRING_LIST),
            F(name="tutorial", type=FieldType.REFERENCE, target="tutorial", hint="Related tutorial"),
        ],
        label="Packages",
        folder="data/packages",
        title_field="name",
    )

    registry.define(
        "news",
        [
            F(name="title", required=True),
            F(name="link", required=True, rule=FieldRule(pattern=URL_PATTERN)),
            F(name="date", type=FieldType.DATE),
            F(name="description"),
            F(name="tags", type=FieldType.STRING_LIST),
        ],
        label="News",
        folder="data/news",
    )

    return registry.seal()
