from enum import Enum
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

CONFIG_FILENAME = "docschema.yml"


class AdapterType(str, Enum):
    """Source adapter variants."""

    FRONTMATTER = "frontmatter"
    PACKAGE_INDEX = "package_index"
    FEED = "feed"
    SCRAPE = "scrape"


class SourceConfig(BaseModel):
    """One configured external source."""

    name: str = Field(description="Unique source name used in diagnostics and --source filters.")
    adapter: AdapterType
    locator: str = Field(description="Path or URL handed to the fetch collaborator.")
    kind: str | None = Field(
        default=None,
        description="Content kind produced by the source (front matter may override per document).",
    )
    enabled: bool = Field(default=True)
    options: dict[str, Any] = Field(
        default_factory=dict,
        description="Adapter-specific settings (selectors, field_map, body_field, pages).",
    )

    @field_validator("name", "locator")
    def _strip(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("value cannot be empty")
        return cleaned


class PipelineSettings(BaseModel):
    """Concurrency and failure policy for a run."""

    max_workers: int = Field(default=4, ge=1, le=64, description="Adapters fetched in parallel.")
    source_timeout: float | None = Field(
        default=60.0,
        gt=0,
        description="Seconds before a source is treated as unavailable (unset disables the limit).",
    )
    strict: bool = Field(
        default=False,
        description="Report skipped malformed items as errors instead of warnings.",
    )


class SiteDataSettings(BaseModel):
    """Options for the site data emitter."""

    output_dir: Path = Field(default=Path("site/data"))
    format: Literal["json", "yaml"] = Field(default="json")
    include_provenance: bool = Field(
        default=False,
        description="Add a '_source' entry (adapter and locator) to every emitted item.",
    )
    write_report: bool = Field(default=True, description="Write run-report.json next to the data files.")

    @field_validator("output_dir", mode="before")
    def _ensure_path(cls, value: Any) -> Path:
        return Path(value)


class CmsSettings(BaseModel):
    """Options for the CMS config emitter."""

    output_path: Path = Field(default=Path("site/admin/config.yml"))
    backend: dict[str, Any] = Field(
        default_factory=lambda: {"name": "git-gateway", "branch": "main"},
    )
    media_folder: str = Field(default="static/media")
    content_root: str = Field(
        default="data",
        description="Folder prefix for collections whose kind does not declare a folder.",
    )

    @field_validator("output_path", mode="before")
    def _ensure_path(cls, value: Any) -> Path:
        return Path(value)


class Config(BaseModel):
    project_name: str = Field(default="docschema project")
    schema_path: Path | None = Field(
        default=None,
        description="Optional YAML schema document; the built-in schema is used when unset.",
    )
    content_dir: Path = Field(default=Path("."), description="Base directory for relative file locators.")
    http_timeout: float = Field(default=30.0, gt=0)
    sources: list[SourceConfig] = Field(default_factory=list)
    pipeline: PipelineSettings = Field(default_factory=PipelineSettings)
    site: SiteDataSettings = Field(default_factory=SiteDataSettings)
    cms: CmsSettings = Field(default_factory=CmsSettings)

    @field_validator("content_dir", mode="before")
    def _ensure_path(cls, value: Any) -> Path:
        return Path(value)

    @field_validator("schema_path", mode="before")
    def _ensure_optional_path(cls, value: Any) -> Path | None:
        if value is None or value == "":
            return None
        return Path(value)

    @model_validator(mode="after")
    def _unique_source_names(self) -> "Config":
        seen: set[str] = set()
        for source in self.sources:
            if source.name in seen:
                raise ValueError(f"Duplicate source name '{source.name}'.")
            seen.add(source.name)
        return self

    @model_validator(mode="after")
    def _separate_outputs(self) -> "Config":
        check_output_layout(self.site.output_dir, self.cms.output_path)
        return self

    def select_sources(self, names: list[str] | None = None) -> list[SourceConfig]:
        """Return enabled sources, optionally restricted to ``names`` (in config order)."""
        enabled = [source for source in self.sources if source.enabled]
        if not names:
            return enabled
        known = {source.name for source in self.sources}
        unknown = sorted(set(names) - known)
        if unknown:
            raise ValueError(f"Unknown source(s): {', '.join(unknown)}")
        wanted = set(names)
        return [source for source in enabled if source.name in wanted]


def load_config(path: str | Path) -> Config:
    """Load configuration and resolve relative paths based on the config location.

    ``path`` may point to a file or to a directory holding ``docschema.yml``.
    A directory without a config file yields the defaults anchored there.
    """
    candidate = Path(path)
    data: dict[str, Any] = {}
    if candidate.is_dir():
        config_file = candidate / CONFIG_FILENAME
        if config_file.exists():
            data = _read_yaml(config_file)
        base_dir = candidate.resolve()
    else:
        if not candidate.exists():
            raise FileNotFoundError(candidate)
        data = _read_yaml(candidate)
        base_dir = candidate.parent.resolve()

    cfg = Config(**data)

    def _abs(value: Path) -> Path:
        return value if value.is_absolute() else (base_dir / value).resolve()

    cfg.content_dir = _abs(cfg.content_dir)
    if cfg.schema_path is not None:
        cfg.schema_path = _abs(cfg.schema_path)
    cfg.site.output_dir = _abs(cfg.site.output_dir)
    cfg.cms.output_path = _abs(cfg.cms.output_path)
    check_output_layout(cfg.site.output_dir, cfg.cms.output_path)
    return cfg


def check_output_layout(output_dir: Path, cms_path: Path) -> None:
    """Site data is pruned on every run, so the CMS config must live outside it."""
    if cms_path.resolve().is_relative_to(output_dir.resolve()):
        raise ValueError(
            f"cms.output_path {cms_path} must not be inside site.output_dir {output_dir}."
        )


def _read_yaml(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration {path} must define a mapping.")
    return data
