"""Wire adapters, normalizer, validator and emitters into one batch run."""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

from .adapters import AdapterResult, build_adapter, unavailable_result
from .config import Config, PipelineSettings, SourceConfig
from .emitters import render_cms_config, render_site_data, site_data_patterns, write_artifacts
from .fetch import Fetcher, FileFetcher, HttpFetcher, RoutingFetcher
from .normalize import normalize_records
from .records import CanonicalRecord, Diagnostic, utc_now
from .reporting import (
    RunOutcome,
    RunReport,
    assemble_report,
    count_published,
    outcome_for,
    write_report,
)
from .schema import SchemaRegistry, default_registry, load_registry
from .validation import ValidationReport, validate_records

logger = logging.getLogger(__name__)


def build_registry(config: Config) -> SchemaRegistry:
    """Build the run's registry. Raises SchemaError, which aborts the run."""
    if config.schema_path is None:
        return default_registry()
    return load_registry(config.schema_path)


def build_fetcher(config: Config) -> RoutingFetcher:
    return RoutingFetcher(FileFetcher(config.content_dir), HttpFetcher(timeout=config.http_timeout))


@dataclass(slots=True)
class PipelineResult:
    """Everything a run produced, in deterministic order."""

    sources: list[AdapterResult] = field(default_factory=list)
    validation: ValidationReport = field(default_factory=ValidationReport)
    diagnostics: list[Diagnostic] = field(default_factory=list)
    site_paths: list[Path] = field(default_factory=list)
    cms_paths: list[Path] = field(default_factory=list)
    report: RunReport | None = None
    report_path: Path | None = None

    @property
    def outcome(self) -> RunOutcome:
        return outcome_for(self.diagnostics)

    @property
    def publishable(self) -> list[CanonicalRecord]:
        return self.validation.publishable

    @property
    def error_count(self) -> int:
        return sum(1 for diagnostic in self.diagnostics if diagnostic.is_error)

    @property
    def warning_count(self) -> int:
        return len(self.diagnostics) - self.error_count


async def collect_sources(
    sources: Sequence[SourceConfig],
    registry: SchemaRegistry,
    fetcher: Fetcher,
    settings: PipelineSettings,
) -> list[AdapterResult]:
    """Run every source adapter concurrently, bounded by ``max_workers``.

    Results come back in source configuration order regardless of completion
    order. A failing or timed out source contributes no records and one
    diagnostic; siblings keep running.
    """
    semaphore = asyncio.Semaphore(settings.max_workers)

    async def run_one(source: SourceConfig) -> AdapterResult:
        adapter = build_adapter(source, registry, fetcher, strict=settings.strict)
        async with semaphore:
            logger.info("Fetching source '%s' (%s).", source.name, source.adapter.value)
            cancel = threading.Event()
            worker = asyncio.ensure_future(asyncio.to_thread(adapter.collect, cancel))
            try:
                return await asyncio.wait_for(asyncio.shield(worker), settings.source_timeout)
            except asyncio.TimeoutError:
                cancel.set()
                # The slot stays taken until the worker reaches its next checkpoint.
                await asyncio.gather(worker, return_exceptions=True)
                return unavailable_result(source.name, f"timed out after {settings.source_timeout:g}s")
            except Exception as exc:
                logger.exception("Source '%s' failed unexpectedly.", source.name)
                return unavailable_result(source.name, f"{type(exc).__name__}: {exc}")

    return list(await asyncio.gather(*(run_one(source) for source in sources)))


def process_records(
    results: Sequence[AdapterResult],
    registry: SchemaRegistry,
) -> ValidationReport:
    """Normalize the complete record set, then validate it."""
    records = [record for result in results for record in result.records]
    normalized = normalize_records(records, registry, fetched_at=utc_now())
    return validate_records(normalized, registry)


async def emit_artifacts(
    config: Config,
    registry: SchemaRegistry,
    publishable: Sequence[CanonicalRecord],
) -> tuple[list[Path], list[Path]]:
    """Run both emitters concurrently; they write to disjoint destinations."""

    def emit_site() -> list[Path]:
        artifacts = render_site_data(publishable, registry, config.site)
        return write_artifacts(artifacts, config.site.output_dir, prune=site_data_patterns(config.site))

    def emit_cms() -> list[Path]:
        output = config.cms.output_path
        artifact = render_cms_config(registry, config.cms, destination=output.name)
        return write_artifacts([artifact], output.parent)

    site_paths, cms_paths = await asyncio.gather(asyncio.to_thread(emit_site), asyncio.to_thread(emit_cms))
    return site_paths, cms_paths


async def run_pipeline_async(
    config: Config,
    registry: SchemaRegistry,
    fetcher: Fetcher,
    *,
    only: Sequence[str] | None = None,
    emit: bool = True,
) -> PipelineResult:
    start = time.perf_counter()
    sources = config.select_sources(list(only) if only else None)

    results = await collect_sources(sources, registry, fetcher, config.pipeline)
    validation = process_records(results, registry)

    diagnostics = [diagnostic for result in results for diagnostic in result.diagnostics]
    diagnostics.extend(validation.diagnostics)
    result = PipelineResult(sources=results, validation=validation, diagnostics=diagnostics)

    if not emit:
        return result

    result.site_paths, result.cms_paths = await emit_artifacts(config, registry, validation.publishable)
    result.report = assemble_report(
        project=config.project_name,
        duration_seconds=time.perf_counter() - start,
        results=results,
        diagnostics=diagnostics,
        published=count_published(validation.publishable, [kind.name for kind in registry.all_kinds()]),
        artifacts=[*result.site_paths, *result.cms_paths],
    )
    if config.site.write_report:
        result.report_path = write_report(result.report, config.site.output_dir.parent)
    logger.info("Run finished: %s.", result.outcome.value)
    return result


def run_pipeline(
    config: Config,
    registry: SchemaRegistry,
    fetcher: Fetcher,
    *,
    only: Sequence[str] | None = None,
    emit: bool = True,
) -> PipelineResult:
    """Synchronous entry point around :func:`run_pipeline_async`."""
    return asyncio.run(run_pipeline_async(config, registry, fetcher, only=only, emit=emit))
