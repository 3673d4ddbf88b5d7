"""CLI entrypoints for docschema."""

import logging
from pathlib import Path
from typing import Annotated, Sequence

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from .config import Config, load_config
from .emitters import EmitterError, render_cms_config, write_artifacts
from .pipeline import PipelineResult, build_fetcher, build_registry, run_pipeline
from .records import Diagnostic, Severity
from .reporting import RunOutcome
from .schema import SchemaError, SchemaRegistry

console = Console()
app = typer.Typer(help="Keep site data and CMS configuration in sync with the content schema.")

ConfigPathOption = Annotated[
    str,
    typer.Option("--config", "-c", help="Path to configuration file or project directory."),
]
SourceOption = Annotated[
    list[str] | None,
    typer.Option("--source", "-s", help="Only run the named source. Repeat to select several."),
]
StrictFlag = Annotated[
    bool,
    typer.Option("--strict", help="Report skipped malformed source items as errors."),
]
VerboseFlag = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Log pipeline progress."),
]

OUTCOME_STYLES = {
    RunOutcome.CLEAN: "green",
    RunOutcome.WARNINGS: "yellow",
    RunOutcome.ERRORS: "red",
}


@app.command()
def run(
    config_path: ConfigPathOption = "docschema.yml",
    source: SourceOption = None,
    strict: StrictFlag = False,
    fail_on_error: Annotated[
        bool,
        typer.Option("--fail-on-error", help="Exit with status 1 when any error diagnostic was produced."),
    ] = False,
    verbose: VerboseFlag = False,
) -> None:
    """Fetch every source, validate, and write site data plus CMS configuration."""
    _configure_logging(verbose)
    config = _load(config_path)
    if strict:
        config.pipeline.strict = True
    registry = _registry(config)

    result = _execute(config, registry, source, emit=True)
    _print_diagnostics(result.diagnostics)
    _print_run_summary(config, result)

    if fail_on_error and result.error_count > 0:
        raise typer.Exit(code=1)


@app.command()
def lint(
    config_path: ConfigPathOption = "docschema.yml",
    source: SourceOption = None,
    strict: StrictFlag = False,
    verbose: VerboseFlag = False,
) -> None:
    """Validate source content without writing any artifacts."""
    _configure_logging(verbose)
    config = _load(config_path)
    if strict:
        config.pipeline.strict = True
    registry = _registry(config)

    result = _execute(config, registry, source, emit=False)
    if not result.diagnostics:
        console.print(
            f"[bold green]Lint clean[/]: {len(result.publishable)} record(s), no issues detected."
        )
        raise typer.Exit()

    _print_diagnostics(result.diagnostics)
    console.print(
        f"[bold blue]Summary[/]: {result.error_count} error(s), {result.warning_count} warning(s) "
        f"across {len(result.validation.records)} record(s)."
    )
    raise typer.Exit(code=1 if result.error_count > 0 else 0)


@app.command("cms-config")
def cms_config(
    config_path: ConfigPathOption = "docschema.yml",
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write the CMS configuration here instead of the configured path."),
    ] = None,
) -> None:
    """Regenerate the CMS configuration from the schema alone."""
    config = _load(config_path)
    registry = _registry(config)
    target = output or config.cms.output_path
    try:
        artifact = render_cms_config(registry, config.cms, destination=target.name)
    except EmitterError as exc:
        console.print(f"[bold red]CMS configuration failed[/]: {escape(str(exc))}")
        raise typer.Exit(code=1) from exc
    write_artifacts([artifact], target.parent)
    console.print(
        f"[bold green]CMS config[/]: {len(registry.all_kinds())} collection(s) written to {_display_path(target)}"
    )


@app.command()
def kinds(config_path: ConfigPathOption = "docschema.yml") -> None:
    """List the registered content kinds and their fields."""
    config = _load(config_path)
    registry = _registry(config)
    for kind in registry.all_kinds():
        console.print(f"[bold blue]{kind.name}[/] ({escape(kind.display_label)})")
        for field in kind.fields:
            marker = "*" if field.required else " "
            console.print(f"  {marker} {field.name}: {field.type.value}")


def _execute(
    config: Config,
    registry: SchemaRegistry,
    sources: Sequence[str] | None,
    *,
    emit: bool,
) -> PipelineResult:
    fetcher = build_fetcher(config)
    try:
        return run_pipeline(config, registry, fetcher, only=sources, emit=emit)
    except ValueError as exc:
        console.print(f"[bold red]Cannot run[/]: {escape(str(exc))}")
        raise typer.Exit(code=1) from exc
    finally:
        fetcher.close()


def _load(config_path: str) -> Config:
    try:
        return load_config(config_path)
    except FileNotFoundError as exc:
        console.print(f"[bold red]Configuration not found[/]: {config_path}")
        raise typer.Exit(code=1) from exc
    except (ValidationError, ValueError) as exc:
        console.print(f"[bold red]Invalid configuration[/]: {escape(str(exc))}")
        raise typer.Exit(code=1) from exc


def _registry(config: Config) -> SchemaRegistry:
    try:
        return build_registry(config)
    except SchemaError as exc:
        location = ".".join(part for part in (exc.kind, exc.field) if part)
        suffix = f" ({location})" if location else ""
        console.print(f"[bold red]Schema error[/]{escape(suffix)}: {escape(str(exc))}")
        raise typer.Exit(code=1) from exc
    except OSError as exc:
        console.print(f"[bold red]Cannot read schema[/]: {escape(str(exc))}")
        raise typer.Exit(code=1) from exc


def _configure_logging(verbose: bool) -> None:
    if not verbose:
        return
    logging.basicConfig(
        level=logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False, rich_tracebacks=True)],
        force=True,
    )


def _print_diagnostics(diagnostics: Sequence[Diagnostic]) -> None:
    for diagnostic in diagnostics:
        style = "red" if diagnostic.severity is Severity.ERROR else "yellow"
        location = diagnostic.subject
        if diagnostic.field:
            location = f"{location} :: {diagnostic.field}"
        console.print(
            f"[bold {style}]{diagnostic.severity.name}[/] {escape(location)} - {escape(diagnostic.message)}"
        )


def _print_run_summary(config: Config, result: PipelineResult) -> None:
    for source in result.sources:
        state = "ok" if source.available else "unavailable"
        console.print(f"[bold green]Source[/] {source.source}: {len(source.records)} record(s) ({state})")

    if result.report is not None:
        published = ", ".join(f"{kind} {count}" for kind, count in result.report.published.items())
        console.print(f"[bold green]Published[/]: {published or 'nothing'}")

    console.print(
        f"[bold green]Site data[/]: {len(result.site_paths)} file(s) written to "
        f"{_display_path(config.site.output_dir)}"
    )
    if result.cms_paths:
        console.print(f"[bold green]CMS config[/]: written to {_display_path(result.cms_paths[0])}")

    style = OUTCOME_STYLES[result.outcome]
    console.print(
        f"[bold {style}]Outcome[/]: {result.outcome.value} "
        f"({result.error_count} error(s), {result.warning_count} warning(s))"
    )


def _display_path(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)
