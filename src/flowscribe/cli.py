"""
FlowScribe Command Line Interface.

This module provides the CLI entry point for diagram generation and scoring.
"""

import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Optional

import click
import yaml
from pydantic import TypeAdapter, ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn
from rich.table import Table

from flowscribe.config import (
    ConfigurationError,
    FlowscribeConfig,
    load_config,
    load_config_from_env,
)
from flowscribe.diagram import DiagramAssembler
from flowscribe.extraction import ExtractionEngine, LLMExtractionBackend
from flowscribe.logging_setup import configure_logging
from flowscribe.models import (
    Diagram,
    DiagramGenerationJob,
    Document,
    ExportFormat,
    ExportPayload,
    JobStatus,
    OperationInfo,
    ValidationResult,
)
from flowscribe.models.diagram import new_id
from flowscribe.orchestrator import DiagramJobOrchestrator, InMemoryOperationSource
from flowscribe.scoring import ScoringEngine
from flowscribe.version import __version__

console = Console()

# Progress, tables and errors for `generate`; stdout carries only the export
status_console = Console(stderr=True)

POLL_INTERVAL = 0.05

STATUS_STYLES = {
    "POPULATED": "green",
    "GREYED_OUT": "dim",
    "USER_MODIFIED": "yellow",
    "EXCELLENT": "bold green",
    "GOOD": "green",
    "FAIR": "yellow",
    "POOR": "red",
    "CRITICAL": "bold red",
}


def run_async(coro):
    """Run an async coroutine in a new event loop."""
    return asyncio.run(coro)


@click.group()
@click.version_option(version=__version__, prog_name="flowscribe")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """FlowScribe: Architecture Diagram Synthesis and Scoring.

    Build an architecture diagram for an operation from its documents,
    and score diagrams against validation results.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


def _load_settings(config_path: Optional[str]) -> FlowscribeConfig:
    """Load configuration from a file, or from the environment and defaults."""
    try:
        if config_path:
            return load_config(config_path)
        return load_config_from_env()
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        sys.exit(1)
    except FileNotFoundError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)


def _read_structured_file(path: str) -> Any:
    """Parse a JSON or YAML file (JSON is valid YAML)."""
    try:
        with open(path, encoding="utf-8") as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise click.ClickException(f"Could not parse {path}: {e}") from e


def load_bundle(path: str) -> tuple[OperationInfo, list[Document]]:
    """Read an operation and its documents from a bundle file.

    The bundle is a mapping with an ``operation`` entry (``id``, ``name``,
    ``description``) and a ``documents`` list (``id``, ``filename``,
    ``content``). Missing ids are generated.

    Raises:
        click.ClickException: If the bundle is malformed
    """
    data = _read_structured_file(path)
    if not isinstance(data, dict) or not isinstance(data.get("operation"), dict):
        raise click.ClickException(f"{path}: bundle must contain an 'operation' mapping")

    raw_operation = dict(data["operation"])
    raw_operation.setdefault("id", f"op-{new_id()[:8]}")

    raw_documents = data.get("documents") or []
    if not isinstance(raw_documents, list):
        raise click.ClickException(f"{path}: 'documents' must be a list")

    documents = []
    try:
        operation = OperationInfo.model_validate(raw_operation)
        for index, raw in enumerate(raw_documents, start=1):
            if not isinstance(raw, dict):
                raise click.ClickException(f"{path}: document {index} is not a mapping")
            raw = dict(raw)
            raw.setdefault("id", f"doc-{index}")
            documents.append(Document.model_validate(raw))
    except ValidationError as e:
        raise click.ClickException(f"{path}: invalid bundle: {e}") from e

    return operation, documents


@main.command()
@click.argument("bundle", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True),
    help="Path to configuration file",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False),
    default=None,
    help="Write the diagram export to this file instead of stdout",
)
@click.option(
    "--format",
    "-f",
    "export_format",
    type=click.Choice([f.value for f in ExportFormat]),
    default=ExportFormat.JSON.value,
    help="Export format",
)
@click.pass_context
def generate(
    ctx: click.Context,
    bundle: str,
    config: str | None,
    output: str | None,
    export_format: str,
) -> None:
    """Generate an architecture diagram for an operation.

    BUNDLE is a JSON or YAML file with the operation and its documents.
    """
    verbose = ctx.obj.get("verbose", False)
    cfg = _load_settings(config)
    configure_logging(cfg.logging, verbose=verbose or cfg.debug)

    operation, documents = load_bundle(bundle)

    status_console.print(
        Panel(
            f"[bold blue]FlowScribe v{__version__}[/bold blue]\n"
            f"Operation: {operation.name} ({len(documents)} documents)",
            title="FlowScribe",
        )
    )

    try:
        job, diagram, payload = run_async(
            _run_generation(operation, documents, cfg, ExportFormat(export_format))
        )
    except Exception as e:
        status_console.print(f"[red]Error:[/red] {e}")
        if verbose:
            status_console.print_exception()
        sys.exit(1)

    if job.status == JobStatus.FAILED or diagram is None or payload is None:
        status_console.print(f"[red]Generation failed:[/red] {job.error or 'unknown error'}")
        sys.exit(1)

    _display_diagram(diagram)

    export = json.dumps(payload.to_json_dict(), indent=2)
    if output:
        Path(output).write_text(export + "\n", encoding="utf-8")
        status_console.print(f"[green]Export written to[/green] {output}")
    else:
        click.echo(export)


async def _run_generation(
    operation: OperationInfo,
    documents: list[Document],
    cfg: FlowscribeConfig,
    export_format: ExportFormat,
) -> tuple[DiagramGenerationJob, Optional[Diagram], Optional[ExportPayload]]:
    """Run one generation job to completion and export the result.

    Returns:
        Final job, generated diagram and export payload (None on failure)
    """
    source = InMemoryOperationSource()
    source.add_operation(operation, documents)

    backend = LLMExtractionBackend.from_config(cfg.llm) if cfg.llm.enabled else None
    engine = ExtractionEngine(cfg.extraction, backend)
    orchestrator = DiagramJobOrchestrator(source, DiagramAssembler(engine), cfg.orchestrator)

    try:
        job = await orchestrator.start_diagram_generation(operation.id)
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=status_console,
            transient=True,
        ) as progress:
            task = progress.add_task("Generating diagram", total=100)
            while True:
                job = orchestrator.get_job(job.id)
                progress.update(task, completed=job.progress)
                if job.status.is_terminal:
                    break
                await asyncio.sleep(POLL_INTERVAL)
    finally:
        if backend is not None:
            await backend.close()

    if job.status != JobStatus.COMPLETED:
        return job, None, None
    return job, orchestrator.get_diagram(job.diagram_id), orchestrator.export_diagram(job.diagram_id, export_format)


def _display_diagram(diagram: Diagram) -> None:
    """Print the components of a generated diagram."""
    table = Table(title=diagram.name)
    table.add_column("Type", style="cyan")
    table.add_column("Title")
    table.add_column("Status")
    table.add_column("Confidence", justify="right")

    for component in diagram.components:
        style = STATUS_STYLES.get(component.status.value, "")
        table.add_row(
            component.component_type.value,
            component.title,
            f"[{style}]{component.status.value}[/{style}]" if style else component.status.value,
            f"{component.confidence:.0%}",
        )
    status_console.print(table)

    populated = sum(1 for c in diagram.components if c.has_data)
    status_console.print(
        f"[bold]{populated}/{len(diagram.components)}[/bold] components populated, "
        f"{len(diagram.edges)} edges"
    )


@main.command()
@click.argument("results", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--component-types",
    "-t",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="JSON/YAML mapping of component id to component type",
)
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True),
    help="Path to configuration file",
)
@click.pass_context
def score(
    ctx: click.Context,
    results: str,
    component_types: str | None,
    config: str | None,
) -> None:
    """Score a diagram from validation results.

    RESULTS is a JSON or YAML list of validation results.
    """
    cfg = _load_settings(config)
    configure_logging(cfg.logging, verbose=ctx.obj.get("verbose", False) or cfg.debug)

    try:
        parsed = TypeAdapter(list[ValidationResult]).validate_python(
            _read_structured_file(results) or []
        )
    except ValidationError as e:
        raise click.ClickException(f"{results}: invalid validation results: {e}") from e

    types: dict[str, str] = {}
    if component_types:
        raw_types = _read_structured_file(component_types) or {}
        if not isinstance(raw_types, dict):
            raise click.ClickException(f"{component_types}: expected a mapping of id to type")
        types = {str(k): str(v) for k, v in raw_types.items()}

    engine = ScoringEngine.from_config(cfg.scoring)
    report = engine.generate_scoring_report(parsed)
    weighted = engine.calculate_weighted_score(parsed, types)

    health_style = STATUS_STYLES.get(report.health_status.value, "")
    console.print(
        Panel(
            f"Overall score: [bold]{report.overall_score}[/bold]\n"
            f"Weighted score: [bold]{weighted}[/bold]\n"
            f"Health: [{health_style}]{report.health_status.value}[/{health_style}]",
            title="Scoring Report",
        )
    )

    breakdown = Table(title="Breakdown")
    breakdown.add_column("Category", style="cyan")
    breakdown.add_column("Score", justify="right")
    breakdown.add_row("Content accuracy", f"{report.breakdown.content_accuracy:.0f}")
    breakdown.add_row("Data completeness", f"{report.breakdown.data_completeness:.0f}")
    breakdown.add_row("Source consistency", f"{report.breakdown.source_consistency:.0f}")
    breakdown.add_row("Freshness", f"{report.breakdown.freshness:.0f}")
    console.print(breakdown)

    summary = report.summary
    console.print(
        f"[bold]{summary.total_components}[/bold] results: "
        f"{summary.valid_count} valid, {summary.warning_count} warning, "
        f"{summary.invalid_count} invalid, {summary.stale_count} stale, "
        f"{summary.unverifiable_count} unverifiable"
    )

    console.print("[bold]Recommendations[/bold]")
    for recommendation in report.recommendations:
        console.print(f"  - {recommendation}")


@main.command()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True),
    help="Path to configuration file",
)
def config(config: str | None) -> None:
    """Display current configuration."""
    cfg = _load_settings(config)

    console.print(
        Panel(
            "[bold blue]FlowScribe Configuration[/bold blue]",
            title="Configuration",
        )
    )

    console.print("[bold]Extraction[/bold]")
    console.print(f"  Min Keyword Matches: {cfg.extraction.min_keyword_matches}")
    console.print(f"  Max Confidence: {cfg.extraction.max_confidence}")
    console.print(f"  Excerpt Length: {cfg.extraction.excerpt_max_length}")
    console.print()

    console.print("[bold]LLM Backend[/bold]")
    console.print(f"  Enabled: {cfg.llm.enabled}")
    if cfg.llm.enabled:
        console.print(f"  Model: {cfg.llm.model}")
        console.print(f"  Base URL: {cfg.llm.base_url}")
    console.print()

    console.print("[bold]Orchestrator[/bold]")
    console.print(f"  Step Delay: {cfg.orchestrator.step_delay}s")
    console.print()

    console.print("[bold]Scoring[/bold]")
    for component_type, weight in cfg.scoring.effective_weights().items():
        console.print(f"  {component_type}: {weight}")
    console.print(f"  Trend Limit: {cfg.scoring.trend_limit}")
    console.print()

    console.print("[bold]Logging[/bold]")
    console.print(f"  Level: {cfg.logging.level.value}")
    if cfg.logging.file:
        console.print(f"  File: {cfg.logging.file}")


if __name__ == "__main__":
    main()
