"""
CLI interface for compliance audit.

Usage:
    compliance-audit run                          # All families, HTML report
    compliance-audit run --family AC --family IA  # Selected families
    compliance-audit run --format json --parallel
    compliance-audit checks                       # List catalog
    compliance-audit consolidate --log-dir /var/log/compliance-checks
"""

import asyncio
import dataclasses
import logging
import time
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from .catalog import build_default_registry
from .config import REPORT_FORMATS, AuditConfig, get_default_config
from .core.exceptions import ReportError
from .orchestrator import run_audit
from .probes.linux import LinuxSystemProbe
from .reports.generator import ReportAggregator

app = typer.Typer(
    name="compliance-audit",
    help="NIST 800-53 compliance audit: run control checks and build a consolidated report",
)
console = Console()
logger = logging.getLogger(__name__)

FORMAT_SUFFIX = {"html": ".html", "markdown": ".md", "json": ".json"}


def setup_logging(verbose: bool = False):
    """Настроить логирование."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def build_config(env_file: Optional[Path], **overrides) -> AuditConfig:
    """Конфиг из окружения/.env с переопределениями из CLI."""
    changes = {k: v for k, v in overrides.items() if v is not None and v != []}
    try:
        config = get_default_config(env_file)
        return dataclasses.replace(config, **changes)
    except ValueError as e:
        console.print(f"[red]❌ Invalid configuration: {e}[/]")
        raise typer.Exit(2)


def report_target(config: AuditConfig, output: Optional[Path]) -> Path:
    """Путь отчёта; расширение подстраивается под формат."""
    if output:
        return output
    path = config.report_path
    suffix = FORMAT_SUFFIX[config.report_format]
    if path.suffix != suffix:
        path = path.with_suffix(suffix)
    return path


def _check_format(fmt: Optional[str]) -> Optional[str]:
    if fmt is not None and fmt.lower() not in REPORT_FORMATS:
        raise typer.BadParameter(f"expected one of {', '.join(REPORT_FORMATS)}")
    return fmt.lower() if fmt else fmt


@app.command()
def run(
    family: List[str] = typer.Option([], "--family", "-f", help="Family to run (repeatable, default: all)"),
    output_dir: Optional[Path] = typer.Option(None, "--output-dir", help="Directory for transcripts and report"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Report file path"),
    fmt: Optional[str] = typer.Option(None, "--format", callback=_check_format, help="html, markdown or json"),
    parallel: Optional[bool] = typer.Option(None, "--parallel/--sequential", help="Run families in parallel"),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Per-check probe timeout, seconds"),
    env_file: Optional[Path] = typer.Option(None, "--env-file", help=".env file with COMPLIANCE_* settings"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    no_summary: bool = typer.Option(False, "--no-summary", help="Skip printing summary to console"),
):
    """🔍 Run the control checks and write the consolidated report."""
    setup_logging(verbose)

    config = build_config(
        env_file,
        output_dir=output_dir,
        report_format=fmt,
        parallel_families=parallel,
        probe_timeout_seconds=timeout,
        families=[f.upper() for f in family],
    )

    registry = build_default_registry()
    probe = LinuxSystemProbe(command_timeout_seconds=config.command_timeout_seconds)
    if not probe.is_privileged():
        logger.warning("⚠️  Not running as root: privileged checks will be reported as ERROR")

    logger.info(f"Compliance checks will be logged to {config.output_dir}")
    start_time = time.time()

    try:
        reports = asyncio.run(run_audit(registry, probe, config))
    except KeyboardInterrupt:
        logger.warning("⚠️  Audit interrupted by user")
        raise typer.Exit(1)

    duration = time.time() - start_time
    aggregator = ReportAggregator(family_order=registry.all_families())
    report = aggregator.aggregate(reports, report_target(config, output), duration_seconds=duration)

    try:
        report_path = aggregator.write(report, config.report_format)
    except ReportError as e:
        logger.error(f"❌ {e}")
        console.print(f"[red]❌ Could not produce report: {e}[/]")
        raise typer.Exit(1)

    if not no_summary:
        aggregator.print_summary(report, console)
    console.print(f"[green]✅ Consolidated compliance report generated at {report_path}[/]")


@app.command()
def consolidate(
    log_dir: Optional[Path] = typer.Option(None, "--log-dir", help="Directory with family transcripts"),
    family: List[str] = typer.Option([], "--family", "-f", help="Family to include (repeatable, default: all)"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Report file path"),
    fmt: Optional[str] = typer.Option(None, "--format", callback=_check_format, help="html, markdown or json"),
    env_file: Optional[Path] = typer.Option(None, "--env-file", help=".env file with COMPLIANCE_* settings"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """📄 Build the consolidated report from existing family transcripts."""
    setup_logging(verbose)

    config = build_config(
        env_file,
        output_dir=log_dir,
        report_format=fmt,
        families=[f.upper() for f in family],
    )
    registry = build_default_registry()
    families = config.families or list(registry.all_families())

    aggregator = ReportAggregator(family_order=registry.all_families())
    reports = aggregator.from_transcripts(families, config.output_dir)
    report = aggregator.aggregate(reports, report_target(config, output))

    try:
        report_path = aggregator.write(report, config.report_format)
    except ReportError as e:
        console.print(f"[red]❌ Could not produce report: {e}[/]")
        raise typer.Exit(1)

    console.print(f"[green]✅ Consolidated compliance report generated at {report_path}[/]")


@app.command()
def checks(
    family: List[str] = typer.Option([], "--family", "-f", help="Family to list (repeatable, default: all)"),
):
    """📋 List the checks in the default catalog."""
    registry = build_default_registry()
    families = [f.upper() for f in family] or list(registry.all_families())

    table = Table(title="Compliance Checks")
    table.add_column("Control", style="cyan")
    table.add_column("Family")
    table.add_column("Kind")
    table.add_column("Severity")
    table.add_column("Description", style="dim")

    for key in families:
        if not registry.has_family(key):
            console.print(f"[yellow]⚠️  Unknown family: {key}[/]")
            continue
        for definition in registry.family_checks(key):
            table.add_row(
                definition.id,
                definition.family,
                "manual" if definition.is_manual else "automated",
                definition.severity.value,
                definition.description,
            )

    console.print(table)


if __name__ == "__main__":
    app()
