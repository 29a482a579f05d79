"""
Report aggregator for compliance audit results.

Generates:
- HTML master report (one section per family, declared order)
- Markdown report for human reading
- JSON report for machine processing
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

from jinja2 import Environment, FileSystemLoader, select_autoescape
from rich.console import Console
from rich.table import Table

from ..core.exceptions import FamilyError, ReportError
from ..core.models import CheckStatus, ConsolidatedReport, FamilyReport, family_key, family_title
from ..core.transcript import read_transcript, transcript_filename

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"
HTML_TEMPLATE = "compliance_report.html"
UNAVAILABLE_MARKER = "UNAVAILABLE"

STATUS_EMOJI = {
    CheckStatus.PASS: "✅",
    CheckStatus.FAIL: "❌",
    CheckStatus.MANUAL_REVIEW: "📝",
    CheckStatus.ERROR: "⚠️",
}


class ReportAggregator:
    """Сборка и рендеринг итогового отчёта."""

    def __init__(self, family_order: Optional[Sequence[str]] = None):
        """
        Args:
            family_order: Порядок объявления семейств (обычно registry.all_families())
        """
        self.family_order = [family_key(f) for f in (family_order or [])]
        self.env = Environment(
            loader=FileSystemLoader(str(TEMPLATE_DIR)),
            autoescape=select_autoescape(["html"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def _order_key(self, report: FamilyReport) -> int:
        try:
            return self.family_order.index(report.family)
        except ValueError:
            return len(self.family_order)

    def aggregate(
        self,
        family_reports: Iterable[FamilyReport],
        report_path: Optional[Path] = None,
        duration_seconds: float = 0.0,
    ) -> ConsolidatedReport:
        """
        Объединить отчёты семейств.

        Секции упорядочиваются по family_order; семейства вне этого порядка
        идут следом в порядке поступления (sorted стабилен).
        """
        ordered = sorted(family_reports, key=self._order_key)
        return ConsolidatedReport(
            families=tuple(ordered),
            generated_at=datetime.now(),
            report_path=Path(report_path) if report_path else None,
            duration_seconds=duration_seconds,
        )

    def from_transcripts(self, families: Iterable[Any], log_dir: Path) -> List[FamilyReport]:
        """
        Прочитать transcript каждого семейства из log_dir.

        Отсутствующий или повреждённый transcript даёт unavailable report.
        """
        reports = []
        for family in families:
            key = family_key(family)
            path = Path(log_dir) / transcript_filename(key)
            try:
                reports.append(read_transcript(path, key))
            except FamilyError as e:
                logger.warning(f"Transcript for {key} unavailable: {e.reason}")
                reports.append(FamilyReport.unavailable_for(key, f"Transcript not found or unreadable: {path}"))
        return reports

    # === Rendering ===

    def render(self, report: ConsolidatedReport, fmt: str = "html") -> bytes:
        """
        Отрендерить отчёт.

        Args:
            report: Итоговый отчёт
            fmt: "html", "markdown" или "json"

        Returns:
            Содержимое отчёта в UTF-8
        """
        if fmt == "html":
            return self.render_html(report).encode("utf-8")
        if fmt == "markdown":
            return self.render_markdown(report).encode("utf-8")
        if fmt == "json":
            return json.dumps(report.to_dict(), indent=2, ensure_ascii=False).encode("utf-8")
        raise ValueError(f"Unknown report format: {fmt}")

    def render_html(self, report: ConsolidatedReport) -> str:
        template = self.env.get_template(HTML_TEMPLATE)
        return template.render(
            generated_at=report.generated_at.strftime("%Y-%m-%d %H:%M:%S"),
            duration=f"{report.duration_seconds:.2f}" if report.duration_seconds else "",
            families=[_family_view(f) for f in report.families],
            totals=report.totals(),
        )

    def render_markdown(self, report: ConsolidatedReport) -> str:
        lines = []

        # Header
        lines.append("# Consolidated Compliance Report")
        lines.append("")
        lines.append(f"**Date:** {report.generated_at.strftime('%Y-%m-%d %H:%M:%S')}")
        lines.append("")

        # Summary
        totals = report.totals()
        lines.append("## Summary")
        lines.append("")
        lines.append(f"- **Checks:** {report.total_checks}")
        for status in CheckStatus:
            lines.append(f"- {STATUS_EMOJI[status]} **{status.label.title()}:** {totals[status.value]}")
        unavailable = report.unavailable_families()
        if unavailable:
            lines.append(f"- **Unavailable families:** {', '.join(f.family for f in unavailable)}")
        lines.append("")

        if not report.families:
            lines.append("*No control families were audited.*")
            lines.append("")

        for family in report.families:
            lines.append(f"## {family.title}")
            lines.append("")
            if family.unavailable:
                lines.append(f"**{UNAVAILABLE_MARKER}:** {family.unavailable_reason}")
                lines.append("")
                continue
            if not family.results and not family.completed:
                lines.append("*Run interrupted before any check completed.*")
                lines.append("")
                continue
            if not family.results:
                lines.append("*No checks registered for this family.*")
                lines.append("")
                continue
            for result in family.results:
                lines.append(f"### {STATUS_EMOJI[result.status]} [{result.status.label}] {result.check_id}")
                lines.append("")
                lines.append(f"**Check:** {result.description}")
                lines.append("")
                lines.append(result.message)
                lines.append("")
            if not family.completed:
                lines.append("*Run interrupted: only completed checks are listed.*")
                lines.append("")

        # Footer
        lines.append("---")
        lines.append(f"*Report generated in {report.duration_seconds:.2f} seconds*")
        return "\n".join(lines)

    # === Persistence ===

    def write(self, report: ConsolidatedReport, fmt: str = "html",
              path: Optional[Path] = None) -> Path:
        """
        Записать отчёт на диск (единственный writer).

        Raises:
            ReportError: отчёт не удалось отрендерить или записать
        """
        target = Path(path) if path else report.report_path
        if target is None:
            raise ReportError("No report path configured")

        try:
            content = self.render(report, fmt)
        except Exception as e:
            raise ReportError(f"Failed to render {fmt} report: {e}") from e

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)
        except OSError as e:
            raise ReportError(f"Cannot write report to {target}: {e}") from e

        logger.info(f"Report written to {target} ({len(content)} bytes)")
        return target

    def print_summary(self, report: ConsolidatedReport, console: Optional[Console] = None):
        """Вывести краткую сводку в консоль."""
        console = console or Console()

        table = Table(title="Compliance Summary")
        table.add_column("Family", style="cyan")
        table.add_column("Pass", style="green", justify="right")
        table.add_column("Fail", style="red", justify="right")
        table.add_column("Manual", style="yellow", justify="right")
        table.add_column("Error", style="magenta", justify="right")

        for family in report.families:
            if family.unavailable:
                table.add_row(family.title, "-", "-", "-", "-", style="dim")
                continue
            counts = family.status_counts()
            table.add_row(
                family.title,
                str(counts["pass"]),
                str(counts["fail"]),
                str(counts["manual_review"]),
                str(counts["error"]),
            )

        totals = report.totals()
        table.add_row(
            "Total",
            str(totals["pass"]),
            str(totals["fail"]),
            str(totals["manual_review"]),
            str(totals["error"]),
            style="bold",
        )
        console.print(table)

        for family in report.unavailable_families():
            console.print(f"[yellow]⚠️  {family.title} unavailable: {family.unavailable_reason}[/]")


def _family_view(family: FamilyReport) -> Dict[str, Any]:
    return {
        "family": family.family,
        "title": family_title(family.family),
        "completed": family.completed,
        "unavailable": family.unavailable,
        "unavailable_reason": family.unavailable_reason,
        "counts": family.status_counts(),
        "results": [
            {
                "check_id": r.check_id,
                "status": r.status.value,
                "label": r.status.label,
                "description": r.description,
                "message": r.message,
            }
            for r in family.results
        ],
    }
