"""Export stored reports as JSON, CSV or PDF.

PDF export renders ``templates/report.html`` with Jinja2 and converts it
with WeasyPrint. WeasyPrint needs Pango/Cairo system libraries on Linux:

    apt-get install -y libpango-1.0-0 libpangocairo-1.0-0 libcairo2
"""

import csv
import io
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape

from moriarty.catalog.models import Assessment, AssessmentStatus, ExportFormat, Report, severity_rank
from moriarty.core import get_logger

logger = get_logger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"

CSV_COLUMNS = [
    "cve_id",
    "severity",
    "cvss_score",
    "vendor",
    "product",
    "exploit_available",
    "published_date",
    "risk_score",
    "exploitability",
    "impact_severity",
    "remediation_available",
    "confidence_score",
    "recommendation",
]

MEDIA_TYPES = {
    ExportFormat.JSON: "application/json",
    ExportFormat.CSV: "text/csv",
    ExportFormat.PDF: "application/pdf",
}


@dataclass
class ExportedReport:
    content: bytes
    media_type: str
    filename: str


def _latest_completed(assessments: list[Assessment]) -> dict[str, Assessment]:
    """Newest completed assessment per vulnerability id."""
    latest: dict[str, Assessment] = {}
    for a in sorted(assessments, key=lambda a: a.created_at):
        if a.status == AssessmentStatus.COMPLETED:
            latest[a.vulnerability_id] = a
    return latest


def _slug(title: str) -> str:
    slug = "".join(c if c.isalnum() else "_" for c in title.lower()).strip("_")
    return slug or "report"


class ReportExporter:
    """Render reports in their export format.

    Usage:
        exporter = ReportExporter()
        exported = exporter.export(report)            # report.export_format
        exported = exporter.export(report, "csv")     # explicit override
    """

    def __init__(self, template_dir: Path = TEMPLATE_DIR) -> None:
        self.env = Environment(
            loader=FileSystemLoader(str(template_dir)),
            autoescape=select_autoescape(["html"]),
        )

    def export(self, report: Report, fmt: ExportFormat | str | None = None) -> ExportedReport:
        export_format = ExportFormat(fmt) if fmt is not None else report.export_format

        if export_format == ExportFormat.JSON:
            content = report.model_dump_json(indent=2).encode("utf-8")
        elif export_format == ExportFormat.CSV:
            content = self.to_csv(report).encode("utf-8")
        else:
            content = self.to_pdf(report)

        logger.info("report_exported", report_id=report.id, format=export_format.value, size=len(content))
        return ExportedReport(
            content=content,
            media_type=MEDIA_TYPES[export_format],
            filename=f"{_slug(report.title)}.{export_format.value}",
        )

    def rows(self, report: Report) -> list[dict[str, Any]]:
        """One row per resolved vulnerability, joined with its newest completed assessment."""
        latest = _latest_completed(report.content.assessments)
        rows = []
        for vuln in report.content.vulnerabilities:
            assessment = latest.get(vuln.id)
            analysis = assessment.ai_analysis if assessment else None
            rows.append({
                "cve_id": vuln.cve_id,
                "severity": vuln.severity,
                "cvss_score": vuln.cvss_score,
                "vendor": vuln.vendor,
                "product": vuln.product,
                "exploit_available": vuln.exploit_available,
                "published_date": vuln.published_date.isoformat() if vuln.published_date else None,
                "risk_score": analysis.risk_score if analysis else None,
                "exploitability": analysis.exploitability if analysis else None,
                "impact_severity": analysis.impact_severity.value if analysis else None,
                "remediation_available": analysis.remediation_available if analysis else None,
                "confidence_score": analysis.confidence_score if analysis else None,
                "recommendation": analysis.recommendation if analysis else None,
            })
        rows.sort(key=lambda r: (severity_rank(r["severity"]), r["cvss_score"] or 0.0), reverse=True)
        return rows

    def to_csv(self, report: Report) -> str:
        buffer = io.StringIO()
        writer = csv.DictWriter(buffer, fieldnames=CSV_COLUMNS)
        writer.writeheader()
        for row in self.rows(report):
            writer.writerow({k: "" if v is None else v for k, v in row.items()})
        return buffer.getvalue()

    def render_html(self, report: Report) -> str:
        template = self.env.get_template("report.html")
        return template.render(
            title=report.title,
            generated_at=report.generated_at.strftime("%Y-%m-%d %H:%M %Z").strip(),
            exported_at=datetime.now().astimezone().strftime("%Y-%m-%d %H:%M %Z").strip(),
            generated_by=report.content.generated_by,
            narrative=report.content.markdown,
            rows=self.rows(report),
            assessment_count=len(report.content.assessments),
        )

    def to_pdf(self, report: Report) -> bytes:
        from weasyprint import HTML

        html = HTML(string=self.render_html(report), base_url=str(TEMPLATE_DIR))
        return html.write_pdf()
