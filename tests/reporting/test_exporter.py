"""Tests for report export."""

import csv
import io
import json
from datetime import timedelta

import pytest

from conftest import make_cve
from moriarty.catalog.models import (
    AIAnalysis,
    Assessment,
    AssessmentStatus,
    ExportFormat,
    Report,
    ReportContent,
    Severity,
    Vulnerability,
    local_now,
)
from moriarty.reporting.exporter import CSV_COLUMNS, ReportExporter


def _analysis(risk_score: int, recommendation: str = "Patch now.") -> AIAnalysis:
    return AIAnalysis(
        risk_score=risk_score,
        exploitability=60,
        impact_severity=Severity.HIGH,
        recommendation=recommendation,
        remediation_available=True,
        confidence_score=0.75,
    )


@pytest.fixture
def report() -> Report:
    now = local_now()
    log4shell = Vulnerability(id="v1", **make_cve().model_dump())
    nginx = Vulnerability(id="v2", **make_cve(
        "CVE-2023-0001", severity="High", cvss_score=7.5, product="nginx", vendor="f5",
    ).model_dump())

    assessments = [
        Assessment(
            id="a-old", vulnerability_id="v1", status=AssessmentStatus.COMPLETED,
            ai_analysis=_analysis(50, "Old advice."), created_at=now - timedelta(hours=2),
        ),
        Assessment(
            id="a-new", vulnerability_id="v1", status=AssessmentStatus.COMPLETED,
            ai_analysis=_analysis(95), created_at=now - timedelta(hours=1),
        ),
        Assessment(id="a-failed", vulnerability_id="v1", status=AssessmentStatus.FAILED, created_at=now),
    ]

    return Report(
        id="r1",
        title="Weekly Exposure / Q4",
        vulnerability_ids=["v2", "v1"],
        assessment_ids=[a.id for a in assessments],
        export_format=ExportFormat.CSV,
        content=ReportContent(
            markdown="# Executive Summary\n\nTwo findings.",
            vulnerabilities=[nginx, log4shell],
            assessments=assessments,
            generated_by="CyberMoriarty AI",
        ),
    )


class TestRows:
    def test_ranked_and_joined_with_latest_completed(self, report):
        rows = ReportExporter().rows(report)

        assert [r["cve_id"] for r in rows] == ["CVE-2021-44228", "CVE-2023-0001"]
        assert rows[0]["risk_score"] == 95
        assert rows[0]["recommendation"] == "Patch now."
        assert rows[1]["risk_score"] is None


class TestExport:
    def test_default_format_is_stored_format(self, report):
        exported = ReportExporter().export(report)
        assert exported.media_type == "text/csv"
        assert exported.filename == "weekly_exposure___q4.csv"

    def test_csv(self, report):
        exported = ReportExporter().export(report, ExportFormat.CSV)
        reader = csv.DictReader(io.StringIO(exported.content.decode("utf-8")))

        assert reader.fieldnames == CSV_COLUMNS
        rows = list(reader)
        assert rows[0]["cve_id"] == "CVE-2021-44228"
        assert rows[0]["risk_score"] == "95"
        assert rows[1]["risk_score"] == ""

    def test_json_override(self, report):
        exported = ReportExporter().export(report, "json")
        data = json.loads(exported.content)

        assert exported.media_type == "application/json"
        assert data["id"] == "r1"
        assert data["content"]["markdown"].startswith("# Executive Summary")
        assert len(data["content"]["vulnerabilities"]) == 2

    def test_unknown_format_rejected(self, report):
        with pytest.raises(ValueError):
            ReportExporter().export(report, "docx")

    def test_html_lists_findings(self, report):
        html = ReportExporter().render_html(report)
        assert "Weekly Exposure / Q4" in html
        assert "CVE-2021-44228" in html
        assert "sev-Critical" in html
        assert "2 vulnerabilities, 3 assessments" in html

    def test_pdf(self, report):
        try:
            import weasyprint  # noqa: F401
        except (ImportError, OSError) as e:
            pytest.skip(f"WeasyPrint unavailable: {e}")

        exported = ReportExporter().export(report, ExportFormat.PDF)

        assert exported.media_type == "application/pdf"
        assert exported.content.startswith(b"%PDF")
