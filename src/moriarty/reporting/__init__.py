"""Report export (JSON, CSV, PDF)."""

from moriarty.reporting.exporter import ExportedReport, ReportExporter

__all__ = ["ExportedReport", "ReportExporter"]
