"""Vulnerability catalog: records, in-memory store, search and stats."""

from moriarty.catalog.models import (
    AIAnalysis,
    Assessment,
    AssessmentStatus,
    CVEDetails,
    ExploitProject,
    ExploitProjectCreate,
    ExploitProjectUpdate,
    ExploitStatus,
    ExportFormat,
    Report,
    ReportContent,
    Severity,
    Vulnerability,
    VulnerabilitySummary,
    VulnerabilityUpdate,
)
from moriarty.catalog.search import SearchCriteria, SearchEngine, SearchResult
from moriarty.catalog.stats import DashboardStats, StatsAggregator
from moriarty.catalog.store import CatalogStore

__all__ = [
    "AIAnalysis",
    "Assessment",
    "AssessmentStatus",
    "CVEDetails",
    "CatalogStore",
    "DashboardStats",
    "ExploitProject",
    "ExploitProjectCreate",
    "ExploitProjectUpdate",
    "ExploitStatus",
    "ExportFormat",
    "Report",
    "ReportContent",
    "SearchCriteria",
    "SearchEngine",
    "SearchResult",
    "Severity",
    "StatsAggregator",
    "Vulnerability",
    "VulnerabilitySummary",
    "VulnerabilityUpdate",
]
