"""Pydantic models for API request/response validation.

Catalog records (Vulnerability, Assessment, Report, ExploitProject) are
returned as-is; these models cover request bodies and list envelopes.
"""

from pydantic import BaseModel, Field

from moriarty.catalog.models import ExploitProject, ExportFormat, Report


# ── Request Models ──

class FetchCVERequest(BaseModel):
    """Catalog a CVE from the registry."""

    cve_id: str = Field(
        ...,
        min_length=1,
        description="CVE identifier, e.g. CVE-2021-44228",
        examples=["CVE-2021-44228"],
    )


class CreateAssessmentRequest(BaseModel):
    vulnerability_id: str = Field(..., min_length=1)


class CreateReportRequest(BaseModel):
    title: str = Field(..., min_length=1, description="Report title")
    vulnerability_ids: list[str] = Field(default_factory=list)
    assessment_ids: list[str] = Field(default_factory=list)
    export_format: ExportFormat = ExportFormat.PDF


# ── Response Models ──

class HealthResponse(BaseModel):
    status: str = "ok"
    version: str
    app_name: str


class ReportListResponse(BaseModel):
    reports: list[Report]
    total: int


class ExploitProjectListResponse(BaseModel):
    projects: list[ExploitProject]
    total: int
