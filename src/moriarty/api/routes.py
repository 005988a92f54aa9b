"""REST API endpoints.

Endpoints:
- GET   /health                          Health check
- GET   /stats                           Dashboard counters
- GET   /vulnerabilities/search          Filter + rank the catalog
- GET   /vulnerabilities/{id}            One vulnerability
- PATCH /vulnerabilities/{id}            Partial update
- GET   /vulnerabilities/{id}/assessments  Assessments of a vulnerability
- POST  /cves/fetch                      Catalog one CVE from NVD
- POST  /cves/search                     Search NVD and catalog the page
- POST  /assessments                     Run an AI risk assessment
- GET   /assessments                     Latest assessments
- GET   /assessments/{id}                One assessment
- POST  /reports                         Assemble a report
- GET   /reports                         Reports (paginated)
- GET   /reports/{id}                    One report
- GET   /reports/{id}/export             Download in pdf/json/csv
- POST  /exploits/projects               Create an exploit project
- GET   /exploits/projects               Exploit projects (paginated)
- GET   /exploits/projects/{id}          One exploit project
- PATCH /exploits/projects/{id}          Partial update

Domain errors (not found, invalid input, collaborator failures) are mapped
to HTTP status codes by the exception handlers registered in app.py.
"""

import asyncio
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response

from moriarty import __version__
from moriarty.api.models import (
    CreateAssessmentRequest,
    CreateReportRequest,
    ExploitProjectListResponse,
    FetchCVERequest,
    HealthResponse,
    ReportListResponse,
)
from moriarty.api.services import DashboardServices
from moriarty.catalog.models import (
    Assessment,
    ExploitProject,
    ExploitProjectCreate,
    ExploitProjectUpdate,
    ExportFormat,
    Report,
    Vulnerability,
    VulnerabilityUpdate,
)
from moriarty.catalog.search import SearchResult
from moriarty.catalog.stats import DashboardStats
from moriarty.intel.ingest import IngestedPage
from moriarty.intel.nvd_client import CVEQuery

router = APIRouter()


def get_services() -> DashboardServices:
    """Dependency that returns the dashboard services.

    This is overridden in app.py to inject the actual container.
    Tests can override this with their own.
    """
    raise RuntimeError("DashboardServices not initialized. Call create_app() first.")


# ── Health / Stats ──

@router.get("/health", response_model=HealthResponse)
async def health_check(services: DashboardServices = Depends(get_services)):
    return HealthResponse(version=__version__, app_name=services.settings.app_name)


@router.get("/stats", response_model=DashboardStats)
async def get_stats(services: DashboardServices = Depends(get_services)):
    """Dashboard header counters."""
    return await services.stats.get_stats()


# ── Vulnerabilities ──

@router.get("/vulnerabilities/search", response_model=SearchResult)
async def search_vulnerabilities(
    cve_id: Optional[str] = None,
    severity: Optional[str] = None,
    product: Optional[str] = None,
    vendor: Optional[str] = None,
    cvss_min: Optional[float] = None,
    cvss_max: Optional[float] = None,
    has_exploit: Optional[bool] = None,
    limit: int = 20,
    offset: int = 0,
    services: DashboardServices = Depends(get_services),
):
    """Search the catalog, most dangerous first.

    Out-of-range criteria (unknown severity, CVSS outside 0-10, limit outside
    1-100, negative offset) are rejected with 400.
    """
    criteria = {
        "cve_id": cve_id,
        "severity": severity,
        "product": product,
        "vendor": vendor,
        "cvss_min": cvss_min,
        "cvss_max": cvss_max,
        "has_exploit": has_exploit,
        "limit": limit,
        "offset": offset,
    }
    return await services.search.search({k: v for k, v in criteria.items() if v is not None})


@router.get("/vulnerabilities/{vulnerability_id}", response_model=Vulnerability)
async def get_vulnerability(vulnerability_id: str, services: DashboardServices = Depends(get_services)):
    vuln = await services.store.get_vulnerability(vulnerability_id)
    if vuln is None:
        raise HTTPException(status_code=404, detail="Vulnerability not found")
    return vuln


@router.patch("/vulnerabilities/{vulnerability_id}", response_model=Vulnerability)
async def update_vulnerability(
    vulnerability_id: str,
    updates: VulnerabilityUpdate,
    services: DashboardServices = Depends(get_services),
):
    vuln = await services.store.update_vulnerability(vulnerability_id, updates)
    if vuln is None:
        raise HTTPException(status_code=404, detail="Vulnerability not found")
    return vuln


@router.get("/vulnerabilities/{vulnerability_id}/assessments", response_model=list[Assessment])
async def get_vulnerability_assessments(
    vulnerability_id: str,
    services: DashboardServices = Depends(get_services),
):
    return await services.store.get_assessments_by_vulnerability_id(vulnerability_id)


# ── CVE registry ──

@router.post("/cves/fetch", response_model=Vulnerability)
async def fetch_cve(request: FetchCVERequest, services: DashboardServices = Depends(get_services)):
    """Catalog a CVE, reusing the existing record when already present."""
    return await services.ingestor.ingest(request.cve_id.strip())


@router.post("/cves/search", response_model=IngestedPage)
async def search_cves(query: CVEQuery, services: DashboardServices = Depends(get_services)):
    """Search the registry and catalog every CVE on the returned page."""
    return await services.ingestor.ingest_search(query)


# ── Assessments ──

@router.post("/assessments", response_model=Assessment)
async def create_assessment(
    request: CreateAssessmentRequest,
    services: DashboardServices = Depends(get_services),
):
    return await services.assessments.create_assessment(request.vulnerability_id)


@router.get("/assessments", response_model=list[Assessment])
async def get_latest_assessments(
    limit: int = Query(default=10, ge=1, le=100),
    services: DashboardServices = Depends(get_services),
):
    return await services.store.get_latest_assessments(limit)


@router.get("/assessments/{assessment_id}", response_model=Assessment)
async def get_assessment(assessment_id: str, services: DashboardServices = Depends(get_services)):
    assessment = await services.store.get_assessment(assessment_id)
    if assessment is None:
        raise HTTPException(status_code=404, detail="Assessment not found")
    return assessment


# ── Reports ──

@router.post("/reports", response_model=Report)
async def create_report(request: CreateReportRequest, services: DashboardServices = Depends(get_services)):
    return await services.reports.create_report(
        title=request.title,
        vulnerability_ids=request.vulnerability_ids,
        assessment_ids=request.assessment_ids,
        export_format=request.export_format,
    )


@router.get("/reports", response_model=ReportListResponse)
async def get_reports(
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    services: DashboardServices = Depends(get_services),
):
    reports, total = await services.store.get_reports(limit, offset)
    return ReportListResponse(reports=reports, total=total)


@router.get("/reports/{report_id}", response_model=Report)
async def get_report(report_id: str, services: DashboardServices = Depends(get_services)):
    report = await services.store.get_report(report_id)
    if report is None:
        raise HTTPException(status_code=404, detail="Report not found")
    return report


@router.get("/reports/{report_id}/export")
async def export_report(
    report_id: str,
    fmt: Optional[ExportFormat] = Query(default=None, alias="format"),
    services: DashboardServices = Depends(get_services),
):
    """Download a report in its stored export format, or ``format`` if given."""
    report = await services.store.get_report(report_id)
    if report is None:
        raise HTTPException(status_code=404, detail="Report not found")

    # PDF rendering is CPU-bound
    exported = await asyncio.to_thread(services.exporter.export, report, fmt)
    return Response(
        content=exported.content,
        media_type=exported.media_type,
        headers={"Content-Disposition": f'attachment; filename="{exported.filename}"'},
    )


# ── Exploit projects ──

@router.post("/exploits/projects", response_model=ExploitProject)
async def create_exploit_project(
    project: ExploitProjectCreate,
    services: DashboardServices = Depends(get_services),
):
    """Create an exploit project. Requires ``ethical_approval``."""
    return await services.store.create_exploit_project(project)


@router.get("/exploits/projects", response_model=ExploitProjectListResponse)
async def get_exploit_projects(
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    services: DashboardServices = Depends(get_services),
):
    projects, total = await services.store.get_exploit_projects(limit, offset)
    return ExploitProjectListResponse(projects=projects, total=total)


@router.get("/exploits/projects/{project_id}", response_model=ExploitProject)
async def get_exploit_project(project_id: str, services: DashboardServices = Depends(get_services)):
    project = await services.store.get_exploit_project(project_id)
    if project is None:
        raise HTTPException(status_code=404, detail="Exploit project not found")
    return project


@router.patch("/exploits/projects/{project_id}", response_model=ExploitProject)
async def update_exploit_project(
    project_id: str,
    updates: ExploitProjectUpdate,
    services: DashboardServices = Depends(get_services),
):
    project = await services.store.update_exploit_project(project_id, updates)
    if project is None:
        raise HTTPException(status_code=404, detail="Exploit project not found")
    return project
