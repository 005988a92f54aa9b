"""In-memory catalog store.

Owns every Vulnerability, Assessment, Report and ExploitProject record.
Each entity type lives in its own keyed collection guarded by an
``asyncio.Lock``. The lock is held only for the in-memory update; callers
must never hold it across network I/O.

Reads return the stored (frozen) record or ``None``; they never raise for an
absent id. Writes that merge a partial update re-validate the merged record,
so a bad update is rejected as ``InvalidInputError`` and the stored record
is left untouched.

Usage:
    store = CatalogStore()
    vuln = await store.create_vulnerability(details)
    same = await store.create_vulnerability(details)   # idempotent on cve_id
    assert same.id == vuln.id
"""

import asyncio
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from moriarty.catalog.models import (
    Assessment,
    AssessmentStatus,
    AssessmentUpdate,
    CVEDetails,
    ExploitProject,
    ExploitProjectCreate,
    ExploitProjectUpdate,
    Report,
    ReportContent,
    ExportFormat,
    Vulnerability,
    VulnerabilityUpdate,
    local_now,
    new_id,
)
from moriarty.core import InvalidInputError, get_logger

logger = get_logger(__name__)

T = TypeVar("T", bound=BaseModel)


def _validation_details(e: ValidationError) -> dict[str, Any]:
    return {"errors": e.errors(include_url=False, include_context=False, include_input=False)}


def _provided_fields(updates: BaseModel | dict[str, Any], update_model: type[BaseModel]) -> dict[str, Any]:
    """Fields a caller actually supplied. Explicit ``None`` is kept.

    Plain dicts go through ``update_model`` first, so identity fields and
    unknown keys are rejected instead of merged.
    """
    if not isinstance(updates, BaseModel):
        try:
            updates = update_model.model_validate(updates)
        except ValidationError as e:
            raise InvalidInputError(
                f"Invalid update: {e.error_count()} validation error(s)",
                _validation_details(e),
            ) from e
    return updates.model_dump(exclude_unset=True)


class _Collection(Generic[T]):
    """Keyed records of one entity type plus the lock serializing writes."""

    def __init__(self, model: type[T], entity: str) -> None:
        self.model = model
        self.entity = entity
        self.records: dict[str, T] = {}
        self.lock = asyncio.Lock()

    def get(self, record_id: str) -> T | None:
        return self.records.get(record_id)

    def values(self) -> list[T]:
        return list(self.records.values())

    def build(self, fields: dict[str, Any]) -> T:
        try:
            return self.model.model_validate(fields)
        except ValidationError as e:
            raise InvalidInputError(
                f"Invalid {self.entity}: {e.error_count()} validation error(s)",
                _validation_details(e),
            ) from e

    def merge(self, existing: T, fields: dict[str, Any]) -> T:
        return self.build({**existing.model_dump(), **fields})


class CatalogStore:
    """In-memory store for all catalog entities."""

    def __init__(self) -> None:
        self._vulnerabilities: _Collection[Vulnerability] = _Collection(Vulnerability, "vulnerability")
        self._assessments: _Collection[Assessment] = _Collection(Assessment, "assessment")
        self._reports: _Collection[Report] = _Collection(Report, "report")
        self._exploit_projects: _Collection[ExploitProject] = _Collection(ExploitProject, "exploit project")

    # ── Vulnerabilities ──

    async def get_vulnerability(self, vulnerability_id: str) -> Vulnerability | None:
        return self._vulnerabilities.get(vulnerability_id)

    async def get_vulnerability_by_cve_id(self, cve_id: str) -> Vulnerability | None:
        for vuln in self._vulnerabilities.values():
            if vuln.cve_id == cve_id:
                return vuln
        return None

    async def create_vulnerability(self, details: CVEDetails) -> Vulnerability:
        """Catalog a vulnerability, or return the existing record for its ``cve_id``."""
        async with self._vulnerabilities.lock:
            existing = await self.get_vulnerability_by_cve_id(details.cve_id)
            if existing is not None:
                logger.debug("vulnerability_exists", cve_id=details.cve_id, id=existing.id)
                return existing

            vuln = self._vulnerabilities.build({**details.model_dump(), "id": new_id()})
            self._vulnerabilities.records[vuln.id] = vuln

        logger.debug("vulnerability_created", cve_id=vuln.cve_id, id=vuln.id)
        return vuln

    async def update_vulnerability(
        self,
        vulnerability_id: str,
        updates: VulnerabilityUpdate | dict[str, Any],
    ) -> Vulnerability | None:
        fields = _provided_fields(updates, VulnerabilityUpdate)

        async with self._vulnerabilities.lock:
            existing = self._vulnerabilities.get(vulnerability_id)
            if existing is None:
                return None
            updated = self._vulnerabilities.merge(existing, fields)
            self._vulnerabilities.records[vulnerability_id] = updated
        return updated

    async def list_vulnerabilities(self) -> list[Vulnerability]:
        return self._vulnerabilities.values()

    # ── Assessments ──

    async def get_assessment(self, assessment_id: str) -> Assessment | None:
        return self._assessments.get(assessment_id)

    async def get_assessments_by_vulnerability_id(self, vulnerability_id: str) -> list[Assessment]:
        return [a for a in self._assessments.values() if a.vulnerability_id == vulnerability_id]

    async def create_assessment(self, vulnerability_id: str) -> Assessment:
        """Create a ``pending`` assessment. Existence of the vulnerability is the caller's check."""
        async with self._assessments.lock:
            assessment = self._assessments.build({
                "id": new_id(),
                "vulnerability_id": vulnerability_id,
                "status": AssessmentStatus.PENDING,
            })
            self._assessments.records[assessment.id] = assessment

        logger.debug("assessment_created", id=assessment.id, vulnerability_id=vulnerability_id)
        return assessment

    async def update_assessment(
        self,
        assessment_id: str,
        updates: AssessmentUpdate | dict[str, Any],
    ) -> Assessment | None:
        """Apply a status transition. Completed and failed assessments are final."""
        fields = _provided_fields(updates, AssessmentUpdate)

        async with self._assessments.lock:
            existing = self._assessments.get(assessment_id)
            if existing is None:
                return None
            if existing.is_terminal:
                raise InvalidInputError(
                    f"Assessment {assessment_id} is already {existing.status.value}",
                    {"status": existing.status.value},
                )
            updated = self._assessments.merge(existing, fields)
            self._assessments.records[assessment_id] = updated

        logger.debug("assessment_updated", id=assessment_id, status=updated.status.value)
        return updated

    async def get_latest_assessments(self, limit: int = 10) -> list[Assessment]:
        ordered = sorted(self._assessments.values(), key=lambda a: a.created_at, reverse=True)
        return ordered[:limit]

    async def list_assessments(self) -> list[Assessment]:
        return self._assessments.values()

    # ── Reports ──

    async def get_report(self, report_id: str) -> Report | None:
        return self._reports.get(report_id)

    async def create_report(
        self,
        title: str,
        content: ReportContent,
        vulnerability_ids: list[str] | None = None,
        assessment_ids: list[str] | None = None,
        export_format: ExportFormat | str = ExportFormat.PDF,
    ) -> Report:
        async with self._reports.lock:
            report = self._reports.build({
                "id": new_id(),
                "title": title,
                "vulnerability_ids": list(vulnerability_ids or []),
                "assessment_ids": list(assessment_ids or []),
                "export_format": export_format,
                "content": content,
            })
            self._reports.records[report.id] = report
        return report

    async def get_reports(self, limit: int = 20, offset: int = 0) -> tuple[list[Report], int]:
        """Newest first, with the total before pagination."""
        ordered = sorted(self._reports.values(), key=lambda r: r.generated_at, reverse=True)
        return ordered[offset : offset + limit], len(ordered)

    # ── Exploit projects ──

    async def get_exploit_project(self, project_id: str) -> ExploitProject | None:
        return self._exploit_projects.get(project_id)

    async def create_exploit_project(self, project: ExploitProjectCreate) -> ExploitProject:
        if not project.ethical_approval:
            raise InvalidInputError("Ethical approval is required for exploit projects")

        now = local_now()
        async with self._exploit_projects.lock:
            created = self._exploit_projects.build({
                **project.model_dump(),
                "id": new_id(),
                "created_at": now,
                "updated_at": now,
            })
            self._exploit_projects.records[created.id] = created
        return created

    async def update_exploit_project(
        self,
        project_id: str,
        updates: ExploitProjectUpdate | dict[str, Any],
    ) -> ExploitProject | None:
        fields = _provided_fields(updates, ExploitProjectUpdate)
        if fields.get("ethical_approval") is False:
            raise InvalidInputError("Ethical approval cannot be revoked on an exploit project")

        async with self._exploit_projects.lock:
            existing = self._exploit_projects.get(project_id)
            if existing is None:
                return None
            updated = self._exploit_projects.merge(existing, {**fields, "updated_at": local_now()})
            self._exploit_projects.records[project_id] = updated
        return updated

    async def get_exploit_projects(self, limit: int = 20, offset: int = 0) -> tuple[list[ExploitProject], int]:
        """Most recently updated first, with the total before pagination."""
        ordered = sorted(self._exploit_projects.values(), key=lambda p: p.updated_at, reverse=True)
        return ordered[offset : offset + limit], len(ordered)
