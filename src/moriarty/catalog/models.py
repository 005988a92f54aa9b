"""Catalog record models.

Every record the dashboard keeps is one of four entities: Vulnerability,
Assessment, Report and ExploitProject. Stored records are frozen; the
CatalogStore replaces a record with a re-validated copy on update, so
readers always see either the old or the new version.

``*Create`` models carry what a caller supplies on creation, ``*Update``
models carry partial updates. Partial updates are dumped with
``exclude_unset=True``: a field explicitly set to ``None`` clears the value,
a field that was never set keeps the prior value.
"""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator


def new_id() -> str:
    """Fresh opaque record identity."""
    return str(uuid4())


def local_now() -> datetime:
    """Timezone-aware current time in the server's local timezone."""
    return datetime.now().astimezone()


class Severity(str, Enum):
    """Severity classes used for filtering and ranking."""
    CRITICAL = "Critical"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


SEVERITY_RANK: dict[str, int] = {
    Severity.CRITICAL.value: 4,
    Severity.HIGH.value: 3,
    Severity.MEDIUM.value: 2,
    Severity.LOW.value: 1,
}


def severity_rank(severity: str | None) -> int:
    """Rank for sorting; unrecognized severities rank 0."""
    return SEVERITY_RANK.get(severity or "", 0)


class AssessmentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class ExportFormat(str, Enum):
    PDF = "pdf"
    JSON = "json"
    CSV = "csv"


class ExploitStatus(str, Enum):
    DRAFT = "draft"
    TESTING = "testing"
    VALIDATED = "validated"
    ARCHIVED = "archived"


# === Vulnerabilities ===


class CVEDetails(BaseModel):
    """Vulnerability fields as delivered by a CVE feed (everything but ``id``).

    Severity is kept as delivered (normalized capitalization only). Values
    outside the four known classes are stored and rank 0 in searches.
    """

    cve_id: str = Field(min_length=1)
    description: str
    severity: str
    cvss_score: float | None = Field(None, ge=0.0, le=10.0)
    product: str | None = None
    vendor: str | None = None
    published_date: datetime | None = None
    updated_date: datetime | None = None
    references: list[str] = Field(default_factory=list)
    exploit_available: bool = False
    raw_data: dict[str, Any] = Field(default_factory=dict)


class Vulnerability(CVEDetails):
    """A cataloged vulnerability. ``cve_id`` is unique across the catalog."""

    model_config = ConfigDict(frozen=True)

    id: str

    def summary(self) -> "VulnerabilitySummary":
        """The subset of fields handed to the risk analyst."""
        return VulnerabilitySummary(
            cve_id=self.cve_id,
            description=self.description,
            severity=self.severity,
            cvss_score=self.cvss_score,
            product=self.product,
            vendor=self.vendor,
        )


class VulnerabilityUpdate(BaseModel):
    """Partial vulnerability update. ``cve_id`` is the natural key and cannot change."""

    model_config = ConfigDict(extra="forbid")

    description: str | None = None
    severity: str | None = None
    cvss_score: float | None = Field(None, ge=0.0, le=10.0)
    product: str | None = None
    vendor: str | None = None
    published_date: datetime | None = None
    updated_date: datetime | None = None
    references: list[str] | None = None
    exploit_available: bool | None = None
    raw_data: dict[str, Any] | None = None


class VulnerabilitySummary(BaseModel):
    cve_id: str
    description: str
    severity: str
    cvss_score: float | None = None
    product: str | None = None
    vendor: str | None = None


# === Assessments ===


class AIAnalysis(BaseModel):
    """Normalized risk analysis attached to a completed assessment."""

    model_config = ConfigDict(frozen=True)

    risk_score: int = Field(ge=0, le=100)
    exploitability: int = Field(ge=0, le=100)
    impact_severity: Severity
    recommendation: str
    remediation_available: bool
    confidence_score: float = Field(ge=0.0, le=1.0)


class Assessment(BaseModel):
    """A risk-analysis run over one vulnerability.

    ``pending`` → ``completed`` (analysis attached) or ``failed`` (no analysis).
    Both outcomes are terminal.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    vulnerability_id: str
    status: AssessmentStatus = AssessmentStatus.PENDING
    ai_analysis: AIAnalysis | None = None
    created_at: datetime = Field(default_factory=local_now)

    @model_validator(mode="after")
    def _analysis_matches_status(self) -> "Assessment":
        if self.status == AssessmentStatus.COMPLETED and self.ai_analysis is None:
            raise ValueError("completed assessment requires ai_analysis")
        if self.status != AssessmentStatus.COMPLETED and self.ai_analysis is not None:
            raise ValueError(f"{self.status.value} assessment cannot carry ai_analysis")
        return self

    @property
    def is_terminal(self) -> bool:
        return self.status in (AssessmentStatus.COMPLETED, AssessmentStatus.FAILED)


class AssessmentUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    status: AssessmentStatus | None = None
    ai_analysis: AIAnalysis | None = None


# === Reports ===


class ReportContent(BaseModel):
    """Composed report payload: narrative plus resolved snapshots."""

    model_config = ConfigDict(frozen=True)

    markdown: str
    vulnerabilities: list[Vulnerability] = Field(default_factory=list)
    assessments: list[Assessment] = Field(default_factory=list)
    generated_by: str


class Report(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str = Field(min_length=1)
    vulnerability_ids: list[str] = Field(default_factory=list)
    assessment_ids: list[str] = Field(default_factory=list)
    export_format: ExportFormat = ExportFormat.PDF
    content: ReportContent
    generated_at: datetime = Field(default_factory=local_now)


# === Exploit projects ===


class ExploitProjectCreate(BaseModel):
    name: str = Field(min_length=1)
    vulnerability_type: str = Field(min_length=1)
    target_platform: str = Field(min_length=1)
    code: str
    status: ExploitStatus = ExploitStatus.DRAFT
    documentation: str | None = None
    authorized_targets: list[str] = Field(default_factory=list)
    testing_results: dict[str, Any] | None = None
    ethical_approval: bool = False


class ExploitProject(ExploitProjectCreate):
    model_config = ConfigDict(frozen=True)

    id: str
    created_at: datetime = Field(default_factory=local_now)
    updated_at: datetime = Field(default_factory=local_now)


class ExploitProjectUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str | None = None
    vulnerability_type: str | None = None
    target_platform: str | None = None
    code: str | None = None
    status: ExploitStatus | None = None
    documentation: str | None = None
    authorized_targets: list[str] | None = None
    testing_results: dict[str, Any] | None = None
    ethical_approval: bool | None = None
