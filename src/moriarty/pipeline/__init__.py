"""Assessment and report pipelines over the catalog."""

from moriarty.pipeline.assessments import AssessmentOrchestrator, RiskAnalysisCollaborator
from moriarty.pipeline.reports import (
    EMPTY_FINDINGS_NARRATIVE,
    NARRATIVE_UNAVAILABLE,
    ReportAssembler,
    ReportNarrativeCollaborator,
)

__all__ = [
    "AssessmentOrchestrator",
    "EMPTY_FINDINGS_NARRATIVE",
    "NARRATIVE_UNAVAILABLE",
    "ReportAssembler",
    "ReportNarrativeCollaborator",
    "RiskAnalysisCollaborator",
]
