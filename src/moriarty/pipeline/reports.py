"""Report assembly.

Resolves the requested vulnerability and assessment IDs, drops the ones
that no longer resolve, asks the narrative writer for a report body and
stores the composed report. A failing writer degrades the narrative to a
placeholder, and so does a writer that outlives the timeout. Neither aborts
the report.
"""

import asyncio
from typing import Protocol

from moriarty.catalog.models import (
    Assessment,
    ExportFormat,
    Report,
    ReportContent,
    Vulnerability,
)
from moriarty.catalog.store import CatalogStore
from moriarty.core import get_logger

logger = get_logger(__name__)

EMPTY_FINDINGS_NARRATIVE = (
    "# Vulnerability Assessment Report\n\n"
    "No vulnerabilities or assessments were included in this report."
)
NARRATIVE_UNAVAILABLE = (
    "# Vulnerability Assessment Report\n\n"
    "The narrative summary could not be generated. "
    "The resolved vulnerabilities and assessments are attached below."
)


class ReportNarrativeCollaborator(Protocol):
    async def summarize(self, vulnerabilities: list[Vulnerability], assessments: list[Assessment]) -> str: ...


class ReportAssembler:
    """Compose and persist vulnerability reports."""

    def __init__(
        self,
        store: CatalogStore,
        writer: ReportNarrativeCollaborator,
        attribution: str = "CyberMoriarty AI",
        timeout: float = 60.0,
    ) -> None:
        self.store = store
        self.writer = writer
        self.attribution = attribution
        self.timeout = timeout

    async def create_report(
        self,
        title: str,
        vulnerability_ids: list[str] | None = None,
        assessment_ids: list[str] | None = None,
        export_format: ExportFormat | str = ExportFormat.PDF,
    ) -> Report:
        vulnerability_ids = list(vulnerability_ids or [])
        assessment_ids = list(assessment_ids or [])

        vulnerabilities = [
            v for v in [await self.store.get_vulnerability(i) for i in vulnerability_ids] if v is not None
        ]
        assessments = [
            a for a in [await self.store.get_assessment(i) for i in assessment_ids] if a is not None
        ]

        log = logger.bind(title=title)
        dropped = len(vulnerability_ids) + len(assessment_ids) - len(vulnerabilities) - len(assessments)
        if dropped:
            log.info("report_references_dropped", count=dropped)

        if not vulnerabilities and not assessments:
            narrative = EMPTY_FINDINGS_NARRATIVE
        else:
            try:
                narrative = await asyncio.wait_for(
                    self.writer.summarize(vulnerabilities, assessments),
                    timeout=self.timeout,
                )
            except Exception as e:
                log.warning("report_narrative_failed", error=str(e), error_type=type(e).__name__)
                narrative = NARRATIVE_UNAVAILABLE

        report = await self.store.create_report(
            title=title,
            content=ReportContent(
                markdown=narrative,
                vulnerabilities=vulnerabilities,
                assessments=assessments,
                generated_by=self.attribution,
            ),
            vulnerability_ids=vulnerability_ids,
            assessment_ids=assessment_ids,
            export_format=export_format,
        )
        log.info(
            "report_created",
            report_id=report.id,
            vulnerabilities=len(vulnerabilities),
            assessments=len(assessments),
        )
        return report
