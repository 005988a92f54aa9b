"""Assessment orchestration.

One linear pipeline per request:

1. resolve the vulnerability (``NotFoundError`` if missing)
2. persist a ``pending`` assessment
3. call the risk analyst, outside any store lock, bounded by a timeout
4. normalize the reply and move the assessment to ``completed``
5. on any failure, cancellation included, move it to ``failed`` before
   the error reaches the caller

An assessment is never left ``pending`` once its caller has been answered.
"""

import asyncio
from typing import Any, Protocol

from moriarty.agents.risk_analyst import normalize_analysis
from moriarty.catalog.models import Assessment, AssessmentStatus, AssessmentUpdate, VulnerabilitySummary
from moriarty.catalog.store import CatalogStore
from moriarty.core import AssessmentFailedError, NotFoundError, get_logger

logger = get_logger(__name__)


class RiskAnalysisCollaborator(Protocol):
    async def assess(self, summary: VulnerabilitySummary) -> dict[str, Any]: ...


class AssessmentOrchestrator:
    """Create assessments and run them through the risk analyst."""

    def __init__(
        self,
        store: CatalogStore,
        analyst: RiskAnalysisCollaborator,
        timeout: float = 60.0,
    ) -> None:
        self.store = store
        self.analyst = analyst
        self.timeout = timeout

    async def create_assessment(self, vulnerability_id: str) -> Assessment:
        """Run a risk assessment for one cataloged vulnerability.

        Returns:
            The completed assessment.

        Raises:
            NotFoundError: no vulnerability with ``vulnerability_id``
            AssessmentFailedError: the analysis failed; the stored assessment
                is ``failed`` with no analysis attached
        """
        vuln = await self.store.get_vulnerability(vulnerability_id)
        if vuln is None:
            raise NotFoundError("Vulnerability", vulnerability_id)

        assessment = await self.store.create_assessment(vulnerability_id)
        log = logger.bind(assessment_id=assessment.id, cve_id=vuln.cve_id)
        log.info("assessment_started")

        try:
            raw = await asyncio.wait_for(self.analyst.assess(vuln.summary()), timeout=self.timeout)
            analysis = normalize_analysis(raw)
        except asyncio.CancelledError:
            log.warning("assessment_cancelled")
            await asyncio.shield(self._mark_failed(assessment.id))
            raise
        except Exception as e:
            log.error("assessment_failed", error=str(e), error_type=type(e).__name__)
            await self._mark_failed(assessment.id)
            raise AssessmentFailedError(
                assessment.id,
                f"Failed to assess vulnerability risk: {e}",
                {"vulnerability_id": vulnerability_id},
            ) from e

        completed = await self.store.update_assessment(
            assessment.id,
            AssessmentUpdate(status=AssessmentStatus.COMPLETED, ai_analysis=analysis),
        )
        log.info("assessment_completed", risk_score=analysis.risk_score)
        return completed

    async def _mark_failed(self, assessment_id: str) -> None:
        current = await self.store.get_assessment(assessment_id)
        if current is None or current.is_terminal:
            return
        await self.store.update_assessment(assessment_id, AssessmentUpdate(status=AssessmentStatus.FAILED))
