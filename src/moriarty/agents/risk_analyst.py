"""Risk-analysis collaborator.

Asks the LLM for a JSON risk assessment of one vulnerability. The reply is
untrusted: ``normalize_analysis`` turns whatever came back into a valid
``AIAnalysis``, falling back to safe defaults for missing or unusable fields
and clamping every score into its range.
"""

import math
from typing import Any

from moriarty.agents.llm_client import BaseLLMClient, LLMMessage
from moriarty.catalog.models import AIAnalysis, Severity, VulnerabilitySummary
from moriarty.core import get_logger
from moriarty.core.prompts import PromptManager

logger = get_logger(__name__)

DEFAULT_RECOMMENDATION = "Further analysis required."
DEFAULT_CONFIDENCE = 0.5


def _number(raw: dict[str, Any], *keys: str) -> float | None:
    """First finite numeric value found under any of ``keys``."""
    for key in keys:
        value = raw.get(key)
        if isinstance(value, bool) or value is None:
            continue
        try:
            number = float(value)
        except (TypeError, ValueError):
            continue
        if math.isfinite(number):
            return number
    return None


def _first(raw: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if raw.get(key) is not None:
            return raw[key]
    return None


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _severity(value: Any) -> Severity:
    if isinstance(value, str):
        try:
            return Severity(value.strip().capitalize())
        except ValueError:
            pass
    return Severity.MEDIUM


def _flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "1")
    return bool(value)


def normalize_analysis(raw: dict[str, Any]) -> AIAnalysis:
    """Build a valid AIAnalysis from a raw model reply.

    Accepts camelCase keys (as requested in the prompt) or snake_case.
    """
    risk = _number(raw, "riskScore", "risk_score")
    exploitability = _number(raw, "exploitability")
    confidence = _number(raw, "confidenceScore", "confidence_score")
    recommendation = _first(raw, "recommendation")

    return AIAnalysis(
        risk_score=round(_clamp(risk if risk is not None else 0, 0, 100)),
        exploitability=round(_clamp(exploitability if exploitability is not None else 0, 0, 100)),
        impact_severity=_severity(_first(raw, "impactSeverity", "impact_severity")),
        recommendation=str(recommendation).strip() if recommendation else DEFAULT_RECOMMENDATION,
        remediation_available=_flag(_first(raw, "remediationAvailable", "remediation_available")),
        confidence_score=_clamp(confidence if confidence is not None else DEFAULT_CONFIDENCE, 0.0, 1.0),
    )


class RiskAnalyst:
    """LLM-backed risk analysis of a single vulnerability.

    Usage:
        analyst = RiskAnalyst(get_llm_client())
        raw = await analyst.assess(vuln.summary())
        analysis = normalize_analysis(raw)
    """

    def __init__(
        self,
        llm: BaseLLMClient,
        prompts: PromptManager | None = None,
        temperature: float = 0.1,
    ) -> None:
        self.llm = llm
        self.prompts = prompts or PromptManager()
        self.temperature = temperature

    async def assess(self, summary: VulnerabilitySummary) -> dict[str, Any]:
        """Return the raw JSON object produced by the model.

        Raises:
            LLMError: the reply was not a JSON object
        """
        prompt = self.prompts.render("risk_assessment.j2", {"vuln": summary})
        raw = await self.llm.complete_json(
            messages=[LLMMessage(role="user", content=prompt)],
            system=self.prompts.render("risk_assessment_system.j2"),
            temperature=self.temperature,
        )
        logger.debug("risk_analysis_received", cve_id=summary.cve_id, keys=sorted(raw))
        return raw
