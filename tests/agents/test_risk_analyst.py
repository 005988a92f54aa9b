"""Tests for risk-analysis normalization and the RiskAnalyst prompt flow."""

import pytest
from unittest.mock import AsyncMock, MagicMock

from moriarty.agents.llm_client import BaseLLMClient
from moriarty.agents.risk_analyst import (
    DEFAULT_CONFIDENCE,
    DEFAULT_RECOMMENDATION,
    RiskAnalyst,
    normalize_analysis,
)
from moriarty.catalog.models import Severity, VulnerabilitySummary


class TestNormalizeAnalysis:
    def test_well_formed_camel_case(self):
        analysis = normalize_analysis({
            "riskScore": 85,
            "exploitability": 70,
            "impactSeverity": "High",
            "recommendation": "Apply vendor patch.",
            "remediationAvailable": True,
            "confidenceScore": 0.8,
        })
        assert analysis.risk_score == 85
        assert analysis.exploitability == 70
        assert analysis.impact_severity == Severity.HIGH
        assert analysis.recommendation == "Apply vendor patch."
        assert analysis.remediation_available is True
        assert analysis.confidence_score == 0.8

    def test_snake_case_keys(self):
        analysis = normalize_analysis({"risk_score": 40, "impact_severity": "low", "confidence_score": 0.3})
        assert analysis.risk_score == 40
        assert analysis.impact_severity == Severity.LOW
        assert analysis.confidence_score == 0.3

    def test_out_of_range_values_are_clamped(self):
        analysis = normalize_analysis({
            "riskScore": 150,
            "exploitability": -20,
            "impactSeverity": "Critical",
            "recommendation": "x",
            "remediationAvailable": True,
            "confidenceScore": -0.3,
        })
        assert analysis.risk_score == 100
        assert analysis.exploitability == 0
        assert analysis.confidence_score == 0.0

    def test_empty_reply_uses_defaults(self):
        analysis = normalize_analysis({})
        assert analysis.risk_score == 0
        assert analysis.exploitability == 0
        assert analysis.impact_severity == Severity.MEDIUM
        assert analysis.recommendation == DEFAULT_RECOMMENDATION
        assert analysis.remediation_available is False
        assert analysis.confidence_score == DEFAULT_CONFIDENCE

    def test_explicit_zero_confidence_is_kept(self):
        assert normalize_analysis({"confidenceScore": 0}).confidence_score == 0.0

    @pytest.mark.parametrize("value", ["high risk", None, True, float("nan"), float("inf")])
    def test_unusable_numbers_fall_back(self, value):
        analysis = normalize_analysis({"riskScore": value, "confidenceScore": value})
        assert analysis.risk_score == 0
        assert analysis.confidence_score == DEFAULT_CONFIDENCE

    def test_numeric_strings_are_accepted(self):
        analysis = normalize_analysis({"riskScore": "72.6", "exploitability": "10"})
        assert analysis.risk_score == 73
        assert analysis.exploitability == 10

    def test_unknown_severity_defaults_to_medium(self):
        assert normalize_analysis({"impactSeverity": "Catastrophic"}).impact_severity == Severity.MEDIUM

    def test_blank_recommendation_defaults(self):
        assert normalize_analysis({"recommendation": ""}).recommendation == DEFAULT_RECOMMENDATION

    def test_remediation_string_flag(self):
        assert normalize_analysis({"remediationAvailable": "yes"}).remediation_available is True
        assert normalize_analysis({"remediationAvailable": "false"}).remediation_available is False


class TestRiskAnalyst:
    @pytest.mark.asyncio
    async def test_assess_renders_prompt_and_returns_raw(self):
        llm = MagicMock(spec=BaseLLMClient)
        llm.complete_json = AsyncMock(return_value={"riskScore": 60})

        analyst = RiskAnalyst(llm, temperature=0.1)
        summary = VulnerabilitySummary(
            cve_id="CVE-2021-44228",
            description="Log4Shell",
            severity="Critical",
            cvss_score=10.0,
            product="log4j",
            vendor="apache",
        )
        raw = await analyst.assess(summary)

        assert raw == {"riskScore": 60}
        kwargs = llm.complete_json.call_args.kwargs
        prompt = kwargs["messages"][0].content
        assert "CVE-2021-44228" in prompt
        assert "Vendor: apache" in prompt
        assert "riskScore" in prompt
        assert "cybersecurity" in kwargs["system"].lower()
        assert kwargs["temperature"] == 0.1

    @pytest.mark.asyncio
    async def test_missing_fields_render_as_na(self):
        llm = MagicMock(spec=BaseLLMClient)
        llm.complete_json = AsyncMock(return_value={})

        summary = VulnerabilitySummary(cve_id="CVE-2024-0001", description="d", severity="Low")
        await RiskAnalyst(llm).assess(summary)

        prompt = llm.complete_json.call_args.kwargs["messages"][0].content
        assert "CVSS Score: N/A" in prompt
        assert "Product: N/A" in prompt
