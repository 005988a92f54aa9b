"""LLM-backed collaborators: risk analysis and report narratives."""

from moriarty.agents.llm_client import (
    AnthropicClient,
    BaseLLMClient,
    LazyLLMClient,
    LLMError,
    LLMMessage,
    LLMProvider,
    LLMResponse,
    OpenAIClient,
    get_llm_client,
)
from moriarty.agents.report_writer import ReportWriter
from moriarty.agents.risk_analyst import RiskAnalyst, normalize_analysis

__all__ = [
    "AnthropicClient",
    "BaseLLMClient",
    "LazyLLMClient",
    "LLMError",
    "LLMMessage",
    "LLMProvider",
    "LLMResponse",
    "OpenAIClient",
    "ReportWriter",
    "RiskAnalyst",
    "get_llm_client",
    "normalize_analysis",
]
