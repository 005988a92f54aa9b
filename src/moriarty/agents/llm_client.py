"""LLM client abstraction for CyberMoriarty.

Supports multiple providers with a unified interface:
- OpenAI (primary - JSON response mode)
- Anthropic Claude
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any
import json

import anthropic
import openai
from openai import AsyncOpenAI
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from moriarty.core import CollaboratorError, ConfigurationError, Settings, get_logger, get_settings

logger = get_logger(__name__)


class LLMProvider(str, Enum):
    """Supported LLM providers."""
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


class LLMError(CollaboratorError):
    """LLM-related errors."""
    pass


@dataclass
class LLMMessage:
    """A message in the conversation."""
    role: str  # "user", "assistant"
    content: str


@dataclass
class LLMResponse:
    """Response from LLM."""
    content: str
    model: str
    provider: LLMProvider
    usage: dict[str, int] = field(default_factory=dict)
    latency_ms: float = 0.0


def parse_json_object(content: str) -> dict[str, Any]:
    """Parse a model reply that should be a single JSON object.

    Tolerates a surrounding markdown code fence.
    """
    text = content.strip()
    if text.startswith("```"):
        text = text.split("```")[1]
        if text.startswith("json"):
            text = text[4:]
        text = text.strip()

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise LLMError(f"Invalid JSON response: {e}", {"content": content[:500]}) from e

    if not isinstance(data, dict):
        raise LLMError(
            f"Expected a JSON object, got {type(data).__name__}",
            {"content": content[:500]},
        )
    return data


class BaseLLMClient(ABC):
    """Abstract base for LLM clients."""

    @abstractmethod
    async def complete(
        self,
        messages: list[LLMMessage],
        system: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.0,
        json_mode: bool = False,
    ) -> LLMResponse:
        """Generate a completion."""
        pass

    async def complete_json(
        self,
        messages: list[LLMMessage],
        system: str | None = None,
        max_tokens: int = 2048,
        temperature: float = 0.0,
    ) -> dict[str, Any]:
        """Generate a completion and parse it as a JSON object."""
        response = await self.complete(
            messages=messages,
            system=system,
            max_tokens=max_tokens,
            temperature=temperature,
            json_mode=True,
        )
        return parse_json_object(response.content)


class OpenAIClient(BaseLLMClient):
    """OpenAI chat completions client."""

    def __init__(self, api_key: str, model: str = "gpt-4o", timeout: float = 60.0):
        self.client = AsyncOpenAI(api_key=api_key, timeout=timeout)
        self.model = model
        self.provider = LLMProvider.OPENAI

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type((openai.APIConnectionError, openai.RateLimitError)),
        reraise=True,
    )
    async def complete(
        self,
        messages: list[LLMMessage],
        system: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.0,
        json_mode: bool = False,
    ) -> LLMResponse:
        start = datetime.now()

        api_messages: list[dict[str, str]] = []
        if system:
            api_messages.append({"role": "system", "content": system})
        api_messages.extend([
            {"role": m.role, "content": m.content}
            for m in messages
        ])

        kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": api_messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        logger.debug("openai_request", model=self.model, message_count=len(messages), json_mode=json_mode)

        response = await self.client.chat.completions.create(**kwargs)

        latency = (datetime.now() - start).total_seconds() * 1000
        usage = {}
        if response.usage is not None:
            usage = {
                "input_tokens": response.usage.prompt_tokens,
                "output_tokens": response.usage.completion_tokens,
            }

        return LLMResponse(
            content=response.choices[0].message.content or "",
            model=self.model,
            provider=self.provider,
            usage=usage,
            latency_ms=latency,
        )


class AnthropicClient(BaseLLMClient):
    """Anthropic Claude client."""

    def __init__(self, api_key: str, model: str = "claude-sonnet-4-20250514", timeout: float = 60.0):
        self.client = anthropic.AsyncAnthropic(api_key=api_key, timeout=timeout)
        self.model = model
        self.provider = LLMProvider.ANTHROPIC

    async def complete(
        self,
        messages: list[LLMMessage],
        system: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.0,
        json_mode: bool = False,
    ) -> LLMResponse:
        start = datetime.now()

        if json_mode:
            instruction = "Respond ONLY with the JSON object, no other text or markdown."
            system = f"{system}\n\n{instruction}" if system else instruction

        kwargs: dict[str, Any] = {
            "model": self.model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
        }
        if system:
            kwargs["system"] = system

        response = await self.client.messages.create(**kwargs)

        latency = (datetime.now() - start).total_seconds() * 1000
        text = "".join(block.text for block in response.content if block.type == "text")

        return LLMResponse(
            content=text,
            model=self.model,
            provider=self.provider,
            usage={
                "input_tokens": response.usage.input_tokens,
                "output_tokens": response.usage.output_tokens,
            },
            latency_ms=latency,
        )


# === Factory ===

def get_llm_client(settings: Settings | None = None) -> BaseLLMClient:
    """Get an LLM client for the configured provider."""
    settings = settings or get_settings()
    provider = LLMProvider(settings.llm_provider)

    if provider == LLMProvider.OPENAI:
        if settings.openai_api_key is None:
            raise ConfigurationError("OPENAI_API_KEY is required when LLM_PROVIDER=openai")
        return OpenAIClient(
            api_key=settings.openai_api_key.get_secret_value(),
            model=settings.openai_model,
            timeout=settings.llm_timeout_seconds,
        )
    elif provider == LLMProvider.ANTHROPIC:
        if settings.anthropic_api_key is None:
            raise ConfigurationError("ANTHROPIC_API_KEY is required when LLM_PROVIDER=anthropic")
        return AnthropicClient(
            api_key=settings.anthropic_api_key.get_secret_value(),
            model=settings.anthropic_model,
            timeout=settings.llm_timeout_seconds,
        )
    else:
        raise ConfigurationError(f"Unsupported provider: {provider}")


class LazyLLMClient(BaseLLMClient):
    """Provider client built on first use.

    Lets the dashboard start without provider keys. A missing key surfaces
    as an ``LLMError`` from the call that needed the model.
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings
        self._client: BaseLLMClient | None = None

    def _resolve(self) -> BaseLLMClient:
        if self._client is None:
            try:
                self._client = get_llm_client(self.settings)
            except ConfigurationError as e:
                logger.warning("llm_client_unavailable", error=e.message)
                raise LLMError(e.message, e.details) from e
        return self._client

    async def complete(
        self,
        messages: list[LLMMessage],
        system: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.0,
        json_mode: bool = False,
    ) -> LLMResponse:
        return await self._resolve().complete(
            messages=messages,
            system=system,
            max_tokens=max_tokens,
            temperature=temperature,
            json_mode=json_mode,
        )
