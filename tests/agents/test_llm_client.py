"""Tests for LLM client helpers and the provider factory."""

import pytest
from pydantic import SecretStr
from unittest.mock import AsyncMock, MagicMock, patch

from moriarty.agents.llm_client import (
    AnthropicClient,
    LazyLLMClient,
    LLMError,
    LLMMessage,
    LLMProvider,
    OpenAIClient,
    get_llm_client,
    parse_json_object,
)
from moriarty.core import ConfigurationError, Settings


class TestParseJsonObject:
    def test_plain_object(self):
        assert parse_json_object('{"riskScore": 10}') == {"riskScore": 10}

    def test_fenced_object(self):
        content = '```json\n{"riskScore": 10}\n```'
        assert parse_json_object(content) == {"riskScore": 10}

    def test_invalid_json(self):
        with pytest.raises(LLMError):
            parse_json_object("not json at all")

    def test_non_object_rejected(self):
        with pytest.raises(LLMError):
            parse_json_object("[1, 2, 3]")


class TestFactory:
    def test_openai_requires_key(self):
        with pytest.raises(ConfigurationError):
            get_llm_client(Settings(_env_file=None, llm_provider="openai", openai_api_key=None))

    def test_anthropic_requires_key(self):
        with pytest.raises(ConfigurationError):
            get_llm_client(Settings(_env_file=None, llm_provider="anthropic", anthropic_api_key=None))

    def test_openai_client(self):
        settings = Settings(_env_file=None, llm_provider="openai", openai_api_key=SecretStr("sk-test"))
        client = get_llm_client(settings)
        assert isinstance(client, OpenAIClient)
        assert client.model == settings.openai_model

    def test_anthropic_client(self):
        settings = Settings(_env_file=None, llm_provider="anthropic", anthropic_api_key=SecretStr("sk-ant-test"))
        client = get_llm_client(settings)
        assert isinstance(client, AnthropicClient)
        assert client.provider == LLMProvider.ANTHROPIC


class TestOpenAIClient:
    @pytest.mark.asyncio
    async def test_complete_json_uses_json_mode(self):
        client = OpenAIClient(api_key="sk-test")

        message = MagicMock()
        message.content = '{"riskScore": 55}'
        response = MagicMock()
        response.choices = [MagicMock(message=message)]
        response.usage = MagicMock(prompt_tokens=12, completion_tokens=8)

        with patch.object(client.client.chat.completions, "create", AsyncMock(return_value=response)) as create:
            result = await client.complete_json(
                messages=[LLMMessage(role="user", content="assess")],
                system="be precise",
                temperature=0.1,
            )

        assert result == {"riskScore": 55}
        kwargs = create.call_args.kwargs
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["messages"][0] == {"role": "system", "content": "be precise"}
        assert kwargs["temperature"] == 0.1


class TestLazyLLMClient:
    def test_construction_needs_no_key(self):
        client = LazyLLMClient(Settings(_env_file=None, llm_provider="openai", openai_api_key=None))
        assert client._client is None

    @pytest.mark.asyncio
    async def test_missing_key_fails_the_call(self):
        client = LazyLLMClient(Settings(_env_file=None, llm_provider="openai", openai_api_key=None))
        with pytest.raises(LLMError) as exc_info:
            await client.complete([LLMMessage(role="user", content="hi")])
        assert "OPENAI_API_KEY" in exc_info.value.message
        assert isinstance(exc_info.value.__cause__, ConfigurationError)

    @pytest.mark.asyncio
    async def test_delegates_to_provider_client(self):
        settings = Settings(_env_file=None, llm_provider="openai", openai_api_key=SecretStr("sk-test"))
        client = LazyLLMClient(settings)

        with patch.object(OpenAIClient, "complete", AsyncMock(return_value=MagicMock(content="done"))) as complete:
            result = await client.complete([LLMMessage(role="user", content="hi")], temperature=0.3)
            again = await client.complete([LLMMessage(role="user", content="again")])

        assert result.content == "done"
        assert again.content == "done"
        assert isinstance(client._client, OpenAIClient)
        assert complete.await_count == 2
        assert complete.call_args_list[0].kwargs["temperature"] == 0.3
