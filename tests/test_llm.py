"""Tests for the LLM gateway and the OpenAI client adapter."""

from datetime import datetime

import pytest

from autoflow_ai.config import ConfigurationError, Settings
from autoflow_ai.llm.client import (
    EMPTY_COMPLETION_TEXT,
    UNAVAILABLE_TEXT,
    CompletionParams,
    LLMGateway,
    LLMUnavailableError,
    OpenAIChatClient,
)
from autoflow_ai.models import Message, MessageRole

from conftest import FakeLLMClient


def _history(n: int):
    return [
        Message(
            id=f"msg_{i}",
            role=MessageRole.USER if i % 2 == 0 else MessageRole.ASSISTANT,
            content=f"mensagem {i}",
            timestamp=datetime.utcnow(),
        )
        for i in range(n)
    ]


class TestLLMGateway:
    def test_messages_are_system_plus_recent_history(self):
        gateway = LLMGateway(FakeLLMClient(), history_window=5)
        messages = gateway.build_messages("prompt do sistema", _history(8))

        assert len(messages) == 6
        assert messages[0].role == "system"
        assert messages[0].content == "prompt do sistema"
        assert [m.content for m in messages[1:]] == [f"mensagem {i}" for i in range(3, 8)]
        assert [m.role for m in messages[1:3]] == ["assistant", "user"]

    def test_short_history_sent_in_full(self):
        gateway = LLMGateway(FakeLLMClient(), history_window=5)
        assert len(gateway.build_messages("p", _history(2))) == 3

    def test_zero_window_sends_only_system_prompt(self):
        gateway = LLMGateway(FakeLLMClient(), history_window=0)
        assert len(gateway.build_messages("p", _history(4))) == 1

    @pytest.mark.asyncio
    async def test_successful_completion(self):
        client = FakeLLMClient(replies=["Claro! Vamos automatizar isso."])
        gateway = LLMGateway(client)

        completion = await gateway.complete("p", _history(1))

        assert completion.text == "Claro! Vamos automatizar isso."
        assert completion.degraded is False
        assert len(client.calls) == 1

    @pytest.mark.asyncio
    async def test_provider_error_becomes_canned_text(self):
        client = FakeLLMClient()
        client.error = LLMUnavailableError("503 Service Unavailable")
        gateway = LLMGateway(client)

        completion = await gateway.complete("p", [])

        assert completion.text == UNAVAILABLE_TEXT
        assert completion.degraded is True
        assert completion.reason == "LLMUnavailableError"

    @pytest.mark.asyncio
    async def test_timeout_becomes_canned_text(self):
        client = FakeLLMClient()
        client.delay = 1.0
        gateway = LLMGateway(client, timeout_seconds=0.01)

        completion = await gateway.complete("p", [])

        assert completion.text == UNAVAILABLE_TEXT
        assert completion.degraded is True
        assert completion.reason == "timeout"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("reply", [None, "", "   "])
    async def test_empty_completion(self, reply):
        gateway = LLMGateway(FakeLLMClient(replies=[reply]))

        completion = await gateway.complete("p", [])

        assert completion.text == EMPTY_COMPLETION_TEXT
        assert completion.degraded is True
        assert completion.reason == "empty_completion"

    def test_from_settings(self):
        settings = Settings(
            _env_file=None,
            llm_model="gpt-4o-mini",
            llm_max_tokens=300,
            llm_timeout_seconds=12,
            llm_history_window=3,
        )
        gateway = LLMGateway.from_settings(FakeLLMClient(), settings)
        assert gateway.params.model == "gpt-4o-mini"
        assert gateway.params.max_tokens == 300
        assert gateway.timeout_seconds == 12
        assert gateway.history_window == 3


class TestCompletionParams:
    def test_defaults(self):
        params = CompletionParams()
        assert params.model == "gpt-4"
        assert params.max_tokens == 500
        assert params.temperature == 0.7
        assert params.presence_penalty == 0.1
        assert params.frequency_penalty == 0.1


class TestOpenAIChatClient:
    def test_missing_key_fails_at_construction_in_production(self):
        with pytest.raises(ConfigurationError):
            OpenAIChatClient(Settings(_env_file=None, app_env="production", openai_api_key=None))

    def test_key_present_in_production(self):
        client = OpenAIChatClient(
            Settings(_env_file=None, app_env="production", openai_api_key="sk-test")
        )
        assert client._get_client() is not None

    def test_missing_key_allowed_in_development(self):
        client = OpenAIChatClient(Settings(_env_file=None, app_env="development", openai_api_key=None))
        assert client._get_client() is not None
