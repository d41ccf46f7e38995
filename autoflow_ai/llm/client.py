"""
LLM port and gateway.

LLMClient is the provider capability (one chat completion, may raise).
LLMGateway wraps it with the policy the conversation layer relies on:
  - request = [system prompt] + the last N history turns
  - one attempt per turn, bounded by a timeout
  - errors, timeouts and empty completions become canned text, never exceptions
"""

import asyncio
import logging
from typing import List, Literal, Optional, Protocol

from openai import AsyncOpenAI, OpenAIError
from pydantic import BaseModel

from autoflow_ai.config import ConfigurationError, Settings, get_settings
from autoflow_ai.models.conversation import Message

logger = logging.getLogger(__name__)


UNAVAILABLE_TEXT = (
    "Estou com dificuldades para processar sua solicitação no momento. "
    "Pode tentar novamente em alguns instantes?"
)
EMPTY_COMPLETION_TEXT = (
    "Desculpe, não consegui gerar uma resposta adequada. "
    "Pode tentar reformular sua pergunta?"
)

_DEVELOPMENT_API_KEY = "sk-fake-key-for-development"


class LLMUnavailableError(Exception):
    """Raised by a provider client when the completion request fails."""
    pass


class ChatMessage(BaseModel):
    role: Literal["system", "user", "assistant"]
    content: str


class CompletionParams(BaseModel):
    model: str = "gpt-4"
    max_tokens: int = 500
    temperature: float = 0.7
    presence_penalty: float = 0.1
    frequency_penalty: float = 0.1

    @classmethod
    def from_settings(cls, settings: Settings) -> "CompletionParams":
        return cls(
            model=settings.llm_model,
            max_tokens=settings.llm_max_tokens,
            temperature=settings.llm_temperature,
            presence_penalty=settings.llm_presence_penalty,
            frequency_penalty=settings.llm_frequency_penalty,
        )


class Completion(BaseModel):
    """Text handed back to handlers. degraded=True means the text is a canned fallback."""

    text: str
    degraded: bool = False
    reason: Optional[str] = None


class LLMClient(Protocol):
    """Protocol for chat completion providers: pluggable backend."""

    async def complete(
        self, messages: List[ChatMessage], params: CompletionParams
    ) -> Optional[str]: ...


class OpenAIChatClient:
    """
    OpenAI Chat Completions backend.

    A missing API key is fatal in production and raises ConfigurationError at
    construction, so the application fails at startup. The SDK client itself
    is created on first use.
    """

    def __init__(self, settings: Optional[Settings] = None, client: Optional[AsyncOpenAI] = None):
        self.settings = settings or get_settings()
        self._api_key = self.settings.openai_api_key
        if not self._api_key:
            if self.settings.is_production:
                raise ConfigurationError("AUTOFLOW_OPENAI_API_KEY is required in production")
            self._api_key = _DEVELOPMENT_API_KEY
        self._client = client

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self._api_key, base_url=self.settings.openai_base_url)
        return self._client

    async def complete(
        self, messages: List[ChatMessage], params: CompletionParams
    ) -> Optional[str]:
        client = self._get_client()
        try:
            response = await client.chat.completions.create(
                model=params.model,
                messages=[m.model_dump() for m in messages],
                max_tokens=params.max_tokens,
                temperature=params.temperature,
                presence_penalty=params.presence_penalty,
                frequency_penalty=params.frequency_penalty,
            )
        except OpenAIError as e:
            raise LLMUnavailableError(str(e)) from e

        if not response.choices:
            return None
        return response.choices[0].message.content


class LLMGateway:
    """Single guarded entry point to the LLM for every handler."""

    def __init__(
        self,
        client: LLMClient,
        params: Optional[CompletionParams] = None,
        timeout_seconds: float = 30.0,
        history_window: int = 5,
    ):
        self.client = client
        self.params = params or CompletionParams()
        self.timeout_seconds = timeout_seconds
        self.history_window = history_window

    @classmethod
    def from_settings(cls, client: LLMClient, settings: Settings) -> "LLMGateway":
        return cls(
            client=client,
            params=CompletionParams.from_settings(settings),
            timeout_seconds=settings.llm_timeout_seconds,
            history_window=settings.llm_history_window,
        )

    def build_messages(self, system_prompt: str, history: List[Message]) -> List[ChatMessage]:
        recent = history[-self.history_window:] if self.history_window else []
        return [ChatMessage(role="system", content=system_prompt)] + [
            ChatMessage(role=m.role.value, content=m.content) for m in recent
        ]

    async def complete(self, system_prompt: str, history: List[Message]) -> Completion:
        messages = self.build_messages(system_prompt, history)
        try:
            text = await asyncio.wait_for(
                self.client.complete(messages, self.params),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning("LLM call timed out after %.1fs", self.timeout_seconds)
            return Completion(text=UNAVAILABLE_TEXT, degraded=True, reason="timeout")
        except Exception as e:
            logger.warning("LLM call failed: %s: %s", type(e).__name__, e)
            return Completion(text=UNAVAILABLE_TEXT, degraded=True, reason=type(e).__name__)

        if not text or not text.strip():
            logger.warning("LLM returned an empty completion")
            return Completion(text=EMPTY_COMPLETION_TEXT, degraded=True, reason="empty_completion")
        return Completion(text=text)
