"""Shared fixtures: a scripted LLM backend and fresh orchestrator components."""

import asyncio
import json
from typing import List, Optional

import pytest

from autoflow_ai.config import Settings
from autoflow_ai.conversation.orchestrator import ConversationOrchestrator
from autoflow_ai.conversation.store import InMemorySessionStore
from autoflow_ai.llm.client import ChatMessage, CompletionParams, LLMGateway


WORKFLOW_JSON = json.dumps({
    "id": "wf_whatsapp_diario",
    "name": "Mensagem diária no WhatsApp",
    "description": "Envia uma mensagem todo dia às 9h",
    "nodes": [
        {
            "id": "node_1",
            "type": "trigger",
            "name": "Agendamento diário",
            "config": {"cron": "0 9 * * *"},
            "position": {"x": 100, "y": 100},
        },
        {
            "id": "node_2",
            "type": "action",
            "name": "Enviar WhatsApp",
            "config": {"integration": "whatsapp_business"},
            "position": {"x": 300, "y": 100},
        },
    ],
    "edges": [
        {"id": "edge_1", "source": "node_1", "target": "node_2", "type": "default"},
    ],
    "estimatedROI": {"timeSaved": "2 horas por semana", "costSaved": 400, "complexity": "Simples"},
    "suggestedIntegrations": ["whatsapp_business"],
    "tags": ["whatsapp", "agendamento"],
}, ensure_ascii=False)


class FakeLLMClient:
    """LLMClient double: returns scripted replies and records every request."""

    def __init__(self, replies: Optional[List[str]] = None, default: str = "Resposta do assistente."):
        self.replies = list(replies or [])
        self.default = default
        self.error: Optional[Exception] = None
        self.delay = 0.0
        self.calls: List[List[ChatMessage]] = []

    async def complete(self, messages: List[ChatMessage], params: CompletionParams) -> Optional[str]:
        self.calls.append(messages)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if self.replies:
            return self.replies.pop(0)
        return self.default


@pytest.fixture
def settings():
    return Settings(_env_file=None, llm_timeout_seconds=1.0)


@pytest.fixture
def fake_llm():
    return FakeLLMClient()


@pytest.fixture
def store():
    return InMemorySessionStore()


@pytest.fixture
def orchestrator(fake_llm, store, settings):
    return ConversationOrchestrator(
        llm=LLMGateway.from_settings(fake_llm, settings),
        store=store,
        settings=settings,
    )
