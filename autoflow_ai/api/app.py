"""
AutoFlow AI API: FastAPI endpoints.

Exposes the assistant over REST for:
- Instruction parsing
- Conversation turns
- Session history, stats and suggestions
- Integration recommendations
"""

from typing import List, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from autoflow_ai.config import get_settings
from autoflow_ai.conversation.orchestrator import ConversationOrchestrator
from autoflow_ai.logging_config import configure_logging
from autoflow_ai.models.conversation import (
    AIResponse,
    ConversationStats,
    Message,
    SessionContextUpdate,
)
from autoflow_ai.models.instruction import ParsedInstruction, ParserContext


# --- Request/Response Models ---

class ParseRequest(BaseModel):
    text: str
    context: Optional[ParserContext] = None


class ChatMessageRequest(BaseModel):
    user_id: str
    message: str
    context: Optional[SessionContextUpdate] = None


class SuggestionsResponse(BaseModel):
    user_id: str
    suggestions: List[str]


# --- Application Factory ---

def create_app(orchestrator: Optional[ConversationOrchestrator] = None) -> FastAPI:
    """Create and configure the FastAPI application."""

    settings = get_settings()
    configure_logging(settings)

    app = FastAPI(
        title="AutoFlow AI API",
        description="Conversational workflow automation for Brazilian SMEs",
        version="0.1.0",
    )

    orch = orchestrator or ConversationOrchestrator.from_settings(settings)

    app.state.orchestrator = orch
    app.state.parser = orch.parser

    # === PARSING ===

    @app.post("/parse", response_model=ParsedInstruction)
    def parse_instruction(req: ParseRequest):
        """Parse one utterance without touching any session."""
        return orch.parser.parse(req.text, req.context)

    # === CONVERSATION ===
    # Session endpoints run on the event loop; the store is not thread-safe.

    @app.post("/chat/messages", response_model=AIResponse)
    async def send_message(req: ChatMessageRequest):
        """Run one conversation turn for a user."""
        return await orch.process_message(req.user_id, req.message, req.context)

    @app.get("/chat/{user_id}/history", response_model=List[Message])
    async def get_history(user_id: str):
        if orch.store.get(user_id) is None:
            raise HTTPException(404, "Conversation not found")
        return orch.get_history(user_id)

    @app.get("/chat/{user_id}/suggestions", response_model=SuggestionsResponse)
    async def get_suggestions(user_id: str):
        return SuggestionsResponse(
            user_id=user_id,
            suggestions=orch.get_intelligent_suggestions(user_id),
        )

    @app.get("/chat/{user_id}/stats", response_model=ConversationStats)
    async def get_stats(user_id: str):
        stats = orch.get_conversation_stats(user_id)
        if stats is None:
            raise HTTPException(404, "Conversation not found")
        return stats

    @app.post("/chat/{user_id}/integration-suggestions", response_model=AIResponse)
    async def suggest_integrations(user_id: str):
        return await orch.suggest_integrations(user_id)

    @app.delete("/chat/{user_id}")
    async def clear_conversation(user_id: str):
        if not orch.clear_conversation(user_id):
            raise HTTPException(404, "Conversation not found")
        return {"status": "cleared", "user_id": user_id}

    return app


# Default app instance
app = create_app()
