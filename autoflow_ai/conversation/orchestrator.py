"""
Conversation Orchestrator: the per-user multi-turn loop.

One turn:
  session (fetch or create, merge partial context)
    → parse → append user message
    → dispatch on intent → handler builds prompt, calls LLM
    → append assistant message → persist session → AIResponse

Behavioral Contract:
- process_message() never raises. Any failure during a turn becomes a fixed
  apology response with confidence 0.1, and the session is still persisted.
- History alternates user/assistant once populated. System prompts are only
  LLM input and are never stored.
- Turns of one user are serialized; different users never block each other.
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional, Union
from uuid import uuid4

from autoflow_ai.config import Settings, get_settings
from autoflow_ai.conversation.handlers import (
    GenericConversationHandler,
    HandlerOutcome,
    HelpHandler,
    IntegrationSuggestionHandler,
    IntentHandler,
    QuestionHandler,
    WorkflowCreationHandler,
    WorkflowModificationHandler,
)
from autoflow_ai.conversation.store import InMemorySessionStore, SessionStore
from autoflow_ai.llm.client import LLMClient, LLMGateway, OpenAIChatClient
from autoflow_ai.models.conversation import (
    AIResponse,
    ConversationSession,
    ConversationStats,
    Message,
    MessageMetadata,
    MessageRole,
    SessionContextUpdate,
)
from autoflow_ai.models.instruction import Intent, ParsedInstruction, ParserContext, ParseSuccess
from autoflow_ai.parser.instruction_parser import InstructionParser
from autoflow_ai.prompts.composer import PromptComposer

logger = logging.getLogger(__name__)


FAILURE_CONFIDENCE = 0.1

APOLOGY_MESSAGE = "Desculpe, tive um problema ao processar sua mensagem. Pode tentar novamente?"
APOLOGY_SUGGESTIONS = [
    "Reformule sua pergunta",
    "Seja mais específico sobre o que deseja automatizar",
]
APOLOGY_NEXT_STEPS = ["Tentar novamente com informações mais claras"]

STARTER_SUGGESTIONS = [
    "Automatizar atendimento no WhatsApp",
    "Criar cobrança automática via PIX",
    "Integrar com planilhas do Google",
    "Agendar envio de emails",
]

INDUSTRY_SUGGESTIONS = {
    "ecommerce": [
        "Automatizar follow-up de carrinho abandonado",
        "Notificar sobre produtos em falta",
        "Enviar confirmação de pedido via WhatsApp",
    ],
    "servicos": [
        "Confirmar agendamentos automaticamente",
        "Enviar lembretes de consulta",
        "Coletar feedback pós-atendimento",
    ],
}

DEFAULT_SUGGESTIONS = [
    "Automatizar resposta inicial no WhatsApp",
    "Criar workflow de boas-vindas",
    "Integrar com sistema de vendas",
]


def apology_response() -> AIResponse:
    return AIResponse(
        message=APOLOGY_MESSAGE,
        suggestions=list(APOLOGY_SUGGESTIONS),
        next_steps=list(APOLOGY_NEXT_STEPS),
        confidence=FAILURE_CONFIDENCE,
    )


def _message_id() -> str:
    return f"msg_{uuid4().hex[:12]}"


class ConversationOrchestrator:
    """
    Routes each parsed message to a handler strategy and owns session history.
    """

    def __init__(
        self,
        llm: LLMGateway,
        parser: Optional[InstructionParser] = None,
        composer: Optional[PromptComposer] = None,
        store: Optional[SessionStore] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.llm = llm
        self.parser = parser or InstructionParser(default_timezone=self.settings.default_timezone)
        self.composer = composer or PromptComposer()
        self.store = store or InMemorySessionStore(
            ttl_seconds=self.settings.session_ttl_seconds,
            max_sessions=self.settings.session_max_sessions,
        )
        self._handlers: Dict[Intent, IntentHandler] = {}
        self._fallback_handler: IntentHandler = GenericConversationHandler(self.composer, self.llm)
        self._integration_handler = IntegrationSuggestionHandler(self.composer, self.llm)
        self._register_default_handlers()

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        client: Optional[LLMClient] = None,
    ) -> "ConversationOrchestrator":
        """Wire the orchestrator against the configured OpenAI backend."""
        settings = settings or get_settings()
        client = client or OpenAIChatClient(settings)
        return cls(llm=LLMGateway.from_settings(client, settings), settings=settings)

    def _register_default_handlers(self) -> None:
        self._handlers[Intent.CREATE_WORKFLOW] = WorkflowCreationHandler(self.composer, self.llm)
        self._handlers[Intent.MODIFY_WORKFLOW] = WorkflowModificationHandler(self.composer, self.llm)
        self._handlers[Intent.ASK_QUESTION] = QuestionHandler(self.composer, self.llm)
        self._handlers[Intent.GET_HELP] = HelpHandler(self.composer, self.llm)

    def register_handler(self, intent: Intent, handler: IntentHandler) -> None:
        """Register a custom handler for an intent."""
        self._handlers[intent] = handler

    def unregister_handler(self, intent: Intent) -> None:
        """Route an intent to the generic conversation fallback."""
        self._handlers.pop(intent, None)

    # --- Turns ---

    async def process_message(
        self,
        user_id: str,
        text: str,
        context: Union[SessionContextUpdate, dict, None] = None,
    ) -> AIResponse:
        """Handle one user message. Never raises."""
        async with self.store.lock(user_id):
            session: Optional[ConversationSession] = None
            try:
                session = self._get_or_create_session(user_id, context)
                response = await self._run_turn(session, text)
            except Exception:
                logger.exception("Conversation turn failed for user %s", user_id)
                response = apology_response()
                if session is not None:
                    self._close_dangling_turn(session, response)

            if session is not None:
                self._persist(session)
            return response

    async def suggest_integrations(self, user_id: str) -> AIResponse:
        """Recommend integrations for the user's industry. Does not add to history."""
        async with self.store.lock(user_id):
            try:
                session = self._get_or_create_session(user_id, None)
                outcome = await self._integration_handler.suggest(session)
                self._persist(session)
                return self._finalize(outcome)
            except Exception:
                logger.exception("Integration suggestions failed for user %s", user_id)
                return apology_response()

    async def _run_turn(self, session: ConversationSession, text: str) -> AIResponse:
        outcome = self.parser.analyze(text, self._parser_context(session))

        if not isinstance(outcome, ParseSuccess):
            logger.warning("Parser degraded for user %s: %s", session.user_id, outcome.reason)
            self._append_user_message(session, text, self.parser.degraded_instruction())
            response = apology_response()
            self._append_assistant_message(session, response)
            return response

        parsed = outcome.instruction
        self._append_user_message(session, text, parsed)

        handler = self._handlers.get(parsed.intent, self._fallback_handler)
        handled = await handler.handle(parsed, session)
        response = self._finalize(handled)

        if response.workflow_definition is not None:
            session.current_workflow = response.workflow_definition.model_dump(
                mode="json", by_alias=True
            )

        degraded = handled.completion is not None and handled.completion.degraded
        self._append_assistant_message(session, response, workflow_created=not degraded)
        return response

    @staticmethod
    def _finalize(outcome: HandlerOutcome) -> AIResponse:
        """A canned LLM fallback caps the confidence of whatever the handler built."""
        response = outcome.response
        if outcome.completion is not None and outcome.completion.degraded:
            response = response.model_copy(
                update={"confidence": min(response.confidence, FAILURE_CONFIDENCE)}
            )
        return response

    # --- Session helpers ---

    def _get_or_create_session(
        self, user_id: str, context: Union[SessionContextUpdate, dict, None]
    ) -> ConversationSession:
        if isinstance(context, dict):
            context = SessionContextUpdate.model_validate(context)

        session = self.store.get(user_id)
        if session is None:
            now = datetime.utcnow()
            session = ConversationSession(
                user_id=user_id,
                industry=self.settings.default_industry,
                organization_size=self.settings.default_organization_size,
                available_integrations=list(self.settings.default_integrations),
                created_at=now,
                last_activity=now,
            )
            if context is not None:
                self._merge_context(session, context)
            self.store.create(session)
            logger.debug("Created conversation session for user %s", user_id)
        elif context is not None:
            self._merge_context(session, context)

        return session

    @staticmethod
    def _merge_context(session: ConversationSession, context: SessionContextUpdate) -> None:
        """Fields set on the partial context overwrite; everything else is kept."""
        updates = context.model_dump(exclude_unset=True, exclude_none=True, exclude={"preferences"})
        for field, value in updates.items():
            setattr(session, field, value)

        if context.preferences is not None:
            preference_updates = context.preferences.model_dump(exclude_unset=True, exclude_none=True)
            session.preferences = session.preferences.model_copy(update=preference_updates)

    @staticmethod
    def _parser_context(session: ConversationSession) -> ParserContext:
        return ParserContext(
            industry=session.industry,
            prior_utterances=[m.content for m in session.history if m.role == MessageRole.USER],
            available_integrations=session.available_integrations,
            organization_size=session.organization_size,
        )

    @staticmethod
    def _append_user_message(
        session: ConversationSession, text: str, parsed: ParsedInstruction
    ) -> None:
        session.history.append(Message(
            id=_message_id(),
            role=MessageRole.USER,
            content=text,
            timestamp=datetime.utcnow(),
            metadata=MessageMetadata(
                intent=parsed.intent.value,
                entities=parsed.entities,
                confidence=parsed.confidence,
            ),
        ))

    @staticmethod
    def _append_assistant_message(
        session: ConversationSession, response: AIResponse, workflow_created: bool = False
    ) -> None:
        """Only turns whose LLM call succeeded count as a created workflow."""
        session.history.append(Message(
            id=_message_id(),
            role=MessageRole.ASSISTANT,
            content=response.message,
            timestamp=datetime.utcnow(),
            metadata=MessageMetadata(
                workflow_generated=workflow_created and response.workflow_generated is not None,
                confidence=response.confidence,
            ),
        ))

    def _close_dangling_turn(self, session: ConversationSession, response: AIResponse) -> None:
        """Answer an unanswered user message so history keeps alternating."""
        if session.history and session.history[-1].role == MessageRole.USER:
            self._append_assistant_message(session, response)

    def _persist(self, session: ConversationSession) -> None:
        session.last_activity = datetime.utcnow()
        try:
            self.store.update(session)
        except Exception:
            logger.exception("Failed to persist session for user %s", session.user_id)

    # --- Session queries ---

    def get_history(self, user_id: str) -> List[Message]:
        session = self.store.get(user_id)
        return list(session.history) if session else []

    def get_intelligent_suggestions(self, user_id: str) -> List[str]:
        """Starter ideas for new users, industry ideas for known ones."""
        session = self.store.get(user_id)
        if session is None:
            return list(STARTER_SUGGESTIONS)
        return list(INDUSTRY_SUGGESTIONS.get(session.industry, DEFAULT_SUGGESTIONS))

    def clear_conversation(self, user_id: str) -> bool:
        return self.store.delete(user_id)

    def get_conversation_stats(self, user_id: str) -> Optional[ConversationStats]:
        session = self.store.get(user_id)
        if session is None:
            return None

        history = session.history
        confidences = [
            m.metadata.confidence for m in history
            if m.metadata is not None and m.metadata.confidence is not None
        ]
        return ConversationStats(
            message_count=len(history),
            workflows_created=sum(
                1 for m in history if m.metadata is not None and m.metadata.workflow_generated
            ),
            last_activity=history[-1].timestamp if history else None,
            average_confidence=sum(confidences) / len(confidences) if confidences else 0.0,
        )
