"""
Handler strategies: one response strategy per parsed intent.

Each handler builds its prompt through the Prompt Composer, calls the LLM
through the gateway and shapes an AIResponse. Handlers never touch the
session store; the orchestrator owns history and persistence.
"""

import logging
from typing import Optional, Protocol

from pydantic import BaseModel

from autoflow_ai.llm.client import Completion, LLMGateway
from autoflow_ai.models.conversation import (
    AIResponse,
    ConversationSession,
    MessageRole,
    UserInputRequest,
)
from autoflow_ai.models.instruction import ParsedInstruction
from autoflow_ai.models.prompts import WorkflowPromptConfig
from autoflow_ai.models.workflow import GeneratedWorkflow, parse_generated_workflow
from autoflow_ai.prompts.composer import PromptComposer

logger = logging.getLogger(__name__)


CLARIFICATION_THRESHOLD = 0.7

COMPLEXITY_BY_PREFERENCE = {
    "beginner": "simple",
    "advanced": "advanced",
}

IMPROVEMENT_GOALS = [
    "melhorar performance",
    "reduzir erros",
    "adicionar automações",
]

CURRENT_WORKFLOW_PLACEHOLDER = "workflow atual"
GENERAL_HELP_REQUEST = "pedido de ajuda geral"


class HandlerOutcome(BaseModel):
    response: AIResponse
    completion: Optional[Completion] = None


class IntentHandler(Protocol):
    """Protocol for intent handlers: pluggable strategy."""

    async def handle(
        self, parsed: ParsedInstruction, session: ConversationSession
    ) -> HandlerOutcome: ...


def last_user_message(session: ConversationSession) -> str:
    for message in reversed(session.history):
        if message.role == MessageRole.USER:
            return message.content
    return ""


class _LLMHandler:
    def __init__(self, composer: PromptComposer, llm: LLMGateway):
        self.composer = composer
        self.llm = llm

    async def _complete(self, prompt: str, session: ConversationSession) -> Completion:
        return await self.llm.complete(prompt, session.history)


class WorkflowCreationHandler(_LLMHandler):
    """Generates a workflow from the parsed skeleton and asks for details when unsure."""

    @staticmethod
    def _usable_definition(text: str) -> Optional[GeneratedWorkflow]:
        definition = parse_generated_workflow(text)
        if definition is None:
            return None
        dangling = definition.dangling_edges()
        if dangling:
            logger.warning(
                "Discarding generated workflow %s: edges %s point at unknown nodes",
                definition.id, [e.id for e in dangling],
            )
            return None
        return definition

    async def handle(
        self, parsed: ParsedInstruction, session: ConversationSession
    ) -> HandlerOutcome:
        if parsed.workflow is None:
            return HandlerOutcome(response=AIResponse(
                message=(
                    "Entendi que você quer criar uma automação, mas preciso de mais detalhes. "
                    "Pode me explicar melhor o que deseja automatizar?"
                ),
                suggestions=parsed.suggestions,
                next_steps=[
                    "Descrever o processo que deseja automatizar",
                    "Especificar quando deve ser executado",
                ],
                confidence=0.3,
                requires_user_input=UserInputRequest(
                    type="additional_info",
                    prompt="Descreva detalhadamente o processo que gostaria de automatizar:",
                ),
            ))

        prompt = self.composer.build_workflow_prompt(WorkflowPromptConfig(
            user_prompt=parsed.workflow.description,
            industry=session.industry,
            complexity=COMPLEXITY_BY_PREFERENCE.get(session.preferences.complexity, "intermediate"),
            existing_integrations=session.available_integrations,
            organization_size=session.organization_size,
        ))
        completion = await self._complete(prompt, session)
        definition = None if completion.degraded else self._usable_definition(completion.text)

        if parsed.confidence < CLARIFICATION_THRESHOLD:
            return HandlerOutcome(completion=completion, response=AIResponse(
                message=(
                    f"{completion.text}\n\nPara criar um workflow mais preciso, "
                    "preciso de algumas informações adicionais:"
                ),
                suggestions=parsed.suggestions,
                next_steps=[
                    "Confirmar os detalhes do workflow",
                    "Especificar integrações necessárias",
                    "Definir condições e regras",
                ],
                confidence=parsed.confidence,
                workflow_generated=parsed,
                workflow_definition=definition,
                requires_user_input=UserInputRequest(
                    type="clarification",
                    prompt="Pode esclarecer estes pontos para eu criar o workflow perfeito?",
                    options=parsed.suggestions,
                ),
            ))

        return HandlerOutcome(completion=completion, response=AIResponse(
            message=(
                f"{completion.text}\n\nWorkflow criado com sucesso! "
                "Gostaria de testá-lo ou fazer algum ajuste?"
            ),
            suggestions=[
                "Testar o workflow",
                "Ajustar condições",
                "Adicionar mais ações",
                "Criar outro workflow",
            ],
            next_steps=["Testar e validar", "Implementar no sistema", "Monitorar execução"],
            confidence=parsed.confidence,
            workflow_generated=parsed,
            workflow_definition=definition,
        ))


class WorkflowModificationHandler(_LLMHandler):
    async def handle(
        self, parsed: ParsedInstruction, session: ConversationSession
    ) -> HandlerOutcome:
        prompt = self.composer.build_optimization_prompt(
            session.current_workflow or CURRENT_WORKFLOW_PLACEHOLDER,
            IMPROVEMENT_GOALS,
            industry=session.industry,
        )
        completion = await self._complete(prompt, session)
        return HandlerOutcome(completion=completion, response=AIResponse(
            message=completion.text,
            suggestions=["Aplicar modificações sugeridas", "Ver outras otimizações", "Testar mudanças"],
            next_steps=["Implementar melhorias", "Testar modificações", "Validar resultados"],
            confidence=0.8,
        ))


class QuestionHandler(_LLMHandler):
    async def handle(
        self, parsed: ParsedInstruction, session: ConversationSession
    ) -> HandlerOutcome:
        prompt = self.composer.build_question_prompt(
            last_user_message(session),
            industry=session.industry,
            organization_size=session.organization_size,
            integrations=session.available_integrations,
        )
        completion = await self._complete(prompt, session)
        return HandlerOutcome(completion=completion, response=AIResponse(
            message=completion.text,
            suggestions=["Criar automação relacionada", "Ver exemplos práticos", "Fazer outra pergunta"],
            next_steps=["Explorar automações relacionadas", "Implementar sugestões"],
            confidence=0.8,
        ))


class HelpHandler(_LLMHandler):
    async def handle(
        self, parsed: ParsedInstruction, session: ConversationSession
    ) -> HandlerOutcome:
        prompt = self.composer.build_troubleshooting_prompt(GENERAL_HELP_REQUEST, {
            "industry": session.industry,
            "organization_size": session.organization_size,
            "available_integrations": session.available_integrations,
        })
        completion = await self._complete(prompt, session)
        return HandlerOutcome(completion=completion, response=AIResponse(
            message=completion.text,
            suggestions=[
                "Ver tutoriais",
                "Exemplos de automações",
                "Falar com suporte",
                "Começar com template",
            ],
            next_steps=["Escolher por onde começar", "Seguir tutorial guiado", "Usar template pronto"],
            confidence=0.9,
        ))


class GenericConversationHandler(_LLMHandler):
    """Fallback for any intent without a registered handler."""

    async def handle(
        self, parsed: ParsedInstruction, session: ConversationSession
    ) -> HandlerOutcome:
        prompt = self.composer.build_conversation_prompt(
            last_user_message(session), industry=session.industry
        )
        completion = await self._complete(prompt, session)
        return HandlerOutcome(completion=completion, response=AIResponse(
            message=completion.text,
            suggestions=[
                "Criar minha primeira automação",
                "Ver templates disponíveis",
                "Integrar com WhatsApp",
                "Configurar PIX automático",
            ],
            next_steps=["Explorar possibilidades", "Começar com automação simples"],
            confidence=0.6,
        ))


class IntegrationSuggestionHandler(_LLMHandler):
    """Not bound to an intent; invoked explicitly for integration recommendations."""

    async def suggest(self, session: ConversationSession) -> HandlerOutcome:
        prompt = self.composer.build_integration_suggestion_prompt(
            session.industry, session.available_integrations
        )
        completion = await self._complete(prompt, session)
        return HandlerOutcome(completion=completion, response=AIResponse(
            message=completion.text,
            suggestions=["Configurar integração sugerida", "Ver casos de uso", "Comparar integrações"],
            next_steps=["Escolher uma integração", "Configurar credenciais", "Criar automação com a integração"],
            confidence=0.8,
        ))
