"""
Instruction Parser: pattern-based understanding of automation requests.

Converts one Brazilian Portuguese utterance into a ParsedInstruction:
  - Intent classification over an ordered keyword rule list
  - Entity extraction (time, integration, amount, contact)
  - Trigger / action / condition candidates with config skeletons
  - Confidence aggregation and suggestions for what is missing

Behavioral Contract:
- parse() never raises. Internal failures degrade to a low-confidence
  ask_question instruction with a "please rephrase" suggestion.
- A workflow skeleton is only built for create_workflow intents.
- Every confidence it emits lies in [0, 1].
"""

import logging
from typing import Callable, Dict, List, Optional, Tuple

from autoflow_ai.models.candidates import (
    DelayCondition,
    DelayConfig,
    EmailReceivedTrigger,
    FormSubmittedTrigger,
    GeneratePixAction,
    GeneratePixConfig,
    IfThenCondition,
    LoopCondition,
    ManualTrigger,
    SaveDataAction,
    ScheduleConfig,
    ScheduleTrigger,
    SendEmailAction,
    SendEmailConfig,
    SendNotificationAction,
    SendWhatsAppAction,
    WhatsAppReceivedTrigger,
)
from autoflow_ai.models.entities import Entity, EntityType
from autoflow_ai.models.instruction import (
    Intent,
    ParseDegraded,
    ParsedInstruction,
    ParseOutcome,
    ParserContext,
    ParseSuccess,
    WorkflowSkeleton,
)
from autoflow_ai.parser.schedule import derive_cron
from autoflow_ai.patterns import library

logger = logging.getLogger(__name__)


NON_CREATE_CONFIDENCE = 0.9
DEGRADED_CONFIDENCE = 0.1
NO_COMPONENTS_CONFIDENCE = 0.2
PARTIAL_COMPONENTS_CONFIDENCE = 0.5
DEFAULT_CONDITION_CONFIDENCE = 0.8
MAX_CONFIDENCE = 0.95


def _first(entities: List[Entity], entity_type: EntityType) -> Optional[Entity]:
    return next((e for e in entities if e.type == entity_type), None)


def _mean(values: List[float]) -> float:
    return sum(values) / len(values)


class InstructionParser:
    """
    Rule-based parser. Candidate builders are registered per type so the
    rule tables in the pattern library stay pure data.
    """

    def __init__(self, default_timezone: str = "America/Sao_Paulo"):
        self.default_timezone = default_timezone
        self._trigger_builders: Dict[str, Callable] = {}
        self._action_builders: Dict[str, Callable] = {}
        self._condition_builders: Dict[str, Callable] = {}
        self._register_default_builders()

    def _register_default_builders(self) -> None:
        self._trigger_builders = {
            "schedule": self._build_schedule_trigger,
            "whatsapp_received": lambda entities, c: WhatsAppReceivedTrigger(confidence=c),
            "email_received": lambda entities, c: EmailReceivedTrigger(confidence=c),
            "form_submitted": lambda entities, c: FormSubmittedTrigger(confidence=c),
        }
        self._action_builders = {
            "send_whatsapp": lambda entities, c: SendWhatsAppAction(confidence=c),
            "send_email": self._build_send_email_action,
            "generate_pix": self._build_generate_pix_action,
            "save_data": lambda entities, c: SaveDataAction(confidence=c),
            "send_notification": lambda entities, c: SendNotificationAction(confidence=c),
        }
        self._condition_builders = {
            "if_then": lambda entities, c: IfThenCondition(confidence=c),
            "delay": self._build_delay_condition,
            "loop": lambda entities, c: LoopCondition(confidence=c),
        }

    # --- Public API ---

    def parse(self, text: str, context: Optional[ParserContext] = None) -> ParsedInstruction:
        """Parse an utterance. Never raises."""
        outcome = self.analyze(text, context)
        if isinstance(outcome, ParseSuccess):
            return outcome.instruction
        return self.degraded_instruction()

    def analyze(self, text: str, context: Optional[ParserContext] = None) -> ParseOutcome:
        """Parse an utterance, reporting failure as ParseDegraded instead of raising."""
        context = context or ParserContext()
        try:
            return ParseSuccess(instruction=self._parse(text, context))
        except Exception as e:
            logger.exception("Failed to parse instruction (%d chars)", len(text or ""))
            return ParseDegraded(reason=f"{type(e).__name__}: {e}")

    @staticmethod
    def degraded_instruction() -> ParsedInstruction:
        return ParsedInstruction(
            intent=Intent.ASK_QUESTION,
            entities=[],
            confidence=DEGRADED_CONFIDENCE,
            suggestions=[library.UNDERSTANDING_FAILED_SUGGESTION],
        )

    def classify_intent(self, text: str) -> Intent:
        """
        First matching keyword group wins:
        create > modify > question > help > structural phrases > ask_question.
        """
        lowered = text.lower()
        for rule in library.INTENT_RULES:
            if rule.matches(lowered):
                return rule.intent

        if (
            library.any_match(library.TRIGGER_PHRASES, text)
            or library.any_match(library.ACTION_PHRASES, text)
        ):
            return Intent.CREATE_WORKFLOW

        return Intent.ASK_QUESTION

    def extract_entities(self, text: str) -> List[Entity]:
        """Run every entity family over the full text. Matches are not deduplicated."""
        entities: List[Entity] = []

        for pattern in library.TIME_PATTERNS:
            for match in pattern.finditer(text):
                entities.append(Entity(
                    type=EntityType.TIME,
                    value=match.group(0),
                    original_text=match.group(0),
                    confidence=library.ENTITY_CONFIDENCE[EntityType.TIME],
                ))

        for pattern in library.INTEGRATION_PATTERNS:
            for match in pattern.finditer(text):
                value = match.group(0).lower()
                entities.append(Entity(
                    type=EntityType.INTEGRATION,
                    value=library.INTEGRATION_ALIASES.get(value, value),
                    original_text=match.group(0),
                    confidence=library.ENTITY_CONFIDENCE[EntityType.INTEGRATION],
                ))

        for pattern in library.AMOUNT_PATTERNS:
            for match in pattern.finditer(text):
                entities.append(Entity(
                    type=EntityType.AMOUNT,
                    value=match.group(1),
                    original_text=match.group(0),
                    confidence=library.ENTITY_CONFIDENCE[EntityType.AMOUNT],
                ))

        for match in library.CONTACT_PATTERN.finditer(text):
            entities.append(Entity(
                type=EntityType.CONTACT,
                value=match.group(0),
                original_text=match.group(0),
                confidence=library.ENTITY_CONFIDENCE[EntityType.CONTACT],
            ))

        return entities

    # --- Pipeline ---

    def _parse(self, text: str, context: ParserContext) -> ParsedInstruction:
        intent = self.classify_intent(text)
        entities = self.extract_entities(text)

        if intent != Intent.CREATE_WORKFLOW:
            return ParsedInstruction(
                intent=intent,
                entities=entities,
                confidence=NON_CREATE_CONFIDENCE,
                suggestions=self._missing_component_suggestions(text),
            )

        triggers = self._identify(self._trigger_builders, library.TRIGGER_RULES, text, entities)
        if not triggers and library.GENERIC_VERB.search(text):
            triggers.append(ManualTrigger(confidence=library.MANUAL_TRIGGER_CONFIDENCE))
        actions = self._identify(self._action_builders, library.ACTION_RULES, text, entities)
        conditions = self._identify(
            self._condition_builders, library.CONDITION_RULES, text, entities
        )

        name, description = self._workflow_metadata(text)

        return ParsedInstruction(
            intent=Intent.CREATE_WORKFLOW,
            workflow=WorkflowSkeleton(
                name=name,
                description=description,
                triggers=triggers,
                actions=actions,
                conditions=conditions,
            ),
            entities=entities,
            confidence=self.aggregate_confidence(triggers, actions, conditions),
            suggestions=(
                self._missing_component_suggestions(text)
                + self._industry_suggestions(context)
            ),
        )

    @staticmethod
    def _identify(
        builders: Dict[str, Callable],
        rules: Tuple,
        text: str,
        entities: List[Entity],
    ) -> list:
        """Rules are independent: one text may yield several candidates."""
        return [
            builders[kind](entities, confidence)
            for kind, pattern, confidence in rules
            if pattern.search(text)
        ]

    @staticmethod
    def aggregate_confidence(triggers: list, actions: list, conditions: list) -> float:
        """
        Missing triggers or actions are penalized harder than low scores:
        neither -> 0.2, only one -> 0.5, both -> mean of the three averages
        (conditions default to 0.8), capped at 0.95.
        """
        if not triggers and not actions:
            return NO_COMPONENTS_CONFIDENCE
        if not triggers or not actions:
            return PARTIAL_COMPONENTS_CONFIDENCE

        trigger_avg = _mean([t.confidence for t in triggers])
        action_avg = _mean([a.confidence for a in actions])
        condition_avg = (
            _mean([c.confidence for c in conditions])
            if conditions else DEFAULT_CONDITION_CONFIDENCE
        )
        return min(MAX_CONFIDENCE, (trigger_avg + action_avg + condition_avg) / 3)

    @staticmethod
    def _workflow_metadata(text: str) -> Tuple[str, str]:
        name = next(
            (label for pattern, label in library.NAME_RULES if pattern.search(text)),
            library.DEFAULT_WORKFLOW_NAME,
        )
        first_sentence = text.split(".")[0].strip()
        return name, f"{library.DESCRIPTION_PREFIX}{first_sentence}"

    @staticmethod
    def _missing_component_suggestions(text: str) -> List[str]:
        suggestions = []
        if not library.any_match(library.TRIGGER_PHRASES, text):
            suggestions.append(library.MISSING_TRIGGER_SUGGESTION)
        if not library.any_match(library.ACTION_PHRASES, text):
            suggestions.append(library.MISSING_ACTION_SUGGESTION)
        if not library.any_match(library.INTEGRATION_PATTERNS, text):
            suggestions.append(library.MISSING_INTEGRATION_SUGGESTION)
        return suggestions

    @staticmethod
    def _industry_suggestions(context: ParserContext) -> List[str]:
        return list(library.INDUSTRY_OPTIMIZATION_SUGGESTIONS.get(context.industry, ()))

    # --- Candidate builders that read entities ---

    def _build_schedule_trigger(self, entities: List[Entity], confidence: float) -> ScheduleTrigger:
        time_entity = _first(entities, EntityType.TIME)
        return ScheduleTrigger(
            confidence=confidence,
            config=ScheduleConfig(
                schedule=time_entity.value if time_entity else "daily",
                cron=derive_cron(entities),
                timezone=self.default_timezone,
            ),
        )

    @staticmethod
    def _build_send_email_action(entities: List[Entity], confidence: float) -> SendEmailAction:
        contact = _first(entities, EntityType.CONTACT)
        config = SendEmailConfig(to=contact.value) if contact else SendEmailConfig()
        return SendEmailAction(confidence=confidence, config=config)

    @staticmethod
    def _build_generate_pix_action(entities: List[Entity], confidence: float) -> GeneratePixAction:
        amount = _first(entities, EntityType.AMOUNT)
        config = GeneratePixConfig(amount=amount.value) if amount else GeneratePixConfig()
        return GeneratePixAction(confidence=confidence, config=config)

    @staticmethod
    def _build_delay_condition(entities: List[Entity], confidence: float) -> DelayCondition:
        time_entity = _first(entities, EntityType.TIME)
        config = DelayConfig(duration=time_entity.value) if time_entity else DelayConfig()
        return DelayCondition(confidence=confidence, config=config)
