"""Tests for core data models."""

from datetime import datetime

import pytest
from pydantic import TypeAdapter, ValidationError

from autoflow_ai.models import (
    UNRESOLVED_MARKER,
    AIResponse,
    Entity,
    EntityType,
    FormSubmittedTrigger,
    GeneratePixAction,
    Intent,
    Message,
    MessageRole,
    ParsedInstruction,
    ScheduleTrigger,
    SendEmailAction,
    TriggerCandidate,
    Unresolved,
    WorkflowSkeleton,
    is_unresolved,
)
from autoflow_ai.models.workflow import parse_generated_workflow

from conftest import WORKFLOW_JSON


class TestEntity:
    def test_create_entity(self):
        entity = Entity(
            type=EntityType.INTEGRATION,
            value="whatsapp",
            original_text="WhatsApp",
            confidence=0.95,
        )
        assert entity.type == EntityType.INTEGRATION
        assert entity.value == "whatsapp"

    def test_confidence_bounds(self):
        with pytest.raises(ValidationError):
            Entity(type=EntityType.TIME, value="x", original_text="x", confidence=1.5)
        with pytest.raises(ValidationError):
            Entity(type=EntityType.TIME, value="x", original_text="x", confidence=-0.1)

    def test_entity_is_immutable(self):
        entity = Entity(type=EntityType.TIME, value="todo dia", original_text="todo dia", confidence=0.9)
        with pytest.raises(ValidationError):
            entity.value = "toda semana"


class TestCandidates:
    def test_unknown_fields_default_to_unresolved(self):
        action = SendEmailAction(confidence=0.9)
        assert is_unresolved(action.config.to)
        assert is_unresolved(action.config.subject)
        assert is_unresolved(action.config.template)

    def test_known_fields_are_resolved(self):
        action = GeneratePixAction(confidence=0.85)
        assert action.config.integration == "mercado_pago"
        assert not is_unresolved(action.config.integration)
        assert is_unresolved(action.config.amount)

    def test_unresolved_serializes_with_marker(self):
        data = FormSubmittedTrigger(confidence=0.8).model_dump()
        assert data["config"]["form_id"] == {"marker": UNRESOLVED_MARKER}

    def test_discriminated_union_by_type(self):
        adapter = TypeAdapter(TriggerCandidate)
        trigger = adapter.validate_python({
            "type": "schedule",
            "confidence": 0.8,
            "config": {"schedule": "todo dia", "cron": "0 9 * * *"},
        })
        assert isinstance(trigger, ScheduleTrigger)
        assert trigger.config.timezone == "America/Sao_Paulo"

    def test_unknown_candidate_type_rejected(self):
        with pytest.raises(ValidationError):
            TypeAdapter(TriggerCandidate).validate_python({"type": "telepathy", "confidence": 0.5})

    def test_unresolved_is_value_object(self):
        assert Unresolved() == Unresolved()


class TestParsedInstruction:
    def test_workflow_only_for_create(self):
        with pytest.raises(ValidationError):
            ParsedInstruction(
                intent=Intent.ASK_QUESTION,
                workflow=WorkflowSkeleton(name="x", description="y"),
                confidence=0.9,
            )

    def test_create_with_workflow(self):
        parsed = ParsedInstruction(
            intent=Intent.CREATE_WORKFLOW,
            workflow=WorkflowSkeleton(name="Automação WhatsApp", description="d"),
            confidence=0.5,
        )
        assert parsed.workflow.triggers == []

    def test_confidence_bounds(self):
        with pytest.raises(ValidationError):
            ParsedInstruction(intent=Intent.GET_HELP, confidence=1.2)


class TestConversationModels:
    def test_message_is_immutable(self):
        message = Message(
            id="msg_1",
            role=MessageRole.USER,
            content="Olá",
            timestamp=datetime.utcnow(),
        )
        with pytest.raises(ValidationError):
            message.content = "Tchau"

    def test_response_confidence_bounds(self):
        with pytest.raises(ValidationError):
            AIResponse(message="oi", confidence=2.0)


class TestGeneratedWorkflow:
    def test_parse_plain_json(self):
        workflow = parse_generated_workflow(WORKFLOW_JSON)
        assert workflow is not None
        assert workflow.node_ids() == ["node_1", "node_2"]
        assert workflow.estimated_roi.time_saved == "2 horas por semana"
        assert workflow.suggested_integrations == ["whatsapp_business"]
        assert workflow.dangling_edges() == []

    def test_parse_fenced_json(self):
        text = f"Aqui está o workflow:\n```json\n{WORKFLOW_JSON}\n```"
        assert parse_generated_workflow(text) is not None

    def test_serializes_camel_case(self):
        workflow = parse_generated_workflow(WORKFLOW_JSON)
        data = workflow.model_dump(by_alias=True)
        assert "estimatedROI" in data
        assert "suggestedIntegrations" in data

    def test_unparseable_text_returns_none(self):
        assert parse_generated_workflow("Não consigo gerar isso agora.") is None
        assert parse_generated_workflow("{ isto não é json }") is None
        assert parse_generated_workflow('{"id": "sem_nodes"}') is None

    def test_dangling_edges_found(self):
        workflow = parse_generated_workflow(WORKFLOW_JSON)
        broken = workflow.model_copy(update={"nodes": workflow.nodes[:1]})
        assert [e.id for e in broken.dangling_edges()] == ["edge_1"]
