"""Tests for the Prompt Composer and its registries."""

import json

import pytest

from autoflow_ai.models import PromptTemplate, WorkflowPromptConfig
from autoflow_ai.prompts import registry
from autoflow_ai.prompts.composer import (
    COMPLEXITY_GUIDANCE,
    COMPLEXITY_HEADER,
    CONTEXT_HEADER,
    INTEGRATIONS_HEADER,
    JSON_ONLY_INSTRUCTION,
    NO_INTEGRATIONS,
    OUTPUT_FORMAT_HEADER,
    USER_PROMPT_HEADER,
    PromptComposer,
    TemplateNotFoundError,
)


@pytest.fixture
def composer():
    return PromptComposer()


class TestWorkflowPrompt:
    def test_sections_in_order(self, composer):
        prompt = composer.build_workflow_prompt(WorkflowPromptConfig(
            user_prompt="Enviar lembrete de consulta pelo WhatsApp",
            industry="servicos",
            complexity="intermediate",
            existing_integrations=["whatsapp_business"],
        ))
        template = registry.DEFAULT_TEMPLATES[registry.WORKFLOW_GENERATION].template

        positions = [
            prompt.index(template),
            prompt.index(CONTEXT_HEADER),
            prompt.index(INTEGRATIONS_HEADER),
            prompt.index(COMPLEXITY_HEADER),
            prompt.index(USER_PROMPT_HEADER),
            prompt.index(OUTPUT_FORMAT_HEADER),
        ]
        assert positions == sorted(positions)
        assert prompt.rstrip().endswith(JSON_ONLY_INSTRUCTION)

    def test_industry_context(self, composer):
        prompt = composer.build_workflow_prompt(WorkflowPromptConfig(
            user_prompt="Recuperar carrinhos abandonados", industry="ecommerce",
        ))
        assert "Setor: E-commerce" in prompt
        assert "Abandono de carrinho" in prompt
        assert "checkout: finalização de compra" in prompt

    def test_unknown_industry_uses_generic_section(self, composer):
        prompt = composer.build_workflow_prompt(WorkflowPromptConfig(
            user_prompt="Automatizar relatórios", industry="mineracao",
        ))
        assert "Negócio genérico" in prompt
        assert CONTEXT_HEADER in prompt

    def test_all_sections_present_with_defaults(self, composer):
        prompt = composer.build_workflow_prompt(WorkflowPromptConfig(user_prompt=""))
        for header in (CONTEXT_HEADER, INTEGRATIONS_HEADER, COMPLEXITY_HEADER,
                       USER_PROMPT_HEADER, OUTPUT_FORMAT_HEADER):
            assert header in prompt
        assert NO_INTEGRATIONS in prompt
        assert COMPLEXITY_GUIDANCE["simple"] in prompt

    def test_complexity_guidance(self, composer):
        prompt = composer.build_workflow_prompt(WorkflowPromptConfig(
            user_prompt="x", complexity="advanced",
        ))
        assert COMPLEXITY_GUIDANCE["advanced"] in prompt
        assert COMPLEXITY_GUIDANCE["simple"] not in prompt

    def test_unconfigured_integrations_ranked_first(self, composer):
        prompt = composer.build_workflow_prompt(WorkflowPromptConfig(
            user_prompt="x", existing_integrations=["whatsapp_business", "pix_mercado_pago"],
        ))
        assert prompt.index("RD Station/Pipedrive/HubSpot") < prompt.index("WhatsApp Business API")
        assert "WhatsApp Business API (comunicação) [já configurada]" in prompt
        assert "VTEX/Shopify (E-commerce) [não configurada]" in prompt

    def test_output_format_is_valid_json_example(self, composer):
        section = composer.workflow_output_format()
        start, end = section.index("{"), section.rindex("}")
        example = json.loads(section[start:end + 1])
        assert {"nodes", "edges", "estimatedROI", "suggestedIntegrations", "tags"} <= set(example)

    def test_deterministic(self, composer):
        config = WorkflowPromptConfig(user_prompt="Cobrar via PIX", industry="educacao")
        assert composer.build_workflow_prompt(config) == composer.build_workflow_prompt(config)


class TestOtherBuilders:
    def test_optimization_prompt(self, composer):
        prompt = composer.build_optimization_prompt(
            {"id": "wf_1", "nodes": []}, ["reduzir erros"], industry="servicos",
        )
        assert prompt.startswith(registry.DEFAULT_TEMPLATES[registry.WORKFLOW_OPTIMIZATION].template)
        assert '"id": "wf_1"' in prompt
        assert "- reduzir erros" in prompt
        assert "Setor: Serviços" in prompt

    def test_optimization_default_goals(self, composer):
        prompt = composer.build_optimization_prompt("workflow atual")
        assert "melhorar a eficiência geral do workflow" in prompt
        assert "Negócio genérico" in prompt

    def test_troubleshooting_prompt(self, composer):
        prompt = composer.build_troubleshooting_prompt(
            "Webhook retornou 401", {"industry": "ecommerce", "workflow_id": "wf_9"},
        )
        assert "Webhook retornou 401" in prompt
        assert '"workflow_id": "wf_9"' in prompt
        assert "Setor: E-commerce" in prompt

    def test_integration_suggestion_prompt(self, composer):
        prompt = composer.build_integration_suggestion_prompt("servicos", ["email"])
        assert "TIPO DE NEGÓCIO: servicos" in prompt
        assert "INTEGRAÇÕES ATUAIS: email" in prompt
        assert "Google Calendar" in prompt

    def test_integration_suggestion_without_integrations(self, composer):
        prompt = composer.build_integration_suggestion_prompt("padaria")
        assert f"INTEGRAÇÕES ATUAIS: {NO_INTEGRATIONS}" in prompt
        assert "nenhuma específica" in prompt

    def test_question_prompt(self, composer):
        prompt = composer.build_question_prompt(
            "Como funciona o PIX?", industry="geral", organization_size="micro",
            integrations=["pix_mercado_pago"],
        )
        assert 'PERGUNTA: "Como funciona o PIX?"' in prompt
        assert "Tamanho da organização: micro" in prompt
        assert "pix_mercado_pago" in prompt

    def test_conversation_prompt(self, composer):
        prompt = composer.build_conversation_prompt("Olá!")
        assert 'O usuário disse: "Olá!"' in prompt
        assert CONTEXT_HEADER in prompt


class TestRegistries:
    def test_default_templates_present(self, composer):
        for template_id in PromptComposer.REQUIRED_TEMPLATES:
            assert composer.get_template(template_id).id == template_id

    def test_missing_template_fails_at_construction(self):
        templates = {
            k: v for k, v in registry.DEFAULT_TEMPLATES.items()
            if k != registry.WORKFLOW_GENERATION
        }
        with pytest.raises(TemplateNotFoundError) as exc_info:
            PromptComposer(templates=templates)
        assert exc_info.value.template_id == registry.WORKFLOW_GENERATION

    def test_missing_template_fails_at_build(self):
        composer = PromptComposer(templates={}, required=())
        with pytest.raises(TemplateNotFoundError):
            composer.build_workflow_prompt(WorkflowPromptConfig(user_prompt="x"))
        with pytest.raises(TemplateNotFoundError):
            composer.build_question_prompt("x")

    def test_custom_template(self):
        templates = dict(registry.DEFAULT_TEMPLATES)
        templates[registry.GENERAL_CONVERSATION] = PromptTemplate(
            id=registry.GENERAL_CONVERSATION,
            name="Conversa",
            category="conversation",
            template="Você é um atendente cordial.",
        )
        prompt = PromptComposer(templates=templates).build_conversation_prompt("Oi")
        assert prompt.startswith("Você é um atendente cordial.")

    def test_registries_are_read_only(self):
        with pytest.raises(TypeError):
            registry.DEFAULT_TEMPLATES["novo"] = None
        with pytest.raises(TypeError):
            registry.DEFAULT_INDUSTRY_PROFILES["novo"] = None

    def test_known_profiles(self, composer):
        assert composer.get_industry_profile("ecommerce").industry == "E-commerce"
        assert composer.get_industry_profile("desconhecida") is None
        assert composer.get_industry_profile(None) is None
