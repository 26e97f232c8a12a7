from lexstudio.core.config import FirmProfile
from lexstudio.extraction import TemplateDocument
from lexstudio.petitions.prompts import (
    SkeletonPlan,
    TemplatePlan,
    compose_petition_prompt,
    extract_locked_spans,
    plan_petition,
    strip_lock_markers,
)
from lexstudio.petitions.templates import DAMAGES_SECTION_TITLE, FORMATTING_DIRECTIVE, PLACEHOLDER

TEMPLATE_TEXT = (
    "EXCELENTÍSSIMO SENHOR DOUTOR JUIZ\n"
    "$$LOCKED START$$  DA JUSTIÇA GRATUITA\nTexto fixo.  $$LOCKED END$$\n"
    "DOS FATOS\n"
    "$$LOCKED START$$Nestes termos, pede deferimento.$$LOCKED END$$"
)


def test_locked_spans_are_verbatim_and_ordered():
    spans = extract_locked_spans(TEMPLATE_TEXT)
    assert spans == ["  DA JUSTIÇA GRATUITA\nTexto fixo.  ", "Nestes termos, pede deferimento."]


def test_strip_leaves_enclosed_text_and_is_idempotent():
    stripped = strip_lock_markers(TEMPLATE_TEXT)
    assert "$$LOCKED" not in stripped
    for span in extract_locked_spans(TEMPLATE_TEXT):
        assert span in stripped
    assert strip_lock_markers(stripped) == stripped


def test_no_markers_means_no_spans():
    assert extract_locked_spans("texto sem blocos") == []
    assert strip_lock_markers("texto sem blocos") == "texto sem blocos"


def test_plan_selection():
    assert isinstance(plan_petition(None), SkeletonPlan)
    assert isinstance(plan_petition(TemplateDocument(name="vazio.txt", text="   ")), SkeletonPlan)
    plan = plan_petition(TemplateDocument(name="modelo.txt", text=TEMPLATE_TEXT))
    assert isinstance(plan, TemplatePlan)
    assert len(plan.locked_spans) == 2
    assert "$$LOCKED" not in plan.body


def test_skeleton_prompt_has_all_sections_and_firm_data():
    firm = FirmProfile(
        office_line="Escritório Teste, Rua A, 1",
        email="contato@exemplo.adv.br",
        mobile_phones=["(11) 90000-0000"],
        signatories=["FULANA DE TAL OAB/SP 1.234"],
    )
    prompt = compose_petition_prompt(plan_petition(None, firm), "")
    assert "1. ENDEREÇAMENTO" in prompt
    assert "14. FECHAMENTO" in prompt
    assert f"10. {DAMAGES_SECTION_TITLE}" in prompt
    assert "Escritório Teste, Rua A, 1" in prompt
    assert "contato@exemplo.adv.br" in prompt
    assert "FULANA DE TAL OAB/SP 1.234" in prompt
    assert "lucianomk@gmail.com" not in prompt
    assert PLACEHOLDER in prompt


def test_template_prompt_lists_locked_blocks():
    plan = plan_petition(TemplateDocument(name="modelo.txt", text=TEMPLATE_TEXT))
    prompt = compose_petition_prompt(plan)
    assert "--- Bloco 1 ---\n  DA JUSTIÇA GRATUITA\nTexto fixo.  \n--- Fim do Bloco 1 ---" in prompt
    assert "--- Bloco 2 ---" in prompt
    assert "--- INÍCIO DO MODELO ---" in prompt
    assert "$$LOCKED" not in prompt
    assert DAMAGES_SECTION_TITLE in prompt
    assert PLACEHOLDER in prompt


def test_prompt_order_and_determinism():
    plan = plan_petition(None)
    extracted = "\n\n--- INÍCIO DO CONTEÚDO DO ARQUIVO: a.txt ---\nfatos\n--- FIM DO CONTEÚDO DO ARQUIVO: a.txt ---\n"
    prompt = compose_petition_prompt(plan, extracted)
    assert prompt.startswith(extracted)
    assert prompt.endswith(FORMATTING_DIRECTIVE)
    assert prompt == compose_petition_prompt(plan_petition(None), extracted)


def test_formatting_directive_forbids_markdown_emphasis():
    assert "Bookman Old Style" in FORMATTING_DIRECTIVE
    assert "MAIÚSCULAS" in FORMATTING_DIRECTIVE
    assert "asteriscos duplos" in FORMATTING_DIRECTIVE
