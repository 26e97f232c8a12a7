from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Union

from ..core.config import FirmProfile
from ..extraction import TemplateDocument
from .templates import (
    DAMAGES_SECTION_TITLE,
    DAMAGES_TOTAL_LABEL,
    FORMATTING_DIRECTIVE,
    LOCK_END,
    LOCK_START,
    PLACEHOLDER_RULE,
    ROLE_INTRO,
    SKELETON_SECTIONS,
    START_DIRECTIVE_SKELETON,
    START_DIRECTIVE_TEMPLATE,
)

LOCKED_SPAN_RE = re.compile(re.escape(LOCK_START) + r"(.*?)" + re.escape(LOCK_END), re.DOTALL)


def extract_locked_spans(text: str) -> List[str]:
    """Text between each marker pair, verbatim and in document order."""
    return [m.group(1) for m in LOCKED_SPAN_RE.finditer(text)]


def strip_lock_markers(text: str) -> str:
    return LOCKED_SPAN_RE.sub(lambda m: m.group(1), text)


@dataclass(frozen=True)
class TemplatePlan:
    body: str
    locked_spans: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class SkeletonPlan:
    firm: FirmProfile = field(default_factory=FirmProfile)


PromptPlan = Union[TemplatePlan, SkeletonPlan]


def plan_petition(template: TemplateDocument | None, firm: FirmProfile | None = None) -> PromptPlan:
    if template is not None and template.text.strip():
        return TemplatePlan(
            body=strip_lock_markers(template.text),
            locked_spans=extract_locked_spans(template.text),
        )
    return SkeletonPlan(firm=firm or FirmProfile())


def _locked_blocks(spans: List[str]) -> str:
    return "\n".join(
        f"--- Bloco {i} ---\n{span}\n--- Fim do Bloco {i} ---\n" for i, span in enumerate(spans, start=1)
    )


def _template_body(plan: TemplatePlan) -> str:
    parts = [
        f"{ROLE_INTRO} Sua tarefa é redigir uma Petição Inicial completa e formal.",
        START_DIRECTIVE_TEMPLATE,
        "INSTRUÇÃO CRÍTICA: Um modelo de petição foi fornecido. Você deve seguir a estrutura e o conteúdo "
        "deste modelo, preenchendo as informações que faltam com base nos documentos do caso e na entrevista.\n"
        + PLACEHOLDER_RULE,
        "INSTRUÇÃO ADICIONAL CRÍTICA: Antes da seção de pedidos ou do fechamento final da petição, você DEVE "
        f'adicionar uma nova seção intitulada "{DAMAGES_SECTION_TITLE}". Nesta seção, você deve detalhar, '
        "item por item, os valores estimados para cada verba pleiteada (ex: horas extras, aviso prévio, multa "
        f'do FGTS, etc.) e, ao final, apresentar a soma total em "{DAMAGES_TOTAL_LABEL}".',
    ]
    if plan.locked_spans:
        parts.append(
            "O modelo contém blocos de texto que DEVEM SER PRESERVADOS na íntegra, sem NENHUMA alteração, "
            "caractere por caractere. Eles já estão no lugar certo no texto do modelo, mas estão listados aqui "
            "para sua referência.\nBLOCOS DE TEXTO A SEREM PRESERVADOS:\n" + _locked_blocks(plan.locked_spans)
        )
    parts.append(
        "Abaixo está o modelo completo a ser seguido. Use-o como base para a petição final, combinando-o com "
        "as informações extraídas dos arquivos de caso.\n"
        f"--- INÍCIO DO MODELO ---\n{plan.body}\n--- FIM DO MODELO ---"
    )
    return "\n\n".join(parts)


def _skeleton_body(plan: SkeletonPlan) -> str:
    sections = "\n".join(
        f"{idx}. {section.title}: {section.instruction(plan.firm)}\n"
        for idx, section in enumerate(SKELETON_SECTIONS, start=1)
    )
    return "\n\n".join(
        [
            f"{ROLE_INTRO}\nSua tarefa é redigir uma Petição Inicial completa e formal a partir dos documentos do caso.",
            START_DIRECTIVE_SKELETON,
            "Analise o texto extraído de arquivos (se houver) e os arquivos PDF/Imagens anexados para obter o "
            "contexto completo.\n" + PLACEHOLDER_RULE,
            "Estruture a petição rigorosamente da seguinte forma:\n" + sections,
        ]
    )


def compose_petition_prompt(plan: PromptPlan, extracted_text: str = "") -> str:
    """Extracted file text, then the plan's instructions, then the formatting directive."""
    if isinstance(plan, TemplatePlan):
        body = _template_body(plan)
    elif isinstance(plan, SkeletonPlan):
        body = _skeleton_body(plan)
    else:
        raise TypeError(f"unknown prompt plan: {type(plan).__name__}")
    return f"{extracted_text}\n{body}\n{FORMATTING_DIRECTIVE}"
