from __future__ import annotations

from typing import List

from .prompts import PromptPlan, TemplatePlan
from .templates import DAMAGES_SECTION_TITLE, PLACEHOLDER

PREAMBLE_MARKERS = ("com certeza", "aqui está a petição", "claro!", "segue a petição")


def run_basic_qa(text: str, plan: PromptPlan | None = None) -> List[str]:
    """Post-generation checks on a drafted petition. Warnings only, never blocking."""
    warnings: List[str] = []

    if not text.strip():
        warnings.append("A petição gerada está vazia.")
        return warnings

    missing = text.count(PLACEHOLDER)
    if missing:
        warnings.append(f"{missing} informação(ões) não encontrada(s) nos documentos; revise os campos destacados.")

    if "*" in text:
        warnings.append("O texto contém asteriscos (formatação markdown); remova-os antes de protocolar.")

    if DAMAGES_SECTION_TITLE not in text.upper():
        warnings.append(f'A seção "{DAMAGES_SECTION_TITLE}" não foi encontrada.')

    head = text.lstrip()[:120].lower()
    if any(marker in head for marker in PREAMBLE_MARKERS):
        warnings.append("O texto começa com uma frase introdutória antes do endereçamento.")

    if isinstance(plan, TemplatePlan):
        for idx, span in enumerate(plan.locked_spans, start=1):
            if span.strip() and span.strip() not in text:
                warnings.append(f"O bloco protegido {idx} não foi reproduzido na íntegra.")

    return warnings
