from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Sequence

import structlog
from pydantic import BaseModel, Field

from ..core.config import FirmProfile
from ..core.errors import GenerationError, InputValidationError, ServiceError, StudioError, UnsupportedFormatError
from ..extraction import (
    CaseDocument,
    DocumentExtractor,
    TextExtractor,
    extract_documents,
    load_template,
    render_extracted,
)
from ..llm import GenerationClient, InlinePart
from .prompts import PromptPlan, compose_petition_prompt, plan_petition
from .qa import run_basic_qa

logger = structlog.get_logger()

NO_DOCUMENTS_MESSAGE = "Por favor, anexe ao menos um documento do caso."


def default_petition_title(now: datetime | None = None) -> str:
    now = now or datetime.now()
    return f"Petição - {now:%d/%m/%Y %H:%M}"


def _map_service_error(exc: ServiceError) -> GenerationError | UnsupportedFormatError:
    detail = str(exc)
    if "Unsupported MIME type" in detail or exc.status == 400 or "400" in detail:
        return UnsupportedFormatError(
            "O tipo de arquivo de um dos documentos não é suportado. Por favor, tente converter para PDF ou TXT. "
            f"Detalhes: {detail}",
            details=exc.details,
        )
    return GenerationError(f"Ocorreu um erro ao processar os documentos. Detalhes: {detail}", details=exc.details)


@dataclass
class PreparedPetition:
    prompt: str
    parts: List[InlinePart]
    plan: PromptPlan


class PetitionDraft(BaseModel):
    text: str
    qa_warnings: List[str] = Field(default_factory=list)
    used_template: bool = False


@dataclass
class PetitionService:
    client: GenerationClient
    extractor: TextExtractor = field(default_factory=DocumentExtractor)
    firm: FirmProfile = field(default_factory=FirmProfile)

    def prepare(self, documents: Sequence[CaseDocument], template: CaseDocument | None = None) -> PreparedPetition:
        if not documents:
            raise InputValidationError(NO_DOCUMENTS_MESSAGE)
        template_doc = load_template(template, self.extractor) if template is not None else None
        extraction = extract_documents(documents, self.extractor)
        plan = plan_petition(template_doc, self.firm)
        prompt = compose_petition_prompt(plan, render_extracted(extraction.texts))
        return PreparedPetition(prompt=prompt, parts=extraction.native_parts, plan=plan)

    async def _generate(self, prepared: PreparedPetition) -> str:
        logger.info("petition.requested", native_parts=len(prepared.parts), plan=type(prepared.plan).__name__)
        try:
            text = await self.client.generate_long_text(prepared.prompt, parts=prepared.parts, reasoning=True)
        except ServiceError as exc:
            logger.error("petition.failed", status=exc.status, error=str(exc))
            raise _map_service_error(exc) from exc
        except StudioError:
            raise
        except Exception as exc:
            logger.error("petition.failed", error=repr(exc))
            raise _map_service_error(ServiceError(str(exc) or type(exc).__name__)) from exc
        logger.info("petition.generated", chars=len(text))
        return text

    async def draft(self, documents: Sequence[CaseDocument], template: CaseDocument | None = None) -> str:
        return await self._generate(self.prepare(documents, template))

    async def draft_reviewed(
        self, documents: Sequence[CaseDocument], template: CaseDocument | None = None
    ) -> PetitionDraft:
        prepared = self.prepare(documents, template)
        text = await self._generate(prepared)
        warnings = run_basic_qa(text, prepared.plan)
        if warnings:
            logger.warning("petition.qa_warnings", count=len(warnings))
        return PetitionDraft(text=text, qa_warnings=warnings, used_template=template is not None)
