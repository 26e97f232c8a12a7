from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

import structlog

from .core.errors import InputValidationError
from .llm import GenerationClient

logger = structlog.get_logger()

EMPTY_QUERY_MESSAGE = "Por favor, digite uma consulta complexa."


def default_query_title(now: datetime | None = None) -> str:
    now = now or datetime.now()
    return f"Consulta - {now:%d/%m/%Y}"


@dataclass
class QueryService:
    """Free-form legal questions answered by the reasoning model."""

    client: GenerationClient

    async def ask(self, prompt: str) -> str:
        if not prompt.strip():
            raise InputValidationError(EMPTY_QUERY_MESSAGE)
        logger.info("query.requested", chars=len(prompt))
        answer = await self.client.generate_long_text(prompt, reasoning=True)
        logger.info("query.answered", chars=len(answer))
        return answer
