from __future__ import annotations

import asyncio
import base64
import re
from dataclasses import dataclass, field
from typing import Any, List, Protocol, Sequence, Tuple, Type, TypeVar

import orjson
import structlog
from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from pydantic import BaseModel, ValidationError

from .core.config import Settings
from .core.errors import (
    EmptyResponseError,
    GenerationBlockedError,
    NoCandidateError,
    NoContentError,
    NoImageError,
    ResponseParseError,
    ServiceError,
)

logger = structlog.get_logger()

M = TypeVar("M", bound=BaseModel)

STOP = "STOP"
_DATA_URI_RE = re.compile(r"^data:(?P<mime>[^;,]+);base64,(?P<data>.*)$", re.DOTALL)

# 1x1 transparent PNG, used by the static client.
PLACEHOLDER_PNG = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)


@dataclass(frozen=True)
class InlinePart:
    """Binary payload sent next to the prompt (PDF pages, reference images)."""

    mime_type: str
    data: bytes


class GenerationClient(Protocol):
    async def generate_structured_text(self, prompt: str, schema: Type[M]) -> M:
        ...

    async def generate_long_text(
        self, prompt: str, parts: Sequence[InlinePart] = (), reasoning: bool = True
    ) -> str:
        ...

    async def generate_image(self, prompt: str, parts: Sequence[InlinePart] = ()) -> str:
        ...


def to_data_uri(mime_type: str, data: bytes | str) -> str:
    encoded = data if isinstance(data, str) else base64.b64encode(data).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def decode_data_uri(uri: str) -> Tuple[str, bytes]:
    match = _DATA_URI_RE.match(uri)
    if not match:
        raise ValueError("not a base64 data URI")
    return match.group("mime"), base64.b64decode(match.group("data"))


def _first_candidate(response: Any) -> Any:
    candidates = getattr(response, "candidates", None) or []
    return candidates[0] if candidates else None


def finish_reason_name(response: Any) -> str | None:
    candidate = _first_candidate(response)
    reason = getattr(candidate, "finish_reason", None) if candidate is not None else None
    if reason is None:
        return None
    return getattr(reason, "name", None) or str(reason)


def _response_text(response: Any) -> str | None:
    try:
        return getattr(response, "text", None)
    except ValueError:
        return None


def parse_structured_text(text: str, schema: Type[M]) -> M:
    try:
        data = orjson.loads(text)
    except orjson.JSONDecodeError as exc:
        raise ResponseParseError(
            "Falha ao analisar o conteúdo gerado. A resposta da IA pode não ser um JSON válido.",
            details={"error": str(exc)},
        ) from exc
    try:
        return schema.model_validate(data)
    except ValidationError as exc:
        raise ResponseParseError(
            "Falha ao analisar o conteúdo gerado. A resposta da IA não corresponde ao formato esperado.",
            details={"errors": exc.errors(include_url=False, include_context=False)},
        ) from exc


def parse_structured_response(response: Any, schema: Type[M]) -> M:
    text = _response_text(response)
    if not text:
        reason = finish_reason_name(response)
        if reason and reason != STOP:
            raise GenerationBlockedError(
                reason, f"A geração de texto foi bloqueada. Motivo: {reason}. Tente reformular o tema."
            )
        raise EmptyResponseError()
    return parse_structured_text(text, schema)


def check_text_response(response: Any) -> str:
    reason = finish_reason_name(response)
    if reason and reason != STOP:
        raise GenerationBlockedError(reason)
    text = _response_text(response)
    if not text:
        raise EmptyResponseError("A resposta da IA estava vazia.")
    return text


def extract_image_data_uri(response: Any) -> str:
    candidate = _first_candidate(response)
    if candidate is None:
        raise NoCandidateError()

    reason = finish_reason_name(response)
    if reason and reason != STOP:
        raise GenerationBlockedError(
            reason,
            f"A geração de imagem foi bloqueada. Motivo: {reason}. Tente reformular o tema do post.",
        )

    content = getattr(candidate, "content", None)
    parts = getattr(content, "parts", None) if content is not None else None
    if not parts:
        raise NoContentError()

    for part in parts:
        inline = getattr(part, "inline_data", None)
        if inline is not None and inline.data:
            return to_data_uri(inline.mime_type or "image/png", inline.data)
    raise NoImageError()


class GeminiClient:
    """GenerationClient backed by google-genai's async API. No retries."""

    def __init__(self, settings: Settings, client: Any | None = None) -> None:
        self.settings = settings
        self._client = client or genai.Client(api_key=settings.require_api_key())

    @staticmethod
    def _contents(prompt: str, parts: Sequence[InlinePart]) -> List[types.Content]:
        payload = [types.Part.from_text(text=prompt)]
        payload.extend(types.Part.from_bytes(data=p.data, mime_type=p.mime_type) for p in parts)
        return [types.Content(role="user", parts=payload)]

    async def _generate(self, kind: str, model: str, contents: Any, config: types.GenerateContentConfig) -> Any:
        logger.info("llm.request", kind=kind, model=model)
        try:
            response = await self._client.aio.models.generate_content(
                model=model, contents=contents, config=config
            )
        except genai_errors.APIError as exc:
            logger.error("llm.api_error", kind=kind, model=model, status=exc.code, error=str(exc))
            raise ServiceError(
                f"Falha na chamada ao serviço de IA: {exc.message or exc}",
                status=exc.code,
                details={"model": model},
            ) from exc
        except Exception as exc:
            logger.error("llm.transport_error", kind=kind, model=model, error=repr(exc))
            raise ServiceError(
                f"Falha na comunicação com o serviço de IA: {exc or type(exc).__name__}",
                details={"model": model},
            ) from exc
        logger.info("llm.response", kind=kind, model=model, finish_reason=finish_reason_name(response))
        return response

    async def generate_structured_text(self, prompt: str, schema: Type[M]) -> M:
        response_schema = schema.gemini_schema() if hasattr(schema, "gemini_schema") else schema
        config = types.GenerateContentConfig(
            response_mime_type="application/json",
            response_schema=response_schema,
        )
        response = await self._generate("structured", self.settings.text_model, prompt, config)
        return parse_structured_response(response, schema)

    async def generate_long_text(
        self, prompt: str, parts: Sequence[InlinePart] = (), reasoning: bool = True
    ) -> str:
        config = types.GenerateContentConfig(
            thinking_config=types.ThinkingConfig(thinking_budget=self.settings.thinking_budget) if reasoning else None,
        )
        response = await self._generate(
            "long_text", self.settings.reasoning_model, self._contents(prompt, parts), config
        )
        return check_text_response(response)

    async def generate_image(self, prompt: str, parts: Sequence[InlinePart] = ()) -> str:
        config = types.GenerateContentConfig(response_modalities=["IMAGE"])
        response = await self._generate("image", self.settings.image_model, self._contents(prompt, parts), config)
        return extract_image_data_uri(response)


@dataclass
class StaticGenerationClient:
    """
    Deterministic client for demos and tests.

    ``images`` is consumed in call order; an exception entry is raised instead
    of returned. Once exhausted, ``image_uri`` is returned.
    """

    text: str = ""
    structured: str = "{}"
    images: List[Any] = field(default_factory=list)
    image_uri: str = field(default_factory=lambda: to_data_uri("image/png", PLACEHOLDER_PNG))
    calls: List[Tuple[str, str, int]] = field(default_factory=list)

    async def generate_structured_text(self, prompt: str, schema: Type[M]) -> M:
        self.calls.append(("structured", prompt, 0))
        await asyncio.sleep(0)
        return parse_structured_text(self.structured, schema)

    async def generate_long_text(
        self, prompt: str, parts: Sequence[InlinePart] = (), reasoning: bool = True
    ) -> str:
        self.calls.append(("long_text", prompt, len(parts)))
        await asyncio.sleep(0)
        if not self.text:
            raise EmptyResponseError("A resposta da IA estava vazia.")
        return self.text

    async def generate_image(self, prompt: str, parts: Sequence[InlinePart] = ()) -> str:
        self.calls.append(("image", prompt, len(parts)))
        item = self.images.pop(0) if self.images else self.image_uri
        await asyncio.sleep(0)
        if isinstance(item, BaseException):
            raise item
        return item
