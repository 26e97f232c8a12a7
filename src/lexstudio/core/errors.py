"""
Error taxonomy shared by extraction, generation and storage.

Messages are user-facing (pt-BR) and are shown as-is by the CLI/panels.
Nothing here is ever retried.
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class StudioError(Exception):
    def __init__(self, message: str, code: str = "UNKNOWN_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": str(self), "details": self.details}


class ConfigurationError(StudioError):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="CONFIGURATION_ERROR", details=details)


class InputValidationError(StudioError):
    """Rejected locally, before any call to the generation service."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="INPUT_VALIDATION_ERROR", details=details)


class UnsupportedFormatError(StudioError):
    """Permanent: legacy or unrecognised formats."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="UNSUPPORTED_FORMAT", details=details)


class ExtractionError(StudioError):
    def __init__(self, file_name: str, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="EXTRACTION_ERROR", details={"file": file_name, **(details or {})})
        self.file_name = file_name


class GenerationError(StudioError):
    def __init__(self, message: str, code: str = "GENERATION_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code=code, details=details)


class ServiceError(GenerationError):
    """The generation service itself rejected or failed the call."""

    def __init__(self, message: str, status: int | None = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="SERVICE_ERROR", details={"status": status, **(details or {})})
        self.status = status


class GenerationBlockedError(GenerationError):
    def __init__(self, reason: str, message: str | None = None):
        super().__init__(
            message or f"A geração foi bloqueada. Motivo: {reason}.",
            code="GENERATION_BLOCKED",
            details={"finish_reason": reason},
        )
        self.reason = reason


class EmptyResponseError(GenerationError):
    def __init__(self, message: str = "A resposta de texto da IA estava vazia."):
        super().__init__(message, code="EMPTY_RESPONSE")


class ResponseParseError(GenerationError):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="RESPONSE_PARSE_ERROR", details=details)


class NoCandidateError(GenerationError):
    def __init__(self, message: str = "A API não retornou candidatos para a geração de imagem."):
        super().__init__(message, code="NO_CANDIDATE")


class NoContentError(GenerationError):
    def __init__(self, message: str = "A resposta da IA não continha o conteúdo esperado para a imagem."):
        super().__init__(message, code="NO_CONTENT")


class NoImageError(GenerationError):
    def __init__(self, message: str = "Nenhuma imagem encontrada na resposta da geração do post."):
        super().__init__(message, code="NO_IMAGE")


class StorageError(StudioError):
    def __init__(self, key: str, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="STORAGE_ERROR", details={"key": key, **(details or {})})
        self.key = key
