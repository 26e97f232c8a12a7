"""
Per-feature generation state: submit, regenerate and save-to-history.

A panel never raises from ``submit``/``regenerate``/``save``; failures are
recorded on the panel (``error`` / ``save_status``) for the caller to show.
"""
from __future__ import annotations

import time
from enum import Enum
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar

import structlog

from .core.errors import StudioError

logger = structlog.get_logger()

T = TypeVar("T")

UNEXPECTED_ERROR_MESSAGE = "Ocorreu um erro inesperado. Tente novamente."


class PanelStatus(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    FAILED = "failed"


class SaveStatus(str, Enum):
    IDLE = "idle"
    SAVING = "saving"
    SAVED = "saved"
    SAVE_FAILED = "save_failed"


def _message(exc: Exception) -> str:
    return str(exc) if isinstance(exc, StudioError) else UNEXPECTED_ERROR_MESSAGE


class GenerationPanel(Generic[T]):
    def __init__(
        self,
        name: str,
        reset_after: float = 3.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.name = name
        self.reset_after = reset_after
        self.clock = clock
        self.status = PanelStatus.IDLE
        self.result: Optional[T] = None
        self.error: Optional[str] = None
        self._save_status = SaveStatus.IDLE
        self._save_settled_at: Optional[float] = None

    @property
    def is_loading(self) -> bool:
        return self.status is PanelStatus.SUBMITTING

    @property
    def save_status(self) -> SaveStatus:
        if (
            self._save_status in (SaveStatus.SAVED, SaveStatus.SAVE_FAILED)
            and self._save_settled_at is not None
            and self.clock() - self._save_settled_at >= self.reset_after
        ):
            self._save_status = SaveStatus.IDLE
            self._save_settled_at = None
        return self._save_status

    async def _run(self, factory: Callable[[], Awaitable[T]], action: str) -> Optional[T]:
        self.status = PanelStatus.SUBMITTING
        self.error = None
        logger.info("panel.submitting", panel=self.name, action=action)
        try:
            result = await factory()
        except Exception as exc:
            if isinstance(exc, StudioError):
                logger.warning("panel.failed", panel=self.name, action=action, code=exc.code, error=str(exc))
            else:
                logger.exception("panel.failed", panel=self.name, action=action)
            self.status = PanelStatus.FAILED
            self.error = _message(exc)
            return None
        self.result = result
        self.status = PanelStatus.SUCCESS
        logger.info("panel.succeeded", panel=self.name, action=action)
        return result

    async def submit(self, factory: Callable[[], Awaitable[T]]) -> Optional[T]:
        """Fresh generation: the previous result is cleared before the call."""
        self.result = None
        self._save_status = SaveStatus.IDLE
        self._save_settled_at = None
        return await self._run(factory, "submit")

    async def regenerate(self, factory: Callable[[], Awaitable[T]]) -> Optional[T]:
        """The current result stays visible until the new one arrives; it is kept on failure."""
        return await self._run(factory, "regenerate")

    def save(self, saver: Callable[[T], Any]) -> SaveStatus:
        if self.result is None:
            logger.warning("panel.nothing_to_save", panel=self.name)
            return self.save_status
        self._save_status = SaveStatus.SAVING
        try:
            saver(self.result)
        except (StudioError, OSError) as exc:
            logger.error("panel.save_failed", panel=self.name, error=str(exc))
            self._save_status = SaveStatus.SAVE_FAILED
        else:
            logger.info("panel.saved", panel=self.name)
            self._save_status = SaveStatus.SAVED
        self._save_settled_at = self.clock()
        return self._save_status
