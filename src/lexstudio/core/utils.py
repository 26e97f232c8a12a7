from __future__ import annotations

import logging
import os
import uuid
from datetime import datetime, timezone

import structlog


def utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


def configure_logging(json: bool = False, level: int = logging.INFO) -> None:
    renderer = structlog.processors.JSONRenderer() if json else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
    )


def env(key: str, default: str | None = None) -> str:
    val = os.environ.get(key, default)
    if val is None:
        raise RuntimeError(f"Missing environment variable {key}")
    return val


def file_extension(name: str) -> str:
    parts = name.lower().rsplit(".", 1)
    return f".{parts[1]}" if len(parts) == 2 else ""
