from __future__ import annotations

import os
from pathlib import Path
from typing import List

import orjson
import structlog
from pydantic import BaseModel, Field, ValidationError

from .errors import ConfigurationError
from .storage import FileStorage, KeyValueStorage
from .utils import env

logger = structlog.get_logger()

API_KEY_STORAGE_KEY = "gemini_api_key"
API_KEY_ENV = "GEMINI_API_KEY"
HOME_ENV = "LEXSTUDIO_HOME"
SETTINGS_FILE = "settings.json"


class FirmProfile(BaseModel):
    """Office data quoted in the petition preamble, e-filing block and signature."""

    office_line: str = (
        "Escritório Profissional sito à Rua Flávio Roberto Sabbadini, n° 62, Bairro São Vicente, "
        "Gravataí/RS, CEP 94155-450, Fone (51) 3012-5755"
    )
    email: str = "lucianomk@gmail.com"
    mobile_phones: List[str] = Field(default_factory=lambda: ["(51) 99917-9974", "(51) 99917-0026"])
    signatories: List[str] = Field(
        default_factory=lambda: [
            "ANDERSON FURTADO PEREIRA OAB/RS 52.035",
            "DIRCEU ROCHA JUNIOR OAB/RS 55.401",
            "LUCIANO MATHEUS KISSMANN OAB/RS 101.353",
            "PAULO RODRIGO CASTELI ROSSETO OAB/DF 27.839",
        ]
    )

    @property
    def phones_display(self) -> str:
        return " / ".join(self.mobile_phones)


class ApiKeyStore:
    """Persisted API key, the UI-entered key taking precedence over the environment."""

    def __init__(self, storage: KeyValueStorage) -> None:
        self.storage = storage

    def get(self) -> str | None:
        try:
            raw = self.storage.get_item(API_KEY_STORAGE_KEY)
        except OSError as exc:
            logger.error("api_key.read_failed", error=str(exc))
            raw = None
        if raw:
            try:
                stored = orjson.loads(raw)
            except orjson.JSONDecodeError:
                stored = raw
            if isinstance(stored, str) and stored.strip():
                return stored.strip()
        return os.environ.get(API_KEY_ENV) or None

    def set(self, key: str) -> None:
        key = key.strip()
        if not key:
            raise ConfigurationError("A chave de API não pode ser vazia.")
        self.storage.set_item(API_KEY_STORAGE_KEY, orjson.dumps(key).decode())
        logger.info("api_key.saved")

    def clear(self) -> None:
        self.storage.remove_item(API_KEY_STORAGE_KEY)
        logger.info("api_key.cleared")


def default_home() -> Path:
    return Path(env(HOME_ENV, str(Path.home() / ".lexstudio"))).expanduser()


class Settings(BaseModel):
    api_key: str | None = None
    text_model: str = "gemini-2.5-flash"
    reasoning_model: str = "gemini-2.5-pro"
    image_model: str = "gemini-2.5-flash-image"
    thinking_budget: int = 32768
    home: Path = Field(default_factory=default_home)
    save_reset_seconds: float = 3.0
    firm: FirmProfile = Field(default_factory=FirmProfile)

    @property
    def data_dir(self) -> Path:
        return self.home / "history"

    def storage(self) -> FileStorage:
        return FileStorage(self.data_dir)

    def key_store(self) -> ApiKeyStore:
        return ApiKeyStore(FileStorage(self.home))

    def require_api_key(self) -> str:
        if not self.api_key:
            raise ConfigurationError(
                f"Nenhuma chave de API configurada. Use `lexstudio api-key set` ou defina {API_KEY_ENV}."
            )
        return self.api_key

    @classmethod
    def load(cls, home: str | Path | None = None) -> "Settings":
        base = Path(home).expanduser() if home else default_home()
        data: dict = {}
        settings_path = base / SETTINGS_FILE
        if settings_path.exists():
            try:
                data = orjson.loads(settings_path.read_bytes())
            except orjson.JSONDecodeError as exc:
                raise ConfigurationError(
                    f"Arquivo de configuração inválido: {settings_path}", details={"error": str(exc)}
                ) from exc
        data["home"] = base
        try:
            settings = cls.model_validate(data)
        except ValidationError as exc:
            raise ConfigurationError(
                f"Arquivo de configuração inválido: {settings_path}", details={"error": str(exc)}
            ) from exc
        if not settings.api_key:
            settings.api_key = settings.key_store().get()
        logger.debug("settings.loaded", home=str(base), has_api_key=bool(settings.api_key))
        return settings
