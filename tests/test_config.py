from pathlib import Path

import orjson
import pytest

from lexstudio.core.config import API_KEY_ENV, ApiKeyStore, FirmProfile, Settings
from lexstudio.core.errors import ConfigurationError
from lexstudio.core.storage import FileStorage, MemoryStorage


def test_api_key_store_prefers_saved_key(monkeypatch):
    monkeypatch.setenv(API_KEY_ENV, "env-key")
    store = ApiKeyStore(MemoryStorage())
    assert store.get() == "env-key"
    store.set("  saved-key ")
    assert store.get() == "saved-key"
    store.clear()
    assert store.get() == "env-key"


def test_api_key_store_without_any_key(monkeypatch):
    monkeypatch.delenv(API_KEY_ENV, raising=False)
    store = ApiKeyStore(MemoryStorage())
    assert store.get() is None
    with pytest.raises(ConfigurationError):
        store.set("   ")


def test_settings_load_reads_file_and_key(tmp_path, monkeypatch):
    monkeypatch.delenv(API_KEY_ENV, raising=False)
    (tmp_path / "settings.json").write_bytes(
        orjson.dumps({"text_model": "gemini-x", "firm": {"email": "escritorio@exemplo.adv.br"}})
    )
    ApiKeyStore(FileStorage(tmp_path)).set("file-key")

    settings = Settings.load(tmp_path)

    assert settings.text_model == "gemini-x"
    assert settings.reasoning_model == "gemini-2.5-pro"
    assert settings.firm.email == "escritorio@exemplo.adv.br"
    assert settings.firm.signatories == FirmProfile().signatories
    assert settings.api_key == "file-key"
    assert settings.data_dir == tmp_path / "history"


def test_settings_invalid_file(tmp_path):
    (tmp_path / "settings.json").write_text("{quebrado", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        Settings.load(tmp_path)


def test_require_api_key(tmp_path, monkeypatch):
    monkeypatch.delenv(API_KEY_ENV, raising=False)
    settings = Settings.load(tmp_path)
    with pytest.raises(ConfigurationError):
        settings.require_api_key()


def test_firm_phones_display():
    firm = FirmProfile(mobile_phones=["(51) 1111-1111", "(51) 2222-2222"])
    assert firm.phones_display == "(51) 1111-1111 / (51) 2222-2222"


def test_file_storage_rejects_unsafe_keys(tmp_path):
    storage = FileStorage(tmp_path)
    storage.set_item("chave", "valor")
    assert storage.get_item("chave") == "valor"
    storage.remove_item("chave")
    assert storage.get_item("chave") is None
    storage.remove_item("chave")
    with pytest.raises(ValueError):
        storage.get_item("../fora")


def test_file_storage_removes_temp_file_when_replace_fails(tmp_path, monkeypatch):
    storage = FileStorage(tmp_path)
    storage.set_item("chave", "antigo")

    def failing_replace(self, target):
        raise OSError("dispositivo ocupado")

    monkeypatch.setattr(Path, "replace", failing_replace)
    with pytest.raises(OSError):
        storage.set_item("chave", "novo")
    monkeypatch.undo()

    assert not (tmp_path / "chave.json.tmp").exists()
    assert storage.get_item("chave") == "antigo"
