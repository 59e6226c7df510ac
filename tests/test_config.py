# test_config.py
import json
from pathlib import Path

from config import StorageBackend, get_settings


def _settings():
    get_settings.cache_clear()
    return get_settings()


def test_defaults_from_config(monkeypatch):
    monkeypatch.delenv("STORAGE_BACKEND", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)
    settings = _settings()
    data = json.loads(Path("config.json").read_text())
    assert settings.database_url == data["database_url"]
    assert settings.storage_backend == StorageBackend(data["storage_backend"])
    assert settings.retention_days == 30
    assert settings.cleanup_hour == 2


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("STORAGE_BACKEND", "memory")
    monkeypatch.setenv("ORDER_NUMBER_RETRIES", "5")
    monkeypatch.setenv("STRICT_TRANSITIONS", "true")
    settings = _settings()
    assert settings.storage_backend is StorageBackend.MEMORY
    assert settings.order_number_retries == 5
    assert settings.strict_transitions is True


def test_missing_key_uses_default(monkeypatch):
    monkeypatch.delenv("HOUSEKEEPING_ENABLED", raising=False)
    original = Path("config.json").read_text()
    monkeypatch.setattr(
        Path,
        "read_text",
        lambda self: json.dumps(
            {
                k: v
                for k, v in json.loads(original).items()
                if k != "popular_items_limit"
            }
        ),
    )
    settings = _settings()
    assert settings.popular_items_limit == 10


def teardown_function():
    get_settings.cache_clear()
