# config.py

"""Application configuration utilities.

Values are primarily loaded from ``config.json`` and may be overridden by
environment variables. The :func:`get_settings` helper merges the two sources
and caches the result.
"""

from __future__ import annotations

import json
import os
from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageBackend(str, Enum):
    """Select where menus and orders are kept.

    ``SQL`` uses the relational store configured by ``database_url``;
    ``MEMORY`` keeps everything in process and is reset on restart.
    """

    SQL = "sql"
    MEMORY = "memory"


class Settings(BaseSettings):
    """Application settings merged from JSON and environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    database_url: str = "sqlite+aiosqlite:///./pos.db"
    storage_backend: StorageBackend = StorageBackend.SQL
    seed_menu: bool = True
    create_tables: bool = True
    admin_password: str = "admin123"
    secret_key: str = "change-me"
    admin_token_expire_minutes: int = 480
    strict_transitions: bool = False
    order_number_retries: int = 3
    retention_days: int = 30
    cleanup_hour: int = 2
    housekeeping_enabled: bool = True
    popular_items_window_days: int = 30
    popular_items_limit: int = 10


# Cached singleton to avoid repeated file reads
@lru_cache
def get_settings() -> Settings:
    """Return merged settings with environment variable precedence.

    The configuration is read from ``config.json`` located alongside this file
    and fed into :class:`Settings`. Environment variables override any values
    from the JSON file. The result is cached to prevent repeated disk reads.
    """

    config_path = Path(__file__).with_name("config.json")
    data = json.loads(config_path.read_text()) if config_path.exists() else {}
    env_override = {
        k.lower(): v
        for k, v in os.environ.items()
        if k.lower() in Settings.model_fields
    }
    merged = {**data, **env_override}
    return Settings(**merged)
