"""
Client configuration — loaded from ``DOCSTORE_*`` environment variables
(or a ``.env`` file) with pydantic-settings.

Mapping-valued settings are read as JSON::

    DOCSTORE_COLLECTIONS='{"email_logs": "email_log"}'
    DOCSTORE_RELATIONSHIPS='{"matches": {"students": "student_id"}}'
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientSettings(BaseSettings):
    """Settings for :func:`docstore_query.client.create_client`."""

    model_config = SettingsConfigDict(
        env_prefix="DOCSTORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # MongoDB
    mongodb_url: str = "mongodb://localhost:27017"
    database: str = "docstore"
    server_selection_timeout_ms: int = 5000
    connect_timeout_ms: int = 10000

    # Logical collection name -> store collection id; unmapped names pass through.
    collections: dict[str, str] = Field(default_factory=dict)

    # {source collection: {related collection: foreign-key field}}
    relationships: dict[str, dict[str, str]] = Field(default_factory=dict)
    # Guess <singular>_id for relationships missing from the registry.
    relationship_convention_fallback: bool = True


@lru_cache
def get_settings() -> ClientSettings:
    return ClientSettings()
