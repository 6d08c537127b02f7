"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

import logging

from portfolio.auth import AuthClient, InMemoryAuthClient, SupabaseAuthClient
from portfolio.config import get_settings
from portfolio.db import DbClient, InMemoryDbClient, PostgresDbClient
from portfolio.storage import InMemoryStorageClient, StorageClient, SupabaseStorageClient

logger = logging.getLogger(__name__)

_db_client: DbClient | None = None
_storage_client: StorageClient | None = None
_auth_client: AuthClient | None = None


def get_db_client() -> DbClient:
    """
    Return a singleton DB client so in-memory state persists across requests.
    """
    global _db_client
    if _db_client:
        return _db_client

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.database_url:
        logger.info("Using in-memory database client")
        _db_client = InMemoryDbClient()
    else:
        _db_client = PostgresDbClient(settings.database_url)
    return _db_client


def get_storage_client() -> StorageClient:
    global _storage_client
    if _storage_client:
        return _storage_client

    settings = get_settings()
    if (
        settings.use_in_memory_backends
        or not settings.supabase_url
        or not settings.storage_access_key_id
    ):
        _storage_client = InMemoryStorageClient(
            base_url=settings.public_base_url or "https://example.test"
        )
    else:
        _storage_client = SupabaseStorageClient(
            base_url=settings.public_base_url,
            region=settings.storage_region,
            access_key_id=settings.storage_access_key_id or "",
            secret_access_key=settings.storage_secret_access_key or "",
        )
    return _storage_client


def get_auth_client() -> AuthClient:
    global _auth_client
    if _auth_client:
        return _auth_client

    settings = get_settings()
    if settings.use_in_memory_backends or not (
        settings.supabase_url and settings.supabase_anon_key
    ):
        _auth_client = InMemoryAuthClient()
    else:
        _auth_client = SupabaseAuthClient(
            settings.public_base_url, settings.supabase_anon_key or ""
        )
    return _auth_client


def reset_clients() -> None:
    """Drop cached clients so the next call rebuilds them from settings."""
    global _db_client, _storage_client, _auth_client
    _db_client = None
    _storage_client = None
    _auth_client = None
