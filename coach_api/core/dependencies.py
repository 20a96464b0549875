"""
Process-wide store and attachment dependencies.

The store client is built once (on startup, or lazily on first use) and
shared by every request. Tests replace `get_store` through
`app.dependency_overrides`.
"""

from __future__ import annotations

import logging

from . import config
from .db import PostgresStore
from .files import AttachmentStore
from .memory_store import InMemoryStore
from .rest_store import PostgrestStore
from .store import NotConfiguredStore, Store, StoreError

logger = logging.getLogger(__name__)

_store: Store | None = None


async def build_store() -> Store:
    """
    Pick the store implementation from the environment.

    auto: DATABASE_URL wins, then SUPABASE_URL + key, otherwise not configured.
    """
    backend = config.store_backend()
    if backend == "memory":
        logger.warning("store_backend=memory data is not persisted")
        return InMemoryStore()

    dsn = config.database_url()
    if backend == "postgres" or (backend == "auto" and dsn):
        if not dsn:
            logger.error("store_not_configured backend=postgres reason=DATABASE_URL missing")
            return NotConfiguredStore()
        store = PostgresStore(dsn, command_timeout=config.store_timeout_s())
        try:
            await store.open()
        except StoreError as exc:
            logger.error("store_not_configured backend=postgres reason=%s", exc)
            return NotConfiguredStore()
        logger.info("store_ready backend=postgres")
        return store

    url = config.supabase_url()
    key = config.supabase_service_key()
    if not url or not key or not url.startswith(("http://", "https://")):
        logger.error("store_not_configured backend=%s url_set=%s key_set=%s", backend, bool(url), bool(key))
        return NotConfiguredStore()
    logger.info("store_ready backend=rest url=%s", url)
    return PostgrestStore(base_url=url, api_key=key, timeout_s=config.store_timeout_s())


async def init_store() -> Store:
    global _store
    if _store is None:
        _store = await build_store()
    return _store


async def close_store() -> None:
    global _store
    if _store is None:
        return None
    await _store.aclose()
    _store = None


async def get_store() -> Store:
    return await init_store()


def get_attachments() -> AttachmentStore:
    return AttachmentStore(config.uploads_dir())
