"""Verse cache: one generated artifact per (date, slot, language) key.

Flow:
1. Read the key from PostgreSQL. Hit -> return the stored artifact as-is.
2. Miss -> serialize per key (asyncio lock in-process, Redis lock across workers)
3. Re-check the store (another caller may have finished meanwhile)
4. Call the content generator, then insert-if-absent and return the stored row

Nothing is kept in memory between calls: the store is the only source of
truth, so every worker and restart sees the same artifact. A generation
failure raises before any write, so no partial artifact is ever persisted.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol
import uuid

from redis.exceptions import RedisError

from livingword.services.catalog import Language, Slot, VerseKey
from livingword.services.generator import GeneratedVerse, get_content_generator
from livingword.services.repositories import SqlVerseRepository, VerseArtifact
from livingword.settings import get_settings
from livingword.stores.redis import acquire_lock, release_lock

logger = logging.getLogger("uvicorn.error")

PREFIX_VERSE_LOCK = "verse:"


class ContentGenerator(Protocol):
    async def generate(self, slot: Slot, language: Language, date: str) -> GeneratedVerse: ...


class VerseRepository(Protocol):
    async def get(self, key: VerseKey) -> VerseArtifact | None: ...

    async def create_if_absent(self, key: VerseKey, verse: GeneratedVerse) -> VerseArtifact: ...


class VerseCache:
    """Resolves verse keys against the store, generating on first use."""

    def __init__(
        self,
        verses: VerseRepository,
        generator: ContentGenerator,
        *,
        distributed_lock: bool = True,
        lock_ttl: int | None = None,
        lock_wait_attempts: int = 5,
        lock_wait_seconds: float = 1.0,
    ):
        self._verses = verses
        self._generator = generator
        self._distributed_lock = distributed_lock
        self._lock_ttl = lock_ttl or get_settings().verse_lock_ttl
        self._lock_wait_attempts = lock_wait_attempts
        self._lock_wait_seconds = lock_wait_seconds
        self._key_locks: dict[str, asyncio.Lock] = {}
        self._key_users: dict[str, int] = {}

    async def lookup(self, key: VerseKey) -> VerseArtifact | None:
        """Read-only lookup; never generates."""
        return await self._verses.get(key)

    async def resolve(self, key: VerseKey) -> VerseArtifact:
        """Return the artifact for `key`, generating and storing it on a miss.

        Raises:
            GenerationError: content provider failed (nothing written).
            StoreError: read or write against PostgreSQL failed.
        """
        cached = await self._verses.get(key)
        if cached is not None:
            logger.info(f"[verse_cache] HIT {key}")
            return cached

        name = str(key)
        lock = self._key_locks.setdefault(name, asyncio.Lock())
        self._key_users[name] = self._key_users.get(name, 0) + 1
        try:
            async with lock:
                return await self._resolve_locked(key)
        finally:
            # Drop the lock once no caller holds or awaits it.
            self._key_users[name] -= 1
            if not self._key_users[name]:
                del self._key_users[name]
                del self._key_locks[name]

    async def _resolve_locked(self, key: VerseKey) -> VerseArtifact:
        cached = await self._verses.get(key)
        if cached is not None:
            logger.info(f"[verse_cache] HIT {key} (after local wait)")
            return cached

        token = uuid.uuid4().hex
        got_lock = await self._try_acquire(key, token)
        try:
            if got_lock is False:
                stored = await self._wait_for_other_worker(key)
                if stored is not None:
                    return stored
                logger.warning(f"[verse_cache] Lock holder did not store {key} in time; generating")

            logger.info(f"[verse_cache] MISS {key}, generating")
            verse = await self._generator.generate(key.slot, key.language, key.date)
            return await self._verses.create_if_absent(key, verse)
        finally:
            if got_lock:
                await self._try_release(key, token)

    async def _try_acquire(self, key: VerseKey, token: str) -> bool | None:
        """Take the cross-worker lock. None means locking is unavailable."""
        if not self._distributed_lock:
            return None
        try:
            return await acquire_lock(f"{PREFIX_VERSE_LOCK}{key}", ttl=self._lock_ttl, token=token)
        except (RuntimeError, RedisError) as e:
            logger.debug(f"[verse_cache] Redis lock unavailable for {key}: {e}")
            return None

    async def _try_release(self, key: VerseKey, token: str) -> None:
        try:
            released = await release_lock(f"{PREFIX_VERSE_LOCK}{key}", token=token)
        except (RuntimeError, RedisError) as e:
            logger.warning(f"[verse_cache] Failed to release lock for {key}: {e}")
            return
        if not released:
            logger.warning(f"[verse_cache] Lock for {key} expired before generation finished")

    async def _wait_for_other_worker(self, key: VerseKey) -> VerseArtifact | None:
        for _ in range(self._lock_wait_attempts):
            await asyncio.sleep(self._lock_wait_seconds)
            stored = await self._verses.get(key)
            if stored is not None:
                logger.info(f"[verse_cache] {key} stored by another worker")
                return stored
        return None


_cache: VerseCache | None = None


def get_verse_cache() -> VerseCache:
    """Get verse cache singleton backed by PostgreSQL and Groq."""
    global _cache
    if _cache is None:
        _cache = VerseCache(SqlVerseRepository(), get_content_generator())
    return _cache
