from __future__ import annotations

import json
import logging
import uuid
from threading import Lock
from time import monotonic
from typing import Callable, Protocol

import redis

from inventory_catalog.core.config import settings

_LOG = logging.getLogger("inventory_catalog.field_library")


class FieldLibraryCache(Protocol):
    ttl_seconds: int

    def get(self, company_id: uuid.UUID) -> list[dict] | None:
        ...

    def set(self, company_id: uuid.UUID, rows: list[dict]) -> None:
        ...

    def invalidate(self, company_id: uuid.UUID) -> None:
        ...


class InMemoryFieldLibraryCache:
    def __init__(self, ttl_seconds: int = 300, clock: Callable[[], float] = monotonic):
        self.ttl_seconds = max(int(ttl_seconds), 0)
        self._clock = clock
        self._data: dict[str, tuple[float, list[dict]]] = {}
        self._lock = Lock()

    def get(self, company_id: uuid.UUID) -> list[dict] | None:
        key = str(company_id)
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return None
            stored_at, rows = entry
            if self._clock() - stored_at >= self.ttl_seconds:
                del self._data[key]
                return None
            return [dict(row) for row in rows]

    def set(self, company_id: uuid.UUID, rows: list[dict]) -> None:
        with self._lock:
            self._data[str(company_id)] = (self._clock(), [dict(row) for row in rows])

    def invalidate(self, company_id: uuid.UUID) -> None:
        with self._lock:
            self._data.pop(str(company_id), None)


class RedisFieldLibraryCache:
    key_prefix = "field_library:"

    def __init__(self, client: redis.Redis, ttl_seconds: int = 300):
        self.client = client
        self.ttl_seconds = max(int(ttl_seconds), 1)

    def _key(self, company_id: uuid.UUID) -> str:
        return f"{self.key_prefix}{company_id}"

    def get(self, company_id: uuid.UUID) -> list[dict] | None:
        try:
            raw = self.client.get(self._key(company_id))
        except redis.RedisError:
            _LOG.warning("field library cache read failed company_id=%s", company_id, exc_info=True)
            return None
        if not raw:
            return None
        try:
            rows = json.loads(raw)
        except ValueError:
            return None
        return rows if isinstance(rows, list) else None

    def set(self, company_id: uuid.UUID, rows: list[dict]) -> None:
        try:
            self.client.setex(self._key(company_id), self.ttl_seconds, json.dumps(rows))
        except redis.RedisError:
            _LOG.warning("field library cache write failed company_id=%s", company_id, exc_info=True)

    def invalidate(self, company_id: uuid.UUID) -> None:
        try:
            self.client.delete(self._key(company_id))
        except redis.RedisError:
            # The cached copy expires with its TTL.
            _LOG.warning("field library cache invalidation failed company_id=%s", company_id, exc_info=True)


def build_field_library_cache() -> FieldLibraryCache:
    ttl = settings.FIELD_LIBRARY_CACHE_TTL_SECONDS
    backend = str(settings.FIELD_LIBRARY_CACHE_BACKEND or "memory").strip().lower()
    if backend != "redis" or not settings.REDIS_URL:
        return InMemoryFieldLibraryCache(ttl_seconds=ttl)
    try:
        client = redis.Redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_timeout=0.4,
            socket_connect_timeout=0.4,
        )
        client.ping()
        return RedisFieldLibraryCache(client, ttl_seconds=ttl)
    except Exception:
        _LOG.warning("Redis field library cache unavailable; fallback to in-memory cache")
        return InMemoryFieldLibraryCache(ttl_seconds=ttl)
