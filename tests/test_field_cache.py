import os
import unittest
import uuid
from unittest.mock import patch

import redis

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

from inventory_catalog.core.config import settings
from inventory_catalog.services.field_cache import (
    InMemoryFieldLibraryCache,
    RedisFieldLibraryCache,
    build_field_library_cache,
)


class _Clock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class _FakeRedis:
    def __init__(self, fail_reads: bool = False, fail_deletes: bool = False):
        self.store = {}
        self.ttls = {}
        self.fail_reads = fail_reads
        self.fail_deletes = fail_deletes

    def get(self, key):
        if self.fail_reads:
            raise redis.ConnectionError("down")
        return self.store.get(key)

    def setex(self, key, ttl, value):
        self.store[key] = value
        self.ttls[key] = ttl

    def delete(self, key):
        if self.fail_deletes:
            raise redis.TimeoutError("slow")
        self.store.pop(key, None)


class InMemoryCacheTests(unittest.TestCase):
    def setUp(self):
        self.clock = _Clock()
        self.cache = InMemoryFieldLibraryCache(ttl_seconds=300, clock=self.clock)
        self.company_id = uuid.uuid4()

    def test_entries_expire_after_ttl(self):
        self.cache.set(self.company_id, [{"key": "garantia"}])
        self.clock.now += 299
        self.assertEqual(self.cache.get(self.company_id), [{"key": "garantia"}])
        self.clock.now += 1
        self.assertIsNone(self.cache.get(self.company_id))

    def test_invalidate_is_per_company(self):
        other = uuid.uuid4()
        self.cache.set(self.company_id, [{"key": "a"}])
        self.cache.set(other, [{"key": "b"}])
        self.cache.invalidate(self.company_id)
        self.assertIsNone(self.cache.get(self.company_id))
        self.assertEqual(self.cache.get(other), [{"key": "b"}])

    def test_returned_rows_are_copies(self):
        self.cache.set(self.company_id, [{"key": "a"}])
        rows = self.cache.get(self.company_id)
        rows[0]["key"] = "mutated"
        self.assertEqual(self.cache.get(self.company_id), [{"key": "a"}])


class RedisCacheTests(unittest.TestCase):
    def test_round_trip_uses_ttl_and_prefix(self):
        client = _FakeRedis()
        cache = RedisFieldLibraryCache(client, ttl_seconds=120)
        company_id = uuid.uuid4()
        cache.set(company_id, [{"key": "ncm"}])
        self.assertEqual(client.ttls[f"field_library:{company_id}"], 120)
        self.assertEqual(cache.get(company_id), [{"key": "ncm"}])
        cache.invalidate(company_id)
        self.assertIsNone(cache.get(company_id))

    def test_read_errors_are_a_cache_miss(self):
        cache = RedisFieldLibraryCache(_FakeRedis(fail_reads=True))
        self.assertIsNone(cache.get(uuid.uuid4()))

    def test_invalidate_errors_are_logged_not_raised(self):
        client = _FakeRedis(fail_deletes=True)
        cache = RedisFieldLibraryCache(client)
        company_id = uuid.uuid4()
        cache.set(company_id, [{"key": "ncm"}])
        with self.assertLogs("inventory_catalog.field_library", level="WARNING"):
            cache.invalidate(company_id)
        self.assertIn(f"field_library:{company_id}", client.store)


class BuildCacheTests(unittest.TestCase):
    def test_memory_backend_by_default(self):
        with patch.object(settings, "FIELD_LIBRARY_CACHE_BACKEND", "memory"):
            cache = build_field_library_cache()
        self.assertIsInstance(cache, InMemoryFieldLibraryCache)
        self.assertEqual(cache.ttl_seconds, settings.FIELD_LIBRARY_CACHE_TTL_SECONDS)

    def test_unreachable_redis_falls_back_to_memory(self):
        class _Unreachable:
            def ping(self):
                raise redis.ConnectionError("refused")

        with patch.object(settings, "FIELD_LIBRARY_CACHE_BACKEND", "redis"), patch.object(
            settings, "REDIS_URL", "redis://localhost:6390/0"
        ), patch("inventory_catalog.services.field_cache.redis.Redis.from_url", return_value=_Unreachable()):
            with self.assertLogs("inventory_catalog.field_library", level="WARNING"):
                cache = build_field_library_cache()
        self.assertIsInstance(cache, InMemoryFieldLibraryCache)
