"""Test configuration and fixtures.

IMPORTANT: We force ENVIRONMENT=testing BEFORE importing any library modules.
Otherwise the settings model would have already chosen .env instead of .env.test
at class definition time (model_config env_file decision), leading to mixed values.
"""

import copy
import json
import os
from typing import Any, Dict, List, Optional

# Ensure test environment flag is present before importing vectordata_core.* modules
os.environ.setdefault("ENVIRONMENT", "testing")

import pytest

from vectordata_core.core.config import get_settings
from vectordata_core.observability.metrics import reset_metrics
from vectordata_core.vectorstores.factory import clear_vector_store_cache


@pytest.fixture(autouse=True)
def _clear_caches():
    """Reset cached settings, vector store and metrics around every test."""
    get_settings.cache_clear()
    clear_vector_store_cache()
    reset_metrics()
    yield
    get_settings.cache_clear()
    clear_vector_store_cache()


def _encode_hash_value(value: Any) -> bytes:
    # Mirrors redis-py argument encoding
    if isinstance(value, bytes):
        return value
    if isinstance(value, float):
        return repr(value).encode("utf-8")
    if isinstance(value, int):
        return str(value).encode("utf-8")
    return str(value).encode("utf-8")


class FakeRedisJson:
    """In-memory stand-in for the RedisJSON command group of redis.asyncio."""

    def __init__(self, server: "FakeRedis"):
        self._server = server

    async def get(self, key: str, *paths: str):
        self._server.calls.append(("JSON.GET", key, paths))
        document = self._server.documents.get(key)
        if document is None:
            return None
        if not paths:
            return copy.deepcopy(document)

        results = {}
        for path in paths:
            field = path[2:]
            results[path] = [copy.deepcopy(document[field])] if field in document else []
        if len(paths) == 1:
            return results[paths[0]]
        return results

    async def mget(self, keys: List[str], path: str):
        self._server.calls.append(("JSON.MGET", tuple(keys), path))
        return [
            [copy.deepcopy(self._server.documents[key])]
            if key in self._server.documents
            else None
            for key in keys
        ]

    async def set(self, key: str, path: str, obj: Any):
        self._server.calls.append(("JSON.SET", key, path))
        self._server.documents[key] = json.loads(json.dumps(obj))
        return True

    async def mset(self, triplets):
        self._server.calls.append(("JSON.MSET", tuple(key for key, _, _ in triplets)))
        for key, _, obj in triplets:
            self._server.documents[key] = json.loads(json.dumps(obj))
        return True

    async def delete(self, key: str, path: str = "$"):
        self._server.calls.append(("JSON.DEL", key))
        return 1 if self._server.documents.pop(key, None) is not None else 0


class FakePipeline:
    """Buffers hash commands and runs them on execute()."""

    def __init__(self, server: "FakeRedis", transaction: bool):
        self._server = server
        self.transaction = transaction
        self._commands: List[Any] = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self._commands.clear()

    def exists(self, key: str):
        self._commands.append(lambda: self._server._exists(key))
        return self

    def hgetall(self, key: str):
        self._commands.append(lambda: dict(self._server.hashes.get(key, {})))
        return self

    def hmget(self, key: str, fields: List[str]):
        def run():
            entries = self._server.hashes.get(key, {})
            return [entries.get(field.encode("utf-8")) for field in fields]

        self._commands.append(run)
        return self

    def delete(self, *keys: str):
        self._commands.append(lambda: self._server._delete(keys))
        return self

    def hset(self, key: str, mapping: Dict[str, Any]):
        def run():
            entries = self._server.hashes.setdefault(key, {})
            for field, value in mapping.items():
                entries[field.encode("utf-8")] = _encode_hash_value(value)
            return len(mapping)

        self._commands.append(run)
        return self

    async def execute(self):
        self._server.calls.append(("PIPELINE", self.transaction, len(self._commands)))
        results = [command() for command in self._commands]
        self._commands.clear()
        return results


class FakeRedis:
    """Minimal async Redis double covering the commands used by the record stores."""

    def __init__(self):
        self.documents: Dict[str, Any] = {}
        self.hashes: Dict[str, Dict[bytes, bytes]] = {}
        self.calls: List[Any] = []

    def json(self) -> FakeRedisJson:
        return FakeRedisJson(self)

    def pipeline(self, transaction: bool = True) -> FakePipeline:
        return FakePipeline(self, transaction)

    def _exists(self, key: str) -> int:
        return int(key in self.documents or key in self.hashes)

    def _delete(self, keys) -> int:
        removed = 0
        for key in keys:
            if self.documents.pop(key, None) is not None:
                removed += 1
            if self.hashes.pop(key, None) is not None:
                removed += 1
        return removed

    async def exists(self, key: str) -> int:
        return self._exists(key)

    async def delete(self, *keys: str) -> int:
        self.calls.append(("DEL", keys))
        return self._delete(keys)

    def physical_keys(self) -> List[str]:
        return sorted(set(self.documents) | set(self.hashes))


@pytest.fixture
def fake_redis() -> FakeRedis:
    """Provide an empty in-memory Redis double."""
    return FakeRedis()


@pytest.fixture
def hotel_vector() -> Optional[List[float]]:
    return [0.1, 0.2, 0.3, 0.4]
