"""
Redis record collections

Records of a collection live under Redis keys that are optionally prefixed
with ``"<collection>:"`` so that the collection's RediSearch index covers them.
The prefix is added before every Redis call and never returned to callers.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from vectordata_core.core.exceptions import RecordMappingError
from vectordata_core.schema.definition import RecordSchema
from vectordata_core.schema.validation import SCALAR_DATA_TYPES, validate_data_types

from ..base import BaseRecordCollection, RecordMapper
from .collection import DB_SYSTEM, RedisCollectionManager, RedisStorageType
from .hashset_mapper import RedisHashSetRecordMapper
from .json_mapper import RedisJsonRecordMapper


@dataclass
class RedisJsonRecordCollectionOptions:
    """Options for ``RedisJsonRecordCollection``."""

    prefix_collection_name_to_key_names: bool = False
    mapper: Optional[RecordMapper] = None


@dataclass
class RedisHashSetRecordCollectionOptions:
    """Options for ``RedisHashSetRecordCollection``."""

    prefix_collection_name_to_key_names: bool = False
    mapper: Optional[RecordMapper] = None


class _RedisRecordCollection(BaseRecordCollection):
    db_system = DB_SYSTEM
    supported_key_types = (str,)
    transport_errors = (RedisError, OSError)

    def __init__(
        self,
        client: aioredis.Redis,
        collection_name: str,
        record_type: type,
        storage_type: RedisStorageType,
        prefix_collection_name_to_key_names: bool,
        definition: Optional[RecordSchema] = None,
    ):
        super().__init__(
            collection_name,
            record_type,
            RedisCollectionManager(client, storage_type),
            definition,
        )
        self._client = client
        self._prefix_keys = prefix_collection_name_to_key_names

    def _storage_key(self, key: str) -> str:
        if self._prefix_keys:
            return f"{self._collection_name}:{key}"
        return key


class RedisJsonRecordCollection(_RedisRecordCollection):
    """Record collection storing each record as a RedisJSON document."""

    def __init__(
        self,
        client: aioredis.Redis,
        collection_name: str,
        record_type: type,
        options: Optional[RedisJsonRecordCollectionOptions] = None,
        definition: Optional[RecordSchema] = None,
    ):
        options = options or RedisJsonRecordCollectionOptions()
        super().__init__(
            client,
            collection_name,
            record_type,
            RedisStorageType.JSON,
            options.prefix_collection_name_to_key_names,
            definition,
        )
        self._mapper = options.mapper or RedisJsonRecordMapper(record_type, self._schema)
        self._data_paths = [f"$.{p.storage_name}" for p in self._schema.data_properties]

    @staticmethod
    def _unwrap_document(key: str, document: Any) -> Optional[Any]:
        # JSONPath queries return a list of matches for the root path
        if isinstance(document, list):
            if not document:
                return None
            if len(document) != 1:
                raise RecordMappingError(
                    f"Invalid data format for document with key '{key}'"
                )
            return document[0]
        return document

    def _unwrap_projection(self, key: str, result: Any) -> Optional[Dict[str, Any]]:
        if result is None:
            return None
        if len(self._data_paths) == 1:
            result = {self._data_paths[0]: result}
        if not isinstance(result, dict):
            raise RecordMappingError(f"Invalid data format for document with key '{key}'")

        document: Dict[str, Any] = {}
        for path, matches in result.items():
            if matches:
                document[path[2:]] = matches[0]
        return document

    async def _fetch_one(self, key: str, include_vectors: bool) -> Optional[Any]:
        storage_key = self._storage_key(key)
        if include_vectors or not self._data_paths:
            document = await self._client.json().get(storage_key)
            return self._unwrap_document(key, document)

        # Project only data properties so vectors are not transferred
        result = await self._client.json().get(storage_key, *self._data_paths)
        if result is None:
            return None
        document = self._unwrap_projection(key, result)
        if document is None:
            return None
        if not document and not await self._client.exists(storage_key):
            return None
        return document

    async def _fetch(self, keys: List[str], include_vectors: bool) -> List[Optional[Any]]:
        if len(keys) == 1:
            return [await self._fetch_one(keys[0], include_vectors)]

        storage_keys = [self._storage_key(key) for key in keys]
        documents = await self._client.json().mget(storage_keys, "$")
        return [
            self._unwrap_document(key, document)
            for key, document in zip(keys, documents)
        ]

    async def _store(self, items: List[Tuple[str, Any]]) -> None:
        if len(items) == 1:
            key, document = items[0]
            await self._client.json().set(self._storage_key(key), "$", document)
            return

        await self._client.json().mset(
            [(self._storage_key(key), "$", document) for key, document in items]
        )

    async def _remove(self, keys: List[str]) -> None:
        if len(keys) == 1:
            await self._client.json().delete(self._storage_key(keys[0]))
            return

        await self._client.delete(*[self._storage_key(key) for key in keys])


class RedisHashSetRecordCollection(_RedisRecordCollection):
    """Record collection storing each record as a Redis hash."""

    def __init__(
        self,
        client: aioredis.Redis,
        collection_name: str,
        record_type: type,
        options: Optional[RedisHashSetRecordCollectionOptions] = None,
        definition: Optional[RecordSchema] = None,
    ):
        options = options or RedisHashSetRecordCollectionOptions()
        super().__init__(
            client,
            collection_name,
            record_type,
            RedisStorageType.HASH_SET,
            options.prefix_collection_name_to_key_names,
            definition,
        )
        self._mapper = options.mapper or RedisHashSetRecordMapper(
            record_type, self._schema
        )
        self._data_fields = [p.storage_name for p in self._schema.data_properties]

    def _validate_schema(self, schema: RecordSchema) -> None:
        super()._validate_schema(schema)
        validate_data_types(schema, SCALAR_DATA_TYPES, db_system=self.db_system)

    async def _fetch(self, keys: List[str], include_vectors: bool) -> List[Optional[Any]]:
        storage_keys = [self._storage_key(key) for key in keys]
        project = not include_vectors and bool(self._data_fields)

        async with self._client.pipeline(transaction=False) as pipe:
            for storage_key in storage_keys:
                if project:
                    pipe.exists(storage_key)
                    pipe.hmget(storage_key, self._data_fields)
                else:
                    pipe.hgetall(storage_key)
            results = await pipe.execute()

        if not project:
            return [entries or None for entries in results]

        storage_models: List[Optional[Any]] = []
        for index in range(len(storage_keys)):
            exists, values = results[2 * index], results[2 * index + 1]
            if not exists:
                storage_models.append(None)
                continue
            storage_models.append(
                {
                    name: value
                    for name, value in zip(self._data_fields, values)
                    if value is not None
                }
            )
        return storage_models

    async def _store(self, items: List[Tuple[str, Any]]) -> None:
        # Replace the whole hash so entries for cleared properties disappear
        async with self._client.pipeline(transaction=True) as pipe:
            for key, entries in items:
                storage_key = self._storage_key(key)
                pipe.delete(storage_key)
                if entries:
                    pipe.hset(storage_key, mapping=entries)
            await pipe.execute()

    async def _remove(self, keys: List[str]) -> None:
        await self._client.delete(*[self._storage_key(key) for key in keys])
