from dataclasses import dataclass
from typing import Optional

import redis.asyncio as aioredis

from vectordata_core.schema.definition import RecordSchema

from ..base import BaseRecordCollection, BaseVectorStore, RecordCollectionFactory
from .collection import RedisCollectionManager, RedisStorageType
from .record_collection import (
    RedisHashSetRecordCollection,
    RedisHashSetRecordCollectionOptions,
    RedisJsonRecordCollection,
    RedisJsonRecordCollectionOptions,
)


@dataclass
class RedisVectorStoreOptions:
    """
    Options for ``RedisVectorStore``.

    Keys are prefixed by default because collection indexes only cover keys
    starting with ``"<collection>:"``.
    """

    storage_type: RedisStorageType = RedisStorageType.JSON
    prefix_collection_name_to_key_names: bool = True
    collection_factory: Optional[RecordCollectionFactory] = None


class RedisVectorStore(BaseVectorStore):
    """Vector store backed by Redis with the RedisJSON and RediSearch modules."""

    def __init__(
        self,
        client: aioredis.Redis,
        options: Optional[RedisVectorStoreOptions] = None,
    ):
        self._options = options or RedisVectorStoreOptions()
        super().__init__(
            client,
            RedisCollectionManager(client, self._options.storage_type),
            self._options.collection_factory,
        )

    def _create_record_collection(
        self, name: str, record_type: type, schema: RecordSchema
    ) -> BaseRecordCollection:
        if RedisStorageType(self._options.storage_type) == RedisStorageType.HASH_SET:
            return RedisHashSetRecordCollection(
                self._client,
                name,
                record_type,
                RedisHashSetRecordCollectionOptions(
                    prefix_collection_name_to_key_names=self._options.prefix_collection_name_to_key_names
                ),
                definition=schema,
            )

        return RedisJsonRecordCollection(
            self._client,
            name,
            record_type,
            RedisJsonRecordCollectionOptions(
                prefix_collection_name_to_key_names=self._options.prefix_collection_name_to_key_names
            ),
            definition=schema,
        )
