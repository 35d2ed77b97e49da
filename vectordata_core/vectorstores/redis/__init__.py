"""
Redis Vector Store

Records stored as RedisJSON documents or Redis hashes, with RediSearch indexes
acting as collections.
"""

from .collection import RedisCollectionManager, RedisStorageType
from .hashset_mapper import RedisHashSetRecordMapper
from .json_mapper import RedisJsonRecordMapper
from .record_collection import (
    RedisHashSetRecordCollection,
    RedisHashSetRecordCollectionOptions,
    RedisJsonRecordCollection,
    RedisJsonRecordCollectionOptions,
)
from .vector_store import RedisVectorStore, RedisVectorStoreOptions

__all__ = [
    "RedisCollectionManager",
    "RedisHashSetRecordCollection",
    "RedisHashSetRecordCollectionOptions",
    "RedisHashSetRecordMapper",
    "RedisJsonRecordCollection",
    "RedisJsonRecordCollectionOptions",
    "RedisJsonRecordMapper",
    "RedisStorageType",
    "RedisVectorStore",
    "RedisVectorStoreOptions",
]
