"""
Vector Store Module

Schema-driven record collections over pluggable backends: in-memory, Redis
(JSON or hashes), Qdrant and Azure AI Search. Backend packages are imported
on demand so that only the clients in use need to be installed.
"""

from .base import (
    BaseCollectionManager,
    BaseRecordCollection,
    BaseVectorStore,
    RecordCollectionFactory,
    RecordMapper,
)
from .factory import clear_vector_store_cache, create_vector_store, get_vector_store
from .memory import InMemoryRecordCollection, InMemoryVectorStore
from .record_adapter import RecordModelAdapter

__all__ = [
    "BaseCollectionManager",
    "BaseRecordCollection",
    "BaseVectorStore",
    "InMemoryRecordCollection",
    "InMemoryVectorStore",
    "RecordCollectionFactory",
    "RecordMapper",
    "RecordModelAdapter",
    "clear_vector_store_cache",
    "create_vector_store",
    "get_vector_store",
]
