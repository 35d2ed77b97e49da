"""
Qdrant Vector Store

Records stored as Qdrant points with integer or UUID ids.
"""

from .collection import QdrantCollectionManager
from .mapper import QdrantRecordMapper
from .record_collection import QdrantRecordCollection, QdrantRecordCollectionOptions
from .vector_store import QdrantVectorStore, QdrantVectorStoreOptions

__all__ = [
    "QdrantCollectionManager",
    "QdrantRecordCollection",
    "QdrantRecordCollectionOptions",
    "QdrantRecordMapper",
    "QdrantVectorStore",
    "QdrantVectorStoreOptions",
]
