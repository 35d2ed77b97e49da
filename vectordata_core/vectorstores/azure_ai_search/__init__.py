"""
Azure AI Search Vector Store

Records stored as documents of Azure AI Search indexes.
"""

from .collection import AzureAISearchCollectionManager
from .mapper import AzureAISearchRecordMapper
from .record_collection import (
    AzureAISearchRecordCollection,
    AzureAISearchRecordCollectionOptions,
)
from .vector_store import AzureAISearchVectorStore, AzureAISearchVectorStoreOptions

__all__ = [
    "AzureAISearchCollectionManager",
    "AzureAISearchRecordCollection",
    "AzureAISearchRecordCollectionOptions",
    "AzureAISearchRecordMapper",
    "AzureAISearchVectorStore",
    "AzureAISearchVectorStoreOptions",
]
