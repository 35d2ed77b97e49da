"""
Vector Store Factory

Factory functions for creating vector store instances and their backend
clients based on configuration settings.
"""

import logging
from functools import lru_cache
from typing import Optional

from ..core.config import Settings, get_settings
from .base import BaseVectorStore
from .memory import InMemoryVectorStore

logger = logging.getLogger(__name__)

SUPPORTED_BACKENDS = ("memory", "redis", "qdrant", "azure_ai_search")


def _create_redis_store(settings: Settings) -> BaseVectorStore:
    from ..core.redis_client import get_redis
    from .redis import RedisStorageType, RedisVectorStore, RedisVectorStoreOptions

    options = RedisVectorStoreOptions(
        storage_type=RedisStorageType(settings.redis_storage_type),
        prefix_collection_name_to_key_names=settings.redis_prefix_collection_name_to_key_names,
    )
    return RedisVectorStore(get_redis(), options)


def _create_qdrant_store(settings: Settings) -> BaseVectorStore:
    from qdrant_client import AsyncQdrantClient

    from .qdrant import QdrantVectorStore, QdrantVectorStoreOptions

    client_kwargs = {"url": settings.qdrant_url}
    if settings.qdrant_api_key:
        client_kwargs["api_key"] = settings.qdrant_api_key

    return QdrantVectorStore(
        AsyncQdrantClient(**client_kwargs),
        QdrantVectorStoreOptions(has_named_vectors=settings.qdrant_has_named_vectors),
    )


def _create_azure_ai_search_store(settings: Settings) -> BaseVectorStore:
    from azure.core.credentials import AzureKeyCredential
    from azure.search.documents.indexes.aio import SearchIndexClient

    from .azure_ai_search import AzureAISearchVectorStore

    if not settings.azure_ai_search_endpoint or not settings.azure_ai_search_api_key:
        raise ValueError(
            "azure_ai_search_endpoint and azure_ai_search_api_key are required "
            "for the azure_ai_search backend"
        )

    client = SearchIndexClient(
        endpoint=settings.azure_ai_search_endpoint,
        credential=AzureKeyCredential(settings.azure_ai_search_api_key),
    )
    return AzureAISearchVectorStore(client)


def create_vector_store(backend: str, settings: Optional[Settings] = None) -> BaseVectorStore:
    """
    Create a vector store instance.

    Args:
        backend: Backend type ("memory", "redis", "qdrant", "azure_ai_search")
        settings: Optional settings (uses get_settings() if None)

    Returns:
        Vector store instance

    Raises:
        ValueError: If backend is not supported
        ImportError: If required dependencies are missing
    """
    settings = settings or get_settings()

    if backend == "memory":
        return InMemoryVectorStore()

    builders = {
        "redis": (_create_redis_store, "redis"),
        "qdrant": (_create_qdrant_store, "qdrant-client"),
        "azure_ai_search": (_create_azure_ai_search_store, "azure-search-documents"),
    }
    if backend not in builders:
        raise ValueError(
            f"Unsupported vector store backend: {backend}. "
            f"Supported backends: {', '.join(SUPPORTED_BACKENDS)}"
        )

    builder, package = builders[backend]
    try:
        return builder(settings)
    except ImportError as e:
        raise ImportError(
            f"{backend} dependencies not available: {e}. Install with: pip install {package}"
        ) from e


@lru_cache(maxsize=1)
def get_vector_store() -> Optional[BaseVectorStore]:
    """
    Get the configured vector store instance.

    This function is cached to ensure singleton behavior.

    Returns:
        Vector store instance or None if disabled
    """
    settings = get_settings()

    if not settings.is_vector_store_enabled:
        logger.info("Vector store is disabled")
        return None

    backend = settings.vector_backend
    try:
        store = create_vector_store(backend, settings)
    except (ValueError, ImportError) as e:
        logger.error(f"Failed to create vector store '{backend}': {e}")
        raise
    logger.info(f"Created vector store: {backend}")
    return store


def clear_vector_store_cache():
    """Clear the cached vector store instance (useful for testing)"""
    get_vector_store.cache_clear()
    logger.debug("Cleared vector store cache")
