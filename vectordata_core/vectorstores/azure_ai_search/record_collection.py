import asyncio
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
from azure.core.exceptions import AzureError, ResourceNotFoundError
from azure.search.documents.indexes.aio import SearchIndexClient

from vectordata_core.core.exceptions import VectorStoreOperationError
from vectordata_core.schema.definition import RecordSchema
from vectordata_core.schema.validation import validate_data_types

from ..base import BaseRecordCollection, RecordMapper
from .collection import DB_SYSTEM, AzureAISearchCollectionManager
from .mapper import AzureAISearchRecordMapper


@dataclass
class AzureAISearchRecordCollectionOptions:
    """Options for ``AzureAISearchRecordCollection``."""

    mapper: Optional[RecordMapper] = None


class AzureAISearchRecordCollection(BaseRecordCollection):
    """Record collection storing each record as a document of a search index."""

    db_system = DB_SYSTEM
    supported_key_types = (str,)
    supported_vector_element_types = (np.float32,)
    supported_data_types = (str, bool, int, float, datetime, date, np.int32, np.int64)
    transport_errors = (AzureError,)

    def __init__(
        self,
        client: SearchIndexClient,
        collection_name: str,
        record_type: type,
        options: Optional[AzureAISearchRecordCollectionOptions] = None,
        definition: Optional[RecordSchema] = None,
    ):
        options = options or AzureAISearchRecordCollectionOptions()
        super().__init__(
            collection_name,
            record_type,
            AzureAISearchCollectionManager(client),
            definition,
        )
        self._search_client = client.get_search_client(collection_name)
        self._mapper = options.mapper or AzureAISearchRecordMapper(record_type, self._schema)
        self._key_storage_name = self._schema.key_property.storage_name
        # Vectors are left out of reads unless requested
        self._non_vector_fields = [self._key_storage_name] + [
            p.storage_name for p in self._schema.data_properties
        ]

    def _validate_schema(self, schema: RecordSchema) -> None:
        super()._validate_schema(schema)
        validate_data_types(
            schema, self.supported_data_types, supports_collections=True, db_system=self.db_system
        )

    async def _get_document(self, key: str, include_vectors: bool) -> Optional[Dict[str, Any]]:
        try:
            return await self._search_client.get_document(
                key=key,
                selected_fields=None if include_vectors else self._non_vector_fields,
            )
        except ResourceNotFoundError:
            return None

    async def _fetch(self, keys: List[str], include_vectors: bool) -> List[Optional[Any]]:
        # No multi-get in the service API: fan out and wait for all
        return list(
            await asyncio.gather(*(self._get_document(key, include_vectors) for key in keys))
        )

    async def _store(self, items: List[Tuple[str, Any]]) -> None:
        results = await self._search_client.upload_documents(
            documents=[document for _, document in items]
        )
        failed = [result for result in results if not result.succeeded]
        if failed:
            errors = "; ".join(f"{result.key}: {result.error_message}" for result in failed)
            raise VectorStoreOperationError(
                f"Failed to upload {len(failed)} of {len(items)} documents: {errors}",
                db_system=self.db_system,
                collection_name=self._collection_name,
                operation_name="upload_documents",
            )

    async def _remove(self, keys: List[str]) -> None:
        await self._search_client.delete_documents(
            documents=[{self._key_storage_name: key} for key in keys]
        )
