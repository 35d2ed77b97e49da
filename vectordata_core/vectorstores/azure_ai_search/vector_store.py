from dataclasses import dataclass
from typing import Optional

from azure.search.documents.indexes.aio import SearchIndexClient

from vectordata_core.schema.definition import RecordSchema

from ..base import BaseRecordCollection, BaseVectorStore, RecordCollectionFactory
from .collection import AzureAISearchCollectionManager
from .record_collection import AzureAISearchRecordCollection


@dataclass
class AzureAISearchVectorStoreOptions:
    """Options for ``AzureAISearchVectorStore``."""

    collection_factory: Optional[RecordCollectionFactory] = None


class AzureAISearchVectorStore(BaseVectorStore):
    """Vector store backed by Azure AI Search indexes."""

    def __init__(
        self,
        client: SearchIndexClient,
        options: Optional[AzureAISearchVectorStoreOptions] = None,
    ):
        options = options or AzureAISearchVectorStoreOptions()
        super().__init__(
            client, AzureAISearchCollectionManager(client), options.collection_factory
        )

    def _create_record_collection(
        self, name: str, record_type: type, schema: RecordSchema
    ) -> BaseRecordCollection:
        return AzureAISearchRecordCollection(self._client, name, record_type, definition=schema)
