from dataclasses import dataclass
from typing import Optional

from qdrant_client import AsyncQdrantClient

from vectordata_core.schema.definition import RecordSchema

from ..base import BaseRecordCollection, BaseVectorStore, RecordCollectionFactory
from .collection import QdrantCollectionManager
from .record_collection import QdrantRecordCollection, QdrantRecordCollectionOptions


@dataclass
class QdrantVectorStoreOptions:
    """Options for ``QdrantVectorStore``."""

    has_named_vectors: bool = False
    collection_factory: Optional[RecordCollectionFactory] = None


class QdrantVectorStore(BaseVectorStore):
    """Vector store backed by Qdrant."""

    def __init__(
        self,
        client: AsyncQdrantClient,
        options: Optional[QdrantVectorStoreOptions] = None,
    ):
        self._options = options or QdrantVectorStoreOptions()
        super().__init__(
            client,
            QdrantCollectionManager(client, self._options.has_named_vectors),
            self._options.collection_factory,
        )

    def _create_record_collection(
        self, name: str, record_type: type, schema: RecordSchema
    ) -> BaseRecordCollection:
        return QdrantRecordCollection(
            self._client,
            name,
            record_type,
            QdrantRecordCollectionOptions(has_named_vectors=self._options.has_named_vectors),
            definition=schema,
        )
