"""
In-memory vector store

Keeps collections in process memory. Intended for development and tests; data
is lost when the process exits. Records are stored as deep copies of their
storage-name keyed values so callers cannot mutate stored state.
"""

import copy
import uuid
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple

from vectordata_core.core.exceptions import (
    CollectionAlreadyExistsError,
    VectorStoreOperationError,
)
from vectordata_core.schema.definition import RecordSchema
from vectordata_core.schema.validation import validate_dimensions

from .base import (
    BaseCollectionManager,
    BaseRecordCollection,
    BaseVectorStore,
    RecordCollectionFactory,
    RecordMapper,
)
from .record_adapter import RecordModelAdapter

DB_SYSTEM = "memory"


class InMemoryRecordMapper:
    """Maps records to plain dictionaries without the key."""

    def __init__(self, record_type: type, schema: RecordSchema):
        self._adapter = RecordModelAdapter(record_type, schema)
        self._key_storage_name = schema.key_property.storage_name

    def to_storage(self, record: Any) -> Tuple[Any, Dict[str, Any]]:
        key = self._adapter.get_key(record)
        payload = self._adapter.dump(record, json_mode=False)
        payload.pop(self._key_storage_name, None)
        return key, payload

    def from_storage(self, key: Any, storage_model: Dict[str, Any], include_vectors: bool) -> Any:
        return self._adapter.load(key, storage_model, include_vectors)


class InMemoryCollectionManager(BaseCollectionManager):
    """Holds the collections shared by all in-memory record collections of a store."""

    db_system = DB_SYSTEM

    def __init__(self):
        super().__init__()
        self._collections: Dict[str, Dict[Any, Dict[str, Any]]] = {}

    def get_records(self, name: str) -> Dict[Any, Dict[str, Any]]:
        try:
            return self._collections[name]
        except KeyError:
            raise VectorStoreOperationError(
                f"Collection '{name}' does not exist",
                db_system=self.db_system,
                collection_name=name,
            ) from None

    async def create_collection(self, name: str, schema: RecordSchema) -> None:
        validate_dimensions(schema, self.db_system)
        with self._operation("create_collection", name):
            if name in self._collections:
                raise CollectionAlreadyExistsError(name, self.db_system)
            self._collections[name] = {}
        self.logger.info(f"Created in-memory collection '{name}'")

    async def collection_exists(self, name: str) -> bool:
        with self._operation("collection_exists", name):
            return name in self._collections

    async def delete_collection(self, name: str) -> None:
        with self._operation("delete_collection", name):
            self._collections.pop(name, None)

    async def list_collection_names(self) -> AsyncIterator[str]:
        with self._operation("list_collection_names"):
            names = list(self._collections)
        for name in names:
            yield name


class InMemoryRecordCollection(BaseRecordCollection):
    """Record collection backed by a dictionary of the collection manager."""

    db_system = DB_SYSTEM
    supported_key_types = (str, int, uuid.UUID)

    def __init__(
        self,
        collection_name: str,
        record_type: type,
        collection_manager: Optional[InMemoryCollectionManager] = None,
        definition: Optional[RecordSchema] = None,
        mapper: Optional[RecordMapper] = None,
    ):
        super().__init__(
            collection_name,
            record_type,
            collection_manager or InMemoryCollectionManager(),
            definition,
        )
        self._mapper = mapper or InMemoryRecordMapper(record_type, self._schema)

    @property
    def _records(self) -> Dict[Any, Dict[str, Any]]:
        return self._collection_manager.get_records(self._collection_name)

    async def _fetch(self, keys: List[Any], include_vectors: bool) -> List[Optional[Any]]:
        records = self._records
        return [copy.deepcopy(records.get(key)) for key in keys]

    async def _store(self, items: List[Tuple[Any, Any]]) -> None:
        records = self._records
        for key, payload in items:
            records[key] = copy.deepcopy(payload)

    async def _remove(self, keys: List[Any]) -> None:
        records = self._records
        for key in keys:
            records.pop(key, None)


class InMemoryVectorStore(BaseVectorStore):
    """Vector store keeping all collections in process memory."""

    def __init__(self, collection_factory: Optional[RecordCollectionFactory] = None):
        super().__init__(None, InMemoryCollectionManager(), collection_factory)

    def _create_record_collection(
        self, name: str, record_type: type, schema: RecordSchema
    ) -> InMemoryRecordCollection:
        return InMemoryRecordCollection(
            name, record_type, self._collection_manager, definition=schema
        )
