"""
Base Vector Store Interfaces

Defines the abstract building blocks shared by every backend:

- ``RecordMapper``: converts a record to and from the backend storage model
- ``BaseCollectionManager``: creates, checks, deletes and lists collections
- ``BaseRecordCollection``: CRUD access to one named collection
- ``BaseVectorStore``: backend-agnostic entry point handing out collections

A record collection is composed of a mapper, a collection manager and the
backend client; backends only implement the storage primitives.
"""

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import (
    Any,
    AsyncIterator,
    Generic,
    Iterable,
    Iterator,
    List,
    Optional,
    Protocol,
    Sequence,
    Tuple,
    Type,
    TypeVar,
)

from vectordata_core.core.exceptions import (
    CollectionAlreadyExistsError,
    RecordMappingError,
    RecordNotFoundError,
    VectorStoreError,
    VectorStoreOperationError,
)
from vectordata_core.observability.metrics import (
    record_collection_operation,
    track_record_operation,
)
from vectordata_core.schema.definition import (
    SUPPORTED_FLOAT_ELEMENT_TYPES,
    RecordSchema,
)
from vectordata_core.schema.reader import resolve_record_schema
from vectordata_core.schema.validation import (
    validate_key_type,
    validate_vector_element_types,
)

TKey = TypeVar("TKey")
TRecord = TypeVar("TRecord")
TStorage = TypeVar("TStorage")


class RecordMapper(Protocol[TKey, TRecord, TStorage]):
    """Converts records to and from a backend storage model."""

    def to_storage(self, record: TRecord) -> Tuple[TKey, TStorage]:
        ...

    def from_storage(
        self, key: TKey, storage_model: TStorage, include_vectors: bool
    ) -> TRecord:
        ...


@contextmanager
def translate_backend_errors(
    db_system: str,
    transport_errors: Tuple[Type[BaseException], ...],
    collection_name: Optional[str],
    operation_name: str,
    logger: logging.Logger,
) -> Iterator[None]:
    """Wrap backend client failures into ``VectorStoreOperationError``.

    Library errors pass through unchanged.
    """
    try:
        yield
    except VectorStoreError:
        raise
    except transport_errors as e:
        logger.error(
            f"{db_system} {operation_name} failed for collection '{collection_name}': {e}"
        )
        raise VectorStoreOperationError(
            f"Call to vector store failed: {e}",
            db_system=db_system,
            collection_name=collection_name,
            operation_name=operation_name,
        ) from e


class BaseCollectionManager(ABC):
    """Abstract base class for collection (index) management on a backend."""

    db_system: str = "unknown"
    transport_errors: Tuple[Type[BaseException], ...] = ()

    def __init__(self):
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @contextmanager
    def _operation(self, operation_name: str, collection_name: Optional[str] = None):
        try:
            with translate_backend_errors(
                self.db_system,
                self.transport_errors,
                collection_name,
                operation_name,
                self.logger,
            ):
                yield
        except CollectionAlreadyExistsError:
            record_collection_operation(self.db_system, operation_name, status="exists")
            raise
        except BaseException:
            record_collection_operation(self.db_system, operation_name, success=False)
            raise
        record_collection_operation(self.db_system, operation_name, success=True)

    @abstractmethod
    async def create_collection(self, name: str, schema: RecordSchema) -> None:
        """
        Create a collection (index) for records described by the schema.

        Raises:
            ConfigurationError: If the schema cannot be represented by the backend
            CollectionAlreadyExistsError: If the backend reports an existing collection
        """
        pass

    @abstractmethod
    async def collection_exists(self, name: str) -> bool:
        """Check whether a collection exists."""
        pass

    @abstractmethod
    async def delete_collection(self, name: str) -> None:
        """Delete a collection."""
        pass

    @abstractmethod
    def list_collection_names(self) -> AsyncIterator[str]:
        """Yield the names of all collections from a single backend round trip."""
        pass

    async def create_collection_if_not_exists(self, name: str, schema: RecordSchema) -> bool:
        """
        Create the collection unless it already exists.

        Existence check and creation are not atomic; a concurrent creator makes
        the backend report "already exists", which is treated as success.

        Returns:
            True if this call created the collection
        """
        if await self.collection_exists(name):
            return False
        try:
            await self.create_collection(name, schema)
        except CollectionAlreadyExistsError:
            self.logger.info(
                f"Collection '{name}' was created concurrently, treating as existing"
            )
            return False
        return True


class BaseRecordCollection(ABC, Generic[TKey, TRecord]):
    """
    Abstract base class for CRUD access to one named collection.

    Subclasses set ``self._mapper`` and implement the storage primitives
    ``_fetch``, ``_store`` and ``_remove``.
    """

    db_system: str = "unknown"
    supported_key_types: Tuple[type, ...] = (str,)
    supported_vector_element_types: Tuple[Any, ...] = SUPPORTED_FLOAT_ELEMENT_TYPES
    transport_errors: Tuple[Type[BaseException], ...] = ()

    def __init__(
        self,
        collection_name: str,
        record_type: type,
        collection_manager: BaseCollectionManager,
        definition: Optional[RecordSchema] = None,
    ):
        if not collection_name or not collection_name.strip():
            raise ValueError("Collection name must not be empty")

        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self._collection_name = collection_name
        self._record_type = record_type
        self._schema = resolve_record_schema(record_type, definition)
        self._collection_manager = collection_manager
        self._mapper: RecordMapper = None  # type: ignore[assignment]
        self._validate_schema(self._schema)

    def _validate_schema(self, schema: RecordSchema) -> None:
        validate_key_type(schema, self.supported_key_types, self.db_system)
        validate_vector_element_types(
            schema, self.supported_vector_element_types, self.db_system
        )

    @property
    def collection_name(self) -> str:
        return self._collection_name

    @property
    def record_type(self) -> type:
        return self._record_type

    @property
    def schema(self) -> RecordSchema:
        return self._schema

    # ------------------------------------------------------------------
    # Collection management
    # ------------------------------------------------------------------
    async def collection_exists(self) -> bool:
        return await self._collection_manager.collection_exists(self._collection_name)

    async def create_collection(self) -> None:
        await self._collection_manager.create_collection(self._collection_name, self._schema)

    async def create_collection_if_not_exists(self) -> bool:
        return await self._collection_manager.create_collection_if_not_exists(
            self._collection_name, self._schema
        )

    async def delete_collection(self) -> None:
        await self._collection_manager.delete_collection(self._collection_name)

    # ------------------------------------------------------------------
    # Storage primitives
    # ------------------------------------------------------------------
    @abstractmethod
    async def _fetch(self, keys: List[TKey], include_vectors: bool) -> List[Optional[Any]]:
        """Return one storage model per key, in key order, None for absent keys."""
        pass

    @abstractmethod
    async def _store(self, items: List[Tuple[TKey, Any]]) -> None:
        """Write all (key, storage model) pairs in a single transport call."""
        pass

    @abstractmethod
    async def _remove(self, keys: List[TKey]) -> None:
        """Remove all keys; absent keys are ignored."""
        pass

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    @contextmanager
    def _operation(self, operation_name: str, record_count: int = 0):
        with track_record_operation(
            self.db_system, self._collection_name, operation_name, record_count
        ):
            with translate_backend_errors(
                self.db_system,
                self.transport_errors,
                self._collection_name,
                operation_name,
                self.logger,
            ):
                yield

    def _mapping_error(self, error: Exception, operation_name: str) -> RecordMappingError:
        message = error.message if isinstance(error, VectorStoreError) else str(error)
        return RecordMappingError(
            f"Failed to convert record for collection '{self._collection_name}': {message}",
            db_system=self.db_system,
            collection_name=self._collection_name,
            operation_name=operation_name,
        )

    def _map_to_storage(self, record: TRecord, operation_name: str) -> Tuple[TKey, Any]:
        if record is None:
            raise ValueError("Record must not be None")
        try:
            key, storage_model = self._mapper.to_storage(record)
        except (RecordMappingError, ValueError, TypeError, KeyError) as e:
            raise self._mapping_error(e, operation_name) from e
        self._verify_key(key)
        return key, storage_model

    def _map_from_storage(
        self, key: TKey, storage_model: Any, include_vectors: bool, operation_name: str
    ) -> TRecord:
        try:
            return self._mapper.from_storage(key, storage_model, include_vectors)
        except (RecordMappingError, ValueError, TypeError, KeyError) as e:
            raise self._mapping_error(e, operation_name) from e

    @staticmethod
    def _verify_key(key: Any) -> None:
        if key is None:
            raise ValueError("Key must not be None")
        if isinstance(key, str) and not key.strip():
            raise ValueError("Key must not be empty or whitespace")

    def _verify_keys(self, keys: Iterable[TKey]) -> List[TKey]:
        if keys is None:
            raise ValueError("Keys must not be None")
        key_list = list(keys)
        for key in key_list:
            self._verify_key(key)
        return key_list

    # ------------------------------------------------------------------
    # Record operations
    # ------------------------------------------------------------------
    async def get(self, key: TKey, include_vectors: bool = False) -> TRecord:
        """
        Get a record by key.

        Raises:
            RecordNotFoundError: If no record with the key exists
        """
        self._verify_key(key)
        self.logger.debug(f"Getting record '{key}' from '{self._collection_name}'")

        with self._operation("get", 1):
            storage_model = (await self._fetch([key], include_vectors))[0]
            if storage_model is None:
                raise RecordNotFoundError(key, self._collection_name, self.db_system)
            return self._map_from_storage(key, storage_model, include_vectors, "get")

    async def get_batch(
        self, keys: Iterable[TKey], include_vectors: bool = False
    ) -> List[TRecord]:
        """
        Get records by key, in input order.

        The first missing key fails the whole batch; use ``try_get_batch`` to
        receive partial results.

        Raises:
            RecordNotFoundError: If any key is absent
        """
        key_list = self._verify_keys(keys)
        if not key_list:
            return []
        self.logger.debug(
            f"Getting {len(key_list)} records from '{self._collection_name}'"
        )

        with self._operation("get_batch", len(key_list)):
            storage_models = await self._fetch(key_list, include_vectors)
            records = []
            for key, storage_model in zip(key_list, storage_models):
                if storage_model is None:
                    raise RecordNotFoundError(key, self._collection_name, self.db_system)
                records.append(
                    self._map_from_storage(key, storage_model, include_vectors, "get_batch")
                )
            return records

    async def try_get_batch(
        self, keys: Iterable[TKey], include_vectors: bool = False
    ) -> List[Optional[TRecord]]:
        """Get records by key, in input order, with None for absent keys."""
        key_list = self._verify_keys(keys)
        if not key_list:
            return []

        with self._operation("try_get_batch", len(key_list)):
            storage_models = await self._fetch(key_list, include_vectors)
            return [
                None
                if storage_model is None
                else self._map_from_storage(
                    key, storage_model, include_vectors, "try_get_batch"
                )
                for key, storage_model in zip(key_list, storage_models)
            ]

    async def upsert(self, record: TRecord) -> TKey:
        """Insert or replace a record and return its key."""
        key, storage_model = self._map_to_storage(record, "upsert")
        self.logger.debug(f"Upserting record '{key}' into '{self._collection_name}'")

        with self._operation("upsert", 1):
            await self._store([(key, storage_model)])
        return key

    async def upsert_batch(self, records: Sequence[TRecord]) -> List[TKey]:
        """Insert or replace records in one transport call and return their keys."""
        if records is None:
            raise ValueError("Records must not be None")
        items = [self._map_to_storage(record, "upsert_batch") for record in records]
        if not items:
            return []
        self.logger.debug(f"Upserting {len(items)} records into '{self._collection_name}'")

        with self._operation("upsert_batch", len(items)):
            await self._store(items)
        return [key for key, _ in items]

    async def delete(self, key: TKey) -> None:
        """Delete a record; deleting an absent key is not an error."""
        self._verify_key(key)
        self.logger.debug(f"Deleting record '{key}' from '{self._collection_name}'")

        with self._operation("delete", 1):
            await self._remove([key])

    async def delete_batch(self, keys: Iterable[TKey]) -> None:
        """Delete records; absent keys are ignored."""
        key_list = self._verify_keys(keys)
        if not key_list:
            return

        with self._operation("delete_batch", len(key_list)):
            await self._remove(key_list)


class RecordCollectionFactory(Protocol):
    """Custom construction of record collections for a vector store."""

    def create_record_collection(
        self, client: Any, name: str, record_type: type, schema: RecordSchema
    ) -> BaseRecordCollection:
        ...


class BaseVectorStore(ABC):
    """
    Backend-agnostic entry point.

    Hands out record collections bound to the store's client and delegates
    collection management to the backend collection manager.
    """

    def __init__(
        self,
        client: Any,
        collection_manager: BaseCollectionManager,
        collection_factory: Optional[RecordCollectionFactory] = None,
    ):
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self._client = client
        self._collection_manager = collection_manager
        self._collection_factory = collection_factory

    @property
    def client(self) -> Any:
        return self._client

    @property
    def collection_manager(self) -> BaseCollectionManager:
        return self._collection_manager

    @abstractmethod
    def _create_record_collection(
        self, name: str, record_type: type, schema: RecordSchema
    ) -> BaseRecordCollection:
        """Build the backend's default record collection."""
        pass

    def get_collection(
        self, name: str, record_type: type, definition: Optional[RecordSchema] = None
    ) -> BaseRecordCollection:
        """
        Get a handle for a collection; no backend call is made.

        The schema is taken from ``definition`` or derived from ``record_type``.
        """
        schema = resolve_record_schema(record_type, definition)
        if self._collection_factory is not None:
            return self._collection_factory.create_record_collection(
                self._client, name, record_type, schema
            )
        return self._create_record_collection(name, record_type, schema)

    async def create_collection(
        self, name: str, record_type: type, definition: Optional[RecordSchema] = None
    ) -> BaseRecordCollection:
        collection = self.get_collection(name, record_type, definition)
        await collection.create_collection()
        self.logger.info(f"Created collection '{name}'")
        return collection

    async def create_collection_if_not_exists(
        self, name: str, record_type: type, definition: Optional[RecordSchema] = None
    ) -> BaseRecordCollection:
        collection = self.get_collection(name, record_type, definition)
        if await collection.create_collection_if_not_exists():
            self.logger.info(f"Created collection '{name}'")
        return collection

    async def collection_exists(self, name: str) -> bool:
        return await self._collection_manager.collection_exists(name)

    async def delete_collection(self, name: str) -> None:
        await self._collection_manager.delete_collection(name)
        self.logger.info(f"Deleted collection '{name}'")

    def list_collection_names(self) -> AsyncIterator[str]:
        return self._collection_manager.list_collection_names()
