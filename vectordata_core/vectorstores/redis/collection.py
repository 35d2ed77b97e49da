"""
Redis collection management

A collection is a RediSearch index over all keys prefixed with
``"<collection>:"``, built on either JSON documents or hashes. Vector
properties become VECTOR fields; filterable data properties become TAG,
TEXT or NUMERIC fields.
"""

from enum import Enum
from typing import Any, AsyncIterator, Dict, List

import numpy as np
import redis.asyncio as aioredis
from redis.commands.search.field import NumericField, TagField, TextField, VectorField
from redis.exceptions import RedisError, ResponseError

try:
    from redis.commands.search.index_definition import IndexDefinition, IndexType
except ImportError:  # redis-py < 6 ships the module under its old name
    from redis.commands.search.indexDefinition import IndexDefinition, IndexType

from vectordata_core.core.exceptions import (
    CollectionAlreadyExistsError,
    ConfigurationError,
)
from vectordata_core.schema.definition import (
    DataProperty,
    DistanceFunction,
    IndexKind,
    RecordSchema,
    VectorProperty,
    get_collection_element_type,
    unwrap_optional,
)
from vectordata_core.schema.validation import validate_dimensions

from ..base import BaseCollectionManager

DB_SYSTEM = "redis"


class RedisStorageType(str, Enum):
    """How records are laid out in Redis."""

    JSON = "json"
    HASH_SET = "hashset"


_INDEX_KINDS: Dict[IndexKind, str] = {
    IndexKind.HNSW: "HNSW",
    IndexKind.FLAT: "FLAT",
}

_DISTANCE_METRICS: Dict[DistanceFunction, str] = {
    DistanceFunction.COSINE_SIMILARITY: "COSINE",
    DistanceFunction.DOT_PRODUCT_SIMILARITY: "IP",
    DistanceFunction.EUCLIDEAN_DISTANCE: "L2",
}

_VECTOR_TYPES: Dict[Any, str] = {
    np.float32: "FLOAT32",
    np.float64: "FLOAT64",
}

_NUMERIC_TYPES = (int, float)

_MISSING_INDEX_MESSAGES = ("unknown index name", "no such index")


def get_index_kind(vector: VectorProperty) -> str:
    try:
        return _INDEX_KINDS[vector.index_kind]
    except KeyError:
        raise ConfigurationError(
            f"Index kind '{vector.index_kind.value}' on vector property '{vector.name}' "
            f"is not supported by Redis",
            db_system=DB_SYSTEM,
        ) from None


def get_distance_metric(vector: VectorProperty) -> str:
    try:
        return _DISTANCE_METRICS[vector.distance_function]
    except KeyError:
        raise ConfigurationError(
            f"Distance function '{vector.distance_function.value}' on vector property "
            f"'{vector.name}' is not supported by Redis. Supported: "
            + ", ".join(f.value for f in _DISTANCE_METRICS),
            db_system=DB_SYSTEM,
        ) from None


def get_stored_element_type(
    vector: VectorProperty, storage_type: RedisStorageType = RedisStorageType.JSON
) -> Any:
    """
    Element type of a vector as laid out in Redis.

    Hashes hold packed bytes, so vectors of Python floats are stored at double
    precision to read back unchanged. JSON documents keep the declared type.
    """
    if storage_type == RedisStorageType.HASH_SET and vector.holds_python_floats:
        return np.float64
    return vector.element_type


def get_vector_type(
    vector: VectorProperty, storage_type: RedisStorageType = RedisStorageType.JSON
) -> str:
    element_type = get_stored_element_type(vector, storage_type)
    try:
        return _VECTOR_TYPES[element_type]
    except KeyError:
        raise ConfigurationError(
            f"Element type {element_type!r} of vector property '{vector.name}' "
            f"is not supported by Redis",
            db_system=DB_SYSTEM,
        ) from None


def _field_path(storage_name: str, storage_type: RedisStorageType) -> str:
    if storage_type == RedisStorageType.JSON:
        return f"$.{storage_name}"
    return storage_name


def _data_field(data: DataProperty, storage_type: RedisStorageType):
    storage_name = data.storage_name
    path = _field_path(storage_name, storage_type)

    if data.property_type is None:
        raise ConfigurationError(
            f"Property type of filterable data property '{data.name}' is required "
            f"to create a Redis index",
            db_system=DB_SYSTEM,
        )

    property_type = unwrap_optional(data.property_type)
    if property_type is str:
        if data.is_full_text_searchable:
            return TextField(path, as_name=storage_name)
        return TagField(path, as_name=storage_name)
    if property_type in _NUMERIC_TYPES:
        return NumericField(path, as_name=storage_name)

    element_type = get_collection_element_type(property_type)
    if element_type is str and storage_type == RedisStorageType.JSON:
        return TagField(f"{path}.*", as_name=storage_name)

    raise ConfigurationError(
        f"Data property '{data.name}' of type {property_type!r} cannot be indexed "
        f"by Redis. Filterable properties must be str, int, float"
        + (" or list[str]" if storage_type == RedisStorageType.JSON else ""),
        db_system=DB_SYSTEM,
    )


def build_index_fields(schema: RecordSchema, storage_type: RedisStorageType) -> List[Any]:
    """
    Translate a record schema into RediSearch index fields.

    Raises:
        ConfigurationError: For missing dimensions, unsupported index kinds,
            distance functions or filterable data types
    """
    validate_dimensions(schema, DB_SYSTEM)

    fields: List[Any] = []
    for data in schema.data_properties:
        if data.is_filterable or data.is_full_text_searchable:
            fields.append(_data_field(data, storage_type))

    for vector in schema.vector_properties:
        fields.append(
            VectorField(
                _field_path(vector.storage_name, storage_type),
                get_index_kind(vector),
                {
                    "TYPE": get_vector_type(vector, storage_type),
                    "DIM": vector.dimensions,
                    "DISTANCE_METRIC": get_distance_metric(vector),
                },
                as_name=vector.storage_name,
            )
        )
    return fields


def _decode(value: Any) -> str:
    return value.decode("utf-8") if isinstance(value, bytes) else str(value)


class RedisCollectionManager(BaseCollectionManager):
    """Manages RediSearch indexes acting as collections."""

    db_system = DB_SYSTEM
    transport_errors = (RedisError, OSError)

    def __init__(
        self,
        client: aioredis.Redis,
        storage_type: RedisStorageType = RedisStorageType.JSON,
    ):
        super().__init__()
        self._client = client
        self._storage_type = RedisStorageType(storage_type)

    @property
    def storage_type(self) -> RedisStorageType:
        return self._storage_type

    async def create_collection(self, name: str, schema: RecordSchema) -> None:
        fields = build_index_fields(schema, self._storage_type)
        index_type = (
            IndexType.JSON if self._storage_type == RedisStorageType.JSON else IndexType.HASH
        )
        definition = IndexDefinition(prefix=[f"{name}:"], index_type=index_type)

        with self._operation("create_collection", name):
            try:
                await self._client.ft(name).create_index(fields, definition=definition)
            except ResponseError as e:
                if "already exists" in str(e).lower():
                    raise CollectionAlreadyExistsError(name, self.db_system) from e
                raise

        self.logger.info(
            f"Created Redis index '{name}' on {self._storage_type.value} with "
            f"{len(fields)} fields"
        )

    async def collection_exists(self, name: str) -> bool:
        with self._operation("collection_exists", name):
            try:
                await self._client.ft(name).info()
            except ResponseError as e:
                message = str(e).lower()
                if any(text in message for text in _MISSING_INDEX_MESSAGES):
                    return False
                raise
            return True

    async def delete_collection(self, name: str) -> None:
        with self._operation("delete_collection", name):
            await self._client.ft(name).dropindex(delete_documents=False)
        self.logger.info(f"Dropped Redis index '{name}'")

    async def list_collection_names(self) -> AsyncIterator[str]:
        with self._operation("list_collection_names"):
            names = await self._client.execute_command("FT._LIST")
        for name in names or []:
            yield _decode(name)
