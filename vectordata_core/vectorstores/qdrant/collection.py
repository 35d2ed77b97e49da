"""
Qdrant collection management

Creates collections with either one unnamed vector or one named vector per
vector property, and a payload index for every filterable data property.
Qdrant only offers HNSW indexing.
"""

from datetime import date, datetime
from typing import AsyncIterator, Dict, List, Tuple, Union

from qdrant_client import AsyncQdrantClient
from qdrant_client.http import models
from qdrant_client.http.exceptions import ResponseHandlingException, UnexpectedResponse

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
from vectordata_core.schema.validation import validate_dimensions, validate_single_vector

from ..base import BaseCollectionManager

DB_SYSTEM = "qdrant"

_DISTANCES: Dict[DistanceFunction, models.Distance] = {
    DistanceFunction.COSINE_SIMILARITY: models.Distance.COSINE,
    DistanceFunction.DOT_PRODUCT_SIMILARITY: models.Distance.DOT,
    DistanceFunction.EUCLIDEAN_DISTANCE: models.Distance.EUCLID,
    DistanceFunction.MANHATTAN_DISTANCE: models.Distance.MANHATTAN,
}

_PAYLOAD_SCHEMA_TYPES = {
    str: models.PayloadSchemaType.KEYWORD,
    int: models.PayloadSchemaType.INTEGER,
    float: models.PayloadSchemaType.FLOAT,
    bool: models.PayloadSchemaType.BOOL,
    datetime: models.PayloadSchemaType.DATETIME,
    date: models.PayloadSchemaType.DATETIME,
}


def get_distance(vector: VectorProperty) -> models.Distance:
    if vector.index_kind != IndexKind.HNSW:
        raise ConfigurationError(
            f"Index kind '{vector.index_kind.value}' on vector property '{vector.name}' is not "
            f"supported by Qdrant. Supported: {IndexKind.HNSW.value}",
            db_system=DB_SYSTEM,
        )
    try:
        return _DISTANCES[vector.distance_function]
    except KeyError:
        raise ConfigurationError(
            f"Distance function '{vector.distance_function.value}' on vector property "
            f"'{vector.name}' is not supported by Qdrant. Supported: "
            + ", ".join(f.value for f in _DISTANCES),
            db_system=DB_SYSTEM,
        ) from None


def build_vectors_config(
    schema: RecordSchema, has_named_vectors: bool
) -> Union[models.VectorParams, Dict[str, models.VectorParams]]:
    """
    Translate vector properties into Qdrant vector parameters.

    Raises:
        ConfigurationError: For missing dimensions, several vectors without named
            vectors, or unsupported index kinds and distance functions
    """
    validate_dimensions(schema, DB_SYSTEM)

    if not has_named_vectors:
        validate_single_vector(schema, DB_SYSTEM)
        vector = schema.vector_properties[0]
        return models.VectorParams(size=vector.dimensions, distance=get_distance(vector))

    return {
        vector.storage_name: models.VectorParams(
            size=vector.dimensions, distance=get_distance(vector)
        )
        for vector in schema.vector_properties
    }


def get_payload_schema_type(data: DataProperty) -> models.PayloadSchemaType:
    if data.property_type is None:
        raise ConfigurationError(
            f"Property type of filterable data property '{data.name}' is required "
            f"to create a Qdrant payload index",
            db_system=DB_SYSTEM,
        )

    property_type = unwrap_optional(data.property_type)
    if property_type not in _PAYLOAD_SCHEMA_TYPES:
        # Lists are indexed by their element type
        property_type = get_collection_element_type(property_type)

    if property_type is str and data.is_full_text_searchable:
        return models.PayloadSchemaType.TEXT
    try:
        return _PAYLOAD_SCHEMA_TYPES[property_type]
    except KeyError:
        raise ConfigurationError(
            f"Data property '{data.name}' of type {data.property_type!r} cannot be "
            f"indexed by Qdrant",
            db_system=DB_SYSTEM,
        ) from None


def build_payload_indexes(schema: RecordSchema) -> List[Tuple[str, models.PayloadSchemaType]]:
    return [
        (data.storage_name, get_payload_schema_type(data))
        for data in schema.data_properties
        if data.is_filterable or data.is_full_text_searchable
    ]


class QdrantCollectionManager(BaseCollectionManager):
    """Manages Qdrant collections."""

    db_system = DB_SYSTEM
    transport_errors = (UnexpectedResponse, ResponseHandlingException)

    def __init__(self, client: AsyncQdrantClient, has_named_vectors: bool = False):
        super().__init__()
        self._client = client
        self._has_named_vectors = has_named_vectors

    async def create_collection(self, name: str, schema: RecordSchema) -> None:
        vectors_config = build_vectors_config(schema, self._has_named_vectors)
        payload_indexes = build_payload_indexes(schema)

        with self._operation("create_collection", name):
            try:
                await self._client.create_collection(
                    collection_name=name, vectors_config=vectors_config
                )
            except UnexpectedResponse as e:
                if e.status_code == 409 or "already exists" in str(e).lower():
                    raise CollectionAlreadyExistsError(name, self.db_system) from e
                raise

            for field_name, field_schema in payload_indexes:
                await self._client.create_payload_index(
                    collection_name=name,
                    field_name=field_name,
                    field_schema=field_schema,
                    wait=True,
                )

        self.logger.info(
            f"Created Qdrant collection '{name}' with {len(payload_indexes)} payload indexes"
        )

    async def collection_exists(self, name: str) -> bool:
        with self._operation("collection_exists", name):
            return await self._client.collection_exists(collection_name=name)

    async def delete_collection(self, name: str) -> None:
        with self._operation("delete_collection", name):
            await self._client.delete_collection(collection_name=name)
        self.logger.info(f"Deleted Qdrant collection '{name}'")

    async def list_collection_names(self) -> AsyncIterator[str]:
        with self._operation("list_collection_names"):
            response = await self._client.get_collections()
        for collection in response.collections:
            yield collection.name
