"""
Azure AI Search collection management

A collection is a search index. Every vector property gets its own algorithm
configuration (``<storage name>AlgoConfig``) and vector search profile
(``<storage name>Profile``).
"""

from datetime import date, datetime
from typing import Any, AsyncIterator, Dict, List

import numpy as np
from azure.core.exceptions import (
    AzureError,
    HttpResponseError,
    ResourceExistsError,
    ResourceNotFoundError,
)
from azure.search.documents.indexes.aio import SearchIndexClient
from azure.search.documents.indexes.models import (
    ExhaustiveKnnAlgorithmConfiguration,
    ExhaustiveKnnParameters,
    HnswAlgorithmConfiguration,
    HnswParameters,
    SearchableField,
    SearchField,
    SearchFieldDataType,
    SearchIndex,
    SimpleField,
    VectorSearch,
    VectorSearchAlgorithmMetric,
    VectorSearchProfile,
)

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

DB_SYSTEM = "azure_ai_search"

_METRICS: Dict[DistanceFunction, VectorSearchAlgorithmMetric] = {
    DistanceFunction.COSINE_SIMILARITY: VectorSearchAlgorithmMetric.COSINE,
    DistanceFunction.DOT_PRODUCT_SIMILARITY: VectorSearchAlgorithmMetric.DOT_PRODUCT,
    DistanceFunction.EUCLIDEAN_DISTANCE: VectorSearchAlgorithmMetric.EUCLIDEAN,
}

FIELD_DATA_TYPES: Dict[Any, str] = {
    str: SearchFieldDataType.String,
    bool: SearchFieldDataType.Boolean,
    np.int32: SearchFieldDataType.Int32,
    int: SearchFieldDataType.Int64,
    np.int64: SearchFieldDataType.Int64,
    float: SearchFieldDataType.Double,
    datetime: SearchFieldDataType.DateTimeOffset,
    date: SearchFieldDataType.DateTimeOffset,
}


def algorithm_config_name(vector: VectorProperty) -> str:
    return f"{vector.storage_name}AlgoConfig"


def profile_name(vector: VectorProperty) -> str:
    return f"{vector.storage_name}Profile"


def get_metric(vector: VectorProperty) -> VectorSearchAlgorithmMetric:
    try:
        return _METRICS[vector.distance_function]
    except KeyError:
        raise ConfigurationError(
            f"Distance function '{vector.distance_function.value}' on vector property "
            f"'{vector.name}' is not supported by Azure AI Search. Supported: "
            + ", ".join(f.value for f in _METRICS),
            db_system=DB_SYSTEM,
        ) from None


def build_algorithm_configuration(vector: VectorProperty):
    metric = get_metric(vector)
    if vector.index_kind == IndexKind.HNSW:
        return HnswAlgorithmConfiguration(
            name=algorithm_config_name(vector),
            parameters=HnswParameters(metric=metric),
        )
    if vector.index_kind == IndexKind.FLAT:
        return ExhaustiveKnnAlgorithmConfiguration(
            name=algorithm_config_name(vector),
            parameters=ExhaustiveKnnParameters(metric=metric),
        )
    raise ConfigurationError(
        f"Index kind '{vector.index_kind.value}' on vector property '{vector.name}' is not "
        f"supported by Azure AI Search",
        db_system=DB_SYSTEM,
    )


def get_field_data_type(data: DataProperty) -> str:
    """Return the index field type for a data property, collections included."""
    if data.property_type is None:
        raise ConfigurationError(
            f"Property type of data property '{data.name}' is required to create an "
            f"Azure AI Search index",
            db_system=DB_SYSTEM,
        )

    property_type = unwrap_optional(data.property_type)
    if property_type in FIELD_DATA_TYPES:
        return FIELD_DATA_TYPES[property_type]

    element_type = get_collection_element_type(property_type)
    if element_type in FIELD_DATA_TYPES:
        return SearchFieldDataType.Collection(FIELD_DATA_TYPES[element_type])

    raise ConfigurationError(
        f"Data property '{data.name}' of type {data.property_type!r} cannot be mapped "
        f"to an Azure AI Search field type",
        db_system=DB_SYSTEM,
    )


def _data_field(data: DataProperty) -> Any:
    field_type = get_field_data_type(data)
    if data.is_full_text_searchable:
        if field_type not in (
            SearchFieldDataType.String,
            SearchFieldDataType.Collection(SearchFieldDataType.String),
        ):
            raise ConfigurationError(
                f"Full text searchable data property '{data.name}' must be a string "
                f"or list of strings",
                db_system=DB_SYSTEM,
            )
        return SearchableField(
            name=data.storage_name,
            collection=field_type != SearchFieldDataType.String,
            filterable=data.is_filterable,
        )
    return SimpleField(name=data.storage_name, type=field_type, filterable=data.is_filterable)


def build_search_index(name: str, schema: RecordSchema) -> SearchIndex:
    """
    Translate a record schema into an Azure AI Search index definition.

    Raises:
        ConfigurationError: For missing dimensions, unsupported index kinds,
            distance functions or data types
    """
    validate_dimensions(schema, DB_SYSTEM)

    fields: List[Any] = [
        SearchableField(name=schema.key_property.storage_name, key=True, filterable=True)
    ]
    fields.extend(_data_field(data) for data in schema.data_properties)

    algorithms = []
    profiles = []
    for vector in schema.vector_properties:
        algorithms.append(build_algorithm_configuration(vector))
        profiles.append(
            VectorSearchProfile(
                name=profile_name(vector),
                algorithm_configuration_name=algorithm_config_name(vector),
            )
        )
        fields.append(
            SearchField(
                name=vector.storage_name,
                type=SearchFieldDataType.Collection(SearchFieldDataType.Single),
                searchable=True,
                vector_search_dimensions=vector.dimensions,
                vector_search_profile_name=profile_name(vector),
            )
        )

    return SearchIndex(
        name=name,
        fields=fields,
        vector_search=VectorSearch(algorithms=algorithms, profiles=profiles),
    )


class AzureAISearchCollectionManager(BaseCollectionManager):
    """Manages Azure AI Search indexes acting as collections."""

    db_system = DB_SYSTEM
    transport_errors = (AzureError,)

    def __init__(self, client: SearchIndexClient):
        super().__init__()
        self._client = client

    async def create_collection(self, name: str, schema: RecordSchema) -> None:
        index = build_search_index(name, schema)

        with self._operation("create_collection", name):
            try:
                await self._client.create_index(index)
            except ResourceExistsError as e:
                raise CollectionAlreadyExistsError(name, self.db_system) from e
            except HttpResponseError as e:
                if e.status_code == 409:
                    raise CollectionAlreadyExistsError(name, self.db_system) from e
                raise

        self.logger.info(f"Created Azure AI Search index '{name}'")

    async def collection_exists(self, name: str) -> bool:
        with self._operation("collection_exists", name):
            try:
                await self._client.get_index(name)
            except ResourceNotFoundError:
                return False
            return True

    async def delete_collection(self, name: str) -> None:
        with self._operation("delete_collection", name):
            await self._client.delete_index(name)
        self.logger.info(f"Deleted Azure AI Search index '{name}'")

    async def list_collection_names(self) -> AsyncIterator[str]:
        with self._operation("list_collection_names"):
            names = [index_name async for index_name in self._client.list_index_names()]
        for index_name in names:
            yield index_name
