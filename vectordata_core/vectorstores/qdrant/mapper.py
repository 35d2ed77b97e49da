import uuid
from typing import Any, Dict, Tuple, Union

from qdrant_client.http import models

from vectordata_core.core.exceptions import RecordMappingError
from vectordata_core.schema.definition import RecordSchema

from ..record_adapter import RecordModelAdapter

PointId = Union[int, str]


def to_point_id(key: Any) -> PointId:
    """Convert a record key to a Qdrant point id (unsigned integer or UUID string)."""
    if isinstance(key, bool):
        raise RecordMappingError(f"Boolean key {key!r} is not a valid Qdrant point id")
    if isinstance(key, int):
        if key < 0:
            raise RecordMappingError(f"Qdrant point ids must be non-negative, got {key}")
        return key
    if isinstance(key, uuid.UUID):
        return str(key)
    raise RecordMappingError(
        f"Unsupported key type {type(key).__name__}; Qdrant keys must be int or UUID"
    )


def normalize_point_id(point_id: Any) -> PointId:
    """Canonical form of a point id returned by Qdrant, comparable to ``to_point_id``."""
    if isinstance(point_id, str):
        return str(uuid.UUID(point_id))
    return int(point_id)


class QdrantRecordMapper:
    """
    Maps records to Qdrant points.

    Data properties go to the point payload. Vectors are stored as named
    vectors keyed by storage name, or as the point's single unnamed vector.
    """

    def __init__(self, record_type: type, schema: RecordSchema, has_named_vectors: bool = False):
        self._schema = schema
        self._adapter = RecordModelAdapter(record_type, schema)
        self._has_named_vectors = has_named_vectors

    def to_storage(self, record: Any) -> Tuple[Any, models.PointStruct]:
        key = self._adapter.get_key(record)
        values = self._adapter.dump(record)

        payload = {
            data.storage_name: values.get(data.storage_name)
            for data in self._schema.data_properties
        }

        if self._has_named_vectors:
            vector: Any = {
                prop.storage_name: values[prop.storage_name]
                for prop in self._schema.vector_properties
                if values.get(prop.storage_name) is not None
            }
        else:
            vector_property = self._schema.vector_properties[0]
            vector = values.get(vector_property.storage_name)
            if vector is None:
                raise RecordMappingError(
                    f"Vector property '{vector_property.name}' is required when "
                    f"named vectors are disabled"
                )

        return key, models.PointStruct(id=to_point_id(key), vector=vector, payload=payload)

    def from_storage(self, key: Any, storage_model: Any, include_vectors: bool) -> Any:
        payload = storage_model.payload or {}
        values: Dict[str, Any] = {
            data.storage_name: payload[data.storage_name]
            for data in self._schema.data_properties
            if data.storage_name in payload
        }

        vector = storage_model.vector
        if include_vectors and vector is not None:
            if self._has_named_vectors:
                if not isinstance(vector, dict):
                    raise RecordMappingError(
                        f"Point '{key}' has an unnamed vector but named vectors are enabled"
                    )
                for prop in self._schema.vector_properties:
                    if prop.storage_name in vector:
                        values[prop.storage_name] = vector[prop.storage_name]
            else:
                if isinstance(vector, dict):
                    raise RecordMappingError(
                        f"Point '{key}' has named vectors but named vectors are disabled"
                    )
                values[self._schema.vector_properties[0].storage_name] = vector

        return self._adapter.load(key, values, include_vectors)
