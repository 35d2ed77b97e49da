"""
Redis hash record mapping

Each data property becomes one hash entry. Vector properties are packed into
little-endian IEEE-754 bytes (four bytes per element for single precision,
eight for double precision), one entry per vector property. Vectors declared
with plain Python floats are packed at double precision.
"""

from typing import Any, Dict, Mapping, Tuple, Union

import numpy as np

from vectordata_core.core.exceptions import RecordMappingError
from vectordata_core.schema.definition import RecordSchema, VectorProperty

from ..record_adapter import RecordModelAdapter
from .collection import RedisStorageType, get_stored_element_type

HashValue = Union[bytes, str, int, float]

_BYTE_ORDER_DTYPES = {
    np.float32: np.dtype("<f4"),
    np.float64: np.dtype("<f8"),
}


def _vector_dtype(vector: VectorProperty) -> np.dtype:
    element_type = get_stored_element_type(vector, RedisStorageType.HASH_SET)
    try:
        return _BYTE_ORDER_DTYPES[element_type]
    except KeyError:
        raise RecordMappingError(
            f"Unsupported element type {element_type!r} for vector property "
            f"'{vector.name}'; only float32 and float64 vectors can be stored in hashes"
        ) from None


def encode_vector(values: Any, vector: VectorProperty) -> bytes:
    """Pack a sequence of floats into contiguous little-endian bytes."""
    return np.asarray(values, dtype=_vector_dtype(vector)).tobytes()


def decode_vector(raw: Any, vector: VectorProperty) -> list:
    """Unpack bytes written by ``encode_vector`` into a list of floats."""
    dtype = _vector_dtype(vector)
    if not isinstance(raw, (bytes, bytearray, memoryview)):
        raise RecordMappingError(
            f"Vector property '{vector.name}' must be read as bytes; "
            f"create the Redis client with decode_responses=False"
        )
    if len(raw) % dtype.itemsize:
        raise RecordMappingError(
            f"Vector property '{vector.name}' holds {len(raw)} bytes, "
            f"which is not a multiple of {dtype.itemsize}"
        )
    return np.frombuffer(raw, dtype=dtype).tolist()


def _encode_scalar(name: str, value: Any) -> HashValue:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (str, int, float, bytes)):
        return value
    raise RecordMappingError(
        f"Data property '{name}' holds a {type(value).__name__}; "
        f"hash entries only support scalar values"
    )


def _decode_text(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8")
    return value


class RedisHashSetRecordMapper:
    """Maps records to Redis hash entries."""

    def __init__(self, record_type: type, schema: RecordSchema):
        self._schema = schema
        self._adapter = RecordModelAdapter(record_type, schema)
        self._key_storage_name = schema.key_property.storage_name

    def to_storage(self, record: Any) -> Tuple[str, Dict[str, HashValue]]:
        key = self._adapter.get_key(record)
        values = self._adapter.dump(record)

        entries: Dict[str, HashValue] = {}
        for data in self._schema.data_properties:
            value = values.get(data.storage_name)
            if value is not None:
                entries[data.storage_name] = _encode_scalar(data.name, value)

        for vector in self._schema.vector_properties:
            value = values.get(vector.storage_name)
            if value is not None:
                entries[vector.storage_name] = encode_vector(value, vector)

        return key, entries

    def from_storage(
        self, key: str, storage_model: Mapping[Any, Any], include_vectors: bool
    ) -> Any:
        entries = {_decode_text(name): value for name, value in storage_model.items()}
        if self._key_storage_name in entries:
            raise RecordMappingError(
                f"Hash with key '{key}' already contains an entry named "
                f"'{self._key_storage_name}', which is reserved for the key"
            )

        values: Dict[str, Any] = {}
        for data in self._schema.data_properties:
            value = entries.get(data.storage_name)
            if value is not None:
                values[data.storage_name] = _decode_text(value)

        if include_vectors:
            for vector in self._schema.vector_properties:
                raw = entries.get(vector.storage_name)
                if raw is not None:
                    values[vector.storage_name] = decode_vector(raw, vector)

        return self._adapter.load(key, values, include_vectors)
