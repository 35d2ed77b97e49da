"""
Record model adapter

Converts consumer records (pydantic models or dataclasses) to and from plain
dictionaries keyed by storage names, using a pydantic ``TypeAdapter`` for the
record type. Backend mappers build their native payloads on top of these
dictionaries.
"""

import dataclasses
from typing import Any, Dict, FrozenSet, Generic, Mapping, TypeVar

from pydantic import TypeAdapter, ValidationError
from pydantic.errors import PydanticSchemaGenerationError

from vectordata_core.core.exceptions import RecordMappingError, SchemaError
from vectordata_core.schema.definition import RecordSchema

TRecord = TypeVar("TRecord")


class RecordModelAdapter(Generic[TRecord]):
    """Dump and validate records of one type against its record schema."""

    def __init__(self, record_type: type, schema: RecordSchema):
        self.record_type = record_type
        self.schema = schema
        try:
            self._type_adapter = TypeAdapter(record_type)
        except PydanticSchemaGenerationError as e:
            raise SchemaError(
                f"Record type {record_type.__name__} cannot be serialized: {e}"
            ) from e
        self._defaulted_fields = _fields_with_defaults(record_type)

    def get_key(self, record: TRecord) -> Any:
        key_name = self.schema.key_property.name
        try:
            key = getattr(record, key_name)
        except AttributeError as e:
            raise RecordMappingError(
                f"Record of type {type(record).__name__} has no key attribute '{key_name}'"
            ) from e
        if key is None:
            raise RecordMappingError(f"Key property '{key_name}' must not be None")
        return key

    def dump(self, record: TRecord, json_mode: bool = True) -> Dict[str, Any]:
        """
        Dump a record to a dictionary keyed by storage name.

        Only schema properties are included. With ``json_mode`` values are
        JSON-compatible (datetimes as ISO strings, UUIDs as strings).
        """
        if not isinstance(record, self.record_type):
            raise RecordMappingError(
                f"Expected record of type {self.record_type.__name__}, "
                f"got {type(record).__name__}"
            )
        try:
            values = self._type_adapter.dump_python(
                record, mode="json" if json_mode else "python"
            )
        except (ValueError, TypeError) as e:
            raise RecordMappingError(f"Unable to serialize record: {e}") from e

        return {
            prop.storage_name: values.get(prop.name) for prop in self.schema.properties
        }

    def load(
        self,
        key: Any,
        storage_values: Mapping[str, Any],
        include_vectors: bool,
    ) -> TRecord:
        """
        Build a record from storage-name keyed values.

        Properties missing from ``storage_values`` are left to the record
        type's defaults. Vectors are only read when ``include_vectors`` is set;
        otherwise they take their default, or None when the record type
        declares no default.
        """
        key_prop = self.schema.key_property
        values: Dict[str, Any] = {key_prop.name: key}

        for data in self.schema.data_properties:
            if data.storage_name in storage_values:
                values[data.name] = storage_values[data.storage_name]

        for vector in self.schema.vector_properties:
            value = storage_values.get(vector.storage_name) if include_vectors else None
            if value is not None:
                values[vector.name] = value
            elif vector.name not in self._defaulted_fields:
                values[vector.name] = None

        try:
            return self._type_adapter.validate_python(values)
        except ValidationError as e:
            raise RecordMappingError(
                f"Stored payload does not match {self.record_type.__name__}: {e}"
            ) from e


def _fields_with_defaults(record_type: type) -> FrozenSet[str]:
    model_fields = getattr(record_type, "model_fields", None)
    if model_fields is not None:
        return frozenset(
            name for name, info in model_fields.items() if not info.is_required()
        )
    if dataclasses.is_dataclass(record_type):
        return frozenset(
            f.name
            for f in dataclasses.fields(record_type)
            if f.default is not dataclasses.MISSING
            or f.default_factory is not dataclasses.MISSING
        )
    return frozenset()
