"""
Type validation

Checks a record schema against the key, vector element and data types a
backend can represent. Validation runs once, when a record collection is
constructed, and raises ``UnsupportedTypeError`` on the first violation.
"""

from datetime import date, datetime
from typing import Any, Collection, Optional

from vectordata_core.core.exceptions import ConfigurationError, UnsupportedTypeError

from .definition import RecordSchema, get_collection_element_type, unwrap_optional

SCALAR_DATA_TYPES = (str, int, float, bool)
SCALAR_AND_DATETIME_DATA_TYPES = (str, int, float, bool, datetime, date)


def _type_name(value: Any) -> str:
    return getattr(value, "__name__", repr(value))


def _describe(types: Collection[Any]) -> str:
    return ", ".join(_type_name(t) for t in types)


def validate_key_type(
    schema: RecordSchema, supported_key_types: Collection[type], db_system: Optional[str] = None
) -> None:
    key = schema.key_property
    key_type = unwrap_optional(key.property_type)
    if key_type not in supported_key_types:
        raise UnsupportedTypeError(
            f"Key property '{key.name}' has unsupported type {_type_name(key_type)}. "
            f"Supported key types: {_describe(supported_key_types)}",
            property_name=key.name,
            property_type=key_type,
            db_system=db_system,
        )


def validate_vector_element_types(
    schema: RecordSchema,
    supported_element_types: Collection[Any],
    db_system: Optional[str] = None,
) -> None:
    for vector in schema.vector_properties:
        if vector.element_type not in supported_element_types:
            raise UnsupportedTypeError(
                f"Vector property '{vector.name}' has unsupported element type "
                f"{_type_name(vector.element_type)}. "
                f"Supported element types: {_describe(supported_element_types)}",
                property_name=vector.name,
                property_type=vector.element_type,
                db_system=db_system,
            )


def validate_data_types(
    schema: RecordSchema,
    supported_data_types: Collection[Any],
    supports_collections: bool = False,
    db_system: Optional[str] = None,
) -> None:
    """Validate data property types; properties without a declared type are skipped.

    With ``supports_collections``, ``list[T]`` is accepted when ``T`` is supported.
    """
    for data in schema.data_properties:
        if data.property_type is None:
            continue
        data_type = unwrap_optional(data.property_type)
        if data_type in supported_data_types:
            continue
        element_type = get_collection_element_type(data_type)
        if supports_collections and element_type in supported_data_types:
            continue
        raise UnsupportedTypeError(
            f"Data property '{data.name}' has unsupported type {data_type!r}. "
            f"Supported types: {_describe(supported_data_types)}"
            + (" and lists of those" if supports_collections else ""),
            property_name=data.name,
            property_type=data_type,
            db_system=db_system,
        )


def validate_single_vector(schema: RecordSchema, db_system: Optional[str] = None) -> None:
    """Reject schemas with several vectors for backends with a single vector slot."""
    vectors = schema.vector_properties
    if len(vectors) > 1:
        names = ", ".join(v.name for v in vectors)
        raise ConfigurationError(
            f"Only one vector property is supported without named vectors, found: {names}",
            db_system=db_system,
        )


def validate_dimensions(schema: RecordSchema, db_system: Optional[str] = None) -> None:
    """Dimensions must be known and positive before a collection is created."""
    for vector in schema.vector_properties:
        if vector.dimensions is None or vector.dimensions <= 0:
            raise ConfigurationError(
                f"Vector property '{vector.name}' must have a positive dimensions value "
                f"to create a collection, got {vector.dimensions!r}",
                db_system=db_system,
            )
