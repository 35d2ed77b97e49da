"""
Schema reader

Derives a ``RecordSchema`` from the ``Annotated`` markers on a record type.
Derivation happens once per type; the result is cached for the lifetime of
the process.
"""

import logging
from functools import lru_cache
from typing import (
    Annotated,
    Any,
    ClassVar,
    Iterator,
    List,
    Optional,
    Tuple,
    get_args,
    get_origin,
    get_type_hints,
)

from pydantic import BaseModel

from vectordata_core.core.exceptions import SchemaError

from .annotations import RECORD_MARKERS, RecordData, RecordKey, RecordVector
from .definition import (
    DataProperty,
    DistanceFunction,
    IndexKind,
    KeyProperty,
    PropertyDescriptor,
    RecordSchema,
    VectorProperty,
)

logger = logging.getLogger(__name__)


def _split_annotation(hint: Any):
    """Return ``(inner_type, markers)`` for a possibly ``Annotated`` hint."""
    if get_origin(hint) is not Annotated:
        return hint, []
    inner_type, *metadata = get_args(hint)
    markers = [item for item in metadata if isinstance(item, RECORD_MARKERS)]
    return inner_type, markers


def _is_class_var(hint: Any) -> bool:
    return hint is ClassVar or get_origin(hint) is ClassVar


def _iter_marked_attributes(record_type: type) -> Iterator[Tuple[str, Any, list]]:
    """Yield (name, inner_type, markers) for public attributes in declaration order."""
    if issubclass(record_type, BaseModel):
        # Pydantic keeps unknown Annotated metadata on the field info
        for name, field_info in record_type.model_fields.items():
            markers = [m for m in field_info.metadata if isinstance(m, RECORD_MARKERS)]
            yield name, field_info.annotation, markers
        return

    try:
        hints = get_type_hints(record_type, include_extras=True)
    except (NameError, TypeError) as e:
        raise SchemaError(
            f"Unable to resolve annotations of {record_type.__name__}: {e}"
        ) from e

    for name, hint in hints.items():
        if name.startswith("_") or _is_class_var(hint):
            continue
        inner_type, markers = _split_annotation(hint)
        yield name, inner_type, markers


def _build_property(
    record_type: type, name: str, inner_type: Any, marker: Any
) -> PropertyDescriptor:
    if isinstance(marker, RecordKey):
        return KeyProperty(
            name=name,
            property_type=inner_type,
            storage_property_name=marker.storage_name,
        )

    if isinstance(marker, RecordData):
        return DataProperty(
            name=name,
            property_type=inner_type,
            storage_property_name=marker.storage_name,
            is_filterable=marker.is_filterable,
            is_full_text_searchable=marker.is_full_text_searchable,
        )

    try:
        return VectorProperty(
            name=name,
            dimensions=marker.dimensions,
            property_type=inner_type,
            storage_property_name=marker.storage_name,
            index_kind=marker.index_kind or IndexKind.HNSW,
            distance_function=marker.distance_function
            or DistanceFunction.COSINE_SIMILARITY,
            element_type=marker.element_type,
        )
    except SchemaError as e:
        raise SchemaError(f"{record_type.__name__}: {e.message}") from e


@lru_cache(maxsize=None)
def read_record_schema(record_type: type) -> RecordSchema:
    """
    Derive the record schema of a record type from its property markers.

    Args:
        record_type: Pydantic model or dataclass whose attributes are annotated
            with ``RecordKey``, ``RecordData`` and ``RecordVector`` markers

    Returns:
        RecordSchema with properties in declaration order

    Raises:
        SchemaError: If the type cannot be inspected, has no key or several keys,
            an attribute carries more than one marker, or a vector attribute has
            no resolvable element type
    """
    if not isinstance(record_type, type):
        raise SchemaError(f"Record type must be a class, got {record_type!r}")

    properties: List[PropertyDescriptor] = []
    for name, inner_type, markers in _iter_marked_attributes(record_type):
        if not markers:
            continue
        if len(markers) > 1:
            kinds = ", ".join(type(m).__name__ for m in markers)
            raise SchemaError(
                f"Property '{name}' of {record_type.__name__} has conflicting markers: {kinds}"
            )

        properties.append(_build_property(record_type, name, inner_type, markers[0]))

    try:
        schema = RecordSchema(properties)
    except SchemaError as e:
        raise SchemaError(f"{record_type.__name__}: {e.message}") from e

    logger.debug(
        f"Derived record schema for {record_type.__name__}: "
        f"{len(schema.data_properties)} data, {len(schema.vector_properties)} vector properties"
    )
    return schema


def resolve_record_schema(
    record_type: type, definition: Optional[RecordSchema] = None
) -> RecordSchema:
    """Return the explicit definition if given, otherwise the derived schema."""
    if definition is not None:
        if not isinstance(definition, RecordSchema):
            raise SchemaError(
                f"Record definition must be a RecordSchema, got {type(definition).__name__}"
            )
        return definition
    return read_record_schema(record_type)


derive_schema = read_record_schema
