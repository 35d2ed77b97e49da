"""
Record property markers

Markers are placed in ``typing.Annotated`` metadata to declare how a record
attribute is stored:

    @dataclass
    class Hotel:
        hotel_id: Annotated[str, RecordKey()]
        hotel_name: Annotated[str, RecordData(is_filterable=True)]
        description_embedding: Annotated[
            Optional[list[float]], RecordVector(dimensions=4)
        ] = None

Attributes without a marker are not part of the record schema.
"""

from dataclasses import dataclass
from typing import Annotated, Any, Optional

import numpy as np
from pydantic import GetPydanticSchema
from pydantic_core import core_schema

from .definition import DistanceFunction, IndexKind


@dataclass(frozen=True)
class RecordKey:
    """Marks the attribute holding the record key."""

    storage_name: Optional[str] = None


@dataclass(frozen=True)
class RecordData:
    """Marks a metadata attribute."""

    is_filterable: bool = False
    is_full_text_searchable: bool = False
    storage_name: Optional[str] = None


@dataclass(frozen=True)
class RecordVector:
    """Marks an embedding attribute.

    ``element_type`` overrides the precision inferred from the annotation,
    e.g. ``numpy.float64`` for double precision vectors.
    """

    dimensions: Optional[int] = None
    index_kind: Optional[IndexKind] = None
    distance_function: Optional[DistanceFunction] = None
    element_type: Any = None
    storage_name: Optional[str] = None


RECORD_MARKERS = (RecordKey, RecordData, RecordVector)


def _sized_int(dtype: Any) -> Any:
    """Annotation for a fixed-width numpy integer, validated and serialized as int."""
    info = np.iinfo(dtype)

    def validate(value: int) -> Any:
        if not info.min <= value <= info.max:
            raise ValueError(f"Value {value} is out of range for {info.dtype}")
        return dtype(value)

    schema = core_schema.no_info_after_validator_function(
        validate,
        core_schema.int_schema(),
        serialization=core_schema.plain_serializer_function_ser_schema(
            int, return_schema=core_schema.int_schema()
        ),
    )
    return Annotated[dtype, GetPydanticSchema(lambda _source, _handler: schema)]


# Fixed-width integers, e.g. ``rooms: Annotated[Int32, RecordData()]``.
# Backends with sized integer fields (Azure AI Search Edm.Int32) map them
# to the matching width.
Int32 = _sized_int(np.int32)
Int64 = _sized_int(np.int64)
