"""
Record Schema Module

Declarative record markers, the immutable record schema model, schema
derivation from annotated record types and backend type validation.
"""

from .annotations import Int32, Int64, RecordData, RecordKey, RecordVector
from .definition import (
    DataProperty,
    DistanceFunction,
    IndexKind,
    KeyProperty,
    RecordSchema,
    VectorProperty,
)
from .reader import derive_schema, read_record_schema, resolve_record_schema

__all__ = [
    "DataProperty",
    "DistanceFunction",
    "IndexKind",
    "Int32",
    "Int64",
    "KeyProperty",
    "RecordData",
    "RecordKey",
    "RecordSchema",
    "RecordVector",
    "VectorProperty",
    "derive_schema",
    "read_record_schema",
    "resolve_record_schema",
]
