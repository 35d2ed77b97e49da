"""
vectordata-core

Store and retrieve vector records, consumer types mixing metadata fields with
embedding vectors, against interchangeable vector store backends.
"""

from .core.exceptions import (
    CollectionAlreadyExistsError,
    ConfigurationError,
    RecordMappingError,
    RecordNotFoundError,
    SchemaError,
    UnsupportedTypeError,
    VectorStoreError,
    VectorStoreOperationError,
)
from .schema import (
    DataProperty,
    DistanceFunction,
    IndexKind,
    Int32,
    Int64,
    KeyProperty,
    RecordData,
    RecordKey,
    RecordSchema,
    RecordVector,
    VectorProperty,
    read_record_schema,
)
from .vectorstores import (
    BaseRecordCollection,
    BaseVectorStore,
    InMemoryVectorStore,
    create_vector_store,
    get_vector_store,
)

__version__ = "0.1.0"

__all__ = [
    "BaseRecordCollection",
    "BaseVectorStore",
    "CollectionAlreadyExistsError",
    "ConfigurationError",
    "DataProperty",
    "DistanceFunction",
    "IndexKind",
    "InMemoryVectorStore",
    "Int32",
    "Int64",
    "KeyProperty",
    "RecordData",
    "RecordKey",
    "RecordMappingError",
    "RecordNotFoundError",
    "RecordSchema",
    "RecordVector",
    "SchemaError",
    "UnsupportedTypeError",
    "VectorProperty",
    "VectorStoreError",
    "VectorStoreOperationError",
    "create_vector_store",
    "get_vector_store",
    "read_record_schema",
]
