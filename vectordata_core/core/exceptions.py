"""
Exception Classes for Vector Record Stores

Defines the error taxonomy shared by all backends. Schema and configuration
errors are fatal at construction time, mapping and not-found errors surface
per operation, and backend transport failures are wrapped into a single
operation-level error that keeps the backend's message.
"""

from typing import Any, Optional


class VectorStoreError(Exception):
    """Base exception for vector store errors."""

    def __init__(
        self,
        message: str,
        db_system: Optional[str] = None,
        details: Optional[dict] = None,
    ):
        self.message = message
        self.db_system = db_system
        self.details = details or {}
        super().__init__(message)


class SchemaError(VectorStoreError):
    """
    Malformed or ambiguous record declaration.

    Examples: no key property, more than one key property, a property marked
    as both data and vector, a vector property without a resolvable element type.
    """


class ConfigurationError(VectorStoreError):
    """
    The record declaration asks for something the target backend cannot represent.

    Examples: missing vector dimensions, unsupported index kind or distance function.
    """


class UnsupportedTypeError(ConfigurationError):
    """Raised when a key, data or vector element type is not supported by a backend."""

    def __init__(
        self,
        message: str,
        property_name: Optional[str] = None,
        property_type: Any = None,
        db_system: Optional[str] = None,
    ):
        super().__init__(message, db_system)
        self.property_name = property_name
        self.property_type = property_type


class RecordMappingError(VectorStoreError):
    """
    A record could not be converted to or from its storage representation.

    Not retried: it indicates a mismatch between stored data and the schema.
    """

    def __init__(
        self,
        message: str,
        db_system: Optional[str] = None,
        collection_name: Optional[str] = None,
        operation_name: Optional[str] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message, db_system, details)
        self.collection_name = collection_name
        self.operation_name = operation_name


class RecordNotFoundError(VectorStoreError):
    """Raised when a requested key does not exist in a collection."""

    def __init__(
        self,
        key: Any,
        collection_name: Optional[str] = None,
        db_system: Optional[str] = None,
    ):
        message = f"Record with key '{key}' not found in collection '{collection_name}'"
        super().__init__(message, db_system)
        self.key = key
        self.collection_name = collection_name


class VectorStoreOperationError(VectorStoreError):
    """Wraps a failure reported by the backend client."""

    def __init__(
        self,
        message: str,
        db_system: Optional[str] = None,
        collection_name: Optional[str] = None,
        operation_name: Optional[str] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message, db_system, details)
        self.collection_name = collection_name
        self.operation_name = operation_name


class CollectionAlreadyExistsError(VectorStoreOperationError):
    """Raised when the backend reports that a collection already exists."""

    def __init__(self, collection_name: str, db_system: Optional[str] = None):
        super().__init__(
            f"Collection '{collection_name}' already exists",
            db_system=db_system,
            collection_name=collection_name,
            operation_name="create_collection",
        )
