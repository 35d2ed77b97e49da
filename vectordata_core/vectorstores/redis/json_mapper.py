from typing import Any, Dict, Tuple

from vectordata_core.core.exceptions import RecordMappingError
from vectordata_core.schema.definition import RecordSchema

from ..record_adapter import RecordModelAdapter


class RedisJsonRecordMapper:
    """
    Maps records to RedisJSON documents.

    The key is removed from the document and carried as the Redis key, so a
    stored document must never contain the key field.
    """

    def __init__(self, record_type: type, schema: RecordSchema):
        self._adapter = RecordModelAdapter(record_type, schema)
        self._key_storage_name = schema.key_property.storage_name

    def to_storage(self, record: Any) -> Tuple[str, Dict[str, Any]]:
        key = self._adapter.get_key(record)
        document = self._adapter.dump(record)
        document.pop(self._key_storage_name, None)
        return key, document

    def from_storage(self, key: str, storage_model: Dict[str, Any], include_vectors: bool) -> Any:
        if not isinstance(storage_model, dict):
            raise RecordMappingError(
                f"Invalid data format for document with key '{key}': "
                f"expected a JSON object, got {type(storage_model).__name__}"
            )
        if self._key_storage_name in storage_model:
            raise RecordMappingError(
                f"Document with key '{key}' already contains a property named "
                f"'{self._key_storage_name}', which is reserved for the key"
            )
        return self._adapter.load(key, storage_model, include_vectors)
