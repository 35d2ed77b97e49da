from typing import Any, Dict, Tuple

from vectordata_core.core.exceptions import RecordMappingError
from vectordata_core.schema.definition import RecordSchema

from ..record_adapter import RecordModelAdapter

SEARCH_METADATA_PREFIX = "@search."


class AzureAISearchRecordMapper:
    """
    Maps records to Azure AI Search documents.

    Documents carry the key field alongside data and vector fields. Search
    metadata such as ``@search.score`` is ignored on read.
    """

    def __init__(self, record_type: type, schema: RecordSchema):
        self._adapter = RecordModelAdapter(record_type, schema)
        self._key_storage_name = schema.key_property.storage_name
        self._vector_storage_names = {p.storage_name for p in schema.vector_properties}

    def to_storage(self, record: Any) -> Tuple[str, Dict[str, Any]]:
        key = self._adapter.get_key(record)
        document = {
            name: value
            for name, value in self._adapter.dump(record).items()
            if value is not None or name not in self._vector_storage_names
        }
        document[self._key_storage_name] = key
        return key, document

    def from_storage(self, key: str, storage_model: Dict[str, Any], include_vectors: bool) -> Any:
        if not isinstance(storage_model, dict):
            raise RecordMappingError(
                f"Invalid data format for document with key '{key}': "
                f"expected an object, got {type(storage_model).__name__}"
            )
        values = {
            name: value
            for name, value in storage_model.items()
            if not name.startswith(SEARCH_METADATA_PREFIX) and name != self._key_storage_name
        }
        return self._adapter.load(key, values, include_vectors)
