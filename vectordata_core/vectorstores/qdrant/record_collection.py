import uuid
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, List, Optional, Tuple

import numpy as np
from qdrant_client import AsyncQdrantClient
from qdrant_client.http import models
from qdrant_client.http.exceptions import ResponseHandlingException, UnexpectedResponse

from vectordata_core.schema.definition import RecordSchema
from vectordata_core.schema.validation import validate_data_types, validate_single_vector

from ..base import BaseRecordCollection, RecordMapper
from .collection import DB_SYSTEM, QdrantCollectionManager
from .mapper import QdrantRecordMapper, normalize_point_id, to_point_id


@dataclass
class QdrantRecordCollectionOptions:
    """Options for ``QdrantRecordCollection``."""

    has_named_vectors: bool = False
    mapper: Optional[RecordMapper] = None


class QdrantRecordCollection(BaseRecordCollection):
    """Record collection storing each record as a Qdrant point."""

    db_system = DB_SYSTEM
    supported_key_types = (int, uuid.UUID)
    supported_vector_element_types = (np.float32,)
    supported_data_types = (str, int, float, bool, datetime, date)
    transport_errors = (UnexpectedResponse, ResponseHandlingException)

    def __init__(
        self,
        client: AsyncQdrantClient,
        collection_name: str,
        record_type: type,
        options: Optional[QdrantRecordCollectionOptions] = None,
        definition: Optional[RecordSchema] = None,
    ):
        self._options = options or QdrantRecordCollectionOptions()
        super().__init__(
            collection_name,
            record_type,
            QdrantCollectionManager(client, self._options.has_named_vectors),
            definition,
        )
        self._client = client
        self._mapper = self._options.mapper or QdrantRecordMapper(
            record_type, self._schema, self._options.has_named_vectors
        )

    def _validate_schema(self, schema: RecordSchema) -> None:
        super()._validate_schema(schema)
        validate_data_types(
            schema, self.supported_data_types, supports_collections=True, db_system=self.db_system
        )
        if not self._options.has_named_vectors:
            validate_single_vector(schema, self.db_system)

    async def _fetch(self, keys: List[Any], include_vectors: bool) -> List[Optional[Any]]:
        point_ids = [to_point_id(key) for key in keys]
        points = await self._client.retrieve(
            collection_name=self._collection_name,
            ids=point_ids,
            with_payload=True,
            with_vectors=include_vectors,
        )
        # Qdrant returns found points in no particular order
        by_id = {normalize_point_id(point.id): point for point in points}
        return [by_id.get(point_id) for point_id in point_ids]

    async def _store(self, items: List[Tuple[Any, Any]]) -> None:
        await self._client.upsert(
            collection_name=self._collection_name,
            points=[point for _, point in items],
            wait=True,
        )

    async def _remove(self, keys: List[Any]) -> None:
        await self._client.delete(
            collection_name=self._collection_name,
            points_selector=models.PointIdsList(points=[to_point_id(key) for key in keys]),
            wait=True,
        )
