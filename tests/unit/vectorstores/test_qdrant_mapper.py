"""
Test Qdrant point mapping
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Annotated, Optional

import pytest
from qdrant_client.http import models

from vectordata_core.core.exceptions import RecordMappingError
from vectordata_core.schema import RecordData, RecordKey, RecordVector, read_record_schema
from vectordata_core.vectorstores.qdrant.mapper import (
    QdrantRecordMapper,
    normalize_point_id,
    to_point_id,
)


@dataclass
class Hotel:
    hotel_id: Annotated[int, RecordKey()]
    hotel_name: Annotated[str, RecordData(is_filterable=True)]
    opened: Annotated[Optional[datetime], RecordData()] = None
    description_embedding: Annotated[
        Optional[list[float]], RecordVector(dimensions=4)
    ] = None


@dataclass
class MultiVectorHotel:
    hotel_id: Annotated[uuid.UUID, RecordKey()]
    hotel_name: Annotated[str, RecordData()]
    name_embedding: Annotated[
        Optional[list[float]], RecordVector(dimensions=2, storage_name="name_vec")
    ] = None
    description_embedding: Annotated[
        Optional[list[float]], RecordVector(dimensions=2)
    ] = None


class TestPointIds:
    """Test key to point id conversion"""

    def test_integer_ids(self):
        """Test non-negative integers are used as is"""
        assert to_point_id(0) == 0
        assert to_point_id(42) == 42

    def test_uuid_ids(self):
        """Test UUID keys become canonical strings"""
        key = uuid.uuid4()
        assert to_point_id(key) == str(key)

    @pytest.mark.parametrize("key", [-1, True, "h1", 1.5])
    def test_invalid_ids(self, key):
        """Test negative, boolean, string and float keys are rejected"""
        with pytest.raises(RecordMappingError):
            to_point_id(key)

    def test_normalize_point_id(self):
        """Test ids returned by Qdrant compare equal to converted keys"""
        key = uuid.uuid4()
        assert normalize_point_id(str(key).upper()) == to_point_id(key)
        assert normalize_point_id(7) == 7


class TestQdrantRecordMapper:
    """Test record to point conversion"""

    def test_unnamed_vector(self, hotel_vector):
        """Test the single vector becomes the point's unnamed vector"""
        mapper = QdrantRecordMapper(Hotel, read_record_schema(Hotel))
        opened = datetime(2024, 5, 1, tzinfo=timezone.utc)

        key, point = mapper.to_storage(Hotel(1, "Paradise Patch", opened, hotel_vector))

        assert key == 1
        assert point.id == 1
        assert point.vector == hotel_vector
        assert point.payload["hotel_name"] == "Paradise Patch"
        assert "hotel_id" not in point.payload
        assert isinstance(point.payload["opened"], str)

    def test_unnamed_vector_required(self):
        """Test records need their vector when named vectors are disabled"""
        mapper = QdrantRecordMapper(Hotel, read_record_schema(Hotel))

        with pytest.raises(RecordMappingError):
            mapper.to_storage(Hotel(1, "Paradise Patch"))

    def test_from_storage(self, hotel_vector):
        """Test points load back into records"""
        mapper = QdrantRecordMapper(Hotel, read_record_schema(Hotel))
        point = models.Record(
            id=1,
            payload={"hotel_name": "Paradise Patch", "opened": "2024-05-01T00:00:00Z"},
            vector=hotel_vector,
        )

        record = mapper.from_storage(1, point, include_vectors=True)

        assert record.hotel_name == "Paradise Patch"
        assert record.opened == datetime(2024, 5, 1, tzinfo=timezone.utc)
        assert record.description_embedding == hotel_vector

        without_vectors = mapper.from_storage(1, point, include_vectors=False)
        assert without_vectors.description_embedding is None

    def test_named_vectors(self):
        """Test named vectors are keyed by storage name"""
        mapper = QdrantRecordMapper(
            MultiVectorHotel, read_record_schema(MultiVectorHotel), has_named_vectors=True
        )
        key = uuid.uuid4()

        _, point = mapper.to_storage(
            MultiVectorHotel(key, "Paradise Patch", [0.5, 0.25], [1.0, 2.0])
        )

        assert point.id == str(key)
        assert point.vector == {"name_vec": [0.5, 0.25], "description_embedding": [1.0, 2.0]}

        record = mapper.from_storage(
            key,
            models.Record(id=str(key), payload=point.payload, vector=point.vector),
            include_vectors=True,
        )
        assert record == MultiVectorHotel(key, "Paradise Patch", [0.5, 0.25], [1.0, 2.0])

    def test_named_vector_mismatch(self):
        """Test an unnamed vector cannot be read when named vectors are expected"""
        mapper = QdrantRecordMapper(
            MultiVectorHotel, read_record_schema(MultiVectorHotel), has_named_vectors=True
        )
        key = uuid.uuid4()

        with pytest.raises(RecordMappingError):
            mapper.from_storage(
                key,
                models.Record(id=str(key), payload={"hotel_name": "x"}, vector=[0.5, 0.25]),
                include_vectors=True,
            )
