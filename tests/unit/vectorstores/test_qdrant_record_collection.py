"""
Test Qdrant record collection operations with a mocked async client
"""

import uuid
from dataclasses import dataclass
from typing import Annotated, Optional
from unittest.mock import AsyncMock

import numpy as np
import pytest
from qdrant_client.http import models
from qdrant_client.http.exceptions import UnexpectedResponse

from vectordata_core.core.exceptions import (
    ConfigurationError,
    RecordNotFoundError,
    UnsupportedTypeError,
    VectorStoreOperationError,
)
from vectordata_core.schema import RecordData, RecordKey, RecordVector
from vectordata_core.vectorstores.qdrant import (
    QdrantRecordCollection,
    QdrantRecordCollectionOptions,
    QdrantVectorStore,
    QdrantVectorStoreOptions,
)


@dataclass
class Hotel:
    hotel_id: Annotated[int, RecordKey()]
    hotel_name: Annotated[str, RecordData(is_filterable=True)]
    tags: Annotated[Optional[list[str]], RecordData()] = None
    description_embedding: Annotated[
        Optional[list[float]], RecordVector(dimensions=4)
    ] = None


@dataclass
class StrKeyed:
    hotel_id: Annotated[str, RecordKey()]
    description_embedding: Annotated[
        Optional[list[float]], RecordVector(dimensions=4)
    ] = None


@dataclass
class DoubleHotel:
    hotel_id: Annotated[int, RecordKey()]
    description_embedding: Annotated[
        Optional[list[float]], RecordVector(dimensions=4, element_type=np.float64)
    ] = None


@dataclass
class TwoVectorHotel:
    hotel_id: Annotated[uuid.UUID, RecordKey()]
    name_embedding: Annotated[Optional[list[float]], RecordVector(dimensions=2)] = None
    description_embedding: Annotated[Optional[list[float]], RecordVector(dimensions=2)] = None


def _point(point_id, name, vector=None):
    return models.Record(id=point_id, payload={"hotel_name": name, "tags": None}, vector=vector)


@pytest.fixture
def client():
    return AsyncMock()


@pytest.fixture
def hotels(client):
    return QdrantRecordCollection(client, "hotels", Hotel)


class TestQdrantRecordCollection:
    """Test record operations"""

    @pytest.mark.asyncio
    async def test_upsert(self, client, hotels, hotel_vector):
        """Test records are written as points and the call waits for completion"""
        key = await hotels.upsert(Hotel(1, "Paradise Patch", ["pool"], hotel_vector))

        assert key == 1
        call = client.upsert.await_args
        assert call.kwargs["collection_name"] == "hotels"
        assert call.kwargs["wait"] is True
        (point,) = call.kwargs["points"]
        assert point.id == 1
        assert point.vector == hotel_vector
        assert point.payload == {"hotel_name": "Paradise Patch", "tags": ["pool"]}

    @pytest.mark.asyncio
    async def test_upsert_batch_single_call(self, client, hotels, hotel_vector):
        """Test batch upserts send all points in one request"""
        keys = await hotels.upsert_batch(
            [Hotel(1, "One", None, hotel_vector), Hotel(2, "Two", None, hotel_vector)]
        )

        assert keys == [1, 2]
        client.upsert.assert_awaited_once()
        assert [p.id for p in client.upsert.await_args.kwargs["points"]] == [1, 2]

    @pytest.mark.asyncio
    async def test_get(self, client, hotels, hotel_vector):
        """Test points are retrieved with vectors only when requested"""
        client.retrieve.return_value = [_point(1, "Paradise Patch", hotel_vector)]

        record = await hotels.get(1, include_vectors=True)

        assert record == Hotel(1, "Paradise Patch", None, hotel_vector)
        client.retrieve.assert_awaited_once_with(
            collection_name="hotels", ids=[1], with_payload=True, with_vectors=True
        )

    @pytest.mark.asyncio
    async def test_get_missing(self, client, hotels):
        """Test an empty retrieve result raises RecordNotFoundError"""
        client.retrieve.return_value = []

        with pytest.raises(RecordNotFoundError):
            await hotels.get(1)

    @pytest.mark.asyncio
    async def test_batch_results_follow_key_order(self, client, hotels):
        """Test points returned out of order are matched back to their keys"""
        client.retrieve.return_value = [_point(3, "Three"), _point(1, "One")]

        records = await hotels.try_get_batch([1, 2, 3])

        assert [r.hotel_name if r else None for r in records] == ["One", None, "Three"]
        with pytest.raises(RecordNotFoundError) as exc_info:
            await hotels.get_batch([1, 2, 3])
        assert exc_info.value.key == 2

    @pytest.mark.asyncio
    async def test_delete_batch(self, client, hotels):
        """Test deletes select points by id"""
        await hotels.delete_batch([1, 2])

        client.delete.assert_awaited_once_with(
            collection_name="hotels",
            points_selector=models.PointIdsList(points=[1, 2]),
            wait=True,
        )

    @pytest.mark.asyncio
    async def test_transport_errors_are_wrapped(self, client, hotels):
        """Test client failures surface as VectorStoreOperationError"""
        client.retrieve.side_effect = UnexpectedResponse(
            status_code=500, reason_phrase="Internal Server Error", content=b"boom", headers={}
        )

        with pytest.raises(VectorStoreOperationError) as exc_info:
            await hotels.get(1)
        assert exc_info.value.db_system == "qdrant"
        assert exc_info.value.collection_name == "hotels"

    def test_string_keys_rejected(self, client):
        """Test only integer and UUID keys are accepted"""
        with pytest.raises(UnsupportedTypeError):
            QdrantRecordCollection(client, "hotels", StrKeyed)

    def test_double_precision_rejected(self, client):
        """Test only single precision vectors are accepted"""
        with pytest.raises(UnsupportedTypeError):
            QdrantRecordCollection(client, "hotels", DoubleHotel)

    def test_several_vectors_need_named_vectors(self, client):
        """Test several vectors are only accepted with named vectors"""
        with pytest.raises(ConfigurationError):
            QdrantRecordCollection(client, "hotels", TwoVectorHotel)

        collection = QdrantRecordCollection(
            client,
            "hotels",
            TwoVectorHotel,
            QdrantRecordCollectionOptions(has_named_vectors=True),
        )
        assert len(collection.schema.vector_properties) == 2

    @pytest.mark.asyncio
    async def test_uuid_keys(self, client):
        """Test UUID keys round trip through string point ids"""
        collection = QdrantRecordCollection(
            client,
            "hotels",
            TwoVectorHotel,
            QdrantRecordCollectionOptions(has_named_vectors=True),
        )
        key = uuid.uuid4()
        client.retrieve.return_value = [
            models.Record(
                id=str(key),
                payload={},
                vector={"name_embedding": [0.5, 0.25], "description_embedding": [1.0, 2.0]},
            )
        ]

        record = await collection.get(key, include_vectors=True)

        assert record == TwoVectorHotel(key, [0.5, 0.25], [1.0, 2.0])
        assert client.retrieve.await_args.kwargs["ids"] == [str(key)]


class TestQdrantVectorStore:
    """Test the Qdrant vector store facade"""

    def test_named_vectors_option_is_passed_on(self, client):
        """Test collections inherit the store's named vector setting"""
        store = QdrantVectorStore(client, QdrantVectorStoreOptions(has_named_vectors=True))

        collection = store.get_collection("hotels", TwoVectorHotel)

        assert isinstance(collection, QdrantRecordCollection)

    @pytest.mark.asyncio
    async def test_collection_exists(self, client):
        """Test existence checks are delegated to the client"""
        client.collection_exists.return_value = False
        store = QdrantVectorStore(client)

        assert await store.collection_exists("hotels") is False
        client.collection_exists.assert_awaited_once_with(collection_name="hotels")
