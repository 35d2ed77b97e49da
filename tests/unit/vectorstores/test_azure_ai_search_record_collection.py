"""
Test Azure AI Search record mapping and record collection operations
"""

from dataclasses import dataclass
from typing import Annotated, Optional
from unittest.mock import AsyncMock, MagicMock

import numpy as np
import pytest
from azure.core.exceptions import ResourceNotFoundError, ServiceRequestError

from vectordata_core.core.exceptions import (
    RecordMappingError,
    RecordNotFoundError,
    UnsupportedTypeError,
    VectorStoreOperationError,
)
from vectordata_core.schema import (
    Int32,
    RecordData,
    RecordKey,
    RecordVector,
    read_record_schema,
)
from vectordata_core.vectorstores.azure_ai_search import (
    AzureAISearchRecordCollection,
    AzureAISearchVectorStore,
)
from vectordata_core.vectorstores.azure_ai_search.mapper import AzureAISearchRecordMapper


@dataclass
class Hotel:
    hotel_id: Annotated[str, RecordKey()]
    hotel_name: Annotated[str, RecordData(is_filterable=True)]
    tags: Annotated[Optional[list[str]], RecordData()] = None
    description_embedding: Annotated[
        Optional[list[float]], RecordVector(dimensions=4)
    ] = None


@dataclass
class DoubleHotel:
    hotel_id: Annotated[str, RecordKey()]
    description_embedding: Annotated[
        Optional[list[float]], RecordVector(dimensions=4, element_type=np.float64)
    ] = None


@dataclass
class RoomsHotel:
    hotel_id: Annotated[str, RecordKey()]
    rooms: Annotated[Int32, RecordData(is_filterable=True)]
    floors: Annotated[Optional[Int32], RecordData()] = None
    description_embedding: Annotated[
        Optional[list[float]], RecordVector(dimensions=4)
    ] = None


@dataclass
class DictHotel:
    hotel_id: Annotated[str, RecordKey()]
    extra: Annotated[dict, RecordData()]
    description_embedding: Annotated[
        Optional[list[float]], RecordVector(dimensions=4)
    ] = None


def _result(key, succeeded=True, error_message=None):
    return MagicMock(key=key, succeeded=succeeded, error_message=error_message)


@pytest.fixture
def search_client():
    search_client = MagicMock()
    search_client.get_document = AsyncMock()
    search_client.upload_documents = AsyncMock()
    search_client.delete_documents = AsyncMock()
    return search_client


@pytest.fixture
def index_client(search_client):
    client = MagicMock()
    client.get_search_client.return_value = search_client
    return client


@pytest.fixture
def hotels(index_client):
    return AzureAISearchRecordCollection(index_client, "hotels", Hotel)


class TestAzureAISearchRecordMapper:
    """Test document mapping"""

    @pytest.fixture
    def mapper(self):
        return AzureAISearchRecordMapper(Hotel, read_record_schema(Hotel))

    def test_document_contains_key(self, mapper, hotel_vector):
        """Test documents carry the key field"""
        key, document = mapper.to_storage(Hotel("h1", "Paradise Patch", ["pool"], hotel_vector))

        assert key == "h1"
        assert document == {
            "hotel_id": "h1",
            "hotel_name": "Paradise Patch",
            "tags": ["pool"],
            "description_embedding": hotel_vector,
        }

    def test_missing_vector_is_omitted(self, mapper):
        """Test absent vectors are not sent to the service"""
        _, document = mapper.to_storage(Hotel("h1", "Paradise Patch"))

        assert "description_embedding" not in document
        assert document["tags"] is None

    def test_search_metadata_is_ignored(self, mapper):
        """Test @search.* annotations are dropped on read"""
        record = mapper.from_storage(
            "h1",
            {"hotel_id": "h1", "hotel_name": "Paradise Patch", "@search.score": 1.0},
            include_vectors=False,
        )

        assert record == Hotel("h1", "Paradise Patch")


class TestAzureAISearchRecordCollection:
    """Test record operations"""

    @pytest.mark.asyncio
    async def test_get_selects_non_vector_fields(self, search_client, hotels):
        """Test vectors are only selected when requested"""
        search_client.get_document.return_value = {
            "hotel_id": "h1",
            "hotel_name": "Paradise Patch",
            "tags": ["pool"],
        }

        record = await hotels.get("h1")

        assert record == Hotel("h1", "Paradise Patch", ["pool"])
        search_client.get_document.assert_awaited_once_with(
            key="h1", selected_fields=["hotel_id", "hotel_name", "tags"]
        )

    @pytest.mark.asyncio
    async def test_get_with_vectors(self, search_client, hotels, hotel_vector):
        """Test all fields are selected when vectors are requested"""
        search_client.get_document.return_value = {
            "hotel_id": "h1",
            "hotel_name": "Paradise Patch",
            "description_embedding": hotel_vector,
        }

        record = await hotels.get("h1", include_vectors=True)

        assert record.description_embedding == hotel_vector
        assert search_client.get_document.await_args.kwargs["selected_fields"] is None

    @pytest.mark.asyncio
    async def test_get_missing(self, search_client, hotels):
        """Test not found responses raise RecordNotFoundError"""
        search_client.get_document.side_effect = ResourceNotFoundError("missing")

        with pytest.raises(RecordNotFoundError):
            await hotels.get("h1")

    @pytest.mark.asyncio
    async def test_try_get_batch(self, search_client, hotels):
        """Test batch reads fan out per key and keep key order"""
        documents = {
            "h1": {"hotel_id": "h1", "hotel_name": "One"},
            "h3": {"hotel_id": "h3", "hotel_name": "Three"},
        }

        async def get_document(key, selected_fields):
            if key not in documents:
                raise ResourceNotFoundError("missing")
            return documents[key]

        search_client.get_document.side_effect = get_document

        records = await hotels.try_get_batch(["h3", "h2", "h1"])

        assert [r.hotel_name if r else None for r in records] == ["Three", None, "One"]

    @pytest.mark.asyncio
    async def test_upsert_batch(self, search_client, hotels):
        """Test batch upserts upload all documents in one request"""
        search_client.upload_documents.return_value = [_result("h1"), _result("h2")]

        keys = await hotels.upsert_batch([Hotel("h1", "One"), Hotel("h2", "Two")])

        assert keys == ["h1", "h2"]
        documents = search_client.upload_documents.await_args.kwargs["documents"]
        assert [d["hotel_id"] for d in documents] == ["h1", "h2"]

    @pytest.mark.asyncio
    async def test_partial_upload_failure(self, search_client, hotels):
        """Test failed documents are reported as an operation error"""
        search_client.upload_documents.return_value = [
            _result("h1"),
            _result("h2", succeeded=False, error_message="invalid field"),
        ]

        with pytest.raises(VectorStoreOperationError) as exc_info:
            await hotels.upsert_batch([Hotel("h1", "One"), Hotel("h2", "Two")])
        assert "h2: invalid field" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_delete(self, search_client, hotels):
        """Test deletes send key-only documents"""
        await hotels.delete_batch(["h1", "h2"])

        search_client.delete_documents.assert_awaited_once_with(
            documents=[{"hotel_id": "h1"}, {"hotel_id": "h2"}]
        )

    @pytest.mark.asyncio
    async def test_transport_errors_are_wrapped(self, search_client, hotels):
        """Test service failures surface as VectorStoreOperationError"""
        search_client.delete_documents.side_effect = ServiceRequestError("unreachable")

        with pytest.raises(VectorStoreOperationError) as exc_info:
            await hotels.delete("h1")
        assert exc_info.value.operation_name == "delete"

    @pytest.mark.asyncio
    async def test_int32_properties_round_trip(self, index_client, search_client):
        """Test 32-bit integer properties are sent as ints and read back"""
        search_client.upload_documents.return_value = [_result("h1")]
        collection = AzureAISearchRecordCollection(index_client, "hotels", RoomsHotel)

        await collection.upsert(RoomsHotel("h1", 120, 4))

        (document,) = search_client.upload_documents.await_args.kwargs["documents"]
        assert document["rooms"] == 120
        assert type(document["rooms"]) is int

        search_client.get_document.return_value = document
        record = await collection.get("h1")
        assert record.rooms == 120
        assert isinstance(record.rooms, np.int32)
        assert record.floors == 4

    @pytest.mark.asyncio
    async def test_int32_out_of_range_rejected(self, index_client, search_client):
        """Test stored values outside the 32-bit range fail to map"""
        collection = AzureAISearchRecordCollection(index_client, "hotels", RoomsHotel)
        search_client.get_document.return_value = {"hotel_id": "h1", "rooms": 2**40}

        with pytest.raises(RecordMappingError):
            await collection.get("h1")

    def test_double_precision_rejected(self, index_client):
        """Test only single precision vectors are accepted"""
        with pytest.raises(UnsupportedTypeError):
            AzureAISearchRecordCollection(index_client, "hotels", DoubleHotel)

    def test_unsupported_data_type_rejected(self, index_client):
        """Test data properties must map to an index field type"""
        with pytest.raises(UnsupportedTypeError):
            AzureAISearchRecordCollection(index_client, "hotels", DictHotel)


class TestAzureAISearchVectorStore:
    """Test the Azure AI Search vector store facade"""

    def test_get_collection_binds_search_client(self, index_client, search_client):
        """Test collections use a search client for their index"""
        store = AzureAISearchVectorStore(index_client)

        collection = store.get_collection("hotels", Hotel)

        assert isinstance(collection, AzureAISearchRecordCollection)
        index_client.get_search_client.assert_called_once_with("hotels")
