"""Test configuration and fixtures for BookingLens tests.

This module provides reusable test fixtures organized by functionality:
- Constants and test data
- Mock embedding models and API responses
- EmbeddingService fixtures
- Booking and aggregated dataset fixtures
- Query service factories
"""

import hashlib
from collections.abc import Sequence
from dataclasses import replace
from pathlib import Path
from unittest.mock import Mock, patch

import numpy as np
import pytest

from bookinglens import (
    DEMO_BOOKINGS,
    EmbeddingService,
    QueryService,
    process_data,
)
from bookinglens.exceptions import ModelLoadError

PROJECT_ROOT = Path(__file__).resolve().parent.parent


class TestConstants:
    """Centralized test constants to avoid repetition across test files."""

    TEST_API_KEY = "test-key"
    TEST_OPENAI_MODEL = "text-embedding-3-small"
    DEFAULT_EMBEDDING_DIMENSION = 64

    DEMO_BOOKING_COUNT = 10
    DEMO_AVG_DAILY_RATE = 111.3
    DEMO_AVG_STAY_LENGTH = 4.4
    DEMO_CANCELLATION_RATE = 20.0
    DEMO_TOTAL_REVENUE = 4406.0


class MockEmbeddingService:
    """Mock embedding model for testing without API calls.

    Generates deterministic embeddings based on text content hash,
    ensuring consistent test results across runs.
    """

    def __init__(
        self, dimension: int = TestConstants.DEFAULT_EMBEDDING_DIMENSION
    ) -> None:
        self.dimension = dimension
        self.loaded = False
        self.calls: list[list[str]] = []

    def load(self) -> None:
        self.loaded = True

    def get_embedding(self, text: str) -> np.ndarray:
        """Generate deterministic mock embedding based on text hash."""
        seed = int.from_bytes(
            hashlib.sha256(text.lower().encode("utf-8")).digest()[:8],
            byteorder="big",
            signed=False,
        )
        rng = np.random.default_rng(seed)
        embedding = rng.normal(0, 1, self.dimension)
        return (embedding / np.linalg.norm(embedding)).astype(np.float32)

    def predict(self, texts: Sequence[str]) -> np.ndarray:
        self.calls.append(list(texts))
        return np.vstack([self.get_embedding(text) for text in texts])


class FailingEmbeddingService(MockEmbeddingService):
    """Mock model whose predict() fails after ``fail_after`` successful calls."""

    def __init__(self, fail_after: int = 0, message: str = "Model exploded") -> None:
        super().__init__()
        self.fail_after = fail_after
        self.message = message

    def predict(self, texts: Sequence[str]) -> np.ndarray:
        if len(self.calls) >= self.fail_after:
            raise RuntimeError(self.message)
        return super().predict(texts)


class UnloadableEmbeddingService(MockEmbeddingService):
    """Mock model that cannot be loaded."""

    def load(self) -> None:
        msg = "model download failed"
        raise ModelLoadError(msg)


def create_mock_openai_response(embeddings: list[list[float]]) -> Mock:
    """Create a mock OpenAI embeddings API response.

    Args:
        embeddings: List of embedding vectors to return.

    Returns:
        Mock object representing OpenAI embeddings API response.
    """
    mock_response = Mock()
    mock_response.data = [Mock(embedding=emb) for emb in embeddings]
    return mock_response


@pytest.fixture
def openai_embeddings_api_mock():
    """Patch the OpenAI embeddings.create method."""
    with patch("openai.resources.embeddings.Embeddings.create") as mock_create:
        yield mock_create


@pytest.fixture
def embedding_service_factory():
    """Factory for creating EmbeddingService instances with different configurations."""

    def _create_service(api_key=None, model=None, dimensions=None):  # noqa: ANN202
        return EmbeddingService(
            api_key=api_key or TestConstants.TEST_API_KEY,
            model=model,
            dimensions=dimensions,
        )

    return _create_service


@pytest.fixture
def embedding_service(embedding_service_factory):
    """Loaded EmbeddingService with test API key for most tests."""
    service = embedding_service_factory()
    service.load()
    return service


@pytest.fixture
def mock_embedding_service():
    """Fresh MockEmbeddingService so call recording stays per test."""
    return MockEmbeddingService()


@pytest.fixture
def demo_bookings():
    return list(DEMO_BOOKINGS)


@pytest.fixture
def demo_dataset(demo_bookings):
    return process_data(demo_bookings)


@pytest.fixture
def booking_factory():
    """Factory that derives bookings from the first demo record."""
    template = DEMO_BOOKINGS[0]

    def _create_booking(**overrides):  # noqa: ANN202
        return replace(template, **overrides)

    return _create_booking


@pytest.fixture
def query_service_factory(mock_embedding_service):
    """Factory for QueryService instances with latency simulation disabled."""

    def _create_service(embedding_model=None, **kwargs):  # noqa: ANN202
        kwargs.setdefault("latency_range_ms", None)
        return QueryService(embedding_model or mock_embedding_service, **kwargs)

    return _create_service


@pytest.fixture
def ready_query_service(query_service_factory, demo_dataset):
    """QueryService initialized on the demo dataset."""
    service = query_service_factory()
    assert service.initialize(demo_dataset)
    return service


@pytest.fixture
def sample_csv_text():
    return (
        "id,hotelName,hotelType,arrivalDate,departureDate,staysInWeekendNights,"
        "staysInWeekNights,adults,children,babies,meal,country,marketSegment,"
        "reservationStatus,reservationStatusDate,adr,requiredCarParkingSpaces,"
        "totalOfSpecialRequests,leadTime,isRepeatedGuest,previousCancellations,"
        "previousBookingsNotCanceled\n"
        "a1,Resort Hotel,Resort Hotel,2021-05-01,2021-05-04,1,2,2,0,0,BB,PRT,"
        "Direct,Check-Out,2021-05-04,80.5,0,1,12,False,0,0\n"
        ",City Hotel,City Hotel,2021-06-10,2021-06-12,0,2,1,0,0,HB,GBR,"
        "Online TA,Canceled,2021-06-01,120,1,0,40,TRUE,1,0\n"
    )
