"""Tests for EmbeddingService and booking document embeddings."""

import os
from unittest.mock import patch

import numpy as np
import pytest
from openai import APIConnectionError

from bookinglens import BufferTracker, EmbeddingService, ModelLoadError, create_embeddings
from bookinglens.config import config
from bookinglens.embeddings import booking_to_document, embed_text
from tests.conftest import (
    FailingEmbeddingService,
    TestConstants,
    create_mock_openai_response,
)


def test_init_defaults_from_config(embedding_service_factory) -> None:
    service = embedding_service_factory()
    assert service.model == config.EMBEDDING_MODEL
    assert service.dimensions == config.EMBEDDING_DIMENSIONS
    assert not service.is_loaded


def test_load_with_api_key(embedding_service) -> None:
    assert embedding_service.is_loaded
    assert embedding_service.client.api_key == TestConstants.TEST_API_KEY


def test_load_with_env_api_key() -> None:
    with patch.dict(os.environ, {"OPENAI_API_KEY": "env-key"}):
        service = EmbeddingService()
        service.load()
    assert service.client.api_key == "env-key"


def test_load_without_api_key_raises() -> None:
    with (
        patch.object(config, "get_openai_api_key", return_value=""),
        pytest.raises(ModelLoadError, match="OPENAI_API_KEY is required"),
    ):
        EmbeddingService().load()


def test_predict_before_load_raises(embedding_service_factory) -> None:
    with pytest.raises(ModelLoadError, match="not loaded"):
        embedding_service_factory().predict(["text"])


def test_predict_success(openai_embeddings_api_mock, embedding_service) -> None:
    openai_embeddings_api_mock.return_value = create_mock_openai_response([
        [0.1, 0.2, 0.3, 0.4]
    ])

    result = embedding_service.predict(["test text"])

    openai_embeddings_api_mock.assert_called_once_with(
        model=config.EMBEDDING_MODEL,
        input=["test text"],
        dimensions=config.EMBEDDING_DIMENSIONS,
    )
    assert result.shape == (1, 4)
    assert result.dtype == np.float32
    np.testing.assert_allclose(result[0], [0.1, 0.2, 0.3, 0.4], rtol=1e-6)


def test_predict_api_error(openai_embeddings_api_mock, embedding_service) -> None:
    openai_embeddings_api_mock.side_effect = Exception("API Error")
    with pytest.raises(Exception, match="API Error"):
        embedding_service.predict(["test text"])


def test_booking_to_document_lists_fields_in_order(demo_bookings) -> None:
    document = booking_to_document(demo_bookings[2])
    assert document == (
        "Hotel: Resort Hotel, Type: Resort Hotel, Arrival: 2022-07-15, "
        "Departure: 2022-07-20, Adults: 2, Children: 1, Country: USA, "
        "Status: Canceled, ADR: 120, Lead Time: 60"
    )


def test_embed_text_releases_buffers(mock_embedding_service) -> None:
    tracker = BufferTracker()
    vector = embed_text(mock_embedding_service, "hello", tracker)

    assert vector.shape == (TestConstants.DEFAULT_EMBEDDING_DIMENSION,)
    assert tracker.num_buffers == 0
    assert mock_embedding_service.calls == [["hello"]]


def test_embed_text_releases_buffers_on_failure() -> None:
    tracker = BufferTracker()
    with pytest.raises(RuntimeError, match="Model exploded"):
        embed_text(FailingEmbeddingService(), "hello", tracker)
    assert tracker.num_buffers == 0


def test_create_embeddings_index_aligned(demo_bookings, mock_embedding_service) -> None:
    result = create_embeddings(demo_bookings, mock_embedding_service, batch_size=3)

    assert len(result.documents) == len(result.vectors) == len(demo_bookings)
    assert result.error is None
    for booking, document, vector in zip(
        demo_bookings, result.documents, result.vectors, strict=True
    ):
        assert document == booking_to_document(booking)
        np.testing.assert_array_equal(
            vector, mock_embedding_service.get_embedding(document)
        )


def test_create_embeddings_one_call_per_document(
    demo_bookings, mock_embedding_service
) -> None:
    create_embeddings(demo_bookings, mock_embedding_service, batch_size=4)
    assert len(mock_embedding_service.calls) == len(demo_bookings)
    assert all(len(call) == 1 for call in mock_embedding_service.calls)


def test_create_embeddings_failure_returns_empty_result(demo_bookings) -> None:
    model = FailingEmbeddingService(fail_after=3)
    result = create_embeddings(demo_bookings, model, batch_size=2)

    assert result.documents == []
    assert result.vectors == []
    assert result.is_empty
    assert result.error == "Model exploded"


def test_create_embeddings_empty_input(mock_embedding_service) -> None:
    result = create_embeddings([], mock_embedding_service)
    assert result.is_empty
    assert result.error is None
    assert mock_embedding_service.calls == []


def test_reclaim_runs_when_threshold_exceeded(
    demo_bookings, mock_embedding_service
) -> None:
    tracker = BufferTracker()
    leaked = [tracker.track(np.zeros(4)) for _ in range(3)]

    with patch("bookinglens.embeddings.gc.collect") as mock_collect:
        create_embeddings(
            demo_bookings,
            mock_embedding_service,
            batch_size=5,
            cleanup_threshold=2,
            tracker=tracker,
        )

    mock_collect.assert_called_once()
    assert tracker.reclaim_count == 1
    assert tracker.num_buffers == 0
    assert len(leaked) == 3


def test_no_reclaim_below_threshold(demo_bookings, mock_embedding_service) -> None:
    tracker = BufferTracker()
    create_embeddings(
        demo_bookings, mock_embedding_service, cleanup_threshold=100, tracker=tracker
    )
    assert tracker.reclaim_count == 0


def test_buffer_tracker_dispose_ignores_unknown_and_none() -> None:
    tracker = BufferTracker()
    kept = tracker.track(np.ones(2))
    tracker.dispose(np.ones(2), None)
    assert tracker.num_buffers == 1
    tracker.dispose(kept)
    assert tracker.num_buffers == 0


# Integration tests that require a real OpenAI API key
@pytest.mark.skipif(
    not os.getenv("OPENAI_API_KEY"),
    reason="OPENAI_API_KEY environment variable not set",
)
def test_real_api_single_embedding() -> None:
    """Test single embedding generation with real OpenAI API."""
    service = EmbeddingService(model="text-embedding-3-small", dimensions=512)
    service.load()

    try:
        embedding = embed_text(service, "Resort Hotel booking", BufferTracker())
    except APIConnectionError as exc:  # pragma: no cover - network dependent
        pytest.skip(f"OpenAI not reachable: {exc!s}")
    else:
        assert embedding.shape == (512,)
