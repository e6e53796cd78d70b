"""Booking document embeddings backed by the OpenAI embeddings API."""

import gc
from collections.abc import Sequence
from typing import Protocol

import numpy as np
from openai import OpenAI, OpenAIError

from .config import config
from .exceptions import ModelLoadError
from .models import BookingRecord, EmbeddingResult

logger = config.get_logger(__name__)


class EmbeddingModel(Protocol):
    """Text-in, vector-out capability used to embed documents and queries."""

    def load(self) -> None: ...

    def predict(self, texts: Sequence[str]) -> np.ndarray: ...


class EmbeddingService:
    """Handles OpenAI embeddings generation."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        dimensions: int | None = None,
    ) -> None:
        """Configure the embedding model without contacting the API.

        Args:
            api_key: OpenAI API key. If None,
                reads from OPENAI_API_KEY environment variable.
            model: Embedding model name. If None, uses config.EMBEDDING_MODEL.
            dimensions: Output vector length. If None, uses
                config.EMBEDDING_DIMENSIONS.
        """
        self.api_key = api_key
        self.model = model or config.EMBEDDING_MODEL
        self.dimensions = dimensions or config.EMBEDDING_DIMENSIONS
        self.client: OpenAI | None = None

    @property
    def is_loaded(self) -> bool:
        return self.client is not None

    def load(self) -> None:
        """Create the OpenAI client.

        Raises:
            ModelLoadError: If no API key is available or the client fails.
        """
        if self.client is not None:
            return
        api_key = self.api_key or config.get_openai_api_key()
        if not api_key:
            msg = "OPENAI_API_KEY is required to load the embedding model"
            raise ModelLoadError(msg)
        default_headers = config.get_api_headers()
        try:
            self.client = OpenAI(
                api_key=api_key,
                base_url=config.OPENAI_BASE_URL,
                default_headers=default_headers or None,
            )
        except OpenAIError as exc:
            logger.exception("Error loading embedding model %s", self.model)
            raise ModelLoadError(str(exc)) from exc
        logger.info("Embedding model %s ready", self.model)

    def predict(self, texts: Sequence[str]) -> np.ndarray:
        """Embed texts into a (len(texts), dimensions) float32 array.

        Returns:
            np.ndarray: One embedding row per input text.

        Raises:
            ModelLoadError: If called before load().
        """
        if self.client is None:
            msg = "Embedding model is not loaded"
            raise ModelLoadError(msg)
        try:
            response = self.client.embeddings.create(
                model=self.model,
                input=list(texts),
                dimensions=self.dimensions,
            )
        except Exception:
            logger.exception("Error generating embedding")
            raise
        return np.asarray([data.embedding for data in response.data], dtype=np.float32)


class BufferTracker:
    """Tracks transient numeric buffers allocated around embedding calls.

    Every buffer handed to :meth:`track` must be handed back to
    :meth:`dispose` once its values have been copied out.
    """

    def __init__(self) -> None:
        self._live: dict[int, np.ndarray] = {}
        self.reclaim_count = 0

    @property
    def num_buffers(self) -> int:
        return len(self._live)

    def track(self, array: np.ndarray) -> np.ndarray:
        self._live[id(array)] = array
        return array

    def dispose(self, *arrays: np.ndarray | None) -> None:
        for array in arrays:
            if array is not None:
                self._live.pop(id(array), None)

    def reclaim(self) -> int:
        """Drop every outstanding buffer and force a collection pass.

        Returns:
            Number of buffers that were still outstanding.
        """
        outstanding = len(self._live)
        self._live.clear()
        gc.collect()
        self.reclaim_count += 1
        return outstanding


def booking_to_document(booking: BookingRecord) -> str:
    """Describe one booking as a single line of text."""  # noqa: DOC201
    return (
        f"Hotel: {booking.hotel_name}, Type: {booking.hotel_type}, "
        f"Arrival: {booking.arrival_date.isoformat()}, "
        f"Departure: {booking.departure_date.isoformat()}, "
        f"Adults: {booking.adults}, Children: {booking.children}, "
        f"Country: {booking.country}, Status: {booking.reservation_status}, "
        f"ADR: {booking.adr:g}, Lead Time: {booking.lead_time}"
    )


def embed_text(model: EmbeddingModel, text: str, tracker: BufferTracker) -> np.ndarray:
    """Embed one text, releasing the input and output buffers on every path.

    Returns:
        np.ndarray: Flat float32 copy of the embedding.
    """
    inputs = tracker.track(np.array([text], dtype=object))
    output: np.ndarray | None = None
    try:
        output = tracker.track(np.asarray(model.predict(inputs.tolist())))
        return np.array(output, dtype=np.float32).reshape(-1)
    finally:
        tracker.dispose(inputs, output)


def create_embeddings(
    bookings: Sequence[BookingRecord],
    model: EmbeddingModel,
    *,
    batch_size: int | None = None,
    cleanup_threshold: int | None = None,
    tracker: BufferTracker | None = None,
) -> EmbeddingResult:
    """Embed one document per booking, batch by batch.

    Any failure discards the partial output and returns an empty result
    carrying the error message.

    Returns:
        EmbeddingResult with index-aligned documents and vectors.
    """
    batch_size = batch_size or config.EMBEDDING_BATCH_SIZE
    if cleanup_threshold is None:
        cleanup_threshold = config.BUFFER_CLEANUP_THRESHOLD
    tracker = tracker or BufferTracker()

    documents = [booking_to_document(booking) for booking in bookings]
    vectors: list[np.ndarray] = []
    total_batches = -(-len(documents) // batch_size)

    try:
        for start in range(0, len(documents), batch_size):
            batch = documents[start : start + batch_size]
            logger.info(
                "Processing batch %d/%d", start // batch_size + 1, total_batches
            )
            vectors.extend(embed_text(model, text, tracker) for text in batch)

            if tracker.num_buffers > cleanup_threshold:
                logger.info(
                    "Cleaning up buffers: %d buffers in memory", tracker.num_buffers
                )
                tracker.reclaim()
    except Exception as exc:
        logger.exception("Error creating embeddings")
        return EmbeddingResult(error=str(exc) or type(exc).__name__)

    logger.info("Created %d embeddings successfully", len(vectors))
    return EmbeddingResult(documents=documents, vectors=vectors)
