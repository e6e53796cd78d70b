"""Query service orchestrating embeddings, retrieval and answers."""

import random
import time
from collections.abc import Callable
from enum import Enum

import numpy as np

from .accuracy import AccuracyReport, calculate_confidence, evaluate_model_accuracy
from .config import config
from .data_processing import cancellations_by_country, lead_time_distribution
from .embeddings import (
    BufferTracker,
    EmbeddingModel,
    EmbeddingService,
    create_embeddings,
    embed_text,
)
from .exceptions import ModelLoadError, NotInitializedError, UnknownReportTypeError
from .metrics import QueryMetrics
from .models import CANCELED, AggregatedDataset, AnalyticsReport, QueryResult
from .responses import generate_response
from .similarity import find_similar_documents

logger = config.get_logger(__name__)

FALLBACK_ANSWER = "Sorry, an error occurred while processing your question."

REPORT_TYPES = ("revenue", "cancellations", "bookings", "leadTime", "performance")

# Marks an argument that should fall back to the config value
_FROM_CONFIG = object()


class ServiceState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    FAILED = "failed"


class QueryService:
    """Answers questions and serves analytics reports for one dataset.

    Not safe for concurrent use: callers must serialize ``initialize``,
    ``ask`` and ``get_analytics``.
    """

    def __init__(  # noqa: PLR0913
        self,
        embedding_model: EmbeddingModel | None = None,
        *,
        top_k: int | None = None,
        batch_size: int | None = None,
        cleanup_threshold: int | None = None,
        latency_range_ms: tuple[int, int] | None | object = _FROM_CONFIG,
        sleep: Callable[[float], None] = time.sleep,
        rng: random.Random | None = None,
    ) -> None:
        """Initialize the service in the uninitialized state.

        Args:
            embedding_model: Model used for documents and queries. If None,
                an OpenAI-backed EmbeddingService is created.
            top_k: Documents retrieved per question. If None, uses
                config.RETRIEVAL_TOP_K.
            batch_size: Embedding batch size. If None, uses
                config.EMBEDDING_BATCH_SIZE.
            cleanup_threshold: Outstanding buffers that trigger reclamation.
                If None, uses config.BUFFER_CLEANUP_THRESHOLD.
            latency_range_ms: Simulated analytics latency bounds, or None to
                disable the delay. Defaults to config.simulated_latency_range().
            sleep: Function used to wait out simulated latency, in seconds.
            rng: Random source for simulated latency.
        """
        self.embedding_model = embedding_model or EmbeddingService()
        self.top_k = top_k or config.RETRIEVAL_TOP_K
        self.batch_size = batch_size or config.EMBEDDING_BATCH_SIZE
        self.cleanup_threshold = (
            cleanup_threshold
            if cleanup_threshold is not None
            else config.BUFFER_CLEANUP_THRESHOLD
        )
        self.latency_range_ms: tuple[int, int] | None = (
            config.simulated_latency_range()
            if latency_range_ms is _FROM_CONFIG
            else latency_range_ms
        )
        self._sleep = sleep
        self._rng = rng or random.Random()  # noqa: S311

        self.state = ServiceState.UNINITIALIZED
        self.metrics = QueryMetrics()
        self.tracker = BufferTracker()
        self.accuracy_report: AccuracyReport | None = None
        self._data: AggregatedDataset | None = None
        self._documents: list[str] = []
        self._vectors: list[np.ndarray] = []

    @property
    def data(self) -> AggregatedDataset | None:
        return self._data

    @property
    def documents(self) -> list[str]:
        return self._documents

    @property
    def is_ready(self) -> bool:
        return self.state is ServiceState.READY

    def initialize(self, data: AggregatedDataset) -> bool:
        """Load the model, embed every booking and run the accuracy benchmark.

        Returns:
            True when the service is ready, False on a recoverable failure.

        Raises:
            ModelLoadError: If the embedding model cannot be loaded.
        """
        self.state = ServiceState.INITIALIZING
        self._reset_dataset()

        try:
            start = time.perf_counter()
            self.embedding_model.load()
            logger.info(
                "Model loaded in %.2f ms", (time.perf_counter() - start) * 1000
            )

            if data.bookings:
                start = time.perf_counter()
                result = create_embeddings(
                    data.bookings,
                    self.embedding_model,
                    batch_size=self.batch_size,
                    cleanup_threshold=self.cleanup_threshold,
                    tracker=self.tracker,
                )
                if result.error:
                    logger.warning(
                        "Embeddings unavailable, retrieval disabled: %s", result.error
                    )
                self._documents = result.documents
                self._vectors = result.vectors
                logger.info(
                    "Created %d embeddings in %.2f ms",
                    len(self._vectors),
                    (time.perf_counter() - start) * 1000,
                )
        except ModelLoadError:
            logger.exception("Error loading embedding model")
            self._fail()
            raise
        except Exception:
            logger.exception("Error initializing query service")
            self._fail()
            return False

        self._data = data
        self.state = ServiceState.READY
        self._evaluate_accuracy()
        return True

    def _reset_dataset(self) -> None:
        self._data = None
        self._documents = []
        self._vectors = []

    def _fail(self) -> None:
        self._reset_dataset()
        self.state = ServiceState.FAILED

    def _evaluate_accuracy(self) -> None:
        try:
            report = evaluate_model_accuracy(
                lambda query: self.ask(query).answer, self._data
            )
        except Exception:
            logger.exception("Error evaluating model accuracy")
            return
        self.accuracy_report = report
        self.metrics.accuracy_score = report.overall_accuracy

    def ask(self, query: str) -> QueryResult:
        """Answer a free-text question about the loaded bookings.

        Returns:
            QueryResult with the answer, elapsed milliseconds and confidence.

        Raises:
            NotInitializedError: If the service is not ready.
        """
        if self.state is not ServiceState.READY or self._data is None:
            msg = "Query service not initialized or model not loaded"
            raise NotInitializedError(msg)

        start = time.perf_counter()
        logger.info("Processing query: %s", query)
        retrieved: list[str] = []
        try:
            query_embedding = embed_text(self.embedding_model, query, self.tracker)
            retrieved = find_similar_documents(
                query_embedding, self._vectors, self._documents, self.top_k
            )
            answer = generate_response(query, retrieved, self._data)
        except Exception:
            logger.exception("Error processing question")
            answer = FALLBACK_ANSWER

        response_time = (time.perf_counter() - start) * 1000
        self.metrics.record(response_time)

        return QueryResult(
            answer=answer,
            response_time_ms=response_time,
            confidence=calculate_confidence(query),
            retrieved_documents=retrieved,
        )

    def get_analytics(self, report_type: str) -> AnalyticsReport:
        """Build one of the fixed analytics reports.

        Args:
            report_type: One of revenue, cancellations, bookings, leadTime,
                performance.

        Returns:
            AnalyticsReport with data rows and summary figures.

        Raises:
            NotInitializedError: If no dataset is loaded.
            UnknownReportTypeError: If report_type is not recognized.
        """
        if self._data is None:
            msg = "Data not initialized"
            raise NotInitializedError(msg)
        if report_type not in REPORT_TYPES:
            msg = f"Unknown analytics type: {report_type}"
            raise UnknownReportTypeError(msg)

        start = time.perf_counter()
        self._simulate_latency()

        builders = {
            "revenue": self._revenue_report,
            "cancellations": self._cancellations_report,
            "bookings": self._bookings_report,
            "leadTime": self._lead_time_report,
            "performance": self._performance_report,
        }
        report = builders[report_type](self._data)

        self.metrics.record((time.perf_counter() - start) * 1000)
        return report

    def _simulate_latency(self) -> None:
        if self.latency_range_ms is None:
            return
        low, high = self.latency_range_ms
        self._sleep(self._rng.randint(low, high) / 1000)

    @staticmethod
    def _revenue_report(data: AggregatedDataset) -> AnalyticsReport:
        months = list(data.revenue_by_month)
        total = data.total_revenue
        return AnalyticsReport(
            data=months,
            summary={
                "total": total,
                "average": total / len(months) if months else 0.0,
            },
        )

    @staticmethod
    def _cancellations_report(data: AggregatedDataset) -> AnalyticsReport:
        return AnalyticsReport(
            data=list(data.cancellations_by_market_segment),
            summary={
                "rate": data.cancellation_rate,
                "total": sum(
                    1 for b in data.bookings if b.reservation_status == CANCELED
                ),
                "by_country": cancellations_by_country(data.bookings, 5),
            },
        )

    @staticmethod
    def _bookings_report(data: AggregatedDataset) -> AnalyticsReport:
        return AnalyticsReport(
            data=list(data.bookings),
            summary={
                "total": data.total_bookings,
                "avg_stay_length": data.avg_stay_length,
                "avg_daily_rate": data.avg_daily_rate,
            },
        )

    @staticmethod
    def _lead_time_report(data: AggregatedDataset) -> AnalyticsReport:
        bookings = data.bookings
        return AnalyticsReport(
            data=lead_time_distribution(bookings),
            summary={
                "average_lead_time": (
                    sum(b.lead_time for b in bookings) / len(bookings)
                    if bookings
                    else 0.0
                ),
            },
        )

    def _performance_report(self, _data: AggregatedDataset) -> AnalyticsReport:
        return AnalyticsReport(
            data=self.metrics.to_dict(),
            summary={
                "average_response_time": self.metrics.average_response_time,
                "total_queries": self.metrics.total_queries,
                "accuracy_score": self.metrics.accuracy_score or 0.0,
                "model_status": "Ready" if self.is_ready else "Not Loaded",
            },
        )
