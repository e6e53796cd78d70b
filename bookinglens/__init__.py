"""BookingLens - hotel booking analytics with retrieval-backed Q&A."""

from .accuracy import BENCHMARK_QUERIES, calculate_confidence, evaluate_model_accuracy
from .data_processing import (
    DEMO_BOOKINGS,
    export_processed_data,
    load_csv,
    parse_csv,
    process_data,
)
from .embeddings import BufferTracker, EmbeddingService, create_embeddings
from .exceptions import (
    BookingLensError,
    EmptyInputError,
    ModelLoadError,
    NotInitializedError,
    UnknownReportTypeError,
)
from .metrics import QueryMetrics
from .models import AggregatedDataset, AnalyticsReport, BookingRecord, QueryResult
from .responses import extract_month_year, generate_response
from .service import QueryService, ServiceState
from .similarity import cosine_similarity, find_similar_documents

__all__ = [
    "BENCHMARK_QUERIES",
    "DEMO_BOOKINGS",
    "AggregatedDataset",
    "AnalyticsReport",
    "BookingLensError",
    "BookingRecord",
    "BufferTracker",
    "EmbeddingService",
    "EmptyInputError",
    "ModelLoadError",
    "NotInitializedError",
    "QueryMetrics",
    "QueryResult",
    "QueryService",
    "ServiceState",
    "UnknownReportTypeError",
    "calculate_confidence",
    "cosine_similarity",
    "create_embeddings",
    "evaluate_model_accuracy",
    "export_processed_data",
    "extract_month_year",
    "find_similar_documents",
    "generate_response",
    "load_csv",
    "parse_csv",
    "process_data",
]
