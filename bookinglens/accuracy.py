"""Benchmark queries, answer scoring and confidence heuristics."""

import time
from collections.abc import Callable
from dataclasses import dataclass, field

from .config import config
from .models import AggregatedDataset

logger = config.get_logger(__name__)


@dataclass(frozen=True)
class BenchmarkQuery:
    query: str
    expected_answer: str


BENCHMARK_QUERIES: tuple[BenchmarkQuery, ...] = (
    BenchmarkQuery(
        "What was the total revenue for July 2022?",
        "The total revenue for July 2022 was $",
    ),
    BenchmarkQuery(
        "What is the cancellation rate?",
        "The overall cancellation rate is",
    ),
    BenchmarkQuery(
        "What is the average stay length?",
        "with an average stay length of",
    ),
    BenchmarkQuery(
        "Which country has the most cancellations?",
        "The locations with the highest booking cancellations are",
    ),
    BenchmarkQuery(
        "What is the average daily rate?",
        "The average daily rate for hotel bookings is $",
    ),
)


@dataclass
class QueryEvaluation:
    query: str
    expected_content: str
    model_output: str
    match_score: float
    response_time_ms: float


@dataclass
class AccuracyReport:
    overall_accuracy: float
    results: list[QueryEvaluation] = field(default_factory=list)
    average_response_time: float = 0.0


def calculate_match_score(model_output: str, expected_content: str) -> float:
    """Score an answer against the expected text.

    Returns:
        1.0 when the expected text appears in the output (ignoring case),
        otherwise the fraction of expected words found among the output words.
    """
    output = model_output.lower()
    expected = expected_content.lower()
    if expected in output:
        return 1.0

    output_words = set(output.split())
    expected_words = expected.split()
    if not expected_words:
        return 0.0
    matched = sum(1 for word in expected_words if word in output_words)
    return matched / len(expected_words)


def calculate_confidence(
    query: str, benchmarks: tuple[BenchmarkQuery, ...] = BENCHMARK_QUERIES
) -> float:
    """Estimate confidence from word overlap with the benchmark questions.

    Returns:
        1.0 for an exact (case-insensitive) benchmark question, otherwise the
        best overlap ratio against any benchmark question.
    """
    query_lower = query.lower()
    if any(benchmark.query.lower() == query_lower for benchmark in benchmarks):
        return 1.0

    query_words = query_lower.split()
    best = 0.0
    for benchmark in benchmarks:
        benchmark_words = benchmark.query.lower().split()
        overlap = sum(1 for word in query_words if word in benchmark_words)
        longest = max(len(query_words), len(benchmark_words))
        if longest:
            best = max(best, overlap / longest)
    return best


def evaluate_model_accuracy(
    ask: Callable[[str], str],
    data: AggregatedDataset | None = None,
    benchmarks: tuple[BenchmarkQuery, ...] = BENCHMARK_QUERIES,
) -> AccuracyReport:
    """Run the benchmark questions one after another and score the answers.

    Args:
        ask: Function returning the answer text for a question.
        data: Dataset the answers are drawn from, used for logging only.
        benchmarks: Questions with the text each answer should contain.

    Returns:
        AccuracyReport with per-query results and averages.
    """
    results: list[QueryEvaluation] = []
    for benchmark in benchmarks:
        start = time.perf_counter()
        output = ask(benchmark.query)
        elapsed_ms = (time.perf_counter() - start) * 1000

        results.append(
            QueryEvaluation(
                query=benchmark.query,
                expected_content=benchmark.expected_answer,
                model_output=output,
                match_score=calculate_match_score(output, benchmark.expected_answer),
                response_time_ms=elapsed_ms,
            )
        )

    if not results:
        return AccuracyReport(overall_accuracy=0.0)

    report = AccuracyReport(
        overall_accuracy=sum(r.match_score for r in results) / len(results),
        results=results,
        average_response_time=sum(r.response_time_ms for r in results) / len(results),
    )
    logger.info(
        "Overall accuracy: %.2f%% over %d benchmark queries (%s bookings)",
        report.overall_accuracy * 100,
        len(results),
        data.total_bookings if data is not None else "unknown",
    )
    logger.info("Average response time: %.2fms", report.average_response_time)
    return report


def get_performance_grade(response_time_ms: float) -> str:
    if response_time_ms < 100:  # noqa: PLR2004
        return "Excellent"
    if response_time_ms < 300:  # noqa: PLR2004
        return "Good"
    if response_time_ms < 500:  # noqa: PLR2004
        return "Fair"
    if response_time_ms < 1000:  # noqa: PLR2004
        return "Slow"
    return "Very Slow"


def get_accuracy_grade(score: float) -> str:
    if score >= 0.9:  # noqa: PLR2004
        return "Excellent"
    if score >= 0.7:  # noqa: PLR2004
        return "Good"
    if score >= 0.5:  # noqa: PLR2004
        return "Fair"
    if score >= 0.3:  # noqa: PLR2004
        return "Poor"
    return "Very Poor"
