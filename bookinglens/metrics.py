"""Running response-time metrics for the query service."""

from dataclasses import asdict, dataclass
from typing import Any


@dataclass
class QueryMetrics:
    """Running average of response times plus the last accuracy score."""

    average_response_time: float = 0.0
    last_response_time: float = 0.0
    total_queries: int = 0
    accuracy_score: float | None = None

    def record(self, response_time_ms: float) -> None:
        """Fold one response time (milliseconds) into the running average."""
        self.last_response_time = response_time_ms
        self.total_queries += 1
        self.average_response_time += (
            response_time_ms - self.average_response_time
        ) / self.total_queries

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
