"""Data models for hotel booking analytics and question answering."""

import json
from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Any

import numpy as np

CANCELED = "Canceled"
CHECK_OUT = "Check-Out"
NO_SHOW = "No-Show"
RESERVATION_STATUSES = (CANCELED, CHECK_OUT, NO_SHOW)


@dataclass(frozen=True)
class BookingRecord:
    """A single hotel reservation."""

    id: str
    hotel_name: str
    hotel_type: str
    arrival_date: date
    departure_date: date
    stays_in_weekend_nights: int
    stays_in_week_nights: int
    adults: int
    children: int
    babies: int
    meal: str
    country: str
    market_segment: str
    reservation_status: str
    reservation_status_date: date
    adr: float
    required_car_parking_spaces: int = 0
    total_of_special_requests: int = 0
    lead_time: int = 0
    is_repeated_guest: bool = False
    previous_cancellations: int = 0
    previous_bookings_not_canceled: int = 0

    @property
    def nights(self) -> int:
        return self.stays_in_weekend_nights + self.stays_in_week_nights

    @property
    def is_canceled(self) -> bool:
        return self.reservation_status == CANCELED


@dataclass(frozen=True)
class MonthlyRevenue:
    month: str
    revenue: float


@dataclass(frozen=True)
class CountryBookings:
    country: str
    bookings: int


@dataclass(frozen=True)
class SegmentCancellations:
    segment: str
    cancellations: int


@dataclass(frozen=True)
class CountryCancellations:
    country: str
    count: int


@dataclass(frozen=True)
class LeadTimeBucket:
    range: str
    count: int


@dataclass(frozen=True)
class AggregatedDataset:
    """Statistics derived from one snapshot of booking records.

    Regenerated wholesale whenever the booking collection changes.
    """

    bookings: tuple[BookingRecord, ...]
    total_bookings: int
    avg_stay_length: float
    cancellation_rate: float
    avg_daily_rate: float
    revenue_by_month: tuple[MonthlyRevenue, ...]
    top_countries: tuple[CountryBookings, ...]
    cancellations_by_market_segment: tuple[SegmentCancellations, ...]

    @property
    def total_revenue(self) -> float:
        return sum(item.revenue for item in self.revenue_by_month)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def to_json(self) -> str:
        """Serialize the full dataset as pretty-printed JSON.

        Returns:
            JSON text with dates rendered in ISO format.
        """
        return json.dumps(self.to_dict(), indent=2, default=_json_default)


@dataclass
class EmbeddingResult:
    """Index-aligned documents and their embedding vectors."""

    documents: list[str] = field(default_factory=list)
    vectors: list[np.ndarray] = field(default_factory=list)
    error: str | None = None

    def __len__(self) -> int:
        return len(self.documents)

    @property
    def is_empty(self) -> bool:
        return not self.vectors


@dataclass
class QueryResult:
    """Answer returned by the query service for one question."""

    answer: str
    response_time_ms: float
    confidence: float
    retrieved_documents: list[str] = field(default_factory=list)


@dataclass
class AnalyticsReport:
    """One analytics report: raw rows plus summary figures."""

    data: Any
    summary: dict[str, Any]


def _json_default(value: object) -> str:
    if isinstance(value, date):
        return value.isoformat()
    msg = f"Object of type {type(value).__name__} is not JSON serializable"
    raise TypeError(msg)
