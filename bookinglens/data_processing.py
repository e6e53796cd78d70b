"""Booking ingestion, aggregation and export."""

import math
import re
from collections import Counter
from collections.abc import Mapping, Sequence
from datetime import date, timedelta
from pathlib import Path
from typing import Any

import pandas as pd

from .config import config
from .exceptions import EmptyInputError
from .models import (
    CANCELED,
    CHECK_OUT,
    AggregatedDataset,
    BookingRecord,
    CountryBookings,
    CountryCancellations,
    LeadTimeBucket,
    MonthlyRevenue,
    SegmentCancellations,
)

logger = config.get_logger(__name__)

TOP_COUNTRIES_LIMIT = 5

LEAD_TIME_RANGES: tuple[tuple[int, float, str], ...] = (
    (0, 7, "0-7 days"),
    (8, 30, "8-30 days"),
    (31, 90, "31-90 days"),
    (91, 180, "91-180 days"),
    (181, 365, "181-365 days"),
    (366, math.inf, "365+ days"),
)

_INT_FIELDS = (
    "stays_in_weekend_nights",
    "stays_in_week_nights",
    "adults",
    "children",
    "babies",
    "required_car_parking_spaces",
    "total_of_special_requests",
    "lead_time",
    "previous_cancellations",
    "previous_bookings_not_canceled",
)

_MONTH_NUMBERS = {
    name: index
    for index, name in enumerate(
        (
            "january",
            "february",
            "march",
            "april",
            "may",
            "june",
            "july",
            "august",
            "september",
            "october",
            "november",
            "december",
        ),
        start=1,
    )
}

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def _booking(  # noqa: PLR0913,PLR0917
    booking_id: str,
    hotel: str,
    arrival: str,
    departure: str,
    weekend_nights: int,
    week_nights: int,
    adults: int,
    children: int,
    babies: int,
    meal: str,
    country: str,
    segment: str,
    status: str,
    status_date: str,
    adr: float,
    parking: int,
    requests: int,
    lead_time: int,
    repeated: bool,
    prev_canceled: int,
    prev_not_canceled: int,
) -> BookingRecord:
    return BookingRecord(
        id=booking_id,
        hotel_name=hotel,
        hotel_type=hotel,
        arrival_date=date.fromisoformat(arrival),
        departure_date=date.fromisoformat(departure),
        stays_in_weekend_nights=weekend_nights,
        stays_in_week_nights=week_nights,
        adults=adults,
        children=children,
        babies=babies,
        meal=meal,
        country=country,
        market_segment=segment,
        reservation_status=status,
        reservation_status_date=date.fromisoformat(status_date),
        adr=adr,
        required_car_parking_spaces=parking,
        total_of_special_requests=requests,
        lead_time=lead_time,
        is_repeated_guest=repeated,
        previous_cancellations=prev_canceled,
        previous_bookings_not_canceled=prev_not_canceled,
    )


# fmt: off
DEMO_BOOKINGS: tuple[BookingRecord, ...] = (
    _booking("1", "Resort Hotel", "2022-07-01", "2022-07-05", 1, 3, 2, 0, 0, "BB", "PRT", "Direct", "Check-Out", "2022-07-05", 75.0, 0, 1, 30, False, 0, 0),  # noqa: E501
    _booking("2", "City Hotel", "2022-07-10", "2022-07-12", 0, 2, 1, 0, 0, "HB", "GBR", "Online TA", "Check-Out", "2022-07-12", 98.0, 1, 2, 45, False, 0, 0),  # noqa: E501
    _booking("3", "Resort Hotel", "2022-07-15", "2022-07-20", 2, 3, 2, 1, 0, "FB", "USA", "Direct", "Canceled", "2022-07-01", 120.0, 0, 3, 60, True, 1, 2),  # noqa: E501
    _booking("4", "City Hotel", "2022-08-01", "2022-08-05", 1, 3, 2, 0, 0, "BB", "ESP", "Groups", "Check-Out", "2022-08-05", 85.0, 0, 0, 15, False, 0, 0),  # noqa: E501
    _booking("5", "Resort Hotel", "2022-08-10", "2022-08-17", 2, 5, 2, 2, 0, "HB", "FRA", "Online TA", "Check-Out", "2022-08-17", 140.0, 1, 4, 90, False, 0, 0),  # noqa: E501
    _booking("6", "City Hotel", "2022-08-15", "2022-08-16", 0, 1, 1, 0, 0, "BB", "DEU", "Corporate", "No-Show", "2022-08-15", 95.0, 0, 1, 2, False, 0, 0),  # noqa: E501
    _booking("7", "Resort Hotel", "2022-09-01", "2022-09-10", 3, 6, 2, 1, 1, "FB", "ITA", "Direct", "Check-Out", "2022-09-10", 160.0, 1, 2, 120, True, 0, 1),  # noqa: E501
    _booking("8", "City Hotel", "2022-09-05", "2022-09-07", 0, 2, 2, 0, 0, "HB", "JPN", "Online TA", "Canceled", "2022-08-20", 110.0, 0, 1, 30, False, 1, 0),  # noqa: E501
    _booking("9", "Resort Hotel", "2022-09-15", "2022-09-20", 2, 3, 2, 0, 0, "BB", "CAN", "Direct", "Check-Out", "2022-09-20", 130.0, 0, 0, 45, False, 0, 0),  # noqa: E501
    _booking("10", "City Hotel", "2022-09-25", "2022-09-30", 1, 4, 1, 0, 0, "HB", "CHN", "Online TA", "Check-Out", "2022-09-30", 100.0, 0, 2, 60, False, 0, 0),  # noqa: E501
)
# fmt: on


def process_data(bookings: Sequence[BookingRecord]) -> AggregatedDataset:
    """Aggregate booking records into dashboard statistics.

    Args:
        bookings: Booking records of one dataset snapshot.

    Returns:
        AggregatedDataset derived from the records.

    Raises:
        EmptyInputError: If no records are given.
    """
    if not bookings:
        msg = "No data available to process"
        raise EmptyInputError(msg)

    total_bookings = len(bookings)
    total_nights = sum(booking.nights for booking in bookings)
    canceled = sum(1 for booking in bookings if booking.is_canceled)
    total_adr = sum(booking.adr for booking in bookings)

    revenue: dict[str, float] = {}
    for booking in bookings:
        if booking.reservation_status != CHECK_OUT:
            continue
        month = booking.arrival_date.strftime("%Y-%m")
        revenue[month] = revenue.get(month, 0.0) + booking.adr * booking.nights

    # Counter keeps first-seen order and sorted() is stable, so ties keep it too
    country_counts = Counter(booking.country for booking in bookings)
    top_countries = sorted(
        country_counts.items(), key=lambda item: item[1], reverse=True
    )[:TOP_COUNTRIES_LIMIT]

    segment_counts = Counter(
        booking.market_segment for booking in bookings if booking.is_canceled
    )
    segments = sorted(segment_counts.items(), key=lambda item: item[1], reverse=True)

    dataset = AggregatedDataset(
        bookings=tuple(bookings),
        total_bookings=total_bookings,
        avg_stay_length=total_nights / total_bookings,
        cancellation_rate=canceled / total_bookings * 100,
        avg_daily_rate=total_adr / total_bookings,
        revenue_by_month=tuple(
            MonthlyRevenue(month=month, revenue=value)
            for month, value in sorted(revenue.items())
        ),
        top_countries=tuple(
            CountryBookings(country=country, bookings=count)
            for country, count in top_countries
        ),
        cancellations_by_market_segment=tuple(
            SegmentCancellations(segment=segment, cancellations=count)
            for segment, count in segments
        ),
    )
    logger.info(
        "Processed %d bookings (%d canceled, %d revenue months)",
        total_bookings,
        canceled,
        len(dataset.revenue_by_month),
    )
    return dataset


def cancellations_by_country(
    bookings: Sequence[BookingRecord],
    limit: int = TOP_COUNTRIES_LIMIT,
) -> list[CountryCancellations]:
    """Rank countries by number of canceled bookings."""  # noqa: DOC201
    counts = Counter(booking.country for booking in bookings if booking.is_canceled)
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return [
        CountryCancellations(country=country, count=count)
        for country, count in ranked[:limit]
    ]


def lead_time_distribution(bookings: Sequence[BookingRecord]) -> list[LeadTimeBucket]:
    """Count bookings per lead-time range (bounds inclusive)."""  # noqa: DOC201
    return [
        LeadTimeBucket(
            range=label,
            count=sum(1 for booking in bookings if low <= booking.lead_time <= high),
        )
        for low, high, label in LEAD_TIME_RANGES
    ]


def coerce_value(raw: str) -> Any:  # noqa: ANN401
    """Coerce a CSV cell to a number, a boolean, or keep it as a string.

    Returns:
        int or float for fully numeric cells, bool for "true"/"false"
        (any case), otherwise the stripped string.
    """
    value = raw.strip()
    if not value:
        return value
    lowered = value.lower()
    if lowered in {"true", "false"}:
        return lowered == "true"
    # int() and float() also accept digit separators, "nan" and "inf"
    if "_" in value:
        return value
    try:
        return int(value)
    except ValueError:
        pass
    try:
        number = float(value)
    except ValueError:
        return value
    return number if math.isfinite(number) else value


def _snake_case(name: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", name.strip()).lower()


def _parse_date(value: Any, field_name: str) -> date:  # noqa: ANN401
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError as exc:
        msg = f"Invalid date for {field_name}: {value!r}"
        raise ValueError(msg) from exc


def _arrival_from_parts(row: Mapping[str, Any]) -> date | None:
    year = row.get("arrival_date_year")
    month = row.get("arrival_date_month")
    day = row.get("arrival_date_day_of_month")
    if year in {None, ""} or month in {None, ""} or day in {None, ""}:
        return None
    month_number = _MONTH_NUMBERS.get(str(month).lower()) or int(month)
    return date(int(year), month_number, int(day))


def booking_from_row(row: Mapping[str, Any], index: int) -> BookingRecord:
    """Build a BookingRecord from one coerced CSV row.

    Args:
        row: Column name to coerced value; camelCase or snake_case names.
        index: 1-based data row index, used for the synthetic id.

    Returns:
        The parsed BookingRecord.

    Raises:
        ValueError: If the arrival date is missing or a date is malformed.
    """
    values = {_snake_case(key): value for key, value in row.items()}
    hotel = str(values.get("hotel_name") or values.get("hotel") or "")

    if values.get("arrival_date") not in {None, ""}:
        arrival = _parse_date(values["arrival_date"], "arrival_date")
    else:
        arrival = _arrival_from_parts(values)
        if arrival is None:
            msg = f"Row {index} has no arrival date"
            raise ValueError(msg)

    counts = {
        name: int(values[name]) if isinstance(values.get(name), (int, float)) else 0
        for name in _INT_FIELDS
    }
    nights = counts["stays_in_weekend_nights"] + counts["stays_in_week_nights"]

    if values.get("departure_date") not in {None, ""}:
        departure = _parse_date(values["departure_date"], "departure_date")
    else:
        departure = arrival + timedelta(days=nights)

    if values.get("reservation_status_date") not in {None, ""}:
        status_date = _parse_date(
            values["reservation_status_date"], "reservation_status_date"
        )
    else:
        status_date = departure

    adr = values.get("adr")
    return BookingRecord(
        id=str(values.get("id") or f"booking-{index}"),
        hotel_name=hotel,
        hotel_type=str(values.get("hotel_type") or hotel),
        arrival_date=arrival,
        departure_date=departure,
        meal=str(values.get("meal", "")),
        country=str(values.get("country", "")),
        market_segment=str(values.get("market_segment", "")),
        reservation_status=str(values.get("reservation_status", "")),
        reservation_status_date=status_date,
        adr=float(adr) if isinstance(adr, (int, float)) else 0.0,
        is_repeated_guest=bool(values.get("is_repeated_guest") or False),
        **counts,
    )


def parse_csv(csv_text: str) -> list[BookingRecord]:
    """Parse CSV text with a header row into booking records.

    Cells are split on commas without quote handling. Rows whose field
    count differs from the header are skipped; blank lines count as such
    rows, so synthetic ids follow the physical line number.

    Returns:
        Parsed booking records in file order.
    """
    try:
        lines = pd.Series(csv_text.strip().splitlines(), dtype=object)
        if lines.empty:
            return []
        cells = lines.str.split(",")
        header = [name.strip() for name in cells.iloc[0]]
        rows = cells.iloc[1:]
        rows = rows[rows.str.len() == len(header)]
        frame = pd.DataFrame(rows.tolist(), index=rows.index, columns=header)
        bookings = [
            booking_from_row(
                {column: coerce_value(raw) for column, raw in row.items()},
                int(line_number),
            )
            for line_number, row in zip(
                frame.index, frame.to_dict("records"), strict=True
            )
        ]
    except Exception:
        logger.exception("Error parsing CSV")
        raise

    logger.info("Parsed %d bookings from CSV", len(bookings))
    return bookings


def load_csv(file_path: Path) -> list[BookingRecord]:
    """Load booking records from a CSV file.

    Returns:
        Parsed booking records.
    """
    with Path(file_path).open(encoding="utf-8") as file:
        return parse_csv(file.read())


def export_processed_data(dataset: AggregatedDataset, path: Path | None = None) -> Path:
    """Write the aggregated dataset as pretty-printed JSON.

    Args:
        dataset: Dataset to export.
        path: Target file. If None, uses config.EXPORT_PATH.

    Returns:
        Path of the written file.
    """
    target = Path(path) if path is not None else config.EXPORT_PATH
    try:
        target.parent.mkdir(exist_ok=True, parents=True)
        target.write_text(dataset.to_json(), encoding="utf-8")
    except OSError:
        logger.exception("Error exporting data to %s", target)
        raise
    logger.info("Exported processed data to %s", target)
    return target
