"""Rule-based answers to questions about the booking dataset."""

from collections.abc import Sequence
from datetime import datetime

from .data_processing import cancellations_by_country
from .models import AggregatedDataset

MONTHS = (
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
)
YEARS = ("2016", "2017", "2018", "2019", "2020", "2021", "2022")

REVENUE_TERMS = ("revenue", "income")
CANCELLATION_TERMS = ("cancellation", "canceled")
LOCATION_TERMS = ("location", "country")
AVERAGE_RATE_TERMS = (
    "average price",
    "avg price",
    "average cost",
    "average rate",
    "average daily rate",
    "daily rate",
)


def _mentions(text: str, terms: Sequence[str]) -> bool:
    return any(term in text for term in terms)


def extract_month_year(query: str) -> str | None:
    """Pull a month name and/or year out of a question.

    The first month and the first year in list order win, wherever they
    appear in the text.

    Returns:
        "July 2022", "July" or "2022" depending on what was found, else None.
    """
    text = query.lower()
    month = next((name for name in MONTHS if name in text), None)
    year = next((value for value in YEARS if value in text), None)

    if month and year:
        return f"{month.capitalize()} {year}"
    if month:
        return month.capitalize()
    return year


def month_label(month_key: str) -> str:
    """Render a YYYY-MM bucket key as "Month YYYY"."""  # noqa: DOC201
    return datetime.strptime(month_key, "%Y-%m").strftime("%B %Y")  # noqa: DTZ007


def _revenue_answer(query: str, data: AggregatedDataset) -> str:
    month_year = extract_month_year(query)
    if month_year:
        needle = month_year.lower()
        matches = [
            item
            for item in data.revenue_by_month
            if needle in item.month.lower() or needle in month_label(item.month).lower()
        ]
        if matches and month_year.isdigit():
            revenue = sum(item.revenue for item in matches)
            return (
                f"The total revenue for the year {month_year} was ${revenue:.2f} "
                f"across {len(matches)} months with data."
            )
        if matches:
            return f"The total revenue for {month_year} was ${matches[0].revenue:.2f}."
        available = ", ".join(item.month for item in data.revenue_by_month)
        return (
            f"I couldn't find revenue data specifically for {month_year}. "
            f"Available months are: {available}"
        )

    return (
        f"Total revenue across all available data is ${data.total_revenue:.2f}. "
        "For specific periods, please specify a month and year."
    )


def _cancellation_answer(query: str, data: AggregatedDataset) -> str:
    if _mentions(query, LOCATION_TERMS):
        ranked = cancellations_by_country(data.bookings)
        if ranked:
            listing = ", ".join(
                f"{item.country} ({item.count} cancellations)" for item in ranked
            )
            return f"The locations with the highest booking cancellations are: {listing}."

    answer = f"The overall cancellation rate is {data.cancellation_rate:.2f}%."
    if data.cancellations_by_market_segment:
        top = data.cancellations_by_market_segment[0]
        answer += (
            f" The market segment with the highest cancellations is {top.segment} "
            f"with {top.cancellations} cancellations."
        )
    return answer


def generate_response(
    query: str,
    retrieved_documents: Sequence[str],  # noqa: ARG001
    data: AggregatedDataset,
) -> str:
    """Answer a question from the aggregated statistics.

    Keyword rules are checked in order and the first match decides the
    answer. Retrieved documents do not influence the wording.

    Args:
        query: The user's question.
        retrieved_documents: Booking documents most similar to the question.
        data: Aggregated statistics for the loaded bookings.

    Returns:
        The answer text.
    """
    text = query.lower()

    if _mentions(text, REVENUE_TERMS):
        return _revenue_answer(text, data)

    if _mentions(text, CANCELLATION_TERMS):
        return _cancellation_answer(text, data)

    if _mentions(text, AVERAGE_RATE_TERMS):
        return (
            "The average daily rate for hotel bookings is "
            f"${data.avg_daily_rate:.2f}."
        )

    return (
        f"Based on the available data, there were {data.total_bookings} bookings "
        f"with an average stay length of {data.avg_stay_length:.2f} nights. "
        f"The average daily rate was ${data.avg_daily_rate:.2f} and the "
        f"cancellation rate was {data.cancellation_rate:.2f}%."
    )
