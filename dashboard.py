"""Hotel booking dashboard using Streamlit."""

from collections.abc import Sequence
from dataclasses import asdict

import pandas as pd
import streamlit as st

from bookinglens import (
    DEMO_BOOKINGS,
    BookingRecord,
    QueryService,
    parse_csv,
    process_data,
)
from bookinglens.accuracy import get_accuracy_grade, get_performance_grade
from bookinglens.config import config
from bookinglens.exceptions import BookingLensError

CONFIDENCE_HIGH = 0.6
CONFIDENCE_MEDIUM = 0.2

MAX_DOCUMENT_PREVIEW_LENGTH = 200

config.setup_logging()
logger = config.get_logger(__name__)


class SessionState:
    """Centralized session state management."""

    @staticmethod
    def initialize() -> None:
        """Initialize all session state variables."""
        defaults = {
            "dataset": None,
            "query_service": None,
            "current_result": None,
        }

        for key, default_value in defaults.items():
            if key not in st.session_state:
                st.session_state[key] = default_value

    @staticmethod
    def reset_system() -> None:
        """Drop the loaded dataset and service when new data arrives."""
        st.session_state.dataset = None
        st.session_state.query_service = None
        st.session_state.current_result = None

    @staticmethod
    def is_system_ready() -> bool:
        """Check if the query service can answer questions.

        Returns:
            bool: True if a service exists and reports ready.
        """
        service = st.session_state.get("query_service")
        return service is not None and service.is_ready


def load_dataset(bookings: Sequence[BookingRecord]) -> bool:
    """Aggregate bookings and initialize a fresh query service.

    Returns:
        bool: True if the service is ready, False otherwise.
    """
    SessionState.reset_system()
    try:
        dataset = process_data(bookings)
        st.session_state.dataset = dataset
        service = QueryService()
        with st.spinner(f"Embedding {dataset.total_bookings} bookings..."):
            ready = service.initialize(dataset)
    except (BookingLensError, ValueError) as e:
        logger.exception("Failed to load dataset")
        st.error(f"Failed to load dataset: {e}")
        return False

    st.session_state.query_service = service
    if not ready:
        st.error("Error initializing API. Please try again later.")
        return False
    st.success(f"Loaded {dataset.total_bookings} bookings.")
    return True


def render_sidebar() -> None:
    """Render the sidebar with data sources and system status."""
    with st.sidebar:
        st.header("Data Source")

        if st.button("Use Demo Data", use_container_width=True) and load_dataset(
            list(DEMO_BOOKINGS)
        ):
            st.rerun()

        uploaded_file = st.file_uploader("Upload a booking CSV", type=["csv"])
        if uploaded_file and st.button("Process CSV", use_container_width=True):
            try:
                bookings = parse_csv(uploaded_file.getvalue().decode("utf-8"))
            except (ValueError, UnicodeDecodeError) as e:
                st.error(f"Error parsing CSV file: {e}")
            else:
                if load_dataset(bookings):
                    st.rerun()

        st.divider()
        st.subheader("System Status")
        service = st.session_state.query_service
        state = service.state.value if service else "uninitialized"
        st.write(f"**Service:** {state.title()}")
        if st.session_state.dataset is not None:
            st.write(f"**Bookings:** {st.session_state.dataset.total_bookings}")


def render_overview() -> None:
    """Render headline metrics and charts for the loaded dataset."""
    dataset = st.session_state.dataset
    if dataset is None:
        return

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Total Bookings", dataset.total_bookings)
    col2.metric("Avg Stay", f"{dataset.avg_stay_length:.2f} nights")
    col3.metric("Cancellation Rate", f"{dataset.cancellation_rate:.2f}%")
    col4.metric("Avg Daily Rate", f"${dataset.avg_daily_rate:.2f}")

    left, right = st.columns(2)
    with left:
        st.subheader("Revenue by Month")
        revenue = pd.DataFrame([asdict(item) for item in dataset.revenue_by_month])
        if not revenue.empty:
            st.line_chart(revenue, x="month", y="revenue")
        st.subheader("Top Countries")
        countries = pd.DataFrame([asdict(item) for item in dataset.top_countries])
        st.bar_chart(countries, x="country", y="bookings")
    with right:
        st.subheader("Cancellations by Market Segment")
        segments = pd.DataFrame(
            [asdict(item) for item in dataset.cancellations_by_market_segment]
        )
        if not segments.empty:
            st.bar_chart(segments, x="segment", y="cancellations")
        service = st.session_state.query_service
        if service is not None and service.data is not None:
            st.subheader("Lead Time Distribution")
            lead_time = service.get_analytics("leadTime")
            st.bar_chart(
                pd.DataFrame([asdict(item) for item in lead_time.data]),
                x="range",
                y="count",
            )

    st.download_button(
        "Export Processed Data",
        data=dataset.to_json(),
        file_name=config.EXPORT_PATH.name,
        mime="application/json",
    )


def render_chat_interface() -> None:
    """Render the question box and the latest answer."""
    if not SessionState.is_system_ready():
        return

    st.header("Ask About Your Bookings")
    question = st.text_input(
        "Your Question:",
        placeholder="What was the total revenue for July 2022?",
    )

    if st.button("Ask Question", use_container_width=True) and question.strip():
        with st.spinner("Processing..."):
            try:
                st.session_state.current_result = st.session_state.query_service.ask(
                    question
                )
            except BookingLensError as e:
                logger.exception("Question processing failed")
                st.error(f"Failed to process question: {e}")
                return

    result = st.session_state.current_result
    if result is None:
        return

    st.subheader("Answer:")
    st.write(result.answer)

    col1, col2 = st.columns(2)
    with col1:
        confidence_color = (
            "green"
            if result.confidence > CONFIDENCE_HIGH
            else "orange"
            if result.confidence > CONFIDENCE_MEDIUM
            else "red"
        )
        st.markdown(f"**Confidence:** :{confidence_color}[{result.confidence:.2f}]")
    with col2:
        grade = get_performance_grade(result.response_time_ms)
        st.markdown(f"**Response Time:** {result.response_time_ms:.1f} ms ({grade})")

    if config.is_development() and st.checkbox("Show Retrieved Bookings (Debug)"):
        for i, document in enumerate(result.retrieved_documents):
            st.code(
                f"{i + 1}. {document[:MAX_DOCUMENT_PREVIEW_LENGTH]}",
            )


def render_performance() -> None:
    """Render benchmark accuracy and running response-time metrics."""
    service = st.session_state.query_service
    if not SessionState.is_system_ready():
        return

    st.markdown("---")
    st.subheader("Model Performance")
    summary = service.get_analytics("performance").summary

    col1, col2, col3 = st.columns(3)
    col1.metric(
        "Accuracy",
        f"{summary['accuracy_score'] * 100:.1f}%",
        get_accuracy_grade(summary["accuracy_score"]),
    )
    col2.metric("Avg Response", f"{summary['average_response_time']:.1f} ms")
    col3.metric("Total Queries", summary["total_queries"])

    report = service.accuracy_report
    if report is not None:
        with st.expander("Benchmark Results", expanded=False):
            st.dataframe(pd.DataFrame([asdict(item) for item in report.results]))


def main() -> None:
    """Main entry point for the Streamlit dashboard."""
    st.set_page_config(page_title="BookingLens - Hotel Booking Insights", layout="wide")

    SessionState.initialize()

    st.title("BookingLens - Hotel Booking Insights")
    st.markdown("---")

    render_sidebar()

    if st.session_state.dataset is None:
        st.info("Load the demo data or upload a CSV using the sidebar to get started.")
        return

    render_overview()
    render_chat_interface()
    render_performance()


if __name__ == "__main__":
    main()
