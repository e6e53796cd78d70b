"""Command-line entry point for the BookingLens dashboard, export and summary."""

from __future__ import annotations

import argparse
import subprocess
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from bookinglens import DEMO_BOOKINGS, export_processed_data, load_csv, process_data
from bookinglens.config import config
from bookinglens.exceptions import EmptyInputError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from logging import Logger

    from bookinglens import AggregatedDataset

PROJECT_ROOT = Path(__file__).resolve().parent
DEFAULT_APP = PROJECT_ROOT / "dashboard.py"
COMMANDS = ("serve", "export", "summary")


def _add_csv_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--csv",
        type=Path,
        default=None,
        help="Booking CSV to read; the demo bookings are used when omitted.",
    )


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Read the subcommand and its options; ``serve`` is the default."""  # noqa: DOC201
    parser = argparse.ArgumentParser(
        description="Hotel booking analytics: dashboard, JSON export and summary.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    serve = commands.add_parser("serve", help="Run the Streamlit dashboard.")
    serve.add_argument("--app", type=Path, default=DEFAULT_APP)
    serve.add_argument("--port", type=int, default=8501)
    serve.add_argument("--address", default="localhost")
    serve.add_argument(
        "--show",
        dest="headless",
        action="store_false",
        help="Open a browser window instead of running headless.",
    )

    export = commands.add_parser("export", help="Write processed data as JSON.")
    export.add_argument(
        "path",
        nargs="?",
        type=Path,
        default=config.EXPORT_PATH,
        help=f"Target file (default: {config.EXPORT_PATH}).",
    )
    _add_csv_option(export)

    summary = commands.add_parser("summary", help="Print headline booking figures.")
    _add_csv_option(summary)

    args = list(sys.argv[1:] if argv is None else argv)
    if not args or args[0] not in (*COMMANDS, "-h", "--help"):
        args.insert(0, "serve")
    return parser.parse_args(args)


def build_streamlit_command(
    script_path: Path,
    *,
    port: int,
    headless: bool,
    address: str,
) -> list[str]:
    """Construct the streamlit CLI invocation for the dashboard."""  # noqa: DOC201
    server_options = {
        "port": str(port),
        "address": address,
        "headless": str(headless).lower(),
    }
    command = [sys.executable, "-m", "streamlit", "run", str(script_path)]
    for name, value in server_options.items():
        command += [f"--server.{name}", value]
    return command


def load_bookings_dataset(csv_path: Path | None) -> AggregatedDataset:
    """Aggregate bookings from a CSV file, or the demo set when none is given."""  # noqa: DOC201
    bookings = load_csv(csv_path) if csv_path else list(DEMO_BOOKINGS)
    return process_data(bookings)


def format_summary(dataset: AggregatedDataset) -> str:
    """Render the headline figures as plain text lines."""  # noqa: DOC201
    lines = [
        f"Bookings:            {dataset.total_bookings}",
        f"Average stay:        {dataset.avg_stay_length:.2f} nights",
        f"Average daily rate:  ${dataset.avg_daily_rate:.2f}",
        f"Cancellation rate:   {dataset.cancellation_rate:.2f}%",
        f"Total revenue:       ${dataset.total_revenue:.2f}",
    ]
    if dataset.top_countries:
        countries = ", ".join(
            f"{item.country} ({item.bookings})" for item in dataset.top_countries
        )
        lines.append(f"Top countries:       {countries}")
    return "\n".join(lines)


def run_serve(args: argparse.Namespace, logger: Logger) -> int:
    """Validate configuration and run the dashboard until it exits."""  # noqa: DOC201
    try:
        config.validate()
    except ValueError:
        logger.exception("Configuration invalid")
        return 1

    script_path = (
        args.app if args.app.is_absolute() else (PROJECT_ROOT / args.app)
    ).resolve()
    if not script_path.exists():
        logger.error("Dashboard script not found: %s", script_path)
        return 1

    logger.info(
        "Starting BookingLens dashboard at http://%s:%s (headless=%s)",
        args.address,
        args.port,
        args.headless,
    )
    command = build_streamlit_command(
        script_path, port=args.port, headless=args.headless, address=args.address
    )
    try:
        result = subprocess.run(command, check=False, cwd=PROJECT_ROOT)
    except KeyboardInterrupt:
        logger.info("BookingLens stopped by user")
        return 0
    except OSError:
        logger.exception("Unable to launch Streamlit")
        return 1

    if result.returncode != 0:
        logger.error("Streamlit exited with status %s", result.returncode)
    return result.returncode


def run_export(target: Path, csv_path: Path | None, logger: Logger) -> int:
    """Aggregate bookings and write the JSON export."""  # noqa: DOC201
    try:
        written = export_processed_data(load_bookings_dataset(csv_path), target)
    except (OSError, ValueError):
        logger.exception("Export failed")
        return 1
    logger.info("Exported processed data to %s", written)
    return 0


def run_summary(csv_path: Path | None, logger: Logger) -> int:
    """Print headline figures for the bookings."""  # noqa: DOC201
    try:
        dataset = load_bookings_dataset(csv_path)
    except EmptyInputError:
        logger.error("No bookings found in %s", csv_path)  # noqa: TRY400
        return 1
    except (OSError, ValueError):
        logger.exception("Unable to read bookings")
        return 1
    print(format_summary(dataset))  # noqa: T201
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Dispatch to the dashboard, the export or the summary."""  # noqa: DOC201
    args = parse_args(argv)

    config.setup_logging()
    logger = config.get_logger(__name__)

    if args.command == "export":
        return run_export(args.path, args.csv, logger)
    if args.command == "summary":
        return run_summary(args.csv, logger)
    return run_serve(args, logger)


if __name__ == "__main__":
    sys.exit(main())
