"""Tests for the command-line entry point."""

import json
import logging
import sys
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import patch

import pytest

import main
from bookinglens.config import config


def test_parse_args_defaults_to_serve():
    args = main.parse_args([])

    assert args.command == "serve"
    assert args.app == main.DEFAULT_APP
    assert args.port == 8501
    assert args.address == "localhost"
    assert args.headless is True


def test_parse_args_serve_options_without_subcommand():
    args = main.parse_args(["--show", "--port", "9000"])

    assert args.command == "serve"
    assert args.headless is False
    assert args.port == 9000


def test_parse_args_export_defaults_to_config_path():
    args = main.parse_args(["export"])

    assert args.command == "export"
    assert args.path == config.EXPORT_PATH
    assert args.csv is None


def test_parse_args_export_path_and_csv():
    args = main.parse_args(["export", "out.json", "--csv", "b.csv"])

    assert args.path == Path("out.json")
    assert args.csv == Path("b.csv")


def test_parse_args_summary():
    args = main.parse_args(["summary", "--csv", "b.csv"])
    assert args.command == "summary"
    assert args.csv == Path("b.csv")


def test_build_streamlit_command():
    command = main.build_streamlit_command(
        Path("/tmp/dashboard.py"), port=9000, headless=False, address="0.0.0.0"
    )

    assert command == [
        sys.executable,
        "-m",
        "streamlit",
        "run",
        "/tmp/dashboard.py",
        "--server.port",
        "9000",
        "--server.address",
        "0.0.0.0",
        "--server.headless",
        "false",
    ]


def test_format_summary_demo_figures(demo_dataset):
    text = main.format_summary(demo_dataset)

    assert "Bookings:            10" in text
    assert "Average daily rate:  $111.30" in text
    assert "Cancellation rate:   20.00%" in text
    assert "Total revenue:       $4406.00" in text
    assert "PRT (1)" in text


def test_main_summary_prints_figures(capsys):
    assert main.main(["summary"]) == 0
    assert "Bookings:            10" in capsys.readouterr().out


def test_main_summary_empty_csv_fails(tmp_path):
    csv_path = tmp_path / "empty.csv"
    csv_path.write_text("id,hotelName,arrivalDate\n", encoding="utf-8")

    assert main.main(["summary", "--csv", str(csv_path)]) == 1


def test_main_export_demo_data(tmp_path):
    target = tmp_path / "processed.json"

    assert main.main(["export", str(target)]) == 0

    payload = json.loads(target.read_text(encoding="utf-8"))
    assert payload["total_bookings"] == 10


def test_main_export_from_csv(tmp_path, sample_csv_text):
    csv_path = tmp_path / "bookings.csv"
    csv_path.write_text(sample_csv_text, encoding="utf-8")
    target = tmp_path / "processed.json"

    assert main.main(["export", str(target), "--csv", str(csv_path)]) == 0
    assert json.loads(target.read_text(encoding="utf-8"))["total_bookings"] == 2


def test_run_export_missing_csv_fails(tmp_path):
    logger = logging.getLogger("test")
    code = main.run_export(tmp_path / "out.json", tmp_path / "missing.csv", logger)
    assert code == 1


def test_main_invalid_config_returns_error():
    with patch.object(
        config, "validate", side_effect=ValueError("OPENAI_API_KEY is required")
    ):
        assert main.main([]) == 1


def test_main_missing_dashboard_script(tmp_path):
    with patch.object(config, "validate"):
        assert main.main(["serve", "--app", str(tmp_path / "nope.py")]) == 1


def test_main_launches_streamlit():
    with (
        patch.object(config, "validate"),
        patch.object(
            main.subprocess, "run", return_value=SimpleNamespace(returncode=0)
        ) as mock_run,
    ):
        assert main.main(["--port", "8600"]) == 0

    command = mock_run.call_args.args[0]
    assert "8600" in command
    assert command[4] == str(main.DEFAULT_APP.resolve())
    assert mock_run.call_args.kwargs == {"check": False, "cwd": main.PROJECT_ROOT}


@pytest.mark.parametrize(
    ("side_effect", "expected"),
    [
        (KeyboardInterrupt(), 0),
        (OSError("no streamlit"), 1),
    ],
)
def test_main_streamlit_launch_errors(side_effect, expected):
    with (
        patch.object(config, "validate"),
        patch.object(main.subprocess, "run", side_effect=side_effect),
    ):
        assert main.main([]) == expected
