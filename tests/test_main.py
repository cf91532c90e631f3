"""Tests for the command line entry point."""
import pytest

from metrics_aggregator.main import build_parser, main


def test_help_mentions_counter_suffix(capsys):
    with pytest.raises(SystemExit):
        build_parser().parse_args(["--help"])

    out = capsys.readouterr().out
    assert "_total" in out
    assert "http_requests_total" in out


def test_repeatable_flags():
    args = build_parser().parse_args([
        "--target-url", "http://upstream:9598/metrics",
        "--aggregate-without-label", "pod",
        "--aggregate-without-label", "instance",
        "--add-labelValue", "cluster=prod",
    ])

    assert args.aggregate_without_labels == ["pod", "instance"]
    assert args.add_labels == ["cluster=prod"]
    assert args.bind_address is None


def test_missing_required_options_exit_non_zero(capsys, monkeypatch):
    monkeypatch.delenv("LOG_LEVEL", raising=False)

    with pytest.raises(SystemExit) as exc_info:
        main(["--target-url", "http://upstream:9598/metrics"])

    assert exc_info.value.code == 1
    assert "Error loading configuration" in capsys.readouterr().err
