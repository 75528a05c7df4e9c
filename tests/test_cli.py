"""CLI tests for quadpool via Click's CliRunner.

Runs use the thread transport and a small pool so they stay fast.
"""

from __future__ import annotations

import pytest
from click.testing import CliRunner

from quadpool.cli import cli, parse_number
from quadpool.exceptions import ParseError

FAST = ["--transport", "thread", "--np", "3", "--subdivisions", "200"]


@pytest.fixture
def runner():
    """Create a Click test runner."""
    return CliRunner()


# ---------------------------------------------------------------------------
# Argument handling
# ---------------------------------------------------------------------------


class TestArguments:
    def test_no_arguments_prints_usage(self, runner):
        result = runner.invoke(cli, [])
        assert result.exit_code == 1
        assert "You may be missing some arguments." in result.output
        assert "Usage:" in result.output

    def test_two_arguments_prints_usage(self, runner):
        result = runner.invoke(cli, ["0", "1"])
        assert result.exit_code == 1
        assert "missing some arguments" in result.output

    def test_pool_of_one_rejected(self, runner):
        result = runner.invoke(cli, ["0", "1", "0.1", "--np", "1"])
        assert result.exit_code == 1
        assert "2 or more execution units" in result.output

    def test_pool_size_from_environment(self, runner):
        result = runner.invoke(cli, ["0", "1", "0.1"], env={"QUADPOOL_NP": "1"})
        assert result.exit_code == 1
        assert "2 or more execution units" in result.output

    def test_non_numeric_argument(self, runner):
        result = runner.invoke(cli, ["0", "abc", "0.1", *FAST])
        assert result.exit_code == 1
        assert "UPPER" in result.output
        assert "not a number" in result.output

    def test_reversed_bounds(self, runner):
        result = runner.invoke(cli, ["1", "0", "0.1", *FAST])
        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_unknown_function(self, runner):
        result = runner.invoke(cli, ["0", "1", "0.1", "-f", "nope", *FAST])
        assert result.exit_code == 1
        assert "Unknown integrand" in result.output

    @pytest.mark.parametrize(
        "option, value",
        [
            ("--digits", "-1"),
            ("--max-depth", "-3"),
            ("--subdivisions", "0"),
            ("--min-width", "-0.5"),
        ],
    )
    def test_out_of_range_option_is_a_usage_error(self, runner, option, value):
        result = runner.invoke(cli, ["0", "1", "0.1", option, value, *FAST])
        assert result.exit_code == 2
        assert f"Invalid value for '{option}'" in result.output
        assert "AQI:" not in result.output

    def test_parse_number(self):
        assert parse_number("LOWER", "2.5e-1") == 0.25
        with pytest.raises(ParseError) as exc_info:
            parse_number("ERROR", "tiny")
        assert exc_info.value.argument == "ERROR"
        assert exc_info.value.raw == "tiny"


# ---------------------------------------------------------------------------
# Runs
# ---------------------------------------------------------------------------


class TestRuns:
    def test_report(self, runner):
        result = runner.invoke(cli, ["0", "1", "0.1", *FAST])
        assert result.exit_code == 0, result.output
        assert "Adaptive Quadrature Integration:" in result.output
        assert "Bounds: 0.00, 1.00" in result.output
        assert "Error: 0.1" in result.output
        assert "AQI:" in result.output
        assert "Runtime:" in result.output
        assert "Workers: 2" in result.output

    def test_digits(self, runner):
        result = runner.invoke(cli, ["0", "1", "0.1", "-f", "linear", "--digits", "3", *FAST])
        assert result.exit_code == 0, result.output
        # integral of x/4 + 4 over [0, 1]
        assert "AQI: 4.125" in result.output

    def test_import_path_function(self, runner):
        result = runner.invoke(cli, ["0", "1", "0.01", "-f", "math:sin", *FAST])
        assert result.exit_code == 0, result.output
        assert "∫ sin dx" in result.output

    def test_unreachable_precision_warns(self, runner):
        result = runner.invoke(cli, ["0", "1", "0", "--max-depth", "2", *FAST])
        assert result.exit_code == 0, result.output
        assert "Warning:" in result.output
        assert "precision unreachable on 4 subinterval(s)" in result.output

    def test_unreachable_precision_fails_when_strict(self, runner):
        result = runner.invoke(cli, ["0", "1", "0", "--max-depth", "2", "--strict", *FAST])
        assert result.exit_code == 1
        assert "Precision unreachable on 4 subinterval(s)" in result.output
        assert "AQI:" not in result.output

    def test_legs_split_mode(self, runner):
        atomic = runner.invoke(cli, ["0", "1", "0.001", *FAST])
        legs = runner.invoke(cli, ["0", "1", "0.001", "--split-mode", "legs", *FAST])
        assert atomic.exit_code == legs.exit_code == 0

        def aqi(output):
            return next(line for line in output.splitlines() if "AQI:" in line)

        assert aqi(atomic.output) == aqi(legs.output)
