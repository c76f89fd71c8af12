"""
Unit tests for the command-line interface.
"""

import json
import sys

import pytest
from click.testing import CliRunner
from loguru import logger

from dialectics.cli import cli


@pytest.fixture(autouse=True)
def reset_logging():
    """The CLI points loguru at the runner's stderr; restore it afterwards."""
    yield
    logger.remove()
    logger.add(sys.stderr, level="DEBUG")


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def run_file(tmp_path):
    path = tmp_path / "run.json"
    path.write_text(
        json.dumps(
            {
                "protocol": "cffp",
                "subject": "addition",
                "run_id": "cli-run",
                "candidates": [{"id": "C1"}, {"id": "C2"}],
                "challenges": [
                    {
                        "id": "X1",
                        "target": "C1",
                        "subtype": "counterexample",
                        "argument": "fails on zero",
                        "minimal": True,
                        "rebuttal": {
                            "kind": "scope_narrowing",
                            "argument": "restrict to positives",
                            "valid": True,
                            "limitation": "positive integers only",
                        },
                    },
                    {
                        "id": "X2",
                        "target": "C2",
                        "subtype": "internal_inconsistency",
                        "argument": "defines 1 = 0",
                    },
                ],
            }
        )
    )
    return path


class TestProtocolsCommand:
    """Test the protocols command."""

    def test_lists_all(self, runner):
        result = runner.invoke(cli, ["--log-level", "ERROR", "protocols"])

        assert result.exit_code == 0
        for protocol_id in ("cffp", "cdp", "cbp", "hep", "atp", "emp"):
            assert protocol_id in result.output

    def test_describe(self, runner):
        result = runner.invoke(cli, ["--log-level", "ERROR", "protocols", "hep"])

        assert result.exit_code == 0
        assert json.loads(result.output)["protocol_id"] == "hep"

    def test_unknown(self, runner):
        result = runner.invoke(cli, ["protocols", "xyz"])

        assert result.exit_code == 1
        assert "Unknown protocol 'xyz'" in result.output


class TestDeriveCommand:
    """Test the derive command."""

    def test_text_report(self, runner, run_file):
        result = runner.invoke(cli, ["--log-level", "ERROR", "derive", str(run_file)])

        assert result.exit_code == 0
        assert "Run cli-run (cffp) on 'addition'" in result.output
        assert "Eliminated (1):" in result.output
        assert "C2:" in result.output
        assert "Survivors (1):" in result.output
        assert "positive integers only" in result.output
        assert "Next stage: gate" in result.output

    def test_json_report(self, runner, run_file):
        result = runner.invoke(cli, ["--log-level", "ERROR", "derive", "--json", str(run_file)])

        assert result.exit_code == 0
        derivation = json.loads(result.output)
        assert derivation["survivors"][0]["candidate_id"] == "C1"
        assert derivation["eliminated"][0]["challenge_id"] == "X2"

    def test_malformed_input(self, runner, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"protocol": "cffp", "subject": "addition"}))

        result = runner.invoke(cli, ["--log-level", "ERROR", "derive", str(path)])

        assert result.exit_code == 1
        assert "Error: Malformed run input" in result.output
        assert "candidates" in result.output

    def test_missing_file(self, runner, tmp_path):
        result = runner.invoke(cli, ["derive", str(tmp_path / "absent.json")])

        assert result.exit_code != 0


class TestSchemaCommand:
    """Test the schema command."""

    def test_outcome_schema(self, runner):
        result = runner.invoke(cli, ["--log-level", "ERROR", "schema"])

        assert result.exit_code == 0
        assert json.loads(result.output)["title"] == "Outcome"

    def test_input_schema(self, runner):
        result = runner.invoke(cli, ["--log-level", "ERROR", "schema", "--input"])

        assert json.loads(result.output)["title"] == "RunInput"
