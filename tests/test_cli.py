"""
Tests for the CLI interface.
"""
import glob
import json
import os
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from token_loyalty.cli.main import app, EXIT_CODE_PASS, EXIT_CODE_FAIL
from token_loyalty.core.session import CommandOutcome, Issue

runner = CliRunner()

BASIC_SCENARIO = str(Path(__file__).parent.parent / "scenarios" / "basic.yaml")


@pytest.fixture
def export_dir():
    """Temporary directory for exported state."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield temp_dir


def _exported_documents(directory):
    paths = glob.glob(os.path.join(directory, "tokenloyalty-demo-*.json"))
    documents = []
    for path in paths:
        with open(path, encoding="utf-8") as f:
            documents.append(json.load(f))
    return documents


class TestCLI:
    """Test CLI commands."""

    def test_no_command_prints_hint(self):
        result = runner.invoke(app, [])
        assert result.exit_code == EXIT_CODE_PASS
        assert "--help" in result.output

    def test_programs_lists_seeds(self):
        result = runner.invoke(app, ["programs"])
        assert result.exit_code == EXIT_CODE_PASS
        for symbol in ("GOTH", "IMPT", "KRAK"):
            assert symbol in result.output

    def test_quote_default_program(self):
        result = runner.invoke(app, ["quote", "120"])
        assert result.exit_code == EXIT_CODE_PASS
        assert "Earn value: $6.00" in result.output
        assert "Points to issue: 6.00" in result.output

    def test_quote_other_program(self):
        result = runner.invoke(app, ["quote", "89.99", "--program", "p3"])
        assert result.exit_code == EXIT_CODE_PASS
        assert "KRAK" in result.output
        assert "Points to issue: 3.60" in result.output

    def test_quote_invalid_amount(self):
        result = runner.invoke(app, ["quote", "lots"])
        assert result.exit_code == EXIT_CODE_FAIL
        assert "Error:" in result.output

    def test_quote_unknown_program(self):
        result = runner.invoke(app, ["quote", "10", "-p", "p9"])
        assert result.exit_code == EXIT_CODE_FAIL
        assert "Unknown program: p9" in result.output

    def test_quote_too_large_amount(self):
        result = runner.invoke(app, ["quote", "1e30"])
        assert result.exit_code == EXIT_CODE_FAIL
        assert "Error:" in result.output
        assert "Amount is too large." in result.output


class TestDemoCommand:
    """Test the walkthrough command."""

    def test_demo_reports_outcomes(self):
        result = runner.invoke(app, ["demo"])
        assert result.exit_code == EXIT_CODE_PASS
        assert "Rejected: Connect a wallet first (mock)." in result.output
        assert "Issued 6.00 GOTH" in result.output
        assert "Not enough balance." in result.output
        assert "Ledger" in result.output

    def test_demo_export(self, export_dir):
        result = runner.invoke(app, ["demo", "--export-dir", export_dir])
        assert result.exit_code == EXIT_CODE_PASS

        documents = _exported_documents(export_dir)
        assert len(documents) == 1
        assert documents[0]["wallet"]["network"] == "eth"
        assert documents[0]["balances"]["p1"] == 3.5


class TestRunCommand:
    """Test scenario replay."""

    def test_run_bundled_scenario(self):
        result = runner.invoke(app, ["run", BASIC_SCENARIO])
        assert result.exit_code == EXIT_CODE_PASS
        assert "Issued 7.50 IMPT" in result.output
        assert "Rejected: Not enough balance." in result.output

    def test_run_strict_fails_on_rejection(self):
        result = runner.invoke(app, ["run", BASIC_SCENARIO, "--strict"])
        assert result.exit_code == EXIT_CODE_FAIL

    def test_run_strict_passes_when_all_accepted(self):
        with patch("token_loyalty.cli.main.Session.dispatch") as mock_dispatch:
            mock_dispatch.return_value = CommandOutcome(
                command=Issue(purchase_amount=1), accepted=True, message="ok"
            )
            result = runner.invoke(app, ["run", BASIC_SCENARIO, "--strict"])
        assert result.exit_code == EXIT_CODE_PASS

    def test_run_missing_scenario(self, export_dir):
        result = runner.invoke(app, ["run", os.path.join(export_dir, "nope.yaml")])
        assert result.exit_code == EXIT_CODE_FAIL
        assert "Scenario file not found" in result.output

    def test_run_invalid_scenario(self, export_dir):
        path = os.path.join(export_dir, "bad.yaml")
        Path(path).write_text("steps:\n  - mint: 5\n", encoding="utf-8")
        result = runner.invoke(app, ["run", path])
        assert result.exit_code == EXIT_CODE_FAIL
        assert "Unknown action 'mint'" in result.output

    def test_run_malformed_yaml(self, export_dir):
        path = os.path.join(export_dir, "broken.yaml")
        Path(path).write_text("steps: [\n", encoding="utf-8")
        result = runner.invoke(app, ["run", path])
        assert result.exit_code == EXIT_CODE_FAIL
        assert "Error:" in result.output
        assert "Invalid YAML" in result.output

    def test_run_export(self, export_dir):
        result = runner.invoke(app, ["run", BASIC_SCENARIO, "-o", export_dir])
        assert result.exit_code == EXIT_CODE_PASS
        documents = _exported_documents(export_dir)
        assert len(documents) == 1
        assert documents[0]["balances"]["p2"] == 7.5
        assert len(documents[0]["ledger"]) == 4


class TestPlayCommand:
    """Test the interactive shell."""

    def test_issue_and_redeem(self):
        script = "issue 120\nconnect eth\nissue 120\nredeem 6\nredeem 1\nbalance\nquit\n"
        result = runner.invoke(app, ["play"], input=script)
        assert result.exit_code == EXIT_CODE_PASS
        assert "Connect a wallet first (mock)." in result.output
        assert "Issued 6.00 GOTH" in result.output
        assert "Redeemed 6.00 GOTH" in result.output
        assert "Not enough balance." in result.output
        assert "on ETH" in result.output

    def test_end_of_input_exits_cleanly(self):
        result = runner.invoke(app, ["play"], input="programs\n")
        assert result.exit_code == EXIT_CODE_PASS
        assert "KRAK" in result.output

    def test_help_and_bad_input(self):
        result = runner.invoke(app, ["play"], input="help\nmint 5\nquit\n")
        assert result.exit_code == EXIT_CODE_PASS
        assert "redeem POINTS" in result.output
        assert "Unknown command 'mint'" in result.output

    def test_too_large_purchase_is_rejected(self):
        result = runner.invoke(app, ["play"], input="connect\nissue 1e28\nquit\n")
        assert result.exit_code == EXIT_CODE_PASS
        assert "Amount is too large." in result.output

    def test_export(self, export_dir):
        script = "connect\nissue 50\nexport\nquit\n"
        result = runner.invoke(app, ["play", "--export-dir", export_dir], input=script)
        assert result.exit_code == EXIT_CODE_PASS
        documents = _exported_documents(export_dir)
        assert len(documents) == 1
        assert documents[0]["balances"] == {"p1": 2.5}

    def test_ledger_view(self):
        script = "connect\nissue 120\nledger\nquit\n"
        result = runner.invoke(app, ["play"], input=script)
        assert "ISSUE" in result.output
        assert "$6.00" in result.output
