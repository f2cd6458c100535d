"""
Unit tests for scenario loading and validation.

Tests strict validation and error handling for scenario files.
"""

import os
import tempfile
from decimal import Decimal
from pathlib import Path

import pytest
import yaml

from token_loyalty.config.loader import Scenario, load_scenario
from token_loyalty.core.programs import ProgramDefinition
from token_loyalty.core.session import (
    ConnectWallet,
    CreateProgram,
    DisconnectWallet,
    Issue,
    Redeem,
    Reset,
    SelectProgram,
    Session
)
from token_loyalty.core.wallet import Network

BASIC_SCENARIO = Path(__file__).parent.parent / "scenarios" / "basic.yaml"


class TestScenarioLoading:
    """Test scenario loading and validation."""

    def setup_method(self):
        """Set up test environment."""
        self.temp_dir = tempfile.mkdtemp()

    def teardown_method(self):
        """Clean up test environment."""
        import shutil
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _write_scenario(self, data, filename: str = "scenario.yaml") -> str:
        """Write scenario data to temporary file."""
        path = os.path.join(self.temp_dir, filename)
        with open(path, 'w', encoding='utf-8') as f:
            yaml.dump(data, f)
        return path

    def test_valid_scenario_loads_correctly(self):
        """Test that every step type parses into its command."""
        path = self._write_scenario({
            "wallet": "eth",
            "steps": [
                {"create": {
                    "name": "Acme",
                    "token_symbol": "acme",
                    "fixed_cents_per_point": 50,
                    "earn_rate_pct": 10,
                    "breakage_pct": 5
                }},
                {"select": "p1"},
                {"issue": {"purchase": 120}},
                {"redeem": {"points": 6, "program": "p1"}},
                {"connect": "sol"},
                {"disconnect": True},
                {"reset": True},
            ]
        })

        scenario = load_scenario(path)

        assert scenario.wallet == Network.ETH
        assert scenario.steps == [
            CreateProgram(definition=ProgramDefinition(
                name="Acme",
                token_symbol="acme",
                fixed_cents_per_point=50,
                earn_rate_pct=10,
                breakage_pct=5
            )),
            SelectProgram(program_id="p1"),
            Issue(purchase_amount=120),
            Redeem(points=6, program_id="p1"),
            ConnectWallet(network=Network.SOL),
            DisconnectWallet(),
            Reset(),
        ]

    def test_commands_start_with_wallet_connect(self):
        scenario = Scenario(wallet=Network.DEMO, steps=[Issue(purchase_amount=10)])
        assert scenario.commands() == [
            ConnectWallet(network=Network.DEMO),
            Issue(purchase_amount=10),
        ]

    def test_wallet_is_optional(self):
        path = self._write_scenario({"steps": [{"issue": {"purchase": 10}}]})
        scenario = load_scenario(path)
        assert scenario.wallet is None
        assert scenario.commands() == [Issue(purchase_amount=10)]

    def test_missing_file_raises_error(self):
        with pytest.raises(FileNotFoundError, match="Scenario file not found"):
            load_scenario(os.path.join(self.temp_dir, "missing.yaml"))

    def test_empty_file_raises_error(self):
        path = os.path.join(self.temp_dir, "empty.yaml")
        Path(path).write_text("", encoding="utf-8")
        with pytest.raises(ValueError, match="Scenario file is empty"):
            load_scenario(path)

    def test_invalid_yaml_raises_error(self):
        path = os.path.join(self.temp_dir, "broken.yaml")
        Path(path).write_text("steps: [unclosed", encoding="utf-8")
        with pytest.raises(yaml.YAMLError, match="Invalid YAML"):
            load_scenario(path)

    def test_non_mapping_raises_error(self):
        path = self._write_scenario(["issue"])
        with pytest.raises(ValueError, match="must be a dictionary"):
            load_scenario(path)

    def test_unknown_top_level_key(self):
        path = self._write_scenario({"steps": [], "budget": 10})
        with pytest.raises(ValueError, match="Unknown scenario keys"):
            load_scenario(path)

    def test_missing_steps(self):
        path = self._write_scenario({"wallet": "demo"})
        with pytest.raises(ValueError, match="Missing required 'steps' section"):
            load_scenario(path)

    def test_steps_must_be_list(self):
        path = self._write_scenario({"steps": {"issue": {"purchase": 1}}})
        with pytest.raises(ValueError, match="'steps' must be a list"):
            load_scenario(path)

    def test_unknown_wallet_network(self):
        path = self._write_scenario({"wallet": "btc", "steps": []})
        with pytest.raises(ValueError, match="'wallet' must be one of"):
            load_scenario(path)

    def test_unknown_action(self):
        path = self._write_scenario({"steps": [{"mint": {"points": 5}}]})
        with pytest.raises(ValueError, match="Unknown action 'mint' in steps\\[0\\]"):
            load_scenario(path)

    def test_step_with_two_actions(self):
        path = self._write_scenario({"steps": [{"issue": {"purchase": 1}, "reset": True}]})
        with pytest.raises(ValueError, match="single-key dictionary"):
            load_scenario(path)

    def test_issue_missing_purchase(self):
        path = self._write_scenario({"steps": [{"issue": {"program": "p1"}}]})
        with pytest.raises(ValueError, match="Missing required 'purchase' in steps\\[0\\].issue"):
            load_scenario(path)

    def test_non_numeric_amount(self):
        path = self._write_scenario({"steps": [{"issue": {"purchase": "lots"}}]})
        with pytest.raises(ValueError, match="must be a number"):
            load_scenario(path)

    def test_unknown_redeem_key(self):
        path = self._write_scenario({"steps": [{"redeem": {"points": 1, "all": True}}]})
        with pytest.raises(ValueError, match="Unknown keys in steps\\[0\\].redeem"):
            load_scenario(path)

    def test_create_missing_symbol(self):
        path = self._write_scenario({"steps": [{"create": {"name": "Acme"}}]})
        with pytest.raises(ValueError, match="Missing required 'token_symbol'"):
            load_scenario(path)

    def test_bundled_scenario_replays(self):
        """Test the bundled example scenario end to end."""
        scenario = load_scenario(str(BASIC_SCENARIO))
        session = Session()

        outcomes = [session.dispatch(command) for command in scenario.commands()]

        assert [o.accepted for o in outcomes] == [True] * 7 + [False]
        assert outcomes[-1].message == "Not enough balance."
        brew = session.active_program
        assert brew.token_symbol == "BREW"
        assert session.ledger.balances == {
            "p1": Decimal("0"),
            "p2": Decimal("7.50"),
            brew.id: Decimal("34.00"),
        }
