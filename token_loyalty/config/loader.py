"""
Scenario configuration loading.

A scenario is a YAML script of session commands, replayed by the CLI.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from token_loyalty.core.programs import ProgramDefinition
from token_loyalty.core.session import (
    Command,
    ConnectWallet,
    CreateProgram,
    DisconnectWallet,
    Issue,
    Redeem,
    Reset,
    SelectProgram
)
from token_loyalty.core.wallet import Network


@dataclass(frozen=True)
class Scenario:
    """A validated, replayable session script."""
    wallet: Optional[Network]
    steps: List[Command]

    def commands(self) -> List[Command]:
        """All commands in replay order, starting with the wallet connect."""
        if self.wallet is None:
            return list(self.steps)
        return [ConnectWallet(network=self.wallet)] + list(self.steps)


def load_scenario(path: str) -> Scenario:
    """Load and validate a scenario from a YAML file.

    Unknown keys are rejected so that a typo cannot silently drop a step.

    Args:
        path: Path to YAML scenario file

    Returns:
        Validated Scenario object

    Raises:
        FileNotFoundError: If scenario file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If the scenario is invalid
    """
    scenario_path = Path(path)
    if not scenario_path.exists():
        raise FileNotFoundError(f"Scenario file not found: {path}")

    with open(scenario_path, 'r', encoding='utf-8') as f:
        try:
            raw = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in scenario file {path}: {e}")

    if not raw:
        raise ValueError("Scenario file is empty")
    if not isinstance(raw, dict):
        raise ValueError("Scenario must be a dictionary")

    allowed_top_keys = {'wallet', 'steps'}
    unknown_keys = set(raw.keys()) - allowed_top_keys
    if unknown_keys:
        raise ValueError(f"Unknown scenario keys: {unknown_keys}")

    wallet = None
    if raw.get('wallet') is not None:
        wallet = _parse_network(raw['wallet'], "wallet")

    if 'steps' not in raw:
        raise ValueError("Missing required 'steps' section")
    steps_data = raw['steps']
    if not isinstance(steps_data, list):
        raise ValueError("'steps' must be a list")

    steps = [_parse_step(step, f"steps[{i}]") for i, step in enumerate(steps_data)]
    return Scenario(wallet=wallet, steps=steps)


def _parse_network(value: Any, path: str) -> Network:
    if not isinstance(value, str):
        raise ValueError(f"'{path}' must be a string")
    try:
        return Network(value.lower())
    except ValueError:
        valid_networks = [network.value for network in Network]
        raise ValueError(f"'{path}' must be one of: {valid_networks}")


def _parse_step(step: Any, path: str) -> Command:
    """Parse one step of the form {action: arguments}.

    Raises:
        ValueError: If the step is malformed
    """
    if not isinstance(step, dict) or len(step) != 1:
        raise ValueError(f"{path} must be a single-key dictionary")

    action, args = next(iter(step.items()))
    if action == 'connect':
        return ConnectWallet(network=_parse_network(args, f"{path}.connect"))
    if action == 'disconnect':
        return DisconnectWallet()
    if action == 'reset':
        return Reset()
    if action == 'select':
        if not isinstance(args, str) or not args:
            raise ValueError(f"'{path}.select' must be a program id")
        return SelectProgram(program_id=args)
    if action == 'create':
        return CreateProgram(definition=_parse_definition(args, f"{path}.create"))
    if action == 'issue':
        data = _check_keys(args, {'purchase', 'program'}, {'purchase'}, f"{path}.issue")
        return Issue(
            purchase_amount=_parse_number(data['purchase'], f"{path}.issue.purchase"),
            program_id=data.get('program')
        )
    if action == 'redeem':
        data = _check_keys(args, {'points', 'program'}, {'points'}, f"{path}.redeem")
        return Redeem(
            points=_parse_number(data['points'], f"{path}.redeem.points"),
            program_id=data.get('program')
        )

    valid_actions = ['connect', 'disconnect', 'select', 'create', 'issue', 'redeem', 'reset']
    raise ValueError(f"Unknown action '{action}' in {path}, must be one of: {valid_actions}")


def _parse_definition(data: Any, path: str) -> ProgramDefinition:
    allowed = {'name', 'token_symbol', 'fixed_cents_per_point', 'earn_rate_pct', 'breakage_pct'}
    data = _check_keys(data, allowed, {'name', 'token_symbol'}, path)

    # Emptiness is left to the registry, which reports it as a rejected step
    fields: Dict[str, Any] = {
        'name': str(data['name'] or ""),
        'token_symbol': str(data['token_symbol'] or ""),
    }
    for key in ('fixed_cents_per_point', 'earn_rate_pct', 'breakage_pct'):
        if key in data:
            fields[key] = _parse_number(data[key], f"{path}.{key}")
    return ProgramDefinition(**fields)


def _check_keys(data: Any, allowed: set, required: set, path: str) -> Dict:
    if not isinstance(data, dict):
        raise ValueError(f"'{path}' must be a dictionary")
    unknown_keys = set(data.keys()) - allowed
    if unknown_keys:
        raise ValueError(f"Unknown keys in {path}: {unknown_keys}")
    for key in sorted(required):
        if key not in data:
            raise ValueError(f"Missing required '{key}' in {path}")
    return data


def _parse_number(value: Any, path: str):
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"'{path}' must be a number")
    return value
