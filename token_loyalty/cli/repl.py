"""
Line parser for the interactive `play` shell.
"""

import shlex
from typing import Optional, Tuple

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

# Shell verbs that only read state or control the loop
VIEW_VERBS = {"balance", "ledger", "programs", "export", "help", "quit", "exit"}

HELP_TEXT = """\
connect [demo|eth|sol]      connect a mock wallet
disconnect                  disconnect the wallet
select ID                   make a program active
create NAME SYMBOL [CENTS EARN% BREAKAGE%]
issue AMOUNT [ID]           issue points for a purchase
redeem POINTS [ID]          redeem points at fixed value
balance | ledger | programs show state
export                      write the session as JSON
reset                       restore seed programs and clear the ledger
quit                        leave the shell"""


def parse_line(line: str) -> Tuple[str, Optional[Command]]:
    """Parse one shell line into a verb and, for mutations, a command.

    Returns:
        (verb, command) where command is None for view verbs and blank lines

    Raises:
        ValueError: If the verb is unknown or its arguments are malformed
    """
    try:
        tokens = shlex.split(line)
    except ValueError as e:
        raise ValueError(f"Could not parse input: {e}")
    if not tokens:
        return "", None

    verb, args = tokens[0].lower(), tokens[1:]
    if verb in VIEW_VERBS:
        return verb, None
    if verb == "connect":
        _check_arity(verb, args, 0, 1)
        return verb, ConnectWallet(network=args[0] if args else "demo")
    if verb == "disconnect":
        _check_arity(verb, args, 0, 0)
        return verb, DisconnectWallet()
    if verb == "reset":
        _check_arity(verb, args, 0, 0)
        return verb, Reset()
    if verb == "select":
        _check_arity(verb, args, 1, 1)
        return verb, SelectProgram(program_id=args[0])
    if verb == "issue":
        _check_arity(verb, args, 1, 2)
        return verb, Issue(purchase_amount=args[0], program_id=_optional(args, 1))
    if verb == "redeem":
        _check_arity(verb, args, 1, 2)
        return verb, Redeem(points=args[0], program_id=_optional(args, 1))
    if verb == "create":
        if len(args) not in (2, 5):
            raise ValueError("Usage: create NAME SYMBOL [CENTS EARN% BREAKAGE%]")
        fields = {"name": args[0], "token_symbol": args[1]}
        if len(args) == 5:
            fields.update(
                fixed_cents_per_point=args[2],
                earn_rate_pct=args[3],
                breakage_pct=args[4]
            )
        return verb, CreateProgram(definition=ProgramDefinition(**fields))

    raise ValueError(f"Unknown command '{verb}', type 'help' for a list")


def _check_arity(verb: str, args, low: int, high: int) -> None:
    if not low <= len(args) <= high:
        raise ValueError(f"Wrong number of arguments for '{verb}', type 'help' for usage")


def _optional(args, index: int) -> Optional[str]:
    return args[index] if len(args) > index else None
