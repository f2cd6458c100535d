# token_loyalty/demo/walkthrough.py

from typing import List

from token_loyalty.core.programs import ProgramDefinition
from token_loyalty.core.session import (
    Command,
    CommandOutcome,
    ConnectWallet,
    CreateProgram,
    Issue,
    Redeem,
    SelectProgram,
    Session
)
from token_loyalty.core.wallet import Network


def demo_commands() -> List[Command]:
    """The scripted walkthrough of the live prototype."""
    return [
        Issue(purchase_amount=120),  # rejected: no wallet yet
        ConnectWallet(network=Network.ETH),
        Issue(purchase_amount=120),
        Redeem(points=2.5),
        Redeem(points=50),  # rejected: not enough balance
        SelectProgram(program_id="p3"),
        Issue(purchase_amount=89.99),
        CreateProgram(definition=ProgramDefinition(
            name="Harbor Coffee Club",
            token_symbol="brew",
            fixed_cents_per_point=10,
            earn_rate_pct=8,
            breakage_pct=20
        )),
        Issue(purchase_amount=42.50),
    ]


def run_demo(session: Session) -> List[CommandOutcome]:
    return [session.dispatch(command) for command in demo_commands()]
