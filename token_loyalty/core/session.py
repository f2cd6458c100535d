"""
Session state and command dispatch.

A Session owns everything one demo user can touch: the mock wallet, the
program registry and the ledger. State changes go through either the
direct methods, which raise on validation failures, or through
dispatch(), which applies a command object and reports the outcome.

dispatch() mirrors the direct methods with these differences:
1. Validation failures are returned as rejected outcomes, not raised
2. Every outcome carries a user-facing message
"""

import logging
import random
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Dict, Optional, Type, Union

from .amounts import Number
from .conversion import ProgramHealth, PurchaseQuote, program_health, quote_purchase
from .errors import LoyaltyValidationError
from .ledger import Ledger
from .programs import Program, ProgramDefinition, ProgramRegistry
from .wallet import Network, Wallet, mock_connect, parse_network

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConnectWallet:
    network: Union[Network, str] = Network.DEMO


@dataclass(frozen=True)
class DisconnectWallet:
    pass


@dataclass(frozen=True)
class SelectProgram:
    program_id: str


@dataclass(frozen=True)
class CreateProgram:
    definition: ProgramDefinition


@dataclass(frozen=True)
class Issue:
    """Issue points for a purchase; program defaults to the selected one."""
    purchase_amount: Number
    program_id: Optional[str] = None


@dataclass(frozen=True)
class Redeem:
    """Redeem points; program defaults to the selected one."""
    points: Number
    program_id: Optional[str] = None


@dataclass(frozen=True)
class Reset:
    pass


Command = Union[ConnectWallet, DisconnectWallet, SelectProgram, CreateProgram, Issue, Redeem, Reset]


@dataclass(frozen=True)
class CommandOutcome:
    """Result of dispatching a command."""
    command: Command
    accepted: bool
    message: str
    balance: Optional[Decimal] = None  # set for accepted Issue/Redeem


class Session:
    """Explicit application state for one demo user."""

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        clock: Optional[Callable] = None
    ):
        """Initialize a fresh session with the seed programs.

        Args:
            rng: Random source for wallet addresses and program ids
            clock: Source of ledger timestamps (defaults to datetime.now)
        """
        self._rng = rng or random.Random()
        self.wallet: Optional[Wallet] = None
        self.registry = ProgramRegistry(rng=self._rng)
        self.ledger = Ledger(clock=clock) if clock else Ledger()

    @property
    def active_program(self) -> Program:
        return self.registry.selected

    @property
    def active_balance(self) -> Decimal:
        return self.ledger.balance_of(self.registry.selected_id)

    def connect_wallet(self, network: Union[Network, str] = Network.DEMO) -> Wallet:
        """Connect a fresh mock wallet, replacing any existing one."""
        self.wallet = mock_connect(parse_network(network), rng=self._rng)
        logger.debug("Connected wallet %s on %s", self.wallet.address, self.wallet.network.value)
        return self.wallet

    def disconnect_wallet(self) -> None:
        self.wallet = None

    def select_program(self, program_id: str) -> Program:
        return self.registry.select(program_id)

    def create_program(self, definition: ProgramDefinition) -> Program:
        return self.registry.create(definition)

    def issue(self, purchase_amount: Number, program_id: Optional[str] = None) -> Decimal:
        """Issue points for a purchase and return the updated balance."""
        program = self.resolve_program(program_id)
        return self.ledger.issue(program, purchase_amount, self.wallet)

    def redeem(self, points: Number, program_id: Optional[str] = None) -> Decimal:
        """Redeem points and return the updated balance."""
        program = self.resolve_program(program_id)
        return self.ledger.redeem(program, points, self.wallet)

    def reset(self) -> None:
        """Restore seed programs, clear the ledger and disconnect the wallet."""
        self.registry.reset()
        self.ledger.reset()
        self.wallet = None
        logger.debug("Session reset")

    def quote(self, purchase_amount: Number, program_id: Optional[str] = None) -> PurchaseQuote:
        return quote_purchase(purchase_amount, self.resolve_program(program_id))

    def health(self, program_id: Optional[str] = None) -> ProgramHealth:
        program = self.resolve_program(program_id)
        return program_health(self.ledger.balance_of(program.id), program)

    def dispatch(self, command: Command) -> CommandOutcome:
        """Apply a command, collecting validation failures instead of raising.

        Args:
            command: One of the command dataclasses in this module

        Returns:
            CommandOutcome describing what happened

        Raises:
            TypeError: If the command type is not recognized
        """
        handler = _HANDLERS.get(type(command))
        if handler is None:
            raise TypeError(f"Unsupported command: {type(command).__name__}")
        try:
            return handler(self, command)
        except LoyaltyValidationError as e:
            return CommandOutcome(command=command, accepted=False, message=str(e))

    def resolve_program(self, program_id: Optional[str] = None) -> Program:
        """The given program, or the selected one when program_id is None."""
        if program_id is None:
            return self.registry.selected
        return self.registry.get(program_id)


def _handle_connect(session: Session, command: ConnectWallet) -> CommandOutcome:
    wallet = session.connect_wallet(command.network)
    return CommandOutcome(
        command=command,
        accepted=True,
        message=f"Connected {wallet.short_address} on {wallet.network.value.upper()}"
    )


def _handle_disconnect(session: Session, command: DisconnectWallet) -> CommandOutcome:
    session.disconnect_wallet()
    return CommandOutcome(command=command, accepted=True, message="Wallet disconnected")


def _handle_select(session: Session, command: SelectProgram) -> CommandOutcome:
    program = session.select_program(command.program_id)
    return CommandOutcome(
        command=command,
        accepted=True,
        message=f"Selected {program.name} ({program.token_symbol})"
    )


def _handle_create(session: Session, command: CreateProgram) -> CommandOutcome:
    program = session.create_program(command.definition)
    return CommandOutcome(
        command=command,
        accepted=True,
        message=f"Created {program.name} ({program.token_symbol}) as {program.id}"
    )


def _handle_issue(session: Session, command: Issue) -> CommandOutcome:
    program = session.resolve_program(command.program_id)
    before = session.ledger.balance_of(program.id)
    balance = session.issue(command.purchase_amount, program.id)
    points = balance - before
    return CommandOutcome(
        command=command,
        accepted=True,
        message=f"Issued {points} {program.token_symbol}",
        balance=balance
    )


def _handle_redeem(session: Session, command: Redeem) -> CommandOutcome:
    program = session.resolve_program(command.program_id)
    before = session.ledger.balance_of(program.id)
    balance = session.redeem(command.points, program.id)
    points = before - balance
    return CommandOutcome(
        command=command,
        accepted=True,
        message=f"Redeemed {points} {program.token_symbol}",
        balance=balance
    )


def _handle_reset(session: Session, command: Reset) -> CommandOutcome:
    session.reset()
    return CommandOutcome(command=command, accepted=True, message="Session reset")


_HANDLERS: Dict[Type, Callable[[Session, Command], CommandOutcome]] = {
    ConnectWallet: _handle_connect,
    DisconnectWallet: _handle_disconnect,
    SelectProgram: _handle_select,
    CreateProgram: _handle_create,
    Issue: _handle_issue,
    Redeem: _handle_redeem,
    Reset: _handle_reset,
}
