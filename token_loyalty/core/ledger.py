"""
Points ledger and balances.

The ledger is the only component allowed to mutate balances. Every
mutation is paired with an immutable entry, and every precondition is
checked before anything changes, so an operation either fully applies
or is rejected with the state untouched.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Callable, Dict, List, Optional

from .amounts import Number, format_usd, to_decimal
from .conversion import earned_points, earned_value, redeem_value
from .errors import (
    InsufficientBalanceError,
    InvalidAmountError,
    WalletNotConnectedError
)
from .programs import Program
from .wallet import Wallet

logger = logging.getLogger(__name__)

REDEEM_NOTE = "Checkout (gift card / bill credit)"
ZERO = Decimal("0")


class EntryKind(Enum):
    """Kinds of ledger events."""
    ISSUE = "ISSUE"
    REDEEM = "REDEEM"


@dataclass(frozen=True)
class LedgerEntry:
    """Immutable record of one issue or redeem event.

    Holds only the program id, never the Program itself, and the value
    computed when the event happened, so later program changes do not
    rewrite history.
    """
    timestamp: datetime
    kind: EntryKind
    program_id: str
    points_amount: Decimal
    value_amount: Decimal
    note: str = ""


class Ledger:
    """Append-only event log with a running balance per program."""

    def __init__(self, clock: Callable[[], datetime] = datetime.now):
        """Initialize an empty ledger.

        Args:
            clock: Source of entry timestamps
        """
        self._clock = clock
        self._balances: Dict[str, Decimal] = {}
        self._entries: List[LedgerEntry] = []

    @property
    def entries(self) -> List[LedgerEntry]:
        """Entries ordered most recent first."""
        return list(self._entries)

    @property
    def balances(self) -> Dict[str, Decimal]:
        """Balances of every program that has seen activity."""
        return dict(self._balances)

    def balance_of(self, program_id: str) -> Decimal:
        """Current balance for a program, zero if it has no activity."""
        return self._balances.get(program_id, ZERO)

    def issue(self, program: Program, purchase_amount: Number, wallet: Optional[Wallet]) -> Decimal:
        """Issue points for a purchase.

        Args:
            program: Program the purchase earns in
            purchase_amount: Purchase total, must be > 0
            wallet: Connected wallet, required

        Returns:
            The program's updated balance

        Raises:
            WalletNotConnectedError: If no wallet is connected
            InvalidAmountError: If the purchase is not positive, earns no points
                or is too large to account for
        """
        _require_wallet(wallet)
        amount = to_decimal(purchase_amount, "purchase amount")
        if amount <= 0:
            raise InvalidAmountError("Enter a purchase amount > 0.")

        points = earned_points(amount, program)
        if points <= 0:
            raise InvalidAmountError(
                f"A {format_usd(amount)} purchase earns no {program.token_symbol} points."
            )
        value = earned_value(amount, program)
        note = f"Purchase {format_usd(amount)}"

        balance = self.balance_of(program.id) + points
        self._balances[program.id] = balance
        self._append(EntryKind.ISSUE, program.id, points, value, note)
        logger.debug("Issued %s %s for %s", points, program.token_symbol, format_usd(amount))
        return balance

    def redeem(self, program: Program, points: Number, wallet: Optional[Wallet]) -> Decimal:
        """Redeem points at the program's fixed value.

        Args:
            program: Program to redeem from
            points: Points to redeem, must be > 0 and within the balance
            wallet: Connected wallet, required

        Returns:
            The program's updated balance

        Raises:
            WalletNotConnectedError: If no wallet is connected
            InvalidAmountError: If points is not positive
            InsufficientBalanceError: If points exceeds the balance
        """
        _require_wallet(wallet)
        amount = to_decimal(points, "points amount")
        if amount <= 0:
            raise InvalidAmountError("Enter a positive amount.")
        available = self.balance_of(program.id)
        if amount > available:
            raise InsufficientBalanceError(
                "Not enough balance.", requested=amount, available=available
            )

        value = redeem_value(amount, program)

        balance = available - amount
        self._balances[program.id] = balance
        self._append(EntryKind.REDEEM, program.id, amount, value, REDEEM_NOTE)
        logger.debug("Redeemed %s %s", amount, program.token_symbol)
        return balance

    def reset(self) -> None:
        """Clear all balances and entries."""
        self._balances.clear()
        self._entries.clear()

    def _append(self, kind: EntryKind, program_id: str, points: Decimal, value: Decimal, note: str) -> None:
        self._entries.insert(0, LedgerEntry(
            timestamp=self._clock(),
            kind=kind,
            program_id=program_id,
            points_amount=points,
            value_amount=value,
            note=note
        ))


def _require_wallet(wallet: Optional[Wallet]) -> None:
    if wallet is None:
        raise WalletNotConnectedError("Connect a wallet first (mock).")
