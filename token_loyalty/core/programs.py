"""
Loyalty program definitions and registry.

Holds the fixed-value economics of each program and tracks which
program is currently selected.
"""

import logging
import random
import string
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional

from .amounts import Number, to_decimal
from .errors import MissingFieldError, UnknownProgramError

logger = logging.getLogger(__name__)

MAX_BREAKAGE_PCT = Decimal("100")
_ID_ALPHABET = string.digits + string.ascii_lowercase


@dataclass(frozen=True)
class ProgramDefinition:
    """Creation input for a loyalty program."""
    name: str
    token_symbol: str
    fixed_cents_per_point: Number = 100  # 100 = $1.00 per point
    earn_rate_pct: Number = 5  # % of purchase returned as point value
    breakage_pct: Number = 10  # expected unredeemed share, modeling only


@dataclass(frozen=True)
class Program:
    """A loyalty program with a fixed value per point."""
    id: str
    name: str
    token_symbol: str
    fixed_cents_per_point: int
    earn_rate_pct: Decimal
    breakage_pct: Decimal

    def __post_init__(self):
        """Enforce the fixed-value invariant."""
        if self.fixed_cents_per_point < 1:
            raise ValueError("fixed_cents_per_point must be >= 1")


SEED_PROGRAMS = (
    Program(
        id="p1",
        name="Gotham Sports Rewards",
        token_symbol="GOTH",
        fixed_cents_per_point=100,
        earn_rate_pct=Decimal("5"),
        breakage_pct=Decimal("15")
    ),
    Program(
        id="p2",
        name="Street Child Impact Cash",
        token_symbol="IMPT",
        fixed_cents_per_point=100,
        earn_rate_pct=Decimal("3"),
        breakage_pct=Decimal("0")
    ),
    Program(
        id="p3",
        name="Kraken Club Cashback",
        token_symbol="KRAK",
        fixed_cents_per_point=100,
        earn_rate_pct=Decimal("4"),
        breakage_pct=Decimal("10")
    ),
)


class ProgramRegistry:
    """Set of loyalty programs, unique by id, with an active selection.

    Newly created programs are listed first; the seed programs follow
    in seed order.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        """Initialize the registry with the seed programs.

        Args:
            rng: Random source for program ids (defaults to an unseeded Random)
        """
        self._rng = rng or random.Random()
        self._programs: List[Program] = []
        self._selected_id: str = ""
        self.reset()

    @property
    def selected(self) -> Program:
        """The active program."""
        return self.get(self._selected_id)

    @property
    def selected_id(self) -> str:
        return self._selected_id

    def list(self) -> List[Program]:
        """Return all programs, most recently created first."""
        return list(self._programs)

    def get(self, program_id: str) -> Program:
        """Get a program by id.

        Raises:
            UnknownProgramError: If no program has this id
        """
        for program in self._programs:
            if program.id == program_id:
                return program
        raise UnknownProgramError(f"Unknown program: {program_id}")

    def select(self, program_id: str) -> Program:
        """Make a program the active one.

        Raises:
            UnknownProgramError: If no program has this id
        """
        program = self.get(program_id)
        self._selected_id = program.id
        return program

    def create(self, definition: ProgramDefinition) -> Program:
        """Create a program from a definition and select it.

        Numeric fields are normalized rather than rejected: the value per
        point is truncated to whole cents and clamped to at least 1, rates
        are clamped to at least 0 and breakage to at most 100.

        Args:
            definition: Program fields supplied by the user

        Returns:
            The newly created Program

        Raises:
            MissingFieldError: If name or token symbol is empty
            InvalidAmountError: If a numeric field is not a number
        """
        name = (definition.name or "").strip()
        symbol = (definition.token_symbol or "").strip().upper()
        if not name:
            raise MissingFieldError("Name & symbol required", field="name")
        if not symbol:
            raise MissingFieldError("Name & symbol required", field="token_symbol")

        cents = to_decimal(definition.fixed_cents_per_point, "value per point")
        earn = to_decimal(definition.earn_rate_pct, "earn rate")
        breakage = to_decimal(definition.breakage_pct, "breakage")

        breakage = max(Decimal("0"), breakage)
        if breakage > MAX_BREAKAGE_PCT:
            logger.warning(
                "Breakage %s%% for %s exceeds 100%%, capping at 100%%", breakage, name
            )
            breakage = MAX_BREAKAGE_PCT

        program = Program(
            id=self._new_id(),
            name=name,
            token_symbol=symbol,
            fixed_cents_per_point=max(1, int(cents)),
            earn_rate_pct=max(Decimal("0"), earn),
            breakage_pct=breakage
        )
        self._programs.insert(0, program)
        self._selected_id = program.id
        logger.debug("Created program %s (%s)", program.id, program.token_symbol)
        return program

    def reset(self) -> None:
        """Restore the seed programs and select the first one."""
        self._programs = list(SEED_PROGRAMS)
        self._selected_id = SEED_PROGRAMS[0].id

    def _new_id(self) -> str:
        """Generate a fresh id of the form p + 5 base-36 characters."""
        taken = {program.id for program in self._programs}
        while True:
            candidate = "p" + "".join(self._rng.choice(_ID_ALPHABET) for _ in range(5))
            if candidate not in taken:
                return candidate
