"""
Points conversion under the fixed-value model.

Converts purchase amounts into earned points and points back into
redeemable currency. Every function here is pure: no side effects and
no hidden state. Callers are responsible for rejecting non-positive
amounts before converting.
"""

from dataclasses import dataclass
from decimal import Decimal

from .amounts import Number, round2, to_decimal
from .programs import Program

HUNDRED = Decimal("100")


@dataclass(frozen=True)
class PurchaseQuote:
    """Preview of what a purchase would earn."""
    purchase_amount: Decimal
    earned_value: Decimal  # currency value returned to the member
    earned_points: Decimal  # points to issue, 2 decimal places


@dataclass(frozen=True)
class ProgramHealth:
    """Display-only estimate for a program balance."""
    balance_points: Decimal
    balance_value: Decimal
    breakage_pct: Decimal
    estimated_liability: Decimal


def points_per_currency_unit(program: Program) -> Decimal:
    """Points earned per $1.00 of value (1 when a point is worth $1.00)."""
    return HUNDRED / Decimal(program.fixed_cents_per_point)


def earned_value(purchase_amount: Number, program: Program) -> Decimal:
    """Currency value a purchase returns at the program's earn rate."""
    return to_decimal(purchase_amount) * program.earn_rate_pct / HUNDRED


def earned_points(purchase_amount: Number, program: Program) -> Decimal:
    """Points a purchase earns, rounded half up to 2 decimal places.

    Args:
        purchase_amount: Purchase total in currency units
        program: Program whose earn rate and point value apply

    Returns:
        Earned points; fractional points are allowed
    """
    value = earned_value(purchase_amount, program)
    # value * (100 / cents) rearranged to divide once
    return round2(value * HUNDRED / Decimal(program.fixed_cents_per_point))


def redeem_value(points: Number, program: Program) -> Decimal:
    """Currency value of a quantity of points.

    Equivalent to points / points_per_currency_unit(program), computed as
    points * cents / 100 so the result is exact.
    """
    return to_decimal(points, "points") * Decimal(program.fixed_cents_per_point) / HUNDRED


def estimated_liability(balance: Number, program: Program) -> Decimal:
    """Expected cost of an outstanding balance after breakage."""
    return redeem_value(balance, program) * (1 - program.breakage_pct / HUNDRED)


def quote_purchase(purchase_amount: Number, program: Program) -> PurchaseQuote:
    """Preview the earn value and points for a purchase."""
    amount = to_decimal(purchase_amount)
    return PurchaseQuote(
        purchase_amount=amount,
        earned_value=earned_value(amount, program),
        earned_points=earned_points(amount, program)
    )


def program_health(balance: Number, program: Program) -> ProgramHealth:
    """Summarize a balance's value and estimated liability."""
    points = to_decimal(balance, "balance")
    return ProgramHealth(
        balance_points=points,
        balance_value=redeem_value(points, program),
        breakage_pct=program.breakage_pct,
        estimated_liability=estimated_liability(points, program)
    )
