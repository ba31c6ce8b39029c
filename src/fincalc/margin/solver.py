"""Closed-form critical rate solver.

Finds the exchange rate at which a book's margin level equals a target
(e.g. 100% margin call, 50% stop-out) without searching.

With U = total units, E = sum(entry_price * units), B = balance,
L = leverage and T = target margin level in percent, the margin condition

    B + P&L(rate) = (U * rate / L) * (T / 100)

is linear in rate when every position is on the same side:

  All long   P&L = rate * U - E   ->  rate = (E - B) / (U * (1 - T / (100 * L)))
  All short  P&L = E - rate * U   ->  rate = (B + E) / (U * (1 + T / (100 * L)))

A mixed book has no single P&L slope, so it is reported as MIXED_BOOK rather
than solved. A denominator within EPSILON of zero means the margin level does
not depend on rate and has no unique crossing (DEGENERATE).

Solved rates are NOT clamped: a negative or implausible rate is returned
as-is and flagged through CriticalRateResult.is_plausible.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from fincalc.logging import get_logger
from fincalc.models import Book, PositionSide

logger = get_logger(__name__)

EPSILON = Decimal("1e-10")
HUNDRED = Decimal("100")


class CriticalRateOutcome(str, Enum):
    """Why a critical rate query produced (or did not produce) a rate."""

    SOLVED = "solved"
    MIXED_BOOK = "mixed_book"
    DEGENERATE = "degenerate"
    EMPTY_BOOK = "empty_book"


@dataclass(frozen=True)
class CriticalRateResult:
    """Tagged result of a critical rate query.

    ``rate`` is set only when ``outcome`` is SOLVED.
    """

    target_margin_level: Decimal
    outcome: CriticalRateOutcome
    rate: Decimal | None = None

    @property
    def is_solved(self) -> bool:
        return self.outcome is CriticalRateOutcome.SOLVED

    @property
    def is_plausible(self) -> bool:
        """True when solved and the rate is a usable (positive) exchange rate."""
        return self.is_solved and self.rate is not None and self.rate > Decimal("0")


@dataclass(frozen=True)
class CriticalLevels:
    """Critical rates for the broker's margin call and stop-out thresholds."""

    margin_call: CriticalRateResult
    stop_out: CriticalRateResult


def uniform_side(book: Book) -> PositionSide | None:
    """Return the side shared by every position, or None for a mixed book.

    Checks every position. Must not be called on an empty book.
    """
    sides = {position.side for position in book.positions}
    if len(sides) == 1:
        return sides.pop()
    return None


def solve_critical_rate(book: Book, target_margin_level: Decimal) -> CriticalRateResult:
    """Solve for the rate at which ``book`` reaches ``target_margin_level``.

    Args:
        book: Validated position book.
        target_margin_level: Target margin level in percent (100 = margin call).

    Returns:
        CriticalRateResult tagged SOLVED (with rate), MIXED_BOOK, DEGENERATE
        or EMPTY_BOOK.
    """
    if book.is_empty:
        return CriticalRateResult(target_margin_level, CriticalRateOutcome.EMPTY_BOOK)

    side = uniform_side(book)
    if side is None:
        logger.warning(
            "critical_rate_mixed_book",
            target=str(target_margin_level),
            positions=len(book.positions),
        )
        return CriticalRateResult(target_margin_level, CriticalRateOutcome.MIXED_BOOK)

    total_units = Decimal("0")
    entry_notional = Decimal("0")
    for position in book.positions:
        units = book.units(position)
        total_units += units
        entry_notional += position.entry_price * units

    balance = book.account.balance
    margin_ratio = target_margin_level / (HUNDRED * book.account.leverage)

    if side is PositionSide.LONG:
        coefficient = total_units * (Decimal("1") - margin_ratio)
        constant = entry_notional - balance
    else:
        coefficient = total_units * (Decimal("1") + margin_ratio)
        constant = balance + entry_notional

    if abs(coefficient) < EPSILON:
        logger.info(
            "critical_rate_degenerate",
            target=str(target_margin_level),
            side=side.value,
            leverage=str(book.account.leverage),
        )
        return CriticalRateResult(target_margin_level, CriticalRateOutcome.DEGENERATE)

    rate = constant / coefficient
    return CriticalRateResult(target_margin_level, CriticalRateOutcome.SOLVED, rate)


def critical_levels(
    book: Book,
    margin_call_level: Decimal = Decimal("100"),
    stop_out_level: Decimal = Decimal("50"),
) -> CriticalLevels:
    """Solve the margin call and stop-out rates of ``book`` in one call."""
    return CriticalLevels(
        margin_call=solve_critical_rate(book, margin_call_level),
        stop_out=solve_critical_rate(book, stop_out_level),
    )
