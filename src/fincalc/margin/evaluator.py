"""Margin level evaluation for a position book at a single exchange rate.

  required_margin = total_units * rate / leverage
  equity          = balance + total unrealized P&L
  margin_level    = equity / required_margin * 100   (0 when required_margin is 0)

Defining the level as 0 for a book with no exposure keeps every result
comparable against the risk thresholds.
"""

from dataclasses import dataclass
from decimal import Decimal

from fincalc.margin.aggregator import PositionPnL, aggregate
from fincalc.margin.risk import classify_margin_level
from fincalc.models import Book, RiskLevel

HUNDRED = Decimal("100")


@dataclass(frozen=True)
class MarginSnapshot:
    """Result of evaluating a Book at one rate."""

    rate: Decimal
    total_pnl: Decimal
    equity: Decimal
    required_margin: Decimal
    margin_level: Decimal
    risk_level: RiskLevel
    total_units: Decimal
    total_lots: Decimal
    positions: tuple[PositionPnL, ...]


def required_margin(total_units: Decimal, rate: Decimal, leverage: Decimal) -> Decimal:
    """Notional value at ``rate`` deflated by ``leverage``."""
    return total_units * rate / leverage


def evaluate(book: Book, rate: Decimal) -> MarginSnapshot:
    """Evaluate equity, required margin and margin level of ``book`` at ``rate``.

    Pure and total: never raises for a finite positive rate.

    Args:
        book: Validated position book.
        rate: Exchange rate to evaluate at.

    Returns:
        MarginSnapshot including per-position P&L and the risk bucket.
    """
    pnl = aggregate(book.positions, rate, book.lot_size)
    margin = required_margin(pnl.total_units, rate, book.account.leverage)
    equity = book.account.balance + pnl.total_pnl

    if margin > Decimal("0"):
        margin_level = equity / margin * HUNDRED
    else:
        margin_level = Decimal("0")

    return MarginSnapshot(
        rate=rate,
        total_pnl=pnl.total_pnl,
        equity=equity,
        required_margin=margin,
        margin_level=margin_level,
        risk_level=classify_margin_level(margin_level),
        total_units=pnl.total_units,
        total_lots=pnl.total_lots,
        positions=pnl.positions,
    )
