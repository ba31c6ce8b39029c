"""Unrealized P&L and exposure aggregation across a set of FX positions.

P&L convention (quote currency, e.g. JPY for USD/JPY):
  - Long:  (rate - entry_price) * units
  - Short: (entry_price - rate) * units
where units = lots * lot_size.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from fincalc.models import LOT_SIZE, Position, PositionSide


@dataclass(frozen=True)
class PositionPnL:
    """Unrealized P&L of one position at a given rate."""

    id: str
    side: PositionSide
    lots: Decimal
    entry_price: Decimal
    units: Decimal
    pnl: Decimal
    comment: str = ""


@dataclass(frozen=True)
class PnLAggregate:
    """Summed P&L and exposure of a position list at a given rate."""

    total_pnl: Decimal
    total_units: Decimal
    total_lots: Decimal
    positions: tuple[PositionPnL, ...]


def position_pnl(position: Position, rate: Decimal, lot_size: Decimal = LOT_SIZE) -> Decimal:
    """Unrealized P&L of a single position at ``rate``."""
    units = position.lots * lot_size
    if position.side is PositionSide.LONG:
        return (rate - position.entry_price) * units
    return (position.entry_price - rate) * units


def aggregate(
    positions: Iterable[Position],
    rate: Decimal,
    lot_size: Decimal = LOT_SIZE,
) -> PnLAggregate:
    """Aggregate unrealized P&L and units for ``positions`` at ``rate``.

    Per-position detail preserves input order. An empty input yields zero
    P&L and zero units.

    Args:
        positions: Positions to aggregate.
        rate: Exchange rate to mark the positions at.
        lot_size: Currency units per lot.

    Returns:
        PnLAggregate with totals and per-position breakdown.
    """
    total_pnl = Decimal("0")
    total_units = Decimal("0")
    details: list[PositionPnL] = []

    for position in positions:
        units = position.lots * lot_size
        pnl = position_pnl(position, rate, lot_size)
        total_pnl += pnl
        total_units += units
        details.append(
            PositionPnL(
                id=position.id,
                side=position.side,
                lots=position.lots,
                entry_price=position.entry_price,
                units=units,
                pnl=pnl,
                comment=position.comment,
            )
        )

    return PnLAggregate(
        total_pnl=total_pnl,
        total_units=total_units,
        total_lots=total_units / lot_size,
        positions=tuple(details),
    )
