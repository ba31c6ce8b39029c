"""Swap point income projection.

Swap accrues per lot per day: daily = lots * swap_point, total = daily * days.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from fincalc.exceptions import InvalidSwapPeriodError
from fincalc.models import Position, PositionSide


@dataclass(frozen=True)
class PositionSwap:
    """Projected swap for one position."""

    id: str
    side: PositionSide
    lots: Decimal
    swap_point: Decimal
    daily_swap: Decimal
    total_swap: Decimal


@dataclass(frozen=True)
class SwapProjection:
    """Projected swap across a position list over ``days``."""

    days: int
    daily_swap: Decimal
    total_swap: Decimal
    positions: tuple[PositionSwap, ...]


def project_swap(positions: Iterable[Position], days: int) -> SwapProjection:
    """Project swap income for ``positions`` held ``days`` days.

    Raises:
        InvalidSwapPeriodError: If days < 1.
    """
    if days < 1:
        raise InvalidSwapPeriodError(f"Swap period must be at least 1 day, got {days}")

    held = Decimal(days)
    rows = []
    for position in positions:
        daily = position.lots * position.swap_point
        rows.append(
            PositionSwap(
                id=position.id,
                side=position.side,
                lots=position.lots,
                swap_point=position.swap_point,
                daily_swap=daily,
                total_swap=daily * held,
            )
        )

    daily_total = sum((row.daily_swap for row in rows), Decimal("0"))
    return SwapProjection(
        days=days,
        daily_swap=daily_total,
        total_swap=daily_total * held,
        positions=tuple(rows),
    )
