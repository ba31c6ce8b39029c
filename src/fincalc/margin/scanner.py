"""Margin level scan over an inclusive rate grid.

Grid points are computed by index (min_rate + i * step) rather than by
repeated addition, so the upper bound is hit exactly when it lies on the grid.
"""

from decimal import ROUND_FLOOR, Decimal

from fincalc.exceptions import InvalidRangeError
from fincalc.logging import get_logger
from fincalc.margin.evaluator import MarginSnapshot, evaluate
from fincalc.models import Book

logger = get_logger(__name__)


def grid_size(min_rate: Decimal, max_rate: Decimal, step: Decimal) -> int:
    """Number of grid points: floor((max_rate - min_rate) / step) + 1.

    Raises:
        InvalidRangeError: If step <= 0 or min_rate > max_rate.
    """
    if step <= Decimal("0"):
        raise InvalidRangeError(f"Scan step must be positive, got {step}")
    if min_rate > max_rate:
        raise InvalidRangeError(
            f"min_rate {min_rate} is greater than max_rate {max_rate}"
        )
    intervals = ((max_rate - min_rate) / step).to_integral_value(rounding=ROUND_FLOOR)
    return int(intervals) + 1


def scan_range(
    book: Book,
    min_rate: Decimal,
    max_rate: Decimal,
    step: Decimal,
) -> list[MarginSnapshot]:
    """Evaluate ``book`` at every rate from min_rate to max_rate inclusive.

    Args:
        book: Validated position book.
        min_rate: First rate of the grid.
        max_rate: Inclusive upper bound of the grid.
        step: Grid spacing, must be positive.

    Returns:
        Snapshots in ascending rate order, each carrying its risk level.

    Raises:
        InvalidRangeError: If step <= 0 or min_rate > max_rate.
    """
    count = grid_size(min_rate, max_rate, step)
    snapshots = [evaluate(book, min_rate + step * i) for i in range(count)]

    logger.debug(
        "margin_scan_complete",
        points=count,
        min_rate=str(min_rate),
        max_rate=str(max_rate),
        step=str(step),
        positions=len(book.positions),
    )
    return snapshots
