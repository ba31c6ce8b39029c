"""Shared data models for the FX margin engine.

CRITICAL: All monetary values and rates use Decimal. Floats coming from JSON or
the command line are converted once at the boundary via Decimal(str(x)).
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from fincalc.exceptions import InvalidBookError

LOT_SIZE = Decimal("10000")  # Rakuten FX: 1 lot = 10,000 currency units

_SIDE_ALIASES = {
    "long": "long",
    "buy": "long",
    "short": "short",
    "sell": "short",
}


class PositionSide(str, Enum):
    """Position direction."""

    LONG = "long"
    SHORT = "short"

    @classmethod
    def parse(cls, value: "str | PositionSide") -> "PositionSide":
        """Convert a stored side string to a PositionSide.

        Accepts the legacy "buy"/"sell" spelling as well as "long"/"short",
        case-insensitively.

        Raises:
            ValueError: If the value names neither side.
        """
        if isinstance(value, PositionSide):
            return value
        canonical = _SIDE_ALIASES.get(str(value).strip().lower())
        if canonical is None:
            raise ValueError(f"Unknown position side: {value!r}")
        return cls(canonical)


class RiskLevel(str, Enum):
    """Margin-level risk bucket, most severe first."""

    FORCED_LIQUIDATION = "forced_liquidation"  # <= 50%
    WARNING = "warning"  # <= 100%
    CAUTION = "caution"  # <= 200%
    SAFE = "safe"  # > 200%

    @property
    def severity(self) -> int:
        """3 for forced liquidation down to 0 for safe."""
        return _SEVERITY[self]


_SEVERITY = {
    RiskLevel.FORCED_LIQUIDATION: 3,
    RiskLevel.WARNING: 2,
    RiskLevel.CAUTION: 1,
    RiskLevel.SAFE: 0,
}


@dataclass(frozen=True)
class Position:
    """A single leveraged currency position."""

    id: str
    side: PositionSide
    lots: Decimal
    entry_price: Decimal
    comment: str = ""
    pair: str = "USD/JPY"
    entry_date: str | None = None
    swap_point: Decimal = Decimal("1")  # swap per lot per day


@dataclass(frozen=True)
class AccountState:
    """Account balance and broker leverage."""

    balance: Decimal
    leverage: Decimal


@dataclass(frozen=True)
class Book:
    """Positions plus account state; the unit every margin computation runs on.

    Validated on construction: every position must have lots > 0 and a
    positive entry price, ids must be unique, and leverage must be > 0.
    """

    positions: tuple[Position, ...]
    account: AccountState
    lot_size: Decimal = LOT_SIZE

    def __post_init__(self) -> None:
        if not isinstance(self.positions, tuple):
            object.__setattr__(self, "positions", tuple(self.positions))

        if self.account.leverage <= Decimal("0"):
            raise InvalidBookError(
                f"Leverage must be positive, got {self.account.leverage}"
            )
        if self.lot_size <= Decimal("0"):
            raise InvalidBookError(f"Lot size must be positive, got {self.lot_size}")

        seen: set[str] = set()
        for position in self.positions:
            if position.lots <= Decimal("0"):
                raise InvalidBookError(
                    f"Position {position.id} has non-positive lots: {position.lots}"
                )
            if position.entry_price <= Decimal("0"):
                raise InvalidBookError(
                    f"Position {position.id} has non-positive entry price: "
                    f"{position.entry_price}"
                )
            if position.id in seen:
                raise InvalidBookError(f"Duplicate position id: {position.id}")
            seen.add(position.id)

    @property
    def is_empty(self) -> bool:
        return not self.positions

    def units(self, position: Position) -> Decimal:
        """Currency units held by a position (lots x lot size)."""
        return position.lots * self.lot_size
