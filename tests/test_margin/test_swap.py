"""Tests for swap income projection."""

from decimal import Decimal

import pytest

from fincalc.exceptions import InvalidSwapPeriodError
from fincalc.margin.swap import project_swap
from fincalc.models import Position, PositionSide


def _make_position(id: str, lots: str, swap_point: str) -> Position:
    return Position(
        id=id,
        side=PositionSide.LONG,
        lots=Decimal(lots),
        entry_price=Decimal("150"),
        swap_point=Decimal(swap_point),
    )


class TestProjectSwap:
    def test_sums_positions(self) -> None:
        positions = [
            _make_position("pos1", "10", "150"),
            _make_position("pos2", "2", "1"),
        ]
        projection = project_swap(positions, 30)

        assert projection.days == 30
        assert projection.daily_swap == Decimal("1502")
        assert projection.total_swap == Decimal("45060")
        assert projection.positions[0].total_swap == Decimal("45000")
        assert projection.positions[1].daily_swap == Decimal("2")

    def test_default_swap_point(self) -> None:
        position = Position(
            id="pos1",
            side=PositionSide.SHORT,
            lots=Decimal("3"),
            entry_price=Decimal("150"),
        )
        projection = project_swap([position], 1)
        assert projection.total_swap == Decimal("3")

    def test_no_positions(self) -> None:
        projection = project_swap([], 10)

        assert projection.daily_swap == Decimal("0")
        assert projection.total_swap == Decimal("0")
        assert projection.positions == ()

    @pytest.mark.parametrize("days", [0, -5])
    def test_rejects_non_positive_days(self, days: int) -> None:
        with pytest.raises(InvalidSwapPeriodError):
            project_swap([_make_position("pos1", "1", "1")], days)
