"""Tests for the plain-text terminal report renderers."""

from decimal import Decimal

import pytest

from fincalc.analysis import analyze
from fincalc.config import AppSettings, LoanSettings
from fincalc.loan.calculator import LoanCalculator
from fincalc.margin.evaluator import evaluate
from fincalc.margin.solver import CriticalRateOutcome, CriticalRateResult
from fincalc.models import AccountState, Book
from fincalc.report.terminal import (
    describe_critical_rate,
    money,
    render_loan_schedule,
    render_margin_chart,
    render_margin_table,
    signed_money,
)
from fincalc.store.config_store import FxConfig


@pytest.fixture
def analysis(config_data: dict, app_settings: AppSettings):
    return analyze(FxConfig.model_validate(config_data), app_settings)


def _chart_rows(chart: str) -> list[str]:
    return [line for line in chart.splitlines() if "% |" in line]


class TestMoney:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("1234567.5", "1,234,568"),
            ("600000", "600,000"),
            ("-0.4", "0"),
            ("-1500.2", "-1,500"),
        ],
    )
    def test_money(self, value: str, expected: str) -> None:
        assert money(Decimal(value)) == expected

    def test_signed_money(self) -> None:
        assert signed_money(Decimal("10000")) == "+10,000"
        assert signed_money(Decimal("0")) == "+0"
        assert signed_money(Decimal("-250000")) == "-250,000"


class TestDescribeCriticalRate:
    def test_solved(self) -> None:
        result = CriticalRateResult(
            Decimal("100"), CriticalRateOutcome.SOLVED, Decimal("145.8333")
        )
        assert describe_critical_rate(result) == "145.83"

    def test_implausible(self) -> None:
        result = CriticalRateResult(
            Decimal("100"), CriticalRateOutcome.SOLVED, Decimal("-52.083")
        )
        assert describe_critical_rate(result) == "-52.08 (not a valid market rate)"

    def test_mixed(self) -> None:
        result = CriticalRateResult(Decimal("100"), CriticalRateOutcome.MIXED_BOOK)
        assert "mixed long/short" in describe_critical_rate(result)


class TestRenderMarginTable:
    def test_contains_critical_levels(self, analysis) -> None:
        table = render_margin_table(analysis, color=False)

        assert "Critical levels:" in table
        assert "Margin call (100%): 145.83" in table
        assert "Stop-out (50%): 142.86" in table

    def test_current_price_breakdown(self, analysis) -> None:
        table = render_margin_table(analysis, color=False)

        assert "Margin level: 166.67%" in table
        assert "Required margin: 600,000" in table
        assert "=== P&L by position ===" in table
        assert "[pos1] LONG 10 lots @ 150.00 -> P&L +0" in table

    def test_one_row_per_rate(self, analysis) -> None:
        table = render_margin_table(analysis, color=False)
        rows = [line for line in table.splitlines() if line.count(" | ") == 4]

        # header row plus 41 scan rows
        assert len(rows) == 42
        assert "STOP-OUT" in rows[1]
        assert "SAFE" in rows[-1]

    def test_color_toggle(self, analysis) -> None:
        assert "\x1b[" not in render_margin_table(analysis, color=False)
        assert "\x1b[31m" in render_margin_table(analysis, color=True)

    def test_mixed_book_reason(self, config_data: dict, app_settings: AppSettings) -> None:
        config_data["positions"].append(
            {"id": "pos2", "side": "sell", "lots": 2, "entryPrice": 152.0}
        )
        analysis = analyze(FxConfig.model_validate(config_data), app_settings)
        table = render_margin_table(analysis, color=False)

        assert "Margin call (100%): N/A (mixed long/short book)" in table


class TestRenderMarginChart:
    def test_empty_series(self) -> None:
        assert "No data to chart." in render_margin_chart([], color=False)

    def test_has_full_height(self, analysis) -> None:
        chart = render_margin_chart(analysis.series, color=False)

        assert len(_chart_rows(chart)) == 21
        assert "Legend:" in chart
        assert "\x1b[" not in chart

    def test_flat_series_on_middle_row(self) -> None:
        book = Book(
            positions=(),
            account=AccountState(balance=Decimal("1000000"), leverage=Decimal("25")),
        )
        series = [evaluate(book, Decimal(rate)) for rate in ("140", "145", "150")]
        rows = _chart_rows(render_margin_chart(series, color=False))

        plotted = [i for i, line in enumerate(rows) if "x" in line.split("|", 1)[1]]
        assert plotted == [10]


class TestRenderLoanSchedule:
    def test_basic_schedule(self) -> None:
        result = LoanCalculator(LoanSettings()).calculate(
            Decimal("1000000"), Decimal("12"), 1
        )
        text = render_loan_schedule(result)

        assert "Monthly payment: 88,849" in text
        assert "Loan amount: 1,000,000" in text
        assert "Total deduction" not in text

    def test_deduction_section(self) -> None:
        result = LoanCalculator(LoanSettings()).calculate(
            Decimal("30000000"), Decimal("1"), 35, True
        )
        text = render_loan_schedule(result)

        assert "Housing loan deduction: first 13 years" in text
        assert "End of deduction period (year 13):" in text
        assert "Remaining years: 22" in text
        assert "Net burden:" in text
