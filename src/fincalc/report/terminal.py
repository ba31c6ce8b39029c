"""Plain-text renderers for the terminal report.

Every function returns a string; printing is left to the caller. Amounts are
rounded half-up to whole currency units for display only.
"""

from decimal import ROUND_HALF_UP, Decimal

from fincalc.analysis import FxAnalysis
from fincalc.loan.calculator import LoanResult
from fincalc.margin.evaluator import MarginSnapshot
from fincalc.margin.solver import CriticalRateOutcome, CriticalRateResult
from fincalc.models import RiskLevel

WIDTH = 80
CHART_HEIGHT = 20
CHART_WIDTH = 60
CHART_X_LABELS = 5

_RESET = "\x1b[0m"
_COLORS = {
    RiskLevel.FORCED_LIQUIDATION: "\x1b[31m",  # red
    RiskLevel.WARNING: "\x1b[33m",  # yellow
    RiskLevel.CAUTION: "\x1b[36m",  # cyan
    RiskLevel.SAFE: "\x1b[32m",  # green
}
_LABELS = {
    RiskLevel.FORCED_LIQUIDATION: "STOP-OUT",
    RiskLevel.WARNING: "WARNING",
    RiskLevel.CAUTION: "CAUTION",
    RiskLevel.SAFE: "SAFE",
}
_GLYPHS = {
    RiskLevel.FORCED_LIQUIDATION: "x",
    RiskLevel.WARNING: "!",
    RiskLevel.CAUTION: "+",
    RiskLevel.SAFE: "o",
}
_UNSOLVED = {
    CriticalRateOutcome.MIXED_BOOK: "N/A (mixed long/short book)",
    CriticalRateOutcome.DEGENERATE: "N/A (margin level does not cross this threshold)",
    CriticalRateOutcome.EMPTY_BOOK: "N/A (no positions)",
}


def _round(value: Decimal, places: str = "1") -> Decimal:
    return value.quantize(Decimal(places), rounding=ROUND_HALF_UP)


def _whole(value: Decimal) -> Decimal:
    rounded = _round(value)
    # quantize keeps the sign of a rounded-away negative; show it as 0
    return Decimal("0") if rounded == 0 else rounded


def money(value: Decimal) -> str:
    """Whole units with thousands separators, e.g. 1,234,568."""
    return f"{_whole(value):,f}"


def signed_money(value: Decimal) -> str:
    rounded = _whole(value)
    return f"+{rounded:,f}" if rounded >= 0 else f"{rounded:,f}"


def _paint(text: str, level: RiskLevel, color: bool) -> str:
    if not color:
        return text
    return f"{_COLORS[level]}{text}{_RESET}"


def describe_critical_rate(result: CriticalRateResult) -> str:
    """Human-readable critical rate, or the reason there is none."""
    if result.rate is None:
        return _UNSOLVED[result.outcome]
    text = f"{_round(result.rate, '0.01')}"
    if not result.is_plausible:
        text += " (not a valid market rate)"
    return text


def render_margin_table(analysis: FxAnalysis, color: bool = True) -> str:
    """Positions, scan table, critical levels and current-price breakdown."""
    book = analysis.book
    current = analysis.current
    lines = [
        "=" * WIDTH,
        "USD/JPY margin level analysis (multi-position)".center(WIDTH),
        "=" * WIDTH,
        f"Balance: {money(book.account.balance)}",
        f"Current price: {_round(analysis.current_price, '0.01')}",
        f"Leverage: {book.account.leverage}x",
        f"Lot size: 1 lot = {money(book.lot_size)} units",
        "",
        "=== Positions ===",
    ]

    for index, position in enumerate(book.positions, start=1):
        units = book.units(position)
        lines.append(
            f"{index}. [{position.id}] {position.side.value.upper()} "
            f"{position.lots} lots @ {_round(position.entry_price, '0.01')}"
        )
        lines.append(f"   {position.comment} ({money(units)} units)")

    lines += [
        "",
        f"Total: {current.total_lots.normalize():f} lots ({money(current.total_units)} units)",
        f"Range: {_round(analysis.min_rate, '0.1')} - {_round(analysis.max_rate, '0.1')} "
        f"(step {analysis.step})",
        "",
        "-" * WIDTH,
        f"{'Rate':>8} | {'Total P&L':>13} | {'Margin %':>9} | {'Status':<9} | {'Req. margin':>12}",
        "-" * WIDTH,
    ]

    for snapshot in analysis.series:
        status = _paint(f"{_LABELS[snapshot.risk_level]:<9}", snapshot.risk_level, color)
        lines.append(
            f"{_round(snapshot.rate, '0.1'):>8} | "
            f"{signed_money(snapshot.total_pnl):>13} | "
            f"{_round(snapshot.margin_level, '0.1'):>9} | "
            f"{status} | "
            f"{money(snapshot.required_margin):>12}"
        )

    levels = analysis.levels
    manual_margin = current.total_units * analysis.current_price / book.account.leverage
    lines += [
        "-" * WIDTH,
        "",
        "Critical levels:",
        f"  Margin call ({levels.margin_call.target_margin_level}%): "
        f"{describe_critical_rate(levels.margin_call)}",
        f"  Stop-out ({levels.stop_out.target_margin_level}%): "
        f"{describe_critical_rate(levels.stop_out)}",
        "",
        f"At current price {_round(analysis.current_price, '0.001')}:",
        f"  Total unrealized P&L: {signed_money(current.total_pnl)}",
        f"  Margin level: {_round(current.margin_level, '0.01')}%",
        f"  Equity: {money(current.equity)}",
        f"  Required margin: {money(current.required_margin)}",
        f"  Check: {money(current.total_units)} units x {analysis.current_price} / "
        f"{book.account.leverage} = {money(manual_margin)}",
        "",
        "=== P&L by position ===",
    ]
    for detail in current.positions:
        lines.append(
            f"[{detail.id}] {detail.side.value.upper()} {detail.lots} lots @ "
            f"{_round(detail.entry_price, '0.01')} -> P&L {signed_money(detail.pnl)}"
        )
    lines.append("=" * WIDTH)
    return "\n".join(lines)


def render_margin_chart(series: list[MarginSnapshot], color: bool = True) -> str:
    """ASCII line chart of margin level against rate.

    One point per column, sampled evenly from ``series``; each point is drawn
    with its risk bucket's glyph (and color when ``color`` is set). A flat
    series is drawn on the middle row.
    """
    header = ["=" * WIDTH, "Margin level by rate".center(WIDTH), "=" * WIDTH]
    if not series:
        return "\n".join(header + ["No data to chart.", "=" * WIDTH])

    levels = [s.margin_level for s in series]
    low, high = min(levels), max(levels)
    spread = high - low
    last = len(series) - 1

    lines = header + [
        f"Y: margin level {_round(low)}% - {_round(high)}%",
        f"X: USD/JPY {_round(series[0].rate, '0.1')} - {_round(series[-1].rate, '0.1')}",
        "",
    ]

    def row_of(level: Decimal) -> Decimal:
        if spread == 0:
            return Decimal(CHART_HEIGHT // 2)
        return (level - low) / spread * CHART_HEIGHT

    for row in range(CHART_HEIGHT, -1, -1):
        y_value = low + spread * row / CHART_HEIGHT
        line = f"{_round(y_value):>4}% |"
        for col in range(CHART_WIDTH):
            point = series[col * last // (CHART_WIDTH - 1)]
            if abs(row_of(point.margin_level) - row) < Decimal("0.5"):
                line += _paint(_GLYPHS[point.risk_level], point.risk_level, color)
            else:
                line += " "
        lines.append(line.rstrip())

    lines.append("      +" + "-" * CHART_WIDTH)

    labels = " " * 7
    for i in range(CHART_X_LABELS):
        label = f"{_round(series[i * last // (CHART_X_LABELS - 1)].rate, '0.1')}"
        position = i * (CHART_WIDTH - len(label)) // (CHART_X_LABELS - 1)
        labels = labels.ljust(7 + position) + label
    lines.append(labels)

    lines += [
        "",
        "Legend: "
        + "  ".join(
            f"{_paint(_GLYPHS[level], level, color)} {_LABELS[level]}"
            for level in (
                RiskLevel.FORCED_LIQUIDATION,
                RiskLevel.WARNING,
                RiskLevel.CAUTION,
                RiskLevel.SAFE,
            )
        ),
        "=" * WIDTH,
    ]
    return "\n".join(lines)


def render_loan_schedule(result: LoanResult) -> str:
    """Yearly repayment table with totals and the deduction-period split."""
    summary = result.summary
    with_deduction = result.with_deduction
    rule = "-" * (96 if with_deduction else WIDTH)

    lines = [
        "=" * WIDTH,
        "Loan repayment schedule".center(WIDTH),
        "=" * WIDTH,
        f"Loan amount: {money(result.amount)}",
        f"Annual rate: {result.annual_rate}%",
        f"Term: {result.years} years",
        f"Monthly payment: {money(summary.monthly_payment)}",
    ]
    if with_deduction and summary.deduction_period is not None:
        lines.append(
            f"Housing loan deduction: first {summary.deduction_period.years} years"
        )

    header = (
        f"{'Yr':>2} | {'Payment':>12} | {'Principal':>12} | {'Interest':>12} | {'Balance':>12}"
    )
    if with_deduction:
        header += f" | {'Deduction':>14}"
    lines += ["", rule, header, rule]

    for row in result.schedule:
        line = (
            f"{row.year:>2} | {money(row.yearly_payment):>12} | "
            f"{money(row.yearly_principal):>12} | {money(row.yearly_interest):>12} | "
            f"{money(row.remaining_balance):>12}"
        )
        if with_deduction:
            line += f" | {money(row.loan_deduction):>14}"
        lines.append(line)
    lines.append(rule)

    period = summary.deduction_period
    if period is not None:
        lines += [
            "",
            f"End of deduction period (year {period.years}):",
            f"  Payments: {money(period.payments)}",
            f"  Interest: {money(period.interest)}",
            f"  Deduction: {money(period.deduction)}",
            f"  Net burden: {money(period.net_burden)}",
        ]
        if period.remaining_balance is not None:
            lines += [
                f"  Remaining balance: {money(period.remaining_balance)}",
                "",
                f"After year {period.years}:",
                f"  Payments: {money(period.payments_after)}",
                f"  Interest: {money(period.interest_after)}",
                f"  Remaining years: {period.remaining_years}",
            ]
        lines.append("")

    lines += [
        f"Total payments: {money(summary.total_payments)}",
        f"Total interest: {money(summary.total_interest)}",
    ]
    if with_deduction:
        lines += [
            f"Total deduction: {money(summary.total_deduction)}",
            f"Net burden: {money(summary.net_burden)}",
        ]
    lines.append("=" * WIDTH)
    return "\n".join(lines)
