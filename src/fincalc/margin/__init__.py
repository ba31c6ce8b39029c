"""FX margin engine.

Position aggregation, margin evaluation at a rate, range scanning with risk
classification, closed-form critical rate solving, and swap projection.
"""

from fincalc.margin.aggregator import PnLAggregate, PositionPnL, aggregate
from fincalc.margin.evaluator import MarginSnapshot, evaluate
from fincalc.margin.risk import classify_margin_level
from fincalc.margin.scanner import scan_range
from fincalc.margin.solver import (
    CriticalLevels,
    CriticalRateOutcome,
    CriticalRateResult,
    critical_levels,
    solve_critical_rate,
)
from fincalc.margin.swap import SwapProjection, project_swap

__all__ = [
    "CriticalLevels",
    "CriticalRateOutcome",
    "CriticalRateResult",
    "MarginSnapshot",
    "PnLAggregate",
    "PositionPnL",
    "SwapProjection",
    "aggregate",
    "classify_margin_level",
    "critical_levels",
    "evaluate",
    "project_swap",
    "scan_range",
    "solve_critical_rate",
]
