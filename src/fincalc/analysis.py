"""One-shot FX margin analysis of a stored configuration.

Combines the pieces the HTTP API and the terminal report both need:
the validated Book, a snapshot at the current price, the scanned series
over the analysis range, and the margin call / stop-out critical rates.
"""

from dataclasses import dataclass
from decimal import Decimal

from fincalc.config import AppSettings
from fincalc.margin.evaluator import MarginSnapshot, evaluate
from fincalc.margin.scanner import scan_range
from fincalc.margin.solver import CriticalLevels, critical_levels
from fincalc.models import Book
from fincalc.store.config_store import FxConfig


@dataclass(frozen=True)
class FxAnalysis:
    book: Book
    current_price: Decimal
    current: MarginSnapshot
    series: list[MarginSnapshot]
    levels: CriticalLevels
    min_rate: Decimal
    max_rate: Decimal
    step: Decimal


def analyze(config: FxConfig, settings: AppSettings) -> FxAnalysis:
    """Run the full margin analysis for ``config``.

    Margin call and stop-out thresholds come from the stored settings block,
    or BrokerSettings when absent;
    the scan range falls back to AnalysisSettings when the file has none.

    Raises:
        InvalidBookError: If the stored positions break book invariants.
        InvalidRangeError: If the analysis range is invalid.
    """
    book = config.to_book(settings.broker.lot_size)
    min_rate, max_rate, step = config.analysis_range(settings.analysis)
    margin_call_level, stop_out_level = config.thresholds(settings.broker)

    return FxAnalysis(
        book=book,
        current_price=config.current_price,
        current=evaluate(book, config.current_price),
        series=scan_range(book, min_rate, max_rate, step),
        levels=critical_levels(
            book,
            margin_call_level=margin_call_level,
            stop_out_level=stop_out_level,
        ),
        min_rate=min_rate,
        max_rate=max_rate,
        step=step,
    )
