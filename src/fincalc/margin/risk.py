"""Margin-level risk classification.

Thresholds (margin level in percent, inclusive upper bounds):
  - <= 50   forced liquidation (stop-out)
  - <= 100  warning (margin call)
  - <= 200  caution
  - > 200   safe
"""

from decimal import Decimal

from fincalc.models import RiskLevel

FORCED_LIQUIDATION_MAX = Decimal("50")
WARNING_MAX = Decimal("100")
CAUTION_MAX = Decimal("200")


def classify_margin_level(margin_level: Decimal) -> RiskLevel:
    """Map a margin level (percent) to its risk bucket."""
    if margin_level <= FORCED_LIQUIDATION_MAX:
        return RiskLevel.FORCED_LIQUIDATION
    if margin_level <= WARNING_MAX:
        return RiskLevel.WARNING
    if margin_level <= CAUTION_MAX:
        return RiskLevel.CAUTION
    return RiskLevel.SAFE
