"""Custom exceptions for the financial calculators.

All validation and persistence exceptions live here to avoid circular
imports between the margin, loan and store modules.
"""


class CalcError(Exception):
    """Base exception for all calculator errors."""


class InvalidBookError(CalcError):
    """Raised when a position book violates its invariants (lots, leverage, ids)."""


class InvalidRangeError(CalcError):
    """Raised when a rate scan is requested with step <= 0 or min_rate > max_rate."""


class InvalidLoanError(CalcError):
    """Raised when loan amount, annual rate or term is out of range."""


class InvalidSwapPeriodError(CalcError):
    """Raised when a swap projection is requested for fewer than one day."""


class ConfigStoreError(CalcError):
    """Raised when the position/account file cannot be read, parsed or written."""
