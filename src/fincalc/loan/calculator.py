"""Level-payment loan amortization with optional housing loan deduction.

All calculations use Decimal arithmetic. Amounts are not rounded here;
rounding to whole yen happens only when rendering.

Deduction rule (Japanese housing loan deduction, LoanSettings defaults):
  - Applies for the first ``deduction_years`` years (13)
  - Amount = min(year-end balance, deduction_cap) * deduction_rate (0.7%)
"""

from dataclasses import dataclass
from decimal import Decimal

from fincalc.config import LoanSettings
from fincalc.exceptions import InvalidLoanError
from fincalc.logging import get_logger

logger = get_logger(__name__)

MONTHS_PER_YEAR = 12


@dataclass(frozen=True)
class YearlyBalance:
    """Repayment totals and year-end balance for one loan year."""

    year: int
    yearly_payment: Decimal
    yearly_principal: Decimal
    yearly_interest: Decimal
    remaining_balance: Decimal
    loan_deduction: Decimal


@dataclass(frozen=True)
class DeductionPeriodSummary:
    """Totals split at the end of the deduction period."""

    years: int
    payments: Decimal
    interest: Decimal
    deduction: Decimal
    net_burden: Decimal
    remaining_balance: Decimal | None  # None when the loan ends within the period
    payments_after: Decimal
    interest_after: Decimal
    remaining_years: int


@dataclass(frozen=True)
class LoanSummary:
    """Whole-term totals of a loan schedule."""

    monthly_payment: Decimal
    total_payments: Decimal
    total_interest: Decimal
    total_deduction: Decimal
    net_burden: Decimal
    deduction_period: DeductionPeriodSummary | None


@dataclass(frozen=True)
class LoanResult:
    amount: Decimal
    annual_rate: Decimal
    years: int
    with_deduction: bool
    schedule: tuple[YearlyBalance, ...]
    summary: LoanSummary


def _sum(values) -> Decimal:
    return sum(values, Decimal("0"))


class LoanCalculator:
    """Computes monthly payments, yearly balances and deduction totals.

    Args:
        settings: Deduction rate, balance cap and deduction period.
    """

    def __init__(self, settings: LoanSettings) -> None:
        self._settings = settings

    @staticmethod
    def validate(amount: Decimal, annual_rate: Decimal, years: int) -> None:
        """Reject loans the amortization formula cannot represent.

        Raises:
            InvalidLoanError: If amount or annual_rate is NaN or infinite,
                amount <= 0, annual_rate outside [0, 100], or years <= 0.
        """
        # NaN would raise InvalidOperation in the comparisons below
        if not amount.is_finite():
            raise InvalidLoanError(f"Loan amount must be a finite number, got {amount}")
        if not annual_rate.is_finite():
            raise InvalidLoanError(f"Annual rate must be a finite number, got {annual_rate}")
        if amount <= Decimal("0"):
            raise InvalidLoanError(f"Loan amount must be positive, got {amount}")
        if not Decimal("0") <= annual_rate <= Decimal("100"):
            raise InvalidLoanError(f"Annual rate must be within 0-100%, got {annual_rate}")
        if years <= 0:
            raise InvalidLoanError(f"Loan term must be at least 1 year, got {years}")

    def monthly_payment(self, amount: Decimal, annual_rate: Decimal, years: int) -> Decimal:
        """Level monthly payment for the loan.

        Formula: P * r * (1 + r)^n / ((1 + r)^n - 1) with r the monthly rate
        and n the number of payments. A zero rate divides the principal evenly.

        Args:
            amount: Principal.
            annual_rate: Annual interest rate in percent (1.5 = 1.5%).
            years: Loan term in years.

        Returns:
            Monthly payment.
        """
        monthly_rate = annual_rate / Decimal("100") / MONTHS_PER_YEAR
        payments = years * MONTHS_PER_YEAR

        if monthly_rate == Decimal("0"):
            return amount / payments

        growth = (Decimal("1") + monthly_rate) ** payments
        return amount * (monthly_rate * growth) / (growth - Decimal("1"))

    def loan_deduction(self, remaining_balance: Decimal, year: int, enabled: bool) -> Decimal:
        """Deduction earned for loan ``year`` (1-based) on its year-end balance."""
        if not enabled or year > self._settings.deduction_years:
            return Decimal("0")
        base = min(remaining_balance, self._settings.deduction_cap)
        return base * self._settings.deduction_rate

    def yearly_schedule(
        self,
        amount: Decimal,
        annual_rate: Decimal,
        years: int,
        with_deduction: bool = False,
    ) -> list[YearlyBalance]:
        """Amortize the loan month by month and roll the months up per year.

        The final month's principal is trimmed so the balance never goes
        negative, and the schedule stops early once the balance reaches zero.
        """
        self.validate(amount, annual_rate, years)
        payment = self.monthly_payment(amount, annual_rate, years)
        monthly_rate = annual_rate / Decimal("100") / MONTHS_PER_YEAR
        remaining = amount
        schedule: list[YearlyBalance] = []

        for year in range(1, years + 1):
            principal_paid = Decimal("0")
            interest_paid = Decimal("0")

            for _ in range(MONTHS_PER_YEAR):
                if remaining <= Decimal("0"):
                    break
                interest = remaining * monthly_rate
                principal = payment - interest
                interest_paid += interest
                principal_paid += principal
                remaining -= principal
                if remaining < Decimal("0"):
                    principal_paid += remaining
                    remaining = Decimal("0")

            year_end = max(Decimal("0"), remaining)
            schedule.append(
                YearlyBalance(
                    year=year,
                    yearly_payment=payment * MONTHS_PER_YEAR,
                    yearly_principal=principal_paid,
                    yearly_interest=interest_paid,
                    remaining_balance=year_end,
                    loan_deduction=self.loan_deduction(year_end, year, with_deduction),
                )
            )
            if remaining <= Decimal("0"):
                break

        return schedule

    def summarize(
        self,
        schedule: list[YearlyBalance],
        monthly_payment: Decimal,
        with_deduction: bool = False,
    ) -> LoanSummary:
        """Total a schedule, splitting at the end of the deduction period when enabled."""
        total_payments = _sum(row.yearly_payment for row in schedule)
        total_deduction = _sum(row.loan_deduction for row in schedule)

        period = None
        if with_deduction:
            n = self._settings.deduction_years
            within, after = schedule[:n], schedule[n:]
            payments = _sum(row.yearly_payment for row in within)
            deduction = _sum(row.loan_deduction for row in within)
            period = DeductionPeriodSummary(
                years=n,
                payments=payments,
                interest=_sum(row.yearly_interest for row in within),
                deduction=deduction,
                net_burden=payments - deduction,
                remaining_balance=within[-1].remaining_balance if after else None,
                payments_after=_sum(row.yearly_payment for row in after),
                interest_after=_sum(row.yearly_interest for row in after),
                remaining_years=len(after),
            )

        return LoanSummary(
            monthly_payment=monthly_payment,
            total_payments=total_payments,
            total_interest=_sum(row.yearly_interest for row in schedule),
            total_deduction=total_deduction,
            net_burden=total_payments - total_deduction,
            deduction_period=period,
        )

    def calculate(
        self,
        amount: Decimal,
        annual_rate: Decimal,
        years: int,
        with_deduction: bool = False,
    ) -> LoanResult:
        """Full schedule plus summary for one loan."""
        schedule = self.yearly_schedule(amount, annual_rate, years, with_deduction)
        payment = self.monthly_payment(amount, annual_rate, years)
        summary = self.summarize(schedule, payment, with_deduction)

        logger.debug(
            "loan_calculated",
            amount=str(amount),
            annual_rate=str(annual_rate),
            years=years,
            with_deduction=with_deduction,
            monthly_payment=str(payment),
        )
        return LoanResult(
            amount=amount,
            annual_rate=annual_rate,
            years=years,
            with_deduction=with_deduction,
            schedule=tuple(schedule),
            summary=summary,
        )
