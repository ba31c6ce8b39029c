"""Entry point for the financial calculators.

Subcommands:
  serve   Run the JSON API (FastAPI under uvicorn)
  report  Print the FX margin table and chart for the stored positions
  loan    Print a loan repayment schedule, or prompt for loans repeatedly
          with --interactive

Settings come from AppSettings (environment / .env); command-line options
override the matching fields.
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Callable
from decimal import Decimal, InvalidOperation

import structlog
import uvicorn

from fincalc.analysis import analyze
from fincalc.config import AppSettings
from fincalc.exceptions import CalcError
from fincalc.loan.calculator import LoanCalculator
from fincalc.logging import get_logger, setup_logging
from fincalc.report.terminal import (
    WIDTH,
    render_loan_schedule,
    render_margin_chart,
    render_margin_table,
)
from fincalc.store.config_store import JsonConfigStore

_YES = ("y", "yes")


def _decimal(text: str) -> Decimal:
    """argparse type: Decimal, accepting thousands separators (30,000,000)."""
    try:
        return Decimal(text.strip().replace(",", ""))
    except InvalidOperation as e:
        raise argparse.ArgumentTypeError(f"not a number: {text!r}") from e


def build_parser() -> argparse.ArgumentParser:
    """Build CLI parser."""
    parser = argparse.ArgumentParser(
        prog="fincalc",
        description="FX margin level analysis and loan amortization",
    )
    parser.add_argument("--log-level", type=str, help="Override LOG_LEVEL")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the JSON API server")
    serve.add_argument("--host", type=str, help="Bind address")
    serve.add_argument("--port", type=int, help="Bind port")
    serve.add_argument("--config", type=str, help="Position/account JSON file")

    report = subparsers.add_parser("report", help="Print the FX margin analysis")
    report.add_argument("--config", type=str, help="Position/account JSON file")
    report.add_argument("--no-color", action="store_true", help="Disable ANSI colors")
    report.add_argument("--no-chart", action="store_true", help="Skip the ASCII chart")

    loan = subparsers.add_parser("loan", help="Print a loan repayment schedule")
    loan.add_argument("amount", type=_decimal, nargs="?", help="Loan principal")
    loan.add_argument(
        "annual_rate", type=_decimal, nargs="?", help="Annual interest rate in percent"
    )
    loan.add_argument("years", type=int, nargs="?", help="Loan term in years")
    loan.add_argument(
        "--deduction",
        action="store_true",
        help="Apply the housing loan deduction",
    )
    loan.add_argument(
        "--interactive",
        action="store_true",
        help="Prompt for loan terms, repeating until declined",
    )
    return parser


def apply_cli_overrides(settings: AppSettings, args: argparse.Namespace) -> AppSettings:
    """Apply CLI values onto environment-derived settings."""
    updates: dict[str, object] = {}
    if args.log_level:
        updates["log_level"] = args.log_level
    if getattr(args, "config", None):
        updates["store"] = settings.store.model_copy(update={"config_path": args.config})
    if getattr(args, "host", None):
        updates["dashboard"] = settings.dashboard.model_copy(update={"host": args.host})
    if getattr(args, "port", None) is not None:
        dashboard = updates.get("dashboard", settings.dashboard)
        updates["dashboard"] = dashboard.model_copy(update={"port": args.port})
    return settings.model_copy(update=updates)


def run_report(settings: AppSettings, color: bool = True, chart: bool = True) -> str:
    """Render the margin report for the configured store."""
    store = JsonConfigStore(settings.store.config_path)
    analysis = analyze(store.load(), settings)
    output = render_margin_table(analysis, color=color)
    if chart:
        output += "\n\n" + render_margin_chart(analysis.series, color=color)
    return output


def run_loan(settings: AppSettings, args: argparse.Namespace) -> str:
    calculator = LoanCalculator(settings.loan)
    result = calculator.calculate(args.amount, args.annual_rate, args.years, args.deduction)
    return render_loan_schedule(result)


def _ask_number(
    prompt: str,
    accept: Callable[[Decimal], bool],
    ask: Callable[[str], str],
) -> Decimal:
    """Prompt until the answer parses as a finite number ``accept`` allows."""
    while True:
        try:
            value = _decimal(ask(prompt))
        except argparse.ArgumentTypeError:
            value = None
        if value is not None and value.is_finite() and accept(value):
            return value
        print("Invalid value, please try again.")


def run_interactive_loan(
    settings: AppSettings,
    ask: Callable[[str], str] | None = None,
) -> None:
    """Prompt for loan terms and print schedules until the user declines.

    ``ask`` defaults to input(). End of input stops the session like
    answering "no".
    """
    if ask is None:
        ask = input
    calculator = LoanCalculator(settings.loan)
    print("=" * WIDTH)
    print("Interactive loan calculator".center(WIDTH))
    print("=" * WIDTH)
    print("Amounts may contain thousands separators (e.g. 30,000,000)")

    try:
        while True:
            amount = _ask_number("Loan amount: ", lambda v: v > 0, ask)
            annual_rate = _ask_number(
                "Annual rate (%): ", lambda v: Decimal("0") <= v <= Decimal("100"), ask
            )
            years = _ask_number(
                "Term (years): ",
                lambda v: v > 0 and v == v.to_integral_value(),
                ask,
            )
            deduction = ask("Apply housing loan deduction? (y/N): ").strip().lower() in _YES

            result = calculator.calculate(amount, annual_rate, int(years), deduction)
            print()
            print(render_loan_schedule(result))

            if ask("Calculate another loan? (y/N): ").strip().lower() not in _YES:
                break
            print()
    except EOFError:
        print()


def serve(settings: AppSettings) -> None:
    from fincalc.dashboard.app import create_dashboard_app

    logger = get_logger("fincalc.main")
    app = create_dashboard_app(settings)
    logger.info(
        "starting_api_server",
        host=settings.dashboard.host,
        port=settings.dashboard.port,
    )
    uvicorn.run(
        app,
        host=settings.dashboard.host,
        port=settings.dashboard.port,
        log_level="warning",  # Suppress uvicorn access logs
    )


def main(argv: list[str] | None = None) -> int:
    """Synchronous entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if (
        args.command == "loan"
        and not args.interactive
        and None in (args.amount, args.annual_rate, args.years)
    ):
        parser.error("loan needs AMOUNT ANNUAL_RATE YEARS unless --interactive is given")

    settings = apply_cli_overrides(AppSettings(), args)
    setup_logging(settings.log_level)
    logger = get_logger("fincalc.main")

    context: dict[str, str] = {"command": args.command}
    if args.command in ("serve", "report"):
        context["config_path"] = settings.store.config_path

    with structlog.contextvars.bound_contextvars(**context):
        try:
            if args.command == "serve":
                serve(settings)
            elif args.command == "report":
                print(run_report(settings, color=not args.no_color, chart=not args.no_chart))
            elif args.interactive:
                run_interactive_loan(settings)
            else:
                print(run_loan(settings, args))
        except CalcError as e:
            logger.error("command_failed", error=str(e))
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
