"""JSON API endpoints: FX margin analysis, config updates, swap projection and loan schedule."""

from __future__ import annotations

from dataclasses import asdict
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

import structlog
from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from fincalc.analysis import FxAnalysis, analyze
from fincalc.exceptions import (
    ConfigStoreError,
    InvalidBookError,
    InvalidLoanError,
    InvalidRangeError,
    InvalidSwapPeriodError,
)
from fincalc.loan.calculator import LoanCalculator, LoanResult
from fincalc.margin.evaluator import MarginSnapshot
from fincalc.margin.solver import CriticalRateResult
from fincalc.margin.swap import project_swap
from fincalc.store.config_store import FxConfig, JsonConfigStore, PositionConfig

log = structlog.get_logger(__name__)

router = APIRouter()

WHOLE = Decimal("1")
CENTS = Decimal("0.01")


class AccountUpdate(BaseModel):
    balance: Decimal | None = None
    comment: str | None = None


class ConfigUpdate(BaseModel):
    """PUT /api/fx-config body. Omitted fields are left unchanged."""

    model_config = ConfigDict(populate_by_name=True)

    positions: list[PositionConfig] | None = None
    current_price: Decimal | None = Field(default=None, alias="currentPrice", gt=0)
    account: AccountUpdate | None = None


def _decimal_to_str(obj: Any) -> Any:
    """Recursively convert Decimal values to strings for JSON serialization."""
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, dict):
        return {k: _decimal_to_str(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_decimal_to_str(item) for item in obj]
    return obj


def _q(value: Decimal, exp: Decimal) -> Decimal:
    return value.quantize(exp, rounding=ROUND_HALF_UP)


def _error(status_code: int, message: str, exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": message, "details": str(exc)},
    )


def _snapshot_row(snapshot: MarginSnapshot) -> dict:
    return {
        "rate": _q(snapshot.rate, CENTS),
        "margin_level": _q(snapshot.margin_level, CENTS),
        "total_pnl": _q(snapshot.total_pnl, WHOLE),
        "equity": _q(snapshot.equity, WHOLE),
        "required_margin": _q(snapshot.required_margin, WHOLE),
        "risk_level": snapshot.risk_level.value,
    }


def _critical_rate(result: CriticalRateResult) -> dict:
    return {
        "target_margin_level": result.target_margin_level,
        "rate": None if result.rate is None else _q(result.rate, CENTS),
        "outcome": result.outcome.value,
        "plausible": result.is_plausible,
    }


def build_analysis_payload(config: FxConfig, analysis: FxAnalysis) -> dict:
    """Assemble the /fx-analysis response body (Decimals still in place)."""
    current = analysis.current
    return {
        "account": config.account.model_dump(exclude_none=True),
        "positions": [p.model_dump(exclude_none=True) for p in config.positions],
        "current_price": analysis.current_price,
        "settings": {
            "leverage": analysis.book.account.leverage,
            "lot_size": analysis.book.lot_size,
            "margin_call_level": analysis.levels.margin_call.target_margin_level,
            "stop_out_level": analysis.levels.stop_out.target_margin_level,
            "analysis": {
                "min_rate": analysis.min_rate,
                "max_rate": analysis.max_rate,
                "step": analysis.step,
            },
        },
        "analysis_results": [_snapshot_row(s) for s in analysis.series],
        "current_analysis": {
            **_snapshot_row(current),
            "position_details": [
                {
                    "id": detail.id,
                    "side": detail.side.value,
                    "lots": detail.lots,
                    "entry_price": detail.entry_price,
                    "units": detail.units,
                    "pnl": _q(detail.pnl, WHOLE),
                    "comment": detail.comment,
                }
                for detail in current.positions
            ],
        },
        "critical_levels": {
            "margin_call": _critical_rate(analysis.levels.margin_call),
            "stop_out": _critical_rate(analysis.levels.stop_out),
        },
    }


def build_loan_payload(result: LoanResult) -> dict:
    """Loan schedule and summary rounded to whole currency units."""
    payload = asdict(result)
    for row in payload["schedule"]:
        for key in ("yearly_payment", "yearly_principal", "yearly_interest",
                    "remaining_balance", "loan_deduction"):
            row[key] = _q(row[key], WHOLE)
    summary = payload["summary"]
    for key in ("monthly_payment", "total_payments", "total_interest",
                "total_deduction", "net_burden"):
        summary[key] = _q(summary[key], WHOLE)
    return payload


def _store_context(endpoint: str, store: JsonConfigStore):
    """Bind the endpoint and position file to every event logged inside."""
    return structlog.contextvars.bound_contextvars(
        endpoint=endpoint,
        config_path=str(store.path),
    )


@router.get("/fx-analysis")
async def get_fx_analysis(request: Request) -> JSONResponse:
    """Scan table, current-price breakdown and critical levels for the stored book."""
    store = request.app.state.store
    settings = request.app.state.settings

    with _store_context("fx-analysis", store):
        try:
            config = store.load()
            analysis = analyze(config, settings)
        except (ConfigStoreError, InvalidBookError, InvalidRangeError) as e:
            log.error("fx_analysis_failed", error=str(e))
            return _error(500, "Failed to load analysis data", e)

    return JSONResponse(content=_decimal_to_str(build_analysis_payload(config, analysis)))


@router.put("/fx-config")
async def put_fx_config(request: Request, update: ConfigUpdate) -> JSONResponse:
    """Replace positions, current price and/or merge account fields, then persist."""
    store = request.app.state.store
    account = update.account.model_dump(exclude_none=True) if update.account else None

    with _store_context("fx-config", store):
        try:
            store.update(
                positions=update.positions,
                current_price=update.current_price,
                account=account,
            )
        except InvalidBookError as e:
            log.warning("config_update_rejected", error=str(e))
            return _error(400, "Invalid positions", e)
        except ConfigStoreError as e:
            log.error("config_update_failed", error=str(e))
            return _error(500, "Failed to update configuration", e)

        log.info(
            "config_updated_via_api",
            positions=None if update.positions is None else len(update.positions),
            current_price=None if update.current_price is None else str(update.current_price),
            account_fields=sorted(account) if account else [],
        )
    return JSONResponse(content={"success": True, "message": "Configuration updated"})


@router.get("/swap")
async def get_swap(request: Request, days: int = Query(default=30)) -> JSONResponse:
    """Projected swap income of the stored positions over ``days`` days."""
    store = request.app.state.store
    settings = request.app.state.settings

    with _store_context("swap", store):
        try:
            book = store.load().to_book(settings.broker.lot_size)
            projection = project_swap(book.positions, days)
        except InvalidSwapPeriodError as e:
            return _error(400, "Invalid swap period", e)
        except (ConfigStoreError, InvalidBookError) as e:
            log.error("swap_projection_failed", error=str(e))
            return _error(500, "Failed to load positions", e)

    return JSONResponse(content=_decimal_to_str(asdict(projection)))


@router.get("/loan")
async def get_loan(
    request: Request,
    amount: Decimal = Query(...),
    annual_rate: Decimal = Query(...),
    years: int = Query(...),
    deduction: bool = Query(default=False),
) -> JSONResponse:
    """Yearly repayment schedule and totals for a level-payment loan."""
    calculator = LoanCalculator(request.app.state.settings.loan)

    try:
        result = calculator.calculate(amount, annual_rate, years, deduction)
    except InvalidLoanError as e:
        return _error(400, "Invalid loan parameters", e)

    return JSONResponse(content=_decimal_to_str(build_loan_payload(result)))
