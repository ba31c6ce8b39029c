"""Shared test fixtures for the financial calculators."""

import json
from decimal import Decimal
from pathlib import Path

import pytest

from fincalc.config import AppSettings
from fincalc.models import AccountState, Book, Position, PositionSide


@pytest.fixture
def app_settings() -> AppSettings:
    """AppSettings with test defaults."""
    return AppSettings(log_level="DEBUG")


@pytest.fixture
def long_book() -> Book:
    """Balance 1,000,000 JPY; one long 10 lots (100,000 units) @150.00; leverage 25."""
    return Book(
        positions=(
            Position(
                id="pos1",
                side=PositionSide.LONG,
                lots=Decimal("10"),
                entry_price=Decimal("150"),
            ),
        ),
        account=AccountState(balance=Decimal("1000000"), leverage=Decimal("25")),
    )


@pytest.fixture
def config_data() -> dict:
    """Stored config in the web client's file format (legacy buy/sell sides)."""
    return {
        "account": {"balance": 1000000, "comment": "JPY account"},
        "positions": [
            {
                "id": "pos1",
                "pair": "USD/JPY",
                "side": "buy",
                "lots": 10,
                "entryPrice": 150.0,
                "entryDate": "2025-01-15",
                "comment": "Core long",
                "swapPoint": 150,
            }
        ],
        "currentPrice": 150.0,
        "settings": {
            "leverage": 25,
            "marginCallLevel": 100,
            "stopOutLevel": 50,
            "analysis": {"minRate": 140.0, "maxRate": 160.0, "step": 0.5},
        },
    }


@pytest.fixture
def config_path(tmp_path: Path, config_data: dict) -> Path:
    """config_data written to a temp file."""
    path = tmp_path / "fx-usdjpy-config.json"
    path.write_text(json.dumps(config_data), encoding="utf-8")
    return path
