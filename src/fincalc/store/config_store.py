"""JSON file persistence for the FX position/account configuration.

The file keeps the camelCase field names used by the web client
(entryPrice, swapPoint, currentPrice, minRate, ...). Numbers are parsed
straight into Decimal, and the side string is converted to PositionSide once,
here, so the margin engine never sees raw strings.

Writes go to a temp file in the same directory and are moved into place, so
a failed save never leaves a truncated file behind.
"""

import json
import os
import tempfile
from decimal import Decimal
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from fincalc.config import AnalysisSettings, BrokerSettings
from fincalc.exceptions import ConfigStoreError
from fincalc.logging import get_logger
from fincalc.models import LOT_SIZE, AccountState, Book, Position, PositionSide

logger = get_logger(__name__)


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class PositionConfig(_CamelModel):
    """One stored position."""

    id: str
    pair: str = "USD/JPY"
    side: PositionSide
    lots: Decimal = Field(gt=0)
    entry_price: Decimal = Field(alias="entryPrice", gt=0)
    entry_date: str | None = Field(default=None, alias="entryDate")
    comment: str = ""
    swap_point: Decimal = Field(default=Decimal("1"), alias="swapPoint")

    @field_validator("side", mode="before")
    @classmethod
    def _parse_side(cls, value: Any) -> PositionSide:
        return PositionSide.parse(value)

    def to_position(self) -> Position:
        return Position(
            id=self.id,
            side=self.side,
            lots=self.lots,
            entry_price=self.entry_price,
            comment=self.comment,
            pair=self.pair,
            entry_date=self.entry_date,
            swap_point=self.swap_point,
        )


class AccountConfig(_CamelModel):
    balance: Decimal
    comment: str | None = None


class AnalysisConfig(_CamelModel):
    min_rate: Decimal = Field(alias="minRate")
    max_rate: Decimal = Field(alias="maxRate")
    step: Decimal = Field(gt=0)
    comment: str | None = None


class SettingsConfig(_CamelModel):
    leverage: Decimal = Field(gt=0)
    margin_call_level: Decimal | None = Field(default=None, alias="marginCallLevel")
    stop_out_level: Decimal | None = Field(default=None, alias="stopOutLevel")
    analysis: AnalysisConfig | None = None


class FxConfig(_CamelModel):
    """Whole stored configuration: account, positions, current price, settings."""

    account: AccountConfig
    positions: list[PositionConfig] = Field(default_factory=list)
    current_price: Decimal = Field(alias="currentPrice", gt=0)
    settings: SettingsConfig

    def to_book(self, lot_size: Decimal = LOT_SIZE) -> Book:
        """Build the validated Book the margin engine runs on.

        Raises:
            InvalidBookError: If ids repeat or any book invariant fails.
        """
        return Book(
            positions=tuple(p.to_position() for p in self.positions),
            account=AccountState(
                balance=self.account.balance,
                leverage=self.settings.leverage,
            ),
            lot_size=lot_size,
        )

    def analysis_range(self, defaults: AnalysisSettings) -> tuple[Decimal, Decimal, Decimal]:
        """(min_rate, max_rate, step) from the file, falling back to settings."""
        analysis = self.settings.analysis
        if analysis is None:
            return defaults.min_rate, defaults.max_rate, defaults.step
        return analysis.min_rate, analysis.max_rate, analysis.step

    def thresholds(self, broker: BrokerSettings) -> tuple[Decimal, Decimal]:
        """(margin_call_level, stop_out_level), falling back to broker defaults."""
        margin_call = self.settings.margin_call_level
        stop_out = self.settings.stop_out_level
        return (
            broker.margin_call_level if margin_call is None else margin_call,
            broker.stop_out_level if stop_out is None else stop_out,
        )

    def to_json_dict(self) -> dict[str, Any]:
        """camelCase dict with Decimals left in place for the JSON encoder."""
        return self.model_dump(by_alias=True, exclude_none=True)


def _encode_decimal(value: Any) -> Any:
    """Write Decimals as plain JSON numbers, the form the web client reads.

    json writes floats with their shortest round-trip repr and load() parses
    them back with parse_float=Decimal, so values of up to 15 significant
    digits reload unchanged. Longer fractions are rounded to double precision.
    """
    if isinstance(value, Decimal):
        if value == value.to_integral_value():
            return int(value)
        return float(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class JsonConfigStore:
    """Loads and saves FxConfig as a JSON file.

    Args:
        path: Location of the configuration file.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> FxConfig:
        """Read and validate the configuration file.

        Raises:
            ConfigStoreError: If the file is missing, not JSON, or invalid.
        """
        try:
            text = self._path.read_text(encoding="utf-8")
            data = json.loads(text, parse_float=Decimal)
            config = FxConfig.model_validate(data)
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            raise ConfigStoreError(f"Failed to load config {self._path}: {e}") from e

        logger.debug(
            "config_loaded",
            path=str(self._path),
            positions=len(config.positions),
        )
        return config

    def save(self, config: FxConfig) -> None:
        """Atomically write ``config`` to the file.

        Raises:
            ConfigStoreError: If the file cannot be written.
        """
        payload = json.dumps(
            config.to_json_dict(),
            indent=2,
            ensure_ascii=False,
            default=_encode_decimal,
        )
        directory = self._path.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=directory, prefix=f".{self._path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(payload)
                os.replace(tmp_name, self._path)
            except BaseException:
                os.unlink(tmp_name)
                raise
        except OSError as e:
            raise ConfigStoreError(f"Failed to save config {self._path}: {e}") from e

        logger.info(
            "config_saved",
            path=str(self._path),
            positions=len(config.positions),
        )

    def update(
        self,
        positions: list[PositionConfig] | None = None,
        current_price: Decimal | None = None,
        account: dict[str, Any] | None = None,
    ) -> FxConfig:
        """Apply a partial update and save.

        Positions are replaced wholesale, account fields are merged into the
        stored account, and the current price is replaced. The merged config
        must still form a valid Book before anything is written.

        Raises:
            ConfigStoreError: If loading, validation or saving fails.
            InvalidBookError: If the merged positions break book invariants.
        """
        config = self.load()
        changes: dict[str, Any] = {}

        if positions is not None:
            changes["positions"] = positions
        if current_price is not None:
            changes["current_price"] = current_price
        if account:
            merged = {**config.account.model_dump(), **account}
            try:
                changes["account"] = AccountConfig.model_validate(merged)
            except ValidationError as e:
                raise ConfigStoreError(f"Invalid account update: {e}") from e

        updated = config.model_copy(update=changes)
        try:
            updated = FxConfig.model_validate(updated.model_dump())
        except ValidationError as e:
            raise ConfigStoreError(f"Invalid config update: {e}") from e
        updated.to_book()

        self.save(updated)
        return updated
