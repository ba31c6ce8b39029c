"""Tests for JsonConfigStore -- loading, atomic saves and partial updates."""

import json
from decimal import Decimal
from pathlib import Path

import pytest

from fincalc.config import AnalysisSettings, BrokerSettings
from fincalc.exceptions import ConfigStoreError, InvalidBookError
from fincalc.models import PositionSide
from fincalc.store.config_store import FxConfig, JsonConfigStore, PositionConfig


def _position(id: str, side: str = "long", lots: str = "1") -> PositionConfig:
    return PositionConfig(
        id=id,
        side=side,
        lots=Decimal(lots),
        entry_price=Decimal("150"),
    )


class TestLoad:
    def test_parses_decimals_and_sides(self, config_path: Path) -> None:
        config = JsonConfigStore(config_path).load()

        assert config.account.balance == Decimal("1000000")
        assert config.current_price == Decimal("150.0")
        assert isinstance(config.current_price, Decimal)
        assert config.positions[0].side is PositionSide.LONG
        assert config.positions[0].entry_price == Decimal("150")
        assert config.positions[0].swap_point == Decimal("150")
        assert config.settings.analysis.step == Decimal("0.5")

    def test_to_book(self, config_path: Path) -> None:
        book = JsonConfigStore(config_path).load().to_book()

        assert book.account.leverage == Decimal("25")
        assert book.units(book.positions[0]) == Decimal("100000")

    def test_missing_file(self, tmp_path: Path) -> None:
        store = JsonConfigStore(tmp_path / "missing.json")
        with pytest.raises(ConfigStoreError, match="Failed to load"):
            store.load()

    def test_malformed_json(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigStoreError):
            JsonConfigStore(path).load()

    def test_unknown_side(self, tmp_path: Path, config_data: dict) -> None:
        config_data["positions"][0]["side"] = "hold"
        path = tmp_path / "config.json"
        path.write_text(json.dumps(config_data), encoding="utf-8")
        with pytest.raises(ConfigStoreError):
            JsonConfigStore(path).load()

    def test_zero_lots_rejected(self, tmp_path: Path, config_data: dict) -> None:
        config_data["positions"][0]["lots"] = 0
        path = tmp_path / "config.json"
        path.write_text(json.dumps(config_data), encoding="utf-8")
        with pytest.raises(ConfigStoreError):
            JsonConfigStore(path).load()


class TestFallbacks:
    def test_analysis_range_from_file(self, config_data: dict) -> None:
        config = FxConfig.model_validate(config_data)
        assert config.analysis_range(AnalysisSettings()) == (
            Decimal("140.0"),
            Decimal("160.0"),
            Decimal("0.5"),
        )

    def test_analysis_range_from_settings(self, config_data: dict) -> None:
        del config_data["settings"]["analysis"]
        config = FxConfig.model_validate(config_data)
        assert config.analysis_range(AnalysisSettings()) == (
            Decimal("130"),
            Decimal("160"),
            Decimal("0.5"),
        )

    def test_thresholds_from_broker(self, config_data: dict) -> None:
        del config_data["settings"]["marginCallLevel"]
        config_data["settings"]["stopOutLevel"] = 30
        config = FxConfig.model_validate(config_data)

        margin_call, stop_out = config.thresholds(BrokerSettings())
        assert margin_call == Decimal("100")
        assert stop_out == Decimal("30")


class TestSave:
    def test_writes_canonical_sides(self, config_path: Path) -> None:
        store = JsonConfigStore(config_path)
        store.save(store.load())

        raw = json.loads(config_path.read_text(encoding="utf-8"))
        assert raw["positions"][0]["side"] == "long"
        assert raw["positions"][0]["entryPrice"] == 150
        assert raw["settings"]["analysis"]["step"] == 0.5
        assert raw["currentPrice"] == 150

    def test_reload_matches(self, config_path: Path) -> None:
        store = JsonConfigStore(config_path)
        original = store.load()
        store.save(original)

        assert store.load() == original

    def test_leaves_no_temp_files(self, config_path: Path) -> None:
        store = JsonConfigStore(config_path)
        store.save(store.load())

        assert [p.name for p in config_path.parent.iterdir()] == [config_path.name]

    def test_fractional_values_reload_exactly(
        self, config_path: Path, config_data: dict
    ) -> None:
        config_data["currentPrice"] = 151.234567891234
        config_data["positions"][0]["entryPrice"] = 149.87
        store = JsonConfigStore(config_path)
        store.save(FxConfig.model_validate(config_data))

        reloaded = store.load()
        assert reloaded.current_price == Decimal("151.234567891234")
        assert reloaded.positions[0].entry_price == Decimal("149.87")

    def test_creates_parent_directory(self, tmp_path: Path, config_data: dict) -> None:
        store = JsonConfigStore(tmp_path / "nested" / "config.json")
        store.save(FxConfig.model_validate(config_data))

        assert store.path.exists()


class TestUpdate:
    def test_replaces_positions(self, config_path: Path) -> None:
        store = JsonConfigStore(config_path)
        updated = store.update(positions=[_position("a"), _position("b", side="sell")])

        assert [p.id for p in updated.positions] == ["a", "b"]
        reloaded = store.load()
        assert reloaded.positions[1].side is PositionSide.SHORT

    def test_merges_account(self, config_path: Path) -> None:
        store = JsonConfigStore(config_path)
        store.update(account={"balance": Decimal("2000000")})

        reloaded = store.load()
        assert reloaded.account.balance == Decimal("2000000")
        assert reloaded.account.comment == "JPY account"

    def test_replaces_current_price(self, config_path: Path) -> None:
        store = JsonConfigStore(config_path)
        store.update(current_price=Decimal("148.25"))

        reloaded = store.load()
        assert reloaded.current_price == Decimal("148.25")
        assert len(reloaded.positions) == 1

    def test_duplicate_ids_not_written(self, config_path: Path) -> None:
        store = JsonConfigStore(config_path)
        before = config_path.read_text(encoding="utf-8")

        with pytest.raises(InvalidBookError, match="Duplicate"):
            store.update(positions=[_position("a"), _position("a")])

        assert config_path.read_text(encoding="utf-8") == before
