"""Tests for configuration loading."""

from decimal import Decimal
from pathlib import Path

import pydantic
import pytest

from veedor.config import BudgetThresholds, VeedorConfig
from veedor.models.financial import Theme


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("VEEDOR_DATA_FILE", "VEEDOR_LOG_LEVEL", "VEEDOR_THEME"):
        monkeypatch.delenv(name, raising=False)


class TestVeedorConfig:
    def test_defaults(self) -> None:
        config = VeedorConfig()
        assert config.data_file == "./veedor_data.json"
        assert config.currency == "EUR"
        assert config.csv.separator == ";"
        assert config.defaults.theme == Theme.DARK
        assert config.budget.warn_percentage == Decimal(80)
        assert config.top_categories_limit == 5

    def test_load_from_yaml(self, tmp_path: Path) -> None:
        config_file = tmp_path / "veedor.yaml"
        config_file.write_text(
            "data_file: /tmp/finanzas.json\n"
            "top_categories_limit: 3\n"
            "csv:\n"
            "  encoding: latin-1\n"
            "  export_merchant: true\n"
            "budget:\n"
            "  warn_percentage: 70\n"
            "defaults:\n"
            "  theme: light\n",
            encoding="utf-8",
        )
        config = VeedorConfig.load(config_file)
        assert config.data_file == "/tmp/finanzas.json"
        assert config.top_categories_limit == 3
        assert config.csv.encoding == "latin-1"
        assert config.csv.export_merchant is True
        assert config.budget.warn_percentage == Decimal(70)
        assert config.defaults.is_light_theme

    def test_missing_file_uses_defaults(self, tmp_path: Path) -> None:
        assert VeedorConfig.load(tmp_path / "missing.yaml") == VeedorConfig()

    def test_env_overrides_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        config_file = tmp_path / "veedor.yaml"
        config_file.write_text("data_file: from-file.json\nlog_level: INFO\n", encoding="utf-8")
        monkeypatch.setenv("VEEDOR_DATA_FILE", "from-env.json")
        monkeypatch.setenv("VEEDOR_LOG_LEVEL", "debug")
        monkeypatch.setenv("VEEDOR_THEME", "LIGHT")

        config = VeedorConfig.load(config_file)
        assert config.data_file == "from-env.json"
        assert config.log_level == "DEBUG"
        assert config.defaults.is_light_theme

    def test_overrides_win(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("VEEDOR_DATA_FILE", "from-env.json")
        config = VeedorConfig.load(data_file="override.json", log_level=None)
        assert config.data_file == "override.json"
        assert config.log_level == "INFO"

    def test_only_semicolon_separator(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            VeedorConfig.model_validate({"csv": {"separator": ","}})

    def test_thresholds_must_be_ordered(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            BudgetThresholds(warn_percentage=120, danger_percentage=100)
