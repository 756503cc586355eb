"""
Veedor configuration management.

Supports loading from YAML files, environment variables, and keyword overrides.
"""

from __future__ import annotations

import os
from decimal import Decimal
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, model_validator

from veedor.models.financial import DEFAULT_USER_SETTINGS, UserSettings


class CSVConfig(BaseModel):
    """CSV import/export settings."""

    separator: Literal[";"] = Field(default=";", description="Fixed by the file format")
    encoding: str = Field(default="utf-8", description="Encoding used to read import files")
    export_merchant: bool = Field(default=False, description="Append the comercio column on export")


class BudgetThresholds(BaseModel):
    """Percentages at which a budget turns warn / danger."""

    warn_percentage: Decimal = Field(default=Decimal(80), ge=0)
    danger_percentage: Decimal = Field(default=Decimal(100), ge=0)

    @model_validator(mode="after")
    def _ordered(self) -> BudgetThresholds:
        if self.warn_percentage > self.danger_percentage:
            raise ValueError("warn_percentage cannot exceed danger_percentage")
        return self


class VeedorConfig(BaseModel):
    """Root configuration for Veedor."""

    data_file: str = Field(default="./veedor_data.json", description="JSON store location")
    currency: Literal["EUR"] = "EUR"
    date_format: Literal["dd/mm/yyyy"] = "dd/mm/yyyy"
    csv: CSVConfig = Field(default_factory=CSVConfig)
    defaults: UserSettings = Field(default=DEFAULT_USER_SETTINGS, description="Settings used until the user saves their own")
    budget: BudgetThresholds = Field(default_factory=BudgetThresholds)
    top_categories_limit: int = Field(default=5, ge=1)
    log_level: str = Field(default="INFO")

    @classmethod
    def load(cls, config_path: str | Path | None = None, **overrides: Any) -> VeedorConfig:
        """Load configuration from file, env vars, and overrides.

        Priority: overrides > env vars > config file > defaults.
        """
        data: dict[str, Any] = {}

        # 1. Load from YAML file if provided
        if config_path:
            path = Path(config_path)
            if path.exists():
                with open(path, encoding="utf-8") as f:
                    data = yaml.safe_load(f) or {}

        # 2. Override from environment variables
        env_data_file = os.environ.get("VEEDOR_DATA_FILE")
        env_log_level = os.environ.get("VEEDOR_LOG_LEVEL")
        env_theme = os.environ.get("VEEDOR_THEME")

        if env_data_file:
            data["data_file"] = env_data_file
        if env_log_level:
            data["log_level"] = env_log_level.upper()
        if env_theme:
            defaults = dict(data.get("defaults") or {})
            defaults["theme"] = env_theme.lower()
            data["defaults"] = defaults

        # 3. Apply keyword overrides
        data.update({key: value for key, value in overrides.items() if value is not None})

        return cls.model_validate(data)
