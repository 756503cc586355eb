"""
Financial data models — transactions, categories, budgets, settings.

Entities are frozen: ``update`` never mutates, it validates and returns a new
instance that keeps the original ``id`` (and ``created_at``). Relations are
plain id strings resolved through the selectors, never object references.
"""

from __future__ import annotations

import datetime as dt
import re
import unicodedata
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from veedor.errors import (
    CategoryRequired,
    DescriptionRequired,
    DescriptionTooLong,
    InvalidAmount,
    InvalidBudgetLimit,
    InvalidCategoryName,
    InvalidColor,
    InvalidDate,
    InvalidSetting,
)
from veedor.models.values import CalendarDate, Identifier, MonetaryAmount
from veedor.result import Result, attempt

MAX_DESCRIPTION_LENGTH = 255
MAX_CATEGORY_NAME_LENGTH = 50
NEAR_LIMIT_PERCENTAGE = Decimal(80)
FULL_PERCENTAGE = Decimal(100)

_COLOR_RE = re.compile(r"#[0-9A-F]{6}")


# ---------------------------------------------------------------------------
# Coercion helpers shared by the entities
# ---------------------------------------------------------------------------


def _as_identifier(value: Any) -> Identifier:
    if isinstance(value, Identifier):
        return value
    return Identifier.of(value)


def _as_amount(value: Any) -> MonetaryAmount:
    if isinstance(value, MonetaryAmount):
        return value
    if isinstance(value, dict):
        return MonetaryAmount(**value)
    return MonetaryAmount.of(value)


def _as_date(value: Any) -> CalendarDate:
    if isinstance(value, CalendarDate):
        return value
    if isinstance(value, dt.date):
        return CalendarDate(value=value)
    if isinstance(value, dict):
        return CalendarDate(**value)
    raise InvalidDate(f"Not a calendar date: {value!r}")


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def slugify(text: str) -> str:
    """Lowercase, strip diacritics, drop symbols and hyphenate whitespace."""
    decomposed = unicodedata.normalize("NFD", text.strip().lower())
    ascii_only = "".join(char for char in decomposed if not unicodedata.combining(char))
    cleaned = re.sub(r"[^a-z0-9\s-]", "", ascii_only)
    hyphenated = re.sub(r"\s+", "-", cleaned)
    return re.sub(r"-+", "-", hyphenated).strip("-")


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    def _with_changes(self, **changes: Any) -> Any:
        data = dict(self)
        data.update({key: value for key, value in changes.items() if value is not None})
        return type(self)(**data)


# ---------------------------------------------------------------------------
# Transaction
# ---------------------------------------------------------------------------


class Transaction(_Record):
    """A single income (positive amount) or expense (negative amount)."""

    id: Identifier = Field(default_factory=Identifier)
    account_id: str | None = None
    date: CalendarDate
    description: str
    category_id: str | None = None
    amount: MonetaryAmount
    merchant: str | None = None
    created_at: CalendarDate = Field(default_factory=CalendarDate.today)

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Identifier:
        return _as_identifier(value)

    @field_validator("date", "created_at", mode="before")
    @classmethod
    def _coerce_date(cls, value: Any) -> CalendarDate:
        return _as_date(value)

    @field_validator("amount", mode="before")
    @classmethod
    def _coerce_amount(cls, value: Any) -> MonetaryAmount:
        return _as_amount(value)

    @field_validator("account_id", "category_id", "merchant", mode="before")
    @classmethod
    def _strip_optional(cls, value: Any) -> str | None:
        return _optional_text(value)

    @field_validator("description", mode="before")
    @classmethod
    def _check_description(cls, value: Any) -> str:
        if not isinstance(value, str) or not value.strip():
            raise DescriptionRequired("Description is required")
        trimmed = value.strip()
        if len(trimmed) > MAX_DESCRIPTION_LENGTH:
            raise DescriptionTooLong(
                f"Description cannot exceed {MAX_DESCRIPTION_LENGTH} characters"
            )
        return trimmed

    @classmethod
    def create(cls, **data: Any) -> Result[Transaction]:
        return attempt(cls, **data)

    def update(
        self,
        *,
        account_id: str | None = None,
        date: CalendarDate | dt.date | None = None,
        description: str | None = None,
        category_id: str | None = None,
        amount: MonetaryAmount | float | Decimal | None = None,
        merchant: str | None = None,
    ) -> Transaction:
        """Return a copy with the given fields replaced; ``None`` keeps the current value."""
        return self._with_changes(
            account_id=account_id,
            date=date,
            description=description,
            category_id=category_id,
            amount=amount,
            merchant=merchant,
        )

    @property
    def is_income(self) -> bool:
        return self.amount.is_positive()

    @property
    def is_expense(self) -> bool:
        return self.amount.is_negative()

    def absolute_amount(self) -> MonetaryAmount:
        return self.amount.abs()

    def is_in_month(self, year: int, month: int) -> bool:
        """``month`` is 1-based."""
        return self.date.year == year and self.date.month == month

    def is_in_date_range(self, start: CalendarDate, end: CalendarDate) -> bool:
        """Inclusive on both ends."""
        return not self.date.is_before(start) and not self.date.is_after(end)

    def to_json(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "account_id": self.account_id,
            "date": self.date.to_iso(),
            "description": self.description,
            "category_id": self.category_id,
            "amount": float(self.amount.value),
            "merchant": self.merchant,
            "created_at": self.created_at.to_iso(),
        }

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> Transaction:
        return cls(
            id=data["id"],
            account_id=data.get("account_id"),
            date=CalendarDate.from_iso(data["date"]),
            description=data["description"],
            category_id=data.get("category_id"),
            amount=data["amount"],
            merchant=data.get("merchant"),
            created_at=CalendarDate.from_iso(data["created_at"]),
        )


# ---------------------------------------------------------------------------
# Category
# ---------------------------------------------------------------------------


class Category(_Record):
    """A spending or income category with a display colour and a URL-safe slug."""

    id: Identifier = Field(default_factory=Identifier)
    name: str
    color_hex: str
    slug: str = ""

    @model_validator(mode="before")
    @classmethod
    def _derive_slug(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("slug") and isinstance(data.get("name"), str):
            data = {**data, "slug": slugify(data["name"])}
        return data

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Identifier:
        return _as_identifier(value)

    @field_validator("name", mode="before")
    @classmethod
    def _check_name(cls, value: Any) -> str:
        if not isinstance(value, str) or not value.strip():
            raise InvalidCategoryName("Category name is required")
        trimmed = value.strip()
        if len(trimmed) > MAX_CATEGORY_NAME_LENGTH:
            raise InvalidCategoryName(
                f"Category name cannot exceed {MAX_CATEGORY_NAME_LENGTH} characters"
            )
        return trimmed

    @field_validator("color_hex", mode="before")
    @classmethod
    def _check_color(cls, value: Any) -> str:
        normalized = value.strip().upper() if isinstance(value, str) else ""
        if not _COLOR_RE.fullmatch(normalized):
            raise InvalidColor(f"Colour must use the #RRGGBB format, got {value!r}")
        return normalized

    @field_validator("slug", mode="before")
    @classmethod
    def _strip_slug(cls, value: Any) -> str:
        return str(value).strip() if value is not None else ""

    @classmethod
    def create(cls, **data: Any) -> Result[Category]:
        return attempt(cls, **data)

    def update(
        self,
        *,
        name: str | None = None,
        color_hex: str | None = None,
        slug: str | None = None,
    ) -> Category:
        """Rename or recolour. The slug is kept unless a new one is given."""
        return self._with_changes(name=name, color_hex=color_hex, slug=slug)

    def to_json(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "name": self.name,
            "color_hex": self.color_hex,
            "slug": self.slug,
        }

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> Category:
        return cls(
            id=data["id"],
            name=data["name"],
            color_hex=data["color_hex"],
            slug=data.get("slug") or "",
        )


# ---------------------------------------------------------------------------
# Budget
# ---------------------------------------------------------------------------


class UsageStatus(str, Enum):
    """How much of a budget has been consumed."""

    UNDER = "under"        # < 80%
    NEAR = "near"          # 80-99.9%
    EXCEEDED = "exceeded"  # >= 100%


class Budget(_Record):
    """Monthly spending limit for one category.

    The budget holds no running total; callers supply the spent amount,
    normally computed by :func:`veedor.analyzers.selectors.budget_progress`.
    """

    id: Identifier = Field(default_factory=Identifier)
    category_id: str
    monthly_limit: MonetaryAmount
    created_at: CalendarDate = Field(default_factory=CalendarDate.today)

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Identifier:
        return _as_identifier(value)

    @field_validator("created_at", mode="before")
    @classmethod
    def _coerce_date(cls, value: Any) -> CalendarDate:
        return _as_date(value)

    @field_validator("category_id", mode="before")
    @classmethod
    def _check_category(cls, value: Any) -> str:
        if not isinstance(value, str) or not value.strip():
            raise CategoryRequired("Budget category id is required")
        return value.strip()

    @field_validator("monthly_limit", mode="before")
    @classmethod
    def _check_limit(cls, value: Any) -> MonetaryAmount:
        try:
            limit = _as_amount(value)
        except InvalidAmount as exc:
            raise InvalidBudgetLimit(str(exc)) from exc
        if limit.is_negative():
            raise InvalidBudgetLimit("Monthly limit cannot be negative")
        return limit

    @classmethod
    def create(cls, **data: Any) -> Result[Budget]:
        return attempt(cls, **data)

    def update(
        self,
        *,
        category_id: str | None = None,
        monthly_limit: MonetaryAmount | float | Decimal | None = None,
    ) -> Budget:
        return self._with_changes(category_id=category_id, monthly_limit=monthly_limit)

    def is_exceeded(self, spent: MonetaryAmount) -> bool:
        return spent.value > self.monthly_limit.value

    def remaining_amount(self, spent: MonetaryAmount) -> MonetaryAmount:
        """Limit minus spent. Negative once the budget is exceeded."""
        return self.monthly_limit.subtract(spent)

    def usage_percentage(self, spent: MonetaryAmount) -> Decimal:
        """Share of the limit used, capped at 100 for display."""
        if self.monthly_limit.is_zero():
            return Decimal(0)
        percentage = spent.value / self.monthly_limit.value * 100
        return min(percentage, FULL_PERCENTAGE)

    def usage_status(self, spent: MonetaryAmount) -> UsageStatus:
        percentage = self.usage_percentage(spent)
        if percentage >= FULL_PERCENTAGE:
            return UsageStatus.EXCEEDED
        if percentage >= NEAR_LIMIT_PERCENTAGE:
            return UsageStatus.NEAR
        return UsageStatus.UNDER

    def to_json(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "category_id": self.category_id,
            "monthly_limit": float(self.monthly_limit.value),
            "created_at": self.created_at.to_iso(),
        }

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> Budget:
        return cls(
            id=data["id"],
            category_id=data["category_id"],
            monthly_limit=data["monthly_limit"],
            created_at=CalendarDate.from_iso(data["created_at"]),
        )


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


class Theme(str, Enum):
    DARK = "dark"
    LIGHT = "light"


class Locale(str, Enum):
    ES_ES = "es-ES"


class UserSettings(_Record):
    """Display preferences."""

    theme: Theme = Theme.DARK
    locale: Locale = Locale.ES_ES

    @field_validator("theme", mode="before")
    @classmethod
    def _check_theme(cls, value: Any) -> Theme:
        try:
            return Theme(value)
        except ValueError as exc:
            raise InvalidSetting(f"Unknown theme: {value!r}") from exc

    @field_validator("locale", mode="before")
    @classmethod
    def _check_locale(cls, value: Any) -> Locale:
        try:
            return Locale(value)
        except ValueError as exc:
            raise InvalidSetting(f"Unsupported locale: {value!r}") from exc

    def update(self, *, theme: Theme | str | None = None, locale: Locale | str | None = None) -> UserSettings:
        return self._with_changes(theme=theme, locale=locale)

    @property
    def is_dark_theme(self) -> bool:
        return self.theme == Theme.DARK

    @property
    def is_light_theme(self) -> bool:
        return self.theme == Theme.LIGHT

    def to_json(self) -> dict[str, Any]:
        return {"theme": self.theme.value, "locale": self.locale.value}

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> UserSettings:
        return cls(**{key: data[key] for key in ("theme", "locale") if data.get(key)})


DEFAULT_USER_SETTINGS = UserSettings()


# ---------------------------------------------------------------------------
# Snapshot
# ---------------------------------------------------------------------------


class FinancialSnapshot(BaseModel):
    """The in-memory state the selectors read from.

    This is what repositories produce and the aggregation engine consumes.
    """

    model_config = ConfigDict(frozen=True)

    transactions: tuple[Transaction, ...] = ()
    categories: tuple[Category, ...] = ()
    budgets: tuple[Budget, ...] = ()
