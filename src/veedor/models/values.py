"""
Value objects — identifiers, EUR amounts and calendar dates.

All three are frozen pydantic models compared by value. Constructors and the
``of``/``parse`` helpers raise the typed errors from :mod:`veedor.errors`;
``create`` is the non-raising variant returning a :mod:`veedor.result` value.
"""

from __future__ import annotations

import calendar
import re
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from veedor.errors import (
    DivisionByZero,
    InvalidAmount,
    InvalidAmountFormat,
    InvalidDate,
    InvalidDateFormat,
    InvalidIdentifier,
)
from veedor.result import Result, attempt

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
EQUALITY_EPSILON = Decimal("0.01")
CURRENCY_SYMBOL = "€"

_AMOUNT_RE = re.compile(r"[+-]?\d+(?:\.\d+)?")
_ES_DATE_RE = re.compile(r"(\d{1,2})/(\d{1,2})/(\d{4})")
_ISO_DATE_RE = re.compile(r"(\d{4})-(\d{2})-(\d{2})")

_WEEKDAYS_ES = ("lunes", "martes", "miércoles", "jueves", "viernes", "sábado", "domingo")
_MONTHS_ES = (
    "enero", "febrero", "marzo", "abril", "mayo", "junio",
    "julio", "agosto", "septiembre", "octubre", "noviembre", "diciembre",
)


class Identifier(BaseModel):
    """Opaque, non-empty primary key. A UUID4 is generated when omitted."""

    model_config = ConfigDict(frozen=True)

    value: str = Field(default_factory=lambda: str(uuid4()))

    @field_validator("value", mode="before")
    @classmethod
    def _check_value(cls, value: Any) -> str:
        if not isinstance(value, str) or not value:
            raise InvalidIdentifier("Identifier must be a non-empty string")
        return value

    @classmethod
    def of(cls, value: str) -> Identifier:
        return cls(value=value)

    @classmethod
    def create(cls, value: str | None = None) -> Result[Identifier]:
        if value is None:
            return attempt(cls)
        return attempt(cls.of, value)

    def __str__(self) -> str:
        return self.value


# ---------------------------------------------------------------------------
# Money
# ---------------------------------------------------------------------------


def _to_decimal(amount: Any) -> Decimal:
    """Convert a numeric input to an exact, finite Decimal (not yet rounded)."""
    if isinstance(amount, bool):
        raise InvalidAmount("Amount must be a number, got bool")
    if isinstance(amount, Decimal):
        value = amount
    elif isinstance(amount, int):
        value = Decimal(amount)
    elif isinstance(amount, float):
        # repr() is the shortest string that round-trips, so 1.555 stays 1.555
        value = Decimal(repr(amount))
    else:
        raise InvalidAmount(f"Amount must be a number, got {type(amount).__name__}")
    if not value.is_finite():
        raise InvalidAmount(f"Amount must be finite, got {amount!r}")
    return value


def round_cents(amount: Any) -> Decimal:
    """Round half-up (away from zero) to two decimals."""
    try:
        rounded = _to_decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation as exc:
        raise InvalidAmount(f"Amount out of range: {amount!r}") from exc
    if rounded.is_zero():
        return ZERO
    return rounded


class MonetaryAmount(BaseModel):
    """A EUR amount held as a Decimal rounded to cents.

    Positive amounts are income, negative amounts are expenses. Every
    arithmetic operation returns a new, re-rounded instance.
    """

    model_config = ConfigDict(frozen=True)

    value: Decimal

    @field_validator("value", mode="before")
    @classmethod
    def _round(cls, value: Any) -> Decimal:
        return round_cents(value)

    @classmethod
    def of(cls, amount: Any) -> MonetaryAmount:
        return cls(value=amount)

    @classmethod
    def create(cls, amount: Any) -> Result[MonetaryAmount]:
        return attempt(cls.of, amount)

    @classmethod
    def zero(cls) -> MonetaryAmount:
        return cls(value=ZERO)

    # -- arithmetic ---------------------------------------------------------

    def add(self, other: MonetaryAmount) -> MonetaryAmount:
        return MonetaryAmount(value=self.value + other.value)

    def subtract(self, other: MonetaryAmount) -> MonetaryAmount:
        return MonetaryAmount(value=self.value - other.value)

    def multiply(self, factor: int | float | Decimal) -> MonetaryAmount:
        return MonetaryAmount(value=self.value * _to_decimal(factor))

    def divide(self, divisor: int | float | Decimal) -> MonetaryAmount:
        exact = _to_decimal(divisor)
        if exact.is_zero():
            raise DivisionByZero("Cannot divide an amount by zero")
        return MonetaryAmount(value=self.value / exact)

    def abs(self) -> MonetaryAmount:
        return MonetaryAmount(value=abs(self.value))

    def negate(self) -> MonetaryAmount:
        return MonetaryAmount(value=-self.value)

    # -- comparison ---------------------------------------------------------

    def equals(self, other: MonetaryAmount) -> bool:
        """Equality within one cent of tolerance."""
        return abs(self.value - other.value) < EQUALITY_EPSILON

    def is_positive(self) -> bool:
        return self.value > 0

    def is_negative(self) -> bool:
        return self.value < 0

    def is_zero(self) -> bool:
        return abs(self.value) < EQUALITY_EPSILON

    # -- locale format ------------------------------------------------------

    def format(self, with_symbol: bool = True) -> str:
        """Spanish format: ``1.234,56 €``."""
        sign = "-" if self.value < 0 else ""
        integer, _, cents = f"{abs(self.value):.2f}".partition(".")
        grouped = f"{int(integer):,}".replace(",", ".")
        text = f"{sign}{grouped},{cents}"
        return f"{text} {CURRENCY_SYMBOL}" if with_symbol else text

    def format_for_input(self) -> str:
        """Ungrouped comma-decimal form used by edit fields: ``1234,56``."""
        return f"{self.value:.2f}".replace(".", ",")

    @classmethod
    def parse(cls, text: str) -> MonetaryAmount:
        """Parse ``1.234,56 €``, ``-45,50`` or ``1234,56``."""
        if not isinstance(text, str):
            raise InvalidAmountFormat(f"Invalid amount format: {text!r}", str(text))
        cleaned = re.sub(r"[€\s]", "", text).replace(".", "").replace(",", ".", 1)
        if not _AMOUNT_RE.fullmatch(cleaned):
            raise InvalidAmountFormat(f"Invalid amount format: {text}", text)
        return cls(value=Decimal(cleaned))

    @classmethod
    def parse_input(cls, text: str) -> MonetaryAmount:
        """Parse the ungrouped edit-field form, with ``,`` or ``.`` as decimal mark."""
        if not isinstance(text, str):
            raise InvalidAmountFormat(f"Invalid amount format: {text!r}", str(text))
        cleaned = text.strip().replace(",", ".", 1)
        if not _AMOUNT_RE.fullmatch(cleaned):
            raise InvalidAmountFormat(f"Invalid amount format: {text}", text)
        return cls(value=Decimal(cleaned))

    def __str__(self) -> str:
        return self.format()


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------


class CalendarDate(BaseModel):
    """A calendar day. Comparisons ignore time of day entirely."""

    model_config = ConfigDict(frozen=True)

    value: date

    @field_validator("value", mode="before")
    @classmethod
    def _check_value(cls, value: Any) -> date:
        if isinstance(value, datetime):
            return value.date()
        if not isinstance(value, date):
            raise InvalidDate(f"Not a calendar date: {value!r}")
        return value

    @classmethod
    def of(cls, year: int, month: int, day: int) -> CalendarDate:
        """Build from components, rejecting anything that is not a real day."""
        try:
            candidate = date(year, month, day)
        except (TypeError, ValueError) as exc:
            raise InvalidDate(f"Invalid date: {day}/{month}/{year}") from exc
        # components must survive construction unchanged
        if (candidate.year, candidate.month, candidate.day) != (year, month, day):
            raise InvalidDate(f"Invalid date: {day}/{month}/{year}")
        return cls(value=candidate)

    @classmethod
    def create(cls, year: int, month: int, day: int) -> Result[CalendarDate]:
        return attempt(cls.of, year, month, day)

    @classmethod
    def today(cls) -> CalendarDate:
        return cls(value=date.today())

    # -- accessors ----------------------------------------------------------

    @property
    def year(self) -> int:
        return self.value.year

    @property
    def month(self) -> int:
        return self.value.month

    @property
    def day(self) -> int:
        return self.value.day

    # -- parse / format -----------------------------------------------------

    @classmethod
    def parse(cls, text: str) -> CalendarDate:
        """Parse ``dd/mm/yyyy``."""
        if not isinstance(text, str):
            raise InvalidDateFormat(f"Invalid date format: {text!r}. Use dd/mm/yyyy", str(text))
        match = _ES_DATE_RE.fullmatch(text.strip())
        if match is None:
            raise InvalidDateFormat(f"Invalid date format: {text}. Use dd/mm/yyyy", text)
        day, month, year = (int(group) for group in match.groups())
        try:
            return cls.of(year, month, day)
        except InvalidDate as exc:
            raise InvalidDate(f"Invalid date: {text}", raw=text) from exc

    @classmethod
    def parse_input(cls, text: str) -> CalendarDate:
        """Parse the ``yyyy-mm-dd`` form used by date inputs."""
        match = _ISO_DATE_RE.fullmatch(text.strip()) if isinstance(text, str) else None
        if match is None:
            raise InvalidDateFormat(f"Invalid date format: {text}. Use yyyy-mm-dd", str(text))
        year, month, day = (int(group) for group in match.groups())
        try:
            return cls.of(year, month, day)
        except InvalidDate as exc:
            raise InvalidDate(f"Invalid date: {text}", raw=text) from exc

    @classmethod
    def from_iso(cls, text: str) -> CalendarDate:
        """Read a persisted ISO-8601 date or datetime string."""
        if isinstance(text, str) and "T" in text:
            try:
                return cls(value=datetime.fromisoformat(text.replace("Z", "+00:00")))
            except ValueError as exc:
                raise InvalidDateFormat(f"Invalid ISO date: {text}", text) from exc
        return cls.parse_input(text)

    def to_iso(self) -> str:
        return self.value.isoformat()

    def format(self) -> str:
        return f"{self.day:02d}/{self.month:02d}/{self.year:04d}"

    def format_for_input(self) -> str:
        return self.to_iso()

    def format_short(self) -> str:
        return f"{self.day:02d}/{self.month:02d}"

    def format_long(self) -> str:
        """``lunes, 15 de enero de 2024``."""
        weekday = _WEEKDAYS_ES[self.value.weekday()]
        return f"{weekday}, {self.day} de {_MONTHS_ES[self.month - 1]} de {self.year}"

    def __str__(self) -> str:
        return self.format()

    # -- comparison ---------------------------------------------------------

    def is_before(self, other: CalendarDate) -> bool:
        return self.value < other.value

    def is_after(self, other: CalendarDate) -> bool:
        return self.value > other.value

    def is_same_day(self, other: CalendarDate) -> bool:
        return self.value == other.value

    # -- arithmetic ---------------------------------------------------------

    def add_days(self, days: int) -> CalendarDate:
        try:
            return CalendarDate(value=self.value + timedelta(days=days))
        except OverflowError as exc:
            raise InvalidDate(f"Date out of range: {self.format()} + {days} days") from exc

    def add_months(self, months: int) -> CalendarDate:
        """Shift by whole months, clamping the day to the target month's length."""
        year, month_index = divmod(self.year * 12 + (self.month - 1) + months, 12)
        month = month_index + 1
        if not 1 <= year <= 9999:
            raise InvalidDate(f"Date out of range: {self.format()} + {months} months")
        day = min(self.day, calendar.monthrange(year, month)[1])
        return CalendarDate.of(year, month, day)

    def add_years(self, years: int) -> CalendarDate:
        return self.add_months(years * 12)

    def start_of_month(self) -> CalendarDate:
        return CalendarDate(value=self.value.replace(day=1))

    def end_of_month(self) -> CalendarDate:
        last_day = calendar.monthrange(self.year, self.month)[1]
        return CalendarDate(value=self.value.replace(day=last_day))

    def start_of_year(self) -> CalendarDate:
        return CalendarDate(value=date(self.year, 1, 1))

    def end_of_year(self) -> CalendarDate:
        return CalendarDate(value=date(self.year, 12, 31))
