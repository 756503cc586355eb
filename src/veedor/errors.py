"""
Error taxonomy for Veedor.

Every failure raised by the domain layer derives from :class:`VeedorError`,
so callers can catch the whole family at the boundary (CLI, import service)
while still matching on the precise type where it matters.
"""

from __future__ import annotations


class VeedorError(Exception):
    """Base class for all Veedor errors."""


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class ValidationError(VeedorError):
    """Malformed or out-of-range input to a value object or entity."""


class InvalidIdentifier(ValidationError):
    pass


class InvalidAmount(ValidationError):
    pass


class DivisionByZero(ValidationError):
    pass


class InvalidDate(ValidationError):
    """A syntactically valid date that does not exist on the calendar."""

    def __init__(self, message: str, raw: str | None = None) -> None:
        super().__init__(message)
        self.raw = raw


class DescriptionRequired(ValidationError):
    pass


class DescriptionTooLong(ValidationError):
    pass


class InvalidCategoryName(ValidationError):
    pass


class InvalidColor(ValidationError):
    pass


class CategoryRequired(ValidationError):
    pass


class InvalidBudgetLimit(ValidationError):
    pass


class InvalidSetting(ValidationError):
    pass


class ColumnCountError(ValidationError):
    pass


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


class ParseError(ValidationError):
    """Locale-format parsing failure. Always carries the offending text."""

    def __init__(self, message: str, raw: str) -> None:
        super().__init__(message)
        self.raw = raw


class InvalidAmountFormat(ParseError):
    pass


class InvalidDateFormat(ParseError):
    pass


# ---------------------------------------------------------------------------
# Repository boundary
# ---------------------------------------------------------------------------


class NotFoundError(VeedorError):
    """Lookup by id with no match."""

    def __init__(self, entity: str, entity_id: str) -> None:
        super().__init__(f"{entity} with id {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class UniquenessViolation(VeedorError):
    """A uniqueness constraint (slug, one budget per category) was violated."""


class DuplicateTransaction(UniquenessViolation):
    """A transaction with the same content hash is already stored."""


class StorageError(VeedorError):
    """The backing store could not be read or written."""
