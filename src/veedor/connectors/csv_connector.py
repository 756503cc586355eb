"""
CSV Connector — import transactions from semicolon-separated bank exports.

The file format is fixed::

    fecha;descripcion;categoria;importe
    15/01/2024;Compra en supermercado;Comida;-45,50

Dates are ``dd/mm/yyyy`` and amounts use the Spanish format (``.`` thousands,
``,`` decimals). There is no quoting, so a description containing ``;`` is a
column-count error. The category cell is carried through as free text;
resolving it against known categories is the import service's job.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from veedor.analyzers.duplicate_detector import DuplicateDetector
from veedor.connectors.base import BaseConnector
from veedor.errors import (
    ColumnCountError,
    DescriptionRequired,
    DescriptionTooLong,
    VeedorError,
)
from veedor.models.financial import MAX_DESCRIPTION_LENGTH, Transaction
from veedor.models.values import CalendarDate, MonetaryAmount

logger = logging.getLogger("veedor.connectors.csv")

SEPARATOR = ";"
EXPECTED_HEADERS: tuple[str, ...] = ("fecha", "descripcion", "categoria", "importe")

_EXAMPLE_ROWS = [
    ("15/01/2024", "Compra en supermercado", "Comida", "-45,50"),
    ("16/01/2024", "Nómina enero", "Ingresos", "2.500,00"),
    ("17/01/2024", "Gasolina", "Transporte", "-60,00"),
    ("18/01/2024", "Cena con amigos", "Ocio", "-35,80"),
    ("20/01/2024", "Factura de la luz", "Hogar", "-78,45"),
]


class ParserState(str, Enum):
    """Where the parser is in its single pass over the input."""

    IDLE = "idle"
    HEADER_CHECK = "header_check"
    ROW_SCAN = "row_scan"
    DONE = "done"


@dataclass
class CSVRowError:
    """A rejected line. ``line_number`` counts non-blank lines, header is 1."""

    line_number: int
    message: str
    raw_line: str = ""
    error_type: str = ""


@dataclass
class CSVParseResult:
    """Outcome of one parse.

    ``repeats`` holds the rows dropped as in-batch duplicates, in file order;
    ``duplicate_count`` is their number. ``sources`` maps each parsed or
    repeated transaction id to its ``(line_number, raw_line)`` so later
    stages can report problems against the original line.
    """

    parsed_transactions: list[Transaction] = field(default_factory=list)
    duplicate_count: int = 0
    errors: list[CSVRowError] = field(default_factory=list)
    sources: dict[str, tuple[int, str]] = field(default_factory=dict)
    repeats: list[Transaction] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    @property
    def header_rejected(self) -> bool:
        return not self.parsed_transactions and len(self.errors) == 1 and self.errors[0].line_number == 1


def _split(line: str) -> list[str]:
    return [cell.strip() for cell in line.split(SEPARATOR)]


class CSVParser:
    """Single-pass parser: Idle → HeaderCheck → RowScan → Done.

    Row-level problems never raise; they are collected as :class:`CSVRowError`
    and the remaining rows are still processed. Repeats within the batch are
    counted and dropped.

    Usage::

        result = CSVParser().parse(text)
        for error in result.errors:
            print(error.line_number, error.message)
    """

    def __init__(self) -> None:
        self.state = ParserState.IDLE

    def parse(self, text: str) -> CSVParseResult:
        self.state = ParserState.IDLE
        result = CSVParseResult()

        lines = [line.strip() for line in text.lstrip("\ufeff").split("\n")]
        lines = [line for line in lines if line]
        if not lines:
            self.state = ParserState.DONE
            return result

        self.state = ParserState.HEADER_CHECK
        header_problem = self.check_header(lines[0])
        if header_problem is not None:
            logger.warning("Rejected CSV header: %s", header_problem)
            result.errors.append(
                CSVRowError(line_number=1, message=header_problem, raw_line=lines[0], error_type="HeaderError")
            )
            self.state = ParserState.DONE
            return result

        self.state = ParserState.ROW_SCAN
        detector = DuplicateDetector()
        for line_number, line in enumerate(lines[1:], start=2):
            try:
                transaction = self.parse_row(line)
            except VeedorError as exc:
                logger.debug("Skipping line %d: %s", line_number, exc)
                result.errors.append(
                    CSVRowError(
                        line_number=line_number,
                        message=str(exc),
                        raw_line=line,
                        error_type=type(exc).__name__,
                    )
                )
                continue

            result.sources[str(transaction.id)] = (line_number, line)
            if detector.check_and_register(transaction):
                result.duplicate_count += 1
                result.repeats.append(transaction)
                continue
            result.parsed_transactions.append(transaction)

        self.state = ParserState.DONE
        logger.info(
            "Parsed %d transactions (%d duplicates, %d errors)",
            len(result.parsed_transactions),
            result.duplicate_count,
            len(result.errors),
        )
        return result

    @staticmethod
    def check_header(line: str) -> str | None:
        """Return a description of what is wrong with the header, or ``None``."""
        headers = _split(line)
        if len(headers) != len(EXPECTED_HEADERS):
            return f"Expected {len(EXPECTED_HEADERS)} columns, found {len(headers)}"
        for position, (found, expected) in enumerate(zip(headers, EXPECTED_HEADERS), start=1):
            if found.lower() != expected:
                return f'Column {position} must be "{expected}", found "{found}"'
        return None

    @staticmethod
    def parse_row(line: str) -> Transaction:
        """Build a transaction from one data line, raising the first problem found."""
        cells = _split(line)
        if len(cells) != len(EXPECTED_HEADERS):
            raise ColumnCountError(
                f"Line must have {len(EXPECTED_HEADERS)} columns, found {len(cells)}"
            )
        raw_date, description, category, raw_amount = cells

        date = CalendarDate.parse(raw_date)
        if not description:
            raise DescriptionRequired("Description is required")
        if len(description) > MAX_DESCRIPTION_LENGTH:
            raise DescriptionTooLong(
                f"Description cannot exceed {MAX_DESCRIPTION_LENGTH} characters"
            )
        amount = MonetaryAmount.parse(raw_amount)

        return Transaction(
            date=date,
            description=description,
            category_id=category or None,
            amount=amount,
        )


class CSVConnector(BaseConnector):
    """Read a CSV file from disk and parse it.

    Usage::

        connector = CSVConnector(file_path="movimientos.csv")
        result = await connector.pull()
    """

    name = "csv"
    description = "Import transactions from semicolon-separated CSV files"

    def __init__(self, file_path: str | Path = "", **options: Any) -> None:
        super().__init__(**options)
        self.file_path = str(file_path or options.get("file_path", ""))
        self.encoding = options.get("encoding", "utf-8")

    async def pull(self) -> CSVParseResult:
        path = Path(self.file_path)
        if not path.exists():
            raise FileNotFoundError(f"CSV file not found: {self.file_path}")

        text = path.read_text(encoding=self.encoding)
        result = CSVParser().parse(text)
        logger.info("Read %d transactions from %s", len(result.parsed_transactions), path.name)
        return result

    async def validate_source(self) -> bool:
        path = Path(self.file_path)
        return path.exists() and path.is_file()


def generate_example_csv() -> str:
    """A small, valid CSV in the import format."""
    lines = [SEPARATOR.join(EXPECTED_HEADERS)]
    lines.extend(SEPARATOR.join(row) for row in _EXAMPLE_ROWS)
    return "\n".join(lines) + "\n"
