"""
Base connector — abstract interface for transaction sources.

A connector reads raw data from somewhere (a file today) and hands back a
:class:`CSVParseResult`: the transactions it could build, how many rows were
repeats, and one error per rejected row.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from veedor.connectors.csv_connector import CSVParseResult


class BaseConnector(ABC):
    """Abstract base class for transaction sources.

    Subclasses implement:
    - `name`: Unique connector identifier.
    - `pull()`: Async method that returns a parse result.
    - `validate_source()`: Check that the source can be read.
    """

    name: str = "base"
    description: str = "Base connector"

    def __init__(self, **options: Any) -> None:
        self.options = options

    @abstractmethod
    async def pull(self) -> CSVParseResult:
        """Read the source and parse it into transactions."""
        ...

    @abstractmethod
    async def validate_source(self) -> bool:
        """Return whether the source exists and is readable."""
        ...

    async def health_check(self) -> dict[str, Any]:
        """Check connector health."""
        try:
            valid = await self.validate_source()
            return {"connector": self.name, "healthy": valid, "error": None}
        except OSError as e:
            return {"connector": self.name, "healthy": False, "error": str(e)}
