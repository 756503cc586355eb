"""
Result type returned by the fallible ``create`` factories.

``Ok`` wraps a constructed value, ``Err`` wraps the typed error that the
constructor would have raised. Both support ``map``/``bind`` so that
validation steps can be chained without try/except at every call site.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar, Union

import pydantic

from veedor.errors import ValidationError, VeedorError

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def map(self, f: Callable[[T], U]) -> Result[U]:
        return Ok(f(self.value))

    def bind(self, f: Callable[[T], Result[U]]) -> Result[U]:
        return f(self.value)

    def unwrap(self) -> T:
        return self.value

    def unwrap_or(self, default: T) -> T:
        return self.value


@dataclass(frozen=True)
class Err:
    error: VeedorError

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def map(self, f: Callable[[Any], Any]) -> Err:
        return self

    def bind(self, f: Callable[[Any], Any]) -> Err:
        return self

    def unwrap(self) -> Any:
        raise self.error

    def unwrap_or(self, default: T) -> T:
        return default


Result = Union[Ok[T], Err]


def attempt(factory: Callable[..., T], *args: Any, **kwargs: Any) -> Result[T]:
    """Run *factory* and capture a :class:`VeedorError` as ``Err``.

    Pydantic's own errors (a missing field, an unknown keyword) come back as
    :class:`veedor.errors.ValidationError` with the same message.
    """
    try:
        return Ok(factory(*args, **kwargs))
    except VeedorError as exc:
        return Err(exc)
    except pydantic.ValidationError as exc:
        return Err(ValidationError(str(exc)))
