"""
result.py: Tagged success/failure values for transformation calls.

Provides Result (Ok/Err) so callers can propagate "not found",
"unsupported" and "malformed" outcomes explicitly instead of relying on
exception control flow:

    result = factory.try_select(content_type, body)
    if result.is_ok():
        transform = result.unwrap()
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar
from abc import ABC, abstractmethod

from .exceptions import TransformError

T = TypeVar("T")
U = TypeVar("U")
E = TypeVar("E")


class Result(ABC, Generic[T, E]):
    """
    Tagged union for success or failure with an error value.
    - Ok(value)
    - Err(error)

    ::: This is-in-layer Utility-Layer.
    ::: This is a monad.
    ::: This is stateless.
    """

    @abstractmethod
    def bind(self, f: Callable[[T], "Result[U, E]"]) -> "Result[U, E]":
        ...

    @abstractmethod
    def fmap(self, f: Callable[[T], U]) -> "Result[U, E]":
        ...

    def is_ok(self) -> bool:
        return isinstance(self, Ok)

    def is_err(self) -> bool:
        return isinstance(self, Err)

    def unwrap(self) -> T:
        """Get the value or raise if Err.

        An Err holding an exception re-raises that exception.
        """
        if isinstance(self, Ok):
            return self.value
        error = self.error  # type: ignore[attr-defined]
        if isinstance(error, BaseException):
            raise error
        raise ValueError(f"Cannot unwrap Err: {self}")

    def unwrap_or(self, default: T) -> T:
        """Get the value or return default if Err."""
        if isinstance(self, Ok):
            return self.value
        return default

    def map_err(self, f: Callable[[E], E]) -> "Result[T, E]":
        """Map a function over the error value."""
        if isinstance(self, Err):
            return Err(f(self.error))
        return self


@dataclass(frozen=True)
class Ok(Result[T, E]):
    """Represents a successful result."""
    value: T

    def bind(self, f: Callable[[T], Result[U, E]]) -> Result[U, E]:
        return f(self.value)

    def fmap(self, f: Callable[[T], U]) -> Result[U, E]:
        return Ok(f(self.value))

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True)
class Err(Result[Any, E]):
    """Represents a failed result with error information."""
    error: E

    def bind(self, f: Callable[[Any], Result[U, E]]) -> Result[U, E]:
        return self  # type: ignore[return-value]

    def fmap(self, f: Callable[[Any], U]) -> Result[U, E]:
        return self  # type: ignore[return-value]

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


TransformOutcome = Result[T, TransformError]


def attempt(fn: Callable[..., T], *args: Any, **kwargs: Any) -> TransformOutcome[T]:
    """Call fn and capture any TransformError as an Err.

    Other exceptions propagate unchanged.
    """
    try:
        return Ok(fn(*args, **kwargs))
    except TransformError as e:
        return Err(e)


__all__ = ["Result", "Ok", "Err", "TransformOutcome", "attempt"]
