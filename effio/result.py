"""
Result type returned by every effect evaluation.

A :class:`Result` is either :class:`Ok` carrying a value or :class:`Err`
carrying a structured :class:`~effio.errors.Error`. Each variant implements
the operations for its own case; the base class derives the rest from
:meth:`Result.match`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, NoReturn, TypeVar

from effio.errors import Error, ResultCastError

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)
U = TypeVar("U")


class Result(ABC, Generic[T_co]):
    """Outcome of running an effect."""

    __slots__ = ()

    @abstractmethod
    def match(self, on_ok: Callable[[T_co], U], on_err: Callable[[Error], U]) -> U:
        """Run ``on_ok`` with the value or ``on_err`` with the error."""

    @abstractmethod
    def map(self, f: Callable[[T_co], U]) -> Result[U]: ...

    @abstractmethod
    def map_err(self, f: Callable[[Error], Error]) -> Result[T_co]: ...

    @abstractmethod
    def and_then(self, f: Callable[[T_co], Result[U]]) -> Result[U]: ...

    @abstractmethod
    def recover(self, f: Callable[[Error], T_co]) -> Result[T_co]:
        """Turn a failure into a success computed from its error."""

    @abstractmethod
    def cast(self) -> Result[Any]:
        """Retype a failure for another value type.

        Raises :class:`~effio.errors.ResultCastError` on :class:`Ok`.
        """

    @abstractmethod
    def unwrap(self) -> T_co:
        """Return the value; a failure raises its intercepted exception."""

    @abstractmethod
    def unwrap_err(self) -> Error: ...

    @abstractmethod
    def expect(self, message: str) -> T_co: ...

    @abstractmethod
    def __or__(self, other: Result[U]) -> Result[T_co] | Result[U]:
        """First ``Ok`` wins."""

    def is_ok(self) -> bool:
        return self.match(lambda _: True, lambda _: False)

    def is_err(self) -> bool:
        return not self.is_ok()

    def ok(self) -> T_co | None:
        return self.match(lambda value: value, lambda _: None)

    def err(self) -> Error | None:
        return self.match(lambda _: None, lambda error: error)

    def unwrap_or(self, default: U) -> T_co | U:
        return self.match(lambda value: value, lambda _: default)

    def unwrap_or_else(self, default_fn: Callable[[Error], U]) -> T_co | U:
        return self.match(lambda value: value, default_fn)

    def __bool__(self) -> bool:
        return self.is_ok()


@dataclass(frozen=True)
class Ok(Result[T], Generic[T]):
    """Successful outcome."""

    value: T

    def match(self, on_ok: Callable[[T], U], on_err: Callable[[Error], U]) -> U:
        return on_ok(self.value)

    def map(self, f: Callable[[T], U]) -> Result[U]:
        return Ok(f(self.value))

    def map_err(self, f: Callable[[Error], Error]) -> Result[T]:
        return self

    def and_then(self, f: Callable[[T], Result[U]]) -> Result[U]:
        chained = f(self.value)
        if not isinstance(chained, Result):
            raise TypeError("and_then must return a Result instance")
        return chained

    def recover(self, f: Callable[[Error], T]) -> Result[T]:
        return self

    def cast(self) -> Result[Any]:
        raise ResultCastError("Called cast on Ok value; only Err can be cast")

    def unwrap(self) -> T:
        return self.value

    def unwrap_err(self) -> Error:
        raise RuntimeError("Called unwrap_err on Ok value")

    def expect(self, message: str) -> T:
        return self.value

    def __or__(self, other: Result[U]) -> Result[T]:
        # Left-biased like effect alternation.
        return self


@dataclass(frozen=True)
class Err(Result[NoReturn]):
    """Failed outcome; strings and exceptions are normalized into an :class:`Error`."""

    error: Error

    def __post_init__(self) -> None:
        if not isinstance(self.error, Error):
            object.__setattr__(self, "error", Error.of(self.error))

    def match(self, on_ok: Callable[[Any], U], on_err: Callable[[Error], U]) -> U:
        return on_err(self.error)

    def map(self, f: Callable[[Any], U]) -> Result[U]:
        return self

    def map_err(self, f: Callable[[Error], Error]) -> Result[NoReturn]:
        mapped = f(self.error)
        if not isinstance(mapped, Error):
            raise TypeError("map_err must return an Error instance")
        return Err(mapped)

    def and_then(self, f: Callable[[Any], Result[U]]) -> Result[U]:
        return self

    def recover(self, f: Callable[[Error], T]) -> Result[T]:
        return Ok(f(self.error))

    def cast(self) -> Result[Any]:
        return self

    def unwrap(self) -> NoReturn:
        raise self.error.to_exception()

    def unwrap_err(self) -> Error:
        return self.error

    def expect(self, message: str) -> NoReturn:
        """Raise ``RuntimeError("<message>: <error>")`` chained to the failure."""

        if not message:
            raise self.error.to_exception()
        raise RuntimeError(f"{message}: {self.error}") from self.error.to_exception()

    def __or__(self, other: Result[U]) -> Result[U]:
        return other


__all__ = [
    "Err",
    "Ok",
    "Result",
]
