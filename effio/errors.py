"""
Structured error values for the effio system.

Every failed evaluation carries an :class:`Error`. Errors are plain values:
they compare by content (message, code and inner cause) and never by
identity, so tests and callers can assert on them directly.
"""

from __future__ import annotations

import traceback
from dataclasses import FrozenInstanceError, dataclass, field
from enum import IntEnum
from typing import Any

CANCELLED_TEXT = "cancelled"


class ErrorCode(IntEnum):
    """Well-known error codes attached to errors created by effio itself."""

    EXCEPTIONAL = 1
    CANCELLED = 2
    BAD_RESULT = 3
    MISSING_ENV_KEY = 4


@dataclass(unsafe_hash=True)
class Error(Exception):
    """Structured failure description: message, optional code, optional cause."""

    message: str
    code: int | None = None
    inner: Error | None = None
    exception: BaseException | None = field(default=None, compare=False, repr=False)
    tb: str = field(default="", compare=False, repr=False)
    created_at: str | None = field(default=None, compare=False, repr=False)

    @classmethod
    def new(
        cls,
        message: str,
        code: int | None = None,
        inner: Error | None = None,
    ) -> Error:
        """Create an error from a message."""

        if not isinstance(message, str):
            raise TypeError("Error message must be a string")
        return cls(message=message, code=code, inner=inner)

    @classmethod
    def from_exception(
        cls, exc: BaseException, created_at: str | None = None
    ) -> Error:
        """Create an error from an intercepted exception.

        The exception's ``__cause__`` chain becomes the ``inner`` chain.
        """

        if isinstance(exc, Error):
            return exc
        inner = None
        if exc.__cause__ is not None:
            inner = cls.from_exception(exc.__cause__)
        tb_str = "".join(traceback.format_exception(exc.__class__, exc, exc.__traceback__))
        return cls(
            message=str(exc) or exc.__class__.__name__,
            code=ErrorCode.EXCEPTIONAL,
            inner=inner,
            exception=exc,
            tb=tb_str,
            created_at=created_at,
        )

    @classmethod
    def of(cls, value: Any) -> Error:
        """Normalize a string, an exception or an error into an :class:`Error`."""

        if isinstance(value, Error):
            return value
        if isinstance(value, BaseException):
            return cls.from_exception(value)
        if isinstance(value, str):
            return cls.new(value)
        raise TypeError(
            f"Cannot build an Error from {type(value).__name__}; "
            "expected Error, Exception or str"
        )

    @property
    def is_exceptional(self) -> bool:
        return self.exception is not None

    @property
    def is_cancelled(self) -> bool:
        return self.code == ErrorCode.CANCELLED

    def to_exception(self) -> BaseException:
        """Return the intercepted exception, or this error when there is none."""

        if self.exception is not None:
            return self.exception
        return self

    def describe(self) -> str:
        lines: list[str] = []
        kind = self.exception.__class__.__name__ if self.exception else "Error"
        code = f" (code {int(self.code)})" if self.code is not None else ""
        lines.append(f"[{kind}]{code} {self.message}")
        if self.tb:
            lines.append("----- Exception Traceback -----")
            lines.append(self.tb.rstrip())
        if self.created_at:
            lines.append("----- Effect Created At -----")
            lines.append(self.created_at.rstrip())
        if self.inner is not None:
            lines.append("----- Caused By -----")
            lines.append(self.inner.describe())
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.message

    # Fields are write-once. Exception machinery (add_note, __traceback__,
    # __cause__) still needs to set its own attributes after construction.
    def __setattr__(self, name: str, value: Any) -> None:
        if name in self.__dataclass_fields__ and name in self.__dict__:
            raise FrozenInstanceError(f"cannot assign to field {name!r}")
        super().__setattr__(name, value)

    def __delattr__(self, name: str) -> None:
        if name in self.__dataclass_fields__:
            raise FrozenInstanceError(f"cannot delete field {name!r}")
        super().__delattr__(name)


def cancelled_error() -> Error:
    return Error.new(CANCELLED_TEXT, code=ErrorCode.CANCELLED)


class ResultCastError(RuntimeError):
    """Raised when ``Result.cast`` is called on a successful result."""


class MissingEnvKeyError(KeyError):
    """Raised when ``ask_key`` cannot find the requested key in the environment."""

    def __init__(self, key: Any) -> None:
        self.key = key
        super().__init__(
            f"Environment key not found: {key!r}\n"
            f"Hint: Provide this key in the environment passed to run_io(), "
            f"or wrap with `local(lambda env: env.with_values({key}=...), ...)`"
        )

    def __str__(self) -> str:
        return self.args[0]


__all__ = [
    "CANCELLED_TEXT",
    "Error",
    "ErrorCode",
    "MissingEnvKeyError",
    "ResultCastError",
    "cancelled_error",
]
