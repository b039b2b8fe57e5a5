"""
Memoizing evaluation cell underlying every effect.

A :class:`Thunk` runs its function at most once and caches the resulting
:class:`~effio.result.Result`. Later evaluations return the cached result
whatever environment they are given. :meth:`Thunk.clone` produces a fresh,
unevaluated thunk around the same function; it never touches the cache of
the thunk it was cloned from.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from enum import Enum
from typing import Any, Generic, TypeVar

from effio.errors import Error, ErrorCode
from effio.result import Err, Ok, Result
from effio.utils import CreationContext

Env = TypeVar("Env")
A = TypeVar("A")
B = TypeVar("B")

logger = logging.getLogger(__name__)


class ThunkState(str, Enum):
    """Lifecycle of a thunk."""

    LAZY = "lazy"
    EVALUATED = "evaluated"
    SUCCESS = "success"
    FAIL = "fail"


class Thunk(Generic[Env, A]):
    """Lazily evaluated, cached computation ``Env -> Result[A]``.

    The LAZY -> EVALUATED transition is guarded by a re-entrant lock, so the
    function runs at most once per thunk even when several threads call
    :meth:`value` on the same instance.
    """

    __slots__ = ("_fun", "_state", "_result", "_lock", "created_at")

    def __init__(
        self,
        fun: Callable[[Env], Result[A]] | None,
        state: ThunkState,
        result: Result[A] | None = None,
        created_at: CreationContext | None = None,
    ) -> None:
        self._fun = fun
        self._state = state
        self._result = result
        self._lock = threading.RLock()
        self.created_at = created_at

    @classmethod
    def lazy(
        cls,
        f: Callable[[Env], Result[A]],
        created_at: CreationContext | None = None,
    ) -> Thunk[Env, A]:
        if not callable(f):
            raise TypeError("Thunk.lazy requires a callable")
        return cls(f, ThunkState.LAZY, created_at=created_at)

    @classmethod
    def success(cls, value: A) -> Thunk[Any, A]:
        return cls(None, ThunkState.SUCCESS, Ok(value))

    @classmethod
    def fail(cls, error: Error) -> Thunk[Any, A]:
        return cls(None, ThunkState.FAIL, Err(Error.of(error)))

    @property
    def state(self) -> ThunkState:
        return self._state

    @property
    def is_evaluated(self) -> bool:
        return self._state is not ThunkState.LAZY

    def value(self, env: Env) -> Result[A]:
        """Evaluate (once) and return the cached result."""

        if self._state is not ThunkState.LAZY:
            return self._result  # type: ignore[return-value]
        with self._lock:
            if self._state is ThunkState.LAZY:
                self._result = self._run(env)
                self._state = ThunkState.EVALUATED
        return self._result  # type: ignore[return-value]

    def _run(self, env: Env) -> Result[A]:
        fun = self._fun
        assert fun is not None
        try:
            result = fun(env)
        except MemoryError:
            raise
        except Exception as exc:
            logger.debug(
                "Intercepted %s while evaluating thunk", type(exc).__name__, exc_info=True
            )
            created_at = self.created_at.format() if self.created_at else None
            return Err(Error.from_exception(exc, created_at=created_at))
        if not isinstance(result, Result):
            return Err(
                Error.new(
                    f"Effect function must return a Result, got {type(result).__name__}",
                    code=ErrorCode.BAD_RESULT,
                )
            )
        return result

    def clone(self) -> Thunk[Env, A]:
        """Return an independent, unevaluated copy around the original function."""

        if self._fun is None:
            return Thunk(None, self._state, self._result)
        return Thunk(self._fun, ThunkState.LAZY, created_at=self.created_at)

    def map(self, f: Callable[[A], B]) -> Thunk[Env, B]:
        parent = self

        def mapped(env: Env) -> Result[B]:
            return parent.value(env).map(f)

        return Thunk.lazy(mapped, created_at=self.created_at)

    def bimap(
        self, succ: Callable[[A], B], fail: Callable[[Error], Error]
    ) -> Thunk[Env, B]:
        parent = self

        def bimapped(env: Env) -> Result[B]:
            result = parent.value(env)
            if isinstance(result, Ok):
                return Ok(succ(result.value))
            return Err(Error.of(fail(result.error)))

        return Thunk.lazy(bimapped, created_at=self.created_at)

    def flatten(self: Thunk[Env, Thunk[Env, B]]) -> Thunk[Env, B]:
        """Collapse a thunk of thunks; both layers see the same environment."""

        parent = self

        def flattened(env: Env) -> Result[B]:
            outer = parent.value(env)
            if isinstance(outer, Err):
                return outer
            inner = outer.value
            if not isinstance(inner, Thunk):
                raise TypeError(f"flatten expected a Thunk, got {type(inner).__name__}")
            return inner.value(env)

        return Thunk.lazy(flattened, created_at=self.created_at)

    def __repr__(self) -> str:
        if self._state is ThunkState.LAZY:
            return "Thunk(state=lazy)"
        return f"Thunk(state={self._state.value}, result={self._result!r})"


__all__ = ["Thunk", "ThunkState"]
