"""
Asynchronous sibling of :class:`~effio.eff.Eff`.

``Aff`` wraps an ``async`` function from an environment to a
:class:`~effio.result.Result`. Only the surface the synchronous core hands
off to is provided here: construction, memoized ``run_io``, ``map``,
``bind`` and ``clear``. Scheduling is left entirely to asyncio.

Cancellation is an environment capability: when the environment satisfies
:class:`~effio.env.HasCancel` and its token has fired, evaluation returns
``Err(cancelled_error())`` without running the function. Cancelled
evaluations are not memoized.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any, Generic, TypeVar

from effio.env import is_cancelled
from effio.errors import Error, ErrorCode, cancelled_error
from effio.result import Err, Ok, Result
from effio.thunk import ThunkState

Env = TypeVar("Env")
A = TypeVar("A")
B = TypeVar("B")

logger = logging.getLogger(__name__)


class AsyncThunk(Generic[Env, A]):
    """Memoizing cell for an ``async`` computation.

    At most one in-flight ``value()`` per instance is assumed.
    """

    __slots__ = ("_fun", "_state", "_result")

    def __init__(
        self,
        fun: Callable[[Env], Awaitable[Result[A]]] | None,
        state: ThunkState,
        result: Result[A] | None = None,
    ) -> None:
        self._fun = fun
        self._state = state
        self._result = result

    @classmethod
    def lazy(cls, f: Callable[[Env], Awaitable[Result[A]]]) -> AsyncThunk[Env, A]:
        if not callable(f):
            raise TypeError("AsyncThunk.lazy requires a callable")
        return cls(f, ThunkState.LAZY)

    @property
    def state(self) -> ThunkState:
        return self._state

    async def value(self, env: Env) -> Result[A]:
        if self._state is not ThunkState.LAZY:
            return self._result  # type: ignore[return-value]
        if is_cancelled(env):
            return Err(cancelled_error())
        fun = self._fun
        assert fun is not None
        try:
            result = await fun(env)
        except MemoryError:
            raise
        except Exception as exc:
            logger.debug(
                "Intercepted %s while evaluating async thunk",
                type(exc).__name__,
                exc_info=True,
            )
            result = Err(Error.from_exception(exc))
        if not isinstance(result, Result):
            result = Err(
                Error.new(
                    f"Async effect function must return a Result, got {type(result).__name__}",
                    code=ErrorCode.BAD_RESULT,
                )
            )
        self._result = result
        self._state = ThunkState.EVALUATED
        return result

    def clone(self) -> AsyncThunk[Env, A]:
        if self._fun is None:
            return AsyncThunk(None, self._state, self._result)
        return AsyncThunk(self._fun, ThunkState.LAZY)


class Aff(Generic[Env, A]):
    """Asynchronous, memoizing effect from an environment to a Result."""

    __slots__ = ("_thunk",)

    def __init__(self, thunk: AsyncThunk[Env, A]) -> None:
        if thunk is None:
            raise TypeError("Aff requires a thunk")
        self._thunk = thunk

    @classmethod
    def effect_maybe(cls, f: Callable[[Env], Awaitable[Result[A]]]) -> Aff[Env, A]:
        return cls(AsyncThunk.lazy(f))

    @classmethod
    def effect(cls, f: Callable[[Env], Awaitable[A]]) -> Aff[Env, A]:
        if not callable(f):
            raise TypeError("Aff.effect requires a callable")

        async def run(env: Env) -> Result[A]:
            return Ok(await f(env))

        return cls(AsyncThunk.lazy(run))

    @classmethod
    def success(cls, value: A) -> Aff[Any, A]:
        return cls(AsyncThunk(None, ThunkState.SUCCESS, Ok(value)))

    @classmethod
    def fail(cls, error: Error | Exception | str) -> Aff[Any, A]:
        return cls(AsyncThunk(None, ThunkState.FAIL, Err(Error.of(error))))

    @property
    def thunk(self) -> AsyncThunk[Env, A]:
        return self._thunk

    async def run_io(self, env: Env) -> Result[A]:
        return await self._thunk.value(env)

    async def run_unit_io(self, env: Env) -> None:
        await self._thunk.value(env)

    def clear(self) -> None:
        self._thunk = self._thunk.clone()

    def to_async(self) -> Aff[Env, A]:
        return self

    def map(self, f: Callable[[A], B]) -> Aff[Env, B]:
        thunk = self._thunk

        async def mapped(env: Env) -> Result[B]:
            return (await thunk.value(env)).map(f)

        return Aff.effect_maybe(mapped)

    def map_fail(self, f: Callable[[Error], Error]) -> Aff[Env, A]:
        thunk = self._thunk

        async def mapped(env: Env) -> Result[A]:
            result = await thunk.value(env)
            if isinstance(result, Err):
                return Err(Error.of(f(result.error)))
            return result

        return Aff.effect_maybe(mapped)

    def bind(self, f: Callable[[A], Any]) -> Aff[Env, B]:
        """Sequence a continuation returning an ``Aff``, ``Eff`` or ``PureEff``."""

        if not callable(f):
            raise TypeError("binder must be callable returning an effect")
        thunk = self._thunk

        async def bound(env: Env) -> Result[B]:
            result = await thunk.value(env)
            if isinstance(result, Err):
                return result
            return await as_aff(f(result.value)).run_io(env)

        return Aff.effect_maybe(bound)

    flat_map = bind

    def __repr__(self) -> str:
        return f"Aff(state={self._thunk.state.value})"


def as_aff(value: Any) -> Aff[Any, Any]:
    """Convert an ``Aff``, ``Eff`` or ``PureEff`` into an ``Aff``."""

    if isinstance(value, Aff):
        return value
    to_async = getattr(value, "to_async", None)
    if callable(to_async):
        return to_async()
    raise TypeError(f"Expected an effect, got {type(value).__name__}")


__all__ = ["Aff", "AsyncThunk", "as_aff"]
