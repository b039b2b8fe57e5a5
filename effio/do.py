"""
The do decorator for the effio system.

This module provides the @do decorator that turns generator functions into
functions returning an :class:`~effio.eff.Eff`, the generator rendering of
``bind``/``select_many`` chains.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Generator
from functools import wraps
from typing import Any, ParamSpec, TypeVar

from effio.eff import Eff, EffBase
from effio.errors import Error, ErrorCode
from effio.result import Err, Ok, Result
from effio.thunk import Thunk
from effio.utils import capture_creation_context

P = ParamSpec("P")
T = TypeVar("T")

EffGenerator = Generator[Any, Any, T]


def do(func: Callable[P, EffGenerator[T]]) -> Callable[P, Eff[Any, T]]:
    """
    Decorator that converts a generator function into an effect factory.

    Each yielded ``Eff``/``PureEff`` is evaluated against the environment the
    resulting effect is run with, and its value is sent back into the
    generator. A yielded ``Result`` is unwrapped the same way. The first
    failure stops the generator and becomes the effect's failure; the
    generator's return value becomes the success value.

    Calling the decorated function runs nothing: the generator is created
    when the returned effect is first run, and the outcome is memoized like
    any other effect.

    Failures are not thrown into the generator, so a try/except around a
    yield will not see them. Use ``if_fail``/``match`` on the yielded effect
    instead:

        @do
        def load_user(user_id: int):
            config = yield ask_key("db")
            user = yield fetch(config, user_id).if_fail(None)
            return user

    Usage:
        @do
        def total(a: int):
            b = yield ask_key("b")
            c = yield PureEff.success(3)
            return a + b + c

        total(1).run_io({"b": 2})  # Ok(6)
    """

    @wraps(func)
    def factory(*args: P.args, **kwargs: P.kwargs) -> Eff[Any, T]:
        def run(env: Any) -> Result[T]:
            gen_or_value = func(*args, **kwargs)
            if not inspect.isgenerator(gen_or_value):
                return Ok(gen_or_value)

            gen = gen_or_value
            try:
                current = next(gen)
            except StopIteration as stop_exc:
                return Ok(stop_exc.value)

            while True:
                result = _evaluate(current, env)
                if isinstance(result, Err):
                    gen.close()
                    return result
                try:
                    current = gen.send(result.value)
                except StopIteration as stop_exc:
                    return Ok(stop_exc.value)

        return Eff(Thunk.lazy(run, created_at=capture_creation_context()))

    factory.original_generator = func  # type: ignore[attr-defined]
    return factory


def _evaluate(yielded: Any, env: Any) -> Result[Any]:
    if isinstance(yielded, EffBase):
        return yielded.thunk.value(env)
    if isinstance(yielded, Result):
        return yielded
    return Err(
        Error.new(
            f"@do generators must yield Eff, PureEff or Result; got {type(yielded).__name__}",
            code=ErrorCode.BAD_RESULT,
        )
    )


__all__ = ["EffGenerator", "do"]
