"""Reader-style access to the environment an effect is run with."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, TypeVar

from effio.eff import Eff, EffBase
from effio.errors import Error, ErrorCode, MissingEnvKeyError
from effio.result import Err, Ok, Result

Env = TypeVar("Env")
A = TypeVar("A")


def ask() -> Eff[Env, Env]:
    """Effect yielding the whole environment."""

    return Eff.effect(lambda env: env)


def asks(f: Callable[[Env], A]) -> Eff[Env, A]:
    """Effect yielding a projection of the environment."""

    return Eff.effect(f)


def ask_key(key: Any) -> Eff[Any, Any]:
    """Look up ``key`` in a mapping environment (or an attribute otherwise).

    A missing key is a failure with code ``ErrorCode.MISSING_ENV_KEY``.
    """

    def lookup(env: Any) -> Result[Any]:
        if isinstance(env, Mapping):
            if key in env:
                return Ok(env[key])
        elif isinstance(key, str) and hasattr(env, key):
            return Ok(getattr(env, key))
        exc = MissingEnvKeyError(key)
        return Err(Error(message=str(exc), code=ErrorCode.MISSING_ENV_KEY, exception=exc))

    return Eff.effect_maybe(lookup)


def local(f: Callable[[Env], Any], ma: EffBase[A]) -> Eff[Env, A]:
    """Run ``ma`` against the environment produced by ``f``."""

    if not callable(f):
        raise TypeError("local requires a callable environment transform")
    inner = Eff.lift(ma).thunk

    def run(env: Env) -> Result[A]:
        return inner.value(f(env))

    return Eff.effect_maybe(run)


def Ask() -> Eff[Any, Any]:
    return ask()


def Asks(f: Callable[[Env], A]) -> Eff[Env, A]:
    return asks(f)


def AskKey(key: Any) -> Eff[Any, Any]:
    return ask_key(key)


def Local(f: Callable[[Env], Any], ma: EffBase[A]) -> Eff[Env, A]:
    return local(f, ma)


__all__ = [
    "Ask",
    "AskKey",
    "Asks",
    "Local",
    "ask",
    "ask_key",
    "asks",
    "local",
]
