"""Constructor functions, in capitalized and lowercase spellings."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

from effio.eff import Eff, PureEff
from effio.errors import Error
from effio.result import Result

Env = TypeVar("Env")
A = TypeVar("A")


def effect(f: Callable[[Env], A]) -> Eff[Env, A]:
    return Eff.effect(f)


def effect_maybe(f: Callable[[Env], Result[A]]) -> Eff[Env, A]:
    return Eff.effect_maybe(f)


def success(value: A) -> Eff[Any, A]:
    return Eff.success(value)


def fail(error: Error | Exception | str) -> Eff[Any, Any]:
    return Eff.fail(error)


def success_eff(value: A) -> PureEff[A]:
    return PureEff.success(value)


def fail_eff(error: Error | Exception | str) -> PureEff[Any]:
    return PureEff.fail(error)


def pure_effect(f: Callable[[], A]) -> PureEff[A]:
    return PureEff.effect(f)


# Capitalized aliases
Effect = effect
EffectMaybe = effect_maybe
Success = success
Fail = fail
SuccessEff = success_eff
FailEff = fail_eff


__all__ = [
    "Effect",
    "EffectMaybe",
    "Fail",
    "FailEff",
    "Success",
    "SuccessEff",
    "effect",
    "effect_maybe",
    "fail",
    "fail_eff",
    "pure_effect",
    "success",
    "success_eff",
]
