"""Combinators over several effects at once."""

from __future__ import annotations

import functools
import operator
from collections.abc import Callable, Iterable
from typing import Any, TypeVar

from effio.eff import Eff, EffBase, thunk_of
from effio.result import Err, Ok, Result
from effio.thunk import Thunk

T = TypeVar("T")
U = TypeVar("U")


def sequence(effects: Iterable[EffBase[T]]) -> Eff[Any, list[T]]:
    """Run effects left to right, collecting values; stop at the first failure."""

    thunks = [thunk_of(effect) for effect in effects]

    def run(env: Any) -> Result[list[T]]:
        values: list[T] = []
        for thunk in thunks:
            result = thunk.value(env)
            if isinstance(result, Err):
                return result.cast()
            values.append(result.value)
        return Ok(values)

    return Eff(Thunk.lazy(run))


def traverse(items: Iterable[T], func: Callable[[T], EffBase[U]]) -> Eff[Any, list[U]]:
    return sequence([func(item) for item in items])


def first_success(*effects: EffBase[T]) -> Eff[Any, T]:
    """Alternation over many effects: the first success wins."""

    if not effects:
        raise ValueError("first_success requires at least one effect")
    return functools.reduce(operator.or_, effects[1:], Eff.lift(effects[0]))


def zip_eff(ma: EffBase[T], mb: EffBase[U]) -> EffBase[tuple[T, U]]:
    """Function form of ``ma.zip(mb)``."""

    return ma.zip(mb)  # type: ignore[attr-defined]


__all__ = ["first_success", "sequence", "traverse", "zip_eff"]
