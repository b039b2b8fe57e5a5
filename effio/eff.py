"""
Synchronous effect types for the effio system.

:class:`Eff` is a deferred computation from an environment to a
:class:`~effio.result.Result`. It owns exactly one memoizing
:class:`~effio.thunk.Thunk`; every combinator returns a *new* effect whose
thunk closes over the parent thunk as it was at composition time, so nothing
runs until :meth:`Eff.run_io` is called and a later :meth:`Eff.clear` on the
parent never disturbs effects already derived from it.

:class:`PureEff` is the environment-free variant. It is never converted
implicitly; use :meth:`PureEff.widen` or :meth:`Eff.lift`, or pass it to one
of the combinators that explicitly accept either type (``|``, ``zip``,
``bind``, ``if_fail``, ``match``, ``iter``, ``do``).

Evaluation is synchronous. Memoization is at-most-once per thunk even under
concurrent ``run_io`` calls on the same instance.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any, Generic, TypeVar

from effio._recover import Branch, BranchKind, recover
from effio.aff import Aff, AsyncThunk, as_aff
from effio.errors import Error, ErrorCode, cancelled_error
from effio.result import Err, Ok, Result
from effio.thunk import Thunk
from effio.utils import capture_creation_context

Env = TypeVar("Env")
A = TypeVar("A")
B = TypeVar("B")
C = TypeVar("C")

logger = logging.getLogger(__name__)


def _identity(value: Any) -> Any:
    return value


def _require_callable(f: Any, role: str) -> None:
    if not callable(f):
        raise TypeError(f"{role} must be callable")


class EffBase(ABC, Generic[A]):
    """Behaviour shared by :class:`Eff` and :class:`PureEff`."""

    __slots__ = ("_thunk",)

    def __init__(self, thunk: Thunk[Any, A]) -> None:
        if thunk is None:
            raise TypeError(f"{type(self).__name__} requires a thunk")
        if not isinstance(thunk, Thunk):
            raise TypeError(
                f"{type(self).__name__} requires a Thunk, got {type(thunk).__name__}"
            )
        self._thunk = thunk

    @property
    def thunk(self) -> Thunk[Any, A]:
        return self._thunk

    @property
    def is_evaluated(self) -> bool:
        return self._thunk.is_evaluated

    def clear(self) -> None:
        """Forget the memoized result; the next run re-invokes the function.

        Only this object's thunk reference is replaced. Copies and effects
        derived earlier keep the old thunk.
        """

        self._thunk = self._thunk.clone()
        logger.debug("Cleared memoized result of %r", self)

    def __copy__(self):
        # Copies share the thunk cell until one of them is cleared.
        return type(self)(self._thunk)

    def _derive(self, thunk: Thunk[Any, Any]):
        return type(self)(thunk)

    def map(self, f: Callable[[A], B]):
        """Transform the success value; failures pass through."""

        _require_callable(f, "mapper")
        return self._derive(self._thunk.map(f))

    def map_fail(self, f: Callable[[Error], Error]):
        """Transform the error; successes pass through."""

        _require_callable(f, "error mapper")
        return self._derive(self._thunk.bimap(_identity, f))

    def bimap(self, succ: Callable[[A], B], fail: Callable[[Error], Error]):
        _require_callable(succ, "success mapper")
        _require_callable(fail, "error mapper")
        return self._derive(self._thunk.bimap(succ, fail))

    def select(self, f: Callable[[A], B]):
        return self.map(f)

    def filter(self, predicate: Callable[[A], bool]):
        """Turn successes rejected by ``predicate`` into a cancelled failure."""

        _require_callable(predicate, "predicate")

        def check(value: A) -> PureEff[A]:
            if predicate(value):
                return PureEff.success(value)
            return PureEff.fail(cancelled_error())

        return self.bind(check)

    def where(self, predicate: Callable[[A], bool]):
        return self.filter(predicate)

    @abstractmethod
    def bind(self, f: Callable[[A], Any]):
        """Sequence a dependent effect of the same kind."""

    def to_async(self) -> Aff[Any, A]:
        """Wrap this effect's evaluation in an :class:`~effio.aff.Aff`."""

        thunk = self._thunk

        async def run(env: Any) -> Result[A]:
            return thunk.value(env)

        return Aff.effect_maybe(run)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._thunk!r})"


class Eff(EffBase[A], Generic[Env, A]):
    """Memoizing synchronous effect from an environment to a Result."""

    __slots__ = ()

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def effect(cls, f: Callable[[Env], A]) -> Eff[Env, A]:
        """Lift a total environment function; the effect succeeds with its value."""

        _require_callable(f, "effect function")

        def run(env: Env) -> Result[A]:
            return Ok(f(env))

        return cls(Thunk.lazy(run, created_at=capture_creation_context()))

    @classmethod
    def effect_maybe(cls, f: Callable[[Env], Result[A]]) -> Eff[Env, A]:
        """Lift an environment function that returns a Result itself."""

        _require_callable(f, "effect function")
        return cls(Thunk.lazy(f, created_at=capture_creation_context()))

    @classmethod
    def success(cls, value: A) -> Eff[Any, A]:
        return cls(Thunk.success(value))

    @classmethod
    def fail(cls, error: Error | Exception | str) -> Eff[Any, A]:
        return cls(Thunk.fail(Error.of(error)))

    @classmethod
    def lift(cls, value: EffBase[A]) -> Eff[Any, A]:
        """Explicitly adapt a :class:`PureEff` (or pass an :class:`Eff` through)."""

        if isinstance(value, Eff):
            return value
        if isinstance(value, PureEff):
            return value.widen()
        raise TypeError(f"Cannot lift {type(value).__name__} into Eff")

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def run_io(self, env: Env) -> Result[A]:
        """Evaluate against ``env``; later calls return the memoized Result."""

        return self._thunk.value(env)

    def run_unit_io(self, env: Env) -> None:
        self._thunk.value(env)

    # ------------------------------------------------------------------
    # Alternation
    # ------------------------------------------------------------------

    def or_else(self, other: EffBase[A]) -> Eff[Env, A]:
        """First success wins: run ``other`` only when this effect fails."""

        left = self._thunk
        right = thunk_of(other)

        def alternative(env: Env) -> Result[A]:
            result = left.value(env)
            if isinstance(result, Ok):
                return result
            return right.value(env)

        return Eff(Thunk.lazy(alternative, created_at=left.created_at))

    def __or__(self, other: Any) -> Eff[Env, A]:
        if not isinstance(other, EffBase):
            return NotImplemented
        return self.or_else(other)

    def __ror__(self, other: Any) -> Eff[Env, A]:
        if not isinstance(other, PureEff):
            return NotImplemented
        return other.widen().or_else(self)

    # ------------------------------------------------------------------
    # Elimination / recovery
    # ------------------------------------------------------------------

    def match(self, on_succ: Any, on_fail: Any) -> Eff[Env, B] | Aff[Env, B]:
        """Run exactly one branch, chosen by the Result.

        Each branch may be a function (of the value / of the error), a
        constant, an ``Eff``/``PureEff`` (run with the same environment), or
        an ``Aff``. Any ``Aff`` branch makes the whole match an ``Aff``.
        To use a callable as a constant, wrap it: ``lambda _: handler``.
        """

        return _wrap(recover(self._thunk, _branch(on_succ), _branch(on_fail)))

    def if_fail(self, alternative: Any) -> Eff[Env, A] | Aff[Env, A]:
        """On failure substitute a value, a function of the error, or an effect."""

        return _wrap(recover(self._thunk, None, _branch(alternative)))

    # ------------------------------------------------------------------
    # Side effects
    # ------------------------------------------------------------------

    def iter(self, f: Callable[[A], Any]) -> Eff[Env, None]:
        """Run ``f`` on success for its side effect; always yields ``Ok(None)``.

        When ``f`` returns an ``Eff``/``PureEff`` it is run with the same
        environment and its outcome is ignored. An ``Aff`` cannot run here:
        returning one is a ``BAD_RESULT`` failure pointing at
        :meth:`iter_async`.
        """

        _require_callable(f, "action")
        source = self._thunk

        def run(env: Env) -> Result[None]:
            result = source.value(env)
            if isinstance(result, Ok):
                nested = f(result.value)
                if isinstance(nested, Aff):
                    return _async_action_error("iter")
                if isinstance(nested, EffBase):
                    nested.thunk.value(env)
            return Ok(None)

        return Eff(Thunk.lazy(run, created_at=source.created_at))

    def iter_async(self, f: Callable[[A], Any]) -> Aff[Env, None]:
        """Like :meth:`iter` for an action returning an ``Aff`` (or any effect)."""

        _require_callable(f, "action")
        source = self._thunk

        async def run(env: Env) -> Result[None]:
            result = source.value(env)
            if isinstance(result, Ok):
                nested = f(result.value)
                if nested is not None:
                    await as_aff(nested).run_io(env)
            return Ok(None)

        return Aff.effect_maybe(run)

    def do(self, f: Callable[[A], Any]) -> Eff[Env, A]:
        """Run ``f`` on success; a failing nested effect fails the composite.

        Otherwise the original Result, success or failure, passes through.
        An action returning an ``Aff`` needs :meth:`do_async`.
        """

        _require_callable(f, "action")
        source = self._thunk

        def run(env: Env) -> Result[A]:
            result = source.value(env)
            if isinstance(result, Ok):
                nested = f(result.value)
                if isinstance(nested, Aff):
                    return _async_action_error("do")
                if isinstance(nested, EffBase):
                    nested_result = nested.thunk.value(env)
                    if isinstance(nested_result, Err):
                        return nested_result.cast()
            return result

        return Eff(Thunk.lazy(run, created_at=source.created_at))

    def do_async(self, f: Callable[[A], Any]) -> Aff[Env, A]:
        _require_callable(f, "action")
        source = self._thunk

        async def run(env: Env) -> Result[A]:
            result = source.value(env)
            if isinstance(result, Ok):
                nested = f(result.value)
                if nested is not None:
                    nested_result = await as_aff(nested).run_io(env)
                    if isinstance(nested_result, Err):
                        return nested_result.cast()
            return result

        return Aff.effect_maybe(run)

    # ------------------------------------------------------------------
    # Monadic composition
    # ------------------------------------------------------------------

    def bind(self, f: Callable[[A], EffBase[B]]) -> Eff[Env, B]:
        """Sequence a dependent effect; a source failure skips ``f``."""

        _require_callable(f, "binder")
        return Eff(self._thunk.map(lambda value: thunk_of(f(value))).flatten())

    def flat_map(self, f: Callable[[A], EffBase[B]]) -> Eff[Env, B]:
        return self.bind(f)

    def and_then(self, f: Callable[[A], EffBase[B]]) -> Eff[Env, B]:
        """Alias for bind."""

        return self.bind(f)

    def bind_async(self, f: Callable[[A], Any]) -> Aff[Env, B]:
        """Sequence a dependent ``Aff``; the source runs synchronously first."""

        _require_callable(f, "binder")
        source = self._thunk

        async def run(env: Env) -> Result[B]:
            result = source.value(env)
            if isinstance(result, Err):
                return result
            return await as_aff(f(result.value)).run_io(env)

        return Aff.effect_maybe(run)

    def flatten(self: Eff[Env, EffBase[B]]) -> Eff[Env, B]:
        """Collapse an effect of effects using the same environment."""

        return Eff(self._thunk.map(thunk_of).flatten())

    def select_many(
        self,
        bind: Callable[[A], EffBase[B]],
        project: Callable[[A, B], C] | None = None,
    ) -> Eff[Env, B] | Eff[Env, C]:
        """Bind, optionally fused with a projection of both values."""

        if project is None:
            return self.bind(bind)
        _require_callable(bind, "binder")
        _require_callable(project, "projection")
        return self.bind(
            lambda a: Eff.lift(bind(a)).map(lambda b: project(a, b))
        )

    def flatten_async(self) -> Aff[Env, B]:
        """Collapse an effect holding an ``Aff`` (or any effect) into an ``Aff``."""

        return self.bind_async(_identity)

    def select_many_async(
        self,
        bind: Callable[[A], Any],
        project: Callable[[A, B], C] | None = None,
    ) -> Aff[Env, B] | Aff[Env, C]:
        """Asynchronous :meth:`select_many` for binders returning an ``Aff``."""

        if project is None:
            return self.bind_async(bind)
        _require_callable(bind, "binder")
        _require_callable(project, "projection")
        return self.bind_async(
            lambda a: as_aff(bind(a)).map(lambda b: project(a, b))
        )

    def zip(self, other: EffBase[B]) -> Eff[Env, tuple[A, B]]:
        """Run this effect, then ``other``; pair the values or return the first failure."""

        return Eff(_zip_thunks(self._thunk, thunk_of(other)))


class PureEff(EffBase[A]):
    """Memoizing synchronous effect that needs no environment."""

    __slots__ = ()

    @classmethod
    def effect(cls, f: Callable[[], A]) -> PureEff[A]:
        _require_callable(f, "effect function")

        def run(_env: Any) -> Result[A]:
            return Ok(f())

        return cls(Thunk.lazy(run, created_at=capture_creation_context()))

    @classmethod
    def effect_maybe(cls, f: Callable[[], Result[A]]) -> PureEff[A]:
        _require_callable(f, "effect function")

        def run(_env: Any) -> Result[A]:
            return f()

        return cls(Thunk.lazy(run, created_at=capture_creation_context()))

    @classmethod
    def success(cls, value: A) -> PureEff[A]:
        return cls(Thunk.success(value))

    @classmethod
    def fail(cls, error: Error | Exception | str) -> PureEff[A]:
        return cls(Thunk.fail(Error.of(error)))

    def run_io(self) -> Result[A]:
        return self._thunk.value(None)

    def run_unit_io(self) -> None:
        self._thunk.value(None)

    def widen(self) -> Eff[Any, A]:
        """Use this effect where an environment-taking ``Eff`` is expected.

        The widened effect shares this effect's memoized cell.
        """

        return Eff(self._thunk)

    def bind(self, f: Callable[[A], PureEff[B]]) -> PureEff[B]:
        _require_callable(f, "binder")
        return PureEff(self._thunk.map(lambda value: _pure_thunk_of(f(value))).flatten())

    def flat_map(self, f: Callable[[A], PureEff[B]]) -> PureEff[B]:
        return self.bind(f)

    def or_else(self, other: EffBase[A]) -> PureEff[A] | Eff[Any, A]:
        if isinstance(other, Eff):
            return self.widen().or_else(other)
        left = self._thunk
        right = _pure_thunk_of(other)

        def alternative(env: Any) -> Result[A]:
            result = left.value(env)
            if isinstance(result, Ok):
                return result
            return right.value(env)

        return PureEff(Thunk.lazy(alternative, created_at=left.created_at))

    def __or__(self, other: Any) -> PureEff[A]:
        if not isinstance(other, PureEff):
            return NotImplemented
        return self.or_else(other)

    def zip(self, other: EffBase[B]) -> PureEff[tuple[A, B]] | Eff[Any, tuple[A, B]]:
        thunk = _zip_thunks(self._thunk, thunk_of(other))
        if isinstance(other, PureEff):
            return PureEff(thunk)
        return Eff(thunk)


def thunk_of(effect: Any) -> Thunk[Any, Any]:
    """Return the thunk of an ``Eff`` or ``PureEff``.

    A ``PureEff`` thunk ignores its environment argument, so it can be
    evaluated wherever an environment thunk is expected.
    """

    if isinstance(effect, EffBase):
        return effect.thunk
    if isinstance(effect, Aff):
        raise TypeError("Expected Eff or PureEff, got Aff; use the *_async combinator")
    raise TypeError(f"Expected Eff or PureEff, got {type(effect).__name__}")


def _pure_thunk_of(effect: Any) -> Thunk[Any, Any]:
    if isinstance(effect, PureEff):
        return effect.thunk
    raise TypeError(f"Expected PureEff, got {type(effect).__name__}")


def _zip_thunks(
    left: Thunk[Any, A], right: Thunk[Any, B]
) -> Thunk[Any, tuple[A, B]]:
    def zipped(env: Any) -> Result[tuple[A, B]]:
        first = left.value(env)
        if isinstance(first, Err):
            return first.cast()
        second = right.value(env)
        if isinstance(second, Err):
            return second.cast()
        return Ok((first.value, second.value))

    return Thunk.lazy(zipped, created_at=left.created_at)


def _branch(target: Any) -> Branch:
    if isinstance(target, Aff):
        return Branch(BranchKind.ASYNC, target)
    if isinstance(target, EffBase):
        return Branch(BranchKind.SYNC, target.thunk.value)
    if callable(target):
        return Branch(BranchKind.FUNCTION, target)
    return Branch(BranchKind.VALUE, target)


def _async_action_error(combinator: str) -> Err:
    return Err(
        Error.new(
            f"{combinator} action returned an Aff, which cannot run synchronously; "
            f"use {combinator}_async",
            code=ErrorCode.BAD_RESULT,
        )
    )


def _wrap(thunk: Thunk[Any, Any] | AsyncThunk[Any, Any]) -> Eff[Any, Any] | Aff[Any, Any]:
    if isinstance(thunk, AsyncThunk):
        return Aff(thunk)
    return Eff(thunk)


__all__ = ["Eff", "EffBase", "PureEff", "thunk_of"]
