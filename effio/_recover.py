"""
Single recovery/elimination engine behind ``Eff.match`` and ``Eff.if_fail``.

Each branch is classified once, at composition time, into a
:class:`Branch`. The derived computation is synchronous unless one of the
branches is an ``Aff``; in that case the source is still run to completion
synchronously and only then is the asynchronous branch awaited.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from effio.aff import AsyncThunk
from effio.result import Err, Ok, Result
from effio.thunk import Thunk


class BranchKind(str, Enum):
    VALUE = "value"
    FUNCTION = "function"
    SYNC = "sync"
    ASYNC = "async"


@dataclass(frozen=True)
class Branch:
    """One arm of a match: a constant, a function, or an effect runner."""

    kind: BranchKind
    target: Any

    @property
    def is_suspending(self) -> bool:
        return self.kind is BranchKind.ASYNC

    def run(self, arg: Any, env: Any) -> Result[Any]:
        if self.kind is BranchKind.VALUE:
            return Ok(self.target)
        if self.kind is BranchKind.FUNCTION:
            return Ok(self.target(arg))
        if self.kind is BranchKind.SYNC:
            return self.target(env)
        raise TypeError("asynchronous branch cannot run synchronously")

    async def run_async(self, arg: Any, env: Any) -> Result[Any]:
        if self.kind is BranchKind.ASYNC:
            return await self.target.run_io(env)
        return self.run(arg, env)


def recover(
    source: Thunk[Any, Any],
    on_succ: Branch | None,
    on_fail: Branch,
) -> Thunk[Any, Any] | AsyncThunk[Any, Any]:
    """Build the derived thunk for a match.

    ``on_succ`` of ``None`` passes a success through unchanged.
    """

    branches = [branch for branch in (on_succ, on_fail) if branch is not None]
    if any(branch.is_suspending for branch in branches):
        return AsyncThunk.lazy(_async_recovery(source, on_succ, on_fail))
    return Thunk.lazy(_sync_recovery(source, on_succ, on_fail), created_at=source.created_at)


def _sync_recovery(
    source: Thunk[Any, Any], on_succ: Branch | None, on_fail: Branch
) -> Callable[[Any], Result[Any]]:
    def run(env: Any) -> Result[Any]:
        result = source.value(env)
        if isinstance(result, Err):
            return on_fail.run(result.error, env)
        if on_succ is None:
            return result
        return on_succ.run(result.value, env)

    return run


def _async_recovery(
    source: Thunk[Any, Any], on_succ: Branch | None, on_fail: Branch
) -> Callable[[Any], Any]:
    async def run(env: Any) -> Result[Any]:
        result = source.value(env)
        if isinstance(result, Err):
            return await on_fail.run_async(result.error, env)
        if on_succ is None:
            return result
        return await on_succ.run_async(result.value, env)

    return run


__all__ = ["Branch", "BranchKind", "recover"]
