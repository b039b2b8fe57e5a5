"""Environment helpers: a ready-made environment and the cancellation capability."""

from __future__ import annotations

import threading
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field, replace
from typing import Any, Protocol, runtime_checkable

from frozendict import frozendict


class CancellationToken:
    """Thread-safe, one-way cancellation signal."""

    __slots__ = ("_event",)

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.is_cancelled})"


@runtime_checkable
class HasCancel(Protocol):
    """Environment capability exposing a cancellation signal to async effects."""

    @property
    def cancellation_token(self) -> CancellationToken: ...


def is_cancelled(env: Any) -> bool:
    """Return ``True`` when ``env`` carries a cancellation token that has fired."""

    if isinstance(env, HasCancel):
        return env.cancellation_token.is_cancelled
    return False


@dataclass(frozen=True)
class Env(Mapping[str, Any]):
    """Immutable key/value environment that also satisfies :class:`HasCancel`."""

    data: frozendict = field(default_factory=frozendict)
    cancellation_token: CancellationToken = field(
        default_factory=CancellationToken, compare=False
    )

    def __post_init__(self) -> None:
        if not isinstance(self.data, frozendict):
            if not isinstance(self.data, Mapping):
                raise TypeError("Env data must be a mapping")
            object.__setattr__(self, "data", frozendict(self.data))

    @classmethod
    def of(cls, values: Mapping[str, Any] | None = None, **kwargs: Any) -> Env:
        return cls(frozendict({**(values or {}), **kwargs}))

    def with_values(self, **updates: Any) -> Env:
        """Return a copy with ``updates`` merged in; the token is shared."""

        return replace(self, data=frozendict({**self.data, **updates}))

    def cancel(self) -> None:
        self.cancellation_token.cancel()

    def __getitem__(self, key: str) -> Any:
        return self.data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self.data)

    def __len__(self) -> int:
        return len(self.data)


__all__ = ["CancellationToken", "Env", "HasCancel", "is_cancelled"]
