"""
Shared fixtures for effio tests.
"""

from typing import Any, Callable

import pytest


class CallCounter:
    """Records every invocation of a wrapped function."""

    def __init__(self) -> None:
        self.calls: list[Any] = []

    @property
    def count(self) -> int:
        return len(self.calls)

    def wrap(self, f: Callable[[Any], Any]) -> Callable[[Any], Any]:
        def counted(arg: Any = None) -> Any:
            self.calls.append(arg)
            return f(arg)

        return counted


@pytest.fixture
def counter() -> CallCounter:
    return CallCounter()
