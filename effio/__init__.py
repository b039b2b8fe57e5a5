"""
effio - Memoizing, environment-parameterized effects for Python.

An ``Eff`` is a deferred computation from an environment to a ``Result``.
Effects compose through map/bind/match/alternation/zip without running; they
run, once, when ``run_io`` is given an environment.

Example:
    >>> from effio import Eff, Ok, ask_key
    >>>
    >>> greeting = ask_key("name").map(lambda name: f"hello {name}")
    >>> greeting.run_io({"name": "world"})
    Ok(value='hello world')
"""

# Core types
from effio.result import Err, Ok, Result
from effio.errors import (
    CANCELLED_TEXT,
    Error,
    ErrorCode,
    MissingEnvKeyError,
    ResultCastError,
    cancelled_error,
)
from effio.thunk import Thunk, ThunkState
from effio.env import CancellationToken, Env, HasCancel, is_cancelled

# Effects
from effio.eff import Eff, EffBase, PureEff
from effio.aff import Aff

# Composition
from effio._collection_combinators import first_success, sequence, traverse, zip_eff
from effio.do import EffGenerator, do
from effio.reader import Ask, AskKey, Asks, Local, ask, ask_key, asks, local
from effio.prelude import (
    Effect,
    EffectMaybe,
    Fail,
    FailEff,
    Success,
    SuccessEff,
    effect,
    effect_maybe,
    fail,
    fail_eff,
    pure_effect,
    success,
    success_eff,
)

__all__ = [
    # Result / errors
    "Result",
    "Ok",
    "Err",
    "Error",
    "ErrorCode",
    "CANCELLED_TEXT",
    "cancelled_error",
    "MissingEnvKeyError",
    "ResultCastError",
    # Thunk
    "Thunk",
    "ThunkState",
    # Environment
    "Env",
    "CancellationToken",
    "HasCancel",
    "is_cancelled",
    # Effects
    "Eff",
    "EffBase",
    "PureEff",
    "Aff",
    # Composition
    "do",
    "EffGenerator",
    "sequence",
    "traverse",
    "first_success",
    "zip_eff",
    # Reader
    "Ask",
    "Asks",
    "AskKey",
    "Local",
    "ask",
    "asks",
    "ask_key",
    "local",
    # Constructors
    "Effect",
    "EffectMaybe",
    "Success",
    "Fail",
    "SuccessEff",
    "FailEff",
    "effect",
    "effect_maybe",
    "success",
    "fail",
    "success_eff",
    "fail_eff",
    "pure_effect",
]
